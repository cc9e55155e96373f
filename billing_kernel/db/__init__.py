"""Billing database layer: engine and unit of work, declarative base, column types."""

from billing_kernel.db.base import Base
from billing_kernel.db.engine import (
    build_engine,
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)
from billing_kernel.db.types import MoneyType, NaturalKeyType, ReferenceNameType, SurrogateKeyType, round_money

__all__ = [
    "Base",
    "build_engine",
    "create_tables",
    "get_engine",
    "get_session_factory",
    "init_engine_from_url",
    "session_scope",
    "MoneyType",
    "NaturalKeyType",
    "ReferenceNameType",
    "SurrogateKeyType",
    "round_money",
]
