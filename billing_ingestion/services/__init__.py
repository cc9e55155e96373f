"""Billing ingestion services (load driver, dependency-ordered loader)."""

from billing_ingestion.services.dependency_loader import (
    DependencyOrderedLoader,
    ReferenceKeys,
    ensure_reference_rows,
)
from billing_ingestion.services.load_driver import LoaderDriver, run

__all__ = [
    "DependencyOrderedLoader",
    "LoaderDriver",
    "ReferenceKeys",
    "ensure_reference_rows",
    "run",
]
