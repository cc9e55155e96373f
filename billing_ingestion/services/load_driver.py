"""
Loader driver: file -> rows -> reconciled batch -> database.

The only component that touches the input file.  It checks the file exists
before anything else, reads every row, maps and reconciles them, and hands
the batch to the DependencyOrderedLoader, which owns the transaction.

Failures propagate unchanged, with input-stream problems surfaced as
SourceError subclasses.  There is no retry: rollback is the loader's job and
re-running is the caller's.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Any
from uuid import uuid4

from sqlalchemy.orm import Session, sessionmaker

from billing_config import get_settings
from billing_config.schema import LoaderSettings
from billing_ingestion.adapters.base import SourceAdapter, SourceProbe
from billing_ingestion.adapters.csv_adapter import CsvSourceAdapter
from billing_ingestion.domain.types import LoadSummary
from billing_ingestion.mapping.row_mapper import RowMapper
from billing_ingestion.reconcile.reconciler import EntityReconciler
from billing_ingestion.services.dependency_loader import DependencyOrderedLoader
from billing_kernel.db.engine import build_engine
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import (
    ConfigurationError,
    SourceFileNotFoundError,
    SourceReadError,
)
from billing_kernel.logging_config import LogContext, get_logger

logger = get_logger("ingestion.load_driver")

# Input-stream failures reported as SourceReadError (LookupError: unknown encoding)
_READ_ERRORS = (OSError, UnicodeError, LookupError, csv.Error)


class LoaderDriver:
    """Runs one file through read, reconcile and load."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        adapter: SourceAdapter | None = None,
        mapper: RowMapper | None = None,
        settings: LoaderSettings | None = None,
        clock: Clock | None = None,
    ):
        self._settings = settings or LoaderSettings()
        self._clock = clock or SystemClock()
        self._adapter = adapter or CsvSourceAdapter()
        self._mapper = mapper or RowMapper(self._settings.ingestion, clock=self._clock)
        self._loader = DependencyOrderedLoader(session_factory)

    def _source_path(self, file_path: str | Path) -> Path:
        path = Path(file_path)
        if not path.is_file():
            raise SourceFileNotFoundError(path)
        return path

    def _read_rows(self, path: Path) -> list[dict[str, Any]]:
        try:
            return list(self._adapter.read(path, self._settings.ingestion.source_options()))
        except _READ_ERRORS as exc:
            raise SourceReadError(path, str(exc)) from exc

    def probe(self, file_path: str | Path) -> SourceProbe:
        """Row count, columns and sample rows.  Never touches the database."""
        path = self._source_path(file_path)
        try:
            return self._adapter.probe(path, self._settings.ingestion.source_options())
        except _READ_ERRORS as exc:
            raise SourceReadError(path, str(exc)) from exc

    def run(self, file_path: str | Path) -> LoadSummary:
        """
        Load one file.

        Raises:
            SourceFileNotFoundError: before any transaction opens.
            SourceReadError: the file could not be read or decoded.
            sqlalchemy.exc.SQLAlchemyError: persistence failed; nothing was
                committed.
        """
        path = self._source_path(file_path)
        run_id = str(uuid4())
        started_at = self._clock.now()

        with LogContext.bind(run_id=run_id, source_file=str(path), producer="billing_ingestion"):
            logger.info("load_started", extra={"started_at": started_at})

            rows = self._read_rows(path)
            logger.info("source_rows_read", extra={"rows_read": len(rows)})

            reconciler = EntityReconciler()
            reconciler.absorb_rows(rows, self._mapper)
            batch = reconciler.finish()

            result = self._loader.load(batch)

            summary = LoadSummary(
                run_id=run_id,
                source_file=str(path),
                counts=batch.counts(),
                rows_read=len(rows),
                rows_skipped=reconciler.rows_skipped,
                started_at=started_at,
                result=result,
            )
            logger.info("load_finished", extra=summary.as_dict())
        return summary


def run(file_path: str | Path, settings: LoaderSettings | None = None) -> dict[str, int]:
    """
    Load ``file_path`` into the configured database and return the counts.

    Builds a short-lived engine from ``settings`` (or ``get_settings()``)
    and disposes it afterwards.

    Raises:
        ConfigurationError: no database URL is configured.
    """
    settings = settings or get_settings()
    db = settings.database
    if not db.url:
        raise ConfigurationError("database.url", "no database URL configured (set DATABASE_URL)")

    engine = build_engine(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )
    try:
        factory = sessionmaker(bind=engine, expire_on_commit=False)
        return LoaderDriver(factory, settings=settings).run(file_path).as_dict()
    finally:
        engine.dispose()
