from __future__ import annotations

import logging

from sqlalchemy import inspect

from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_TABLES: set[str] = {
    "semester_routines",
    "routine_versions",
    "schedule_overrides",
    "schedule_log",
    "pending_changes",
    "notifications",
}


def init_db() -> None:
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def missing_required_tables() -> list[str]:
    with engine.connect() as connection:
        table_names = set(inspect(connection).get_table_names())
    return sorted(REQUIRED_TABLES - table_names)


def ensure_runtime_schema() -> None:
    if engine.dialect.name == "sqlite":
        init_db()
    missing = missing_required_tables()
    if missing:
        logger.warning("Database is missing tables %s; run the migrations", ", ".join(missing))
