from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from classgrid.core.exceptions import ConfigurationError
from classgrid.db.base import Base

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "subjects": {"id", "name", "code"},
    "teachers": {"id", "name", "skills", "unavailable_times"},
    "student_groups": {"id", "name", "size", "unavailable_times"},
    "rooms": {"id", "name", "capacity", "unavailable_times"},
    "courses": {"id", "name", "subject_id", "teacher_id", "group_id", "room_id", "weekly_sessions"},
    "schedule_entries": {"id", "course_id", "day", "time", "duration_minutes", "teacher_id", "group_id", "room_id"},
    "schedule_revisions": {"id", "revision"},
}


def find_schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_schema(engine: Engine, *, create_missing: bool = True) -> None:
    import classgrid.models  # noqa: F401

    try:
        if create_missing:
            Base.metadata.create_all(bind=engine)
        with engine.connect() as connection:
            missing_tables, missing_columns = find_schema_gaps(connection)
    except SQLAlchemyError as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Schema bootstrap failed")
        raise ConfigurationError(f"Schema bootstrap failed: {exc}") from exc

    if missing_tables:
        raise ConfigurationError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise ConfigurationError(f"Missing required columns: {', '.join(flattened)}")
