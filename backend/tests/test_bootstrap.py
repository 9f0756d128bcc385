import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from classgrid.core.exceptions import ConfigurationError
from classgrid.db.bootstrap import ensure_schema, find_schema_gaps


def memory_engine():
    return create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def test_ensure_schema_creates_every_table():
    engine = memory_engine()
    ensure_schema(engine)
    with engine.connect() as connection:
        assert find_schema_gaps(connection) == ([], {})


def test_missing_tables_are_a_configuration_error():
    engine = memory_engine()
    with pytest.raises(ConfigurationError, match="Missing required tables"):
        ensure_schema(engine, create_missing=False)


def test_missing_columns_are_reported_per_table():
    engine = memory_engine()
    ensure_schema(engine)
    with engine.begin() as connection:
        connection.execute(text("DROP TABLE schedule_revisions"))
        connection.execute(text("CREATE TABLE schedule_revisions (id INTEGER PRIMARY KEY)"))

    with engine.connect() as connection:
        assert find_schema_gaps(connection) == ([], {"schedule_revisions": ["revision"]})
    with pytest.raises(ConfigurationError, match="schedule_revisions.revision"):
        ensure_schema(engine, create_missing=False)
