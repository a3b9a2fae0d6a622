from peewee import DatabaseProxy, Model, SqliteDatabase
from playhouse.db_url import parse
from playhouse.pool import PooledPostgresqlDatabase

from core.logging import get_logger

# Bound to a concrete database by init_db() (or bind_database() in tests)
db = DatabaseProxy()

log = get_logger("db")


class BaseModel(Model):
    class Meta:
        database = db


def create_database(database_url: str):
    """
    Build a peewee database from a URL.

    postgres(ql):// URLs get a connection pool; sqlite:// URLs (local runs
    and tests) get a plain SqliteDatabase with foreign keys enforced.
    """
    parsed_url = parse(database_url)
    db_name = parsed_url.pop('database')

    if database_url.startswith('sqlite'):
        return SqliteDatabase(db_name or ':memory:', pragmas={'foreign_keys': 1})

    return PooledPostgresqlDatabase(
        db_name,
        max_connections=20,
        stale_timeout=300,
        **parsed_url
    )


def bind_database(database) -> None:
    """Point every model at the given database."""
    db.initialize(database)


def get_models() -> list:
    """All tables owned by the data platform, in foreign-key order."""
    from .models.pipeline_run import PipelineRun
    from .models.ncaab import (
        Team,
        Game,
        TeamGameStats,
        TeamSeasonRollup,
        NationalAverages,
    )

    return [
        # Audit
        PipelineRun,
        # Dimension tables
        Team,
        # Schedule (FK to Team)
        Game,
        # Facts and derived aggregates
        TeamGameStats,
        TeamSeasonRollup,
        NationalAverages,
    ]


def init_db(database_url: str | None = None):
    """Initialize database connection and create tables if they don't exist."""
    if database_url is None:
        from core.settings import settings
        database_url = settings.database_url

    bind_database(create_database(database_url))
    db.connect(reuse_if_open=True)

    # safe=True is idempotent
    db.create_tables(get_models(), safe=True)
    log.info("database_initialized", tables=len(get_models()))


def close_db():
    """Close database connection."""
    if db.obj is not None and not db.is_closed():
        db.close()
        log.info("database_closed")
