"""
Database engine configuration.

Creates SQLAlchemy engine with appropriate settings for SQLite or PostgreSQL.
"""

from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine

from chatdesk.config import Settings, get_settings
from chatdesk.core import get_logger
from chatdesk.db.base import Base

logger = get_logger(__name__)

_engine: Engine | None = None


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:  # noqa: ANN001
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(database_url: str, debug: bool = False) -> Engine:
    """
    Build an engine for the given URL.

    Handles SQLite-specific configuration (connect_args, directory creation,
    foreign key enforcement).
    """
    if database_url.startswith("sqlite"):
        db_path = database_url.replace("sqlite:///", "")
        if db_path and db_path != ":memory:":
            if db_path.startswith("./"):
                db_path = db_path[2:]
            db_dir = Path(db_path).parent
            if db_dir and not db_dir.exists():
                db_dir.mkdir(parents=True, exist_ok=True)
                logger.info(f"Created database directory: {db_dir}")

        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=debug,
            pool_pre_ping=True,
        )
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_engine(
            database_url,
            echo=debug,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )

    logger.info("Database engine created", data={"dialect": engine.dialect.name})
    return engine


def get_engine(settings: Settings | None = None) -> Engine:
    """
    Get or create the database engine.

    Returns cached engine instance, creating it on first call.
    """
    global _engine

    if _engine is None:
        settings = settings or get_settings()
        _engine = create_db_engine(settings.database_url)
    return _engine


def init_db(engine: Engine) -> None:
    """Create the chat tables if they do not exist."""
    Base.metadata.create_all(engine)


def verify_database_connection(engine: Engine) -> bool:
    """
    Verify database connectivity with a simple query.

    Returns:
        True if connection successful, False otherwise.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False


def dispose_engine() -> None:
    """Dispose of the engine and release all connections."""
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database engine disposed")
