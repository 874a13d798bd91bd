import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from notestack.config import DATABASE_URL

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Pool settings for server databases (PostgreSQL)
SERVER_POOL = {
    "pool_size": 5,
    "max_overflow": 10,
    "pool_timeout": 30,
    "pool_recycle": 1800,
}


def _sqlite_file(url: str) -> str | None:
    """Path of a file-backed SQLite database, or None for memory / other backends."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return None
    if parsed.database in (None, "", ":memory:"):
        return None
    return parsed.database


def build_engine(url: str):
    """
    Engine for ``url``. SQLite connections are shared across request threads;
    an in-memory SQLite database is pinned to one connection so it survives
    between sessions.
    """
    if make_url(url).get_backend_name() == "sqlite":
        args = {"connect_args": {"check_same_thread": False}}
        if _sqlite_file(url) is None:
            args["poolclass"] = StaticPool
    else:
        args = dict(SERVER_POOL)
    return create_engine(url, echo=False, **args)


try:
    engine = build_engine(DATABASE_URL)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
except Exception as e:
    logger.error(f"Failed to create engine: {e}")
    raise

Base = declarative_base()


def get_db():
    """FastAPI dependency: yields a database session and closes it after use."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create the SQLite parent directory when needed, then all tables."""
    bind = bind or engine
    path = _sqlite_file(bind.url.render_as_string(hide_password=False))
    if path and os.path.dirname(path):
        os.makedirs(os.path.dirname(path), exist_ok=True)

    # Models register themselves on Base.metadata when imported
    import notestack.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database initialized successfully.")
