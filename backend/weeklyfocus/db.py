import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from weeklyfocus.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

# SQLAlchemy Base class for models to inherit
Base = declarative_base()


def build_engine(database_url: str):
    kwargs = {"pool_pre_ping": True}  # helps avoid stale connections
    if database_url.startswith("sqlite"):
        # The tracker session is shared with FastAPI's worker threads
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url.rstrip("/").endswith(":"):
            # One connection, otherwise every checkout sees an empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def init_storage(database_url: str):
    """Open the store, create missing tables and return a session factory.

    Raises StorageUnavailableError when the database cannot be reached or
    the schema cannot be created, so callers never mistake a broken store
    for an empty one.
    """
    # Import ensures tables are registered on Base.metadata
    from weeklyfocus.models.goal import Goal  # noqa: F401
    from weeklyfocus.models.record import Record  # noqa: F401

    try:
        engine = build_engine(database_url)
        Base.metadata.create_all(bind=engine)
    except (SQLAlchemyError, OSError) as e:
        logger.error("Cannot open store at %s: %s", database_url, e)
        raise StorageUnavailableError(f"Cannot open store: {e}") from e

    logger.debug("Store ready at %s", database_url)
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
