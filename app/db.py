# app/db.py

import functools
import logging

from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, create_engine, Session

from app import config
from app.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)

connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    # required for SQLite + FastAPI; timeout bounds waits on a locked file
    connect_args = {"check_same_thread": False, "timeout": config.DB_TIMEOUT_SECONDS}

# Engine = connection to the database
engine = create_engine(
    config.DATABASE_URL,
    echo=False,
    pool_pre_ping=True,
    connect_args=connect_args,
)


def init_db():
    # make sure every table is registered before create_all
    from app import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session


def read_retry(func):
    """Retry a read-only service call when the store is unreachable.

    The wrapped function takes the session as its first argument. After
    ``READ_RETRY_ATTEMPTS`` failures the error surfaces as
    UpstreamUnavailableError. Never use this on mutations.
    """

    @functools.wraps(func)
    def wrapper(session, *args, **kwargs):
        attempts = max(1, config.READ_RETRY_ATTEMPTS)
        for attempt in range(1, attempts + 1):
            try:
                return func(session, *args, **kwargs)
            except OperationalError as e:
                session.rollback()
                logger.warning(f"Store read failed in {func.__name__} (attempt {attempt}/{attempts}): {e}")
        raise UpstreamUnavailableError("Data store is unavailable, please try again later")

    return wrapper
