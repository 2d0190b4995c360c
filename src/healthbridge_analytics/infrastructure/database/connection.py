"""Engine and session factory for the relational store."""

import logging
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from healthbridge_analytics.infrastructure.database.models import Base
from healthbridge_analytics.utils.exceptions import StoreError
from healthbridge_analytics.utils.parameters import DatabaseConfig

logger = logging.getLogger(__name__)


def create_db_engine(config: DatabaseConfig) -> Engine:
    """
    Create the engine and make sure the schema exists.

    For file-backed SQLite URLs the parent directory is created first.

    Raises:
        StoreError: If the engine cannot be created or the schema cannot be applied.
    """
    url = make_url(config.url)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    try:
        engine = create_engine(config.url, echo=config.echo, future=True)
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        raise StoreError(f"Failed to initialize database: {e}") from e

    logger.debug(f"Database ready at {url.render_as_string(hide_password=True)}")
    return engine


def create_session_factory(config: DatabaseConfig) -> sessionmaker[Session]:
    """Build a session factory bound to a freshly initialized engine."""
    engine = create_db_engine(config)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
