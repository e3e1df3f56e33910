"""Create the resort tables on the configured database."""

import logging

from sqlalchemy.engine import Engine

from app.database import Base, engine

logger = logging.getLogger(__name__)


def init_db(bind: Engine = engine) -> None:
    # Registers every model on Base.metadata
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=bind)
    logger.info("Database tables ensured", extra={"tables": sorted(Base.metadata.tables)})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
