#!/usr/bin/env python3
"""
Container entrypoint: wait for the database, migrate, seed demo data, then exec uvicorn.
"""
import logging
import os
import sys

from alembic import command
from alembic.config import Config

import wait_for_db  # noqa: F401  (blocks until Postgres accepts connections)
from app.core.config import settings
from app.core.logging import configure_logging

logger = logging.getLogger("start_api")


def migrate() -> None:
    cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
    cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    command.upgrade(cfg, "head")


def seed() -> None:
    # Fresh engine: the app engine may have been created before the tables existed
    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker
    from app.seed import run

    engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)
    try:
        run(sessionmaker(autocommit=False, autoflush=False, bind=engine)())
    finally:
        engine.dispose()


def main() -> None:
    configure_logging(settings.LOG_LEVEL)
    migrate()
    seed()
    port = os.getenv("PORT", "8000")
    logger.info("starting uvicorn on port %s", port)
    os.execv(sys.executable, [sys.executable, "-m", "uvicorn", "app.main:app", "--host", "0.0.0.0", "--port", port])


if __name__ == "__main__":
    main()
