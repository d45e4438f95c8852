import logging
import os
import time
from urllib.parse import urlparse

import psycopg2

logging.basicConfig(level=logging.INFO, format="[wait_for_db] %(message)s")
logger = logging.getLogger("wait_for_db")

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise SystemExit("DATABASE_URL is not set")


def wait(database_url: str, timeout_s: int) -> None:
    # SQLite needs no waiting
    if database_url.startswith("sqlite"):
        return
    url = database_url.replace("postgresql+psycopg2://", "postgresql://")
    p = urlparse(url)
    host = p.hostname or "db"
    port = p.port or 5432
    user = p.username or "guardline"
    dbname = (p.path or "/guardline").lstrip("/") or "guardline"

    logger.info("Waiting for Postgres at %s:%s db=%s user=%s (timeout=%ss)", host, port, dbname, user, timeout_s)
    start = time.time()
    while True:
        try:
            conn = psycopg2.connect(host=host, port=port, user=user, password=p.password or "", dbname=dbname)
            conn.close()
            logger.info("Postgres is ready.")
            return
        except psycopg2.OperationalError as e:
            if time.time() - start > timeout_s:
                logger.error("Timed out waiting for DB. Last error: %s", e)
                raise
            time.sleep(1)


wait(DATABASE_URL, int(os.getenv("DB_WAIT_TIMEOUT", "60")))
