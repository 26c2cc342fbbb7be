import os
from contextlib import contextmanager
from urllib.parse import quote_plus
from uuid import UUID

import psycopg2
from psycopg2.extras import RealDictCursor
from dotenv import load_dotenv

load_dotenv()


def database_url(driver: str = "postgresql") -> str:
    """
    DATABASE_URL if set (e.g. for AWS RDS); otherwise built from
    DB_HOST, DB_NAME, DB_USER, DB_PASSWORD, DB_PORT.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        if driver != "postgresql" and url.startswith("postgresql://"):
            url = driver + url[len("postgresql"):]
        return url
    user = os.getenv("DB_USER", "dev")
    pwd = quote_plus(os.getenv("DB_PASSWORD", "dev"))
    host = os.getenv("DB_HOST", "127.0.0.1")
    port = os.getenv("DB_PORT", "65432")
    name = os.getenv("DB_NAME", "pawfund_dev")
    return f"{driver}://{user}:{pwd}@{host}:{port}/{name}"


def get_db_connection():
    return psycopg2.connect(database_url())


@contextmanager
def transaction():
    """
    Yield a dict cursor bound to one transaction. The connection context
    commits when the block exits cleanly and rolls back on any exception.
    """
    conn = get_db_connection()
    try:
        with conn, conn.cursor(cursor_factory=RealDictCursor) as cur:
            yield cur
    finally:
        conn.close()


def is_uuid(value) -> bool:
    """Primary keys are UUIDs; anything else cannot match a row."""
    try:
        UUID(str(value))
        return True
    except ValueError:
        return False
