"""Database URL helpers for Alembic migrations.

The app connects with psycopg2 using DATABASE_URL as-is (URL or libpq DSN);
Alembic needs a SQLAlchemy URL. Kept apart from env.py so it can be tested
without an alembic context.
"""

from __future__ import annotations

import os
from urllib.parse import quote_plus

from psycopg2.extensions import parse_dsn

DRIVER_SCHEME = "postgresql+psycopg2://"


def dsn_to_url(dsn: str) -> str:
    """Convert a libpq ``key=value`` DSN to a SQLAlchemy URL.

    Unix socket hosts (``host=/var/run/postgresql``) go in the query string.
    """
    params = parse_dsn(dsn)
    user = quote_plus(params.get("user", ""))
    password = params.get("password")
    auth = f"{user}:{quote_plus(password)}" if password else user
    dbname = quote_plus(params.get("dbname", ""))
    host = params.get("host", "localhost")

    if host.startswith("/"):
        return f"{DRIVER_SCHEME}{auth}@/{dbname}?host={quote_plus(host)}"
    port = params.get("port", "5432")
    return f"{DRIVER_SCHEME}{auth}@{host}:{port}/{dbname}"


def database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    if "://" not in url:
        return dsn_to_url(url)
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return DRIVER_SCHEME + url[len(scheme):]
    return url
