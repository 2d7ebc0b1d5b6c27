"""
db/config.py

Environment-driven destination database settings.

Resolution order for the destination URL:

    DATABASE_URL
    CLOUD_DATABASE_URL   (only when ENVIRONMENT is prod/production/staging/cloud)
    LOCAL_DATABASE_URL
    sqlite:///$SQLITE_DB_PATH   (default out/database.sqlite)
"""

from __future__ import annotations

import os
from pathlib import Path

from sqlalchemy.engine import make_url

PROJECT_ROOT = Path(__file__).resolve().parents[1]
ENV_FILENAMES: tuple[str, ...] = (".env", ".env.local")
CLOUD_ENVIRONMENTS = frozenset({"prod", "production", "staging", "cloud"})
DEFAULT_SQLITE_DB_PATH = "out/database.sqlite"

_POSTGRES_SCHEMES: tuple[tuple[str, str], ...] = (
    ("postgres://", "postgresql+psycopg://"),
    ("postgresql://", "postgresql+psycopg://"),
)


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Export KEY=VALUE pairs from `.env` then `.env.local` under `root`.

    Variables already present in the process environment win.
    """

    for filename in ENV_FILENAMES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


def normalize_postgres_url(url: str) -> str:
    """
    Point bare postgres URLs at the psycopg (v3) driver.
    """

    for prefix, replacement in _POSTGRES_SCHEMES:
        if url.startswith(prefix):
            return replacement + url[len(prefix):]
    return url


def sqlite_url_for_path(db_path: str) -> str:
    return f"sqlite:///{Path(db_path).expanduser()}"


def describe_database_url(url: str) -> str:
    """
    Render a URL for logs with any password masked.
    """

    return make_url(url).render_as_string(hide_password=True)


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def resolve_database_url() -> str:
    load_env_files()

    direct_url = _env("DATABASE_URL")
    if direct_url:
        return normalize_postgres_url(direct_url)

    environment = (_env("ENVIRONMENT") or "local").lower()
    cloud_url = _env("CLOUD_DATABASE_URL")
    if environment in CLOUD_ENVIRONMENTS and cloud_url:
        return normalize_postgres_url(cloud_url)

    local_url = _env("LOCAL_DATABASE_URL")
    if local_url:
        return normalize_postgres_url(local_url)

    return sqlite_url_for_path(_env("SQLITE_DB_PATH") or DEFAULT_SQLITE_DB_PATH)
