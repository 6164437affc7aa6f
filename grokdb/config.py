from datetime import UTC, datetime
from pathlib import Path

from pydantic_settings import BaseSettings


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Keeps datetimes naive so they stay compatible with SQLite (which doesn't
    store tz info).
    """
    return datetime.now(UTC).replace(tzinfo=None)


class Settings(BaseSettings):
    app_name: str = "grokdb"
    database_url: str = f"sqlite+aiosqlite:///{Path(__file__).resolve().parent.parent / 'data' / 'grokdb.db'}"
    changelog_separator: str = "\n"
    ranking: str = "least_reviewed"
    debug: bool = False

    model_config = {"env_prefix": "GROKDB_", "env_file": ".env"}


settings = Settings()
