"""Process configuration.

Settings are read from the environment once per process; the CLI options
``--db-path`` and ``--api-key`` override them.
"""

import functools
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

API_KEY_ENV = "FIFOCOGS_API_KEY"
DB_PATH_ENV = "FIFOCOGS_DB_PATH"
AGENT_ID_ENV = "FIFOCOGS_AGENT_ID"

DEFAULT_AGENT_ID = "fifocogs"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings."""

    api_key: Optional[str]
    database_path: Optional[str]
    agent_id: str = DEFAULT_AGENT_ID


def default_database_path() -> str:
    """Return ~/.fifocogs/fifocogs.db, creating the directory if needed."""
    db_dir = Path.home() / ".fifocogs"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "fifocogs.db")


@functools.lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load settings from the environment. Cached for the process lifetime."""
    return Settings(
        api_key=os.environ.get(API_KEY_ENV) or None,
        database_path=os.environ.get(DB_PATH_ENV) or None,
        agent_id=os.environ.get(AGENT_ID_ENV) or DEFAULT_AGENT_ID,
    )
