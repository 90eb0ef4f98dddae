"""Store factory functions for creating ledger store instances."""

from typing import Optional

from fifocogs.config import default_database_path, load_settings
from fifocogs.database.sqlalchemy_db import SQLAlchemyLedgerStore


def create_sqlite_store(
    database_path: Optional[str] = None,
    api_key: Optional[str] = None,
) -> SQLAlchemyLedgerStore:
    """Create a SQLite ledger store instance.

    Args:
        database_path: Path to SQLite database file. If None, uses the
            FIFOCOGS_DB_PATH setting, then defaults to ~/.fifocogs/fifocogs.db
        api_key: Credential for the store. If None, uses FIFOCOGS_API_KEY

    Returns:
        SQLAlchemyLedgerStore instance configured for SQLite
    """
    settings = load_settings()
    if database_path is None:
        database_path = settings.database_path or default_database_path()
    if api_key is None:
        api_key = settings.api_key

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyLedgerStore(database_url, agent_id=settings.agent_id, api_key=api_key)
