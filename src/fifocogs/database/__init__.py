"""Ledger store layer for fifocogs."""

from fifocogs.database.base import LedgerStore
from fifocogs.database.factories import create_sqlite_store

__all__ = ["LedgerStore", "create_sqlite_store"]
