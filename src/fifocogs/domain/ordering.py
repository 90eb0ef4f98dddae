"""FIFO ordering of ledger records."""

from datetime import datetime
from typing import Iterable

from fifocogs.domain.entities import Record

_NO_CREATION_TIME = datetime.min


def fifo_key(record: Record) -> tuple:
    """Sort key placing older records first.

    The ``order`` hint is the primary key (a missing hint ranks as 0). Records
    with equal hints fall back to date, then creation time and finally ID.
    Records without a creation time sort after the ones that have it.
    """
    created_at = record.created_at
    if created_at is not None and created_at.tzinfo is not None:
        created_at = created_at.replace(tzinfo=None)
    return (
        record.order if record.order is not None else 0,
        record.date,
        created_at is None,
        created_at if created_at is not None else _NO_CREATION_TIME,
        record.id if record.id is not None else 0,
    )


def sort_fifo(records: Iterable[Record]) -> list[Record]:
    """Return records in FIFO order. The sort is stable."""
    return sorted(records, key=fifo_key)
