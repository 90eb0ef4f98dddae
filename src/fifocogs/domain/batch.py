"""Staged record mutations for one calculation run.

The ledger store has no multi-record transactions, so every create, update
and delete of a run is kept in memory and only written once the whole run
finished without finding a locked record.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from fifocogs.database.base import LedgerStore
from fifocogs.domain.entities import Record

logger = logging.getLogger(__name__)

TEMPORARY_ID_PREFIX = "tmp_"


@dataclass
class BatchResult:
    """Records written by a commit."""

    created: list[Record] = field(default_factory=list)
    updated: list[Record] = field(default_factory=list)
    deleted: list[Record] = field(default_factory=list)


class BatchProcessor:
    """Accumulates mutations and commits them all at once."""

    def __init__(self, store: LedgerStore):
        """Initialize batch processor.

        Args:
            store: Ledger store the batch is committed to
        """
        self.store = store
        self._next_index = 0
        self._creates: list[tuple[str, Record]] = []
        self._updates: dict[tuple[int, int], Record] = {}
        self._deletes: dict[tuple[int, int], Record] = {}
        self._locked: list[Record] = []

    @property
    def pending_creates(self) -> list[Record]:
        return [record for _, record in self._creates]

    @property
    def pending_updates(self) -> list[Record]:
        return list(self._updates.values())

    @property
    def pending_deletes(self) -> list[Record]:
        return list(self._deletes.values())

    @property
    def is_empty(self) -> bool:
        return not (self._creates or self._updates or self._deletes)

    def generate_temporary_id(self) -> str:
        """Return a new placeholder ID, unique within this batch."""
        self._next_index += 1
        return f"{TEMPORARY_ID_PREFIX}{self._next_index}"

    def register_create(self, record: Record, temporary_id: Optional[str] = None) -> str:
        """Stage a new record.

        The temporary ID is returned immediately and carried in the record's
        remote IDs, so other staged records can reference it before the
        store assigns a real ID.

        Returns:
            Temporary ID of the staged record
        """
        if record.id is not None:
            raise ValueError(f"Record {record.id} already exists")
        if temporary_id is None:
            temporary_id = self.generate_temporary_id()
        if temporary_id not in record.remote_ids:
            record = replace(record, remote_ids=record.remote_ids + (temporary_id,))
        self._creates.append((temporary_id, record))
        return temporary_id

    def register_update(self, record: Record) -> None:
        """Stage an update. A later update of the same record replaces it."""
        if record.id is None:
            raise ValueError("Cannot update a record that was never created")
        if record.locked:
            self.report_lock(record)
            return
        self._updates[(record.book_id, record.id)] = record

    def register_delete(self, record: Record) -> None:
        """Stage a record to be moved to the trash."""
        if record.id is None:
            raise ValueError("Cannot delete a record that was never created")
        if record.locked:
            self.report_lock(record)
            return
        key = (record.book_id, record.id)
        self._updates.pop(key, None)
        self._deletes[key] = record

    def report_lock(self, record: Record) -> None:
        """Register a record found locked by another process."""
        logger.warning("record %s in book %s is locked", record.id, record.book_id)
        self._locked.append(record)

    def has_lock_conflict(self) -> bool:
        """True when any staged or inspected record was locked."""
        return bool(self._locked)

    def commit(self) -> BatchResult:
        """Write creates, then updates, then deletes.

        Temporary IDs are replaced by the IDs the store assigns before any
        record referencing them is written. Nothing is written when a lock
        conflict was detected.

        Raises:
            RemoteError: If a store call fails
        """
        result = BatchResult()
        if self.has_lock_conflict():
            logger.warning("lock conflict: discarding %d staged mutations", self._pending_count())
            return result

        id_map: dict[str, str] = {}
        for temporary_id, record in self._creates:
            record = self._resolve(record, id_map)
            record = replace(
                record,
                remote_ids=tuple(rid for rid in record.remote_ids if rid != temporary_id),
            )
            created = self.store.create_record(record)
            id_map[temporary_id] = str(created.id)
            result.created.append(created)

        for record in self._updates.values():
            result.updated.append(self.store.update_record(self._resolve(record, id_map)))

        for record in self._deletes.values():
            self.store.trash_record(record.book_id, record.id)
            result.deleted.append(record)

        logger.info(
            "batch committed: %d created, %d updated, %d deleted",
            len(result.created),
            len(result.updated),
            len(result.deleted),
        )
        self._creates.clear()
        self._updates.clear()
        self._deletes.clear()
        return result

    def _pending_count(self) -> int:
        return len(self._creates) + len(self._updates) + len(self._deletes)

    @staticmethod
    def _resolve(record: Record, id_map: dict[str, str]) -> Record:
        """Rewrite temporary-ID references already known in ``id_map``."""
        if not id_map:
            return record

        def resolve(value: Optional[str]) -> Optional[str]:
            return id_map.get(value, value) if value is not None else None

        changes = {}
        if any(rid in id_map for rid in record.remote_ids):
            changes["remote_ids"] = tuple(resolve(rid) for rid in record.remote_ids)
        if record.sale is not None and record.sale.purchase_log:
            changes["sale"] = replace(
                record.sale,
                purchase_log=tuple(
                    replace(entry, purchase_id=resolve(entry.purchase_id))
                    for entry in record.sale.purchase_log
                ),
            )
        if record.purchase is not None:
            changes["purchase"] = replace(
                record.purchase,
                parent_id=resolve(record.purchase.parent_id),
                liquidation_log=tuple(
                    replace(entry, sale_id=resolve(entry.sale_id))
                    for entry in record.purchase.liquidation_log
                ),
            )
        return replace(record, **changes) if changes else record
