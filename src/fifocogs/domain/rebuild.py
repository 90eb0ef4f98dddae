"""Rebuild flag state machine and full history rebuilds.

An account is flagged for rebuild when its FIFO history changed behind an
earlier calculation, e.g. a record dated at or before the last calculation
date arrives. Incremental matching is wrong from then on, so a flagged
account is only ever recalculated from scratch.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Optional

from fifocogs.database.base import LedgerStore
from fifocogs.domain.batch import BatchProcessor, BatchResult
from fifocogs.domain.entities import Account, Record, SaleDetails
from fifocogs.domain.errors import NotFoundError, account_not_found, book_not_found
from fifocogs.domain.properties import COGS_CALC_DATE_PROP, NEEDS_REBUILD_PROP
from fifocogs.domain.summary import Outcome, Summary
from fifocogs.utils.query import build_account_query

if TYPE_CHECKING:
    from fifocogs.domain.cost_of_sales import CostOfSalesService

logger = logging.getLogger(__name__)


class RebuildState(str, Enum):
    """Whether an account's allocation history can be trusted."""

    CLEAN = "clean"
    FLAGGED = "flagged-for-rebuild"


def rebuild_state(account: Account) -> RebuildState:
    """Read the rebuild state from the account's properties."""
    value = account.get_property(NEEDS_REBUILD_PROP)
    if value is not None and value.strip().upper() == "TRUE":
        return RebuildState.FLAGGED
    return RebuildState.CLEAN


def calculation_date(account: Account) -> Optional[date]:
    """Date of the last sale covered by a successful calculation."""
    value = account.get_property(COGS_CALC_DATE_PROP)
    if value is None:
        return None
    return date.fromisoformat(value)


class RebuildFlags:
    """Transitions of the rebuild flag, persisted as account properties."""

    def __init__(self, store: LedgerStore):
        self.store = store

    def flag(self, account: Account) -> Account:
        """Mark an account for rebuild."""
        logger.info("flagging account %s for rebuild", account.name)
        return self.store.set_account_property(account.book_id, account.id, NEEDS_REBUILD_PROP, "TRUE")

    def flag_if_backdated(self, account: Account, record_date: date) -> bool:
        """Flag the account when a record predates its last calculation.

        Returns:
            True if the account was flagged
        """
        last_date = calculation_date(account)
        if last_date is not None and record_date <= last_date:
            self.flag(account)
            return True
        return False

    def store_calculation_date(self, account: Account, last_sale_date: Optional[date]) -> Account:
        """Store the last calculated sale date when it moves forward."""
        if last_sale_date is None:
            return account
        current = calculation_date(account)
        if current is not None and last_sale_date <= current:
            return account
        return self.store.set_account_property(
            account.book_id, account.id, COGS_CALC_DATE_PROP, last_sale_date.isoformat()
        )

    def clear_calculation_date(self, account: Account) -> Account:
        return self.store.set_account_property(account.book_id, account.id, COGS_CALC_DATE_PROP, None)

    def mark_clean(self, account: Account) -> Account:
        """Return an account to CLEAN once a full rebuild completed."""
        logger.info("account %s rebuilt", account.name)
        return self.store.set_account_property(account.book_id, account.id, NEEDS_REBUILD_PROP, None)


@dataclass(frozen=True)
class RebuildTask:
    """Request to recompute one account's history."""

    book_id: int
    account_id: int


class RebuildQueue(ABC):
    """Work queue receiving rebuild tasks."""

    @abstractmethod
    def enqueue(self, task: RebuildTask) -> None:
        """Schedule a rebuild."""
        pass


class LocalRebuildQueue(RebuildQueue):
    """In-process queue, drained explicitly by the caller."""

    def __init__(self):
        self._tasks: deque[RebuildTask] = deque()

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def tasks(self) -> list[RebuildTask]:
        return list(self._tasks)

    def enqueue(self, task: RebuildTask) -> None:
        if task in self._tasks:
            return
        self._tasks.append(task)

    def run_pending(self, rebuild_service: "RebuildService") -> list[Summary]:
        """Run queued rebuilds in arrival order."""
        summaries = []
        while self._tasks:
            task = self._tasks.popleft()
            summaries.append(rebuild_service.rebuild_account(task.book_id, task.account_id))
        return summaries


class RebuildService:
    """Resets an account's allocation history and recalculates it."""

    def __init__(self, store: LedgerStore, cost_of_sales: "CostOfSalesService"):
        """Initialize rebuild service.

        Args:
            store: Ledger store
            cost_of_sales: Service running the recalculation
        """
        self.store = store
        self.cost_of_sales = cost_of_sales
        self.flags = RebuildFlags(store)

    def reset_account(self, book_id: int, account_id: int) -> Optional[BatchResult]:
        """Undo every allocation made for an account.

        Split purchases and cost-of-sale records are trashed, root purchases
        get their as-created quantity and cost back, sales are unchecked.

        Returns:
            Committed batch, or None if a locked record aborted the reset
        """
        inventory_book = self.store.get_book(book_id)
        if inventory_book is None:
            raise NotFoundError(book_not_found(book_id))
        account = self.store.get_account(book_id, account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))

        financial_book = self.cost_of_sales.find_financial_book(inventory_book, account)
        batch = BatchProcessor(self.store)
        for record in self.store.query_records(book_id, build_account_query(account.name)):
            if record.is_sale:
                self._reset_sale(batch, record, financial_book.id if financial_book else None)
            elif record.is_purchase:
                self._reset_purchase(batch, record)

        if batch.has_lock_conflict():
            return None
        result = batch.commit()
        self.flags.clear_calculation_date(account)
        return result

    def rebuild_account(self, book_id: int, account_id: int) -> Summary:
        """Reset and recalculate an account, then mark it clean."""
        logger.info("rebuilding account %s in book %s", account_id, book_id)
        if self.reset_account(book_id, account_id) is None:
            return Summary(account_id=account_id).lock_error()

        summary = self.cost_of_sales.calculate_cost_of_sales(
            book_id, account_id, ignore_rebuild_flag=True
        )
        if summary.outcome in (Outcome.OK, Outcome.IN_PROGRESS):
            account = self.store.get_account(book_id, account_id)
            self.flags.mark_clean(account)
        return summary

    def _reset_sale(self, batch: BatchProcessor, sale: Record, financial_book_id: Optional[int]) -> None:
        if financial_book_id is not None:
            for cost_of_sale in self.store.find_records_by_remote_id(financial_book_id, str(sale.id)):
                batch.register_delete(cost_of_sale)
        details = sale.sale or SaleDetails()
        if sale.checked or details.total_cost is not None or details.purchase_log:
            batch.register_update(
                replace(sale, checked=False, sale=replace(details, total_cost=None, purchase_log=()))
            )

    def _reset_purchase(self, batch: BatchProcessor, purchase: Record) -> None:
        details = purchase.purchase
        if details.parent_id is not None:
            batch.register_delete(purchase)
            return
        restored = replace(
            purchase,
            amount=details.original_quantity,
            checked=False,
            purchase=replace(
                details,
                total_cost=details.good_purchase_cost,
                liquidation_log=(),
                additional_costs=None,
                credit_note=None,
            ),
        )
        if restored != purchase:
            batch.register_update(restored)
