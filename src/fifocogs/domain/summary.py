"""Outcome reporting of a cost of sales calculation run."""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class Outcome(str, Enum):
    """Terminal state of a calculation run."""

    OK = "ok"
    IN_PROGRESS = "in-progress"
    QUANTITY_ERROR = "quantity-error"
    LOCK_ERROR = "lock-error"
    REBUILD = "rebuild-required"
    SKIPPED = "skipped"

    @property
    def is_error(self) -> bool:
        return self in (Outcome.QUANTITY_ERROR, Outcome.LOCK_ERROR)


_MESSAGES = {
    Outcome.OK: "Nothing to calculate",
    Outcome.IN_PROGRESS: "Calculating cost of sales",
    Outcome.QUANTITY_ERROR: "Cannot proceed: sold quantity is greater than purchased quantity",
    Outcome.LOCK_ERROR: "Cannot proceed: records are locked by another process, try again later",
    Outcome.REBUILD: "Rebuilding cost of sales: history changed after the last calculation",
}


@dataclass
class Summary:
    """Result of one run for one inventory account.

    A summary starts as ``OK`` and moves to exactly one terminal outcome.
    """

    account_id: int
    account_name: Optional[str] = None
    outcome: Outcome = Outcome.OK
    message: str = _MESSAGES[Outcome.OK]
    sales_processed: int = 0
    purchases_consumed: int = 0
    purchases_split: int = 0
    records_created: int = 0
    records_updated: int = 0
    total_cost: Decimal = field(default_factory=lambda: Decimal(0))
    _finished: bool = field(default=False, repr=False, compare=False)

    def calculating_async(self) -> "Summary":
        return self._finish(Outcome.IN_PROGRESS)

    def quantity_error(self, message: Optional[str] = None) -> "Summary":
        return self._finish(Outcome.QUANTITY_ERROR, message)

    def lock_error(self) -> "Summary":
        return self._finish(Outcome.LOCK_ERROR)

    def rebuild(self) -> "Summary":
        return self._finish(Outcome.REBUILD)

    def skipped(self, reason: str) -> "Summary":
        return self._finish(Outcome.SKIPPED, reason)

    def as_dict(self) -> dict[str, Any]:
        """Render the summary for callers (JSON friendly)."""
        return {
            "accountId": self.account_id,
            "accountName": self.account_name,
            "outcome": self.outcome.value,
            "result": self.message,
            "error": self.outcome.is_error,
            "salesProcessed": self.sales_processed,
            "purchasesConsumed": self.purchases_consumed,
            "purchasesSplit": self.purchases_split,
            "recordsCreated": self.records_created,
            "recordsUpdated": self.records_updated,
            "totalCost": str(self.total_cost),
        }

    def _finish(self, outcome: Outcome, message: Optional[str] = None) -> "Summary":
        if self._finished:
            raise ValueError(
                f"Summary for account {self.account_id} already finished as '{self.outcome.value}'"
            )
        self._finished = True
        self.outcome = outcome
        self.message = message or _MESSAGES.get(outcome, outcome.value)
        return self
