"""Domain model entities for fifocogs.

These are pure data classes representing ledger concepts, independent of the
store behind them. Records carry typed detail blocks instead of the raw
property bags the store persists; the mapping lives in the database layer.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional

from fifocogs.domain.properties import (
    EXC_CODE_PROP,
    INVENTORY_BOOK_PROP,
)


class AccountType(str, Enum):
    """Account classification."""

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    INCOMING = "INCOMING"
    OUTGOING = "OUTGOING"

    @property
    def is_permanent(self) -> bool:
        return self in (AccountType.ASSET, AccountType.LIABILITY)


@dataclass(frozen=True)
class Book:
    """Ledger book domain entity."""

    id: int
    name: str
    fraction_digits: int = 2
    date_pattern: str = "yyyy-MM-dd"
    collection: Optional[str] = None
    properties: Mapping[str, str] = field(default_factory=dict)
    pending_tasks: int = 0

    @property
    def is_inventory(self) -> bool:
        return bool(self.properties.get(INVENTORY_BOOK_PROP))

    @property
    def exc_code(self) -> Optional[str]:
        return self.properties.get(EXC_CODE_PROP) or None


@dataclass(frozen=True)
class Group:
    """Account group domain entity."""

    id: int
    book_id: int
    name: str
    parent_id: Optional[int] = None
    properties: Mapping[str, str] = field(default_factory=dict)
    hidden: bool = False


@dataclass(frozen=True)
class Account:
    """Ledger account domain entity."""

    id: int
    book_id: int
    name: str
    type: AccountType
    properties: Mapping[str, str] = field(default_factory=dict)
    groups: tuple[Group, ...] = ()
    archived: bool = False

    def get_property(self, key: str) -> Optional[str]:
        value = self.properties.get(key)
        if value is None or value.strip() == "":
            return None
        return value


@dataclass(frozen=True)
class AccountRef:
    """Account side of a record."""

    id: Optional[int]
    name: str
    type: AccountType


@dataclass(frozen=True)
class CreditNote:
    """Reduction of a purchase's quantity and cost basis."""

    quantity: Decimal
    amount: Decimal

    @classmethod
    def zero(cls) -> "CreditNote":
        return cls(quantity=Decimal(0), amount=Decimal(0))

    @property
    def is_zero(self) -> bool:
        return self.quantity == 0 and self.amount == 0


@dataclass(frozen=True)
class LiquidationLogEntry:
    """Sale that consumed (part of) a purchase."""

    sale_id: str
    date: date
    quantity: Decimal
    unit_cost: Decimal


@dataclass(frozen=True)
class PurchaseLogEntry:
    """Purchase consumed by a sale."""

    purchase_id: str
    quantity: Decimal
    unit_cost: Decimal


@dataclass(frozen=True)
class PurchaseDetails:
    """Properties of a purchase record in the inventory book.

    ``original_quantity`` and ``good_purchase_cost`` snapshot the record as
    created; ``additional_costs`` and ``credit_note`` are only set once merged.
    """

    original_quantity: Decimal
    total_cost: Decimal
    good_purchase_cost: Decimal
    purchase_code: Optional[str] = None
    purchase_invoice: Optional[str] = None
    liquidation_log: tuple[LiquidationLogEntry, ...] = ()
    additional_costs: Optional[Decimal] = None
    credit_note: Optional[CreditNote] = None
    parent_id: Optional[str] = None


@dataclass(frozen=True)
class SaleDetails:
    """Properties of a sale record in the inventory book."""

    total_cost: Optional[Decimal] = None
    purchase_log: tuple[PurchaseLogEntry, ...] = ()
    sale_invoice: Optional[str] = None
    sale_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class CostOfSaleDetails:
    """Properties of a cost-of-sale record in a financial book."""

    quantity_sold: Decimal
    sale_invoice: Optional[str] = None


@dataclass(frozen=True)
class InvoiceDetails:
    """Properties of a financial record about goods (purchases, costs, credits)."""

    good: Optional[str] = None
    quantity: Optional[Decimal] = None
    purchase_code: Optional[str] = None
    purchase_invoice: Optional[str] = None
    sale_invoice: Optional[str] = None


@dataclass(frozen=True)
class Record:
    """Ledger record domain entity.

    ``id`` is None until the store persists the record. At most one detail
    block is set, depending on the record kind.
    """

    id: Optional[int]
    book_id: int
    date: date
    amount: Decimal
    credit_account: AccountRef
    debit_account: AccountRef
    description: str = ""
    checked: bool = False
    locked: bool = False
    posted: bool = True
    remote_ids: tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    order: Optional[int] = None
    exc_code: Optional[str] = None
    purchase: Optional[PurchaseDetails] = None
    sale: Optional[SaleDetails] = None
    cost_of_sale: Optional[CostOfSaleDetails] = None
    invoice: Optional[InvoiceDetails] = None

    @property
    def is_sale(self) -> bool:
        return self.posted and self.debit_account.type == AccountType.OUTGOING

    @property
    def is_purchase(self) -> bool:
        return self.posted and self.credit_account.type == AccountType.INCOMING

    @property
    def good_account(self) -> Optional[AccountRef]:
        """Inventory (asset) account moved by a sale or purchase."""
        if self.is_sale:
            return self.credit_account
        if self.is_purchase:
            return self.debit_account
        return None
