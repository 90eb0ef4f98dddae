"""FIFO allocation of purchase costs to a sale."""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from fifocogs.domain.batch import BatchProcessor
from fifocogs.domain.cost_resolver import CostAdjustments, CostResolver
from fifocogs.domain.entities import (
    Book,
    LiquidationLogEntry,
    PurchaseDetails,
    PurchaseLogEntry,
    Record,
    SaleDetails,
)
from fifocogs.domain.splitter import split_purchase
from fifocogs.utils.amount_parser import is_zero, round_amount

logger = logging.getLogger(__name__)


@dataclass
class Allocation:
    """Outcome of matching one sale against the purchases."""

    sale: Record
    cost: Decimal = field(default_factory=lambda: Decimal(0))
    purchase_log: list[PurchaseLogEntry] = field(default_factory=list)
    remaining_quantity: Decimal = field(default_factory=lambda: Decimal(0))
    purchases_consumed: int = 0
    purchases_split: int = 0
    aborted: bool = False

    @property
    def fully_allocated(self) -> bool:
        return not self.aborted and self.remaining_quantity == 0


class Allocator:
    """Consumes purchases in order to cost one sale at a time.

    Every mutation is staged on the batch processor; the purchase list passed
    to ``allocate`` is updated in place so the next sale sees what is left.
    """

    def __init__(
        self,
        inventory_book: Book,
        batch: BatchProcessor,
        cost_resolver: Optional[CostResolver] = None,
        cost_fraction_digits: Optional[int] = None,
    ):
        """Initialize allocator.

        Args:
            inventory_book: Book holding the sales and purchases
            batch: Batch processor receiving the staged mutations
            cost_resolver: Resolver of additional costs and credit notes. If
                None, purchases are costed as recorded.
            cost_fraction_digits: Precision of the financial book. When set, a
                sale's total cost is rounded to it; unit costs in the logs
                stay unrounded.
        """
        self.inventory_book = inventory_book
        self.batch = batch
        self.cost_resolver = cost_resolver
        self.cost_fraction_digits = cost_fraction_digits

    def allocate(self, sale: Record, purchases: list[Record]) -> Allocation:
        """Allocate purchase costs to a sale in FIFO order.

        Args:
            sale: Unchecked sale record
            purchases: Purchases of the same good, already in FIFO order

        Returns:
            Allocation of the sale. ``aborted`` is set when a locked record
            was found; ``fully_allocated`` is False when the purchases ran out.
        """
        allocation = Allocation(sale=sale)
        if sale.locked:
            self.batch.report_lock(sale)
            allocation.aborted = True
            return allocation

        fraction_digits = self.inventory_book.fraction_digits
        good_account_name = sale.credit_account.name
        sold_quantity = sale.amount

        for index, purchase in enumerate(purchases):
            if is_zero(sold_quantity, fraction_digits):
                break
            if purchase.checked:
                continue
            if purchase.locked:
                self.batch.report_lock(purchase)
                allocation.aborted = True
                return allocation

            logger.info("processing purchase: %s - %s", purchase.id, purchase.description)
            details = purchase.purchase
            if details is None:
                raise ValueError(f"Record {purchase.id} is not a purchase")

            adjustments = CostAdjustments.none()
            if self.cost_resolver is not None and details.original_quantity == purchase.amount:
                # Not consumed by an earlier run: merge costs found since
                adjustments = self.cost_resolver.resolve(purchase, good_account_name)

            credit_note = adjustments.credit_note
            effective_quantity = purchase.amount - credit_note.quantity
            effective_cost = details.total_cost + adjustments.additional_costs - credit_note.amount
            merged = self._merge(details, effective_cost, adjustments)

            if effective_quantity <= 0:
                logger.warning("purchase %s has nothing left after credit notes", purchase.id)
                purchases[index] = replace(purchase, amount=Decimal(0), checked=True, purchase=merged)
                self.batch.register_update(purchases[index])
                continue

            unit_cost = effective_cost / effective_quantity

            if sold_quantity >= effective_quantity:
                entry = self._liquidation_entry(sale, effective_quantity, unit_cost)
                consumed = replace(
                    purchase,
                    amount=effective_quantity,
                    checked=True,
                    purchase=replace(merged, liquidation_log=merged.liquidation_log + (entry,)),
                )
                self.batch.register_update(consumed)
                purchases[index] = consumed

                allocation.cost += effective_cost
                allocation.purchase_log.append(
                    PurchaseLogEntry(str(purchase.id), effective_quantity, unit_cost)
                )
                allocation.purchases_consumed += 1
                sold_quantity -= effective_quantity
            else:
                temporary_id = self.batch.generate_temporary_id()
                entry = self._liquidation_entry(sale, sold_quantity, unit_cost)
                residual, split = split_purchase(
                    replace(purchase, purchase=merged),
                    consumed_quantity=sold_quantity,
                    effective_quantity=effective_quantity,
                    effective_cost=effective_cost,
                    unit_cost=unit_cost,
                    temporary_id=temporary_id,
                    liquidation_entry=entry,
                )
                self.batch.register_update(residual)
                self.batch.register_create(split, temporary_id)
                purchases[index] = residual

                allocation.cost += split.purchase.total_cost
                allocation.purchase_log.append(
                    PurchaseLogEntry(temporary_id, sold_quantity, unit_cost)
                )
                allocation.purchases_split += 1
                sold_quantity = Decimal(0)

        if is_zero(sold_quantity, fraction_digits):
            sold_quantity = Decimal(0)
            if self.cost_fraction_digits is not None:
                allocation.cost = round_amount(allocation.cost, self.cost_fraction_digits)
            allocation.sale = replace(
                sale,
                checked=True,
                sale=replace(
                    sale.sale or SaleDetails(),
                    total_cost=allocation.cost,
                    purchase_log=tuple(allocation.purchase_log),
                ),
            )
            self.batch.register_update(allocation.sale)
        else:
            logger.warning("sale %s: %s left without purchases", sale.id, sold_quantity)

        allocation.remaining_quantity = sold_quantity
        allocation.aborted = self.batch.has_lock_conflict()
        return allocation

    @staticmethod
    def _merge(
        details: PurchaseDetails, effective_cost: Decimal, adjustments: CostAdjustments
    ) -> PurchaseDetails:
        """Record merged adjustments once, so later runs never merge them again."""
        merged = replace(details, total_cost=effective_cost)
        if details.additional_costs is None and adjustments.additional_costs != 0:
            merged = replace(merged, additional_costs=adjustments.additional_costs)
        if details.credit_note is None and not adjustments.credit_note.is_zero:
            merged = replace(merged, credit_note=adjustments.credit_note)
        return merged

    @staticmethod
    def _liquidation_entry(sale: Record, quantity: Decimal, unit_cost: Decimal) -> LiquidationLogEntry:
        return LiquidationLogEntry(
            sale_id=str(sale.id),
            date=sale.date,
            quantity=quantity,
            unit_cost=unit_cost,
        )
