"""Splitting of partially consumed purchase records."""

from dataclasses import replace
from decimal import Decimal

from fifocogs.domain.entities import LiquidationLogEntry, PurchaseDetails, Record


def split_purchase(
    purchase: Record,
    consumed_quantity: Decimal,
    effective_quantity: Decimal,
    effective_cost: Decimal,
    unit_cost: Decimal,
    temporary_id: str,
    liquidation_entry: LiquidationLogEntry,
) -> tuple[Record, Record]:
    """Split a purchase into its unconsumed residual and a consumed record.

    The consumed cost is ``consumed_quantity * unit_cost`` and the residual
    cost is derived by subtraction, so both always add up to
    ``effective_cost`` exactly.

    Args:
        purchase: Purchase record, with any merged adjustments already applied
        consumed_quantity: Quantity taken by the sale, lower than effective_quantity
        effective_quantity: Purchase quantity after credit notes
        effective_cost: Purchase cost after additional costs and credit notes
        unit_cost: effective_cost / effective_quantity, unrounded
        temporary_id: Placeholder ID linking the new record within a batch
        liquidation_entry: Log entry of the consuming sale

    Returns:
        Tuple of (residual update of the original, new consumed record)
    """
    details = purchase.purchase
    if details is None:
        raise ValueError(f"Record {purchase.id} is not a purchase")
    if not 0 < consumed_quantity < effective_quantity:
        raise ValueError(
            f"Cannot split {consumed_quantity} out of a purchase of {effective_quantity}"
        )

    consumed_cost = consumed_quantity * unit_cost
    residual_cost = effective_cost - consumed_cost

    residual = replace(
        purchase,
        amount=effective_quantity - consumed_quantity,
        checked=False,
        purchase=replace(details, total_cost=residual_cost),
    )

    consumed = Record(
        id=None,
        book_id=purchase.book_id,
        date=purchase.date,
        amount=consumed_quantity,
        credit_account=purchase.credit_account,
        debit_account=purchase.debit_account,
        description=purchase.description,
        checked=True,
        remote_ids=(temporary_id,),
        order=purchase.order,
        exc_code=purchase.exc_code,
        purchase=PurchaseDetails(
            original_quantity=consumed_quantity,
            total_cost=consumed_cost,
            good_purchase_cost=consumed_cost,
            purchase_code=details.purchase_code,
            purchase_invoice=details.purchase_invoice,
            liquidation_log=(liquidation_entry,),
            parent_id=str(purchase.id),
        ),
    )
    return residual, consumed
