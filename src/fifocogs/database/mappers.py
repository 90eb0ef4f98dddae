"""Mapper functions to convert between domain models and SQLAlchemy models.

Records are persisted with a string-keyed property bag, as the remote ledgers
expose them. This layer turns the bag into the typed detail blocks of the
domain and back, so the engine never touches raw property keys.
"""

import json
from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from fifocogs.domain import entities as domain
from fifocogs.domain.properties import (
    ADD_COSTS_PROP,
    CREDIT_NOTE_PROP,
    EXC_CODE_PROP,
    GOOD_PROP,
    GOOD_PURCHASE_COST_PROP,
    LIQUIDATION_LOG_PROP,
    ORDER_PROP,
    ORIGINAL_QUANTITY_PROP,
    PARENT_ID_PROP,
    PURCHASE_CODE_PROP,
    PURCHASE_INVOICE_PROP,
    PURCHASE_LOG_PROP,
    QUANTITY_PROP,
    QUANTITY_SOLD_PROP,
    SALE_AMOUNT_PROP,
    SALE_INVOICE_PROP,
    TOTAL_COST_PROP,
)
from fifocogs.database.models import (
    Account as ORMAccount,
    Book as ORMBook,
    Group as ORMGroup,
    Record as ORMRecord,
)

_INVOICE_KEYS = (GOOD_PROP, QUANTITY_PROP, PURCHASE_CODE_PROP, PURCHASE_INVOICE_PROP, SALE_INVOICE_PROP)


def book_to_domain(orm_book: ORMBook) -> domain.Book:
    """Convert SQLAlchemy Book model to domain Book entity."""
    return domain.Book(
        id=orm_book.id,
        name=orm_book.name,
        fraction_digits=orm_book.fraction_digits,
        date_pattern=orm_book.date_pattern,
        collection=orm_book.collection,
        properties=dict(orm_book.properties or {}),
        pending_tasks=orm_book.pending_tasks,
    )


def group_to_domain(orm_group: ORMGroup) -> domain.Group:
    """Convert SQLAlchemy Group model to domain Group entity."""
    return domain.Group(
        id=orm_group.id,
        book_id=orm_group.book_id,
        name=orm_group.name,
        parent_id=orm_group.parent_id,
        properties=dict(orm_group.properties or {}),
        hidden=orm_group.hidden,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        book_id=orm_account.book_id,
        name=orm_account.name,
        type=domain.AccountType(orm_account.type),
        properties=dict(orm_account.properties or {}),
        groups=tuple(group_to_domain(group) for group in orm_account.groups),
        archived=orm_account.archived,
    )


def account_ref_to_domain(orm_account: ORMAccount) -> domain.AccountRef:
    """Convert SQLAlchemy Account model to the account side of a record."""
    return domain.AccountRef(
        id=orm_account.id,
        name=orm_account.name,
        type=domain.AccountType(orm_account.type),
    )


def record_to_domain(orm_record: ORMRecord) -> domain.Record:
    """Convert SQLAlchemy Record model to domain Record entity."""
    properties: dict[str, str] = dict(orm_record.properties or {})
    record = domain.Record(
        id=orm_record.id,
        book_id=orm_record.book_id,
        date=orm_record.date,
        amount=orm_record.amount,
        credit_account=account_ref_to_domain(orm_record.credit_account),
        debit_account=account_ref_to_domain(orm_record.debit_account),
        description=orm_record.description or "",
        checked=orm_record.checked,
        locked=orm_record.locked,
        posted=orm_record.posted,
        remote_ids=tuple(remote.remote_id for remote in orm_record.remote_ids),
        created_at=orm_record.created_at,
        order=_parse_order(properties.get(ORDER_PROP)),
        exc_code=_text(properties.get(EXC_CODE_PROP)),
    )

    # Cost-of-sale records also debit an OUTGOING account, so test them first
    if _text(properties.get(QUANTITY_SOLD_PROP)) is not None:
        return _with_details(
            record,
            cost_of_sale=domain.CostOfSaleDetails(
                quantity_sold=Decimal(properties[QUANTITY_SOLD_PROP]),
                sale_invoice=_text(properties.get(SALE_INVOICE_PROP)),
            ),
        )
    if record.is_purchase:
        return _with_details(record, purchase=purchase_details_from_properties(properties, record.amount))
    if record.is_sale:
        return _with_details(record, sale=sale_details_from_properties(properties))
    if any(_text(properties.get(key)) is not None for key in _INVOICE_KEYS):
        return _with_details(
            record,
            invoice=domain.InvoiceDetails(
                good=_text(properties.get(GOOD_PROP)),
                quantity=_decimal(properties.get(QUANTITY_PROP)),
                purchase_code=_text(properties.get(PURCHASE_CODE_PROP)),
                purchase_invoice=_text(properties.get(PURCHASE_INVOICE_PROP)),
                sale_invoice=_text(properties.get(SALE_INVOICE_PROP)),
            ),
        )
    return record


def purchase_details_from_properties(
    properties: Mapping[str, str], amount: Decimal
) -> domain.PurchaseDetails:
    """Build purchase details, defaulting missing snapshots to the record amount."""
    total_cost = _decimal(properties.get(TOTAL_COST_PROP)) or Decimal(0)
    credit_note = None
    if _text(properties.get(CREDIT_NOTE_PROP)) is not None:
        raw = json.loads(properties[CREDIT_NOTE_PROP])
        credit_note = domain.CreditNote(
            quantity=Decimal(str(raw.get("quantity", 0))),
            amount=Decimal(str(raw.get("amount", 0))),
        )
    return domain.PurchaseDetails(
        original_quantity=_decimal(properties.get(ORIGINAL_QUANTITY_PROP)) or amount,
        total_cost=total_cost,
        good_purchase_cost=_decimal(properties.get(GOOD_PURCHASE_COST_PROP)) or total_cost,
        purchase_code=_text(properties.get(PURCHASE_CODE_PROP)),
        purchase_invoice=_text(properties.get(PURCHASE_INVOICE_PROP)),
        liquidation_log=tuple(
            domain.LiquidationLogEntry(
                sale_id=str(entry["id"]),
                date=date.fromisoformat(entry["dt"]),
                quantity=Decimal(entry["qt"]),
                unit_cost=Decimal(entry["uc"]),
            )
            for entry in _json_list(properties.get(LIQUIDATION_LOG_PROP))
        ),
        additional_costs=_decimal(properties.get(ADD_COSTS_PROP)),
        credit_note=credit_note,
        parent_id=_text(properties.get(PARENT_ID_PROP)),
    )


def sale_details_from_properties(properties: Mapping[str, str]) -> domain.SaleDetails:
    """Build sale details from a property bag."""
    return domain.SaleDetails(
        total_cost=_decimal(properties.get(TOTAL_COST_PROP)),
        purchase_log=tuple(
            domain.PurchaseLogEntry(
                purchase_id=str(entry["id"]),
                quantity=Decimal(entry["qt"]),
                unit_cost=Decimal(entry["uc"]),
            )
            for entry in _json_list(properties.get(PURCHASE_LOG_PROP))
        ),
        sale_invoice=_text(properties.get(SALE_INVOICE_PROP)),
        sale_amount=_decimal(properties.get(SALE_AMOUNT_PROP)),
    )


def record_to_properties(record: domain.Record) -> dict[str, str]:
    """Flatten a domain record's detail block into a property bag."""
    properties: dict[str, Any] = {
        ORDER_PROP: None if record.order is None else str(record.order),
        EXC_CODE_PROP: record.exc_code,
    }

    if record.purchase is not None:
        details = record.purchase
        properties.update({
            ORIGINAL_QUANTITY_PROP: str(details.original_quantity),
            TOTAL_COST_PROP: str(details.total_cost),
            GOOD_PURCHASE_COST_PROP: str(details.good_purchase_cost),
            PURCHASE_CODE_PROP: details.purchase_code,
            PURCHASE_INVOICE_PROP: details.purchase_invoice,
            PARENT_ID_PROP: details.parent_id,
            ADD_COSTS_PROP: None if details.additional_costs is None else str(details.additional_costs),
        })
        if details.credit_note is not None:
            properties[CREDIT_NOTE_PROP] = json.dumps({
                "quantity": str(details.credit_note.quantity),
                "amount": str(details.credit_note.amount),
            })
        if details.liquidation_log:
            properties[LIQUIDATION_LOG_PROP] = json.dumps([
                {
                    "id": entry.sale_id,
                    "dt": entry.date.isoformat(),
                    "qt": str(entry.quantity),
                    "uc": str(entry.unit_cost),
                }
                for entry in details.liquidation_log
            ])

    if record.sale is not None:
        details = record.sale
        properties.update({
            TOTAL_COST_PROP: None if details.total_cost is None else str(details.total_cost),
            SALE_INVOICE_PROP: details.sale_invoice,
            SALE_AMOUNT_PROP: None if details.sale_amount is None else str(details.sale_amount),
        })
        if details.purchase_log:
            properties[PURCHASE_LOG_PROP] = json.dumps([
                {
                    "id": entry.purchase_id,
                    "qt": str(entry.quantity),
                    "uc": str(entry.unit_cost),
                }
                for entry in details.purchase_log
            ])

    if record.cost_of_sale is not None:
        properties.update({
            QUANTITY_SOLD_PROP: str(record.cost_of_sale.quantity_sold),
            SALE_INVOICE_PROP: record.cost_of_sale.sale_invoice,
        })

    if record.invoice is not None:
        details = record.invoice
        properties.update({
            GOOD_PROP: details.good,
            QUANTITY_PROP: None if details.quantity is None else str(details.quantity),
            PURCHASE_CODE_PROP: details.purchase_code,
            PURCHASE_INVOICE_PROP: details.purchase_invoice,
            SALE_INVOICE_PROP: details.sale_invoice,
        })

    return {key: value for key, value in properties.items() if value is not None}


def _with_details(record: domain.Record, **details: Any) -> domain.Record:
    return replace(record, **details)


def _text(value: Optional[str]) -> Optional[str]:
    if value is None or str(value).strip() == "":
        return None
    return str(value)


def _decimal(value: Optional[str]) -> Optional[Decimal]:
    text = _text(value)
    if text is None:
        return None
    return Decimal(text)


def _parse_order(value: Optional[str]) -> Optional[int]:
    text = _text(value)
    if text is None:
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _json_list(value: Optional[str]) -> list[dict[str, Any]]:
    text = _text(value)
    if text is None:
        return []
    loaded = json.loads(text)
    if isinstance(loaded, dict):
        return [loaded]
    return list(loaded)
