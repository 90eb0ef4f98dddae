"""Additional costs and credit notes found in the financial book."""

import logging
from dataclasses import dataclass
from decimal import Decimal

from fifocogs.database.base import LedgerStore
from fifocogs.domain.entities import Book, CreditNote, Record
from fifocogs.domain.properties import ADDITIONAL_COSTS_CREDITS_QUERY_RANGE
from fifocogs.utils.date_parser import months_before
from fifocogs.utils.query import build_account_query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CostAdjustments:
    """Amounts to merge into a purchase's cost basis."""

    additional_costs: Decimal
    credit_note: CreditNote

    @classmethod
    def none(cls) -> "CostAdjustments":
        return cls(additional_costs=Decimal(0), credit_note=CreditNote.zero())


class CostResolver:
    """Resolves additional costs and credit notes linked to a purchase code."""

    def __init__(
        self,
        store: LedgerStore,
        financial_book: Book,
        lookback_months: int = ADDITIONAL_COSTS_CREDITS_QUERY_RANGE,
    ):
        """Initialize cost resolver.

        Args:
            store: Ledger store
            financial_book: Financial book holding the purchase invoices
            lookback_months: Months before the purchase date to search
        """
        self.store = store
        self.financial_book = financial_book
        self.lookback_months = lookback_months

    def resolve(self, purchase: Record, good_account_name: str) -> CostAdjustments:
        """Aggregate the financial records sharing the purchase's code.

        Records debiting the good account are additional costs, except the
        good purchase itself (its invoice equals the purchase code). Records
        crediting the good account are credit notes.

        Args:
            purchase: Purchase record in the inventory book
            good_account_name: Name of the good account in both books

        Returns:
            Aggregated adjustments, zero when nothing is linked
        """
        details = purchase.purchase
        if details is None or details.purchase_code is None:
            return CostAdjustments.none()

        purchase_code = details.purchase_code
        query = build_account_query(
            good_account_name,
            after_date=months_before(purchase.date, self.lookback_months),
        )

        additional_costs = Decimal(0)
        credit_quantity = Decimal(0)
        credit_amount = Decimal(0)
        for record in self.store.query_records(self.financial_book.id, query):
            invoice = record.invoice
            if not record.posted or invoice is None or invoice.purchase_code != purchase_code:
                continue
            if record.debit_account.name == good_account_name:
                if invoice.purchase_invoice == purchase_code:
                    continue
                additional_costs += record.amount
            elif record.credit_account.name == good_account_name:
                credit_amount += record.amount
                credit_quantity += invoice.quantity or Decimal(0)

        if additional_costs or credit_amount or credit_quantity:
            logger.info(
                "purchase %s (%s): additional costs %s, credit note %s / %s",
                purchase.id,
                purchase_code,
                additional_costs,
                credit_quantity,
                credit_amount,
            )

        return CostAdjustments(
            additional_costs=additional_costs,
            credit_note=CreditNote(quantity=credit_quantity, amount=credit_amount),
        )
