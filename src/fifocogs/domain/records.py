"""Record intake domain service.

Purchases and sales are recorded in the inventory book with quantities as
amounts. Additional costs and credit notes are money records of a financial
book, linked to their purchase through the purchase code.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from fifocogs.database.base import LedgerStore
from fifocogs.domain.entities import (
    Account,
    AccountRef,
    AccountType,
    Book,
    InvoiceDetails,
    PurchaseDetails,
    Record,
    SaleDetails,
)
from fifocogs.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    record_not_found,
)
from fifocogs.domain.ledger import AccountService, BookService, exchange_code
from fifocogs.domain.properties import GOOD_BUY_ACCOUNT_NAME, GOOD_SELL_ACCOUNT_NAME
from fifocogs.domain.rebuild import RebuildFlags
from fifocogs.utils.query import build_account_query

logger = logging.getLogger(__name__)


def _ref(account: Account) -> AccountRef:
    return AccountRef(id=account.id, name=account.name, type=account.type)


class RecordService:
    """Service for recording goods movements and their costs."""

    def __init__(self, store: LedgerStore):
        """Initialize record service.

        Args:
            store: Ledger store
        """
        self.store = store
        self.books = BookService(store)
        self.accounts = AccountService(store)
        self.flags = RebuildFlags(store)

    def record_purchase(
        self,
        book_id: int,
        good: str,
        quantity: Decimal,
        cost: Decimal,
        record_date: date,
        purchase_code: Optional[str] = None,
        purchase_invoice: Optional[str] = None,
        description: str = "",
        order: Optional[int] = None,
    ) -> Record:
        """Record a purchase of a good in the inventory book.

        Args:
            book_id: Inventory book ID
            good: Good account name, created as an asset if missing
            quantity: Purchased quantity
            cost: Purchase cost, before additional costs and credit notes
            record_date: Purchase date
            purchase_code: Code linking additional costs and credit notes
            purchase_invoice: Invoice of the purchase
            description: Optional description
            order: Optional ordering hint among same-day records

        Returns:
            Created record

        Raises:
            ValidationError: If the book is not an inventory book or the
                quantity or cost are invalid
        """
        book = self._inventory_book(book_id)
        if quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {quantity}")
        if cost < 0:
            raise ValidationError(f"Cost must not be negative, got {cost}")

        good_account = self.accounts.get_or_create_account(book.id, good, AccountType.ASSET)
        buy_account = self.accounts.get_or_create_account(book.id, GOOD_BUY_ACCOUNT_NAME, AccountType.INCOMING)

        record = self.store.create_record(
            Record(
                id=None,
                book_id=book.id,
                date=record_date,
                amount=quantity,
                credit_account=_ref(buy_account),
                debit_account=_ref(good_account),
                description=description,
                order=order,
                exc_code=exchange_code(good_account),
                purchase=PurchaseDetails(
                    original_quantity=quantity,
                    total_cost=cost,
                    good_purchase_cost=cost,
                    purchase_code=purchase_code,
                    purchase_invoice=purchase_invoice,
                ),
            )
        )
        self._flag_if_backdated(good_account, record_date)
        return record

    def record_sale(
        self,
        book_id: int,
        good: str,
        quantity: Decimal,
        record_date: date,
        sale_invoice: Optional[str] = None,
        sale_amount: Optional[Decimal] = None,
        description: str = "",
        order: Optional[int] = None,
    ) -> Record:
        """Record a sale of a good in the inventory book.

        Args:
            book_id: Inventory book ID
            good: Good account name
            quantity: Sold quantity
            record_date: Sale date
            sale_invoice: Invoice of the sale
            sale_amount: Sale price, kept for reference
            description: Optional description
            order: Optional ordering hint among same-day records

        Returns:
            Created record

        Raises:
            NotFoundError: If the good account does not exist
            ValidationError: If the book is not an inventory book or the
                quantity is invalid
        """
        book = self._inventory_book(book_id)
        if quantity <= 0:
            raise ValidationError(f"Quantity must be positive, got {quantity}")

        good_account = self.accounts.get_account(book.id, good)
        sell_account = self.accounts.get_or_create_account(book.id, GOOD_SELL_ACCOUNT_NAME, AccountType.OUTGOING)

        record = self.store.create_record(
            Record(
                id=None,
                book_id=book.id,
                date=record_date,
                amount=quantity,
                credit_account=_ref(good_account),
                debit_account=_ref(sell_account),
                description=description,
                order=order,
                exc_code=exchange_code(good_account),
                sale=SaleDetails(sale_invoice=sale_invoice, sale_amount=sale_amount),
            )
        )
        self._flag_if_backdated(good_account, record_date)
        return record

    def record_additional_cost(
        self,
        book_id: int,
        good: str,
        supplier: str,
        amount: Decimal,
        record_date: date,
        purchase_code: str,
        purchase_invoice: Optional[str] = None,
        description: str = "",
    ) -> Record:
        """Record a cost adding to a purchase's cost basis (freight, duties).

        The record moves ``amount`` from the supplier into the good account
        of a financial book.
        """
        book = self._financial_book(book_id)
        if amount <= 0:
            raise ValidationError(f"Amount must be positive, got {amount}")
        if purchase_invoice is not None and purchase_invoice == purchase_code:
            raise ValidationError("An additional cost cannot use the purchase code as its invoice")

        good_account = self.accounts.get_or_create_account(book.id, good, AccountType.ASSET)
        supplier_account = self.accounts.get_or_create_account(book.id, supplier, AccountType.LIABILITY)
        record = self.store.create_record(
            Record(
                id=None,
                book_id=book.id,
                date=record_date,
                amount=amount,
                credit_account=_ref(supplier_account),
                debit_account=_ref(good_account),
                description=description,
                invoice=InvoiceDetails(
                    good=good,
                    purchase_code=purchase_code,
                    purchase_invoice=purchase_invoice,
                ),
            )
        )
        self._flag_inventory_account(book, good, record_date)
        return record

    def record_credit_note(
        self,
        book_id: int,
        good: str,
        supplier: str,
        amount: Decimal,
        record_date: date,
        purchase_code: str,
        quantity: Optional[Decimal] = None,
        description: str = "",
    ) -> Record:
        """Record a credit note reducing a purchase's cost and, optionally,
        its quantity.

        The record moves ``amount`` from the good account of a financial book
        back to the supplier.
        """
        book = self._financial_book(book_id)
        if amount <= 0:
            raise ValidationError(f"Amount must be positive, got {amount}")
        if quantity is not None and quantity < 0:
            raise ValidationError(f"Quantity must not be negative, got {quantity}")

        good_account = self.accounts.get_or_create_account(book.id, good, AccountType.ASSET)
        supplier_account = self.accounts.get_or_create_account(book.id, supplier, AccountType.LIABILITY)
        record = self.store.create_record(
            Record(
                id=None,
                book_id=book.id,
                date=record_date,
                amount=amount,
                credit_account=_ref(good_account),
                debit_account=_ref(supplier_account),
                description=description,
                invoice=InvoiceDetails(
                    good=good,
                    quantity=quantity,
                    purchase_code=purchase_code,
                ),
            )
        )
        self._flag_inventory_account(book, good, record_date)
        return record

    def list_records(
        self,
        book_id: int,
        account: str,
        after: Optional[date] = None,
        before: Optional[date] = None,
    ) -> list[Record]:
        """List the records of an account, oldest first."""
        book = self.books.get_book(book_id)
        self.accounts.get_account(book.id, account)
        query = build_account_query(account, before_date=before, after_date=after)
        return self.store.query_records(book.id, query)

    def delete_record(self, book_id: int, record_id: int) -> list[Record]:
        """Move a record to the trash along with the records derived from it.

        Deleting a purchase also deletes the records split from it and flags
        its account for rebuild. Deleting a sale deletes its cost of sale in
        the financial book.

        Returns:
            Every trashed record, the requested one first

        Raises:
            NotFoundError: If the record does not exist
            ConflictError: If a record to delete is locked
        """
        record = self.store.get_record(book_id, record_id)
        if record is None:
            raise NotFoundError(record_not_found(record_id))

        to_trash = [record]
        good_account = None
        if record.is_purchase:
            good_account = self.store.get_account_by_name(book_id, record.debit_account.name)
            if record.purchase.parent_id is None:
                to_trash.extend(self._split_children(record))
        elif record.is_sale:
            good_account = self.store.get_account_by_name(book_id, record.credit_account.name)
            financial_book = self._financial_book_of(book_id, good_account)
            if financial_book is not None:
                to_trash.extend(self.store.find_records_by_remote_id(financial_book.id, str(record.id)))

        for trashed in to_trash:
            if trashed.locked:
                raise ConflictError(f"Record {trashed.id} is locked by another process")
        for trashed in to_trash:
            self.store.trash_record(trashed.book_id, trashed.id)
        logger.info("trashed %d records deleting record %s", len(to_trash), record_id)

        if good_account is not None and (record.is_purchase or record.checked):
            self.flags.flag(good_account)
        return to_trash

    def _split_children(self, purchase: Record) -> list[Record]:
        parent_id = str(purchase.id)
        return [
            record
            for record in self.store.query_records(
                purchase.book_id, build_account_query(purchase.debit_account.name)
            )
            if record.purchase is not None and record.purchase.parent_id == parent_id
        ]

    def _financial_book_of(self, book_id: int, good_account: Optional[Account]) -> Optional[Book]:
        if good_account is None:
            return None
        inventory_book = self.books.get_book(book_id)
        return self.books.find_financial_book(inventory_book, good_account)

    def _flag_inventory_account(self, financial_book: Book, good: str, record_date: date) -> None:
        """Flag the inventory account of a good when a cost arrives late."""
        if financial_book.collection is None:
            return
        for book in self.store.list_books(financial_book.collection):
            if not book.is_inventory:
                continue
            good_account = self.store.get_account_by_name(book.id, good)
            if good_account is not None:
                self._flag_if_backdated(good_account, record_date)

    def _flag_if_backdated(self, account: Account, record_date: date) -> None:
        if self.flags.flag_if_backdated(account, record_date):
            logger.warning(
                "record dated %s is before the last calculation of %s, flagging for rebuild",
                record_date.isoformat(),
                account.name,
            )

    def _inventory_book(self, book_id: int) -> Book:
        book = self.books.get_book(book_id)
        if not book.is_inventory:
            raise ValidationError(f"Book '{book.name}' is not an inventory book")
        return book

    def _financial_book(self, book_id: int) -> Book:
        book = self.books.get_book(book_id)
        if book.is_inventory:
            raise ValidationError(f"Book '{book.name}' is not a financial book")
        return book
