"""Cost of sales calculation service."""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Union

from fifocogs.database.base import LedgerStore
from fifocogs.domain.allocator import Allocation, Allocator
from fifocogs.domain.batch import BatchProcessor
from fifocogs.domain.cost_resolver import CostResolver
from fifocogs.domain.entities import (
    Account,
    AccountRef,
    AccountType,
    Book,
    CostOfSaleDetails,
    Record,
)
from fifocogs.domain.errors import (
    NotFoundError,
    PendingTasksError,
    ValidationError,
    account_not_found,
    pending_tasks,
)
from fifocogs.domain.ledger import BookService
from fifocogs.domain.ordering import sort_fifo
from fifocogs.domain.properties import (
    ADDITIONAL_COSTS_CREDITS_QUERY_RANGE,
    COGS_HASHTAG,
    COST_OF_SALES_ACCOUNT_NAME,
)
from fifocogs.domain.rebuild import (
    LocalRebuildQueue,
    RebuildFlags,
    RebuildQueue,
    RebuildState,
    RebuildTask,
    rebuild_state,
)
from fifocogs.domain.summary import Summary
from fifocogs.utils.amount_parser import round_amount
from fifocogs.utils.date_parser import parse_book_date
from fifocogs.utils.query import build_account_query

logger = logging.getLogger(__name__)


class CostOfSalesService:
    """Service computing FIFO cost of sales for inventory accounts."""

    def __init__(
        self,
        store: LedgerStore,
        rebuild_queue: Optional[RebuildQueue] = None,
        lookback_months: int = ADDITIONAL_COSTS_CREDITS_QUERY_RANGE,
    ):
        """Initialize cost of sales service.

        Args:
            store: Ledger store
            rebuild_queue: Queue receiving rebuilds of flagged accounts.
                Defaults to an in-process queue.
            lookback_months: Months before a purchase to search for its
                additional costs and credit notes
        """
        self.store = store
        self.rebuild_queue = rebuild_queue if rebuild_queue is not None else LocalRebuildQueue()
        self.lookback_months = lookback_months
        self.flags = RebuildFlags(store)
        self.books = BookService(store)

    def validate(self, book_id: int) -> None:
        """Check that a calculation may start for a book.

        Raises:
            NotFoundError: If the book or its inventory book does not exist
            PendingTasksError: If the inventory book has pending tasks
        """
        inventory_book = self.get_inventory_book(book_id)
        if inventory_book.pending_tasks > 0:
            raise PendingTasksError(pending_tasks())

    def get_inventory_book(self, book_id: int) -> Book:
        return self.books.get_inventory_book(book_id)

    def find_financial_book(self, inventory_book: Book, account: Account) -> Optional[Book]:
        return self.books.find_financial_book(inventory_book, account)

    def calculate_cost_of_sales(
        self,
        book_id: int,
        account: Union[int, str],
        to_date: Union[date, str, None] = None,
        ignore_rebuild_flag: bool = False,
    ) -> Summary:
        """Calculate cost of sales for one good account.

        Args:
            book_id: Inventory book ID (or any book of its collection)
            account: Good account ID or name
            to_date: Last sale date included. Strings are read with the book's
                date pattern; defaults to today.
            ignore_rebuild_flag: Calculate even when the account is flagged,
                used by the rebuild itself

        Returns:
            Summary with the run outcome

        Raises:
            NotFoundError: If the book or account does not exist
            ValidationError: If the account is not a good account
            RemoteError: If a store call fails
        """
        inventory_book = self.get_inventory_book(book_id)
        good_account = self._get_account(inventory_book.id, account)
        summary = Summary(account_id=good_account.id, account_name=good_account.name)

        if not ignore_rebuild_flag and rebuild_state(good_account) is RebuildState.FLAGGED:
            logger.info("account %s needs rebuild", good_account.name)
            self.rebuild_queue.enqueue(RebuildTask(inventory_book.id, good_account.id))
            return summary.rebuild()

        financial_book = self.find_financial_book(inventory_book, good_account)
        if financial_book is None:
            reason = f"Cannot proceed: financial book not found for good account {good_account.name}"
            logger.warning("%s", reason)
            return summary.skipped(reason)

        last_date = self._resolve_to_date(inventory_book, to_date)
        query = build_account_query(good_account.name, before_date=last_date + timedelta(days=1))

        sales: list[Record] = []
        purchases: list[Record] = []
        total_sold = Decimal(0)
        total_purchased = Decimal(0)
        for record in self.store.query_records(inventory_book.id, query):
            if record.checked:
                continue
            if record.is_sale:
                sales.append(record)
                total_sold += record.amount
            elif record.is_purchase:
                purchases.append(record)
                total_purchased += record.amount

        if total_sold == 0:
            return summary
        if total_sold > total_purchased:
            logger.warning(
                "account %s: sold %s but only %s purchased", good_account.name, total_sold, total_purchased
            )
            return summary.quantity_error()

        sales = sort_fifo(sales)
        purchases = sort_fifo(purchases)

        financial_good, cost_of_sales = self._ensure_financial_accounts(financial_book, good_account)
        batch = BatchProcessor(self.store)
        allocator = Allocator(
            inventory_book,
            batch,
            CostResolver(self.store, financial_book, self.lookback_months),
            cost_fraction_digits=financial_book.fraction_digits,
        )

        for sale in sales:
            logger.info("processing sale: %s - %s", sale.id, sale.description)
            allocation = allocator.allocate(sale, purchases)
            if allocation.aborted:
                return summary.lock_error()
            if not allocation.fully_allocated:
                return summary.quantity_error()

            summary.sales_processed += 1
            summary.purchases_consumed += allocation.purchases_consumed
            summary.purchases_split += allocation.purchases_split
            summary.total_cost += allocation.cost
            self._stage_cost_of_sale(batch, financial_book, allocation, financial_good, cost_of_sales)

        if batch.has_lock_conflict():
            return summary.lock_error()

        result = batch.commit()
        summary.records_created = len(result.created)
        summary.records_updated = len(result.updated)

        self.flags.store_calculation_date(good_account, max(sale.date for sale in sales))
        logger.info(
            "account %s: %d sales costed at %s", good_account.name, summary.sales_processed, summary.total_cost
        )
        return summary.calculating_async()

    def _get_account(self, book_id: int, account: Union[int, str]) -> Account:
        if isinstance(account, int):
            found = self.store.get_account(book_id, account)
        else:
            found = self.store.get_account_by_name(book_id, account)
        if found is None:
            raise NotFoundError(account_not_found(account))
        if not found.type.is_permanent:
            raise ValidationError(f"Account '{found.name}' is not a good account")
        return found

    @staticmethod
    def _resolve_to_date(book: Book, to_date: Union[date, str, None]) -> date:
        if to_date is None:
            return date.today()
        if isinstance(to_date, str):
            return parse_book_date(to_date, book.date_pattern)
        return to_date

    def _ensure_financial_accounts(
        self, financial_book: Book, good_account: Account
    ) -> tuple[Account, Account]:
        """Get or create the good and cost of sales accounts of the financial book."""
        financial_good = self.store.get_account_by_name(financial_book.id, good_account.name)
        if financial_good is None:
            group_ids = []
            for group in good_account.groups:
                existing = self.store.get_group_by_name(financial_book.id, group.name)
                if existing is None:
                    group_ids.append(
                        self.store.create_group(
                            financial_book.id, group.name, properties=group.properties, hidden=group.hidden
                        )
                    )
                else:
                    group_ids.append(existing.id)
            account_id = self.store.create_account(
                financial_book.id, good_account.name, AccountType.ASSET, group_ids=group_ids
            )
            financial_good = self.store.get_account(financial_book.id, account_id)
            logger.info("created account %s in book %s", good_account.name, financial_book.name)

        cost_of_sales = self.store.get_account_by_name(financial_book.id, COST_OF_SALES_ACCOUNT_NAME)
        if cost_of_sales is None:
            account_id = self.store.create_account(
                financial_book.id, COST_OF_SALES_ACCOUNT_NAME, AccountType.OUTGOING
            )
            cost_of_sales = self.store.get_account(financial_book.id, account_id)
            logger.info("created account %s in book %s", COST_OF_SALES_ACCOUNT_NAME, financial_book.name)

        return financial_good, cost_of_sales

    def _stage_cost_of_sale(
        self,
        batch: BatchProcessor,
        financial_book: Book,
        allocation: Allocation,
        financial_good: Account,
        cost_of_sales: Account,
    ) -> None:
        sale = allocation.sale
        if not allocation.purchase_log:
            return
        if self.store.find_records_by_remote_id(financial_book.id, str(sale.id)):
            logger.warning("cost of sale for sale %s already posted", sale.id)
            return

        batch.register_create(
            Record(
                id=None,
                book_id=financial_book.id,
                date=sale.date,
                amount=round_amount(allocation.cost, financial_book.fraction_digits),
                credit_account=AccountRef(financial_good.id, financial_good.name, financial_good.type),
                debit_account=AccountRef(cost_of_sales.id, cost_of_sales.name, cost_of_sales.type),
                description=f"{COGS_HASHTAG} {sale.description}".strip(),
                checked=True,
                remote_ids=(str(sale.id),),
                cost_of_sale=CostOfSaleDetails(
                    quantity_sold=sale.amount,
                    sale_invoice=sale.sale.sale_invoice if sale.sale else None,
                ),
            )
        )
