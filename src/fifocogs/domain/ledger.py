"""Book, group and account domain services."""

from typing import Mapping, Optional, Sequence

from fifocogs.database.base import LedgerStore
from fifocogs.domain.entities import Account, AccountType, Book, Group
from fifocogs.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    book_not_found,
    duplicate_account_name,
    inventory_book_not_found,
)
from fifocogs.domain.properties import EXC_CODE_PROP, INVENTORY_BOOK_PROP
from fifocogs.utils.date_parser import DATE_PATTERNS


class BookService:
    """Service for managing books."""

    def __init__(self, store: LedgerStore):
        """Initialize book service.

        Args:
            store: Ledger store
        """
        self.store = store

    def create_book(
        self,
        name: str,
        collection: Optional[str] = None,
        inventory: bool = False,
        exc_code: Optional[str] = None,
        fraction_digits: int = 2,
        date_pattern: str = "yyyy-MM-dd",
    ) -> int:
        """Create a book.

        Args:
            name: Book name
            collection: Collection connecting inventory and financial books
            inventory: Mark the book as the inventory book of its collection
            exc_code: Exchange code of a financial book
            fraction_digits: Decimal precision
            date_pattern: Date pattern of the book

        Returns:
            Book ID

        Raises:
            ValidationError: If the options are inconsistent
        """
        if inventory and exc_code:
            raise ValidationError("An inventory book cannot have an exchange code")
        if not 0 <= fraction_digits <= 8:
            raise ValidationError(f"Fraction digits must be between 0 and 8, got {fraction_digits}")
        if date_pattern not in DATE_PATTERNS:
            raise ValidationError(f"Unknown date pattern: '{date_pattern}'")

        properties = {}
        if inventory:
            properties[INVENTORY_BOOK_PROP] = "true"
        if exc_code:
            properties[EXC_CODE_PROP] = exc_code
        return self.store.create_book(
            name=name,
            fraction_digits=fraction_digits,
            date_pattern=date_pattern,
            collection=collection,
            properties=properties,
        )

    def get_book(self, book_id: int) -> Book:
        """Get book by ID.

        Raises:
            NotFoundError: If the book does not exist
        """
        book = self.store.get_book(book_id)
        if book is None:
            raise NotFoundError(book_not_found(book_id))
        return book

    def list_books(self, collection: Optional[str] = None) -> list[Book]:
        return self.store.list_books(collection)

    def get_inventory_book(self, book_id: int) -> Book:
        """Return the book itself when it is the inventory book, else the
        inventory book of its collection.

        Raises:
            NotFoundError: If no inventory book is found
        """
        book = self.get_book(book_id)
        if book.is_inventory:
            return book
        if book.collection is not None:
            for connected in self.store.list_books(book.collection):
                if connected.is_inventory:
                    return connected
        raise NotFoundError(inventory_book_not_found(book_id))

    def find_financial_book(self, inventory_book: Book, account: Account) -> Optional[Book]:
        """Financial book of the collection matching the account's exchange code."""
        if inventory_book.collection is None:
            return None
        exc_code = exchange_code(account)
        for book in self.store.list_books(inventory_book.collection):
            if not book.is_inventory and book.exc_code == exc_code:
                return book
        return None


def exchange_code(account: Account) -> Optional[str]:
    """Exchange code of a good, taken from the first group defining one."""
    if account.type in (AccountType.INCOMING, AccountType.OUTGOING):
        return None
    for group in account.groups:
        exc_code = group.properties.get(EXC_CODE_PROP)
        if exc_code is not None and exc_code.strip() != "":
            return exc_code.strip()
    return None


class AccountService:
    """Service for managing accounts and their groups."""

    def __init__(self, store: LedgerStore):
        """Initialize account service.

        Args:
            store: Ledger store
        """
        self.store = store

    def create_group(
        self,
        book_id: int,
        name: str,
        exc_code: Optional[str] = None,
        parent: Optional[str] = None,
    ) -> int:
        """Create a group, optionally tagging its accounts with an exchange code.

        Raises:
            NotFoundError: If the book or parent group does not exist
            ConflictError: If the group already exists
        """
        self._require_book(book_id)
        if self.store.get_group_by_name(book_id, name) is not None:
            raise ConflictError(f"Group '{name}' already exists in book {book_id}")

        parent_id = None
        if parent is not None:
            parent_group = self.store.get_group_by_name(book_id, parent)
            if parent_group is None:
                raise NotFoundError(f"Group '{parent}' not found")
            parent_id = parent_group.id

        properties = {EXC_CODE_PROP: exc_code} if exc_code else {}
        return self.store.create_group(book_id, name, parent_id=parent_id, properties=properties)

    def create_account(
        self,
        book_id: int,
        name: str,
        account_type: AccountType,
        groups: Sequence[str] = (),
        properties: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Create a new account.

        Args:
            book_id: Book ID
            name: Account name
            account_type: Account type
            groups: Names of existing groups of the book
            properties: Optional account properties

        Returns:
            Account ID

        Raises:
            NotFoundError: If the book or a group does not exist
            ConflictError: If account name already exists
        """
        self._require_book(book_id)
        if self.store.get_account_by_name(book_id, name) is not None:
            raise ConflictError(duplicate_account_name(name, book_id))

        group_ids = []
        for group_name in groups:
            group = self.store.get_group_by_name(book_id, group_name)
            if group is None:
                raise NotFoundError(f"Group '{group_name}' not found")
            group_ids.append(group.id)

        return self.store.create_account(
            book_id,
            name,
            AccountType(account_type),
            properties=properties,
            group_ids=group_ids,
        )

    def get_or_create_account(
        self,
        book_id: int,
        name: str,
        account_type: AccountType,
        groups: Sequence[Group] = (),
    ) -> Account:
        """Get an account by name, creating it with the given groups if missing."""
        account = self.store.get_account_by_name(book_id, name)
        if account is not None:
            return account
        account_id = self.store.create_account(
            book_id, name, account_type, group_ids=[group.id for group in groups]
        )
        return self.store.get_account(book_id, account_id)

    def get_account(self, book_id: int, account: int | str) -> Account:
        """Get an account by ID or name.

        Raises:
            NotFoundError: If the account does not exist
        """
        if isinstance(account, int):
            found = self.store.get_account(book_id, account)
        else:
            found = self.store.get_account_by_name(book_id, account)
        if found is None:
            raise NotFoundError(account_not_found(account))
        return found

    def list_accounts(self, book_id: int) -> list[Account]:
        self._require_book(book_id)
        return self.store.list_accounts(book_id)

    def _require_book(self, book_id: int) -> None:
        if self.store.get_book(book_id) is None:
            raise NotFoundError(book_not_found(book_id))
