"""Abstract ledger store interface."""

from abc import ABC, abstractmethod
from typing import Optional, Mapping, Sequence

# Import entities directly to avoid circular import through domain/__init__.py
from fifocogs.domain.entities import (
    Account,
    AccountType,
    Book,
    Group,
    Record,
)


class LedgerStore(ABC):
    """Abstract record store holding inventory and financial books.

    Every operation may raise ``RemoteError``; callers treat it as fatal
    for the current run.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize store schema (create tables)."""
        pass

    # Book operations
    @abstractmethod
    def create_book(
        self,
        name: str,
        fraction_digits: int = 2,
        date_pattern: str = "yyyy-MM-dd",
        collection: Optional[str] = None,
        properties: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Create a book. Returns book ID."""
        pass

    @abstractmethod
    def get_book(self, book_id: int) -> Optional[Book]:
        """Get book by ID."""
        pass

    @abstractmethod
    def list_books(self, collection: Optional[str] = None) -> list[Book]:
        """List books, optionally restricted to one collection."""
        pass

    @abstractmethod
    def set_pending_tasks(self, book_id: int, count: int) -> None:
        """Set the number of tasks still queued against a book."""
        pass

    # Group operations
    @abstractmethod
    def create_group(
        self,
        book_id: int,
        name: str,
        parent_id: Optional[int] = None,
        properties: Optional[Mapping[str, str]] = None,
        hidden: bool = False,
    ) -> int:
        """Create a group. Returns group ID."""
        pass

    @abstractmethod
    def get_group_by_name(self, book_id: int, name: str) -> Optional[Group]:
        """Get group by name."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        book_id: int,
        name: str,
        account_type: AccountType,
        properties: Optional[Mapping[str, str]] = None,
        group_ids: Sequence[int] = (),
        archived: bool = False,
    ) -> int:
        """Create an account. Returns account ID."""
        pass

    @abstractmethod
    def get_account(self, book_id: int, account_id: int) -> Optional[Account]:
        """Get account by ID."""
        pass

    @abstractmethod
    def get_account_by_name(self, book_id: int, name: str) -> Optional[Account]:
        """Get account by name."""
        pass

    @abstractmethod
    def list_accounts(self, book_id: int) -> list[Account]:
        """List all accounts of a book."""
        pass

    @abstractmethod
    def set_account_property(
        self, book_id: int, account_id: int, key: str, value: Optional[str]
    ) -> Account:
        """Set (or delete, when value is None) an account property."""
        pass

    # Record operations
    @abstractmethod
    def query_records(self, book_id: int, query: str) -> list[Record]:
        """Run an ``account:'<name>' [after:<date>] [before:<date>]`` query.

        Trashed records are never returned.
        """
        pass

    @abstractmethod
    def get_record(self, book_id: int, record_id: int) -> Optional[Record]:
        """Get record by ID."""
        pass

    @abstractmethod
    def find_records_by_remote_id(self, book_id: int, remote_id: str) -> list[Record]:
        """List non-trashed records cross-referencing ``remote_id``."""
        pass

    @abstractmethod
    def create_record(self, record: Record) -> Record:
        """Persist a new record. Returns it with its assigned ID."""
        pass

    @abstractmethod
    def update_record(self, record: Record) -> Record:
        """Overwrite a persisted record's amount, accounts, flags and properties."""
        pass

    @abstractmethod
    def trash_record(self, book_id: int, record_id: int) -> None:
        """Move a record to the trash."""
        pass

    @abstractmethod
    def set_record_locked(self, book_id: int, record_id: int, locked: bool) -> None:
        """Flag a record as being mutated by another process."""
        pass
