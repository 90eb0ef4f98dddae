"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested book, account or record does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class PendingTasksError(ConflictError):
    """Operation blocked while the inventory book still has pending tasks."""


class RemoteError(RuntimeError):
    """A ledger store call failed. Fatal for the current calculation run."""


def book_not_found(book_id: int) -> str:
    """Return message for missing book."""
    return f"Book {book_id} not found"


def account_not_found(account: int | str) -> str:
    """Return message for missing account by ID or name."""
    if isinstance(account, int):
        return f"Account {account} not found"
    return f"Account '{account}' not found"


def record_not_found(record_id: int) -> str:
    """Return message for missing record."""
    return f"Record {record_id} not found"


def inventory_book_not_found(book_id: int) -> str:
    """Return message when no inventory book is connected to a book."""
    return f"No inventory book found in the collection of book {book_id}"


def pending_tasks() -> str:
    """Return message for an inventory book with pending tasks."""
    return "Cannot start operation: Inventory Book has pending tasks"


def duplicate_account_name(name: str, book_id: int) -> str:
    """Return message for duplicate account name."""
    return f"Account with name '{name}' already exists in book {book_id}"
