"""Domain layer for fifocogs.

Services are imported from their modules; this package only exposes the
entities and errors, which the database layer depends on.
"""

from fifocogs.domain.entities import (
    Account,
    AccountRef,
    AccountType,
    Book,
    Group,
    Record,
)
from fifocogs.domain.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    PendingTasksError,
    RemoteError,
    ValidationError,
)

__all__ = [
    "Account",
    "AccountRef",
    "AccountType",
    "Book",
    "Group",
    "Record",
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "PendingTasksError",
    "RemoteError",
    "ValidationError",
]
