"""Account query building and parsing.

Queries have the shape ``account:'<name>' [after:<date>] [before:<date>]``.
``after`` is inclusive and ``before`` exclusive; dates are ISO formatted.
"""

import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

_QUERY_PATTERN = re.compile(
    r"^\s*account:'(?P<account>(?:[^'\\]|\\.)*)'"
    r"(?:\s+after:(?P<after>\d{4}-\d{2}-\d{2}))?"
    r"(?:\s+before:(?P<before>\d{4}-\d{2}-\d{2}))?\s*$"
)


@dataclass(frozen=True)
class AccountQuery:
    """Parsed account query."""

    account_name: str
    after: Optional[date] = None
    before: Optional[date] = None


def build_account_query(
    account_name: str,
    before_date: Optional[date] = None,
    after_date: Optional[date] = None,
) -> str:
    """Build a query string for records of one account.

    Args:
        account_name: Name of the account to search for
        before_date: Optional exclusive upper bound
        after_date: Optional inclusive lower bound

    Returns:
        Query string in the format "account:'name' after:date before:date"
    """
    escaped = account_name.replace("\\", "\\\\").replace("'", "\\'")
    query = f"account:'{escaped}'"
    if after_date is not None:
        query += f" after:{after_date.isoformat()}"
    if before_date is not None:
        query += f" before:{before_date.isoformat()}"
    return query


def parse_account_query(query: str) -> AccountQuery:
    """Parse a query string built by ``build_account_query``.

    Raises:
        ValueError: If the query does not have the expected shape
    """
    match = _QUERY_PATTERN.match(query)
    if match is None:
        raise ValueError(f"Could not parse query '{query}'")

    account_name = re.sub(r"\\(.)", r"\1", match.group("account"))
    after = match.group("after")
    before = match.group("before")
    return AccountQuery(
        account_name=account_name,
        after=date.fromisoformat(after) if after else None,
        before=date.fromisoformat(before) if before else None,
    )
