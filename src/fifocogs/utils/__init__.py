"""Utility functions for fifocogs."""

from fifocogs.utils.date_parser import parse_date, parse_book_date, format_book_date
from fifocogs.utils.amount_parser import parse_amount, round_amount, is_zero
from fifocogs.utils.query import build_account_query, parse_account_query

__all__ = [
    "parse_date",
    "parse_book_date",
    "format_book_date",
    "parse_amount",
    "round_amount",
    "is_zero",
    "build_account_query",
    "parse_account_query",
]
