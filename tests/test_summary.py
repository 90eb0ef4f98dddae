"""Tests for calculation run summaries."""

import pytest
from decimal import Decimal

from fifocogs.domain.summary import Outcome, Summary


def test_new_summary_is_ok():
    """Test a fresh summary reports nothing to calculate."""
    summary = Summary(account_id=1)
    assert summary.outcome == Outcome.OK
    assert summary.message == "Nothing to calculate"
    assert not summary.outcome.is_error


def test_calculating_async():
    summary = Summary(account_id=1).calculating_async()
    assert summary.outcome == Outcome.IN_PROGRESS
    assert summary.message == "Calculating cost of sales"


def test_quantity_error_default_and_custom_message():
    assert Summary(account_id=1).quantity_error().message.startswith("Cannot proceed")
    summary = Summary(account_id=1).quantity_error("Sale 4 short of 2")
    assert summary.message == "Sale 4 short of 2"
    assert summary.outcome.is_error


def test_lock_error_is_error():
    summary = Summary(account_id=1).lock_error()
    assert summary.outcome == Outcome.LOCK_ERROR
    assert summary.outcome.is_error


def test_rebuild_and_skipped_are_not_errors():
    assert not Summary(account_id=1).rebuild().outcome.is_error
    skipped = Summary(account_id=1).skipped("No financial book")
    assert skipped.outcome == Outcome.SKIPPED
    assert skipped.message == "No financial book"
    assert not skipped.outcome.is_error


def test_only_one_transition():
    """Test a finished summary cannot change outcome."""
    summary = Summary(account_id=1).calculating_async()
    with pytest.raises(ValueError, match="already finished"):
        summary.lock_error()
    assert summary.outcome == Outcome.IN_PROGRESS


def test_as_dict():
    summary = Summary(account_id=3, account_name="Widget")
    summary.sales_processed = 2
    summary.total_cost = Decimal("16.00")
    summary.calculating_async()

    data = summary.as_dict()

    assert data["accountId"] == 3
    assert data["accountName"] == "Widget"
    assert data["outcome"] == "in-progress"
    assert data["result"] == "Calculating cost of sales"
    assert data["error"] is False
    assert data["salesProcessed"] == 2
    assert data["totalCost"] == "16.00"
