"""Shared snapshot fixtures: small in-memory transactions/items tables."""

import pytest

from transaction_pipeline.apply_snapshot_contract import enforce_snapshot_contract

from snapshot_rows import ITEM_ROWS, TRANSACTION_ROWS, raw_items, raw_transactions


@pytest.fixture
def raw_tables():
    return {
        "transactions": raw_transactions(TRANSACTION_ROWS),
        "items": raw_items(ITEM_ROWS),
    }


@pytest.fixture
def snapshot(raw_tables):
    return enforce_snapshot_contract(raw_tables)


@pytest.fixture
def make_snapshot():
    """Factory: contract a snapshot built from raw row tuples."""

    def _make(transaction_rows, item_rows=ITEM_ROWS):
        return enforce_snapshot_contract({
            "transactions": raw_transactions(transaction_rows),
            "items": raw_items(item_rows),
        })

    return _make
