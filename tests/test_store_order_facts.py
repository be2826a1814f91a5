"""Tests for store-level order volume, refund latency and first orders."""

import pandas as pd

from transaction_pipeline.store_order_facts import (
    first_order_per_store,
    min_refund_latency,
    month_window,
    store_order_counts,
    stores_with_min_orders,
)


def _orders(store_id, count, day="2020-10-15", refunded=False):
    refund = f"{day} 12:00:00" if refunded else None
    return [
        (100 + i, f"{day} 0{i % 10}:00:00", refund, 10, store_id, 10.0)
        for i in range(count)
    ]


# -- month_window --------------------------------------------------------------

def test_month_window_is_half_open_calendar_month():
    start, end = month_window("2020-10")
    assert start == pd.Timestamp("2020-10-01")
    assert end == pd.Timestamp("2020-11-01")


def test_month_window_rolls_over_year():
    start, end = month_window("2020-12")
    assert end == pd.Timestamp("2021-01-01")


# -- stores_with_min_orders ----------------------------------------------------

def test_two_of_six_stores_reach_five_october_orders(make_snapshot):
    rows = (
        _orders(1, 5)
        + _orders(2, 7)
        + _orders(3, 4)
        + _orders(4, 1)
        + _orders(5, 3)
        + _orders(6, 2)
        # outside the window on both sides
        + _orders(3, 3, day="2020-09-30")
        + _orders(4, 6, day="2020-11-01")
    )
    snap = make_snapshot(rows)
    assert stores_with_min_orders(snap["transactions"], "2020-10", 5) == 2


def test_refunded_orders_still_count_toward_threshold(make_snapshot):
    snap = make_snapshot(_orders(1, 3) + _orders(1, 2, day="2020-10-16", refunded=True))
    assert stores_with_min_orders(snap["transactions"], "2020-10", 5) == 1


def test_order_counts_in_fixture_month(snapshot):
    counts = store_order_counts(snapshot["transactions"], "2020-10")
    assert counts["store_id"].tolist() == [1, 2]
    assert counts["order_count"].tolist() == [4, 2]
    assert stores_with_min_orders(snapshot["transactions"]) == 0
    assert stores_with_min_orders(snapshot["transactions"], min_orders=4) == 1
    assert stores_with_min_orders(snapshot["transactions"], min_orders=2) == 2


def test_month_with_no_orders_counts_zero_stores(snapshot):
    assert stores_with_min_orders(snapshot["transactions"], "2019-01", 1) == 0


# -- min_refund_latency --------------------------------------------------------

def test_min_refund_latency_per_store(snapshot):
    result = min_refund_latency(snapshot["transactions"])
    assert list(result.columns) == ["store_id", "min_refund_interval_minutes"]
    assert result["store_id"].tolist() == [1, 2]
    assert result["min_refund_interval_minutes"].tolist() == [1440.0, 30.0]


def test_min_refund_latency_is_fractional_minutes(make_snapshot):
    snap = make_snapshot([
        (1, "2020-10-01 00:00:00", "2020-10-01 00:01:30", 10, 7, 1.0),
    ])
    result = min_refund_latency(snap["transactions"])
    assert result["min_refund_interval_minutes"].tolist() == [1.5]


def test_min_refund_latency_is_below_every_store_refund(snapshot):
    transactions = snapshot["transactions"]
    result = min_refund_latency(transactions).set_index("store_id")
    refunded = transactions[transactions["refund_time"].notna()]
    for _, row in refunded.iterrows():
        minutes = (row["refund_time"] - row["purchase_time"]).total_seconds() / 60
        assert result.loc[row["store_id"], "min_refund_interval_minutes"] <= minutes


def test_stores_without_refunds_are_absent(make_snapshot):
    snap = make_snapshot([
        (1, "2020-10-01 00:00:00", None, 10, 1, 1.0),
        (1, "2020-10-01 00:00:00", "2020-10-02 00:00:00", 10, 2, 1.0),
    ])
    result = min_refund_latency(snap["transactions"])
    assert result["store_id"].tolist() == [2]


# -- first_order_per_store -----------------------------------------------------

def test_first_order_per_store(snapshot):
    result = first_order_per_store(snapshot["transactions"])
    assert list(result.columns) == [
        "store_id", "first_order_time", "first_order_gross_value",
    ]
    assert result["store_id"].tolist() == [1, 2]
    assert result["first_order_time"].tolist() == [
        pd.Timestamp("2020-09-28 10:00:00"),
        pd.Timestamp("2020-10-05 12:00:00"),
    ]
    assert result["first_order_gross_value"].tolist() == [50.0, 15.0]


def test_first_order_matches_minimum_purchase_time(snapshot):
    transactions = snapshot["transactions"]
    result = first_order_per_store(transactions).set_index("store_id")
    expected = transactions.groupby("store_id")["purchase_time"].min()
    assert (result["first_order_time"] == expected).all()
    assert result.index.is_unique


def test_first_order_tie_goes_to_first_loaded_row(make_snapshot):
    snap = make_snapshot([
        (1, "2020-10-01 00:00:00", None, 10, 1, 11.0),
        (2, "2020-10-01 00:00:00", None, 10, 1, 22.0),
    ])
    result = first_order_per_store(snap["transactions"])
    assert result["first_order_gross_value"].tolist() == [11.0]
