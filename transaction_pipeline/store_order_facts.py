# =============================================================================
# STORE ORDER FACT TABLES
# =============================================================================
# - Store-level order volume inside a calendar month
# - Fastest refund turnaround per store
# - Opening order per store, with a deterministic tie-break


import os
from typing import Tuple
import pandas as pd

from transaction_pipeline.apply_snapshot_contract import (
    SEQUENCE_COLUMN,
    require_contracted,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

TARGET_MONTH = os.getenv('TARGET_MONTH', '2020-10')
MIN_STORE_ORDERS = int(os.getenv('MIN_STORE_ORDERS', '5'))


# ------------------------------------------------------------
# MONTHLY ORDER VOLUME
# ------------------------------------------------------------

def month_window(month: str) -> Tuple[pd.Timestamp, pd.Timestamp]:
    """Half-open window [month_start, next_month_start) for e.g. '2020-10'."""

    start = pd.Timestamp(month).to_period('M').to_timestamp()

    return start, start + pd.DateOffset(months=1)


def store_order_counts(transactions: pd.DataFrame,
                       month: str = TARGET_MONTH
                       ) -> pd.DataFrame:
    """
    Orders per store with purchase_time inside the month.
    Refunded orders count.
    """

    require_contracted(transactions, ['purchase_time', 'store_id'], 'transactions')

    start, end = month_window(month)
    purchase_ts = transactions['purchase_time']
    in_window = transactions.loc[(purchase_ts >= start) & (purchase_ts < end)]

    return (
        in_window.groupby('store_id')
        .size()
        .reset_index(name='order_count')
        .sort_values('store_id', ignore_index=True)
    )


def stores_with_min_orders(transactions: pd.DataFrame,
                           month: str = TARGET_MONTH,
                           min_orders: int = MIN_STORE_ORDERS
                           ) -> int:
    counts = store_order_counts(transactions, month)

    return int((counts['order_count'] >= min_orders).sum())


# ------------------------------------------------------------
# REFUND LATENCY
# ------------------------------------------------------------

def min_refund_latency(transactions: pd.DataFrame) -> pd.DataFrame:
    """
    Shortest purchase-to-refund interval per store, in fractional minutes.

    Stores without any refund are absent.
    """

    require_contracted(
        transactions, ['purchase_time', 'refund_time', 'store_id'], 'transactions'
        )

    refunded = transactions.loc[transactions['refund_time'].notna()]
    minutes = (refunded['refund_time'] - refunded['purchase_time']).dt.total_seconds() / 60

    return (
        minutes.groupby(refunded['store_id'])
        .min()
        .rename('min_refund_interval_minutes')
        .reset_index()
        .sort_values('store_id', ignore_index=True)
    )


# ------------------------------------------------------------
# FIRST ORDER
# ------------------------------------------------------------

def first_order_per_store(transactions: pd.DataFrame) -> pd.DataFrame:
    """
    Earliest transaction of every store.

    Ties on purchase_time go to the transaction loaded first.
    Output: store_id, first_order_time, first_order_gross_value.
    """

    require_contracted(
        transactions,
        ['store_id', 'purchase_time', 'gross_transaction_value', SEQUENCE_COLUMN],
        'transactions'
        )

    ordered = transactions.sort_values(['store_id', 'purchase_time', SEQUENCE_COLUMN])
    first = ordered.drop_duplicates(subset='store_id', keep='first')

    return (
        first[['store_id', 'purchase_time', 'gross_transaction_value']]
        .rename(columns={
            'purchase_time': 'first_order_time',
            'gross_transaction_value': 'first_order_gross_value',
        })
        .reset_index(drop=True)
    )


# =============================================================================
# END OF SCRIPT
# =============================================================================
