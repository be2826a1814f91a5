# =============================================================================
# BUYER PURCHASE FACT TABLES
# =============================================================================
# - Rank each buyer's purchases by time (ties: load order)
# - First purchase item popularity, joined to items on item_id
# - Second purchase per buyer, with and without refunded orders


from typing import Optional
import pandas as pd

from transaction_pipeline.apply_snapshot_contract import (
    SEQUENCE_COLUMN,
    require_contracted,
)


RANK_COLUMNS = ['buyer_id', 'purchase_time', SEQUENCE_COLUMN]


# ------------------------------------------------------------
# PURCHASE RANKING
# ------------------------------------------------------------

def purchase_rank(transactions: pd.DataFrame, rank: int) -> pd.DataFrame:
    """
    Transactions at 1-indexed position `rank` of their buyer's purchase
    sequence. Buyers with fewer purchases are absent.
    Output keeps the input columns except transaction_seq, ordered by buyer_id.
    """

    require_contracted(transactions, RANK_COLUMNS, 'transactions')

    ordered = transactions.sort_values(RANK_COLUMNS)
    position = ordered.groupby('buyer_id').cumcount() + 1

    return (
        ordered.loc[position == rank]
        .drop(columns=SEQUENCE_COLUMN)
        .reset_index(drop=True)
    )


def first_purchases(transactions: pd.DataFrame) -> pd.DataFrame:

    return purchase_rank(transactions, 1)


# ------------------------------------------------------------
# FIRST PURCHASE ITEMS
# ------------------------------------------------------------

def first_purchase_item_counts(transactions: pd.DataFrame,
                               items: pd.DataFrame
                               ) -> pd.DataFrame:
    """
    How often each item_name was a buyer's first purchase.

    Items are matched on item_id alone; an item_id listed by several
    stores contributes one row per listing.
    Null names are counted as one group.
    Output: item_name, purchase_count (count desc, item_name asc, null last).
    """

    require_contracted(items, ['item_id', 'item_name'], 'items')

    firsts = first_purchases(transactions)
    joined = firsts[['item_id']].merge(
        items[['item_id', 'item_name']], on='item_id', how='inner'
        )

    counts = (
        joined.groupby('item_name', dropna=False)
        .size()
        .reset_index(name='purchase_count')
    )

    return counts.sort_values(
        ['purchase_count', 'item_name'], ascending=[False, True], ignore_index=True
        )


def most_popular_first_purchase_item(transactions: pd.DataFrame,
                                     items: pd.DataFrame
                                     ) -> Optional[str]:
    counts = first_purchase_item_counts(transactions, items)

    if counts.empty:
        return None

    top_name = counts.loc[0, 'item_name']

    return None if pd.isna(top_name) else top_name


# ------------------------------------------------------------
# SECOND PURCHASE
# ------------------------------------------------------------

def second_purchases(transactions: pd.DataFrame) -> pd.DataFrame:
    """
    Each buyer's second non-refunded purchase, all columns.
    Refunded orders are dropped before ranking.
    """

    require_contracted(transactions, ['refund_time'], 'transactions')

    kept = transactions.loc[transactions['refund_time'].isna()]

    return purchase_rank(kept, 2)


def second_purchase_times(transactions: pd.DataFrame) -> pd.DataFrame:
    """buyer_id and purchase_time of each buyer's second purchase, refunds included."""

    return purchase_rank(transactions, 2)[['buyer_id', 'purchase_time']]


# =============================================================================
# END OF SCRIPT
# =============================================================================
