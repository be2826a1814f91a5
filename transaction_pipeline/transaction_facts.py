# =============================================================================
# TRANSACTION FACT TABLES
# =============================================================================
# - Month-grain purchase activity, excluding refunded orders
# - Row-grain refund eligibility against the refund window
# - Output: Clean fact data for analysis and dashboards


import os
import pandas as pd

from transaction_pipeline.apply_snapshot_contract import (
    SEQUENCE_COLUMN,
    require_contracted,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

REFUND_WINDOW_HOURS = float(os.getenv('REFUND_WINDOW_HOURS', '72'))

REFUND_ALLOWED = 'Refund_Allowed'
REFUND_NOT_ALLOWED = 'Refund_Not_Allowed'
NO_REFUND = 'No_Refund'


# ------------------------------------------------------------
# MONTHLY PURCHASES
# ------------------------------------------------------------

def monthly_purchase_counts(transactions: pd.DataFrame) -> pd.DataFrame:
    """
    Non-refunded purchases per calendar month of purchase_time.

    Output: month_start, purchase_count (month ascending).
    Months with no non-refunded purchase are absent.
    """

    require_contracted(transactions, ['purchase_time', 'refund_time'], 'transactions')

    kept = transactions.loc[transactions['refund_time'].isna(), ['purchase_time']]
    month_start = kept['purchase_time'].dt.to_period('M').dt.to_timestamp()

    counts = (
        kept.assign(month_start=month_start)
        .groupby('month_start')
        .size()
        .reset_index(name='purchase_count')
    )

    return counts.sort_values('month_start', ignore_index=True)


# ------------------------------------------------------------
# REFUND ELIGIBILITY
# ------------------------------------------------------------

def refund_elapsed_hours(transactions: pd.DataFrame) -> pd.Series:
    """Hours from purchase to refund; NaN where there was no refund."""

    elapsed = transactions['refund_time'] - transactions['purchase_time']

    return elapsed.dt.total_seconds() / 3600


def _order_by_purchase(df: pd.DataFrame) -> pd.DataFrame:

    return (
        df.sort_values(['purchase_time', SEQUENCE_COLUMN], ignore_index=True)
        .drop(columns=SEQUENCE_COLUMN)
    )


def refund_eligibility(transactions: pd.DataFrame,
                       window_hours: float = REFUND_WINDOW_HOURS
                       ) -> pd.DataFrame:
    """
    Label every transaction with its refund eligibility.

    Labels, in priority order:
      Refund_Allowed     - refunded within window_hours (inclusive)
      Refund_Not_Allowed - refunded after window_hours
      No_Refund          - never refunded

    Output: all snapshot columns + refund_flag, by purchase_time ascending.
    """

    require_contracted(
        transactions, ['purchase_time', 'refund_time', SEQUENCE_COLUMN], 'transactions'
        )

    hours = refund_elapsed_hours(transactions)
    refunded = transactions['refund_time'].notna()

    flag = pd.Series(NO_REFUND, index=transactions.index, dtype='object')
    flag.loc[refunded & (hours <= window_hours)] = REFUND_ALLOWED
    flag.loc[refunded & (hours > window_hours)] = REFUND_NOT_ALLOWED

    return _order_by_purchase(transactions.assign(refund_flag=flag))


def refund_eligibility_flags(transactions: pd.DataFrame,
                             window_hours: float = REFUND_WINDOW_HOURS
                             ) -> pd.DataFrame:
    """
    Boolean variant of refund_eligibility: refund_allowed is True only for
    refunds inside the window.
    """

    labelled = refund_eligibility(transactions, window_hours)
    allowed = labelled['refund_flag'] == REFUND_ALLOWED

    return labelled.drop(columns='refund_flag').assign(refund_allowed=allowed)


# =============================================================================
# END OF SCRIPT
# =============================================================================
