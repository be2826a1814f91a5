# =============================================================================
# Derive Snapshot Report Tables
# =============================================================================
# - Apply the snapshot contract to one raw partition
# - Derive every transaction, store, and buyer fact table from the typed snapshot
# - Write one CSV per fact table, safe for direct BI consumption
# - Never overwrites raw data


import os
import sys
from typing import Dict, List
import pandas as pd

from transaction_pipeline.apply_snapshot_contract import (
    SnapshotContractError,
    load_contracted_snapshot,
)
from transaction_pipeline.buyer_purchase_facts import (
    first_purchase_item_counts,
    most_popular_first_purchase_item,
    second_purchase_times,
    second_purchases,
)
from transaction_pipeline.store_order_facts import (
    MIN_STORE_ORDERS,
    TARGET_MONTH,
    first_order_per_store,
    min_refund_latency,
    month_window,
    stores_with_min_orders,
)
from transaction_pipeline.transaction_facts import (
    REFUND_WINDOW_HOURS,
    monthly_purchase_counts,
    refund_eligibility,
    refund_eligibility_flags,
)
from transaction_pipeline.validate_snapshot import (
    RAW_DATA_BASE_PATH,
    init_report,
    log_info,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

DERIVED_DATA_PATH = os.getenv('DERIVED_DATA_PATH', 'data/derived')
REPORT_PARTITION = os.getenv('REPORT_PARTITION', 'train')


# ------------------------------------------------------------
# FACT DERIVATION
# ------------------------------------------------------------

def build_reports(transactions: pd.DataFrame,
                  items: pd.DataFrame,
                  target_month: str = TARGET_MONTH,
                  min_orders: int = MIN_STORE_ORDERS,
                  window_hours: float = REFUND_WINDOW_HOURS
                  ) -> Dict[str, pd.DataFrame]:
    """
    Every fact table, keyed by output name. Scalar answers are wrapped
    as one-row frames.
    """

    month_start, _ = month_window(target_month)

    store_count = pd.DataFrame({
        'month_start': [month_start],
        'min_orders': [min_orders],
        'store_count': [stores_with_min_orders(transactions, target_month, min_orders)],
    })

    top_item = pd.DataFrame({
        'item_name': [most_popular_first_purchase_item(transactions, items)],
    })

    return {
        'monthly_purchase_counts': monthly_purchase_counts(transactions),
        'stores_with_min_orders': store_count,
        'min_refund_latency': min_refund_latency(transactions),
        'first_order_per_store': first_order_per_store(transactions),
        'first_purchase_item_counts': first_purchase_item_counts(transactions, items),
        'most_popular_first_purchase_item': top_item,
        'refund_eligibility': refund_eligibility(transactions, window_hours),
        'refund_eligibility_flags': refund_eligibility_flags(transactions, window_hours),
        'second_purchases': second_purchases(transactions),
        'second_purchase_times': second_purchase_times(transactions),
    }


# ------------------------------------------------------------
# INPUT-OUTPUT HELPER
# ------------------------------------------------------------

def write_reports(reports: Dict[str, pd.DataFrame],
                  output_path: str,
                  report: Dict[str, List[str]]
                  ) -> None:
    os.makedirs(output_path, exist_ok=True)

    for name, df in reports.items():
        csv_path = os.path.join(output_path, f'{name}.csv')
        df.to_csv(csv_path, index=False)
        log_info(f'Wrote {name}: {csv_path} ({len(df)} rows)', report)


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()
    partition_path = os.path.join(RAW_DATA_BASE_PATH, REPORT_PARTITION)

    try:
        snapshot = load_contracted_snapshot(partition_path, report)

    except SnapshotContractError:
        # errors already logged
        sys.exit(1)

    reports = build_reports(
        snapshot['transactions'],
        snapshot['items'],
        TARGET_MONTH,
        MIN_STORE_ORDERS,
        REFUND_WINDOW_HOURS,
    )
    write_reports(reports, os.path.join(DERIVED_DATA_PATH, REPORT_PARTITION), report)

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
