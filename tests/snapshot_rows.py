"""Raw snapshot rows shared by the fixtures and file-based tests."""

import pandas as pd

from transaction_pipeline.validate_snapshot import ITEM_COLUMNS, TRANSACTION_COLUMNS


# (buyer_id, purchase_time, refund_time, item_id, store_id, gross_transaction_value)
TRANSACTION_ROWS = [
    (1, "2020-09-28 10:00:00", None, 10, 1, 50.0),
    (1, "2020-10-02 09:00:00", "2020-10-03 09:00:00", 11, 1, 20.0),
    (1, "2020-10-05 12:00:00", None, 12, 2, 15.0),
    (2, "2020-10-01 08:00:00", "2020-10-06 08:00:00", 10, 1, 50.0),
    (2, "2020-11-15 18:00:00", None, 13, 2, 30.0),
    (3, "2020-10-20 14:00:00", "2020-10-20 14:30:00", 12, 2, 15.0),
    (3, "2020-10-21 09:00:00", None, 11, 1, 20.0),
    (3, "2020-10-22 09:00:00", None, 10, 1, 50.0),
]

# (store_id, item_id, item_category, item_name)
ITEM_ROWS = [
    (1, 10, "home", "Lamp"),
    (1, 11, "kitchen", "Mug"),
    (2, 12, "office", "Pen"),
    (2, 13, "office", "Book"),
]


def raw_transactions(rows):
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def raw_items(rows):
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def write_snapshot(partition_path, transaction_rows=TRANSACTION_ROWS, item_rows=ITEM_ROWS):
    """Write a partition as two transaction files and one items file."""
    partition_path.mkdir(parents=True)
    raw_transactions(transaction_rows[:4]).to_csv(
        partition_path / "transactions_part1.csv", index=False)
    raw_transactions(transaction_rows[4:]).to_csv(
        partition_path / "transactions_part2.csv", index=False)
    raw_items(item_rows).to_csv(partition_path / "items.csv", index=False)
