# =============================================================================
# VALIDATE TRANSACTION SNAPSHOT
# =============================================================================
# - Check structural and semantic integrity of the transactions/items snapshot
# - Block data that would corrupt refund intervals, rankings, or item joins
# - Designed for deterministic execution in CI/CD pipelines


import os
import sys
import glob
from typing import Dict, List, Optional
import pandas as pd


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

RAW_DATA_BASE_PATH = os.getenv('RAW_DATA_BASE_PATH', 'data/raw')
VALIDATE_TEST = os.getenv('VALIDATE_TEST', 'false').lower() == 'true'

PARTITIONS = ['train']

if VALIDATE_TEST:
    PARTITIONS.append('test')

TRANSACTION_COLUMNS = [
    'buyer_id',
    'purchase_time',
    'refund_time',
    'item_id',
    'store_id',
    'gross_transaction_value',
]

ITEM_COLUMNS = [
    'store_id',
    'item_id',
    'item_category',
    'item_name',
]

TIMESTAMP_COLUMNS = ['purchase_time', 'refund_time']

TABLE_CONFIG = {
    'transactions': {
        'role': 'event_fact',
        'required_columns': TRANSACTION_COLUMNS,
        'primary_key': [],
        'non_null_columns': ['buyer_id', 'item_id', 'store_id'],
    },
    'items': {
        'role': 'entity_reference',
        'required_columns': ITEM_COLUMNS,
        'primary_key': ['store_id', 'item_id'],
        'non_null_columns': [],
    },
}


# ------------------------------------------------------------
# VALIDATION REPORT & LOGS
# ------------------------------------------------------------

def init_report() -> Dict[str, List[str]]:

    return {
        'errors': [],
        'warnings': [],
        'info': []
    }


def log_info(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[INFO] {message}')
    report['info'].append(message)


def log_warning(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[WARNING] {message}')
    report['warnings'].append(message)


def log_error(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[ERROR] {message}')
    report['errors'].append(message)


# ------------------------------------------------------------
# PARSING HELPERS
# ------------------------------------------------------------

def parse_timestamps(series: pd.Series) -> pd.Series:
    """
    Parse a timestamp column; unparsable values become NaT.
    Values carrying an offset are converted to naive UTC wall time.
    """

    if pd.api.types.is_datetime64_any_dtype(series):
        parsed = series
    else:
        parsed = pd.to_datetime(
            series.astype('object'), errors='coerce', format='ISO8601', utc=True
            )

    if parsed.dt.tz is not None:
        parsed = parsed.dt.tz_convert(None)

    return parsed


# ------------------------------------------------------------
# BASE VALIDATIONS (ALL TABLES)
# ------------------------------------------------------------

def run_base_validations(df: pd.DataFrame,
                         table_name: str,
                         config: Dict,
                         report: Dict[str, List[str]]
                         ) -> bool:
    """
    Base structural validations.

    Returns False if structure is too broken for further checks.
    """

    if df.empty:
        log_error(f'{table_name}: dataset is empty', report)

        return False

    duplicate_columns = df.columns[df.columns.duplicated()].tolist()
    if duplicate_columns:
        log_error(
            f'{table_name}: duplicate column names detected: {duplicate_columns}',
            report
            )

        return False

    missing_columns = [c for c in config['required_columns'] if c not in df.columns]
    if missing_columns:
        log_error(
            f'{table_name}: missing required column(s): {missing_columns}',
            report
            )

        return False

    for col in config['non_null_columns']:
        null_count = df[col].isnull().sum()
        if null_count > 0:
            log_error(
                f'{table_name}: {null_count} row(s) with null `{col}`',
                report
                )

    primary_key = config['primary_key']
    if not primary_key:

        return True

    pk_null_count = df[primary_key].isnull().any(axis=1).sum()
    if pk_null_count > 0:
        log_error(
            f'{table_name}: {pk_null_count} row(s) with null primary key values',
            report
            )

    duplicate_pk_count = df.duplicated(subset=primary_key).sum()
    if duplicate_pk_count > 0:
        log_error(
            f'{table_name}: {duplicate_pk_count} duplicated primary key value(s) '
            f'on {primary_key}',
            report
            )

    return True


# ------------------------------------------------------------
# EVENT FACT VALIDATIONS
# ------------------------------------------------------------

def run_event_fact_validations(df: pd.DataFrame,
                               table_name: str,
                               report: Dict[str, List[str]]
                               ) -> None:
    """
    Purchase/refund timeline validations.

    Stops if timeline integrity is broken.
    """

    missing_ts_columns = [c for c in TIMESTAMP_COLUMNS if c not in df.columns]
    if missing_ts_columns:
        log_error(
            f'{table_name}: missing required timestamp column(s): {missing_ts_columns}',
            report
            )

        return

    purchase_ts = parse_timestamps(df['purchase_time'])
    refund_ts = parse_timestamps(df['refund_time'])

    # Purchase time is mandatory
    null_purchase = df['purchase_time'].isna().sum()
    if null_purchase > 0:
        log_error(
            f'{table_name}: {null_purchase} record(s) with null `purchase_time`',
            report
            )

        return

    invalid_purchase = purchase_ts.isna().sum()
    if invalid_purchase > 0:
        log_error(
            f'{table_name}: {invalid_purchase} unparsable timestamp value(s) in `purchase_time`',
            report
            )

        return

    # Refund time is optional, but present values must parse
    invalid_refund = (refund_ts.isna() & df['refund_time'].notna()).sum()
    if invalid_refund > 0:
        log_error(
            f'{table_name}: {invalid_refund} unparsable timestamp value(s) in `refund_time`',
            report
            )

        return

    # Refund before Purchase
    refund_before_purchase = (refund_ts < purchase_ts).sum()
    if refund_before_purchase > 0:
        log_error(
            f'{table_name}: {refund_before_purchase} record(s) where refund precedes purchase',
            report
            )

        return


# ------------------------------------------------------------
# TRANSACTION AMOUNT VALIDATIONS
# ------------------------------------------------------------

def run_transaction_amount_validations(df: pd.DataFrame,
                                       table_name: str,
                                       report: Dict[str, List[str]]
                                       ) -> None:
    """
    Gross value validations.

    Stops if amounts cannot be read as non-negative numbers.
    """

    raw_amounts = df['gross_transaction_value']
    amounts = pd.to_numeric(raw_amounts, errors='coerce')

    null_count = raw_amounts.isna().sum()
    if null_count > 0:
        log_error(
            f'{table_name}: {null_count} row(s) with null `gross_transaction_value`',
            report
            )

        return

    non_numeric = amounts.isna().sum()
    if non_numeric > 0:
        log_error(
            f'{table_name}: {non_numeric} non-numeric value(s) in `gross_transaction_value`',
            report
            )

        return

    negative_count = (amounts < 0).sum()
    if negative_count > 0:
        log_error(
            f'{table_name}: {negative_count} negative value(s) in `gross_transaction_value`',
            report
            )


# ------------------------------------------------------------
# CROSS-TABLE VALIDATIONS
# ------------------------------------------------------------

def run_cross_table_validations(tables: Dict[str, pd.DataFrame],
                                report: Dict[str, List[str]]
                                ) -> None:
    """
    Cross-table validations.

    Item references are only warned about: the item join keeps running.
    """

    required_tables = ['transactions', 'items']
    missing_tables = [t for t in required_tables if t not in tables]

    if missing_tables:
        log_error(
            f'Cross-table validation failed: missing required table(s): {missing_tables}',
            report
            )

        return

    transactions_df = tables['transactions']
    items_df = tables['items']

    if 'item_id' not in transactions_df.columns or 'item_id' not in items_df.columns:

        return

    item_id_set = set(items_df['item_id'].dropna().unique())

    # Transactions to Items integrity
    orphan_items = ~transactions_df['item_id'].isin(item_id_set)
    if orphan_items.any():
        log_warning(
            f'transactions: {orphan_items.sum()} record(s) referencing item_id absent from items',
            report
            )

    # Null names still rank, as their own group
    null_names = items_df['item_name'].isna().sum() if 'item_name' in items_df.columns else 0
    if null_names > 0:
        log_warning(
            f'items: {null_names} record(s) with null `item_name`; '
            f'they rank as one unnamed group',
            report
            )

    # Items joined on item_id alone fan out when the id repeats across stores
    repeated = items_df.loc[items_df['item_id'].duplicated(keep=False), 'item_id']
    if not repeated.empty:
        log_warning(
            f'items: {repeated.nunique()} item_id value(s) listed under more than one store; '
            f'joins on item_id alone will fan out',
            report
            )


def validate_tables(tables: Dict[str, pd.DataFrame],
                    report: Dict[str, List[str]]
                    ) -> None:

    for table_name, config in TABLE_CONFIG.items():
        if table_name not in tables:
            log_error(f'{table_name}: table not loaded', report)

            continue

        df = tables[table_name]
        if not run_base_validations(df, table_name, config, report):

            continue

        if config['role'] == 'event_fact':
            run_event_fact_validations(df, table_name, report)
            run_transaction_amount_validations(df, table_name, report)

    run_cross_table_validations(tables, report)


# ------------------------------------------------------------
# Input-Output Helpers
# ------------------------------------------------------------

def load_csv_file(csv_path: str, table_name: str,
                  report: Dict[str, List[str]]
                  ) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(csv_path)
        log_info(f'Loaded {table_name} file: {os.path.basename(csv_path)} ({len(df)} rows)', report)

        return df

    except (OSError, ValueError) as e:
        log_error(f'Failed to load {table_name} file {csv_path}: {e}', report)

        return None


def load_logical_table(partition_path: str,
                       table_name: str,
                       report: Dict[str, List[str]]
                       ) -> Optional[pd.DataFrame]:

    """
    Load and concatenate all CSV files belonging to a logical table.
    Files are identified by filename prefix: <table_name>*.csv
    and concatenated in filename order.
    """

    pattern = os.path.join(partition_path, f'{table_name}*.csv')
    csv_files = sorted(glob.glob(pattern))

    if not csv_files:
        log_error(f'{table_name}: no files found matching pattern {pattern}', report)

        return None

    dfs = []
    for csv_path in csv_files:
        df = load_csv_file(csv_path, table_name, report)
        if df is not None:
            dfs.append(df)

    if not dfs:
        log_error(f'{table_name}: all matching files failed to load', report)

        return None

    combined_df = pd.concat(dfs, ignore_index=True)
    log_info(f'{table_name}: combined {len(csv_files)} file(s) into '
             f'{len(combined_df)} rows',
             report)

    return combined_df


def load_snapshot(partition_path: str,
                  report: Dict[str, List[str]]
                  ) -> Dict[str, pd.DataFrame]:
    tables: Dict[str, pd.DataFrame] = {}

    for table_name in TABLE_CONFIG:
        df = load_logical_table(partition_path, table_name, report)
        if df is not None:
            tables[table_name] = df

    return tables


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    for partition in PARTITIONS:
        partition_path = os.path.join(RAW_DATA_BASE_PATH, partition)
        tables = load_snapshot(partition_path, report)
        validate_tables(tables, report)

    log_info(
        f'Validation finished: {len(report["errors"])} error(s), '
        f'{len(report["warnings"])} warning(s)',
        report
        )

    if report['errors']:
        sys.exit(1)

    sys.exit(0)


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
