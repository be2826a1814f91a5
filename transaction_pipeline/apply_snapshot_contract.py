# =============================================================================
# Snapshot Structural Contract Enforcement
# =============================================================================
# - Enforce non-negotiable structural contracts on the transactions/items snapshot
# - Report contract violations to the caller instead of computing over them
# - Produce typed frames with a stable surrogate ordering for downstream facts


from typing import Dict, Iterable, List, Optional
import pandas as pd

from transaction_pipeline.validate_snapshot import (
    TIMESTAMP_COLUMNS,
    init_report,
    load_snapshot,
    log_error,
    log_info,
    parse_timestamps,
    validate_tables,
)


# Ordinal of each transaction in load order; the deterministic tie-break
# between transactions sharing a purchase_time.
SEQUENCE_COLUMN = 'transaction_seq'


class SnapshotContractError(ValueError):
    """
    Raised when a snapshot, or a frame handed to a fact derivation,
    violates its declared contract. Carries the full validation report.
    """

    def __init__(self, report: Dict[str, List[str]]):
        self.report = report
        errors = report['errors']
        super().__init__(
            f'snapshot contract violated ({len(errors)} error(s)): ' + '; '.join(errors)
        )


# ------------------------------------------------------------
# FATAL VALIDATION
# ------------------------------------------------------------

def require_contracted(df: pd.DataFrame,
                       columns: Iterable[str],
                       table_name: str
                       ) -> None:
    """
    Columns must be present, and timestamp columns already parsed.
    Any violation halts the derivation.
    """

    report = init_report()
    columns = list(columns)

    missing = [c for c in columns if c not in df.columns]
    if missing:
        log_error(f'{table_name}: missing required column(s): {missing}', report)

    unparsed = [
        c for c in columns
        if c in TIMESTAMP_COLUMNS and c in df.columns
        and not pd.api.types.is_datetime64_any_dtype(df[c])
    ]
    if unparsed:
        log_error(
            f'{table_name}: timestamp column(s) not parsed: {unparsed}; '
            f'apply the snapshot contract first',
            report
            )

    if report['errors']:
        raise SnapshotContractError(report)


# ------------------------------------------------------------
# CONTRACT ENFORCEMENT
# ------------------------------------------------------------

def coerce_transactions(df: pd.DataFrame) -> pd.DataFrame:
    """
    Parse timestamps, read amounts as numbers, and number rows in load order.
    """

    contracted = df.reset_index(drop=True).copy()

    for col in TIMESTAMP_COLUMNS:
        contracted[col] = parse_timestamps(contracted[col])

    contracted['gross_transaction_value'] = pd.to_numeric(
        contracted['gross_transaction_value']
        ).astype('float64')
    contracted[SEQUENCE_COLUMN] = range(len(contracted))

    return contracted


def enforce_snapshot_contract(tables: Dict[str, pd.DataFrame],
                              report: Optional[Dict[str, List[str]]] = None
                              ) -> Dict[str, pd.DataFrame]:
    """
    Validate the snapshot and return typed copies of both tables.

    Raises SnapshotContractError if any validation error was recorded.
    Warnings are kept in the report and do not block.
    """

    if report is None:
        report = init_report()

    validate_tables(tables, report)

    if report['errors']:
        raise SnapshotContractError(report)

    transactions = coerce_transactions(tables['transactions'])
    items = tables['items'].reset_index(drop=True).copy()

    log_info(
        f'Snapshot contract applied: {len(transactions)} transaction(s), '
        f'{len(items)} item(s)',
        report
        )

    return {'transactions': transactions, 'items': items}


# ------------------------------------------------------------
# INPUT-OUTPUT HELPER
# ------------------------------------------------------------

def load_contracted_snapshot(partition_path: str,
                             report: Optional[Dict[str, List[str]]] = None
                             ) -> Dict[str, pd.DataFrame]:
    """
    Load a snapshot partition from disk and enforce its contract.
    Does not modify raw data.
    """

    if report is None:
        report = init_report()

    tables = load_snapshot(partition_path, report)

    return enforce_snapshot_contract(tables, report)


# =============================================================================
# END OF SCRIPT
# =============================================================================
