"""Ledger snapshot persistence as a single parquet table."""
from __future__ import annotations

import logging
from pathlib import Path

import pyarrow as pa
import pyarrow.parquet as pq

from .ledger import Account, Ledger

logger = logging.getLogger(__name__)

LEDGER_SCHEMA = pa.schema(
    [
        ("pubkey", pa.binary(32)),
        ("owner", pa.binary(32)),
        ("lamports", pa.uint64()),
        ("data", pa.binary()),
    ]
)


def save_ledger(ledger: Ledger, path: Path) -> None:
    path = Path(path)
    rows = [
        {"pubkey": key, "owner": acct.owner, "lamports": int(acct.lamports), "data": acct.data}
        for key, acct in sorted(ledger.accounts.items())
    ]
    path.parent.mkdir(parents=True, exist_ok=True)
    table = pa.Table.from_pylist(rows, schema=LEDGER_SCHEMA)
    pq.write_table(table, path)
    logger.debug("saved %d account(s) to %s", len(rows), path)


def load_ledger(path: Path, ledger: Ledger | None = None) -> Ledger:
    """Load accounts from ``path`` into ``ledger`` (a fresh one by default).

    A missing file yields an empty ledger. Programs are not persisted; the
    caller registers them.
    """
    path = Path(path)
    ledger = ledger if ledger is not None else Ledger()
    if not path.exists():
        logger.debug("no ledger at %s, starting empty", path)
        return ledger

    table = pq.read_table(path)
    for row in table.to_pylist():
        ledger.accounts[bytes(row["pubkey"])] = Account(
            lamports=int(row["lamports"]),
            owner=bytes(row["owner"]),
            data=bytes(row["data"]),
        )
    logger.debug("loaded %d account(s) from %s", table.num_rows, path)
    return ledger
