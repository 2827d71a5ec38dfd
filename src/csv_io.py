"""CSV adapters around the ledger: a lazy transaction reader and the balance writer."""

import csv
import logging
import re
from decimal import Decimal
from typing import Dict, Iterator, Mapping, Optional, TextIO

from ledger_models import Transaction, TransactionType, ClientAccount

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1
AMOUNT_PLACES = 4
MAX_AMOUNT_DIGITS = 28

ID_PATTERN = re.compile(r"[0-9]+")
AMOUNT_PATTERN = re.compile(r"[0-9]+(\.[0-9]+)?|\.[0-9]+")

OUTPUT_COLUMNS = ["client", "available", "held", "total", "locked"]


def read_transactions(filepath: str) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV file in file order.
    Rows that fail to parse are dropped. The file is opened on first iteration,
    and an OSError from opening it propagates to the caller.
    """
    with open(filepath, "r", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            transaction = parse_row(row)
            if transaction is not None:
                yield transaction


def parse_row(row: Mapping[Optional[str], object]) -> Optional[Transaction]:
    """Parse a DictReader row into a Transaction, or None if the row is malformed."""
    try:
        # Extra columns land under the None key and short rows leave None values.
        normalized = {
            k.strip(): v.strip()
            for k, v in row.items()
            if isinstance(k, str) and isinstance(v, str)
        }

        transaction_type = TransactionType(normalized["type"].lower())
        client_id = _parse_id(normalized["client"], MAX_CLIENT_ID)
        transaction_id = _parse_id(normalized["tx"], MAX_TRANSACTION_ID)

        amount = None
        amount_str = normalized.get("amount", "")
        if amount_str:
            amount = _parse_amount(amount_str)
        if not transaction_type.carries_amount:
            amount = None

        return Transaction(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except (KeyError, ValueError) as e:
        logger.debug(f"Failed to parse row {row}: {e!r}")
        return None


def _parse_id(value: str, upper_bound: int) -> int:
    if not ID_PATTERN.fullmatch(value):
        raise ValueError(f"id {value!r} is not a plain unsigned integer")
    parsed = int(value)
    if parsed > upper_bound:
        raise ValueError(f"id {parsed} out of range 0..{upper_bound}")
    return parsed


def _parse_amount(value: str) -> Decimal:
    if not AMOUNT_PATTERN.fullmatch(value):
        raise ValueError(f"amount {value!r} is not a plain non-negative decimal")
    amount = Decimal(value)
    if amount.as_tuple().exponent < -AMOUNT_PLACES:
        raise ValueError(f"amount {value!r} has more than {AMOUNT_PLACES} decimal places")
    # at most 28 significant digits, the precision of the default decimal context
    if amount.adjusted() >= MAX_AMOUNT_DIGITS - AMOUNT_PLACES:
        raise ValueError(f"amount {value!r} has more than {MAX_AMOUNT_DIGITS - AMOUNT_PLACES} integer digits")
    return amount


def format_decimal(value: Decimal) -> str:
    """Format decimal with exactly 4 decimal places."""
    return f"{value:.{AMOUNT_PLACES}f}"


def write_accounts(accounts: Dict[int, ClientAccount], stream: TextIO) -> None:
    """Write one row per client, ordered by client id."""
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for client_id in sorted(accounts.keys()):
        account = accounts[client_id]
        writer.writerow([
            client_id,
            format_decimal(account.available),
            format_decimal(account.held),
            format_decimal(account.total),
            str(account.locked).lower(),
        ])
