import csv
import logging
from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Dict, Iterable, Iterator, Optional, TextIO

from errors import MalformedInputError, RecordParseError
from models import (
    AMOUNT_PRECISION,
    MAX_AMOUNT,
    MAX_CLIENT_ID,
    MAX_TRANSACTION_ID,
    ClientAccount,
    Transaction,
    TransactionType,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_HEADER = ("client", "available", "held", "total", "locked")


def read_transactions(stream: TextIO, on_skip=None) -> Iterator[Transaction]:
    """
    Yield transactions from a CSV stream in file order.

    Rows with bad fields are logged and skipped (on_skip is called with the error).
    A missing required column or broken CSV syntax raises MalformedInputError.
    """
    reader = csv.DictReader(stream)
    try:
        fieldnames = reader.fieldnames
    except csv.Error as e:
        raise MalformedInputError(f"Unreadable CSV header: {e}") from e

    if fieldnames is None:
        return

    columns = {name.strip().lower() for name in fieldnames if name is not None}
    missing = [name for name in REQUIRED_COLUMNS if name not in columns]
    if missing:
        raise MalformedInputError(f"Missing required column(s): {', '.join(missing)}")

    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            raise MalformedInputError(f"CSV syntax error on line {reader.line_num}: {e}") from e

        try:
            yield parse_row(row)
        except RecordParseError as e:
            logger.warning(f"Skipping line {reader.line_num}: {e}")
            if on_skip is not None:
                on_skip(e)


def parse_row(row: Dict[Optional[str], Optional[str]]) -> Transaction:
    """Parse one CSV row into a Transaction."""
    # Extra columns land under the None key as a list; they are ignored.
    normalized = {k.strip().lower(): (v or "").strip() for k, v in row.items() if k is not None}

    type_str = normalized.get("type", "").lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise RecordParseError(f"unknown transaction type {type_str!r}") from None

    client_id = _parse_id(normalized.get("client", ""), "client", MAX_CLIENT_ID)
    transaction_id = _parse_id(normalized.get("tx", ""), "tx", MAX_TRANSACTION_ID)

    amount = None
    if transaction_type.carries_amount:
        amount = parse_amount(normalized.get("amount", ""))

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def _parse_id(value: str, field_name: str, maximum: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        raise RecordParseError(f"{field_name} {value!r} is not an integer") from None
    if not 0 <= parsed <= maximum:
        raise RecordParseError(f"{field_name} {parsed} out of range 0..{maximum}")
    return parsed


def parse_amount(value: str) -> Decimal:
    """Parse an amount below MAX_AMOUNT, truncating anything past four decimal places."""
    if not value:
        raise RecordParseError("missing amount")
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise RecordParseError(f"amount {value!r} is not a finite number")
        if abs(amount) >= MAX_AMOUNT:
            raise RecordParseError(f"amount {value!r} exceeds {MAX_AMOUNT}")
        return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)
    except InvalidOperation:
        raise RecordParseError(f"amount {value!r} is not a decimal number") from None


def format_amount(value: Decimal) -> str:
    """Format decimal with exactly four decimal places."""
    return f"{value.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN):f}"


def write_accounts(accounts: Iterable[ClientAccount], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for account in accounts:
        writer.writerow(
            (
                account.client_id,
                format_amount(account.available),
                format_amount(account.held),
                format_amount(account.total),
                str(account.locked).lower(),
            )
        )
