import csv
import logging
import re
from typing import Dict, Iterator, Optional

from errors import DecodeError, InputFormatError, InputSourceError
from models import ProcessingStats, TransactionRecord, TransactionType
from money import parse_amount

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("type", "client", "tx")
AMOUNT_COLUMN = "amount"
# u32 ids have at most 10 digits
_INTEGER_PATTERN = re.compile(r"[0-9]{1,10}")


def _parse_int(value: Optional[str], field: str) -> int:
    if value is None or not value:
        raise DecodeError(f"missing {field}")
    if not _INTEGER_PATTERN.fullmatch(value):
        raise DecodeError(f"{field} is not an unsigned integer of at most 10 digits: {value!r}")
    return int(value)


def parse_row(row: Dict[Optional[str], str]) -> TransactionRecord:
    """
    Decode one CSV row (as produced by csv.DictReader) into a TransactionRecord.
    Raises DecodeError when the row is malformed.
    """
    if None in row:
        raise DecodeError(f"too many fields: {row[None]!r}")

    normalized = {k: (v.strip() if v is not None else None) for k, v in row.items()}

    type_str = (normalized.get("type") or "").lower()
    try:
        transaction_type = TransactionType(type_str)
    except ValueError:
        raise DecodeError(f"unknown transaction type: {type_str!r}") from None

    client_id = _parse_int(normalized.get("client"), "client")
    transaction_id = _parse_int(normalized.get("tx"), "tx")

    amount = None
    amount_str = normalized.get(AMOUNT_COLUMN)
    if amount_str:
        amount = parse_amount(amount_str)

    try:
        return TransactionRecord(
            transaction_type=transaction_type,
            client_id=client_id,
            transaction_id=transaction_id,
            amount=amount,
        )
    except ValueError as e:
        raise DecodeError(str(e)) from None


def _read_header(reader: csv.DictReader, filepath: str) -> None:
    if reader.fieldnames is None:
        raise InputFormatError(f"{filepath}: no header row")

    reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
    missing = [column for column in REQUIRED_COLUMNS if column not in reader.fieldnames]
    if missing:
        raise InputFormatError(f"{filepath}: missing columns {', '.join(missing)}")


def read_transactions(filepath: str, stats: Optional[ProcessingStats] = None) -> Iterator[TransactionRecord]:
    """
    Yield decoded records from a CSV file in file order.
    Malformed rows are logged and skipped; an unreadable or unframeable file raises.
    """
    try:
        f = open(filepath, "r", newline="", encoding="utf-8")
    except OSError as e:
        raise InputSourceError(f"cannot open {filepath}: {e.strerror or e}") from e

    with f:
        try:
            reader = csv.DictReader(f)
            _read_header(reader, filepath)
            for row in reader:
                try:
                    record = parse_row(row)
                except DecodeError as e:
                    logger.warning(f"Skipping line {reader.line_num}: {e}")
                    if stats is not None:
                        stats.record_decode_error()
                    continue
                yield record
        except (csv.Error, UnicodeDecodeError) as e:
            raise InputFormatError(f"{filepath}: {e}") from e
        except OSError as e:
            raise InputSourceError(f"cannot read {filepath}: {e}") from e
