"""LedgerParser — turns pinned payout CSV text into LedgerRows."""

import csv
import io
import logging

from royaltyclaims.domain.models.claims import ZERO_ADDRESS, LedgerRow
from royaltyclaims.exceptions import LedgerFormatError

logger = logging.getLogger(__name__)

INDEX_COLUMN = "index"
ADDRESS_COLUMN = "address"
AMOUNT_COLUMN = "amount"


class LedgerParser:
    """Parse delimiter-separated ledger text with a header row.

    Headers are matched case-insensitively, so `Index`/`Address`/`Amount`
    are accepted too. In the default lenient mode a row missing a field (or
    carrying an unparseable one) gets a zero default instead of aborting the
    whole ledger; `strict=True` raises LedgerFormatError instead.
    """

    def __init__(self, delimiter: str = ",", strict: bool = False) -> None:
        self._delimiter = delimiter
        self._strict = strict

    def parse(self, text: str) -> list[LedgerRow]:
        reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), delimiter=self._delimiter)
        header: list[str] | None = None
        rows: list[LedgerRow] = []

        for line_no, values in enumerate(reader, start=1):
            values = [v.strip() for v in values]
            if not any(values):
                continue
            if header is None:
                header = values
                continue
            raw = {name: values[i] if i < len(values) else "" for i, name in enumerate(header)}
            rows.append(self._row(raw, line_no))

        if header is not None:
            missing = [c for c in (INDEX_COLUMN, ADDRESS_COLUMN, AMOUNT_COLUMN) if _column(header, c) is None]
            if missing:
                if self._strict:
                    raise LedgerFormatError(f"Ledger header missing columns: {missing}")
                logger.warning("Ledger header %s is missing columns %s", header, missing)
        return rows

    def _row(self, raw: dict[str, str], line_no: int) -> LedgerRow:
        index_text = _lookup(raw, INDEX_COLUMN)
        address = _lookup(raw, ADDRESS_COLUMN)
        amount_text = _lookup(raw, AMOUNT_COLUMN)

        if not address:
            self._fallback(line_no, ADDRESS_COLUMN, address)
            address = ZERO_ADDRESS

        extra = {
            k: v for k, v in raw.items() if k.lower() not in (INDEX_COLUMN, ADDRESS_COLUMN, AMOUNT_COLUMN)
        }
        return LedgerRow(
            index=self._to_int(index_text, line_no, INDEX_COLUMN),
            address=address,
            amount=self._to_int(amount_text, line_no, AMOUNT_COLUMN),
            extra=extra,
        )

    def _to_int(self, text: str, line_no: int, column: str) -> int:
        if not text:
            self._fallback(line_no, column, text)
            return 0
        try:
            value = int(text)
        except ValueError:
            self._fallback(line_no, column, text)
            return 0
        if value < 0:
            self._fallback(line_no, column, text)
            return 0
        return value

    def _fallback(self, line_no: int, column: str, value: str) -> None:
        if self._strict:
            raise LedgerFormatError(f"Ledger line {line_no}: invalid {column} {value!r}")
        logger.warning("Ledger line %d: invalid %s %r, defaulting", line_no, column, value)


def _column(header: list[str], name: str) -> str | None:
    for h in header:
        if h.lower() == name:
            return h
    return None


def _lookup(raw: dict[str, str], name: str) -> str:
    # exact lowercase, then capitalized, then any casing
    for key in (name, name.capitalize()):
        if raw.get(key):
            return raw[key]
    for key, value in raw.items():
        if key.lower() == name and value:
            return value
    return ""
