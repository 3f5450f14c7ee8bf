"""
Statement normalization: bank CSV rows -> FreeAgent records.

Responsibilities:
- resolve the declared source format
- required column checks (against the first row's headers)
- per-row validation, aborting on the first bad row
- date, amount and description normalization
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union

from . import rules
from .errors import MissingColumnError, NormalizationError, RowValidationError
from .log import get_logger
from .models import NormalizedRecord, SourceFormat

logger = get_logger(__name__)

RawRecord = Mapping[str, Optional[str]]

_QUANTUM = Decimal(1).scaleb(-rules.AMOUNT_DECIMALS)
# Wide enough for every finite double quantized to cents.
_WIDE_CONTEXT = Context(prec=400)


def sanitize_description(value: Optional[str]) -> str:
    """Make a description safe for unquoted CSV output."""
    text = value or ""
    for ch in rules.DESCRIPTION_STRIP_CHARS:
        text = text.replace(ch, "")
    return rules.LINE_BREAK_PATTERN.sub(" ", text).strip()


def format_amount(raw: Optional[str], field: str, row: int) -> str:
    """
    Parse ``raw`` as a float and render it with exactly two decimals.

    Rounding works on the float's exact binary value, half away from zero,
    so ``1.005`` renders as ``1.00`` and ``0.125`` as ``0.13``.
    """
    if raw is None or not raw.strip():
        raise RowValidationError(f"Missing '{field}' in row {row}", row=row, field=field, value=raw)

    try:
        value = float(raw.strip())
    except ValueError:
        value = math.nan
    if not math.isfinite(value):
        raise RowValidationError(
            f'Invalid \'{field}\' in row {row}: "{raw}". Not a valid number.',
            row=row,
            field=field,
            value=raw,
        )

    # "-0" renders unsigned
    if value == 0:
        value = 0.0
    amount = Decimal(value).quantize(_QUANTUM, rounding=ROUND_HALF_UP, context=_WIDE_CONTEXT)
    return f"{amount:.{rules.AMOUNT_DECIMALS}f}"


def _require_value(record: RawRecord, field: str, row: int) -> str:
    value = record.get(field)
    if not value:
        raise RowValidationError(f"Missing '{field}' in row {row}", row=row, field=field, value=value)
    return value


def _check_ddmmyyyy(value: str, field: str, row: int) -> str:
    if not rules.OUTPUT_DATE_PATTERN.fullmatch(value):
        raise RowValidationError(
            f'Invalid date format in row {row}: "{value}". Expected dd/mm/yyyy.',
            row=row,
            field=field,
            value=value,
        )
    return value


def _revolut_date(value: str, field: str, row: int) -> str:
    # "YYYY-MM-DD HH:MM:SS" -> "DD/MM/YYYY"
    parts = value.split(" ")[0].split("-")
    widths = tuple(len(p) for p in parts)
    if widths != rules.REVOLUT_DATE_SEGMENTS or not all(p.isascii() and p.isdigit() for p in parts):
        raise RowValidationError(
            f'Invalid date format in row {row}: "{value}". Expected YYYY-MM-DD.',
            row=row,
            field=field,
            value=value,
        )
    year, month, day = parts
    return f"{day}/{month}/{year}"


def _starling(record: RawRecord, row: int) -> NormalizedRecord:
    date = _check_ddmmyyyy(_require_value(record, "Date", row), "Date", row)
    amount = format_amount(record.get("Amount (GBP)"), "Amount (GBP)", row)

    description = record.get("Counter Party") or ""
    reference = record.get(rules.STARLING_REFERENCE_COLUMN)
    if reference:
        description += rules.REFERENCE_SEPARATOR + reference

    return NormalizedRecord(date=date, amount=amount, description=sanitize_description(description))


def _revolut(record: RawRecord, row: int) -> NormalizedRecord:
    date = _revolut_date(_require_value(record, "Completed Date", row), "Completed Date", row)
    amount = format_amount(record.get("Amount"), "Amount", row)
    return NormalizedRecord(
        date=date,
        amount=amount,
        description=sanitize_description(record.get("Description")),
    )


def _freeagent(record: RawRecord, row: int) -> NormalizedRecord:
    date = _check_ddmmyyyy(_require_value(record, "Date", row), "Date", row)
    amount = format_amount(record.get("Amount"), "Amount", row)
    return NormalizedRecord(
        date=date,
        amount=amount,
        description=sanitize_description(record.get("Description")),
    )


_MAPPERS: Dict[SourceFormat, Callable[[RawRecord, int], NormalizedRecord]] = {
    SourceFormat.STARLING: _starling,
    SourceFormat.REVOLUT: _revolut,
    SourceFormat.FREEAGENT: _freeagent,
}


def check_headers(headers: Sequence[str], source_format: SourceFormat) -> None:
    """Raise ``MissingColumnError`` for the first required column not in ``headers``."""
    found = list(headers)
    for column in source_format.required_columns:
        if column not in found:
            raise MissingColumnError(column, found, source_format=source_format)


def normalize(
    records: Sequence[RawRecord],
    source_format: Union[SourceFormat, str, None],
) -> List[NormalizedRecord]:
    """
    Convert bank rows to FreeAgent records.

    All or nothing: the first invalid row raises and no records are returned.
    An empty input yields an empty list.
    """
    fmt = SourceFormat.parse(source_format)
    if not records:
        return []

    try:
        check_headers(list(records[0].keys()), fmt)
        mapper = _MAPPERS[fmt]
        out = [mapper(record, index + rules.ROW_NUMBER_OFFSET) for index, record in enumerate(records)]
    except NormalizationError as exc:
        exc.source_format = fmt
        logger.warning("conversion_failed", source_format=fmt.value, error=exc.message)
        raise

    logger.debug("conversion_completed", source_format=fmt.value, rows=len(out))
    return out
