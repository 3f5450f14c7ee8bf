"""
CSV reading and writing around the normalizer.

- decode: bytes -> list of header-keyed rows (encoding detected, blank lines
  skipped, ragged rows reported)
- encode: FreeAgent records -> header-less, unquoted CSV text
- output file naming
"""

from __future__ import annotations

import csv
import io
import re
from pathlib import PurePath
from typing import Dict, Iterable, List, Optional, Sequence

from charset_normalizer import from_bytes

from . import rules
from .errors import CsvDecodeError
from .log import get_logger
from .models import NormalizedRecord, SourceFormat

logger = get_logger(__name__)

_EXTENSION = re.compile(r"\.[^/.]+$")


def decode_text(raw: bytes) -> str:
    """
    Decode input bytes to text.

    Rules:
    - Detect encoding best-effort via charset-normalizer.
    - A UTF-8 BOM is dropped.
    - If decode fails, fall back to UTF-8, then to UTF-8 with replacement characters.
    """
    match = from_bytes(raw).best()
    decode_used = match.encoding if match is not None else "utf-8"

    if raw.startswith(b"\xef\xbb\xbf") and decode_used.lower().replace("-", "_") in ("utf_8", "utf8"):
        decode_used = "utf-8-sig"

    try:
        return raw.decode(decode_used)
    except (LookupError, UnicodeDecodeError):
        logger.info("csv_decode_fallback", detected=decode_used)

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        return raw.decode("utf-8-sig", errors="replace")


def _is_blank(row: List[str]) -> bool:
    return not row or (len(row) == 1 and row[0] == "")


def decode_csv(raw: bytes, fieldnames: Optional[Sequence[str]] = None) -> List[Dict[str, Optional[str]]]:
    """
    Parse CSV bytes using the first non-blank line as the header row.

    When ``fieldnames`` is given the file has no header row and every
    non-blank line is data. Rows shorter than the header get ``None`` for the
    missing columns; every short or long row is collected, and any such issue
    raises ``CsvDecodeError``.
    """
    text = decode_text(raw)
    reader = csv.reader(io.StringIO(text, newline=""))

    header: Optional[List[str]] = list(fieldnames) if fieldnames is not None else None
    records: List[Dict[str, Optional[str]]] = []
    issues: List[str] = []

    try:
        for row in reader:
            if _is_blank(row):
                continue
            if header is None:
                header = row
                continue

            # reader.line_num counts physical lines, which is what a person sees
            if len(row) < len(header):
                issues.append(
                    f"Too few fields: expected {len(header)} fields but parsed {len(row)} (line {reader.line_num})"
                )
            elif len(row) > len(header):
                issues.append(
                    f"Too many fields: expected {len(header)} fields but parsed {len(row)} (line {reader.line_num})"
                )
            record: Dict[str, Optional[str]] = dict.fromkeys(header)
            record.update(zip(header, row))
            records.append(record)
    except csv.Error as exc:
        issues.append(str(exc))

    if issues:
        logger.warning("csv_decode_failed", issues=len(issues))
        raise CsvDecodeError(issues)

    logger.debug("csv_decoded", rows=len(records), columns=len(header or []))
    return records


def decode_statement(raw: bytes, source_format: SourceFormat) -> List[Dict[str, Optional[str]]]:
    """Decode an upload for ``source_format``; FreeAgent files carry no header row."""
    if source_format is SourceFormat.FREEAGENT:
        return decode_csv(raw, fieldnames=rules.FREEAGENT_COLUMNS)
    return decode_csv(raw)


def encode_csv(records: Iterable[NormalizedRecord]) -> str:
    """Serialize records as ``date,amount,description`` lines with no header and no quoting."""
    out = io.StringIO(newline="")
    writer = csv.writer(
        out,
        delimiter=rules.OUTPUT_DELIMITER,
        lineterminator=rules.OUTPUT_LINE_TERMINATOR,
        quoting=csv.QUOTE_NONE,
        escapechar=None,
    )
    for record in records:
        writer.writerow(record.as_row())
    return out.getvalue()


def encode_csv_bytes(records: Iterable[NormalizedRecord], encoding: str = "utf-8") -> bytes:
    return encode_csv(records).encode(encoding)


def output_filename(name: Optional[str]) -> str:
    """``statement.csv`` -> ``statement_freeagent.csv``."""
    base = _EXTENSION.sub("", PurePath(name or "").name)
    return f"{base or rules.OUTPUT_FALLBACK_BASENAME}{rules.OUTPUT_SUFFIX}"
