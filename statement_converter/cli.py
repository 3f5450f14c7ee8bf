"""Command line entry point.

Usage::

    statement-converter convert statement.csv --bank starling
    statement-converter convert export.csv --bank revolut -o out.csv
    statement-converter convert export.csv --bank revolut --stdout
    statement-converter formats

Errors go to stderr; the exit status is ``1`` for conversion failures and
``2`` when the input file cannot be read.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import get_settings
from .csv_io import decode_statement, encode_csv, output_filename
from .errors import ConverterError, NormalizationError
from .log import configure_logging, get_logger
from .models import SourceFormat
from .normalize import normalize

logger = get_logger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statement-converter",
        description="Convert bank statement CSV exports to FreeAgent's import format.",
    )
    parser.add_argument("--log-level", default=None, help="Override STATEMENT_CONVERTER_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    convert = sub.add_parser("convert", help="Convert one CSV file")
    convert.add_argument("input", type=Path, help="Bank CSV export")
    convert.add_argument(
        "--bank",
        required=True,
        choices=[fmt.value for fmt in SourceFormat],
        help="Source format of the input file",
    )
    target = convert.add_mutually_exclusive_group()
    target.add_argument("-o", "--output", type=Path, help="Output path (default: <input>_freeagent.csv)")
    target.add_argument("--stdout", action="store_true", help="Write the converted CSV to stdout")

    sub.add_parser("formats", help="List supported source formats")
    return parser


def cmd_convert(input_path: Path, bank: str, output: Path | None = None, to_stdout: bool = False) -> int:
    fmt = SourceFormat.parse(bank)

    try:
        raw = input_path.read_bytes()
    except OSError as exc:
        print(f"Error: cannot read {input_path}: {exc.strerror or exc}", file=sys.stderr)
        return 2

    try:
        records = normalize(decode_statement(raw, fmt), fmt)
    except NormalizationError as exc:
        print(f"Error during {fmt.label} conversion: {exc.message}", file=sys.stderr)
        return 1
    except ConverterError as exc:
        print(exc.message, file=sys.stderr)
        return 1

    text = encode_csv(records)
    if to_stdout:
        sys.stdout.write(text)
        return 0

    target = output or input_path.with_name(output_filename(input_path.name))
    with target.open("w", encoding=get_settings().output_encoding, newline="") as f:
        f.write(text)

    logger.info("file_converted", input=str(input_path), output=str(target), rows=len(records))
    print(f"Wrote {len(records)} rows to {target}", file=sys.stderr)
    return 0


def cmd_formats() -> int:
    for fmt in SourceFormat:
        print(f"{fmt.value}\t{fmt.label}\t{', '.join(fmt.required_columns)}")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, json_output=settings.log_json)

    if args.command == "convert":
        return cmd_convert(args.input, args.bank, output=args.output, to_stdout=args.stdout)
    return cmd_formats()


if __name__ == "__main__":
    raise SystemExit(main())
