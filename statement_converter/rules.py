"""
Deterministic conversion rules.

Column names are matched exactly as the banks export them.
"""

import re

STARLING_COLUMNS = ("Date", "Amount (GBP)", "Counter Party")
STARLING_REFERENCE_COLUMN = "Reference"

REVOLUT_COLUMNS = ("Completed Date", "Amount", "Description")

FREEAGENT_COLUMNS = ("Date", "Amount", "Description")

# dd/mm/yyyy, ASCII digits only
OUTPUT_DATE_PATTERN = re.compile(r"^\d{2}/\d{2}/\d{4}$", re.ASCII)
# YYYY-MM-DD segment widths
REVOLUT_DATE_SEGMENTS = (4, 2, 2)

DESCRIPTION_STRIP_CHARS = (",", '"')
LINE_BREAK_PATTERN = re.compile(r"\r\n|\n|\r")
REFERENCE_SEPARATOR = " - "

AMOUNT_DECIMALS = 2

# Header row + 1-based index
ROW_NUMBER_OFFSET = 2

OUTPUT_SUFFIX = "_freeagent.csv"
OUTPUT_FALLBACK_BASENAME = "download"
OUTPUT_DELIMITER = ","
OUTPUT_LINE_TERMINATOR = "\r\n"
