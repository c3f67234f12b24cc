"""
Text normalization ahead of pattern matching.

Statement text is flattened into clean single-line transactions. CSV text is
split into header and rows with quoted fields kept intact.
"""

import csv
import io
import re
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from expense_engine.utils.patterns import LEADING_DATE, TRAILING_AMOUNT

logger = logging.getLogger(__name__)

# Continuation lines joined onto a date-led line that has no amount yet
MAX_CONTINUATION_LINES = 2

CSV_SEPARATORS = (';', '\t', ',')


@dataclass
class CsvTable:
    """CSV content split into a header and data rows."""
    separator: str
    header: List[str]
    rows: List[List[str]] = field(default_factory=list)

    def flatten(self) -> str:
        """Render rows as space-joined lines for the text strategies."""
        return '\n'.join(
            '  '.join(cell for cell in row if cell)
            for row in [self.header] + self.rows
        )


def normalize_ocr_spaces(text: str) -> str:
    """
    Remove extraction-induced spaces between single characters.

    "T I M  H O R T O N S" -> "TIM HORTONS". Only applied when more than 45%
    of the leading sample is spaces, so ordinary text is untouched.
    """
    sample = text[:500]
    if not sample:
        return text

    space_ratio = sample.count(' ') / len(sample)
    if space_ratio <= 0.45:
        return text

    # Word gaps are two or more spaces; letter gaps are one
    lines = []
    for line in text.split('\n'):
        words = re.split(r' {2,}', line)
        lines.append(' '.join(word.replace(' ', '') for word in words))
    return '\n'.join(lines)


def _clean_line(line: str) -> str:
    line = line.replace('\t', ' ').replace('\xa0', ' ')
    return re.sub(r' {2,}', ' ', line).strip()


def join_wrapped_lines(lines: List[str]) -> List[str]:
    """
    Join wrapped transaction descriptions back onto their date line.

    A line that starts with a date but has no trailing amount absorbs up to
    MAX_CONTINUATION_LINES following lines that do not start with a date,
    stopping as soon as the joined line ends in an amount.
    """
    joined: List[str] = []
    i = 0

    while i < len(lines):
        line = lines[i]
        i += 1

        if LEADING_DATE.match(line) and not TRAILING_AMOUNT.search(line):
            absorbed = 0
            candidate = line
            while (
                i + absorbed < len(lines)
                and absorbed < MAX_CONTINUATION_LINES
                and not LEADING_DATE.match(lines[i + absorbed])
            ):
                candidate = f"{candidate} {lines[i + absorbed]}"
                absorbed += 1
                if TRAILING_AMOUNT.search(candidate):
                    break

            if TRAILING_AMOUNT.search(candidate):
                line = candidate
                i += absorbed

        joined.append(line)

    return joined


def normalize_statement_text(text: Optional[str]) -> str:
    """
    Produce a clean line stream from raw statement or receipt text.

    Args:
        text: Text extracted from a PDF page, receipt or pasted statement

    Returns:
        Newline-separated text, blank lines removed; empty string for no text
    """
    if not text or not text.strip():
        return ''

    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = normalize_ocr_spaces(text)

    lines = [_clean_line(line) for line in text.split('\n')]
    lines = [line for line in lines if line]

    joined = join_wrapped_lines(lines)
    if len(joined) != len(lines):
        logger.debug("Joined %d wrapped line(s)", len(lines) - len(joined))

    return '\n'.join(joined)


def detect_separator(header_line: str) -> str:
    """
    Pick the CSV field separator from the header line.

    Semicolon wins over tab, tab over comma; comma is the default.
    """
    for separator in CSV_SEPARATORS:
        if separator in header_line:
            return separator
    return ','


def split_csv(text: Optional[str]) -> Optional[CsvTable]:
    """
    Split CSV text into header and rows.

    Quoted fields that contain the separator stay whole; blank rows are
    skipped and cells are stripped.

    Returns:
        CsvTable, or None when the text holds no header line
    """
    if not text or not text.strip():
        return None

    text = text.lstrip('\ufeff').replace('\r\n', '\n').replace('\r', '\n')
    first_line = next((line for line in text.split('\n') if line.strip()), '')
    separator = detect_separator(first_line)

    reader = csv.reader(io.StringIO(text.strip('\n')), delimiter=separator, skipinitialspace=True)
    rows = [[cell.strip() for cell in row] for row in reader]
    rows = [row for row in rows if any(row)]

    if not rows:
        return None

    return CsvTable(separator=separator, header=rows[0], rows=rows[1:])
