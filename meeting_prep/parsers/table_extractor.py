"""
Markdown table extraction from free agent text.

Work IQ usually answers list questions with a pipe table somewhere in the
middle of conversational prose, e.g.::

    | # | Subject | Start | End | Organizer |
    |---|---------|-------|-----|-----------|
    | 1 | Title   | 2026-01-26T08:00:00 | 2026-01-26T09:00:00 | Name |

The header is located by column semantics rather than position, so extra or
reordered columns are tolerated.
"""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from loguru import logger

from meeting_prep.utils.markdown_normalizer import (
    clean_cell,
    is_pipe_row,
    is_separator_row,
    split_table_row,
)

# Semantic column name -> header cell pattern (case-insensitive substring)
COLUMN_PATTERNS: Dict[str, re.Pattern] = {
    "subject": re.compile(r"subject|title", re.IGNORECASE),
    "start": re.compile(r"start", re.IGNORECASE),
    "end": re.compile(r"\bend", re.IGNORECASE),
    "organizer": re.compile(r"organi[sz]er|organi[sz]ed", re.IGNORECASE),
    "transcript": re.compile(r"transcript|transcribed|has\s*transcript", re.IGNORECASE),
}

_NUMBERED_ROW_RE = re.compile(r"^\|?\s*\d+\s*\|\s*(.+?)\s*\|\s*(.+?)\s*\|\s*(.+?)\s*\|")
_NOISE_LINE_RE = re.compile(r"^(here|i found|below|>|online|timezone)", re.IGNORECASE)
_BARE_RULE_RE = re.compile(r"^\|?[\s\-:]+\|?$")
_INDEX_HEADER_RE = re.compile(r"^\| *#")


def _column_pattern(name: str) -> re.Pattern:
    pattern = COLUMN_PATTERNS.get(name)
    if pattern is None:
        pattern = re.compile(re.escape(name), re.IGNORECASE)
    return pattern


def map_header(cells: List[str], columns: Iterable[str]) -> Dict[str, int]:
    """Map each semantic column to the first header cell matching it.

    A cell is claimed by at most one column, in the order ``columns`` is given.
    """
    column_map: Dict[str, int] = {}
    claimed = set()
    for name in columns:
        pattern = _column_pattern(name)
        for idx, cell in enumerate(cells):
            if idx in claimed:
                continue
            if pattern.search(clean_cell(cell)):
                column_map[name] = idx
                claimed.add(idx)
                break
    return column_map


def find_header(lines: List[str], required: Iterable[str]) -> Optional[int]:
    """Index of the first pipe row whose cells satisfy every required column."""
    required = list(required)
    for idx, line in enumerate(lines):
        if not is_pipe_row(line) or is_separator_row(line):
            continue
        column_map = map_header(split_table_row(line), required)
        if all(name in column_map for name in required):
            return idx
    return None


def extract_table(
    text: Optional[str],
    required_columns: Iterable[str],
    optional_columns: Iterable[str] = (),
) -> List[Dict[str, str]]:
    """Extract rows of the first table whose header has the required columns.

    Args:
        text: Free agent text possibly containing a markdown table.
        required_columns: Semantic names that must all appear in the header.
        optional_columns: Semantic names mapped when present.

    Returns:
        One ``{column: cleaned cell}`` dict per data row, in source order.
        Missing optional cells are empty strings. Returns ``[]`` when no
        qualifying header exists.
    """
    if not text:
        return []

    required = list(required_columns)
    optional = [c for c in optional_columns if c not in required]
    lines = [ln.strip() for ln in text.split("\n") if ln.strip()]

    header_idx = find_header(lines, required)
    if header_idx is None:
        return []

    column_map = map_header(split_table_row(lines[header_idx]), required + optional)

    rows: List[Dict[str, str]] = []
    for line in lines[header_idx + 1:]:
        if not is_pipe_row(line) or is_separator_row(line):
            continue
        cells = split_table_row(line)
        row = {}
        for name in required + optional:
            idx = column_map.get(name)
            row[name] = clean_cell(cells[idx]) if idx is not None and idx < len(cells) else ""
        rows.append(row)

    logger.debug(f"Extracted {len(rows)} table rows (columns: {sorted(column_map)})")
    return rows


def extract_numbered_rows(text: Optional[str]) -> List[Dict[str, str]]:
    """Looser extractor for ``| n | subject | start | end |`` lines without a usable header.

    Returns rows with ``subject``, ``start`` and ``end`` keys; values are
    left uncleaned so callers keep the exact source text.
    """
    if not text:
        return []

    rows: List[Dict[str, str]] = []
    for line in (ln.strip() for ln in text.split("\n")):
        if not line:
            continue
        if _BARE_RULE_RE.match(line) or _NOISE_LINE_RE.match(line) or _INDEX_HEADER_RE.match(line):
            continue
        m = _NUMBERED_ROW_RE.match(line)
        if m:
            rows.append({"subject": m.group(1), "start": m.group(2), "end": m.group(3)})
    return rows


def filter_table_rows(
    text: Optional[str],
    header_columns: Iterable[str],
    filter_column: str,
    accept: re.Pattern,
) -> Optional[str]:
    """Rebuild a table keeping only rows whose ``filter_column`` cell matches ``accept``.

    Returns ``None`` when the table or the filter column is missing, or when
    no row survives, so the caller can keep the unfiltered text.
    """
    if not text:
        return None

    lines = [ln.strip() for ln in text.split("\n") if ln.strip()]
    header_idx = find_header(lines, header_columns)
    if header_idx is None:
        return None

    header_cells = split_table_row(lines[header_idx])
    filter_idx = map_header(header_cells, [filter_column]).get(filter_column)
    if filter_idx is None:
        return None

    nxt = lines[header_idx + 1] if header_idx + 1 < len(lines) else ""
    separator = nxt if is_pipe_row(nxt) and is_separator_row(nxt) else \
        "| " + " | ".join("---" for _ in header_cells) + " |"

    kept = []
    for line in lines[header_idx + 1:]:
        if not is_pipe_row(line) or is_separator_row(line):
            continue
        cells = split_table_row(line)
        marker = clean_cell(cells[filter_idx]).lower() if filter_idx < len(cells) else ""
        if accept.match(marker):
            kept.append(line)

    if not kept:
        return None
    return "\n".join([lines[header_idx], separator, *kept])
