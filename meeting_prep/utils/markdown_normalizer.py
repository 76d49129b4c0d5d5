from __future__ import annotations

import re
from typing import List

_DASHES_RE = re.compile(r"[‐‑‒–—―]")
_FENCE_RE = re.compile(r"```(?:text)?[ \t]*\n([\s\S]*?)```")
_ID_MARKER_RE = re.compile(r"\s*\{id=\d+\}")
_FOOTNOTE_LINK_RE = re.compile(r"\s*\[\d+\]\([^)]*\)")
_FOOTNOTE_RE = re.compile(r"\s*\[\d+\]")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]*\)")
_SEPARATOR_CHARS_RE = re.compile(r"[|\-:\s]")
_SEPARATOR_START_RE = re.compile(r"^\|?[\s\-:]+\|")


def fold_dashes(text: str) -> str:
    """Replace unicode hyphen and dash variants with an ASCII hyphen."""
    return _DASHES_RE.sub("-", text or "")


def strip_bold(text: str) -> str:
    return (text or "").replace("**", "")


def strip_id_markers(text: str) -> str:
    """Remove Work IQ ``{id=N}`` citation markers."""
    return _ID_MARKER_RE.sub("", text or "")


def strip_footnote_links(text: str) -> str:
    """Remove ``[N](url)`` reference links."""
    return _FOOTNOTE_LINK_RE.sub("", text or "")


def strip_footnotes(text: str) -> str:
    """Remove ``[N](url)`` links and bare ``[N]`` markers."""
    return _FOOTNOTE_RE.sub("", strip_footnote_links(text))


def unwrap_links(text: str) -> str:
    """``[text](url)`` becomes ``text``."""
    return _LINK_RE.sub(r"\1", text or "")


def extract_fenced_blocks(text: str) -> List[str]:
    """Return the non-empty bodies of all fenced code blocks, in order."""
    blocks = [m.group(1).strip() for m in _FENCE_RE.finditer(text or "")]
    return [b for b in blocks if b]


def is_pipe_row(line: str) -> bool:
    return "|" in (line or "")


def is_separator_row(line: str) -> bool:
    """True for markdown table rules such as ``|---|:---:|``."""
    line = line or ""
    if not _SEPARATOR_START_RE.match(line):
        return False
    return not _SEPARATOR_CHARS_RE.sub("", line)


def split_table_row(row: str) -> List[str]:
    """Split a markdown table row into trimmed cells."""
    row = (row or "").strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|"):
        row = row[:-1]
    return [c.strip() for c in row.split("|")]


def clean_cell(cell: str) -> str:
    """Strip bold markers, link syntax and numeric footnotes from a table cell."""
    out = strip_footnote_links(strip_bold(cell))
    out = unwrap_links(out)
    out = _FOOTNOTE_RE.sub("", out)
    return out.strip()


def clean_inline(text: str) -> str:
    """Strip footnotes and bold markers from free text, then trim."""
    return strip_bold(strip_footnotes(text)).strip()
