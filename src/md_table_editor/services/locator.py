import re
from dataclasses import dataclass
from typing import Optional

_NEWLINE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class TableSpan:
    """Inclusive line range of a table in one version of the document text."""

    start_line: int
    end_line: int
    content: str


def _is_table_line(line):
    return "|" in line.strip()


def find_table_at(document_text: str, line_index: int) -> Optional[TableSpan]:
    """Find the table around line_index.

    A table is the maximal run of consecutive lines that contain a pipe.
    Column counts are deliberately not checked, so a row that is half-typed
    does not cut the table short. Returns None when the anchor line has no
    pipe, or when line_index is outside the document.
    """
    lines = _NEWLINE.split(document_text)
    if line_index < 0 or line_index >= len(lines):
        return None

    if not _is_table_line(lines[line_index]):
        return None

    start_line = line_index
    end_line = line_index

    while start_line > 0 and _is_table_line(lines[start_line - 1]):
        start_line -= 1

    while end_line < len(lines) - 1 and _is_table_line(lines[end_line + 1]):
        end_line += 1

    content = "\n".join(lines[start_line : end_line + 1])
    return TableSpan(start_line=start_line, end_line=end_line, content=content)


def find_table_from(document_text: str, start_line: int) -> Optional[TableSpan]:
    """Re-locate a previously found table from its first line.

    Spans go stale on every edit, so write-backs call this against fresh
    text instead of reusing an old TableSpan.
    """
    return find_table_at(document_text, start_line)
