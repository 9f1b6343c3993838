import re
from dataclasses import replace

from md_spreadsheet_parser import Table

LINE_BREAK_TOKEN = "<br>"

_SEPARATOR_CELL = re.compile(r"^[-:]+$")
_NEWLINE = re.compile(r"\r?\n")

# Literal <br> is stored as &lt;br>, and every stored &...lt;br> gains one amp;
_STORAGE_PATTERN = re.compile(r"\r\n|\r|\n|<br>|&((?:amp;)*)lt;br>")
_DISPLAY_PATTERN = re.compile(r"<br>|&((?:amp;)*)lt;br>")


def default_grid():
    return [["", ""], ["", ""]]


def decode(text):
    """Parse raw pipe-table text into a grid.

    Returns [] when the text has fewer than two lines; callers treat that as
    "not a table". Ragged rows are returned as-is, see normalize().
    """
    lines = _NEWLINE.split(text.strip())
    if len(lines) < 2:
        return []

    rows = []
    for line in lines:
        stripped = line.strip()
        cells = [cell.strip() for cell in stripped.split("|")]
        if stripped.startswith("|"):
            cells = cells[1:]
        if stripped.endswith("|") and cells:
            cells = cells[:-1]
        rows.append(cells)

    # Row 1 is the alignment separator (|---|:---:|), not data
    if len(rows) > 1 and all(_SEPARATOR_CELL.match(cell) for cell in rows[1]):
        del rows[1]

    return rows


def encode(grid):
    """Format a grid as a left-aligned pipe table, one line per row.

    Widths are floored at 3 so the separator is always a valid `---`.
    """
    if not grid:
        return ""

    column_count = max(len(row) for row in grid)
    widths = [3] * column_count
    for row in grid:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    def format_row(row):
        cells = list(row) + [""] * (column_count - len(row))
        return "| " + " | ".join(c.ljust(widths[i]) for i, c in enumerate(cells)) + " |"

    lines = [format_row(grid[0])]
    lines.append("| " + " | ".join("-" * w for w in widths) + " |")
    lines.extend(format_row(row) for row in grid[1:])
    return "\n".join(lines) + "\n"


def normalize(grid):
    """Return a rectangular copy of grid, padding short rows with empty cells.

    Every row (the header included) is widened to the longest row so that
    text typed into a row ahead of its header is kept.
    """
    if not grid:
        return default_grid()

    column_count = max(1, max(len(row) for row in grid))
    return [list(row) + [""] * (column_count - len(row)) for row in grid]


def grids_equal(a, b):
    if len(a) != len(b):
        return False
    return all(list(ra) == list(rb) for ra, rb in zip(a, b))


def _same_shape(a, b):
    return len(a) == len(b) and all(len(ra) == len(rb) for ra, rb in zip(a, b))


def _replay_cells(base, edited, target):
    """Copy every cell that differs between base and edited onto target."""
    merged = [list(row) for row in target]
    for r, row in enumerate(edited):
        for c, cell in enumerate(row):
            if cell == base[r][c]:
                continue
            if r < len(merged) and c < len(merged[r]):
                merged[r][c] = cell
    return merged


def merge_grids(base, ours, theirs):
    """Three-way merge of two grids that were both edited from base.

    When one side kept base's shape, its cell edits are replayed by index
    onto the other side. Returns None if both sides changed shape.
    """
    if grids_equal(ours, base):
        return [list(row) for row in theirs]
    if grids_equal(theirs, base):
        return [list(row) for row in ours]
    if _same_shape(ours, base):
        return _replay_cells(base, ours, theirs)
    if _same_shape(theirs, base):
        return _replay_cells(base, theirs, ours)
    return None


def to_storage(value):
    """Convert user-facing cell text to its stored, single-line form."""

    def sub(match):
        token = match.group(0)
        if token in ("\r\n", "\r", "\n"):
            return LINE_BREAK_TOKEN
        if token == LINE_BREAK_TOKEN:
            return "&lt;br>"
        return "&amp;" + match.group(1) + "lt;br>"

    return _STORAGE_PATTERN.sub(sub, value)


def to_display(value):
    """Inverse of to_storage()."""

    def sub(match):
        token = match.group(0)
        if token == LINE_BREAK_TOKEN:
            return "\n"
        amps = match.group(1)
        if not amps:
            return LINE_BREAK_TOKEN
        return "&" + amps[len("amp;") :] + "lt;br>"

    return _DISPLAY_PATTERN.sub(sub, value)


def grid_to_table(grid, table=None):
    """Build (or update) an md_spreadsheet_parser Table from a grid."""
    headers = list(grid[0]) if grid else []
    rows = [list(row) for row in grid[1:]]
    if table is None:
        return Table(headers=headers, rows=rows, metadata={})
    return replace(table, headers=headers, rows=rows)


def table_to_grid(table):
    headers = list(table.headers or [])
    return [headers] + [list(row) for row in table.rows]
