import logging

from ..types import SessionSnapshot
from .codec import (
    grid_to_table,
    grids_equal,
    normalize,
    table_to_grid,
    to_display,
    to_storage,
)
from .navigation import resolve_key

logger = logging.getLogger(__name__)

DEFAULT_COLUMN_WIDTH = 150
MIN_COLUMN_WIDTH = 50
MAX_AUTO_FIT_WIDTH = 500


def _clamp(value, low, high):
    return max(low, min(value, high))


def _fit_widths(widths, column_count, default):
    """Resize widths to column_count, keeping existing entries by index."""
    widths = list(widths[:column_count])
    widths.extend([default] * (column_count - len(widths)))
    return widths


def _number_rows(grid):
    """Write 1-based row numbers into column 0 of every data row."""
    numbered = [list(grid[0])]
    for index, row in enumerate(grid[1:], start=1):
        new_row = list(row)
        new_row[0] = str(index)
        numbered.append(new_row)
    return numbered


def _display_width(text):
    # Characters outside Latin-1 take roughly two columns
    return sum(2 if ord(ch) > 255 else 1 for ch in text)


class GridSession:
    """Edit state for one table: grid, active cell, column widths, row-index mode.

    Every operation replaces the grid snapshot (an md_spreadsheet_parser
    Table) rather than mutating it, returns the resulting grid, and notifies
    subscribers once if anything changed. Invalid requests, such as removing
    the last column, are no-ops.
    """

    def __init__(
        self,
        grid=None,
        column_widths=None,
        row_index_mode=False,
        default_column_width=DEFAULT_COLUMN_WIDTH,
        min_column_width=MIN_COLUMN_WIDTH,
        max_auto_fit_width=MAX_AUTO_FIT_WIDTH,
    ):
        self.default_column_width = default_column_width
        self.min_column_width = min_column_width
        self.max_auto_fit_width = max_auto_fit_width

        rows = normalize(grid or [])
        if row_index_mode:
            rows = _number_rows(rows)

        self._table = grid_to_table(rows)
        self._row_index_mode = row_index_mode
        self._active_cell = None
        self._column_widths = _fit_widths(
            column_widths or [], len(rows[0]), default_column_width
        )
        self._listeners = []

    # State accessors

    @property
    def table(self):
        return self._table

    @property
    def grid(self):
        return table_to_grid(self._table)

    @property
    def row_count(self):
        return len(self._table.rows) + 1

    @property
    def column_count(self):
        return len(self._table.headers)

    @property
    def active_cell(self):
        return dict(self._active_cell) if self._active_cell else None

    @property
    def column_widths(self):
        return list(self._column_widths)

    @property
    def row_index_mode(self):
        return self._row_index_mode

    def display_value(self, row, col):
        """Cell text as the user should see it, with line breaks restored."""
        return to_display(self.grid[row][col])

    def to_display(self):
        return [[to_display(cell) for cell in row] for row in self.grid]

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            grid=self.grid,
            activeCell=self.active_cell,
            columnWidths=self.column_widths,
            rowIndexMode=self._row_index_mode,
        )

    # Change notification

    def subscribe(self, listener):
        """Register listener(snapshot); returns a function that unsubscribes."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def clear_listeners(self):
        self._listeners.clear()

    def _emit(self):
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _commit(self, grid=None, column_widths=None):
        """Store a new grid and/or widths, renumbering rows if needed.

        Emits only when something actually changed.
        """
        changed = False

        if grid is not None:
            if self._row_index_mode:
                grid = _number_rows(grid)
            if not grids_equal(grid, self.grid):
                self._table = grid_to_table(grid, self._table)
                changed = True

        if column_widths is not None and column_widths != self._column_widths:
            self._column_widths = list(column_widths)
            changed = True

        if self._clip_active_cell():
            changed = True

        if changed:
            self._emit()
        return changed

    def _clip_active_cell(self):
        cell = self._active_cell
        if cell is None:
            return False
        if cell["row"] < self.row_count and cell["col"] < self.column_count:
            return False
        self._active_cell = None
        return True

    def _in_range(self, row, col):
        return 0 <= row < self.row_count and 0 <= col < self.column_count

    # Cell operations

    def set_cell(self, row, col, value):
        if self._row_index_mode and col == 0 and row >= 1:
            logger.debug("Ignoring edit of derived row-number cell (%d, %d)", row, col)
            return self.grid
        if not self._in_range(row, col):
            logger.debug("Ignoring edit of out-of-range cell (%d, %d)", row, col)
            return self.grid

        grid = self.grid
        grid[row][col] = to_storage(value)
        self._commit(grid)
        return self.grid

    def focus(self, row, col):
        """Record the last-focused cell; it anchors the next insert."""
        if not self._in_range(row, col):
            return self.grid

        cell = {"row": row, "col": col}
        if cell != self._active_cell:
            self._active_cell = cell
            self._emit()
        return self.grid

    # Row and column operations

    def insert_row(self, offset=1):
        row_count = self.row_count
        if self._active_cell is not None:
            index = _clamp(self._active_cell["row"] + offset, 0, row_count)
        else:
            index = row_count

        grid = self.grid
        grid.insert(index, [""] * self.column_count)
        self._commit(grid)
        return self.grid

    def insert_column(self, offset=1):
        column_count = self.column_count
        if self._active_cell is not None:
            index = _clamp(self._active_cell["col"] + offset, 0, column_count)
        else:
            index = column_count

        grid = self.grid
        for row in grid:
            row.insert(index, "")

        widths = list(self._column_widths)
        widths.insert(index, self.default_column_width)

        self._commit(grid, widths)
        return self.grid

    def remove_row(self, index):
        if self.row_count <= 1:
            logger.debug("Refusing to remove the last row")
            return self.grid
        if not 0 <= index < self.row_count:
            return self.grid

        grid = self.grid
        del grid[index]
        self._commit(grid)
        return self.grid

    def remove_column(self, index):
        if self.column_count <= 1:
            logger.debug("Refusing to remove the last column")
            return self.grid
        if not 0 <= index < self.column_count:
            return self.grid

        grid = self.grid
        for row in grid:
            del row[index]

        widths = list(self._column_widths)
        del widths[index]

        self._commit(grid, widths)
        return self.grid

    def duplicate_row(self, index):
        if not 0 <= index < self.row_count:
            return self.grid

        grid = self.grid
        grid.insert(index + 1, list(grid[index]))
        self._commit(grid)
        return self.grid

    def set_row_index_mode(self, enabled):
        enabled = bool(enabled)
        mode_changed = enabled != self._row_index_mode
        self._row_index_mode = enabled

        # _commit renumbers when enabled and emits on grid changes only
        grid_changed = self._commit(self.grid)
        if mode_changed and not grid_changed:
            self._emit()
        return self.grid

    # Column widths

    def resize_column(self, index, width):
        if not 0 <= index < self.column_count:
            return self.column_widths

        widths = list(self._column_widths)
        widths[index] = max(self.min_column_width, width)
        self._commit(column_widths=widths)
        return self.column_widths

    def auto_fit_column(self, index):
        """Size a column to its longest line of text."""
        if not 0 <= index < self.column_count:
            return self.column_widths

        longest = 1
        for row in self.grid:
            for line in to_display(row[index]).split("\n"):
                longest = max(longest, _display_width(line))

        width = _clamp(longest * 10 + 20, self.min_column_width, self.max_auto_fit_width)
        widths = list(self._column_widths)
        widths[index] = width
        self._commit(column_widths=widths)
        return self.column_widths

    # Keyboard

    def handle_key(self, combo, row, col):
        """Apply the navigation policy for combo pressed in (row, col)."""
        action = resolve_key(
            combo,
            row,
            col,
            self.row_count,
            self.column_count,
            self._row_index_mode,
        )

        if action.kind == "focus":
            self.focus(action.row, action.col)
        elif action.kind == "insert_row":
            self.focus(row, col)
            self.insert_row(1)
            self.focus(action.row, action.col)
        elif action.kind == "duplicate_row":
            self.duplicate_row(row)
            self.focus(action.row, action.col)
        return action

    # Text side

    def reconcile(self, new_grid):
        """Adopt a grid decoded from the document if it differs from ours.

        Ragged input is padded and, in row-index mode, renumbered before
        the comparison. Returns the resulting grid.
        """
        grid = normalize(new_grid)
        if self._row_index_mode:
            grid = _number_rows(grid)

        if grids_equal(grid, self.grid):
            return self.grid

        widths = _fit_widths(
            self._column_widths, len(grid[0]), self.default_column_width
        )
        self._commit(grid, widths)
        return self.grid
