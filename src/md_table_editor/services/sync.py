import logging
from typing import Optional

from ..types import (
    ChangeNotifier,
    DocumentChangedEvent,
    DocumentProvider,
    EditorConfig,
    Scheduler,
    ToolbarAction,
)
from .codec import decode, encode, grids_equal, merge_grids, normalize
from .debounce import Debouncer
from .locator import find_table_at, find_table_from
from .navigation import KeyCombo
from .session import (
    DEFAULT_COLUMN_WIDTH,
    MAX_AUTO_FIT_WIDTH,
    MIN_COLUMN_WIDTH,
    GridSession,
)

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300


class TableSyncController:
    """Keeps one GridSession and its table in the document in step.

    Grid edits are written back after a debounce delay, always into a span
    re-located from the table's start line. Document changes are decoded
    and offered to the session through reconcile().
    """

    def __init__(
        self,
        document: DocumentProvider,
        start_line: int,
        session: GridSession,
        notifier: Optional[ChangeNotifier] = None,
        scheduler: Optional[Scheduler] = None,
        config: Optional[EditorConfig] = None,
    ):
        config = config or {}
        self.document = document
        self.start_line = start_line
        self.session = session

        delay = config.get("debounceMs", DEFAULT_DEBOUNCE_MS) / 1000.0
        self._debouncer = Debouncer(delay, scheduler)
        # What the document text meant when grid and text last agreed
        self._synced_grid = session.grid
        self._last_written = None
        self._unsubscribe = None
        if notifier is not None:
            self._unsubscribe = notifier.subscribe(self.on_document_changed)

    @classmethod
    def open(cls, document, line_index, notifier=None, scheduler=None, config=None):
        """Start editing the table at line_index; None if there is no table."""
        config = config or {}
        span = find_table_at(document.get_text(), line_index)
        if span is None:
            return None

        grid = decode(span.content)
        if not grid:
            return None

        session = GridSession(
            grid,
            row_index_mode=config.get("rowIndexMode", False),
            default_column_width=config.get("defaultColumnWidth", DEFAULT_COLUMN_WIDTH),
            min_column_width=config.get("minColumnWidth", MIN_COLUMN_WIDTH),
            max_auto_fit_width=config.get("maxAutoFitWidth", MAX_AUTO_FIT_WIDTH),
        )
        controller = cls(document, span.start_line, session, notifier, scheduler, config)
        controller._synced_grid = normalize(grid)
        return controller

    @property
    def write_pending(self):
        return self._debouncer.pending

    # Presentation layer -> core

    def _mutate(self, operation, *args):
        before = self.session.grid
        operation(*args)
        if not grids_equal(before, self.session.grid):
            self.schedule_write()
        return self.session.snapshot()

    def on_cell_edit(self, row, col, value):
        return self._mutate(self.session.set_cell, row, col, value)

    def on_cell_focus(self, row, col):
        self.session.focus(row, col)
        return self.session.snapshot()

    def on_key_event(self, combo, row, col):
        if isinstance(combo, str):
            combo = KeyCombo.parse(combo)
        return self._mutate(self.session.handle_key, combo, row, col)

    def on_toolbar_action(self, kind: ToolbarAction):
        if kind == "add-row":
            return self._mutate(self.session.insert_row)
        if kind == "add-column":
            return self._mutate(self.session.insert_column)
        if kind == "toggle-row-index-mode":
            return self._mutate(
                self.session.set_row_index_mode, not self.session.row_index_mode
            )
        raise ValueError(f"Unknown toolbar action: {kind}")

    def on_row_delete(self, index):
        return self._mutate(self.session.remove_row, index)

    def on_column_delete(self, index):
        return self._mutate(self.session.remove_column, index)

    def on_column_resize(self, index, width):
        self.session.resize_column(index, width)
        return self.session.snapshot()

    def on_column_auto_fit(self, index):
        self.session.auto_fit_column(index)
        return self.session.snapshot()

    # Grid -> text

    def schedule_write(self):
        self._debouncer.trigger(self.write_back)

    def flush(self):
        self._debouncer.flush()

    def write_back(self):
        """Write the current grid into the document.

        Text edits made since the last sync are merged into the grid first.
        Returns False when the table can no longer be found or the host
        rejected the range; that write is dropped and the next edit retries.
        """
        span = find_table_from(self.document.get_text(), self.start_line)
        if span is None:
            logger.debug(
                "No table at line %d any more, dropping write-back", self.start_line
            )
            return False

        self._merge_text_edits(span)

        new_text = encode(self.session.grid).rstrip("\n")
        if new_text == span.content:
            self._synced_grid = normalize(decode(new_text))
            return True

        # Set before replacing: hosts may notify synchronously from replace_range
        self._last_written = new_text
        if not self.document.replace_range(span.start_line, span.end_line, new_text):
            self._last_written = None
            logger.debug(
                "Host rejected lines %d-%d, dropping write-back",
                span.start_line,
                span.end_line,
            )
            return False

        self.start_line = span.start_line
        self._synced_grid = normalize(decode(new_text))
        return True

    def _merge_text_edits(self, span):
        if span.content == self._last_written:
            return

        theirs = decode(span.content)
        if not theirs:
            return
        theirs = normalize(theirs)
        if grids_equal(theirs, self._synced_grid):
            return

        merged = merge_grids(self._synced_grid, self.session.grid, theirs)
        if merged is None:
            logger.debug("Grid and text both reshaped the table, keeping the text")
            merged = theirs

        self.start_line = span.start_line
        self.session.reconcile(merged)

    # Text -> grid

    def on_document_changed(self, event: Optional[DocumentChangedEvent] = None):
        document = event.get("document") if event else None
        if document is not None and document is not self.document:
            return

        if self._debouncer.pending:
            logger.debug("Write-back pending, merging text edits when it runs")
            return

        span = find_table_from(self.document.get_text(), self.start_line)
        if span is None:
            return

        if span.content == self._last_written:
            # Echo of our own write
            return
        self._last_written = None

        grid = decode(span.content)
        if not grid:
            return

        self.start_line = span.start_line
        self._synced_grid = normalize(grid)
        self.session.reconcile(grid)

    def close(self, flush=False):
        if flush:
            self._debouncer.flush()
        else:
            self._debouncer.cancel()

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.session.clear_listeners()
