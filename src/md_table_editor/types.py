from typing import Callable, List, Literal, Optional

from typing_extensions import Protocol, TypedDict

Grid = List[List[str]]


class CellPosition(TypedDict):
    row: int
    col: int


# Snapshot emitted to the presentation layer after every change
class SessionSnapshot(TypedDict):
    grid: Grid
    activeCell: Optional[CellPosition]
    columnWidths: List[float]
    rowIndexMode: bool


class EditorConfig(TypedDict, total=False):
    debounceMs: int
    defaultColumnWidth: float
    minColumnWidth: float
    maxAutoFitWidth: float
    rowIndexMode: bool


ToolbarAction = Literal["add-row", "add-column", "toggle-row-index-mode"]


class DocumentProvider(Protocol):
    def get_text(self) -> str: ...

    def get_line_text(self, line: int) -> str: ...

    def replace_range(self, start_line: int, end_line: int, new_text: str) -> bool:
        """Replace whole lines start_line..end_line. False if the range is gone."""
        ...


class DocumentChangedEvent(TypedDict):
    document: DocumentProvider


DocumentListener = Callable[[DocumentChangedEvent], None]


class ChangeNotifier(Protocol):
    def subscribe(self, listener: DocumentListener) -> Callable[[], None]: ...


class Cancellable(Protocol):
    def cancel(self) -> None: ...


# asyncio event loops satisfy this
class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...
