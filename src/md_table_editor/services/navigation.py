"""Keyboard navigation policy for the grid editor.

Maps a key combination pressed in a cell to what the editor should do.
Pure: the session applies the returned action.
"""

from dataclasses import dataclass
from typing import Literal, Optional

ActionKind = Literal["focus", "insert_row", "duplicate_row", "line_break", "none"]

_MODIFIER_ALIASES = {
    "ctrl": "ctrl",
    "control": "ctrl",
    "cmd": "meta",
    "meta": "meta",
    "shift": "shift",
    "alt": "alt",
    "option": "alt",
}

_KEY_ALIASES = {
    "enter": "Enter",
    "return": "Enter",
    "arrowdown": "ArrowDown",
    "down": "ArrowDown",
}


@dataclass(frozen=True)
class KeyCombo:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False
    alt: bool = False

    @classmethod
    def parse(cls, combo):
        """Parse strings like "Enter", "ctrl+enter" or "shift+alt+down"."""
        parts = [p.strip() for p in combo.split("+") if p.strip()]
        if not parts:
            raise ValueError(f"Empty key combination: {combo!r}")

        *modifiers, key = parts
        flags = {}
        for modifier in modifiers:
            name = _MODIFIER_ALIASES.get(modifier.lower())
            if name is None:
                raise ValueError(f"Unknown modifier {modifier!r} in {combo!r}")
            flags[name] = True

        key = _KEY_ALIASES.get(key.lower(), key)
        return cls(key=key, **flags)

    @property
    def command(self):
        """Ctrl on Windows/Linux, Cmd on macOS."""
        return self.ctrl or self.meta


@dataclass(frozen=True)
class NavigationAction:
    kind: ActionKind
    row: Optional[int] = None
    col: Optional[int] = None


NO_ACTION = NavigationAction("none")


def first_editable_column(row_index_mode):
    return 1 if row_index_mode else 0


def resolve_key(combo, row, col, row_count, column_count, row_index_mode=False):
    """Return the NavigationAction for combo pressed in cell (row, col).

    The most specific modifier combination wins; plain Enter only fires
    when neither Ctrl/Cmd nor Shift is held.
    """
    key = combo.key

    if combo.shift and key == "Enter":
        return NavigationAction("line_break", row, col)

    if combo.shift and combo.alt and key == "ArrowDown":
        return NavigationAction("duplicate_row", row + 1, col)

    if combo.command and key == "Enter":
        return NavigationAction("insert_row", row + 1, col)

    if key == "Enter" and not combo.command and not combo.shift:
        if col < column_count - 1:
            return NavigationAction("focus", row, col + 1)
        if row < row_count - 1:
            return NavigationAction("focus", row + 1, first_editable_column(row_index_mode))
        return NO_ACTION

    return NO_ACTION
