import json
from dataclasses import dataclass, field
from typing import Dict, Optional

from .services.sync import DEFAULT_DEBOUNCE_MS, TableSyncController
from .services.session import (
    DEFAULT_COLUMN_WIDTH,
    MAX_AUTO_FIT_WIDTH,
    MIN_COLUMN_WIDTH,
)
from .types import EditorConfig


def load_config(config_json) -> EditorConfig:
    """Read the host's JSON config, filling in defaults for missing keys."""
    config_dict = json.loads(config_json) if config_json else {}
    return EditorConfig(
        debounceMs=config_dict.get("debounceMs", DEFAULT_DEBOUNCE_MS),
        defaultColumnWidth=config_dict.get("defaultColumnWidth", DEFAULT_COLUMN_WIDTH),
        minColumnWidth=config_dict.get("minColumnWidth", MIN_COLUMN_WIDTH),
        maxAutoFitWidth=config_dict.get("maxAutoFitWidth", MAX_AUTO_FIT_WIDTH),
        rowIndexMode=config_dict.get("rowIndexMode", False),
    )


@dataclass
class EditorState:
    sessions: Dict[str, TableSyncController] = field(default_factory=dict)


class EditorContext:
    """Open table editors, keyed by document identity.

    Owned by the host integration; create one per host process or window.
    """

    def __init__(self):
        self._state = EditorState()

    @property
    def document_ids(self):
        return list(self._state.sessions)

    def get(self, document_id) -> Optional[TableSyncController]:
        return self._state.sessions.get(document_id)

    def open(self, document_id, controller):
        """Register controller for document_id, closing any editor it replaces."""
        previous = self._state.sessions.get(document_id)
        if previous is not None and previous is not controller:
            previous.close(flush=True)
        self._state.sessions[document_id] = controller
        return controller

    def close(self, document_id, flush=False):
        controller = self._state.sessions.pop(document_id, None)
        if controller is not None:
            controller.close(flush=flush)
        return controller

    def get_state(self, document_id):
        """Return the session snapshot as a JSON string for the frontend."""
        controller = self.get(document_id)
        if controller is None:
            return json.dumps(None)
        return json.dumps(controller.session.snapshot())

    def reset(self):
        for document_id in self.document_ids:
            self.close(document_id)
        self._state = EditorState()
