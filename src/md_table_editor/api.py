import logging

from .context import EditorContext, load_config
from .services import codec as codec_service
from .services import locator as locator_service
from .services.sync import TableSyncController

logger = logging.getLogger(__name__)

NOT_A_TABLE_MESSAGE = "No Markdown table found at the cursor position."

__all__ = [
    "EditorContext",
    "auto_fit_column",
    "cell_edit",
    "cell_focus",
    "close_table_editor",
    "decode_table",
    "delete_column",
    "delete_row",
    "document_changed",
    "encode_table",
    "find_table",
    "flush",
    "get_display_grid",
    "get_state",
    "key_event",
    "open_table_editor",
    "resize_column",
    "subscribe",
    "toolbar_action",
]


def _with_session(ctx, document_id, action):
    controller = ctx.get(document_id)
    if controller is None:
        return {"error": f"No table editor open for document {document_id}"}
    try:
        return action(controller)
    except Exception as e:
        logger.debug("Table editor action failed for %s", document_id, exc_info=True)
        return {"error": str(e)}


def open_table_editor(
    ctx, document_id, document, line_index, notifier=None, config_json=None, scheduler=None
):
    try:
        config = load_config(config_json)

        # The new session must start from text that includes pending edits
        previous = ctx.get(document_id)
        if previous is not None:
            previous.flush()

        controller = TableSyncController.open(
            document, line_index, notifier, scheduler, config
        )
        if controller is None:
            return {"error": NOT_A_TABLE_MESSAGE}

        ctx.open(document_id, controller)
    except Exception as e:
        return {"error": str(e)}

    return controller.session.snapshot()


def close_table_editor(ctx, document_id, flush=True):
    """Close the editor; pending edits are written first unless flush is False."""
    try:
        controller = ctx.close(document_id, flush=flush)
    except Exception as e:
        return {"error": str(e)}
    return {"closed": controller is not None}


def get_state(ctx, document_id):
    return ctx.get_state(document_id)


def get_display_grid(ctx, document_id):
    return _with_session(ctx, document_id, lambda c: c.session.to_display())


def subscribe(ctx, document_id, listener):
    """Register listener(snapshot) for re-renders; returns an unsubscribe function."""
    return _with_session(ctx, document_id, lambda c: c.session.subscribe(listener))


def cell_edit(ctx, document_id, row, col, value):
    return _with_session(ctx, document_id, lambda c: c.on_cell_edit(row, col, value))


def cell_focus(ctx, document_id, row, col):
    return _with_session(ctx, document_id, lambda c: c.on_cell_focus(row, col))


def key_event(ctx, document_id, combo, row, col):
    return _with_session(ctx, document_id, lambda c: c.on_key_event(combo, row, col))


def toolbar_action(ctx, document_id, kind):
    return _with_session(ctx, document_id, lambda c: c.on_toolbar_action(kind))


def delete_row(ctx, document_id, row_idx):
    return _with_session(ctx, document_id, lambda c: c.on_row_delete(row_idx))


def delete_column(ctx, document_id, col_idx):
    return _with_session(ctx, document_id, lambda c: c.on_column_delete(col_idx))


def resize_column(ctx, document_id, col_idx, width):
    return _with_session(ctx, document_id, lambda c: c.on_column_resize(col_idx, width))


def auto_fit_column(ctx, document_id, col_idx):
    return _with_session(ctx, document_id, lambda c: c.on_column_auto_fit(col_idx))


def document_changed(ctx, document_id):
    """For hosts without a ChangeNotifier: report that the text changed."""

    def action(controller):
        controller.on_document_changed()
        return controller.session.snapshot()

    return _with_session(ctx, document_id, action)


def flush(ctx, document_id):
    def action(controller):
        controller.flush()
        return controller.session.snapshot()

    return _with_session(ctx, document_id, action)


def find_table(document_text, line_index):
    span = locator_service.find_table_at(document_text, line_index)
    if span is None:
        return None
    return {
        "startLine": span.start_line,
        "endLine": span.end_line,
        "content": span.content,
    }


def decode_table(text):
    return codec_service.decode(text)


def encode_table(grid):
    return codec_service.encode(grid)
