import sys

import md_table_editor.api as api

EXPECTED_METHODS = [
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


def verify_api():
    missing = []
    print("Verifying API surface area...")
    for method in EXPECTED_METHODS:
        if not hasattr(api, method):
            missing.append(method)
            print(f"Missing: {method}")
        else:
            print(f"Found: {method}")

    if missing:
        print(f"\nERROR: {len(missing)} methods missing from api.py")
        sys.exit(1)

    print("\nAPI Surface Verification Passed!")
    sys.exit(0)


if __name__ == "__main__":
    verify_api()
