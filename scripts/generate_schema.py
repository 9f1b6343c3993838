import json
import sys
from pathlib import Path

# Add src to path
current_dir = Path(__file__).parent
src_dir = current_dir.parent / "src"
sys.path.insert(0, str(src_dir))

from md_table_editor.types import SessionSnapshot
from pydantic import TypeAdapter


def main():
    adapter = TypeAdapter(SessionSnapshot)
    schema = adapter.json_schema()

    # The presentation layer validates incoming snapshots against this file
    schema_dir = current_dir.parent / "schemas"
    schema_dir.mkdir(exist_ok=True)

    output_file = schema_dir / "session-snapshot.schema.json"

    with open(output_file, "w") as f:
        json.dump(schema, f, indent=2)

    print(f"Schema generated at: {output_file}")


if __name__ == "__main__":
    main()
