"""Schema loading utility."""

import json
from pathlib import Path

_PACKAGE_DIR = Path(__file__).parent


def load_schema(path: Path) -> dict:
    """Load a JSON Schema file and return as dict."""
    with open(path) as f:
        return json.load(f)


def load_decision_schema() -> dict:
    """Load the schema agents' JSON decisions are validated against."""
    return load_schema(_PACKAGE_DIR / "decision_schema.json")
