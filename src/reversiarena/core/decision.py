"""DecisionParser — turn an agent's raw answer into a board position.

Agents answer a decision request with whatever their backend produces:
an action index from an inference model (0-63, 64 for pass), a cell
name such as "e3", the word "pass", a JSON object, or free text that
contains one. Everything is reduced to a cell index or ``PASS``.

JSON objects are validated against ``decision_schema.json``. When free
text holds several objects the last valid one wins, so a decider that
corrects itself mid-answer gets its final choice used.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

import jsonschema

from reversiarena.core.schemas import load_decision_schema
from reversiarena.reversi.board import CELLS, parse_notation, to_index
from reversiarena.reversi.engine import PASS, PASS_ACTION

# Outermost { ... } with at most one level of nesting
_JSON_OBJECT_RE = re.compile(r"\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}")


@dataclass(frozen=True)
class DecisionResult:
    """Result of decoding one raw decision."""

    success: bool
    position: int | None
    error: str | None


class DecisionParser:
    """Decode raw agent decisions into a cell index or PASS."""

    def __init__(self, schema: dict | None = None) -> None:
        self._schema = schema if schema is not None else load_decision_schema()

    @property
    def schema(self) -> dict:
        return self._schema

    def parse(self, raw: Any) -> DecisionResult:
        if isinstance(raw, bool):
            return _fail(f"Not a decision: {raw!r}")
        if isinstance(raw, int):
            return self._from_index(raw)
        if isinstance(raw, dict):
            return self._from_object(raw)
        if isinstance(raw, str):
            return self._from_text(raw)
        return _fail(f"Unsupported decision type: {type(raw).__name__}")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _from_index(index: int) -> DecisionResult:
        if index in (PASS, PASS_ACTION):
            return DecisionResult(success=True, position=PASS, error=None)
        if 0 <= index < CELLS:
            return DecisionResult(success=True, position=index, error=None)
        return _fail(f"Index out of range: {index}")

    def _from_object(self, obj: dict) -> DecisionResult:
        try:
            jsonschema.validate(obj, self._schema)
        except jsonschema.ValidationError as e:
            return _fail(f"Schema validation: {e.message}")

        if obj["action"] == "pass":
            return DecisionResult(success=True, position=PASS, error=None)
        if "row" in obj and "col" in obj:
            return DecisionResult(
                success=True, position=to_index(obj["row"], obj["col"]), error=None
            )
        return DecisionResult(
            success=True, position=to_index(*parse_notation(obj["cell"])), error=None
        )

    def _from_text(self, text: str) -> DecisionResult:
        stripped = text.strip()
        if not stripped:
            return _fail("Empty decision")
        if stripped.lower() == "pass":
            return DecisionResult(success=True, position=PASS, error=None)
        if re.fullmatch(r"-?\d+", stripped):
            return self._from_index(int(stripped))
        try:
            return DecisionResult(
                success=True, position=to_index(*parse_notation(stripped)), error=None
            )
        except ValueError:
            pass

        candidates = _JSON_OBJECT_RE.findall(stripped)
        if not candidates:
            return _fail(f"No decision found in {stripped[:40]!r}")

        best: DecisionResult | None = None
        last_error = None
        for candidate in candidates:
            try:
                parsed = json.loads(candidate)
            except json.JSONDecodeError as e:
                last_error = f"JSON parse error: {e}"
                continue
            result = self._from_object(parsed)
            if result.success:
                best = result
            else:
                last_error = result.error

        if best is not None:
            return best
        return _fail(last_error or "No valid decision object")


def _fail(error: str) -> DecisionResult:
    return DecisionResult(success=False, position=None, error=error)
