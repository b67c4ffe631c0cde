"""Mock decision strategies for offline play and testing.

Each strategy matches the StrategyAgent signature:
    (request: DecisionRequest, rng: random.Random) -> raw decision

Strategies:
- first_legal_strategy: First legal cell in row-major order, else pass.
- random_strategy: Uniformly random legal cell, else pass.
- notation_strategy: Like random, but answers as JSON text with a cell name.
- illegal_strategy: Always answers an occupied cell (adversarial testing).
- garbage_strategy: Returns undecodable text (adversarial testing).
"""

from __future__ import annotations

import json
import random
from typing import Any

from reversiarena.core.agent import DecisionRequest
from reversiarena.reversi.board import notation, to_position
from reversiarena.reversi.engine import PASS


def first_legal_strategy(request: DecisionRequest, rng: random.Random) -> Any:
    """Play the first legal cell, or pass when there is none."""
    legal = request.legal_indices
    return legal[0] if legal else PASS


def random_strategy(request: DecisionRequest, rng: random.Random) -> Any:
    """Play a uniformly random legal cell, or pass when there is none."""
    legal = request.legal_indices
    return rng.choice(legal) if legal else PASS


def notation_strategy(request: DecisionRequest, rng: random.Random) -> Any:
    """Random legal cell, phrased the way a text-producing decider would."""
    legal = request.legal_indices
    if not legal:
        return json.dumps({"action": "pass"})
    cell = notation(*to_position(rng.choice(legal)))
    return json.dumps({"action": "play", "cell": cell, "reasoning": "random pick"})


def illegal_strategy(request: DecisionRequest, rng: random.Random) -> Any:
    """Answer the first occupied cell on the board."""
    for r, row in enumerate(request.snapshot["board"]):
        for c, mark in enumerate(row):
            if mark:
                return r * len(row) + c
    return 0


def garbage_strategy(request: DecisionRequest, rng: random.Random) -> Any:
    """Return text no decoder accepts."""
    return "THIS IS NOT A MOVE !!!"


STRATEGY_REGISTRY = {
    "first_legal": first_legal_strategy,
    "random": random_strategy,
    "notation": notation_strategy,
    "illegal": illegal_strategy,
    "garbage": garbage_strategy,
}
