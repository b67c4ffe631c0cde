"""Agent — the pluggable decider behind each side of the board.

Provides the ABC and concrete machine implementations:
- StrategyAgent: answers every request immediately from a strategy callable
- DeferredAgent: holds the request until an outside backend (an inference
  service, a remote player) resolves it

An agent has a persistent ``team_id``, a current ``color``, and a ``role``
(human or machine). Color and role may only change while the attached
engine is at a match boundary: before the first ply or after the end.
Human-role agents never receive decision requests; their moves arrive
through the UI collaborator.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from reversiarena.reversi.board import Color

if TYPE_CHECKING:
    from reversiarena.reversi.engine import Engine

logger = logging.getLogger(__name__)


class Role(Enum):
    HUMAN = "human"
    MACHINE = "machine"

    @property
    def other(self) -> Role:
        return Role.MACHINE if self is Role.HUMAN else Role.HUMAN


class AgentMismatchError(Exception):
    """A decision arrived from an agent that was not asked for one."""


class TeamMismatchError(Exception):
    """A decision claims a color that is not on move."""


class RoleChangeError(Exception):
    """Role or color change attempted in the middle of a match."""


@dataclass(frozen=True)
class DecisionRequest:
    """One outstanding request for a decision.

    ``respond`` delivers the answer back to the orchestrator and returns
    whether it was accepted. It may be called synchronously from inside
    ``Agent.request_decision`` or at any later time.
    """

    color: Color
    step: int
    snapshot: dict
    legal_mask: tuple[bool, ...]
    respond: Callable[[Any], bool]

    @property
    def legal_indices(self) -> list[int]:
        """Legal cell indices; the pass slot is excluded."""
        return [i for i, ok in enumerate(self.legal_mask[:-1]) if ok]

    @property
    def must_pass(self) -> bool:
        return self.legal_mask[-1]


@dataclass(frozen=True)
class MatchOutcome:
    """Final stone counts of a match, seen from one agent's color."""

    black: int
    white: int
    color: Color

    @property
    def winner(self) -> Color | None:
        if self.black > self.white:
            return Color.BLACK
        if self.white > self.black:
            return Color.WHITE
        return None

    @property
    def result(self) -> str:
        winner = self.winner
        if winner is None:
            return "draw"
        return "win" if winner is self.color else "loss"


class Agent(ABC):
    """Abstract base for everything that can sit at the board."""

    def __init__(
        self,
        name: str,
        team_id: int,
        color: Color,
        role: Role = Role.MACHINE,
    ) -> None:
        self.name = name
        self.team_id = team_id
        self._color = color
        self._role = role
        self._engine: Engine | None = None
        self.episodes_ended = 0

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.name!r}, team={self.team_id}, "
            f"{self._color.value}, {self._role.value})"
        )

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def color(self) -> Color:
        return self._color

    @property
    def role(self) -> Role:
        return self._role

    @property
    def is_human(self) -> bool:
        return self._role is Role.HUMAN

    @property
    def is_machine(self) -> bool:
        return self._role is Role.MACHINE

    def attach(self, engine: Engine) -> None:
        """Bind to the engine whose match boundaries gate role/color changes."""
        self._engine = engine

    @property
    def at_boundary(self) -> bool:
        if self._engine is None:
            return True
        return self._engine.step == 0 or self._engine.is_end

    def _check_boundary(self, what: str) -> None:
        if not self.at_boundary:
            raise RoleChangeError(
                f"{self.name}: cannot change {what} at step {self._engine.step}"
            )

    def set_role(self, role: Role) -> None:
        self._check_boundary("role")
        self._role = role

    def change_role(self) -> None:
        """Swap human <-> machine."""
        self.set_role(self._role.other)

    def change_color(self) -> None:
        """Swap black <-> white. The team id is kept."""
        self._check_boundary("color")
        self._color = self._color.opponent

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    @abstractmethod
    def request_decision(self, request: DecisionRequest) -> None:
        """Begin deciding. The answer goes back through ``request.respond``."""

    def on_match_end(self, outcome: MatchOutcome) -> None:
        logger.debug("%s match end: %s (%d : %d)", self.name, outcome.result,
                     outcome.black, outcome.white)

    def end_episode(self, reason: str) -> None:
        """Called when the agent's turn is voided by an illegal decision."""
        self.episodes_ended += 1
        logger.warning("%s episode ended: %s", self.name, reason)


# ======================================================================
# Concrete agents
# ======================================================================

Strategy = Callable[[DecisionRequest, random.Random], Any]


class StrategyAgent(Agent):
    """Deterministic machine agent for offline play and tests.

    Takes a strategy callable that receives (request, rng) and returns a
    raw decision; the decision is sent back before request_decision
    returns.
    """

    def __init__(
        self,
        name: str,
        team_id: int,
        color: Color,
        strategy: Strategy,
        role: Role = Role.MACHINE,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(name, team_id, color, role)
        self._strategy = strategy
        self.rng = rng or random.Random(0)
        self.outcomes: list[MatchOutcome] = []

    def request_decision(self, request: DecisionRequest) -> None:
        request.respond(self._strategy(request, self.rng))

    def on_match_end(self, outcome: MatchOutcome) -> None:
        super().on_match_end(outcome)
        self.outcomes.append(outcome)


class DeferredAgent(Agent):
    """Machine agent whose answer arrives later from outside.

    The request is parked until ``resolve`` is called; there is no
    timeout.
    """

    def __init__(
        self,
        name: str,
        team_id: int,
        color: Color,
        role: Role = Role.MACHINE,
    ) -> None:
        super().__init__(name, team_id, color, role)
        self.pending: DecisionRequest | None = None
        self.requests = 0

    def request_decision(self, request: DecisionRequest) -> None:
        self.pending = request
        self.requests += 1

    def resolve(self, decision: Any) -> bool:
        """Send ``decision`` for the parked request."""
        if self.pending is None:
            raise RuntimeError(f"{self.name}: no decision request outstanding")
        request, self.pending = self.pending, None
        return request.respond(decision)
