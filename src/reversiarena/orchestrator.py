"""Orchestrator — tick-driven state machine that runs Reversi matches.

States: NOT_READY -> PLAY <-> END -> CONFIRM -> RESET -> PLAY.
END goes straight to RESET when nobody human is seated.

Each call to tick() advances at most one transition or one ply. While a
decision request is outstanding (``pending_agent`` is set) ticks are
no-ops: there is never more than one request in flight, and a request is
awaited indefinitely.

Three running tallies outlive individual matches:
- color tally: black wins vs white wins
- race tally: human wins vs machine wins, only for human-vs-machine matches
- team tally: wins per persistent team id, whichever color the team held

Single-threaded: the engine, the board, and the tallies are mutated only
from tick(), submit_decision(), human_move() and undo().
"""

from __future__ import annotations

import functools
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Hashable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from reversiarena.core.agent import (
    Agent,
    AgentMismatchError,
    DecisionRequest,
    MatchOutcome,
    Role,
    TeamMismatchError,
)
from reversiarena.core.decision import DecisionParser
from reversiarena.core.referee import Referee, Ruling, ViolationKind
from reversiarena.core.telemetry import PlyEntry, TelemetryLogger
from reversiarena.reversi.board import Color, notation, to_position
from reversiarena.reversi.engine import (
    PASS,
    Engine,
    IllegalPassError,
    MoveError,
    describe,
)

logger = logging.getLogger(__name__)


class GameState(Enum):
    NOT_READY = "not_ready"
    PLAY = "play"
    END = "end"
    CONFIRM = "confirm"
    RESET = "reset"


@dataclass
class Tally:
    """Running win counter across matches."""

    title: str
    wins: dict[Hashable, int] = field(default_factory=dict)
    draws: int = 0

    def record(self, winner: Hashable | None) -> None:
        if winner is None:
            self.draws += 1
        else:
            self.wins[winner] = self.wins.get(winner, 0) + 1

    def __getitem__(self, key: Hashable) -> int:
        return self.wins.get(key, 0)

    @property
    def total(self) -> int:
        return sum(self.wins.values()) + self.draws

    def as_dict(self) -> dict:
        return {
            "title": self.title,
            "wins": {str(k): v for k, v in self.wins.items()},
            "draws": self.draws,
        }


# ----------------------------------------------------------------------
# Confirm collaborator contract
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class ConfirmOption:
    label: str
    callback: Callable[[], None] | None = None


class ConfirmPrompt(ABC):
    """Dialog shown between matches when a human is seated.

    The implementation shows ``message`` with up to two options, invokes
    the chosen option's callback, then calls ``on_complete`` exactly once.
    It may do so asynchronously.
    """

    @abstractmethod
    def present(
        self,
        message: str,
        options: list[ConfirmOption],
        on_complete: Callable[[], None],
    ) -> None:
        """Show the dialog."""


@dataclass
class OrchestratorOptions:
    auto_pass: bool = True          # machine passes without consulting the agent
    force_change: bool = False      # all-machine matches swap colors after each match
    machine_delay_s: float = 0.0    # pause before a machine request when a human watches


class Orchestrator:
    """Runs matches between two agents over one long-lived engine."""

    def __init__(
        self,
        first: Agent,
        second: Agent,
        engine: Engine | None = None,
        options: OrchestratorOptions | None = None,
        confirm: ConfirmPrompt | None = None,
        telemetry_dir: Path | None = None,
        session_name: str = "session",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if first.color is second.color:
            raise ValueError(
                f"Agents {first.name!r} and {second.name!r} both play {first.color.value}"
            )
        self._engine = engine if engine is not None else Engine()
        self._agents = (first, second)
        for agent in self._agents:
            agent.attach(self._engine)
        self._options = options or OrchestratorOptions()
        self._confirm = confirm
        self._telemetry_dir = Path(telemetry_dir) if telemetry_dir else None
        self._session_name = session_name
        self._clock = clock
        self._parser = DecisionParser()

        self._state = GameState.NOT_READY
        self._after_confirm = GameState.RESET
        self._pending: Agent | None = None
        self._request_due: float | None = None

        self.color_tally = Tally("Color")
        self.race_tally = Tally("Race")
        self.team_tally = Tally("Team")
        self.match_number = 1
        self.matches_completed = 0

        self._referee = Referee()
        self._telemetry = self._open_telemetry()

    # ------------------------------------------------------------------
    # Seats
    # ------------------------------------------------------------------

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def pending_agent(self) -> Agent | None:
        return self._pending

    @property
    def referee(self) -> Referee:
        return self._referee

    @property
    def agents(self) -> tuple[Agent, Agent]:
        return self._agents

    def agent_for(self, color: Color) -> Agent:
        first, second = self._agents
        return first if first.color is color else second

    @property
    def black_agent(self) -> Agent:
        return self.agent_for(Color.BLACK)

    @property
    def white_agent(self) -> Agent:
        return self.agent_for(Color.WHITE)

    @property
    def human_vs_machine(self) -> bool:
        return self._agents[0].is_human != self._agents[1].is_human

    @property
    def some_human(self) -> bool:
        return any(a.is_human for a in self._agents)

    @property
    def human_only(self) -> bool:
        return all(a.is_human for a in self._agents)

    @property
    def machine_only(self) -> bool:
        return all(a.is_machine for a in self._agents)

    @property
    def human_turn(self) -> bool:
        return self.agent_for(self._engine.turn).is_human

    @property
    def machine_turn(self) -> bool:
        return self.agent_for(self._engine.turn).is_machine

    def _human_agent(self) -> Agent | None:
        if not self.human_vs_machine:
            return None
        return next(a for a in self._agents if a.is_human)

    @property
    def human_score(self) -> int:
        """Stones of the human side; 0 unless exactly one side is human."""
        human = self._human_agent()
        return self._engine.score.count(human.color) if human else 0

    @property
    def machine_score(self) -> int:
        human = self._human_agent()
        return self._engine.score.count(human.color.opponent) if human else 0

    @property
    def human_win(self) -> bool:
        return self.human_score > self.machine_score

    @property
    def machine_win(self) -> bool:
        return self.human_score < self.machine_score

    @property
    def headline_tally(self) -> Tally:
        """The tally a scoreboard should lead with for the current seating."""
        if self._options.force_change and self.machine_only:
            return self.team_tally
        if self.human_vs_machine:
            return self.race_tally
        return self.color_tally

    def change_roles(self) -> None:
        """Swap human <-> machine on both seats. Only at a match boundary."""
        for agent in self._agents:
            agent.change_role()
        logger.info("Roles changed: black=%s, white=%s",
                    self.black_agent.role.value, self.white_agent.role.value)

    def change_colors(self) -> None:
        """Swap the two agents' colors. Only at a match boundary."""
        for agent in self._agents:
            agent.change_color()
        logger.info("Colors changed: black=team %s, white=team %s",
                    self.black_agent.team_id, self.white_agent.team_id)

    def choose_side(self, color: Color) -> None:
        """Seat the human on ``color`` and the machine on the other side."""
        self.agent_for(color).set_role(Role.HUMAN)
        self.agent_for(color.opponent).set_role(Role.MACHINE)

    # ------------------------------------------------------------------
    # Driving
    # ------------------------------------------------------------------

    def tick(self) -> GameState:
        """Advance by at most one step and return the resulting state."""
        if self._pending is not None:
            if self._request_due is not None and self._clock() >= self._request_due:
                self._dispatch_request()
            return self._state

        if self._state is GameState.NOT_READY:
            self._tick_not_ready()
        elif self._state is GameState.PLAY:
            self._tick_play()
        elif self._state is GameState.END:
            self._tick_end()
        elif self._state is GameState.RESET:
            self._tick_reset()
        # CONFIRM: held until the confirm collaborator completes
        return self._state

    def _set_state(self, state: GameState) -> None:
        logger.debug("GameState %s => %s", self._state.value, state.value)
        self._state = state

    def _tick_not_ready(self) -> None:
        if self.human_vs_machine and self._confirm is not None:
            self._after_confirm = GameState.PLAY
            self._set_state(GameState.CONFIRM)
            self._confirm.present(
                "Select First / Second",
                [
                    ConfirmOption("Black", functools.partial(self.choose_side, Color.BLACK)),
                    ConfirmOption("White", functools.partial(self.choose_side, Color.WHITE)),
                ],
                self._complete_confirm,
            )
        else:
            self._set_state(GameState.PLAY)

    def _tick_play(self) -> None:
        engine = self._engine
        if engine.is_end:
            self._set_state(GameState.END)
            return

        agent = self.agent_for(engine.turn)
        if not agent.is_machine:
            return  # waiting for the human's click

        if not engine.turn_enable and self._options.auto_pass:
            engine.move(PASS)
            self._log_ply(agent, PASS, [], auto_pass=True)
            return

        self._pending = agent
        delay = self._options.machine_delay_s if self.some_human else 0.0
        self._request_due = self._clock() + delay
        if delay <= 0:
            self._dispatch_request()

    def _dispatch_request(self) -> None:
        agent = self._pending
        assert agent is not None
        self._request_due = None
        engine = self._engine
        request = DecisionRequest(
            color=engine.turn,
            step=engine.step,
            snapshot=engine.snapshot(),
            legal_mask=tuple(engine.legal_mask()),
            respond=functools.partial(self.submit_decision, agent),
        )
        logger.debug("%s.request_decision step=%d turn=%s score=%s",
                     agent.name, engine.step, engine.turn.value, engine.score)
        agent.request_decision(request)

    def _tick_end(self) -> None:
        engine = self._engine
        score = engine.score
        winner = score.winner

        self.color_tally.record(winner.value if winner else None)
        if self.human_vs_machine:
            if self.human_win:
                self.race_tally.record("human")
            elif self.machine_win:
                self.race_tally.record("machine")
            else:
                self.race_tally.record(None)
        self.team_tally.record(self.agent_for(winner).team_id if winner else None)

        for agent in self._agents:
            if agent.is_machine:
                agent.on_match_end(MatchOutcome(score.black, score.white, agent.color))
        self._finalize_telemetry(winner)
        self.matches_completed += 1
        logger.info("Match %d ended %d : %d (%s), step=%d",
                    self.match_number, score.black, score.white,
                    winner.value if winner else "draw", engine.step)

        if self.some_human:
            self._after_confirm = GameState.RESET
            self._set_state(GameState.CONFIRM)
            if self._confirm is not None:
                self._confirm.present(
                    self._end_message(),
                    [ConfirmOption("Change", self.change_roles), ConfirmOption("Continue")],
                    self._complete_confirm,
                )
        else:
            if self._options.force_change:
                self.change_colors()
            self._set_state(GameState.RESET)

    def _tick_reset(self) -> None:
        self._engine.reset()
        self.match_number += 1
        self._referee = Referee()
        self._telemetry = self._open_telemetry()
        logger.info("Match %d reset: black=%s (%s), white=%s (%s)",
                    self.match_number,
                    self.black_agent.name, self.black_agent.role.value,
                    self.white_agent.name, self.white_agent.role.value)
        self._set_state(GameState.PLAY)

    def _end_message(self) -> str:
        if self.human_vs_machine:
            return "You Win" if self.human_win else "You Lose" if self.machine_win else "Draw"
        if self._engine.black_win:
            return "Black Win"
        if self._engine.white_win:
            return "White Win"
        return "Draw"

    # ------------------------------------------------------------------
    # Confirm
    # ------------------------------------------------------------------

    def _complete_confirm(self) -> None:
        if self._state is not GameState.CONFIRM:
            logger.warning("Confirm completed outside CONFIRM (state=%s)", self._state.value)
            return
        self._set_state(self._after_confirm)

    def confirm(self, change: bool = False) -> None:
        """Answer the end-of-match confirm step without a dialog."""
        if self._state is not GameState.CONFIRM or self._after_confirm is not GameState.RESET:
            raise RuntimeError(f"No end-of-match confirmation pending (state={self._state.value})")
        if change:
            self.change_roles()
        self._complete_confirm()

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def submit_decision(self, agent: Agent, decision: Any, color: Color | None = None) -> bool:
        """Accept an agent's answer to the outstanding request.

        ``color`` is the color the agent claims to move for (default: its
        own). Returns True if the ply was applied.
        """
        engine = self._engine
        claimed = agent.color if color is None else color
        try:
            if self._pending is not agent or self._request_due is not None:
                raise AgentMismatchError(
                    f"{agent.name} answered while "
                    f"{self._pending.name if self._pending else 'nobody'} was asked"
                )
            if claimed is not engine.turn:
                raise TeamMismatchError(
                    f"{agent.name} claims {claimed.value} on {engine.turn.value}'s turn"
                )
        except AgentMismatchError as e:
            # Still waiting for the agent that was asked
            logger.error("Agent mismatch: %s (step=%d)\n%s", e, engine.step, engine)
            self._referee.record_violation(
                agent.name, ViolationKind.AGENT_MISMATCH, engine.step, str(e)
            )
            return False
        except TeamMismatchError as e:
            logger.warning("Team mismatch: %s (step=%d)\n%s", e, engine.step, engine)
            self._referee.record_violation(
                agent.name, ViolationKind.TEAM_MISMATCH, engine.step, str(e)
            )
            self._pending = None
            return False

        parsed = self._parser.parse(decision)
        if not parsed.success:
            self._reject(agent, ViolationKind.MALFORMED_DECISION, parsed.error or "undecodable")
            return False

        try:
            flipped = engine.move(parsed.position)
        except IllegalPassError as e:
            self._reject(agent, ViolationKind.ILLEGAL_PASS, str(e))
            return False
        except MoveError as e:
            self._reject(agent, ViolationKind.ILLEGAL_MOVE, str(e))
            return False

        self._pending = None
        self._log_ply(agent, parsed.position, flipped)
        logger.debug("Moved (%s) [%s]: step=%d", agent.name,
                     describe(parsed.position), engine.step)
        return True

    def _reject(self, agent: Agent, kind: ViolationKind, details: str) -> None:
        logger.warning("Rejected %s from %s: %s", kind.value, agent.name, details)
        ruling = self._referee.record_violation(agent.name, kind, self._engine.step, details)
        self._pending = None
        if ruling is Ruling.END_EPISODE:
            agent.end_episode(details)

    # ------------------------------------------------------------------
    # Human entry points (UI collaborator)
    # ------------------------------------------------------------------

    def _human_may_act(self) -> bool:
        return (
            self._state is GameState.PLAY
            and self._pending is None
            and not self._engine.is_end
            and self.human_turn
        )

    def human_move(self, position: int) -> bool:
        """Play a human click (cell index or PASS).

        Returns False when it is not a human's turn or a request is
        outstanding. Raises MoveError for an illegal cell or pass.
        """
        if not self._human_may_act():
            return False
        agent = self.agent_for(self._engine.turn)
        flipped = self._engine.move(position)
        self._log_ply(agent, position, flipped)
        return True

    def undo(self) -> int:
        """Take back the human's last ply and the reply to it.

        Returns the number of plies removed (0 when gated or nothing to undo).
        """
        if not self._human_may_act():
            return 0
        removed = self._engine.retract(self._engine.turn)
        logger.info("Undo: %d plies retracted, step=%d", removed, self._engine.step)
        return removed

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        snap = self._engine.snapshot()
        snap.update({
            "state": self._state.value,
            "match_number": self.match_number,
            "pending_agent": self._pending.name if self._pending else None,
            "human_turn": self.human_turn,
            "black_agent": self.black_agent.name,
            "white_agent": self.white_agent.name,
            "human_score": self.human_score,
            "machine_score": self.machine_score,
            "tallies": self._tallies(),
            "headline_tally": self.headline_tally.title,
        })
        return snap

    def _tallies(self) -> dict:
        return {
            "color": self.color_tally.as_dict(),
            "race": self.race_tally.as_dict(),
            "team": self.team_tally.as_dict(),
        }

    # ------------------------------------------------------------------
    # Telemetry
    # ------------------------------------------------------------------

    def _open_telemetry(self) -> TelemetryLogger | None:
        if self._telemetry_dir is None:
            return None
        match_id = f"{self._session_name}-{self.match_number:03d}"
        return TelemetryLogger(self._telemetry_dir, match_id)

    def _log_ply(
        self, agent: Agent, position: int, flipped: list[int], auto_pass: bool = False
    ) -> None:
        if self._telemetry is None:
            return
        score = self._engine.score
        self._telemetry.log_ply(PlyEntry(
            step=self._engine.step,
            match_number=self.match_number,
            color=agent.color.value,
            agent=agent.name,
            team_id=agent.team_id,
            role=agent.role.value,
            position=describe(position),
            flipped=[notation(*to_position(i)) for i in flipped],
            auto_pass=auto_pass,
            black_count=score.black,
            white_count=score.white,
            violations=self._referee.violation_count(agent.name),
        ))

    def _finalize_telemetry(self, winner: Color | None) -> None:
        if self._telemetry is None:
            return
        score = self._engine.score
        self._telemetry.finalize_match(
            piece_counts={"B": score.black, "W": score.white},
            winner=winner.value if winner else None,
            tallies=self._tallies(),
            fidelity=self._referee.get_fidelity_report(),
            extra={
                "steps": self._engine.step,
                "seats": {
                    a.color.value: {"agent": a.name, "team_id": a.team_id, "role": a.role.value}
                    for a in self._agents
                },
            },
        )
