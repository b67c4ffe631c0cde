"""Session — headless runner for all-machine Reversi sessions.

Builds agents from config, ticks the orchestrator until the configured
number of matches has been played, and reports the running tallies.
Human seats need a UI collaborator and are rejected here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from reversiarena.config import AgentConfig, SessionConfig
from reversiarena.core.agent import Role, StrategyAgent
from reversiarena.core.seed import SeedManager
from reversiarena.core.strategies import STRATEGY_REGISTRY
from reversiarena.orchestrator import Orchestrator, OrchestratorOptions, Tally

logger = logging.getLogger(__name__)

# Upper bound on ticks per match: 60 placements, 60 passes, end and reset
_MAX_TICKS_PER_MATCH = 200


@dataclass
class SessionResult:
    """Aggregate result of a session."""

    matches: int
    color_tally: Tally
    race_tally: Tally
    team_tally: Tally
    fidelity: dict[str, int]        # agent name -> episodes ended
    telemetry_dir: Path | None


class Session:
    """Runs a session defined by a SessionConfig."""

    def __init__(self, config: SessionConfig) -> None:
        self.config = config
        self.seed_mgr = SeedManager(config.seed)
        self.telemetry_dir = self._resolve_telemetry_dir()
        self.agents: dict[str, StrategyAgent] = self._build_agents()
        first, second = self.agents.values()
        self.orchestrator = Orchestrator(
            first,
            second,
            options=OrchestratorOptions(
                auto_pass=config.auto_pass,
                force_change=config.force_change,
                machine_delay_s=config.machine_delay_s,
            ),
            telemetry_dir=self.telemetry_dir,
            session_name=config.name,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def run(self) -> SessionResult:
        """Play every configured match and return the tallies."""
        orch = self.orchestrator
        budget = _MAX_TICKS_PER_MATCH * self.config.matches
        seeded = 0
        while orch.matches_completed < self.config.matches:
            if seeded < orch.match_number:
                self._reseed(orch.match_number)
                seeded = orch.match_number
            if budget <= 0:
                raise RuntimeError(
                    f"Session {self.config.name!r} stalled at match {orch.match_number}, "
                    f"state={orch.state.value}, pending={orch.pending_agent}"
                )
            orch.tick()
            budget -= 1

        logger.info("Session %s finished: %s", self.config.name, orch.headline_tally.as_dict())
        return SessionResult(
            matches=orch.matches_completed,
            color_tally=orch.color_tally,
            race_tally=orch.race_tally,
            team_tally=orch.team_tally,
            fidelity={name: a.episodes_ended for name, a in self.agents.items()},
            telemetry_dir=self.telemetry_dir,
        )

    # ------------------------------------------------------------------
    # Internal: setup
    # ------------------------------------------------------------------

    def _resolve_telemetry_dir(self) -> Path | None:
        if self.config.output_dir is None:
            return None
        d = Path(self.config.output_dir) / "telemetry"
        d.mkdir(parents=True, exist_ok=True)
        return d

    def _build_agents(self) -> dict[str, StrategyAgent]:
        return {name: self._build_agent(acfg) for name, acfg in self.config.agents.items()}

    def _build_agent(self, acfg: AgentConfig) -> StrategyAgent:
        if acfg.role is not Role.MACHINE:
            raise ValueError(
                f"Agent {acfg.name!r}: headless sessions seat machine agents only"
            )
        strategy_fn = STRATEGY_REGISTRY.get(acfg.strategy)
        if strategy_fn is None:
            raise ValueError(
                f"Unknown strategy: {acfg.strategy!r}. "
                f"Available: {list(STRATEGY_REGISTRY)}"
            )
        return StrategyAgent(
            name=acfg.name,
            team_id=acfg.team_id,
            color=acfg.color,
            strategy=strategy_fn,
        )

    def _reseed(self, match_number: int) -> None:
        for name, agent in self.agents.items():
            agent.rng = self.seed_mgr.rng_for(name, match_number)
