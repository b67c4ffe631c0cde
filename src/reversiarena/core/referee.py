"""Referee — violation tracking and rulings for one match.

Every rejected decision is recorded against the agent that sent it.
Illegal placements, illegal passes, and undecodable answers end the
offending agent's episode; answers from the wrong agent or for the wrong
color are discarded. Nothing is ever retried with a different move.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from enum import Enum


class ViolationKind(Enum):
    ILLEGAL_MOVE = "illegal_move"
    ILLEGAL_PASS = "illegal_pass"
    AGENT_MISMATCH = "agent_mismatch"
    TEAM_MISMATCH = "team_mismatch"
    MALFORMED_DECISION = "malformed_decision"


class Ruling(Enum):
    DISCARD = "discard"
    END_EPISODE = "end_episode"


_RULINGS = {
    ViolationKind.ILLEGAL_MOVE: Ruling.END_EPISODE,
    ViolationKind.ILLEGAL_PASS: Ruling.END_EPISODE,
    ViolationKind.MALFORMED_DECISION: Ruling.END_EPISODE,
    ViolationKind.AGENT_MISMATCH: Ruling.DISCARD,
    ViolationKind.TEAM_MISMATCH: Ruling.DISCARD,
}


@dataclass
class _ViolationRecord:
    kind: ViolationKind
    step: int
    details: str


class Referee:
    """Tracks violations per agent and issues rulings for a single match."""

    def __init__(self) -> None:
        self._violations: dict[str, list[_ViolationRecord]] = defaultdict(list)

    def record_violation(
        self, agent_name: str, kind: ViolationKind, step: int, details: str
    ) -> Ruling:
        self._violations[agent_name].append(
            _ViolationRecord(kind=kind, step=step, details=details)
        )
        return _RULINGS[kind]

    def violation_count(self, agent_name: str) -> int:
        return len(self._violations.get(agent_name, []))

    def get_fidelity_report(self) -> dict:
        report = {}
        for agent_name, violations in self._violations.items():
            counts = {"total_violations": len(violations)}
            for kind in ViolationKind:
                counts[kind.value] = 0
            for v in violations:
                counts[v.kind.value] += 1
            report[agent_name] = counts
        return report
