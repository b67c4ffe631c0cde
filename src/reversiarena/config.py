"""Session configuration loader."""

import yaml
from dataclasses import dataclass, field
from pathlib import Path

from reversiarena.core.agent import Role
from reversiarena.reversi.board import Color


@dataclass
class AgentConfig:
    name: str
    team_id: int
    color: Color
    role: Role = Role.MACHINE
    strategy: str = "random"  # key into STRATEGY_REGISTRY


@dataclass
class SessionConfig:
    name: str
    seed: int
    matches: int = 1
    force_change: bool = False      # rotate colors between all-machine matches
    auto_pass: bool = True          # machines pass without being asked
    machine_delay_s: float = 0.0    # only applied when a human is seated
    agents: dict[str, AgentConfig] = field(default_factory=dict)
    output_dir: Path | None = None


def _default_color(team_id: int) -> Color:
    # Team 1 opens as black, team 0 as white
    return Color.BLACK if team_id == 1 else Color.WHITE


def load_config(path: Path) -> SessionConfig:
    """Load session config from YAML file."""
    with open(path) as f:
        raw = yaml.safe_load(f)

    s = raw["session"]

    agents = {}
    for name, a in raw.get("agents", {}).items():
        team_id = a.get("team_id", len(agents))
        color = Color(a["color"]) if "color" in a else _default_color(team_id)
        agents[name] = AgentConfig(
            name=name,
            team_id=team_id,
            color=color,
            role=Role(a.get("role", "machine")),
            strategy=a.get("strategy", "random"),
        )

    if len(agents) != 2:
        raise ValueError(f"A session seats exactly two agents, got {len(agents)}")
    first, second = agents.values()
    if first.color is second.color:
        raise ValueError(
            f"Agents {first.name!r} and {second.name!r} both start as {first.color.value}"
        )

    output_dir = s.get("output_dir")
    return SessionConfig(
        name=s["name"],
        seed=s["seed"],
        matches=s.get("matches", 1),
        force_change=s.get("force_change", False),
        auto_pass=s.get("auto_pass", True),
        machine_delay_s=s.get("machine_delay_s", 0.0),
        agents=agents,
        output_dir=Path(output_dir) if output_dir else None,
    )
