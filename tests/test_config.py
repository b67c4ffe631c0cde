"""Tests for session config loading."""

from pathlib import Path

import pytest

from reversiarena.config import AgentConfig, SessionConfig, load_config
from reversiarena.core.agent import Role
from reversiarena.reversi.board import Color

EXAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "session.yaml.example"


def _write(tmp_path, text: str) -> Path:
    path = tmp_path / "session.yaml"
    path.write_text(text)
    return path


class TestDefaults:
    def test_agent_defaults(self):
        ac = AgentConfig(name="a", team_id=1, color=Color.BLACK)
        assert ac.role is Role.MACHINE
        assert ac.strategy == "random"

    def test_session_defaults(self):
        sc = SessionConfig(name="s", seed=1)
        assert sc.matches == 1
        assert sc.force_change is False
        assert sc.auto_pass is True
        assert sc.machine_delay_s == 0.0
        assert sc.output_dir is None


class TestLoadConfig:
    def test_example_config_loads(self):
        config = load_config(EXAMPLE_CONFIG)
        assert config.name == "test-run"
        assert config.seed == 42
        assert config.matches == 4
        assert config.force_change is True
        assert config.machine_delay_s == 0.5
        assert config.agents["alpha"].color is Color.BLACK
        assert config.agents["beta"].color is Color.WHITE
        assert config.agents["beta"].strategy == "first_legal"

    def test_color_from_team(self, tmp_path):
        path = _write(tmp_path, """
session: {name: s, seed: 1}
agents:
  a: {team_id: 0}
  b: {team_id: 1}
""")
        config = load_config(path)
        assert config.agents["a"].color is Color.WHITE
        assert config.agents["b"].color is Color.BLACK

    def test_explicit_color_and_role(self, tmp_path):
        path = _write(tmp_path, """
session: {name: s, seed: 1, output_dir: out}
agents:
  a: {team_id: 1, color: white, role: human}
  b: {team_id: 0, color: black}
""")
        config = load_config(path)
        assert config.agents["a"].color is Color.WHITE
        assert config.agents["a"].role is Role.HUMAN
        assert config.output_dir == Path("out")

    def test_same_color_rejected(self, tmp_path):
        path = _write(tmp_path, """
session: {name: s, seed: 1}
agents:
  a: {team_id: 1}
  b: {team_id: 1}
""")
        with pytest.raises(ValueError, match="both start"):
            load_config(path)

    def test_wrong_agent_count(self, tmp_path):
        path = _write(tmp_path, """
session: {name: s, seed: 1}
agents:
  a: {team_id: 1}
""")
        with pytest.raises(ValueError, match="exactly two"):
            load_config(path)

    def test_bad_color(self, tmp_path):
        path = _write(tmp_path, """
session: {name: s, seed: 1}
agents:
  a: {team_id: 1, color: red}
  b: {team_id: 0}
""")
        with pytest.raises(ValueError):
            load_config(path)
