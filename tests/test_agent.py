"""Tests for agents, decision requests, and mock strategies."""

import json
import random

import pytest

from reversiarena.core.agent import (
    DecisionRequest,
    DeferredAgent,
    MatchOutcome,
    Role,
    RoleChangeError,
    StrategyAgent,
)
from reversiarena.core.strategies import (
    STRATEGY_REGISTRY,
    first_legal_strategy,
    garbage_strategy,
    illegal_strategy,
    notation_strategy,
    random_strategy,
)
from reversiarena.core.decision import DecisionParser
from reversiarena.reversi.board import CELLS, Color, parse_notation, to_index
from reversiarena.reversi.engine import PASS


def _request(engine, respond=lambda decision: True):
    return DecisionRequest(
        color=engine.turn,
        step=engine.step,
        snapshot=engine.snapshot(),
        legal_mask=tuple(engine.legal_mask()),
        respond=respond,
    )


def _blocked_request(engine, arrange):
    arrange(engine.board, black=[(0, 0)], white=[(0, 1)])
    engine._turn = Color.WHITE
    return _request(engine)


# ------------------------------------------------------------------
# Identity and boundaries
# ------------------------------------------------------------------

class TestRoles:
    def test_role_other(self):
        assert Role.HUMAN.other is Role.MACHINE
        assert Role.MACHINE.other is Role.HUMAN

    def test_defaults_to_machine(self):
        agent = DeferredAgent("a", 1, Color.BLACK)
        assert agent.is_machine
        assert not agent.is_human

    def test_changes_without_engine(self):
        agent = DeferredAgent("a", 1, Color.BLACK)
        agent.change_role()
        agent.change_color()
        assert agent.is_human
        assert agent.color is Color.WHITE
        assert agent.team_id == 1

    def test_changes_at_start_and_end(self, engine):
        agent = DeferredAgent("a", 1, Color.BLACK)
        agent.attach(engine)
        agent.set_role(Role.HUMAN)
        engine.move(to_index(2, 4))
        for r in range(8):
            for c in range(8):
                engine.board[r, c].clear()
        engine.board[0, 0].place(Color.BLACK, 1)
        engine.board._dirty = True
        assert engine.is_end
        agent.change_color()
        assert agent.color is Color.WHITE

    def test_mid_match_change_rejected(self, engine):
        agent = DeferredAgent("a", 1, Color.BLACK)
        agent.attach(engine)
        engine.move(to_index(2, 4))
        with pytest.raises(RoleChangeError):
            agent.set_role(Role.HUMAN)
        with pytest.raises(RoleChangeError):
            agent.change_color()
        assert agent.is_machine
        assert agent.color is Color.BLACK

    def test_end_episode_counts(self):
        agent = DeferredAgent("a", 1, Color.BLACK)
        agent.end_episode("cell is occupied")
        agent.end_episode("cell is occupied")
        assert agent.episodes_ended == 2

    def test_repr(self):
        assert "team=1" in repr(DeferredAgent("a", 1, Color.BLACK))


class TestMatchOutcome:
    def test_win(self):
        outcome = MatchOutcome(40, 24, Color.BLACK)
        assert outcome.winner is Color.BLACK
        assert outcome.result == "win"

    def test_loss(self):
        assert MatchOutcome(40, 24, Color.WHITE).result == "loss"

    def test_draw(self):
        outcome = MatchOutcome(32, 32, Color.WHITE)
        assert outcome.winner is None
        assert outcome.result == "draw"


class TestDecisionRequest:
    def test_legal_indices(self, engine):
        request = _request(engine)
        assert request.legal_indices == [20, 29, 34, 43]
        assert request.must_pass is False

    def test_must_pass(self, engine, arrange):
        request = _blocked_request(engine, arrange)
        assert request.legal_indices == []
        assert request.must_pass is True


# ------------------------------------------------------------------
# Concrete agents
# ------------------------------------------------------------------

class TestStrategyAgent:
    def test_responds_synchronously(self, engine):
        answers = []
        agent = StrategyAgent("a", 1, Color.BLACK, first_legal_strategy)
        agent.request_decision(_request(engine, answers.append))
        assert answers == [20]

    def test_records_outcomes(self):
        agent = StrategyAgent("a", 1, Color.BLACK, first_legal_strategy)
        agent.on_match_end(MatchOutcome(10, 20, Color.BLACK))
        assert [o.result for o in agent.outcomes] == ["loss"]


class TestDeferredAgent:
    def test_parks_request(self, engine):
        agent = DeferredAgent("a", 1, Color.BLACK)
        request = _request(engine)
        agent.request_decision(request)
        assert agent.pending is request
        assert agent.requests == 1

    def test_resolve_delivers_once(self, engine):
        answers = []
        agent = DeferredAgent("a", 1, Color.BLACK)
        agent.request_decision(_request(engine, answers.append))
        agent.resolve("e3")
        assert answers == ["e3"]
        assert agent.pending is None
        with pytest.raises(RuntimeError):
            agent.resolve("e3")


# ------------------------------------------------------------------
# Strategies
# ------------------------------------------------------------------

class TestStrategies:
    def test_first_legal(self, engine):
        assert first_legal_strategy(_request(engine), random.Random(0)) == 20

    def test_random_is_legal_and_seeded(self, engine):
        request = _request(engine)
        picks = [random_strategy(request, random.Random(s)) for s in range(10)]
        assert set(picks) <= {20, 29, 34, 43}
        assert picks == [random_strategy(request, random.Random(s)) for s in range(10)]

    def test_strategies_pass_when_blocked(self, engine, arrange):
        request = _blocked_request(engine, arrange)
        rng = random.Random(0)
        assert first_legal_strategy(request, rng) == PASS
        assert random_strategy(request, rng) == PASS
        assert json.loads(notation_strategy(request, rng)) == {"action": "pass"}

    def test_notation_decodes_to_legal_cell(self, engine):
        raw = notation_strategy(_request(engine), random.Random(1))
        parsed = json.loads(raw)
        assert to_index(*parse_notation(parsed["cell"])) in engine.legal_moves()
        assert DecisionParser().parse(raw).success is True

    def test_illegal_hits_occupied_cell(self, engine):
        position = illegal_strategy(_request(engine), random.Random(0))
        assert 0 <= position < CELLS
        assert position == to_index(3, 3)
        assert engine.enable(position) is False

    def test_garbage_undecodable(self, engine):
        raw = garbage_strategy(_request(engine), random.Random(0))
        assert DecisionParser().parse(raw).success is False

    def test_registry(self):
        assert set(STRATEGY_REGISTRY) == {
            "first_legal", "random", "notation", "illegal", "garbage",
        }
        assert STRATEGY_REGISTRY["random"] is random_strategy

