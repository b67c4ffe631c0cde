"""Tests for DecisionParser — raw agent answers to board positions."""

import pytest

from reversiarena.core.decision import DecisionParser
from reversiarena.core.schemas import load_decision_schema
from reversiarena.reversi.engine import PASS


@pytest.fixture
def parser():
    return DecisionParser()


class TestIndices:
    def test_cell_index(self, parser):
        result = parser.parse(20)
        assert result.success is True
        assert result.position == 20
        assert result.error is None

    @pytest.mark.parametrize("raw", [PASS, 64])
    def test_pass_index(self, parser, raw):
        assert parser.parse(raw).position == PASS

    @pytest.mark.parametrize("raw", [65, -2, 1000])
    def test_out_of_range(self, parser, raw):
        result = parser.parse(raw)
        assert result.success is False
        assert "out of range" in result.error

    def test_bool_rejected(self, parser):
        assert parser.parse(True).success is False

    def test_unsupported_type(self, parser):
        result = parser.parse(3.5)
        assert result.success is False
        assert "Unsupported" in result.error


class TestText:
    def test_notation(self, parser):
        assert parser.parse("e3").position == 20

    def test_notation_case_and_space(self, parser):
        assert parser.parse("  H8 ").position == 63

    def test_pass_word(self, parser):
        assert parser.parse("PASS").position == PASS

    def test_digits(self, parser):
        assert parser.parse("43").position == 43
        assert parser.parse("-1").position == PASS

    def test_empty(self, parser):
        result = parser.parse("   ")
        assert result.success is False
        assert result.error == "Empty decision"

    def test_free_text_without_decision(self, parser):
        assert parser.parse("I am not sure what to do").success is False

    def test_json_embedded_in_prose(self, parser):
        raw = 'I will take the corner. {"action": "play", "cell": "a1"} Done.'
        assert parser.parse(raw).position == 0

    def test_last_valid_object_wins(self, parser):
        raw = (
            '{"action": "play", "row": 2, "col": 4} '
            'Actually no: {"action": "play", "row": 5, "col": 3}'
        )
        assert parser.parse(raw).position == 43

    def test_invalid_later_object_ignored(self, parser):
        raw = '{"action": "pass"} then {"action": "fly"}'
        assert parser.parse(raw).position == PASS

    def test_broken_json(self, parser):
        result = parser.parse('{"action": "play", "row": 2,}')
        assert result.success is False
        assert "JSON" in result.error


class TestObjects:
    def test_row_col(self, parser):
        assert parser.parse({"action": "play", "row": 7, "col": 0}).position == 56

    def test_cell(self, parser):
        assert parser.parse({"action": "play", "cell": "d6"}).position == 43

    def test_pass(self, parser):
        assert parser.parse({"action": "pass", "reasoning": "blocked"}).position == PASS

    def test_row_out_of_range(self, parser):
        result = parser.parse({"action": "play", "row": 8, "col": 0})
        assert result.success is False
        assert result.error.startswith("Schema validation")

    def test_unknown_action(self, parser):
        assert parser.parse({"action": "resign"}).success is False

    def test_play_without_target(self, parser):
        assert parser.parse({"action": "play"}).success is False

    def test_bad_cell(self, parser):
        assert parser.parse({"action": "play", "cell": "z9"}).success is False

    def test_custom_schema(self):
        schema = load_decision_schema()
        parser = DecisionParser(schema)
        assert parser.schema is schema
