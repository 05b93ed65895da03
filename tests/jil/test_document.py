"""
Tests for JSON document intake.
"""

import pytest

from jil import MalformedExpressionError, evaluate_text, is_jil_filename, loads
from jil.document import JsonObject


class TestLoads:
    """Tests for decoding JIL documents."""

    def test_atoms(self):
        assert loads("1") == 1
        assert loads('"a"') == "a"
        assert loads("true") is True

    def test_objects_keep_duplicate_members(self):
        tree = loads('{"x": 1, "x": 2}')
        assert isinstance(tree, JsonObject)
        assert list(tree) == [("x", 1), ("x", 2)]
        assert tree.keys() == ("x", "x")

    def test_bytes(self):
        assert loads(b'["+", 1, 2]') == ["+", 1, 2]

    @pytest.mark.parametrize("text", ["NaN", "[Infinity]", "-Infinity"])
    def test_rejects_non_finite_numbers(self, text):
        with pytest.raises(MalformedExpressionError):
            loads(text)

    def test_invalid_json(self):
        with pytest.raises(MalformedExpressionError, match="line 1 column"):
            loads('["+", 1,')

    def test_duplicate_definitions_reach_where(self):
        value = evaluate_text('[["where"], ["x"], {"x": 1, "x": 2}]').value
        assert value["error"] == "name validation error"
        assert value["reason"] == "duplicate"

    def test_duplicate_object_keys_are_errors(self):
        value = evaluate_text('{"a": 1, "a": 2}').value
        assert value["error"] == "duplicate key"


class TestFileNames:
    """Tests for file name detection."""

    @pytest.mark.parametrize(
        "name,expected",
        [("rule.jil", True), ("RULE.JIL", True), ("rule.json", False), ("jil", False)],
    )
    def test_is_jil_filename(self, name, expected):
        assert is_jil_filename(name) is expected
