"""
Tests for the runtime value model.
"""

import pytest

from jil import (
    INT32_MAX,
    INT32_MIN,
    JilObject,
    Provenance,
    evaluate,
    evaluate_text,
    kind_of,
    to_jil,
    to_python,
    to_value,
    values_equal,
)
from jil.values import is_int32, value_key, wrap_int32


class TestIntegers:
    """Tests for 32-bit integer helpers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (0, 0),
            (INT32_MAX, INT32_MAX),
            (INT32_MAX + 1, INT32_MIN),
            (INT32_MIN - 1, INT32_MAX),
            (2**32 + 5, 5),
            (-(2**32) - 5, -5),
        ],
    )
    def test_wrap_int32(self, value, expected):
        assert wrap_int32(value) == expected

    def test_is_int32(self):
        assert is_int32(INT32_MIN)
        assert not is_int32(INT32_MAX + 1)


class TestKinds:
    """Tests for kind names."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (True, "boolean"),
            (1, "integer"),
            ("a", "string"),
            ((), "array"),
            (JilObject(), "object"),
        ],
    )
    def test_kind_of(self, value, expected):
        assert kind_of(value) == expected


class TestObjects:
    """Tests for JilObject keys and equality."""

    def test_keys_are_tagged_by_kind(self):
        value = JilObject([(1, "int"), (True, "bool"), ("1", "str")])
        assert len(value) == 3
        assert value[1] == "int"
        assert value[True] == "bool"
        assert value["1"] == "str"

    def test_string_keys_are_nfd(self):
        value = JilObject({"\u00e9": 1})
        assert list(value) == ["e\u0301"]
        assert value["\u00e9"] == 1
        assert "e\u0301" in value

    def test_array_keys(self):
        value = JilObject([((1, 2), "pair")])
        assert value[(1, 2)] == "pair"
        assert (1, 3) not in value

    def test_later_entries_win(self):
        value = JilObject([("a", 1), ("a", 2)])
        assert value["a"] == 2

    def test_missing_key(self):
        with pytest.raises(KeyError):
            JilObject()["a"]

    def test_provenance_does_not_affect_equality(self):
        plain = JilObject({"x": 1})
        tagged = plain.with_provenance(Provenance(JilObject({"new": 0}), (1,)))
        assert tagged == plain
        assert tagged.provenance.args == (1,)
        assert plain.provenance is None

    def test_unhashable(self):
        with pytest.raises(TypeError):
            hash(JilObject())

    def test_function_keys_follow_canonical_form(self):
        first = evaluate([["func"], 1]).value
        second = evaluate([["func"], 1]).value
        assert first is not second
        value = JilObject([(first, "one")])
        assert value[second] == "one"
        assert evaluate([["func"], 2]).value not in value

    def test_builtin_function_keys_match_across_evaluators(self):
        value = evaluate([["object"], ["array"], 1]).value
        copy = evaluate_text(to_jil(value)).value
        assert copy[evaluate(["array"]).value] == 1
        assert values_equal(copy, value)

    def test_value_key_distinguishes_kinds(self):
        assert value_key(1) != value_key(True)
        assert value_key("\u00e9") == value_key("e\u0301")


class TestConversion:
    """Tests for host value conversion."""

    def test_to_value(self):
        value = to_value({"a": [1, True, "x"], "b": {"c": 2.0}})
        assert value["a"] == (1, True, "x")
        assert value["b"]["c"] == 2
        assert isinstance(value["b"]["c"], int)

    def test_to_value_normalizes_strings(self):
        assert to_value("\u00e9") == "e\u0301"

    @pytest.mark.parametrize("obj", [None, 1.5, 2**31, object()])
    def test_to_value_rejects(self, obj):
        with pytest.raises(ValueError):
            to_value(obj)

    def test_to_python(self):
        value = JilObject([("a", (1, 2)), (3, False)])
        assert to_python(value) == {"a": [1, 2], 3: False}

    def test_to_python_rejects_array_keys(self):
        with pytest.raises(ValueError):
            to_python(JilObject([((1,), "x")]))
