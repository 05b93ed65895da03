"""
Tests for the built-in types.
"""

import pytest

from jil import EvaluationContext, JilObject, evaluate, is_error, to_python
from jil.type_registry import BUILTIN_TYPE_NAMES, create_builtin_types, is_type_object


def convert(method: str, value, type_name: str):
    """Helper to call `value.<method>(type)` on a host value."""
    tree = [[".", ["v"], method], [type_name]]
    return evaluate(tree, EvaluationContext(bindings={"v": value})).value


def construct(type_name: str, *args):
    """Helper to call `type.new(args...)`."""
    tree = [[".", [type_name], "new"]] + [[".", ["a"], i] for i in range(len(args))]
    return evaluate(tree, EvaluationContext(bindings={"a": list(args)})).value


class TestRegistry:
    """Tests for type object creation."""

    def test_builtin_types_are_type_objects(self):
        types = create_builtin_types()
        assert tuple(types) == BUILTIN_TYPE_NAMES
        assert all(is_type_object(t) for t in types.values())

    def test_plain_objects_are_not_types(self):
        assert not is_type_object(JilObject({"new": 1}))
        assert not is_type_object(1)

    def test_types_are_created_fresh(self):
        assert create_builtin_types()["integer"] is not create_builtin_types()["integer"]


class TestInteger:
    """Tests for the integer type."""

    @pytest.mark.parametrize("value,expected", [(42, 42), ("42", 42), ("-7", -7)])
    def test_cast(self, value, expected):
        assert convert("cast", value, "integer") == expected

    @pytest.mark.parametrize(
        "value", ["+7", " 7", "7.0", "2147483648", True, [1], "\u0663"]
    )
    def test_cast_rejects(self, value):
        result = convert("cast", value, "integer")
        assert result["error"] == "cannot cast"
        assert result["type"] == "integer"

    @pytest.mark.parametrize(
        "value,expected",
        [(True, 1), (False, 0), (" 12 ", 12), ("+5", 5), ("4294967297", 1), (9, 9)],
    )
    def test_coerce(self, value, expected):
        assert convert("coerce", value, "integer") == expected

    def test_coerce_rejects(self):
        assert convert("coerce", "twelve", "integer")["error"] == "cannot coerce"

    def test_cast_of_error_wraps_it(self):
        result = convert("cast", {"error": "boom"}, "integer")
        assert result["error"] == "cannot cast"
        assert result["inner"]["error"] == "boom"

    def test_is(self):
        assert convert("is", 1, "integer") is True
        assert convert("is", True, "integer") is False

    def test_new(self):
        assert construct("integer") == 0
        assert construct("integer", "5") == 5
        assert construct("integer", 1, 2)["error"] == "invalid arity"


class TestString:
    """Tests for the string type."""

    @pytest.mark.parametrize(
        "value,expected", [("a", "a"), (12, "12"), (True, "true"), (False, "false")]
    )
    def test_cast(self, value, expected):
        assert convert("cast", value, "string") == expected

    def test_cast_rejects_arrays(self):
        assert convert("cast", [1], "string")["error"] == "cannot cast"

    def test_coerce_uses_canonical_text(self):
        assert convert("coerce", [1, 2], "string") == '[["array"],1,2]'
        assert convert("coerce", {"b": 1, "a": "x"}, "string") == '{"a":"x","b":1}'

    def test_coerce_of_error_wraps_it(self):
        result = convert("coerce", {"error": "boom"}, "string")
        assert result["error"] == "cannot coerce"
        assert is_error(result["inner"])

    def test_new(self):
        assert construct("string") == ""
        assert construct("string", 3) == "3"


class TestBoolean:
    """Tests for the boolean type."""

    @pytest.mark.parametrize(
        "value,expected", [(True, True), ("true", True), ("false", False)]
    )
    def test_cast(self, value, expected):
        assert convert("cast", value, "boolean") is expected

    @pytest.mark.parametrize("value", ["TRUE", 1, "", [True]])
    def test_cast_rejects(self, value):
        assert convert("cast", value, "boolean")["error"] == "cannot cast"

    @pytest.mark.parametrize(
        "value,expected",
        [
            (2, True),
            (0, False),
            ("TRUE", True),
            ("False", False),
            ("no", True),
            ("", False),
            ([], False),
            ([0], True),
            ({}, False),
            ({"a": 1}, True),
        ],
    )
    def test_coerce(self, value, expected):
        assert convert("coerce", value, "boolean") is expected

    def test_coerce_of_error_wraps_it(self):
        result = convert("coerce", {"error": "boom"}, "boolean")
        assert result["error"] == "cannot coerce"

    def test_new(self):
        assert construct("boolean") is False
        assert construct("boolean", "true") is True


class TestError:
    """Tests for the error type."""

    def test_cast_string(self):
        assert to_python(convert("cast", "boom", "error")) == {"error": "boom"}

    def test_cast_keeps_errors(self):
        value = {"error": "boom", "code": 1}
        assert to_python(convert("cast", value, "error")) == value

    def test_cast_rejects_other_values(self):
        result = convert("cast", 5, "error")
        assert result["error"] == "cannot cast"

    def test_coerce_other_values(self):
        result = convert("coerce", 5, "error")
        assert to_python(result) == {"error": "coerced value", "value": 5}

    def test_is(self):
        assert convert("is", {"error": "x"}, "error") is True
        assert convert("is", {"error": "x", "inner": 1}, "error") is False
        assert convert("is", "x", "error") is False

    def test_new(self):
        assert to_python(construct("error", "boom")) == {"error": "boom"}

    def test_new_with_inner(self):
        value = construct("error", "outer", {"error": "inner"})
        assert value["error"] == "outer"
        assert value["inner"]["error"] == "inner"

    def test_new_requires_message(self):
        assert construct("error")["error"] == "invalid arity"

    def test_new_checks_argument_types(self):
        assert construct("error", 1)["expected"] == "string"
        assert construct("error", "outer", 5)["expected"] == "error"

    def test_constructed_errors_carry_no_provenance(self):
        value = construct("error", "boom")
        assert value.provenance is None
