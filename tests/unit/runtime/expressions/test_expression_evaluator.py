"""Unit tests for ExpressionEvaluator.

Test scenarios:
1. Namespace references: state.count -> scope["state"]["count"]
2. Arithmetic, comparison and short-circuit logic
3. Built-in functions
4. Templates: "Hi {{ user.name }}" and typed single-expression templates
5. Sandboxing: unknown names, private members, unknown functions
6. validate() and extract_variables()
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any

import pytest

from pagewright.runtime.expressions import (
    ExpressionEvaluationError,
    ExpressionEvaluator,
    ExpressionSyntaxError,
    describe_error,
    is_empty,
    to_text,
)


@pytest.fixture
def evaluator() -> ExpressionEvaluator:
    return ExpressionEvaluator()


@pytest.fixture
def scope() -> dict[str, Any]:
    return {
        "state": {"count": 5, "flag": True, "items": [1, 2, 3], "name": ""},
        "data": {"products": [{"name": "Lamp", "price": 20}, {"name": "Desk", "price": 150}]},
        "user": MappingProxyType({"name": "Ada", "roles": ["admin", "editor"]}),
        "eventData": {"sku": "A-1"},
    }


class TestReferences:
    def test_namespace_member(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("state.count", scope) == 5

    def test_nested_index_and_member(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("data.products[1].name", scope) == "Desk"

    def test_string_key_index(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("state['count']", scope) == 5

    def test_read_only_mapping(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("user.roles[0]", scope) == "admin"

    def test_missing_key_is_none(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("state.missing", scope) is None

    def test_out_of_range_index_is_none(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("state.items[10]", scope) is None

    @pytest.mark.parametrize("expression", ["state.items[-1]", "state.items[-3]", "user.name[-1]"])
    def test_negative_index_is_none(
        self, evaluator: ExpressionEvaluator, scope: dict, expression: str
    ) -> None:
        assert evaluator.execute(expression, scope) is None

    def test_length_property(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("state.items.length", scope) == 3
        assert evaluator.execute("user.name.length", scope) == 3

    def test_member_of_null_raises(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        with pytest.raises(ExpressionEvaluationError, match="of null"):
            evaluator.execute("state.missing.deep", scope)

    def test_unknown_variable_lists_available(
        self, evaluator: ExpressionEvaluator, scope: dict
    ) -> None:
        with pytest.raises(ExpressionEvaluationError) as exc_info:
            evaluator.execute("secrets.key", scope)
        assert "Unknown variable 'secrets'" in exc_info.value.message
        assert "state" in exc_info.value.context_vars


class TestOperators:
    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("state.count * 2", 10),
            ("state.count - 7", -2),
            ("10 / 4", 2.5),
            ("10 / 2", 5),
            ("7 % 3", 1),
            ("-state.count", -5),
            ("'n=' + state.count", "n=5"),
            ("'flag: ' + state.flag", "flag: true"),
            ("[1] + [2]", [1, 2]),
            ("state.count > 3 && state.count < 10", True),
            ("'5' == 5", True),
            ("'5' === 5", False),
            ("5 === 5.0", True),
            ("null == undefined", True),
            ("0 == null", False),
            ("'admin' in user.roles", True),
            ("'da' in user.name", True),
            ("not state.flag", False),
            ("!state.name", True),
        ],
    )
    def test_operator_results(
        self, evaluator: ExpressionEvaluator, scope: dict, expression: str, expected: Any
    ) -> None:
        assert evaluator.execute(expression, scope) == expected

    def test_or_returns_first_truthy_operand(
        self, evaluator: ExpressionEvaluator, scope: dict
    ) -> None:
        assert evaluator.execute("state.name || 'anonymous'", scope) == "anonymous"
        assert evaluator.execute("state.count || 0", scope) == 5

    def test_and_short_circuits(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        # The right side would fail if it were evaluated.
        assert evaluator.execute("state.missing && state.missing.deep", scope) is None

    def test_ternary(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("state.count > 3 ? 'many' : 'few'", scope) == "many"

    def test_division_by_zero(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        with pytest.raises(ExpressionEvaluationError, match="Division by zero"):
            evaluator.execute("state.count / 0", scope)

    def test_type_mismatch(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        with pytest.raises(ExpressionEvaluationError, match="Cannot apply '-'"):
            evaluator.execute("state.items - 1", scope)

    def test_object_literal(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.execute("{sku: eventData.sku, qty: 2}", scope) == {
            "sku": "A-1",
            "qty": 2,
        }


class TestBuiltins:
    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("len(state.items)", 3),
            ("sum(state.items)", 6),
            ("max(state.items)", 3),
            ("min(4, 2, 8)", 2),
            ("round(2.567, 2)", 2.57),
            ("round(2.5)", 2),
            ("upper(user.name)", "ADA"),
            ("trim('  x ')", "x"),
            ("includes(user.roles, 'editor')", True),
            ("startsWith(user.name, 'A')", True),
            ("join(user.roles, ', ')", "admin, editor"),
            ("split('a,b', ',')", ["a", "b"]),
            ("number('12')", 12),
            ("str(state.flag)", "true"),
            ("default(state.missing, 'fallback')", "fallback"),
            ("isEmpty(state.name)", True),
            ("isEmpty(state.items)", False),
            ("keys({a: 1, b: 2})", ["a", "b"]),
            ("concat('a', 1, null)", "a1"),
        ],
    )
    def test_builtin_results(
        self, evaluator: ExpressionEvaluator, scope: dict, expression: str, expected: Any
    ) -> None:
        assert evaluator.execute(expression, scope) == expected

    def test_builtin_failure_is_evaluation_error(
        self, evaluator: ExpressionEvaluator, scope: dict
    ) -> None:
        with pytest.raises(ExpressionEvaluationError, match="len\\(\\) failed"):
            evaluator.execute("len(state.count)", scope)


class TestSandbox:
    def test_private_members_are_blocked(self, evaluator: ExpressionEvaluator) -> None:
        with pytest.raises(ExpressionEvaluationError, match="private member"):
            evaluator.execute("obj.__class__", {"obj": object()})

    def test_private_index_is_blocked(self, evaluator: ExpressionEvaluator) -> None:
        with pytest.raises(ExpressionEvaluationError, match="private member"):
            evaluator.execute("state['_secret']", {"state": {"_secret": 1}})

    def test_unknown_function_never_runs(self, evaluator: ExpressionEvaluator) -> None:
        with pytest.raises(ExpressionSyntaxError):
            evaluator.execute("__import__('os')", {})


class TestTemplates:
    def test_interpolation(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.resolve_template("Hi {{ user.name }}!", scope) == "Hi Ada!"

    def test_multiple_expressions(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        result = evaluator.resolve_template(
            "{{ state.count }} of {{ len(state.items) }}", scope
        )
        assert result == "5 of 3"

    def test_single_expression_keeps_type(
        self, evaluator: ExpressionEvaluator, scope: dict
    ) -> None:
        assert evaluator.resolve_template("{{ state.count }}", scope) == 5
        assert evaluator.resolve_template("  {{ state.items }}  ", scope) == [1, 2, 3]

    def test_none_interpolates_as_empty(
        self, evaluator: ExpressionEvaluator, scope: dict
    ) -> None:
        assert evaluator.resolve_template("[{{ state.missing }}]", scope) == "[]"

    def test_non_strings_pass_through(self, evaluator: ExpressionEvaluator, scope: dict) -> None:
        assert evaluator.resolve_template(42, scope) == 42
        assert evaluator.resolve_template("no braces", scope) == "no braces"

    def test_resolve_structure_recurses_and_skips(
        self, evaluator: ExpressionEvaluator, scope: dict
    ) -> None:
        config = {
            "key": "cart.{{ eventData.sku }}",
            "value": ["{{ state.count }}", {"who": "{{ user.name }}"}],
            "code": "{{ not resolved }}",
        }
        resolved = evaluator.resolve_structure(config, scope, frozenset({"code"}))
        assert resolved == {
            "key": "cart.A-1",
            "value": [5, {"who": "Ada"}],
            "code": "{{ not resolved }}",
        }


class TestIntrospection:
    def test_validate(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.validate("state.count > 1")
        assert not evaluator.validate("state.count >")
        assert not evaluator.validate("fetch('x')")

    def test_validate_never_evaluates(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.validate("missing.variable / 0")

    def test_extract_variables(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.extract_variables(
            "state.count + user.age * state.rate + len(items) + Math"
        ) == ["state", "user", "items"]

    def test_extract_variables_skips_literals(self, evaluator: ExpressionEvaluator) -> None:
        assert evaluator.extract_variables("true || null || x") == ["x"]


class TestHelpers:
    def test_to_text(self) -> None:
        assert to_text(None) == ""
        assert to_text(False) == "false"
        assert to_text(2.0) == "2"
        assert to_text({"a": 1}) == '{"a": 1}'

    def test_is_empty(self) -> None:
        assert is_empty(None)
        assert is_empty("")
        assert is_empty({})
        assert is_empty(0)
        assert not is_empty([0])

    def test_describe_error_uses_first_line(self, evaluator: ExpressionEvaluator) -> None:
        with pytest.raises(ExpressionEvaluationError) as exc_info:
            evaluator.execute("nope", {"state": {}})
        assert "\n" not in describe_error(exc_info.value)
        assert describe_error(ValueError("bad")) == "ValueError: bad"
