"""Unit tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from pagewright.exceptions import (
    ActionChainTooDeepError,
    ActionConfigError,
    ActionExecutionError,
    BindingResolutionError,
    ConfigError,
    FunctionNotFoundError,
    NetworkError,
    PagewrightError,
    RenderCancelledError,
    RenderError,
    ResourceLimitError,
    SchemaError,
    SchemaParseError,
    SchemaValidationError,
)
from pagewright.runtime.expressions import ExpressionEvaluationError, ExpressionSyntaxError
from pagewright.runtime.results import ValidationIssue


class TestHierarchy:
    @pytest.mark.parametrize(
        ("error", "parent"),
        [
            (ConfigError("bad"), PagewrightError),
            (SchemaParseError("bad"), SchemaError),
            (SchemaValidationError([]), SchemaError),
            (ResourceLimitError("max_depth", 60, 50), RenderError),
            (RenderCancelledError("page"), RenderError),
            (BindingResolutionError("t", "state", "x"), RenderError),
            (ActionConfigError("navigate", "url"), ActionExecutionError),
            (ActionChainTooDeepError(33, 32), ActionExecutionError),
            (FunctionNotFoundError("f"), ActionExecutionError),
            (NetworkError("down", url="http://x"), ActionExecutionError),
        ],
    )
    def test_subclassing(self, error: Exception, parent: type) -> None:
        assert isinstance(error, parent)
        assert isinstance(error, PagewrightError)

    def test_expression_errors_share_the_base(self) -> None:
        assert issubclass(ExpressionSyntaxError, PagewrightError)
        assert issubclass(ExpressionEvaluationError, PagewrightError)


class TestMessages:
    def test_message_attribute(self) -> None:
        assert PagewrightError("boom").message == "boom"
        assert str(PagewrightError("boom")) == "boom"

    def test_parse_error_prefixes_source(self) -> None:
        error = SchemaParseError("Invalid YAML", source="page.yaml")
        assert error.message == "page.yaml: Invalid YAML"
        assert error.source == "page.yaml"

    def test_validation_error_lists_every_issue(self) -> None:
        error = SchemaValidationError(
            [
                ValidationIssue("missing_id", "Schema must have an id"),
                ValidationIssue("duplicate_id", "Duplicate node ID: a", "root.children[1]"),
            ]
        )
        assert "2 error(s)" in error.message
        assert "root.children[1]: Duplicate node ID: a" in error.message
        assert len(error.issues) == 2

    def test_action_errors_carry_their_kind(self) -> None:
        assert ActionConfigError("navigate", "url").action_type == "navigate"
        assert NetworkError("down", url="http://x", status=503).action_type == "callApi"
        assert FunctionNotFoundError("f").action_type == "callFunction"

    def test_chain_depth(self) -> None:
        error = ActionChainTooDeepError(33, 32)
        assert (error.depth, error.max_depth) == (33, 32)
        assert "exceeds maximum of 32" in error.message
