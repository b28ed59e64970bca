"""Data binding resolution.

A binding computes one node property from a value source. Failures degrade
to the binding's default value (or None) unless the binding is strict.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pagewright.exceptions import BindingResolutionError
from pagewright.logging import get_logger
from pagewright.runtime.context import CONTEXT_ROOTS, RenderContext
from pagewright.runtime.expressions import ExpressionEvaluator, describe_error
from pagewright.runtime.paths import resolve_path, split_path
from pagewright.runtime.schema import Binding
from pagewright.runtime.types import BindingMode, BindingType, parse_kind

__all__ = ["DataBindingResolver"]

logger = get_logger(__name__)


class DataBindingResolver:
    """Resolves bindings of every kind against a render context.

    Dispatch per kind:
        static: the literal ``source``
        expression, computed: expression over all namespaces
        datasource, state, variable: dotted path in data, state, variables
        context: dotted path rooted at user, tenant, params or query

    Args:
        expressions: Evaluator for expression bindings and transforms.
    """

    def __init__(self, expressions: ExpressionEvaluator | None = None) -> None:
        self._expressions = expressions or ExpressionEvaluator()

    def resolve(self, binding: Binding, context: RenderContext) -> Any:
        """Resolve one binding.

        Returns:
            The resolved (and transformed) value. When resolution fails or
            yields None, the declared default value, else None.

        Raises:
            BindingResolutionError: If resolution fails, no default value is
                declared and the binding mode is strict.
        """
        try:
            value = self._resolve_source(binding, context)
        except Exception as e:
            if binding.has_default:
                logger.debug(
                    "binding_default_used",
                    target=binding.target,
                    error=describe_error(e),
                )
                return binding.default_value
            if parse_kind(BindingMode, binding.mode) is BindingMode.STRICT:
                raise BindingResolutionError(
                    binding.target, binding.type, describe_error(e)
                ) from e
            logger.warning(
                "binding_resolution_failed",
                target=binding.target,
                binding_type=binding.type,
                error=describe_error(e),
            )
            return None

        if value is None and binding.has_default:
            return binding.default_value
        if binding.transform:
            value = self._apply_transform(binding, value, context)
        return value

    def resolve_all(
        self, bindings: Iterable[Binding], context: RenderContext
    ) -> list[Any]:
        """Resolve bindings into a list of values, one per binding, in order."""
        return [self.resolve(binding, context) for binding in bindings]

    def _resolve_source(self, binding: Binding, context: RenderContext) -> Any:
        kind = parse_kind(BindingType, binding.type)
        if kind is None:
            logger.warning(
                "unknown_binding_type", binding_type=binding.type, target=binding.target
            )
            return binding.default_value
        if kind is BindingType.STATIC:
            return binding.source
        if kind in (BindingType.EXPRESSION, BindingType.COMPUTED):
            return self._expressions.execute(self._source_text(binding), context.scope())
        if kind is BindingType.DATASOURCE:
            return resolve_path(context.data, self._source_text(binding))
        if kind is BindingType.STATE:
            return resolve_path(context.state, self._source_text(binding))
        if kind is BindingType.VARIABLE:
            return resolve_path(context.variables, self._source_text(binding))
        return self._resolve_context(self._source_text(binding), context)

    @staticmethod
    def _source_text(binding: Binding) -> str:
        if not isinstance(binding.source, str):
            raise TypeError(
                f"{binding.type} binding for '{binding.target}' needs a string source"
            )
        return binding.source

    @staticmethod
    def _resolve_context(path: str, context: RenderContext) -> Any:
        parts = split_path(path)
        if not parts or parts[0] not in CONTEXT_ROOTS:
            return None
        return resolve_path(context.namespace(str(parts[0])), parts[1:])

    def _apply_transform(self, binding: Binding, value: Any, context: RenderContext) -> Any:
        assert binding.transform is not None
        try:
            return self._expressions.execute(binding.transform, context.scope(value=value))
        except Exception as e:
            logger.warning(
                "binding_transform_failed",
                target=binding.target,
                transform=binding.transform,
                error=describe_error(e),
            )
            return value
