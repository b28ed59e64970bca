"""Unit tests for DataBindingResolver."""

from __future__ import annotations

from typing import Any

import pytest

from pagewright.exceptions import BindingResolutionError
from pagewright.runtime.bindings import DataBindingResolver
from pagewright.runtime.context import RenderContext
from pagewright.runtime.schema import Binding


def binding(**fields: Any) -> Binding:
    return Binding.model_validate({"target": "value", **fields})


@pytest.fixture
def resolver() -> DataBindingResolver:
    return DataBindingResolver()


@pytest.fixture
def ctx() -> RenderContext:
    return RenderContext(
        data={"products": [{"name": "Lamp", "price": 20}]},
        state={"count": 5, "draft": None},
        variables={"item": {"name": "Desk"}, "index": 2},
        params={"id": "p-1"},
        query={"page": "3"},
        user={"name": "Ada"},
        tenant={"plan": "pro"},
    )


class TestBindingKinds:
    @pytest.mark.parametrize(
        ("fields", "expected"),
        [
            ({"type": "static", "source": {"literal": True}}, {"literal": True}),
            ({"type": "expression", "source": "state.count * 2"}, 10),
            ({"type": "computed", "source": "len(data.products)"}, 1),
            ({"type": "datasource", "source": "products[0].name"}, "Lamp"),
            ({"type": "state", "source": "count"}, 5),
            ({"type": "variable", "source": "item.name"}, "Desk"),
            ({"type": "context", "source": "user.name"}, "Ada"),
            ({"type": "context", "source": "tenant.plan"}, "pro"),
            ({"type": "context", "source": "params.id"}, "p-1"),
            ({"type": "context", "source": "query.page"}, "3"),
        ],
    )
    def test_kinds(
        self, resolver: DataBindingResolver, ctx: RenderContext, fields: dict, expected: Any
    ) -> None:
        assert resolver.resolve(binding(**fields), ctx) == expected

    def test_context_rejects_other_roots(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        assert resolver.resolve(binding(type="context", source="state.count"), ctx) is None

    def test_unknown_kind_returns_default(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        assert resolver.resolve(binding(type="magic", source="x", defaultValue=7), ctx) == 7
        assert resolver.resolve(binding(type="magic", source="x"), ctx) is None


class TestDefaults:
    def test_present_value_wins(self, resolver: DataBindingResolver, ctx: RenderContext) -> None:
        result = resolver.resolve(binding(type="state", source="count", defaultValue=0), ctx)
        assert result == 5

    def test_missing_value_uses_default(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        result = resolver.resolve(binding(type="state", source="total", defaultValue=0), ctx)
        assert result == 0

    def test_explicit_none_uses_default(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        result = resolver.resolve(binding(type="state", source="draft", defaultValue=""), ctx)
        assert result == ""

    def test_failure_uses_default(self, resolver: DataBindingResolver, ctx: RenderContext) -> None:
        result = resolver.resolve(
            binding(type="expression", source="state.count / 0", defaultValue=-1), ctx
        )
        assert result == -1

    def test_failure_without_default_is_none(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        assert resolver.resolve(binding(type="expression", source="nope.x"), ctx) is None

    def test_non_string_path_source_fails_softly(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        assert resolver.resolve(binding(type="state", source=3), ctx) is None


class TestStrictMode:
    def test_strict_failure_raises(self, resolver: DataBindingResolver, ctx: RenderContext) -> None:
        with pytest.raises(BindingResolutionError) as exc_info:
            resolver.resolve(binding(type="expression", source="nope.x", mode="strict"), ctx)
        assert exc_info.value.target == "value"

    def test_strict_with_default_degrades(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        result = resolver.resolve(
            binding(type="expression", source="nope.x", mode="strict", defaultValue="n/a"), ctx
        )
        assert result == "n/a"


class TestTransforms:
    def test_transform_sees_value(self, resolver: DataBindingResolver, ctx: RenderContext) -> None:
        result = resolver.resolve(
            binding(type="state", source="count", transform="value * 10"), ctx
        )
        assert result == 50

    def test_failed_transform_keeps_value(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        result = resolver.resolve(
            binding(type="state", source="count", transform="value.missing.deep"), ctx
        )
        assert result == 5


class TestResolveAll:
    def test_one_value_per_binding_in_order(
        self, resolver: DataBindingResolver, ctx: RenderContext
    ) -> None:
        resolved = resolver.resolve_all(
            [
                Binding(target="label", type="static", source="a"),
                Binding(target="label", type="static", source="b"),
                Binding(target="count", type="state", source="count"),
            ],
            ctx,
        )
        assert resolved == ["a", "b", 5]

    def test_empty(self, resolver: DataBindingResolver, ctx: RenderContext) -> None:
        assert resolver.resolve_all([], ctx) == []
