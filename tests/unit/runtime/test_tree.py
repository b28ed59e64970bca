"""Unit tests for tree traversal helpers."""

from __future__ import annotations

from pagewright.runtime.schema import Schema
from pagewright.runtime.tree import (
    collect_nodes,
    find_node,
    find_node_by_id,
    get_node_path,
    iter_nodes,
)


class TestIterNodes:
    def test_children_before_slots(self, product_page: Schema) -> None:
        assert product_page.root is not None
        visits = list(iter_nodes(product_page.root))
        assert [v.node.id for v in visits] == [
            "page",
            "banner",
            "product-card",
            "buy-button",
            "count",
            "title",
        ]
        assert visits[3].path == "root.children[1].children[0]"
        assert visits[5].path == "root.slots.header[0]"
        assert visits[3].parent is not None and visits[3].parent.id == "product-card"
        assert visits[0].parent is None


class TestLookups:
    def test_find_node_by_id(self, product_page: Schema) -> None:
        assert product_page.root is not None
        node = find_node_by_id(product_page.root, "title")
        assert node is not None and node.type == "Heading"
        assert find_node_by_id(product_page.root, "nope") is None

    def test_find_node_predicate(self, product_page: Schema) -> None:
        assert product_page.root is not None
        node = find_node(product_page.root, lambda n: n.loop is not None)
        assert node is not None and node.id == "product-card"

    def test_collect_nodes(self, product_page: Schema) -> None:
        assert product_page.root is not None
        nodes = collect_nodes(product_page.root, lambda n: bool(n.bindings))
        assert [n.id for n in nodes] == ["product-card", "count", "title"]

    def test_get_node_path(self, product_page: Schema) -> None:
        assert product_page.root is not None
        chain = get_node_path(product_page.root, "buy-button")
        assert chain is not None
        assert [n.id for n in chain] == ["page", "product-card", "buy-button"]
        assert get_node_path(product_page.root, "page") == [product_page.root]
        assert get_node_path(product_page.root, "nope") is None
