"""Unit tests for dotted path helpers."""

from __future__ import annotations

import pytest

from pagewright.runtime.paths import resolve_path, set_path, split_path


class TestSplitPath:
    @pytest.mark.parametrize(
        ("path", "parts"),
        [
            ("a", ["a"]),
            ("a.b.c", ["a", "b", "c"]),
            ("products[0].name", ["products", 0, "name"]),
            ("matrix[1][2]", ["matrix", 1, 2]),
            ("rows.3", ["rows", "3"]),
            ("", []),
            ("a..b", ["a", "b"]),
        ],
    )
    def test_split(self, path: str, parts: list) -> None:
        assert split_path(path) == parts


class TestResolvePath:
    def test_nested_lookup(self) -> None:
        root = {"products": [{"name": "Lamp", "tags": ["a", "b"]}]}
        assert resolve_path(root, "products[0].tags[1]") == "b"

    def test_numeric_segment_indexes_lists(self) -> None:
        assert resolve_path({"rows": ["x", "y"]}, "rows.1") == "y"

    def test_integer_part_matches_string_key(self) -> None:
        assert resolve_path({"m": {"0": "zero"}}, "m[0]") == "zero"

    def test_missing_segment_is_none(self) -> None:
        assert resolve_path({"a": {"b": 1}}, "a.c.d") is None
        assert resolve_path({"a": [1]}, "a[5]") is None
        assert resolve_path({"a": "text"}, "a.length") is None

    def test_pre_split_path(self) -> None:
        assert resolve_path({"a": [{"b": 2}]}, ["a", 0, "b"]) == 2

    def test_empty_path_returns_root(self) -> None:
        root = {"a": 1}
        assert resolve_path(root, "") is root


class TestSetPath:
    def test_creates_intermediate_dicts(self) -> None:
        root: dict = {}
        set_path(root, "cart.items.last", "A-1")
        assert root == {"cart": {"items": {"last": "A-1"}}}

    def test_replaces_none_intermediate(self) -> None:
        root: dict = {"cart": None}
        set_path(root, "cart.total", 3)
        assert root == {"cart": {"total": 3}}

    def test_writes_into_existing_list(self) -> None:
        root = {"rows": [{"done": False}, {"done": False}]}
        set_path(root, "rows[1].done", True)
        assert root["rows"][1]["done"] is True

    def test_empty_path_raises(self) -> None:
        with pytest.raises(KeyError):
            set_path({}, "", 1)

    def test_non_container_raises(self) -> None:
        with pytest.raises(TypeError, match="Cannot descend"):
            set_path({"count": 5}, "count.value", 1)
