"""Flat form-key decoder tests.

Covers dot/bracket path splitting, strict-index classification, nested
object and array construction, sparse-array compaction and structural
conflict detection.
"""

import itertools

import pytest

from formgate.core.errors import KeyConflictError
from formgate.parsing.form_decoder import (
    NodeKind,
    build_tree,
    compact,
    decode,
    is_strict_index,
    split_path,
)


# ── Path splitting ──────────────────────────────────────────────────────


class TestSplitPath:
    def test_dot_notation(self) -> None:
        assert split_path("user.details.email") == ["user", "details", "email"]

    def test_bracket_index(self) -> None:
        assert split_path("cars[0].model") == ["cars", "0", "model"]

    def test_bracket_name(self) -> None:
        assert split_path("config[theme][primary]") == ["config", "theme", "primary"]

    def test_empty_segments_discarded(self) -> None:
        assert split_path("a..b.") == ["a", "b"]

    def test_empty_brackets_stay_in_name(self) -> None:
        assert split_path("tags[]") == ["tags[]"]

    def test_no_segments(self) -> None:
        assert split_path("") == []
        assert split_path("...") == []


class TestStrictIndex:
    @pytest.mark.parametrize("segment", ["0", "7", "42", "007", "01"])
    def test_digit_segments_are_indices(self, segment: str) -> None:
        assert is_strict_index(segment)

    @pytest.mark.parametrize("segment", ["-1", "1.5", "1e2", " 1", "1 ", "", "abc", "٣", "+1"])
    def test_other_segments_are_names(self, segment: str) -> None:
        assert not is_strict_index(segment)


# ── Nested construction ─────────────────────────────────────────────────


class TestNestedObjects:
    def test_dot_and_bracket_keys(self) -> None:
        result = decode({
            "user.name": "Alice",
            "user.details.email": "alice@example.com",
            "user[preferences].language": "ja",
        })
        assert result == {
            "user": {
                "name": "Alice",
                "details": {"email": "alice@example.com"},
                "preferences": {"language": "ja"},
            },
        }

    def test_bracket_object_keys(self) -> None:
        result = decode({
            "config[theme][primary]": "#fff",
            "config[theme][secondary]": "#000",
            "config[labels][submit]": "Send",
        })
        assert result == {
            "config": {
                "theme": {"primary": "#fff", "secondary": "#000"},
                "labels": {"submit": "Send"},
            },
        }

    def test_flat_keys_pass_through(self) -> None:
        assert decode({"name": "Alice", "age": "30"}) == {"name": "Alice", "age": "30"}

    def test_empty_input(self) -> None:
        assert decode({}) == {}

    def test_values_are_not_coerced(self) -> None:
        result = decode({"a.count": "3", "a.flag": "true"})
        assert result == {"a": {"count": "3", "flag": "true"}}

    def test_structured_values_are_opaque(self) -> None:
        value = {"nested": [1, None, 3]}
        result = decode({"payload": value})
        assert result["payload"] is value

    def test_keys_without_segments_are_skipped(self) -> None:
        assert decode({"": "x", "...": "y", "a": "z"}) == {"a": "z"}

    def test_numeric_root_segment_is_a_name(self) -> None:
        assert decode({"0": "zero", "1.name": "one"}) == {"0": "zero", "1": {"name": "one"}}

    def test_non_strict_index_creates_mapping(self) -> None:
        assert decode({"items[-1]": "x", "codes[1a]": "y"}) == {
            "items": {"-1": "x"},
            "codes": {"1a": "y"},
        }

    def test_decimal_index_splits_on_dot(self) -> None:
        assert decode({"ratio[1.5]": "y"}) == {"ratio": [["y"]]}

    def test_same_terminal_position_last_wins(self) -> None:
        assert decode({"user.name": "Alice", "user[name]": "Bob"}) == {"user": {"name": "Bob"}}


class TestArrays:
    def test_builds_arrays_from_indices(self) -> None:
        result = decode({
            "users[0].name": "John",
            "users[0].roles[0]": "admin",
            "users[0].roles[2]": "editor",
            "users[1].name": "Jane",
            "users[1].roles[1]": "viewer",
        })
        assert result == {
            "users": [
                {"name": "John", "roles": ["admin", "editor"]},
                {"name": "Jane", "roles": ["viewer"]},
            ],
        }

    def test_sparse_array_compacted(self) -> None:
        assert decode({"values[0]": "first", "values[2]": "third"}) == {"values": ["first", "third"]}

    def test_nested_sparse_arrays_compacted(self) -> None:
        result = decode({"matrix[2][1]": "m-2-1", "matrix[2][3]": "m-2-3"})
        assert result == {"matrix": [["m-2-1", "m-2-3"]]}

    def test_explicit_nullish_values_survive(self) -> None:
        assert decode({"list[1]": None, "list[3]": False}) == {"list": [None, False]}

    def test_explicit_falsy_values_survive(self) -> None:
        result = decode({"list[0]": 0, "list[4]": "", "list[9]": None})
        assert result == {"list": [0, "", None]}

    def test_order_follows_index_not_insertion(self) -> None:
        result = decode({"values[5]": "c", "values[1]": "a", "values[3]": "b"})
        assert result == {"values": ["a", "b", "c"]}

    def test_leading_zero_index_shares_slot(self) -> None:
        assert decode({"values[01]": "a", "values[1]": "b"}) == {"values": ["b"]}

    def test_dot_index_notation(self) -> None:
        assert decode({"cars.0.model": "A", "cars.1.model": "B"}) == {
            "cars": [{"model": "A"}, {"model": "B"}],
        }


# ── Conflicts ───────────────────────────────────────────────────────────


class TestConflicts:
    @pytest.mark.parametrize(
        "entries",
        [
            [("user.name", "Alice"), ("user[0]", "first")],
            [("list.label", "items"), ("list[0].name", "first")],
            [("a", "scalar"), ("a.b", "nested")],
            [("a[0]", "scalar"), ("a[0][1]", "nested")],
        ],
    )
    def test_conflict_detected_in_either_order(self, entries) -> None:
        for ordering in itertools.permutations(entries):
            with pytest.raises(KeyConflictError, match="Key conflict"):
                decode(dict(ordering))

    def test_conflict_reports_key_path_and_kinds(self) -> None:
        with pytest.raises(KeyConflictError) as exc_info:
            decode({"user.name": "Alice", "user[0]": "first"})
        err = exc_info.value
        assert err.key == "user"
        assert err.path == "user[0]"
        assert err.existing_kind == "mapping"
        assert err.expected_kind == "sequence"

    def test_scalar_traversal_reports_scalar(self) -> None:
        with pytest.raises(KeyConflictError) as exc_info:
            decode({"a": "x", "a.b": "y"})
        assert exc_info.value.existing_kind == "scalar"
        assert exc_info.value.expected_kind == "mapping"

    def test_terminal_over_container_reports_scalar(self) -> None:
        with pytest.raises(KeyConflictError) as exc_info:
            decode({"a.b": "y", "a": "x"})
        assert exc_info.value.existing_kind == "mapping"
        assert exc_info.value.expected_kind == "scalar"


# ── Determinism ─────────────────────────────────────────────────────────


class TestOrderIndependence:
    def test_result_independent_of_key_order(self) -> None:
        entries = [
            ("users[0].name", "John"),
            ("users[0].roles[2]", "editor"),
            ("users[0].roles[0]", "admin"),
            ("users[1].name", "Jane"),
            ("meta.page", "1"),
        ]
        expected = decode(dict(entries))
        for ordering in itertools.permutations(entries):
            assert decode(dict(ordering)) == expected

    def test_fresh_tree_per_call(self) -> None:
        flat = {"a.b": "x"}
        first = decode(flat)
        first["a"]["b"] = "changed"
        assert decode(flat) == {"a": {"b": "x"}}


# ── Two-pass internals ──────────────────────────────────────────────────


class TestTreePasses:
    def test_build_tree_tags_node_kinds(self) -> None:
        root = build_tree({"users[3].name": "John", "meta.page": "1"})
        assert root.kind is NodeKind.MAPPING
        users = root.children["users"]
        assert users.kind is NodeKind.SEQUENCE
        assert list(users.children) == [3]
        assert users.children[3].kind is NodeKind.MAPPING
        assert users.children[3].children["name"].kind is NodeKind.SCALAR

    def test_compact_closes_holes(self) -> None:
        root = build_tree({"values[4]": "b", "values[2]": "a"})
        assert compact(root) == {"values": ["a", "b"]}
