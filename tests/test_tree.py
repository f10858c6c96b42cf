"""Tests for the tree builder and display policies."""

import pytest

from depdelta.models import DisplayOption, FilterType, Label, Record, TreeItemNode, walk_forest
from depdelta.tree import apply_policy, build_tree, is_direct_child


def _package(code, name=None):
    name = name or code.rsplit(".", 1)[-1]
    return Record(name, code, code[len("root."):], Label.PACKAGE, FilterType.PACKAGE)


def _class(code, name=None):
    name = name or code.rsplit(".", 1)[-1]
    return Record(name, code, code[len("root."):], Label.CLASS, FilterType.CLASS)


def _dep(code, name, added=True):
    label = Label.ADDED_DEPENDENCY if added else Label.DELETED_DEPENDENCY
    return Record(name, code, f"ext.{name}", label, FilterType.DEPENDENCY)


def _four_levels():
    return [
        _package("root.a"),
        _class("root.a.B"),
        Record("m()", "root.a.B.methods.m()", "a.B.m()", Label.METHOD, FilterType.METHOD),
        _dep("root.a.B.methods.m().added.dep1", "dep1"),
    ]


def _shape(forest):
    return [(n.name, _shape(n.children)) for n in forest]


# ── Direct children ───────────────────────────────────────────

class TestDirectChild:
    def test_synthetic_segments_are_transparent(self):
        assert is_direct_child("root.a.B.methods.m()", "root.a.B")
        assert is_direct_child("root.a.B.methods.m().added.dep1", "root.a.B.methods.m()")

    def test_grouping_records_are_skipped(self):
        assert not is_direct_child("root.a.B.methods", "root.a.B")

    def test_grouped_mode_uses_raw_depth(self):
        assert is_direct_child("root.a.B.methods", "root.a.B", group_nodes=True)
        assert not is_direct_child("root.a.B.methods.m()", "root.a.B", group_nodes=True)


# ── Builder ───────────────────────────────────────────────────

class TestBuildTree:
    def test_four_level_chain(self):
        forest = build_tree(_four_levels(), "root", DisplayOption.STANDARD)
        assert _shape(forest) == [("a", [("B", [("m()", [("dep1", [])])])])]
        assert forest[0].children[0].children[0].filter_type is FilterType.METHOD

    def test_no_grouping_node_in_default_mode(self):
        records = _four_levels() + [
            Record("", "root.a.B.methods", "", Label.METHODS),
            Record("", "root.a.B.methods.m().added", "", Label.ADDED),
        ]
        forest = build_tree(records, "root", DisplayOption.STANDARD)
        assert _shape(forest) == [("a", [("B", [("m()", [("dep1", [])])])])]

    def test_group_nodes_shows_grouping_records(self):
        records = _four_levels() + [
            Record("", "root.a.B.methods", "", Label.METHODS),
            Record("", "root.a.B.methods.m().added", "", Label.ADDED),
        ]
        forest = build_tree(records, "root", DisplayOption.STANDARD, group_nodes=True)
        assert _shape(forest) == [
            ("a", [("B", [("Methods", [("m()", [("Added dependencies", [("dep1", [])])])])])]),
        ]

    def test_branches_without_dependencies_are_pruned(self):
        records = _four_levels() + [
            _package("root.z"),
            _class("root.z.Quiet"),
            _class("root.a.Lonely"),
        ]
        forest = build_tree(records, "root", DisplayOption.STANDARD)
        names = [n.name for n in walk_forest(forest)]
        assert "z" not in names
        assert "Quiet" not in names
        assert "Lonely" not in names

    def test_children_follow_record_order(self):
        records = _four_levels() + [
            _class("root.a.A"),
            _dep("root.a.A.deleted.dep2", "dep2", added=False),
        ]
        forest = build_tree(records, "root", DisplayOption.STANDARD)
        assert [c.name for c in forest[0].children] == ["B", "A"]

        reordered = [records[0], *records[4:], *records[1:4]]
        forest = build_tree(reordered, "root", DisplayOption.STANDARD)
        assert [c.name for c in forest[0].children] == ["A", "B"]

    def test_deterministic(self):
        first = build_tree(_four_levels(), "root", DisplayOption.COMPACT_MIDDLE_PACKAGES)
        second = build_tree(_four_levels(), "root", DisplayOption.COMPACT_MIDDLE_PACKAGES)
        assert [n.to_dict() for n in first] == [n.to_dict() for n in second]

    def test_subtree_under_other_parent(self):
        forest = build_tree(_four_levels(), "root.a", DisplayOption.STANDARD)
        assert _shape(forest) == [("B", [("m()", [("dep1", [])])])]

    def test_empty_records(self):
        assert build_tree([], "root") == []

    def test_graph_is_not_a_tree_option(self):
        with pytest.raises(ValueError):
            build_tree(_four_levels(), "root", DisplayOption.GRAPH)


# ── Compact middle packages ──────────────────────────────────

class TestCompactMiddlePackages:
    def _chain(self):
        return [
            _package("root.a"),
            _package("root.a.b"),
            _package("root.a.b.c"),
            _class("root.a.b.c.X"),
            _dep("root.a.b.c.X.added.Y", "Y"),
        ]

    def test_chain_collapses(self):
        forest = build_tree(self._chain(), "root", DisplayOption.COMPACT_MIDDLE_PACKAGES)
        assert len(forest) == 1
        assert forest[0].name == "a.b.c"
        assert forest[0].code == "root.a"
        assert forest[0].path == "a.b.c"
        assert [c.name for c in forest[0].children] == ["X"]

    def test_branching_package_is_not_collapsed(self):
        records = self._chain() + [
            _class("root.a.b.Z"),
            _dep("root.a.b.Z.added.W", "W"),
        ]
        forest = build_tree(records, "root", DisplayOption.COMPACT_MIDDLE_PACKAGES)
        assert forest[0].name == "a.b"
        assert [c.name for c in forest[0].children] == ["c", "Z"]

    def test_idempotent(self):
        once = build_tree(self._chain(), "root", DisplayOption.COMPACT_MIDDLE_PACKAGES)
        twice = apply_policy(once, DisplayOption.COMPACT_MIDDLE_PACKAGES)
        assert [n.to_dict() for n in twice] == [n.to_dict() for n in once]

    def test_no_single_package_child_remains(self):
        forest = build_tree(self._chain(), "root", DisplayOption.COMPACT_MIDDLE_PACKAGES)
        for node in walk_forest(forest):
            if node.is_package:
                assert not (len(node.children) == 1 and node.children[0].is_package)


# ── Flatten packages ─────────────────────────────────────────

class TestFlattenPackages:
    def _records(self):
        return [
            _package("root.a"),
            _class("root.a.K"),
            _dep("root.a.K.added.D1", "D1"),
            _package("root.a.b"),
            _class("root.a.b.L"),
            _dep("root.a.b.L.added.D2", "D2"),
            _package("root.a.b.c"),
            _class("root.a.b.c.M"),
            _dep("root.a.b.c.M.deleted.D3", "D3", added=False),
        ]

    def test_subpackages_are_hoisted(self):
        forest = build_tree(self._records(), "root", DisplayOption.FLATTEN_PACKAGES)
        assert [n.name for n in forest] == ["a.b.c", "a.b", "a"]

    def test_no_package_has_package_child(self):
        forest = build_tree(self._records(), "root", DisplayOption.FLATTEN_PACKAGES)
        for node in walk_forest(forest):
            if node.is_package:
                assert not any(c.is_package for c in node.children)

    def test_empty_host_package_is_dropped(self):
        records = [r for r in self._records() if r.code not in ("root.a.K", "root.a.K.added.D1")]
        forest = build_tree(records, "root", DisplayOption.FLATTEN_PACKAGES)
        assert [n.name for n in forest] == ["a.b.c", "a.b"]

    def test_hoisted_node_keeps_own_code(self):
        forest = build_tree(self._records(), "root", DisplayOption.FLATTEN_PACKAGES)
        assert forest[0].code == "root.a.b.c"
        assert [c.name for c in forest[0].children] == ["M"]

    def test_reapplying_is_idempotent(self):
        forest = build_tree(self._records(), "root", DisplayOption.FLATTEN_PACKAGES)
        again = apply_policy(forest, DisplayOption.FLATTEN_PACKAGES)
        assert [n.to_dict() for n in again] == [n.to_dict() for n in forest]


# ── Node helpers ─────────────────────────────────────────────

class TestTreeItemNode:
    def test_name_falls_back_to_label(self):
        node = TreeItemNode.from_record(Record("", "root.a.B.methods", "", Label.METHODS))
        assert node.name == "Methods"

    def test_find_by_code(self):
        forest = build_tree(_four_levels(), "root", DisplayOption.STANDARD)
        node = forest[0].find("root.a.B.methods.m()")
        assert node is not None
        assert node.name == "m()"

    def test_to_dict(self):
        forest = build_tree(_four_levels(), "root", DisplayOption.STANDARD)
        data = forest[0].to_dict()
        assert data["filterType"] == "p"
        assert data["label"] == "Package"
        assert data["children"][0]["name"] == "B"
