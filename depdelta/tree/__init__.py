"""Changelog hierarchy: path codec, tree builder, display policies, filtering."""

from __future__ import annotations

from depdelta.tree import codec
from depdelta.tree.builder import TreeBuilder, build_tree, is_direct_child
from depdelta.tree.filtering import FilterResult, Query, filter_records, filter_tree, parse_query
from depdelta.tree.policies import (
    CompactMiddlePackagesPolicy,
    DisplayPolicy,
    FlattenPackagesPolicy,
    StandardPolicy,
    apply_policy,
    get_policy,
)

__all__ = [
    "codec",
    "TreeBuilder",
    "build_tree",
    "is_direct_child",
    "FilterResult",
    "Query",
    "filter_records",
    "filter_tree",
    "parse_query",
    "DisplayPolicy",
    "StandardPolicy",
    "CompactMiddlePackagesPolicy",
    "FlattenPackagesPolicy",
    "apply_policy",
    "get_policy",
]
