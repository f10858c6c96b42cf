"""Tree builder: rebuilds the changelog hierarchy from flat coded records."""

from __future__ import annotations

import logging
from typing import Iterable

from depdelta.models import DisplayOption, Record, TreeItemNode
from depdelta.tree import codec
from depdelta.tree.policies import DisplayPolicy, get_policy, is_kept

logger = logging.getLogger(__name__)


def is_direct_child(code: str, parent_code: str, group_nodes: bool = False) -> bool:
    """Whether *code* sits one level below *parent_code*.

    With ``group_nodes`` off, synthetic segments are transparent: a method
    ``B.methods.m()`` is a direct child of class ``B``, and grouping records
    themselves never qualify.
    """
    if group_nodes:
        return codec.starts_with_segment(code, parent_code)
    if not codec.is_descendant(code, parent_code) or codec.is_synthetic(code):
        return False
    extra = codec.segments(code)[codec.depth(parent_code):]
    visible = [s for s in extra if s not in codec.SYNTHETIC_SEGMENTS]
    return len(visible) == 1


class TreeBuilder:
    """Partition a flat record list into a ``TreeItemNode`` forest."""

    def __init__(self, policy: DisplayPolicy, group_nodes: bool = False):
        self.policy = policy
        self.group_nodes = group_nodes

    def build(self, records: list[Record], parent_code: str) -> list[TreeItemNode]:
        nodes: list[TreeItemNode] = []
        for record in records:
            if not is_direct_child(record.code, parent_code, self.group_nodes):
                continue

            node = TreeItemNode.from_record(record)
            subtree = [r for r in records if codec.is_descendant(r.code, record.code)]
            node.children = self.build(subtree, record.code) if subtree else []

            nodes.extend(n for n in self.policy.apply(node) if is_kept(n))
        return nodes


def build_tree(
    records: Iterable[Record],
    parent_code: str = "root",
    display_option: DisplayOption | str = DisplayOption.COMPACT_MIDDLE_PACKAGES,
    *,
    group_nodes: bool = False,
) -> list[TreeItemNode]:
    """Build the forest below *parent_code* under the given display option.

    Child order follows the order of *records*. Non-dependency branches
    whose children are all pruned away are dropped.
    """
    records = list(records)
    policy = get_policy(display_option)
    # Only records below the parent can ever be reached.
    scoped = [r for r in records if codec.is_descendant(r.code, parent_code)]
    forest = TreeBuilder(policy, group_nodes=group_nodes).build(scoped, parent_code)
    logger.debug(
        "Built %d root node(s) from %d record(s) under %s (%s)",
        len(forest), len(records), parent_code or "<empty>", policy.option.value,
    )
    return forest
