"""Display policies: re-project a freshly built node before it is emitted."""

from __future__ import annotations

import abc
from dataclasses import replace

from depdelta.models import DisplayOption, FilterType, TreeItemNode


class DisplayPolicy(abc.ABC):
    """Transforms one node whose children are already fully built."""

    option: DisplayOption

    @abc.abstractmethod
    def apply(self, node: TreeItemNode) -> list[TreeItemNode]:
        """Return the nodes to emit in place of *node* (possibly none)."""


class StandardPolicy(DisplayPolicy):
    option = DisplayOption.STANDARD

    def apply(self, node: TreeItemNode) -> list[TreeItemNode]:
        return [node]


class CompactMiddlePackagesPolicy(DisplayPolicy):
    """Collapse single-child package chains ``a → b → c`` into ``a.b.c``.

    Children are built before their parent, so absorbing one level per node
    cascades up the whole chain. The node keeps its own code.
    """
    option = DisplayOption.COMPACT_MIDDLE_PACKAGES

    def apply(self, node: TreeItemNode) -> list[TreeItemNode]:
        if node.is_package and len(node.children) == 1 and node.children[0].is_package:
            child = node.children[0]
            node.name = f"{node.name}.{child.name}"
            node.path = child.path
            node.children = child.children
        return [node]


class FlattenPackagesPolicy(DisplayPolicy):
    """Hoist sub-packages to siblings named ``parent.sub``.

    A package left without non-package children exists only to host the
    hoisted packages and is not emitted.
    """
    option = DisplayOption.FLATTEN_PACKAGES

    def apply(self, node: TreeItemNode) -> list[TreeItemNode]:
        if not node.is_package:
            return [node]

        subpackages = [c for c in node.children if c.is_package]
        node.children = [c for c in node.children if not c.is_package]

        emitted = [
            replace(sub, name=f"{node.name}.{sub.name}")
            for sub in subpackages
        ]
        if node.children:
            emitted.append(node)
        return emitted


_POLICIES: dict[DisplayOption, type[DisplayPolicy]] = {
    DisplayOption.STANDARD: StandardPolicy,
    DisplayOption.COMPACT_MIDDLE_PACKAGES: CompactMiddlePackagesPolicy,
    DisplayOption.FLATTEN_PACKAGES: FlattenPackagesPolicy,
}


def get_policy(option: DisplayOption | str) -> DisplayPolicy:
    option = DisplayOption.parse(option)
    policy_cls = _POLICIES.get(option)
    if policy_cls is None:
        raise ValueError(f"{option.value!r} is not a tree display option")
    return policy_cls()


def is_kept(node: TreeItemNode) -> bool:
    """Branches that never reach a dependency leaf are not rendered."""
    return bool(node.children) or node.filter_type is FilterType.DEPENDENCY


def apply_policy(forest: list[TreeItemNode], option: DisplayOption | str) -> list[TreeItemNode]:
    """Re-project an already built forest under *option*, bottom-up."""
    policy = get_policy(option)
    result: list[TreeItemNode] = []
    for node in forest:
        node = replace(node, children=apply_policy(node.children, policy.option))
        result.extend(n for n in policy.apply(node) if is_kept(n))
    return result
