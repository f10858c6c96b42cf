"""Data models for changelog records, tree nodes and viewer configuration."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator


class FilterType(enum.Enum):
    PROJECT = "r"
    PACKAGE = "p"
    CLASS = "c"
    METHOD = "m"
    DEPENDENCY = "d"


class Label(enum.Enum):
    PACKAGE = "Package"
    CLASS = "Class"
    METHOD = "Method"
    ADDED_DEPENDENCY = "+ Dependency"
    DELETED_DEPENDENCY = "- Dependency"
    # Synthetic grouping records
    METHODS = "Methods"
    ADDED = "Added dependencies"
    DELETED = "Deleted dependencies"


class DisplayOption(enum.Enum):
    STANDARD = "Normal"
    COMPACT_MIDDLE_PACKAGES = "Compact Middle Packages"
    FLATTEN_PACKAGES = "Flat Packages"
    GRAPH = "Graph"

    @classmethod
    def parse(cls, value: str | DisplayOption) -> DisplayOption:
        """Accept a member, its display value, or its name (any case)."""
        if isinstance(value, cls):
            return value
        needle = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        for option in cls:
            if needle in (option.name.lower(), option.value.lower().replace(" ", "_")):
                return option
        raise ValueError(f"Unknown display option: {value!r}")


@dataclass(frozen=True)
class Record:
    """One flat changelog entry as delivered by the query layer.

    ``code`` is the authoritative hierarchical key: a root-prefixed,
    dot-delimited path whose parenthesized segments (method signatures)
    are atomic.
    """
    text: str
    code: str
    path: str = ""
    label: Label | None = None
    filter_type: FilterType | None = None

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "code": self.code,
            "path": self.path,
            "label": self.label.value if self.label else None,
            "filterType": self.filter_type.value if self.filter_type else None,
        }


@dataclass
class TreeItemNode:
    """A node of a rebuilt changelog forest. Rebuilt from scratch on every change."""
    name: str
    code: str
    path: str = ""
    label: Label | None = None
    filter_type: FilterType | None = None
    children: list[TreeItemNode] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: Record) -> TreeItemNode:
        name = record.text
        if not name and record.label is not None:
            name = record.label.value
        return cls(
            name=name,
            code=record.code,
            path=record.path,
            label=record.label,
            filter_type=record.filter_type,
        )

    @property
    def is_package(self) -> bool:
        return self.filter_type is FilterType.PACKAGE

    def walk(self) -> Iterator[TreeItemNode]:
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find(self, code: str) -> TreeItemNode | None:
        for node in self.walk():
            if node.code == code:
                return node
        return None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "code": self.code,
            "path": self.path,
            "label": self.label.value if self.label else None,
            "filterType": self.filter_type.value if self.filter_type else None,
            "children": [c.to_dict() for c in self.children],
        }


def walk_forest(forest: list[TreeItemNode]) -> Iterator[TreeItemNode]:
    for node in forest:
        yield from node.walk()


@dataclass
class Diagnostics:
    """Problems recovered locally by omission during a build."""
    unmatched_codes: list[str] = field(default_factory=list)
    unresolved_types: list[str] = field(default_factory=list)
    malformed_codes: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.unmatched_codes or self.unresolved_types or self.malformed_codes)

    def extend(self, other: Diagnostics) -> None:
        for name in ("unmatched_codes", "unresolved_types", "malformed_codes"):
            target = getattr(self, name)
            for value in getattr(other, name):
                if value not in target:
                    target.append(value)

    def to_dict(self) -> dict:
        return {
            "unmatched_codes": list(self.unmatched_codes),
            "unresolved_types": list(self.unresolved_types),
            "malformed_codes": list(self.malformed_codes),
        }


@dataclass
class ViewerConfig:
    """Configuration for a changelog viewing session."""
    root: str = "root"
    display_option: DisplayOption = DisplayOption.COMPACT_MIDDLE_PACKAGES
    data_file: Path | None = None
    group_nodes: bool = False

    def __post_init__(self):
        if self.data_file is None:
            env = os.getenv("DEPDELTA_DATA", "")
            if env:
                self.data_file = Path(env)
        elif not isinstance(self.data_file, Path):
            self.data_file = Path(self.data_file)
