"""Turn raw changelog rows into the flat, coded record list.

Codes are root-prefixed paths. Classes and methods get synthetic grouping
records so that methods and dependency status sit in their own branches::

    root.shop.Cart                          Class
    root.shop.Cart.methods.add(Item)        Method
    root.shop.Cart.methods.add(Item).added.Price   + Dependency
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from depdelta.models import Diagnostics, FilterType, Label, Record
from depdelta.source.base import DependencyRow, NodeRow
from depdelta.tree import codec

logger = logging.getLogger(__name__)

# Checked in this order against each label, case-insensitively.
_TYPE_KEYWORDS: list[tuple[str, FilterType]] = [
    ("package", FilterType.PACKAGE),
    ("class", FilterType.CLASS),
    ("method", FilterType.METHOD),
]


@dataclass
class AssemblyResult:
    records: list[Record] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def resolve_type(labels: Iterable[str]) -> FilterType | None:
    """First label naming a package, class or method decides the type."""
    for label in labels:
        lowered = label.lower()
        for keyword, filter_type in _TYPE_KEYWORDS:
            if keyword in lowered:
                return filter_type
    return None


def strip_project(path: str, project_name: str) -> str:
    if path == project_name:
        return ""
    prefix = project_name + codec.SEPARATOR
    return path[len(prefix):] if path.startswith(prefix) else path


def _owner_path(path: str, name: str) -> str:
    """*path* without its trailing ``.name`` component."""
    suffix = codec.SEPARATOR + name
    if name and path.endswith(suffix):
        return path[: -len(suffix)]
    return codec.parent(path) or ""


def _grouping(code: str, segment: str, label: Label) -> Record:
    return Record(text="", code=codec.join(code, segment), label=label)


def _entity_code(root: str, path: str, name: str, filter_type: FilterType | None) -> str:
    if filter_type is FilterType.METHOD:
        return codec.join(root, _owner_path(path, name), codec.METHODS, name)
    return codec.join(root, path)


class RecordAssembler:
    def __init__(self, project_name: str, root: str = "root"):
        self.project_name = project_name
        self.root = root

    def assemble(
        self,
        nodes: Iterable[NodeRow],
        dependencies: Iterable[DependencyRow],
    ) -> AssemblyResult:
        result = AssemblyResult()
        packages: list[Record] = [Record(text="", code=self.root, filter_type=FilterType.PROJECT)]
        classes: list[Record] = []
        methods: list[Record] = []
        class_deps: list[Record] = []
        method_deps: list[Record] = []

        for row in nodes:
            filter_type = resolve_type(row.labels)
            path = strip_project(row.path, self.project_name)
            if filter_type is None:
                result.diagnostics.unresolved_types.append(row.path)
                continue

            code = _entity_code(self.root, path, row.name, filter_type)
            if filter_type is FilterType.PACKAGE:
                packages.append(Record(row.name, code, path, Label.PACKAGE, filter_type))
            elif filter_type is FilterType.CLASS:
                classes.append(Record(row.name, code, path, Label.CLASS, filter_type))
                classes.append(_grouping(code, codec.METHODS, Label.METHODS))
                classes.append(_grouping(code, codec.ADDED, Label.ADDED))
                classes.append(_grouping(code, codec.DELETED, Label.DELETED))
            else:
                methods.append(Record(row.name, code, path, Label.METHOD, filter_type))
                methods.append(_grouping(code, codec.ADDED, Label.ADDED))
                methods.append(_grouping(code, codec.DELETED, Label.DELETED))

        for row in dependencies:
            target_type = resolve_type(row.labels)
            user_type = resolve_type(row.user_labels)
            if target_type is None:
                result.diagnostics.unresolved_types.append(row.path)
                continue
            if user_type is None:
                result.diagnostics.unresolved_types.append(row.user_path)
                continue
            if target_type is FilterType.PACKAGE:
                continue  # package dependencies are not displayed

            status = codec.ADDED if row.added else codec.DELETED
            label = Label.ADDED_DEPENDENCY if row.added else Label.DELETED_DEPENDENCY
            path = strip_project(row.path, self.project_name)
            user_path = strip_project(row.user_path, self.project_name)

            user_code = _entity_code(self.root, user_path, row.user_name, user_type)
            record = Record(
                row.name, codec.join(user_code, status, row.name), path, label, FilterType.DEPENDENCY,
            )
            if target_type is FilterType.METHOD:
                method_deps.append(record)
                continue

            class_deps.append(record)
            # Also surface the dependency one level up, on the user's owner.
            owner_code = codec.join(self.root, _owner_path(user_path, row.user_name))
            class_deps.append(Record(
                row.name, codec.join(owner_code, status, row.name), path, label, FilterType.DEPENDENCY,
            ))

        seen: set[str] = set()
        for record in [*packages, *classes, *methods, *class_deps, *method_deps]:
            if record.code in seen:
                continue
            seen.add(record.code)
            if not codec.is_well_formed(record.code):
                result.diagnostics.malformed_codes.append(record.code)
            result.records.append(record)

        logger.info(
            "Assembled %d record(s) for %s (%d unresolved, %d malformed)",
            len(result.records), self.project_name,
            len(result.diagnostics.unresolved_types), len(result.diagnostics.malformed_codes),
        )
        return result


def assemble_records(
    nodes: Iterable[NodeRow],
    dependencies: Iterable[DependencyRow],
    project_name: str,
    root: str = "root",
) -> AssemblyResult:
    return RecordAssembler(project_name, root=root).assemble(nodes, dependencies)
