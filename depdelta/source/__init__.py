"""Changelog sources and record assembly."""

from __future__ import annotations

from depdelta.source.assembler import AssemblyResult, RecordAssembler, assemble_records, resolve_type
from depdelta.source.base import ChangelogNotFoundError, ChangelogSource, DependencyRow, NodeRow
from depdelta.source.json_source import JsonChangelogSource

__all__ = [
    "AssemblyResult",
    "RecordAssembler",
    "assemble_records",
    "resolve_type",
    "ChangelogNotFoundError",
    "ChangelogSource",
    "DependencyRow",
    "NodeRow",
    "JsonChangelogSource",
]
