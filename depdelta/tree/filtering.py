"""Filter engine: type/substring queries that keep matches navigable.

Query grammar: an optional one-letter type prefix (``p:``, ``c:``, ``m:``
or ``d:``) followed by free text matched case-insensitively against
each record's display name. ``m:get(`` finds methods whose name contains
``get(``; ``util`` finds anything named like ``util``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable

from depdelta.models import Diagnostics, DisplayOption, FilterType, Record, TreeItemNode
from depdelta.tree import codec
from depdelta.tree.builder import build_tree

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"^([pcmd]):")


@dataclass(frozen=True)
class Query:
    filter_type: FilterType | None = None
    text: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.text


@dataclass
class FilterResult:
    records: list[Record] = field(default_factory=list)
    matches: list[Record] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def parse_query(text: str | None) -> Query:
    if not text:
        return Query()
    m = _PREFIX_RE.match(text)
    if m:
        return Query(filter_type=FilterType(m.group(1)), text=text[m.end():].strip())
    return Query(text=text.strip())


def _matches(record: Record, query: Query) -> bool:
    if query.filter_type is not None and record.filter_type is not query.filter_type:
        return False
    return query.text.casefold() in record.text.casefold()


def filter_records(records: Iterable[Record], query: Query | str | None) -> FilterResult:
    """Select matching records plus their ancestor chain and descendant subtree.

    Ancestors make every match reachable from the root; descendants keep a
    matched branch expandable. Dependency queries skip the descendants since
    dependency leaves have no children.
    """
    records = list(records)
    if not isinstance(query, Query):
        query = parse_query(query)
    if query.is_empty:
        return FilterResult(records=records)

    by_code: dict[str, Record] = {}
    for record in records:
        by_code.setdefault(record.code, record)

    result = FilterResult()
    result.matches = [r for r in records if _matches(r, query)]
    selected: set[str] = {r.code for r in result.matches}

    for match in result.matches:
        for ancestor in codec.ancestors(match.code):
            if ancestor in selected:
                continue
            if ancestor in by_code:
                selected.add(ancestor)
            elif ancestor not in result.diagnostics.unmatched_codes:
                result.diagnostics.unmatched_codes.append(ancestor)

        if query.filter_type is not FilterType.DEPENDENCY:
            for record in records:
                if codec.is_descendant(record.code, match.code):
                    selected.add(record.code)

    # Dataset order, one record per code.
    seen: set[str] = set()
    for record in records:
        if record.code in selected and record.code not in seen:
            seen.add(record.code)
            result.records.append(record)

    logger.debug(
        "Filter %r matched %d record(s), kept %d of %d",
        query.text, len(result.matches), len(result.records), len(records),
    )
    return result


def filter_tree(
    records: Iterable[Record],
    query: Query | str | None,
    display_option: DisplayOption | str = DisplayOption.COMPACT_MIDDLE_PACKAGES,
    *,
    root: str = "root",
    group_nodes: bool = False,
) -> list[TreeItemNode]:
    """Filter *records* and rebuild the forest from what remains."""
    result = filter_records(records, query)
    return build_tree(result.records, root, display_option, group_nodes=group_nodes)
