from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from csl_tools.citations import (
    CitationItem,
    CitationOccurrence,
    CitationScanner,
    scan_citations,
)

# Spaces/tabs, optionally around one line break. A blank line is a paragraph
# break and never counts as adjacency.
_GAP_SAME_LINE = re.compile(r"[ \t]*")
_GAP_ONE_BREAK = re.compile(r"[ \t]*(?:\r?\n[ \t]*)?")


@dataclass(frozen=True)
class CitationCluster:
    """One or more citation items rendered together, e.g. "(1-3)".

    ``span`` covers every member marker and the whitespace between them, so
    replacing it leaves no marker text behind.
    """

    items: tuple[CitationItem, ...]
    span: tuple[int, int]

    def __len__(self) -> int:
        return len(self.items)

    @property
    def ids(self) -> list[str]:
        return [item.id for item in self.items]

    @property
    def url(self) -> str | None:
        # Links only make sense on a lone citation.
        if len(self.items) == 1:
            return self.items[0].url
        return None


def is_adjacent(gap: str, merge_across_lines: bool = True) -> bool:
    pattern = _GAP_ONE_BREAK if merge_across_lines else _GAP_SAME_LINE
    return pattern.fullmatch(gap) is not None


def _check_ordered(spans: Sequence[tuple[int, int]]) -> None:
    for (_, prev_end), (start, end) in zip(spans, spans[1:]):
        assert prev_end <= start, f"overlapping citation spans ending {prev_end}, starting {start}"
        assert start < end


def build_clusters(
    occurrences: Sequence[CitationOccurrence],
    text: str,
    merge_across_lines: bool = True,
) -> list[CitationCluster]:
    """Group position-ordered occurrences into clusters.

    Bracket-form markers separated only by whitespace merge into one cluster.
    Pandoc groups pass through as they are and never absorb a neighbour.
    """
    _check_ordered([occ.span for occ in occurrences])

    grouped: list[CitationCluster] = []
    merged: list[CitationCluster] = []

    current: list[CitationItem] = []
    start = end = 0
    for occ in occurrences:
        if occ.grouped:
            grouped.append(CitationCluster(items=occ.items, span=occ.span))
            continue
        if current and is_adjacent(text[end:occ.span[0]], merge_across_lines):
            current.append(occ.item)
            end = occ.span[1]
            continue
        if current:
            merged.append(CitationCluster(items=tuple(current), span=(start, end)))
        current = [occ.item]
        start, end = occ.span
    if current:
        merged.append(CitationCluster(items=tuple(current), span=(start, end)))

    clusters = sorted(grouped + merged, key=lambda c: c.span[0])
    _check_ordered([c.span for c in clusters])
    return clusters


def extract_citation_clusters(
    text: str,
    scanner: CitationScanner | None = None,
    merge_across_lines: bool = True,
) -> list[CitationCluster]:
    return build_clusters(scan_citations(text, scanner), text, merge_across_lines)
