"""Citation marker scanning for Markdown text.

Two syntaxes are recognised:

- bracket form ``[@key]``, ``[@key, p. 42]``, ``[@key](https://...)``
- Pandoc groups ``[@a; @b, ch. 3; @c]``

Spans are half-open ``(start, end)`` character offsets into the scanned text.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

# [@key, locator](url)
BRACKET_RE = re.compile(
    r"\[@(?P<key>[^\]\[,;\n]+)"
    r"(?:,\s*(?P<locator>[^\]\[;]+))?\]"
    r"(?:\((?P<url>[^)\n]+)\))?"
)
# [@key1; @key2, locator; ...]
PANDOC_RE = re.compile(r"\[(?P<body>@[^\]\[]*;[^\]\[]*)\]")

# Longer prefixes first so "pp." wins over "p." and "pages" over "page".
LOCATOR_LABELS: tuple[tuple[str, str], ...] = (
    ("pp.", "page"),
    ("p.", "page"),
    ("ch.", "chapter"),
    ("sec.", "section"),
    ("vol.", "volume"),
    ("para.", "paragraph"),
    ("fig.", "figure"),
    ("pages", "page"),
    ("page", "page"),
    ("chapter", "chapter"),
    ("section", "section"),
    ("volume", "volume"),
    ("paragraph", "paragraph"),
    ("figure", "figure"),
)


@dataclass(frozen=True)
class CitationItem:
    id: str
    locator: str | None = None
    label: str | None = None
    url: str | None = None


@dataclass(frozen=True)
class CitationOccurrence:
    """One marker found in the text.

    Bracket-form markers carry a single item. Pandoc groups carry all of their
    items and are flagged ``grouped`` so the cluster builder keeps them whole.
    """

    items: tuple[CitationItem, ...]
    span: tuple[int, int]
    grouped: bool = False

    @property
    def item(self) -> CitationItem:
        return self.items[0]


def parse_locator(text: str) -> tuple[str | None, str | None]:
    """Split ``"p. 42"`` into ``("42", "page")``.

    Unrecognised text is kept whole as a locator without a label.
    """
    text = text.strip()
    for prefix, label in LOCATOR_LABELS:
        if text.startswith(prefix):
            value = text[len(prefix):].strip()
            if value:
                return value, label
    if text:
        return text, None
    return None, None


def _make_item(key: str, locator_text: str | None, url: str | None = None) -> CitationItem | None:
    key = key.strip()
    if not key:
        return None
    locator, label = parse_locator(locator_text) if locator_text else (None, None)
    return CitationItem(id=key, locator=locator, label=label, url=url)


def _parse_group_body(body: str) -> list[CitationItem]:
    items: list[CitationItem] = []
    for part in body.split(";"):
        part = part.strip()
        if not part.startswith("@"):
            continue
        key, sep, locator_text = part[1:].partition(",")
        item = _make_item(key, locator_text if sep else None)
        if item is not None:
            items.append(item)
    return items


class CitationScanner:
    """Finds citation markers using a pair of compiled patterns.

    Pandoc groups take precedence: a bracket-form hit that overlaps a group
    is dropped. The scanner holds no per-document state and can be shared.
    """

    def __init__(
        self,
        bracket_pattern: re.Pattern[str] = BRACKET_RE,
        group_pattern: re.Pattern[str] = PANDOC_RE,
    ) -> None:
        self.bracket_pattern = bracket_pattern
        self.group_pattern = group_pattern

    def scan_groups(self, text: str) -> list[CitationOccurrence]:
        out: list[CitationOccurrence] = []
        for m in self.group_pattern.finditer(text):
            items = _parse_group_body(m.group("body"))
            if items:
                out.append(CitationOccurrence(items=tuple(items), span=m.span(), grouped=True))
        return out

    def scan_brackets(self, text: str) -> list[CitationOccurrence]:
        out: list[CitationOccurrence] = []
        for m in self.bracket_pattern.finditer(text):
            item = _make_item(m.group("key"), m.group("locator"), m.group("url"))
            if item is not None:
                out.append(CitationOccurrence(items=(item,), span=m.span()))
        return out

    def scan(self, text: str) -> list[CitationOccurrence]:
        groups = self.scan_groups(text)
        taken = [occ.span for occ in groups]

        def overlaps_group(span: tuple[int, int]) -> bool:
            return any(span[0] < end and start < span[1] for start, end in taken)

        singles = [occ for occ in self.scan_brackets(text) if not overlaps_group(occ.span)]
        return sorted(groups + singles, key=lambda occ: occ.span[0])


DEFAULT_SCANNER = CitationScanner()


def scan_citations(text: str, scanner: CitationScanner | None = None) -> list[CitationOccurrence]:
    return (scanner or DEFAULT_SCANNER).scan(text)


def citation_ids(citations: Iterable[CitationItem]) -> list[str]:
    """Unique ids in order of first appearance."""
    seen: dict[str, None] = {}
    for c in citations:
        seen.setdefault(c.id, None)
    return list(seen)
