"""CSL rendering of citation clusters and bibliographies through citeproc-py.

Errors are typed: a missing reference raises ``ReferenceNotFoundError`` (with
the offending id on ``ref_id``), anything else raises ``EngineError``. Callers
tell them apart with ``except`` clauses, never by reading the message.
"""
from __future__ import annotations

import copy
import io
from typing import Any, Sequence

from citeproc import (
    Citation,
    CitationItem as CiteprocItem,
    CitationStylesBibliography,
    CitationStylesStyle,
    Locator,
    formatter,
)
from citeproc.source.json import CiteProcJSON
from lxml import etree

from csl_tools.citations import CitationItem
from csl_tools.clustering import CitationCluster

CSL_NS = "{http://purl.org/net/xbiblio/csl}"

FORMATTERS = {
    "html": formatter.html,
    "text": formatter.plain,
}


class ProcessingError(Exception):
    pass


class ReferenceNotFoundError(ProcessingError):
    def __init__(self, ref_id: str):
        super().__init__(f"Reference not found: {ref_id}")
        self.ref_id = ref_id


class EngineError(ProcessingError):
    pass


def _reference_ids(references: Sequence[dict]) -> set[str]:
    return {r["id"] for r in references if isinstance(r, dict) and isinstance(r.get("id"), str)}


def _check_case_collisions(ids: set[str]) -> None:
    # citeproc-py lowercases every key, so "Smith" and "smith" would resolve
    # to the same entry.
    by_folded: dict[str, list[str]] = {}
    for ref_id in ids:
        by_folded.setdefault(ref_id.lower(), []).append(ref_id)
    clashes = sorted(", ".join(sorted(group)) for group in by_folded.values() if len(group) > 1)
    if clashes:
        raise EngineError(f"Reference ids differ only in case: {'; '.join(clashes)}")


def to_citeproc_item(item: CitationItem) -> CiteprocItem:
    kwargs: dict[str, Any] = {}
    if item.locator:
        # CSL treats an unlabelled locator as a page.
        kwargs["locator"] = Locator(item.label or "page", item.locator)
    return CiteprocItem(item.id, **kwargs)


class CitationProcessor:
    """Formats clusters for one document against one style and reference list."""

    def __init__(self, style_xml: str, references: Sequence[dict], output_format: str = "html"):
        if output_format not in FORMATTERS:
            raise EngineError(f"Unknown output format: {output_format!r}")
        self.output_format = output_format

        data = style_xml.encode("utf-8")
        try:
            root = etree.fromstring(data)
        except etree.XMLSyntaxError as exc:
            raise EngineError(f"Invalid CSL style: {exc}") from exc
        self.has_bibliography = root.find(f"{CSL_NS}bibliography") is not None

        usable = [r for r in references if isinstance(r, dict) and isinstance(r.get("id"), str)]
        self._known_ids = _reference_ids(usable)
        _check_case_collisions(self._known_ids)
        try:
            style = CitationStylesStyle(io.BytesIO(data), validate=False)
            # CiteProcJSON consumes the dicts it is given.
            source = CiteProcJSON(copy.deepcopy(usable))
        except Exception as exc:
            raise EngineError(f"CSL processing error: {exc}") from exc
        self._bibliography = CitationStylesBibliography(style, source, FORMATTERS[output_format])
        self._cited = False

    def check_references(self, clusters: Sequence[CitationCluster]) -> None:
        for cluster in clusters:
            for item in cluster.items:
                if item.id not in self._known_ids:
                    raise ReferenceNotFoundError(item.id)

    def _missing(self, citation_item) -> None:
        raise ReferenceNotFoundError(citation_item.key)

    def format_citations(self, clusters: Sequence[CitationCluster]) -> list[str]:
        """One formatted string per cluster, in input order."""
        if not clusters:
            return []
        self.check_references(clusters)

        citations = [Citation([to_citeproc_item(i) for i in c.items]) for c in clusters]
        try:
            for citation in citations:
                self._bibliography.register(citation)
            if self.has_bibliography:
                self._bibliography.sort()
            rendered = [str(self._bibliography.cite(c, self._missing)) for c in citations]
        except ProcessingError:
            raise
        except Exception as exc:
            raise EngineError(f"CSL processing error: {exc}") from exc
        self._cited = True
        return rendered

    def format_bibliography(self) -> str:
        """Entries for every cited reference; empty when nothing was cited."""
        if not self._cited or not self.has_bibliography:
            return ""
        try:
            entries = [str(entry) for entry in self._bibliography.bibliography()]
        except Exception as exc:
            raise EngineError(f"CSL processing error: {exc}") from exc
        if not entries:
            return ""
        if self.output_format == "html":
            body = "".join(f'  <div class="csl-entry">{entry}</div>\n' for entry in entries)
            return f'<div class="csl-bib-body">\n{body}</div>'
        return "\n".join(entries)


def process_clusters(
    clusters: Sequence[CitationCluster],
    references: Sequence[dict],
    style_xml: str,
    output_format: str = "html",
) -> list[str]:
    return CitationProcessor(style_xml, references, output_format).format_citations(clusters)
