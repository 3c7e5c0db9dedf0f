from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from csl_tools.citations import CitationScanner, citation_ids, scan_citations
from csl_tools.clustering import CitationCluster, build_clusters
from csl_tools.engine import CitationProcessor
from csl_tools.output import generate_output, replace_citations

@dataclass(frozen=True)
class ProcessResult:
    output: str
    clusters: list[CitationCluster]
    formatted: list[str]
    bibliography: str

    @property
    def citation_count(self) -> int:
        return sum(len(c) for c in self.clusters)

    @property
    def cited_ids(self) -> list[str]:
        """Distinct reference ids in order of first citation."""
        return citation_ids(item for c in self.clusters for item in c.items)

def process_document(
    markdown: str,
    references: Sequence[dict],
    style_xml: str,
    *,
    include_bibliography: bool = True,
    bib_header: str = "## References",
    output_format: str = "html",
    merge_across_lines: bool = True,
    scanner: CitationScanner | None = None,
) -> ProcessResult:
    """Replace every citation cluster in ``markdown`` and append the bibliography.

    Raises ``ReferenceNotFoundError`` or ``EngineError`` from the engine.
    """
    occurrences = scan_citations(markdown, scanner)
    clusters = build_clusters(occurrences, markdown, merge_across_lines)
    if not clusters:
        return ProcessResult(
            output=generate_output(markdown, None, bib_header),
            clusters=[],
            formatted=[],
            bibliography="",
        )

    processor = CitationProcessor(style_xml, references, output_format)
    formatted = processor.format_citations(clusters)
    content = replace_citations(markdown, zip((c.span for c in clusters), formatted))

    bibliography = processor.format_bibliography() if include_bibliography else ""
    return ProcessResult(
        output=generate_output(content, bibliography, bib_header),
        clusters=clusters,
        formatted=formatted,
        bibliography=bibliography,
    )
