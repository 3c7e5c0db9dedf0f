"""Timing benchmark for citation scanning and clustering.

Builds synthetic Markdown documents with a known number of citation markers
(isolated, adjacent runs and Pandoc groups) and measures scan + cluster time.

Usage:
    python scripts/benchmark.py [--sizes 10 100 1000] [--repeat 50]

Writes results to benchmark/results.json.
"""
from __future__ import annotations

import argparse
import json
import random
import statistics
import time
from dataclasses import asdict, dataclass
from pathlib import Path

from csl_tools.citations import scan_citations
from csl_tools.clustering import build_clusters
from csl_tools.config import load_config


@dataclass
class BenchmarkResult:
    citations: int
    clusters: int
    chars: int
    median_ms: float
    p95_ms: float


def synthetic_document(n_citations: int, seed: int = 0) -> str:
    """Paragraphs of filler text with ``n_citations`` markers in mixed syntaxes."""
    rng = random.Random(seed)
    filler = "Lorem ipsum dolor sit amet, consectetur adipiscing elit."
    parts: list[str] = []
    n = 0
    while n < n_citations:
        kind = rng.choice(["single", "run", "group", "locator"])
        if kind == "run":
            size = min(rng.randint(2, 4), n_citations - n)
            parts.append(" ".join(f"[@ref{n + i}]" for i in range(size)))
            n += size
        elif kind == "group" and n_citations - n >= 2:
            size = min(rng.randint(2, 4), n_citations - n)
            parts.append("[" + "; ".join(f"@ref{n + i}" for i in range(size)) + "]")
            n += size
        elif kind == "locator":
            parts.append(f"[@ref{n}, p. {rng.randint(1, 300)}]")
            n += 1
        else:
            parts.append(f"[@ref{n}](https://doi.org/10.1000/{n})")
            n += 1
        parts.append(filler if rng.random() < 0.8 else filler + "\n\n")
    return " ".join(parts)


def time_document(text: str, repeat: int, merge_across_lines: bool) -> BenchmarkResult:
    timings: list[float] = []
    clusters = []
    for _ in range(repeat):
        t0 = time.perf_counter()
        occurrences = scan_citations(text)
        clusters = build_clusters(occurrences, text, merge_across_lines)
        timings.append((time.perf_counter() - t0) * 1000.0)

    timings.sort()
    return BenchmarkResult(
        citations=sum(len(c) for c in clusters),
        clusters=len(clusters),
        chars=len(text),
        median_ms=statistics.median(timings),
        p95_ms=timings[min(len(timings) - 1, int(len(timings) * 0.95))],
    )


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--sizes", type=int, nargs="+", default=[10, 100, 1000])
    parser.add_argument("--repeat", type=int, default=50)
    parser.add_argument("--output", type=Path, default=Path("benchmark/results.json"))
    args = parser.parse_args()

    cfg = load_config()

    results = []
    for size in args.sizes:
        res = time_document(synthetic_document(size), args.repeat, cfg.merge_across_lines)
        results.append(res)
        print(
            f"{res.citations:>6} citations  {res.clusters:>6} clusters  "
            f"median {res.median_ms:.3f} ms  p95 {res.p95_ms:.3f} ms"
        )

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump([asdict(r) for r in results], f, indent=2)
    print(f"\nResults saved to {args.output}")


if __name__ == "__main__":
    main()
