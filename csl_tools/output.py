from __future__ import annotations

from typing import Iterable


def replace_citations(text: str, replacements: Iterable[tuple[tuple[int, int], str]]) -> str:
    """Substitute each ``(span, formatted)`` pair into ``text``.

    Spans refer to the original text and must be increasing and
    non-overlapping, so one forward pass is enough.
    """
    parts: list[str] = []
    cursor = 0
    for (start, end), formatted in replacements:
        assert cursor <= start <= end <= len(text), f"bad span ({start}, {end}) after {cursor}"
        parts.append(text[cursor:start])
        parts.append(formatted)
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)


def generate_output(content: str, bibliography: str | None, bib_header: str) -> str:
    output = content.rstrip()
    if bibliography:
        output += f"\n\n{bib_header}\n\n{bibliography}"
    return output
