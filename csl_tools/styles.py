from __future__ import annotations

from pathlib import Path


class StyleError(Exception):
    pass


def load_style(path: str | Path) -> str:
    """Read a CSL style file as XML text."""
    path = Path(path)
    if not path.is_file():
        raise StyleError(f"'{path}' is not a CSL style file (no file with this path exists)")
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise StyleError(f"Failed to read CSL style '{path}': {exc}") from exc
