"""Unit tests for CSL style loading."""
from __future__ import annotations

from pathlib import Path

import pytest
from csl_tools.styles import StyleError, load_style

STYLES = Path(__file__).parent / "fixtures" / "styles"


class TestLoadStyle:
    """Tests for load_style."""

    def test_load_valid_file(self):
        """The XML text is returned unchanged."""
        content = load_style(STYLES / "author-date.csl")

        assert content.startswith("<?xml")
        assert "<citation>" in content
        assert "<bibliography>" in content
        assert content.rstrip().endswith("</style>")

    def test_accepts_str_path(self):
        """String paths work as well as Path objects."""
        assert "Numeric Test Style" in load_style(str(STYLES / "numeric.csl"))

    def test_missing_file(self):
        """A missing file raises StyleError saying so."""
        with pytest.raises(StyleError, match="no file with this path exists"):
            load_style(STYLES / "nonexistent.csl")

    def test_directory_is_not_a_style(self, tmp_path):
        """A directory path is rejected."""
        with pytest.raises(StyleError):
            load_style(tmp_path)
