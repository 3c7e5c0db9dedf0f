"""Unit tests for reference loading."""
from __future__ import annotations

from pathlib import Path

import pytest
from csl_tools.refs import RefsError, load_refs, normalize_refs

FIXTURES = Path(__file__).parent / "fixtures"


class TestNormalizeRefs:
    """Tests for JSON / JSONL normalisation."""

    def test_json_array(self):
        """A JSON array is returned as a list."""
        refs = normalize_refs('[{"id": "item-1", "type": "book", "title": "Test Book"}]')
        assert refs == [{"id": "item-1", "type": "book", "title": "Test Book"}]

    def test_jsonl(self):
        """One object per line."""
        refs = normalize_refs('{"id": "a"}\n{"id": "b"}\n')
        assert [r["id"] for r in refs] == ["a", "b"]

    def test_jsonl_blank_lines_skipped(self):
        """Blank lines in JSONL are ignored."""
        refs = normalize_refs('\n{"id": "a"}\n\n   \n{"id": "b"}\n')
        assert len(refs) == 2

    def test_empty_content(self):
        """Empty or whitespace-only content is an empty list."""
        assert normalize_refs("") == []
        assert normalize_refs("  \n\t") == []

    def test_invalid_json_array(self):
        """Broken JSON raises RefsError."""
        with pytest.raises(RefsError, match="Invalid JSON"):
            normalize_refs('[{"id": "a"},')

    @pytest.mark.parametrize("content", ['[1, {"id": "a"}]', '[{"id": "a"}, "oops"]', "[null]"])
    def test_array_elements_must_be_objects(self, content):
        """Non-object array elements are rejected with their index."""
        with pytest.raises(RefsError, match="element"):
            normalize_refs(content)

    def test_array_element_index_reported(self):
        """The offending element is named by its 0-based index."""
        with pytest.raises(RefsError, match="element 1"):
            normalize_refs('[{"id": "a"}, "oops"]')

    def test_invalid_jsonl_reports_line(self):
        """The failing JSONL line number is reported 1-based."""
        with pytest.raises(RefsError, match="line 3"):
            normalize_refs('{"id": "a"}\n{"id": "b"}\n{not json}\n')

    def test_jsonl_line_must_be_object(self):
        """Scalars are not references."""
        with pytest.raises(RefsError, match="line 1"):
            normalize_refs("42")


class TestLoadRefs:
    """Tests for reading reference files."""

    def test_load_json_fixture(self):
        """The JSON fixture loads all entries."""
        refs = load_refs(FIXTURES / "refs.json")
        assert [r["id"] for r in refs] == ["smith2020", "doe2021", "jones2019", "unused2018"]

    def test_load_jsonl_fixture(self):
        """The JSONL fixture loads all entries."""
        refs = load_refs(FIXTURES / "refs.jsonl")
        assert [r["id"] for r in refs] == ["smith2020", "doe2021"]

    def test_missing_file(self, tmp_path):
        """A missing file raises RefsError."""
        with pytest.raises(RefsError, match="Failed to read file"):
            load_refs(tmp_path / "nope.json")
