"""Unit tests for configuration loading."""
from __future__ import annotations

from pathlib import Path

import pytest
from csl_tools.config import AppConfig, load_config

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config" / "app.yaml"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.delenv("CSL_TOOLS_CONFIG", raising=False)
    monkeypatch.delenv("CSL_TOOLS_LOGS_DIR", raising=False)
    monkeypatch.chdir(tmp_path)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self):
        """With no config file the built-in defaults apply."""
        cfg = load_config()

        assert isinstance(cfg, AppConfig)
        assert cfg.bib_header == "## References"
        assert cfg.output_format == "html"
        assert cfg.include_bibliography is True
        assert cfg.merge_across_lines is True
        assert cfg.logs_dir is None

    def test_repo_config_matches_defaults(self):
        """The shipped config/app.yaml is loadable."""
        cfg = load_config(REPO_CONFIG)

        assert cfg.output_format == "html"
        assert cfg.logs_dir is None

    def test_partial_file_merges_over_defaults(self, tmp_path):
        """Keys missing from the file keep their defaults."""
        path = tmp_path / "app.yaml"
        path.write_text("output:\n  bib_header: '# Sources'\nclustering:\n  merge_across_lines: false\n", encoding="utf-8")

        cfg = load_config(path)

        assert cfg.bib_header == "# Sources"
        assert cfg.output_format == "html"
        assert cfg.merge_across_lines is False

    def test_default_path_in_working_directory(self, tmp_path):
        """config/app.yaml under the working directory is picked up."""
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "app.yaml").write_text("output:\n  format: text\n", encoding="utf-8")

        assert load_config().output_format == "text"

    def test_env_config_path(self, tmp_path, monkeypatch):
        """CSL_TOOLS_CONFIG points at another file."""
        path = tmp_path / "other.yaml"
        path.write_text("output:\n  include_bibliography: false\n", encoding="utf-8")
        monkeypatch.setenv("CSL_TOOLS_CONFIG", str(path))

        assert load_config().include_bibliography is False

    def test_env_logs_dir(self, tmp_path, monkeypatch):
        """CSL_TOOLS_LOGS_DIR enables the event log."""
        monkeypatch.setenv("CSL_TOOLS_LOGS_DIR", str(tmp_path / "logs"))

        assert load_config().logs_dir == tmp_path / "logs"

    def test_explicit_missing_file(self, tmp_path):
        """An explicitly named file must exist."""
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_unknown_output_format(self, tmp_path):
        """Bad formats fail at load time."""
        path = tmp_path / "app.yaml"
        path.write_text("output:\n  format: docx\n", encoding="utf-8")

        with pytest.raises(ValueError, match="docx"):
            load_config(path)

    def test_invalid_yaml(self, tmp_path):
        """Unparseable YAML is reported as a ValueError."""
        path = tmp_path / "app.yaml"
        path.write_text("output: [unclosed\n", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid YAML"):
            load_config(path)
