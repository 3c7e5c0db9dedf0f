from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import copy
import os
import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG_PATH = Path("config/app.yaml")

DEFAULTS: dict = {
    "output": {
        "bib_header": "## References",
        "format": "html",
        "include_bibliography": True,
    },
    "clustering": {
        "merge_across_lines": True,
    },
    "paths": {
        "logs_dir": None,
    },
}

OUTPUT_FORMATS = ("html", "text")

def _merge(base: dict, override: dict) -> dict:
    out = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _merge(out[key], value)
        else:
            out[key] = value
    return out

@dataclass(frozen=True)
class AppConfig:
    raw: dict

    @property
    def bib_header(self) -> str:
        return str(self.raw["output"]["bib_header"])

    @property
    def output_format(self) -> str:
        return str(self.raw["output"]["format"])

    @property
    def include_bibliography(self) -> bool:
        return bool(self.raw["output"]["include_bibliography"])

    @property
    def merge_across_lines(self) -> bool:
        return bool(self.raw["clustering"]["merge_across_lines"])

    @property
    def logs_dir(self) -> Path | None:
        value = self.raw["paths"]["logs_dir"]
        return Path(value) if value else None

def load_config(path: str | Path | None = None) -> AppConfig:
    load_dotenv()
    if path is None:
        path = os.getenv("CSL_TOOLS_CONFIG") or None
    explicit = path is not None
    path = Path(path) if explicit else DEFAULT_CONFIG_PATH
    if explicit and not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = copy.deepcopy(DEFAULTS)
    if path.is_file():
        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = _merge(raw, yaml.safe_load(f) or {})
            except yaml.YAMLError as exc:
                raise ValueError(f"Invalid YAML in {path}: {exc}") from exc

    if os.getenv("CSL_TOOLS_LOGS_DIR"):
        raw["paths"]["logs_dir"] = os.environ["CSL_TOOLS_LOGS_DIR"]

    # Fail early on settings the engine would reject later
    if raw["output"]["format"] not in OUTPUT_FORMATS:
        raise ValueError(f"Unknown output.format {raw['output']['format']!r} in {path}")
    return AppConfig(raw=raw)
