"""csl-tools: format citations and bibliographies in Markdown documents.

Examples:
  csl-tools process article.md --bib refs.json --csl style.csl
  csl-tools process article.md -b refs.jsonl -c ieee.csl -o article.html
  echo '[@key]' | csl-tools process - --bib refs.json --csl style.csl
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from csl_tools.config import OUTPUT_FORMATS, AppConfig, load_config
from csl_tools.engine import ProcessingError, ReferenceNotFoundError
from csl_tools.logging_utils import log_event, read_events
from csl_tools.pipeline import process_document
from csl_tools.refs import RefsError, load_refs
from csl_tools.styles import StyleError, load_style

HINTS = {
    "input": "verify the file path is correct",
    "bib": "the file must be a JSON array of CSL-JSON objects, or JSONL (one object per line)",
    "style": "provide the path to a .csl style file",
    "reference": "check that this citation key exists in your bibliography file",
    "engine": None,
    "output": "check that the output directory exists and is writable",
}


class AppError(Exception):
    def __init__(self, kind: str, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __str__(self) -> str:
        hint = HINTS.get(self.kind)
        if hint:
            return f"{self.message}\n  hint: {hint}"
        return self.message


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="csl-tools",
        description="Format citations and bibliographies in Markdown documents",
        epilog="Citation syntax: [@key], [@key](url), [@key, p. 42], [@a; @b; @c]",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML config file (default: config/app.yaml)")
    sub = parser.add_subparsers(dest="command", required=True)

    proc = sub.add_parser("process", help="Process a Markdown file with citations")
    proc.add_argument("input", help="Input Markdown file (use '-' for stdin)")
    proc.add_argument("-b", "--bib", required=True, type=Path, help="Bibliography file (CSL-JSON array or JSONL)")
    proc.add_argument("-c", "--csl", required=True, type=Path, help="CSL style file")
    proc.add_argument("-o", "--output", type=Path, default=None, help="Output file (default: stdout)")
    proc.add_argument("--no-bib", action="store_true", help="Don't include bibliography")
    proc.add_argument("--bib-header", default=None, help="Custom bibliography header")
    proc.add_argument("--format", choices=OUTPUT_FORMATS, default=None, help="Citation markup (default from config)")

    events = sub.add_parser("events", help="Show recent entries of the event log")
    events.add_argument("-n", "--limit", type=int, default=20)
    return parser


def _read_input(name: str) -> str:
    if name == "-":
        try:
            return sys.stdin.read()
        except OSError as exc:
            raise AppError("input", f"failed to read from stdin: {exc}") from exc
    try:
        return Path(name).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise AppError("input", f"'{name}': {exc}") from exc


def process_command(args: argparse.Namespace, cfg: AppConfig) -> dict:
    markdown = _read_input(args.input)

    try:
        references = load_refs(args.bib)
    except RefsError as exc:
        raise AppError("bib", f"'{args.bib}': {exc}") from exc

    try:
        style_xml = load_style(args.csl)
    except StyleError as exc:
        raise AppError("style", str(exc)) from exc

    try:
        result = process_document(
            markdown,
            references,
            style_xml,
            include_bibliography=cfg.include_bibliography and not args.no_bib,
            bib_header=args.bib_header if args.bib_header is not None else cfg.bib_header,
            output_format=args.format or cfg.output_format,
            merge_across_lines=cfg.merge_across_lines,
        )
    except ReferenceNotFoundError as exc:
        raise AppError("reference", str(exc)) from exc
    except ProcessingError as exc:
        raise AppError("engine", str(exc)) from exc

    if args.output is not None:
        try:
            args.output.write_text(result.output, encoding="utf-8")
        except OSError as exc:
            raise AppError("output", f"'{args.output}': {exc}") from exc
        print(f"processed {len(result.clusters)} citation(s), wrote {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(result.output)

    return {
        "type": "process",
        "input": args.input,
        "output": str(args.output) if args.output else None,
        "citations": result.citation_count,
        "works": len(result.cited_ids),
        "clusters": len(result.clusters),
        "bibliography": bool(result.bibliography),
    }


def events_command(args: argparse.Namespace, cfg: AppConfig) -> None:
    if cfg.logs_dir is None:
        print("Event log disabled (set paths.logs_dir or CSL_TOOLS_LOGS_DIR).", file=sys.stderr)
        return
    for event in read_events(cfg.logs_dir, args.limit):
        print(json.dumps(event, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = load_config(args.config)
    except (OSError, ValueError) as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1

    if args.command == "events":
        events_command(args, cfg)
        return 0

    try:
        event = process_command(args, cfg)
    except AppError as e:
        print(f"Error: {e}", file=sys.stderr)
        if cfg.logs_dir is not None:
            log_event(cfg.logs_dir, {"type": "error", "kind": e.kind, "input": args.input, "message": e.message})
        return 1

    if cfg.logs_dir is not None:
        log_event(cfg.logs_dir, event)
    return 0


if __name__ == "__main__":
    sys.exit(main())
