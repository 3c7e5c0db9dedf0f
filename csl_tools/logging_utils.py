from __future__ import annotations

from pathlib import Path
import json
import time
import uuid

EVENTS_FILE = "events.jsonl"

def log_event(logs_dir: Path, event: dict) -> str:
    """Append one event as a JSON line and return its id."""
    logs_dir.mkdir(parents=True, exist_ok=True)
    event_id = str(uuid.uuid4())
    payload = {"event_id": event_id, "ts": time.time(), **event}

    with open(logs_dir / EVENTS_FILE, "a", encoding="utf-8") as f:
        f.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
    return event_id

def read_events(logs_dir: Path, limit: int | None = None) -> list[dict]:
    log_path = logs_dir / EVENTS_FILE
    if not log_path.exists():
        return []
    lines = [line for line in log_path.read_text(encoding="utf-8").splitlines() if line.strip()]
    if limit is not None:
        lines = lines[-limit:]
    return [json.loads(line) for line in lines]
