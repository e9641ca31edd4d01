"""Structured logging utilities for check runs.

Events can be persisted as NDJSON next to JSON/text artefacts, and echoed in a
compact form to stderr. Stdout is reserved for diagnostics.
"""

from __future__ import annotations

import json
import os
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List


def _truthy(val: str | None) -> bool:
    return (val or "").strip().lower() in {"1", "true", "yes", "on", "enable", "enabled"}


class RunLogger:
    """Record structured events for a single run.

    Nothing is written to disk unless *base_dir* is given.
    """

    def __init__(self, base_dir: str | Path | None = None, run_id: str | None = None, *, stream: bool | None = None):
        if run_id is None:
            run_id = time.strftime("%Y%m%d-%H%M%S")
        self.run_id = run_id
        self.run_dir: Path | None = None
        if base_dir is not None:
            self.run_dir = Path(base_dir) / run_id
            self.run_dir.mkdir(parents=True, exist_ok=True)
        # Event stream config (env var override)
        if stream is None:
            stream = _truthy(os.environ.get("ICTC_LOG_STREAM"))
        self._stream = bool(stream)
        self.events: List[dict[str, Any]] = []

    @property
    def events_path(self) -> Path | None:
        if self.run_dir is None:
            return None
        return self.run_dir / "events.ndjson"

    def path_for(self, name: str, suffix: str) -> Path | None:
        if self.run_dir is None:
            return None
        return self.run_dir / f"{name}.{suffix}"

    def log_json(self, name: str, data: Any) -> Path | None:
        path = self.path_for(name, "json")
        if path is None:
            return None
        path.write_text(json.dumps(data, indent=2, sort_keys=True))
        self.log_event("file.write", name=name, path=str(path))
        return path

    def log_text(self, name: str, text: str) -> Path | None:
        path = self.path_for(name, "txt")
        if path is None:
            return None
        path.write_text(text)
        self.log_event("file.write", name=name, path=str(path))
        return path

    def log_event(self, kind: str, /, **data: Any) -> None:
        """Record an event, append it to events.ndjson and optionally echo it."""
        record = {
            "ts": time.time(),
            "ts_iso": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "kind": kind,
            "data": data,
        }
        self.events.append(record)
        events_path = self.events_path
        if events_path is not None:
            with events_path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(record, separators=(",", ":"), default=str) + "\n")
        if self._stream:
            msg = f"[{record['ts_iso']}] {kind} "
            for key in ("path", "hop", "count", "diagnostics"):
                if key in data:
                    msg += f"{key}={data[key]} "
            print(msg.strip(), file=sys.stderr, flush=True)
