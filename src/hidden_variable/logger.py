from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Sequence


def _json_default(obj: Any) -> Any:
    # numpy arrays and scalars, sets and other outputs json does not handle natively
    tolist = getattr(obj, "tolist", None)
    if callable(tolist):
        return _json_safe(tolist())
    if isinstance(obj, (set, frozenset)):
        return sorted((_json_safe(v) for v in obj), key=repr)
    return repr(obj)


def _json_safe(obj: Any) -> Any:
    """Stringifies mapping keys json cannot encode, recursively."""
    if isinstance(obj, dict):
        return {
            (k if isinstance(k, (str, int, float, bool)) or k is None else repr(k)): _json_safe(v)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [_json_safe(v) for v in obj]
    return obj


class InteractionLogger:
    """Append-only JSONL logger for interaction events.

    Only observable outputs and failure reasons are written, never hidden state.
    """

    def __init__(self, outdir: str | Path, filename: str = "interaction_log.jsonl") -> None:
        self.outdir = Path(outdir)
        self.outdir.mkdir(parents=True, exist_ok=True)
        self.path = self.outdir / filename
        self._lock = threading.Lock()

    def _line(self, event: str, payload: Dict[str, Any]) -> str:
        rec = {
            "ts_utc": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
            "event": event,
            "payload": _json_safe(payload),
        }
        return json.dumps(rec, ensure_ascii=False, default=_json_default)

    def log(self, event: str, payload: Dict[str, Any]) -> None:
        self.log_many(event, [payload])

    def log_many(self, event: str, payloads: Sequence[Dict[str, Any]]) -> None:
        """Writes one line per payload; all lines are serialised before any is written."""
        text = "".join(self._line(event, p) + "\n" for p in payloads)
        with self._lock, self.path.open("a", encoding="utf-8") as f:
            f.write(text)

    def read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
