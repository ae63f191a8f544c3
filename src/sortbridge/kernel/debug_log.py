"""Structured debug log writer with size-based rotation."""

from __future__ import annotations

import json
import threading
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from sortbridge.kernel.types import now_ms

ACTIVE_LOG_NAME = "debug.log.jsonl"


@dataclass(frozen=True)
class LogRecord:
    """One JSONL line; ``run_id`` and ``thread`` tie it to a sort run."""

    ts_ms: int
    level: str
    component: str
    kind: str
    run_id: str
    event_type: str
    thread: str
    message: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_line(self) -> bytes:
        text = json.dumps(asdict(self), ensure_ascii=True, separators=(",", ":"), default=str)
        return (text + "\n").encode("utf-8")


class DebugLogWriter:
    """Best-effort JSONL debug log writer with rotation.

    Write failures are counted and never raised to the caller.
    """

    def __init__(
        self,
        *,
        logs_dir: Path,
        enabled: bool,
        log_format: str = "jsonl",
        max_file_bytes: int = 10 * 1024 * 1024,
        max_files: int = 5,
    ) -> None:
        self._logs_dir = Path(logs_dir)
        self._enabled = bool(enabled)
        self._log_format = str(log_format or "jsonl").strip().lower()
        self._max_file_bytes = max(1, int(max_file_bytes or 0))
        self._max_files = max(1, int(max_files or 0))
        self._write_errors = 0
        self._lock = threading.Lock()
        if self._enabled:
            try:
                self._logs_dir.mkdir(parents=True, exist_ok=True)
            except OSError:
                self._write_errors += 1

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def active_log_file(self) -> Path:
        return self._logs_dir / ACTIVE_LOG_NAME

    def write_entry(
        self,
        *,
        level: str,
        component: str,
        kind: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        run_id: Optional[str] = None,
        event_type: Optional[str] = None,
        ts_ms: Optional[int] = None,
    ) -> None:
        if not self._enabled:
            return
        record = LogRecord(
            ts_ms=int(ts_ms if ts_ms is not None else now_ms()),
            level=level or "info",
            component=component or "coordinator",
            kind=kind or "diagnostic",
            run_id=run_id or "",
            event_type=event_type or "",
            thread=threading.current_thread().name,
            message=message or "",
            data=dict(data or {}),
        )
        self._append(record)

    def status(self) -> Dict[str, Any]:
        with self._lock:
            sizes = self._file_sizes() if self._enabled else []
        active_size = sizes[0][1] if sizes and sizes[0][0] == self.active_log_file else 0
        return {
            "logs_enabled": self._enabled,
            "logs_format": self._log_format,
            "logs_dir": str(self._logs_dir),
            "logs_active_file": str(self.active_log_file),
            "logs_active_size_bytes": active_size,
            "logs_max_file_bytes": self._max_file_bytes,
            "logs_max_files": self._max_files,
            "logs_total_size_bytes": sum(size for _, size in sizes),
            "logs_rotated_files": [str(path) for path, _ in sizes if path != self.active_log_file],
            "logs_write_errors": self._write_errors,
        }

    def _append(self, record: LogRecord) -> None:
        try:
            payload = record.to_line()
        except (TypeError, ValueError):
            self._write_errors += 1
            return
        with self._lock:
            try:
                self._logs_dir.mkdir(parents=True, exist_ok=True)
                active = self.active_log_file
                current = active.stat().st_size if active.exists() else 0
                if current and current + len(payload) > self._max_file_bytes:
                    self._shift_generations()
                with active.open("ab") as fp:
                    fp.write(payload)
            except OSError:
                self._write_errors += 1

    def _generation(self, index: int) -> Path:
        if index == 0:
            return self.active_log_file
        return self._logs_dir / "{0}.{1}".format(ACTIVE_LOG_NAME, index)

    def _shift_generations(self) -> None:
        # debug.log.jsonl -> .1 -> .2 ... ; the oldest generation falls off.
        self._generation(self._max_files).unlink(missing_ok=True)
        for index in range(self._max_files - 1, -1, -1):
            source = self._generation(index)
            if source.exists():
                source.replace(self._generation(index + 1))

    def _file_sizes(self) -> List[Tuple[Path, int]]:
        sizes = []
        for index in range(self._max_files + 1):
            path = self._generation(index)
            if path.is_file():
                sizes.append((path, int(path.stat().st_size)))
        return sizes


def read_log_entries(path: Path) -> List[Dict[str, Any]]:
    """Parse a JSONL log file, skipping lines that do not decode."""
    entries: List[Dict[str, Any]] = []
    if not Path(path).is_file():
        return entries
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        text = line.strip()
        if not text:
            continue
        try:
            entries.append(json.loads(text))
        except ValueError:
            continue
    return entries
