"""
Application loggers.

- get_logger(name) -> plain console logger used by services.
- get_event_logger(file_path=None) -> JSON-lines logger for operational events
  (inventory cost propagation, reconciliation runs).
- log_event(logger, op, phase, message, extra=None, level=INFO)
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

_EVENT_LOGGER_NAME = "travel_office.events"


def get_logger(name="travel_office"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger.setLevel(logging.INFO)
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
        logger.addHandler(ch)
    return logger


class _JsonLineFormatter(logging.Formatter):
    """
    {"ts":"2025-09-16T12:00:01.123Z","level":"INFO","name":"travel_office.events","msg":"...","extra":{...}}
    """
    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "name": record.name,
            "msg": record.getMessage(),
        }
        if isinstance(getattr(record, "extra_payload", None), dict):
            payload["extra"] = record.extra_payload
        return json.dumps(payload, ensure_ascii=False, default=str)


def get_event_logger(file_path: Optional[str | Path] = None, level: int = logging.INFO) -> logging.Logger:
    """
    Return the JSON-lines event logger. Without a file path it writes to stderr;
    with one it appends to that file. Handlers are only attached once.
    """
    logger = logging.getLogger(_EVENT_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    if logger.handlers:
        return logger

    if file_path:
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(str(path), mode="a", encoding="utf-8", delay=True)
    else:
        handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(_JsonLineFormatter())
    logger.addHandler(handler)
    return logger


def log_event(
    logger: logging.Logger,
    op: str,
    phase: str,
    message: str,
    extra: Dict[str, object] | None = None,
    level: int = logging.INFO,
) -> None:
    """
    Log a structured event line.

    Args:
        op: Operation name, e.g. "inventory_propagation".
        phase: Phase within the operation, e.g. "start", "booking", "done".
        extra: Additional key/values; never overrides op/phase.
    """
    extra_payload: Dict[str, object] = {"op": op, "phase": phase}
    for k, v in (extra or {}).items():
        extra_payload.setdefault(k, v)
    logger.log(level, message, extra={"extra_payload": extra_payload})


__all__ = ["get_logger", "get_event_logger", "log_event"]
