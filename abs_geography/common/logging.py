"""JSON logging with stable schema."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from abs_geography.common.constants import JSON_LOG_FIELDS
from abs_geography.common.fs import ensure_dir
from abs_geography.common.time_utils import utc_timestamp_iso

LOGGER_NAMESPACE = "abs_geography"


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {field: getattr(record, field, None) for field in JSON_LOG_FIELDS}
        payload["timestamp"] = utc_timestamp_iso()
        payload["level"] = record.levelname
        payload["message"] = record.getMessage()
        return json.dumps(payload, ensure_ascii=False)


def build_logger(run_id: str, data_dir: Path | None = None, level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{run_id}")
    logger.setLevel("WARNING" if level.upper() == "WARN" else level.upper())
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = False

    # stdout carries command output, so diagnostics go to stderr.
    stream = logging.StreamHandler()
    stream.setFormatter(JsonLineFormatter())
    logger.addHandler(stream)

    if data_dir is not None:
        log_path = data_dir / "run_meta" / f"{run_id}.log.jsonl"
        ensure_dir(log_path.parent)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(JsonLineFormatter())
        logger.addHandler(file_handler)

    return logger


def default_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAMESPACE)


def log_event(logger: logging.Logger, message: str, *, level: int = logging.INFO, **event_fields: Any) -> None:
    logger.log(level, message, extra=event_fields)
