"""Filesystem helpers."""

from __future__ import annotations

import json
from pathlib import Path


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def read_yaml(path: Path):
    import yaml

    with path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def read_bytes(path: Path) -> bytes:
    with path.open("rb") as f:
        return f.read()


def write_bytes(path: Path, content: bytes) -> None:
    ensure_dir(path.parent)
    with path.open("wb") as f:
        f.write(content)


def file_mtime(path: Path) -> float | None:
    try:
        return path.stat().st_mtime
    except OSError:
        return None


def dump_json(payload) -> str:
    return json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True)
