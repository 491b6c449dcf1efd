"""JSON helpers shared by the config loader, fingerprinting and the CLI."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


def read_json(path: str | Path) -> Any:
    """Read a UTF-8 JSON file."""
    with Path(path).open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str | Path, data: Any, indent: int | None = 2) -> None:
    """Write ``data`` as UTF-8 JSON, creating parent directories."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, ensure_ascii=False)
        f.write("\n")


def canonical_json(data: Any) -> str:
    """Serialize with sorted keys and no whitespace.

    Two structurally equal documents always produce the same string, which
    makes the output suitable for hashing.
    """
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str)


__all__ = ["canonical_json", "read_json", "write_json"]
