"""Persistence utilities for the file-backed collections."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Iterable, List

from .exceptions import StorageUnavailable


class JSONStorage:
    """File-based JSON storage, one array per resource, with crash-safe writes."""

    def __init__(self, base_path: Path, *, create: bool = True) -> None:
        self._base_path = Path(base_path)
        if create:
            self._base_path.mkdir(parents=True, exist_ok=True)

    def load(self, resource: str, *, missing_ok: bool = True) -> List[Dict[str, Any]]:
        path = self._base_path / resource
        if missing_ok and not path.exists():
            return []
        try:
            with path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except json.JSONDecodeError as exc:
            raise StorageUnavailable(f"Corrupted JSON data in {path}") from exc
        except OSError as exc:
            raise StorageUnavailable(f"Unable to read from {path}") from exc

        if not isinstance(payload, list):
            raise StorageUnavailable(f"Expected list payload in {path}")
        return payload

    def save(self, resource: str, records: Iterable[Dict[str, Any]]) -> None:
        path = self._base_path / resource
        temp_path = None
        try:
            # One temp file per writer.
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._base_path,
                prefix=f".{resource}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                json.dump(list(records), handle, indent=2, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            # os.replace is an atomic rename; readers see the old or the new file, never half.
            os.replace(temp_path, path)
        except (OSError, TypeError, ValueError) as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise StorageUnavailable(f"Unable to write to {path}") from exc
