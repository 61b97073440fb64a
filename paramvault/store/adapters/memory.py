from __future__ import annotations

import os
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from ..contracts import Store
from ..errors import NotFoundError, ValidationError
from ..models import LATEST_VERSION, Metadata, ParameterName, RawValue, Value, is_valid_key, join_path


def _under_prefix(key: str, prefix: str) -> bool:
    if prefix == "/":
        return True
    return key.startswith(prefix + "/")


class MemoryStore(Store):
    """In-process Store used as a test double.

    Only the latest value of each key is kept. All operations, reads
    included, run under a single lock.
    """

    def __init__(self) -> None:
        self._values: Dict[str, Value] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str], *, secure: bool = False) -> "MemoryStore":
        store = cls()
        for k in sorted(mapping.keys()):
            store.put(ParameterName.from_key(k), Value(value=str(mapping[k]), meta=Metadata(secure=secure)))
        return store

    def put(self, name: ParameterName, value: Value) -> None:
        key = name.key
        if not is_valid_key(key):
            raise ValidationError(f"Invalid parameter key: {key!r}")
        with self._lock:
            current = self._values.get(key)
            version = current.meta.version + 1 if current is not None else 1
            meta = replace(
                value.meta,
                key=key,
                description=str(version),
                version=version,
                last_modified_date=datetime.now(timezone.utc),
                last_modified_user=value.meta.last_modified_user or os.environ.get("USER", ""),
            )
            self._values[key] = Value(value=value.value, meta=meta)

    def get(self, name: ParameterName, version: int = LATEST_VERSION) -> Value:
        key = name.key
        with self._lock:
            current = self._values.get(key)
            if current is None:
                raise NotFoundError(f"Configuration not found: {key}")
            if version != LATEST_VERSION and version != current.meta.version:
                raise NotFoundError(f"Configuration not found: {key} (version {version})")
            return current

    def list(self, prefix: str, include_values: bool = False) -> List[Value]:
        pref = join_path(prefix)
        with self._lock:
            out: List[Value] = []
            for key in sorted(self._values.keys()):
                if not _under_prefix(key, pref):
                    continue
                v = self._values[key]
                out.append(v if include_values else Value(value=None, meta=v.meta))
            return out

    def list_raw(self, prefix: str) -> List[RawValue]:
        pref = join_path(prefix)
        with self._lock:
            return [
                RawValue(key=key, value=str(self._values[key].value or ""))
                for key in sorted(self._values.keys())
                if _under_prefix(key, pref)
            ]

    def delete(self, name: ParameterName) -> None:
        key = name.key
        with self._lock:
            if key not in self._values:
                raise NotFoundError(f"Configuration not found: {key}")
            del self._values[key]

    def describe(self) -> Dict[str, Any]:
        with self._lock:
            count = len(self._values)
        return {"class": self.__class__.__name__, "backend": "memory", "keys": count}
