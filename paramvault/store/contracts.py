from __future__ import annotations

from typing import Any, Dict, List, Protocol

from .models import LATEST_VERSION, ParameterName, RawValue, Value


class Store(Protocol):
    """Versioned key/value store.

    Every backend shares these five operations and the errors in
    ``paramvault.store.errors``:

      - put: write a new version (version 1 for a new key, else latest + 1)
      - get: read a specific version, or the latest with LATEST_VERSION
      - list: one entry per key under prefix; values only when requested
      - list_raw: key/value pairs under prefix without metadata
      - delete: remove the key together with all of its versions
    """

    def put(self, name: ParameterName, value: Value) -> None:
        raise NotImplementedError

    def get(self, name: ParameterName, version: int = LATEST_VERSION) -> Value:
        raise NotImplementedError

    def list(self, prefix: str, include_values: bool = False) -> List[Value]:
        raise NotImplementedError

    def list_raw(self, prefix: str) -> List[RawValue]:
        raise NotImplementedError

    def delete(self, name: ParameterName) -> None:
        raise NotImplementedError

    def describe(self) -> Dict[str, Any]:
        raise NotImplementedError
