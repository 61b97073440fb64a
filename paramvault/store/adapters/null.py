from __future__ import annotations

from typing import Any, Dict, List

from ..contracts import Store
from ..errors import NotSupportedError
from ..models import LATEST_VERSION, ParameterName, RawValue, Value


class NullStore(Store):
    """Store that refuses every operation.

    Selected when no real backend has been chosen, so that nothing is read
    from or written to an unintended place.
    """

    def _fail(self, op: str) -> NotSupportedError:
        return NotSupportedError(f"{op} is not implemented for the null store")

    def put(self, name: ParameterName, value: Value) -> None:
        raise self._fail("put")

    def get(self, name: ParameterName, version: int = LATEST_VERSION) -> Value:
        raise self._fail("get")

    def list(self, prefix: str, include_values: bool = False) -> List[Value]:
        raise self._fail("list")

    def list_raw(self, prefix: str) -> List[RawValue]:
        raise self._fail("list_raw")

    def delete(self, name: ParameterName) -> None:
        raise self._fail("delete")

    def describe(self) -> Dict[str, Any]:
        return {"class": self.__class__.__name__, "backend": "null"}
