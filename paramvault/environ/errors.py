from __future__ import annotations

from .names import normalize_env_var_name


class EnvironError(Exception):
    """Base class for strict environment load failures."""

    def __init__(self, key: str, value_expected: str) -> None:
        self.key = key
        self.value_expected = value_expected
        super().__init__(self._message())

    def _message(self) -> str:
        return self.key


class UnnormalizedExpectedKeyError(EnvironError):
    """A sentinel-valued variable whose name could never match a store key."""

    def _message(self) -> str:
        return (
            f"parent env has key `{self.key}` with expected value `{self.value_expected}`, but key is not "
            f"normalized like `{normalize_env_var_name(self.key)}`, so would never get substituted"
        )


class ValueMismatchError(EnvironError):
    """A store key maps onto a parent variable that does not hold the sentinel."""

    def __init__(self, key: str, value_expected: str, value_actual: str) -> None:
        self.value_actual = value_actual
        super().__init__(key, value_expected)

    def _message(self) -> str:
        return (
            f"parent env has {self.key}, but was expecting value `{self.value_expected}`, "
            f"not `{self.value_actual}`"
        )


class MissingExpectedKeyError(EnvironError):
    """A sentinel-valued variable had no matching key in any prefix."""

    def _message(self) -> str:
        return f"parent env was expecting {self.key}={self.value_expected}, but was not in store"
