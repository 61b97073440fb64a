from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..store.contracts import Store
from ..store.models import join_path, strip_prefix
from .errors import (
    MissingExpectedKeyError,
    UnnormalizedExpectedKeyError,
    ValueMismatchError,
)
from .names import normalize_env_var_name

logger = logging.getLogger(__name__)

# Placeholder marking variables eligible for strict substitution.
DEFAULT_STRICT_VALUE = "changeme"


class Environ:
    """Process environment as an ordered list of "KEY=VALUE" entries.

    Entries may repeat a key until normalized through set(). unset() swaps
    the removed entry with the last one, so the order of the remaining
    entries is not preserved.
    """

    def __init__(self, entries: Optional[Iterable[str]] = None) -> None:
        self.entries: List[str] = list(entries or [])

    @classmethod
    def from_map(cls, mapping: Mapping[str, str]) -> "Environ":
        return cls(f"{k}={v}" for k, v in mapping.items())

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def is_set(self, key: str) -> bool:
        marker = key + "="
        return any(e.startswith(marker) for e in self.entries)

    def set(self, key: str, value: str) -> None:
        self.unset(key)
        self.entries.append(f"{key}={value}")

    def unset(self, key: str) -> None:
        marker = key + "="
        for i, e in enumerate(self.entries):
            if e.startswith(marker):
                self.entries[i] = self.entries[-1]
                self.entries.pop()
                return

    def to_map(self) -> Dict[str, str]:
        """Collapse to a mapping; later entries win, entries without "=" are dropped."""
        out: Dict[str, str] = {}
        for e in self.entries:
            k, sep, v = e.partition("=")
            if not sep:
                continue
            out[k] = v
        return out

    def load(self, store: Store, prefix: str) -> List[str]:
        """Set every key under prefix, returning the variable names overwritten.

        Collisions are reported, never fatal.
        """
        path = join_path(prefix)
        collisions: List[str] = []
        for raw in store.list_raw(path):
            name = normalize_env_var_name(strip_prefix(raw.key, path))
            if not name:
                continue
            if self.is_set(name):
                collisions.append(name)
            self.set(name, raw.value)
        logger.debug("loaded prefix %s (%d collisions)", path, len(collisions))
        return collisions

    def load_strict(
        self,
        store: Store,
        prefixes: Sequence[str],
        value_expected: str = DEFAULT_STRICT_VALUE,
        pristine: bool = False,
    ) -> None:
        """Substitute sentinel-valued variables with values from the store.

        Only variables already present with value_expected are filled; store
        keys without a matching variable are skipped. Raises:

          - UnnormalizedExpectedKeyError before any store access when a
            sentinel-valued name is not in normalized form
          - ValueMismatchError when a store key maps onto a variable holding
            anything other than value_expected, including a value filled
            by an earlier prefix
          - MissingExpectedKeyError when a sentinel-valued variable is left
            unfilled after all prefixes

        With pristine, every variable that was not substituted is removed.
        On error the environment is left partially updated and must not be
        used.
        """
        parent = self.to_map()

        expects: Set[str] = set()
        for k, v in parent.items():
            if v != value_expected:
                continue
            if k != normalize_env_var_name(k):
                raise UnnormalizedExpectedKeyError(k, value_expected)
            expects.add(k)

        added: Set[str] = set()
        for prefix in prefixes:
            path = join_path(prefix)
            # Values filled by an earlier prefix no longer hold the sentinel.
            current = self.to_map()
            for raw in store.list_raw(path):
                name = normalize_env_var_name(strip_prefix(raw.key, path))
                if not name or name not in current:
                    continue
                expects.discard(name)
                actual = current[name]
                if actual != value_expected:
                    raise ValueMismatchError(name, value_expected, actual)
                added.add(name)
                self.set(name, raw.value)

        if expects:
            raise MissingExpectedKeyError(next(iter(expects)), value_expected)

        if pristine:
            for k in parent:
                if k not in added:
                    self.unset(k)


def build_environment(
    store: Store,
    prefixes: Sequence[str],
    *,
    seed: Optional[Iterable[str]] = None,
    strict: bool = False,
    strict_value: str = DEFAULT_STRICT_VALUE,
    pristine: bool = False,
) -> Tuple[Environ, List[Tuple[str, str]]]:
    """Build the environment for a child process.

    Returns the environment and (prefix, variable) pairs for every
    variable overwritten during a permissive load. Strict loads never
    report collisions; they raise instead.
    """
    collisions: List[Tuple[str, str]] = []

    if strict:
        env = Environ(seed)
        env.load_strict(store, prefixes, value_expected=strict_value, pristine=pristine)
        return env, collisions

    env = Environ() if pristine else Environ(seed)
    for prefix in prefixes:
        for name in env.load(store, prefix):
            collisions.append((join_path(prefix), name))
    return env, collisions
