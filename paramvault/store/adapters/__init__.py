from __future__ import annotations

from .memory import MemoryStore
from .null import NullStore
from .ssm import SSMStore, SSMStoreSettings

__all__ = [
    "MemoryStore",
    "NullStore",
    "SSMStore",
    "SSMStoreSettings",
]
