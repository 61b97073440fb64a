from __future__ import annotations

from .models import (
    LATEST_VERSION,
    ParameterName,
    Metadata,
    Value,
    RawValue,
    is_valid_key,
    validate_path,
    join_path,
)

from .errors import (
    StoreError,
    NotFoundError,
    NotSupportedError,
    AccessDeniedError,
    BackendError,
    ValidationError,
)

from .contracts import Store

from .adapters import (
    MemoryStore,
    NullStore,
    SSMStore,
    SSMStoreSettings,
)

from .config import (
    StoreSettings,
    load_settings,
    resolve_settings_path,
)

from .factory import build_store

__all__ = [
    "LATEST_VERSION",
    "ParameterName",
    "Metadata",
    "Value",
    "RawValue",
    "is_valid_key",
    "validate_path",
    "join_path",
    "StoreError",
    "NotFoundError",
    "NotSupportedError",
    "AccessDeniedError",
    "BackendError",
    "ValidationError",
    "Store",
    "MemoryStore",
    "NullStore",
    "SSMStore",
    "SSMStoreSettings",
    "StoreSettings",
    "load_settings",
    "resolve_settings_path",
    "build_store",
]
