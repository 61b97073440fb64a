from __future__ import annotations

from typing import Any, Optional

from .adapters.null import NullStore
from .adapters.ssm import SSMStore, SSMStoreSettings
from .config import ALLOWED_BACKEND_KINDS, StoreSettings
from .contracts import Store
from .errors import ValidationError


def build_store(settings: StoreSettings, *, client: Optional[Any] = None) -> Store:
    """Instantiate the Store selected by settings.backend.

    client is only used by the ssm backend and lets callers supply a
    preconfigured boto3 SSM client.
    """
    kind = str(settings.backend or "").strip().lower()
    if kind == "null":
        return NullStore()
    if kind == "ssm":
        return SSMStore(
            settings=SSMStoreSettings(
                region=settings.region,
                retries=settings.retries,
                key_alias=settings.key_alias,
            ),
            client=client,
        )
    raise ValidationError(f"invalid backend {kind!r} (allowed: {list(ALLOWED_BACKEND_KINDS)})")
