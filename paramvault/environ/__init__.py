from __future__ import annotations

from .environ import DEFAULT_STRICT_VALUE, Environ, build_environment
from .errors import (
    EnvironError,
    MissingExpectedKeyError,
    UnnormalizedExpectedKeyError,
    ValueMismatchError,
)
from .names import normalize_env_var_name

__all__ = [
    "DEFAULT_STRICT_VALUE",
    "Environ",
    "build_environment",
    "EnvironError",
    "MissingExpectedKeyError",
    "UnnormalizedExpectedKeyError",
    "ValueMismatchError",
    "normalize_env_var_name",
]
