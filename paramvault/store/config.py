from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import jsonschema

from ..utils.yamlio import read_yaml
from .adapters.ssm import DEFAULT_KEY_ALIAS, DEFAULT_NUM_RETRIES
from .errors import ValidationError


# Backend kinds selectable from the command line or a settings file.
# The memory store is a test double and is only built programmatically.
ALLOWED_BACKEND_KINDS: Tuple[str, ...] = ("null", "ssm")

DEFAULT_BACKEND = "ssm"

BACKEND_ENV_VAR = "PARAMVAULT_BACKEND"
RETRIES_ENV_VAR = "PARAMVAULT_RETRIES"
VERBOSE_ENV_VAR = "PARAMVAULT_VERBOSE"
CONFIG_ENV_VAR = "PARAMVAULT_CONFIG"

_TRUE_VALUES = ("1", "t", "true", "y", "yes", "on")
_FALSE_VALUES = ("0", "f", "false", "n", "no", "off")


@dataclass(frozen=True)
class StoreSettings:
    backend: str = DEFAULT_BACKEND
    retries: int = DEFAULT_NUM_RETRIES
    verbose: bool = False
    region: str = ""
    key_alias: str = DEFAULT_KEY_ALIAS


def _settings_schema() -> Dict[str, Any]:
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "backend": {"type": "string", "enum": list(ALLOWED_BACKEND_KINDS)},
            "retries": {"type": "integer", "minimum": 0},
            "verbose": {"type": "boolean"},
            "ssm": {
                "type": "object",
                "properties": {
                    "region": {"type": "string"},
                    "key_alias": {"type": "string", "minLength": 1},
                },
                "additionalProperties": False,
            },
        },
        "additionalProperties": False,
    }


def resolve_settings_path(cli_path: Optional[str] = None) -> Optional[Path]:
    """Resolve the settings YAML path.

    Precedence:
      1) CLI flag --config
      2) PARAMVAULT_CONFIG
      3) ~/.config/paramvault/config.yml (only when it exists)
    """
    if cli_path and str(cli_path).strip():
        return Path(str(cli_path).strip()).expanduser().resolve()

    env_path = str(os.environ.get(CONFIG_ENV_VAR, "") or "").strip()
    if env_path:
        return Path(env_path).expanduser().resolve()

    default = Path("~/.config/paramvault/config.yml").expanduser()
    if default.exists():
        return default.resolve()
    return None


def load_settings_file(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ValidationError(f"settings file not found: {path}")
    try:
        data = read_yaml(path)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    try:
        jsonschema.validate(instance=data, schema=_settings_schema())
    except jsonschema.ValidationError as e:
        raise ValidationError(f"settings schema validation failed: {path}: {e.message}") from e
    return data


def _parse_bool(raw: str) -> Optional[bool]:
    v = raw.strip().lower()
    if v in _TRUE_VALUES:
        return True
    if v in _FALSE_VALUES:
        return False
    return None


def _parse_int(raw: str) -> Optional[int]:
    try:
        return int(raw.strip())
    except ValueError:
        return None


def load_settings(
    *,
    cli_path: Optional[str] = None,
    backend: Optional[str] = None,
    retries: Optional[int] = None,
    verbose: Optional[bool] = None,
    environ: Optional[Dict[str, str]] = None,
) -> StoreSettings:
    """Build StoreSettings from overrides, environment, settings file and defaults.

    Explicit arguments win over PARAMVAULT_* environment variables, which win
    over the settings file. Environment values that do not parse are ignored.
    """
    env = environ if environ is not None else dict(os.environ)

    file_data: Dict[str, Any] = {}
    path = resolve_settings_path(cli_path)
    if path is not None:
        file_data = load_settings_file(path)
    ssm_data = file_data.get("ssm") or {}

    resolved_backend = str(file_data.get("backend", DEFAULT_BACKEND))
    env_backend = str(env.get(BACKEND_ENV_VAR, "") or "").strip()
    if env_backend:
        resolved_backend = env_backend
    if backend is not None and str(backend).strip():
        resolved_backend = str(backend).strip()
    resolved_backend = resolved_backend.lower()
    if resolved_backend not in ALLOWED_BACKEND_KINDS:
        raise ValidationError(f"invalid backend {resolved_backend!r} (allowed: {list(ALLOWED_BACKEND_KINDS)})")

    resolved_retries = int(file_data.get("retries", DEFAULT_NUM_RETRIES))
    env_retries = _parse_int(str(env.get(RETRIES_ENV_VAR, "") or ""))
    if env_retries is not None:
        resolved_retries = env_retries
    if retries is not None:
        resolved_retries = int(retries)

    resolved_verbose = bool(file_data.get("verbose", False))
    env_verbose = _parse_bool(str(env.get(VERBOSE_ENV_VAR, "") or ""))
    if env_verbose is not None:
        resolved_verbose = env_verbose
    if verbose:
        resolved_verbose = True

    return StoreSettings(
        backend=resolved_backend,
        retries=resolved_retries,
        verbose=resolved_verbose,
        region=str(ssm_data.get("region", "") or ""),
        key_alias=str(ssm_data.get("key_alias", "") or DEFAULT_KEY_ALIAS),
    )
