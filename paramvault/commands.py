from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from .environ.names import normalize_env_var_name
from .store.contracts import Store
from .store.errors import NotFoundError, ValidationError
from .store.models import LATEST_VERSION, Metadata, ParameterName, Value, strip_prefix, validate_path
from .utils.yamlio import dump_yaml

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("json", "yaml", "dotenv")

LIST_SORT_KEYS: Dict[str, Callable[[Value], Any]] = {
    "name": lambda v: v.meta.key,
    "time": lambda v: (v.meta.last_modified_date is None, v.meta.last_modified_date),
    "user": lambda v: v.meta.last_modified_user,
    "version": lambda v: v.meta.version,
}

# Characters escaped inside double-quoted dotenv values.
_DOTENV_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r", '"': '\\"', "!": "\\!", "$": "\\$", "`": "\\`"}


def parameter_name(path: str) -> ParameterName:
    """Validate a user supplied path and turn it into a ParameterName."""
    validate_path(path)
    return ParameterName.from_key(path)


def put_if_changed(store: Store, name: ParameterName, value: str, *, secure: bool = False) -> bool:
    """Write value unless the latest version already holds it.

    Returns True when a new version was written.
    """
    try:
        current = store.get(name, LATEST_VERSION)
        if current.value == value and current.meta.secure == secure:
            logger.debug("unchanged, skipping write: %s", name.key)
            return False
    except NotFoundError:
        pass
    store.put(name, Value(value=value, meta=Metadata(secure=secure)))
    return True


def sort_values(values: List[Value], by: str = "name") -> List[Value]:
    if by not in LIST_SORT_KEYS:
        raise ValidationError(f"invalid sort key {by!r} (allowed: {sorted(LIST_SORT_KEYS)})")
    out = sorted(values, key=LIST_SORT_KEYS["name"])
    if by != "name":
        out = sorted(out, key=LIST_SORT_KEYS[by])
    return out


def delete_keys(
    store: Store,
    path: str,
    *,
    recursive: bool = False,
    force: bool = False,
    dry_run: bool = False,
    report: Optional[Callable[[str], None]] = None,
) -> List[str]:
    """Delete path and, when recursive, every key below it.

    A recursive delete is irreversible and is refused unless force is set.
    Returns the keys removed (or that would be removed under dry_run).
    """
    name = parameter_name(path)
    if recursive and not force:
        raise ValidationError(
            "Removal requires --force flag. This operation is IRREVERSIBLE. "
            "Please review carefully before performing it."
        )
    removed: List[str] = []

    def _remove(target: ParameterName) -> None:
        if report is not None:
            report(target.key)
        if not dry_run:
            store.delete(target)
        removed.append(target.key)

    try:
        store.get(name, LATEST_VERSION)
    except NotFoundError:
        if not recursive:
            raise
    else:
        _remove(name)

    if not recursive:
        return removed

    for v in sort_values(store.list(name.key, include_values=False)):
        if v.meta.key in removed:
            continue
        _remove(ParameterName.from_key(v.meta.key))
    return removed


def flatten(data: Mapping[str, Any], parent: str = "") -> Dict[str, Any]:
    """Flatten nested mappings into "/"-joined keys."""
    out: Dict[str, Any] = {}
    for k, v in data.items():
        key = f"{parent}/{k}" if parent else str(k)
        if isinstance(v, Mapping):
            out.update(flatten(v, key))
        else:
            out[key] = v
    return out


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"))
    return str(value)


def import_values(
    store: Store,
    path: str,
    data: Any,
    *,
    secure: bool = False,
    report: Optional[Callable[[str], None]] = None,
) -> int:
    """Import a (possibly nested) mapping under path. Returns keys written.

    Empty values and values identical to the latest version are skipped.
    """
    if not isinstance(data, Mapping):
        raise ValidationError("import input must be a JSON or YAML mapping")
    base = parameter_name(path).key

    count = 0
    for key, raw in sorted(flatten(data).items()):
        value = _to_text(raw)
        if not value:
            continue
        name = ParameterName(path=base, name=key)
        validate_path(name.key)
        if put_if_changed(store, name, value, secure=secure):
            if report is not None:
                report(name.key)
            count += 1
    return count


def export_values(store: Store, prefix: str) -> Dict[str, str]:
    """Latest values under prefix keyed by their path relative to prefix."""
    name = parameter_name(prefix)
    return {
        strip_prefix(v.meta.key, name.key): str(v.value or "")
        for v in sort_values(store.list(name.key, include_values=True))
    }


def _dotenv_escape(value: str) -> str:
    return "".join(_DOTENV_ESCAPES.get(c, c) for c in value)


def render_export(values: Mapping[str, str], fmt: str) -> str:
    if fmt == "json":
        return json.dumps(dict(values), indent=2, sort_keys=True) + "\n"
    if fmt == "yaml":
        return dump_yaml(dict(values))
    if fmt == "dotenv":
        lines = [f'{normalize_env_var_name(k)}="{_dotenv_escape(values[k])}"' for k in sorted(values)]
        return "\n".join(lines) + ("\n" if lines else "")
    raise ValidationError(f"unsupported export format {fmt!r} (allowed: {list(EXPORT_FORMATS)})")
