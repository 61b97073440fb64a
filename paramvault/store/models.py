from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .errors import ValidationError

# Pass as version to Store.get to read the newest version.
LATEST_VERSION = -1

# Fully qualified key as stored by the backend: "/seg/seg/...".
VALID_KEY_RE = re.compile(r"^(/[\w\-.]+)+$")

# User supplied path; leading slashes are optional.
VALID_PATH_RE = re.compile(r"^/*[\w.\-]+(/[\w.\-]+)*$")


def is_valid_key(key: str) -> bool:
    return bool(VALID_KEY_RE.match(str(key or "")))


def validate_path(path: str) -> None:
    if not VALID_PATH_RE.match(str(path or "")):
        raise ValidationError(
            f"Invalid configuration path name: {path!r}. Only alphanumerics, dashes, "
            "forward slashes, full stops and underscores are allowed."
        )


def join_path(*parts: str) -> str:
    """Join path parts rooted at "/" and collapse redundant separators."""
    return posixpath.normpath(posixpath.join("/", *[str(p or "") for p in parts])).replace("//", "/")


def strip_prefix(key: str, prefix: str) -> str:
    """Return key relative to prefix, without the joining "/".

    Keys outside prefix come back without their leading "/".
    """
    pref = join_path(prefix)
    if pref != "/" and key.startswith(pref + "/"):
        return key[len(pref) + 1 :]
    return key.lstrip("/")


@dataclass(frozen=True)
class ParameterName:
    """Two-part identity of a parameter. ``key`` is the canonical form."""

    path: str
    name: str

    @property
    def key(self) -> str:
        return join_path(self.path, self.name)

    @classmethod
    def from_key(cls, key: str) -> "ParameterName":
        full = join_path(key)
        path, name = posixpath.split(full)
        return cls(path=path, name=name)

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class Metadata:
    key: str = ""
    description: str = ""
    secure: bool = False
    version: int = 0
    last_modified_date: Optional[datetime] = None
    last_modified_user: str = ""


@dataclass(frozen=True)
class Value:
    """A stored value. ``value`` is None when only metadata was requested."""

    value: Optional[str] = None
    meta: Metadata = field(default_factory=Metadata)


@dataclass(frozen=True)
class RawValue:
    """Metadata-free key/value pair used for bulk environment loads."""

    key: str
    value: str
