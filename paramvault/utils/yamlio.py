from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, TextIO

import yaml


def read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML mapping from path. Empty files yield an empty dict."""
    data = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML document must be a mapping: {path}")
    return data


def load_yaml_or_json(stream: TextIO) -> Any:
    """Parse a JSON or YAML document from an open text stream.

    JSON is a subset of YAML 1.2 for the documents handled here, so a
    single safe_load covers both.
    """
    return yaml.safe_load(stream)


def dump_yaml(data: Any) -> str:
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=True, allow_unicode=True)
