from __future__ import annotations


def normalize_env_var_name(key: str) -> str:
    """Map a store key to an environment variable name.

    Upper-cases, turns "/", "-" and "." into "_" and drops one leading "_":
    "/t/p/k" -> "T_P_K". Distinct keys may map to the same name.
    """
    name = str(key).upper()
    for ch in ("/", "-", "."):
        name = name.replace(ch, "_")
    if name.startswith("_"):
        name = name[1:]
    return name
