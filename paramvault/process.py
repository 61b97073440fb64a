from __future__ import annotations

import os
import shutil
from typing import Iterable, List

from .environ import Environ


def resolve_command(command: str, env: Environ) -> str:
    """Locate command on the PATH of the environment it will run with."""
    path = env.to_map().get("PATH")
    found = shutil.which(command, path=path) if path is not None else shutil.which(command)
    if not found:
        raise FileNotFoundError(f"executable not found: {command}")
    return found


def exec_command(command: str, args: Iterable[str], env: Environ) -> None:
    """Replace the current process with command, using env as its environment.

    Only returns by raising, when the executable cannot be found or started.
    """
    argv0 = resolve_command(command, env)
    argv: List[str] = [command, *args]
    os.execve(argv0, argv, env.to_map())
