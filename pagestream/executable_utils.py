"""Executable lookup for the external build tools.

The compiler, the minifier and the renderer runtime are all external
programs. Each can be configured either as a bare executable name, which is
looked up on PATH and then in the project's ``node_modules/.bin``, or as an
explicit command list that is used as-is.

Functions:
    find_executable: Locate an executable in PATH or node_modules.
    resolve_command: Turn a configured tool into an argv prefix.
"""

from __future__ import annotations

import shutil
from collections.abc import Sequence
from pathlib import Path


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH or local node_modules.

    Args:
        name: Name of the executable (e.g. 'elm-optimize-level-2', 'terser').
        project_root: Optional project root to search ``node_modules/.bin``.

    Returns:
        Full path to the executable if found, None otherwise.

    Examples:
        >>> find_executable('node')
        '/usr/local/bin/node'

        >>> find_executable('terser', Path('/my/site'))
        '/my/site/node_modules/.bin/terser'
    """
    found = shutil.which(name)
    if found:
        return found

    if project_root is not None:
        local = project_root / "node_modules" / ".bin" / name
        if local.exists():
            return str(local)

    return None


def resolve_command(
    tool: str | Sequence[str], project_root: Path | None = None
) -> list[str] | None:
    """Resolve a configured tool into the leading part of an argv list.

    Args:
        tool: Executable name, or a full command list such as
            ``["python", "fake_compiler.py"]``.
        project_root: Project root used for the node_modules lookup.

    Returns:
        Command prefix, or None when a bare name cannot be found.
    """
    if isinstance(tool, str):
        found = find_executable(tool, project_root)
        return [found] if found else None
    command = [str(part) for part in tool]
    return command or None
