"""Code generation stage.

Prepares the support directory the renderer program is compiled in: writes
the renderer host script and runs the project's own code generator when one
is configured.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

from .errors import CodegenError
from .executable_utils import resolve_command
from .templates import read_template

HOST_SCRIPT_NAME = "renderer-host.cjs"


async def generate(
    project_root: Path,
    support_dir: Path,
    command: str | Sequence[str] | None = None,
) -> Path:
    """Run code generation into ``support_dir``.

    Args:
        project_root: Root directory of the project.
        support_dir: Directory the support program is built in.
        command: Optional generator command, run from the project root.

    Returns:
        Path of the written renderer host script.

    Raises:
        CodegenError: If the generator is missing or exits non-zero.
    """
    support_dir.mkdir(parents=True, exist_ok=True)
    host_script = support_dir / HOST_SCRIPT_NAME
    host_script.write_text(read_template(HOST_SCRIPT_NAME), encoding="utf-8")

    if command:
        argv = resolve_command(command, project_root)
        if argv is None:
            raise CodegenError(f"Code generator not found: {command}")
        try:
            process = await asyncio.create_subprocess_exec(*argv, cwd=str(project_root))
        except OSError as exc:
            raise CodegenError(
                f"Could not start code generator: {exc}", original_error=exc
            ) from exc
        code = await process.wait()
        if code != 0:
            raise CodegenError(f"Code generator exited with status {code}")
    return host_script
