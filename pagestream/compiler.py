"""Compiler invocation for Pagestream.

Runs the external compiler that turns the page-description source into an
executable JavaScript artifact. The same runner builds both the support
program (from inside the support directory) and the content program (from
the project root).

Key class:
- Compiler: resolves the compiler executable and awaits one compilation.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

from .errors import CompileError
from .executable_utils import resolve_command


class Compiler:
    """Runs the configured compiler as a subprocess.

    Attributes:
        project_root: Root directory of the project.
        tool: Configured compiler, either a name or a command list.
    """

    def __init__(self, project_root: Path, tool: str | Sequence[str]):
        self.project_root = project_root
        self.tool = tool

    async def invoke(
        self, entrypoint: str, output_path: str, cwd: Path | None = None
    ) -> Path:
        """Compile ``entrypoint`` into ``output_path``.

        A stale artifact at the output path is removed first so that a
        compiler which exits 0 without writing anything is still caught.

        Args:
            entrypoint: Source entrypoint, relative to the working directory.
            output_path: Output artifact, relative to the working directory.
            cwd: Working directory for the compiler; defaults to project root.

        Returns:
            Absolute path of the compiled artifact.

        Raises:
            CompileError: If the compiler is missing, exits non-zero, or
                leaves no output file behind.
        """
        workdir = cwd or self.project_root
        full_output = workdir / output_path
        _remove_stale(full_output)

        command = resolve_command(self.tool, self.project_root)
        if command is None:
            raise CompileError(
                f"Compiler not found: {self.tool}. "
                "Install it globally or with `npm install -D` in the project."
            )

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                entrypoint,
                "--output",
                output_path,
                stdin=None,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=None,
                cwd=str(workdir),
            )
        except OSError as exc:
            raise CompileError(
                f"Could not start compiler: {exc}", original_error=exc
            ) from exc
        code = await process.wait()

        if code != 0:
            raise CompileError(
                f"Compiler exited with status {code} for {entrypoint}", full_output
            )
        if not full_output.exists():
            raise CompileError(f"Compiler produced no output for {entrypoint}", full_output)
        return full_output


def _remove_stale(path: Path) -> None:
    """Delete a previous artifact, ignoring failures."""
    try:
        path.unlink()
    except OSError:
        pass
