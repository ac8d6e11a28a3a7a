"""JavaScript minification for the client bundle.

Uses terser when it can be found, in two passes: an aggressive compress pass
that treats the compiler's curried helpers as pure, then a mangle pass. When
terser is not installed the bundle is minified with rjsmin instead.

Key class:
- Minifier: Minifies one artifact in place.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

from rjsmin import jsmin

from .errors import MinifyError
from .executable_utils import resolve_command

PURE_FUNCS = "F2,F3,F4,F5,F6,F7,F8,F9,A2,A3,A4,A5,A6,A7,A8,A9"
COMPRESS_OPTIONS = f'pure_funcs="{PURE_FUNCS}",pure_getters,keep_fargs=false,unsafe_comps,unsafe'


class Minifier:
    """Minify a JavaScript module in place.

    Attributes:
        project_root: Root directory of the project.
        tool: Configured minifier, a name such as ``terser`` or a command list.
    """

    def __init__(self, project_root: Path, tool: str | Sequence[str] | None = "terser"):
        self.project_root = project_root
        self.tool = tool

    async def minify(self, path: Path) -> str:
        """Minify ``path`` in place.

        Returns:
            Name of the backend that was used: ``"terser"`` or ``"rjsmin"``.

        Raises:
            MinifyError: If terser exits non-zero.
        """
        command = resolve_command(self.tool, self.project_root) if self.tool else None
        if command is None:
            await asyncio.to_thread(_minify_with_rjsmin, path)
            return "rjsmin"

        compressed = await self._run(
            [*command, str(path), "--module", "--compress", COMPRESS_OPTIONS]
        )
        mangled = await self._run([*command, "--module", "--mangle"], stdin=compressed)
        path.write_bytes(mangled)
        return "terser"

    async def _run(self, argv: list[str], stdin: bytes | None = None) -> bytes:
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.PIPE if stdin is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.project_root),
            )
        except OSError as exc:
            raise MinifyError(f"Could not start minifier: {exc}", original_error=exc) from exc
        stdout, stderr = await process.communicate(stdin)
        if process.returncode != 0:
            raise MinifyError(
                f"Minifier failed: {stderr.decode('utf-8', 'replace').strip()}"
            )
        return stdout


def _minify_with_rjsmin(path: Path) -> None:
    with open(path, encoding="utf-8") as f_in:
        minified = jsmin(f_in.read())
    with open(path, "w", encoding="utf-8") as f_out:
        f_out.write(minified)
