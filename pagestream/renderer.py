"""Renderer process and its message channel.

The compiled support program is executed once through a small host script.
Flags go in as one JSON document on stdin; every port message comes back as
one JSON line on stdout. The end of stdout is the end of the channel.

Key class:
- RendererProcess: Launches the renderer and yields decoded messages.
"""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path
from typing import Any

from .errors import ProtocolViolation, RendererError
from .executable_utils import resolve_command
from .protocol import ProtocolMessage, decode_line

MODE = "elm-to-html-beta"

# Pages can be large; a single message must fit in one line.
STREAM_LIMIT = 64 * 1024 * 1024


def build_flags(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Return the flags handed to the renderer on startup.

    The whole environment is passed as ``secrets``; the static data cache
    always starts empty.
    """
    return {
        "secrets": dict(os.environ if environ is None else environ),
        "mode": MODE,
        "staticHttpCache": {},
    }


class RendererProcess:
    """Run the compiled program and expose its output as a message stream.

    Attributes:
        project_root: Working directory for the renderer.
        runtime: Configured runtime, a name such as ``node`` or a command list.
        host_script: Script that loads the program and forwards port messages.
        program: Compiled support program.
        limit: Longest message line accepted, in bytes.
        returncode: Exit status once the channel has closed.
    """

    def __init__(
        self,
        project_root: Path,
        runtime: str | Sequence[str],
        host_script: Path,
        program: Path,
        flags: dict[str, Any] | None = None,
        limit: int = STREAM_LIMIT,
    ):
        self.project_root = project_root
        self.runtime = runtime
        self.host_script = host_script
        self.program = program
        self.flags = flags if flags is not None else build_flags()
        self.limit = limit
        self.returncode: int | None = None
        self._process: asyncio.subprocess.Process | None = None

    async def start(self) -> asyncio.subprocess.Process:
        """Launch the renderer and hand it its flags.

        Raises:
            RendererError: If the runtime is missing or cannot be started.
        """
        command = resolve_command(self.runtime, self.project_root)
        if command is None:
            raise RendererError(f"Renderer runtime not found: {self.runtime}")
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                str(self.host_script),
                str(self.program),
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=None,
                cwd=str(self.project_root),
                limit=self.limit,
            )
        except OSError as exc:
            raise RendererError(
                f"Could not start renderer: {exc}", original_error=exc
            ) from exc
        self._process = process
        process.stdin.write(json.dumps(self.flags).encode("utf-8"))
        try:
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError):
            # Exited without reading its flags; the exit status reports it.
            pass
        process.stdin.close()
        return process

    async def messages(self) -> AsyncIterator[ProtocolMessage]:
        """Yield messages in the order the renderer prints them.

        Raises:
            ProtocolViolation: On a line that is not a known message or is
                longer than ``limit``. The renderer is terminated first.
        """
        process = self._process or await self.start()
        try:
            while True:
                try:
                    line = await process.stdout.readline()
                except ValueError as exc:
                    raise ProtocolViolation(
                        f"Renderer message exceeds {self.limit} bytes"
                    ) from exc
                if not line:
                    break
                if not line.strip():
                    continue
                yield decode_line(line)
        except BaseException:
            await self.terminate()
            raise
        self.returncode = await process.wait()

    async def terminate(self) -> None:
        """Stop the renderer and reap it."""
        process = self._process
        if process is None:
            return
        if process.returncode is None:
            try:
                process.terminate()
            except ProcessLookupError:
                pass
        self.returncode = await process.wait()
