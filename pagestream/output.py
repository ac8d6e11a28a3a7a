"""Output materialization for Pagestream.

Turns renderer data into files under the output directory:

- ``<route>/index.html`` and ``<route>/content.json`` for every page,
- raw files the renderer asks to generate (robots.txt, feeds, ...),
- ``manifest.json`` for the site.

Each public write is a coroutine that performs its blocking I/O in a worker
thread, so the dispatcher can schedule many writes at once and wait for all
of them before the build finishes.

Key class:
- OutputMaterializer: Writes pages, raw files and the manifest.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from .protocol import RenderedPage
from .templates import DocumentRenderer
from .utils import compact_json, route_output_dir


class OutputMaterializer:
    """Writes build output below ``output_dir``.

    Writes to different files run concurrently. Writes to the same file run
    in the order they were requested, so when two routes collide the later
    page is the one left on disk.

    Attributes:
        output_dir: Root of the deployable tree.
        renderer: Document renderer used for ``index.html``.
        written: Every file path written, in completion order. Route
            collisions show up as repeated entries.
    """

    def __init__(self, output_dir: Path, renderer: DocumentRenderer | None = None):
        self.output_dir = output_dir
        self.renderer = renderer or DocumentRenderer()
        self.written: list[Path] = []
        self._last_write: dict[Path, asyncio.Task] = {}

    async def write_raw_file(self, path: str, content: str) -> Path:
        """Write ``content`` verbatim to ``<output_dir>/<path>``.

        Args:
            path: Path relative to the output directory.
            content: File contents.

        Returns:
            The written file path.
        """
        target = self.output_dir / path.lstrip("/")
        await self._write(target, content)
        return target

    async def write_page(self, page: RenderedPage) -> tuple[Path, Path]:
        """Write the HTML document and JSON sidecar for ``page``.

        Returns:
            Paths of ``index.html`` and ``content.json``.
        """
        target_dir = route_output_dir(self.output_dir, page.route)
        html_path = target_dir / "index.html"
        json_path = target_dir / "content.json"
        document = self.renderer.render(page)
        content_json = compact_json({"body": page.html, "staticData": page.content_json})

        outcomes = await asyncio.gather(
            self._write(html_path, document),
            self._write(json_path, content_json),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome
        return html_path, json_path

    async def write_manifest(self, manifest: dict[str, Any]) -> Path:
        """Write the site manifest as ``manifest.json``."""
        target = self.output_dir / "manifest.json"
        await self._write(target, compact_json(manifest))
        return target

    def _write(self, path: Path, content: str) -> asyncio.Task:
        # Registered before the caller first yields, so request order is kept.
        previous = self._last_write.get(path)
        task = asyncio.ensure_future(self._write_after(previous, path, content))
        self._last_write[path] = task
        return task

    async def _write_after(
        self, previous: asyncio.Task | None, path: Path, content: str
    ) -> None:
        if previous is not None:
            await asyncio.wait([previous])
        await asyncio.to_thread(_write_text, path, content)
        self.written.append(path)


def _write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
