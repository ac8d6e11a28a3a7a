"""Asset staging for Pagestream.

Copies everything the browser needs next to the pre-rendered pages:

- the runtime shim, written from the packaged template as ``elm-pages.js``,
- the project's client script and stylesheet as ``index.js`` and ``style.css``,
- the static folder, flat-copied into the output root,
- the images folder, mirrored into ``images/``.

The copies are independent of each other and run concurrently in worker
threads.

Key class:
- AssetStager: Stages all assets for one build.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any

from .copy_dir import CopyMode, copy_tree
from .errors import AssetStagingError
from .templates import RUNTIME_SCRIPT, read_template


class AssetStager:
    """Copy static assets into the output directory.

    Attributes:
        project_root: Root directory of the project.
        output_dir: Directory where assets are written.
        config: Site configuration with the asset source names.
    """

    def __init__(self, project_root: Path, output_dir: Path, config: dict[str, Any]):
        self.project_root = project_root
        self.output_dir = output_dir
        self.config = config

    async def run(self) -> None:
        """Stage every asset.

        Raises:
            AssetStagingError: If the client script or stylesheet is missing,
                or any copy fails.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        jobs = [
            asyncio.to_thread(self._write_runtime),
            asyncio.to_thread(
                self._copy_required, self.config["client_script"], "index.js"
            ),
            asyncio.to_thread(
                self._copy_required, self.config["client_style"], "style.css"
            ),
            asyncio.to_thread(
                copy_tree,
                self.project_root / self.config["static_dir"],
                self.output_dir,
                CopyMode.FLAT,
            ),
            asyncio.to_thread(self._copy_images),
        ]
        outcomes = await asyncio.gather(*jobs, return_exceptions=True)
        for outcome in outcomes:
            if isinstance(outcome, AssetStagingError):
                raise outcome
            if isinstance(outcome, Exception):
                raise AssetStagingError(
                    f"Asset copy failed: {outcome}", original_error=outcome
                ) from outcome

    def _write_runtime(self) -> None:
        (self.output_dir / RUNTIME_SCRIPT).write_text(
            read_template(RUNTIME_SCRIPT), encoding="utf-8"
        )

    def _copy_required(self, name: str, dest_name: str) -> None:
        source = self.project_root / name
        if not source.is_file():
            raise AssetStagingError("Required asset is missing", source)
        shutil.copyfile(source, self.output_dir / dest_name)

    def _copy_images(self) -> None:
        images = self.project_root / self.config["images_dir"]
        target = self.output_dir / "images"
        # Nested copies refuse to merge into directories left by a previous build.
        if target.exists():
            shutil.rmtree(target)
        target.mkdir()
        copy_tree(images, target, CopyMode.NESTED)
