"""Build orchestration for Pagestream.

This module sequences a full build:

    ensure dirs -> codegen -> compile support program
    -> stage assets (concurrently with) compile content program
    -> module transform -> minify -> run renderer -> drain writes -> exit status

Every stage before the renderer runs is fatal on failure. Once the renderer
runs, page errors are recorded on the BuildResult and the build continues;
the exit status is decided only after the channel has closed and every
scheduled write has settled.

Key functions:
- build_site: Run the whole pipeline for a project directory.
- load_config: Load configuration from pagestream.yaml.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import click
import yaml

from . import codegen
from .assets import AssetStager
from .compiler import Compiler
from .dispatcher import MessageDispatcher
from .minifier import Minifier
from .module_transform import patch_json_passthrough, to_module
from .output import OutputMaterializer
from .renderer import RendererProcess, build_flags
from .templates import CLIENT_BUNDLE

DEFAULT_CONFIG: dict[str, Any] = {
    "output_dir": "dist",
    "entrypoint": "src/Main.elm",
    "support_dir": "elm-stuff/elm-pages",
    "compiler": "elm-optimize-level-2",
    "minifier": "terser",
    "renderer": "node",
    "codegen": None,
    "static_dir": "static",
    "images_dir": "images",
    "client_script": "beta-index.js",
    "client_style": "beta-style.css",
}

SUPPORT_PROGRAM = "elm.js"


class BuildStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class BuildResult:
    """Result of a site build.

    Starts out successful and turns into a failure, permanently, on the
    first recorded error.

    Attributes:
        output_dir: Directory where the site was built.
        routes: Routes pre-rendered, in arrival order.
        generated_files: Extra files the renderer asked for.
        errors: Error details reported during the run.
    """

    output_dir: Path
    routes: list[str] = field(default_factory=list)
    generated_files: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def status(self) -> BuildStatus:
        return BuildStatus.FAILURE if self.errors else BuildStatus.SUCCESS

    @property
    def succeeded(self) -> bool:
        return self.status is BuildStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def record_error(self, details: str) -> None:
        self.errors.append(details)


def load_config(project_root: Path) -> dict[str, Any]:
    """Load build configuration from pagestream.yaml.

    Args:
        project_root: Root directory of the project.

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config_path = project_root / "pagestream.yaml"
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    return config


class BuildPipeline:
    """Runs the build stages for one project.

    Attributes:
        project_root: Root directory of the project.
        config: Build configuration.
        output_dir: Output directory.
        support_dir: Directory the support program is compiled in.
        result: Result shared with the message dispatcher.
    """

    def __init__(
        self,
        project_root: Path,
        config: dict[str, Any] | None = None,
        output_dir_override: Path | None = None,
    ):
        self.project_root = project_root
        self.config = config if config is not None else load_config(project_root)
        self.output_dir = output_dir_override or (project_root / self.config["output_dir"])
        self.support_dir = project_root / self.config["support_dir"]
        self.compiler = Compiler(project_root, self.config["compiler"])
        self.result = BuildResult(output_dir=self.output_dir)

    async def run(self) -> BuildResult:
        """Run every stage and return the final result.

        Raises:
            FatalBuildError: If a stage before the renderer fails.
            ProtocolViolation: If the renderer breaks the message protocol.
        """
        asyncio.get_running_loop().set_exception_handler(self._on_loop_error)

        self.ensure_dirs()
        host_script = await self.codegen()
        await self.compile_support_program()

        staging = asyncio.ensure_future(self.stage_assets())
        try:
            bundle = await self.compile_content_program()
            to_module(bundle)
            await self.minify(bundle)
        except BaseException:
            staging.cancel()
            raise
        await staging

        await self.run_program(host_script)
        return self.result

    def ensure_dirs(self) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)

    async def codegen(self) -> Path:
        return await codegen.generate(
            self.project_root, self.support_dir, self.config.get("codegen")
        )

    async def compile_support_program(self) -> Path:
        """Build the program the renderer host executes."""
        entrypoint = Path(self.config["entrypoint"])
        relative_entry = Path(*[".."] * len(Path(self.config["support_dir"]).parts)) / entrypoint
        program = await self.compiler.invoke(
            relative_entry.as_posix(), SUPPORT_PROGRAM, cwd=self.support_dir
        )
        patch_json_passthrough(program)
        return program

    async def compile_content_program(self) -> Path:
        """Build the client bundle into the output directory."""
        output = self.output_dir / CLIENT_BUNDLE
        try:
            relative_output = output.relative_to(self.project_root).as_posix()
        except ValueError:
            relative_output = str(output)
        return await self.compiler.invoke(self.config["entrypoint"], relative_output)

    async def minify(self, bundle: Path) -> None:
        await Minifier(self.project_root, self.config.get("minifier")).minify(bundle)

    async def stage_assets(self) -> None:
        await AssetStager(self.project_root, self.output_dir, self.config).run()

    async def run_program(self, host_script: Path) -> BuildResult:
        """Execute the renderer and dispatch its messages until it exits."""
        renderer = RendererProcess(
            self.project_root,
            self.config["renderer"],
            host_script,
            self.support_dir / SUPPORT_PROGRAM,
            flags=build_flags(),
        )
        dispatcher = MessageDispatcher(OutputMaterializer(self.output_dir), self.result)
        await dispatcher.run(renderer.messages())
        if renderer.returncode:
            detail = f"Renderer exited with status {renderer.returncode}"
            self.result.record_error(detail)
            click.echo(click.style(detail, fg="red"), err=True)
        return self.result

    def _on_loop_error(self, loop: asyncio.AbstractEventLoop, context: dict) -> None:
        exc = context.get("exception")
        detail = f"Unhandled error: {exc or context.get('message')}"
        self.result.record_error(detail)
        click.echo(click.style(detail, fg="red"), err=True)


def build_site(
    project_root: Path,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire site.

    Args:
        project_root: Root directory of the project.
        output_dir_override: Optional output directory instead of config output_dir.

    Returns:
        BuildResult describing routes written and errors reported.
    """
    pipeline = BuildPipeline(project_root, output_dir_override=output_dir_override)
    return asyncio.run(pipeline.run())
