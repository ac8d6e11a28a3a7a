"""Error types for Pagestream.

Two families of failures exist:

- FatalBuildError and its subclasses: a stage before the renderer runs has
  failed. The build aborts immediately with a non-zero exit status.
- ProtocolViolation: the renderer sent something outside its message
  vocabulary. Also fatal.

Page-level errors reported by the renderer are not exceptions; they are
recorded on the BuildResult and the build keeps going.
"""

from __future__ import annotations

from pathlib import Path


class FatalBuildError(Exception):
    """A pre-render build stage failed.

    Attributes:
        stage: Name of the stage that failed (e.g. "compile", "minify").
        message: Human-readable error message.
        path: Optional file the failure relates to.
        original_error: The original exception that was caught, if any.
    """

    stage = "build"

    def __init__(
        self,
        message: str,
        path: Path | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.path = path
        self.original_error = original_error
        super().__init__(f"{path}: {message}" if path else message)


class CodegenError(FatalBuildError):
    """Code generation for the support program failed."""

    stage = "codegen"


class CompileError(FatalBuildError):
    """The compiler exited non-zero or produced no output file."""

    stage = "compile"


class ModuleTransformError(FatalBuildError):
    """The compiled artifact does not have the expected wrapper shape."""

    stage = "module-transform"


class MinifyError(FatalBuildError):
    """The minifier failed on the compiled artifact."""

    stage = "minify"


class RendererError(FatalBuildError):
    """The renderer program could not be started."""

    stage = "render"


class AssetStagingError(FatalBuildError):
    """A required asset could not be copied into the output directory."""

    stage = "assets"


class ProtocolViolation(Exception):
    """The renderer emitted a message outside the known protocol."""
