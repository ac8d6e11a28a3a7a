"""Text transforms applied to compiled JavaScript artifacts.

The compiler emits a script that wraps everything in a self-invoking
function applied to the global ``this``. Browsers load the client bundle as
an ES module, so the wrapper is pointed at a local ``scope`` object and the
``Elm`` namespace is exported from it.

Both transforms are plain string edits. The input shape is controlled by the
build, so a missing marker means the compiler output changed and is treated
as a fatal error.

Functions:
    to_module: Convert the global-wrapper artifact into an ES module.
    patch_json_passthrough: Let the support program hand raw JSON to the host.
"""

from __future__ import annotations

import re
from pathlib import Path

from .errors import ModuleTransformError

GLOBAL_WRAPPER_CLOSE = "}(this));"
LOCAL_WRAPPER_CLOSE = "}(scope));"
MODULE_PREAMBLE = "\nconst scope = {};\n"
MODULE_EXPORT = "export const { Elm } = scope;\n"

_JSON_STRINGIFY_PLACEHOLDER_RE = re.compile(
    r"return \$elm\$json\$Json\$Encode\$string\(.REPLACE_ME_WITH_JSON_STRINGIFY.\)"
)


def wrap_as_module(source: str) -> str:
    """Return ``source`` rewritten as an ES module.

    Only the first wrapper-closing marker is replaced; every other character
    is kept as-is.

    Raises:
        ModuleTransformError: If the wrapper-closing marker is absent.
    """
    if GLOBAL_WRAPPER_CLOSE not in source:
        raise ModuleTransformError(
            f"Expected wrapper marker {GLOBAL_WRAPPER_CLOSE!r} in compiled output"
        )
    body = source.replace(GLOBAL_WRAPPER_CLOSE, LOCAL_WRAPPER_CLOSE, 1)
    return MODULE_PREAMBLE + body + MODULE_EXPORT + "\n"


def to_module(path: Path) -> None:
    """Rewrite the artifact at ``path`` in place as an ES module.

    Args:
        path: Compiled JavaScript file.

    Raises:
        ModuleTransformError: If the file lacks the wrapper marker.
    """
    source = _read_exact(path)
    try:
        module = wrap_as_module(source)
    except ModuleTransformError as exc:
        raise ModuleTransformError(exc.message, path) from None
    _write_exact(path, module)


def patch_json_passthrough(path: Path) -> int:
    """Replace the JSON.stringify placeholder encoder with an identity return.

    Args:
        path: Compiled support program.

    Returns:
        Number of placeholders replaced.
    """
    source = _read_exact(path)
    patched, count = _JSON_STRINGIFY_PLACEHOLDER_RE.subn("return x", source)
    if count:
        _write_exact(path, patched)
    return count


def _read_exact(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _write_exact(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
