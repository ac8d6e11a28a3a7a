"""Directory copying helpers used when staging assets.

Two modes exist:

- NESTED mirrors a whole subtree. Directories below the destination root are
  created with a strict ``mkdir``, so copying twice onto the same destination
  fails instead of silently merging.
- FLAT copies each immediate child of the source into the destination as one
  leaf copy. Used for dropping the static folder straight into the output
  root.

Whether an entry is a file or a directory is decided by a stat check at the
time it is visited.
"""

from __future__ import annotations

import shutil
from enum import Enum
from pathlib import Path


class CopyMode(str, Enum):
    FLAT = "flat"
    NESTED = "nested"


def copy_tree(src: Path, dest: Path, mode: CopyMode = CopyMode.NESTED) -> list[Path]:
    """Copy ``src`` into ``dest``.

    Args:
        src: Source directory. A missing source is a no-op.
        dest: Destination directory; created if absent.
        mode: FLAT or NESTED.

    Returns:
        Destination paths of every file copied.

    Raises:
        FileExistsError: In NESTED mode, when a subdirectory already exists
            at the destination.
    """
    if not src.is_dir():
        return []
    dest.mkdir(parents=True, exist_ok=True)
    copied: list[Path] = []
    for child in sorted(src.iterdir()):
        target = dest / child.name
        if mode is CopyMode.FLAT:
            _copy_leaf(child, target, copied)
        else:
            _copy_nested(child, target, copied)
    return copied


def _copy_nested(src: Path, dest: Path, copied: list[Path]) -> None:
    if src.is_dir():
        dest.mkdir()
        for child in sorted(src.iterdir()):
            _copy_nested(child, dest / child.name, copied)
    else:
        shutil.copyfile(src, dest)
        copied.append(dest)


def _copy_leaf(src: Path, dest: Path, copied: list[Path]) -> None:
    if src.is_dir():
        shutil.copytree(src, dest, dirs_exist_ok=True)
        copied.extend(p for p in sorted(dest.rglob("*")) if p.is_file())
    else:
        shutil.copyfile(src, dest)
        copied.append(dest)
