from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)


def collect_files(paths: Iterable[str], extensions: Sequence[str] = (".ts",)) -> List[str]:
    """
    Files under `paths` (files or directories, walked recursively) with one of
    `extensions`, in argument order then sorted directory order. Unreadable or
    missing paths are logged and skipped.
    """
    exts = tuple(extensions)
    files: List[str] = []

    for target in paths:
        if not os.path.exists(target):
            logger.warning("Skipping missing path %s", target)
            continue
        if os.path.isfile(target):
            if target.endswith(exts):
                files.append(target)
            continue

        def _on_error(err: OSError) -> None:
            logger.warning("Error accessing %s: %s", err.filename, err)

        for root, dirs, names in os.walk(target, onerror=_on_error):
            dirs.sort()
            for name in sorted(names):
                if name.endswith(exts):
                    files.append(os.path.join(root, name))

    return files


def namespace_of(file: str, root: Optional[str] = None) -> Optional[str]:
    """
    Dotted namespace from the file's directory relative to `root`
    (default: the working directory). None for files directly in the root.
    """
    base = Path(root or os.getcwd()).resolve()
    directory = Path(file).resolve().parent
    try:
        rel = directory.relative_to(base)
    except ValueError:
        rel = Path(os.path.relpath(directory, base))
    parts = [p for p in rel.parts if p not in ("", ".", "..")]
    return ".".join(parts) or None
