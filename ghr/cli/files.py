"""Expand the file glob given on the command line."""

from __future__ import annotations

import glob
from pathlib import Path

from ghr.core.result import Err, Ok, Result


def expand_glob(pattern: str) -> Result[list[Path], str]:
    """Expand ``pattern`` into regular files, sorted for a stable upload order.

    The pattern is expanded here rather than by the shell so that quoting it
    on the command line keeps the match list out of argv. Directories that
    match are skipped since they cannot be uploaded.
    """
    if not pattern.strip():
        return Err("empty glob pattern")

    matches = sorted(glob.glob(pattern, recursive=True))
    return Ok([Path(m) for m in matches if Path(m).is_file()])
