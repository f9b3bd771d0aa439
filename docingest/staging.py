"""
Scoped staging directories.

Some extraction steps need real files on disk. A StagingArea is a
uniquely named directory that lives for exactly one operation and is
removed, with everything in it, when the operation's `with` block
exits by any route: normal return, error, or interruption.

Usage:
    with StagingArea() as staging:
        path = staging.write("input.docx", data)
        ...
    # staging.path no longer exists here
"""

from __future__ import annotations

import shutil
import tempfile
from pathlib import Path

from .errors import StagingFailure

STAGING_PREFIX = "docingest-stage-"


class StagingArea:
    """
    Temporary directory with guaranteed cleanup.

    Each instance creates its own directory via mkdtemp, so concurrent
    operations never share a staging area.
    """

    def __init__(self, root: str | Path | None = None) -> None:
        """
        Initialize a staging area.

        Args:
            root: Parent directory to create the area in (None = system temp)
        """
        self.root = Path(root) if root is not None else None
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            raise StagingFailure("Staging area used outside its with-block")
        return self._path

    def __enter__(self) -> "StagingArea":
        try:
            self._path = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX, dir=self.root))
        except OSError as e:
            raise StagingFailure(f"Cannot create staging directory: {e}") from e
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        path, self._path = self._path, None
        if path is None:
            return
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            # Never mask the error that is already propagating
            if exc_type is None:
                raise StagingFailure(f"Cannot remove staging directory {path}: {e}") from e

    def write(self, name: str, data: bytes) -> Path:
        """Write bytes to a file directly inside the staging area."""
        target = self.path / Path(name).name
        try:
            target.write_bytes(data)
        except OSError as e:
            raise StagingFailure(f"Cannot write {target.name} to staging area: {e}") from e
        return target

    def subdir(self, name: str) -> Path:
        """Create (if needed) and return a subdirectory of the staging area."""
        target = self.path / name
        try:
            target.mkdir(exist_ok=True)
        except OSError as e:
            raise StagingFailure(f"Cannot create {name} in staging area: {e}") from e
        return target
