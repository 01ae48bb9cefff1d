"""kpt package file store.

This module provides the KptPackage class that holds the resource files of a
kpt package (the Kptfile plus YAML resources) as a mapping from relative
path to content.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Optional

from kptedit.kpt.api import KPTFILE_NAME
from kptedit.kpt.kptfile import Kptfile

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = (KPTFILE_NAME, "*.yaml", "*.yml")


@dataclass(frozen=True)
class KptPackage:
    """Resource files of a kpt package.

    Attributes:
        files: Mapping from file path (relative to the package root) to content.
               Example: ``{"Kptfile": "apiVersion: kpt.dev/v1\\n..."}``

    Example:
        >>> pkg = KptPackage.from_dir("my-package/")
        >>> kf = pkg.kptfile()
        >>> kf.set_labels({"team": "payments"})
        >>> pkg.with_kptfile(kf).write_to_dir("my-package/")
    """
    files: Dict[str, str]

    def to_serializable(self) -> Dict:
        """Convert package to JSON-serializable format.

        Returns:
            Dict with 'files' key containing file path -> content mapping
        """
        return {"files": dict(self.files)}

    def kptfile(self) -> Kptfile:
        """Parse the package's root Kptfile.

        Raises:
            KptfileNotFoundError: If the package has no Kptfile
            DecodeError: If the Kptfile can't be parsed
        """
        return Kptfile.from_package(dict(self.files))

    def with_kptfile(self, kptfile: Kptfile) -> "KptPackage":
        """Return a new package with the Kptfile replaced (original unchanged)."""
        files = dict(self.files)
        kptfile.write_to_package(files)
        return KptPackage(files=files)

    def write_to_dir(self, dir_path: str, only: Optional[Iterable[str]] = None) -> None:
        """Write package files to a directory.

        Creates the directory (and any subdirectories) if it doesn't exist.

        Args:
            dir_path: Directory path where files should be written
            only: Optional subset of file paths to write (default: all files)
        """
        dir_path_obj = Path(dir_path)
        dir_path_obj.mkdir(parents=True, exist_ok=True)

        selected = set(only) if only is not None else None
        for rel_path, content in self.files.items():
            if selected is not None and rel_path not in selected:
                continue
            file_path = dir_path_obj / rel_path
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
            logger.debug(f"Wrote {file_path}")

    @classmethod
    def from_dir(cls, dir_path: str, patterns: Iterable[str] = DEFAULT_PATTERNS) -> "KptPackage":
        """Load a package from a directory, recursively.

        Args:
            dir_path: Package root directory
            patterns: Glob patterns for files to include
                      (default: Kptfile, ``*.yaml``, ``*.yml``)

        Returns:
            KptPackage with all matching files, keyed by POSIX-style relative path
        """
        dir_path_obj = Path(dir_path)
        files = {}

        for pattern in patterns:
            for file_path in sorted(dir_path_obj.rglob(pattern)):
                if file_path.is_file():
                    rel_path = file_path.relative_to(dir_path_obj).as_posix()
                    files[rel_path] = file_path.read_text(encoding="utf-8")

        logger.debug(f"Loaded {len(files)} file(s) from {dir_path}")
        return cls(files=files)
