"""Evidence adapter contract.

Adapters turn a directory tree into either requirement links or test
evidence. There are two capability interfaces:

- LinkAdapter: source files -> requirement id to test identities
- ResultAdapter: result artifacts -> test identity to evidence

An adapter may implement either or both. All adapters follow the same rules:

- A missing (None) or non-directory root is logged as a warning and yields
  an empty result.
- A structurally invalid file is logged as a warning and skipped; sibling
  files are still scanned.
- Only an I/O failure on the confirmed root surfaces as IngestionError.
- Files are processed in sorted path order, so "later file wins" on
  identity collisions is deterministic.

Example:
    >>> class MyResults(ResultAdapter):
    ...     @property
    ...     def name(self) -> str:
    ...         return "my-results"
    ...
    ...     def scan_for_evidence(self, root):
    ...         resolved = self._resolve_root(root)
    ...         if resolved is None:
    ...             return {}
    ...         ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog

from reqtrace.errors import IngestionError

if TYPE_CHECKING:
    from pathlib import Path

    from reqtrace.models import Evidence, TestIdentity

logger = structlog.get_logger(__name__)


class AdapterBase(ABC):
    """Shared root handling for all evidence adapters."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter name used in logs and spans."""
        ...

    def _resolve_root(self, root: Path | None) -> Path | None:
        """Validate a scan root.

        Args:
            root: Root directory to scan, or None.

        Returns:
            The root if it is an existing directory, else None (after
            logging a warning).
        """
        if root is None:
            logger.warning("adapter_root_missing", adapter=self.name)
            return None
        if not root.is_dir():
            logger.warning("adapter_root_invalid", adapter=self.name, root=str(root))
            return None
        return root

    def _list_files(self, root: Path, pattern: str, *, recursive: bool) -> list[Path]:
        """List files under a confirmed root in sorted order.

        Args:
            root: Existing root directory.
            pattern: Glob pattern for file names.
            recursive: Descend into subdirectories.

        Returns:
            Sorted list of matching files.

        Raises:
            IngestionError: If the root cannot be enumerated.
        """
        try:
            candidates = root.rglob(pattern) if recursive else root.glob(pattern)
            return sorted(path for path in candidates if path.is_file())
        except OSError as e:
            raise IngestionError(
                f"Unable to enumerate {self.name} root",
                root=root,
                details={"error": str(e)},
            ) from e

    def _read_text(self, path: Path) -> str:
        """Read a file found under a confirmed root.

        Raises:
            IngestionError: If the file cannot be read.
        """
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            raise IngestionError(
                f"Unable to read {self.name} file",
                root=path,
                details={"error": str(e)},
            ) from e

    def _skip(self, path: Path, error: Exception) -> None:
        """Log a malformed artifact that is skipped."""
        logger.warning(
            "artifact_skipped",
            adapter=self.name,
            path=str(path),
            error=str(error),
        )


class LinkAdapter(AdapterBase):
    """Discovers requirement links embedded in test sources."""

    @abstractmethod
    def scan_for_links(self, root: Path | None) -> dict[str, list[TestIdentity]]:
        """Scan a directory tree for source-embedded requirement references.

        Args:
            root: Root directory to scan.

        Returns:
            Mapping of requirement id to the identities of linked tests.

        Raises:
            IngestionError: If the root exists but cannot be enumerated.
        """
        ...


class ResultAdapter(AdapterBase):
    """Reads test outcomes from result artifacts."""

    @abstractmethod
    def scan_for_evidence(self, root: Path | None) -> dict[TestIdentity, Evidence]:
        """Scan a directory tree for outcome artifacts.

        Args:
            root: Root directory to scan.

        Returns:
            Mapping of test identity to evidence; a later artifact for the
            same identity replaces an earlier one.

        Raises:
            IngestionError: If the root exists but cannot be enumerated.
        """
        ...


__all__ = [
    "AdapterBase",
    "LinkAdapter",
    "ResultAdapter",
]
