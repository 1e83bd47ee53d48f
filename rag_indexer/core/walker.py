"""
Repository tree walker that feeds source files to the extractor.
"""

import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Final, FrozenSet, Optional

from .errors import WalkError
from .metrics import Metrics

logger = logging.getLogger(__name__)

SKIPPED_DIRECTORIES: Final[FrozenSet[str]] = frozenset({".git", "vendor"})

# Called with (absolute path, path relative to the root); returns functions indexed.
IndexFileCallback = Callable[[Path, str], Awaitable[int]]


class TreeWalker:
    """
    Walks a repository and indexes every eligible source file.

    Version-control and vendored directories are pruned at any depth.
    Failures on individual files, or on unreadable subdirectories, are
    logged and skipped; only a missing or unreadable root fails the walk.
    """

    def __init__(
        self,
        repo_name: str,
        index_file: IndexFileCallback,
        is_source_file: Callable[[str], bool],
        metrics: Optional[Metrics] = None
    ):
        self.repo_name = repo_name
        self.index_file = index_file
        self.is_source_file = is_source_file
        self.metrics = metrics
        self.total_count = 0
        self.failed_files = 0

    async def walk(self, root: str) -> int:
        """
        Walk the tree under root.

        Args:
            root: Repository root directory

        Returns:
            Total number of functions successfully indexed

        Raises:
            WalkError: If the root itself cannot be traversed
        """
        root_path = Path(root)
        if not root_path.is_dir():
            raise WalkError(f"repository root is not a directory: {root}")

        try:
            os.listdir(root_path)
        except OSError as e:
            raise WalkError(f"cannot read repository root {root}: {e}") from e

        for dirpath, dirnames, filenames in os.walk(root_path, onerror=self._on_walk_error):
            # Prune in place so os.walk never descends into skipped trees
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRECTORIES)

            for filename in sorted(filenames):
                if not self.is_source_file(filename):
                    continue

                file_path = Path(dirpath) / filename
                relative_path = file_path.relative_to(root_path).as_posix()
                await self._index_one_file(file_path, relative_path)

        return self.total_count

    async def _index_one_file(self, file_path: Path, relative_path: str):
        """Index a single file, containing any failure to this file."""
        try:
            count = await self.index_file(file_path, relative_path)
        except Exception as e:
            self.failed_files += 1
            logger.warning(f"Failed to index file {self.repo_name}/{relative_path}: {e}")
            if self.metrics:
                self.metrics.parse_errors.labels(repo=self.repo_name, file=relative_path).inc()
            return

        self.total_count += count

    def _on_walk_error(self, error: OSError):
        """Log a subtree that could not be listed; the walk continues."""
        logger.warning(f"Skipping unreadable directory in {self.repo_name}: {error}")
