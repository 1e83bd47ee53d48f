"""
Indexing orchestrator: repository sync, full index runs and periodic refresh.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from .config import Settings
from .database import ElasticsearchClient
from .errors import ConfigurationRequiredError, WalkError
from .git_sync import RepositorySynchronizer, build_repo_url
from .locks import IndexRunSlot
from .metrics import Metrics
from .parser import GoParser
from .walker import TreeWalker
from ..models.repository import RepositoryIndexResult

logger = logging.getLogger(__name__)


class Indexer:
    """
    Coordinates synchronization and indexing of all configured repositories.

    Full index runs are serialized through a single IndexRunSlot; a caller
    arriving while a run is active waits for it instead of failing.
    """

    def __init__(
        self,
        settings: Settings,
        store: ElasticsearchClient,
        metrics: Optional[Metrics] = None,
        synchronizer: Optional[RepositorySynchronizer] = None,
        parser: Optional[GoParser] = None
    ):
        self.settings = settings
        self.store = store
        self.metrics = metrics or Metrics()
        self.synchronizer = synchronizer or RepositorySynchronizer(
            ssh_key_path=settings.git_ssh_key_path,
            ssh_command=settings.git_ssh_command
        )
        self.parser = parser or GoParser()
        self.run_slot = IndexRunSlot()
        self.results: Dict[str, RepositoryIndexResult] = {}

    @property
    def is_indexing(self) -> bool:
        """Whether an index run is active."""
        return self.run_slot.is_acquired

    async def synchronize_all(self):
        """
        Clone or refresh every configured repository under the repos path.

        A failure on one repository is logged and does not stop the others.

        Raises:
            ConfigurationRequiredError: If GIT_ORG or GIT_REPOS is not set
        """
        if not self.settings.cloning_enabled:
            raise ConfigurationRequiredError("GIT_ORG and GIT_REPOS must be set for cloning")

        repos_path = Path(self.settings.repos_path)
        repos_path.mkdir(parents=True, exist_ok=True)

        for repo in self.settings.git_repos:
            url = build_repo_url(
                self.settings.git_url_template,
                self.settings.git_org,
                repo,
                self.settings.git_token
            )
            try:
                await self.synchronizer.sync(url, str(repos_path / repo))
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Failed to process repository {repo}: {e}")

    async def index_all(self) -> int:
        """
        Index every git working copy found directly under the repos path.

        Returns:
            Total number of functions indexed across all repositories
        """
        async with self.run_slot:
            repos_path = Path(self.settings.repos_path)
            try:
                entries = sorted(repos_path.iterdir())
            except OSError as e:
                raise WalkError(f"failed to read repos directory {repos_path}: {e}") from e

            total_count = 0
            for entry in entries:
                if not entry.is_dir() or not (entry / ".git").exists():
                    continue

                try:
                    count = await self.index_one(str(entry))
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error(f"Failed to index repository {entry.name}: {e}")
                    continue

                total_count += count
                self.metrics.repos_indexed.inc()

            logger.info(f"Index run complete: {total_count} functions")
            return total_count

    async def index_one(self, repo_path: str) -> int:
        """
        Index a single repository by walking its file tree.

        Does not take the index run slot; index_all holds it around this call.
        """
        repo_name = Path(repo_path).name
        logger.info(f"Indexing repository: {repo_name}")

        walker = TreeWalker(
            repo_name=repo_name,
            index_file=lambda path, relative: self._index_file(repo_name, path, relative),
            is_source_file=self.parser.detect_language,
            metrics=self.metrics
        )

        start = time.monotonic()
        try:
            count = await walker.walk(repo_path)
        except Exception as e:
            duration = time.monotonic() - start
            self.metrics.indexing_duration.labels(repo=repo_name).observe(duration)
            previous = self.results.get(repo_name)
            self.results[repo_name] = RepositoryIndexResult(
                repo=repo_name,
                duration_seconds=duration,
                status="failed",
                last_success=previous.last_success if previous else None,
                error_message=str(e)
            )
            raise

        duration = time.monotonic() - start
        self.metrics.indexing_duration.labels(repo=repo_name).observe(duration)
        self.metrics.last_successful_index.labels(repo=repo_name).set_to_current_time()
        self.metrics.functions_indexed.labels(repo=repo_name).inc(count)

        self.results[repo_name] = RepositoryIndexResult(
            repo=repo_name,
            functions_indexed=count,
            duration_seconds=duration,
            status="completed",
            last_success=datetime.now(timezone.utc)
        )
        logger.info(
            f"Indexed repository {repo_name}: {count} functions in {duration:.2f}s "
            f"({walker.failed_files} files failed)"
        )
        return count

    async def _index_file(self, repo_name: str, file_path: Path, relative_path: str) -> int:
        """Parse one file and store its function records; returns how many were stored."""
        content = await asyncio.to_thread(file_path.read_bytes)
        result = await asyncio.to_thread(self.parser.parse, repo_name, relative_path, content)

        stored = 0
        for record in result.functions:
            try:
                await self.store.index_document(record)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(
                    f"Failed to index function {record.function_name} in {repo_name}/{relative_path}: {e}"
                )
                continue
            stored += 1

        return stored

    async def run_periodic_refresh(self):
        """
        Sync and reindex on a fixed interval until cancelled.

        Ticks never overlap. A tick that comes due while the previous one is
        still running is queued and fires once as soon as it finishes; further
        missed ticks are coalesced into it.
        """
        interval = self.settings.index_interval.total_seconds()
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + interval

        logger.info(f"Starting indexing loop (interval: {interval:g}s)")
        try:
            while True:
                await asyncio.sleep(max(0.0, next_tick - loop.time()))
                await self._refresh_tick()
                next_tick = max(next_tick + interval, loop.time())
        except asyncio.CancelledError:
            logger.info("Indexing loop stopped")
            raise

    async def _refresh_tick(self):
        """One refresh: sync when cloning is configured, then a full index run."""
        logger.info("Running periodic reindex")

        if self.settings.cloning_enabled:
            try:
                await self.synchronize_all()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Error updating repos: {e}")

        try:
            count = await self.index_all()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error indexing repos: {e}")
        else:
            logger.info(f"Periodic reindex complete: {count} functions")
