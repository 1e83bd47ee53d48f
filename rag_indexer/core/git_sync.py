"""
Repository synchronization: clone missing working copies, refresh existing ones.
"""

import asyncio
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import git

from .errors import (
    CloneFailedError,
    FetchFailedError,
    GitTimeoutError,
    ResetFailedError,
)
from ..models.repository import RepositorySnapshot

logger = logging.getLogger(__name__)

CLONE_TIMEOUT = 5 * 60
FETCH_TIMEOUT = 2 * 60


def build_repo_url(url_template: str, org: str, repo: str, token: str = "") -> str:
    """
    Build a repository URL from a template with {org} and {repo} placeholders.

    A token is injected into the authority of https URLs only.
    """
    url = url_template.replace("{org}", org).replace("{repo}", repo)
    if token:
        url = url.replace("https://", f"https://{token}@", 1)
    return url


def build_git_env(ssh_key_path: str = "", ssh_command: str = "") -> Dict[str, str]:
    """Build the environment for git subprocesses with the SSH transport settings."""
    env = dict(os.environ)
    if ssh_command:
        env["GIT_SSH_COMMAND"] = ssh_command
    elif ssh_key_path:
        env["GIT_SSH_COMMAND"] = f"ssh -i {ssh_key_path} -o StrictHostKeyChecking=yes"
    return env


async def run_command(
    args: List[str],
    timeout: float,
    env: Optional[Dict[str, str]] = None
) -> Tuple[int, str]:
    """
    Run a subprocess, returning its exit code and combined output.

    The process is killed if the timeout expires or the calling task is
    cancelled; asyncio.TimeoutError and asyncio.CancelledError propagate.
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
        env=env
    )
    try:
        output, _ = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except BaseException:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return process.returncode, output.decode("utf-8", errors="replace")


class RepositorySynchronizer:
    """Produces and refreshes local working copies of remote repositories."""

    def __init__(
        self,
        ssh_key_path: str = "",
        ssh_command: str = "",
        clone_timeout: float = CLONE_TIMEOUT,
        fetch_timeout: float = FETCH_TIMEOUT
    ):
        self.env = build_git_env(ssh_key_path, ssh_command)
        self.clone_timeout = clone_timeout
        self.fetch_timeout = fetch_timeout

    async def sync(self, url: str, target: str) -> RepositorySnapshot:
        """
        Clone the repository if absent at target, else fetch and hard-reset it.

        Args:
            url: Remote repository URL
            target: Local working copy path

        Returns:
            RepositorySnapshot describing the synchronized copy
        """
        target_path = Path(target)
        if (target_path / ".git").exists():
            logger.info(f"Repository already exists, fetching updates: {target_path.name}")
            await self.fetch(target)
            cloned = False
        else:
            logger.info(f"Cloning repository: {target_path.name}")
            await self.clone(url, target)
            cloned = True

        head_commit = await asyncio.to_thread(self._read_head_commit, target)
        if head_commit:
            logger.info(f"Repository {target_path.name} at commit {head_commit[:8]}")

        return RepositorySnapshot(
            name=target_path.name,
            path=str(target_path),
            url=url,
            cloned=cloned,
            head_commit=head_commit
        )

    async def clone(self, url: str, target: str):
        """Clone url into target within the clone timeout."""
        try:
            returncode, output = await run_command(
                ["git", "clone", url, target], self.clone_timeout, self.env
            )
        except asyncio.TimeoutError:
            raise GitTimeoutError("clone", self.clone_timeout)

        if returncode != 0:
            raise CloneFailedError(returncode, output)

    async def fetch(self, repo_path: str):
        """Fetch all remotes and hard-reset to origin/HEAD, sharing one time budget."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.fetch_timeout

        try:
            returncode, output = await run_command(
                ["git", "-C", repo_path, "fetch", "--all"], self.fetch_timeout, self.env
            )
        except asyncio.TimeoutError:
            raise GitTimeoutError("fetch", self.fetch_timeout)

        if returncode != 0:
            raise FetchFailedError(returncode, output)

        remaining = deadline - loop.time()
        if remaining <= 0:
            raise GitTimeoutError("reset", self.fetch_timeout)

        try:
            returncode, output = await run_command(
                ["git", "-C", repo_path, "reset", "--hard", "origin/HEAD"], remaining, self.env
            )
        except asyncio.TimeoutError:
            raise GitTimeoutError("reset", self.fetch_timeout)

        if returncode != 0:
            raise ResetFailedError(returncode, output)

    def _read_head_commit(self, repo_path: str) -> Optional[str]:
        """Read the checked-out commit of a working copy."""
        try:
            return git.Repo(repo_path).head.commit.hexsha
        except (git.exc.GitError, ValueError) as e:
            logger.warning(f"Could not read head commit of {repo_path}: {e}")
            return None
