"""
Error taxonomy for the indexing core.
"""

from typing import Optional


class IndexerError(Exception):
    """Base class for all indexer failures."""


class ConfigurationRequiredError(IndexerError):
    """Mandatory settings for the requested operation are missing."""


class GitTimeoutError(IndexerError):
    """A git command exceeded its time budget."""

    def __init__(self, command: str, timeout: float):
        self.command = command
        self.timeout = timeout
        super().__init__(f"git {command} timed out after {timeout:g}s")


class GitCommandError(IndexerError):
    """A git command exited with a non-zero status."""

    command = "command"

    def __init__(self, returncode: int, output: str):
        self.returncode = returncode
        self.output = output
        super().__init__(f"git {self.command} failed (exit {returncode}): {output.strip()}")


class CloneFailedError(GitCommandError):
    command = "clone"


class FetchFailedError(GitCommandError):
    command = "fetch"


class ResetFailedError(GitCommandError):
    """The fetch succeeded but the working tree could not be reset."""

    command = "reset"


class ParseError(IndexerError):
    """A source file is not syntactically valid."""

    def __init__(self, file_path: str, message: str):
        self.file_path = file_path
        super().__init__(f"failed to parse {file_path}: {message}")


class WalkError(IndexerError):
    """The root of a tree walk could not be traversed."""


class StoreUnavailableError(IndexerError):
    """The document store did not answer the connectivity check."""


class StoreRequestFailedError(IndexerError):
    """A store request exhausted its retries or was rejected."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class StoreDecodeError(IndexerError):
    """The store answered with a payload we could not decode."""
