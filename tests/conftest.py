"""
Shared fixtures for the test suite.
"""

import asyncio
from pathlib import Path
from typing import List, Optional

import pytest

from rag_indexer.core.config import Settings
from rag_indexer.models.function_record import FunctionRecord

TESTDATA = Path(__file__).parent / "testdata"


class FakeStore:
    """In-memory stand-in for the Elasticsearch client."""

    def __init__(self, fail_functions: Optional[List[str]] = None, delay: float = 0.0):
        self.documents: List[FunctionRecord] = []
        self.fail_functions = set(fail_functions or [])
        self.delay = delay

    async def index_document(self, record: FunctionRecord):
        if self.delay:
            await asyncio.sleep(self.delay)
        if record.function_name in self.fail_functions:
            raise RuntimeError(f"rejected {record.function_name}")
        self.documents.append(record)

    async def search(self, query: str, limit: int = 10) -> List[FunctionRecord]:
        return [doc for doc in self.documents if query in doc.function_name][:limit or 10]

    async def ping(self):
        return None


def write_go_file(path: Path, package: str, *functions: str):
    """Write a Go source file with the given function bodies."""
    path.parent.mkdir(parents=True, exist_ok=True)
    body = "\n\n".join(functions)
    path.write_text(f"package {package}\n\n{body}\n", encoding="utf-8")


def make_repo(root: Path, name: str) -> Path:
    """Create a directory that looks like a git working copy."""
    repo = root / name
    (repo / ".git").mkdir(parents=True)
    return repo


@pytest.fixture
def sample_go() -> bytes:
    """Raw bytes of the Go fixture file."""
    return (TESTDATA / "sample.go").read_bytes()


@pytest.fixture
def fake_store() -> FakeStore:
    """Empty in-memory store."""
    return FakeStore()


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a temporary repos directory."""
    return Settings(
        _env_file=None,
        repos_path=str(tmp_path / "repos"),
        es_host="http://es.test:9200",
        index_interval="1s"
    )
