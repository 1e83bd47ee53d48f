"""
Tests for the repository tree walker.
"""

import os
from pathlib import Path

import pytest

from rag_indexer.core.errors import WalkError
from rag_indexer.core.metrics import Metrics
from rag_indexer.core.parser import GoParser
from rag_indexer.core.walker import TreeWalker


class RecordingIndexer:
    """Index callback that records visited files and counts one function each."""

    def __init__(self, fail_on=()):
        self.visited = []
        self.fail_on = set(fail_on)

    async def __call__(self, file_path: Path, relative_path: str) -> int:
        if relative_path in self.fail_on:
            raise ValueError(f"cannot parse {relative_path}")
        self.visited.append(relative_path)
        return 1


def touch(root: Path, relative: str, content: str = "package x\n"):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def make_walker(callback, metrics=None, repo_name="repo"):
    return TreeWalker(
        repo_name=repo_name,
        index_file=callback,
        is_source_file=GoParser().detect_language,
        metrics=metrics
    )


class TestTreeWalker:
    """Test traversal, pruning and failure containment."""

    @pytest.mark.asyncio
    async def test_prunes_git_and_vendor(self, tmp_path):
        """Files under .git or vendor at any depth are never visited."""
        touch(tmp_path, "main.go")
        touch(tmp_path, "pkg/util/util.go")
        touch(tmp_path, ".git/hooks/hook.go")
        touch(tmp_path, "vendor/github.com/lib/lib.go")
        touch(tmp_path, "pkg/vendor/inner.go")
        touch(tmp_path, "pkg/sub/.git/objects/obj.go")

        callback = RecordingIndexer()
        count = await make_walker(callback).walk(str(tmp_path))

        assert sorted(callback.visited) == ["main.go", "pkg/util/util.go"]
        assert count == 2

    @pytest.mark.asyncio
    async def test_only_source_files_indexed(self, tmp_path):
        """Non-Go files are skipped."""
        touch(tmp_path, "main.go")
        touch(tmp_path, "README.md", "# readme")
        touch(tmp_path, "go.mod", "module x")
        touch(tmp_path, "script.py", "print(1)")

        callback = RecordingIndexer()
        count = await make_walker(callback).walk(str(tmp_path))

        assert callback.visited == ["main.go"]
        assert count == 1

    @pytest.mark.asyncio
    async def test_file_failure_does_not_abort_walk(self, tmp_path):
        """A failing file is counted and logged; siblings are still indexed."""
        touch(tmp_path, "a.go")
        touch(tmp_path, "b.go")
        touch(tmp_path, "c/d.go")

        metrics = Metrics()
        callback = RecordingIndexer(fail_on={"b.go"})
        walker = make_walker(callback, metrics=metrics)
        count = await walker.walk(str(tmp_path))

        assert count == 2
        assert walker.failed_files == 1
        assert sorted(callback.visited) == ["a.go", "c/d.go"]
        assert metrics.registry.get_sample_value(
            'code_indexer_parse_errors_total', {'repo': 'repo', 'file': 'b.go'}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_missing_root_raises(self, tmp_path):
        """A missing root fails the whole walk."""
        with pytest.raises(WalkError):
            await make_walker(RecordingIndexer()).walk(str(tmp_path / "missing"))

    @pytest.mark.asyncio
    @pytest.mark.skipif(
        not hasattr(os, "geteuid") or os.geteuid() == 0,
        reason="permission checks do not apply to root"
    )
    async def test_unreadable_subtree_is_skipped(self, tmp_path):
        """An unreadable directory aborts only its own subtree."""
        touch(tmp_path, "ok.go")
        touch(tmp_path, "locked/hidden.go")
        locked = tmp_path / "locked"
        locked.chmod(0)
        try:
            callback = RecordingIndexer()
            count = await make_walker(callback).walk(str(tmp_path))
        finally:
            locked.chmod(0o755)

        assert callback.visited == ["ok.go"]
        assert count == 1

    @pytest.mark.asyncio
    async def test_relative_paths_use_forward_slashes(self, tmp_path):
        """Paths handed to the callback are relative to the root."""
        touch(tmp_path, "cmd/server/main.go")

        callback = RecordingIndexer()
        await make_walker(callback).walk(str(tmp_path))

        assert callback.visited == ["cmd/server/main.go"]
