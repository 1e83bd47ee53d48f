"""
Tests for configuration loading.
"""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from rag_indexer.core.config import Settings, parse_duration


class TestParseDuration:
    """Test Go-style duration parsing."""

    @pytest.mark.parametrize("text,expected", [
        ("5m", timedelta(minutes=5)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("250ms", timedelta(milliseconds=250)),
        ("1.5s", timedelta(seconds=1.5)),
        ("2h", timedelta(hours=2)),
        ("90", timedelta(seconds=90)),
        (" 10s ", timedelta(seconds=10)),
    ])
    def test_valid_durations(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "five minutes", "5x", "m5", "5m junk", "-5m"])
    def test_invalid_durations(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)


class TestSettings:
    """Test Settings validation and derived values."""

    def make(self, **overrides) -> Settings:
        return Settings(_env_file=None, **overrides)

    def test_defaults(self, monkeypatch):
        for name in ("ES_HOST", "ES_INDEX", "REPOS_PATH", "GIT_ORG", "GIT_REPOS", "INDEX_INTERVAL", "HTTP_ADDR"):
            monkeypatch.delenv(name, raising=False)

        settings = self.make()

        assert settings.es_host == "http://localhost:9200"
        assert settings.es_index == "code-index"
        assert settings.repos_path == "/repos"
        assert settings.index_interval == timedelta(minutes=5)
        assert settings.git_repos == []
        assert settings.cloning_enabled is False

    def test_environment_variables(self, monkeypatch):
        """Test values are read from the environment."""
        monkeypatch.setenv("ES_HOST", "http://elastic:9200")
        monkeypatch.setenv("GIT_ORG", "example-org")
        monkeypatch.setenv("GIT_REPOS", "alpha, beta,,gamma ")
        monkeypatch.setenv("INDEX_INTERVAL", "30s")

        settings = self.make()

        assert settings.es_host == "http://elastic:9200"
        assert settings.git_repos == ["alpha", "beta", "gamma"]
        assert settings.index_interval == timedelta(seconds=30)
        assert settings.cloning_enabled is True

    def test_cloning_requires_org_and_repos(self):
        assert self.make(git_org="org", git_repos="").cloning_enabled is False
        assert self.make(git_org="", git_repos="a,b").cloning_enabled is False
        assert self.make(git_org="org", git_repos=["a"]).cloning_enabled is True

    @pytest.mark.parametrize("interval", ["soon", "0s", "0"])
    def test_invalid_interval_rejected(self, interval):
        """Test malformed or non-positive intervals fail validation."""
        with pytest.raises(ValidationError):
            self.make(index_interval=interval)

    @pytest.mark.parametrize("addr,expected", [
        (":8080", ("0.0.0.0", 8080)),
        ("127.0.0.1:9000", ("127.0.0.1", 9000)),
        ("localhost:", ("localhost", 8080)),
    ])
    def test_http_host_port(self, addr, expected):
        assert self.make(http_addr=addr).http_host_port == expected

    @pytest.mark.parametrize("addr", ["localhost", ":http", "127.0.0.1:70000", "host:-1"])
    def test_invalid_http_addr_rejected(self, addr):
        """Test a malformed listen address fails when settings load."""
        with pytest.raises(ValidationError):
            self.make(http_addr=addr)
