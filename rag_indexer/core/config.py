"""
Configuration management for the RAG Indexer.
"""

import re
from datetime import timedelta
from typing import Annotated, List, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}


def parse_duration(value: str) -> timedelta:
    """
    Parse a Go-style duration string such as "5m", "1h30m" or "250ms".

    A bare number is taken as seconds.

    Raises:
        ValueError: If the string is not a valid duration.
    """
    text = value.strip()
    if not text:
        raise ValueError("Duration cannot be empty")

    if re.fullmatch(r"\d+(?:\.\d+)?", text):
        return timedelta(seconds=float(text))

    position = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"Invalid duration: {value!r}")

    return timedelta(seconds=seconds)


class Settings(BaseSettings):
    """Application settings for the indexer, the search store and git access."""

    # Application settings
    app_name: str = "RAG Indexer"
    app_version: str = "0.1.0"
    log_level: str = Field(default="info")
    http_addr: str = Field(default=":8080")

    # Elasticsearch settings
    es_host: str = Field(default="http://localhost:9200")
    es_index: str = Field(default="code-index")
    es_username: str = Field(default="")
    es_password: str = Field(default="")

    # Repository settings
    repos_path: str = Field(default="/repos")
    git_org: str = Field(default="")
    git_repos: Annotated[List[str], NoDecode] = Field(default_factory=list)
    git_url_template: str = Field(default="git@github.com:{org}/{repo}.git")
    index_interval: timedelta = Field(default=timedelta(minutes=5))

    # Git authentication settings
    git_ssh_key_path: str = Field(default="")
    git_ssh_command: str = Field(default="")
    git_token: str = Field(default="")

    @field_validator('git_repos', mode='before')
    @classmethod
    def parse_git_repos(cls, v):
        """Parse the repository list from a comma-separated string."""
        if v is None:
            return []
        if isinstance(v, str):
            return [repo.strip() for repo in v.split(',') if repo.strip()]
        return [str(repo).strip() for repo in v if str(repo).strip()]

    @field_validator('index_interval', mode='before')
    @classmethod
    def parse_index_interval(cls, v):
        """Accept Go-style duration strings for the refresh interval."""
        if isinstance(v, str):
            return parse_duration(v)
        return v

    @field_validator('index_interval')
    @classmethod
    def validate_index_interval(cls, v):
        """The refresh interval must be positive."""
        if v.total_seconds() <= 0:
            raise ValueError("INDEX_INTERVAL must be positive")
        return v

    @field_validator('http_addr')
    @classmethod
    def validate_http_addr(cls, v):
        """HTTP_ADDR must be [host]:[port] with a port in range."""
        _, separator, port = v.rpartition(':')
        if not separator:
            raise ValueError(f"HTTP_ADDR must be host:port, got {v!r}")
        if port and (not port.isdigit() or int(port) > 65535):
            raise ValueError(f"HTTP_ADDR has an invalid port: {port!r}")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def cloning_enabled(self) -> bool:
        """Whether organization and repository list are both configured."""
        return bool(self.git_org) and len(self.git_repos) > 0

    @property
    def http_host_port(self) -> Tuple[str, int]:
        """Split HTTP_ADDR into a bindable host and port."""
        host, _, port = self.http_addr.rpartition(':')
        return host or "0.0.0.0", int(port or 8080)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get application settings, loading and validating them on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
