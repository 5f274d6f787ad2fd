"""Configuration settings for GraphiteTrust."""

from typing import Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings


class GraphiteSettings(BaseSettings):
    """GraphiteTrust configuration settings."""

    # API Client Configuration
    api_base_url: str = Field(
        default="http://localhost:3001/api",
        description="Base URL the API client sends requests to"
    )
    api_key: Optional[str] = Field(default=None, description="Graphite explorer API key")

    # Proxy Configuration
    upstream_url: str = Field(
        default="https://api.main.atgraphite.com",
        description="Upstream origin the local proxy forwards /api requests to"
    )
    proxy_host: str = Field(default="127.0.0.1", description="Proxy listen host")
    proxy_port: int = Field(default=3001, ge=1, le=65535, description="Proxy listen port")

    # Query Cache Configuration
    cache_ttl_seconds: int = Field(default=300, gt=0, description="Cached query result TTL in seconds")
    cache_max_size: int = Field(default=1000, gt=0, description="Maximum cached query results")

    # Dashboard Configuration
    page_size: int = Field(default=10, ge=1, description="Rows per dashboard card")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format (json|text)")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    access_log: bool = Field(default=True, description="Enable proxy access logging")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        env_prefix = "GRAPHITE_"

    @validator('api_base_url', 'upstream_url')
    def strip_trailing_slash(cls, v):
        """Paths are appended to base URLs, so they never end with a slash."""
        return v.rstrip('/')

    @validator('log_level')
    def validate_log_level(cls, v):
        """Validate log level is a known logging level name."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    @validator('log_format')
    def validate_log_format(cls, v):
        """Validate log format."""
        fmt = v.lower()
        if fmt not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return fmt
