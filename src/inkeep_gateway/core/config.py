"""Centralized configuration management for the Inkeep Gateway.

This module provides a single source of truth for all configuration values,
using pydantic-settings for environment variable loading and validation.

Design Principles:
    - Environment Variables: All settings can be overridden via environment variables
    - Sensible Defaults: All settings have working defaults
    - Immutability: Settings are frozen once constructed and shared read-only
    - Singleton Pattern: Cached settings instance via lru_cache

Configuration Sections:
    - InkeepConfig: Upstream endpoints, browser headers, model mapping
    - AuthConfig: Default bearer token pool
    - ChallengeConfig: Proof-of-work search parameters
    - ClientConfig: HTTP client configuration
    - APIConfig: FastAPI server configuration

Environment Variable Prefixes:
    - INKEEP_*: Upstream settings
    - DEFAULT_AUTH_TOKEN: Comma-separated default token pool
    - CHALLENGE_*: Solver settings
    - CLIENT_*: HTTP client settings
    - API_*: FastAPI server settings

Usage:
    from inkeep_gateway.core.config import get_settings

    settings = get_settings()
    chat_url = settings.inkeep.chat_url
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
)


class InkeepConfig(BaseSettings):
    """Upstream Inkeep API configuration.

    Attributes:
        challenge_url: Proof-of-work challenge endpoint (GET).
        chat_url: Chat completions endpoint (POST).
        origin: Origin header sent upstream.
        referer: Referer header sent upstream.
        user_agent: User-Agent header sent upstream.
        accept_language: Accept-Language header sent upstream.
        default_model: Upstream model used when a caller model is unmapped.
        default_caller_model: Caller-facing model assumed when a request
            names none.
        model_mapping: Caller-facing model name to upstream model name.
    """

    model_config = SettingsConfigDict(
        env_prefix="INKEEP_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    challenge_url: str = Field(
        default="https://api.inkeep.com/v1/challenge", description="Challenge endpoint"
    )
    chat_url: str = Field(
        default="https://api.inkeep.com/v1/chat/completions", description="Chat endpoint"
    )
    origin: str = Field(default="https://docs.anthropic.com", description="Origin header")
    referer: str = Field(default="https://docs.anthropic.com/", description="Referer header")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")
    accept_language: str = Field(default="zh-CN,zh;q=0.9", description="Accept-Language header")
    default_model: str = Field(
        default="inkeep-context-expert", description="Fallback upstream model"
    )
    default_caller_model: str = Field(
        default="claude-3-7-sonnet-20250219", description="Model assumed when none is given"
    )
    model_mapping: dict[str, str] = Field(
        default_factory=lambda: {"claude-3-7-sonnet-20250219": "inkeep-context-expert"},
        description="Caller model -> upstream model",
    )

    @field_validator("challenge_url", "chat_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            msg = "URL must start with http:// or https://"
            raise ValueError(msg)
        return v

    def resolve_model(self, caller_model: str) -> str:
        """Map a caller-facing model name to the upstream model."""
        return self.model_mapping.get(caller_model, self.default_model)


class AuthConfig(BaseSettings):
    """Default bearer token pool.

    The pool is used when a caller sends no usable Authorization header.
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    default_auth_token: str = Field(
        default="token1,token2", description="Comma-separated default tokens"
    )

    @property
    def default_tokens(self) -> tuple[str, ...]:
        return tuple(t.strip() for t in self.default_auth_token.split(",") if t.strip())


class ChallengeConfig(BaseSettings):
    """Proof-of-work solver configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CHALLENGE_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    batch_size: int = Field(default=1000, ge=1, le=1_000_000, description="Numbers per batch")
    workers: int = Field(default=4, ge=1, le=64, description="Concurrent hashing workers")
    timeout: float = Field(
        default=15.0, ge=1.0, le=120.0, description="Challenge fetch timeout (seconds)"
    )


class ClientConfig(BaseSettings):
    """Upstream HTTP client configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CLIENT_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    timeout: float = Field(default=180.0, ge=1.0, le=3600.0, description="Read timeout (seconds)")
    connect_timeout: float = Field(
        default=10.0, ge=1.0, le=120.0, description="Connect timeout (seconds)"
    )
    max_connections: int = Field(default=100, ge=1, le=1000, description="Max HTTP connections")
    max_keepalive_connections: int = Field(
        default=20, ge=1, le=500, description="Max keep-alive connections"
    )


class APIConfig(BaseSettings):
    """FastAPI server configuration."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=3000, ge=1, le=65535, description="API server port")
    log_level: Literal["debug", "info", "warning", "error", "critical"] = Field(
        default="info", description="Logging level"
    )
    title: str = Field(default="Inkeep Gateway", description="API title")
    version: str = Field(default="1.0.0", description="API version")
    cors_origins: str = Field(default="*", description="Allowed CORS origins, comma separated")
    chat_rate_limit: str = Field(default="60/minute", description="Chat endpoint rate limit")


class Settings(BaseSettings):
    """Root settings class containing all configuration sections.

    Configuration is loaded from:
        1. Environment variables (with appropriate prefixes)
        2. .env file (if present in the working directory)
        3. Default values (if not set)

    Note:
        Settings are loaded once and cached. The instance is frozen and is
        passed by reference to components that need it.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    inkeep: InkeepConfig = Field(default_factory=InkeepConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    challenge: ChallengeConfig = Field(default_factory=ChallengeConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)
    api: APIConfig = Field(default_factory=APIConfig)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    return Settings()


__all__ = [
    "APIConfig",
    "AuthConfig",
    "ChallengeConfig",
    "ClientConfig",
    "InkeepConfig",
    "Settings",
    "get_settings",
]
