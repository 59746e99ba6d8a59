"""
Core configuration settings for ReplayNinja using Pydantic Settings.

This module provides type-safe configuration management with TOML file support
for project settings and environment variables for sensitive data, validation,
and default values for all replay components.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from replayninja.events.types import EventPublisherType


class LLMProvider(str, Enum):
    """Enumeration of LLM providers usable by the healing service."""

    AZURE_OPENAI = "azure_openai"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


class FailurePolicy(str, Enum):
    """What a run does after a step fails."""

    ABORT = "abort"
    CONTINUE = "continue"


class ReplayNinjaSettings(BaseSettings):
    """Main configuration settings for ReplayNinja.

    This class provides centralized configuration management with:
    - Type-safe configuration with validation
    - TOML file support for project settings
    - Environment variable support for sensitive data (API keys)
    - Code-based defaults for missing values
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Project Configuration (from TOML)
    project_name: str = Field(default="replayninja", description="Project name")

    # Player timing (from TOML)
    explicit_wait_ms: int = Field(
        default=15_000, ge=0, description="Default timeout for element waits and resolution"
    )
    page_load_timeout_ms: int = Field(
        default=30_000, ge=0, description="Timeout for the page-loaded condition"
    )
    poll_interval_ms: int = Field(default=250, gt=0, description="Condition polling interval")
    min_strategy_timeout_ms: int = Field(
        default=500, ge=0, description="Minimum time budget given to each locator strategy"
    )
    action_timeout_ms: int = Field(
        default=5_000, gt=0, description="Bound for a single browser action round trip"
    )
    implicit_wait_ms: Optional[int] = Field(
        default=None,
        description="Not supported; any value makes the engine refuse to start",
    )
    failure_policy: FailurePolicy = Field(
        default=FailurePolicy.ABORT, description="Behaviour after an unrecovered step failure"
    )
    auto_navigate: bool = Field(
        default=True,
        description="Open the first recorded page URL when a session does not start with a navigation",
    )
    object_repository_path: Optional[Path] = Field(
        default=None, description="Object repository used to resolve steps recorded by object name"
    )

    # Evidence Configuration (from TOML)
    evidence_dir: Path = Field(
        default=Path("./evidence"), description="Directory for failure evidence"
    )
    capture_screenshot: bool = Field(default=True, description="Capture a screenshot on failure")
    capture_page_source: bool = Field(default=True, description="Capture the DOM on failure")
    capture_console_logs: bool = Field(
        default=True, description="Capture buffered console lines on failure"
    )
    evidence_capture_timeout_ms: int = Field(
        default=10_000, gt=0, description="Bound for capturing a single evidence artifact"
    )

    # Healing Configuration (from TOML)
    healing_enabled: bool = Field(default=False, description="Enable locator healing")
    healing_timeout_ms: int = Field(
        default=30_000, gt=0, description="Budget for one healing service call"
    )
    healing_dom_snippet_chars: int = Field(
        default=8_000, gt=0, description="DOM characters sent to the LLM healer"
    )
    healing_use_dom_fallback: bool = Field(
        default=True, description="Fall back to DOM comparison when the LLM cannot heal"
    )

    # LLM Provider Selection (from TOML)
    llm_provider: LLMProvider = Field(
        default=LLMProvider.OPENAI, description="LLM provider used for healing"
    )
    llm_model: Optional[str] = Field(default=None, description="Model name for the provider")
    llm_temperature: float = Field(
        default=0.0, ge=0.0, le=2.0, description="Temperature for LLM responses"
    )

    # Azure OpenAI Configuration (Sensitive - from .env)
    azure_openai_endpoint: Optional[str] = Field(
        default=None, alias="AZURE_OPENAI_ENDPOINT", description="Azure OpenAI endpoint URL"
    )
    azure_openai_key: Optional[SecretStr] = Field(
        default=None, alias="AZURE_OPENAI_KEY", description="Azure OpenAI API key"
    )
    azure_openai_api_version: str = Field(
        default="2024-02-15-preview", description="Azure OpenAI API version"
    )

    # OpenAI Configuration (Sensitive - from .env)
    openai_api_key: Optional[SecretStr] = Field(
        default=None, alias="OPENAI_API_KEY", description="OpenAI API key"
    )
    openai_base_url: Optional[str] = Field(default=None, description="OpenAI API base URL")

    # Anthropic Configuration (Sensitive - from .env)
    anthropic_api_key: Optional[SecretStr] = Field(
        default=None, alias="ANTHROPIC_API_KEY", description="Anthropic API key"
    )
    anthropic_base_url: Optional[str] = Field(default=None, description="Anthropic API base URL")

    # Ollama Configuration (from .env)
    ollama_base_url: str = Field(default="http://localhost:11434", description="Ollama base URL")

    # Event Publisher Configuration (from TOML)
    event_publishers: List[EventPublisherType] = Field(
        default=[EventPublisherType.NULL], description="List of event publisher types to use"
    )

    @field_validator("failure_policy", mode="before")
    @classmethod
    def _normalize_policy(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("evidence_dir", mode="before")
    @classmethod
    def _expand_evidence_dir(cls, value: object) -> object:
        if isinstance(value, str):
            return Path(value).expanduser()
        return value
