"""
Process-wide settings for ReplayNinja.

Front ends that run replays for a project (`cli_mode=True`) read
`replayninja.toml`, with secrets still taken from the environment. Library
callers get environment-only settings.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from replayninja.config.settings import FailurePolicy, LLMProvider, ReplayNinjaSettings
from replayninja.config.toml_loader import TOMLConfigLoader
from replayninja.utils.logging_config import logger

#: project file key -> ReplayNinjaSettings field
TOML_FIELD_MAPPING: Dict[str, str] = {
    "project.name": "project_name",
    # player
    "player.explicit_wait_ms": "explicit_wait_ms",
    "player.page_load_timeout_ms": "page_load_timeout_ms",
    "player.poll_interval_ms": "poll_interval_ms",
    "player.min_strategy_timeout_ms": "min_strategy_timeout_ms",
    "player.action_timeout_ms": "action_timeout_ms",
    "player.implicit_wait_ms": "implicit_wait_ms",
    "player.failure_policy": "failure_policy",
    "player.auto_navigate": "auto_navigate",
    "player.object_repository": "object_repository_path",
    # evidence
    "evidence.dir": "evidence_dir",
    "evidence.screenshot": "capture_screenshot",
    "evidence.page_source": "capture_page_source",
    "evidence.console_logs": "capture_console_logs",
    "evidence.capture_timeout_ms": "evidence_capture_timeout_ms",
    # healing
    "healing.enabled": "healing_enabled",
    "healing.timeout_ms": "healing_timeout_ms",
    "healing.dom_snippet_chars": "healing_dom_snippet_chars",
    "healing.dom_fallback": "healing_use_dom_fallback",
    # llm
    "llm.provider": "llm_provider",
    "llm.model": "llm_model",
    "llm.temperature": "llm_temperature",
    "llm.azure_openai.api_version": "azure_openai_api_version",
    "llm.openai.base_url": "openai_base_url",
    "llm.anthropic.base_url": "anthropic_base_url",
    "llm.ollama.base_url": "ollama_base_url",
    # events
    "events.publishers": "event_publishers",
}


class ConfigurationFactory:
    """Builds `ReplayNinjaSettings` once and hands out the same instance.

    The first call decides the source: `cli_mode=True` layers the project file
    over the environment, otherwise only the environment (and `.env`) is read.
    """

    _instance: Optional[ReplayNinjaSettings] = None
    _toml_loader: Optional[TOMLConfigLoader] = None

    @classmethod
    def get_settings(
        cls, cli_mode: bool = False, config_path: Optional[Path] = None
    ) -> ReplayNinjaSettings:
        """Get or create the settings instance.

        Args:
            cli_mode (bool): Whether to read the TOML project file (CLI mode) or
                environment variables only (library mode)
            config_path (Optional[Path]): TOML file to use in CLI mode

        Returns:
            ReplayNinjaSettings: The shared settings

        Raises:
            ValueError: If the project file or the environment holds invalid values
        """
        if cls._instance is None:
            if cli_mode:
                cls._instance = cls._load_from_toml(config_path)
            else:
                cls._instance = cls._load_from_env_only()

        return cls._instance

    @classmethod
    def _load_from_toml(cls, config_path: Optional[Path] = None) -> ReplayNinjaSettings:
        """Load configuration from the project file plus environment variables.

        Raises:
            ValueError: If the project file is missing or invalid
        """
        if cls._toml_loader is None or config_path is not None:
            cls._toml_loader = TOMLConfigLoader(config_path)
        loader = cls._toml_loader

        try:
            toml_config = loader.load_config()
            for key in loader.unknown_keys(TOML_FIELD_MAPPING):
                logger.warning(f"⚠️ Ignoring unknown key '{key}' in {loader.config_path}")
            toml_overrides = cls._convert_toml_to_pydantic(
                toml_config, base_dir=loader.config_path.parent
            )
            return ReplayNinjaSettings(**toml_overrides)
        except Exception as e:
            raise ValueError(f"TOML configuration error: {str(e)}")

    @classmethod
    def _load_from_env_only(cls) -> ReplayNinjaSettings:
        """Load configuration from environment variables (library mode).

        Raises:
            ValueError: If environment configuration is invalid
        """
        try:
            return ReplayNinjaSettings()
        except Exception as e:
            raise ValueError(f"Environment configuration error: {str(e)}")

    @classmethod
    def _convert_toml_to_pydantic(
        cls, toml_config: Dict[str, Any], base_dir: Optional[Path] = None
    ) -> Dict[str, Any]:
        """Map flattened project file keys onto settings field names.

        Relative `evidence.dir` and `player.object_repository` paths are taken
        relative to `base_dir`, the directory of the project file, so runs started
        elsewhere use the same files.

        Args:
            toml_config: Flattened project file
            base_dir: Directory relative evidence paths are resolved against

        Returns:
            Dictionary compatible with ReplayNinjaSettings
        """
        pydantic_config: Dict[str, Any] = {}
        for toml_key, field_name in TOML_FIELD_MAPPING.items():
            if toml_key not in toml_config:
                continue
            value = toml_config[toml_key]

            if toml_key == "llm.provider" and isinstance(value, str):
                try:
                    value = LLMProvider(value.strip().lower())
                except ValueError:
                    logger.warning(f"⚠️ Unknown LLM provider '{value}', keeping the default")
                    continue
            elif toml_key == "player.failure_policy" and isinstance(value, str):
                value = FailurePolicy(value.strip().lower())
            elif toml_key in ("evidence.dir", "player.object_repository") and isinstance(value, str):
                value = Path(value).expanduser()
                if base_dir is not None and not value.is_absolute():
                    value = base_dir / value

            pydantic_config[field_name] = value

        return pydantic_config

    @classmethod
    def reset(cls) -> None:
        """Forget the cached settings and project file (used by tests)."""
        cls._instance = None
        cls._toml_loader = None
