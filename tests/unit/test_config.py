from pathlib import Path
from typing import Iterator

import pytest

from replayninja.config import (
    ConfigurationFactory,
    FailurePolicy,
    LLMProvider,
    PlayerConfig,
    ProviderRegistry,
    ReplayNinjaSettings,
    TOMLConfigLoader,
)
from replayninja.events.types import EventPublisherType
from replayninja.replication.errors import ConfigurationError

PROJECT_TOML = """
[project]
name = "checkout-suite"

[player]
explicit_wait_ms = 4000
poll_interval_ms = 100
failure_policy = "Continue"

[evidence]
dir = "artifacts/evidence"
screenshot = false

[healing]
enabled = true
dom_fallback = false

[llm]
provider = "anthropic"
model = "claude-haiku"

[events]
publishers = ["rich_terminal"]
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "replayninja.toml"
    path.write_text(PROJECT_TOML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_factory() -> Iterator[None]:
    ConfigurationFactory.reset()
    yield
    ConfigurationFactory.reset()


class TestTOMLConfigLoader:
    """Test suite for `TOMLConfigLoader`."""

    # ? VALID CASE
    def test_nested_tables_are_flattened(self, config_file: Path) -> None:
        config = TOMLConfigLoader(config_file).load_config()

        assert config["project.name"] == "checkout-suite"
        assert config["player.explicit_wait_ms"] == 4000
        assert config["events.publishers"] == ["rich_terminal"]

    def test_get_value_with_default(self, config_file: Path) -> None:
        loader = TOMLConfigLoader(config_file)

        assert loader.get_value("player.poll_interval_ms") == 100
        assert loader.get_value("player.page_load_timeout_ms", 30000) == 30000

    def test_section(self, config_file: Path) -> None:
        loader = TOMLConfigLoader(config_file)

        assert loader.section("evidence") == {"dir": "artifacts/evidence", "screenshot": False}

    def test_unknown_keys(self, config_file: Path) -> None:
        loader = TOMLConfigLoader(config_file)

        unknown = loader.unknown_keys(["project.name", "player.explicit_wait_ms"])

        assert "project.name" not in unknown
        assert "llm.provider" in unknown
        assert unknown == sorted(unknown)

    def test_discover_walks_up_to_the_project_file(self, config_file: Path) -> None:
        nested = config_file.parent / "recordings" / "checkout"
        nested.mkdir(parents=True)

        assert TOMLConfigLoader.discover(nested) == config_file.resolve()

    def test_reload_picks_up_changes(self, config_file: Path) -> None:
        loader = TOMLConfigLoader(config_file)
        assert loader.get_value("project.name") == "checkout-suite"

        config_file.write_text('[project]\nname = "renamed"\n', encoding="utf-8")
        assert loader.get_value("project.name") == "checkout-suite", "Reads are cached"

        loader.reload()
        assert loader.get_value("project.name") == "renamed"

    # ! INVALID CASE
    def test_missing_file(self, tmp_path: Path) -> None:
        loader = TOMLConfigLoader(tmp_path / "missing.toml")

        assert not loader.exists()
        with pytest.raises(FileNotFoundError):
            loader.load_config()

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.toml"
        path.write_text("[player\nexplicit_wait_ms = ", encoding="utf-8")

        with pytest.raises(ValueError, match="Invalid TOML"):
            TOMLConfigLoader(path).load_config()


class TestConfigurationFactory:
    """Test suite for `ConfigurationFactory`."""

    # ? VALID CASE
    def test_cli_mode_reads_toml(self, config_file: Path) -> None:
        settings = ConfigurationFactory.get_settings(cli_mode=True, config_path=config_file)

        assert settings.project_name == "checkout-suite"
        assert settings.explicit_wait_ms == 4000
        assert settings.failure_policy == FailurePolicy.CONTINUE
        assert settings.evidence_dir == config_file.parent / "artifacts" / "evidence"
        assert settings.capture_screenshot is False
        assert settings.healing_enabled is True
        assert settings.healing_use_dom_fallback is False
        assert settings.llm_provider == LLMProvider.ANTHROPIC
        assert settings.llm_model == "claude-haiku"
        assert settings.event_publishers == [EventPublisherType.RICH_TERMINAL]

    def test_settings_are_a_singleton(self, config_file: Path) -> None:
        first = ConfigurationFactory.get_settings(cli_mode=True, config_path=config_file)
        second = ConfigurationFactory.get_settings(cli_mode=True)

        assert first is second

    def test_absolute_evidence_dir_is_kept(self, tmp_path: Path) -> None:
        target = tmp_path / "evidence"

        overrides = ConfigurationFactory._convert_toml_to_pydantic(
            {"evidence.dir": str(target)}, base_dir=Path("/elsewhere")
        )

        assert overrides == {"evidence_dir": target}

    def test_player_navigation_and_object_repository(self) -> None:
        overrides = ConfigurationFactory._convert_toml_to_pydantic(
            {"player.auto_navigate": False, "player.object_repository": "objects/shop.json"},
            base_dir=Path("/suites/checkout"),
        )

        assert overrides == {
            "auto_navigate": False,
            "object_repository_path": Path("/suites/checkout/objects/shop.json"),
        }

    def test_unknown_provider_is_skipped(self) -> None:
        overrides = ConfigurationFactory._convert_toml_to_pydantic(
            {"llm.provider": "carrier-pigeon", "player.explicit_wait_ms": 100}
        )

        assert overrides == {"explicit_wait_ms": 100}

    # ! INVALID CASE
    def test_invalid_value_is_reported(self, tmp_path: Path) -> None:
        path = tmp_path / "replayninja.toml"
        path.write_text('[player]\nfailure_policy = "retry"\n', encoding="utf-8")

        with pytest.raises(ValueError, match="TOML configuration error"):
            ConfigurationFactory.get_settings(cli_mode=True, config_path=path)


class TestReplayNinjaSettings:
    """Test suite for settings validation."""

    @pytest.mark.parametrize("raw", ["ABORT", " abort ", "Abort"])
    def test_failure_policy_is_case_insensitive(self, raw: str) -> None:
        settings = ReplayNinjaSettings(_env_file=None, failure_policy=raw)

        assert settings.failure_policy == FailurePolicy.ABORT

    def test_evidence_dir_expands_home(self) -> None:
        settings = ReplayNinjaSettings(_env_file=None, evidence_dir="~/replay-evidence")

        assert "~" not in str(settings.evidence_dir)

    def test_api_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        settings = ReplayNinjaSettings(_env_file=None)

        assert settings.openai_api_key is not None
        assert settings.openai_api_key.get_secret_value() == "sk-test"

    # ! INVALID CASE
    def test_unknown_failure_policy(self) -> None:
        with pytest.raises(ValueError):
            ReplayNinjaSettings(_env_file=None, failure_policy="retry")


class TestPlayerConfig:
    """Test suite for `PlayerConfig`."""

    # ? VALID CASE
    def test_defaults(self) -> None:
        config = PlayerConfig()

        assert config.explicit_wait_ms == 15_000
        assert config.failure_policy == FailurePolicy.ABORT
        assert config.healing_enabled is False
        assert config.auto_navigate is True
        assert config.object_repository_path is None
        config.validate_for_run()

    def test_from_settings(self) -> None:
        settings = ReplayNinjaSettings(
            _env_file=None,
            explicit_wait_ms=2_000,
            failure_policy="continue",
            capture_console_logs=False,
            healing_enabled=True,
            healing_timeout_ms=1_000,
            auto_navigate=False,
            object_repository_path=Path("objects.json"),
        )

        config = PlayerConfig.from_settings(settings)

        assert config.explicit_wait_ms == 2_000
        assert config.failure_policy == FailurePolicy.CONTINUE
        assert config.capture_console_logs is False
        assert config.healing_enabled is True
        assert config.healing_timeout_ms == 1_000
        assert config.auto_navigate is False
        assert config.object_repository_path == Path("objects.json")

    # ! INVALID CASE
    @pytest.mark.parametrize("implicit_wait_ms", [0, 500])
    def test_implicit_waits_are_refused(self, implicit_wait_ms: int) -> None:
        config = PlayerConfig(implicit_wait_ms=implicit_wait_ms)

        with pytest.raises(ConfigurationError) as exc_info:
            config.validate_for_run()

        assert exc_info.value.kind == "ConfigurationError"

    def test_negative_wait_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            PlayerConfig(explicit_wait_ms=-1)


class TestProviderRegistry:
    """Test suite for the healing LLM provider table."""

    # ? VALID CASE
    def test_every_provider_is_registered(self) -> None:
        assert set(ProviderRegistry.get_supported_providers()) == set(LLMProvider)

    def test_anthropic_kwargs(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ANTHROPIC_BASE_URL", raising=False)
        settings = ReplayNinjaSettings(
            _env_file=None, anthropic_api_key="sk-ant", healing_timeout_ms=5_000
        )

        kwargs = ProviderRegistry.get_config(LLMProvider.ANTHROPIC).build_kwargs(settings)

        assert kwargs == {
            "model": "claude-sonnet-4-0",
            "temperature": settings.llm_temperature,
            "api_key": "sk-ant",
            "timeout": 5.0,
        }

    def test_ollama_has_no_timeout(self) -> None:
        settings = ReplayNinjaSettings(_env_file=None, llm_model="qwen2.5")

        kwargs = ProviderRegistry.get_config(LLMProvider.OLLAMA).build_kwargs(settings)

        assert kwargs["model"] == "qwen2.5"
        assert kwargs["base_url"] == settings.ollama_base_url
        assert "timeout" not in kwargs

    # ! INVALID CASE
    def test_missing_azure_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("AZURE_OPENAI_ENDPOINT", raising=False)
        monkeypatch.delenv("AZURE_OPENAI_KEY", raising=False)
        settings = ReplayNinjaSettings(_env_file=None)

        missing = ProviderRegistry.get_config(LLMProvider.AZURE_OPENAI).missing_settings(settings)

        assert missing == ["AZURE_OPENAI_ENDPOINT", "AZURE_OPENAI_KEY"]
