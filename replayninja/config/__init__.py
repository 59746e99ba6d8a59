"""
Configuration management for ReplayNinja.

This module provides configuration management with:
- TOML-based configuration with validation
- Factory pattern for configuration creation
- Type-safe configuration with Pydantic models
- Environment variable support for sensitive data

## Key Components

1. **ConfigurationFactory** - Factory for creating and managing settings instances
2. **ReplayNinjaSettings** - Main configuration settings with validation
3. **PlayerConfig** - Immutable per-run view used by the player engine
4. **TOMLConfigLoader** - TOML file loading and flattening
5. **create_healing_llm** - Chat model creation for the healing service

## Usage Examples

```python
from replayninja.config import ConfigurationFactory, PlayerConfig

settings = ConfigurationFactory.get_settings(cli_mode=True)
config = PlayerConfig.from_settings(settings)
```
"""

from .settings import FailurePolicy, LLMProvider, ReplayNinjaSettings
from .toml_loader import TOMLConfigLoader
from .factory import ConfigurationFactory
from .player_config import PlayerConfig
from .provider_registry import ProviderConfig, ProviderRegistry
from .llm_creator import create_healing_llm

__all__ = [
    "ConfigurationFactory",
    "FailurePolicy",
    "LLMProvider",
    "PlayerConfig",
    "ProviderConfig",
    "ProviderRegistry",
    "ReplayNinjaSettings",
    "TOMLConfigLoader",
    "create_healing_llm",
]
