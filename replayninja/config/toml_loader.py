"""
Project file loading for ReplayNinja.

`replayninja.toml` holds the non-secret settings of a replay project:

```toml
[player]
explicit_wait_ms = 10000
failure_policy = "continue"
object_repository = "objects/object-repository.json"

[evidence]
dir = "./artifacts/evidence"

[healing]
enabled = true

[llm]
provider = "anthropic"
```

Tables are flattened into dotted keys (`player.explicit_wait_ms`) before they are
mapped onto `ReplayNinjaSettings` fields by `ConfigurationFactory`.
"""

from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import tomli

PROJECT_FILE_NAME = "replayninja.toml"


class TOMLConfigLoader:
    """Reads and flattens one project file.

    Attributes:
        config_path (Path): Location of the project file
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or self.discover() or Path(PROJECT_FILE_NAME)
        self._config_cache: Optional[Dict[str, Any]] = None

    @staticmethod
    def discover(start: Optional[Path] = None) -> Optional[Path]:
        """Find the nearest project file in `start` or one of its parents.

        Args:
            start (Optional[Path]): Directory to start from (current directory if None)

        Returns:
            Optional[Path]: Path of the project file, or None if there is none
        """
        directory = (start or Path.cwd()).resolve()
        for candidate_dir in (directory, *directory.parents):
            candidate = candidate_dir / PROJECT_FILE_NAME
            if candidate.is_file():
                return candidate
        return None

    def exists(self) -> bool:
        return self.config_path.is_file()

    def load_config(self) -> Dict[str, Any]:
        """Return the flattened project file, reading it on first use.

        Raises:
            FileNotFoundError: If the project file does not exist
            ValueError: If the file is not valid TOML
        """
        if self._config_cache is None:
            if not self.exists():
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
            self._config_cache = self._flatten_config(self._read())
        return self._config_cache

    def _read(self) -> Dict[str, Any]:
        try:
            with open(self.config_path, "rb") as f:
                return tomli.load(f)
        except tomli.TOMLDecodeError as e:
            raise ValueError(f"Invalid TOML configuration file {self.config_path}: {e}")

    def _flatten_config(self, config: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
        flattened: Dict[str, Any] = {}
        for key, value in config.items():
            full_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                flattened.update(self._flatten_config(value, full_key))
            else:
                flattened[full_key] = value
        return flattened

    def get_value(self, key: str, default: Any = None) -> Any:
        """Value of one dotted key, e.g. `loader.get_value("player.explicit_wait_ms", 15000)`."""
        return self.load_config().get(key, default)

    def section(self, name: str) -> Dict[str, Any]:
        """Keys of one table, without the table prefix.

        Example:
            ```python
            loader.section("evidence")  # {"dir": "./evidence", "screenshot": True}
            ```
        """
        prefix = f"{name}."
        return {
            key[len(prefix) :]: value
            for key, value in self.load_config().items()
            if key.startswith(prefix)
        }

    def unknown_keys(self, known: Iterable[str]) -> List[str]:
        """Dotted keys of the project file that are not in `known`, sorted."""
        known_keys = set(known)
        return sorted(key for key in self.load_config() if key not in known_keys)

    def reload(self) -> None:
        """Forget the cached content; the next access reads the file again."""
        self._config_cache = None
