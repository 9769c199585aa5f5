"""Configuration management for Signup Portal.

Single JSON file at ~/.config/signup-portal/config.json. Missing keys
fall back to defaults; an unreadable file falls back entirely.

Example config.json:
    {
      "network_delay": 1.5,
      "success_rate": 0.8,
      "success_message": "Welcome aboard!"
    }
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from ..models.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_NETWORK_DELAY = 3.0
DEFAULT_SUCCESS_RATE = 0.5


def _write_json(path: Path, data: dict) -> None:
    """Write JSON through a temp file, then rename for atomicity."""
    content = json.dumps(data, indent=2)
    temp_path = path.with_suffix(".tmp")
    temp_path.write_text(content)
    temp_path.replace(path)


@dataclass
class SignupConfig:
    """Settings for the sign-up demo."""

    # Seconds the simulated submission takes
    network_delay: float = DEFAULT_NETWORK_DELAY
    # Probability that a simulated submission succeeds
    success_rate: float = DEFAULT_SUCCESS_RATE
    success_message: str = "All good!"
    failure_message: str = "An error occurred!"

    def __post_init__(self) -> None:
        if self.network_delay < 0:
            raise ConfigError(
                f"network_delay must be >= 0, got {self.network_delay}",
                suggestion="use 0 for instant submissions",
            )
        if not 0.0 <= self.success_rate <= 1.0:
            raise ConfigError(f"success_rate must be between 0 and 1, got {self.success_rate}")

    def to_dict(self) -> dict:
        return {
            "network_delay": self.network_delay,
            "success_rate": self.success_rate,
            "success_message": self.success_message,
            "failure_message": self.failure_message,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SignupConfig":
        """Build from a dict, filling in defaults.

        Raises:
            ConfigError: If a value has the wrong type or range
        """
        try:
            return cls(
                network_delay=float(data.get("network_delay", DEFAULT_NETWORK_DELAY)),
                success_rate=float(data.get("success_rate", DEFAULT_SUCCESS_RATE)),
                success_message=str(data.get("success_message", "All good!")),
                failure_message=str(data.get("failure_message", "An error occurred!")),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


class ConfigManager:
    """Loads and saves the sign-up configuration."""

    def __init__(self, config_dir: Path | None = None):
        if config_dir is None:
            config_dir = Path.home() / ".config" / "signup-portal"
        self._config_dir = config_dir
        self._config_file = config_dir / "config.json"
        self._config: SignupConfig | None = None

    @property
    def config_file(self) -> Path:
        return self._config_file

    @property
    def config(self) -> SignupConfig:
        if self._config is None:
            self._config = self._load_config()
        return self._config

    def _load_config(self) -> SignupConfig:
        """Load config from disk."""
        if self._config_file.exists():
            try:
                data = json.loads(self._config_file.read_text())
                return SignupConfig.from_dict(data)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError, ConfigError, AttributeError) as e:
                logger.warning(f"Failed to load config file, using defaults: {e}")
        return SignupConfig()

    def save_config(self, config: SignupConfig) -> None:
        """Save config to disk."""
        self._config_dir.mkdir(parents=True, exist_ok=True)
        _write_json(self._config_file, config.to_dict())
        self._config = config
