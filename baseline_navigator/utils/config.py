"""
Configuration management for Baseline Navigator.

Loads configuration from YAML files with environment variable
interpolation, and turns the "baseline" section into the BaselineSettings
object that hosts pass into the core components.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from baseline_navigator.utils.errors import ConfigurationError

RISK_TOLERANCES = ("strict", "moderate", "permissive")
SEVERITIES = ("error", "warning", "information", "hint")


class ConfigManager:
    """
    Manages application configuration loaded from YAML files.

    Features:
    - YAML configuration loading
    - Environment variable interpolation (${VAR_NAME})
    - Nested key access with dot notation
    - Configuration validation
    """

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config: Dict[str, Any] = config_dict or {}
        self._env_pattern = re.compile(r'\$\{([^}]+)\}')

    @classmethod
    def from_file(cls, file_path: Path) -> "ConfigManager":
        """
        Create ConfigManager from YAML file.

        Raises:
            ConfigurationError: If file cannot be loaded or parsed
        """
        if not file_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {file_path}",
                config_key=str(file_path)
            )

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                config_dict = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Failed to parse YAML configuration: {e}",
                config_key=str(file_path)
            )

        if not isinstance(config_dict, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key=str(file_path)
            )

        manager = cls(config_dict)
        manager._interpolate_env_vars()
        return manager

    def _interpolate_env_vars(self) -> None:
        """Replace ${ENV_VAR} patterns with environment variable values."""
        self._config = self._interpolate_value(self._config)

    def _interpolate_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._interpolate_value(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._interpolate_value(item) for item in value]
        if isinstance(value, str):
            return self._interpolate_string(value)
        return value

    def _interpolate_string(self, s: str) -> str:
        """Replace ${ENV_VAR} with environment variable value."""
        def replace(match: re.Match) -> str:
            value = os.environ.get(match.group(1))
            if value is None:
                return match.group(0)  # Keep original if not found
            return value

        return self._env_pattern.sub(replace, s)

    def get(
        self,
        key: str,
        default: Any = None,
        required: bool = False
    ) -> Any:
        """
        Get configuration value using dot notation.

        Example:
            config.get("baseline.cache_ttl", default=300)

        Raises:
            ConfigurationError: If required key is not found
        """
        value: Any = self._config

        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                if required:
                    raise ConfigurationError(
                        f"Required configuration key not found: {key}",
                        config_key=key
                    )
                return default

        return value

    def get_section(self, key: str) -> Dict[str, Any]:
        """Get an entire configuration section (empty dict if not found)."""
        value = self.get(key, default={})
        if not isinstance(value, dict):
            return {}
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value using dot notation."""
        keys = key.split('.')
        current = self._config

        for k in keys[:-1]:
            if k not in current:
                current[k] = {}
            current = current[k]

        current[keys[-1]] = value

    def to_dict(self) -> Dict[str, Any]:
        """Return configuration as dictionary."""
        return self._config.copy()

    def validate(self, schema: Dict[str, Any]) -> None:
        """
        Validate configuration against a schema.

        Schema format:
            {
                "baseline.cache_ttl": {"type": (int, float), "required": True},
                "logging.level": {"type": str}
            }

        Raises:
            ConfigurationError: If validation fails
        """
        for key, rules in schema.items():
            value = self.get(key)
            expected_type = rules.get("type")

            if value is None:
                if rules.get("required", False):
                    raise ConfigurationError(
                        f"Required configuration missing: {key}",
                        config_key=key
                    )
                continue

            if expected_type and not isinstance(value, expected_type):
                type_name = getattr(expected_type, "__name__", str(expected_type))
                raise ConfigurationError(
                    f"Invalid type for {key}: expected {type_name}, "
                    f"got {type(value).__name__}",
                    config_key=key
                )


CONFIG_SCHEMA = {
    "baseline.target_browsers": {"type": list},
    "baseline.minimum_browser_versions": {"type": dict},
    "baseline.risk_tolerance": {"type": str},
    "baseline.max_recommendations": {"type": int},
    "baseline.cache_ttl": {"type": (int, float)},
    "baseline.ready_timeout": {"type": (int, float)},
    "baseline.diagnostic_severity": {"type": dict},
    "logging.level": {"type": str},
}


@dataclass(frozen=True)
class BaselineSettings:
    """
    Plain-value configuration contract consumed by the core.

    Constructed once by the host and injected into the knowledge base,
    the project analyzer and the recommendation engine.
    """

    target_browsers: Tuple[str, ...] = ("chrome", "edge", "firefox", "safari")
    minimum_browser_versions: Dict[str, str] = field(default_factory=lambda: {
        "chrome": "90",
        "edge": "90",
        "firefox": "88",
        "safari": "14",
    })
    risk_tolerance: str = "moderate"
    max_recommendations: int = 5
    cache_ttl: float = 300.0
    ready_timeout: float = 10.0
    diagnostic_severity: Dict[str, str] = field(default_factory=lambda: {
        "limited": "warning",
        "newly": "information",
        "unknown": "information",
    })

    def __post_init__(self) -> None:
        if self.risk_tolerance not in RISK_TOLERANCES:
            raise ConfigurationError(
                f"Invalid risk tolerance '{self.risk_tolerance}'. "
                f"Expected one of: {', '.join(RISK_TOLERANCES)}",
                config_key="baseline.risk_tolerance",
            )
        if not 1 <= self.max_recommendations <= 10:
            raise ConfigurationError(
                "max_recommendations must be between 1 and 10",
                config_key="baseline.max_recommendations",
            )
        if self.cache_ttl <= 0:
            raise ConfigurationError(
                "cache_ttl must be positive",
                config_key="baseline.cache_ttl",
            )
        if self.ready_timeout <= 0:
            raise ConfigurationError(
                "ready_timeout must be positive",
                config_key="baseline.ready_timeout",
            )
        for tier, severity in self.diagnostic_severity.items():
            if severity.lower() not in SEVERITIES:
                raise ConfigurationError(
                    f"Invalid severity '{severity}' for baseline '{tier}'",
                    config_key=f"baseline.diagnostic_severity.{tier}",
                )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "BaselineSettings":
        """
        Build settings from a full configuration dict.

        Only the "baseline" section is read; missing keys keep defaults.
        """
        manager = ConfigManager(config)
        manager.validate(CONFIG_SCHEMA)
        section = manager.get_section("baseline")

        kwargs: Dict[str, Any] = {}
        if "target_browsers" in section:
            kwargs["target_browsers"] = tuple(str(b) for b in section["target_browsers"])
        if "minimum_browser_versions" in section:
            kwargs["minimum_browser_versions"] = {
                str(k): str(v) for k, v in section["minimum_browser_versions"].items()
            }
        if "diagnostic_severity" in section:
            kwargs["diagnostic_severity"] = {
                str(k): str(v).lower() for k, v in section["diagnostic_severity"].items()
            }
        for key in ("risk_tolerance", "max_recommendations", "cache_ttl", "ready_timeout"):
            if key in section:
                kwargs[key] = section[key]

        return cls(**kwargs)

    def should_warn_for_feature(self, baseline: str) -> bool:
        """Whether a feature of the given baseline tier deserves a warning."""
        if baseline == "widely":
            return False
        if baseline == "limited":
            return True
        if baseline == "newly":
            return self.risk_tolerance == "strict"
        return self.risk_tolerance != "permissive"

    def severity_for(self, baseline: str) -> str:
        """Diagnostic severity name for a baseline tier."""
        return self.diagnostic_severity.get(baseline, "information").lower()

    def browser_targets(self) -> List[Tuple[str, str]]:
        """Ordered (browser, minimum version) pairs."""
        return [
            (browser, self.minimum_browser_versions.get(browser, "0"))
            for browser in self.target_browsers
        ]


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Optional path to config file.
                    If None, tries "config/config.yaml"

    Returns:
        Dict[str, Any]: Configuration dictionary
    """
    if config_path is None:
        default_paths = [
            Path("config/config.yaml"),
            Path("config.yaml"),
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
        ]

        for path in default_paths:
            if path.exists():
                config_path = str(path)
                break

    if config_path:
        manager = ConfigManager.from_file(Path(config_path))
        return manager.to_dict()

    return get_default_config()


def get_default_config() -> Dict[str, Any]:
    """Return default configuration values."""
    return {
        "baseline": {
            "target_browsers": ["chrome", "edge", "firefox", "safari"],
            "minimum_browser_versions": {
                "chrome": "90",
                "edge": "90",
                "firefox": "88",
                "safari": "14",
            },
            "risk_tolerance": "moderate",
            "max_recommendations": 5,
            "cache_ttl": 300,
            "ready_timeout": 10,
            "diagnostic_severity": {
                "limited": "warning",
                "newly": "information",
                "unknown": "information",
            },
        },
        "workspace": {
            "max_files": 1000,
        },
        "logging": {
            "level": "WARNING",
            "format": "text",
        },
    }
