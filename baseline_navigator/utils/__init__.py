"""
Utility modules for configuration, logging, and error handling.
"""

from baseline_navigator.utils.errors import (
    BaselineNavigatorError,
    ConfigurationError,
    DatasetUnavailableError,
    DocumentAnalysisError,
    ReadinessTimeoutError,
    UnknownFeatureError,
)
from baseline_navigator.utils.logging import get_logger, setup_logging, JSONFormatter
from baseline_navigator.utils.config import BaselineSettings, ConfigManager, load_config

__all__ = [
    "BaselineNavigatorError",
    "ConfigurationError",
    "DatasetUnavailableError",
    "DocumentAnalysisError",
    "ReadinessTimeoutError",
    "UnknownFeatureError",
    "get_logger",
    "setup_logging",
    "JSONFormatter",
    "BaselineSettings",
    "ConfigManager",
    "load_config",
]
