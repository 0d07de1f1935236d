"""
Custom exceptions for Baseline Navigator.

This module defines a hierarchy of exceptions for handling the failure
kinds of the feature detection and recommendation pipeline. Most of them
are recovered locally (empty or degraded results) and only surface to
hosts through explicit calls.
"""

from typing import Any, Optional


class BaselineNavigatorError(Exception):
    """Base exception for all Baseline Navigator errors."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(BaselineNavigatorError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        super().__init__(message)
        self.config_key = config_key
        self.details = {"config_key": config_key}


class DatasetUnavailableError(BaselineNavigatorError):
    """Raised when the feature dataset cannot be read or parsed."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message, details={"path": path})
        self.path = path


class ReadinessTimeoutError(BaselineNavigatorError):
    """Raised when the knowledge base is not ready within the wait budget."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Feature knowledge base failed to initialize within {timeout:.1f}s",
            details={"timeout": timeout},
        )
        self.timeout = timeout


class UnknownFeatureError(BaselineNavigatorError):
    """Raised by explicit lookups when a feature id is not in the dataset."""

    def __init__(self, feature_id: str):
        super().__init__(
            f"Unknown feature '{feature_id}'",
            details={"feature_id": feature_id},
        )
        self.feature_id = feature_id


class DocumentAnalysisError(BaselineNavigatorError):
    """Raised when a single document cannot be analyzed."""

    def __init__(
        self,
        filename: str,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(f"Failed to analyze {filename}")
        self.filename = filename
        self.original_error = original_error
        self.details = {
            "filename": filename,
            "original_error": str(original_error) if original_error else None,
        }
