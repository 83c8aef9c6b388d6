"""
Custom exceptions for openrapid.

All openrapid exceptions inherit from OpenRapidError for easy catching.
"""

from typing import Any


class OpenRapidError(Exception):
    """Base exception for all openrapid errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(OpenRapidError):
    """Raised when configuration is invalid or missing."""

    pass


class GeometryError(OpenRapidError):
    """Raised when geometry loading or transformation fails."""

    pass


class RobotError(OpenRapidError):
    """Raised when a robot is assembled from an invalid set of components."""

    def __init__(
        self,
        message: str,
        robot_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.robot_name = robot_name


class KinematicsError(OpenRapidError):
    """Raised when a kinematics solver cannot produce axis values."""

    pass


class ParseError(OpenRapidError):
    """Raised when free text or a persisted program cannot be parsed."""

    pass


class GenerationError(OpenRapidError):
    """Raised when RAPID code generation or writing fails."""

    pass
