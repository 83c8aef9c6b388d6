"""
Core module - Shared utilities, configuration, and base classes.
"""

from openrapid.core.config import ConfigManager, GeneratorSettings, RobotConfig
from openrapid.core.exceptions import (
    OpenRapidError,
    ConfigurationError,
    GeometryError,
    RobotError,
    KinematicsError,
    ParseError,
    GenerationError,
)
from openrapid.core.geometry import GeometryConverter, GeometryLoader

__all__ = [
    # Config
    "ConfigManager",
    "GeneratorSettings",
    "RobotConfig",
    # Exceptions
    "OpenRapidError",
    "ConfigurationError",
    "GeometryError",
    "RobotError",
    "KinematicsError",
    "ParseError",
    "GenerationError",
    # Geometry
    "GeometryConverter",
    "GeometryLoader",
]
