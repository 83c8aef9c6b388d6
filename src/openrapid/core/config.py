"""
Configuration management for openrapid.

Handles loading and validation of generator settings and robot cell
definitions from YAML files.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from openrapid.core.exceptions import ConfigurationError


class GeneratorSettings(BaseModel):
    """Settings for RAPID code generation."""

    module_name: str = "MainModule"
    program_file: str = "main_T.mod"
    base_file: str = "BASE.sys"
    robot_preset: str = "IRB2600-12/1.85"
    position_decimals: int = Field(default=2, ge=0, le=6)
    quaternion_decimals: int = Field(default=6, ge=0, le=9)


class ExternalAxisConfig(BaseModel):
    """External axis entry of a robot cell definition."""

    name: str
    type: Literal["linear", "rotational"]
    origin: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    axis: list[float] = Field(default_factory=lambda: [0.0, 0.0, 1.0])
    limits: tuple[float, float]
    moves_robot: bool | None = None


class RobotConfig(BaseModel):
    """Robot cell definition: a preset placed in the world plus external axes."""

    name: str
    preset: str
    position: list[float] = Field(default_factory=lambda: [0.0, 0.0, 0.0])
    external_axes: list[ExternalAxisConfig] = Field(default_factory=list)


def load_settings(path: str | Path) -> GeneratorSettings:
    """
    Load generator settings from a single YAML file.

    Args:
        path: YAML file with the settings at top level or under ``generator``

    Returns:
        GeneratorSettings instance

    Raises:
        ConfigurationError: If the file is missing or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}")

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return GeneratorSettings(**data.get("generator", data))
    except (yaml.YAMLError, ValidationError) as e:
        raise ConfigurationError(
            f"Failed to load generator settings: {path}",
            details={"error": str(e)},
        ) from e


@dataclass
class ConfigManager:
    """
    Central configuration manager for openrapid.

    Loads ``generator.yaml`` and the robot cell definitions in ``robots/``.

    Example:
        >>> config = ConfigManager(config_dir=Path("config"))
        >>> settings = config.settings
        >>> cell = config.get_robot("track_cell")
    """

    config_dir: Path
    _settings: GeneratorSettings = field(default_factory=GeneratorSettings, init=False)
    _robots: dict[str, RobotConfig] = field(default_factory=dict, init=False)
    _loaded: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.config_dir = Path(self.config_dir)
        if not self.config_dir.exists():
            raise ConfigurationError(
                f"Configuration directory not found: {self.config_dir}"
            )

    def load(self) -> None:
        """Load all configurations from disk."""
        settings_file = self.config_dir / "generator.yaml"
        if settings_file.exists():
            self._settings = load_settings(settings_file)
        self._load_robots()
        self._loaded = True

    def _load_robots(self) -> None:
        robots_dir = self.config_dir / "robots"
        if not robots_dir.exists():
            return

        for config_file in sorted(robots_dir.glob("*.yaml")):
            try:
                with open(config_file) as f:
                    data = yaml.safe_load(f)

                if data and "robot" in data:
                    robot_data = dict(data["robot"])
                    if "external_axes" in data:
                        robot_data["external_axes"] = data["external_axes"]
                    self._robots[config_file.stem] = RobotConfig(**robot_data)
            except (yaml.YAMLError, ValidationError) as e:
                raise ConfigurationError(
                    f"Failed to load robot config: {config_file}",
                    details={"error": str(e)},
                ) from e

    @property
    def settings(self) -> GeneratorSettings:
        if not self._loaded:
            self.load()
        return self._settings

    def get_robot(self, name: str) -> RobotConfig:
        """
        Get robot cell configuration by name.

        Args:
            name: Robot configuration name (without .yaml extension)

        Returns:
            RobotConfig instance

        Raises:
            ConfigurationError: If robot not found
        """
        if not self._loaded:
            self.load()

        if name not in self._robots:
            available = list(self._robots.keys())
            raise ConfigurationError(
                f"Robot configuration not found: {name}",
                details={"available": available},
            )
        return self._robots[name]

    def list_robots(self) -> list[str]:
        """List available robot configurations."""
        if not self._loaded:
            self.load()
        return list(self._robots.keys())

    def to_dict(self) -> dict[str, Any]:
        return {
            "generator": self.settings.model_dump(),
            "robots": {name: robot.model_dump() for name, robot in self._robots.items()},
        }
