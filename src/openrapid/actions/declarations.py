"""
Declaration payloads: targets, speed data and digital outputs.

These values are referenced by the motion actions and are declared at most
once per generated program, keyed by their RAPID variable name.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from compas.geometry import Frame, Quaternion

from openrapid.core.exceptions import ConfigurationError, ParseError
from openrapid.core.formatting import UNSET_LITERAL, format_number, format_values
from openrapid.core.geometry import (
    frame_from_dict,
    frame_quaternion,
    frame_to_dict,
    plane_to_plane,
)
from openrapid.definitions.external_axis import (
    MAX_EXTERNAL_AXES,
    UNSET_AXIS_VALUE,
    is_unset,
)
from openrapid.definitions.load_data import parse_numbers

CONFIGURATION_TAGS = range(8)


def format_external_values(values: Sequence[float], decimals: int = 2) -> str:
    """Six external axis values with unset slots rendered as ``9E9``."""
    return ", ".join(UNSET_LITERAL if is_unset(v) else format_number(v, decimals) for v in values)


def merge_external_values(solved: Sequence[float], overrides: Sequence[float]) -> List[float]:
    """Solver values where set, otherwise the target override values."""
    return [s if not is_unset(s) else o for s, o in zip(solved, overrides)]


class Target:
    """
    A named pose with a joint configuration tag and external axis overrides.

    The plane is expressed in the coordinates of the work object the target
    is used with. Exactly six external axis values always exist; missing
    values hold the unset sentinel, which lets the solver choose.

    Args:
        name: Variable name
        plane: Target plane
        reference_plane: Plane the given ``plane`` is defined in; the plane
            is re-oriented from this reference to world XY
        axis_config: Joint configuration tag (0-7)
        external_axis_values: Up to six override values
    """

    def __init__(
        self,
        name: str,
        plane: Frame,
        reference_plane: Optional[Frame] = None,
        axis_config: int = 0,
        external_axis_values: Optional[Sequence[float]] = None,
    ) -> None:
        self.name = name
        if reference_plane is not None:
            plane = plane.transformed(plane_to_plane(reference_plane, Frame.worldXY()))
        self.plane = plane
        self.axis_config = axis_config
        self.external_axis_values = external_axis_values or []

    @property
    def plane(self) -> Frame:
        return self._plane

    @plane.setter
    def plane(self, plane: Frame) -> None:
        self._plane = plane
        self.quaternion: Optional[Quaternion] = frame_quaternion(plane) if plane is not None else None

    @property
    def external_axis_values(self) -> List[float]:
        return list(self._external_axis_values)

    @external_axis_values.setter
    def external_axis_values(self, values: Sequence[float]) -> None:
        values = [UNSET_AXIS_VALUE if v is None else float(v) for v in values]
        if len(values) > MAX_EXTERNAL_AXES:
            raise ConfigurationError(
                f"A target holds at most {MAX_EXTERNAL_AXES} external axis values.",
                details={"count": len(values)},
            )
        self._external_axis_values = values + [UNSET_AXIS_VALUE] * (MAX_EXTERNAL_AXES - len(values))

    @property
    def joint_target_name(self) -> str:
        return f"{self.name}_jt"

    @property
    def robot_target_name(self) -> str:
        return f"{self.name}_rt"

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append("Target name is not set.")
        if self._plane is None:
            errors.append("Target plane is not set.")
        if self.axis_config not in CONFIGURATION_TAGS:
            errors.append(f"Axis configuration {self.axis_config} is not in the range 0-7.")
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def robtarget_declaration(
        self, external_axis_values: Optional[Sequence[float]] = None, decimals: int = 2, quaternion_decimals: int = 6
    ) -> str:
        """
        ``robtarget`` declaration of the target.

        Args:
            external_axis_values: Solved external axis values (default: the overrides)
        """
        external = merge_external_values(
            external_axis_values or [UNSET_AXIS_VALUE] * MAX_EXTERNAL_AXES, self._external_axis_values
        )
        q = self.quaternion
        return (
            f"VAR robtarget {self.robot_target_name} := "
            f"[[{format_values(self._plane.point, decimals)}], "
            f"[{format_values((q.w, q.x, q.y, q.z), quaternion_decimals)}], "
            f"[0, 0, 0, {self.axis_config}], "
            f"[{format_external_values(external, decimals)}]];"
        )

    def jointtarget_declaration(
        self, internal_axis_values: Sequence[float], external_axis_values: Optional[Sequence[float]] = None,
        decimals: int = 2,
    ) -> str:
        """``jointtarget`` declaration from solved axis values."""
        external = merge_external_values(
            external_axis_values or [UNSET_AXIS_VALUE] * MAX_EXTERNAL_AXES, self._external_axis_values
        )
        return (
            f"CONST jointtarget {self.joint_target_name} := "
            f"[[{format_values(internal_axis_values, decimals)}], "
            f"[{format_external_values(external, decimals)}]];"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "plane": frame_to_dict(self._plane),
            "axis_config": self.axis_config,
            "external_axis_values": self.external_axis_values,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Target":
        return cls(
            name=d["name"],
            plane=frame_from_dict(d["plane"]),
            axis_config=int(d.get("axis_config", 0)),
            external_axis_values=d.get("external_axis_values"),
        )

    def __repr__(self) -> str:
        return f"Target(name={self.name!r}, axis_config={self.axis_config})"


@dataclass
class SpeedData:
    """
    RAPID ``speeddata``: TCP, re-orientation, linear and rotational external
    axis velocities.

    Predefined speed data (``v5`` ... ``v7000``) exist on every controller
    and are referenced by name without a declaration.
    """

    name: str
    v_tcp: float
    v_ori: float = 500.0
    v_leax: float = 5000.0
    v_reax: float = 1000.0
    predefined: bool = False

    @classmethod
    def predefined_from(cls, v_tcp: float) -> "SpeedData":
        """The controller's predefined speed data ``v<v_tcp>``."""
        return cls(name=f"v{round(v_tcp)}", v_tcp=float(round(v_tcp)), predefined=True)

    @classmethod
    def default(cls) -> "SpeedData":
        return cls.predefined_from(5)

    @classmethod
    def parse(cls, text: str, name: str = "speed") -> "SpeedData":
        """
        Parse ``[v_tcp, v_ori, v_leax, v_reax]`` or a full declaration.

        Raises:
            ParseError: If the text cannot be parsed
        """
        head, sep, tail = text.partition(":=")
        if sep:
            words = head.split()
            if not words or words[-2:-1] != ["speeddata"]:
                raise ParseError("Could not parse speeddata declaration", details={"text": text})
            name = words[-1]
            text = tail
        values = parse_numbers(text, 4, "speeddata")
        return cls(name, *values)

    @classmethod
    def try_parse(cls, text: str, name: str = "speed") -> Optional["SpeedData"]:
        """Like :meth:`parse` but returns ``None`` on failure."""
        try:
            return cls.parse(text, name)
        except ParseError:
            return None

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append("Speed data name is not set.")
        for label, value in (
            ("TCP", self.v_tcp),
            ("orientation", self.v_ori),
            ("linear external axis", self.v_leax),
            ("rotational external axis", self.v_reax),
        ):
            if value <= 0:
                errors.append(f"The {label} velocity must be positive.")
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def to_rapid_declaration(self) -> str:
        values = format_values((self.v_tcp, self.v_ori, self.v_leax, self.v_reax), 6)
        return f"VAR speeddata {self.name} := [{values}];"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "v_tcp": self.v_tcp,
            "v_ori": self.v_ori,
            "v_leax": self.v_leax,
            "v_reax": self.v_reax,
            "predefined": self.predefined,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "SpeedData":
        valid_fields = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in d.items() if k in valid_fields})


@dataclass
class DigitalOutput:
    """
    A digital output signal and the state to set it to.

    An empty name means "no signal change".
    """

    name: str = ""
    is_active: bool = False

    @classmethod
    def empty(cls) -> "DigitalOutput":
        return cls()

    @property
    def validation_errors(self) -> List[str]:
        return [] if self.name else ["Digital output name is not set."]

    @property
    def is_valid(self) -> bool:
        return bool(self.name)

    @property
    def state(self) -> int:
        return 1 if self.is_active else 0

    def to_rapid_instruction(self) -> str:
        return f"SetDO {self.name}, {self.state};"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "is_active": self.is_active}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "DigitalOutput":
        return cls(name=d.get("name", ""), is_active=bool(d.get("is_active", False)))

    def __str__(self) -> str:
        if not self.is_valid:
            return "Invalid Digital Output"
        return f"Digital Output ({self.name}\\{self.is_active})"
