"""
External axes support for ABB robot cells.

This module provides the two external axis kinds a robot cell can carry:
- Linear axes (tracks that carry the robot or a work object)
- Rotational axes (turntables and single-axis positioners)

Both kinds share one geometry/limits record; the ``axis_type`` tag selects
translation or rotation math.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from compas.datastructures import Mesh
from compas.geometry import Frame, Line, Point, Transformation, Vector

from openrapid.core.exceptions import ConfigurationError
from openrapid.core.geometry import (
    frame_from_dict,
    frame_from_normal,
    frame_to_dict,
    rotation_about_plane,
    transform_mesh,
    translation_along_plane,
)

# Axis value meaning "not set / not connected", rendered as 9E9 in RAPID
UNSET_AXIS_VALUE = 9e9

UNASSIGNED_AXIS_NUMBER = -1
MAX_EXTERNAL_AXES = 6
AXIS_LETTERS = "ABCDEF"


class ExternalAxisType(Enum):
    """Types of external axes."""

    LINEAR = "linear"  # Value is a distance in mm along the axis plane Z axis
    ROTATIONAL = "rotational"  # Value is an angle in degrees about the axis plane Z axis


def is_unset(value: float | None) -> bool:
    """True for the unset sentinel (or ``None``)."""
    return value is None or value >= UNSET_AXIS_VALUE


def parse_axis_number(text: str) -> int:
    """
    Parse an axis number from its numeric or letter form.

    Accepts ``-1`` to ``5`` and the RAPID letters ``A`` to ``F`` (either case).

    Raises:
        ConfigurationError: If the text is not a known alias
    """
    cleaned = str(text).strip()
    if cleaned.upper() in AXIS_LETTERS and len(cleaned) == 1:
        return AXIS_LETTERS.index(cleaned.upper())
    if cleaned in {str(n) for n in range(UNASSIGNED_AXIS_NUMBER, MAX_EXTERNAL_AXES)}:
        return int(cleaned)
    raise ConfigurationError(
        f"Invalid axis number: {text!r}",
        details={"allowed": ["-1", "0-5", "A-F"]},
    )


@dataclass
class ExternalAxis:
    """
    An external axis (linear track or rotational positioner).

    Attributes:
        name: Axis name, used as the mechanical unit name in RAPID
        axis_type: Linear or rotational
        attachment_plane: Plane where the robot or a work object couples to the axis
        axis_plane: Plane whose Z axis is the translation direction or rotation axis
        min_limit: Lower bound (mm or degrees)
        max_limit: Upper bound (mm or degrees)
        axis_number: Slot 0-5 assigned by the owning robot, -1 when unassigned
        moves_robot: Whether the axis carries the robot base
        base_mesh: Stationary geometry
        link_mesh: Geometry moved by the axis
        posed_meshes: Meshes from the last :meth:`pose_meshes` call
    """

    name: str
    axis_type: ExternalAxisType
    attachment_plane: Frame
    axis_plane: Frame
    min_limit: float
    max_limit: float
    axis_number: int = UNASSIGNED_AXIS_NUMBER
    moves_robot: Optional[bool] = None
    base_mesh: Optional[Mesh] = None
    link_mesh: Optional[Mesh] = None
    posed_meshes: List[Mesh] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.moves_robot is None:
            self.moves_robot = self.axis_type is ExternalAxisType.LINEAR
        if self.base_mesh is None:
            self.base_mesh = Mesh()
        if self.link_mesh is None:
            self.link_mesh = Mesh()

    # ── Axis number ───────────────────────────────────────────────────

    @property
    def axis_logic(self) -> str:
        """RAPID letter of the assigned slot, ``-`` when unassigned."""
        if 0 <= self.axis_number < MAX_EXTERNAL_AXES:
            return AXIS_LETTERS[self.axis_number]
        return "-"

    @axis_logic.setter
    def axis_logic(self, text: str) -> None:
        self.axis_number = parse_axis_number(text)

    def set_axis_number_from_string(self, text: str) -> None:
        self.axis_number = parse_axis_number(text)

    # ── Kinematics ────────────────────────────────────────────────────

    @property
    def limits(self) -> Tuple[float, float]:
        return (self.min_limit, self.max_limit)

    def in_limits(self, value: float) -> bool:
        return self.min_limit <= value <= self.max_limit

    def clamp(self, value: float) -> float:
        """Clamp ``value`` to the axis limits, treating the sentinel as zero."""
        if is_unset(value):
            value = 0.0
        return min(max(value, self.min_limit), self.max_limit)

    def transformation(self, value: float) -> Tuple[Transformation, bool]:
        """
        Transformation for the raw axis value, ignoring the limits.

        Args:
            value: Axis value in mm or degrees; the sentinel is treated as zero

        Returns:
            Tuple of (transformation, whether the value lies within the limits)
        """
        if is_unset(value):
            value = 0.0
        return self._transformation(value), self.in_limits(value)

    def transformation_clamped(self, value: float) -> Transformation:
        """Transformation for the axis value clamped to the limits."""
        return self._transformation(self.clamp(value))

    def _transformation(self, value: float) -> Transformation:
        if self.axis_type is ExternalAxisType.ROTATIONAL:
            return rotation_about_plane(self.axis_plane, math.radians(value))
        return translation_along_plane(self.axis_plane, value)

    def position(self, value: float) -> Tuple[Frame, bool]:
        """
        Attachment plane posed at the raw axis value.

        Returns:
            Tuple of (posed plane, whether the value lies within the limits)
        """
        xform, in_limits = self.transformation(value)
        return self.attachment_plane.transformed(xform), in_limits

    def position_clamped(self, value: float) -> Frame:
        """Attachment plane posed at the axis value clamped to the limits."""
        return self.attachment_plane.transformed(self.transformation_clamped(value))

    def pose_meshes(self, value: float) -> List[Mesh]:
        """
        Pose the axis geometry at the raw axis value.

        The base mesh is copied unchanged and the link mesh is moved by the
        same transformation as :meth:`position`, so values outside the limits
        are shown where the program would put them.

        Returns:
            ``[base_mesh, posed_link_mesh]``
        """
        xform, _ = self.transformation(value)
        self.posed_meshes = [self.base_mesh.copy(), transform_mesh(self.link_mesh, xform)]
        return self.posed_meshes

    def transform(self, xform: Transformation) -> None:
        """Relocate the whole axis, including its meshes."""
        self.attachment_plane = self.attachment_plane.transformed(xform)
        self.axis_plane = self.axis_plane.transformed(xform)
        self.base_mesh = transform_mesh(self.base_mesh, xform)
        self.link_mesh = transform_mesh(self.link_mesh, xform)
        self.posed_meshes = [transform_mesh(mesh, xform) for mesh in self.posed_meshes]

    # ── Linear axis helpers ───────────────────────────────────────────

    def axis_line(self) -> Line:
        """Line covered by the attachment plane origin between the limits."""
        direction = self.axis_plane.zaxis.unitized()
        origin = self.attachment_plane.point
        return Line(origin + direction * self.min_limit, origin + direction * self.max_limit)

    def closest_value(self, point: Point) -> float:
        """
        Clamped axis value that brings the attachment origin closest to ``point``.

        Only meaningful for linear axes.
        """
        direction = self.axis_plane.zaxis.unitized()
        offset = Vector.from_start_end(self.attachment_plane.point, point)
        return self.clamp(offset.dot(direction))

    # ── Validity ──────────────────────────────────────────────────────

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append("External axis name is not set.")
        if self.attachment_plane is None:
            errors.append("Attachment plane is not set.")
        if self.axis_plane is None:
            errors.append("Axis plane is not set.")
        if self.min_limit > self.max_limit:
            errors.append(f"Axis limits are reversed: [{self.min_limit}, {self.max_limit}].")
        if not UNASSIGNED_AXIS_NUMBER <= self.axis_number < MAX_EXTERNAL_AXES:
            errors.append(f"Axis number {self.axis_number} is out of range.")
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    # ── Copy & serialization ──────────────────────────────────────────

    def copy(self) -> "ExternalAxis":
        return ExternalAxis(
            name=self.name,
            axis_type=self.axis_type,
            attachment_plane=self.attachment_plane.copy(),
            axis_plane=self.axis_plane.copy(),
            min_limit=self.min_limit,
            max_limit=self.max_limit,
            axis_number=self.axis_number,
            moves_robot=self.moves_robot,
            base_mesh=self.base_mesh.copy(),
            link_mesh=self.link_mesh.copy(),
            posed_meshes=[mesh.copy() for mesh in self.posed_meshes],
        )

    def to_dict(self) -> dict[str, Any]:
        """Geometry and limits of the axis; meshes are not serialized."""
        return {
            "name": self.name,
            "type": self.axis_type.value,
            "attachment_plane": frame_to_dict(self.attachment_plane),
            "axis_plane": frame_to_dict(self.axis_plane),
            "limits": [self.min_limit, self.max_limit],
            "axis_number": self.axis_number,
            "moves_robot": self.moves_robot,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "ExternalAxis":
        try:
            return cls(
                name=d["name"],
                axis_type=ExternalAxisType(d["type"]),
                attachment_plane=frame_from_dict(d["attachment_plane"]),
                axis_plane=frame_from_dict(d["axis_plane"]),
                min_limit=float(d["limits"][0]),
                max_limit=float(d["limits"][1]),
                axis_number=int(d.get("axis_number", UNASSIGNED_AXIS_NUMBER)),
                moves_robot=d.get("moves_robot"),
            )
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(
                "Invalid external axis data", details={"error": str(e)}
            ) from e

    def __str__(self) -> str:
        kind = self.axis_type.value.capitalize()
        return f"External {kind} Axis ({self.name})"


def create_linear_axis(
    name: str = "linear_track",
    length: float = 3000.0,
    position: tuple = (0, 0, 0),
    direction: tuple = (1, 0, 0),
    moves_robot: bool = True,
    base_mesh: Optional[Mesh] = None,
    link_mesh: Optional[Mesh] = None,
) -> ExternalAxis:
    """
    Create a linear track.

    Args:
        name: Axis name
        length: Track length (mm), limits become ``[0, length]``
        position: Attachment plane origin at axis value zero
        direction: Travel direction
        moves_robot: Whether the robot base rides on the track

    Returns:
        Linear external axis
    """
    return ExternalAxis(
        name=name,
        axis_type=ExternalAxisType.LINEAR,
        attachment_plane=Frame(position, [1, 0, 0], [0, 1, 0]),
        axis_plane=frame_from_normal(position, direction),
        min_limit=0.0,
        max_limit=length,
        moves_robot=moves_robot,
        base_mesh=base_mesh,
        link_mesh=link_mesh,
    )


def create_rotational_axis(
    name: str = "turntable",
    max_rotation: float = 360.0,
    position: tuple = (0, 0, 0),
    axis: tuple = (0, 0, 1),
    base_mesh: Optional[Mesh] = None,
    link_mesh: Optional[Mesh] = None,
) -> ExternalAxis:
    """
    Create a single-axis turntable positioner.

    Args:
        name: Axis name
        max_rotation: Total rotation range (degrees), centered on zero
        position: Turntable center
        axis: Rotation axis direction

    Returns:
        Rotational external axis
    """
    return ExternalAxis(
        name=name,
        axis_type=ExternalAxisType.ROTATIONAL,
        attachment_plane=Frame(position, [1, 0, 0], [0, 1, 0]),
        axis_plane=frame_from_normal(position, axis),
        min_limit=-max_rotation / 2,
        max_limit=max_rotation / 2,
        base_mesh=base_mesh,
        link_mesh=link_mesh,
    )
