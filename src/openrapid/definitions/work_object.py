"""
Work object definition and its RAPID ``wobjdata`` declaration.
"""

import re
from typing import Any, List, Optional

from compas.geometry import Frame, Transformation

from openrapid.core.exceptions import ParseError
from openrapid.core.formatting import format_bool, format_number
from openrapid.core.geometry import (
    frame_from_dict,
    frame_from_quaternion,
    frame_quaternion,
    frame_to_dict,
    plane_to_plane,
)
from openrapid.definitions.external_axis import ExternalAxis
from openrapid.definitions.load_data import parse_numbers

_DECLARATION_PREFIX = re.compile(
    r"^\s*(?:(?:PERS|VAR|CONST|TASK PERS)\s+)?wobjdata\s+(?P<name>\w+)\s*:=",
    re.IGNORECASE,
)
_BOOL = re.compile(r"\b(TRUE|FALSE)\b", re.IGNORECASE)
_STRING = re.compile(r'"[^"]*"')


def work_object_global_plane(
    plane: Frame, user_frame: Frame, external_axis: Optional[ExternalAxis] = None
) -> Frame:
    """
    Object plane in world coordinates.

    The object frame is placed in the user frame, and the result is placed on
    the attachment plane of the coupled external axis when there is one.
    """
    world = Frame.worldXY()
    global_plane = plane.transformed(plane_to_plane(world, user_frame))
    if external_axis is not None:
        global_plane = global_plane.transformed(plane_to_plane(world, external_axis.attachment_plane))
    return global_plane


def _pose(frame: Frame) -> str:
    point = ", ".join(format_number(v, 4) for v in frame.point)
    q = frame_quaternion(frame)
    quat = ", ".join(format_number(v, 7) for v in (q.w, q.x, q.y, q.z))
    return f"[[{point}], [{quat}]]"


class WorkObject:
    """
    A RAPID work object: a user frame and an object frame, optionally
    coupled to an external axis that moves it.

    Attributes:
        name: Declared variable name
        plane: Object frame, relative to the user frame
        user_frame: User frame, relative to world
        external_axis: Axis that moves the work object, if any
        robot_hold: Whether the robot holds the work object
    """

    def __init__(
        self,
        name: str = "wobj0",
        plane: Optional[Frame] = None,
        external_axis: Optional[ExternalAxis] = None,
        user_frame: Optional[Frame] = None,
        robot_hold: bool = False,
    ) -> None:
        self.name = name
        self.robot_hold = robot_hold
        self._plane = plane if plane is not None else Frame.worldXY()
        self._user_frame = user_frame if user_frame is not None else Frame.worldXY()
        self._external_axis = external_axis
        self._update()

    @classmethod
    def default(cls) -> "WorkObject":
        """The controller's built-in ``wobj0``."""
        return cls()

    def _update(self) -> None:
        self.global_plane = work_object_global_plane(self._plane, self._user_frame, self._external_axis)

    @property
    def plane(self) -> Frame:
        return self._plane

    @plane.setter
    def plane(self, plane: Frame) -> None:
        self._plane = plane
        self._update()

    @property
    def user_frame(self) -> Frame:
        return self._user_frame

    @user_frame.setter
    def user_frame(self, plane: Frame) -> None:
        self._user_frame = plane
        self._update()

    @property
    def external_axis(self) -> Optional[ExternalAxis]:
        return self._external_axis

    @external_axis.setter
    def external_axis(self, axis: Optional[ExternalAxis]) -> None:
        self._external_axis = axis
        self._update()

    @property
    def fixed_frame(self) -> bool:
        """A work object is fixed when no external axis moves it."""
        return self._external_axis is None

    def transformation(self) -> Transformation:
        """Transformation from world XY to the global work object plane."""
        return plane_to_plane(Frame.worldXY(), self.global_plane)

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append("Work object name is not set.")
        if self._external_axis is not None and not self._external_axis.is_valid:
            errors.extend(self._external_axis.validation_errors)
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    # ── RAPID ─────────────────────────────────────────────────────────

    def to_rapid_value(self) -> str:
        mechanical_unit = self._external_axis.name if self._external_axis is not None else ""
        return (
            f"[{format_bool(self.robot_hold)}, {format_bool(self.fixed_frame)}, "
            f'"{mechanical_unit}", {_pose(self._user_frame)}, {_pose(self._plane)}]'
        )

    def to_rapid_declaration(self) -> str:
        """
        RAPID ``wobjdata`` declaration.

        Returns:
            ``PERS wobjdata name := [robhold, ufprog, "ufmec", uframe, oframe];``
        """
        return f"PERS wobjdata {self.name} := {self.to_rapid_value()};"

    @classmethod
    def parse(cls, text: str) -> "WorkObject":
        """
        Parse a work object from a ``wobjdata`` aggregate or declaration.

        The mechanical unit is not resolved; the parsed work object has no
        external axis.

        Raises:
            ParseError: If the text cannot be parsed
        """
        name = "wobj0"
        match = _DECLARATION_PREFIX.match(text)
        if match:
            name = match.group("name")
            text = text[match.end():]

        text = _STRING.sub("", text)
        flags = [token.upper() == "TRUE" for token in _BOOL.findall(text)]
        if len(flags) != 2:
            raise ParseError("Could not parse wobjdata: expected two booleans", details={"text": text})
        values = parse_numbers(_BOOL.sub("", text), 14, "wobjdata")

        user_frame = frame_from_quaternion(values[3:7], values[0:3])
        plane = frame_from_quaternion(values[10:14], values[7:10])
        return cls(name=name, plane=plane, user_frame=user_frame, robot_hold=flags[0])

    @classmethod
    def try_parse(cls, text: str) -> Optional["WorkObject"]:
        """Like :meth:`parse` but returns ``None`` on failure."""
        try:
            return cls.parse(text)
        except ParseError:
            return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "plane": frame_to_dict(self._plane),
            "user_frame": frame_to_dict(self._user_frame),
            "external_axis": self._external_axis.to_dict() if self._external_axis is not None else None,
            "robot_hold": self.robot_hold,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "WorkObject":
        axis_data = d.get("external_axis")
        return cls(
            name=d.get("name", "wobj0"),
            plane=frame_from_dict(d["plane"]) if "plane" in d else None,
            external_axis=ExternalAxis.from_dict(axis_data) if axis_data else None,
            user_frame=frame_from_dict(d["user_frame"]) if "user_frame" in d else None,
            robot_hold=d.get("robot_hold", False),
        )

    def __repr__(self) -> str:
        return f"WorkObject(name={self.name!r})"
