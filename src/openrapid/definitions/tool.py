"""
Robot tool definition and its RAPID ``tooldata`` declaration.
"""

from typing import Any, List, Optional

from compas.datastructures import Mesh
from compas.geometry import Frame, Point, Quaternion, Transformation

from openrapid.core.formatting import format_bool, format_number
from openrapid.core.geometry import (
    frame_from_dict,
    frame_in_frame,
    frame_quaternion,
    frame_to_dict,
    plane_to_plane,
    transform_mesh,
)
from openrapid.definitions.load_data import LoadData


def tool_position(attachment_plane: Frame, tool_plane: Frame) -> Point:
    """TCP position relative to the attachment plane."""
    return frame_in_frame(tool_plane, attachment_plane).point


def tool_orientation(attachment_plane: Frame, tool_plane: Frame) -> Quaternion:
    """TCP orientation relative to the attachment plane."""
    return frame_quaternion(frame_in_frame(tool_plane, attachment_plane))


class RobotTool:
    """
    A tool mounted on the robot flange.

    The tool is modelled in its own coordinates: ``attachment_plane`` is the
    plane that is placed on the robot's mounting frame and ``tool_plane`` is
    the tool center point. Position and orientation of the TCP relative to
    the attachment plane are recomputed whenever either plane changes.

    Example:
        >>> tool = RobotTool("torch", tool_plane=Frame([0, 0, 150], [1, 0, 0], [0, 1, 0]))
        >>> list(tool.position)
        [0.0, 0.0, 150.0]
    """

    def __init__(
        self,
        name: str = "tool0",
        mesh: Optional[Mesh] = None,
        attachment_plane: Optional[Frame] = None,
        tool_plane: Optional[Frame] = None,
        load_data: Optional[LoadData] = None,
        robot_hold: bool = True,
    ) -> None:
        self.name = name
        self.mesh = mesh if mesh is not None else Mesh()
        self.load_data = load_data if load_data is not None else LoadData(name=f"{name}_load")
        self.robot_hold = robot_hold
        self._attachment_plane = attachment_plane if attachment_plane is not None else Frame.worldXY()
        self._tool_plane = tool_plane if tool_plane is not None else Frame.worldXY()
        self._update()

    @classmethod
    def default(cls) -> "RobotTool":
        """The controller's built-in ``tool0``."""
        return cls(name="tool0", load_data=LoadData())

    def _update(self) -> None:
        self.position = tool_position(self._attachment_plane, self._tool_plane)
        self.orientation = tool_orientation(self._attachment_plane, self._tool_plane)

    @property
    def attachment_plane(self) -> Frame:
        return self._attachment_plane

    @attachment_plane.setter
    def attachment_plane(self, plane: Frame) -> None:
        self._attachment_plane = plane
        self._update()

    @property
    def tool_plane(self) -> Frame:
        return self._tool_plane

    @tool_plane.setter
    def tool_plane(self, plane: Frame) -> None:
        self._tool_plane = plane
        self._update()

    def transform(self, xform: Transformation) -> None:
        """Move the tool geometry; the relative TCP pose is unchanged."""
        self._attachment_plane = self._attachment_plane.transformed(xform)
        self._tool_plane = self._tool_plane.transformed(xform)
        self.mesh = transform_mesh(self.mesh, xform)
        self._update()

    def copy(self) -> "RobotTool":
        return RobotTool(
            name=self.name,
            mesh=self.mesh.copy(),
            attachment_plane=self._attachment_plane.copy(),
            tool_plane=self._tool_plane.copy(),
            load_data=LoadData.from_dict(self.load_data.to_dict()),
            robot_hold=self.robot_hold,
        )

    def transformation_to(self, mounting_frame: Frame) -> Transformation:
        """Transformation placing the attachment plane on ``mounting_frame``."""
        return plane_to_plane(self._attachment_plane, mounting_frame)

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append("Tool name is not set.")
        errors.extend(self.load_data.validation_errors)
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def to_rapid_declaration(self) -> str:
        """
        RAPID ``tooldata`` declaration.

        Returns:
            ``PERS tooldata name := [robhold, [[x, y, z], [q1, q2, q3, q4]], loaddata];``
        """
        pos = ", ".join(format_number(v, 3) for v in self.position)
        q = self.orientation
        quat = ", ".join(format_number(v, 6) for v in (q.w, q.x, q.y, q.z))
        return (
            f"PERS tooldata {self.name} := [{format_bool(self.robot_hold)}, "
            f"[[{pos}], [{quat}]], {self.load_data.to_rapid_value()}];"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "attachment_plane": frame_to_dict(self._attachment_plane),
            "tool_plane": frame_to_dict(self._tool_plane),
            "load_data": self.load_data.to_dict(),
            "robot_hold": self.robot_hold,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "RobotTool":
        return cls(
            name=d.get("name", "tool0"),
            attachment_plane=frame_from_dict(d["attachment_plane"]) if "attachment_plane" in d else None,
            tool_plane=frame_from_dict(d["tool_plane"]) if "tool_plane" in d else None,
            load_data=LoadData.from_dict(d["load_data"]) if "load_data" in d else None,
            robot_hold=d.get("robot_hold", True),
        )

    def __repr__(self) -> str:
        return f"RobotTool(name={self.name!r})"
