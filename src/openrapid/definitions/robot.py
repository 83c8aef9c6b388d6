"""
Robot composition: base robot geometry, tool and external axes.

A :class:`Robot` is the single kinematic chain the code generator resolves
targets against. Derived geometry (TCP plane, six-slot external axis arrays)
is recomputed by pure functions whenever the tool or the external axes are
replaced.
"""

from typing import TYPE_CHECKING, List, Optional, Sequence, Tuple

from compas.datastructures import Mesh
from compas.geometry import Frame, Transformation

from openrapid.core.exceptions import RobotError
from openrapid.core.geometry import transform_mesh
from openrapid.core.logging import get_logger
from openrapid.definitions.external_axis import (
    MAX_EXTERNAL_AXES,
    ExternalAxis,
    ExternalAxisType,
)
from openrapid.definitions.tool import RobotTool

if TYPE_CHECKING:
    from openrapid.kinematics.forward import ForwardKinematicsResult
    from openrapid.kinematics.inverse import IKSolution, InverseKinematicsSolver

logger = get_logger(__name__)

INTERNAL_AXIS_COUNT = 6


def attached_tool_plane(tool: RobotTool, mounting_frame: Frame) -> Frame:
    """TCP plane in world coordinates when ``tool`` is mounted on ``mounting_frame``."""
    return tool.tool_plane.transformed(tool.transformation_to(mounting_frame))


def validate_external_axes(external_axes: Sequence[ExternalAxis], robot_name: str = "") -> None:
    """
    Check the structural limits of an external axis list.

    Raises:
        RobotError: More than six axes or more than one linear axis
    """
    if len(external_axes) > MAX_EXTERNAL_AXES:
        raise RobotError(
            f"At the moment a robot supports at most {MAX_EXTERNAL_AXES} external axes.",
            robot_name=robot_name,
            details={"count": len(external_axes)},
        )

    linear = [axis.name for axis in external_axes if axis.axis_type is ExternalAxisType.LINEAR]
    if len(linear) > 1:
        raise RobotError(
            "At the moment a robot supports only one external linear axis.",
            robot_name=robot_name,
            details={"linear_axes": linear},
        )

    names = [axis.name for axis in external_axes]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise RobotError(
            "External axis names must be unique.",
            robot_name=robot_name,
            details={"duplicates": duplicates},
        )


def external_axis_slots(
    external_axes: Sequence[ExternalAxis],
) -> Tuple[List[Optional[Frame]], List[Optional[Tuple[float, float]]]]:
    """
    Six-slot arrays of axis planes and limits indexed by axis number.

    Unused slots hold ``None``.
    """
    planes: List[Optional[Frame]] = [None] * MAX_EXTERNAL_AXES
    limits: List[Optional[Tuple[float, float]]] = [None] * MAX_EXTERNAL_AXES
    for axis in external_axes:
        planes[axis.axis_number] = axis.axis_plane
        limits[axis.axis_number] = axis.limits
    return planes, limits


class Robot:
    """
    An ABB robot with its tool and external axes.

    Attributes:
        name: Robot model name
        meshes: Base and link meshes followed by the tool mesh
        internal_axis_planes: Six planes whose Z axes are the joint axes at zero
        internal_axis_limits: Six ``(min, max)`` intervals in degrees
        base_plane: Robot base plane
        mounting_frame: Flange frame at zero position
        tool: Robot's own copy of the mounted tool
        external_axes: Attached external axes, numbered in list order

    Example:
        >>> robot = get_robot("IRB2600-12/1.85")
        >>> robot.tool_plane.point
    """

    def __init__(
        self,
        name: str,
        meshes: Sequence[Mesh],
        internal_axis_planes: Sequence[Frame],
        internal_axis_limits: Sequence[Tuple[float, float]],
        base_plane: Frame,
        mounting_frame: Frame,
        tool: Optional[RobotTool] = None,
        external_axes: Optional[Sequence[ExternalAxis]] = None,
    ) -> None:
        if len(internal_axis_planes) != INTERNAL_AXIS_COUNT:
            raise RobotError(
                f"A robot needs exactly {INTERNAL_AXIS_COUNT} internal axis planes.",
                robot_name=name,
                details={"count": len(internal_axis_planes)},
            )
        if len(internal_axis_limits) != INTERNAL_AXIS_COUNT:
            raise RobotError(
                f"A robot needs exactly {INTERNAL_AXIS_COUNT} internal axis limits.",
                robot_name=name,
                details={"count": len(internal_axis_limits)},
            )

        self.name = name
        self._link_meshes = [mesh.copy() for mesh in meshes]
        self.internal_axis_planes = list(internal_axis_planes)
        self.internal_axis_limits = [tuple(limits) for limits in internal_axis_limits]
        self.base_plane = base_plane
        self.mounting_frame = mounting_frame
        self._external_axes: List[ExternalAxis] = []

        self.tool = tool if tool is not None else RobotTool.default()
        self.external_axes = external_axes or []

        logger.debug(
            "robot_created",
            robot=self.name,
            tool=self.tool.name,
            external_axes=[axis.name for axis in self._external_axes],
        )

    # ── Tool ──────────────────────────────────────────────────────────

    @property
    def tool(self) -> RobotTool:
        return self._tool

    @tool.setter
    def tool(self, tool: RobotTool) -> None:
        mounted = tool.copy()
        mounted.transform(mounted.transformation_to(self.mounting_frame))
        self._tool = mounted
        self._update_tool_plane()

    def _update_tool_plane(self) -> None:
        self.tool_plane = self._tool.tool_plane.copy()

    @property
    def meshes(self) -> List[Mesh]:
        """Base and link meshes with the mounted tool mesh appended."""
        return self._link_meshes + [self._tool.mesh]

    @property
    def link_meshes(self) -> List[Mesh]:
        return list(self._link_meshes)

    # ── External axes ─────────────────────────────────────────────────

    @property
    def external_axes(self) -> List[ExternalAxis]:
        return list(self._external_axes)

    @external_axes.setter
    def external_axes(self, external_axes: Sequence[ExternalAxis]) -> None:
        validate_external_axes(external_axes, self.name)
        for number, axis in enumerate(external_axes):
            axis.axis_number = number
        self._external_axes = list(external_axes)
        self.external_axis_planes, self.external_axis_limits = external_axis_slots(self._external_axes)

    def get_external_axis(self, name: str) -> Optional[ExternalAxis]:
        for axis in self._external_axes:
            if axis.name == name:
                return axis
        return None

    @property
    def positioning_axis(self) -> Optional[ExternalAxis]:
        """The external axis that carries the robot base, if any."""
        for axis in self._external_axes:
            if axis.moves_robot:
                return axis
        return None

    @property
    def position_plane(self) -> Frame:
        """Plane the robot stands on: the carrying axis attachment plane or the base plane."""
        axis = self.positioning_axis
        return axis.attachment_plane if axis is not None else self.base_plane

    # ── Geometry ──────────────────────────────────────────────────────

    def transform(self, xform: Transformation) -> None:
        """
        Relocate the robot and everything attached to it.

        External axes that carry the robot move with it; other axes stay put.
        """
        self.base_plane = self.base_plane.transformed(xform)
        self.mounting_frame = self.mounting_frame.transformed(xform)
        self.internal_axis_planes = [plane.transformed(xform) for plane in self.internal_axis_planes]
        self._link_meshes = [transform_mesh(mesh, xform) for mesh in self._link_meshes]
        self._tool.transform(xform)
        self._update_tool_plane()
        for axis in self._external_axes:
            if axis.moves_robot:
                axis.transform(xform)
        self.external_axis_planes, self.external_axis_limits = external_axis_slots(self._external_axes)

    # ── Kinematics ────────────────────────────────────────────────────

    def forward_kinematics(
        self,
        internal_axis_values: Sequence[float],
        external_axis_values: Optional[Sequence[float]] = None,
        pose_meshes: bool = False,
    ) -> "ForwardKinematicsResult":
        """Pose the robot at the given axis values."""
        from openrapid.kinematics.forward import ForwardKinematics

        return ForwardKinematics(self).calculate(internal_axis_values, external_axis_values, pose_meshes)

    def inverse_kinematics(
        self,
        target_plane: Frame,
        configuration: int = 0,
        external_axis_values: Optional[Sequence[float]] = None,
        tool: Optional[RobotTool] = None,
        solver: Optional["InverseKinematicsSolver"] = None,
    ) -> "IKSolution":
        """Axis values that bring the TCP of ``tool`` onto ``target_plane``."""
        from openrapid.kinematics.inverse import AnalyticInverseKinematics

        solver = solver or AnalyticInverseKinematics()
        return solver.solve(self, target_plane, configuration, external_axis_values, tool)

    # ── Validity ──────────────────────────────────────────────────────

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append("Robot name is not set.")
        for number, (low, high) in enumerate(self.internal_axis_limits, start=1):
            if low > high:
                errors.append(f"Limits of axis {number} are reversed.")
        errors.extend(self._tool.validation_errors)
        for axis in self._external_axes:
            errors.extend(axis.validation_errors)
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def __repr__(self) -> str:
        return f"Robot(name={self.name!r}, tool={self._tool.name!r}, external_axes={len(self._external_axes)})"
