"""
Forward kinematics for ABB robots with external axes.

Poses the robot chain for a set of internal axis values (degrees) and
external axis values (mm or degrees) and reports values that are out of
range or undefined.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from compas.datastructures import Mesh
from compas.geometry import Frame, Transformation

from openrapid.core.exceptions import KinematicsError
from openrapid.core.geometry import rotation_about_plane, transform_mesh
from openrapid.definitions.external_axis import (
    MAX_EXTERNAL_AXES,
    UNSET_AXIS_VALUE,
    is_unset,
)
from openrapid.definitions.robot import INTERNAL_AXIS_COUNT, Robot


def pad_external_values(values: Optional[Sequence[float]]) -> List[float]:
    """Six external axis values, missing slots filled with the unset sentinel."""
    padded = [float(v) for v in (values or [])][:MAX_EXTERNAL_AXES]
    return padded + [UNSET_AXIS_VALUE] * (MAX_EXTERNAL_AXES - len(padded))


def carriage_transformation(robot: Robot, external_axis_values: Sequence[float]) -> Transformation:
    """Motion of the robot base caused by the axis that carries it (clamped)."""
    axis = robot.positioning_axis
    if axis is None:
        return Transformation()
    return axis.transformation_clamped(external_axis_values[axis.axis_number])


@dataclass
class ForwardKinematicsResult:
    """
    Posed robot.

    Attributes:
        tcp_plane: Tool center point plane in world coordinates
        flange_plane: Mounting frame in world coordinates
        position_plane: Robot base plane after moving the carrying axis
        posed_internal_axis_planes: Joint planes after rotation
        posed_meshes: Robot meshes (links then tool), empty unless requested
        posed_external_axis_meshes: Per external axis ``[base, link]`` meshes
        errors: Out of range or undefined axis values
    """

    tcp_plane: Frame
    flange_plane: Frame
    position_plane: Frame
    posed_internal_axis_planes: List[Frame]
    posed_meshes: List[Mesh] = field(default_factory=list)
    posed_external_axis_meshes: List[List[Mesh]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def in_limits(self) -> bool:
        return not self.errors


class ForwardKinematics:
    """
    Forward kinematics of a :class:`Robot`.

    Each joint rotates about its axis plane after that plane has been moved
    by all preceding joints, so the values follow the ABB joint convention.

    Example:
        >>> fk = ForwardKinematics(robot)
        >>> result = fk.calculate([0, 0, 0, 0, 90, 0])
        >>> result.tcp_plane
    """

    def __init__(self, robot: Robot) -> None:
        self.robot = robot

    def check_limits(
        self, internal_axis_values: Sequence[float], external_axis_values: Sequence[float]
    ) -> List[str]:
        """Human-readable messages for every out of range or undefined axis value."""
        errors = []
        for number, (value, (low, high)) in enumerate(
            zip(internal_axis_values, self.robot.internal_axis_limits), start=1
        ):
            if not low <= value <= high:
                errors.append(f"The position of robot axis {number} is not in range.")

        for axis in self.robot.external_axes:
            value = external_axis_values[axis.axis_number]
            if is_unset(value):
                errors.append(f"The position of external axis {axis.axis_logic} is not defined (9E9).")
            elif not axis.in_limits(value):
                errors.append(f"The position of external axis {axis.axis_logic} is not in range.")
        return errors

    def calculate(
        self,
        internal_axis_values: Sequence[float],
        external_axis_values: Optional[Sequence[float]] = None,
        pose_meshes: bool = False,
    ) -> ForwardKinematicsResult:
        """
        Pose the robot.

        Args:
            internal_axis_values: Six joint values in degrees
            external_axis_values: Up to six external axis values indexed by axis number
            pose_meshes: Also transform the robot and external axis meshes

        Returns:
            ForwardKinematicsResult

        Raises:
            KinematicsError: If the number of internal axis values is not six
        """
        internal = [float(v) for v in internal_axis_values]
        if len(internal) != INTERNAL_AXIS_COUNT:
            raise KinematicsError(
                f"Expected {INTERNAL_AXIS_COUNT} internal axis values, got {len(internal)}",
                details={"values": internal},
            )
        external = pad_external_values(external_axis_values)
        robot = self.robot

        carriage = carriage_transformation(robot, external)
        link_transformations = [Transformation()]
        cumulative = Transformation()
        posed_planes = []
        for plane, value in zip(robot.internal_axis_planes, internal):
            rotation = rotation_about_plane(plane.transformed(cumulative), math.radians(value))
            cumulative = rotation * cumulative
            link_transformations.append(cumulative)
            posed_planes.append(plane.transformed(carriage * cumulative))

        total = carriage * cumulative
        result = ForwardKinematicsResult(
            tcp_plane=robot.tool_plane.transformed(total),
            flange_plane=robot.mounting_frame.transformed(total),
            position_plane=robot.base_plane.transformed(carriage),
            posed_internal_axis_planes=posed_planes,
            errors=self.check_limits(internal, external),
        )

        if pose_meshes:
            for index, mesh in enumerate(robot.link_meshes):
                link = link_transformations[min(index, INTERNAL_AXIS_COUNT)]
                result.posed_meshes.append(transform_mesh(mesh, carriage * link))
            result.posed_meshes.append(transform_mesh(robot.tool.mesh, total))
            result.posed_external_axis_meshes = [
                axis.pose_meshes(external[axis.axis_number]) for axis in robot.external_axes
            ]

        return result
