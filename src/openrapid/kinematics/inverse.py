"""
Inverse kinematics solvers for ABB robots with external axes.

Two solvers share one interface:

- :class:`AnalyticInverseKinematics` solves the spherical-wrist geometry of
  the preset ABB robots in closed form. The joint configuration tag (0-7)
  selects one of the eight solutions.
- :class:`NumericalInverseKinematics` refines a solution with scipy's
  optimizers, for robots whose geometry deviates from the analytic model.

External axis values are resolved the same way by both: a linear axis that
carries the robot is moved to the position closest to the target unless the
target overrides it; every other axis takes its override value or zero.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

import numpy as np
from compas.geometry import Frame, Transformation
from scipy.optimize import minimize

from openrapid.core.logging import get_logger
from openrapid.definitions.external_axis import (
    MAX_EXTERNAL_AXES,
    UNSET_AXIS_VALUE,
    ExternalAxisType,
    is_unset,
)
from openrapid.definitions.robot import Robot
from openrapid.definitions.tool import RobotTool
from openrapid.kinematics.forward import (
    ForwardKinematics,
    carriage_transformation,
    pad_external_values,
)

logger = get_logger(__name__)


@dataclass
class IKSolution:
    """
    Result of an inverse kinematics calculation.

    Attributes:
        internal_axis_values: Six joint values in degrees
        external_axis_values: Six external axis values, unset slots hold the sentinel
        configuration: Configuration tag the solution was computed for
        errors: Out of reach and out of range messages
    """

    internal_axis_values: List[float]
    external_axis_values: List[float] = field(
        default_factory=lambda: [UNSET_AXIS_VALUE] * MAX_EXTERNAL_AXES
    )
    configuration: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def in_limits(self) -> bool:
        return not self.errors


def flange_target(tool: RobotTool, target_plane: Frame) -> Frame:
    """Mounting frame pose that puts the TCP of ``tool`` on ``target_plane``."""
    xform = Transformation.from_frame_to_frame(tool.tool_plane, target_plane)
    return tool.attachment_plane.transformed(xform)


def _matrix(frame: Frame) -> np.ndarray:
    return np.array(Transformation.from_frame(frame).matrix, dtype=float)


def _rotation(axis: np.ndarray, angle: float) -> np.ndarray:
    axis = axis / np.linalg.norm(axis)
    k = np.array([[0, -axis[2], axis[1]], [axis[2], 0, -axis[0]], [-axis[1], axis[0], 0]])
    return np.eye(3) + math.sin(angle) * k + (1 - math.cos(angle)) * (k @ k)


def _wrap(angle: float) -> float:
    """Wrap an angle in radians to (-pi, pi]."""
    wrapped = math.atan2(math.sin(angle), math.cos(angle))
    return math.pi if math.isclose(wrapped, -math.pi) else wrapped


class InverseKinematicsSolver(ABC):
    """Interface of a pluggable inverse kinematics calculation."""

    @abstractmethod
    def solve(
        self,
        robot: Robot,
        target_plane: Frame,
        configuration: int = 0,
        external_axis_values: Optional[Sequence[float]] = None,
        tool: Optional[RobotTool] = None,
    ) -> IKSolution:
        """
        Compute axis values that bring the TCP onto ``target_plane``.

        Args:
            robot: Robot to solve for
            target_plane: TCP target in world coordinates
            configuration: Joint configuration tag (0-7)
            external_axis_values: Override values per external axis slot
            tool: Tool to use instead of the robot's own tool

        Returns:
            IKSolution
        """
        ...

    def solve_external_axes(
        self,
        robot: Robot,
        target_plane: Frame,
        external_axis_values: Optional[Sequence[float]] = None,
    ) -> Tuple[List[float], List[str]]:
        """
        External axis values for a target.

        Returns:
            Tuple of (six slot values, out of range messages)
        """
        overrides = pad_external_values(external_axis_values)
        values = [UNSET_AXIS_VALUE] * MAX_EXTERNAL_AXES
        errors = []
        for axis in robot.external_axes:
            override = overrides[axis.axis_number]
            if not is_unset(override):
                value = override
            elif axis.moves_robot and axis.axis_type is ExternalAxisType.LINEAR:
                value = axis.closest_value(target_plane.point)
            else:
                value = 0.0
            values[axis.axis_number] = value
            if not axis.in_limits(value):
                errors.append(f"The position of external axis {axis.axis_logic} is not in range.")
        return values, errors

    @staticmethod
    def check_internal_limits(robot: Robot, values: Sequence[float]) -> List[str]:
        errors = []
        for number, (value, (low, high)) in enumerate(zip(values, robot.internal_axis_limits), start=1):
            if not low <= value <= high:
                errors.append(f"The position of robot axis {number} is not in range.")
        return errors


class AnalyticInverseKinematics(InverseKinematicsSolver):
    """
    Closed-form inverse kinematics for ABB robots with a spherical wrist.

    The model is read from the robot's zero-position axis planes: axis 1
    vertical, axes 2 and 3 parallel, axes 4 and 6 coincident and
    perpendicular to axis 5, all intersecting the arm plane. The
    configuration tag selects the solution bitwise:

    - bit 2: axis 1 turned to the back
    - bit 1: elbow down
    - bit 0: wrist flipped (negative axis 5)
    """

    def solve(
        self,
        robot: Robot,
        target_plane: Frame,
        configuration: int = 0,
        external_axis_values: Optional[Sequence[float]] = None,
        tool: Optional[RobotTool] = None,
    ) -> IKSolution:
        tool = tool if tool is not None else robot.tool
        external, errors = self.solve_external_axes(robot, target_plane, external_axis_values)

        internal, reach_errors = self.solve_internal(
            robot, flange_target(tool, target_plane), external, configuration
        )
        errors = reach_errors + self.check_internal_limits(robot, internal) + errors

        if errors:
            logger.debug("ik_solution_out_of_limits", robot=robot.name, errors=errors)

        return IKSolution(
            internal_axis_values=internal,
            external_axis_values=external,
            configuration=configuration,
            errors=errors,
        )

    def solve_internal(
        self,
        robot: Robot,
        flange_plane: Frame,
        external_axis_values: Sequence[float],
        configuration: int = 0,
    ) -> Tuple[List[float], List[str]]:
        """
        Joint values (degrees) that put the mounting frame on ``flange_plane``.

        Returns:
            Tuple of (six joint values, reachability messages)
        """
        errors = []
        back = bool(configuration & 4)
        elbow_down = bool(configuration & 2)
        wrist_flip = bool(configuration & 1)

        # Work in the robot base frame at the current carriage position
        to_base = np.linalg.inv(_matrix(robot.base_plane))
        carriage = np.array(carriage_transformation(robot, external_axis_values).matrix, dtype=float)
        target = to_base @ np.linalg.inv(carriage) @ _matrix(flange_plane)
        planes = [to_base @ _matrix(plane) for plane in robot.internal_axis_planes]
        mount = to_base @ _matrix(robot.mounting_frame)
        origins = [plane[:3, 3] for plane in planes]
        axes = [plane[:3, 2] for plane in planes]

        # Wrist center
        wrist_in_mount = np.linalg.inv(mount) @ np.append(origins[4], 1.0)
        wrist = (target @ wrist_in_mount)[:3]

        # Axis 1
        relative = wrist - origins[0]
        theta1 = math.atan2(relative[1], relative[0])
        if back:
            theta1 = _wrap(theta1 + math.pi)
        in_arm_plane = _rotation(axes[0], -theta1) @ relative + origins[0]

        # Axes 2 and 3 in the arm plane (x, z)
        shoulder = origins[1]
        lower = origins[2] - origins[1]
        upper = origins[4] - origins[2]
        lower_length = math.hypot(lower[0], lower[2])
        upper_length = math.hypot(upper[0], upper[2])
        lower_angle = math.atan2(lower[2], lower[0])
        upper_angle = math.atan2(upper[2], upper[0])

        u = in_arm_plane[0] - shoulder[0]
        v = in_arm_plane[2] - shoulder[2]
        distance_sq = u * u + v * v
        cos_gamma = (distance_sq - lower_length**2 - upper_length**2) / (2 * lower_length * upper_length)
        if abs(cos_gamma) > 1.0:
            errors.append("The target is out of reach.")
            cos_gamma = max(-1.0, min(1.0, cos_gamma))
        gamma = math.acos(cos_gamma)
        if not elbow_down:
            gamma = -gamma

        theta3 = upper_angle - lower_angle - gamma
        beta = math.atan2(v, u) - math.atan2(
            upper_length * math.sin(gamma), lower_length + upper_length * math.cos(gamma)
        )
        theta2 = lower_angle - beta

        # Wrist: R4 R5 R6 expressed in the (axis 4, axis 5, axis 4 x axis 5) basis
        r123 = _rotation(axes[0], theta1) @ _rotation(axes[1], theta2) @ _rotation(axes[2], theta3)
        total = target[:3, :3] @ mount[:3, :3].T
        basis = np.column_stack([axes[3], axes[4], np.cross(axes[3], axes[4])])
        m = basis.T @ r123.T @ total @ basis

        sin_theta5 = math.hypot(m[0, 1], m[0, 2])
        theta5 = math.atan2(sin_theta5, m[0, 0])
        if sin_theta5 > 1e-9:
            theta4 = math.atan2(m[1, 0], -m[2, 0])
            theta6 = math.atan2(m[0, 1], m[0, 2])
        elif m[0, 0] > 0:
            theta4 = 0.0
            theta6 = math.atan2(m[2, 1], m[1, 1])
        else:
            theta4 = 0.0
            theta6 = -math.atan2(m[2, 1], m[1, 1])

        if wrist_flip:
            theta4 = theta4 + math.pi
            theta5 = -theta5
            theta6 = theta6 + math.pi

        values = [theta1, theta2, theta3, theta4, theta5, theta6]
        return [math.degrees(_wrap(value)) for value in values], errors


class NumericalInverseKinematics(InverseKinematicsSolver):
    """
    Inverse kinematics using numerical optimization.

    The analytic solution for the requested configuration seeds a bounded
    scipy optimization of the TCP position and orientation error.
    """

    def __init__(
        self,
        method: str = "SLSQP",
        max_iterations: int = 200,
        tolerance: float = 1e-6,
        orientation_weight: float = 100.0,
    ) -> None:
        """
        Initialize IK solver.

        Args:
            method: scipy.optimize.minimize method ('SLSQP', 'L-BFGS-B', 'trust-constr')
            max_iterations: Maximum optimization iterations
            tolerance: Optimizer tolerance
            orientation_weight: mm of position error equivalent to one radian
        """
        self.method = method
        self.max_iterations = max_iterations
        self.tolerance = tolerance
        self.orientation_weight = orientation_weight
        self.seed_solver = AnalyticInverseKinematics()

    def solve(
        self,
        robot: Robot,
        target_plane: Frame,
        configuration: int = 0,
        external_axis_values: Optional[Sequence[float]] = None,
        tool: Optional[RobotTool] = None,
    ) -> IKSolution:
        seed = self.seed_solver.solve(robot, target_plane, configuration, external_axis_values, tool)
        external = seed.external_axis_values
        fk = ForwardKinematics(robot)
        goal = _matrix(flange_target(tool if tool is not None else robot.tool, target_plane))

        def objective(values: np.ndarray) -> float:
            current = _matrix(fk.calculate(list(values), external).flange_plane)
            position_error = np.linalg.norm(goal[:3, 3] - current[:3, 3])
            rotation_error = goal[:3, :3].T @ current[:3, :3]
            angle = math.acos(max(-1.0, min(1.0, (np.trace(rotation_error) - 1) / 2)))
            return position_error + self.orientation_weight * angle

        bounds = [tuple(limits) for limits in robot.internal_axis_limits]
        x0 = np.clip(seed.internal_axis_values, [b[0] for b in bounds], [b[1] for b in bounds])
        result = minimize(
            objective,
            x0=x0,
            method=self.method,
            bounds=bounds,
            tol=self.tolerance,
            options={"maxiter": self.max_iterations},
        )

        # Keep the seed when the optimizer ends on a worse point
        best = result.x if objective(result.x) <= objective(x0) else x0
        internal = [float(v) for v in best]
        errors = self.check_internal_limits(robot, internal)
        errors += [e for e in seed.errors if "external" in e]
        if objective(best) > 1.0:
            errors.insert(0, "The target is out of reach.")

        logger.debug(
            "numerical_ik_finished",
            robot=robot.name,
            success=bool(result.success),
            iterations=int(result.nit),
            error=float(result.fun),
        )
        return IKSolution(
            internal_axis_values=internal,
            external_axis_values=external,
            configuration=configuration,
            errors=errors,
        )
