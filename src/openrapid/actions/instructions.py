"""
Action variants of a robot program.

Every action is a plain dataclass carrying its own payload and knows how to
render its RAPID lines. The code generator decides, per action kind, which
symbol tables a declaration goes through and in which pass a line is
emitted.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional, Union

from compas.geometry import Frame

from openrapid.core.formatting import format_number, format_values
from openrapid.actions.declarations import (
    DigitalOutput,
    SpeedData,
    Target,
    format_external_values,
)
from openrapid.definitions.external_axis import (
    MAX_EXTERNAL_AXES,
    UNASSIGNED_AXIS_NUMBER,
    UNSET_AXIS_VALUE,
)
from openrapid.definitions.robot import Robot
from openrapid.definitions.tool import RobotTool
from openrapid.definitions.work_object import WorkObject


class MovementType(IntEnum):
    """RAPID move instruction of a :class:`Movement`."""

    MOVE_ABS_J = 0
    MOVE_L = 1
    MOVE_J = 2


class CodeType(Enum):
    """Program section a comment or code line is written to."""

    DECLARATION = "declaration"
    INSTRUCTION = "instruction"


def zone_name(precision: int) -> str:
    """``fine`` for negative precision, ``z<precision>`` otherwise."""
    return "fine" if precision < 0 else f"z{precision}"


def speed_name(speed_data: Optional[SpeedData]) -> str:
    """Name of the speed data a motion uses; a missing one means the controller default."""
    return (speed_data or SpeedData.default()).name


def tool_name(robot_tool: Optional[RobotTool], current_tool: str) -> str:
    """Name of the tool a motion uses; an empty or missing tool means the active one."""
    if robot_tool is None or not robot_tool.name:
        return current_tool
    return robot_tool.name


@dataclass
class Movement:
    """
    Motion to a target.

    Attributes:
        target: Destination, expressed in the work object
        speed_data: Speed of the motion
        movement_type: MoveAbsJ, MoveL or MoveJ
        precision: Zone radius in mm, -1 for ``fine``
        robot_tool: Tool to use, ``None`` for the active tool
        work_object: Work object the target is expressed in
        digital_output: Signal set at the end of the motion
    """

    target: Optional[Target]
    speed_data: Optional[SpeedData] = field(default_factory=SpeedData.default)
    movement_type: MovementType = MovementType.MOVE_ABS_J
    precision: int = 0
    robot_tool: Optional[RobotTool] = None
    work_object: WorkObject = field(default_factory=WorkObject.default)
    digital_output: DigitalOutput = field(default_factory=DigitalOutput.empty)

    def __post_init__(self) -> None:
        self.movement_type = MovementType(self.movement_type)

    @property
    def zone(self) -> str:
        return zone_name(self.precision)

    @property
    def target_variable_name(self) -> str:
        """Declared variable the instruction refers to, empty without a target."""
        if self.target is None:
            return ""
        if self.movement_type is MovementType.MOVE_ABS_J:
            return self.target.joint_target_name
        return self.target.robot_target_name

    @property
    def global_target_plane(self) -> Frame:
        """Target plane in world coordinates with the work object's axis at zero."""
        return self.target.plane.transformed(self.work_object.transformation())

    def external_axis_value(self, robot: Optional[Robot] = None) -> float:
        """
        Current value of the axis coupled to the work object.

        The target's override in the axis slot, zero when unset or unattached.
        """
        axis = self.work_object.external_axis
        if axis is None:
            return 0.0
        number = axis.axis_number
        if robot is not None:
            attached = robot.get_external_axis(axis.name)
            number = attached.axis_number if attached is not None else UNASSIGNED_AXIS_NUMBER
        if number == UNASSIGNED_AXIS_NUMBER:
            return 0.0
        value = self.target.external_axis_values[number]
        return 0.0 if value >= UNSET_AXIS_VALUE else value

    def posed_global_target_plane(self, robot: Optional[Robot] = None) -> Frame:
        """
        Target plane in world coordinates with the coupled axis at its current value.

        Rotational axes rotate the plane about the axis plane Z axis, linear
        axes translate it along that axis.
        """
        plane = self.global_target_plane
        axis = self.work_object.external_axis
        if axis is None:
            return plane
        xform, _ = axis.transformation(self.external_axis_value(robot))
        return plane.transformed(xform)

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if self.target is None:
            errors.append("Target is not set.")
        else:
            errors.extend(self.target.validation_errors)
        if self.speed_data is None:
            errors.append("Speed data is not set.")
        else:
            errors.extend(self.speed_data.validation_errors)
        if self.work_object is None:
            errors.append("Work object is not set.")
        else:
            errors.extend(self.work_object.validation_errors)
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def to_rapid_instructions(self, current_tool: str) -> List[str]:
        """
        Instruction line(s) of the motion.

        A digital output is folded into ``MoveLDO`` / ``MoveJDO``; RAPID has no
        such variant of ``MoveAbsJ`` so the output is set on a second line.
        """
        tool = tool_name(self.robot_tool, current_tool)
        arguments = (
            f"{self.target_variable_name}, {speed_name(self.speed_data)}, {self.zone}, "
            f"{tool}\\WObj:={self.work_object.name}"
        )
        output = self.digital_output

        if self.movement_type is MovementType.MOVE_ABS_J:
            lines = [f"MoveAbsJ {arguments};"]
            if output.is_valid:
                lines.append(output.to_rapid_instruction())
            return lines

        instruction = "MoveL" if self.movement_type is MovementType.MOVE_L else "MoveJ"
        if output.is_valid:
            return [f"{instruction}DO {arguments}, {output.name}, {output.state};"]
        return [f"{instruction} {arguments};"]


@dataclass
class AbsoluteJointMovement:
    """
    Motion to explicit axis values.

    Attributes:
        name: Target name, declared as ``<name>_jm``
        internal_axis_values: Six robot axis values in degrees
        external_axis_values: Up to six external axis values
        speed_data: Speed of the motion
        precision: Zone radius in mm, -1 for ``fine``
        robot_tool: Tool to use, ``None`` for the active tool
    """

    name: str
    internal_axis_values: List[float] = field(default_factory=lambda: [0.0] * 6)
    external_axis_values: List[float] = field(default_factory=list)
    speed_data: Optional[SpeedData] = field(default_factory=SpeedData.default)
    precision: int = 0
    robot_tool: Optional[RobotTool] = None

    @property
    def joint_target_name(self) -> str:
        return f"{self.name}_jm"

    @property
    def zone(self) -> str:
        return zone_name(self.precision)

    @property
    def padded_external_axis_values(self) -> List[float]:
        values = list(self.external_axis_values)[:MAX_EXTERNAL_AXES]
        return values + [UNSET_AXIS_VALUE] * (MAX_EXTERNAL_AXES - len(values))

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if not self.name:
            errors.append("Joint target name is not set.")
        if len(self.internal_axis_values) != 6:
            errors.append("Six internal axis values are required.")
        if len(self.external_axis_values) > MAX_EXTERNAL_AXES:
            errors.append(f"At most {MAX_EXTERNAL_AXES} external axis values are allowed.")
        if self.speed_data is None:
            errors.append("Speed data is not set.")
        else:
            errors.extend(self.speed_data.validation_errors)
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def to_rapid_declaration(self, decimals: int = 2) -> str:
        return (
            f"CONST jointtarget {self.joint_target_name} := "
            f"[[{format_values(self.internal_axis_values, decimals)}], "
            f"[{format_external_values(self.padded_external_axis_values, decimals)}]];"
        )

    def to_rapid_instructions(self, current_tool: str) -> List[str]:
        tool = tool_name(self.robot_tool, current_tool)
        return [f"MoveAbsJ {self.joint_target_name}, {speed_name(self.speed_data)}, {self.zone}, {tool};"]


@dataclass
class Comment:
    """Comment line(s) in the declarations or the procedure body."""

    text: str
    code_type: CodeType = CodeType.INSTRUCTION

    def to_rapid_lines(self) -> List[str]:
        return [f"! {line}" for line in self.text.splitlines() or [""]]


@dataclass
class CodeLine:
    """Raw RAPID code passed through unchanged."""

    code: str
    code_type: CodeType = CodeType.INSTRUCTION

    def to_rapid_lines(self) -> List[str]:
        return [self.code]


@dataclass
class WaitTime:
    """Fixed delay in seconds."""

    duration: float

    def to_rapid_instructions(self) -> List[str]:
        return [f"WaitTime {format_number(self.duration, 3)};"]


@dataclass
class WaitDI:
    """Block until a digital input reaches a value."""

    name: str
    value: bool = True

    @property
    def validation_errors(self) -> List[str]:
        return [] if self.name else ["Digital input name is not set."]

    def to_rapid_instructions(self) -> List[str]:
        return [f"WaitDI {self.name}, {1 if self.value else 0};"]


@dataclass
class OverrideRobotTool:
    """Change the active tool for the motions that follow."""

    robot_tool: RobotTool

    @property
    def tool_name(self) -> str:
        return self.robot_tool.name

    def to_rapid_instructions(self) -> List[str]:
        return [f"! Default Robot Tool changed to {self.robot_tool.name}."]


@dataclass
class AutoAxisConfig:
    """Switch automatic joint configuration selection on or off."""

    is_active: bool = True

    def to_rapid_instructions(self) -> List[str]:
        state = "Off" if self.is_active else "On"
        return [f"ConfJ\\{state};", f"ConfL\\{state};"]


Action = Union[
    Movement,
    AbsoluteJointMovement,
    Comment,
    CodeLine,
    WaitTime,
    WaitDI,
    DigitalOutput,
    OverrideRobotTool,
    AutoAxisConfig,
]

ACTION_TYPES = (
    Movement,
    AbsoluteJointMovement,
    Comment,
    CodeLine,
    WaitTime,
    WaitDI,
    DigitalOutput,
    OverrideRobotTool,
    AutoAxisConfig,
)
