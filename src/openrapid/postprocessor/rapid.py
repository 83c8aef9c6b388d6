"""
ABB RAPID code generator - turns an action list into ``main_T.mod`` and
``BASE.sys`` module text.

Generation walks the action list twice. The declare pass fills the
declaration block (speed data, joint and robot targets, declaration-type
comments and code lines) and the emit pass fills the body of ``PROC main``.
Targets are declared once per variable name; the first declaration wins.
"""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from openrapid import __version__
from openrapid.core.exceptions import GenerationError
from openrapid.core.logging import generation_context, get_logger
from openrapid.actions.instructions import (
    ACTION_TYPES,
    AbsoluteJointMovement,
    Action,
    AutoAxisConfig,
    CodeLine,
    CodeType,
    Comment,
    Movement,
    MovementType,
    OverrideRobotTool,
    WaitDI,
    WaitTime,
)
from openrapid.actions.declarations import DigitalOutput
from openrapid.definitions.robot import Robot
from openrapid.definitions.tool import RobotTool
from openrapid.definitions.work_object import WorkObject
from openrapid.kinematics.inverse import AnalyticInverseKinematics, InverseKinematicsSolver
from openrapid.postprocessor.base import GenerationContext, GeneratorConfig

logger = get_logger(__name__)

SYSTEM_TOOL = "tool0"
SYSTEM_WORK_OBJECT = "wobj0"

BASE_SYSTEM_DATA = [
    "PERS tooldata tool0 := [TRUE, [[0, 0, 0], [1, 0, 0, 0]], "
    "[0.001, [0, 0, 0.001], [1, 0, 0, 0], 0, 0, 0]];",
    'PERS wobjdata wobj0 := [FALSE, TRUE, "", [[0, 0, 0], [1, 0, 0, 0]], '
    "[[0, 0, 0], [1, 0, 0, 0]]];",
    "PERS loaddata load0 := [0.001, [0, 0, 0.001], [1, 0, 0, 0], 0, 0, 0];",
]


def collect_tools(actions: Iterable[Action]) -> List[RobotTool]:
    """Distinct tools referenced by motions and tool overrides, in order of appearance."""
    tools: Dict[str, RobotTool] = {}
    for action in actions:
        match action:
            case Movement(robot_tool=RobotTool() as tool) | AbsoluteJointMovement(
                robot_tool=RobotTool() as tool
            ) | OverrideRobotTool(robot_tool=tool):
                if tool.name:
                    tools.setdefault(tool.name, tool)
    return list(tools.values())


def collect_work_objects(actions: Iterable[Action]) -> List[WorkObject]:
    """Distinct work objects referenced by motions, in order of appearance."""
    work_objects: Dict[str, WorkObject] = {}
    for action in actions:
        if isinstance(action, Movement) and action.work_object is not None:
            work_objects.setdefault(action.work_object.name, action.work_object)
    return list(work_objects.values())


class RAPIDGenerator:
    """
    Generates RAPID modules for one robot.

    Args:
        robot: Robot the program runs on; its tool is the default tool
        inverse_kinematics: Solver for the axis values of each target
            (default: :class:`AnalyticInverseKinematics`)
        config: Module name, file names and number formatting

    Example:
        >>> generator = RAPIDGenerator(get_robot("IRB2600-12/1.85"))
        >>> code = generator.create_rapid_code(actions)
        >>> generator.write("output/")
    """

    def __init__(
        self,
        robot: Robot,
        inverse_kinematics: Optional[InverseKinematicsSolver] = None,
        config: Optional[GeneratorConfig] = None,
    ):
        self.robot = robot
        self.inverse_kinematics = inverse_kinematics or AnalyticInverseKinematics()
        self.config = config or GeneratorConfig()
        self._rapid_code: Optional[str] = None
        self._base_code: Optional[str] = None
        self._first_movement_is_move_abs = False

    @property
    def rapid_code(self) -> Optional[str]:
        return self._rapid_code

    @property
    def base_code(self) -> Optional[str]:
        return self._base_code

    @property
    def first_movement_is_move_abs(self) -> bool:
        return self._first_movement_is_move_abs

    # ------------------------------------------------------------------
    # Program module
    # ------------------------------------------------------------------

    def create_rapid_code(self, actions: Sequence[Action]) -> str:
        """
        Generate the program module.

        Args:
            actions: Ordered action list

        Returns:
            Module text

        Raises:
            GenerationError: If the list contains an object that is not an action
        """
        actions = list(actions)
        for index, action in enumerate(actions):
            if not isinstance(action, ACTION_TYPES):
                raise GenerationError(
                    f"Unsupported action at index {index}: {type(action).__name__}",
                    details={"index": index},
                )

        ctx = GenerationContext(default_tool=self.robot.tool)

        with generation_context(self.config.module_name, self.robot.name):
            ctx.start_pass()
            for action in actions:
                self._declare(action, ctx)

            ctx.start_pass()
            for action in actions:
                self._emit(action, ctx)

            self._first_movement_is_move_abs = bool(ctx.first_movement_is_move_abs)
            self._rapid_code = self._assemble(ctx)

            logger.info(
                "rapid_code_generated",
                actions=len(actions),
                declarations=len(ctx.declarations),
                instructions=len(ctx.instructions),
            )
        return self._rapid_code

    def _declare(self, action: Action, ctx: GenerationContext) -> None:
        match action:
            case Movement(target=None):
                logger.warning("motion_without_target", movement_type=action.movement_type.name)
            case Movement():
                ctx.declare_speed_data(action.speed_data)
                self._declare_target(action, ctx)
            case AbsoluteJointMovement():
                ctx.declare_speed_data(action.speed_data)
                ctx.declare(
                    ctx.targets,
                    action.joint_target_name,
                    action,
                    [action.to_rapid_declaration(self.config.position_decimals)],
                )
            case Comment(code_type=CodeType.DECLARATION) | CodeLine(code_type=CodeType.DECLARATION):
                ctx.declarations.extend(action.to_rapid_lines())
            case OverrideRobotTool():
                ctx.current_tool = action.robot_tool

    def _declare_target(self, movement: Movement, ctx: GenerationContext) -> None:
        target = movement.target
        name = movement.target_variable_name
        if name in ctx.targets:
            ctx.declare(ctx.targets, name, target, [])
            return

        solution = self.inverse_kinematics.solve(
            self.robot,
            movement.posed_global_target_plane(self.robot),
            configuration=target.axis_config,
            external_axis_values=target.external_axis_values,
            tool=ctx.tool_for(movement.robot_tool),
        )
        if solution.errors:
            logger.warning("target_not_reachable", target=target.name, errors=solution.errors)

        if movement.movement_type is MovementType.MOVE_ABS_J:
            line = target.jointtarget_declaration(
                solution.internal_axis_values,
                solution.external_axis_values,
                self.config.position_decimals,
            )
        else:
            line = target.robtarget_declaration(
                solution.external_axis_values,
                self.config.position_decimals,
                self.config.quaternion_decimals,
            )
        ctx.declare(ctx.targets, name, target, [line])

    def _emit(self, action: Action, ctx: GenerationContext) -> None:
        match action:
            case Movement(target=None):
                pass  # skipped, warned in the declare pass
            case Movement():
                ctx.record_motion(action.movement_type is MovementType.MOVE_ABS_J)
                ctx.instructions.extend(action.to_rapid_instructions(ctx.current_tool_name))
            case AbsoluteJointMovement():
                ctx.record_motion(True)
                ctx.instructions.extend(action.to_rapid_instructions(ctx.current_tool_name))
            case Comment(code_type=CodeType.INSTRUCTION) | CodeLine(code_type=CodeType.INSTRUCTION):
                ctx.instructions.extend(action.to_rapid_lines())
            case OverrideRobotTool():
                ctx.current_tool = action.robot_tool
                ctx.instructions.extend(action.to_rapid_instructions())
            case DigitalOutput():
                if action.is_valid:
                    ctx.instructions.append(action.to_rapid_instruction())
            case WaitTime() | WaitDI() | AutoAxisConfig():
                ctx.instructions.extend(action.to_rapid_instructions())

    def _assemble(self, ctx: GenerationContext) -> str:
        indent = self.config.indent
        lines = [
            f"MODULE {self.config.module_name}",
            f"{indent}! Generated by openrapid {__version__}",
        ]
        lines.extend(f"{indent}{line}" for line in ctx.declarations)
        lines.append("")
        lines.append(f"{indent}PROC main()")
        lines.extend(f"{indent}{indent}{line}" for line in ctx.instructions)
        lines.append(f"{indent}ENDPROC")
        lines.append("")
        lines.append("ENDMODULE")
        return self.config.line_ending.join(lines) + self.config.line_ending

    # ------------------------------------------------------------------
    # BASE system module
    # ------------------------------------------------------------------

    def create_base_code(
        self,
        tools: Optional[Sequence[RobotTool]] = None,
        work_objects: Optional[Sequence[WorkObject]] = None,
        custom_code: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Generate the BASE system module.

        The system data ``tool0``, ``wobj0`` and ``load0`` are always
        written; user tools and work objects with those names are skipped.

        Args:
            tools: User defined tools (default: the robot's tool)
            work_objects: User defined work objects
            custom_code: Extra declaration lines

        Returns:
            Module text
        """
        indent = self.config.indent
        tools = list(tools) if tools is not None else [self.robot.tool]

        tool_lines = _unique_declarations(
            (tool.name, tool.to_rapid_declaration()) for tool in tools if tool.name != SYSTEM_TOOL
        )
        wobj_lines = _unique_declarations(
            (wobj.name, wobj.to_rapid_declaration())
            for wobj in work_objects or []
            if wobj.name != SYSTEM_WORK_OBJECT
        )

        lines = [
            "MODULE BASE (SYSMODULE, NOSTEPIN, VIEWONLY)",
            "",
            f"{indent}! System module with basic predefined system data",
            f"{indent}!************************************************",
            "",
            f"{indent}! System data tool0, wobj0 and load0",
            f"{indent}! Do not translate or delete tool0, wobj0, load0",
        ]
        lines.extend(f"{indent}{line}" for line in BASE_SYSTEM_DATA)

        for banner, section in (
            ("User defined tooldata", tool_lines),
            ("User defined wobjdata", wobj_lines),
            ("User defined code lines", list(custom_code or [])),
        ):
            lines.append("")
            lines.append(f"{indent}! {banner}")
            lines.extend(f"{indent}{line}" for line in section)

        lines.append("")
        lines.append("ENDMODULE")

        self._base_code = self.config.line_ending.join(lines) + self.config.line_ending
        logger.info("base_code_generated", tools=len(tool_lines), work_objects=len(wobj_lines))
        return self._base_code

    # ------------------------------------------------------------------
    # Output files
    # ------------------------------------------------------------------

    def write_rapid_file(self, path: str | Path) -> Path:
        """
        Write the generated program module.

        Raises:
            GenerationError: If no program has been generated or the file cannot be written
        """
        if self._rapid_code is None:
            raise GenerationError("No RAPID program has been generated")
        return self._write(Path(path), self._rapid_code)

    def write_base_file(self, path: str | Path) -> Path:
        """
        Write the generated BASE module.

        Raises:
            GenerationError: If no BASE module has been generated or the file cannot be written
        """
        if self._base_code is None:
            raise GenerationError("No BASE module has been generated")
        return self._write(Path(path), self._base_code)

    def write(self, directory: str | Path) -> List[Path]:
        """Write every generated module into ``directory`` under its configured file name."""
        directory = Path(directory)
        if self._rapid_code is None and self._base_code is None:
            raise GenerationError("Nothing has been generated")

        written = []
        if self._rapid_code is not None:
            written.append(self.write_rapid_file(directory / self.config.program_file))
        if self._base_code is not None:
            written.append(self.write_base_file(directory / self.config.base_file))
        return written

    def _write(self, path: Path, text: str) -> Path:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", newline="") as f:
                f.write(text)
        except OSError as e:
            raise GenerationError(f"Could not write {path}", details={"error": str(e)}) from e
        logger.info("rapid_file_written", path=str(path))
        return path


def _unique_declarations(items: Iterable[tuple]) -> List[str]:
    seen = set()
    lines = []
    for name, line in items:
        if name in seen:
            continue
        seen.add(name)
        lines.append(line)
    return lines
