"""
Unit tests for the RAPID code generator.
"""

import pytest
from compas.geometry import Frame

from openrapid import __version__
from openrapid.actions import (
    AbsoluteJointMovement,
    CodeLine,
    CodeType,
    Comment,
    DigitalOutput,
    Movement,
    MovementType,
    OverrideRobotTool,
    SpeedData,
    Target,
    WaitTime,
)
from openrapid.core.exceptions import GenerationError
from openrapid.definitions import RobotTool, WorkObject, create_linear_axis, get_robot
from openrapid.kinematics.inverse import IKSolution, InverseKinematicsSolver
from openrapid.postprocessor import GeneratorConfig, RAPIDGenerator, collect_tools, collect_work_objects

DOWN_AXES = ([1, 0, 0], [0, -1, 0])
UNSET = "[9E9, 9E9, 9E9, 9E9, 9E9, 9E9]"


def linear(name, x, y, z, **kwargs):
    speed_data = kwargs.pop("speed_data", SpeedData("v100", 100))
    return Movement(Target(name, Frame([x, y, z], *DOWN_AXES)), speed_data, MovementType.MOVE_L, **kwargs)


class RecordingInverseKinematics(InverseKinematicsSolver):
    """Solver recording the tool each target is solved with."""

    def __init__(self):
        self.tools = []

    def solve(self, robot, target_plane, configuration=0, external_axis_values=None, tool=None):
        self.tools.append(tool.name)
        external, errors = self.solve_external_axes(robot, target_plane, external_axis_values)
        return IKSolution([0.0] * 6, external, configuration, errors)


@pytest.fixture
def generator(robot, fixed_ik):
    return RAPIDGenerator(robot, inverse_kinematics=fixed_ik)


def body(code):
    """Procedure lines without indentation."""
    lines = code.splitlines()
    start = lines.index("\tPROC main()") + 1
    end = lines.index("\tENDPROC")
    return [line.strip() for line in lines[start:end]]


def declarations(code):
    lines = code.splitlines()
    end = lines.index("\tPROC main()")
    return [line.strip() for line in lines[2:end] if line.strip()]


class TestProgramModule:
    """Tests for create_rapid_code."""

    def test_module_layout(self, generator, simple_actions):
        """Test the complete module text."""
        code = generator.create_rapid_code(simple_actions)
        robtarget = "[[1100, {y}, 1000], [0, 1, 0, 0], [0, 0, 0, 0], " + UNSET + "];"
        expected = "\n".join(
            [
                "MODULE MainModule",
                f"\t! Generated by openrapid {__version__}",
                "\tCONST jointtarget home_jm := [[0, 0, 0, 0, 90, 0], " + UNSET + "];",
                "\tVAR speeddata v100 := [100, 500, 5000, 1000];",
                "\tVAR robtarget p1_rt := " + robtarget.format(y=0),
                "\tVAR robtarget p2_rt := " + robtarget.format(y=200),
                "",
                "\tPROC main()",
                "\t\tMoveAbsJ home_jm, v5, z0, tool0;",
                "\t\tMoveL p1_rt, v100, z5, tool0\\WObj:=wobj0;",
                "\t\tMoveL p2_rt, v100, fine, tool0\\WObj:=wobj0;",
                "\tENDPROC",
                "",
                "ENDMODULE",
                "",
            ]
        )
        assert code == expected
        assert generator.rapid_code == code

    def test_deterministic(self, generator, simple_actions):
        """Test that generating twice yields identical text."""
        assert generator.create_rapid_code(simple_actions) == generator.create_rapid_code(simple_actions)

    def test_speed_data_declared_once(self, generator, simple_actions):
        """Test that shared speed data is declared once."""
        code = generator.create_rapid_code(simple_actions)
        assert code.count("VAR speeddata v100") == 1

    def test_predefined_speed_data_not_declared(self, generator):
        """Test that predefined speed data are only referenced."""
        movement = linear("p1", 1100, 0, 1000)
        movement.speed_data = SpeedData.predefined_from(200)
        code = generator.create_rapid_code([movement])
        assert "speeddata" not in code
        assert body(code) == ["MoveL p1_rt, v200, z0, tool0\\WObj:=wobj0;"]

    def test_target_declared_once(self, generator, fixed_ik):
        """Test that a target reused by name is solved and declared once."""
        first = linear("p1", 1100, 0, 1000)
        second = linear("p1", 900, 0, 800)
        code = generator.create_rapid_code([first, second, first])

        assert [line for line in declarations(code) if "robtarget" in line] == [
            "VAR robtarget p1_rt := [[1100, 0, 1000], [0, 1, 0, 0], [0, 0, 0, 0], " + UNSET + "];"
        ]
        assert len(body(code)) == 3
        assert fixed_ik.calls == 1

    def test_joint_target_from_movement(self, generator):
        """Test that an absolute joint movement to a target declares a jointtarget."""
        movement = Movement(Target("p1", Frame([1100, 0, 1000], *DOWN_AXES)))
        code = generator.create_rapid_code([movement])

        assert declarations(code)[0] == "CONST jointtarget p1_jt := [[0, 10, 20, 0, 60, 0], " + UNSET + "];"
        assert body(code) == ["MoveAbsJ p1_jt, v5, z0, tool0\\WObj:=wobj0;"]

    def test_comments_and_code_lines(self, generator):
        """Test that declaration and instruction lines go to their sections."""
        actions = [
            Comment("Declarations", CodeType.DECLARATION),
            CodeLine("VAR num layer := 0;", CodeType.DECLARATION),
            Comment("Start"),
            CodeLine("layer := layer + 1;"),
            WaitTime(2),
        ]
        code = generator.create_rapid_code(actions)

        assert declarations(code) == ["! Declarations", "VAR num layer := 0;"]
        assert body(code) == ["! Start", "layer := layer + 1;", "WaitTime 2;"]

    def test_digital_outputs(self, generator):
        """Test that only valid standalone outputs are emitted."""
        actions = [DigitalOutput("doTorch", True), DigitalOutput.empty(), DigitalOutput("doTorch")]
        assert body(generator.create_rapid_code(actions)) == ["SetDO doTorch, 1;", "SetDO doTorch, 0;"]

    def test_tool_override(self, robot):
        """Test that a tool override applies to the motions after it."""
        solver = RecordingInverseKinematics()
        generator = RAPIDGenerator(robot, inverse_kinematics=solver)
        actions = [
            linear("p1", 1100, 0, 1000),
            OverrideRobotTool(RobotTool("torch")),
            linear("p2", 1100, 100, 1000),
            linear("p3", 1100, 200, 1000, robot_tool=RobotTool("gripper")),
        ]
        code = generator.create_rapid_code(actions)

        assert body(code) == [
            "MoveL p1_rt, v100, z0, tool0\\WObj:=wobj0;",
            "! Default Robot Tool changed to torch.",
            "MoveL p2_rt, v100, z0, torch\\WObj:=wobj0;",
            "MoveL p3_rt, v100, z0, gripper\\WObj:=wobj0;",
        ]
        assert solver.tools == ["tool0", "torch", "gripper"]

    def test_tool_override_resets_between_calls(self, robot, fixed_ik):
        """Test that a new program starts with the robot's tool."""
        generator = RAPIDGenerator(robot, inverse_kinematics=fixed_ik)
        generator.create_rapid_code([OverrideRobotTool(RobotTool("torch"))])
        code = generator.create_rapid_code([linear("p1", 1100, 0, 1000)])
        assert body(code) == ["MoveL p1_rt, v100, z0, tool0\\WObj:=wobj0;"]

    def test_external_axis_override(self, fixed_ik):
        """Test that override values are written to the robtarget."""
        robot = get_robot("IRB2600-12/1.85", external_axes=[create_linear_axis("track")])
        movement = linear("p1", 1100, 0, 1000)
        movement.target.external_axis_values = [500]
        code = RAPIDGenerator(robot, inverse_kinematics=fixed_ik).create_rapid_code([movement])
        assert "[500, 9E9, 9E9, 9E9, 9E9, 9E9]]" in declarations(code)[-1]

    def test_work_object_instruction(self, generator):
        """Test that the work object is referenced by the motion."""
        movement = linear("p1", 100, 0, 20, work_object=WorkObject("table"))
        assert body(generator.create_rapid_code([movement])) == ["MoveL p1_rt, v100, z0, tool0\\WObj:=table;"]

    def test_unreachable_target_still_declared(self, robot):
        """Test that an unreachable target is rendered with the analytic solver."""
        generator = RAPIDGenerator(robot)
        code = generator.create_rapid_code([linear("far", 10000, 0, 0)])
        assert "VAR robtarget far_rt := [[10000, 0, 0]" in code

    def test_module_name_and_line_ending(self, robot, fixed_ik, simple_actions):
        """Test configured module name and line endings."""
        config = GeneratorConfig(module_name="PrintModule", line_ending="\r\n")
        code = RAPIDGenerator(robot, fixed_ik, config).create_rapid_code(simple_actions)
        assert code.startswith("MODULE PrintModule\r\n")
        assert code.endswith("ENDMODULE\r\n")

    def test_unsupported_action(self, generator):
        """Test that non-actions are rejected."""
        with pytest.raises(GenerationError, match="index 1: str"):
            generator.create_rapid_code([WaitTime(1), "MoveL p1, v100, z0, tool0;"])


class TestIncompleteActions:
    """Tests for actions with missing or unusual payloads."""

    def test_joint_movement_without_speed_data(self, generator):
        """Test that a missing speed data falls back to v5 without a declaration."""
        home = AbsoluteJointMovement("home", [0, 0, 0, 0, 0, 0], speed_data=None)
        code = generator.create_rapid_code([home])

        assert "speeddata" not in code
        assert body(code) == ["MoveAbsJ home_jm, v5, z0, tool0;"]

    def test_movement_without_speed_data(self, generator):
        """Test a linear move without speed data."""
        code = generator.create_rapid_code([linear("p1", 1100, 0, 1000, speed_data=None)])

        assert "speeddata" not in code
        assert declarations(code)[0].startswith("VAR robtarget p1_rt := [[1100, 0, 1000]")
        assert body(code) == ["MoveL p1_rt, v5, z0, tool0\\WObj:=wobj0;"]

    def test_movement_without_target(self, generator, fixed_ik):
        """Test that a motion without a target is left out of the program."""
        orphan = Movement(None, SpeedData("v100", 100), MovementType.MOVE_L)
        code = generator.create_rapid_code([WaitTime(1), orphan, linear("p1", 1100, 0, 1000)])

        assert body(code) == ["WaitTime 1;", "MoveL p1_rt, v100, z0, tool0\\WObj:=wobj0;"]
        assert "VAR speeddata v100" in code
        assert fixed_ik.calls == 1
        assert not generator.first_movement_is_move_abs

    def test_unnamed_target(self, generator):
        """Test that an empty target name still renders suffixed variables."""
        movement = Movement(Target("", Frame([1100, 0, 1000], *DOWN_AXES)), SpeedData("v100", 100), 1)
        code = generator.create_rapid_code([movement])

        assert declarations(code)[1].startswith("VAR robtarget _rt := ")
        assert body(code) == ["MoveL _rt, v100, z0, tool0\\WObj:=wobj0;"]

    def test_configuration_out_of_range(self, generator):
        """Test that an invalid configuration tag is still written verbatim."""
        target = Target("p1", Frame([1100, 0, 1000], *DOWN_AXES), axis_config=9)
        code = generator.create_rapid_code([Movement(target, SpeedData("v100", 100), MovementType.MOVE_J)])

        assert "[0, 0, 0, 9]" in declarations(code)[1]
        assert body(code) == ["MoveJ p1_rt, v100, z0, tool0\\WObj:=wobj0;"]

    def test_absolute_move_with_empty_output(self, generator):
        """Test that an empty digital output adds no SetDO line."""
        movement = Movement(Target("p1", Frame([1100, 0, 1000], *DOWN_AXES)), digital_output=DigitalOutput.empty())
        code = generator.create_rapid_code([movement])

        assert body(code) == ["MoveAbsJ p1_jt, v5, z0, tool0\\WObj:=wobj0;"]
        assert "SetDO" not in code


class TestFirstMovement:
    """Tests for the first movement flag."""

    def test_absolute_joint_movement_first(self, generator, simple_actions):
        """Test a program starting with an absolute joint movement."""
        generator.create_rapid_code(simple_actions)
        assert generator.first_movement_is_move_abs

    def test_linear_first(self, generator, simple_actions):
        """Test a program starting with a linear move."""
        generator.create_rapid_code([WaitTime(1)] + simple_actions[1:] + simple_actions[:1])
        assert not generator.first_movement_is_move_abs

    def test_movement_to_joint_target_first(self, generator):
        """Test that a MoveAbsJ movement to a target counts."""
        generator.create_rapid_code([Movement(Target("p1", Frame([1100, 0, 1000], *DOWN_AXES)))])
        assert generator.first_movement_is_move_abs

    def test_no_motion(self, generator):
        """Test a program without motions."""
        generator.create_rapid_code([WaitTime(1)])
        assert not generator.first_movement_is_move_abs


class TestBaseModule:
    """Tests for create_base_code."""

    def test_default_layout(self, generator):
        """Test the BASE module with only system data."""
        code = generator.create_base_code()
        lines = code.splitlines()

        assert lines[0] == "MODULE BASE (SYSMODULE, NOSTEPIN, VIEWONLY)"
        assert "\tPERS tooldata tool0 := [TRUE, [[0, 0, 0], [1, 0, 0, 0]], " \
            "[0.001, [0, 0, 0.001], [1, 0, 0, 0], 0, 0, 0]];" in lines
        assert "\tPERS loaddata load0 := [0.001, [0, 0, 0.001], [1, 0, 0, 0], 0, 0, 0];" in lines
        assert lines[-1] == "ENDMODULE"
        index = lines.index("\t! User defined tooldata")
        assert lines[index:index + 6] == [
            "\t! User defined tooldata",
            "",
            "\t! User defined wobjdata",
            "",
            "\t! User defined code lines",
            "",
        ]

    def test_user_data(self, generator):
        """Test user tools, work objects and code lines."""
        torch = RobotTool("torch", tool_plane=Frame([0, 0, 150], [1, 0, 0], [0, 1, 0]))
        table = WorkObject("table", user_frame=Frame([1000, 0, 0], [1, 0, 0], [0, 1, 0]))
        code = generator.create_base_code(
            tools=[torch, RobotTool.default(), torch],
            work_objects=[table, WorkObject.default()],
            custom_code=["PERS num layer := 0;"],
        )

        assert code.count("PERS tooldata torch := [TRUE, [[0, 0, 150], [1, 0, 0, 0]], "
                          "[0.001, [0, 0, 0.001], [1, 0, 0, 0], 0, 0, 0]];") == 1
        assert 'PERS wobjdata table := [FALSE, TRUE, "", [[1000, 0, 0], [1, 0, 0, 0]], ' \
            "[[0, 0, 0], [1, 0, 0, 0]]];" in code
        assert code.count("PERS tooldata tool0") == 1
        assert code.count("PERS wobjdata wobj0") == 1
        assert "\tPERS num layer := 0;" in code.splitlines()
        assert generator.base_code == code

    def test_collect_from_actions(self):
        """Test collecting distinct tools and work objects."""
        torch = RobotTool("torch")
        table = WorkObject("table")
        actions = [
            linear("p1", 0, 0, 0, robot_tool=torch, work_object=table),
            OverrideRobotTool(RobotTool("gripper")),
            AbsoluteJointMovement("home", robot_tool=torch),
            linear("p2", 0, 0, 0, robot_tool=RobotTool(""), work_object=WorkObject("table")),
        ]
        assert [tool.name for tool in collect_tools(actions)] == ["torch", "gripper"]
        assert collect_work_objects(actions) == [table]


class TestWriting:
    """Tests for writing modules to disk."""

    def test_write_before_generating(self, generator, temp_dir):
        """Test that writing without generated code fails."""
        with pytest.raises(GenerationError, match="Nothing has been generated"):
            generator.write(temp_dir)
        with pytest.raises(GenerationError, match="No RAPID program"):
            generator.write_rapid_file(temp_dir / "main_T.mod")
        with pytest.raises(GenerationError, match="No BASE module"):
            generator.write_base_file(temp_dir / "BASE.sys")

    def test_write(self, generator, simple_actions, temp_dir):
        """Test writing both modules into a new directory."""
        generator.create_rapid_code(simple_actions)
        generator.create_base_code()
        written = generator.write(temp_dir / "out")

        assert written == [temp_dir / "out" / "main_T.mod", temp_dir / "out" / "BASE.sys"]
        assert written[0].read_text() == generator.rapid_code
        assert written[1].read_text() == generator.base_code

    def test_write_keeps_line_endings(self, robot, fixed_ik, simple_actions, temp_dir):
        """Test that configured line endings reach the file unchanged."""
        generator = RAPIDGenerator(robot, fixed_ik, GeneratorConfig(line_ending="\r\n"))
        generator.create_rapid_code(simple_actions)
        path = generator.write_rapid_file(temp_dir / "main_T.mod")
        assert path.read_bytes().count(b"\r\n") == generator.rapid_code.count("\n")
