"""
Unit tests for saving and loading action lists.
"""

import json

import pytest
from compas.geometry import Frame

from openrapid.actions import (
    AbsoluteJointMovement,
    AutoAxisConfig,
    CodeLine,
    CodeType,
    Comment,
    DigitalOutput,
    Movement,
    MovementType,
    OverrideRobotTool,
    SpeedData,
    Target,
    WaitDI,
    WaitTime,
    load_program,
    save_program,
)
from openrapid.actions.serialization import action_from_dict, action_to_dict, actions_from_dict
from openrapid.core.exceptions import ParseError
from openrapid.definitions import RobotTool, WorkObject


@pytest.fixture
def program():
    torch = RobotTool("torch", tool_plane=Frame([0, 0, 150], [1, 0, 0], [0, 1, 0]))
    return [
        Comment("Header", CodeType.DECLARATION),
        AbsoluteJointMovement("home", [0, 0, 0, 0, 90, 0], precision=-1),
        OverrideRobotTool(torch),
        Movement(
            Target("p1", Frame([100, 50, 20], [1, 0, 0], [0, -1, 0]), axis_config=1),
            SpeedData("print", 25),
            MovementType.MOVE_L,
            2,
            work_object=WorkObject("table", user_frame=Frame([1000, 0, 0], [1, 0, 0], [0, 1, 0])),
            digital_output=DigitalOutput("doExtrude", True),
        ),
        WaitTime(0.5),
        WaitDI("diReady"),
        DigitalOutput("doExtrude", False),
        CodeLine("TPWrite \"done\";"),
        AutoAxisConfig(False),
    ]


class TestSaveLoad:
    """Tests for program files."""

    @pytest.mark.parametrize("suffix", [".json", ".yaml"])
    def test_round_trip(self, temp_dir, program, suffix):
        """Test that a saved program loads back with the same content."""
        path = temp_dir / f"program{suffix}"
        save_program(path, program)
        loaded = load_program(path)

        assert [type(a) for a in loaded] == [type(a) for a in program]
        assert [action_to_dict(a) for a in loaded] == [action_to_dict(a) for a in program]

    def test_loaded_movement(self, temp_dir, program):
        """Test the fields of a loaded movement."""
        path = temp_dir / "program.json"
        save_program(path, program)
        movement = load_program(path)[3]

        assert movement.movement_type is MovementType.MOVE_L
        assert movement.work_object.name == "table"
        assert movement.digital_output.is_active
        assert movement.to_rapid_instructions("torch") == [
            "MoveLDO p1_rt, print, z2, torch\\WObj:=table, doExtrude, 1;"
        ]

    def test_document_layout(self, temp_dir, program):
        """Test the versioned document."""
        path = temp_dir / "program.json"
        save_program(path, program, name="Print")
        document = json.loads(path.read_text())

        assert document["schema_version"] == 1
        assert document["name"] == "Print"
        assert document["actions"][0] == {"type": "comment", "text": "Header", "code_type": "declaration"}

    def test_missing_file(self, temp_dir):
        """Test that a missing file raises ParseError."""
        with pytest.raises(ParseError, match="not found"):
            load_program(temp_dir / "missing.json")

    def test_invalid_json(self, temp_dir):
        """Test that malformed JSON raises ParseError."""
        path = temp_dir / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ParseError, match="Invalid program file"):
            load_program(path)


class TestDocumentValidation:
    """Tests for rejected documents."""

    def test_unsupported_version(self):
        """Test that other schema versions are rejected."""
        with pytest.raises(ParseError, match="schema version"):
            actions_from_dict({"schema_version": 2, "actions": []})

    def test_unknown_action_type(self):
        """Test that unknown action types are rejected."""
        with pytest.raises(ParseError, match="Unknown action type: teleport"):
            action_from_dict({"type": "teleport"})

    def test_missing_field(self):
        """Test that a missing required field raises ParseError."""
        with pytest.raises(ParseError, match="Invalid wait_time data"):
            action_from_dict({"type": "wait_time"})

    def test_serialize_non_action(self):
        """Test that arbitrary objects cannot be serialized."""
        with pytest.raises(ParseError, match="Cannot serialize"):
            action_to_dict("MoveL p1, v100, z0, tool0;")

    def test_incomplete_movement(self):
        """Test that a movement without target or speed data is saved and loaded."""
        data = action_to_dict(Movement(None, speed_data=None))
        assert data["target"] is None
        assert data["speed_data"] is None

        loaded = action_from_dict(data)
        assert loaded.target is None
        assert loaded.speed_data.name == "v5"
