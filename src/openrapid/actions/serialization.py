"""
Versioned persistence of action lists.

Programs are stored as JSON or YAML documents::

    {
      "schema_version": 1,
      "name": "MainModule",
      "actions": [
        {"type": "absolute_joint_movement", "name": "home", ...},
        {"type": "movement", "target": {...}, ...}
      ]
    }

Each action is a small set of named fields written in a stable order so
that saved programs remain readable and can be migrated between versions.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from openrapid.core.exceptions import OpenRapidError, ParseError
from openrapid.core.logging import get_logger
from openrapid.actions.declarations import DigitalOutput, SpeedData, Target
from openrapid.actions.instructions import (
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
from openrapid.definitions.tool import RobotTool
from openrapid.definitions.work_object import WorkObject

logger = get_logger(__name__)

SCHEMA_VERSION = 1


def _tool_to_dict(tool: Optional[RobotTool]) -> Optional[Dict[str, Any]]:
    return tool.to_dict() if tool is not None else None


def _tool_from_dict(data: Optional[Dict[str, Any]]) -> Optional[RobotTool]:
    return RobotTool.from_dict(data) if data else None


def _speed_to_dict(speed_data: Optional[SpeedData]) -> Optional[Dict[str, Any]]:
    return speed_data.to_dict() if speed_data is not None else None


def action_to_dict(action: Action) -> Dict[str, Any]:
    """
    Serialize one action.

    Raises:
        ParseError: If the object is not an action
    """
    match action:
        case Movement():
            return {
                "type": "movement",
                "target": action.target.to_dict() if action.target is not None else None,
                "speed_data": _speed_to_dict(action.speed_data),
                "movement_type": int(action.movement_type),
                "precision": action.precision,
                "robot_tool": _tool_to_dict(action.robot_tool),
                "work_object": action.work_object.to_dict(),
                "digital_output": action.digital_output.to_dict(),
            }
        case AbsoluteJointMovement():
            return {
                "type": "absolute_joint_movement",
                "name": action.name,
                "internal_axis_values": list(action.internal_axis_values),
                "external_axis_values": list(action.external_axis_values),
                "speed_data": _speed_to_dict(action.speed_data),
                "precision": action.precision,
                "robot_tool": _tool_to_dict(action.robot_tool),
            }
        case Comment():
            return {"type": "comment", "text": action.text, "code_type": action.code_type.value}
        case CodeLine():
            return {"type": "code_line", "code": action.code, "code_type": action.code_type.value}
        case WaitTime():
            return {"type": "wait_time", "duration": action.duration}
        case WaitDI():
            return {"type": "wait_di", "name": action.name, "value": action.value}
        case DigitalOutput():
            return {"type": "digital_output", **action.to_dict()}
        case OverrideRobotTool():
            return {"type": "override_robot_tool", "robot_tool": action.robot_tool.to_dict()}
        case AutoAxisConfig():
            return {"type": "auto_axis_config", "is_active": action.is_active}
    raise ParseError(f"Cannot serialize object of type {type(action).__name__}")


def action_from_dict(data: Dict[str, Any]) -> Action:
    """
    Deserialize one action.

    Raises:
        ParseError: If the action type is unknown or a field is missing
    """
    try:
        match data["type"]:
            case "movement":
                return Movement(
                    target=Target.from_dict(data["target"]) if data["target"] is not None else None,
                    speed_data=SpeedData.from_dict(data["speed_data"])
                    if data.get("speed_data") else SpeedData.default(),
                    movement_type=MovementType(int(data.get("movement_type", 0))),
                    precision=int(data.get("precision", 0)),
                    robot_tool=_tool_from_dict(data.get("robot_tool")),
                    work_object=WorkObject.from_dict(data["work_object"])
                    if data.get("work_object") else WorkObject.default(),
                    digital_output=DigitalOutput.from_dict(data.get("digital_output") or {}),
                )
            case "absolute_joint_movement":
                return AbsoluteJointMovement(
                    name=data["name"],
                    internal_axis_values=[float(v) for v in data["internal_axis_values"]],
                    external_axis_values=[float(v) for v in data.get("external_axis_values", [])],
                    speed_data=SpeedData.from_dict(data["speed_data"])
                    if data.get("speed_data") else SpeedData.default(),
                    precision=int(data.get("precision", 0)),
                    robot_tool=_tool_from_dict(data.get("robot_tool")),
                )
            case "comment":
                return Comment(data["text"], CodeType(data.get("code_type", "instruction")))
            case "code_line":
                return CodeLine(data["code"], CodeType(data.get("code_type", "instruction")))
            case "wait_time":
                return WaitTime(float(data["duration"]))
            case "wait_di":
                return WaitDI(data["name"], bool(data.get("value", True)))
            case "digital_output":
                return DigitalOutput.from_dict(data)
            case "override_robot_tool":
                return OverrideRobotTool(RobotTool.from_dict(data["robot_tool"]))
            case "auto_axis_config":
                return AutoAxisConfig(bool(data.get("is_active", True)))
            case unknown:
                raise ParseError(f"Unknown action type: {unknown}", details={"action": data})
    except ParseError:
        raise
    except (KeyError, TypeError, ValueError, OpenRapidError) as e:
        raise ParseError(
            f"Invalid {data.get('type', 'action')} data",
            details={"error": str(e)},
        ) from e


def actions_to_dict(actions: List[Action], name: str = "MainModule") -> Dict[str, Any]:
    """Serialize an action list into a versioned document."""
    return {
        "schema_version": SCHEMA_VERSION,
        "name": name,
        "actions": [action_to_dict(action) for action in actions],
    }


def actions_from_dict(data: Dict[str, Any]) -> List[Action]:
    """
    Deserialize a versioned document into an action list.

    Raises:
        ParseError: If the schema version is unsupported or an action is invalid
    """
    if not isinstance(data, dict):
        raise ParseError("Program document must be a mapping")
    version = data.get("schema_version")
    if version != SCHEMA_VERSION:
        raise ParseError(
            f"Unsupported program schema version: {version}",
            details={"supported": [SCHEMA_VERSION]},
        )
    return [action_from_dict(item) for item in data.get("actions", [])]


def save_program(path: str | Path, actions: List[Action], name: str = "MainModule") -> None:
    """Write an action list to a ``.json``, ``.yaml`` or ``.yml`` file."""
    path = Path(path)
    document = actions_to_dict(actions, name)
    with open(path, "w") as f:
        if path.suffix.lower() in (".yaml", ".yml"):
            yaml.safe_dump(document, f, sort_keys=False)
        else:
            json.dump(document, f, indent=2)
    logger.info("program_saved", path=str(path), actions=len(actions))


def load_program(path: str | Path) -> List[Action]:
    """
    Read an action list written by :func:`save_program`.

    Raises:
        ParseError: If the file is missing or cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise ParseError(f"Program file not found: {path}")

    try:
        with open(path) as f:
            if path.suffix.lower() in (".yaml", ".yml"):
                document = yaml.safe_load(f)
            else:
                document = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError) as e:
        raise ParseError(f"Invalid program file: {path}", details={"error": str(e)}) from e

    actions = actions_from_dict(document)
    logger.info("program_loaded", path=str(path), actions=len(actions))
    return actions
