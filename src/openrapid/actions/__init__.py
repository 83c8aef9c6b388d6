"""
Actions - the instructions a RAPID program is generated from.
"""

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
from openrapid.actions.serialization import load_program, save_program

__all__ = [
    "DigitalOutput",
    "SpeedData",
    "Target",
    "AbsoluteJointMovement",
    "Action",
    "AutoAxisConfig",
    "CodeLine",
    "CodeType",
    "Comment",
    "Movement",
    "MovementType",
    "OverrideRobotTool",
    "WaitDI",
    "WaitTime",
    "load_program",
    "save_program",
]
