"""
Definitions - robot, tool, work object, load data and external axes.
"""

from openrapid.definitions.external_axis import (
    UNSET_AXIS_VALUE,
    ExternalAxis,
    ExternalAxisType,
    create_linear_axis,
    create_rotational_axis,
)
from openrapid.definitions.load_data import LoadData
from openrapid.definitions.presets import RobotPreset, build_robot, get_robot
from openrapid.definitions.robot import Robot
from openrapid.definitions.tool import RobotTool
from openrapid.definitions.work_object import WorkObject

__all__ = [
    "UNSET_AXIS_VALUE",
    "ExternalAxis",
    "ExternalAxisType",
    "create_linear_axis",
    "create_rotational_axis",
    "LoadData",
    "RobotPreset",
    "build_robot",
    "get_robot",
    "Robot",
    "RobotTool",
    "WorkObject",
]
