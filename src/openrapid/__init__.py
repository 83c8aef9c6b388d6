"""
openrapid - ABB RAPID code generation for industrial robots

Turns an ordered list of robot actions (motions, waits, signals, comments)
into the ``main_T.mod`` program module and ``BASE.sys`` system module of an
ABB controller, using a kinematic model of the robot and its external axes
to resolve each target into axis values.
"""

__version__ = "0.1.0"
__author__ = "openrapid Contributors"

from openrapid.core.config import ConfigManager
from openrapid.definitions.presets import get_robot
from openrapid.postprocessor.rapid import RAPIDGenerator

__all__ = [
    "__version__",
    "ConfigManager",
    "RAPIDGenerator",
    "get_robot",
]
