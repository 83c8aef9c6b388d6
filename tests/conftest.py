"""
Pytest configuration and shared fixtures.
"""

import tempfile
from pathlib import Path

import pytest
from compas.geometry import Frame

from openrapid.actions import AbsoluteJointMovement, Movement, MovementType, SpeedData, Target
from openrapid.definitions import get_robot
from openrapid.kinematics.inverse import IKSolution, InverseKinematicsSolver


def down_frame(x: float, y: float, z: float) -> Frame:
    """Frame at (x, y, z) with its Z axis pointing down."""
    return Frame([x, y, z], [1, 0, 0], [0, -1, 0])


class FixedInverseKinematics(InverseKinematicsSolver):
    """Solver returning the same axis values for every target."""

    def __init__(self, values=None):
        self.values = values or [0.0, 10.0, 20.0, 0.0, 60.0, 0.0]
        self.calls = 0

    def solve(self, robot, target_plane, configuration=0, external_axis_values=None, tool=None):
        self.calls += 1
        external, errors = self.solve_external_axes(robot, target_plane, external_axis_values)
        return IKSolution(
            internal_axis_values=list(self.values),
            external_axis_values=external,
            configuration=configuration,
            errors=errors,
        )


@pytest.fixture
def temp_dir():
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def robot():
    """IRB2600 preset robot at world XY with tool0."""
    return get_robot("IRB2600-12/1.85")


@pytest.fixture
def fixed_ik():
    """Inverse kinematics stub with constant joint values."""
    return FixedInverseKinematics()


@pytest.fixture
def simple_actions():
    """Home position followed by two linear motions."""
    speed = SpeedData("v100", 100)
    return [
        AbsoluteJointMovement("home", [0, 0, 0, 0, 90, 0]),
        Movement(Target("p1", down_frame(1100, 0, 1000)), speed, MovementType.MOVE_L, 5),
        Movement(Target("p2", down_frame(1100, 200, 1000)), speed, MovementType.MOVE_L, -1),
    ]


@pytest.fixture
def sample_config_dir(temp_dir):
    """Create a sample configuration directory structure."""
    config_dir = temp_dir / "config"
    (config_dir / "robots").mkdir(parents=True)

    generator_config = """
generator:
  module_name: "PrintModule"
  robot_preset: "IRB4600-40/2.55"
  position_decimals: 3
"""
    (config_dir / "generator.yaml").write_text(generator_config)

    robot_config = """
robot:
  name: "Track Cell"
  preset: "IRB2600-12/1.85"
  position: [0, 0, 0]

external_axes:
  - name: "track"
    type: "linear"
    origin: [0, 0, 0]
    axis: [1, 0, 0]
    limits: [0, 4000]
  - name: "turntable"
    type: "rotational"
    origin: [2000, 1500, 0]
    axis: [0, 0, 1]
    limits: [-180, 180]
"""
    (config_dir / "robots" / "track_cell.yaml").write_text(robot_config)

    return config_dir
