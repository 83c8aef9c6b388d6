"""
Unit tests for robot presets.
"""

import pytest

from openrapid.core.exceptions import ConfigurationError, GeometryError
from openrapid.core.config import ConfigManager
from openrapid.definitions.presets import RobotPreset, build_robot, get_robot


class TestRobotPreset:
    """Tests for preset lookup."""

    @pytest.mark.parametrize("name", ["IRB2600-12/1.85", "IRB2600_12_185", "irb2600_12_1_85"])
    def test_from_name(self, name):
        """Test lookup by model name, member name and slug."""
        assert RobotPreset.from_name(name) is RobotPreset.IRB2600_12_185

    def test_unknown(self):
        """Test that unknown names raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Unknown robot preset") as exc_info:
            RobotPreset.from_name("KR210")
        assert "IRB2600-12/1.85" in exc_info.value.details["available"]


class TestGetRobot:
    """Tests for building preset robots."""

    @pytest.mark.parametrize("preset", list(RobotPreset))
    def test_every_preset(self, preset):
        """Test that tool0 sits on the axis 6 point of every preset."""
        robot = get_robot(preset)
        assert robot.name == preset.value.name
        assert len(robot.internal_axis_planes) == 6
        assert list(robot.tool_plane.point) == pytest.approx(list(preset.value.axis_points[5]))

    def test_irb7600(self):
        """Test the IRB7600-150/3.5 dimensions and limits."""
        preset = RobotPreset.from_name("irb7600_150_3_5")
        assert preset is RobotPreset.IRB7600_150_350

        robot = get_robot("IRB7600-150/3.5")
        assert robot.internal_axis_limits[1] == (-60, 85)
        assert robot.internal_axis_limits[4] == (-100, 100)
        tcp = robot.forward_kinematics([0, 0, 0, 0, 0, 0]).tcp_plane
        assert list(tcp.point) == pytest.approx([2672, 0, 2020])

    def test_missing_mesh_dir(self, temp_dir):
        """Test that missing link meshes raise an error."""
        with pytest.raises(GeometryError, match="File not found"):
            get_robot("IRB2600-12/1.85", mesh_dir=temp_dir)


class TestBuildRobot:
    """Tests for robot cells from configuration."""

    def test_build_cell(self, sample_config_dir):
        """Test building a robot cell with a track and a turntable."""
        cell = ConfigManager(sample_config_dir).get_robot("track_cell")
        robot = build_robot(cell)

        assert [axis.axis_number for axis in robot.external_axes] == [0, 1]
        assert robot.positioning_axis.name == "track"
        assert robot.get_external_axis("turntable").moves_robot is False
        assert robot.get_external_axis("track").limits == (0, 4000)
