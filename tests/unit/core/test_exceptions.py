"""
Unit tests for the exception hierarchy.
"""

import pytest

from openrapid.core.exceptions import (
    ConfigurationError,
    GenerationError,
    GeometryError,
    KinematicsError,
    OpenRapidError,
    ParseError,
    RobotError,
)


class TestOpenRapidError:
    """Tests for the base exception."""

    def test_message_only(self):
        """Test string form without details."""
        error = OpenRapidError("Something failed")
        assert str(error) == "Something failed"
        assert error.details == {}

    def test_details_in_string(self):
        """Test that details are part of the string form."""
        error = OpenRapidError("Something failed", details={"count": 7})
        assert "Something failed" in str(error)
        assert "'count': 7" in str(error)

    @pytest.mark.parametrize(
        "cls",
        [ConfigurationError, GeometryError, RobotError, KinematicsError, ParseError, GenerationError],
    )
    def test_subclasses(self, cls):
        """Test that every error can be caught as OpenRapidError."""
        with pytest.raises(OpenRapidError):
            raise cls("failure")


class TestRobotError:
    """Tests for RobotError."""

    def test_robot_name(self):
        """Test that the robot name is kept."""
        error = RobotError("Too many axes", robot_name="IRB2600-12/1.85", details={"count": 7})
        assert error.robot_name == "IRB2600-12/1.85"
        assert error.details["count"] == 7
