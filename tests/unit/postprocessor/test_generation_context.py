"""
Unit tests for generator configuration and generation state.
"""

from openrapid.actions import SpeedData
from openrapid.core.config import GeneratorSettings
from openrapid.definitions import RobotTool
from openrapid.postprocessor import GenerationContext, GeneratorConfig


class TestGeneratorConfig:
    """Tests for GeneratorConfig."""

    def test_defaults(self):
        """Test default file names and formatting."""
        config = GeneratorConfig()
        assert config.module_name == "MainModule"
        assert config.program_file == "main_T.mod"
        assert config.base_file == "BASE.sys"
        assert config.position_decimals == 2

    def test_from_settings(self):
        """Test building the configuration from loaded settings."""
        settings = GeneratorSettings(module_name="PrintModule", position_decimals=3)
        config = GeneratorConfig.from_settings(settings)
        assert config.module_name == "PrintModule"
        assert config.position_decimals == 3

    def test_from_dict_ignores_unknown(self):
        """Test that unknown keys are dropped."""
        config = GeneratorConfig.from_dict({"module_name": "A", "colour": "red"})
        assert config.module_name == "A"
        assert GeneratorConfig.from_dict(config.to_dict()) == config


class TestGenerationContext:
    """Tests for GenerationContext."""

    def test_first_declaration_wins(self):
        """Test that a name is declared once."""
        ctx = GenerationContext(default_tool=RobotTool.default())
        first, second = object(), object()

        assert ctx.declare(ctx.targets, "p1_rt", first, ["first"])
        assert not ctx.declare(ctx.targets, "p1_rt", second, ["second"])
        assert ctx.declarations == ["first"]
        assert ctx.targets["p1_rt"] is first

    def test_predefined_speed_data(self):
        """Test that predefined speed data are not declared."""
        ctx = GenerationContext(default_tool=RobotTool.default())
        assert not ctx.declare_speed_data(SpeedData.predefined_from(100))
        assert ctx.declare_speed_data(SpeedData("slow", 10))
        assert ctx.declarations == ["VAR speeddata slow := [10, 500, 5000, 1000];"]

    def test_record_first_motion_only(self):
        """Test that only the first motion decides the flag."""
        ctx = GenerationContext(default_tool=RobotTool.default())
        assert ctx.first_movement_is_move_abs is None
        ctx.record_motion(False)
        ctx.record_motion(True)
        assert ctx.first_movement_is_move_abs is False

    def test_start_pass_resets_tool(self):
        """Test that each pass starts with the default tool."""
        ctx = GenerationContext(default_tool=RobotTool.default())
        ctx.current_tool = RobotTool("torch")
        assert ctx.current_tool_name == "torch"
        ctx.start_pass()
        assert ctx.current_tool_name == "tool0"

    def test_tool_for(self):
        """Test resolving the tool of a motion."""
        ctx = GenerationContext(default_tool=RobotTool.default())
        torch = RobotTool("torch")
        assert ctx.tool_for(torch) is torch
        assert ctx.tool_for(None) is ctx.current_tool
        assert ctx.tool_for(RobotTool("")) is ctx.current_tool
