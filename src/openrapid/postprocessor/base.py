"""
Generator configuration and per-call generation state.

A :class:`GenerationContext` is created for every program that is
generated. It owns the symbol tables used to declare each variable once,
the output buffers of both passes, and the generator-wide state (active
tool, whether the program starts with an absolute joint motion). Nothing
in it outlives the call, so two generations never share state.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from openrapid.core.config import GeneratorSettings
from openrapid.core.logging import get_logger
from openrapid.definitions.tool import RobotTool

logger = get_logger(__name__)


@dataclass
class GeneratorConfig:
    """Configuration for a RAPID generator instance."""

    module_name: str = "MainModule"
    program_file: str = "main_T.mod"
    base_file: str = "BASE.sys"
    line_ending: str = "\n"

    # Number formatting
    position_decimals: int = 2
    quaternion_decimals: int = 6

    # Indentation inside the module and the procedure
    indent: str = "\t"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "GeneratorConfig":
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        return cls(**{k: v for k, v in d.items() if k in valid_fields})

    @classmethod
    def from_settings(cls, settings: GeneratorSettings) -> "GeneratorConfig":
        return cls(
            module_name=settings.module_name,
            program_file=settings.program_file,
            base_file=settings.base_file,
            position_decimals=settings.position_decimals,
            quaternion_decimals=settings.quaternion_decimals,
        )


@dataclass
class GenerationContext:
    """
    State of one generation call.

    Attributes:
        default_tool: Tool active at the start of each pass
        current_tool: Tool active at the current action
        speed_datas: Declared speed data by name
        targets: Declared targets by variable name
        declarations: Lines of the declaration block
        instructions: Lines of the procedure body
        first_movement_is_move_abs: Set once the first motion has been seen
    """

    default_tool: RobotTool
    current_tool: Optional[RobotTool] = None
    speed_datas: Dict[str, Any] = field(default_factory=dict)
    targets: Dict[str, Any] = field(default_factory=dict)
    declarations: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)
    first_movement_is_move_abs: Optional[bool] = None

    def __post_init__(self) -> None:
        self.current_tool = self.current_tool or self.default_tool

    @property
    def current_tool_name(self) -> str:
        return self.current_tool.name

    def start_pass(self) -> None:
        """Reset the active tool before walking the action list again."""
        self.current_tool = self.default_tool

    def tool_for(self, robot_tool: Optional[RobotTool]) -> RobotTool:
        """The given tool, or the active one when missing or unnamed."""
        if robot_tool is None or not robot_tool.name:
            return self.current_tool
        return robot_tool

    def declare(self, table: Dict[str, Any], name: str, value: Any, lines: List[str]) -> bool:
        """
        Add declaration lines unless ``name`` is already declared.

        The first value declared under a name wins; later values with the
        same name are skipped.

        Returns:
            True if the lines were added
        """
        if name in table:
            if table[name] is not value:
                logger.debug("declaration_skipped", name=name)
            return False
        table[name] = value
        self.declarations.extend(lines)
        return True

    def declare_speed_data(self, speed_data: Any) -> bool:
        """Declare user speed data; predefined and missing speed data are not declared."""
        if speed_data is None or speed_data.predefined:
            return False
        return self.declare(
            self.speed_datas, speed_data.name, speed_data, [speed_data.to_rapid_declaration()]
        )

    def record_motion(self, is_move_abs: bool) -> None:
        if self.first_movement_is_move_abs is None:
            self.first_movement_is_move_abs = is_move_abs
