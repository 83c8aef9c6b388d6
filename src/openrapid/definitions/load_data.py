"""
Load data (mass properties) of tools and payloads.
"""

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

from compas.geometry import Point, Quaternion, Vector

from openrapid.core.exceptions import ParseError
from openrapid.core.formatting import format_number

_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_DECLARATION_PREFIX = re.compile(
    r"^\s*(?:(?:PERS|VAR|CONST|TASK PERS)\s+)?loaddata\s+(?P<name>\w+)\s*:=",
    re.IGNORECASE,
)


def parse_numbers(text: str, count: int, kind: str) -> List[float]:
    """
    Extract exactly ``count`` numbers from a RAPID aggregate.

    Raises:
        ParseError: If the text does not hold the expected number of values
    """
    values = [float(token) for token in _NUMBER.findall(text)]
    if len(values) != count:
        raise ParseError(
            f"Could not parse {kind}: expected {count} values, found {len(values)}",
            details={"text": text},
        )
    return values


@dataclass
class LoadData:
    """
    Mass properties in RAPID ``loaddata`` form.

    Attributes:
        mass: Mass in kg
        center_of_gravity: Center of gravity in the tool flange frame (mm)
        axes_of_moment: Orientation of the inertia axes
        inertia: Moments of inertia ``(ix, iy, iz)`` in kgm2
        name: Declared variable name
    """

    mass: float = 0.001
    center_of_gravity: Point = field(default_factory=lambda: Point(0, 0, 0.001))
    axes_of_moment: Quaternion = field(default_factory=lambda: Quaternion(1, 0, 0, 0))
    inertia: Vector = field(default_factory=lambda: Vector(0, 0, 0))
    name: str = "load0"

    @classmethod
    def parse(cls, text: str) -> "LoadData":
        """
        Parse load data from text.

        Accepts a bare aggregate ``[mass, [x, y, z], [q1, q2, q3, q4], ix, iy, iz]``,
        the same eleven numbers without brackets, or a full declaration
        ``PERS loaddata name := [...];``.

        Raises:
            ParseError: If the text cannot be parsed
        """
        name = "load0"
        match = _DECLARATION_PREFIX.match(text)
        if match:
            name = match.group("name")
            text = text[match.end():]
        values = parse_numbers(text, 11, "loaddata")
        return cls(
            mass=values[0],
            center_of_gravity=Point(*values[1:4]),
            axes_of_moment=Quaternion(*values[4:8]),
            inertia=Vector(*values[8:11]),
            name=name,
        )

    @classmethod
    def try_parse(cls, text: str) -> Optional["LoadData"]:
        """Like :meth:`parse` but returns ``None`` on failure."""
        try:
            return cls.parse(text)
        except ParseError:
            return None

    @property
    def validation_errors(self) -> List[str]:
        errors = []
        if self.mass < 0:
            errors.append(f"Mass cannot be negative: {self.mass}.")
        if not self.name:
            errors.append("Load data name is not set.")
        return errors

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def to_rapid_value(self) -> str:
        """RAPID aggregate of the load data."""
        cog = ", ".join(format_number(v, 3) for v in self.center_of_gravity)
        q = self.axes_of_moment
        aom = ", ".join(format_number(v, 6) for v in (q.w, q.x, q.y, q.z))
        inertia = ", ".join(format_number(v, 3) for v in self.inertia)
        return f"[{format_number(self.mass, 3)}, [{cog}], [{aom}], {inertia}]"

    def to_rapid_declaration(self) -> str:
        return f"PERS loaddata {self.name} := {self.to_rapid_value()};"

    def to_dict(self) -> dict[str, Any]:
        q = self.axes_of_moment
        return {
            "name": self.name,
            "mass": self.mass,
            "center_of_gravity": list(self.center_of_gravity),
            "axes_of_moment": [q.w, q.x, q.y, q.z],
            "inertia": list(self.inertia),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "LoadData":
        defaults = cls()
        return cls(
            mass=float(d.get("mass", defaults.mass)),
            center_of_gravity=Point(*d.get("center_of_gravity", defaults.center_of_gravity)),
            axes_of_moment=Quaternion(*d.get("axes_of_moment", [1, 0, 0, 0])),
            inertia=Vector(*d.get("inertia", defaults.inertia)),
            name=d.get("name", defaults.name),
        )
