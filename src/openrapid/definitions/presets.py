"""
Preset ABB robot models.

Each preset supplies the fixed kinematic dimensions (axis plane origins and
directions at zero position) and axis limits of one robot model. Link meshes
are loaded from a mesh directory when one is given, otherwise simple box
meshes stand in for the links.
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from compas.datastructures import Mesh
from compas.geometry import Frame, Point

from openrapid.core.config import RobotConfig
from openrapid.core.exceptions import ConfigurationError
from openrapid.core.geometry import (
    GeometryLoader,
    box_mesh,
    frame_from_normal,
    plane_to_plane,
)
from openrapid.core.logging import get_logger
from openrapid.definitions.external_axis import (
    ExternalAxis,
    ExternalAxisType,
)
from openrapid.definitions.robot import Robot
from openrapid.definitions.tool import RobotTool

logger = get_logger(__name__)

X_AXIS = (1.0, 0.0, 0.0)
Y_AXIS = (0.0, 1.0, 0.0)
Z_AXIS = (0.0, 0.0, 1.0)


@dataclass(frozen=True)
class RobotModelData:
    """Fixed constants of one robot model."""

    name: str
    axis_points: Tuple[Tuple[float, float, float], ...]
    axis_directions: Tuple[Tuple[float, float, float], ...]
    axis_limits: Tuple[Tuple[float, float], ...]

    @property
    def slug(self) -> str:
        return re.sub(r"[^a-z0-9]+", "_", self.name.lower()).strip("_")


class RobotPreset(Enum):
    """Available robot models."""

    IRB1520ID_4_150 = RobotModelData(
        name="IRB1520ID-4/1.5",
        axis_points=(
            (0.0, 0.0, 0.0),
            (160.0, 0.0, 453.0),
            (160.0, 0.0, 1043.0),
            (160.0, 0.0, 1243.0),
            (883.0, 0.0, 1243.0),
            (1083.0, 0.0, 1243.0),
        ),
        axis_directions=(Z_AXIS, Y_AXIS, Y_AXIS, X_AXIS, Y_AXIS, X_AXIS),
        axis_limits=((-170, 170), (-90, 150), (-100, 80), (-155, 155), (-135, 135), (-200, 200)),
    )
    IRB2600_12_185 = RobotModelData(
        name="IRB2600-12/1.85",
        axis_points=(
            (0.0, 0.0, 0.0),
            (150.0, 0.0, 445.0),
            (150.0, 0.0, 1345.0),
            (437.5, 0.0, 1460.0),
            (945.0, 0.0, 1460.0),
            (1030.0, 0.0, 1460.0),
        ),
        axis_directions=(Z_AXIS, Y_AXIS, Y_AXIS, X_AXIS, Y_AXIS, X_AXIS),
        axis_limits=((-180, 180), (-95, 155), (-180, 75), (-400, 400), (-120, 120), (-400, 400)),
    )
    IRB4600_40_255 = RobotModelData(
        name="IRB4600-40/2.55",
        axis_points=(
            (0.0, 0.0, 0.0),
            (175.0, 0.0, 495.0),
            (175.0, 0.0, 1590.0),
            (505.6, 0.0, 1765.0),
            (1445.0, 0.0, 1765.0),
            (1580.0, 0.0, 1765.0),
        ),
        axis_directions=(Z_AXIS, Y_AXIS, Y_AXIS, X_AXIS, Y_AXIS, X_AXIS),
        axis_limits=((-180, 180), (-90, 150), (-180, 75), (-400, 400), (-120, 125), (-400, 400)),
    )
    IRB6700_235_265 = RobotModelData(
        name="IRB6700-235/2.65",
        axis_points=(
            (0.0, 0.0, 0.0),
            (320.0, 0.0, 780.0),
            (320.0, 0.0, 1915.0),
            (553.5, 0.0, 2115.0),
            (1502.5, 0.0, 2115.0),
            (1702.5, 0.0, 2115.0),
        ),
        axis_directions=(Z_AXIS, Y_AXIS, Y_AXIS, X_AXIS, Y_AXIS, X_AXIS),
        axis_limits=((-170, 170), (-65, 85), (-180, 70), (-300, 300), (-130, 130), (-360, 360)),
    )
    IRB7600_150_350 = RobotModelData(
        name="IRB7600-150/3.5",
        axis_points=(
            (0.0, 0.0, 0.0),
            (410.0, 0.0, 780.0),
            (410.0, 0.0, 1855.0),
            (669.0, 0.0, 2020.0),
            (2422.0, 0.0, 2020.0),
            (2672.0, 0.0, 2020.0),
        ),
        axis_directions=(Z_AXIS, Y_AXIS, Y_AXIS, X_AXIS, Y_AXIS, X_AXIS),
        axis_limits=((-180, 180), (-60, 85), (-180, 60), (-300, 300), (-100, 100), (-360, 360)),
    )

    @classmethod
    def from_name(cls, name: str) -> "RobotPreset":
        """
        Look up a preset by model name (``IRB2600-12/1.85``) or member name.

        Raises:
            ConfigurationError: If no preset matches
        """
        for preset in cls:
            if name in (preset.value.name, preset.name) or name.lower() == preset.value.slug:
                return preset
        raise ConfigurationError(
            f"Unknown robot preset: {name}",
            details={"available": [preset.value.name for preset in cls]},
        )


def _mounting_frame(data: RobotModelData) -> Frame:
    # Flange frame at zero position: Z along axis 6 (world X), X pointing down
    return Frame(data.axis_points[5], [0, 0, -1], [0, 1, 0])


def _placeholder_meshes(data: RobotModelData) -> List[Mesh]:
    meshes = [box_mesh(Frame.worldXY(), 400.0, 400.0, 100.0)]
    points = [Point(*p) for p in data.axis_points]
    for start, end in zip(points, points[1:] + [points[-1] + Point(80, 0, 0)]):
        center = (start + end) * 0.5
        length = max(start.distance_to_point(end), 50.0)
        meshes.append(box_mesh(Frame(center, [1, 0, 0], [0, 1, 0]), length, 120.0, 120.0))
    return meshes


def _load_meshes(data: RobotModelData, mesh_dir: Path) -> List[Mesh]:
    folder = Path(mesh_dir) / data.slug
    return [GeometryLoader.load(folder / f"link_{i}.stl") for i in range(7)]


def get_robot(
    preset: RobotPreset | str,
    position_plane: Optional[Frame] = None,
    tool: Optional[RobotTool] = None,
    external_axes: Optional[Sequence[ExternalAxis]] = None,
    mesh_dir: Optional[str | Path] = None,
) -> Robot:
    """
    Build a preset robot.

    Args:
        preset: Preset enum member or model name
        position_plane: Plane to place the robot on (default world XY). An
            external axis that moves the robot overrides it with its
            attachment plane.
        tool: Tool to mount (default ``tool0``)
        external_axes: External axes to attach
        mesh_dir: Directory with ``<slug>/link_0.stl`` .. ``link_6.stl``

    Returns:
        Robot placed on the position plane
    """
    if isinstance(preset, str):
        preset = RobotPreset.from_name(preset)
    data = preset.value
    external_axes = list(external_axes or [])

    for axis in external_axes:
        if axis.moves_robot:
            position_plane = axis.attachment_plane
            break
    if position_plane is None:
        position_plane = Frame.worldXY()

    meshes = _load_meshes(data, Path(mesh_dir)) if mesh_dir else _placeholder_meshes(data)
    axis_planes = [
        frame_from_normal(point, direction)
        for point, direction in zip(data.axis_points, data.axis_directions)
    ]

    robot = Robot(
        name=data.name,
        meshes=meshes,
        internal_axis_planes=axis_planes,
        internal_axis_limits=data.axis_limits,
        base_plane=Frame.worldXY(),
        mounting_frame=_mounting_frame(data),
        tool=tool,
    )
    robot.transform(plane_to_plane(Frame.worldXY(), position_plane))
    robot.external_axes = external_axes
    return robot


def build_robot(config: RobotConfig, tool: Optional[RobotTool] = None) -> Robot:
    """Build the robot of a robot cell definition."""
    axes = [
        ExternalAxis(
            name=axis.name,
            axis_type=ExternalAxisType(axis.type),
            attachment_plane=Frame(axis.origin, [1, 0, 0], [0, 1, 0]),
            axis_plane=frame_from_normal(axis.origin, axis.axis),
            min_limit=axis.limits[0],
            max_limit=axis.limits[1],
            moves_robot=axis.moves_robot,
        )
        for axis in config.external_axes
    ]
    position_plane = Frame(config.position, [1, 0, 0], [0, 1, 0])
    logger.info("robot_cell_loaded", name=config.name, preset=config.preset, external_axes=len(axes))
    return get_robot(config.preset, position_plane=position_plane, tool=tool, external_axes=axes)
