"""
Geometry handling for openrapid using COMPAS.

Wraps the plane (``Frame``), transformation and quaternion primitives the
kinematic model relies on, plus loading of link meshes from disk.
"""

from pathlib import Path
from typing import Any

import trimesh
from compas.datastructures import Mesh as CompasMesh
from compas.geometry import (
    Box,
    Frame,
    Plane,
    Point,
    Quaternion,
    Rotation,
    Transformation,
    Translation,
    Vector,
)

from openrapid.core.exceptions import GeometryError


def plane_to_plane(source: Frame, target: Frame) -> Transformation:
    """Transformation that maps ``source`` onto ``target``."""
    return Transformation.from_frame_to_frame(source, target)


def frame_from_normal(point: Point | list[float], normal: Vector | list[float]) -> Frame:
    """
    Build a frame whose Z axis is ``normal``.

    The X axis is chosen by COMPAS; only the origin and Z axis carry meaning
    for axis planes built this way.
    """
    return Frame.from_plane(Plane(point, normal))


def rotation_about_plane(plane: Frame, angle: float) -> Rotation:
    """
    Rotation about the Z axis of ``plane`` through its origin.

    Args:
        plane: Plane defining the rotation axis.
        angle: Angle in radians.

    Returns:
        COMPAS Rotation
    """
    return Rotation.from_axis_and_angle(plane.zaxis, angle, point=plane.point)


def translation_along_plane(plane: Frame, distance: float) -> Translation:
    """Translation along the unitized Z axis of ``plane``."""
    return Translation.from_vector(plane.zaxis.unitized() * distance)


def frame_quaternion(frame: Frame) -> Quaternion:
    """
    Orientation of ``frame`` relative to world XY as a unit quaternion.

    The sign is normalized so that the scalar part is non-negative, which
    keeps generated code stable for equivalent orientations.
    """
    q = Quaternion.from_frame(frame)
    if q.w < 0:
        q = Quaternion(-q.w, -q.x, -q.y, -q.z)
    return q.unitized()


def frame_from_quaternion(quaternion: Quaternion | list[float], point: Point | list[float]) -> Frame:
    """Frame at ``point`` oriented by ``quaternion`` given as ``[w, x, y, z]``."""
    if not isinstance(quaternion, Quaternion):
        quaternion = Quaternion(*quaternion)
    return Frame.from_quaternion(quaternion, point=point)


def frame_in_frame(frame: Frame, reference: Frame) -> Frame:
    """Express ``frame`` in the local coordinates of ``reference``."""
    return frame.transformed(plane_to_plane(reference, Frame.worldXY()))


def frame_to_dict(frame: Frame) -> dict[str, list[float]]:
    """Serialize a frame as plain point/axis lists."""
    return {
        "point": list(frame.point),
        "xaxis": list(frame.xaxis),
        "yaxis": list(frame.yaxis),
    }


def frame_from_dict(data: dict[str, Any]) -> Frame:
    """Inverse of :func:`frame_to_dict`."""
    try:
        return Frame(data["point"], data.get("xaxis", [1, 0, 0]), data.get("yaxis", [0, 1, 0]))
    except (KeyError, TypeError, ValueError) as e:
        raise GeometryError(f"Invalid frame data: {data}", details={"error": str(e)}) from e


def transform_mesh(mesh: CompasMesh, transformation: Transformation) -> CompasMesh:
    """
    Apply transformation to mesh.

    Args:
        mesh: COMPAS Mesh to transform
        transformation: COMPAS Transformation object

    Returns:
        Transformed COMPAS Mesh (new instance)
    """
    transformed = mesh.copy()
    transformed.transform(transformation)
    return transformed


def box_mesh(frame: Frame, xsize: float, ysize: float, zsize: float) -> CompasMesh:
    """Box mesh centered on ``frame``, used as placeholder link geometry."""
    return CompasMesh.from_shape(Box(xsize, ysize, zsize, frame=frame))


class GeometryConverter:
    """Converter between Trimesh and COMPAS meshes."""

    @staticmethod
    def trimesh_to_compas(mesh: trimesh.Trimesh) -> CompasMesh:
        """
        Convert Trimesh mesh to COMPAS Mesh.

        Raises:
            GeometryError: If conversion fails
        """
        try:
            vertices = mesh.vertices.tolist()
            faces = mesh.faces.tolist()
            return CompasMesh.from_vertices_and_faces(vertices, faces)
        except Exception as e:
            raise GeometryError(f"Failed to convert Trimesh to COMPAS: {e}") from e


class GeometryLoader:
    """
    Loads link and tool meshes from disk.

    Supports the formats trimesh reads natively and converts to COMPAS.
    """

    SUPPORTED_FORMATS = {".stl", ".obj", ".ply", ".off"}

    @classmethod
    def load(cls, file_path: str | Path, **kwargs: Any) -> CompasMesh:
        """
        Load geometry from file.

        Args:
            file_path: Path to geometry file
            **kwargs: Additional arguments passed to trimesh.load

        Returns:
            COMPAS Mesh object

        Raises:
            GeometryError: If file format is unsupported or loading fails
        """
        path = Path(file_path)

        if not path.exists():
            raise GeometryError(f"File not found: {path}")

        if path.suffix.lower() not in cls.SUPPORTED_FORMATS:
            raise GeometryError(
                f"Unsupported format: {path.suffix}. "
                f"Supported formats: {cls.SUPPORTED_FORMATS}"
            )

        try:
            loaded = trimesh.load(str(path), **kwargs)

            if isinstance(loaded, trimesh.Scene):
                mesh = trimesh.util.concatenate(
                    [geom for geom in loaded.geometry.values()
                     if isinstance(geom, trimesh.Trimesh)]
                )
            elif isinstance(loaded, trimesh.Trimesh):
                mesh = loaded
            else:
                raise GeometryError(f"Unexpected geometry type: {type(loaded)}")

            return GeometryConverter.trimesh_to_compas(mesh)

        except GeometryError:
            raise
        except Exception as e:
            raise GeometryError(f"Failed to load geometry from {path}: {e}") from e
