"""
Test helper utilities for creating test fixtures and sample data.

This module provides small meshes (a unit cube and some broken variants)
and utilities for writing them to temporary STL files.
"""

from typing import List, Optional, Sequence, Tuple
import tempfile
import os

from mesh_integrity.triangle import Triangle
from mesh_integrity.vector import Vector3
from mesh_integrity.stl_reader import write_binary_stl

Point = Tuple[float, float, float]

# Unit cube, two triangles per face, wound counter-clockwise seen from
# outside. Opposite faces share the same diagonal so that no probe ray cast
# from a face centroid lands on another face's diagonal.
CUBE_FACES: List[Tuple[Point, Point, Point]] = [
    ((0, 0, 0), (1, 1, 0), (1, 0, 0)),  # 0  bottom
    ((0, 0, 0), (0, 1, 0), (1, 1, 0)),  # 1  bottom
    ((0, 0, 1), (1, 0, 1), (1, 1, 1)),  # 2  top
    ((0, 0, 1), (1, 1, 1), (0, 1, 1)),  # 3  top
    ((0, 0, 0), (1, 0, 0), (1, 0, 1)),  # 4  front (y = 0)
    ((0, 0, 0), (1, 0, 1), (0, 0, 1)),  # 5  front
    ((0, 1, 0), (1, 1, 1), (1, 1, 0)),  # 6  back (y = 1)
    ((0, 1, 0), (0, 1, 1), (1, 1, 1)),  # 7  back
    ((0, 0, 0), (0, 1, 1), (0, 1, 0)),  # 8  left (x = 0)
    ((0, 0, 0), (0, 0, 1), (0, 1, 1)),  # 9  left
    ((1, 0, 0), (1, 1, 0), (1, 1, 1)),  # 10 right (x = 1)
    ((1, 0, 0), (1, 1, 1), (1, 0, 1)),  # 11 right
]

TOP_FACE_INDEX = 2


def vec(x: float, y: float, z: float) -> Vector3:
    """Shorthand for Vector3."""
    return Vector3(x, y, z)


def make_triangle(p1: Point, p2: Point, p3: Point) -> Triangle:
    """Triangle from three coordinate tuples, normal recomputed from winding."""
    return Triangle.from_vertices(vec(*p1), vec(*p2), vec(*p3))


def make_cube(offset: Point = (0, 0, 0)) -> List[Triangle]:
    """
    Build the closed unit cube, optionally translated.

    Args:
        offset: Translation applied to every vertex (keep it integral so
            the coordinates stay exact in float32)

    Returns:
        12 triangles in CUBE_FACES order
    """
    ox, oy, oz = offset
    triangles = []
    for face in CUBE_FACES:
        shifted = [(x + ox, y + oy, z + oz) for x, y, z in face]
        triangles.append(make_triangle(*shifted))
    return triangles


def make_open_cube() -> List[Triangle]:
    """The unit cube with one top triangle missing (11 triangles)."""
    triangles = make_cube()
    del triangles[TOP_FACE_INDEX]
    return triangles


def make_flipped_cube(index: int = 0) -> List[Triangle]:
    """The unit cube with the winding of one triangle reversed."""
    triangles = make_cube()
    p1, p2, p3 = CUBE_FACES[index]
    triangles[index] = make_triangle(p1, p3, p2)
    return triangles


def write_test_stl(
    triangles: Sequence[Triangle],
    filepath: Optional[str] = None,
    header: str = "test mesh",
    normals: Optional[Sequence[Vector3]] = None
) -> str:
    """
    Write triangles to a binary STL file.

    Args:
        triangles: Triangles to write
        filepath: Optional path to save to (defaults to temp file)
        header: STL header text
        normals: Optional declared normals (defaults to the triangles' own)

    Returns:
        Path to the created file
    """
    if filepath is None:
        fd, filepath = tempfile.mkstemp(suffix='.stl')
        os.close(fd)

    write_binary_stl(filepath, triangles, header=header, normals=normals)
    return filepath


def ascii_stl_text(triangles: Sequence[Triangle], name: str = "cube") -> str:
    """Render triangles as an ASCII STL document."""
    lines = [f"solid {name}"]
    for t in triangles:
        n = t.unit_normal
        lines.append(f"  facet normal {float(n.x)} {float(n.y)} {float(n.z)}")
        lines.append("    outer loop")
        for v in t.vertices:
            lines.append(f"      vertex {float(v.x)} {float(v.y)} {float(v.z)}")
        lines.append("    endloop")
        lines.append("  endfacet")
    lines.append(f"endsolid {name}")
    return "\n".join(lines) + "\n"


def cleanup_test_file(filepath: str) -> None:
    """
    Remove a test file if it exists.

    Args:
        filepath: Path to file to remove
    """
    if filepath and os.path.exists(filepath):
        try:
            os.remove(filepath)
        except OSError:
            pass
