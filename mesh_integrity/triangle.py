"""
Triangle value type: three vertices plus an outward unit normal.

Triangles are created once from input data and never mutated. The normal
matters beyond display: probe rays are cast along it, so its sign decides
whether a ray travels into the solid or away from it.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

import numpy as np

from .vector import Vector3

_F32 = np.float32
_THREE = _F32(3.0)


def _averaged_normal(v1: Vector3, v2: Vector3, v3: Vector3) -> Vector3:
    """
    Outward unit normal from vertex winding.

    The cross product of the two edges is taken at each of the three
    vertices, averaged, then negated and normalized. For counter-clockwise
    winding (seen from outside) this points out of the solid.
    """
    n1 = (v1 - v2).cross(v3 - v2)
    n2 = (v2 - v3).cross(v1 - v3)
    n3 = (v3 - v1).cross(v2 - v1)
    nx = (n1.x + n2.x + n3.x) / _THREE
    ny = (n1.y + n2.y + n3.y) / _THREE
    nz = (n1.z + n2.z + n3.z) / _THREE
    length = Vector3(nx, ny, nz).length()

    # Collinear vertices give a zero length; let that become NaN quietly
    # and surface it through Triangle.is_degenerate instead
    with np.errstate(divide="ignore", invalid="ignore"):
        return Vector3(-nx / length, -ny / length, -nz / length)


@dataclass(frozen=True)
class Triangle:
    """
    A mesh face with its outward unit normal.

    Use the constructors rather than the raw initializer:

    - ``Triangle.from_vertices(v1, v2, v3)`` recomputes the normal
    - ``Triangle.from_vertices_and_normal(n, v1, v2, v3)`` trusts ``n``
    """

    unit_normal: Vector3
    v1: Vector3
    v2: Vector3
    v3: Vector3

    @classmethod
    def from_vertices(cls, v1: Vector3, v2: Vector3, v3: Vector3) -> "Triangle":
        return cls(_averaged_normal(v1, v2, v3), v1, v2, v3)

    @classmethod
    def from_vertices_and_normal(
        cls,
        unit_normal: Vector3,
        v1: Vector3,
        v2: Vector3,
        v3: Vector3
    ) -> "Triangle":
        """
        Build a triangle around a caller-supplied normal.

        No check is made that the normal is unit length or agrees with the
        winding; compare against ``recalc_unit_normal()`` if that matters.
        """
        return cls(unit_normal, v1, v2, v3)

    def recalc_unit_normal(self) -> Vector3:
        """Normal implied by the vertex winding (ignores the stored one)."""
        return _averaged_normal(self.v1, self.v2, self.v3)

    def normal_matches(self, declared: Vector3) -> bool:
        """True if ``declared`` is within epsilon of this triangle's normal."""
        return self.unit_normal.approx_equal(declared)

    @property
    def vertices(self) -> Tuple[Vector3, Vector3, Vector3]:
        return (self.v1, self.v2, self.v3)

    @property
    def centroid(self) -> Vector3:
        return Vector3(
            (self.v1.x + self.v2.x + self.v3.x) / _THREE,
            (self.v1.y + self.v2.y + self.v3.y) / _THREE,
            (self.v1.z + self.v2.z + self.v3.z) / _THREE,
        )

    @property
    def is_degenerate(self) -> bool:
        """
        True if the normal is unusable (zero-area face or zero/NaN normal).

        A probe ray cannot be cast from such a triangle.
        """
        length = self.unit_normal.length()
        return not (math.isfinite(length) and length > 0)

    def __str__(self) -> str:
        return f"[{self.v1}, {self.v2}, {self.v3}, {self.unit_normal}]"


def pack_triangles(triangles: Iterable[Triangle]) -> np.ndarray:
    """
    Stack triangle vertices into a float32 array of shape (N, 3, 3).

    Axis 1 is the vertex (v1, v2, v3), axis 2 the coordinate (x, y, z).
    Ray queries against a whole mesh run on this array.
    """
    rows = [
        (t.v1.to_tuple(), t.v2.to_tuple(), t.v3.to_tuple())
        for t in triangles
    ]
    return np.array(rows, dtype=np.float32).reshape(-1, 3, 3)
