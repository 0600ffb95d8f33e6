"""
Ray casting against triangle meshes.

This is the numerical heart of the integrity check. A ray is intersected
with triangles using the Möller–Trumbore algorithm, and a whole mesh can
be queried at once for every point the ray crosses.

The hard part is degeneracy: a ray that passes exactly through an edge or
vertex shared by several triangles is reported once per triangle, which
double-counts a single crossing. Such results are detected (two identical
points in the sorted hit list) and the query is retried with the ray
origin nudged sideways by a tiny amount. Only three nudges are tried; if
all of them still graze something, UnresolvableDegeneracy is raised.

The intersection kernel works on numpy float32 arrays so a query against
N triangles is a handful of vectorised operations instead of N Python
calls. ``Ray.intersect`` runs the very same kernel on a single triangle,
so both paths produce bit-identical points.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .constants import RAY_EPSILON as _RAY_EPSILON
from .constants import PROBE_OFFSET_SCALE, PERTURBATION_SCALE
from .exceptions import UnresolvableDegeneracy
from .triangle import Triangle, pack_triangles
from .vector import Vector3

# Set up logging for this module
logger = logging.getLogger(__name__)

_F32 = np.float32
_ONE = _F32(1.0)

RAY_EPSILON = _F32(_RAY_EPSILON)
PROBE_OFFSET = _F32(PROBE_OFFSET_SCALE) * RAY_EPSILON
PERTURBATION = _F32(PERTURBATION_SCALE) * RAY_EPSILON

# Anything all_intersections() accepts as "the mesh"
TriangleSource = Union[Sequence[Triangle], np.ndarray]


def _dot(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    # Spelled out so the summation order matches Vector3.dot exactly
    return a[..., 0] * b[..., 0] + a[..., 1] * b[..., 1] + a[..., 2] * b[..., 2]


def _cross(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.stack(
        (
            a[..., 1] * b[..., 2] - a[..., 2] * b[..., 1],
            a[..., 2] * b[..., 0] - a[..., 0] * b[..., 2],
            a[..., 0] * b[..., 1] - a[..., 1] * b[..., 0],
        ),
        axis=-1,
    )


def moller_trumbore(
    origin: np.ndarray,
    direction: np.ndarray,
    vertices: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Vectorised Möller–Trumbore ray/triangle intersection.

    Args:
        origin: Ray origin, float32 array of shape (3,)
        direction: Ray direction, float32 array of shape (3,)
        vertices: Triangle vertices, float32 array of shape (N, 3, 3)

    Returns:
        Tuple of (hit mask of shape (N,), points of shape (N, 3)). Rows of
        ``points`` where the mask is False are meaningless.

    A triangle is missed when the ray is parallel to its plane
    (|det| < RAY_EPSILON), when the barycentric coordinates fall outside
    the triangle, or when the hit lies at t <= RAY_EPSILON.
    """
    v1 = vertices[:, 0]
    v2 = vertices[:, 1]
    v3 = vertices[:, 2]

    edge1 = v2 - v1
    edge2 = v3 - v1
    h = _cross(direction, edge2)
    a = _dot(edge1, h)

    # Parallel rays divide by ~0; those rows are masked out by `parallel`
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        f = _ONE / a
        s = origin - v1
        u = f * _dot(s, h)
        q = _cross(s, edge1)
        v = f * _dot(direction, q)
        t = f * _dot(edge2, q)
        points = origin + direction * t[:, np.newaxis]

        parallel = (a > -RAY_EPSILON) & (a < RAY_EPSILON)
        outside_u = (u < 0.0) | (u > 1.0)
        outside_v = (v < 0.0) | (u + v > 1.0)
        hit = ~parallel & ~outside_u & ~outside_v & (t > RAY_EPSILON)
    return hit, points


def _as_vertex_array(triangles: TriangleSource) -> np.ndarray:
    if isinstance(triangles, np.ndarray):
        return triangles.astype(np.float32, copy=False).reshape(-1, 3, 3)
    return pack_triangles(triangles)


def has_adjacent_duplicates(points: Sequence[Vector3]) -> bool:
    """True if two neighbouring points in a sorted list are exactly equal."""
    return any(points[i - 1] == points[i] for i in range(1, len(points)))


@dataclass(frozen=True)
class Ray:
    """
    A ray with an origin and a direction.

    The direction does not have to be unit length; its magnitude only
    scales the hit parameter t, never which triangles are hit.
    """

    origin: Vector3
    direction: Vector3

    @classmethod
    def from_triangle(cls, triangle: Triangle) -> "Ray":
        """
        Probe ray for a triangle.

        The ray starts at the centroid pushed slightly OUTSIDE the face
        (along the outward normal) and points INTO the solid. Counted
        against a closed mesh, it always crosses its own face first and
        then leaves the solid again, so the number of hits is even.
        """
        direction = triangle.unit_normal * -1.0
        origin = triangle.centroid - direction * PROBE_OFFSET
        return cls(origin, direction)

    def intersect(self, triangle: Triangle) -> Optional[Vector3]:
        """Point where this ray crosses ``triangle``, or None if it misses."""
        hit, points = moller_trumbore(
            self.origin.as_array(),
            self.direction.as_array(),
            pack_triangles([triangle]),
        )
        if not hit[0]:
            return None
        return Vector3.from_array(points[0])

    def perturbation_candidates(self) -> List["Ray"]:
        """
        The rays tried, in order, when looking for unambiguous hits.

        The first is this ray. The other three shift the origin by a
        permutation of the direction's components with one sign flipped,
        scaled by PERTURBATION, keeping the direction unchanged.
        """
        d = self.direction
        offsets = [
            Vector3(d.x, -d.z, d.y),
            Vector3(d.z, d.y, -d.x),
            Vector3(-d.y, d.x, d.z),
        ]
        candidates = [self]
        for offset in offsets:
            candidates.append(Ray(self.origin + offset * PERTURBATION, self.direction))
        return candidates

    def sorted_hits(self, triangles: TriangleSource) -> List[Vector3]:
        """Every intersection with the mesh, sorted by x, then y, then z."""
        vertices = _as_vertex_array(triangles)
        if len(vertices) == 0:
            return []
        hit, points = moller_trumbore(
            self.origin.as_array(),
            self.direction.as_array(),
            vertices,
        )
        hits = [Vector3.from_array(p) for p in points[hit]]
        hits.sort()
        return hits

    def all_intersections(self, triangles: TriangleSource) -> List[Vector3]:
        """
        Every point where this ray crosses the mesh, free of double counts.

        Args:
            triangles: The mesh, either as Triangle objects or as the packed
                (N, 3, 3) array returned by ``pack_triangles``

        Returns:
            Sorted intersection points with no two adjacent points equal.
            They come from this ray or, if it grazed a shared edge or
            vertex, from the first perturbed ray that did not.

        Raises:
            UnresolvableDegeneracy: If every candidate ray is ambiguous
        """
        vertices = _as_vertex_array(triangles)
        candidates = self.perturbation_candidates()

        for attempt, candidate in enumerate(candidates):
            hits = candidate.sorted_hits(vertices)
            if not has_adjacent_duplicates(hits):
                if attempt > 0:
                    logger.debug(f"Ray {self} resolved by perturbation {attempt}")
                return hits
            logger.debug(f"Ray {candidate} hit a shared edge or vertex (attempt {attempt + 1})")

        raise UnresolvableDegeneracy(self, len(candidates))

    def __str__(self) -> str:
        return f"[{self.origin}, {self.direction}]"
