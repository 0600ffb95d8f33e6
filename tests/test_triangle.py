"""
Unit tests for the triangle module.

Tests normal recomputation from winding, centroids, degeneracy detection
and packing triangles into the float32 array the ray kernel consumes.
"""

import unittest
import sys
from pathlib import Path

import numpy as np

# Add parent directory to path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from mesh_integrity.triangle import Triangle, pack_triangles
from mesh_integrity.vector import Vector3
from tests.helpers import vec, make_cube


class TestTriangleNormal(unittest.TestCase):
    """Test the outward unit normal."""

    def test_counter_clockwise_points_up(self):
        """Counter-clockwise winding in the xy plane gives +z."""
        t = Triangle.from_vertices(vec(0, 0, 0), vec(1, 0, 0), vec(0, 1, 0))
        self.assertEqual(t.unit_normal, Vector3(0, 0, 1))

    def test_reversed_winding_points_down(self):
        t = Triangle.from_vertices(vec(0, 0, 0), vec(0, 1, 0), vec(1, 0, 0))
        self.assertEqual(t.unit_normal, Vector3(0, 0, -1))

    def test_normal_is_unit_length(self):
        """Large or tilted triangles still get a unit normal."""
        t = Triangle.from_vertices(vec(0, 0, 0), vec(10, 0, 0), vec(0, 0, 10))
        self.assertAlmostEqual(float(t.unit_normal.length()), 1.0, places=6)
        self.assertAlmostEqual(float(t.unit_normal.y), -1.0, places=6)

        tilted = Triangle.from_vertices(vec(1, 0, 0), vec(0, 1, 0), vec(0, 0, 1))
        expected = 1.0 / np.sqrt(3.0)
        for component in tilted.unit_normal:
            self.assertAlmostEqual(float(component), expected, places=6)

    def test_cube_normals_point_outward(self):
        """Every cube face normal points away from the cube centre."""
        centre = Vector3(0.5, 0.5, 0.5)
        for t in make_cube():
            outward = t.centroid - centre
            self.assertGreater(float(t.unit_normal.dot(outward)), 0.0)

    def test_from_vertices_and_normal_keeps_normal(self):
        """A supplied normal is kept as-is, even if it's wrong."""
        declared = Vector3(1, 0, 0)
        t = Triangle.from_vertices_and_normal(declared, vec(0, 0, 0), vec(1, 0, 0), vec(0, 1, 0))
        self.assertEqual(t.unit_normal, declared)
        self.assertEqual(t.recalc_unit_normal(), Vector3(0, 0, 1))

    def test_normal_matches(self):
        t = Triangle.from_vertices(vec(0, 0, 0), vec(1, 0, 0), vec(0, 1, 0))
        self.assertTrue(t.normal_matches(Vector3(0, 0, 1)))
        self.assertFalse(t.normal_matches(Vector3(0, 0, -1)))
        self.assertFalse(t.normal_matches(Vector3(0, 0, 0)))


class TestTriangleGeometry(unittest.TestCase):
    """Test centroid, vertices and degeneracy."""

    def test_centroid(self):
        t = Triangle.from_vertices(vec(0, 0, 0), vec(3, 0, 0), vec(0, 3, 0))
        self.assertEqual(t.centroid, Vector3(1, 1, 0))

    def test_vertices_in_order(self):
        v1, v2, v3 = vec(0, 0, 0), vec(1, 0, 0), vec(0, 1, 0)
        t = Triangle.from_vertices(v1, v2, v3)
        self.assertEqual(t.vertices, (v1, v2, v3))

    def test_regular_triangle_not_degenerate(self):
        t = Triangle.from_vertices(vec(0, 0, 0), vec(1, 0, 0), vec(0, 1, 0))
        self.assertFalse(t.is_degenerate)

    def test_collinear_vertices_are_degenerate(self):
        """Zero-area triangles have no usable normal."""
        t = Triangle.from_vertices(vec(0, 0, 0), vec(1, 0, 0), vec(2, 0, 0))
        self.assertTrue(t.is_degenerate)
        self.assertFalse(t.unit_normal.is_finite())

    def test_repeated_vertex_is_degenerate(self):
        t = Triangle.from_vertices(vec(0, 0, 0), vec(0, 0, 0), vec(0, 1, 0))
        self.assertTrue(t.is_degenerate)

    def test_zero_declared_normal_is_degenerate(self):
        t = Triangle.from_vertices_and_normal(Vector3.zero(), vec(0, 0, 0), vec(1, 0, 0), vec(0, 1, 0))
        self.assertTrue(t.is_degenerate)

    def test_str(self):
        t = Triangle.from_vertices(vec(0, 0, 0), vec(1, 0, 0), vec(0, 1, 0))
        text = str(t)
        self.assertTrue(text.startswith("[<0.0, 0.0, 0.0>, <1.0, 0.0, 0.0>, <0.0, 1.0, 0.0>, <"))
        self.assertTrue(text.endswith(", 1.0>]"))


class TestPackTriangles(unittest.TestCase):
    """Test packing triangles for the vectorised ray kernel."""

    def test_shape_and_dtype(self):
        packed = pack_triangles(make_cube())
        self.assertEqual(packed.shape, (12, 3, 3))
        self.assertEqual(packed.dtype, np.float32)

    def test_vertex_order_preserved(self):
        t = Triangle.from_vertices(vec(1, 2, 3), vec(4, 5, 6), vec(7, 8, 9))
        packed = pack_triangles([t])
        self.assertEqual(packed[0].tolist(), [[1, 2, 3], [4, 5, 6], [7, 8, 9]])

    def test_empty(self):
        packed = pack_triangles([])
        self.assertEqual(packed.shape, (0, 3, 3))


if __name__ == '__main__':
    unittest.main()
