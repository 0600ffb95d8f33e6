"""
Unit tests for the mesh_validation module.

Tests the trimesh topology cross-check on closed and open meshes.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path to import the package
sys.path.insert(0, str(Path(__file__).parent.parent))

from mesh_integrity.mesh_validation import (
    ValidationResult,
    to_trimesh,
    validate_triangles,
    get_mesh_report,
)
from tests.helpers import make_cube, make_open_cube


class TestValidationResult(unittest.TestCase):
    """Test the ValidationResult class."""

    def test_initialization(self):
        """Test ValidationResult starts with valid state."""
        result = ValidationResult()
        self.assertTrue(result.is_valid)
        self.assertEqual(len(result.errors), 0)
        self.assertEqual(len(result.warnings), 0)
        self.assertEqual(len(result.stats), 0)

    def test_add_error(self):
        """Test adding errors marks result as invalid."""
        result = ValidationResult()
        result.add_error("Test error")
        self.assertFalse(result.is_valid)
        self.assertEqual(result.errors, ["Test error"])

    def test_add_warning(self):
        """Test adding warnings doesn't mark result as invalid."""
        result = ValidationResult()
        result.add_warning("Test warning")
        self.assertTrue(result.is_valid)
        self.assertEqual(result.warnings, ["Test warning"])

    def test_repr(self):
        self.assertIn("VALID", repr(ValidationResult()))


class TestToTrimesh(unittest.TestCase):

    def test_vertices_merged(self):
        """A triangle soup cube welds down to its 8 corners."""
        tmesh = to_trimesh(make_cube())
        self.assertEqual(len(tmesh.vertices), 8)
        self.assertEqual(len(tmesh.faces), 12)


class TestValidateTriangles(unittest.TestCase):
    """Test the topology checks."""

    def test_closed_cube(self):
        result = validate_triangles(make_cube(), "cube")
        self.assertTrue(result.is_valid, result.errors)
        self.assertTrue(result.stats['watertight'])
        self.assertTrue(result.stats['winding_consistent'])
        self.assertTrue(result.stats['is_volume'])
        self.assertEqual(result.stats['boundary_edges'], 0)
        self.assertEqual(result.stats['nonmanifold_edges'], 0)
        self.assertEqual(result.stats['euler_number'], 2)
        self.assertAlmostEqual(result.stats['volume'], 1.0, places=5)

    def test_open_cube(self):
        """Removing a triangle leaves its three edges open."""
        result = validate_triangles(make_open_cube(), "open cube")
        self.assertFalse(result.is_valid)
        self.assertFalse(result.stats['watertight'])
        self.assertEqual(result.stats['boundary_edges'], 3)
        self.assertTrue(any("not watertight" in e for e in result.errors))

    def test_empty(self):
        result = validate_triangles([], "nothing")
        self.assertFalse(result.is_valid)
        self.assertIn("no triangles", result.errors[0])


class TestMeshReport(unittest.TestCase):

    def test_report_sections(self):
        report = get_mesh_report(make_cube(), "cube")
        self.assertIn("Mesh Topology Report: cube", report)
        self.assertIn("Basic Statistics", report)
        self.assertIn("Validation Status", report)
        self.assertIn("VALID", report)

    def test_report_lists_errors(self):
        report = get_mesh_report(make_open_cube(), "open cube")
        self.assertIn("INVALID", report)
        self.assertIn("Errors:", report)


if __name__ == '__main__':
    unittest.main()
