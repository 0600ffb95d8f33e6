"""
Tests for the CheckConfig dataclass.
"""

import unittest
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mesh_integrity.config import CheckConfig
from mesh_integrity.constants import DEFAULT_WORKERS


class TestCheckConfig(unittest.TestCase):
    """Test CheckConfig defaults and validation."""

    def test_defaults(self):
        """Test default configuration values."""
        config = CheckConfig()
        self.assertEqual(config.workers, DEFAULT_WORKERS)
        self.assertFalse(config.find_all)
        self.assertFalse(config.trust_declared_normals)
        self.assertFalse(config.cross_check)

    def test_custom_values(self):
        config = CheckConfig(workers=8, find_all=True, trust_declared_normals=True, cross_check=True)
        self.assertEqual(config.workers, 8)
        self.assertTrue(config.find_all)
        self.assertTrue(config.trust_declared_normals)
        self.assertTrue(config.cross_check)

    def test_zero_workers_rejected(self):
        with self.assertRaises(ValueError):
            CheckConfig(workers=0)

    def test_negative_workers_rejected(self):
        with self.assertRaises(ValueError):
            CheckConfig(workers=-2)

    def test_non_integer_workers_rejected(self):
        with self.assertRaises(ValueError):
            CheckConfig(workers=2.5)
        with self.assertRaises(ValueError):
            CheckConfig(workers="4")

    def test_bool_workers_rejected(self):
        """True is an int in Python, but not a worker count."""
        with self.assertRaises(ValueError):
            CheckConfig(workers=True)


if __name__ == '__main__':
    unittest.main()
