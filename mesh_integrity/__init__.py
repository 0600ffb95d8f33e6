"""
Mesh Integrity Checker Package

Check triangle meshes (binary STL and other formats trimesh can read) for
watertightness by casting a probe ray from every face and counting how
often it crosses the surface.
"""

__version__ = "1.0.0"

# Make the CLI main function easily accessible
from .cli import main

# Core check function and configuration
from .mesh_integrity import check_mesh_file
from .config import CheckConfig

# Geometry and the checker itself, for programmatic use
from .vector import Vector3
from .triangle import Triangle
from .ray import Ray
from .integrity_checker import MeshIntegrityChecker, IntegrityResult, check_mesh_integrity
from .exceptions import MeshIntegrityError, InvalidLength, UnresolvableDegeneracy, StlFormatError

# Mesh file I/O and the trimesh cross-check
from .stl_reader import read_binary_stl, load_mesh_file, write_binary_stl
from .mesh_validation import validate_triangles

__all__ = [
    "main",
    "check_mesh_file",
    "CheckConfig",
    "Vector3",
    "Triangle",
    "Ray",
    "MeshIntegrityChecker",
    "IntegrityResult",
    "check_mesh_integrity",
    "MeshIntegrityError",
    "InvalidLength",
    "UnresolvableDegeneracy",
    "StlFormatError",
    "read_binary_stl",
    "load_mesh_file",
    "write_binary_stl",
    "validate_triangles",
]
