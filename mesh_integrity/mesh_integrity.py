"""
Core pipeline: mesh file in, integrity verdict out.

This module ties the reader, the parity checker and the optional trimesh
cross-check together. It's completely separate from the CLI layer, making
it easy to use programmatically or test.

No print statements, no argparse, just the check! 🎯
"""

import math
import time
from pathlib import Path
from typing import Optional, Callable, Dict, Any

from .config import CheckConfig
from .integrity_checker import MeshIntegrityChecker
from .mesh_validation import validate_triangles
from .stl_reader import load_mesh_file


def format_filesize(size_bytes: int) -> str:
    """
    Convert a file size in bytes to a human-readable format.

    Examples:
        >>> format_filesize(0)
        '0B'
        >>> format_filesize(1024)
        '1.0 KB'
        >>> format_filesize(1536)
        '1.5 KB'
    """
    if size_bytes == 0:
        return "0B"
    size_units = ("B", "KB", "MB", "GB", "TB", "PB")
    i = min(int(math.floor(math.log(size_bytes, 1024))), len(size_units) - 1)
    s = round(size_bytes / math.pow(1024, i), 2)
    return f"{s} {size_units[i]}"


def check_mesh_file(
    input_path: str,
    config: Optional[CheckConfig] = None,
    progress_callback: Optional[Callable[[str, str], None]] = None
) -> Dict[str, Any]:
    """
    Read a mesh file and check it for watertightness.

    The process:
    1. Decode the file into triangles (counting bad declared normals)
    2. Cast one probe ray per triangle and check crossing parity
    3. Optionally run trimesh's topology checks as a second opinion

    Args:
        input_path: Path to the mesh file
        config: CheckConfig object (uses defaults if None)
        progress_callback: Optional function to call with progress updates
                          Signature: callback(stage: str, message: str)
                          Stages: 'load', 'check', 'cross_check'

    Returns:
        Dictionary with check results:
        {
            'input_path': str,
            'file_size': str,
            'source_format': str,
            'header': str,
            'num_triangles': int,
            'bad_normals': int,
            'result': IntegrityResult,
            'cross_check': ValidationResult or None,
            'elapsed_seconds': float
        }

    Raises:
        FileNotFoundError: If input file doesn't exist
        StlFormatError: If a binary STL file is malformed
        ValueError: If the file cannot be turned into triangles
    """
    if config is None:
        config = CheckConfig()

    def _progress(stage: str, message: str):
        if progress_callback:
            progress_callback(stage, message)

    start = time.perf_counter()
    path = Path(input_path)

    _progress("load", f"Reading {path.name}...")
    mesh_file = load_mesh_file(path, config)
    _progress("load", f"Read {len(mesh_file.triangles)} triangles")

    checker = MeshIntegrityChecker(config)
    result = checker.check(mesh_file.triangles, progress_callback=progress_callback)
    result.add_stat("bad_normals", mesh_file.bad_normals)

    cross_check = None
    if config.cross_check:
        _progress("cross_check", "Running trimesh topology checks...")
        cross_check = validate_triangles(mesh_file.triangles, path.name)

    return {
        'input_path': str(path),
        'file_size': format_filesize(path.stat().st_size),
        'source_format': mesh_file.source_format,
        'header': mesh_file.header,
        'num_triangles': len(mesh_file.triangles),
        'bad_normals': mesh_file.bad_normals,
        'result': result,
        'cross_check': cross_check,
        'elapsed_seconds': time.perf_counter() - start,
    }
