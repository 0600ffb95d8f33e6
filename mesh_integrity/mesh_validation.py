"""
Edge-topology cross-check using trimesh.

The probe-ray parity test looks at geometry: does every ray leave the solid
again? trimesh answers a different question about the same mesh, based on
connectivity: is every edge shared by exactly two consistently wound faces?
Running both gives a second opinion, and trimesh's statistics (boundary
edges, Euler number, volume) help explain WHY a mesh failed.

Triangle soups (like STL) share no vertex indices, so coincident vertices
are merged before any topology is computed.
"""

from typing import List, Dict, Any, Sequence
import logging
import trimesh
import numpy as np

from .triangle import Triangle, pack_triangles

# Set up logging for this module
logger = logging.getLogger(__name__)


class ValidationResult:
    """
    Result of the trimesh cross-check containing issues found and statistics.
    """

    def __init__(self):
        """Initialize an empty validation result."""
        self.is_valid = True
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.stats: Dict[str, Any] = {}

    def add_error(self, message: str) -> None:
        """Add a critical error that makes the mesh invalid."""
        self.is_valid = False
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        """Add a non-critical warning about mesh quality."""
        self.warnings.append(message)

    def add_stat(self, key: str, value: Any) -> None:
        """Add a statistic about the mesh."""
        self.stats[key] = value

    def __repr__(self) -> str:
        status = "VALID" if self.is_valid else "INVALID"
        return f"ValidationResult({status}, errors={len(self.errors)}, warnings={len(self.warnings)})"


def to_trimesh(triangles: Sequence[Triangle]) -> trimesh.Trimesh:
    """
    Convert a triangle soup into a vertex-merged trimesh.

    Every triangle contributes three fresh vertices; merge_vertices() then
    welds the coincident ones so edges can be shared.
    """
    corners = pack_triangles(triangles).reshape(-1, 3).astype(np.float64)
    faces = np.arange(len(corners)).reshape(-1, 3)
    tmesh = trimesh.Trimesh(vertices=corners, faces=faces, process=False)
    tmesh.merge_vertices()
    return tmesh


def validate_triangles(triangles: Sequence[Triangle], mesh_name: str = "mesh") -> ValidationResult:
    """
    Run trimesh's topology checks on a triangle list.

    Checks:
    - Watertightness (every edge shared by exactly 2 faces)
    - Winding consistency
    - Boundary edges (1 face) and non-manifold edges (3+ faces)
    - Volume validity and sign
    - Euler number

    Args:
        triangles: Mesh triangles
        mesh_name: Name for error messages

    Returns:
        ValidationResult with detailed findings
    """
    result = ValidationResult()

    if len(triangles) == 0:
        result.add_error(f"{mesh_name} has no triangles")
        return result

    try:
        tmesh = to_trimesh(triangles)
    except Exception as e:
        result.add_error(f"{mesh_name}: Failed to create trimesh object: {e}")
        return result

    result.add_stat("vertices", len(tmesh.vertices))
    result.add_stat("triangles", len(tmesh.faces))

    # Critical check: Watertightness
    try:
        if not tmesh.is_watertight:
            result.add_stat("watertight", False)
            result.add_error(f"{mesh_name} is not watertight (has holes or open boundaries)")
        else:
            result.add_stat("watertight", True)
    except Exception as e:
        result.add_warning(f"Could not check watertightness: {e}")

    # Critical check: Winding consistency
    try:
        if not tmesh.is_winding_consistent:
            result.add_stat("winding_consistent", False)
            result.add_error(f"{mesh_name} has inconsistent triangle winding")
        else:
            result.add_stat("winding_consistent", True)
    except Exception as e:
        result.add_warning(f"Could not check winding consistency: {e}")

    # Edge usage: how many faces reference each unique edge
    try:
        faces_per_edge = np.bincount(
            tmesh.edges_unique_inverse,
            minlength=len(tmesh.edges_unique)
        )
        boundary_edges = int((faces_per_edge == 1).sum())
        nonmanifold_edges = int((faces_per_edge > 2).sum())
        result.add_stat("boundary_edges", boundary_edges)
        result.add_stat("nonmanifold_edges", nonmanifold_edges)
        if boundary_edges > 0:
            result.add_error(f"  Found {boundary_edges} boundary edges (edges with only 1 adjacent face)")
        if nonmanifold_edges > 0:
            result.add_error(f"  Found {nonmanifold_edges} non-manifold edges (shared by 3 or more faces)")
    except Exception as e:
        result.add_warning(f"Could not count boundary edges: {e}")

    # Important check: Valid volume
    try:
        if not tmesh.is_volume:
            result.add_stat("is_volume", False)
            result.add_error(f"{mesh_name} does not enclose a valid volume")
        else:
            result.add_stat("is_volume", True)
            result.add_stat("volume", float(tmesh.volume))

            # Negative volume means the whole mesh is inside-out
            if tmesh.volume < 0:
                result.add_error(f"{mesh_name} has negative volume (mesh is inside-out)")
    except Exception as e:
        result.add_warning(f"Could not check volume: {e}")

    # Topological check: Euler number
    try:
        euler = int(tmesh.euler_number)
        result.add_stat("euler_number", euler)
        if euler != 2:
            # For a closed genus-0 surface, Euler = 2
            genus = 1 - (euler / 2)
            result.add_warning(f"{mesh_name} has unusual topology (euler={euler}, genus={genus})")
    except Exception as e:
        result.add_warning(f"Could not calculate Euler number: {e}")

    logger.debug(f"{mesh_name}: trimesh cross-check {result}")
    return result


def get_mesh_report(triangles: Sequence[Triangle], mesh_name: str = "mesh") -> str:
    """
    Generate a plain-text topology report.

    Args:
        triangles: Mesh triangles
        mesh_name: Name for the report

    Returns:
        Formatted report string
    """
    result = validate_triangles(triangles, mesh_name)

    lines = []
    lines.append(f"=== Mesh Topology Report: {mesh_name} ===")
    lines.append("")

    lines.append("Basic Statistics:")
    lines.append(f"  Vertices (merged): {result.stats.get('vertices', 'N/A')}")
    lines.append(f"  Triangles: {result.stats.get('triangles', 'N/A')}")
    lines.append("")

    lines.append("Validation Status:")
    if result.is_valid:
        lines.append("  ✅ VALID - Mesh passed all topology checks")
    else:
        lines.append("  ❌ INVALID - Mesh has topology issues")
    lines.append(f"  Watertight: {'✅ Yes' if result.stats.get('watertight') else '❌ No'}")
    lines.append(f"  Winding Consistent: {'✅ Yes' if result.stats.get('winding_consistent') else '❌ No'}")
    lines.append(f"  Valid Volume: {'✅ Yes' if result.stats.get('is_volume') else '❌ No'}")
    if 'boundary_edges' in result.stats:
        lines.append(f"  Boundary Edges: {result.stats['boundary_edges']}")
        lines.append(f"  Non-manifold Edges: {result.stats['nonmanifold_edges']}")
    if 'euler_number' in result.stats:
        lines.append(f"  Euler Number: {result.stats['euler_number']}")
    if 'volume' in result.stats:
        lines.append(f"  Volume: {result.stats['volume']:.4f}")
    lines.append("")

    if result.errors:
        lines.append("Errors:")
        for error in result.errors:
            lines.append(f"  ❌ {error}")
        lines.append("")

    if result.warnings:
        lines.append("Warnings:")
        for warning in result.warnings:
            lines.append(f"  ⚠️ {warning}")
        lines.append("")

    return "\n".join(lines)
