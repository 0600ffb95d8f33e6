"""
Configuration constants for mesh integrity checking.

All the magic numbers live here! The numerical tolerances below are tuned
for single-precision (float32) geometry, which is what binary STL stores.
Change them with care: the parity test is only as good as its epsilons.
"""

__version__ = "1.0.0"

# ============================================================================
# Ray Casting Tolerances
# ============================================================================

# Tolerance for the ray/triangle test. Determinants smaller than this mean
# the ray runs parallel to the triangle's plane, and hit parameters smaller
# than this are treated as "behind the origin".
RAY_EPSILON = 1.0e-6

# Probe rays start this many RAY_EPSILONs outside the face they are cast
# from, so the originating triangle is always hit in front of the origin.
PROBE_OFFSET_SCALE = 4.0

# When a ray grazes a shared edge or vertex, its origin is nudged sideways
# by this many RAY_EPSILONs and the query is retried.
PERTURBATION_SCALE = 2.0

# Normals declared in a file are compared component-wise against the
# recomputed ones using this many float32 machine epsilons.
NORMAL_TOLERANCE_SCALE = 2.0

# ============================================================================
# Binary STL Layout
# ============================================================================

# 80-byte free text header, then a little-endian uint32 triangle count
STL_HEADER_SIZE = 80
STL_COUNT_SIZE = 4

# Each record: normal (3 x float32), 3 vertices (9 x float32), uint16 attribute
STL_RECORD_SIZE = 50

# ============================================================================
# Checking
# ============================================================================

# Number of worker threads used to evaluate probe rays. 1 = sequential.
DEFAULT_WORKERS = 1

# Keep going after the first odd-parity triangle to collect every offender
FIND_ALL_DEFECTS = False

# Build triangles from the normals declared in the file instead of
# recomputing them from the vertex winding
TRUST_DECLARED_NORMALS = False

# Also run trimesh's edge-topology checks and report them next to the verdict
CROSS_CHECK = False

# ============================================================================
# Batch Processing
# ============================================================================

# Mesh file extensions picked up in batch mode. Binary STL is decoded by our
# own reader; everything else goes through trimesh.
SUPPORTED_MESH_EXTENSIONS = {'.stl', '.obj', '.ply', '.off', '.3mf', '.glb', '.gltf'}

# Batch summaries are written as {prefix}_{timestamp}.md
SUMMARY_FILE_PREFIX = "integrity_summary"

# Number of intersection points shown per offending triangle in reports
MAX_REPORTED_POINTS = 20
