"""
Reading mesh files into triangle lists.

Binary STL is decoded here directly with numpy, because the integrity check
wants the exact float32 values stored in the file. Each triangle's normal
is recomputed from its vertex winding and compared with the normal the
file declares; disagreements are counted as a diagnostic.

Every other format (ASCII STL, OBJ, PLY, 3MF, ...) is loaded with trimesh
and flattened to a triangle soup. Those files carry no per-face normals
we can trust, so no normal cross-check is done for them.

Binary STL layout (all little-endian):

    80 bytes   header (free text)
    uint32     triangle count N
    N records of 50 bytes:
        3 x float32   declared face normal
        9 x float32   vertices v1, v2, v3
        uint16        attribute byte count (ignored)
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np
import trimesh

from .config import CheckConfig
from .constants import STL_HEADER_SIZE, STL_COUNT_SIZE, STL_RECORD_SIZE
from .exceptions import StlFormatError
from .triangle import Triangle, pack_triangles
from .vector import Vector3

# Set up logging for this module
logger = logging.getLogger(__name__)

STL_RECORD_DTYPE = np.dtype([
    ("normal", "<f4", (3,)),
    ("vertices", "<f4", (3, 3)),
    ("attribute", "<u2"),
])


@dataclass
class MeshFile:
    """
    A mesh file decoded into triangles.

    Attributes:
        path: Where the mesh was read from
        source_format: "binary-stl" or the file extension trimesh loaded
        header: The 80-byte STL header as text ("" for other formats)
        triangles: Triangles in file order
        declared_normals: Normals stored in the file (binary STL only)
        bad_normals: How many declared normals disagree with the winding
    """

    path: str
    source_format: str
    header: str = ""
    triangles: List[Triangle] = field(default_factory=list)
    declared_normals: Optional[List[Vector3]] = None
    bad_normals: int = 0

    def __repr__(self) -> str:
        return (
            f"MeshFile({self.path!r}, format={self.source_format}, "
            f"triangles={len(self.triangles)}, bad_normals={self.bad_normals})"
        )


def is_binary_stl(path: Union[str, Path]) -> bool:
    """
    Check whether a file is a binary STL.

    ASCII STL files usually start with "solid", but so do plenty of binary
    headers, so the size is checked instead: a binary STL is exactly
    84 + 50 x N bytes, where N is the count stored at offset 80.
    """
    path = Path(path)
    size = path.stat().st_size
    if size < STL_HEADER_SIZE + STL_COUNT_SIZE:
        return False

    with open(path, "rb") as f:
        f.seek(STL_HEADER_SIZE)
        count = int(np.frombuffer(f.read(STL_COUNT_SIZE), dtype="<u4")[0])

    return size == STL_HEADER_SIZE + STL_COUNT_SIZE + count * STL_RECORD_SIZE


def read_binary_stl(path: Union[str, Path], trust_declared_normals: bool = False) -> MeshFile:
    """
    Decode a binary STL file.

    Args:
        path: File to read
        trust_declared_normals: Keep the file's normals instead of the
            recomputed ones (the mismatch count is reported either way)

    Returns:
        MeshFile with triangles in file order

    Raises:
        FileNotFoundError: If the file doesn't exist
        StlFormatError: If the file is shorter than its header says
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mesh file not found: {path}")

    with open(path, "rb") as f:
        header_bytes = f.read(STL_HEADER_SIZE)
        count_bytes = f.read(STL_COUNT_SIZE)
        if len(header_bytes) < STL_HEADER_SIZE or len(count_bytes) < STL_COUNT_SIZE:
            raise StlFormatError(f"{path}: file too short for a binary STL header")

        count = int(np.frombuffer(count_bytes, dtype="<u4")[0])
        body = f.read(count * STL_RECORD_SIZE)

    if len(body) < count * STL_RECORD_SIZE:
        raise StlFormatError(
            f"{path}: header declares {count} triangles but only "
            f"{len(body) // STL_RECORD_SIZE} complete records follow"
        )

    header = header_bytes.decode("utf-8", errors="replace").rstrip("\x00 ")
    if count == 0:
        records = np.zeros(0, dtype=STL_RECORD_DTYPE)
    else:
        records = np.frombuffer(body, dtype=STL_RECORD_DTYPE, count=count)

    triangles = []
    declared_normals = []
    bad_normals = 0
    for record in records:
        declared = Vector3.from_array(record["normal"])
        v1 = Vector3.from_array(record["vertices"][0])
        v2 = Vector3.from_array(record["vertices"][1])
        v3 = Vector3.from_array(record["vertices"][2])

        triangle = Triangle.from_vertices(v1, v2, v3)
        if not triangle.normal_matches(declared):
            bad_normals += 1
        if trust_declared_normals:
            triangle = Triangle.from_vertices_and_normal(declared, v1, v2, v3)

        declared_normals.append(declared)
        triangles.append(triangle)

    if bad_normals > 0:
        logger.info(f"{path.name}: {bad_normals} declared normals disagree with vertex winding")

    return MeshFile(
        path=str(path),
        source_format="binary-stl",
        header=header,
        triangles=triangles,
        declared_normals=declared_normals,
        bad_normals=bad_normals,
    )


def _load_with_trimesh(path: Path) -> MeshFile:
    """Load any trimesh-supported format as a flat triangle list."""
    loaded = trimesh.load_mesh(str(path), process=False)

    if isinstance(loaded, trimesh.Scene):
        geometries = [g for g in loaded.geometry.values() if isinstance(g, trimesh.Trimesh)]
        if not geometries:
            raise ValueError(f"{path}: scene contains no triangle meshes")
        loaded = trimesh.util.concatenate(geometries)

    if not isinstance(loaded, trimesh.Trimesh):
        raise ValueError(f"{path}: loaded object is not a triangle mesh ({type(loaded).__name__})")

    corners = np.asarray(loaded.triangles, dtype=np.float32)
    triangles = [
        Triangle.from_vertices(
            Vector3.from_array(tri[0]),
            Vector3.from_array(tri[1]),
            Vector3.from_array(tri[2]),
        )
        for tri in corners
    ]
    return MeshFile(
        path=str(path),
        source_format=path.suffix.lower().lstrip(".") or "unknown",
        triangles=triangles,
    )


def load_mesh_file(path: Union[str, Path], config: Optional[CheckConfig] = None) -> MeshFile:
    """
    Load a mesh file of any supported format.

    Binary STL goes through ``read_binary_stl``; everything else is handed
    to trimesh.

    Raises:
        FileNotFoundError: If the file doesn't exist
        StlFormatError: If a binary STL is malformed
        ValueError: If trimesh cannot turn the file into triangles
    """
    if config is None:
        config = CheckConfig()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Mesh file not found: {path}")

    if path.suffix.lower() == ".stl" and is_binary_stl(path):
        return read_binary_stl(path, trust_declared_normals=config.trust_declared_normals)

    logger.debug(f"{path.name}: not a binary STL, loading with trimesh")
    return _load_with_trimesh(path)


def write_binary_stl(
    path: Union[str, Path],
    triangles: Sequence[Triangle],
    header: str = "",
    normals: Optional[Sequence[Vector3]] = None
) -> None:
    """
    Write triangles as a binary STL file.

    Args:
        path: Destination file
        triangles: Triangles to write, in order
        header: Header text (truncated / zero-padded to 80 bytes)
        normals: Normals to declare per triangle; defaults to each
            triangle's own unit normal
    """
    if normals is None:
        normals = [t.unit_normal for t in triangles]
    if len(normals) != len(triangles):
        raise ValueError(f"Got {len(normals)} normals for {len(triangles)} triangles")

    records = np.zeros(len(triangles), dtype=STL_RECORD_DTYPE)
    if len(triangles) > 0:
        records["normal"] = np.array([n.to_tuple() for n in normals], dtype=np.float32)
        records["vertices"] = pack_triangles(triangles)

    header_bytes = header.encode("utf-8")[:STL_HEADER_SIZE].ljust(STL_HEADER_SIZE, b"\x00")
    with open(path, "wb") as f:
        f.write(header_bytes)
        f.write(np.array([len(triangles)], dtype="<u4").tobytes())
        f.write(records.tobytes())
