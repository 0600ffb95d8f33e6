"""
Configuration dataclass for mesh integrity checks.

This module defines the CheckConfig dataclass that holds the parameters of
a check run. The geometric tolerances are fixed constants; what the user
chooses is how the run is executed and reported.
"""

from dataclasses import dataclass
from .constants import (
    DEFAULT_WORKERS,
    FIND_ALL_DEFECTS,
    TRUST_DECLARED_NORMALS,
    CROSS_CHECK,
)


@dataclass
class CheckConfig:
    """
    Configuration for a mesh integrity check.

    Attributes:
        workers: Number of threads evaluating probe rays (1 = sequential)
        find_all: If True, keep checking after the first odd-parity triangle
            and collect every offender instead of stopping early
        trust_declared_normals: If True, triangles read from binary STL keep
            the normal stored in the file instead of a recomputed one
        cross_check: If True, also run trimesh's topology checks
    """

    workers: int = DEFAULT_WORKERS
    find_all: bool = FIND_ALL_DEFECTS
    trust_declared_normals: bool = TRUST_DECLARED_NORMALS
    cross_check: bool = CROSS_CHECK

    def __post_init__(self):
        """Validate configuration parameters."""
        if not isinstance(self.workers, int) or isinstance(self.workers, bool):
            raise ValueError(f"workers must be an integer, got {self.workers!r}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
