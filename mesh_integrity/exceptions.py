"""
Error kinds raised by the integrity checker.

Both core errors are local and recoverable: a bad vector or a single
unresolvable probe ray is reported to the caller, it never aborts the
whole check.
"""


class MeshIntegrityError(Exception):
    """Base class for all errors raised by this package."""


class InvalidLength(MeshIntegrityError, ValueError):
    """A vector was built from a collection that does not hold exactly three values."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Vector3 needs exactly 3 components, got {length}")


class UnresolvableDegeneracy(MeshIntegrityError, RuntimeError):
    """
    Every perturbation of a ray still produced duplicate intersection points.

    The parity of the ray cannot be trusted, so the triangle it was cast
    from is left undetermined rather than counted.
    """

    def __init__(self, ray, attempts: int):
        self.ray = ray
        self.attempts = attempts
        super().__init__(
            f"Could not resolve degenerate intersections for ray {ray} "
            f"after {attempts} attempts"
        )


class StlFormatError(MeshIntegrityError, ValueError):
    """A binary STL file is truncated or otherwise malformed."""
