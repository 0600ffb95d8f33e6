"""
3D vector value type used by every geometric routine in the package.

Components are stored as single-precision floats (numpy.float32), which is
what binary STL stores. Keeping the arithmetic in float32 means an
intersection point computed here rounds exactly like the file data it came
from, and that matters: duplicate hits are detected by EXACT equality.

Two equality notions live side by side and must not be mixed up:

- ``a == b`` compares components exactly (used for duplicate hits)
- ``a.approx_equal(b)`` allows 2 x float32 epsilon per component
  (used to compare a declared normal against a recomputed one)

Vectors also have a total order (x, then y, then z) so intersection points
can be sorted along a ray. NaN components are a precondition violation;
the order still stays total by sorting NaN after every number.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence, Tuple

import numpy as np

from .constants import NORMAL_TOLERANCE_SCALE
from .exceptions import InvalidLength

_F32 = np.float32

# Per-component tolerance for approx_equal
APPROX_TOLERANCE = _F32(NORMAL_TOLERANCE_SCALE) * np.finfo(np.float32).eps


def _order_component(value: np.float32) -> Tuple[bool, float]:
    """Sort key for one component: numbers first, NaN last."""
    if math.isnan(value):
        return (True, 0.0)
    return (False, float(value))


@dataclass(frozen=True, eq=False)
class Vector3:
    """
    An immutable 3D vector with float32 components.

    Components may be passed as any real number (int, float, numpy scalar);
    they are always stored as numpy.float32.

    Example:
        >>> a = Vector3(1, 2, 3)
        >>> b = Vector3(4, 5, 6)
        >>> a.cross(b)
        Vector3(-3.0, 6.0, -3.0)
    """

    x: np.float32
    y: np.float32
    z: np.float32

    def __post_init__(self):
        # Frozen dataclass, so go through object.__setattr__ to coerce
        object.__setattr__(self, "x", _F32(self.x))
        object.__setattr__(self, "y", _F32(self.y))
        object.__setattr__(self, "z", _F32(self.z))

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_array(cls, arr: Sequence[float]) -> "Vector3":
        """Build a vector from a fixed-length (3) array, tuple or numpy row."""
        return cls(arr[0], arr[1], arr[2])

    @classmethod
    def from_iterable(cls, values: Iterable[float]) -> "Vector3":
        """
        Build a vector from any collection of components.

        Raises:
            InvalidLength: If the collection does not hold exactly 3 values
        """
        components = list(values)
        if len(components) != 3:
            raise InvalidLength(len(components))
        return cls(components[0], components[1], components[2])

    @classmethod
    def zero(cls) -> "Vector3":
        return cls(0.0, 0.0, 0.0)

    # ------------------------------------------------------------------
    # Arithmetic (never mutates, always returns a new vector)
    # ------------------------------------------------------------------

    def __add__(self, other: "Vector3") -> "Vector3":
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vector3") -> "Vector3":
        if not isinstance(other, Vector3):
            return NotImplemented
        return Vector3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, scalar: float) -> "Vector3":
        if isinstance(scalar, Vector3):
            return NotImplemented
        k = _F32(scalar)
        return Vector3(self.x * k, self.y * k, self.z * k)

    __rmul__ = __mul__

    def __neg__(self) -> "Vector3":
        return Vector3(-self.x, -self.y, -self.z)

    def dot(self, other: "Vector3") -> np.float32:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "Vector3") -> "Vector3":
        """Right-handed cross product."""
        return Vector3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> np.float32:
        return np.sqrt(self.dot(self))

    def distance(self, other: "Vector3") -> np.float32:
        return (self - other).length()

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def approx_equal(self, other: "Vector3") -> bool:
        """True if every component differs by less than 2 x float32 epsilon."""
        return bool(
            abs(self.x - other.x) < APPROX_TOLERANCE
            and abs(self.y - other.y) < APPROX_TOLERANCE
            and abs(self.z - other.z) < APPROX_TOLERANCE
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return bool(self.x == other.x and self.y == other.y and self.z == other.z)

    def __hash__(self) -> int:
        return hash((float(self.x), float(self.y), float(self.z)))

    def sort_key(self) -> Tuple[Tuple[bool, float], ...]:
        """Key implementing the x, then y, then z order (NaN sorts last)."""
        return (
            _order_component(self.x),
            _order_component(self.y),
            _order_component(self.z),
        )

    def __lt__(self, other: "Vector3") -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return self.sort_key() < other.sort_key()

    def __le__(self, other: "Vector3") -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return self.sort_key() <= other.sort_key()

    def __gt__(self, other: "Vector3") -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return self.sort_key() > other.sort_key()

    def __ge__(self, other: "Vector3") -> bool:
        if not isinstance(other, Vector3):
            return NotImplemented
        return self.sort_key() >= other.sort_key()

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def __iter__(self) -> Iterator[np.float32]:
        yield self.x
        yield self.y
        yield self.z

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float32)

    def to_tuple(self) -> Tuple[float, float, float]:
        return (float(self.x), float(self.y), float(self.z))

    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in self)

    def __repr__(self) -> str:
        return f"Vector3({float(self.x)!r}, {float(self.y)!r}, {float(self.z)!r})"

    def __str__(self) -> str:
        return f"<{self.x}, {self.y}, {self.z}>"
