"""
Watertightness check by probe-ray parity.

For every triangle a probe ray is cast from just outside its face, through
the solid, and every crossing with the mesh is counted. A ray that starts
outside a closed surface has to leave it again, so on a watertight mesh the
count is always even. The first triangle with an odd count is evidence of
a hole, a crack or a flipped face, and is reported with its hit list.

Triangles are independent of each other, so the probes can run on a
thread pool. Results are always consumed in index order, which keeps the
reported offender the lowest failing index no matter which thread finishes
first.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

import numpy as np

from .config import CheckConfig
from .exceptions import UnresolvableDegeneracy
from .ray import Ray
from .triangle import Triangle, pack_triangles
from .vector import Vector3

# Set up logging for this module
logger = logging.getLogger(__name__)

VERDICT_CLOSED = "closed"
VERDICT_BROKEN = "broken"
VERDICT_UNDETERMINED = "undetermined"


class ProbeOutcome:
    """What one probe ray found for one triangle."""

    def __init__(
        self,
        index: int,
        hits: Optional[List[Vector3]] = None,
        error: Optional[UnresolvableDegeneracy] = None,
        skipped: bool = False
    ):
        self.index = index
        self.hits = hits
        self.error = error
        self.skipped = skipped

    @property
    def is_odd(self) -> bool:
        return self.hits is not None and len(self.hits) % 2 != 0

    def __repr__(self) -> str:
        if self.skipped:
            return f"ProbeOutcome({self.index}, skipped)"
        if self.error is not None:
            return f"ProbeOutcome({self.index}, unresolved)"
        return f"ProbeOutcome({self.index}, hits={len(self.hits)})"


class IntegrityResult:
    """
    Verdict of one integrity check, plus the evidence behind it.

    Follows the same add_error / add_warning / add_stat shape as the mesh
    validation results so both can be reported side by side.
    """

    def __init__(self, triangle_count: int = 0):
        """Initialize an empty (closed) result."""
        self.triangle_count = triangle_count
        self.offending_index: Optional[int] = None
        self.offending_triangle: Optional[Triangle] = None
        self.intersections: List[Vector3] = []
        self.odd_indices: List[int] = []
        self.unresolved_indices: List[int] = []
        self.skipped_indices: List[int] = []
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.stats: Dict[str, Any] = {}

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_stat(self, key: str, value: Any) -> None:
        self.stats[key] = value

    @property
    def verdict(self) -> str:
        """``"broken"``, ``"undetermined"`` or ``"closed"``."""
        if self.odd_indices:
            return VERDICT_BROKEN
        if self.unresolved_indices:
            return VERDICT_UNDETERMINED
        return VERDICT_CLOSED

    @property
    def is_closed(self) -> bool:
        return self.verdict == VERDICT_CLOSED

    def __repr__(self) -> str:
        return (
            f"IntegrityResult({self.verdict.upper()}, triangles={self.triangle_count}, "
            f"odd={len(self.odd_indices)}, unresolved={len(self.unresolved_indices)})"
        )


class MeshIntegrityChecker:
    """
    Runs the probe-ray parity test over a whole mesh.

    The checker keeps no state between runs; one instance can check any
    number of meshes.

    Example:
        >>> checker = MeshIntegrityChecker(CheckConfig(workers=4))
        >>> result = checker.check(triangles)
        >>> result.is_closed
        True
    """

    def __init__(self, config: Optional[CheckConfig] = None):
        self.config = config if config is not None else CheckConfig()

    def probe(self, index: int, triangles: Sequence[Triangle], packed: np.ndarray) -> ProbeOutcome:
        """Cast the probe ray of ``triangles[index]`` against the whole mesh."""
        triangle = triangles[index]
        if triangle.is_degenerate:
            return ProbeOutcome(index, skipped=True)

        ray = Ray.from_triangle(triangle)
        try:
            hits = ray.all_intersections(packed)
        except UnresolvableDegeneracy as e:
            return ProbeOutcome(index, error=e)
        return ProbeOutcome(index, hits=hits)

    def _outcomes(self, triangles: Sequence[Triangle], packed: np.ndarray) -> Iterator[ProbeOutcome]:
        """Probe outcomes in index order, computed lazily."""
        if self.config.workers == 1:
            for index in range(len(triangles)):
                yield self.probe(index, triangles, packed)
            return

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = [
                executor.submit(self.probe, index, triangles, packed)
                for index in range(len(triangles))
            ]
            try:
                for future in futures:
                    yield future.result()
            finally:
                # Stopping early (first offender found) drops queued probes
                for future in futures:
                    future.cancel()

    def check(
        self,
        triangles: Sequence[Triangle],
        progress_callback: Optional[Callable[[str, str], None]] = None
    ) -> IntegrityResult:
        """
        Check a mesh for watertightness.

        Args:
            triangles: The mesh as an ordered collection of triangles
            progress_callback: Optional function to call with progress updates
                              Signature: callback(stage: str, message: str)

        Returns:
            IntegrityResult with the verdict, the first offending triangle
            (if any) and its sorted intersection points
        """
        def _progress(message: str):
            if progress_callback:
                progress_callback("check", message)

        triangles = list(triangles)
        total = len(triangles)
        result = IntegrityResult(total)

        if total == 0:
            result.add_warning("Mesh has no triangles; nothing to check")
            return result

        packed = pack_triangles(triangles)
        checked = 0

        outcomes = self._outcomes(triangles, packed)
        try:
            for outcome in outcomes:
                _progress(f"Triangle {outcome.index + 1}/{total}")

                if outcome.skipped:
                    result.skipped_indices.append(outcome.index)
                    result.add_warning(
                        f"Triangle {outcome.index} has zero area; no probe ray cast"
                    )
                    continue

                if outcome.error is not None:
                    logger.warning(f"Triangle {outcome.index}: {outcome.error}")
                    result.unresolved_indices.append(outcome.index)
                    result.add_warning(
                        f"Triangle {outcome.index}: intersection parity undetermined "
                        f"(numerical degeneracy)"
                    )
                    continue

                checked += 1
                if not outcome.is_odd:
                    continue

                result.odd_indices.append(outcome.index)
                if result.offending_index is None:
                    result.offending_index = outcome.index
                    result.offending_triangle = triangles[outcome.index]
                    result.intersections = outcome.hits
                    result.add_error(
                        f"Triangle {outcome.index} has an odd number of intersections "
                        f"({len(outcome.hits)}); mesh is not closed"
                    )
                    logger.info(f"Broken mesh: triangle {outcome.index} has {len(outcome.hits)} intersections")

                if not self.config.find_all:
                    break
        finally:
            outcomes.close()

        result.add_stat("triangles", total)
        result.add_stat("probes_evaluated", checked)
        result.add_stat("odd_parity", len(result.odd_indices))
        result.add_stat("unresolved", len(result.unresolved_indices))
        result.add_stat("skipped_degenerate", len(result.skipped_indices))

        if len(result.odd_indices) > 1:
            result.add_error(f"{len(result.odd_indices)} triangles in total have odd parity")

        logger.info(f"Checked {total} triangles: {result.verdict}")
        return result


def check_mesh_integrity(
    triangles: Sequence[Triangle],
    config: Optional[CheckConfig] = None,
    progress_callback: Optional[Callable[[str, str], None]] = None
) -> IntegrityResult:
    """Convenience wrapper: ``MeshIntegrityChecker(config).check(triangles)``."""
    return MeshIntegrityChecker(config).check(triangles, progress_callback)
