"""
Shared typed primitives for the sample consensus pipeline.

Defines:
- Typed NumPy aliases for point sets
    - Points and normals are (N,3) float arrays
    - Model coefficients are flat float vectors
    - Index sets are int64 arrays of point indices
- The shape protocol every geometric model variant implements
- The ranked sample index set shared between a model and an engine
- Structured consensus result container (coefficients + inliers + stats)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Protocol, TypeAlias

import numpy as np
import numpy.typing as npt

# ---------- Numpy typing aliases ----------
# - float64 for geometry / coefficients (more stable for linear algebra)
# - int64 for point indices

FloatArray: TypeAlias = npt.NDArray[np.float64]
IndexArray: TypeAlias = npt.NDArray[np.int64]

# Points in 3D. 2D models only look at the x and y columns.
Points3D: TypeAlias = FloatArray      # shape: (N, 3)

# One surface normal per point, same row order as the points.
Normals3D: TypeAlias = FloatArray     # shape: (N, 3)

# Parameter vector of a fitted model, e.g. plane [a, b, c, d].
Coefficients: TypeAlias = FloatArray  # shape: (K,)


class ShapeFitter(Protocol):
    """
    Interface that a geometric model variant must implement to be usable
    by the sample consensus model and engines.

    Consensus steps:
    1) Reject a drawn sample early if it is obviously degenerate
    2) Fit coefficients from a minimal sample
    3) Check the coefficients against the variant's constraints
    4) Score every point with a per-point residual
    5) Polish the best coefficients using all inliers (least squares)
    """

    sample_size: ClassVar[int]
    coefficient_count: ClassVar[int]
    needs_normals: ClassVar[bool]

    def is_sample_good(self, points: Points3D, normals: Optional[Normals3D]) -> bool:
        """
        Cheap degeneracy test on a minimal sample (e.g. collinear points for a plane).
        """
        ...

    def fit_minimal(self, points: Points3D, normals: Optional[Normals3D]) -> Coefficients:
        """
        Fit from exactly sample_size points.
        Raise DegenerateSampleError if the sample does not determine a model.
        """
        ...

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        """
        Check variant constraints (radius limits, axis and angle, ...).
        """
        ...

    def residuals(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> FloatArray:
        """
        Return one non-negative distance per point. Shape: (N,).
        """
        ...

    def fit_least_squares(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> Optional[Coefficients]:
        """
        Refine coefficients over all inliers, starting from the given estimate.
        Return None if the set is degenerate or the solve fails.
        """
        ...


class SampleIndexSet:
    """
    Ranked point indices with an explicit sampling pool.

    The arena holds every index once, best quality first. The pool is the
    prefix of the first `pool_size` entries; `full` always covers the whole
    arena. Promoting moves the boundary by one, so the next-ranked index joins
    the pool. Both views are read-only.
    """

    def __init__(self, indices: npt.ArrayLike) -> None:
        arena = np.array(indices, dtype=np.int64).reshape(-1)
        if np.unique(arena).size != arena.size:
            raise ValueError("Sample indices must be unique")
        self._arena: IndexArray = arena
        self._pool_size = int(arena.size)
        self._sorted_order: Optional[IndexArray] = None

    def __len__(self) -> int:
        return int(self._arena.size)

    @property
    def size(self) -> int:
        return int(self._arena.size)

    @property
    def pool_size(self) -> int:
        return self._pool_size

    @property
    def pool(self) -> IndexArray:
        view = self._arena[: self._pool_size]
        view.flags.writeable = False
        return view

    @property
    def full(self) -> IndexArray:
        view = self._arena[:]
        view.flags.writeable = False
        return view

    def reset(self, pool_size: int) -> None:
        """Set the pool to the first `pool_size` ranked indices."""
        if not 0 <= pool_size <= self.size:
            raise ValueError(f"pool_size must be in [0, {self.size}], got {pool_size}")
        self._pool_size = int(pool_size)

    def promote(self) -> int:
        """
        Move the next-ranked index from the tail into the pool and return it.
        """
        if self._pool_size >= self.size:
            raise IndexError("Pool already covers every sample index")
        promoted = int(self._arena[self._pool_size])
        self._pool_size += 1
        return promoted

    def rank_of(self, indices: npt.ArrayLike) -> IndexArray:
        """
        Arena positions (quality ranks) of the given point indices.
        Every index must belong to the set.
        """
        if self._sorted_order is None:
            self._sorted_order = np.argsort(self._arena, kind="stable")
        query = np.asarray(indices, dtype=np.int64)
        sorted_arena = self._arena[self._sorted_order]
        pos = np.searchsorted(sorted_arena, query)
        pos = np.clip(pos, 0, max(self.size - 1, 0))
        if query.size and (self.size == 0 or np.any(sorted_arena[pos] != query)):
            raise KeyError("Some indices are not part of the sample index set")
        return self._sorted_order[pos]


# ---------- Consensus output container ----------
# frozen=True means "immutable" after construction
@dataclass(frozen=True)
class ConsensusResult:
    coefficients: Coefficients   # best coefficients found by a minimal sample
    inliers: IndexArray          # point indices within threshold of the best model
    num_inliers: int             # len(inliers)
    selection: IndexArray        # the minimal sample that produced the best model
    iterations: int              # how many trials were actually run
    threshold: float             # the distance threshold used
    pool_size: Optional[int] = None     # PROSAC: final sampling pool size n
    trial_budget: Optional[int] = None  # PROSAC: final adaptive budget k_n_star


# ---------- Helper Functions ----------
def as_points3d(points: npt.ArrayLike, name: str = "points") -> Points3D:
    """
    Convert input to an (N,3) float64 array.
    (N,2) input is padded with z = 0 so planar data can use 2D models.
    """
    arr = np.asarray(points, dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] not in (2, 3):
        raise ValueError(f"Expected {name} shape (N, 3) or (N, 2) but got {arr.shape}")
    if arr.shape[1] == 2:
        arr = np.hstack([arr, np.zeros((arr.shape[0], 1), dtype=np.float64)])
    return arr


def is_valid_coefficients(coefficients: Optional[np.ndarray], count: int) -> bool:
    """
    Verify a coefficient vector. Used for rejecting failed fits.
    """
    return (
        isinstance(coefficients, np.ndarray)
        and coefficients.shape == (count,)
        and bool(np.isfinite(coefficients).all())
    )
