"""
Sample consensus model: binds a point set to one geometric shape variant.

The engines (RANSAC, MSAC, PROSAC) only talk to this class. It owns:
- the points and optional normals
- the ranked SampleIndexSet the engines sample from
- the random generator used for drawing samples

and exposes the capability set the engines need: draw a minimal sample,
estimate coefficients from it, measure distances, select inliers, and
polish the final coefficients.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np
import numpy.typing as npt

from ..errors import DegenerateSampleError, InvalidInputError
from .types import (
    Coefficients, FloatArray, IndexArray, Normals3D, Points3D, SampleIndexSet,
    ShapeFitter, as_points3d, is_valid_coefficients,
)

logger = logging.getLogger(__name__)

_EMPTY: IndexArray = np.empty((0,), dtype=np.int64)


class SampleConsensusModel:
    """
    A point set seen through one shape variant.

    Inputs:
    - fitter: the shape variant (plane, sphere, ...) with its constraints
    - points: (N,3) point set (N,2 is padded with z=0)
    - normals: (N,3) normals, required when fitter.needs_normals
    - indices: point indices taking part in the fit, ranked best quality first
               (defaults to every point, in storage order)
    - seed: RNG seed for reproducible sampling
    - max_sample_checks: attempts to draw a non-degenerate sample per trial
    """

    def __init__(
        self,
        fitter: ShapeFitter,
        points: npt.ArrayLike,
        *,
        normals: Optional[npt.ArrayLike] = None,
        indices: Optional[npt.ArrayLike] = None,
        seed: Optional[int] = 0,
        max_sample_checks: int = 1000,
    ) -> None:
        self.fitter = fitter
        self.points: Points3D = as_points3d(points)

        self.normals: Optional[Normals3D] = None
        if normals is not None:
            self.normals = as_points3d(normals, name="normals")
            if self.normals.shape[0] != self.points.shape[0]:
                raise InvalidInputError(
                    f"Got {self.normals.shape[0]} normals for {self.points.shape[0]} points"
                )
        if fitter.needs_normals and self.normals is None:
            raise InvalidInputError(f"{type(fitter).__name__} requires input normals")

        if indices is None:
            indices = np.arange(self.points.shape[0])
        try:
            self.index_set = SampleIndexSet(indices)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e
        full = self.index_set.full
        if full.size and (full.min() < 0 or full.max() >= self.points.shape[0]):
            raise InvalidInputError("Indices out of range of the input cloud")

        self.rng = np.random.default_rng(seed)
        self.max_sample_checks = int(max_sample_checks)

    @property
    def sample_size(self) -> int:
        return int(self.fitter.sample_size)

    def _normals_at(self, idx: IndexArray) -> Optional[Normals3D]:
        return None if self.normals is None else self.normals[idx]

    # ---------- Sampling ----------
    def draw_samples(self, pool: Optional[IndexArray] = None) -> IndexArray:
        """
        Draw sample_size unique indices uniformly from the pool
        (defaults to the full index set).

        Samples failing the shape's degeneracy test are redrawn, up to
        max_sample_checks times. Returns an empty array if no good sample
        could be found.
        """
        if pool is None:
            pool = self.index_set.full
        m = self.sample_size
        if pool.size < m:
            return _EMPTY

        for _ in range(self.max_sample_checks):
            selection = self.rng.choice(pool, size=m, replace=False)
            if self.fitter.is_sample_good(self.points[selection], self._normals_at(selection)):
                return selection.astype(np.int64)

        logger.debug("No good sample found after %d checks", self.max_sample_checks)
        return _EMPTY

    # ---------- Estimation ----------
    def estimate(self, selection: IndexArray) -> Optional[Coefficients]:
        """
        Fit coefficients from a minimal sample.

        Returns None if the sample is degenerate or the model violates the
        shape's constraints.
        """
        if selection.size != self.sample_size:
            return None
        try:
            coefficients = self.fitter.fit_minimal(
                self.points[selection], self._normals_at(selection)
            )
        except DegenerateSampleError:
            return None

        if not is_valid_coefficients(coefficients, self.fitter.coefficient_count):
            return None
        if not self.fitter.is_model_valid(coefficients):
            return None
        return coefficients

    # ---------- Scoring ----------
    def distances(self, coefficients: Coefficients) -> FloatArray:
        """
        Distance of every point in the full index set to the model. Shape: (N,).
        """
        full = self.index_set.full
        return self.fitter.residuals(coefficients, self.points[full], self._normals_at(full))

    def select_inliers(self, coefficients: Coefficients, threshold: float) -> IndexArray:
        """
        Point indices (over the full index set) with distance < threshold.
        """
        dist = self.distances(coefficients)
        return self.index_set.full[dist < threshold].copy()

    def count_within(self, coefficients: Coefficients, threshold: float) -> int:
        return int(np.count_nonzero(self.distances(coefficients) < threshold))

    # ---------- Refinement ----------
    def refine(self, inliers: IndexArray, coefficients: Coefficients) -> Optional[Coefficients]:
        """
        Least-squares polish of coefficients over the inlier set.
        Returns None when the polish fails; callers keep the unrefined model.
        """
        inliers = np.asarray(inliers, dtype=np.int64)
        if inliers.size < self.sample_size:
            return None

        refined = self.fitter.fit_least_squares(
            coefficients, self.points[inliers], self._normals_at(inliers)
        )
        if not is_valid_coefficients(refined, self.fitter.coefficient_count):
            return None
        if not self.fitter.is_model_valid(refined):
            return None
        return refined
