"""
Generic sample consensus loops (model-agnostic).

RANSAC overview:
- Randomly sample a *minimal* subset of points
- Fit a candidate model from that subset
- Score all points by their distance to the candidate
- Mark inliers where distance < threshold
- Keep the model with the best score
- Stop once enough trials were run to be confident (adaptive budget),
  or when the user's max_iterations is reached

Scoring variants:
- RandomSampleConsensus: score = number of inliers
- MEstimatorSampleConsensus: score = -sum(min(d^2, t^2)) (truncated quadratic cost)

All engines work through SampleConsensusModel, so any shape variant plugs in.
"""
from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..errors import MissingThresholdError
from .model import SampleConsensusModel
from .types import Coefficients, ConsensusResult, IndexArray

logger = logging.getLogger(__name__)
_RANSAC_DEBUG = os.environ.get("SACSEG_RANSAC_DEBUG", "0") == "1"


def required_iter_for_confidence(
        *,
        probability: float,
        inlier_ratio: float,
        sample_size: int,
) -> int:
    """
    Compute the number of trials needed so that the probability of having
    drawn at least ONE all-inlier minimal sample is >= probability.

    inlier ratio w = (# inliers) / N, minimal sample s = sample_size,
    - P(all-inliers) = w^s
    - P(not-all-inlier-for-k-times) = (1 - w^s)^k
    - P(at-least-once-all-inliers) = 1 - (1 - w^s)^k >= p

    Formula:
       k >= log(1 - p) / log(1 - w^s)

    Edge cases:
     - w == 0  -> impossible, return "infinite-ish" (capped by max_iterations)
     - w == 1  -> 1 trial is enough
    """
    # Clamp inputs to avoid log(0)
    p = float(np.clip(probability, 1e-12, 1.0 - 1e-12))
    w = float(np.clip(inlier_ratio, 0.0, 1.0))
    s = int(sample_size)

    if s <= 0:
        raise ValueError("sample_size must be >= 1")

    if w >= 1.0:
        return 1

    if w <= 0.0:
        return int(1e9)

    # If w^s is extremely tiny, log(1 - w^s) close to 0
    w_to_s = float(np.clip(w ** s, 1e-12, 1.0 - 1e-12))

    k = int(np.ceil(np.log(1 - p) / np.log(1 - w_to_s)))
    return max(1, k)


@dataclass
class SampleConsensus:
    """
    Common configuration of every consensus engine.

    - model: the point set + shape variant to fit
    - threshold: inlier distance threshold; must be set (None means unset)
    - max_iterations: user ceiling on trials, always wins over the adaptive budget
    - probability: desired probability of drawing one outlier-free sample
    """
    model: SampleConsensusModel
    threshold: Optional[float] = None
    max_iterations: int = 1000
    probability: float = 0.99

    def _checked_threshold(self) -> float:
        if self.threshold is None or not math.isfinite(float(self.threshold)):
            raise MissingThresholdError(f"{type(self).__name__}: no distance threshold set")
        return float(self.threshold)

    def compute_model(self) -> Optional[ConsensusResult]:
        """
        Run the engine. Returns None when no model was found.
        """
        raise NotImplementedError


@dataclass
class RandomSampleConsensus(SampleConsensus):
    """
    Plain RANSAC with the adaptive stopping criterion.
    """

    def _score(self, coefficients: Coefficients, threshold: float) -> tuple[float, int]:
        """
        Return (score, num_inliers). Higher score is better.
        """
        count = self.model.count_within(coefficients, threshold)
        return float(count), count

    def compute_model(self) -> Optional[ConsensusResult]:
        threshold = self._checked_threshold()

        model = self.model
        m = model.sample_size
        full = model.index_set.full
        n = full.size
        if n < m:
            # Not enough points to fit the model
            return None

        # Track the best hypothesis
        best_coefficients: Optional[Coefficients] = None
        best_selection: Optional[IndexArray] = None
        best_score = -np.inf

        target_iters = self.max_iterations
        max_skip = self.max_iterations * 10
        iterations = 0
        skipped = 0

        # ---------- Main Loop ----------
        while iterations < target_iters and iterations < self.max_iterations and skipped < max_skip:
            selection = model.draw_samples(full)
            if selection.size == 0:
                skipped += 1
                continue

            # Fit model from minimal set, None if degenerate
            coefficients = model.estimate(selection)
            if coefficients is None:
                skipped += 1
                continue

            score, num_inliers = self._score(coefficients, threshold)

            if score > best_score:
                best_score = score
                best_coefficients = coefficients
                best_selection = selection

                # Compute trials needed to reach the configured confidence
                iter_needed = required_iter_for_confidence(
                    probability=self.probability,
                    inlier_ratio=num_inliers / float(n),
                    sample_size=m,
                )
                target_iters = min(target_iters, max(iter_needed, iterations + 1))
                if _RANSAC_DEBUG:
                    logger.debug(
                        "[%s] better model: inliers=%d/%d, target_iters=%d",
                        type(self).__name__, num_inliers, n, target_iters,
                    )

            iterations += 1

        if best_coefficients is None or best_selection is None:
            logger.info("%s: no model found after %d trials", type(self).__name__, iterations)
            return None

        inliers = model.select_inliers(best_coefficients, threshold)
        logger.info(
            "%s: %d inliers out of %d after %d trials",
            type(self).__name__, inliers.size, n, iterations,
        )
        return ConsensusResult(
            coefficients=best_coefficients,
            inliers=inliers,
            num_inliers=int(inliers.size),
            selection=best_selection,
            iterations=iterations,
            threshold=threshold,
        )


@dataclass
class MEstimatorSampleConsensus(RandomSampleConsensus):
    """
    MSAC: like RANSAC, but inliers contribute their squared distance to the
    cost and outliers a constant t^2. Lower cost wins.
    """

    def _score(self, coefficients: Coefficients, threshold: float) -> tuple[float, int]:
        dist = self.model.distances(coefficients)
        sq = dist * dist
        t2 = threshold * threshold
        cost = float(np.sum(np.minimum(sq, t2)))
        return -cost, int(np.count_nonzero(dist < threshold))
