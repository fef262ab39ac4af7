"""
Progressive Sample Consensus (PROSAC).

Chum & Matas, "Matching with PROSAC - Progressive Sample Consensus", CVPR 2005.

The sample index set is ranked by quality, best first. Instead of sampling
uniformly from all N points, PROSAC samples from a pool made of the n best
points and grows the pool on a schedule (Eq. 5), so good points are tried
first and the run degrades to plain RANSAC in the worst case.

The run stops adaptively: every time a better model is found, the inliers
are used to pick the pool size n* that maximizes the inlier ratio
epsilon_n* = I_n* / n*, subject to a non-randomness test (Eq. 8/9), and the
trial budget k_n* is recomputed from it.

Variable names follow the paper: T_N, T_n, T'_n, n*, I_n*, epsilon_n*, k_n*.
All schedule and ratio arithmetic is done in float32.
"""
from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.stats import binom

from .core import SampleConsensus
from .types import Coefficients, ConsensusResult, IndexArray

logger = logging.getLogger(__name__)
_PROSAC_DEBUG = os.environ.get("SACSEG_PROSAC_DEBUG", "0") == "1"

# Worst-case number of trials
T_N = 200000

# Non-randomness test (Eq. 8/9): probability that a random model is supported
# by a point, and the significance level of the test
_BETA = 0.1
_PSI = 0.05

# Stopping criterion: accept a 5% chance of missing an all-inlier sample
_ETA_0 = 0.05


def initial_trials(N: int, m: int) -> np.float32:
    """
    T_n for n = m:  T_N * prod_{i=0}^{m-1} (m - i) / (N - i)
    """
    T_n = np.float32(T_N)
    for i in range(m):
        T_n *= np.float32(m - i) / np.float32(N - i)
    return T_n


def minimum_inliers(pool_size: int, sample_size: int) -> int:
    """
    Smallest inlier count at this pool size that is unlikely to come from
    a random model (Eq. 8/9):

        I_min = m + ceil(upper 95% quantile of Binomial(n, beta))
    """
    return sample_size + int(math.ceil(binom.ppf(1.0 - _PSI, pool_size, _BETA)))


def trial_budget(epsilon: np.float32, m: int) -> int:
    """
    k_n* = ceil(log(eta_0) / log(1 - epsilon^m)), floored at 2m.

    1 - epsilon^m == 0: every sample is all-inlier, one trial is enough
    1 - epsilon^m == 1: no evidence, fall back to T_N
    """
    bottom_log = np.float32(1.0) - np.float32(epsilon) ** m
    if bottom_log == 0.0:
        k = 1
    elif bottom_log == 1.0:
        k = T_N
    else:
        k = int(math.ceil(math.log(_ETA_0) / math.log(float(bottom_log))))
    return max(k, 2 * m)


@dataclass
class ProgressiveSampleConsensus(SampleConsensus):
    """
    PROSAC engine. The model's index set must be ranked best quality first.
    """

    def _best_pool_size(
        self,
        inliers: IndexArray,
        epsilon_n_star: np.float32,
    ) -> Optional[tuple[int, int, np.float32]]:
        """
        Scan candidate pool sizes given the inliers of a new best model.

        For each inlier, from the lowest-quality one upwards, the pool just
        large enough to contain it is a candidate n*. A candidate improves if
        its inlier ratio beats both the running best and epsilon_n_star, and
        the scan stops at the first improving candidate that fails the
        non-randomness test.

        Returns (n_star, I_n_star, epsilon_n_star) if a better ratio was found.
        """
        index_set = self.model.index_set
        N = index_set.size
        m = self.model.sample_size
        I_N = int(inliers.size)

        ranks = np.sort(index_set.rank_of(inliers))[::-1]

        possible_n_star_best = N
        I_possible_n_star_best = I_N
        epsilon_possible_n_star_best = np.float32(I_N) / np.float32(N)

        I_possible_n_star = I_N
        for rank in ranks:
            # Smallest pool containing this inlier
            possible_n_star = int(rank) + 1
            if possible_n_star <= m:
                break

            epsilon_possible_n_star = np.float32(I_possible_n_star) / np.float32(possible_n_star)
            if (epsilon_possible_n_star > epsilon_n_star
                    and epsilon_possible_n_star > epsilon_possible_n_star_best):
                if I_possible_n_star < minimum_inliers(possible_n_star, m):
                    break
                possible_n_star_best = possible_n_star
                I_possible_n_star_best = I_possible_n_star
                epsilon_possible_n_star_best = epsilon_possible_n_star

            I_possible_n_star -= 1

        if epsilon_possible_n_star_best > epsilon_n_star:
            return possible_n_star_best, I_possible_n_star_best, epsilon_possible_n_star_best
        return None

    def compute_model(self) -> Optional[ConsensusResult]:
        threshold = self._checked_threshold()

        model = self.model
        index_set = model.index_set
        N = index_set.size
        m = model.sample_size
        if N < m:
            logger.info("PROSAC: %d samples, model needs %d", N, m)
            return None

        # ---------- Schedule state ----------
        T_n = initial_trials(N, m)
        T_prime_n = np.float32(1.0)
        n = m

        n_star = N
        I_n_star = 0
        epsilon_n_star = np.float32(I_n_star) / np.float32(n_star)
        k_n_star = T_N

        best_count = 0
        best_coefficients: Optional[Coefficients] = None
        best_inliers: Optional[IndexArray] = None
        best_selection: Optional[IndexArray] = None

        iterations = 0
        index_set.reset(n)
        try:
            while iterations < k_n_star and iterations < self.max_iterations:
                # Step 1: grow the pool (Eq. 5)
                if iterations >= T_prime_n and n < n_star:
                    if n + 1 > N:
                        break
                    index_set.promote()
                    n += 1
                    T_n_minus_1 = T_n
                    T_n *= np.float32(n + 1) / np.float32(n + 1 - m)
                    T_prime_n += np.float32(math.ceil(T_n - T_n_minus_1))

                # Step 2: sample from the pool, forcing in the newest member
                # once the schedule is behind
                pool = index_set.pool
                selection = model.draw_samples(pool)
                if selection.size and T_prime_n < iterations:
                    newest = pool[n - 1]
                    if newest not in selection:
                        selection[-1] = newest
                if _PROSAC_DEBUG:
                    logger.debug(
                        "PROSAC sample at trial %d: n=%d, T'_n=%.1f, sample=%s",
                        iterations, n, float(T_prime_n), selection.tolist(),
                    )

                if selection.size == 0:
                    iterations += 1
                    continue

                coefficients = model.estimate(selection)
                if coefficients is None:
                    iterations += 1
                    continue

                # Inliers are always counted over the full index set
                inliers = model.select_inliers(coefficients, threshold)
                I_N = int(inliers.size)

                if I_N > best_count:
                    best_count = I_N
                    best_coefficients = coefficients
                    best_inliers = inliers
                    best_selection = selection

                    update = self._best_pool_size(inliers, epsilon_n_star)
                    if update is not None:
                        n_star, I_n_star, epsilon_n_star = update
                        k_n_star = trial_budget(epsilon_n_star, m)

                iterations += 1
                if _PROSAC_DEBUG:
                    logger.debug(
                        "PROSAC trial %d out of %d: %d inliers (best is: %d so far), n=%d, n*=%d",
                        iterations, k_n_star, I_N, best_count, n, n_star,
                    )
        finally:
            index_set.reset(N)

        if best_coefficients is None or best_inliers is None or best_selection is None:
            logger.info("PROSAC: no model found after %d trials", iterations)
            return None

        logger.info(
            "PROSAC: %d inliers out of %d after %d trials (n=%d, n*=%d, k_n*=%d)",
            best_count, N, iterations, n, n_star, k_n_star,
        )
        return ConsensusResult(
            coefficients=best_coefficients,
            inliers=best_inliers,
            num_inliers=best_count,
            selection=best_selection,
            iterations=iterations,
            threshold=threshold,
            pool_size=n,
            trial_budget=int(k_n_star),
        )
