"""
2D circle model utilities (x, y columns only).

A circle is stored as 3 coefficients [cx, cy, r].
Distance of a point q to the circle is | ||q_xy - c|| - r |.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.optimize import least_squares

from ..consensus.types import Coefficients, FloatArray, Points3D
from ..errors import DegenerateSampleError


# ---------- Degeneracy Check Helpers ----------
def _triangle_area(p1: np.ndarray, p2: np.ndarray, p3: np.ndarray) -> float:
    """
    Return 2x the triangle area formed by (p1, p2, p3) in the xy plane:

        area2 = |(p2 - p1) x (p3 - p1)|

    If area2 is near 0, the three points are collinear and have no circumcircle.
    """
    u = p2 - p1
    v = p3 - p1
    return float(abs(u[0] * v[1] - u[1] * v[0]))


def is_degenerate_triplet_2d(pts: Points3D, eps_area: float = 1e-12) -> bool:
    if pts.shape[0] != 3:
        raise ValueError(f"Expected 3 points, got {pts.shape}")
    return _triangle_area(pts[0, :2], pts[1, :2], pts[2, :2]) < eps_area


# ---------- Circle Fitting ----------
def fit_circle_minimal(pts: Points3D, eps_area: float = 1e-12) -> Coefficients:
    """
    Circumcircle of exactly 3 points (xy).
    """
    if is_degenerate_triplet_2d(pts, eps_area=eps_area):
        raise DegenerateSampleError("Collinear points do not define a circle")

    (ax, ay), (bx, by), (cx, cy) = pts[0, :2], pts[1, :2], pts[2, :2]
    d = 2.0 * (ax * (by - cy) + bx * (cy - ay) + cx * (ay - by))

    a2 = ax * ax + ay * ay
    b2 = bx * bx + by * by
    c2 = cx * cx + cy * cy
    ux = (a2 * (by - cy) + b2 * (cy - ay) + c2 * (ay - by)) / d
    uy = (a2 * (cx - bx) + b2 * (ax - cx) + c2 * (bx - ax)) / d

    r = float(np.hypot(ax - ux, ay - uy))
    return np.array([ux, uy, r], dtype=np.float64)


def fit_circle_least_squares(pts: Points3D, initial: Coefficients) -> Optional[Coefficients]:
    """
    Geometric least-squares circle fit (Levenberg-Marquardt), seeded with
    the minimal-sample estimate. Needs at least 3 points.
    """
    if pts.shape[0] < 3:
        return None
    xy = pts[:, :2]

    def residuals(params: np.ndarray) -> np.ndarray:
        return np.hypot(xy[:, 0] - params[0], xy[:, 1] - params[1]) - params[2]

    result = least_squares(residuals, np.asarray(initial, dtype=np.float64), method="lm")
    if not result.success:
        return None
    cx, cy, r = result.x
    return np.array([cx, cy, abs(r)], dtype=np.float64)


def point_to_circle_distance(coefficients: Coefficients, pts: Points3D) -> FloatArray:
    """
    Per-point distance to the circle in the xy plane. Returns shape (N,).
    """
    radial = np.hypot(pts[:, 0] - coefficients[0], pts[:, 1] - coefficients[1])
    return np.abs(radial - coefficients[2]).astype(np.float64)
