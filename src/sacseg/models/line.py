"""
3D line model utilities.

A line is stored as 6 coefficients [px, py, pz, dx, dy, dz]:
a point on the line and a unit direction.

Distance of a point q to the line is ||(q - p) x d||.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from ..consensus.types import Coefficients, FloatArray, Points3D
from ..errors import DegenerateSampleError


def is_degenerate_pair(pts: Points3D, eps_length: float = 1e-12) -> bool:
    """
    Two (nearly) identical points do not define a direction.
    """
    if pts.shape != (2, 3):
        raise ValueError(f"Expected (2,3) pair, got {pts.shape}")
    return float(np.linalg.norm(pts[1] - pts[0])) < eps_length


def fit_line_minimal(pts: Points3D, eps_length: float = 1e-12) -> Coefficients:
    """
    Fit line through exactly 2 points.
    """
    if is_degenerate_pair(pts, eps_length=eps_length):
        raise DegenerateSampleError("Coincident points do not define a line")

    direction = pts[1] - pts[0]
    direction = direction / np.linalg.norm(direction)
    return np.concatenate([pts[0], direction]).astype(np.float64)


def fit_line_least_squares(
    pts: Points3D,
    reference: Optional[Coefficients] = None,
) -> Optional[Coefficients]:
    """
    Fit line to N >= 2 points with cv2.fitLine (L2 distance).

    cv2.fitLine returns (vx, vy, vz, x0, y0, z0): unit direction first, then
    a point on the line. The direction is flipped to agree with the reference.
    """
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"Expected pts shape (N,3), got {pts.shape}")
    if pts.shape[0] < 2:
        return None

    try:
        fitted = cv2.fitLine(pts.astype(np.float32), cv2.DIST_L2, 0, 0.01, 0.01)
    except cv2.error:
        return None

    fitted = np.asarray(fitted, dtype=np.float64).reshape(-1)
    direction = fitted[:3]
    point = fitted[3:6]

    length = float(np.linalg.norm(direction))
    if length == 0.0 or not np.isfinite(length):
        return None
    direction = direction / length

    if reference is not None and np.dot(direction, reference[3:6]) < 0.0:
        direction = -direction
    return np.concatenate([point, direction]).astype(np.float64)


def point_to_line_distance(coefficients: Coefficients, pts: Points3D) -> FloatArray:
    """
    Per-point distance to the line. Returns shape (N,).
    """
    origin = coefficients[:3]
    direction = coefficients[3:6]
    return np.linalg.norm(np.cross(pts - origin, direction), axis=1).astype(np.float64)
