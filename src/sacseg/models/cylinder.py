"""
Cylinder model utilities. Cylinders need point normals.

A cylinder is stored as 7 coefficients [px, py, pz, dx, dy, dz, r]:
a point on the axis, a unit axis direction, and the radius.

Minimal fit from 2 points with normals:
  - on a cylinder every normal is perpendicular to the axis and its normal
    line passes through the axis, so
  - axis direction = n1 x n2
  - axis point = closest point between the normal lines p1 + s*n1 and p2 + t*n2
  - radius = distance from p1 to the axis
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.optimize import least_squares

from ..consensus.types import Coefficients, FloatArray, Normals3D, Points3D
from ..errors import DegenerateSampleError
from .plane import normal_angles, weighted_normal_distance


def is_degenerate_normal_pair(normals: Normals3D, eps: float = 1e-8) -> bool:
    """
    Parallel (or zero) normals do not constrain the axis direction.
    """
    if normals.shape != (2, 3):
        raise ValueError(f"Expected (2,3) normals, got {normals.shape}")
    return float(np.linalg.norm(np.cross(normals[0], normals[1]))) < eps


def fit_cylinder_minimal(pts: Points3D, normals: Normals3D, eps: float = 1e-8) -> Coefficients:
    """
    Fit cylinder from exactly 2 points and their normals.
    """
    if pts.shape != (2, 3):
        raise ValueError(f"fit_cylinder_minimal expects (2,3) points, got {pts.shape}")
    if is_degenerate_normal_pair(normals, eps=eps):
        raise DegenerateSampleError("Parallel normals do not define a cylinder axis")

    p1, p2 = pts[0], pts[1]
    n1, n2 = normals[0], normals[1]

    # Closest points between the two normal lines
    w0 = p1 - p2
    a = float(np.dot(n1, n1))
    b = float(np.dot(n1, n2))
    c = float(np.dot(n2, n2))
    d = float(np.dot(n1, w0))
    e = float(np.dot(n2, w0))
    denom = a * c - b * b
    if denom < eps:
        raise DegenerateSampleError("Normal lines are parallel")

    s = (b * e - c * d) / denom
    t = (a * e - b * d) / denom
    q1 = p1 + s * n1
    q2 = p2 + t * n2
    axis_point = 0.5 * (q1 + q2)

    direction = np.cross(n1, n2)
    direction = direction / np.linalg.norm(direction)

    radius = float(point_to_axis_distance(axis_point, direction, p1[None, :])[0])
    if radius <= 0.0:
        raise DegenerateSampleError("Zero-radius cylinder")

    return np.concatenate([axis_point, direction, [radius]]).astype(np.float64)


def _radial_vectors(axis_point: np.ndarray, direction: np.ndarray, pts: Points3D) -> np.ndarray:
    """
    Component of (p - axis_point) perpendicular to the axis, one row per point.
    """
    v = pts - axis_point
    along = v @ direction
    return v - np.outer(along, direction)


def point_to_axis_distance(axis_point: np.ndarray, direction: np.ndarray, pts: Points3D) -> FloatArray:
    return np.linalg.norm(_radial_vectors(axis_point, direction, pts), axis=1)


def point_to_cylinder_distance(
    coefficients: Coefficients,
    pts: Points3D,
    normals: Optional[Normals3D] = None,
    weight: float = 0.0,
) -> FloatArray:
    """
    Per-point distance to the cylinder surface, optionally blended with the
    angle between each point normal and the radial direction. Returns shape (N,).
    """
    axis_point = coefficients[:3]
    direction = coefficients[3:6]
    radial = _radial_vectors(axis_point, direction, pts)
    euclid = np.abs(np.linalg.norm(radial, axis=1) - coefficients[6])
    if normals is None or weight == 0.0:
        return euclid.astype(np.float64)
    angles = normal_angles(normals, radial)
    return weighted_normal_distance(euclid, angles, weight)


def fit_cylinder_least_squares(pts: Points3D, initial: Coefficients) -> Optional[Coefficients]:
    """
    Least-squares cylinder fit (Levenberg-Marquardt) on euclidean distances,
    seeded with the minimal-sample estimate. Needs at least 7 points.
    """
    if pts.shape[0] < 7:
        return None

    def residuals(params: np.ndarray) -> np.ndarray:
        direction = params[3:6]
        length = np.linalg.norm(direction)
        if length == 0.0:
            return np.full(pts.shape[0], np.inf)
        return point_to_axis_distance(params[:3], direction / length, pts) - params[6]

    initial = np.asarray(initial, dtype=np.float64)
    result = least_squares(residuals, initial, method="lm")
    if not result.success or not np.isfinite(result.x).all():
        return None

    refined = result.x.astype(np.float64)
    direction = refined[3:6] / np.linalg.norm(refined[3:6])
    if np.dot(direction, initial[3:6]) < 0.0:
        direction = -direction
    refined[3:6] = direction
    refined[6] = abs(refined[6])
    return refined
