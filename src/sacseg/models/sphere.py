"""
Sphere model utilities.

A sphere is stored as 4 coefficients [cx, cy, cz, r].

Minimal fit uses the algebraic form

    x^2 + y^2 + z^2 + D*x + E*y + F*z + G = 0

which is linear in (D, E, F, G): 4 points give a 4x4 system.
Center = -(D, E, F) / 2, r^2 = |center|^2 - G.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
from scipy.optimize import least_squares

from ..consensus.types import Coefficients, FloatArray, Points3D
from ..errors import DegenerateSampleError


def _design_matrix(pts: Points3D) -> np.ndarray:
    return np.hstack([pts, np.ones((pts.shape[0], 1), dtype=np.float64)])


def is_degenerate_quad(pts: Points3D, eps_det: float = 1e-12) -> bool:
    """
    Four (nearly) coplanar points do not determine a sphere.
    """
    if pts.shape != (4, 3):
        raise ValueError(f"Expected (4,3) sample, got {pts.shape}")
    return abs(float(np.linalg.det(_design_matrix(pts)))) < eps_det


def fit_sphere_minimal(pts: Points3D, eps_det: float = 1e-12) -> Coefficients:
    """
    Fit sphere through exactly 4 points.
    """
    if is_degenerate_quad(pts, eps_det=eps_det):
        raise DegenerateSampleError("Coplanar points do not define a sphere")

    A = _design_matrix(pts)
    b = -np.sum(pts * pts, axis=1)
    try:
        D, E, F, G = np.linalg.solve(A, b)
    except np.linalg.LinAlgError as e:
        raise DegenerateSampleError("Singular sphere system") from e

    center = -0.5 * np.array([D, E, F], dtype=np.float64)
    r2 = float(np.dot(center, center) - G)
    if r2 <= 0.0:
        raise DegenerateSampleError("Sphere with non-positive squared radius")
    return np.array([center[0], center[1], center[2], np.sqrt(r2)], dtype=np.float64)


def fit_sphere_least_squares(pts: Points3D, initial: Coefficients) -> Optional[Coefficients]:
    """
    Geometric least-squares sphere fit (Levenberg-Marquardt), seeded with
    the minimal-sample estimate. Needs at least 4 points.
    """
    if pts.shape[0] < 4:
        return None

    def residuals(params: np.ndarray) -> np.ndarray:
        return np.linalg.norm(pts - params[:3], axis=1) - params[3]

    result = least_squares(residuals, np.asarray(initial, dtype=np.float64), method="lm")
    if not result.success:
        return None
    refined = result.x.astype(np.float64)
    refined[3] = abs(refined[3])
    return refined


def point_to_sphere_distance(coefficients: Coefficients, pts: Points3D) -> FloatArray:
    """
    Per-point distance to the sphere surface. Returns shape (N,).
    """
    radial = np.linalg.norm(pts - coefficients[:3], axis=1)
    return np.abs(radial - coefficients[3]).astype(np.float64)
