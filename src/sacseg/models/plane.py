"""
Plane model utilities.

A plane is stored as 4 coefficients [a, b, c, d] with unit normal (a, b, c):

    a*x + b*y + c*z + d = 0

Distance of a point p to the plane is |n . p + d|.

Also holds the angle helpers shared by every model that constrains a
direction against a user axis or compares against point normals.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..consensus.types import Coefficients, FloatArray, Normals3D, Points3D
from ..errors import DegenerateSampleError


# ---------- Angle helpers ----------
def angle_between(u: np.ndarray, v: np.ndarray) -> float:
    """
    Unsigned angle in [0, pi] between two 3D vectors.
    """
    nu = np.linalg.norm(u)
    nv = np.linalg.norm(v)
    if nu == 0.0 or nv == 0.0:
        return 0.0
    cos = float(np.dot(u, v) / (nu * nv))
    return float(np.arccos(np.clip(cos, -1.0, 1.0)))


def line_angle(u: np.ndarray, v: np.ndarray) -> float:
    """
    Angle in [0, pi/2] between two undirected lines.
    Directions u and -u count as the same line.
    """
    angle = angle_between(u, v)
    return min(angle, np.pi - angle)


def normal_angles(normals: Normals3D, direction: np.ndarray) -> FloatArray:
    """
    Per-point undirected angle in [0, pi/2] between point normals and a direction.

    direction may be a single (3,) vector or one (N,3) vector per point.
    """
    direction = np.asarray(direction, dtype=np.float64)
    dots = np.sum(normals * direction, axis=-1)
    norms = np.linalg.norm(normals, axis=-1) * np.linalg.norm(direction, axis=-1)
    with np.errstate(invalid="ignore", divide="ignore"):
        cos = np.where(norms > 0.0, dots / norms, 1.0)
    angles = np.arccos(np.clip(cos, -1.0, 1.0))
    return np.minimum(angles, np.pi - angles)


# ---------- Degeneracy Check Helpers ----------
def _normal_from_triplet(pts: Points3D) -> np.ndarray:
    """
    Unnormalized plane normal (p1 - p0) x (p2 - p0).
    Its magnitude is 2x the triangle area; near 0 means collinear points.
    """
    return np.cross(pts[1] - pts[0], pts[2] - pts[0])


def is_degenerate_triplet(pts: Points3D, eps_area: float = 1e-12) -> bool:
    if pts.shape != (3, 3):
        raise ValueError(f"Expected (3,3) triplet, got {pts.shape}")
    return float(np.linalg.norm(_normal_from_triplet(pts))) < eps_area


# ---------- Plane Fitting ----------
def fit_plane_minimal(pts: Points3D, eps_area: float = 1e-12) -> Coefficients:
    """
    Fit plane through exactly 3 points.

    Raises DegenerateSampleError when the points are (nearly) collinear.
    """
    if pts.shape != (3, 3):
        raise ValueError(f"fit_plane_minimal expects (3,3) input, got {pts.shape}")

    normal = _normal_from_triplet(pts)
    length = float(np.linalg.norm(normal))
    if length < eps_area:
        raise DegenerateSampleError("Collinear points do not define a plane")

    normal = normal / length
    d = -float(np.dot(normal, pts[0]))
    return np.array([normal[0], normal[1], normal[2], d], dtype=np.float64)


def fit_plane_least_squares(
    pts: Points3D,
    reference: Optional[Coefficients] = None,
) -> Optional[Coefficients]:
    """
    Fit plane to N >= 3 points by PCA.

    The normal is the eigenvector of the scatter matrix with the smallest
    eigenvalue. If a reference plane is given, the normal is flipped to agree
    with it so refined coefficients keep the same orientation.
    """
    if pts.ndim != 2 or pts.shape[1] != 3:
        raise ValueError(f"Expected pts shape (N,3), got {pts.shape}")
    if pts.shape[0] < 3:
        return None

    centroid = pts.mean(axis=0)
    centered = pts - centroid
    scatter = centered.T @ centered

    try:
        eigvals, eigvecs = np.linalg.eigh(scatter)
    except np.linalg.LinAlgError:
        return None

    # Second eigenvalue ~0 means the points are collinear: normal is undefined
    if eigvals[1] <= 1e-12 * max(float(eigvals[2]), 1.0):
        return None

    normal = eigvecs[:, 0]
    if reference is not None and np.dot(normal, reference[:3]) < 0.0:
        normal = -normal
    d = -float(np.dot(normal, centroid))
    return np.array([normal[0], normal[1], normal[2], d], dtype=np.float64)


# ---------- Residuals ----------
def point_to_plane_distance(coefficients: Coefficients, pts: Points3D) -> FloatArray:
    """
    Per-point absolute distance |n . p + d|. Returns shape (N,).
    """
    return np.abs(pts @ coefficients[:3] + coefficients[3]).astype(np.float64)


def weighted_normal_distance(
    euclidean: FloatArray,
    angles: FloatArray,
    weight: float,
) -> FloatArray:
    """
    Blend euclidean distance with the angular difference of normals:

        d_i = | w * angle_i + (1 - w) * euclid_i |
    """
    return np.abs(weight * angles + (1.0 - weight) * euclidean)
