"""Shared fixtures: synthetic point sets with known models."""

import numpy as np
import pytest

# Plane used by the synthetic scenes: 0.3 x + 0.2 y - z + 1 = 0
PLANE_NORMAL = np.array([0.3, 0.2, -1.0]) / np.linalg.norm([0.3, 0.2, -1.0])
PLANE_D = 1.0 / np.linalg.norm([0.3, 0.2, -1.0])


def plane_points(rng, n):
    xy = rng.uniform(-1.0, 1.0, size=(n, 2))
    z = 0.3 * xy[:, 0] + 0.2 * xy[:, 1] + 1.0
    return np.column_stack([xy, z])


def assert_same_plane(coefficients, normal=PLANE_NORMAL, d=PLANE_D, tol=1e-3):
    sign = 1.0 if np.dot(coefficients[:3], normal) > 0 else -1.0
    assert np.allclose(sign * coefficients[:3], normal, atol=tol)
    assert abs(sign * coefficients[3] - d) < tol


@pytest.fixture
def ranked_plane_scene():
    """
    N=100: indices 0-59 lie exactly on the plane (best quality),
    60-99 are uniform noise.
    """
    rng = np.random.default_rng(7)
    on_plane = plane_points(rng, 60)
    noise = rng.uniform(-1.0, 1.0, size=(40, 3)) + np.array([0.0, 0.0, 1.0])
    return np.vstack([on_plane, noise])


@pytest.fixture
def shuffled_plane_scene():
    """
    N=400: 100 plane points scattered among 300 noise points, so PROSAC has
    to grow its pool for a while.
    """
    rng = np.random.default_rng(11)
    on_plane = plane_points(rng, 100)
    noise = rng.uniform(-1.0, 1.0, size=(300, 3)) + np.array([0.0, 0.0, 1.0])
    points = np.vstack([on_plane, noise])
    order = rng.permutation(points.shape[0])
    return points, order


@pytest.fixture
def sphere_scene():
    """200 points on the unit sphere at the origin + 100 outliers."""
    rng = np.random.default_rng(3)
    dirs = rng.normal(size=(200, 3))
    dirs /= np.linalg.norm(dirs, axis=1, keepdims=True)
    outliers = rng.uniform(-2.0, 2.0, size=(100, 3))
    return np.vstack([dirs, outliers])


@pytest.fixture
def cylinder_scene():
    """
    200 points on a cylinder (axis +z through (0.5, -0.5), r=0.3) with
    radial normals, plus 80 outliers with random normals.
    """
    rng = np.random.default_rng(5)
    theta = rng.uniform(0.0, 2.0 * np.pi, size=200)
    z = rng.uniform(0.0, 2.0, size=200)
    radial = np.column_stack([np.cos(theta), np.sin(theta), np.zeros(200)])
    surface = np.column_stack([0.5 + 0.3 * radial[:, 0], -0.5 + 0.3 * radial[:, 1], z])

    outliers = rng.uniform(-1.0, 2.0, size=(80, 3))
    outlier_normals = rng.normal(size=(80, 3))
    outlier_normals /= np.linalg.norm(outlier_normals, axis=1, keepdims=True)

    points = np.vstack([surface, outliers])
    normals = np.vstack([radial, outlier_normals])
    return points, normals
