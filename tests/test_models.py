"""Tests for the geometric model variants and SampleConsensusModel."""

import numpy as np
import pytest

from sacseg.consensus.model import SampleConsensusModel
from sacseg.errors import DegenerateSampleError, InvalidInputError, UnsupportedModelError
from sacseg.models import (
    Circle2DFitter, CylinderFitter, LineFitter, NormalParallelPlaneFitter, NormalPlaneFitter,
    ParallelLineFitter, ParallelPlaneFitter, PerpendicularPlaneFitter, PlaneFitter, SphereFitter,
)
from sacseg.models.circle import fit_circle_minimal
from sacseg.models.cylinder import fit_cylinder_minimal, point_to_cylinder_distance
from sacseg.models.line import fit_line_least_squares, fit_line_minimal, point_to_line_distance
from sacseg.models.plane import (
    fit_plane_least_squares, fit_plane_minimal, line_angle, point_to_plane_distance,
)
from sacseg.models.sphere import fit_sphere_minimal

from conftest import PLANE_NORMAL, assert_same_plane, plane_points


class TestPlane:
    """Test plane fitting."""

    def test_minimal_fit(self):
        """Three points on z = 1 give normal +-z and offset -+1."""
        pts = np.array([[0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [0.0, 1.0, 1.0]])
        coeffs = fit_plane_minimal(pts)
        assert np.allclose(np.abs(coeffs[:3]), [0.0, 0.0, 1.0])
        assert np.allclose(point_to_plane_distance(coeffs, pts), 0.0)

    def test_collinear_is_degenerate(self):
        """Collinear points raise DegenerateSampleError."""
        pts = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2.0, 2.0, 2.0]])
        with pytest.raises(DegenerateSampleError):
            fit_plane_minimal(pts)
        assert not PlaneFitter().is_sample_good(pts, None)

    def test_least_squares_keeps_orientation(self):
        """PCA refit recovers the plane and agrees in sign with the reference."""
        rng = np.random.default_rng(0)
        pts = plane_points(rng, 200) + rng.normal(0.0, 1e-4, size=(200, 3))
        reference = np.append(-PLANE_NORMAL, -1.0)
        refined = fit_plane_least_squares(pts, reference=reference)
        assert refined is not None
        assert np.dot(refined[:3], reference[:3]) > 0
        assert_same_plane(refined)

    def test_least_squares_collinear_fails(self):
        """Collinear sets have no unique plane."""
        pts = np.column_stack([np.linspace(0, 1, 10)] * 3)
        assert fit_plane_least_squares(pts) is None

    def test_perpendicular_plane_constraint(self):
        """Normal must lie within eps of the axis (either direction)."""
        fitter = PerpendicularPlaneFitter(axis=(0.0, 0.0, 1.0), eps_angle=0.1)
        assert fitter.is_model_valid(np.array([0.0, 0.0, -1.0, 1.0]))
        assert not fitter.is_model_valid(np.array([1.0, 0.0, 0.0, 0.0]))

    def test_parallel_plane_constraint(self):
        """Normal must be perpendicular to the axis."""
        fitter = ParallelPlaneFitter(axis=(0.0, 0.0, 2.0), eps_angle=0.05)
        assert fitter.is_model_valid(np.array([1.0, 0.0, 0.0, 0.0]))
        assert not fitter.is_model_valid(np.array([0.0, 0.0, 1.0, -1.0]))

    def test_axis_required(self):
        """Axis-constrained variants refuse a zero axis."""
        with pytest.raises(UnsupportedModelError):
            PerpendicularPlaneFitter()
        with pytest.raises(UnsupportedModelError):
            ParallelPlaneFitter(axis=(0.0, 0.0, 0.0), eps_angle=0.1)
        with pytest.raises(UnsupportedModelError):
            PerpendicularPlaneFitter(axis=(0.0, 0.0, 1.0), eps_angle=-0.1)

    def test_normal_plane_residuals(self):
        """Normal disagreement adds weight * angle to the distance."""
        fitter = NormalPlaneFitter(normal_distance_weight=0.5)
        coeffs = np.array([0.0, 0.0, 1.0, 0.0])
        pts = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0]])
        normals = np.array([[0.0, 0.0, -1.0], [1.0, 0.0, 0.0]])
        res = fitter.residuals(coeffs, pts, normals)
        assert res[0] == pytest.approx(0.0)
        assert res[1] == pytest.approx(0.5 * np.pi / 2)

    def test_normal_weight_range(self):
        """Weights outside [0, 1] are refused."""
        with pytest.raises(UnsupportedModelError):
            NormalPlaneFitter(normal_distance_weight=1.5)

    def test_normal_parallel_plane_constraints(self):
        """Axis applies only when non-zero; distance only when eps_dist > 0."""
        free = NormalParallelPlaneFitter()
        assert free.is_model_valid(np.array([1.0, 0.0, 0.0, 5.0]))

        fitter = NormalParallelPlaneFitter(
            axis=(0.0, 0.0, 1.0), eps_angle=0.1, distance_from_origin=2.0, eps_dist=0.1,
        )
        assert fitter.is_model_valid(np.array([0.0, 0.0, 1.0, -2.05]))
        assert not fitter.is_model_valid(np.array([0.0, 0.0, 1.0, -3.0]))
        assert not fitter.is_model_valid(np.array([1.0, 0.0, 0.0, -2.0]))


class TestLine:
    """Test line fitting."""

    def test_minimal_fit_and_distance(self):
        pts = np.array([[0.0, 0.0, 0.0], [2.0, 0.0, 0.0]])
        coeffs = fit_line_minimal(pts)
        assert np.allclose(coeffs[3:], [1.0, 0.0, 0.0])
        dist = point_to_line_distance(coeffs, np.array([[5.0, 3.0, 4.0]]))
        assert dist[0] == pytest.approx(5.0)

    def test_coincident_is_degenerate(self):
        pts = np.array([[1.0, 1.0, 1.0], [1.0, 1.0, 1.0]])
        with pytest.raises(DegenerateSampleError):
            fit_line_minimal(pts)
        assert not LineFitter().is_sample_good(pts, None)

    def test_least_squares(self):
        """cv2.fitLine refit follows the reference direction."""
        rng = np.random.default_rng(1)
        t = rng.uniform(-1.0, 1.0, size=50)
        direction = np.array([1.0, 1.0, 0.0]) / np.sqrt(2.0)
        pts = np.outer(t, direction) + np.array([0.0, 0.0, 3.0])
        reference = np.concatenate([[0.0, 0.0, 3.0], -direction])
        refined = fit_line_least_squares(pts, reference=reference)
        assert refined is not None
        assert np.allclose(refined[3:], -direction, atol=1e-4)
        assert np.allclose(point_to_line_distance(refined, pts), 0.0, atol=1e-4)

    def test_parallel_line_constraint(self):
        fitter = ParallelLineFitter(axis=(1.0, 0.0, 0.0), eps_angle=0.1)
        assert fitter.is_model_valid(np.array([0.0, 0.0, 0.0, -1.0, 0.0, 0.0]))
        assert not fitter.is_model_valid(np.array([0.0, 0.0, 0.0, 0.0, 1.0, 0.0]))
        with pytest.raises(UnsupportedModelError):
            ParallelLineFitter()


class TestCircle:
    """Test 2D circle fitting."""

    def test_minimal_fit(self):
        angles = np.array([0.1, 1.7, 4.0])
        pts = np.column_stack([1.0 + 3.0 * np.cos(angles), 2.0 + 3.0 * np.sin(angles), np.zeros(3)])
        coeffs = fit_circle_minimal(pts)
        assert np.allclose(coeffs, [1.0, 2.0, 3.0])

    def test_collinear_is_degenerate(self):
        pts = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 0.0], [2.0, 2.0, 0.0]])
        with pytest.raises(DegenerateSampleError):
            fit_circle_minimal(pts)

    def test_least_squares(self):
        rng = np.random.default_rng(2)
        angles = rng.uniform(0.0, 2.0 * np.pi, size=100)
        pts = np.column_stack([np.cos(angles) - 1.0, np.sin(angles) + 0.5, np.zeros(100)])
        pts[:, :2] += rng.normal(0.0, 1e-3, size=(100, 2))
        fitter = Circle2DFitter()
        refined = fitter.fit_least_squares(np.array([-0.9, 0.4, 1.2]), pts, None)
        assert refined is not None
        assert np.allclose(refined, [-1.0, 0.5, 1.0], atol=1e-2)

    def test_radius_limits(self):
        fitter = Circle2DFitter(radius_min=0.5, radius_max=2.0)
        assert fitter.is_model_valid(np.array([0.0, 0.0, 1.0]))
        assert not fitter.is_model_valid(np.array([0.0, 0.0, 3.0]))
        with pytest.raises(UnsupportedModelError):
            Circle2DFitter(radius_min=2.0, radius_max=1.0)


class TestSphere:
    """Test sphere fitting."""

    def test_minimal_fit(self):
        center = np.array([1.0, -1.0, 2.0])
        dirs = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0], [-1.0, -1.0, -1.0]])
        dirs /= np.linalg.norm(dirs, axis=1, keepdims=True)
        coeffs = fit_sphere_minimal(center + 2.0 * dirs)
        assert np.allclose(coeffs, [1.0, -1.0, 2.0, 2.0])

    def test_coplanar_is_degenerate(self):
        pts = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [1.0, 1.0, 0.0]])
        with pytest.raises(DegenerateSampleError):
            fit_sphere_minimal(pts)
        assert not SphereFitter().is_sample_good(pts, None)

    def test_least_squares(self, sphere_scene):
        fitter = SphereFitter()
        refined = fitter.fit_least_squares(np.array([0.1, 0.0, -0.1, 0.9]), sphere_scene[:200], None)
        assert refined is not None
        assert np.allclose(refined, [0.0, 0.0, 0.0, 1.0], atol=1e-5)


class TestCylinder:
    """Test cylinder fitting from points and normals."""

    def test_minimal_fit(self):
        pts = np.array([[1.5, 0.0, 0.0], [1.0, 0.5, 1.0]])
        normals = np.array([[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        coeffs = fit_cylinder_minimal(pts, normals)
        assert np.allclose(coeffs[:2], [1.0, 0.0])
        assert np.allclose(np.abs(coeffs[3:6]), [0.0, 0.0, 1.0])
        assert coeffs[6] == pytest.approx(0.5)

    def test_parallel_normals_are_degenerate(self):
        pts = np.array([[1.5, 0.0, 0.0], [1.5, 0.0, 1.0]])
        normals = np.array([[1.0, 0.0, 0.0], [1.0, 0.0, 0.0]])
        with pytest.raises(DegenerateSampleError):
            fit_cylinder_minimal(pts, normals)
        assert not CylinderFitter().is_sample_good(pts, normals)

    def test_distance_on_surface(self, cylinder_scene):
        points, normals = cylinder_scene
        coeffs = np.array([0.5, -0.5, 0.0, 0.0, 0.0, 1.0, 0.3])
        dist = point_to_cylinder_distance(coeffs, points[:200], normals[:200], weight=0.1)
        assert np.allclose(dist, 0.0, atol=1e-6)

    def test_least_squares(self, cylinder_scene):
        points, normals = cylinder_scene
        fitter = CylinderFitter()
        initial = np.array([0.52, -0.48, 1.0, 0.02, 0.0, 1.0, 0.28])
        refined = fitter.fit_least_squares(initial, points[:200], normals[:200])
        assert refined is not None
        assert refined[6] == pytest.approx(0.3, abs=1e-3)
        assert line_angle(refined[3:6], np.array([0.0, 0.0, 1.0])) < 1e-2

    def test_constraints(self):
        fitter = CylinderFitter(radius_min=0.1, radius_max=1.0, axis=(0.0, 0.0, 1.0), eps_angle=0.1)
        assert fitter.is_model_valid(np.array([0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 0.5]))
        assert not fitter.is_model_valid(np.array([0.0, 0.0, 0.0, 0.0, 0.0, 1.0, 2.0]))
        assert not fitter.is_model_valid(np.array([0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.5]))


class TestSampleConsensusModel:
    """Test the point set / shape binding."""

    def test_requires_normals(self):
        with pytest.raises(InvalidInputError):
            SampleConsensusModel(NormalPlaneFitter(), np.zeros((5, 3)))

    def test_normals_count_mismatch(self):
        with pytest.raises(InvalidInputError):
            SampleConsensusModel(NormalPlaneFitter(), np.zeros((5, 3)), normals=np.zeros((4, 3)))

    def test_indices_out_of_range(self):
        with pytest.raises(InvalidInputError):
            SampleConsensusModel(PlaneFitter(), np.zeros((5, 3)), indices=[0, 1, 7])

    def test_draw_samples_from_pool(self, ranked_plane_scene):
        model = SampleConsensusModel(PlaneFitter(), ranked_plane_scene, seed=1)
        pool = model.index_set.full[:10]
        for _ in range(20):
            selection = model.draw_samples(pool)
            assert selection.size == 3
            assert np.unique(selection).size == 3
            assert np.isin(selection, pool).all()

    def test_draw_samples_small_pool(self, ranked_plane_scene):
        model = SampleConsensusModel(PlaneFitter(), ranked_plane_scene)
        assert model.draw_samples(model.index_set.full[:2]).size == 0

    def test_draw_samples_degenerate_cloud(self):
        model = SampleConsensusModel(PlaneFitter(), np.ones((20, 3)), max_sample_checks=5)
        assert model.draw_samples().size == 0

    def test_estimate_and_inliers(self, ranked_plane_scene):
        model = SampleConsensusModel(PlaneFitter(), ranked_plane_scene)
        coeffs = model.estimate(np.array([0, 10, 20]))
        assert coeffs is not None
        assert_same_plane(coeffs)

        inliers = model.select_inliers(coeffs, 0.01)
        assert set(range(60)).issubset(set(inliers.tolist()))
        assert model.count_within(coeffs, 0.01) == inliers.size

    def test_estimate_rejects_wrong_size(self, ranked_plane_scene):
        model = SampleConsensusModel(PlaneFitter(), ranked_plane_scene)
        assert model.estimate(np.array([0, 1])) is None

    def test_estimate_rejects_constraint_violation(self, ranked_plane_scene):
        fitter = PerpendicularPlaneFitter(axis=(1.0, 0.0, 0.0), eps_angle=0.05)
        model = SampleConsensusModel(fitter, ranked_plane_scene)
        assert model.estimate(np.array([0, 10, 20])) is None

    def test_inliers_restricted_to_indices(self, ranked_plane_scene):
        model = SampleConsensusModel(PlaneFitter(), ranked_plane_scene, indices=np.arange(0, 100, 2))
        coeffs = model.estimate(np.array([0, 10, 20]))
        inliers = model.select_inliers(coeffs, 0.01)
        assert np.all(inliers % 2 == 0)

    def test_refine_needs_enough_inliers(self, ranked_plane_scene):
        model = SampleConsensusModel(PlaneFitter(), ranked_plane_scene)
        coeffs = model.estimate(np.array([0, 10, 20]))
        assert model.refine(np.array([0, 1]), coeffs) is None
        refined = model.refine(np.arange(60), coeffs)
        assert refined is not None
        assert_same_plane(refined)
