"""
Adapters: make plane functions conform to the ShapeFitter Protocol.

Variants:
- PlaneFitter: any plane
- PerpendicularPlaneFitter: plane normal within eps_angle of the axis
- ParallelPlaneFitter: plane normal perpendicular to the axis (within eps_angle)
- NormalPlaneFitter: any plane, distance blended with point-normal agreement
- NormalParallelPlaneFitter: NormalPlaneFitter plus optional axis and
  distance-from-origin constraints
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Optional

import numpy as np

from ..consensus.types import Coefficients, FloatArray, Normals3D, Points3D
from .constraints import (
    Axis, as_axis, check_eps_angle, check_weight, is_zero_axis, require_axis,
)
from .plane import (
    fit_plane_least_squares, fit_plane_minimal, is_degenerate_triplet, line_angle,
    normal_angles, point_to_plane_distance, weighted_normal_distance,
)


@dataclass(frozen=True)
class PlaneFitter:
    sample_size: ClassVar[int] = 3
    coefficient_count: ClassVar[int] = 4
    needs_normals: ClassVar[bool] = False

    eps_area: float = 1e-12

    def is_sample_good(self, points: Points3D, normals: Optional[Normals3D]) -> bool:
        return not is_degenerate_triplet(points, eps_area=self.eps_area)

    def fit_minimal(self, points: Points3D, normals: Optional[Normals3D]) -> Coefficients:
        return fit_plane_minimal(points, eps_area=self.eps_area)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        return True

    def residuals(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> FloatArray:
        return point_to_plane_distance(coefficients, points)

    def fit_least_squares(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> Optional[Coefficients]:
        return fit_plane_least_squares(points, reference=coefficients)


@dataclass(frozen=True)
class PerpendicularPlaneFitter(PlaneFitter):
    """
    Plane perpendicular to a user axis: its normal must lie within
    eps_angle (radians) of the axis, in either direction.
    """
    axis: Axis = (0.0, 0.0, 0.0)
    eps_angle: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "axis", as_axis(self.axis))
        require_axis(type(self).__name__, self.axis)
        check_eps_angle(type(self).__name__, self.eps_angle)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        return line_angle(coefficients[:3], np.asarray(self.axis)) <= self.eps_angle


@dataclass(frozen=True)
class ParallelPlaneFitter(PlaneFitter):
    """
    Plane parallel to a user axis: its normal must be perpendicular to the
    axis, i.e. |n . axis| <= sin(eps_angle).
    """
    axis: Axis = (0.0, 0.0, 0.0)
    eps_angle: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "axis", as_axis(self.axis))
        require_axis(type(self).__name__, self.axis)
        check_eps_angle(type(self).__name__, self.eps_angle)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        axis = np.asarray(self.axis)
        axis = axis / np.linalg.norm(axis)
        return abs(float(np.dot(axis, coefficients[:3]))) <= math.sin(self.eps_angle) + 1e-12


@dataclass(frozen=True)
class NormalPlaneFitter(PlaneFitter):
    """
    Plane scored with point normals:

        d_i = | w * angle(n_i, plane normal) + (1 - w) * euclid_i |
    """
    needs_normals: ClassVar[bool] = True

    normal_distance_weight: float = 0.1

    def __post_init__(self) -> None:
        check_weight(type(self).__name__, self.normal_distance_weight)

    def residuals(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> FloatArray:
        euclid = point_to_plane_distance(coefficients, points)
        if normals is None:
            return euclid
        angles = normal_angles(normals, coefficients[:3])
        return weighted_normal_distance(euclid, angles, self.normal_distance_weight)


@dataclass(frozen=True)
class NormalParallelPlaneFitter(NormalPlaneFitter):
    """
    Normal-weighted plane whose normal is parallel to a user axis, and
    optionally at a known distance from the origin.

    - axis constraint applies only if the axis is non-zero
    - distance constraint applies only if eps_dist > 0
    """
    axis: Axis = (0.0, 0.0, 0.0)
    eps_angle: float = 0.0
    distance_from_origin: float = 0.0
    eps_dist: float = 0.0

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "axis", as_axis(self.axis))
        check_eps_angle(type(self).__name__, self.eps_angle)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        if not is_zero_axis(self.axis):
            if line_angle(coefficients[:3], np.asarray(self.axis)) > self.eps_angle:
                return False
        if self.eps_dist > 0.0:
            if abs(abs(float(coefficients[3])) - self.distance_from_origin) > self.eps_dist:
                return False
        return True
