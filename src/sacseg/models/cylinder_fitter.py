"""
Adapter: makes cylinder functions conform to the ShapeFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import numpy as np

from ..consensus.types import Coefficients, FloatArray, Normals3D, Points3D
from .constraints import (
    Axis, as_axis, check_eps_angle, check_radius_limits, check_weight, is_zero_axis,
)
from .cylinder import (
    fit_cylinder_least_squares, fit_cylinder_minimal, is_degenerate_normal_pair,
    point_to_cylinder_distance,
)
from .plane import line_angle


@dataclass(frozen=True)
class CylinderFitter:
    """
    Cylinder from points and normals.

    - radius limits always apply
    - axis constraint applies only if the axis is non-zero
    - distances blend euclidean and normal-angle terms by normal_distance_weight
    """
    sample_size: ClassVar[int] = 2
    coefficient_count: ClassVar[int] = 7
    needs_normals: ClassVar[bool] = True

    radius_min: float = float("-inf")
    radius_max: float = float("inf")
    axis: Axis = (0.0, 0.0, 0.0)
    eps_angle: float = 0.0
    normal_distance_weight: float = 0.1

    def __post_init__(self) -> None:
        object.__setattr__(self, "axis", as_axis(self.axis))
        name = type(self).__name__
        check_radius_limits(name, self.radius_min, self.radius_max)
        check_eps_angle(name, self.eps_angle)
        check_weight(name, self.normal_distance_weight)

    def is_sample_good(self, points: Points3D, normals: Optional[Normals3D]) -> bool:
        if normals is None:
            return False
        if float(np.linalg.norm(points[1] - points[0])) == 0.0:
            return False
        return not is_degenerate_normal_pair(normals)

    def fit_minimal(self, points: Points3D, normals: Optional[Normals3D]) -> Coefficients:
        return fit_cylinder_minimal(points, normals)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        if not self.radius_min <= coefficients[6] <= self.radius_max:
            return False
        if not is_zero_axis(self.axis):
            return line_angle(coefficients[3:6], np.asarray(self.axis)) <= self.eps_angle
        return True

    def residuals(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> FloatArray:
        return point_to_cylinder_distance(
            coefficients, points, normals, weight=self.normal_distance_weight
        )

    def fit_least_squares(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> Optional[Coefficients]:
        return fit_cylinder_least_squares(points, coefficients)
