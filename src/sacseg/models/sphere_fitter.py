"""
Adapter: makes sphere functions conform to the ShapeFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..consensus.types import Coefficients, FloatArray, Normals3D, Points3D
from .constraints import check_radius_limits
from .sphere import (
    fit_sphere_least_squares, fit_sphere_minimal, is_degenerate_quad, point_to_sphere_distance,
)


@dataclass(frozen=True)
class SphereFitter:
    sample_size: ClassVar[int] = 4
    coefficient_count: ClassVar[int] = 4
    needs_normals: ClassVar[bool] = False

    radius_min: float = float("-inf")
    radius_max: float = float("inf")
    eps_det: float = 1e-12

    def __post_init__(self) -> None:
        check_radius_limits(type(self).__name__, self.radius_min, self.radius_max)

    def is_sample_good(self, points: Points3D, normals: Optional[Normals3D]) -> bool:
        return not is_degenerate_quad(points, eps_det=self.eps_det)

    def fit_minimal(self, points: Points3D, normals: Optional[Normals3D]) -> Coefficients:
        return fit_sphere_minimal(points, eps_det=self.eps_det)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        return self.radius_min <= coefficients[3] <= self.radius_max

    def residuals(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> FloatArray:
        return point_to_sphere_distance(coefficients, points)

    def fit_least_squares(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> Optional[Coefficients]:
        return fit_sphere_least_squares(points, coefficients)
