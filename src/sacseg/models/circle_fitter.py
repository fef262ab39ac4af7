"""
Adapter: makes 2D circle functions conform to the ShapeFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from ..consensus.types import Coefficients, FloatArray, Normals3D, Points3D
from .circle import (
    fit_circle_least_squares, fit_circle_minimal, is_degenerate_triplet_2d,
    point_to_circle_distance,
)
from .constraints import check_radius_limits


@dataclass(frozen=True)
class Circle2DFitter:
    sample_size: ClassVar[int] = 3
    coefficient_count: ClassVar[int] = 3
    needs_normals: ClassVar[bool] = False

    radius_min: float = float("-inf")
    radius_max: float = float("inf")
    eps_area: float = 1e-12

    def __post_init__(self) -> None:
        check_radius_limits(type(self).__name__, self.radius_min, self.radius_max)

    def is_sample_good(self, points: Points3D, normals: Optional[Normals3D]) -> bool:
        return not is_degenerate_triplet_2d(points, eps_area=self.eps_area)

    def fit_minimal(self, points: Points3D, normals: Optional[Normals3D]) -> Coefficients:
        return fit_circle_minimal(points, eps_area=self.eps_area)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        return self.radius_min <= coefficients[2] <= self.radius_max

    def residuals(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> FloatArray:
        return point_to_circle_distance(coefficients, points)

    def fit_least_squares(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> Optional[Coefficients]:
        return fit_circle_least_squares(points, coefficients)
