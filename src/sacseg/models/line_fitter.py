"""
Adapters: make line functions conform to the ShapeFitter Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import numpy as np

from ..consensus.types import Coefficients, FloatArray, Normals3D, Points3D
from .constraints import Axis, as_axis, check_eps_angle, require_axis
from .line import fit_line_least_squares, fit_line_minimal, is_degenerate_pair, point_to_line_distance
from .plane import line_angle


@dataclass(frozen=True)
class LineFitter:
    sample_size: ClassVar[int] = 2
    coefficient_count: ClassVar[int] = 6
    needs_normals: ClassVar[bool] = False

    eps_length: float = 1e-12

    def is_sample_good(self, points: Points3D, normals: Optional[Normals3D]) -> bool:
        return not is_degenerate_pair(points, eps_length=self.eps_length)

    def fit_minimal(self, points: Points3D, normals: Optional[Normals3D]) -> Coefficients:
        return fit_line_minimal(points, eps_length=self.eps_length)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        return True

    def residuals(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> FloatArray:
        return point_to_line_distance(coefficients, points)

    def fit_least_squares(
        self,
        coefficients: Coefficients,
        points: Points3D,
        normals: Optional[Normals3D],
    ) -> Optional[Coefficients]:
        return fit_line_least_squares(points, reference=coefficients)


@dataclass(frozen=True)
class ParallelLineFitter(LineFitter):
    """
    Line whose direction lies within eps_angle (radians) of a user axis.
    """
    axis: Axis = (0.0, 0.0, 0.0)
    eps_angle: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "axis", as_axis(self.axis))
        require_axis(type(self).__name__, self.axis)
        check_eps_angle(type(self).__name__, self.eps_angle)

    def is_model_valid(self, coefficients: Coefficients) -> bool:
        return line_angle(coefficients[3:6], np.asarray(self.axis)) <= self.eps_angle
