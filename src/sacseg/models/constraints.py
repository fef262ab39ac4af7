"""
Construction-time checks for shape constraints.

Each shape variant only carries the constraints it uses. These helpers run
in the variants' __post_init__ so that an incoherent configuration is refused
when the model is built, not silently ignored during the fit.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from ..errors import UnsupportedModelError

Axis = tuple[float, float, float]


def as_axis(axis: Sequence[float]) -> Axis:
    """
    Convert user input to a plain 3-tuple of floats.
    """
    arr = np.asarray(axis, dtype=np.float64).reshape(-1)
    if arr.shape != (3,) or not np.isfinite(arr).all():
        raise UnsupportedModelError(f"Axis must be 3 finite values, got {axis!r}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def is_zero_axis(axis: Axis) -> bool:
    return not any(axis)


def require_axis(name: str, axis: Axis) -> None:
    if is_zero_axis(axis):
        raise UnsupportedModelError(f"{name} requires a non-zero axis")


def check_eps_angle(name: str, eps_angle: float) -> None:
    if not (eps_angle >= 0.0 and math.isfinite(eps_angle)):
        raise UnsupportedModelError(f"{name}: eps_angle must be finite and >= 0, got {eps_angle}")


def check_radius_limits(name: str, radius_min: float, radius_max: float) -> None:
    if math.isnan(radius_min) or math.isnan(radius_max) or radius_min > radius_max:
        raise UnsupportedModelError(
            f"{name}: invalid radius limits ({radius_min}, {radius_max})"
        )


def check_weight(name: str, weight: float) -> None:
    if not 0.0 <= weight <= 1.0:
        raise UnsupportedModelError(f"{name}: normal distance weight must be in [0, 1], got {weight}")
