"""
Geometric model variants

Each variant is a frozen dataclass implementing the ShapeFitter Protocol:
- plane family: PlaneFitter, PerpendicularPlaneFitter, ParallelPlaneFitter,
  NormalPlaneFitter, NormalParallelPlaneFitter
- line family: LineFitter, ParallelLineFitter
- Circle2DFitter, SphereFitter, CylinderFitter
"""

from .plane_fitter import (
    PlaneFitter, PerpendicularPlaneFitter, ParallelPlaneFitter,
    NormalPlaneFitter, NormalParallelPlaneFitter,
)
from .line_fitter import LineFitter, ParallelLineFitter
from .circle_fitter import Circle2DFitter
from .sphere_fitter import SphereFitter
from .cylinder_fitter import CylinderFitter

__all__ = [
    "PlaneFitter", "PerpendicularPlaneFitter", "ParallelPlaneFitter",
    "NormalPlaneFitter", "NormalParallelPlaneFitter",
    "LineFitter", "ParallelLineFitter",
    "Circle2DFitter",
    "SphereFitter",
    "CylinderFitter",
]
