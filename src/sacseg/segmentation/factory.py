"""
Build shape variants and consensus engines from a SegmentationConfig.

Each model kind maps to one frozen fitter dataclass holding only the
constraints that kind uses. Constraint validation happens in the fitters'
constructors, so an incoherent configuration fails here with
UnsupportedModelError.
"""

from __future__ import annotations

import logging
import math

from ..config import SegmentationConfig
from ..consensus.core import MEstimatorSampleConsensus, RandomSampleConsensus, SampleConsensus
from ..consensus.model import SampleConsensusModel
from ..consensus.prosac import ProgressiveSampleConsensus
from ..consensus.types import ShapeFitter
from ..models import (
    Circle2DFitter, CylinderFitter, LineFitter, NormalParallelPlaneFitter, NormalPlaneFitter,
    ParallelLineFitter, ParallelPlaneFitter, PerpendicularPlaneFitter, PlaneFitter, SphereFitter,
)
from .kinds import MethodType, ModelType

logger = logging.getLogger(__name__)

_METHODS: dict[MethodType, type[SampleConsensus]] = {
    MethodType.RANSAC: RandomSampleConsensus,
    MethodType.MSAC: MEstimatorSampleConsensus,
    MethodType.PROSAC: ProgressiveSampleConsensus,
}


def _radius_limits_set(config: SegmentationConfig) -> bool:
    lo, hi = config.radius_limits
    return not (math.isinf(lo) and lo < 0 and math.isinf(hi) and hi > 0)


def build_fitter(model_type: ModelType, config: SegmentationConfig) -> ShapeFitter:
    """
    Construct the shape variant for a model kind.
    """
    lo, hi = config.radius_limits
    axis = config.axis
    eps = config.eps_angle
    weight = config.normal_distance_weight

    if model_type is ModelType.PLANE:
        return PlaneFitter()
    if model_type is ModelType.LINE:
        return LineFitter()
    if model_type is ModelType.CIRCLE2D:
        logger.debug("CIRCLE2D: radius limits %s", config.radius_limits)
        return Circle2DFitter(radius_min=lo, radius_max=hi)
    if model_type is ModelType.SPHERE:
        logger.debug("SPHERE: radius limits %s", config.radius_limits)
        return SphereFitter(radius_min=lo, radius_max=hi)
    if model_type is ModelType.CYLINDER:
        logger.debug("CYLINDER: radius limits %s, axis %s, eps_angle %s, weight %s",
                     config.radius_limits, axis, eps, weight)
        return CylinderFitter(
            radius_min=lo, radius_max=hi, axis=axis, eps_angle=eps, normal_distance_weight=weight,
        )
    if model_type is ModelType.PARALLEL_LINE:
        return ParallelLineFitter(axis=axis, eps_angle=eps)
    if model_type is ModelType.PERPENDICULAR_PLANE:
        return PerpendicularPlaneFitter(axis=axis, eps_angle=eps)
    if model_type is ModelType.PARALLEL_PLANE:
        return ParallelPlaneFitter(axis=axis, eps_angle=eps)
    if model_type is ModelType.NORMAL_PLANE:
        return NormalPlaneFitter(normal_distance_weight=weight)
    if model_type is ModelType.NORMAL_PARALLEL_PLANE:
        return NormalParallelPlaneFitter(
            normal_distance_weight=weight,
            axis=axis,
            eps_angle=eps,
            distance_from_origin=config.distance_from_origin,
            eps_dist=config.eps_dist,
        )
    raise AssertionError(f"Unhandled model type {model_type!r}")


def warn_unused_constraints(model_type: ModelType, fitter: ShapeFitter, config: SegmentationConfig) -> None:
    """
    Log knobs that were set but mean nothing for the selected model.
    """
    if _radius_limits_set(config) and not hasattr(fitter, "radius_min"):
        logger.warning("%s ignores radius limits %s", model_type.name, config.radius_limits)
    if any(config.axis) and not hasattr(fitter, "axis"):
        logger.warning("%s ignores axis %s", model_type.name, config.axis)


def build_method(
    method_type: MethodType,
    model: SampleConsensusModel,
    config: SegmentationConfig,
) -> SampleConsensus:
    """
    Construct the consensus engine for a method kind, bound to the model.
    """
    engine_cls = _METHODS[method_type]
    return engine_cls(
        model=model,
        threshold=config.distance_threshold,
        max_iterations=config.max_iterations,
        probability=config.probability,
    )
