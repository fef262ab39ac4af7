"""
Sample consensus segmentation: fit one geometric model to a point set.

This class is STATEFUL.

It manages:
  - the bound input cloud, optional indices subset and optional normals
  - the configuration (model kind, method kind, thresholds, constraints)
  - the last model and engine it built

Typical use:

    seg = SACSegmentation()
    seg.set_input_cloud(points)
    seg.set_model_type(ModelType.PLANE)
    seg.set_method_type(MethodType.PROSAC)
    seg.set_distance_threshold(0.01)
    result = seg.segment()
    if result.success:
        print(result.coefficients, result.inliers.size)

For PROSAC, pass indices with set_indices() ordered best quality first.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import numpy as np
import numpy.typing as npt

from ..config import SegmentationConfig
from ..consensus.core import SampleConsensus
from ..consensus.model import SampleConsensusModel
from ..consensus.types import (
    Coefficients, IndexArray, Normals3D, Points3D, as_points3d,
)
from ..errors import InvalidInputError, UnsupportedModelError
from .factory import build_fitter, build_method, warn_unused_constraints
from .kinds import MethodType, ModelType

logger = logging.getLogger(__name__)


# frozen=True means "immutable" after construction
@dataclass(frozen=True)
class SegmentationResult:
    inliers: IndexArray                  # point indices supporting the model (empty if none)
    coefficients: Coefficients           # final (possibly refined) coefficients (empty if none)
    model_type: ModelType
    method_type: MethodType
    iterations: int = 0                  # trials run by the engine
    refined: bool = False                # True if least-squares polish was applied
    selection: IndexArray = field(default_factory=lambda: np.empty((0,), dtype=np.int64))

    @property
    def success(self) -> bool:
        return self.coefficients.size > 0


class SACSegmentation:
    """
    Configure a (model, method) pair, run it on the bound cloud, and package
    inliers and coefficients.
    """

    def __init__(self, config: Optional[SegmentationConfig] = None) -> None:
        self.config = copy.deepcopy(config) if config is not None else SegmentationConfig()

        self._points: Optional[Points3D] = None
        self._indices: Optional[IndexArray] = None
        self._normals: Optional[Normals3D] = None

        self._model: Optional[SampleConsensusModel] = None
        self._method: Optional[SampleConsensus] = None

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "SACSegmentation":
        """
        Build from a config dict (see sacseg.config.load_config).
        Uses its `segmentation` section.
        """
        return cls(SegmentationConfig.from_mapping(cfg.get("segmentation", {})))

    # ---------- Input binding ----------
    def set_input_cloud(self, points: npt.ArrayLike) -> None:
        try:
            self._points = as_points3d(points)
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

    def get_input_cloud(self) -> Optional[Points3D]:
        return self._points

    def set_indices(self, indices: Optional[npt.ArrayLike]) -> None:
        """
        Restrict the fit to a subset of points. The order is the quality
        ranking used by PROSAC (best first). None means every point.
        """
        self._indices = None if indices is None else np.asarray(indices, dtype=np.int64).reshape(-1)

    def get_indices(self) -> Optional[IndexArray]:
        return self._indices

    def set_input_normals(self, normals: Optional[npt.ArrayLike]) -> None:
        if normals is None:
            self._normals = None
            return
        try:
            self._normals = as_points3d(normals, name="normals")
        except ValueError as e:
            raise InvalidInputError(str(e)) from e

    def get_input_normals(self) -> Optional[Normals3D]:
        return self._normals

    # ---------- Configuration ----------
    def set_model_type(self, kind: Any) -> None:
        self.config.model_type = kind

    def get_model_type(self) -> Any:
        return self.config.model_type

    def set_method_type(self, kind: Any) -> None:
        self.config.method_type = kind

    def get_method_type(self) -> Any:
        return self.config.method_type

    def set_distance_threshold(self, threshold: Optional[float]) -> None:
        self.config.distance_threshold = threshold

    def get_distance_threshold(self) -> Optional[float]:
        return self.config.distance_threshold

    def set_max_iterations(self, max_iterations: int) -> None:
        self.config.max_iterations = max_iterations

    def get_max_iterations(self) -> int:
        return self.config.max_iterations

    def set_probability(self, probability: float) -> None:
        self.config.probability = probability

    def get_probability(self) -> float:
        return self.config.probability

    def set_optimize_coefficients(self, optimize: bool) -> None:
        self.config.optimize_coefficients = optimize

    def get_optimize_coefficients(self) -> bool:
        return self.config.optimize_coefficients

    def set_radius_limits(self, min_radius: float, max_radius: float) -> None:
        self.config.radius_limits = (min_radius, max_radius)

    def get_radius_limits(self) -> tuple[float, float]:
        return self.config.radius_limits

    def set_axis(self, axis: npt.ArrayLike) -> None:
        self.config.axis = tuple(float(v) for v in np.asarray(axis, dtype=np.float64).reshape(-1))

    def get_axis(self) -> np.ndarray:
        return np.asarray(self.config.axis, dtype=np.float64)

    def set_eps_angle(self, eps_angle: float) -> None:
        self.config.eps_angle = eps_angle

    def get_eps_angle(self) -> float:
        return self.config.eps_angle

    def set_normal_distance_weight(self, weight: float) -> None:
        self.config.normal_distance_weight = weight

    def get_normal_distance_weight(self) -> float:
        return self.config.normal_distance_weight

    def set_distance_from_origin(self, distance: float) -> None:
        self.config.distance_from_origin = distance

    def get_distance_from_origin(self) -> float:
        return self.config.distance_from_origin

    def set_eps_dist(self, eps_dist: float) -> None:
        self.config.eps_dist = eps_dist

    def get_eps_dist(self) -> float:
        return self.config.eps_dist

    def set_seed(self, seed: Optional[int]) -> None:
        self.config.seed = seed

    def get_seed(self) -> Optional[int]:
        return self.config.seed

    # ---------- Last run ----------
    def get_model(self) -> Optional[SampleConsensusModel]:
        return self._model

    def get_method(self) -> Optional[SampleConsensus]:
        return self._method

    # ---------- Segmentation ----------
    def _checked_input(self) -> tuple[Points3D, IndexArray]:
        if self._points is None:
            raise InvalidInputError("No input cloud set")
        if self._points.shape[0] == 0:
            raise InvalidInputError("Input cloud is empty")

        indices = self._indices
        if indices is None:
            indices = np.arange(self._points.shape[0], dtype=np.int64)
        if indices.size == 0:
            raise InvalidInputError("Indices are empty")
        if indices.min() < 0 or indices.max() >= self._points.shape[0]:
            raise InvalidInputError("Indices out of range of the input cloud")
        return self._points, indices

    def _init_model(
        self,
        model_type: ModelType,
        points: Points3D,
        indices: IndexArray,
    ) -> SampleConsensusModel:
        fitter = build_fitter(model_type, self.config)
        warn_unused_constraints(model_type, fitter, self.config)

        if fitter.needs_normals and self._normals is None:
            raise InvalidInputError(f"{model_type.name} requires input normals")
        if indices.size < fitter.sample_size:
            raise UnsupportedModelError(
                f"{model_type.name} needs at least {fitter.sample_size} points, got {indices.size}"
            )

        return SampleConsensusModel(
            fitter,
            points,
            normals=self._normals if fitter.needs_normals else None,
            indices=indices,
            seed=self.config.seed,
            max_sample_checks=self.config.max_sample_checks,
        )

    def segment(self) -> SegmentationResult:
        """
        Run the configured method with the configured model on the bound input.

        Raises:
        - InvalidInputError: missing/empty cloud or indices, missing normals
        - UnsupportedModelError: unknown model kind or refused configuration
        - UnsupportedMethodError: unknown method kind
        - MissingThresholdError: distance threshold not set

        Returns a SegmentationResult; result.success is False (with empty
        inliers and coefficients) when no model was found.
        """
        points, indices = self._checked_input()

        model_type = ModelType.resolve(self.config.model_type)
        self._model = self._init_model(model_type, points, indices)

        method_type = MethodType.resolve(self.config.method_type)
        self._method = build_method(method_type, self._model, self.config)

        fit = self._method.compute_model()
        if fit is None:
            logger.info("%s/%s: no model found", model_type.name, method_type.name)
            return SegmentationResult(
                inliers=np.empty((0,), dtype=np.int64),
                coefficients=np.empty((0,), dtype=np.float64),
                model_type=model_type,
                method_type=method_type,
            )

        coefficients = fit.coefficients
        refined = False
        if self.config.optimize_coefficients:
            polished = self._model.refine(fit.inliers, coefficients)
            if polished is None:
                logger.debug("%s: refinement failed, keeping unrefined coefficients", model_type.name)
            else:
                coefficients = polished
                refined = True

        return SegmentationResult(
            inliers=fit.inliers,
            coefficients=coefficients,
            model_type=model_type,
            method_type=method_type,
            iterations=fit.iterations,
            refined=refined,
            selection=fit.selection,
        )
