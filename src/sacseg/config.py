"""
Configuration management for sacseg.

DEFAULT_CONFIG mirrors the defaults of SegmentationConfig. A YAML file can
override any subset of it:

    segmentation:
      model_type: plane
      method_type: prosac
      distance_threshold: 0.01
      radius_limits: [0.05, .inf]
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

DEFAULT_CONFIG = {
    "segmentation": {
        "model_type": None,
        "method_type": "ransac",
        "distance_threshold": None,
        "max_iterations": 50,
        "probability": 0.99,
        "optimize_coefficients": True,
        "radius_limits": [float("-inf"), float("inf")],
        "axis": [0.0, 0.0, 0.0],
        "eps_angle": 0.0,
        "normal_distance_weight": 0.1,
        "distance_from_origin": 0.0,
        "eps_dist": 0.0,
        "seed": 0,
        "max_sample_checks": 1000,
    }
}


@dataclass
class SegmentationConfig:
    """
    Every knob of one segmentation run.

    Fields are assigned as given; coherence (e.g. radius limits only matter
    for models that estimate a radius) is checked when the model is built.
    """
    model_type: Any = None
    method_type: Any = "ransac"
    distance_threshold: Optional[float] = None
    max_iterations: int = 50
    probability: float = 0.99
    optimize_coefficients: bool = True
    radius_limits: tuple[float, float] = (float("-inf"), float("inf"))
    axis: tuple[float, float, float] = (0.0, 0.0, 0.0)
    eps_angle: float = 0.0
    normal_distance_weight: float = 0.1
    distance_from_origin: float = 0.0
    eps_dist: float = 0.0
    seed: Optional[int] = 0
    max_sample_checks: int = 1000

    @classmethod
    def from_mapping(cls, section: Mapping[str, Any]) -> "SegmentationConfig":
        """
        Build from a `segmentation` config section. Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in section.items() if k in known}
        if "radius_limits" in values:
            lo, hi = values["radius_limits"]
            values["radius_limits"] = (float(lo), float(hi))
        if "axis" in values:
            values["axis"] = tuple(float(v) for v in values["axis"])
        return cls(**values)


def _deep_merge(base: dict, override: Mapping[str, Any]) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Optional[Union[str, Path]] = None) -> dict:
    """
    Load a YAML config file merged over DEFAULT_CONFIG.
    Without a path, returns a copy of the defaults.
    """
    if path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path, "r", encoding="utf-8") as f:
        user_cfg = yaml.safe_load(f) or {}
    if not isinstance(user_cfg, Mapping):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(user_cfg).__name__}")
    return _deep_merge(DEFAULT_CONFIG, user_cfg)
