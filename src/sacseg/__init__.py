"""
sacseg: robust geometric model segmentation over point sets.

Fit planes, lines, circles, spheres and cylinders to point sets with many
outliers using RANSAC, MSAC or PROSAC.
"""

import logging

from .errors import (
    SegmentationError, InvalidInputError, MissingThresholdError,
    UnsupportedModelError, UnsupportedMethodError, DegenerateSampleError,
)
from .config import DEFAULT_CONFIG, SegmentationConfig, load_config
from .segmentation import ModelType, MethodType, SACSegmentation, SegmentationResult

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "SegmentationError", "InvalidInputError", "MissingThresholdError",
    "UnsupportedModelError", "UnsupportedMethodError", "DegenerateSampleError",
    "DEFAULT_CONFIG", "SegmentationConfig", "load_config",
    "ModelType", "MethodType", "SACSegmentation", "SegmentationResult",
]
