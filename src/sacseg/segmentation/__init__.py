"""
Segmentation package
"""
from .kinds import ModelType, MethodType
from .factory import build_fitter, build_method
from .sac_segmentation import SACSegmentation, SegmentationResult

__all__ = [
    "ModelType", "MethodType",
    "build_fitter", "build_method",
    "SACSegmentation", "SegmentationResult",
]
