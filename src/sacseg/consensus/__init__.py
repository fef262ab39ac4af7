"""
Sample consensus package

This module provides:
- Typed point-set primitives and the ShapeFitter Protocol
- The ranked sample index set (pool + full views)
- SampleConsensusModel, binding a point set to a shape variant
- Consensus engines: RANSAC, MSAC, PROSAC
"""

from .types import (
    FloatArray, IndexArray, Points3D, Normals3D, Coefficients,
    ShapeFitter, SampleIndexSet, ConsensusResult, as_points3d, is_valid_coefficients,
)

from .model import SampleConsensusModel

from .core import (
    SampleConsensus, RandomSampleConsensus, MEstimatorSampleConsensus,
    required_iter_for_confidence,
)

from .prosac import ProgressiveSampleConsensus

__all__ = [
    "FloatArray", "IndexArray", "Points3D", "Normals3D", "Coefficients",
    "ShapeFitter", "SampleIndexSet", "ConsensusResult", "as_points3d", "is_valid_coefficients",
    "SampleConsensusModel",
    "SampleConsensus", "RandomSampleConsensus", "MEstimatorSampleConsensus",
    "required_iter_for_confidence",
    "ProgressiveSampleConsensus",
]
