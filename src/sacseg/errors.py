"""
Error taxonomy for segmentation.

Configuration and precondition errors are raised before a run starts.
Per-trial failures (DegenerateSampleError) are recovered inside the model
and never reach the caller. "No model found" is not an exception: the
engines return None and the orchestrator returns an unsuccessful result.
"""


class SegmentationError(Exception):
    """Base class for every error raised by sacseg."""


class InvalidInputError(SegmentationError, ValueError):
    """Missing or empty input cloud, indices, or required normals."""


class MissingThresholdError(SegmentationError):
    """Distance threshold was not set before running."""


class UnsupportedModelError(SegmentationError):
    """Unknown model type, or the model refused its configuration."""


class UnsupportedMethodError(SegmentationError):
    """Unknown sample consensus method type."""


class DegenerateSampleError(SegmentationError):
    """A minimal sample cannot determine model coefficients."""
