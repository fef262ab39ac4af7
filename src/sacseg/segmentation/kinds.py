"""
Model and method kinds.

Numeric codes match PCL's SACMODEL_* and SAC_* constants, so integer
kinds from PCL-based configs keep working. Names are accepted
case-insensitively ("plane", "PROSAC").
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Any

from ..errors import UnsupportedMethodError, UnsupportedModelError


def _resolve(enum_cls, kind: Any, error_cls):
    if isinstance(kind, enum_cls):
        return kind
    # Members of another enum (e.g. a ModelType passed as a method) are refused,
    # not converted by their numeric value
    if isinstance(kind, Enum):
        raise error_cls(f"Unknown {enum_cls.__name__} {kind!r}")
    if isinstance(kind, str):
        try:
            return enum_cls[kind.strip().upper()]
        except KeyError:
            raise error_cls(f"Unknown {enum_cls.__name__} {kind!r}") from None
    if isinstance(kind, int) and not isinstance(kind, bool):
        try:
            return enum_cls(kind)
        except ValueError:
            raise error_cls(f"Unknown {enum_cls.__name__} {kind!r}") from None
    raise error_cls(f"Unknown {enum_cls.__name__} {kind!r}")


class ModelType(IntEnum):
    PLANE = 0
    LINE = 1
    CIRCLE2D = 2
    SPHERE = 4
    CYLINDER = 5
    PARALLEL_LINE = 8
    PERPENDICULAR_PLANE = 9
    NORMAL_PLANE = 11
    PARALLEL_PLANE = 14
    NORMAL_PARALLEL_PLANE = 15

    @classmethod
    def resolve(cls, kind: Any) -> "ModelType":
        return _resolve(cls, kind, UnsupportedModelError)


class MethodType(IntEnum):
    RANSAC = 0
    MSAC = 2
    PROSAC = 6

    @classmethod
    def resolve(cls, kind: Any) -> "MethodType":
        return _resolve(cls, kind, UnsupportedMethodError)
