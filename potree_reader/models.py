from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

import numpy as np


Vec3 = Tuple[float, float, float]
RGBA8 = Tuple[int, int, int, int]

ZERO_VEC3: Vec3 = (0.0, 0.0, 0.0)
WHITE_OPAQUE: RGBA8 = (255, 255, 255, 255)


class AttributeKind(Enum):
    POSITION = "POSITION_CARTESIAN"
    COLOR_PACKED = "COLOR_PACKED"
    RGB = "RGB"
    INTENSITY = "INTENSITY"
    CLASSIFICATION = "CLASSIFICATION"
    NORMAL = "NORMAL"
    GPS_TIME = "GPS_TIME"
    RETURN_NUMBER = "RETURN_NUMBER"
    NUMBER_OF_RETURNS = "NUMBER_OF_RETURNS"
    POINT_SOURCE_ID = "POINT_SOURCE_ID"
    UNKNOWN = "UNKNOWN"


class ComponentType(Enum):
    # (little-endian struct code, byte width)
    UINT8 = ("<B", 1)
    INT8 = ("<b", 1)
    UINT16 = ("<H", 2)
    INT16 = ("<h", 2)
    UINT32 = ("<I", 4)
    INT32 = ("<i", 4)
    FLOAT32 = ("<f", 4)
    FLOAT64 = ("<d", 8)

    def __init__(self, struct_code: str, width: int):
        self.struct_code = struct_code
        self.width = width


@dataclass(frozen=True)
class AttributeDescriptor:
    kind: AttributeKind
    component_type: ComponentType
    size_bytes: int      # total span in the record, all elements included
    element_count: int


@dataclass(frozen=True)
class Schema:
    """Resolved, immutable description of a point record layout.

    ``scale`` and ``offset`` map quantized integer positions to world space:
    ``world = offset + scale * ints`` (componentwise).
    """
    point_count: int = 0
    bbox_min: Vec3 = ZERO_VEC3
    bbox_max: Vec3 = ZERO_VEC3
    scale: Vec3 = (0.001, 0.001, 0.001)
    offset: Vec3 = ZERO_VEC3
    hierarchy_step_size: int = 5
    attributes: Tuple[AttributeDescriptor, ...] = field(default_factory=tuple)
    octree_dir: str = "octree"

    def record_stride(self) -> int:
        return sum(a.size_bytes for a in self.attributes)

    def has_kind(self, *kinds: AttributeKind) -> bool:
        return any(a.kind in kinds for a in self.attributes)


@dataclass
class PointBlock:
    positions: np.ndarray                       # float64, (N, 3)
    colors: Optional[np.ndarray] = None         # uint8, (N, 4)
    intensities: Optional[np.ndarray] = None    # uint16, (N,)
    classifications: Optional[np.ndarray] = None  # uint8, (N,)

    @property
    def point_count(self) -> int:
        return int(self.positions.shape[0])
