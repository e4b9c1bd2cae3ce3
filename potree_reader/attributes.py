from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import AttributeDescriptor, AttributeKind, ComponentType


class AttributeEntry(BaseModel):
    """One item of an explicit ``pointAttributes`` array.

    Every field is optional; gaps are filled from the per-kind defaults.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    name: Optional[str] = None
    size: Optional[int] = None
    elements: Optional[int] = None
    num_elements: Optional[int] = Field(default=None, alias="numElements")
    type: Optional[str] = None

    @field_validator("name", "type", mode="before")
    @classmethod
    def _text_or_none(cls, v):
        # unrecognized tokens degrade to UNKNOWN / an inferred type
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (bool, int, float)):
            return str(v)
        return None

    def element_count(self) -> Optional[int]:
        return self.elements if self.elements is not None else self.num_elements


# (size_bytes, element_count) when the entry leaves them out
_DEFAULT_LAYOUT: Dict[AttributeKind, Tuple[int, int]] = {
    AttributeKind.POSITION: (12, 3),
    AttributeKind.RGB: (3, 3),
    AttributeKind.COLOR_PACKED: (4, 4),
    AttributeKind.INTENSITY: (2, 1),
    AttributeKind.CLASSIFICATION: (1, 1),
}
_FALLBACK_LAYOUT = (4, 1)

# unsigned tokens first: "INT32" is a substring of "UINT32"
_TYPE_TOKENS: Tuple[Tuple[Tuple[str, ...], ComponentType], ...] = (
    (("DOUBLE", "FLOAT64"), ComponentType.FLOAT64),
    (("FLOAT",), ComponentType.FLOAT32),
    (("UINT32",), ComponentType.UINT32),
    (("INT32",), ComponentType.INT32),
    (("UINT16",), ComponentType.UINT16),
    (("INT16",), ComponentType.INT16),
    (("UINT8",), ComponentType.UINT8),
    (("INT8",), ComponentType.INT8),
)


def _normalize_token(s: str) -> str:
    # "gps-time", "number of returns" and "NUMBER_OF_RETURNS" compare equal
    return re.sub(r"[\s\-]+", "_", s.strip().upper())


def parse_attribute_kind(name: Optional[str]) -> AttributeKind:
    if not name:
        return AttributeKind.UNKNOWN
    s = _normalize_token(name)

    if "POSITION" in s:
        return AttributeKind.POSITION
    if "COLOR_PACKED" in s:
        return AttributeKind.COLOR_PACKED
    if "RGB" in s or "COLOR" in s:
        return AttributeKind.RGB
    if "INTENSITY" in s:
        return AttributeKind.INTENSITY
    if "CLASSIF" in s:
        return AttributeKind.CLASSIFICATION
    if "NORMAL" in s:
        return AttributeKind.NORMAL
    if "GPSTIME" in s or "GPS_TIME" in s:
        return AttributeKind.GPS_TIME
    if "NUMBER_OF_RETURNS" in s:
        return AttributeKind.NUMBER_OF_RETURNS
    if "RETURN_NUMBER" in s:
        return AttributeKind.RETURN_NUMBER
    if "SOURCE_ID" in s:
        return AttributeKind.POINT_SOURCE_ID
    return AttributeKind.UNKNOWN


def parse_component_type(token: Optional[str], size_bytes: int, element_count: int) -> ComponentType:
    if token:
        t = token.strip().upper()
        for needles, ctype in _TYPE_TOKENS:
            if any(n in t for n in needles):
                return ctype
    # no usable token: guess from the byte layout
    if size_bytes == element_count * 4:
        return ComponentType.FLOAT32
    return ComponentType.UINT32


def default_layout(kind: AttributeKind) -> Tuple[int, int]:
    return _DEFAULT_LAYOUT.get(kind, _FALLBACK_LAYOUT)


def build_descriptor(entry: AttributeEntry) -> AttributeDescriptor:
    kind = parse_attribute_kind(entry.name)
    default_size, default_elements = default_layout(kind)
    size = entry.size if entry.size is not None else default_size
    elements = entry.element_count()
    if elements is None:
        elements = default_elements
    return AttributeDescriptor(
        kind=kind,
        component_type=parse_component_type(entry.type, size, elements),
        size_bytes=size,
        element_count=elements,
    )


POSITION_FLOAT = AttributeDescriptor(AttributeKind.POSITION, ComponentType.FLOAT32, 12, 3)
RGB_UINT8 = AttributeDescriptor(AttributeKind.RGB, ComponentType.UINT8, 3, 3)
INTENSITY_UINT16 = AttributeDescriptor(AttributeKind.INTENSITY, ComponentType.UINT16, 2, 1)
CLASSIFICATION_UINT8 = AttributeDescriptor(AttributeKind.CLASSIFICATION, ComponentType.UINT8, 1, 1)


def expand_alias(alias: str) -> Tuple[AttributeDescriptor, ...]:
    """Legacy shorthand such as ``"LAS"``, ``"LASRGB"`` or ``"RGB"``."""
    alias = alias.upper()
    out = [POSITION_FLOAT]
    if "RGB" in alias:
        out.append(RGB_UINT8)
    if "LAS" in alias:
        out.extend((INTENSITY_UINT16, CLASSIFICATION_UINT8))
    return tuple(out)
