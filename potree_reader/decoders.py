from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from typing import Any, Callable, Dict

from .models import AttributeDescriptor, AttributeKind, ComponentType, Schema, RGBA8, Vec3

# columns a decoded value can land in; "color" is the per-record pending color
POSITIONS = "positions"
COLOR = "color"
INTENSITIES = "intensities"
CLASSIFICATIONS = "classifications"

ReadFn = Callable[[bytes, int, AttributeDescriptor, Schema], Any]


@dataclass(frozen=True)
class FieldDecoder:
    kind: AttributeKind
    column: str
    read: ReadFn
    scalar: bool = False


DECODERS: Dict[AttributeKind, FieldDecoder] = {}

_FLOAT3 = struct.Struct("<3f")
_INT3 = struct.Struct("<3i")


def register_decoder(kind: AttributeKind, column: str, *, scalar: bool = False):
    def deco(fn: ReadFn) -> ReadFn:
        DECODERS[kind] = FieldDecoder(kind=kind, column=column, read=fn, scalar=scalar)
        return fn
    return deco


def _read_first_element(buf: bytes, offset: int, attr: AttributeDescriptor) -> int:
    ctype = attr.component_type
    if ctype.width > attr.size_bytes:
        return int.from_bytes(buf[offset:offset + attr.size_bytes], "little")
    value = struct.unpack_from(ctype.struct_code, buf, offset)[0]
    if isinstance(value, float) and not math.isfinite(value):
        # NaN/inf have no integer value
        return 0
    return int(value)


@register_decoder(AttributeKind.POSITION, POSITIONS)
def read_position(buf: bytes, offset: int, attr: AttributeDescriptor, schema: Schema) -> Vec3:
    if attr.component_type is ComponentType.FLOAT32:
        return _FLOAT3.unpack_from(buf, offset)
    xi, yi, zi = _INT3.unpack_from(buf, offset)
    ox, oy, oz = schema.offset
    sx, sy, sz = schema.scale
    return (ox + sx * xi, oy + sy * yi, oz + sz * zi)


@register_decoder(AttributeKind.RGB, COLOR)
def read_rgb(buf: bytes, offset: int, attr: AttributeDescriptor, schema: Schema) -> RGBA8:
    return (buf[offset], buf[offset + 1], buf[offset + 2], 255)


@register_decoder(AttributeKind.COLOR_PACKED, COLOR)
def read_packed_color(buf: bytes, offset: int, attr: AttributeDescriptor, schema: Schema) -> RGBA8:
    return (buf[offset], buf[offset + 1], buf[offset + 2], buf[offset + 3])


@register_decoder(AttributeKind.INTENSITY, INTENSITIES, scalar=True)
def read_intensity(buf: bytes, offset: int, attr: AttributeDescriptor, schema: Schema) -> int:
    return _read_first_element(buf, offset, attr) & 0xFFFF


@register_decoder(AttributeKind.CLASSIFICATION, CLASSIFICATIONS, scalar=True)
def read_classification(buf: bytes, offset: int, attr: AttributeDescriptor, schema: Schema) -> int:
    return _read_first_element(buf, offset, attr) & 0xFF


def active_decoders(decode_scalars: bool) -> Dict[AttributeKind, FieldDecoder]:
    if decode_scalars:
        return dict(DECODERS)
    return {k: d for k, d in DECODERS.items() if not d.scalar}
