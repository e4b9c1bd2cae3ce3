from __future__ import annotations

import io
import logging
import struct
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union

import numpy as np

from .config import settings
from .decoders import CLASSIFICATIONS, COLOR, INTENSITIES, POSITIONS, active_decoders
from .errors import DecodeError, InvalidStrideError, TruncatedRecordError
from .models import AttributeKind, PointBlock, Schema, WHITE_OPAQUE

logger = logging.getLogger(__name__)

StreamLike = Union[BinaryIO, bytes, bytearray, memoryview]


def _open_stream(source: StreamLike) -> Tuple[BinaryIO, int]:
    """Return a readable stream and the number of bytes left in it."""
    if isinstance(source, (bytes, bytearray, memoryview)):
        data = bytes(source)
        return io.BytesIO(data), len(data)

    seekable = getattr(source, "seekable", None)
    if seekable is not None and seekable():
        start = source.tell()
        end = source.seek(0, io.SEEK_END)
        source.seek(start)
        return source, end - start

    data = source.read()
    return io.BytesIO(data), len(data)


def decode(
    stream: StreamLike,
    schema: Schema,
    max_points: Optional[int] = None,
    *,
    decode_scalars: Optional[bool] = None,
) -> PointBlock:
    """Decode fixed-stride point records from ``stream``.

    Trailing bytes that do not make up a full record are ignored.
    ``decode_scalars`` defaults to ``settings.decode_scalar_columns``.
    """
    stride = schema.record_stride()
    if stride <= 0:
        raise InvalidStrideError(stride)
    if max_points is not None and max_points < 0:
        raise ValueError(f"max_points must be >= 0, got {max_points}")
    if decode_scalars is None:
        decode_scalars = settings.decode_scalar_columns

    stream, total_bytes = _open_stream(stream)
    point_count = total_bytes // stride
    if max_points is not None:
        point_count = min(point_count, max_points)

    positions = np.zeros((point_count, 3), dtype=np.float64)
    colors = None
    intensities = None
    classifications = None

    if schema.has_kind(AttributeKind.RGB, AttributeKind.COLOR_PACKED):
        colors = np.zeros((point_count, 4), dtype=np.uint8)
    if schema.has_kind(AttributeKind.INTENSITY):
        intensities = np.zeros(point_count, dtype=np.uint16)
    if schema.has_kind(AttributeKind.CLASSIFICATION):
        classifications = np.zeros(point_count, dtype=np.uint8)

    columns = {
        POSITIONS: positions,
        INTENSITIES: intensities,
        CLASSIFICATIONS: classifications,
    }
    logger.debug(
        f"Decoding {point_count} records of {stride} bytes "
        f"(colors={colors is not None}, intensities={intensities is not None}, "
        f"classifications={classifications is not None})"
    )

    # attribute offsets are the same for every record
    decoders = active_decoders(decode_scalars)
    plan = []
    offset = 0
    for attr in schema.attributes:
        plan.append((attr, offset, decoders.get(attr.kind)))
        offset += attr.size_bytes

    for i in range(point_count):
        buf = stream.read(stride)
        if len(buf) < stride:
            raise TruncatedRecordError(i, stride, len(buf))

        color = WHITE_OPAQUE
        for attr, off, dec in plan:
            if dec is None:
                continue
            try:
                value = dec.read(buf, off, attr, schema)
            except (struct.error, IndexError) as exc:
                raise DecodeError(
                    f"record {i}: {attr.kind.name} at byte {off} does not fit in a {stride}-byte record"
                ) from exc
            except (ValueError, OverflowError) as exc:
                raise DecodeError(f"record {i}: cannot decode {attr.kind.name} at byte {off}: {exc}") from exc
            if dec.column == COLOR:
                color = value
                continue
            target = columns.get(dec.column)
            if target is not None:
                target[i] = value

        if colors is not None:
            colors[i] = color

    return PointBlock(
        positions=positions,
        colors=colors,
        intensities=intensities,
        classifications=classifications,
    )


def read_bin(
    bin_path: str | Path,
    schema: Schema,
    max_points: Optional[int] = None,
    *,
    decode_scalars: Optional[bool] = None,
) -> PointBlock:
    with open(bin_path, "rb") as f:
        block = decode(f, schema, max_points, decode_scalars=decode_scalars)
    logger.info(f"Read {block.point_count} points from {bin_path}")
    return block
