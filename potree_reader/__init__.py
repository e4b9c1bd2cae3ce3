"""Reader for Potree point cloud octrees.

``resolve`` turns a parsed ``cloud.js`` / ``metadata.json`` document into a
``Schema``; ``decode`` turns a stream of binary point records into a
``PointBlock``.
"""

from .errors import DecodeError, InvalidStrideError, SchemaError, TruncatedRecordError
from .models import AttributeDescriptor, AttributeKind, ComponentType, PointBlock, Schema
from .reader import decode, read_bin
from .resolver import load_schema, resolve

__all__ = [
    "AttributeDescriptor",
    "AttributeKind",
    "ComponentType",
    "DecodeError",
    "InvalidStrideError",
    "PointBlock",
    "Schema",
    "SchemaError",
    "TruncatedRecordError",
    "decode",
    "load_schema",
    "read_bin",
    "resolve",
]
