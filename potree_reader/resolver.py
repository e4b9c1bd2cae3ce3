from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Tuple

from pydantic import ValidationError

from .attributes import AttributeEntry, build_descriptor, expand_alias
from .document import DocumentNode
from .errors import SchemaError
from .models import AttributeDescriptor, AttributeKind, Schema, ZERO_VEC3

logger = logging.getLogger(__name__)

DEFAULT_SCALE = (0.001, 0.001, 0.001)
DEFAULT_HIERARCHY_STEP_SIZE = 5
DEFAULT_OCTREE_DIR = "octree"

ATTRIBUTE_LIST_KEYS = ("pointAttributes", "attributes", "schema")


def _resolve_bbox(root: DocumentNode):
    box = root.first_of("boundingBox", "tightBoundingBox")
    if box.is_missing:
        return ZERO_VEC3, ZERO_VEC3
    return box.get("min").as_vector3(ZERO_VEC3), box.get("max").as_vector3(ZERO_VEC3)


def _parse_entry(node: DocumentNode) -> AttributeDescriptor:
    raw = node.value
    if isinstance(raw, str):
        # cloud.js 1.x lists bare attribute names
        raw = {"name": raw}
    if not isinstance(raw, dict):
        raise SchemaError(f"{node.path}: attribute entry must be an object or a name, got {type(raw).__name__}")
    try:
        entry = AttributeEntry.model_validate(raw)
    except ValidationError as exc:
        raise SchemaError(f"{node.path}: invalid attribute entry: {exc}") from exc

    attr = build_descriptor(entry)
    if attr.size_bytes <= 0:
        raise SchemaError(f"{node.path}: attribute size must be positive, got {attr.size_bytes}")
    if attr.kind is AttributeKind.UNKNOWN:
        logger.warning(f"Unrecognized point attribute {entry.name!r} at {node.path}, skipping {attr.size_bytes} bytes")
    return attr


def _resolve_attributes(root: DocumentNode) -> Tuple[AttributeDescriptor, ...]:
    node = root.first_of(*ATTRIBUTE_LIST_KEYS)
    if node.is_missing:
        raise SchemaError("metadata: missing point attribute schema (pointAttributes/attributes/schema)")

    if node.is_string:
        logger.debug(f"Expanding attribute alias {node.value!r}")
        return expand_alias(node.value)

    if node.is_sequence:
        return tuple(_parse_entry(item) for item in node.as_list())

    raise SchemaError(f"metadata: unsupported point attribute schema type {type(node.value).__name__}")


def resolve(doc: Dict[str, Any]) -> Schema:
    """Interpret a parsed ``cloud.js`` / ``metadata.json`` document."""
    if not isinstance(doc, dict):
        raise SchemaError(f"metadata: expected a JSON object at top level, got {type(doc).__name__}")
    root = DocumentNode(doc)

    bbox_min, bbox_max = _resolve_bbox(root)
    schema = Schema(
        point_count=root.first_of("points", "pointCount").as_int(0),
        bbox_min=bbox_min,
        bbox_max=bbox_max,
        scale=root.get("scale").as_scalar_or_vector(DEFAULT_SCALE),
        offset=root.get("offset").as_vector3(bbox_min),
        hierarchy_step_size=root.get("hierarchyStepSize").as_int(DEFAULT_HIERARCHY_STEP_SIZE),
        attributes=_resolve_attributes(root),
        octree_dir=root.first_of("octreeDir", "octreeDirPath", "octreeDirName").as_string(DEFAULT_OCTREE_DIR),
    )

    stride = schema.record_stride()
    if stride <= 0:
        raise SchemaError(f"metadata: point attribute schema yields an empty record (stride={stride})")
    logger.debug(f"Resolved schema: {len(schema.attributes)} attributes, stride={stride} bytes")
    return schema


def load_schema(path: str | Path) -> Schema:
    p = Path(path)
    try:
        doc = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SchemaError(f"{p}: not valid JSON: {exc}") from exc
    return resolve(doc)
