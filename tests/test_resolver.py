import json
from pathlib import Path

import pytest

from potree_reader.errors import SchemaError
from potree_reader.models import AttributeDescriptor, AttributeKind, ComponentType
from potree_reader.resolver import load_schema, resolve


def _base_doc(**overrides) -> dict:
    doc = {
        "version": "1.8",
        "octreeDir": "data",
        "points": 1234,
        "boundingBox": {
            "lx": 0,
            "min": [10.0, 20.0, 30.0],
            "max": [110.0, 120.0, 130.0],
        },
        "scale": 0.01,
        "hierarchyStepSize": 6,
        "pointAttributes": [
            {"name": "POSITION_CARTESIAN", "size": 12, "elements": 3, "type": "int32"},
            {"name": "RGBA", "size": 4, "elements": 4, "type": "uint8"},
        ],
    }
    doc.update(overrides)
    return doc


def test_resolve_full_document():
    schema = resolve(_base_doc())

    assert schema.point_count == 1234
    assert schema.octree_dir == "data"
    assert schema.hierarchy_step_size == 6
    assert schema.bbox_min == (10.0, 20.0, 30.0)
    assert schema.bbox_max == (110.0, 120.0, 130.0)
    assert schema.scale == (0.01, 0.01, 0.01)
    assert schema.attributes[0] == AttributeDescriptor(AttributeKind.POSITION, ComponentType.INT32, 12, 3)
    assert schema.attributes[1].kind is AttributeKind.RGB
    assert schema.record_stride() == 16


def test_defaults_for_optional_fields():
    schema = resolve({"pointAttributes": "LAS"})

    assert schema.point_count == 0
    assert schema.hierarchy_step_size == 5
    assert schema.octree_dir == "octree"
    assert schema.bbox_min == (0.0, 0.0, 0.0)
    assert schema.bbox_max == (0.0, 0.0, 0.0)
    assert schema.scale == (0.001, 0.001, 0.001)
    assert schema.offset == (0.0, 0.0, 0.0)


def test_point_count_falls_back_to_point_count_field():
    doc = _base_doc()
    del doc["points"]
    doc["pointCount"] = 99
    assert resolve(doc).point_count == 99


def test_octree_dir_aliases():
    doc = _base_doc()
    del doc["octreeDir"]
    doc["octreeDirName"] = "tree"
    assert resolve(doc).octree_dir == "tree"


def test_tight_bounding_box_fallback():
    doc = _base_doc()
    del doc["boundingBox"]
    doc["tightBoundingBox"] = {"min": {"x": 1, "y": 2, "z": 3}, "max": {"x": 4, "y": 5, "z": 6}}
    schema = resolve(doc)
    assert schema.bbox_min == (1.0, 2.0, 3.0)
    assert schema.bbox_max == (4.0, 5.0, 6.0)


def test_bounding_box_preferred_over_tight():
    doc = _base_doc(tightBoundingBox={"min": [0, 0, 0], "max": [1, 1, 1]})
    assert resolve(doc).bbox_min == (10.0, 20.0, 30.0)


def test_scale_vector_and_object_forms():
    assert resolve(_base_doc(scale=[0.1, 0.2, 0.3])).scale == (0.1, 0.2, 0.3)
    assert resolve(_base_doc(scale={"x": 0.5, "y": 0.25, "z": 1})).scale == (0.5, 0.25, 1.0)


def test_missing_scale_defaults():
    doc = _base_doc()
    del doc["scale"]
    assert resolve(doc).scale == (0.001, 0.001, 0.001)


def test_missing_offset_is_bbox_min():
    assert resolve(_base_doc()).offset == (10.0, 20.0, 30.0)

    doc = _base_doc()
    del doc["boundingBox"]
    doc["tightBoundingBox"] = {"min": [-1, -2, -3], "max": [1, 2, 3]}
    assert resolve(doc).offset == (-1.0, -2.0, -3.0)


def test_explicit_offset_wins():
    assert resolve(_base_doc(offset=[1, 2, 3])).offset == (1.0, 2.0, 3.0)


def test_attribute_list_key_precedence():
    doc = {"attributes": "LAS", "schema": "RGB"}
    assert [a.kind for a in resolve(doc).attributes][-1] is AttributeKind.CLASSIFICATION

    doc = {"schema": "RGB"}
    assert [a.kind for a in resolve(doc).attributes] == [AttributeKind.POSITION, AttributeKind.RGB]

    doc = {"pointAttributes": "RGB", "attributes": "LAS"}
    assert [a.kind for a in resolve(doc).attributes] == [AttributeKind.POSITION, AttributeKind.RGB]


def test_alias_lasrgb():
    schema = resolve({"pointAttributes": "LASRGB"})
    assert schema.attributes == (
        AttributeDescriptor(AttributeKind.POSITION, ComponentType.FLOAT32, 12, 3),
        AttributeDescriptor(AttributeKind.RGB, ComponentType.UINT8, 3, 3),
        AttributeDescriptor(AttributeKind.INTENSITY, ComponentType.UINT16, 2, 1),
        AttributeDescriptor(AttributeKind.CLASSIFICATION, ComponentType.UINT8, 1, 1),
    )
    assert schema.record_stride() == 18


def test_potree_2_attribute_entries():
    doc = {
        "points": 3,
        "scale": [0.001, 0.001, 0.001],
        "offset": [0, 0, 0],
        "attributes": [
            {"name": "position", "description": "", "size": 12, "numElements": 3, "elementSize": 4, "type": "int32"},
            {"name": "intensity", "size": 2, "numElements": 1, "elementSize": 2, "type": "uint16"},
            {"name": "return number", "size": 1, "numElements": 1, "type": "uint8"},
            {"name": "number of returns", "size": 1, "numElements": 1, "type": "uint8"},
            {"name": "classification", "size": 1, "numElements": 1, "type": "uint8"},
            {"name": "point source id", "size": 2, "numElements": 1, "type": "uint16"},
            {"name": "gps-time", "size": 8, "numElements": 1, "type": "double"},
            {"name": "rgb", "size": 6, "numElements": 3, "type": "uint16"},
        ],
    }
    schema = resolve(doc)
    assert [a.kind for a in schema.attributes] == [
        AttributeKind.POSITION,
        AttributeKind.INTENSITY,
        AttributeKind.RETURN_NUMBER,
        AttributeKind.NUMBER_OF_RETURNS,
        AttributeKind.CLASSIFICATION,
        AttributeKind.POINT_SOURCE_ID,
        AttributeKind.GPS_TIME,
        AttributeKind.RGB,
    ]
    assert schema.attributes[6].component_type is ComponentType.FLOAT64
    assert schema.record_stride() == 12 + 2 + 1 + 1 + 1 + 2 + 8 + 6


def test_bare_name_entries_use_defaults():
    schema = resolve({"pointAttributes": ["POSITION_CARTESIAN", "COLOR_PACKED", "INTENSITY"]})
    assert [(a.kind, a.size_bytes) for a in schema.attributes] == [
        (AttributeKind.POSITION, 12),
        (AttributeKind.COLOR_PACKED, 4),
        (AttributeKind.INTENSITY, 2),
    ]


def test_unknown_attribute_is_kept_with_its_size(caplog):
    schema = resolve({"pointAttributes": [{"name": "POSITION_CARTESIAN"}, {"name": "FOO", "size": 7}]})
    assert schema.attributes[1].kind is AttributeKind.UNKNOWN
    assert schema.record_stride() == 19
    assert "FOO" in caplog.text


def test_missing_attribute_schema_is_fatal():
    with pytest.raises(SchemaError, match="missing point attribute schema"):
        resolve({"points": 10})
    with pytest.raises(SchemaError):
        resolve({"pointAttributes": None})


@pytest.mark.parametrize("value", [5, 1.5, True, {"name": "RGB"}])
def test_unsupported_attribute_schema_shape_is_fatal(value):
    with pytest.raises(SchemaError):
        resolve({"pointAttributes": value})


def test_empty_attribute_list_is_fatal():
    with pytest.raises(SchemaError, match="stride"):
        resolve({"pointAttributes": []})


@pytest.mark.parametrize(
    "entry",
    [
        42,
        ["RGB"],
        {"name": "RGB", "size": "abc"},
        {"name": "RGB", "size": 0},
        {"name": "RGB", "size": -3},
    ],
)
def test_bad_attribute_entries_are_fatal(entry):
    with pytest.raises(SchemaError):
        resolve({"pointAttributes": [entry]})


def test_non_string_type_and_name_are_not_fatal():
    schema = resolve({"pointAttributes": [{"name": "POSITION_CARTESIAN", "type": 5}]})
    assert schema.attributes == (
        AttributeDescriptor(AttributeKind.POSITION, ComponentType.FLOAT32, 12, 3),
    )

    schema = resolve({"pointAttributes": [
        {"name": "POSITION_CARTESIAN", "type": ["int32"]},
        {"name": 5, "size": 4},
    ]})
    assert schema.attributes[0].component_type is ComponentType.FLOAT32
    assert schema.attributes[1].kind is AttributeKind.UNKNOWN
    assert schema.record_stride() == 16


def test_non_object_document_is_fatal():
    with pytest.raises(SchemaError):
        resolve(["pointAttributes"])


def test_resolved_stride_matches_attribute_sizes():
    schema = resolve(_base_doc())
    assert schema.record_stride() == sum(a.size_bytes for a in schema.attributes)
    assert schema.record_stride() > 0


def test_load_schema(tmp_path: Path):
    p = tmp_path / "metadata.json"
    p.write_text(json.dumps(_base_doc()), encoding="utf-8")
    assert load_schema(p).point_count == 1234
    assert load_schema(str(p)).record_stride() == 16


def test_load_schema_bad_json(tmp_path: Path):
    p = tmp_path / "cloud.js"
    p.write_text("{not json", encoding="utf-8")
    with pytest.raises(SchemaError):
        load_schema(p)
