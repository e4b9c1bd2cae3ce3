# potree_reader/cli.py
import argparse
import logging
import sys
from typing import List, Optional

from pydantic import BaseModel

from potree_reader.config import settings
from potree_reader.errors import DecodeError, SchemaError
from potree_reader.models import Schema
from potree_reader.reader import read_bin
from potree_reader.resolver import load_schema

logger = logging.getLogger(__name__)


class AttributeSummary(BaseModel):
    kind: str
    type: str
    size: int
    elements: int


class SchemaSummary(BaseModel):
    points: int
    octree_dir: str
    hierarchy_step_size: int
    bbox_min: List[float]
    bbox_max: List[float]
    scale: List[float]
    offset: List[float]
    stride: int
    attributes: List[AttributeSummary]

    @classmethod
    def from_schema(cls, schema: Schema) -> "SchemaSummary":
        return cls(
            points=schema.point_count,
            octree_dir=schema.octree_dir,
            hierarchy_step_size=schema.hierarchy_step_size,
            bbox_min=list(schema.bbox_min),
            bbox_max=list(schema.bbox_max),
            scale=list(schema.scale),
            offset=list(schema.offset),
            stride=schema.record_stride(),
            attributes=[
                AttributeSummary(
                    kind=a.kind.value,
                    type=a.component_type.name,
                    size=a.size_bytes,
                    elements=a.element_count,
                )
                for a in schema.attributes
            ],
        )


def _fmt_vec(v) -> str:
    return "(" + ", ".join(f"{c:.3f}" for c in v) + ")"


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(prog="potree-reader")
    p.add_argument("--log-level", default=None)
    sub = p.add_subparsers(dest="cmd", required=True)

    sc = sub.add_parser("schema")
    sc.add_argument("metadata")

    rd = sub.add_parser("read")
    rd.add_argument("metadata")
    rd.add_argument("bin")
    rd.add_argument("--max-points", type=int, default=None)

    args = p.parse_args(argv)
    logging.basicConfig(level=(args.log_level or settings.log_level).upper())

    try:
        schema = load_schema(args.metadata)

        if args.cmd == "schema":
            print(SchemaSummary.from_schema(schema).model_dump_json(indent=2))
            return 0

        if args.cmd == "read":
            max_points = args.max_points if args.max_points is not None else settings.max_points
            if max_points is not None and max_points < 0:
                p.error("--max-points must be >= 0")
            block = read_bin(args.bin, schema, max_points)
            print(f"{block.point_count} points loaded, "
                  f"{_fmt_vec(schema.bbox_max)} max, {_fmt_vec(schema.bbox_min)} min")
            print("colors:", block.colors is not None,
                  "intensities:", block.intensities is not None,
                  "classifications:", block.classifications is not None)
            return 0
    except (SchemaError, DecodeError, OSError) as e:
        logger.error(f"{args.cmd} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
