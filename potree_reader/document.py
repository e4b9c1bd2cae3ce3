from __future__ import annotations

from typing import Any, List, Optional

from .errors import SchemaError
from .models import Vec3


_MISSING = object()


def _to_float(value: Any, path: str) -> float:
    if isinstance(value, bool):
        raise SchemaError(f"{path}: expected a number, got {value!r}")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise SchemaError(f"{path}: expected a number, got {value!r}")


class DocumentNode:
    """Read-only view over one value of a parsed JSON document.

    JSON ``null`` and absent keys are both "missing". Every getter takes the
    fallback to use in that case, so each alias rule of the metadata format
    lives in exactly one call.
    """

    __slots__ = ("_value", "path")

    def __init__(self, value: Any = _MISSING, path: str = "$"):
        self._value = None if value is _MISSING else value
        self.path = path

    def __repr__(self) -> str:
        return f"DocumentNode({self.path}={self._value!r})"

    @property
    def value(self) -> Any:
        return self._value

    @property
    def is_missing(self) -> bool:
        return self._value is None

    @property
    def is_string(self) -> bool:
        return isinstance(self._value, str)

    @property
    def is_sequence(self) -> bool:
        return isinstance(self._value, (list, tuple))

    @property
    def is_mapping(self) -> bool:
        return isinstance(self._value, dict)

    @property
    def is_number(self) -> bool:
        return isinstance(self._value, (int, float)) and not isinstance(self._value, bool)

    def get(self, key: str) -> "DocumentNode":
        child_path = f"{self.path}.{key}"
        if isinstance(self._value, dict) and key in self._value:
            return DocumentNode(self._value[key], child_path)
        return DocumentNode(path=child_path)

    def first_of(self, *keys: str) -> "DocumentNode":
        """First present child among ``keys``; a missing node if none is."""
        for key in keys:
            node = self.get(key)
            if not node.is_missing:
                return node
        return DocumentNode(path=f"{self.path}.({'|'.join(keys)})")

    def as_int(self, default: Optional[int] = None) -> Optional[int]:
        if self.is_missing:
            return default
        if isinstance(self._value, int) and not isinstance(self._value, bool):
            return self._value
        return int(_to_float(self._value, self.path))

    def as_float(self, default: Optional[float] = None) -> Optional[float]:
        if self.is_missing:
            return default
        return _to_float(self._value, self.path)

    def as_string(self, default: Optional[str] = None) -> Optional[str]:
        if self.is_missing:
            return default
        if isinstance(self._value, (dict, list, tuple)):
            raise SchemaError(f"{self.path}: expected a string, got {type(self._value).__name__}")
        return str(self._value)

    def as_vector3(self, default: Vec3) -> Vec3:
        """``[x, y, z]`` or ``{"x":.., "y":.., "z":..}``.

        Arrays shorter than three fall back to ``default``; object components
        that are absent read as 0.
        """
        if self.is_missing:
            return default
        if self.is_sequence:
            if len(self._value) < 3:
                return default
            return tuple(_to_float(v, f"{self.path}[{i}]") for i, v in enumerate(self._value[:3]))
        if self.is_mapping:
            return tuple(self.get(axis).as_float(0.0) for axis in ("x", "y", "z"))
        raise SchemaError(f"{self.path}: expected a vector, got {self._value!r}")

    def as_scalar_or_vector(self, default: Vec3) -> Vec3:
        """A bare number ``s`` expands to ``(s, s, s)``; anything else reads as a vector."""
        if self.is_number:
            s = float(self._value)
            return (s, s, s)
        return self.as_vector3(default)

    def as_list(self) -> List["DocumentNode"]:
        if self.is_missing:
            return []
        if not self.is_sequence:
            raise SchemaError(f"{self.path}: expected an array, got {type(self._value).__name__}")
        return [DocumentNode(v, f"{self.path}[{i}]") for i, v in enumerate(self._value)]
