"""
Base class and shared records for Helix API payloads.

Resource records are plain dataclasses whose fields all default to
``None``.  Values missing from a payload stay ``None`` and are left out
again when the record is serialised, so a record survives a JSON
round trip unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

from .timestamp import Timestamp

M = TypeVar("M", bound="Model")


def timestamp_field() -> Any:
    """Dataclass field holding a :class:`Timestamp`."""
    return field(default=None, metadata={"decode": Timestamp.from_json})


def model_field(model: Type["Model"]) -> Any:
    """Dataclass field holding a nested record."""
    return field(default=None, metadata={"decode": model.from_dict})


def model_list_field(model: Type["Model"]) -> Any:
    """Dataclass field holding a list of nested records."""

    def decode(values: Optional[List[Dict[str, Any]]]) -> List["Model"]:
        return [model.from_dict(value) for value in values or ()]

    return field(default_factory=list, metadata={"decode": decode})


def _encode(value: Any) -> Any:
    if isinstance(value, Model):
        return value.to_dict()
    if isinstance(value, Timestamp):
        return value.to_json()
    if isinstance(value, (list, tuple)):
        return [_encode(item) for item in value]
    return value


@dataclass
class Model:
    """Base for records decoded from and encoded to JSON objects."""

    @classmethod
    def from_dict(cls: Type[M], data: Optional[Dict[str, Any]]) -> M:
        record = cls()
        if data is not None:
            record.update(data)
        return record

    def update(self, data: Dict[str, Any]) -> None:
        """Overwrite the fields present in ``data``, in place.

        Keys without a matching field are ignored; fields whose key is
        absent keep their current value.
        """
        if not isinstance(data, dict):
            raise TypeError(
                f"cannot decode {type(data).__name__} into {type(self).__name__}"
            )
        for f in fields(self):
            if f.name not in data:
                continue
            value = data[f.name]
            decode: Optional[Callable[[Any], Any]] = f.metadata.get("decode")
            if value is not None and decode is not None:
                value = decode(value)
            setattr(self, f.name, value)

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-ready dict, omitting ``None`` fields."""
        result: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = _encode(value)
        return result


@dataclass
class Pagination(Model):
    cursor: Optional[str] = None


def has_next_page(pagination: Optional[Pagination]) -> bool:
    """Whether a response's pagination points at a further page."""
    return pagination is not None and bool(pagination.cursor)
