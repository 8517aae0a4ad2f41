"""Record ⇄ row conversion.

``encode`` turns a record into a row dict keyed by column name, leaving out
optional fields that are None so a partial record only carries the columns
it sets. ``decode`` writes a row into an existing record in place.
"""

from __future__ import annotations

import dataclasses
import enum
import typing
import uuid
from collections.abc import Callable
from datetime import date, datetime, time
from decimal import Decimal
from functools import lru_cache
from typing import Any

from slim_orm.core.cursor import Row
from slim_orm.core.exceptions import ShapeError, TypeMismatchError, UnknownColumnError
from slim_orm.mapping.descriptor import (
    DescriptorRegistry,
    FieldInfo,
    TypeDescriptor,
    default_registry,
    split_optional,
)

_NUMERIC_TYPES = (int, float, Decimal)
_BINARY_TYPES = (bytes, bytearray, memoryview)

_ZERO_VALUES: dict[Any, Any] = {
    int: 0,
    float: 0.0,
    Decimal: Decimal(0),
    str: "",
    bytes: b"",
    bool: False,
}


def _converter_for(source: type, target: type) -> Callable[[Any], Any] | None:
    """Pick the conversion from ``source`` values to ``target``, or None."""
    if target is bool:
        if issubclass(source, int):
            return bool
        return None
    if target in _NUMERIC_TYPES:
        if issubclass(source, _NUMERIC_TYPES) and not issubclass(source, bool):
            return target
        return None
    if target is str and issubclass(source, _BINARY_TYPES):
        return lambda value: bytes(value).decode("utf-8")
    if target is bytes:
        if issubclass(source, str):
            return lambda value: value.encode("utf-8")
        if issubclass(source, _BINARY_TYPES):
            return bytes
        return None
    if issubclass(source, str):
        # SQLite returns timestamps and UUIDs as text.
        if target is datetime:
            return datetime.fromisoformat
        if target is date:
            return date.fromisoformat
        if target is time:
            return time.fromisoformat
        if target is uuid.UUID:
            return uuid.UUID
    if issubclass(target, enum.Enum):
        return target
    return None


def convert_value(column: str, value: Any, info: FieldInfo) -> Any:
    """Convert a row value to the declared type of ``info``.

    Raises:
        TypeMismatchError: If the value is not convertible.
    """
    target = info.base_type
    if value is None:
        if info.optional or not isinstance(target, type):
            return None
        raise TypeMismatchError(column, type(None), info.annotation)

    # Any, parametrized generics, multi-member unions: not checked
    if not isinstance(target, type) or typing.get_origin(target) is not None:
        return value
    if isinstance(value, target):
        return value

    converter = _converter_for(type(value), target)
    if converter is None:
        raise TypeMismatchError(column, type(value), target)
    try:
        return converter(value)
    except (ValueError, TypeError, ArithmeticError) as e:
        raise TypeMismatchError(column, type(value), target) from e


def zero_value(annotation: Any) -> Any:
    """The blank value of a field: None for optionals, else the type's zero."""
    base_type, optional = split_optional(annotation)
    if optional:
        return None
    return _ZERO_VALUES.get(base_type)


@lru_cache(maxsize=None)
def _blank_arguments(record_type: type) -> dict[str, Any]:
    """Constructor arguments for the required fields of a dataclass or model."""
    if dataclasses.is_dataclass(record_type):
        hints = typing.get_type_hints(record_type)
        return {
            f.name: zero_value(hints.get(f.name, Any))
            for f in dataclasses.fields(record_type)
            if f.init
            and f.default is dataclasses.MISSING
            and f.default_factory is dataclasses.MISSING
        }
    return {
        name: zero_value(info.annotation)
        for name, info in record_type.model_fields.items()  # type: ignore[attr-defined]
        if info.is_required()
    }


class RecordCodec:
    """Converts records to rows and rows into records.

    Args:
        registry: Descriptor registry to use. Defaults to the process-wide
            ``default_registry``.
    """

    def __init__(self, registry: DescriptorRegistry | None = None) -> None:
        self._registry = registry if registry is not None else default_registry

    @property
    def registry(self) -> DescriptorRegistry:
        return self._registry

    def describe(self, record_type: type) -> TypeDescriptor:
        return self._registry.describe(record_type)

    def describe_record(self, record: Any) -> TypeDescriptor:
        """Descriptor of a record instance; classes are rejected."""
        if isinstance(record, type):
            raise ShapeError(
                f"Expected a {record.__name__} instance, got the class itself"
            )
        return self._registry.describe(type(record))

    def encode(self, record: Any) -> Row:
        """Convert a record to a row.

        Optional fields holding None are left out of the row.
        """
        descriptor = self.describe_record(record)
        row: Row = {}
        for info in descriptor.fields:
            value = getattr(record, info.name, None)
            if value is None and info.optional:
                continue
            row[info.column] = value
        return row

    def decode(self, row: Row, target: Any) -> Any:
        """Write the columns of ``row`` into ``target`` in place.

        Fields whose columns are absent from the row are left untouched.

        Returns:
            ``target``, for chaining.

        Raises:
            ShapeError: If ``target`` is not a mutable record instance.
            UnknownColumnError: If the row has a column the type does not map.
            TypeMismatchError: If a value cannot be converted to its field's type.
        """
        descriptor = self.describe_record(target)
        if descriptor.frozen:
            raise ShapeError(f"Cannot decode into frozen record type {type(target).__name__}")

        for column_name, value in row.items():
            info = descriptor.field_for_column(column_name)
            if info is None:
                raise UnknownColumnError(column_name, descriptor.record_type)
            converted = convert_value(column_name, value, info)
            if descriptor.is_pydantic:
                try:
                    setattr(target, info.name, converted)
                except ValueError as e:
                    # validate_assignment models reject values on assignment
                    raise TypeMismatchError(column_name, type(value), info.annotation) from e
            else:
                setattr(target, info.name, converted)
        return target

    def new_record(self, record_type: type) -> Any:
        """Allocate a blank record to decode into.

        Declared defaults apply; other fields hold their type's zero value,
        or None.
        """
        descriptor = self.describe(record_type)
        if descriptor.frozen:
            raise ShapeError(f"Cannot decode into frozen record type {record_type.__name__}")
        if descriptor.is_pydantic:
            return record_type.model_construct(**_blank_arguments(record_type))  # type: ignore[attr-defined]
        if dataclasses.is_dataclass(record_type):
            return record_type(**_blank_arguments(record_type))

        record = object.__new__(record_type)
        for info in descriptor.fields:
            setattr(record, info.name, zero_value(info.annotation))
        return record
