"""Type descriptors: the column/field correspondence of a record type.

A descriptor is computed once per record type and reused for every
encode/decode of that type. Column names come from field annotations:

    @dataclass
    class User:
        id: int = column("id")
        name: str = column("name", default="")
        email: str | None = column("email", default=None)
        cache_key: str = ""  # not mapped

Pydantic models use ``Field(json_schema_extra={"column": "id"})``.
Classes that cannot carry annotations are mapped with
``DescriptorRegistry.register``.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from slim_orm.core.exceptions import ShapeError

logger = logging.getLogger(__name__)

COLUMN_KEY = "column"


def column(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field mapped to column ``name``.

    Extra keyword arguments are passed to ``dataclasses.field``.
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[COLUMN_KEY] = name
    return dataclasses.field(metadata=metadata, **kwargs)


@dataclass(frozen=True)
class FieldInfo:
    """A mapped field of a record type."""

    index: int
    name: str
    column: str
    annotation: Any
    base_type: Any  # annotation without the None member of an Optional
    optional: bool


@dataclass(frozen=True)
class TypeDescriptor:
    """Column-name/field-index correspondence for one record type.

    Fields without a column annotation are absent from both mappings.
    """

    record_type: type
    fields: tuple[FieldInfo, ...]
    field_index_by_column: Mapping[str, int]
    column_by_field_index: Mapping[int, str]
    fields_by_column: Mapping[str, FieldInfo]
    is_pydantic: bool = False
    frozen: bool = False

    def field_for_column(self, column_name: str) -> FieldInfo | None:
        return self.fields_by_column.get(column_name)

    @property
    def columns(self) -> list[str]:
        return [info.column for info in self.fields]


def _is_pydantic_model(cls: type) -> bool:
    """Check if a class is a Pydantic BaseModel."""
    try:
        from pydantic import BaseModel

        return issubclass(cls, BaseModel)
    except ImportError:
        return False


def split_optional(annotation: Any) -> tuple[Any, bool]:
    """Return ``(base_type, optional)`` for an annotation.

    ``X | None`` and ``Optional[X]`` give ``(X, True)``. Unions with more
    than one non-None member keep the full annotation as base type.
    """
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = typing.get_args(annotation)
        members = [arg for arg in args if arg is not type(None)]
        optional = len(members) < len(args)
        if len(members) == 1:
            return members[0], optional
        return annotation, optional
    return annotation, False


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        raise ShapeError(f"Cannot resolve annotations of {cls.__name__}: {e}") from e


def _instance_attributes(cls: type) -> dict[str, Any]:
    """Annotated instance attributes of a class, in declaration order.

    Pydantic models contribute their model fields and dataclasses their
    fields; ClassVar annotations are never instance attributes.
    """
    if _is_pydantic_model(cls):
        return {
            name: info.annotation
            for name, info in cls.model_fields.items()  # type: ignore[attr-defined]
        }
    hints = _type_hints(cls)
    if dataclasses.is_dataclass(cls):
        return {f.name: hints.get(f.name, Any) for f in dataclasses.fields(cls)}
    return {
        name: annotation
        for name, annotation in hints.items()
        if annotation is not typing.ClassVar
        and typing.get_origin(annotation) is not typing.ClassVar
    }


def _declared_fields(cls: type) -> tuple[list[tuple[str, Any, str | None]], bool, bool]:
    """List ``(attribute, annotation, column)`` in declaration order.

    Returns the field list plus the (is_pydantic, frozen) flags.
    """
    if _is_pydantic_model(cls):
        result = []
        for name, info in cls.model_fields.items():  # type: ignore[attr-defined]
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            result.append((name, info.annotation, extra.get(COLUMN_KEY)))
        frozen = bool(cls.model_config.get("frozen", False))  # type: ignore[attr-defined]
        return result, True, frozen

    if dataclasses.is_dataclass(cls):
        hints = _type_hints(cls)
        result = [
            (f.name, hints.get(f.name, Any), f.metadata.get(COLUMN_KEY))
            for f in dataclasses.fields(cls)
        ]
        frozen = cls.__dataclass_params__.frozen  # type: ignore[attr-defined]
        return result, False, frozen

    raise ShapeError(
        f"{cls.__name__} is not a record type: expected a dataclass, a pydantic "
        "model, or a class registered with explicit columns"
    )


def _build(
    cls: type,
    declared: list[tuple[str, Any, str | None]],
    is_pydantic: bool,
    frozen: bool,
) -> TypeDescriptor:
    fields: list[FieldInfo] = []
    index_by_column: dict[str, int] = {}
    column_by_index: dict[int, str] = {}
    for index, (name, annotation, column_name) in enumerate(declared):
        if not column_name:
            continue
        if column_name in index_by_column:
            raise ShapeError(f"{cls.__name__} maps column '{column_name}' more than once")
        base_type, optional = split_optional(annotation)
        fields.append(
            FieldInfo(
                index=index,
                name=name,
                column=column_name,
                annotation=annotation,
                base_type=base_type,
                optional=optional,
            )
        )
        index_by_column[column_name] = index
        column_by_index[index] = column_name

    return TypeDescriptor(
        record_type=cls,
        fields=tuple(fields),
        field_index_by_column=types.MappingProxyType(index_by_column),
        column_by_field_index=types.MappingProxyType(column_by_index),
        fields_by_column=types.MappingProxyType({info.column: info for info in fields}),
        is_pydantic=is_pydantic,
        frozen=frozen,
    )


class DescriptorRegistry:
    """Memoized descriptors keyed by record type.

    Descriptors are never evicted; a process is expected to use a small,
    bounded set of record types. Population is serialized by a lock so
    concurrent first use of a type scans it once; lookups of known types
    do not take the lock.
    """

    def __init__(self) -> None:
        self._descriptors: dict[type, TypeDescriptor] = {}
        self._lock = threading.Lock()
        self._scan_count = 0

    @property
    def scan_count(self) -> int:
        """Number of descriptors built so far."""
        return self._scan_count

    def describe(self, record_type: type) -> TypeDescriptor:
        """Return the descriptor of ``record_type``, building it on first use.

        Raises:
            ShapeError: If ``record_type`` is not a record type.
        """
        if not isinstance(record_type, type):
            raise ShapeError(f"Expected a record type, got {record_type!r}")
        descriptor = self._descriptors.get(record_type)
        if descriptor is not None:
            return descriptor

        with self._lock:
            descriptor = self._descriptors.get(record_type)
            if descriptor is None:
                declared, is_pydantic, frozen = _declared_fields(record_type)
                descriptor = _build(record_type, declared, is_pydantic, frozen)
                self._store(descriptor)
        return descriptor

    def register(self, record_type: type, columns: Mapping[str, str]) -> TypeDescriptor:
        """Map ``record_type`` with an explicit attribute → column mapping.

        Attributes are ordered as the class annotates them. Registering the
        same mapping again returns the existing descriptor.

        Raises:
            ShapeError: If an attribute is not annotated on the class, or the
                type is already known with a different mapping.
        """
        if not isinstance(record_type, type):
            raise ShapeError(f"Expected a record type, got {record_type!r}")
        hints = _instance_attributes(record_type)
        unknown = [attr for attr in columns if attr not in hints]
        if unknown:
            raise ShapeError(f"{record_type.__name__} has no annotated attributes {unknown}")

        declared = [(name, annotation, columns.get(name)) for name, annotation in hints.items()]
        is_pydantic = _is_pydantic_model(record_type)
        frozen = False
        if dataclasses.is_dataclass(record_type):
            frozen = record_type.__dataclass_params__.frozen  # type: ignore[attr-defined]
        elif is_pydantic:
            frozen = bool(record_type.model_config.get("frozen", False))  # type: ignore[attr-defined]

        with self._lock:
            existing = self._descriptors.get(record_type)
            candidate = _build(record_type, declared, is_pydantic, frozen)
            if existing is not None:
                if dict(existing.field_index_by_column) != dict(candidate.field_index_by_column):
                    raise ShapeError(
                        f"{record_type.__name__} is already mapped with columns {existing.columns}"
                    )
                return existing
            self._store(candidate)
        return candidate

    def _store(self, descriptor: TypeDescriptor) -> None:
        self._scan_count += 1
        self._descriptors[descriptor.record_type] = descriptor
        logger.debug(
            "Described %s: columns %s",
            descriptor.record_type.__name__,
            descriptor.columns,
        )

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


default_registry = DescriptorRegistry()
