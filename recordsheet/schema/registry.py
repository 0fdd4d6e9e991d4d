"""
Schema extraction for record models.

A Schema is the ordered list of column bindings declared on a pydantic
record model for one direction (import or export). Each entry carries a
pre-resolved attribute chain, so reading and writing a bound value never
repeats field lookups per row.

Schemas are built once per (record type, direction) and cached for the
life of the process; they are read-only and safe to share.

Example:
    schema = SchemaRegistry.get(User, Direction.EXPORT)
    for field in schema.fields:
        print(field.binding.label, field.get_value(user))
"""

import types
import typing
from datetime import date, datetime
from decimal import Decimal
from typing import Any, ClassVar, Union

from pydantic import BaseModel, ConfigDict

from recordsheet.exceptions.excel_exceptions import InvalidArgumentError
from recordsheet.models.excel_models import Direction, ExcelColumn, FieldBinding

SUPPORTED_VALUE_TYPES = (str, int, float, Decimal, date, datetime, bool)


def unwrap_annotation(annotation: Any) -> Any:
    """
    Strip ``Annotated`` and ``Optional`` wrappers from a field annotation.

    ``int | None`` and ``Optional[int]`` both resolve to ``int``. Unions of
    several concrete types are returned unchanged.
    """
    if typing.get_origin(annotation) is typing.Annotated:
        annotation = typing.get_args(annotation)[0]

    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return unwrap_annotation(args[0])
    return annotation


def _is_model(annotation: Any) -> bool:
    return isinstance(annotation, type) and issubclass(annotation, BaseModel)


class SchemaField(BaseModel):
    """
    One binding of a record field, ready for use by the row mapper.

    Attributes:
        field_name: Name of the record field carrying the binding.
        binding: The column binding.
        path: Attribute chain from the record to the bound value.
        owner_types: Model type of every intermediate link of ``path``.
        value_type: Python type of the bound value, used for import coercion.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    field_name: str
    binding: FieldBinding
    path: tuple[str, ...]
    owner_types: tuple[Any, ...] = ()
    value_type: Any = str

    def get_value(self, record: Any) -> Any:
        """Resolve the bound value, or None at the first missing link."""
        value = record
        for attr in self.path:
            value = getattr(value, attr, None)
            if value is None:
                return None
        return value

    def set_value(self, record: Any, value: Any) -> None:
        """Assign the bound value, creating missing nested models on the way."""
        target = record
        for attr, owner_type in zip(self.path[:-1], self.owner_types):
            child = getattr(target, attr, None)
            if child is None:
                child = owner_type.model_construct()
                setattr(target, attr, child)
            target = child
        setattr(target, self.path[-1], value)


class Schema(BaseModel):
    """
    Ordered bindings of a record type for one direction.

    Attributes:
        record_type: The pydantic record model.
        mode: Direction the schema was built for (IMPORT or EXPORT).
        fields: Bindings sorted by order, ties kept in declaration order.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    record_type: Any
    mode: Direction
    fields: tuple[SchemaField, ...] = ()

    @property
    def labels(self) -> list[str]:
        """Header labels in column order."""
        return [field.binding.label for field in self.fields]

    @property
    def row_height(self) -> float:
        """Tallest declared row height, used for every data row."""
        return max((field.binding.height for field in self.fields), default=0.0)

    @property
    def has_statistics(self) -> bool:
        """Whether any column is summed into a totals row."""
        return any(field.binding.statistics for field in self.fields)

    def new_record(self) -> Any:
        """Create an empty record with every field at its declared default."""
        return self.record_type.model_construct()


class SchemaRegistry:
    """
    Builds and caches schemas of pydantic record models.

    Bindings are found in the ``Annotated`` metadata of each field, inherited
    fields included. Fields without a binding are ignored.
    """

    _cache: ClassVar[dict[tuple[type, Direction], Schema]] = {}

    @classmethod
    def get(cls, record_type: type, mode: Direction) -> Schema:
        """
        Get the schema of a record type for a direction.

        Args:
            record_type: A pydantic model class.
            mode: Direction.IMPORT or Direction.EXPORT.

        Returns:
            The cached Schema.

        Raises:
            InvalidArgumentError: If the type is not a pydantic model, the mode
                is ALL, or a binding's target attribute cannot be resolved.
        """
        key = (record_type, mode)
        schema = cls._cache.get(key)
        if schema is None:
            schema = cls.build(record_type, mode)
            cls._cache[key] = schema
        return schema

    @classmethod
    def build(cls, record_type: type, mode: Direction) -> Schema:
        """Build a schema without consulting the cache."""
        if not _is_model(record_type):
            raise InvalidArgumentError(
                "record_type",
                f"{record_type!r} is not a pydantic model",
            )
        if mode is Direction.ALL:
            raise InvalidArgumentError("mode", "must be IMPORT or EXPORT")

        fields: list[SchemaField] = []
        for field_name, info in record_type.model_fields.items():
            for marker in info.metadata:
                if not isinstance(marker, ExcelColumn):
                    continue
                binding = marker.binding
                if not binding.applies_to(mode):
                    continue
                fields.append(
                    cls._resolve_field(record_type, field_name, info.annotation, binding)
                )

        # sorted() is stable, so equal orders keep declaration order
        fields.sort(key=lambda f: f.binding.order)

        return Schema(record_type=record_type, mode=mode, fields=tuple(fields))

    @classmethod
    def clear(cls) -> None:
        """Drop every cached schema."""
        cls._cache.clear()

    @staticmethod
    def _resolve_field(
        record_type: type,
        field_name: str,
        annotation: Any,
        binding: FieldBinding,
    ) -> SchemaField:
        path = [field_name]
        owner_types: list[type] = []
        value_type = unwrap_annotation(annotation)

        if binding.target_attr:
            for attr in binding.target_attr.split("."):
                if not _is_model(value_type) or attr not in value_type.model_fields:
                    raise InvalidArgumentError(
                        "target_attr",
                        f"cannot resolve '{binding.target_attr}' on "
                        f"{record_type.__name__}.{field_name}",
                    )
                owner_types.append(value_type)
                path.append(attr)
                value_type = unwrap_annotation(value_type.model_fields[attr].annotation)

        if value_type not in SUPPORTED_VALUE_TYPES:
            value_type = Any

        return SchemaField(
            field_name=field_name,
            binding=binding,
            path=tuple(path),
            owner_types=tuple(owner_types),
            value_type=value_type,
        )
