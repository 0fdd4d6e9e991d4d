"""
Pydantic models for record import/export.

This module contains the declarative column bindings attached to record
fields, the per-sheet header index, the writer cursor and the result
models reported by the service layer.

Bindings are declared on pydantic record models with ``typing.Annotated``::

    class User(BaseModel):
        id: Annotated[int | None, ExcelColumn(order=1, label="ID")] = None
        name: Annotated[str | None, ExcelColumn(order=2, label="Name")] = None
"""

import sys
from decimal import (
    ROUND_CEILING,
    ROUND_DOWN,
    ROUND_FLOOR,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
    ROUND_HALF_UP,
    ROUND_UP,
)
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

ROUNDING_MODES = (
    ROUND_UP,
    ROUND_DOWN,
    ROUND_CEILING,
    ROUND_FLOOR,
    ROUND_HALF_UP,
    ROUND_HALF_DOWN,
    ROUND_HALF_EVEN,
)

# Sentinel order for bindings declared without one; they sort last.
UNORDERED = sys.maxsize


class CellKind(str, Enum):
    """How a bound value is rendered into its cell on export."""

    STRING = "string"
    NUMERIC = "numeric"
    IMAGE = "image"


class Align(str, Enum):
    """Horizontal alignment of exported data cells."""

    AUTO = "auto"
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class Direction(str, Enum):
    """Which operations a binding takes part in."""

    ALL = "all"
    EXPORT = "export"
    IMPORT = "import"


class WriterState(str, Enum):
    """Lifecycle of a streaming writer."""

    OPEN = "open"
    CLOSED = "closed"


class FieldBinding(BaseModel):
    """
    Immutable column binding for one record field.

    Attributes:
        order: Column order; lower values come first.
        label: Column header label (composite key for multi-row headers).
        date_format: Date pattern, strftime or ``yyyy-MM-dd`` style.
        dictionary_expr: ``"key=label,key=label"`` translation table.
        dict_type: Name of an external dictionary; reserved hook.
        separator: Separator for multi-valued cells.
        scale: Decimal places for ``Decimal`` values; -1 leaves them as is.
        rounding: ``decimal`` rounding mode used with ``scale``.
        cell_kind: How the value is written on export.
        height: Data row height in points.
        width: Column width in characters.
        suffix: Text appended to exported string values.
        default_value: Text written when the value is missing.
        prompt: Input prompt shown on the column's data cells.
        combo: Allowed values offered as a drop-down list.
        exportable: Whether data cells are populated on export.
        target_attr: Dotted attribute path inside the field's value.
        statistics: Whether the column is summed in a totals row.
        align: Horizontal alignment of data cells.
        direction: Whether the binding applies to import, export or both.
    """

    model_config = ConfigDict(frozen=True)

    order: int = Field(default=UNORDERED, description="Column order")
    label: str = Field(default="", description="Column header label")
    date_format: str = ""
    dictionary_expr: str = ""
    dict_type: str = ""
    separator: str = ","
    scale: int = -1
    rounding: str = ROUND_HALF_EVEN
    cell_kind: CellKind = CellKind.STRING
    height: float = 14.0
    width: float = 16.0
    suffix: str = ""
    default_value: str = ""
    prompt: str = ""
    combo: tuple[str, ...] = ()
    exportable: bool = True
    target_attr: str = ""
    statistics: bool = False
    align: Align = Align.AUTO
    direction: Direction = Direction.ALL

    @field_validator("rounding")
    @classmethod
    def validate_rounding(cls, v: str) -> str:
        """Ensure rounding is one of the ``decimal`` module's modes."""
        if v not in ROUNDING_MODES:
            raise ValueError(f"rounding must be one of {', '.join(ROUNDING_MODES)}")
        return v

    @field_validator("separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        """Ensure the separator is not empty."""
        if not v:
            raise ValueError("separator must not be empty")
        return v

    def applies_to(self, mode: Direction) -> bool:
        """Return whether this binding takes part in the given mode."""
        return self.direction is Direction.ALL or self.direction is mode


class ExcelColumn:
    """
    Declaration marker placed in a record field's ``Annotated`` metadata.

    Accepts the keyword arguments of FieldBinding. Several markers may be
    attached to the same field.

    Example:
        created: Annotated[
            date | None,
            ExcelColumn(order=3, label="Created", date_format="yyyy-MM-dd"),
        ] = None
    """

    __slots__ = ("binding",)

    def __init__(self, **kwargs: Any) -> None:
        self.binding = FieldBinding(**kwargs)

    def __repr__(self) -> str:
        return f"ExcelColumn({self.binding.label!r}, order={self.binding.order})"


class HeaderIndex(BaseModel):
    """
    Composite header keys of one sheet, by 0-based column position.

    Attributes:
        columns: Mapping of column position to composite column key.
    """

    columns: dict[int, str] = Field(default_factory=dict)

    def position_of(self, key: str) -> int | None:
        """
        Get the column position of a composite key.

        When the same key labels several columns the right-most one wins.
        """
        position = None
        for column, label in self.columns.items():
            if label == key:
                position = column
        return position

    def keys(self) -> list[str]:
        """Return the composite keys in column order."""
        return [self.columns[column] for column in sorted(self.columns)]

    def __contains__(self, key: object) -> bool:
        return key in self.columns.values()

    def __len__(self) -> int:
        return len(self.columns)


class SheetCursor(BaseModel):
    """
    Write position inside the writer's active sheet.

    Attributes:
        sheet_index: 0-based index of the active sheet.
        row_number: Next 0-based row to write; counts the header row.
        header_written: Whether the active sheet already has its header.
    """

    sheet_index: int = Field(default=0, ge=0)
    row_number: int = Field(default=0, ge=0)
    header_written: bool = False


class ImportResult(BaseModel):
    """
    Result of an import through the service layer.

    Attributes:
        success: Whether the import completed.
        rows_read: Number of kept (non-blank) rows.
        batches: Number of callback invocations.
        records: Imported records, for non-batched imports.
        processing_time_ms: Time taken in milliseconds.
    """

    success: bool = True
    rows_read: int = Field(ge=0)
    batches: int = Field(default=0, ge=0)
    records: list[Any] = Field(default_factory=list)
    processing_time_ms: float | None = Field(default=None, ge=0)


class ExportResult(BaseModel):
    """
    Result of an export through the service layer.

    Attributes:
        success: Whether the export completed.
        file_name: Generated file name, when rendered to the download directory.
        file_path: Absolute path of the generated file, when applicable.
        rows_written: Number of data rows written across all sheets.
        sheets_written: Number of sheets in the document.
        processing_time_ms: Time taken in milliseconds.
    """

    success: bool = True
    file_name: str | None = None
    file_path: str | None = None
    rows_written: int = Field(ge=0)
    sheets_written: int = Field(ge=0)
    processing_time_ms: float | None = Field(default=None, ge=0)
