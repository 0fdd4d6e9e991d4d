"""
Data models for the record import/export engine.

Contains the column binding declarations and Pydantic result models.
"""

from recordsheet.models.excel_models import (
    UNORDERED,
    Align,
    CellKind,
    Direction,
    ExcelColumn,
    ExportResult,
    FieldBinding,
    HeaderIndex,
    ImportResult,
    SheetCursor,
    WriterState,
)

__all__ = [
    "UNORDERED",
    "Align",
    "CellKind",
    "Direction",
    "WriterState",
    "FieldBinding",
    "ExcelColumn",
    "HeaderIndex",
    "SheetCursor",
    "ImportResult",
    "ExportResult",
]
