"""
Custom exceptions for the record import/export engine.

Provides type-safe, descriptive exceptions for error handling throughout
the package.
"""

from recordsheet.exceptions.excel_exceptions import (
    DocumentNotFoundError,
    ExcelPermissionError,
    ExcelServiceError,
    FieldDecodeError,
    InvalidArgumentError,
    InvalidFileFormatError,
    NotFoundError,
    ReadError,
    ResourceError,
    SheetNotFoundError,
    TemplateMismatchError,
    WriteError,
    WriterClosedError,
)

__all__ = [
    "ExcelServiceError",
    "NotFoundError",
    "DocumentNotFoundError",
    "InvalidFileFormatError",
    "SheetNotFoundError",
    "FieldDecodeError",
    "TemplateMismatchError",
    "ResourceError",
    "ReadError",
    "WriteError",
    "ExcelPermissionError",
    "InvalidArgumentError",
    "WriterClosedError",
]
