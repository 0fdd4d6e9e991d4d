"""
Custom exceptions for record import/export operations.

This module defines a hierarchy of exceptions for handling the error
conditions of the streaming reader, the streaming writer and the header
validator. All exceptions inherit from ExcelServiceError for consistent
error handling.

Example:
    try:
        reader.read_batch(document, "Users", batch_size=500, callback=save)
    except SheetNotFoundError as e:
        logger.error(f"Sheet error: {e.sheet_name}")
    except ExcelServiceError as e:
        logger.error(f"General error: {e}")
"""


class ExcelServiceError(Exception):
    """
    Base exception for all record import/export errors.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Optional additional context about the error.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "EXCEL_ERROR",
        details: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict:
        """
        Convert exception to a dictionary for API responses.

        Returns:
            Dictionary containing error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(ExcelServiceError):
    """Raised when a document or sheet cannot be opened or located."""


class DocumentNotFoundError(NotFoundError):
    """
    Raised when the specified document does not exist.

    Attributes:
        file_path: Path to the file that was not found.
    """

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        super().__init__(
            message=f"Excel file not found: {file_path}",
            error_code="FILE_NOT_FOUND",
            details={"file_path": file_path},
        )


class InvalidFileFormatError(NotFoundError):
    """
    Raised when the document is not a readable Excel workbook.

    Attributes:
        file_path: Path or description of the invalid document.
        expected_formats: List of expected/supported formats.
    """

    def __init__(
        self,
        file_path: str,
        expected_formats: list[str] | None = None,
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.expected_formats = expected_formats or [".xlsx", ".xlsm"]
        self.reason = reason

        message = f"Invalid Excel file format: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="INVALID_FILE_FORMAT",
            details={
                "file_path": file_path,
                "expected_formats": self.expected_formats,
                "reason": reason,
            },
        )


class SheetNotFoundError(NotFoundError):
    """
    Raised when the specified sheet does not exist in the workbook.

    Attributes:
        sheet_name: Name of the sheet that was not found.
        available_sheets: List of sheets available in the workbook.
    """

    def __init__(
        self,
        sheet_name: str,
        available_sheets: list[str] | None = None,
    ) -> None:
        self.sheet_name = sheet_name
        self.available_sheets = available_sheets or []

        message = f"Sheet not found: {sheet_name}"
        if available_sheets:
            message += f". Available sheets: {', '.join(available_sheets)}"

        super().__init__(
            message=message,
            error_code="SHEET_NOT_FOUND",
            details={
                "sheet_name": sheet_name,
                "available_sheets": self.available_sheets,
            },
        )


class FieldDecodeError(ExcelServiceError):
    """
    Raised when a single cell cannot be converted to its field's type.

    Under the best-effort decode policy this error never leaves the mapper;
    it is logged and the field keeps its default value.

    Attributes:
        field_name: Name of the record field being populated.
        value: The raw value that failed to convert.
        row: 0-based row number, when known.
        column: 0-based column position, when known.
    """

    def __init__(
        self,
        field_name: str,
        value: object,
        reason: str | None = None,
        row: int | None = None,
        column: int | None = None,
    ) -> None:
        self.field_name = field_name
        self.value = value
        self.reason = reason
        self.row = row
        self.column = column

        message = f"Cannot decode value {value!r} for field '{field_name}'"
        if row is not None and column is not None:
            message += f" at row {row}, column {column}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="FIELD_DECODE_ERROR",
            details={
                "field_name": field_name,
                "value": repr(value),
                "row": row,
                "column": column,
                "reason": reason,
            },
        )

    def at(self, row: int, column: int) -> "FieldDecodeError":
        """Return a copy of this error located at the given cell."""
        return FieldDecodeError(
            field_name=self.field_name,
            value=self.value,
            reason=self.reason,
            row=row,
            column=column,
        )


class TemplateMismatchError(ExcelServiceError):
    """
    Raised when an uploaded document's header differs from the template.

    Attributes:
        column: 0-based column position of the first mismatch.
        uploaded: Header key found in the uploaded document.
        expected: Header key found in the template.
    """

    USER_MESSAGE = "Wrong template, please download the correct template and upload again."

    def __init__(
        self,
        column: int | None = None,
        uploaded: str | None = None,
        expected: str | None = None,
    ) -> None:
        self.column = column
        self.uploaded = uploaded
        self.expected = expected

        super().__init__(
            message=self.USER_MESSAGE,
            error_code="TEMPLATE_MISMATCH",
            details={
                "column": column,
                "uploaded": uploaded,
                "expected": expected,
            },
        )


class ResourceError(ExcelServiceError):
    """Base class for I/O failures opening, writing or closing a document."""


class ReadError(ResourceError):
    """
    Raised when an error occurs while reading a document.

    Attributes:
        file_path: Path or description of the document being read.
        operation: The specific read operation that failed.
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "read",
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation} Excel file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="READ_ERROR",
            details={
                "file_path": file_path,
                "operation": operation,
                "reason": reason,
            },
        )


class WriteError(ResourceError):
    """
    Raised when an error occurs while rendering or saving a document.

    Attributes:
        file_path: Path or description of the document being written.
        operation: The specific write operation that failed.
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "write",
        reason: str | None = None,
    ) -> None:
        self.file_path = file_path
        self.operation = operation
        self.reason = reason

        message = f"Failed to {operation} Excel file: {file_path}"
        if reason:
            message += f" - {reason}"

        super().__init__(
            message=message,
            error_code="WRITE_ERROR",
            details={
                "file_path": file_path,
                "operation": operation,
                "reason": reason,
            },
        )


class ExcelPermissionError(ResourceError):
    """
    Raised when file access is denied due to permissions.

    Attributes:
        file_path: Path to the file with permission issues.
        operation: The operation that was denied (read/write).
    """

    def __init__(
        self,
        file_path: str,
        operation: str = "access",
    ) -> None:
        self.file_path = file_path
        self.operation = operation

        super().__init__(
            message=f"Permission denied for {operation} on: {file_path}",
            error_code="PERMISSION_DENIED",
            details={
                "file_path": file_path,
                "operation": operation,
            },
        )


class InvalidArgumentError(ExcelServiceError, ValueError):
    """
    Raised when a caller passes an unusable argument.

    Checked before any document is opened.

    Attributes:
        argument: Name of the offending argument.
    """

    def __init__(self, argument: str, reason: str) -> None:
        self.argument = argument
        self.reason = reason

        super().__init__(
            message=f"Invalid argument '{argument}': {reason}",
            error_code="INVALID_ARGUMENT",
            details={
                "argument": argument,
                "reason": reason,
            },
        )


class WriterClosedError(ExcelServiceError, RuntimeError):
    """Raised when a finished or closed writer is used again."""

    def __init__(self, operation: str) -> None:
        self.operation = operation

        super().__init__(
            message=f"Writer is closed, cannot {operation}",
            error_code="WRITER_CLOSED",
            details={"operation": operation},
        )
