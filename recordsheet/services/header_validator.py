"""
Header validation of uploaded documents against a reference template.

An upload is accepted only when every column carries the same composite
header key as the template; a missing, extra or renamed column rejects the
whole document with a user-facing "wrong template" error.

Example:
    validator = HeaderValidator()
    validator.validate_upload_filename(upload.filename)
    validator.validate_documents(upload.content, template_path)
"""

from pathlib import PurePath

from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.adapters.header_resolver import HeaderResolver
from recordsheet.adapters.openpyxl_adapter import Document, OpenpyxlAdapter
from recordsheet.exceptions.excel_exceptions import (
    InvalidArgumentError,
    InvalidFileFormatError,
    TemplateMismatchError,
)
from recordsheet.models.excel_models import HeaderIndex

UPLOAD_EXTENSIONS = OpenpyxlAdapter.SUPPORTED_EXTENSIONS


class HeaderValidator:
    """Compares header indexes and checks uploaded files."""

    def __init__(
        self,
        resolver: HeaderResolver | None = None,
        adapter: OpenpyxlAdapter | None = None,
    ) -> None:
        self.resolver = resolver or HeaderResolver()
        self.adapter = adapter or OpenpyxlAdapter()

    def compare(self, uploaded: HeaderIndex, template: HeaderIndex) -> None:
        """
        Require both header indexes to carry the same key in every column.

        Raises:
            TemplateMismatchError: On the first column whose keys differ,
                including columns present on one side only.
        """
        for column in sorted(set(uploaded.columns) | set(template.columns)):
            uploaded_key = uploaded.columns.get(column)
            expected_key = template.columns.get(column)
            if uploaded_key != expected_key:
                raise TemplateMismatchError(
                    column=column,
                    uploaded=uploaded_key,
                    expected=expected_key,
                )

    def validate_documents(
        self,
        uploaded: Document,
        template: Document,
        header_start: int = 0,
        header_end: int = 0,
        sheet_name: str = "",
        template_sheet_index: int | None = None,
    ) -> HeaderIndex:
        """
        Compare an uploaded document's header with a template's.

        Args:
            uploaded: The uploaded document.
            template: The reference template document.
            header_start: First header row, 0-based, in both documents.
            header_end: Last header row, 0-based, inclusive.
            sheet_name: Sheet of the upload to check; empty for the first.
            template_sheet_index: Template sheet to compare against; None
                for the first.

        Returns:
            The uploaded document's HeaderIndex.

        Raises:
            NotFoundError: If either document or sheet cannot be opened.
            TemplateMismatchError: If the headers differ.
        """
        with self.adapter.open_workbook(uploaded) as workbook:
            worksheet = self.adapter.get_sheet(workbook, sheet_name)
            uploaded_index = self.resolver.resolve(worksheet, header_start, header_end)

        with self.adapter.open_workbook(template) as workbook:
            worksheet = self.adapter.get_sheet_at(workbook, template_sheet_index)
            template_index = self.resolver.resolve(worksheet, header_start, header_end)

        self.compare(uploaded_index, template_index)
        return uploaded_index

    @staticmethod
    def validate_upload_filename(filename: str | None, content: bytes | None = None) -> None:
        """
        Check an uploaded file's name, and its content when given.

        Raises:
            InvalidArgumentError: If the name or the content is empty.
            InvalidFileFormatError: If the name has no Excel extension.
        """
        if content is not None and not content:
            raise InvalidArgumentError("file", "uploaded file is empty")
        if not filename:
            raise InvalidArgumentError("filename", "must not be empty")

        if PurePath(filename).suffix.lower() not in UPLOAD_EXTENSIONS:
            raise InvalidFileFormatError(
                file_path=filename,
                expected_formats=list(UPLOAD_EXTENSIONS),
                reason=f"please upload an Excel workbook ({' or '.join(UPLOAD_EXTENSIONS)})",
            )

    @staticmethod
    def is_sheet_empty(worksheet: Worksheet | None) -> bool:
        """Return whether a sheet is missing or holds at most a header row."""
        return worksheet is None or worksheet.max_row <= 1

    @staticmethod
    def data_row_count(worksheet: Worksheet | None, header_rows: int = 1) -> int:
        """Count the rows below the header."""
        if worksheet is None:
            return 0
        return max(worksheet.max_row - header_rows, 0)
