"""
Openpyxl adapter for opening documents on the read path.

This module provides the OpenpyxlAdapter class that wraps openpyxl for
opening ``.xlsx`` documents and locating worksheets. Openpyxl is used on
the read path because it exposes merged regions and number formats,
which header resolution and date detection rely on.

Documents can be given as raw bytes, a binary file object or a
filesystem path.

Example:
    adapter = OpenpyxlAdapter()

    with adapter.open_workbook(document_bytes) as workbook:
        worksheet = adapter.get_sheet(workbook, "Users")
"""

import io
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Union

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.exceptions.excel_exceptions import (
    DocumentNotFoundError,
    ExcelPermissionError,
    InvalidFileFormatError,
    ReadError,
    SheetNotFoundError,
)

Document = Union[bytes, bytearray, BinaryIO, str, Path]


class OpenpyxlAdapter:
    """
    Adapter for opening workbooks and resolving sheets with openpyxl.

    Attributes:
        SUPPORTED_EXTENSIONS: Tuple of supported file extensions.
    """

    SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm")

    def _validate_file_path(self, file_path: str | Path) -> Path:
        """
        Validate that the file exists and has a supported extension.

        Raises:
            DocumentNotFoundError: If the file does not exist.
            InvalidFileFormatError: If the file extension is not supported.
        """
        path = Path(file_path)

        if not path.exists():
            raise DocumentNotFoundError(str(file_path))

        if path.suffix.lower() not in self.SUPPORTED_EXTENSIONS:
            raise InvalidFileFormatError(
                file_path=str(file_path),
                expected_formats=list(self.SUPPORTED_EXTENSIONS),
                reason=f"Unsupported file extension: {path.suffix}",
            )

        return path

    def _load(self, document: Document) -> Workbook:
        """
        Load a workbook from bytes, a file object or a path.

        Raises:
            DocumentNotFoundError: If a path does not exist.
            InvalidFileFormatError: If the content is not a valid workbook.
            ExcelPermissionError: If the file cannot be read due to permissions.
            ReadError: If an unexpected I/O error occurs.
        """
        if isinstance(document, (bytes, bytearray)):
            source: BinaryIO | str = io.BytesIO(document)
            label = "<bytes>"
        elif isinstance(document, (str, Path)):
            source = str(self._validate_file_path(document))
            label = str(document)
        else:
            source = document
            label = str(getattr(document, "name", "<stream>"))

        try:
            return load_workbook(source, data_only=True)
        except (zipfile.BadZipFile, InvalidFileException, KeyError, ValueError) as e:
            raise InvalidFileFormatError(
                file_path=label,
                expected_formats=list(self.SUPPORTED_EXTENSIONS),
                reason=str(e),
            ) from e
        except PermissionError as e:
            raise ExcelPermissionError(
                file_path=label,
                operation="read",
            ) from e
        except OSError as e:
            raise ReadError(
                file_path=label,
                operation="open",
                reason=str(e),
            ) from e

    @contextmanager
    def open_workbook(self, document: Document) -> Iterator[Workbook]:
        """
        Open a workbook for the duration of a ``with`` block.

        The workbook is closed exactly once when the block exits, whether it
        completes, returns early or raises.

        Args:
            document: Raw bytes, a binary file object or a path.

        Yields:
            The opened openpyxl Workbook.
        """
        workbook = self._load(document)
        try:
            yield workbook
        finally:
            workbook.close()

    def get_sheet(self, workbook: Workbook, sheet_name: str | None = None) -> Worksheet:
        """
        Get a worksheet by name, or the first worksheet if no name is given.

        Raises:
            SheetNotFoundError: If the named sheet does not exist or the
                workbook has no worksheets.
        """
        available_sheets = workbook.sheetnames

        if sheet_name:
            if sheet_name not in available_sheets:
                raise SheetNotFoundError(
                    sheet_name=sheet_name,
                    available_sheets=available_sheets,
                )
            return workbook[sheet_name]

        if not workbook.worksheets:
            raise SheetNotFoundError(
                sheet_name="(first sheet)",
                available_sheets=available_sheets,
            )
        return workbook.worksheets[0]

    def get_sheet_at(self, workbook: Workbook, sheet_index: int | None = None) -> Worksheet:
        """
        Get a worksheet by 0-based index, or the first worksheet.

        Raises:
            SheetNotFoundError: If the index is out of range.
        """
        index = sheet_index or 0
        worksheets = workbook.worksheets

        if index < 0 or index >= len(worksheets):
            raise SheetNotFoundError(
                sheet_name=f"index {index}",
                available_sheets=workbook.sheetnames,
            )
        return worksheets[index]

    def get_sheet_names(self, document: Document) -> list[str]:
        """
        Get the list of sheet names in a document.

        Raises:
            DocumentNotFoundError: If a path does not exist.
            InvalidFileFormatError: If the content is not a valid workbook.
        """
        with self.open_workbook(document) as workbook:
            return list(workbook.sheetnames)
