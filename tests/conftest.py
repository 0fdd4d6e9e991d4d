"""
Test fixtures and utilities for the recordsheet tests.

This module provides shared fixtures including temporary directories,
settings pointing into them, and builders for sample documents.
"""

import io
import tempfile
from collections.abc import Callable, Generator, Sequence
from pathlib import Path

import pytest
from openpyxl import Workbook

from recordsheet.config import DecodePolicy, Settings
from recordsheet.services.excel_service import ExcelService

DocumentBuilder = Callable[..., bytes]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def settings(temp_dir: Path) -> Settings:
    """
    Create Settings that write into the temporary directory.

    Returns:
        Settings instance.
    """
    return Settings(
        download_dir=str(temp_dir / "download"),
        profile_dir=str(temp_dir / "profile"),
        decode_policy=DecodePolicy.BEST_EFFORT,
    )


@pytest.fixture
def strict_settings(settings: Settings) -> Settings:
    """Settings with the strict decode policy."""
    return settings.model_copy(update={"decode_policy": DecodePolicy.STRICT})


@pytest.fixture
def excel_service(settings: Settings) -> ExcelService:
    """
    Create an ExcelService instance for testing.

    Returns:
        ExcelService instance.
    """
    return ExcelService(settings=settings)


@pytest.fixture
def build_document() -> DocumentBuilder:
    """
    Return a builder of in-memory documents.

    The builder takes a list of rows (each a list of cell values), optional
    merged ranges in A1 notation and an optional sheet title, and returns the
    saved workbook as bytes.
    """

    def build(
        rows: Sequence[Sequence[object]],
        merges: Sequence[str] = (),
        title: str = "Users",
        extra_sheets: Sequence[str] = (),
    ) -> bytes:
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = title
        for row in rows:
            worksheet.append(list(row))
        for cell_range in merges:
            worksheet.merge_cells(cell_range)
        for name in extra_sheets:
            workbook.create_sheet(name)

        buffer = io.BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()

    return build


@pytest.fixture
def user_document(build_document: DocumentBuilder) -> bytes:
    """
    Create a document of three users with a single header row.

    Returns:
        The document as bytes.
    """
    return build_document(
        [
            ["ID", "Name", "Gender", "Birthday", "Salary", "Active", "Department"],
            [1, "Alice", "Female", "1990-05-17", 1234.5, "yes", "Engineering"],
            [2, "Bob", "Male", "1988-11-02", 980, "no", "Sales"],
            [3, "Carol", "Unknown", None, None, None, None],
        ]
    )


@pytest.fixture
def contact_document(build_document: DocumentBuilder) -> bytes:
    """
    Create a document with a two-row header using merged cells.

    ``Name`` spans both header rows; ``Contact`` spans the Phone and Email
    columns of the first header row.

    Returns:
        The document as bytes.
    """
    return build_document(
        [
            ["Name", "Contact", None],
            [None, "Phone", "Email"],
            ["Alice", "555-0100", "alice@example.com"],
            ["Bob", "555-0101", "bob@example.com"],
        ],
        merges=["A1:A2", "B1:C1"],
        title="Contacts",
    )


@pytest.fixture
def item_document(build_document: DocumentBuilder) -> Callable[[int], bytes]:
    """
    Return a builder of item documents with a given number of data rows.
    """

    def build(count: int) -> bytes:
        rows: list[list[object]] = [["Code", "Quantity"]]
        rows.extend([f"I{i:04d}", i] for i in range(1, count + 1))
        return build_document(rows, title="Items")

    return build
