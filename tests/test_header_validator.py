"""
Tests for the HeaderValidator.

Tests header comparison against templates and upload file checks.
"""

import pytest
from openpyxl import Workbook

from recordsheet.exceptions.excel_exceptions import (
    InvalidArgumentError,
    InvalidFileFormatError,
    TemplateMismatchError,
)
from recordsheet.models.excel_models import HeaderIndex
from recordsheet.services.header_validator import HeaderValidator


@pytest.fixture
def validator() -> HeaderValidator:
    """Create a HeaderValidator instance for testing."""
    return HeaderValidator()


class TestCompare:
    """Tests for comparing header indexes."""

    def test_identical_headers_pass(self, validator: HeaderValidator) -> None:
        """Test that equal headers are accepted."""
        header = HeaderIndex(columns={0: "Name", 1: "Contact-Phone"})

        validator.compare(header, HeaderIndex(columns=dict(header.columns)))

    def test_renamed_column(self, validator: HeaderValidator) -> None:
        """Test that a different key in one column is rejected."""
        with pytest.raises(TemplateMismatchError) as exc_info:
            validator.compare(
                HeaderIndex(columns={0: "Name", 1: "Mail"}),
                HeaderIndex(columns={0: "Name", 1: "Email"}),
            )

        error = exc_info.value
        assert error.column == 1
        assert error.uploaded == "Mail"
        assert error.expected == "Email"
        assert error.message == TemplateMismatchError.USER_MESSAGE
        assert error.to_dict()["error_code"] == "TEMPLATE_MISMATCH"

    def test_extra_column(self, validator: HeaderValidator) -> None:
        """Test that an extra uploaded column is rejected."""
        with pytest.raises(TemplateMismatchError) as exc_info:
            validator.compare(
                HeaderIndex(columns={0: "Name", 1: "Email"}),
                HeaderIndex(columns={0: "Name"}),
            )

        assert exc_info.value.expected is None

    def test_missing_column(self, validator: HeaderValidator) -> None:
        """Test that a missing uploaded column is rejected."""
        with pytest.raises(TemplateMismatchError):
            validator.compare(
                HeaderIndex(columns={0: "Name"}),
                HeaderIndex(columns={0: "Name", 2: "Email"}),
            )


class TestValidateDocuments:
    """Tests for comparing documents."""

    def test_matching_documents(self, validator: HeaderValidator, contact_document: bytes) -> None:
        """Test that an upload matching its template passes."""
        index = validator.validate_documents(contact_document, contact_document, 0, 1)

        assert index.keys() == ["Name", "Contact-Phone", "Contact-Email"]

    def test_mismatching_documents(
        self,
        validator: HeaderValidator,
        contact_document: bytes,
        build_document,
    ) -> None:
        """Test that a flat header does not match a merged template."""
        upload = build_document([["Name", "Phone", "Email"], [None, None, None]])

        with pytest.raises(TemplateMismatchError):
            validator.validate_documents(upload, contact_document, 0, 1)

    def test_template_sheet_index(self, validator: HeaderValidator, build_document) -> None:
        """Test comparing against a later template sheet."""
        workbook_bytes = build_document([["A"]], extra_sheets=["Second"])
        upload = build_document([["A"]])

        validator.validate_documents(upload, workbook_bytes, template_sheet_index=0)
        with pytest.raises(TemplateMismatchError):
            validator.validate_documents(upload, workbook_bytes, template_sheet_index=1)


class TestUploadChecks:
    """Tests for uploaded file checks."""

    @pytest.mark.parametrize("filename", ["data.xlsx", "DATA.XLSX", "macros.xlsm", "report.v2.xlsx"])
    def test_excel_names_accepted(self, filename: str) -> None:
        """Test that Excel file names pass."""
        HeaderValidator.validate_upload_filename(filename, b"content")

    @pytest.mark.parametrize("filename", ["data.csv", "legacy.xls", "data.xlsx.txt", "noext"])
    def test_other_names_rejected(self, filename: str) -> None:
        """Test that other file names are rejected."""
        with pytest.raises(InvalidFileFormatError) as exc_info:
            HeaderValidator.validate_upload_filename(filename)

        assert exc_info.value.expected_formats == [".xlsx", ".xlsm"]

    def test_empty_name_rejected(self) -> None:
        """Test that a missing file name is rejected."""
        with pytest.raises(InvalidArgumentError):
            HeaderValidator.validate_upload_filename("")
        with pytest.raises(InvalidArgumentError):
            HeaderValidator.validate_upload_filename(None)

    def test_empty_content_rejected(self) -> None:
        """Test that an empty upload is rejected."""
        with pytest.raises(InvalidArgumentError) as exc_info:
            HeaderValidator.validate_upload_filename("data.xlsx", b"")

        assert exc_info.value.argument == "file"


class TestSheetInspection:
    """Tests for sheet row helpers."""

    def test_is_sheet_empty(self) -> None:
        """Test empty and header-only sheets."""
        worksheet = Workbook().active

        assert HeaderValidator.is_sheet_empty(None) is True
        assert HeaderValidator.is_sheet_empty(worksheet) is True

        worksheet.append(["Name"])
        assert HeaderValidator.is_sheet_empty(worksheet) is True

        worksheet.append(["Alice"])
        assert HeaderValidator.is_sheet_empty(worksheet) is False

    def test_data_row_count(self) -> None:
        """Test counting rows below the header."""
        worksheet = Workbook().active
        for row in (["Name"], [None], ["Alice"], ["Bob"]):
            worksheet.append(row)

        assert HeaderValidator.data_row_count(worksheet) == 3
        assert HeaderValidator.data_row_count(worksheet, header_rows=2) == 2
        assert HeaderValidator.data_row_count(None) == 0
