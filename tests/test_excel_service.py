"""
Tests for the ExcelService.

Tests the service layer that coordinates the reader, the writer and the
header validator, including full export/import round trips.
"""

import io
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from recordsheet.exceptions.excel_exceptions import (
    InvalidArgumentError,
    SheetNotFoundError,
    TemplateMismatchError,
)
from recordsheet.services.excel_service import ExcelService
from tests.sample_records import Account, Department, Item, Reading, User


@pytest.fixture
def users() -> list[User]:
    """Return sample users covering every binding."""
    return [
        User(
            id=1,
            name="Alice",
            gender=1,
            birthday=date(1990, 5, 17),
            salary=Decimal("1234.5"),
            active=True,
            department=Department(name="Engineering"),
        ),
        User(id=2, name="Bob", gender=0, salary=Decimal("980"), active=False),
        User(id=3, name="Carol"),
    ]


class TestExcelServiceImport:
    """Tests for ExcelService import operations."""

    def test_get_sheet_names(self, excel_service: ExcelService, contact_document: bytes) -> None:
        """Test getting sheet names through the service."""
        assert excel_service.get_sheet_names(contact_document) == ["Contacts"]

    def test_import_records(self, excel_service: ExcelService, user_document: bytes) -> None:
        """Test importing every row of a sheet."""
        result = excel_service.import_records(user_document, User)

        assert result.success is True
        assert result.rows_read == 3
        assert result.batches == 1
        assert result.processing_time_ms is not None
        assert result.records[0].department.name == "Engineering"

    def test_import_batches(self, excel_service: ExcelService, item_document) -> None:
        """Test batched import through the service."""
        received: list[int] = []

        def save(batch, batch_number, total):
            received.append(len(batch))
            return True

        result = excel_service.import_batches(item_document(25), Item, batch_size=10, callback=save)

        assert result.rows_read == 25
        assert result.batches == 3
        assert result.records == []
        assert received == [10, 10, 5]

    def test_import_missing_sheet(self, excel_service: ExcelService, user_document: bytes) -> None:
        """Test that service errors propagate unchanged."""
        with pytest.raises(SheetNotFoundError):
            excel_service.import_records(user_document, User, sheet_name="Missing")


class TestExcelServiceExport:
    """Tests for ExcelService export operations."""

    def test_export_to_file(self, excel_service: ExcelService, users: list[User]) -> None:
        """Test exporting to the download directory."""
        result = excel_service.export_records(users, User, "Users")

        assert result.success is True
        assert result.rows_written == 3
        assert result.sheets_written == 1
        assert result.file_name.endswith("_Users.xlsx")
        assert Path(result.file_path).exists()

    def test_export_to_sink(self, excel_service: ExcelService, users: list[User]) -> None:
        """Test exporting into a stream."""
        sink = io.BytesIO()

        result = excel_service.export_records(users, User, "Users", sink=sink)

        assert result.file_name is None
        assert result.file_path is None
        assert sink.getvalue()[:2] == b"PK"

    def test_export_generator(self, excel_service: ExcelService) -> None:
        """Test exporting from a generator larger than one chunk."""
        records = (Item(code=f"C{i}", quantity=i) for i in range(2500))
        sink = io.BytesIO()

        result = excel_service.export_records(records, Item, "Items", sink=sink)

        assert result.rows_written == 2500
        assert excel_service.import_records(sink.getvalue(), Item).rows_read == 2500

    def test_export_template(self, excel_service: ExcelService) -> None:
        """Test that a template holds only the header row."""
        sink = io.BytesIO()

        result = excel_service.export_template(User, "Users", sink=sink)

        assert result.rows_written == 0
        assert excel_service.import_records(sink.getvalue(), User).rows_read == 0

    def test_invalid_sheet_name(self, excel_service: ExcelService) -> None:
        """Test that writer argument errors propagate unchanged."""
        with pytest.raises(InvalidArgumentError):
            excel_service.export_records([], Item, "bad:name")


class TestRoundTrip:
    """Tests for exporting records and importing them back."""

    def test_users_round_trip(self, excel_service: ExcelService, users: list[User]) -> None:
        """Test that every bound field survives export and import."""
        sink = io.BytesIO()
        excel_service.export_records(users, User, "Users", sink=sink)

        imported = excel_service.import_records(sink.getvalue(), User).records

        assert len(imported) == 3
        alice, bob, carol = imported
        assert alice.id == 1
        assert alice.name == "Alice"
        assert alice.gender == 1
        assert alice.birthday == date(1990, 5, 17)
        assert alice.salary == Decimal("1234.50")
        assert alice.active is True
        assert alice.department.name == "Engineering"
        assert bob.gender == 0
        assert bob.active is False
        assert bob.department is None
        assert carol.salary is None
        assert carol.remark == "n/a"

    def test_field_types_round_trip(self, excel_service: ExcelService) -> None:
        """Test that every supported field type reads back equal."""
        readings = [
            Reading(
                count=42,
                ratio=0.125,
                weight=3.75,
                price=Decimal("19.99"),
                day=date(2024, 2, 29),
                taken=datetime(2024, 2, 29, 13, 45, 30),
                valid=True,
                label="1.0",
            ),
            Reading(
                count=-7,
                ratio=2.0,
                weight=4.0,
                price=Decimal("0.05"),
                day=date(1999, 12, 31),
                taken=datetime(2000, 1, 1, 0, 0, 1),
                valid=False,
                label="v2.0",
            ),
        ]
        sink = io.BytesIO()
        excel_service.export_records(readings, Reading, "Readings", sink=sink)

        imported = excel_service.import_records(sink.getvalue(), Reading).records

        assert imported == readings

    def test_direction_round_trip(self, excel_service: ExcelService) -> None:
        """Test that import-only columns are not exported."""
        account = Account(username="alice", password="secret", created=datetime(2024, 1, 2, 3, 4, 5), note="x")
        sink = io.BytesIO()
        excel_service.export_records([account], Account, "Accounts", sink=sink)

        imported = excel_service.import_records(sink.getvalue(), Account).records[0]

        assert imported.username == "alice"
        assert imported.note == "x"
        assert imported.password is None
        assert imported.created is None


class TestExcelServiceValidation:
    """Tests for upload validation through the service."""

    def test_upload_matches_template(self, excel_service: ExcelService, users: list[User]) -> None:
        """Test that an export passes validation against the template."""
        template = excel_service.export_template(User, "Users")
        upload = io.BytesIO()
        excel_service.export_records(users, User, "Users", sink=upload)

        index = excel_service.validate_upload("users.xlsx", upload.getvalue(), template.file_path)

        assert "Department" in index

    def test_upload_with_wrong_template(
        self,
        excel_service: ExcelService,
        contact_document: bytes,
    ) -> None:
        """Test that a foreign document is rejected."""
        template = excel_service.export_template(User, "Users")

        with pytest.raises(TemplateMismatchError):
            excel_service.validate_upload("contacts.xlsx", contact_document, template.file_path)

    def test_empty_upload(self, excel_service: ExcelService) -> None:
        """Test that an empty upload is rejected before parsing."""
        with pytest.raises(InvalidArgumentError):
            excel_service.validate_upload("users.xlsx", None, "/nonexistent/template.xlsx")
