"""
Tests for the HeaderResolver.

Tests composite key construction for single-row and merged multi-row
headers.
"""

import pytest
from openpyxl import Workbook

from recordsheet.adapters.header_resolver import HeaderResolver
from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter
from recordsheet.exceptions.excel_exceptions import InvalidArgumentError
from recordsheet.models.excel_models import HeaderIndex


@pytest.fixture
def resolver() -> HeaderResolver:
    """Create a HeaderResolver instance for testing."""
    return HeaderResolver()


class TestSingleRowHeader:
    """Tests for one-row headers."""

    def test_labels_by_column(self, resolver: HeaderResolver, user_document: bytes) -> None:
        """Test that each labelled column gets its label as key."""
        adapter = OpenpyxlAdapter()
        with adapter.open_workbook(user_document) as workbook:
            index = resolver.resolve(adapter.get_sheet(workbook), 0, 0)

        assert index.keys() == ["ID", "Name", "Gender", "Birthday", "Salary", "Active", "Department"]
        assert index.position_of("Salary") == 4

    def test_blank_columns_have_no_key(self, resolver: HeaderResolver) -> None:
        """Test that unlabelled columns are left out of the index."""
        worksheet = Workbook().active
        worksheet.append(["A", None, "C"])

        index = resolver.resolve(worksheet, 0, 0)

        assert index.columns == {0: "A", 2: "C"}
        assert len(index) == 2

    def test_newlines_stripped(self, resolver: HeaderResolver) -> None:
        """Test that line breaks inside labels are removed."""
        worksheet = Workbook().active
        worksheet.append(["Unit\nPrice"])

        assert resolver.resolve(worksheet, 0, 0).columns == {0: "UnitPrice"}

    def test_numeric_label(self, resolver: HeaderResolver) -> None:
        """Test that numeric labels decode like data cells."""
        worksheet = Workbook().active
        worksheet.append([2024, 1.5])

        assert resolver.resolve(worksheet, 0, 0).keys() == ["2024", "1.5"]


class TestMergedHeader:
    """Tests for multi-row headers with merged cells."""

    def test_composite_keys(self, resolver: HeaderResolver, contact_document: bytes) -> None:
        """Test that a spanning label prefixes each sub-label."""
        adapter = OpenpyxlAdapter()
        with adapter.open_workbook(contact_document) as workbook:
            index = resolver.resolve(adapter.get_sheet(workbook, "Contacts"), 0, 1)

        assert index.columns == {
            0: "Name",
            1: "Contact-Phone",
            2: "Contact-Email",
        }

    def test_vertical_merge_not_repeated(self, resolver: HeaderResolver) -> None:
        """Test that a label merged over both rows appears once."""
        worksheet = Workbook().active
        worksheet.append(["Name"])
        worksheet.append([None])
        worksheet.merge_cells("A1:A2")

        assert resolver.resolve(worksheet, 0, 1).columns == {0: "Name"}

    def test_first_row_only(self, resolver: HeaderResolver, contact_document: bytes) -> None:
        """Test resolving only the first of two header rows."""
        adapter = OpenpyxlAdapter()
        with adapter.open_workbook(contact_document) as workbook:
            index = resolver.resolve(adapter.get_sheet(workbook), 0, 0)

        assert index.columns == {0: "Name", 1: "Contact", 2: "Contact"}

    def test_invalid_range(self, resolver: HeaderResolver) -> None:
        """Test that an inverted row range is rejected."""
        with pytest.raises(InvalidArgumentError):
            resolver.resolve(Workbook().active, 2, 1)


class TestHeaderIndex:
    """Tests for HeaderIndex lookups."""

    def test_right_most_duplicate_wins(self) -> None:
        """Test that the last column carrying a key is returned."""
        index = HeaderIndex(columns={0: "A", 1: "B", 3: "A"})

        assert index.position_of("A") == 3
        assert index.position_of("missing") is None
        assert "B" in index
