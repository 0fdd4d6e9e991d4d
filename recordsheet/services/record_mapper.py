"""
Row-level mapping between worksheet rows and records.

The RecordMapper turns one worksheet row into one record on import and one
record into one worksheet row on export, using the record type's Schema.
Field-local conversion failures follow the configured DecodePolicy.
"""

import logging
from collections.abc import Sequence
from typing import Any

from openpyxl.cell.cell import Cell
from xlsxwriter.worksheet import Worksheet

from recordsheet.adapters.xlsxwriter_styles import StyleBuilder
from recordsheet.codec.cell_codec import CellCodec, to_str
from recordsheet.codec.expressions import reverse
from recordsheet.config import DecodePolicy, get_settings
from recordsheet.exceptions.excel_exceptions import FieldDecodeError, WriteError
from recordsheet.models.excel_models import Direction, HeaderIndex
from recordsheet.schema.registry import Schema, SchemaField, SchemaRegistry

logger = logging.getLogger(__name__)


class RecordMapper:
    """
    Maps worksheet rows to records and back for one record type.

    Attributes:
        record_type: The pydantic record model.
        codec: Cell value converter.
        decode_policy: Reaction to field-local conversion failures.
    """

    def __init__(
        self,
        record_type: type,
        codec: CellCodec | None = None,
        decode_policy: DecodePolicy | None = None,
    ) -> None:
        self.record_type = record_type
        self.codec = codec or CellCodec()
        self.decode_policy = decode_policy or get_settings().decode_policy

    @property
    def import_schema(self) -> Schema:
        return SchemaRegistry.get(self.record_type, Direction.IMPORT)

    @property
    def export_schema(self) -> Schema:
        return SchemaRegistry.get(self.record_type, Direction.EXPORT)

    @property
    def strict(self) -> bool:
        return self.decode_policy is DecodePolicy.STRICT

    # ==================== IMPORT ====================

    def bind_columns(
        self,
        header_index: HeaderIndex,
        schema: Schema | None = None,
    ) -> dict[int, SchemaField]:
        """
        Match import bindings to sheet columns by label.

        Bindings whose label is not in the header are left out. When two
        bindings share a label the later one takes the column.

        Returns:
            Mapping of 0-based column position to SchemaField.
        """
        schema = schema or self.import_schema
        columns: dict[int, SchemaField] = {}
        for field in schema.fields:
            position = header_index.position_of(field.binding.label)
            if position is not None:
                columns[position] = field
        return columns

    def read_row(
        self,
        cells: Sequence[Cell],
        columns: dict[int, SchemaField],
        row_number: int,
    ) -> Any | None:
        """
        Build a record from one worksheet row.

        Args:
            cells: The row's cells, indexed by 0-based column.
            columns: Column bindings from bind_columns().
            row_number: 0-based row number, used in error reports.

        Returns:
            The record, or None if every mapped cell is blank.

        Raises:
            FieldDecodeError: Under the strict policy, for the first cell that
                cannot be converted.
        """
        if not columns:
            return None

        record = self.import_schema.new_record()
        has_data = False

        for column, field in columns.items():
            cell = cells[column] if column < len(cells) else None
            try:
                value = self._read_value(cell, field)
            except FieldDecodeError as e:
                located = e.at(row_number, column)
                if self.strict:
                    raise located from e
                logger.warning(located.message)
                continue

            if value is None:
                continue
            has_data = True

            if field.binding.dictionary_expr:
                try:
                    value = self._reverse(value, field)
                except FieldDecodeError as e:
                    located = e.at(row_number, column)
                    if self.strict:
                        raise located from e
                    logger.warning(located.message)
                    continue
                if value is None:
                    continue

            field.set_value(record, value)

        return record if has_data else None

    def _read_value(self, cell: Cell | None, field: SchemaField) -> Any:
        raw = self.codec.decode(cell)
        value_type = str if field.binding.dictionary_expr else field.value_type
        value = self.codec.coerce(raw, value_type, field.binding, field.field_name)
        if value is not None and to_str(value) == "":
            return None
        return value

    def _reverse(self, label: Any, field: SchemaField) -> Any:
        binding = field.binding
        key = reverse(to_str(label), binding.dictionary_expr, binding.separator)
        return self.codec.coerce(key, field.value_type, binding, field.field_name)

    # ==================== EXPORT ====================

    def write_row(
        self,
        worksheet: Worksheet,
        row: int,
        record: Any,
        styles: StyleBuilder,
        schema: Schema | None = None,
    ) -> None:
        """
        Write one record as a data row.

        Every export binding takes one column in schema order. Non-exportable
        bindings keep their column but leave the cell empty.

        Raises:
            WriteError: Under the strict policy, for the first cell that
                cannot be written.
        """
        schema = schema or self.export_schema
        worksheet.set_row(row, schema.row_height)

        for column, field in enumerate(schema.fields):
            binding = field.binding
            if not binding.exportable:
                continue

            cell_format = styles.data(binding.align)
            value = field.get_value(record)
            try:
                formatted = self.codec.format_value(value, binding)
                if formatted or value is not None or binding.default_value:
                    self.codec.write_cell(
                        worksheet,
                        row,
                        column,
                        formatted or value,
                        binding,
                        cell_format=cell_format,
                        column_width=binding.width,
                        row_height=schema.row_height,
                    )
                else:
                    worksheet.write_blank(row, column, None, cell_format)
            except (ValueError, TypeError, ArithmeticError) as e:
                if self.strict:
                    raise WriteError(
                        file_path=worksheet.name,
                        operation="write cell",
                        reason=f"row {row}, column {column} ({field.field_name}): {e}",
                    ) from e
                logger.warning(
                    "Failed to write %s at row %d, column %d: %s",
                    field.field_name,
                    row,
                    column,
                    e,
                )
