"""
Streaming, batched export of records to a workbook.

The StreamWriter writes records through XlsxWriter in ``constant_memory``
mode, so only the current row is held in memory. When a sheet reaches the
row ceiling a new sheet is started (``Users``, ``Users1``, ``Users2``...),
each with its own header.

The workbook is rendered to a temporary spool file and only moved to the
download directory, or copied into the caller's stream, once rendering has
succeeded.

Example:
    with StreamWriter(User, "Users") as writer:
        for batch in repository.iter_batches(500):
            writer.write_batch(batch)
        file_name = writer.finish()
"""

import logging
import os
import shutil
import tempfile
import uuid
from pathlib import Path
from typing import Any, BinaryIO

import xlsxwriter
from xlsxwriter.exceptions import DuplicateWorksheetName, InvalidWorksheetName
from xlsxwriter.worksheet import Worksheet

from recordsheet.adapters.xlsxwriter_styles import StyleBuilder
from recordsheet.codec.cell_codec import CellCodec, to_str
from recordsheet.config import DecodePolicy, Settings, get_settings
from recordsheet.exceptions.excel_exceptions import (
    ExcelPermissionError,
    InvalidArgumentError,
    WriteError,
    WriterClosedError,
)
from recordsheet.models.excel_models import Direction, SheetCursor, WriterState
from recordsheet.schema.registry import SchemaRegistry
from recordsheet.services.record_mapper import RecordMapper

logger = logging.getLogger(__name__)

TOTAL_LABEL = "Total"

# Width of columns whose label carries a "注：" note
NOTE_COLUMN_WIDTH = 6000 / 256

WIDTH_PADDING = 0.72


class StreamWriter:
    """
    Writes records to a workbook in batches, splitting across sheets.

    Attributes:
        record_type: The pydantic record model being exported.
        sheet_name: Base sheet name, also used in the output file name.
        output_dir: Directory receiving finished files.
        sheet_row_limit: Maximum rows per sheet, header included.
    """

    def __init__(
        self,
        record_type: type,
        sheet_name: str,
        output_dir: str | Path | None = None,
        sheet_row_limit: int | None = None,
        settings: Settings | None = None,
        codec: CellCodec | None = None,
        decode_policy: DecodePolicy | None = None,
    ) -> None:
        settings = settings or get_settings()

        if not sheet_name:
            raise InvalidArgumentError("sheet_name", "must not be empty")

        self.record_type = record_type
        self.sheet_name = sheet_name
        self.output_dir = Path(output_dir or settings.download_dir)
        self.sheet_row_limit = sheet_row_limit or settings.sheet_row_limit

        self.schema = SchemaRegistry.get(record_type, Direction.EXPORT)

        # Header row plus at least one data row (and the totals row, if any)
        minimum = 3 if self.schema.has_statistics else 2
        if self.sheet_row_limit < minimum:
            raise InvalidArgumentError(
                "sheet_row_limit",
                f"must be at least {minimum}",
            )

        self.mapper = RecordMapper(
            record_type,
            codec=codec,
            decode_policy=decode_policy or settings.decode_policy,
        )

        self._data_row_limit = self.sheet_row_limit - (1 if self.schema.has_statistics else 0)
        self._state = WriterState.OPEN
        self._written_rows = 0
        self._sheet_count = 0
        self._totals: dict[int, float] = {}
        self.cursor = SheetCursor()

        fd, spool = tempfile.mkstemp(prefix="recordsheet_", suffix=".xlsx")
        os.close(fd)
        self._spool_path = Path(spool)

        self._workbook = xlsxwriter.Workbook(str(self._spool_path), {"constant_memory": True})
        self.styles = StyleBuilder(self._workbook)
        try:
            self._worksheet = self._open_sheet()
        except InvalidArgumentError:
            self.close()
            raise

    # ==================== STATE ====================

    @property
    def state(self) -> WriterState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is WriterState.CLOSED

    @property
    def written_rows(self) -> int:
        """Number of data rows written across all sheets."""
        return self._written_rows

    @property
    def sheet_count(self) -> int:
        """Number of sheets created so far."""
        return self._sheet_count

    def _check_open(self, operation: str) -> None:
        if self.closed:
            raise WriterClosedError(operation)

    # ==================== WRITING ====================

    def write_batch(self, records: list[Any] | None) -> None:
        """
        Append records to the workbook.

        A new sheet is started whenever the current one reaches the row
        ceiling. Empty or None batches are ignored.

        Raises:
            WriterClosedError: If the writer is finished or closed.
            WriteError: Under the strict decode policy, if a cell cannot be
                written.
        """
        self._check_open("write batch")

        if not records:
            return

        for record in records:
            if self.cursor.row_number >= self._data_row_limit:
                self._close_sheet()
                self.cursor.sheet_index += 1
                self._worksheet = self._open_sheet()

            if not self.cursor.header_written:
                self._write_header()

            row = self.cursor.row_number
            self.mapper.write_row(self._worksheet, row, record, self.styles, self.schema)
            self._accumulate(record)

            self.cursor.row_number += 1
            self._written_rows += 1

    def write_header(self) -> None:
        """
        Write the current sheet's header now, if not already written.

        Used to produce empty import templates.

        Raises:
            WriterClosedError: If the writer is finished or closed.
        """
        self._check_open("write header")
        if not self.cursor.header_written:
            self._write_header()

    def _open_sheet(self) -> Worksheet:
        index = self.cursor.sheet_index
        name = self.sheet_name if index == 0 else f"{self.sheet_name}{index}"

        try:
            worksheet = self._workbook.add_worksheet(name)
        except (InvalidWorksheetName, DuplicateWorksheetName) as e:
            raise InvalidArgumentError("sheet_name", str(e)) from e

        self.cursor.row_number = 0
        self.cursor.header_written = False
        self._totals = {}
        self._sheet_count += 1

        logger.debug("Opened sheet %s", name)
        return worksheet

    def _write_header(self) -> None:
        worksheet = self._worksheet
        row = self.cursor.row_number
        header_format = self.styles.header()
        last_row = self.sheet_row_limit - 1

        for column, field in enumerate(self.schema.fields):
            binding = field.binding
            worksheet.write_string(row, column, binding.label, header_format)

            if "注：" in binding.label:
                worksheet.set_column(column, column, NOTE_COLUMN_WIDTH)
            else:
                worksheet.set_column(column, column, binding.width + WIDTH_PADDING)

            # A column carries at most one validation
            if binding.combo or binding.prompt:
                if binding.combo:
                    options: dict[str, Any] = {"validate": "list", "source": list(binding.combo)}
                else:
                    options = {"validate": "any"}
                if binding.prompt:
                    options["input_message"] = binding.prompt
                worksheet.data_validation(1, column, last_row, column, options)

        self.cursor.row_number += 1
        self.cursor.header_written = True

    def _accumulate(self, record: Any) -> None:
        if not self.schema.has_statistics:
            return
        for column, field in enumerate(self.schema.fields):
            if not field.binding.statistics:
                continue
            value = field.get_value(record)
            if value is None:
                continue
            try:
                amount = float(to_str(value))
            except ValueError:
                continue
            self._totals[column] = self._totals.get(column, 0.0) + amount

    def _close_sheet(self) -> None:
        """Append the totals row to the current sheet, if it has one."""
        if not self.schema.has_statistics or not self._totals:
            return

        worksheet = self._worksheet
        row = self.cursor.row_number
        total_format = self.styles.total()

        worksheet.write_string(row, 0, TOTAL_LABEL, total_format)
        for column, amount in sorted(self._totals.items()):
            worksheet.write_string(row, column, f"{amount:.2f}", total_format)
        self._totals = {}

    # ==================== FINISHING ====================

    def finish(self, sink: BinaryIO | None = None) -> str | None:
        """
        Render the workbook and close the writer.

        Args:
            sink: Optional writable binary stream. When given, the document is
                written into it instead of the download directory.

        Returns:
            The generated file name (``<uuid>_<sheet_name>.xlsx``) when
            rendered to the download directory, otherwise None.

        Raises:
            WriterClosedError: If the writer is already finished or closed.
            WriteError: If rendering or saving fails. No partial output is
                left behind.
        """
        self._check_open("finish")

        try:
            self._render()
            if sink is None:
                return self._save()
            self._copy_to(sink)
            return None
        finally:
            self._discard_spool()
            self._state = WriterState.CLOSED

    def _render(self) -> None:
        try:
            self._close_sheet()
            self._workbook.close()
        except Exception as e:
            logger.error("Failed to render workbook %s: %s", self.sheet_name, e)
            raise WriteError(
                file_path=str(self._spool_path),
                operation="render",
                reason=str(e),
            ) from e

        logger.info(
            "Workbook rendered: sheet=%s, rows=%d, sheets=%d",
            self.sheet_name,
            self._written_rows,
            self._sheet_count,
        )

    def _save(self) -> str:
        file_name = f"{uuid.uuid4()}_{self.sheet_name}.xlsx"
        target = self.output_dir / file_name

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            shutil.move(str(self._spool_path), str(target))
        except PermissionError as e:
            logger.error("Failed to save %s: %s", target, e)
            raise ExcelPermissionError(file_path=str(target), operation="write") from e
        except OSError as e:
            logger.error("Failed to save %s: %s", target, e)
            if target.exists():
                target.unlink()
            raise WriteError(file_path=str(target), operation="save", reason=str(e)) from e

        logger.info("Export saved to %s", target)
        return file_name

    def _copy_to(self, sink: BinaryIO) -> None:
        try:
            with open(self._spool_path, "rb") as f:
                shutil.copyfileobj(f, sink)
        except (OSError, ValueError) as e:
            logger.error("Failed to write export to stream: %s", e)
            raise WriteError(file_path="<stream>", operation="write", reason=str(e)) from e

    def _discard_spool(self) -> None:
        if self._spool_path.exists():
            self._spool_path.unlink()

    def close(self) -> None:
        """
        Close the writer, discarding any unfinished output.

        Safe to call more than once.
        """
        if self.closed:
            return

        self._state = WriterState.CLOSED
        try:
            if not self._workbook.fileclosed:
                self._workbook.close()
        except Exception:
            logger.exception("Failed to release workbook %s", self.sheet_name)
        finally:
            self._discard_spool()

    def __enter__(self) -> "StreamWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
