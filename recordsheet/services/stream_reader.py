"""
Streaming, batched import of worksheet rows into records.

The StreamReader resolves the sheet's header once, then walks the data rows
in order, dropping blank rows and handing full batches of records to a
consumer callback. The callback can stop the read early by returning False.

Example:
    def save(batch, batch_number, total):
        repository.insert_many(batch)
        return True

    reader = StreamReader(User)
    total = reader.read_batch(document, "Users", batch_size=500, callback=save)
"""

import logging
from collections.abc import Callable
from typing import Any

from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.adapters.header_resolver import HeaderResolver
from recordsheet.adapters.openpyxl_adapter import Document, OpenpyxlAdapter
from recordsheet.codec.cell_codec import CellCodec
from recordsheet.config import DecodePolicy
from recordsheet.exceptions.excel_exceptions import InvalidArgumentError
from recordsheet.services.record_mapper import RecordMapper

logger = logging.getLogger(__name__)

BatchCallback = Callable[[list[Any], int, int], bool]

DEFAULT_BATCH_SIZE = 1000


class StreamReader:
    """
    Reads records from a worksheet in batches.

    Attributes:
        record_type: The pydantic record model to populate.
        read_rows: Number of kept rows of the last read.
        batches: Number of callback invocations of the last read.
    """

    def __init__(
        self,
        record_type: type,
        codec: CellCodec | None = None,
        decode_policy: DecodePolicy | None = None,
        adapter: OpenpyxlAdapter | None = None,
    ) -> None:
        self.record_type = record_type
        codec = codec or CellCodec()
        self.mapper = RecordMapper(record_type, codec=codec, decode_policy=decode_policy)
        self.header_resolver = HeaderResolver(codec)
        self.adapter = adapter or OpenpyxlAdapter()
        self.read_rows = 0
        self.batches = 0

    def read_batch(
        self,
        document: Document,
        sheet_name: str = "",
        header_start: int = 0,
        header_end: int = 0,
        data_start: int | None = None,
        *,
        batch_size: int,
        callback: BatchCallback,
    ) -> int:
        """
        Read a sheet and deliver its records in batches.

        Args:
            document: Raw bytes, a binary file object or a path.
            sheet_name: Sheet to read; empty for the first sheet.
            header_start: First header row, 0-based.
            header_end: Last header row, 0-based, inclusive.
            data_start: First data row, 0-based; defaults to the row after
                the header.
            batch_size: Number of records per callback invocation.
            callback: Called as ``callback(batch, batch_number, total)`` with a
                fresh list; returning False stops the read.

        Returns:
            Number of kept (non-blank) rows.

        Raises:
            InvalidArgumentError: If batch_size, callback or the row range is
                unusable. Checked before the document is opened.
            NotFoundError: If the document or sheet cannot be opened.
            FieldDecodeError: Under the strict decode policy.
        """
        if isinstance(batch_size, bool) or not isinstance(batch_size, int) or batch_size <= 0:
            raise InvalidArgumentError("batch_size", "must be a positive integer")
        if not callable(callback):
            raise InvalidArgumentError("callback", "must be callable")
        if header_start < 0 or header_end < header_start:
            raise InvalidArgumentError(
                "header_end",
                f"header rows [{header_start}, {header_end}] are not a valid range",
            )
        if data_start is None:
            data_start = header_end + 1
        if data_start < 0:
            raise InvalidArgumentError("data_start", "must not be negative")

        self.read_rows = 0
        self.batches = 0

        with self.adapter.open_workbook(document) as workbook:
            worksheet = self.adapter.get_sheet(workbook, sheet_name)
            return self._read_sheet(
                worksheet,
                header_start,
                header_end,
                data_start,
                batch_size,
                callback,
            )

    def _read_sheet(
        self,
        worksheet: Worksheet,
        header_start: int,
        header_end: int,
        data_start: int,
        batch_size: int,
        callback: BatchCallback,
    ) -> int:
        header_index = self.header_resolver.resolve(worksheet, header_start, header_end)
        columns = self.mapper.bind_columns(header_index)
        last_row = worksheet.max_row

        logger.info(
            "Start batch read: sheet=%s, rows=%d, data_start=%d, batch_size=%d",
            worksheet.title,
            last_row,
            data_start,
            batch_size,
        )

        batch: list[Any] = []
        total = 0
        batch_number = 0

        rows = worksheet.iter_rows(min_row=data_start + 1, max_row=last_row)
        for row_number, cells in enumerate(rows, start=data_start):
            record = self.mapper.read_row(cells, columns, row_number)
            if record is None:
                continue

            batch.append(record)
            total += 1
            self.read_rows = total

            if len(batch) >= batch_size:
                batch_number += 1
                self.batches = batch_number
                logger.debug("Batch %d delivered, total=%d", batch_number, total)
                keep_going = callback(list(batch), batch_number, total)
                batch.clear()
                if keep_going is False:
                    logger.info("Batch read stopped by callback after %d rows", total)
                    return total

        if batch:
            batch_number += 1
            self.batches = batch_number
            logger.debug("Batch %d delivered, total=%d", batch_number, total)
            callback(list(batch), batch_number, total)

        logger.info("Batch read finished: sheet=%s, rows=%d", worksheet.title, total)
        return total

    def read_all(
        self,
        document: Document,
        sheet_name: str = "",
        header_start: int = 0,
        header_end: int = 0,
        data_start: int | None = None,
    ) -> list[Any]:
        """
        Read every kept row of a sheet into a list.

        Args:
            document: Raw bytes, a binary file object or a path.
            sheet_name: Sheet to read; empty for the first sheet.
            header_start: First header row, 0-based.
            header_end: Last header row, 0-based, inclusive.
            data_start: First data row, 0-based.

        Returns:
            The records in row order.
        """
        records: list[Any] = []

        def collect(batch: list[Any], batch_number: int, total: int) -> bool:
            records.extend(batch)
            return True

        self.read_batch(
            document,
            sheet_name,
            header_start,
            header_end,
            data_start,
            batch_size=DEFAULT_BATCH_SIZE,
            callback=collect,
        )
        return records
