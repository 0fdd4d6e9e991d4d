"""
Record import/export service layer.

This module provides the ExcelService class, the single transport-agnostic
entry point for importing records from documents and exporting records to
documents. It coordinates the StreamReader, the StreamWriter and the
HeaderValidator and reports results as pydantic models.

Example:
    service = ExcelService()

    # Import
    result = service.import_records(document_bytes, User)
    for user in result.records:
        print(user.name)

    # Batched import
    service.import_batches(document_bytes, User, batch_size=500, callback=save)

    # Export
    result = service.export_records(users, User, "Users")
    print(result.file_name)
"""

import time
from collections.abc import Iterable
from typing import Any, BinaryIO

from recordsheet.adapters.openpyxl_adapter import Document, OpenpyxlAdapter
from recordsheet.codec.cell_codec import CellCodec
from recordsheet.config import Settings, get_settings
from recordsheet.exceptions.excel_exceptions import ExcelServiceError, ReadError, WriteError
from recordsheet.models.excel_models import ExportResult, HeaderIndex, ImportResult
from recordsheet.services.header_validator import HeaderValidator
from recordsheet.services.stream_reader import BatchCallback, StreamReader
from recordsheet.services.stream_writer import StreamWriter

EXPORT_CHUNK_SIZE = 1000


def _elapsed_ms(start_time: float) -> float:
    return round((time.time() - start_time) * 1000, 2)


class ExcelService:
    """
    Core service layer for record import and export.

    All methods are transport-agnostic and return strongly typed pydantic
    models for serialization.

    Attributes:
        settings: Engine settings.
        adapter: OpenpyxlAdapter used to open documents.
        validator: HeaderValidator for uploads.

    Example:
        service = ExcelService()

        # Empty import template
        template = service.export_template(User, "Users")

        # Validate an upload against it, then import
        service.validate_upload(upload.filename, upload.content, template.file_path)
        result = service.import_records(upload.content, User)
    """

    def __init__(
        self,
        settings: Settings | None = None,
        codec: CellCodec | None = None,
        adapter: OpenpyxlAdapter | None = None,
    ) -> None:
        """
        Initialize the ExcelService.

        Args:
            settings: Optional Settings; defaults to the cached settings.
            codec: Optional CellCodec shared by readers and writers.
            adapter: Optional OpenpyxlAdapter instance.
        """
        self.settings = settings or get_settings()
        self.codec = codec or CellCodec()
        self.adapter = adapter or OpenpyxlAdapter()
        self.validator = HeaderValidator(adapter=self.adapter)

    # ==================== FACTORIES ====================

    def create_reader(self, record_type: type) -> StreamReader:
        """Create a StreamReader for a record type."""
        return StreamReader(
            record_type,
            codec=self.codec,
            decode_policy=self.settings.decode_policy,
            adapter=self.adapter,
        )

    def create_writer(self, record_type: type, sheet_name: str) -> StreamWriter:
        """Create a StreamWriter for a record type, writing to the download directory."""
        return StreamWriter(
            record_type,
            sheet_name,
            settings=self.settings,
            codec=self.codec,
        )

    # ==================== IMPORT ====================

    def get_sheet_names(self, document: Document) -> list[str]:
        """
        Get the list of sheet names in a document.

        Raises:
            DocumentNotFoundError: If a path does not exist.
            InvalidFileFormatError: If the content is not a valid workbook.
        """
        return self.adapter.get_sheet_names(document)

    def import_records(
        self,
        document: Document,
        record_type: type,
        sheet_name: str = "",
        header_start: int = 0,
        header_end: int = 0,
        data_start: int | None = None,
    ) -> ImportResult:
        """
        Import every kept row of a sheet.

        Returns:
            ImportResult with the records in row order.

        Raises:
            NotFoundError: If the document or sheet cannot be opened.
            FieldDecodeError: Under the strict decode policy.
            ReadError: If reading fails unexpectedly.
        """
        start_time = time.time()

        try:
            reader = self.create_reader(record_type)
            records = reader.read_all(document, sheet_name, header_start, header_end, data_start)

            return ImportResult(
                success=True,
                rows_read=len(records),
                batches=reader.batches,
                records=records,
                processing_time_ms=_elapsed_ms(start_time),
            )

        except ExcelServiceError:
            raise
        except Exception as e:
            raise ReadError(
                file_path=str(getattr(document, "name", "<document>")),
                operation="import",
                reason=str(e),
            ) from e

    def import_batches(
        self,
        document: Document,
        record_type: type,
        batch_size: int,
        callback: BatchCallback,
        sheet_name: str = "",
        header_start: int = 0,
        header_end: int = 0,
        data_start: int | None = None,
    ) -> ImportResult:
        """
        Import a sheet in batches handed to a callback.

        Exceptions raised by the callback propagate unchanged.

        Returns:
            ImportResult with the row and batch counts; records are not kept.
        """
        start_time = time.time()

        reader = self.create_reader(record_type)
        total = reader.read_batch(
            document,
            sheet_name,
            header_start,
            header_end,
            data_start,
            batch_size=batch_size,
            callback=callback,
        )

        return ImportResult(
            success=True,
            rows_read=total,
            batches=reader.batches,
            processing_time_ms=_elapsed_ms(start_time),
        )

    # ==================== EXPORT ====================

    def export_records(
        self,
        records: Iterable[Any],
        record_type: type,
        sheet_name: str,
        sink: BinaryIO | None = None,
    ) -> ExportResult:
        """
        Export records to the download directory, or into a stream.

        Records are written in chunks, so generators are never materialized.

        Returns:
            ExportResult with the file name and path when saved to disk.

        Raises:
            WriteError: If rendering or saving fails.
        """
        start_time = time.time()

        try:
            with self.create_writer(record_type, sheet_name) as writer:
                chunk: list[Any] = []
                for record in records:
                    chunk.append(record)
                    if len(chunk) >= EXPORT_CHUNK_SIZE:
                        writer.write_batch(chunk)
                        chunk = []
                writer.write_batch(chunk)
                file_name = writer.finish(sink)
                return self._export_result(writer, file_name, start_time)

        except ExcelServiceError:
            raise
        except Exception as e:
            raise WriteError(
                file_path=sheet_name,
                operation="export",
                reason=str(e),
            ) from e

    def export_template(
        self,
        record_type: type,
        sheet_name: str,
        sink: BinaryIO | None = None,
    ) -> ExportResult:
        """
        Export an empty import template holding only the header row.

        Returns:
            ExportResult with the file name and path when saved to disk.
        """
        start_time = time.time()

        try:
            with self.create_writer(record_type, sheet_name) as writer:
                writer.write_header()
                file_name = writer.finish(sink)
                return self._export_result(writer, file_name, start_time)

        except ExcelServiceError:
            raise
        except Exception as e:
            raise WriteError(
                file_path=sheet_name,
                operation="export template",
                reason=str(e),
            ) from e

    def _export_result(
        self,
        writer: StreamWriter,
        file_name: str | None,
        start_time: float,
    ) -> ExportResult:
        file_path = str((writer.output_dir / file_name).resolve()) if file_name else None
        return ExportResult(
            success=True,
            file_name=file_name,
            file_path=file_path,
            rows_written=writer.written_rows,
            sheets_written=writer.sheet_count,
            processing_time_ms=_elapsed_ms(start_time),
        )

    # ==================== VALIDATION ====================

    def validate_upload(
        self,
        filename: str | None,
        content: bytes | None,
        template: Document,
        header_start: int = 0,
        header_end: int = 0,
        template_sheet_index: int | None = None,
    ) -> HeaderIndex:
        """
        Check an uploaded file's name and content, then its header.

        Returns:
            The upload's HeaderIndex.

        Raises:
            InvalidArgumentError: If the name or content is empty.
            InvalidFileFormatError: If the file is not an Excel file.
            TemplateMismatchError: If the header differs from the template.
        """
        self.validator.validate_upload_filename(filename, content or b"")
        return self.validator.validate_documents(
            content,
            template,
            header_start=header_start,
            header_end=header_end,
            template_sheet_index=template_sheet_index,
        )
