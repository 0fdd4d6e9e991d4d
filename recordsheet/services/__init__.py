"""
Service layer for record import and export.

Contains the streaming reader and writer, header validation and the
transport-agnostic ExcelService entry point.
"""

from recordsheet.services.excel_service import ExcelService
from recordsheet.services.header_validator import HeaderValidator
from recordsheet.services.record_mapper import RecordMapper
from recordsheet.services.stream_reader import StreamReader
from recordsheet.services.stream_writer import StreamWriter

__all__ = [
    "ExcelService",
    "HeaderValidator",
    "RecordMapper",
    "StreamReader",
    "StreamWriter",
]
