"""
recordsheet: Streaming record import/export for Excel workbooks.

This package maps pydantic record models to the rows of ``.xlsx``
documents and back, reading and writing in batches so that large sheets
never have to be held in memory at once.

Architecture:
    - Declarative column bindings on record fields (``ExcelColumn``)
    - openpyxl for reading, including merged multi-row headers
    - XlsxWriter in constant-memory mode for streaming writes
"""

__version__ = "0.1.0"
