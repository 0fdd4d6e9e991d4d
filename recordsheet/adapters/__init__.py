"""
Adapters for workbook engines.

- OpenpyxlAdapter: Opens documents and locates sheets on the read path
- HeaderResolver: Composite header keys, merged regions included (openpyxl)
- StyleBuilder: Cached cell formats on the write path (XlsxWriter)
"""

from recordsheet.adapters.header_resolver import HeaderResolver
from recordsheet.adapters.openpyxl_adapter import OpenpyxlAdapter
from recordsheet.adapters.xlsxwriter_styles import StyleBuilder

__all__ = [
    "HeaderResolver",
    "OpenpyxlAdapter",
    "StyleBuilder",
]
