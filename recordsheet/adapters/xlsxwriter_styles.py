"""
Cached cell formats for XlsxWriter workbooks.

XlsxWriter formats belong to one workbook and every ``add_format`` call
registers a new style record, so formats are created once per workbook
and reused for every sheet and row.
"""

from xlsxwriter.format import Format
from xlsxwriter.workbook import Workbook

from recordsheet.models.excel_models import Align

BORDER_COLOR = "#808080"
FONT_NAME = "Arial"
FONT_SIZE = 10


class StyleBuilder:
    """
    Builds and caches the header, data and totals formats of a workbook.

    Example:
        styles = StyleBuilder(workbook)
        worksheet.write_string(0, 0, "Name", styles.header())
        worksheet.write_string(1, 0, "Alice", styles.data(Align.LEFT))
    """

    def __init__(self, workbook: Workbook) -> None:
        self.workbook = workbook
        self._cache: dict[str, Format] = {}

    def _get(self, key: str, properties: dict) -> Format:
        cell_format = self._cache.get(key)
        if cell_format is None:
            cell_format = self._cache[key] = self.workbook.add_format(properties)
        return cell_format

    def _bordered(self, **properties) -> dict:
        base = {
            "align": "center",
            "valign": "vcenter",
            "border": 1,
            "border_color": BORDER_COLOR,
            "font_name": FONT_NAME,
            "font_size": FONT_SIZE,
        }
        base.update(properties)
        return base

    def header(self) -> Format:
        """Bold white text on grey, thin grey borders."""
        return self._get(
            "header",
            self._bordered(bold=True, font_color="white", bg_color=BORDER_COLOR),
        )

    def data(self, align: Align = Align.AUTO) -> Format:
        """Bordered data cell; AUTO renders centered."""
        horizontal = "center" if align is Align.AUTO else align.value
        return self._get(f"data_{align.value}", self._bordered(align=horizontal))

    def total(self) -> Format:
        """Centered, borderless cell for the totals row."""
        return self._get(
            "total",
            {
                "align": "center",
                "valign": "vcenter",
                "font_name": FONT_NAME,
                "font_size": FONT_SIZE,
            },
        )
