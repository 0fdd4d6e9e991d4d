"""
Header resolution for single-row and multi-row (merged) headers.

Each column's composite key joins the distinct, non-empty labels found in
the header rows with ``-``, in first-seen order. Cells covered by a merged
region take the value of the region's top-left cell, so a group label
spanning two sub-labels yields keys like ``"group-subA"`` and
``"group-subB"``.
"""

from openpyxl.worksheet.worksheet import Worksheet

from recordsheet.codec.cell_codec import CellCodec, to_str
from recordsheet.exceptions.excel_exceptions import InvalidArgumentError
from recordsheet.models.excel_models import HeaderIndex

KEY_SEPARATOR = "-"


class HeaderResolver:
    """Builds the HeaderIndex of a worksheet from its header rows."""

    def __init__(self, codec: CellCodec | None = None) -> None:
        self.codec = codec or CellCodec()

    def resolve(self, worksheet: Worksheet, header_start: int = 0, header_end: int = 0) -> HeaderIndex:
        """
        Resolve the composite column keys of a worksheet.

        Args:
            worksheet: An openpyxl worksheet (not read-only; merged regions
                are needed).
            header_start: First header row, 0-based.
            header_end: Last header row, 0-based, inclusive.

        Returns:
            HeaderIndex of column position to composite key. Columns with no
            label across the range are left out.

        Raises:
            InvalidArgumentError: If the row range is invalid.
        """
        if header_start < 0 or header_end < header_start:
            raise InvalidArgumentError(
                "header_end",
                f"header rows [{header_start}, {header_end}] are not a valid range",
            )

        origins = self._merged_origins(worksheet, header_start, header_end)
        max_col = worksheet.max_column

        labels: dict[int, list[str]] = {}
        rows = worksheet.iter_rows(
            min_row=header_start + 1,
            max_row=header_end + 1,
            max_col=max_col,
        )
        for row_number, cells in enumerate(rows, start=header_start):
            for col, cell in enumerate(cells):
                origin = origins.get((row_number, col))
                if origin is not None:
                    cell = worksheet.cell(row=origin[0] + 1, column=origin[1] + 1)

                label = to_str(self.codec.decode(cell)).replace("\n", "")
                if not label:
                    continue
                column_labels = labels.setdefault(col, [])
                if label not in column_labels:
                    column_labels.append(label)

        return HeaderIndex(
            columns={col: KEY_SEPARATOR.join(parts) for col, parts in sorted(labels.items())}
        )

    @staticmethod
    def _merged_origins(
        worksheet: Worksheet,
        header_start: int,
        header_end: int,
    ) -> dict[tuple[int, int], tuple[int, int]]:
        """Map every merged header cell (0-based) to its region's top-left cell."""
        origins: dict[tuple[int, int], tuple[int, int]] = {}
        for merged in worksheet.merged_cells.ranges:
            first_row, last_row = merged.min_row - 1, merged.max_row - 1
            if last_row < header_start or first_row > header_end:
                continue
            origin = (first_row, merged.min_col - 1)
            for row in range(max(first_row, header_start), min(last_row, header_end) + 1):
                for col in range(merged.min_col - 1, merged.max_col):
                    origins[(row, col)] = origin
        return origins
