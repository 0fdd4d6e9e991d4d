"""
Cell-level value conversion.

The CellCodec converts between raw worksheet cells and typed record values:

    - decode: openpyxl cell -> raw Python value (read path)
    - coerce: raw value -> the bound field's declared type (read path)
    - format_value: field value -> display string (write path)
    - write_cell: display string or value -> XlsxWriter cell (write path)

Example:
    codec = CellCodec()
    raw = codec.decode(worksheet.cell(row=2, column=1))
    value = codec.coerce(raw, int, binding, field_name="id")
"""

import io
import logging
import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from openpyxl.cell.cell import Cell
from openpyxl.utils.datetime import from_excel
from xlsxwriter.format import Format
from xlsxwriter.worksheet import Worksheet

from recordsheet.codec.expressions import translate
from recordsheet.codec.images import SCREEN_DPI, DefaultImageLoader, ImageLoader, read_image
from recordsheet.exceptions.excel_exceptions import FieldDecodeError
from recordsheet.models.excel_models import CellKind, FieldBinding

logger = logging.getLogger(__name__)

# Tried in order when a text cell is bound to a date field
DATE_PARSE_PATTERNS = (
    "%Y%m%d",
    "%Y%m%d %H:%M:%S",
    "%Y%m%d %H:%M",
    "%Y%m",
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m",
    "%Y.%m.%d",
    "%Y.%m.%d %H:%M:%S",
    "%Y.%m.%d %H:%M",
    "%Y.%m",
)

TRUE_STRINGS = frozenset({"true", "yes", "y", "t", "ok", "1", "on", "是", "对", "對", "真", "√"})

_DATE_TOKEN = re.compile(r"y+|M+|d+|H+|h+|m+|s+|S+|a")


def to_strftime(pattern: str) -> str:
    """
    Convert a ``yyyy-MM-dd HH:mm:ss`` style pattern to strftime directives.

    Patterns that already contain ``%`` directives are returned unchanged.
    """
    if "%" in pattern:
        return pattern

    def replace(match: re.Match) -> str:
        token = match.group(0)
        head = token[0]
        if head == "y":
            return "%Y" if len(token) != 2 else "%y"
        if head == "M":
            return {3: "%b", 4: "%B"}.get(len(token), "%m")
        return {
            "d": "%d",
            "H": "%H",
            "h": "%I",
            "m": "%M",
            "s": "%S",
            "S": "%f",
            "a": "%p",
        }[head]

    return _DATE_TOKEN.sub(replace, pattern)


def to_str(value: Any) -> str:
    """Render a value as plain text; None becomes an empty string."""
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format(value, "f")
    return str(value)


def is_blank(value: Any) -> bool:
    """Return whether a value is None or whitespace-only text."""
    return value is None or (isinstance(value, str) and not value.strip())


class CellCodec:
    """
    Converts values between worksheet cells and record fields.

    Attributes:
        image_loader: Source of image bytes for IMAGE columns.
    """

    def __init__(self, image_loader: ImageLoader | None = None) -> None:
        self.image_loader = image_loader

    # ==================== READ PATH ====================

    def decode(self, cell: Cell | None) -> Any:
        """
        Read the raw value of a cell.

        Date-formatted numbers come back as datetime, whole numbers as
        integer strings, other numbers as plain decimal strings, text
        verbatim, booleans as bool and error cells as their error code.
        Missing cells decode to an empty string.
        """
        if cell is None:
            return ""

        value = cell.value
        if value is None:
            return ""

        if cell.data_type == "e":
            return str(value)

        if isinstance(value, bool):
            return value

        if isinstance(value, (datetime, date, time)):
            return value

        if isinstance(value, (int, float)):
            if float(value).is_integer():
                return str(int(value))
            return format(Decimal(repr(value)), "f")

        if isinstance(value, str):
            return value

        return str(value)

    def coerce(
        self,
        value: Any,
        value_type: Any,
        binding: FieldBinding,
        field_name: str = "",
    ) -> Any:
        """
        Convert a decoded value to the bound field's type.

        Args:
            value: Raw value from decode().
            value_type: Target Python type (str, int, float, Decimal, date,
                datetime or bool); anything else passes the value through.
            binding: The column binding.
            field_name: Field name used in error reports.

        Returns:
            The converted value, or None for blank input.

        Raises:
            FieldDecodeError: If the value cannot be converted.
        """
        if is_blank(value):
            return None

        try:
            if value_type is str:
                return self._to_string(value, binding)
            if value_type is bool:
                return self._to_bool(value)
            if value_type is int:
                return self._to_int(value)
            if value_type is float:
                return float(value)
            if value_type is Decimal:
                return Decimal(to_str(value).strip())
            if value_type is datetime:
                return self._to_datetime(value)
            if value_type is date:
                return self._to_datetime(value).date()
        except (ValueError, TypeError, InvalidOperation, OverflowError) as e:
            raise FieldDecodeError(
                field_name=field_name,
                value=value,
                reason=str(e) or type(e).__name__,
            ) from e

        return value

    def _to_string(self, value: Any, binding: FieldBinding) -> str:
        if binding.date_format and isinstance(value, (date, datetime)):
            return value.strftime(to_strftime(binding.date_format))

        text = to_str(value)
        if isinstance(value, float) and text.endswith(".0"):
            text = text[:-2]
        return text

    def _to_bool(self, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        return to_str(value).strip().lower() in TRUE_STRINGS

    def _to_int(self, value: Any) -> int:
        if isinstance(value, (bool, int)):
            return int(value)
        if isinstance(value, (date, time)):
            raise TypeError(f"cannot convert {type(value).__name__} to int")

        text = to_str(value).strip()
        try:
            return int(text)
        except ValueError:
            number = Decimal(text)
            if number != number.to_integral_value():
                raise ValueError(f"'{text}' is not a whole number") from None
            return int(number)

    def _to_datetime(self, value: Any) -> datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, date):
            return datetime.combine(value, time())
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return from_excel(value)

        text = to_str(value).strip()
        for pattern in DATE_PARSE_PATTERNS:
            try:
                return datetime.strptime(text, pattern)
            except ValueError:
                continue

        # Serial numbers decoded from non date-formatted numeric cells
        try:
            return from_excel(float(text))
        except ValueError:
            pass

        return datetime.fromisoformat(text)

    # ==================== WRITE PATH ====================

    def format_value(self, value: Any, binding: FieldBinding) -> str:
        """
        Render a field value for export.

        Precedence: date format, dictionary expression, dictionary type,
        decimal rescaling, plain text.
        """
        if value is None:
            return ""

        if binding.date_format and isinstance(value, (date, datetime)):
            return value.strftime(to_strftime(binding.date_format))

        if binding.dictionary_expr:
            return translate(to_str(value), binding.dictionary_expr, binding.separator)

        if binding.dict_type:
            # External dictionary service hook; not bound in this package
            return ""

        if isinstance(value, Decimal) and binding.scale != -1:
            quantum = Decimal(1).scaleb(-binding.scale)
            return format(value.quantize(quantum, rounding=binding.rounding), "f")

        return to_str(value)

    def write_cell(
        self,
        worksheet: Worksheet,
        row: int,
        col: int,
        value: Any,
        binding: FieldBinding,
        cell_format: Format | None = None,
        column_width: float | None = None,
        row_height: float | None = None,
    ) -> None:
        """
        Write a value to a cell according to the binding's cell kind.

        Args:
            worksheet: Target XlsxWriter worksheet.
            row: Row index (0-based).
            col: Column index (0-based).
            value: Formatted text, or the raw value when formatting is empty.
            binding: The column binding.
            cell_format: Optional format to apply.
            column_width: Column width in characters, used to fit images.
            row_height: Row height in points, used to fit images.

        Raises:
            ValueError: If a NUMERIC value is not a number.
        """
        if binding.cell_kind is CellKind.STRING:
            text = binding.default_value if value is None else f"{to_str(value)}{binding.suffix}"
            worksheet.write_string(row, col, text, cell_format)
        elif binding.cell_kind is CellKind.NUMERIC:
            if value is None:
                worksheet.write_blank(row, col, None, cell_format)
                return
            text = to_str(value).strip()
            number: int | float
            if "." in text:
                number = float(text)
            else:
                try:
                    number = int(text)
                except ValueError:
                    number = float(text)
            worksheet.write_number(row, col, number, cell_format)
        elif binding.cell_kind is CellKind.IMAGE:
            self._write_image(worksheet, row, col, to_str(value), column_width, row_height)

    def _write_image(
        self,
        worksheet: Worksheet,
        row: int,
        col: int,
        reference: str,
        column_width: float | None,
        row_height: float | None,
    ) -> None:
        if not reference:
            return

        loader = self.image_loader
        if loader is None:
            loader = self.image_loader = DefaultImageLoader()

        try:
            data = loader.load(reference)
        except Exception as e:
            logger.warning("Failed to load image %s, cell left empty: %s", reference, e)
            return
        if not data:
            return

        image = read_image(data)
        if image is None:
            logger.warning("Unrecognized image format for %s, cell left empty", reference)
            return
        kind = image.image_type.lower()

        options: dict[str, Any] = {
            "image_data": io.BytesIO(data),
            "object_position": 1,
        }

        # Scale the picture to span exactly one cell; XlsxWriter shrinks
        # pictures by SCREEN_DPI / dpi on insertion
        if column_width and row_height and image.width > 0 and image.height > 0:
            cell_width_px = int(column_width * 7 + 5)
            cell_height_px = int(row_height * 4 / 3)
            display_width = image.width * SCREEN_DPI / (image.x_dpi or SCREEN_DPI)
            display_height = image.height * SCREEN_DPI / (image.y_dpi or SCREEN_DPI)
            options["x_scale"] = cell_width_px / display_width
            options["y_scale"] = cell_height_px / display_height

        worksheet.insert_image(row, col, f"image.{kind}", options)
