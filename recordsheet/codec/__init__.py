"""
Value conversion between worksheet cells and record fields.
"""

from recordsheet.codec.cell_codec import CellCodec, is_blank, to_str, to_strftime
from recordsheet.codec.expressions import reverse, translate
from recordsheet.codec.images import DefaultImageLoader, ImageLoader, read_image

__all__ = [
    "CellCodec",
    "DefaultImageLoader",
    "ImageLoader",
    "is_blank",
    "read_image",
    "reverse",
    "to_str",
    "to_strftime",
    "translate",
]
