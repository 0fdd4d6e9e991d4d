"""
Schema extraction from annotated pydantic record models.
"""

from recordsheet.schema.registry import Schema, SchemaField, SchemaRegistry

__all__ = [
    "Schema",
    "SchemaField",
    "SchemaRegistry",
]
