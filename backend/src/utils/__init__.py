"""Utility functions for the field operations backend."""

from .dynamodb_utils import (
    build_update_expression,
    decimal_to_python,
    model_to_item,
    parse_from_dynamodb,
    parse_items_from_dynamodb,
    python_to_decimal,
)
from .search import normalize_name

__all__ = [
    "build_update_expression",
    "decimal_to_python",
    "model_to_item",
    "normalize_name",
    "parse_from_dynamodb",
    "parse_items_from_dynamodb",
    "python_to_decimal",
]
