"""DynamoDB item conversion utilities.

DynamoDB stores numbers as Decimal and rejects empty/None attributes in
indexed key positions, while the pydantic models use plain Python types.
This module converts between the two and builds the SET/REMOVE update
expressions used for single-row patches.
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel


def decimal_to_python(obj: Any) -> Any:
    """Recursively convert DynamoDB Decimal values to int or float."""
    if isinstance(obj, Decimal):
        if obj % 1 == 0:
            return int(obj)
        return float(obj)
    elif isinstance(obj, dict):
        return {key: decimal_to_python(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [decimal_to_python(item) for item in obj]
    elif isinstance(obj, set):
        return {decimal_to_python(item) for item in obj}
    return obj


def python_to_decimal(obj: Any) -> Any:
    """Recursively convert int/float values to Decimal for DynamoDB storage."""
    if isinstance(obj, float):
        return Decimal(str(round(obj, 6)))
    elif isinstance(obj, int) and not isinstance(obj, bool):
        # bool is a subclass of int and must stay a bool
        return Decimal(obj)
    elif isinstance(obj, dict):
        return {key: python_to_decimal(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [python_to_decimal(item) for item in obj]
    elif isinstance(obj, set):
        return {python_to_decimal(item) for item in obj}
    return obj


def model_to_item(model: BaseModel) -> dict[str, Any]:
    """Serialize a pydantic model to a DynamoDB item.

    Unset optional attributes are dropped rather than stored as NULL so that
    sparse GSIs (e.g. the search-name index) only contain rows that carry
    the key attribute.

    Args:
        model: Model instance to store

    Returns:
        Item dict ready for put_item
    """
    item = model.model_dump(mode="json", exclude_none=True)
    return python_to_decimal(item)


def parse_from_dynamodb(item: dict[str, Any]) -> dict[str, Any]:
    """Parse a DynamoDB item to Python-native types."""
    return decimal_to_python(item)


def parse_items_from_dynamodb(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Parse a list of DynamoDB items to Python-native types."""
    return [parse_from_dynamodb(item) for item in items]


def build_update_expression(
    set_fields: dict[str, Any], remove_fields: tuple[str, ...] = ()
) -> dict[str, Any]:
    """Build update_item keyword arguments for a single-row patch.

    Every attribute goes through an ExpressionAttributeNames placeholder so
    reserved words such as ``status`` and ``name`` need no special casing.

    Args:
        set_fields: Attributes to SET, mapped to their new values
        remove_fields: Attributes to REMOVE

    Returns:
        Dict with UpdateExpression, ExpressionAttributeNames and (when any
        field is set) ExpressionAttributeValues
    """
    names: dict[str, str] = {}
    values: dict[str, Any] = {}
    set_parts = []
    for index, (field, value) in enumerate(set_fields.items()):
        names[f"#s{index}"] = field
        values[f":s{index}"] = python_to_decimal(value)
        set_parts.append(f"#s{index} = :s{index}")

    remove_parts = []
    for index, field in enumerate(remove_fields):
        names[f"#r{index}"] = field
        remove_parts.append(f"#r{index}")

    clauses = []
    if set_parts:
        clauses.append("SET " + ", ".join(set_parts))
    if remove_parts:
        clauses.append("REMOVE " + ", ".join(remove_parts))

    kwargs: dict[str, Any] = {
        "UpdateExpression": " ".join(clauses),
        "ExpressionAttributeNames": names,
    }
    if values:
        kwargs["ExpressionAttributeValues"] = values
    return kwargs


def query_all(table, **kwargs) -> list[dict[str, Any]]:
    """Run a query to completion, following LastEvaluatedKey pages.

    Args:
        table: DynamoDB table resource
        **kwargs: Arguments passed through to table.query

    Returns:
        All matching items, parsed to Python-native types
    """
    items: list[dict[str, Any]] = []
    while True:
        response = table.query(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return parse_items_from_dynamodb(items)
        kwargs["ExclusiveStartKey"] = last_key


def scan_all(table, **kwargs) -> list[dict[str, Any]]:
    """Scan a table to completion, following LastEvaluatedKey pages."""
    items: list[dict[str, Any]] = []
    while True:
        response = table.scan(**kwargs)
        items.extend(response.get("Items", []))
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return parse_items_from_dynamodb(items)
        kwargs["ExclusiveStartKey"] = last_key


def count_all(table, **kwargs) -> int:
    """Count query matches with Select=COUNT, following pages."""
    total = 0
    kwargs["Select"] = "COUNT"
    while True:
        response = table.query(**kwargs)
        total += response.get("Count", 0)
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return total
        kwargs["ExclusiveStartKey"] = last_key
