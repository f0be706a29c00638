# app/core/scanning.py

"""
Helpers that turn joined result rows into response models.

Joined columns are selected with a `<prefix>_` label (e.g. `org_id`,
`org_name`); `nested` rebuilds the related object from them and yields
None when the join found nothing, so a missing LEFT JOIN row is an absent
relation rather than an error.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel

SchemaType = TypeVar("SchemaType", bound=BaseModel)


def strip_prefix(row: Mapping[str, Any], prefix: str) -> Dict[str, Any]:
    """Columns labeled `<prefix>_<name>` as a {name: value} dict."""
    head = f"{prefix}_"
    return {key[len(head):]: value for key, value in row.items() if key.startswith(head)}


def nested(
    row: Mapping[str, Any], prefix: str, schema: Type[SchemaType], *, key: str = "id"
) -> Optional[SchemaType]:
    values = strip_prefix(row, prefix)
    if values.get(key) is None:
        return None
    return schema.model_validate(values)


def scan_one(result, schema: Type[SchemaType]) -> Optional[SchemaType]:
    """First row of a result as `schema`, or None when there is no row."""
    row = result.mappings().first()
    if row is None:
        return None
    return schema.model_validate(dict(row))


def scan_all(result, schema: Type[SchemaType]) -> List[SchemaType]:
    return [schema.model_validate(dict(row)) for row in result.mappings().all()]


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive datetimes (SQLite returns them) are taken to be UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
