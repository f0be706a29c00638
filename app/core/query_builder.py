# app/core/query_builder.py

"""
Builders for dynamic UPDATE / WHERE clauses.

Column objects are fixed by the calling repository; values are always
bound as statement parameters by SQLAlchemy, never interpolated into SQL.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import Column
from sqlalchemy.sql.elements import ColumnElement


class SetBuilder:
    """Ordered (column, value) pairs for the SET part of an UPDATE."""

    def __init__(self) -> None:
        self._values: Dict[str, Any] = {}

    def set(self, column: Column, value: Any) -> "SetBuilder":
        """Always records the column, an explicit None clears it."""
        self._values[column.key] = value
        return self

    def set_if_present(self, column: Column, value: Any) -> "SetBuilder":
        if value is not None:
            self._values[column.key] = value
        return self

    def set_expr(self, column: Column, expr: ColumnElement) -> "SetBuilder":
        self._values[column.key] = expr
        return self

    def extend(self, pairs: Iterable[Tuple[Column, Any]]) -> "SetBuilder":
        for column, value in pairs:
            self.set(column, value)
        return self

    def has(self, column: Column) -> bool:
        return column.key in self._values

    @property
    def is_empty(self) -> bool:
        return not self._values

    def values(self) -> Dict[str, Any]:
        return dict(self._values)


class WhereBuilder:
    """AND-ed conditions; value-taking methods skip a None value."""

    def __init__(self) -> None:
        self._conditions: List[ColumnElement] = []

    def add(self, condition: ColumnElement) -> "WhereBuilder":
        self._conditions.append(condition)
        return self

    def eq(self, column, value: Any) -> "WhereBuilder":
        if value is not None:
            self._conditions.append(column == value)
        return self

    def ge(self, column, value: Any) -> "WhereBuilder":
        if value is not None:
            self._conditions.append(column >= value)
        return self

    def gt(self, column, value: Any) -> "WhereBuilder":
        if value is not None:
            self._conditions.append(column > value)
        return self

    def le(self, column, value: Any) -> "WhereBuilder":
        if value is not None:
            self._conditions.append(column <= value)
        return self

    def lt(self, column, value: Any) -> "WhereBuilder":
        if value is not None:
            self._conditions.append(column < value)
        return self

    def ilike(self, column, value: Optional[str]) -> "WhereBuilder":
        if value:
            self._conditions.append(column.ilike(f"%{value}%"))
        return self

    def is_in(self, column, values: Optional[Iterable[Any]]) -> "WhereBuilder":
        if values:
            self._conditions.append(column.in_(list(values)))
        return self

    def conditions(self) -> List[ColumnElement]:
        return list(self._conditions)

    def apply(self, statement):
        """Attaches the collected conditions to a select/update/delete."""
        if self._conditions:
            statement = statement.where(*self._conditions)
        return statement


def edit_values(obj_in: BaseModel, table, *, exclude: Iterable[str] = ()) -> List[Tuple[Column, Any]]:
    """
    (column, value) pairs for the fields present on a partial edit schema.
    A field counts as present when it was set and is not None; fields that
    are not table columns are ignored.
    """
    skip = set(exclude)
    pairs = []
    for key, value in obj_in.model_dump(exclude_unset=True, exclude_none=True).items():
        if key in skip or key not in table.c:
            continue
        pairs.append((table.c[key], value))
    return pairs
