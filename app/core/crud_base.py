# app/core/crud_base.py

"""
Base class for the repository pattern shared by every domain.

Writes go through SQLAlchemy Core statements against the model's table so
that affected-row counts drive not-found detection; reads of a single
table return the SQLModel instance. Every database error is passed
through the error translator before it leaves this layer.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Generic, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel
from sqlalchemy import delete, func, insert, update
from sqlalchemy.exc import DBAPIError
from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.exceptions import NotFoundError, RepositoryError, wrap_error
from app.core.query_builder import SetBuilder, edit_values

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=SQLModel)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


@asynccontextmanager
async def transaction(db: AsyncSession, op: str) -> AsyncIterator[AsyncSession]:
    """
    Runs the enclosed statements as one unit: commit on success, rollback on
    any error. Driver errors are re-raised as translated repository errors.
    """
    try:
        yield db
        await db.commit()
    except RepositoryError:
        await db.rollback()
        raise
    except DBAPIError as exc:
        await db.rollback()
        raise wrap_error(exc, op) from exc
    except Exception:
        await db.rollback()
        raise


async def execute_read(db: AsyncSession, statement, op: str):
    """Executes a read statement, translating driver errors."""
    try:
        return await db.execute(statement)
    except DBAPIError as exc:
        raise wrap_error(exc, op) from exc


def dialect_insert(db: AsyncSession, table):
    """INSERT construct of the session's dialect (for ON CONFLICT support)."""
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert
        return pg_insert(table)
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert
        return sqlite_insert(table)
    raise RepositoryError("dialect_insert", f"upsert is not supported on {dialect}")


class CRUDBase(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    Create / read / update / delete for one table.

    `create` returns the generated id, `update` and `delete` raise
    NotFoundError when no row was affected.
    """
    def __init__(self, model: Type[ModelType], *, name: Optional[str] = None):
        self.model = model
        self.table = model.__table__
        self.name = name or self.table.name

    def op(self, action: str) -> str:
        return f"repo.{self.name}.{action}"

    # --- reads ---------------------------------------------------------------
    async def get(self, db: AsyncSession, id: Any) -> Optional[ModelType]:
        """
        Single row by id, or None.
        populate_existing keeps instances already in the session up to date
        after Core-level writes.
        """
        statement = (
            select(self.model)
            .where(self.table.c.id == id)
            .execution_options(populate_existing=True)
        )
        result = await execute_read(db, statement, self.op("get"))
        return result.scalars().one_or_none()

    async def get_or_raise(self, db: AsyncSession, id: Any) -> ModelType:
        obj = await self.get(db, id)
        if obj is None:
            raise NotFoundError(self.op("get"), f"{self.name} {id} not found")
        return obj

    async def get_multi(
        self, db: AsyncSession, *, skip: int = 0, limit: int = 100, order_by=None, **kwargs: Any
    ) -> List[ModelType]:
        """
        Several rows; keyword arguments naming a column filter by equality
        (None values are ignored).
        """
        statement = select(self.model).execution_options(populate_existing=True)
        for field, value in kwargs.items():
            if value is not None and field in self.table.c:
                statement = statement.where(self.table.c[field] == value)
        if order_by is None:
            order_by = (self.table.c.id,)
        elif not isinstance(order_by, (list, tuple)):
            order_by = (order_by,)
        statement = statement.order_by(*order_by)
        statement = statement.offset(skip).limit(limit)
        result = await execute_read(db, statement, self.op("get_multi"))
        return list(result.scalars().all())

    # --- writes (no commit, used inside transactions) -------------------------
    def insert_values(self, obj_in: Union[BaseModel, dict], **extra: Any) -> dict:
        data = obj_in if isinstance(obj_in, dict) else obj_in.model_dump(exclude_none=True)
        data = {key: value for key, value in data.items() if key in self.table.c}
        data.update(extra)
        return data

    async def insert_row(self, db: AsyncSession, values: dict) -> int:
        statement = insert(self.table).values(**values).returning(self.table.c.id)
        result = await db.execute(statement)
        return result.scalar_one()

    async def update_rows(
        self, db: AsyncSession, *, id: Any, values: dict, where: Iterable = ()
    ) -> int:
        statement = update(self.table).where(self.table.c.id == id, *where).values(**values)
        result = await db.execute(statement)
        return result.rowcount

    async def delete_rows(self, db: AsyncSession, *, id: Any, where: Iterable = ()) -> int:
        statement = delete(self.table).where(self.table.c.id == id, *where)
        result = await db.execute(statement)
        return result.rowcount

    def touch(self, builder: SetBuilder) -> SetBuilder:
        """Adds `updated_at = now()` for tables that track it."""
        if "updated_at" in self.table.c and not builder.has(self.table.c.updated_at):
            builder.set_expr(self.table.c.updated_at, func.now())
        return builder

    # --- writes (own transaction) -----------------------------------------
    async def create(self, db: AsyncSession, *, obj_in: Union[CreateSchemaType, dict], **extra: Any) -> int:
        """
        Inserts a row and returns its id. Fields of `obj_in` that are not
        columns of the table are ignored; `extra` overrides or adds columns.
        """
        async with transaction(db, self.op("create")):
            new_id = await self.insert_row(db, self.insert_values(obj_in, **extra))
        logger.debug("%s %s created", self.name, new_id)
        return new_id

    async def update(
        self,
        db: AsyncSession,
        *,
        id: Any,
        obj_in: Optional[UpdateSchemaType] = None,
        values: Optional[SetBuilder] = None,
        where: Iterable = (),
    ) -> None:
        """
        Applies the present fields of `obj_in` (and any extra `values`).
        Nothing to set is a successful no-op; zero affected rows is NotFound.
        """
        builder = values or SetBuilder()
        if obj_in is not None:
            builder.extend(edit_values(obj_in, self.table))
        if builder.is_empty:
            return
        self.touch(builder)

        op = self.op("update")
        async with transaction(db, op):
            affected = await self.update_rows(db, id=id, values=builder.values(), where=where)
            if affected == 0:
                raise NotFoundError(op, f"{self.name} {id} not found")

    async def delete(self, db: AsyncSession, *, id: Any, where: Iterable = ()) -> None:
        op = self.op("delete")
        async with transaction(db, op):
            affected = await self.delete_rows(db, id=id, where=where)
            if affected == 0:
                raise NotFoundError(op, f"{self.name} {id} not found")
        logger.debug("%s %s deleted", self.name, id)

    async def transition(
        self,
        db: AsyncSession,
        *,
        id: Any,
        from_statuses: Iterable[str],
        values: SetBuilder,
        action: str = "transition",
    ) -> None:
        """
        Status change gated in the UPDATE's WHERE clause: a row that is not
        in one of `from_statuses` is left alone and reported as NotFound.
        """
        allowed = list(from_statuses)
        op = self.op(action)
        async with transaction(db, op):
            affected = await self.update_rows(
                db, id=id, values=self.touch(values).values(), where=[self.table.c.status.in_(allowed)]
            )
            if affected == 0:
                raise NotFoundError(op, f"{self.name} {id} not found in status {allowed}")
        logger.debug("%s %s: %s", self.name, id, action)
