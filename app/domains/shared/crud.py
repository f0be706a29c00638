# app/domains/shared/crud.py

"""
Repositories of the 'shared' domain and the helpers other domains reuse:

- `FileLinks`: many-to-many file attachment tables (one per entity type)
- `StatusHistory`: append-only document status audit trail
- `user_fio_columns`: joined "who did it" columns for response models
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import delete, desc, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, dialect_insert, execute_read, transaction
from app.core.exceptions import NotFoundError
from app.core.scanning import nested, scan_all, scan_one
from app.domains.corp.models import Contact
from . import models as shared_models
from . import schemas as shared_schemas

logger = logging.getLogger(__name__)

# Statuses every installation starts with, in workflow order
DEFAULT_DOCUMENT_STATUSES = [
    ("draft", "Draft", 1),
    ("in_progress", "In progress", 2),
    ("under_review", "Under review", 3),
    ("approved", "Approved", 4),
    ("rejected", "Rejected", 5),
    ("completed", "Completed", 6),
    ("cancelled", "Cancelled", 7),
]


def user_fio_columns(user_id_column, prefix: str, *, select_from):
    """
    Left-joins users -> contacts for `user_id_column` onto `select_from`.

    Returns the widened join and the `<prefix>_id` / `<prefix>_fio` labeled
    columns to add to the select list (read back with `nested`).
    """
    users = shared_models.User.__table__.alias()
    contacts = Contact.__table__.alias()
    joined = (
        select_from
        .outerjoin(users, users.c.id == user_id_column)
        .outerjoin(contacts, contacts.c.id == users.c.contact_id)
    )
    columns = [users.c.id.label(f"{prefix}_id"), contacts.c.fio.label(f"{prefix}_fio")]
    return joined, columns


# =============================================================================
# 1. users
# =============================================================================
class CRUDUser(CRUDBase[shared_models.User, shared_schemas.UserCreate, shared_schemas.UserCreate]):
    def __init__(self):
        super().__init__(model=shared_models.User)

    async def get_short_info(self, db: AsyncSession, *, id: int) -> Optional[shared_schemas.UserShortInfo]:
        users = self.table
        contacts = Contact.__table__
        statement = (
            select(users.c.id, contacts.c.fio)
            .select_from(users.outerjoin(contacts, contacts.c.id == users.c.contact_id))
            .where(users.c.id == id)
        )
        result = await execute_read(db, statement, self.op("get_short_info"))
        return scan_one(result, shared_schemas.UserShortInfo)


user = CRUDUser()


# =============================================================================
# 2. file_categories / files
# =============================================================================
class CRUDFileCategory(
    CRUDBase[shared_models.FileCategory, shared_schemas.FileCategoryCreate, shared_schemas.FileCategoryCreate]
):
    def __init__(self):
        super().__init__(model=shared_models.FileCategory)

    async def get_by_name(self, db: AsyncSession, *, name: str) -> Optional[shared_models.FileCategory]:
        return next(iter(await self.get_multi(db, name=name, limit=1)), None)


file_category = CRUDFileCategory()


class CRUDFile(CRUDBase[shared_models.File, shared_schemas.FileCreate, shared_schemas.FileCreate]):
    def __init__(self):
        super().__init__(model=shared_models.File)

    async def get_by_category(
        self, db: AsyncSession, *, category_id: int, skip: int = 0, limit: int = 100
    ) -> List[shared_models.File]:
        """Files of a category, newest first."""
        return await self.get_multi(
            db, category_id=category_id, skip=skip, limit=limit,
            order_by=desc(self.table.c.created_at),
        )

    async def get_latest_by_category(self, db: AsyncSession, *, category_id: int) -> Optional[shared_models.File]:
        """
        The most recent file of a category: latest target date first, then the
        latest upload.
        """
        statement = (
            select(shared_models.File)
            .where(self.table.c.category_id == category_id)
            .order_by(
                self.table.c.target_date.desc().nulls_last(),
                self.table.c.created_at.desc(),
                self.table.c.id.desc(),
            )
            .limit(1)
        )
        result = await execute_read(db, statement, self.op("get_latest_by_category"))
        return result.scalars().first()


file = CRUDFile()


# =============================================================================
# 3. document_status
# =============================================================================
class CRUDDocumentStatus(
    CRUDBase[shared_models.DocumentStatus, shared_schemas.DocumentStatusCreate, shared_schemas.DocumentStatusCreate]
):
    def __init__(self):
        super().__init__(model=shared_models.DocumentStatus)

    async def get_all(self, db: AsyncSession) -> List[shared_models.DocumentStatus]:
        return await self.get_multi(db, limit=1000, order_by=self.table.c.sort_order)

    async def get_by_code(self, db: AsyncSession, *, code: str) -> Optional[shared_models.DocumentStatus]:
        statement = select(shared_models.DocumentStatus).where(self.table.c.code == code)
        result = await execute_read(db, statement, self.op("get_by_code"))
        return result.scalars().one_or_none()

    async def id_for_code(self, db: AsyncSession, *, code: str) -> int:
        """Status id by code; raises NotFoundError for an unknown code."""
        statement = select(self.table.c.id).where(self.table.c.code == code)
        result = await execute_read(db, statement, self.op("id_for_code"))
        status_id = result.scalar_one_or_none()
        if status_id is None:
            raise NotFoundError(self.op("id_for_code"), f"document status '{code}' not found")
        return status_id

    async def ensure_defaults(self, db: AsyncSession) -> None:
        """Inserts the default statuses that are missing (by code)."""
        async with transaction(db, self.op("ensure_defaults")):
            statement = dialect_insert(db, self.table).values(
                [{"code": code, "name": name, "sort_order": order} for code, name, order in DEFAULT_DOCUMENT_STATUSES]
            ).on_conflict_do_nothing(index_elements=["code"])
            await db.execute(statement)


document_status = CRUDDocumentStatus()


# =============================================================================
# 4. File attachment link tables
# =============================================================================
class FileLinks:
    """
    Attachment table `<entity>_file_links(<owner_key>, file_id)`.

    Linking ignores pairs that already exist; loading returns the files
    newest first.
    """
    def __init__(self, link_model, owner_key: str):
        self.table = link_model.__table__
        self.owner_column = self.table.c[owner_key]
        self.file_column = self.table.c.file_id
        self.name = self.table.name

    def op(self, action: str) -> str:
        return f"repo.{self.name}.{action}"

    async def add_links(self, db: AsyncSession, owner_id: int, file_ids: Iterable[int]) -> None:
        """Bulk upsert-or-ignore; runs inside the caller's transaction."""
        ids = list(dict.fromkeys(file_ids))
        if not ids:
            return
        statement = dialect_insert(db, self.table).values(
            [{self.owner_column.key: owner_id, "file_id": file_id} for file_id in ids]
        ).on_conflict_do_nothing()
        await db.execute(statement)

    async def remove_links(self, db: AsyncSession, owner_id: int) -> None:
        await db.execute(delete(self.table).where(self.owner_column == owner_id))

    async def link(self, db: AsyncSession, *, owner_id: int, file_ids: Iterable[int]) -> None:
        async with transaction(db, self.op("link")):
            await self.add_links(db, owner_id, file_ids)

    async def unlink_all(self, db: AsyncSession, *, owner_id: int) -> None:
        async with transaction(db, self.op("unlink_all")):
            await self.remove_links(db, owner_id)

    async def replace(self, db: AsyncSession, *, owner_id: int, file_ids: Iterable[int]) -> None:
        """Swaps the full set of attachments in one transaction."""
        async with transaction(db, self.op("replace")):
            await self.remove_links(db, owner_id)
            await self.add_links(db, owner_id, file_ids)

    async def load(self, db: AsyncSession, *, owner_id: int) -> List[shared_schemas.FileResponse]:
        files = shared_models.File.__table__
        statement = (
            select(
                files.c.id, files.c.file_name, files.c.object_key, files.c.category_id,
                files.c.mime_type, files.c.size_bytes, files.c.target_date, files.c.created_at,
            )
            .select_from(files.join(self.table, self.file_column == files.c.id))
            .where(self.owner_column == owner_id)
            .order_by(files.c.created_at.desc(), files.c.id.desc())
        )
        result = await execute_read(db, statement, self.op("load"))
        return scan_all(result, shared_schemas.FileResponse)


# =============================================================================
# 5. Status history
# =============================================================================
class StatusHistory:
    """
    Append-only status trail `<entity>_status_history`. Only the newest
    entry's comment may be edited afterwards.
    """
    def __init__(self, history_model, owner_key: str = "document_id"):
        self.table = history_model.__table__
        self.owner_column = self.table.c[owner_key]
        self.name = self.table.name

    def op(self, action: str) -> str:
        return f"repo.{self.name}.{action}"

    async def append(
        self,
        db: AsyncSession,
        *,
        owner_id: int,
        from_status_id: Optional[int],
        to_status_id: int,
        changed_by_user_id: Optional[int],
        comment: Optional[str] = None,
    ) -> None:
        """Adds an entry inside the caller's transaction."""
        await db.execute(
            self.table.insert().values(
                **{self.owner_column.key: owner_id},
                from_status_id=from_status_id,
                to_status_id=to_status_id,
                changed_by_user_id=changed_by_user_id,
                comment=comment,
            )
        )

    async def list(self, db: AsyncSession, *, owner_id: int) -> List[shared_schemas.StatusHistoryEntry]:
        statuses = shared_models.DocumentStatus.__table__
        from_status = statuses.alias("from_status")
        to_status = statuses.alias("to_status")
        joined = (
            self.table
            .outerjoin(from_status, from_status.c.id == self.table.c.from_status_id)
            .join(to_status, to_status.c.id == self.table.c.to_status_id)
        )
        joined, changed_by_columns = user_fio_columns(self.table.c.changed_by_user_id, "changed_by", select_from=joined)
        statement = (
            select(
                self.table.c.id, self.table.c.changed_at, self.table.c.comment,
                from_status.c.id.label("from_id"), from_status.c.code.label("from_code"),
                from_status.c.name.label("from_name"),
                to_status.c.id.label("to_id"), to_status.c.code.label("to_code"),
                to_status.c.name.label("to_name"),
                *changed_by_columns,
            )
            .select_from(joined)
            .where(self.owner_column == owner_id)
            .order_by(self.table.c.changed_at.desc(), self.table.c.id.desc())
        )
        result = await execute_read(db, statement, self.op("list"))
        return [
            shared_schemas.StatusHistoryEntry(
                id=row["id"],
                changed_at=row["changed_at"],
                comment=row["comment"],
                from_status=nested(row, "from", shared_schemas.DocumentStatusShort),
                to_status=nested(row, "to", shared_schemas.DocumentStatusShort),
                changed_by=nested(row, "changed_by", shared_schemas.UserShortInfo),
            )
            for row in result.mappings().all()
        ]

    async def comment_latest(self, db: AsyncSession, *, owner_id: int, comment: str) -> None:
        """
        Sets the comment of the newest history entry. The status change itself
        has already happened; NotFound when the document has no history yet.
        """
        op = self.op("comment_latest")
        latest = (
            select(self.table.c.id)
            .where(self.owner_column == owner_id)
            .order_by(self.table.c.changed_at.desc(), self.table.c.id.desc())
            .limit(1)
            .scalar_subquery()
        )
        async with transaction(db, op):
            result = await db.execute(
                update(self.table).where(self.table.c.id == latest).values(comment=comment)
            )
            if result.rowcount == 0:
                raise NotFoundError(op, f"no status history for {owner_id}")
