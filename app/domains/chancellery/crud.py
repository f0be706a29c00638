# app/domains/chancellery/crud.py

"""
Repositories of the 'chancellery' domain.

`DocumentCRUD` serves both instructions and reports: each kind has its own
tables (type dictionary, file links, document links, status history) but
identical behaviour, so one class is parametrized with the models.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, dialect_insert, execute_read, transaction
from app.core.exceptions import InvalidStatusError, NotFoundError
from app.core.query_builder import SetBuilder, WhereBuilder, edit_values
from app.core.scanning import nested, scan_all
from app.domains.corp.models import Contact, Organization
from app.domains.corp.schemas import ContactShort, OrganizationShort
from app.domains.shared.crud import FileLinks, StatusHistory, document_status, user_fio_columns
from app.domains.shared.models import DocumentStatus
from app.domains.shared.schemas import DocumentStatusShort, StatusHistoryEntry, UserShortInfo
from . import models as chancellery_models
from . import schemas as chancellery_schemas

logger = logging.getLogger(__name__)

INITIAL_STATUS = "draft"


# =============================================================================
# 1. Instructions / reports
# =============================================================================
class DocumentCRUD(CRUDBase):
    """
    Workflow documents with status history.

    New documents start in `draft` with an initial history entry; every
    later status change writes the status and its history row in one
    transaction.
    """
    def __init__(self, model, *, type_model, file_link_model, document_link_model, history_model):
        super().__init__(model=model)
        self.types = CRUDBase(model=type_model)
        self.files = FileLinks(file_link_model, "document_id")
        self.document_links = document_link_model.__table__
        self.history = StatusHistory(history_model, "document_id")

    # --- create ---------------------------------------------------------------
    async def create(
        self, db: AsyncSession, *, obj_in: chancellery_schemas.DocumentCreate, created_by_user_id: Optional[int] = None
    ) -> int:
        op = self.op("create")
        async with transaction(db, op):
            status_id = await document_status.id_for_code(db, code=INITIAL_STATUS)
            new_id = await self.insert_row(
                db, self.insert_values(obj_in, status_id=status_id, created_by_user_id=created_by_user_id)
            )
            await self.history.append(
                db, owner_id=new_id, from_status_id=None, to_status_id=status_id,
                changed_by_user_id=created_by_user_id,
            )
        logger.debug("%s %s created", self.name, new_id)
        return new_id

    # --- read -----------------------------------------------------------------
    def _select(self):
        docs = self.table
        types = self.types.table
        statuses = DocumentStatus.__table__
        orgs = Organization.__table__
        responsible = Contact.__table__.alias("responsible")
        executor = Contact.__table__.alias("executor")

        joined = (
            docs
            .outerjoin(types, types.c.id == docs.c.type_id)
            .outerjoin(statuses, statuses.c.id == docs.c.status_id)
            .outerjoin(orgs, orgs.c.id == docs.c.organization_id)
            .outerjoin(responsible, responsible.c.id == docs.c.responsible_contact_id)
            .outerjoin(executor, executor.c.id == docs.c.executor_contact_id)
        )
        joined, created_by_columns = user_fio_columns(docs.c.created_by_user_id, "created_by", select_from=joined)
        joined, updated_by_columns = user_fio_columns(docs.c.updated_by_user_id, "updated_by", select_from=joined)
        return select(
            docs.c.id, docs.c.name, docs.c.number, docs.c.document_date, docs.c.description,
            docs.c.due_date, docs.c.parent_document_id, docs.c.created_at, docs.c.updated_at,
            types.c.id.label("type_id"), types.c.name.label("type_name"),
            statuses.c.id.label("status_id"), statuses.c.code.label("status_code"),
            statuses.c.name.label("status_name"),
            orgs.c.id.label("org_id"), orgs.c.name.label("org_name"),
            responsible.c.id.label("resp_id"), responsible.c.fio.label("resp_fio"),
            executor.c.id.label("exec_id"), executor.c.fio.label("exec_fio"),
            *created_by_columns, *updated_by_columns,
        ).select_from(joined)

    def _scan(self, row) -> chancellery_schemas.DocumentResponse:
        return chancellery_schemas.DocumentResponse(
            id=row["id"],
            name=row["name"],
            number=row["number"],
            document_date=row["document_date"],
            description=row["description"],
            due_date=row["due_date"],
            parent_document_id=row["parent_document_id"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            type=nested(row, "type", chancellery_schemas.DocumentTypeShort),
            status=nested(row, "status", DocumentStatusShort),
            organization=nested(row, "org", OrganizationShort),
            responsible=nested(row, "resp", ContactShort),
            executor=nested(row, "exec", ContactShort),
            created_by=nested(row, "created_by", UserShortInfo),
            updated_by=nested(row, "updated_by", UserShortInfo),
        )

    async def get_by_id(self, db: AsyncSession, *, id: int) -> chancellery_schemas.DocumentResponse:
        """The document with its relations, files and linked documents."""
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(self.op("get_by_id"), f"{self.name} {id} not found")
        document = self._scan(row)
        document.files = await self.files.load(db, owner_id=id)
        document.linked_documents = await self.load_document_links(db, document_id=id)
        return document

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[chancellery_schemas.DocumentFilter] = None
    ) -> List[chancellery_schemas.DocumentResponse]:
        filters = filters or chancellery_schemas.DocumentFilter()
        docs = self.table
        statuses = DocumentStatus.__table__
        where = (
            WhereBuilder()
            .eq(docs.c.type_id, filters.type_id)
            .eq(docs.c.status_id, filters.status_id)
            .eq(statuses.c.code, filters.status_code)
            .eq(docs.c.organization_id, filters.organization_id)
            .eq(docs.c.responsible_contact_id, filters.responsible_contact_id)
            .eq(docs.c.executor_contact_id, filters.executor_contact_id)
            .ge(docs.c.document_date, filters.start_date)
            .le(docs.c.document_date, filters.end_date)
            .ge(docs.c.due_date, filters.due_date_from)
            .le(docs.c.due_date, filters.due_date_to)
            .ilike(docs.c.name, filters.name)
            .ilike(docs.c.number, filters.number)
        )
        statement = where.apply(self._select()).order_by(
            docs.c.document_date.desc(), docs.c.created_at.desc(), docs.c.id.desc()
        )
        result = await execute_read(db, statement, self.op("get_all"))
        documents = [self._scan(row) for row in result.mappings().all()]
        for document in documents:
            document.files = await self.files.load(db, owner_id=document.id)
        return documents

    # --- edit / delete ----------------------------------------------------------
    async def update(
        self,
        db: AsyncSession,
        *,
        id: int,
        obj_in: chancellery_schemas.DocumentUpdate,
        updated_by_user_id: Optional[int] = None,
    ) -> None:
        builder = SetBuilder().extend(edit_values(obj_in, self.table))
        if builder.is_empty:
            return
        builder.set_if_present(self.table.c.updated_by_user_id, updated_by_user_id)
        await super().update(db, id=id, values=builder)

    # --- status workflow ----------------------------------------------------------
    async def change_status(
        self,
        db: AsyncSession,
        *,
        id: int,
        change: chancellery_schemas.StatusChange,
        changed_by_user_id: Optional[int] = None,
    ) -> None:
        """
        Moves the document to `change.status_code` and records the change.
        With `expected_status_code` the UPDATE only matches a document that
        is still in that status; otherwise InvalidStatusError.
        """
        op = self.op("change_status")
        docs = self.table
        async with transaction(db, op):
            to_status_id = await document_status.id_for_code(db, code=change.status_code)
            result = await db.execute(select(docs.c.status_id).where(docs.c.id == id).with_for_update())
            from_status_id = result.scalar_one_or_none()
            if from_status_id is None:
                raise NotFoundError(op, f"{self.name} {id} not found")

            where = []
            if change.expected_status_code is not None:
                expected_id = await document_status.id_for_code(db, code=change.expected_status_code)
                where.append(docs.c.status_id == expected_id)

            values = SetBuilder().set(docs.c.status_id, to_status_id)
            values.set_if_present(docs.c.updated_by_user_id, changed_by_user_id)
            affected = await self.update_rows(db, id=id, values=self.touch(values).values(), where=where)
            if affected == 0:
                raise InvalidStatusError(op, f"{self.name} {id} not in status {change.expected_status_code}")

            await self.history.append(
                db, owner_id=id, from_status_id=from_status_id, to_status_id=to_status_id,
                changed_by_user_id=changed_by_user_id, comment=change.comment,
            )
        logger.debug("%s %s -> %s", self.name, id, change.status_code)

    async def get_status_history(self, db: AsyncSession, *, id: int) -> List[StatusHistoryEntry]:
        return await self.history.list(db, owner_id=id)

    async def comment_latest_status(self, db: AsyncSession, *, id: int, comment: str) -> None:
        await self.history.comment_latest(db, owner_id=id, comment=comment)

    # --- linked documents ---------------------------------------------------------
    async def link_documents(
        self,
        db: AsyncSession,
        *,
        document_id: int,
        links: Iterable[chancellery_schemas.DocumentLinkCreate],
        created_by_user_id: Optional[int] = None,
    ) -> None:
        """Upserts links; an existing link only gets its description replaced."""
        links = list(links)
        if not links:
            return
        table = self.document_links
        async with transaction(db, self.op("link_documents")):
            for link in links:
                statement = dialect_insert(db, table).values(
                    document_id=document_id,
                    linked_document_type=link.linked_document_type,
                    linked_document_id=link.linked_document_id,
                    link_description=link.link_description,
                    created_by_user_id=created_by_user_id,
                )
                statement = statement.on_conflict_do_update(
                    index_elements=[table.c.document_id, table.c.linked_document_type, table.c.linked_document_id],
                    set_={"link_description": statement.excluded.link_description},
                )
                await db.execute(statement)

    async def unlink_documents(self, db: AsyncSession, *, document_id: int) -> None:
        table = self.document_links
        async with transaction(db, self.op("unlink_documents")):
            await db.execute(delete(table).where(table.c.document_id == document_id))

    async def load_document_links(
        self, db: AsyncSession, *, document_id: int
    ) -> List[chancellery_schemas.DocumentLinkResponse]:
        table = self.document_links
        statement = (
            select(
                table.c.id, table.c.linked_document_type, table.c.linked_document_id,
                table.c.link_description, table.c.created_at,
            )
            .where(table.c.document_id == document_id)
            .order_by(table.c.created_at.desc(), table.c.id.desc())
        )
        result = await execute_read(db, statement, self.op("load_document_links"))
        return scan_all(result, chancellery_schemas.DocumentLinkResponse)

    async def get_types(self, db: AsyncSession) -> list:
        return await self.types.get_multi(db, limit=1000, order_by=self.types.table.c.name)


instruction = DocumentCRUD(
    chancellery_models.Instruction,
    type_model=chancellery_models.InstructionType,
    file_link_model=chancellery_models.InstructionFileLink,
    document_link_model=chancellery_models.InstructionDocumentLink,
    history_model=chancellery_models.InstructionStatusHistory,
)

report = DocumentCRUD(
    chancellery_models.Report,
    type_model=chancellery_models.ReportType,
    file_link_model=chancellery_models.ReportFileLink,
    document_link_model=chancellery_models.ReportDocumentLink,
    history_model=chancellery_models.ReportStatusHistory,
)


# =============================================================================
# 2. Legal documents
# =============================================================================
class CRUDLegalDocument(
    CRUDBase[
        chancellery_models.LegalDocument,
        chancellery_schemas.LegalDocumentCreate,
        chancellery_schemas.LegalDocumentUpdate,
    ]
):
    def __init__(self):
        super().__init__(model=chancellery_models.LegalDocument)
        self.types = CRUDBase(model=chancellery_models.LegalDocumentType)
        self.files = FileLinks(chancellery_models.LegalDocumentFileLink, "document_id")

    def _select(self):
        docs = self.table
        types = self.types.table
        joined = docs.outerjoin(types, types.c.id == docs.c.type_id)
        joined, created_by_columns = user_fio_columns(docs.c.created_by_user_id, "created_by", select_from=joined)
        joined, updated_by_columns = user_fio_columns(docs.c.updated_by_user_id, "updated_by", select_from=joined)
        return select(
            docs.c.id, docs.c.name, docs.c.number, docs.c.document_date,
            docs.c.created_at, docs.c.updated_at,
            types.c.id.label("type_id"), types.c.name.label("type_name"),
            *created_by_columns, *updated_by_columns,
        ).select_from(joined)

    @staticmethod
    def _scan(row) -> chancellery_schemas.LegalDocumentResponse:
        return chancellery_schemas.LegalDocumentResponse(
            id=row["id"], name=row["name"], number=row["number"], document_date=row["document_date"],
            created_at=row["created_at"], updated_at=row["updated_at"],
            type=nested(row, "type", chancellery_schemas.DocumentTypeShort),
            created_by=nested(row, "created_by", UserShortInfo),
            updated_by=nested(row, "updated_by", UserShortInfo),
        )

    async def get_by_id(self, db: AsyncSession, *, id: int) -> chancellery_schemas.LegalDocumentResponse:
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(self.op("get_by_id"), f"legal document {id} not found")
        document = self._scan(row)
        document.files = await self.files.load(db, owner_id=id)
        return document

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[chancellery_schemas.LegalDocumentFilter] = None
    ) -> List[chancellery_schemas.LegalDocumentResponse]:
        filters = filters or chancellery_schemas.LegalDocumentFilter()
        docs = self.table
        where = (
            WhereBuilder()
            .eq(docs.c.type_id, filters.type_id)
            .ge(docs.c.document_date, filters.start_date)
            .le(docs.c.document_date, filters.end_date)
            .ilike(docs.c.name, filters.name)
            .ilike(docs.c.number, filters.number)
        )
        statement = where.apply(self._select()).order_by(
            docs.c.document_date.desc(), docs.c.created_at.desc(), docs.c.id.desc()
        )
        result = await execute_read(db, statement, self.op("get_all"))
        return [self._scan(row) for row in result.mappings().all()]

    async def update(
        self,
        db: AsyncSession,
        *,
        id: int,
        obj_in: chancellery_schemas.LegalDocumentUpdate,
        updated_by_user_id: Optional[int] = None,
    ) -> None:
        builder = SetBuilder().extend(edit_values(obj_in, self.table))
        if builder.is_empty:
            return
        builder.set_if_present(self.table.c.updated_by_user_id, updated_by_user_id)
        await super().update(db, id=id, values=builder)

    async def get_types(self, db: AsyncSession) -> list:
        return await self.types.get_multi(db, limit=1000, order_by=self.types.table.c.name)


legal_document = CRUDLegalDocument()
