# app/domains/corp/crud.py

"""
Repositories of the 'corp' domain (organization directory).
"""

import logging
from typing import Dict, List, Optional

from sqlalchemy import func, insert, select, delete
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, execute_read, transaction
from app.core.exceptions import NotFoundError
from app.core.query_builder import SetBuilder, WhereBuilder, edit_values
from app.core.scanning import nested, strip_prefix
from . import models as corp_models
from . import schemas as corp_schemas

logger = logging.getLogger(__name__)


# =============================================================================
# 1. Organization types
# =============================================================================
class CRUDOrganizationType(
    CRUDBase[corp_models.OrganizationType, corp_schemas.OrganizationTypeCreate, corp_schemas.OrganizationTypeCreate]
):
    def __init__(self):
        super().__init__(model=corp_models.OrganizationType)

    async def get_all(self, db: AsyncSession) -> List[corp_models.OrganizationType]:
        return await self.get_multi(db, limit=1000, order_by=self.table.c.name)


organization_type = CRUDOrganizationType()


# =============================================================================
# 2. Organizations
# =============================================================================
class CRUDOrganization(
    CRUDBase[corp_models.Organization, corp_schemas.OrganizationCreate, corp_schemas.OrganizationUpdate]
):
    def __init__(self):
        super().__init__(model=corp_models.Organization)
        self.links = corp_models.OrganizationTypeLink.__table__

    async def _write_type_links(self, db: AsyncSession, organization_id: int, type_ids: List[int]) -> None:
        await db.execute(delete(self.links).where(self.links.c.organization_id == organization_id))
        unique_ids = list(dict.fromkeys(type_ids))
        if unique_ids:
            await db.execute(
                insert(self.links),
                [{"organization_id": organization_id, "type_id": type_id} for type_id in unique_ids],
            )

    async def _type_names(self, db: AsyncSession, organization_ids: List[int]) -> Dict[int, List[str]]:
        if not organization_ids:
            return {}
        types = corp_models.OrganizationType.__table__
        statement = (
            select(self.links.c.organization_id, types.c.name)
            .select_from(self.links.join(types, types.c.id == self.links.c.type_id))
            .where(self.links.c.organization_id.in_(organization_ids))
            .order_by(types.c.name)
        )
        result = await execute_read(db, statement, self.op("type_names"))
        names: Dict[int, List[str]] = {}
        for organization_id, name in result.all():
            names.setdefault(organization_id, []).append(name)
        return names

    async def create(self, db: AsyncSession, *, obj_in: corp_schemas.OrganizationCreate) -> int:
        """Inserts the organization and its type links in one transaction."""
        async with transaction(db, self.op("create")):
            new_id = await self.insert_row(db, self.insert_values(obj_in))
            await self._write_type_links(db, new_id, obj_in.type_ids)
        logger.debug("organization %s created with types %s", new_id, obj_in.type_ids)
        return new_id

    def _select(self):
        orgs = self.table
        parent = orgs.alias("parent")
        return (
            select(
                orgs.c.id, orgs.c.name, orgs.c.parent_organization_id,
                parent.c.name.label("parent_organization_name"),
                orgs.c.created_at, orgs.c.updated_at,
            )
            .select_from(orgs.outerjoin(parent, parent.c.id == orgs.c.parent_organization_id))
        )

    async def _scan(self, db: AsyncSession, result) -> List[corp_schemas.OrganizationResponse]:
        rows = result.mappings().all()
        type_names = await self._type_names(db, [row["id"] for row in rows])
        return [
            corp_schemas.OrganizationResponse(**dict(row), types=type_names.get(row["id"], []))
            for row in rows
        ]

    async def get_by_id(self, db: AsyncSession, *, id: int) -> corp_schemas.OrganizationResponse:
        statement = self._select().where(self.table.c.id == id)
        result = await execute_read(db, statement, self.op("get_by_id"))
        organizations = await self._scan(db, result)
        if not organizations:
            raise NotFoundError(self.op("get_by_id"), f"organization {id} not found")
        return organizations[0]

    async def get_all(
        self, db: AsyncSession, *, type_name: Optional[str] = None, parent_organization_id: Optional[int] = None
    ) -> List[corp_schemas.OrganizationResponse]:
        """Organizations ordered by name, optionally only those of one type."""
        where = WhereBuilder().eq(self.table.c.parent_organization_id, parent_organization_id)
        if type_name is not None:
            types = corp_models.OrganizationType.__table__
            has_type = (
                select(self.links.c.organization_id)
                .select_from(self.links.join(types, types.c.id == self.links.c.type_id))
                .where(types.c.name == type_name)
            )
            where.add(self.table.c.id.in_(has_type))
        statement = where.apply(self._select()).order_by(self.table.c.name)
        result = await execute_read(db, statement, self.op("get_all"))
        return await self._scan(db, result)

    async def update(self, db: AsyncSession, *, id: int, obj_in: corp_schemas.OrganizationUpdate) -> None:
        """
        Present fields are updated; `type_ids`, when given, replaces the type
        links in the same transaction.
        """
        builder = SetBuilder().extend(edit_values(obj_in, self.table))
        if builder.is_empty and obj_in.type_ids is None:
            return

        op = self.op("update")
        async with transaction(db, op):
            affected = await self.update_rows(db, id=id, values=self.touch(builder).values())
            if affected == 0:
                raise NotFoundError(op, f"organization {id} not found")
            if obj_in.type_ids is not None:
                await self._write_type_links(db, id, obj_in.type_ids)


organization = CRUDOrganization()


# =============================================================================
# 3. Departments
# =============================================================================
class CRUDDepartment(CRUDBase[corp_models.Department, corp_schemas.DepartmentCreate, corp_schemas.DepartmentUpdate]):
    def __init__(self):
        super().__init__(model=corp_models.Department)

    def _select(self):
        departments = self.table
        orgs = corp_models.Organization.__table__
        return (
            select(
                departments.c.id, departments.c.name, departments.c.description,
                departments.c.created_at, departments.c.updated_at,
                orgs.c.id.label("org_id"), orgs.c.name.label("org_name"),
            )
            .select_from(departments.outerjoin(orgs, orgs.c.id == departments.c.organization_id))
        )

    @staticmethod
    def _scan(row) -> corp_schemas.DepartmentResponse:
        return corp_schemas.DepartmentResponse(
            id=row["id"], name=row["name"], description=row["description"],
            created_at=row["created_at"], updated_at=row["updated_at"],
            organization=nested(row, "org", corp_schemas.OrganizationShort),
        )

    async def get_by_id(self, db: AsyncSession, *, id: int) -> corp_schemas.DepartmentResponse:
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(self.op("get_by_id"), f"department {id} not found")
        return self._scan(row)

    async def get_all(
        self, db: AsyncSession, *, organization_id: Optional[int] = None
    ) -> List[corp_schemas.DepartmentResponse]:
        statement = (
            WhereBuilder().eq(self.table.c.organization_id, organization_id)
            .apply(self._select())
            .order_by(self.table.c.name)
        )
        result = await execute_read(db, statement, self.op("get_all"))
        return [self._scan(row) for row in result.mappings().all()]


department = CRUDDepartment()


# =============================================================================
# 4. Positions
# =============================================================================
class CRUDPosition(CRUDBase[corp_models.Position, corp_schemas.PositionCreate, corp_schemas.PositionUpdate]):
    def __init__(self):
        super().__init__(model=corp_models.Position)

    async def get_all(self, db: AsyncSession) -> List[corp_models.Position]:
        return await self.get_multi(db, limit=1000, order_by=self.table.c.name)


position = CRUDPosition()


# =============================================================================
# 5. Contacts
# =============================================================================
def contact_select():
    """
    Contact columns with organization / department / position left-joined
    under the `org_`, `dept_` and `pos_` prefixes.
    """
    contacts = corp_models.Contact.__table__
    orgs = corp_models.Organization.__table__
    departments = corp_models.Department.__table__
    positions = corp_models.Position.__table__
    return (
        select(
            contacts.c.id, contacts.c.fio, contacts.c.email, contacts.c.phone, contacts.c.ip_phone,
            contacts.c.dob, contacts.c.external_organization_name,
            contacts.c.created_at, contacts.c.updated_at,
            orgs.c.id.label("org_id"), orgs.c.name.label("org_name"),
            departments.c.id.label("dept_id"), departments.c.name.label("dept_name"),
            positions.c.id.label("pos_id"), positions.c.name.label("pos_name"),
            positions.c.description.label("pos_description"),
        )
        .select_from(
            contacts
            .outerjoin(orgs, orgs.c.id == contacts.c.organization_id)
            .outerjoin(departments, departments.c.id == contacts.c.department_id)
            .outerjoin(positions, positions.c.id == contacts.c.position_id)
        )
    )


def scan_contact(row, prefix: Optional[str] = None) -> corp_schemas.ContactResponse:
    """Builds a ContactResponse from a `contact_select` row (optionally nested under `prefix`)."""
    values = strip_prefix(row, prefix) if prefix else dict(row)
    plain = {
        key: value for key, value in values.items()
        if not key.startswith(("org_", "dept_", "pos_"))
    }
    return corp_schemas.ContactResponse(
        **plain,
        organization=nested(values, "org", corp_schemas.OrganizationShort),
        department=nested(values, "dept", corp_schemas.DepartmentShort),
        position=nested(values, "pos", corp_schemas.PositionShort),
    )


class CRUDContact(CRUDBase[corp_models.Contact, corp_schemas.ContactCreate, corp_schemas.ContactUpdate]):
    def __init__(self):
        super().__init__(model=corp_models.Contact)

    async def get_by_id(self, db: AsyncSession, *, id: int) -> corp_schemas.ContactResponse:
        statement = contact_select().where(self.table.c.id == id)
        result = await execute_read(db, statement, self.op("get_by_id"))
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(self.op("get_by_id"), f"contact {id} not found")
        return scan_contact(row)

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[corp_schemas.ContactFilter] = None
    ) -> List[corp_schemas.ContactResponse]:
        """Contacts ordered by name."""
        filters = filters or corp_schemas.ContactFilter()
        where = (
            WhereBuilder()
            .eq(self.table.c.organization_id, filters.organization_id)
            .eq(self.table.c.department_id, filters.department_id)
            .ilike(self.table.c.fio, filters.fio)
        )
        statement = where.apply(contact_select()).order_by(self.table.c.fio)
        result = await execute_read(db, statement, self.op("get_all"))
        return [scan_contact(row) for row in result.mappings().all()]


contact = CRUDContact()


# =============================================================================
# 6. Fast calls
# =============================================================================
class CRUDFastCall(CRUDBase[corp_models.FastCall, corp_schemas.FastCallCreate, corp_schemas.FastCallUpdate]):
    def __init__(self):
        super().__init__(model=corp_models.FastCall)

    def _select(self):
        contacts_select = contact_select()
        fast_calls = self.table
        contacts = corp_models.Contact.__table__
        return (
            contacts_select
            .add_columns(fast_calls.c.id.label("fc_id"), fast_calls.c.position.label("fc_position"))
            .join_from(contacts, fast_calls, fast_calls.c.contact_id == contacts.c.id)
        )

    @staticmethod
    def _scan(row) -> corp_schemas.FastCallResponse:
        contact_values = {key: value for key, value in row.items() if not key.startswith("fc_")}
        return corp_schemas.FastCallResponse(
            id=row["fc_id"], position=row["fc_position"], contact=scan_contact(contact_values)
        )

    async def get_by_id(self, db: AsyncSession, *, id: int) -> corp_schemas.FastCallResponse:
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(self.op("get_by_id"), f"fast call {id} not found")
        return self._scan(row)

    async def get_all(self, db: AsyncSession) -> List[corp_schemas.FastCallResponse]:
        """Fast-call list in display order."""
        statement = self._select().order_by(self.table.c.position, self.table.c.id)
        result = await execute_read(db, statement, self.op("get_all"))
        return [self._scan(row) for row in result.mappings().all()]


fast_call = CRUDFastCall()


# =============================================================================
# 7. Receptions
# =============================================================================
class CRUDReception(CRUDBase[corp_models.Reception, corp_schemas.ReceptionCreate, corp_schemas.ReceptionUpdate]):
    def __init__(self):
        super().__init__(model=corp_models.Reception)

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[corp_schemas.ReceptionFilter] = None
    ) -> List[corp_models.Reception]:
        """Receptions, latest scheduled first."""
        filters = filters or corp_schemas.ReceptionFilter()
        where = (
            WhereBuilder()
            .eq(self.table.c.status, filters.status)
            .ge(self.table.c.date, filters.start_date)
            .lt(self.table.c.date, filters.end_date)
        )
        statement = (
            where.apply(select(corp_models.Reception))
            .order_by(self.table.c.date.desc(), self.table.c.created_at.desc(), self.table.c.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await execute_read(db, statement, self.op("get_all"))
        return list(result.scalars().all())

    async def count_by_status(self, db: AsyncSession) -> Dict[str, int]:
        statement = select(self.table.c.status, func.count()).group_by(self.table.c.status)
        result = await execute_read(db, statement, self.op("count_by_status"))
        return {status: count for status, count in result.all()}


reception = CRUDReception()
