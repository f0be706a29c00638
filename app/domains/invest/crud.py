# app/domains/invest/crud.py

"""
Repositories of the 'invest' domain.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, execute_read
from app.core.exceptions import NotFoundError
from app.core.query_builder import SetBuilder, WhereBuilder, edit_values
from app.core.scanning import nested
from app.domains.shared.crud import FileLinks, user_fio_columns
from app.domains.shared.schemas import UserShortInfo
from . import models as invest_models
from . import schemas as invest_schemas

logger = logging.getLogger(__name__)


# =============================================================================
# 1. Dictionaries
# =============================================================================
class CRUDInvestmentType(
    CRUDBase[invest_models.InvestmentType, invest_schemas.InvestmentTypeCreate, invest_schemas.InvestmentTypeCreate]
):
    def __init__(self):
        super().__init__(model=invest_models.InvestmentType)

    async def get_all(self, db: AsyncSession) -> List[invest_models.InvestmentType]:
        return await self.get_multi(db, limit=1000, order_by=self.table.c.name)


investment_type = CRUDInvestmentType()


class CRUDInvestmentStatus(
    CRUDBase[invest_models.InvestmentStatus, invest_schemas.InvestmentStatusCreate, invest_schemas.InvestmentStatusCreate]
):
    def __init__(self):
        super().__init__(model=invest_models.InvestmentStatus)

    async def get_all(self, db: AsyncSession) -> List[invest_models.InvestmentStatus]:
        """Statuses in display order."""
        return await self.get_multi(db, limit=1000, order_by=self.table.c.display_order)


investment_status = CRUDInvestmentStatus()


# =============================================================================
# 2. Investments
# =============================================================================
class CRUDInvestment(
    CRUDBase[invest_models.Investment, invest_schemas.InvestmentCreate, invest_schemas.InvestmentUpdate]
):
    def __init__(self):
        super().__init__(model=invest_models.Investment)
        self.files = FileLinks(invest_models.InvestmentFileLink, "investment_id")

    def _select(self):
        investments = self.table
        types = invest_models.InvestmentType.__table__
        statuses = invest_models.InvestmentStatus.__table__
        joined = (
            investments
            .outerjoin(types, types.c.id == investments.c.type_id)
            .outerjoin(statuses, statuses.c.id == investments.c.status_id)
        )
        joined, created_by_columns = user_fio_columns(investments.c.created_by_user_id, "created_by", select_from=joined)
        joined, updated_by_columns = user_fio_columns(investments.c.updated_by_user_id, "updated_by", select_from=joined)
        return select(
            investments.c.id, investments.c.name, investments.c.cost, investments.c.comments,
            investments.c.created_at, investments.c.updated_at,
            types.c.id.label("type_id"), types.c.name.label("type_name"),
            statuses.c.id.label("status_id"), statuses.c.name.label("status_name"),
            *created_by_columns, *updated_by_columns,
        ).select_from(joined)

    @staticmethod
    def _scan(row) -> invest_schemas.InvestmentResponse:
        return invest_schemas.InvestmentResponse(
            id=row["id"], name=row["name"], cost=row["cost"], comments=row["comments"],
            created_at=row["created_at"], updated_at=row["updated_at"],
            type=nested(row, "type", invest_schemas.NamedRef),
            status=nested(row, "status", invest_schemas.NamedRef),
            created_by=nested(row, "created_by", UserShortInfo),
            updated_by=nested(row, "updated_by", UserShortInfo),
        )

    async def get_by_id(self, db: AsyncSession, *, id: int) -> invest_schemas.InvestmentResponse:
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        row = result.mappings().first()
        if row is None:
            raise NotFoundError(self.op("get_by_id"), f"investment {id} not found")
        investment = self._scan(row)
        investment.files = await self.files.load(db, owner_id=id)
        return investment

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[invest_schemas.InvestmentFilter] = None
    ) -> List[invest_schemas.InvestmentResponse]:
        """Investments matching the filters, newest first, with their files."""
        filters = filters or invest_schemas.InvestmentFilter()
        investments = self.table
        where = (
            WhereBuilder()
            .eq(investments.c.status_id, filters.status_id)
            .eq(investments.c.type_id, filters.type_id)
            .ge(investments.c.cost, filters.min_cost)
            .le(investments.c.cost, filters.max_cost)
            .ilike(investments.c.name, filters.name)
            .eq(investments.c.created_by_user_id, filters.created_by_user_id)
        )
        statement = where.apply(self._select()).order_by(investments.c.created_at.desc(), investments.c.id.desc())
        result = await execute_read(db, statement, self.op("get_all"))
        items = [self._scan(row) for row in result.mappings().all()]
        for item in items:
            item.files = await self.files.load(db, owner_id=item.id)
        return items

    async def update(
        self,
        db: AsyncSession,
        *,
        id: int,
        obj_in: invest_schemas.InvestmentUpdate,
        updated_by_user_id: Optional[int] = None,
    ) -> None:
        builder = SetBuilder().extend(edit_values(obj_in, self.table))
        if builder.is_empty:
            return
        builder.set_if_present(self.table.c.updated_by_user_id, updated_by_user_id)
        await super().update(db, id=id, values=builder)


investment = CRUDInvestment()


# =============================================================================
# 3. Active projects
# =============================================================================
class CRUDActiveProject(
    CRUDBase[invest_models.InvestActiveProject, invest_schemas.ActiveProjectCreate, invest_schemas.ActiveProjectUpdate]
):
    def __init__(self):
        super().__init__(model=invest_models.InvestActiveProject)

    async def get_all(
        self, db: AsyncSession, *, category: Optional[str] = None
    ) -> List[invest_models.InvestActiveProject]:
        return await self.get_multi(
            db, category=category, limit=1000,
            order_by=(self.table.c.category, self.table.c.id),
        )


active_project = CRUDActiveProject()
