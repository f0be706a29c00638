# app/domains/reservoir/crud.py

"""
Repositories of the 'reservoir' domain.

Daily data and device summaries are written in batches; each batch is one
transaction, so a failing item leaves the table as it was.
"""

import logging
import datetime as dt
from typing import Iterable, List, Optional

from sqlalchemy import and_, func, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, dialect_insert, execute_read, transaction
from app.core.exceptions import NotFoundError
from app.core.query_builder import SetBuilder, edit_values
from app.core.scanning import scan_all, scan_one
from app.domains.corp.models import Organization
from . import models as reservoir_models
from . import schemas as reservoir_schemas

logger = logging.getLogger(__name__)


def year_ago(day: dt.date) -> dt.date:
    """Same date one year earlier; 29 February maps to 28 February."""
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        return day.replace(year=day.year - 1, day=28)


# =============================================================================
# 1. Reservoirs and level indicators
# =============================================================================
class CRUDReservoir(CRUDBase[reservoir_models.Reservoir, reservoir_schemas.ReservoirCreate, reservoir_schemas.ReservoirCreate]):
    def __init__(self):
        super().__init__(model=reservoir_models.Reservoir)
        self.indicators = reservoir_models.IndicatorHeight.__table__

    async def get_all(self, db: AsyncSession) -> List[reservoir_models.Reservoir]:
        return await self.get_multi(db, limit=1000, order_by=self.table.c.name)

    async def set_indicator(self, db: AsyncSession, *, reservoir_id: int, height: float) -> None:
        """Stores the indicator height, replacing the previous one."""
        async with transaction(db, self.op("set_indicator")):
            statement = dialect_insert(db, self.indicators).values(reservoir_id=reservoir_id, height=height)
            statement = statement.on_conflict_do_update(
                index_elements=[self.indicators.c.reservoir_id],
                set_={"height": statement.excluded.height, "updated_at": func.now()},
            )
            await db.execute(statement)

    async def get_indicator(
        self, db: AsyncSession, *, reservoir_id: int
    ) -> reservoir_schemas.IndicatorHeightResponse:
        statement = select(
            self.indicators.c.reservoir_id, self.indicators.c.height, self.indicators.c.updated_at
        ).where(self.indicators.c.reservoir_id == reservoir_id)
        result = await execute_read(db, statement, self.op("get_indicator"))
        indicator = scan_one(result, reservoir_schemas.IndicatorHeightResponse)
        if indicator is None:
            raise NotFoundError(self.op("get_indicator"), f"no indicator for reservoir {reservoir_id}")
        return indicator


reservoir = CRUDReservoir()


# =============================================================================
# 2. Daily data and snow cover
# =============================================================================
class CRUDReservoirData(
    CRUDBase[reservoir_models.ReservoirData, reservoir_schemas.ReservoirDataItem, reservoir_schemas.ReservoirDataItem]
):
    def __init__(self):
        super().__init__(model=reservoir_models.ReservoirData)
        self.modsnow = reservoir_models.Modsnow.__table__

    async def _upsert_modsnow(self, db: AsyncSession, organization_id: int, day: dt.date, cover: float) -> None:
        statement = dialect_insert(db, self.modsnow).values(organization_id=organization_id, date=day, cover=cover)
        statement = statement.on_conflict_do_update(
            index_elements=[self.modsnow.c.organization_id, self.modsnow.c.date],
            set_={"cover": statement.excluded.cover},
        )
        await db.execute(statement)

    async def upsert_batch(
        self, db: AsyncSession, *, items: Iterable[reservoir_schemas.ReservoirDataItem], user_id: Optional[int] = None
    ) -> None:
        """
        Inserts or replaces the rows keyed by (organization_id, date) together
        with their snow cover values, all in one transaction.
        """
        items = list(items)
        if not items:
            return
        data = self.table
        async with transaction(db, self.op("upsert_batch")):
            for item in items:
                statement = dialect_insert(db, data).values(
                    organization_id=item.organization_id,
                    date=item.date,
                    income_m3_s=item.income_m3_s,
                    release_m3_s=item.release_m3_s,
                    level_m=item.level_m,
                    volume_mln_m3=item.volume_mln_m3,
                    created_by_user_id=user_id,
                    updated_by_user_id=user_id,
                )
                statement = statement.on_conflict_do_update(
                    index_elements=[data.c.organization_id, data.c.date],
                    set_={
                        "income_m3_s": statement.excluded.income_m3_s,
                        "release_m3_s": statement.excluded.release_m3_s,
                        "level_m": statement.excluded.level_m,
                        "volume_mln_m3": statement.excluded.volume_mln_m3,
                        "updated_by_user_id": statement.excluded.updated_by_user_id,
                        "updated_at": func.now(),
                    },
                )
                await db.execute(statement)

                if item.modsnow_current is not None:
                    await self._upsert_modsnow(db, item.organization_id, item.date, item.modsnow_current)
                if item.modsnow_year_ago is not None:
                    await self._upsert_modsnow(db, item.organization_id, year_ago(item.date), item.modsnow_year_ago)
        logger.debug("reservoir data upserted: %d item(s)", len(items))

    async def get_by_date(self, db: AsyncSession, *, day: dt.date) -> List[reservoir_schemas.ReservoirDataResponse]:
        """Rows of a date with organization name and both snow cover values."""
        data = self.table
        orgs = Organization.__table__
        current = self.modsnow.alias("modsnow_current")
        previous = self.modsnow.alias("modsnow_year_ago")
        statement = (
            select(
                data.c.id, data.c.organization_id, orgs.c.name.label("organization_name"), data.c.date,
                data.c.income_m3_s, data.c.release_m3_s, data.c.level_m, data.c.volume_mln_m3,
                current.c.cover.label("modsnow_current"), previous.c.cover.label("modsnow_year_ago"),
                data.c.updated_at,
            )
            .select_from(
                data
                .join(orgs, orgs.c.id == data.c.organization_id)
                .outerjoin(current, and_(current.c.organization_id == data.c.organization_id, current.c.date == data.c.date))
                .outerjoin(
                    previous,
                    and_(previous.c.organization_id == data.c.organization_id, previous.c.date == year_ago(day)),
                )
            )
            .where(data.c.date == day)
            .order_by(orgs.c.name)
        )
        result = await execute_read(db, statement, self.op("get_by_date"))
        return scan_all(result, reservoir_schemas.ReservoirDataResponse)

    async def get_modsnow(
        self, db: AsyncSession, *, organization_id: int, day: dt.date
    ) -> Optional[reservoir_schemas.ModsnowResponse]:
        statement = select(self.modsnow.c.organization_id, self.modsnow.c.date, self.modsnow.c.cover).where(
            self.modsnow.c.organization_id == organization_id, self.modsnow.c.date == day
        )
        result = await execute_read(db, statement, self.op("get_modsnow"))
        return scan_one(result, reservoir_schemas.ModsnowResponse)


reservoir_data = CRUDReservoirData()


# =============================================================================
# 3. Device summary
# =============================================================================
class CRUDDeviceSummary(
    CRUDBase[
        reservoir_models.ReservoirDeviceSummary,
        reservoir_schemas.DeviceSummaryCreate,
        reservoir_schemas.DeviceSummaryPatch,
    ]
):
    def __init__(self):
        super().__init__(model=reservoir_models.ReservoirDeviceSummary)

    async def get_all(self, db: AsyncSession) -> List[reservoir_schemas.DeviceSummaryResponse]:
        summary = self.table
        orgs = Organization.__table__
        statement = (
            select(summary, orgs.c.name.label("organization_name"))
            .select_from(summary.join(orgs, orgs.c.id == summary.c.organization_id))
            .order_by(orgs.c.name, summary.c.device_type_name)
        )
        result = await execute_read(db, statement, self.op("get_all"))
        return scan_all(result, reservoir_schemas.DeviceSummaryResponse)

    async def patch_batch(
        self,
        db: AsyncSession,
        *,
        items: Iterable[reservoir_schemas.DeviceSummaryPatch],
        updated_by_user_id: Optional[int] = None,
    ) -> None:
        """
        Applies each patch to the row with the same (organization_id,
        device_type_name). An unknown key fails the whole batch.
        """
        items = list(items)
        if not items:
            return
        summary = self.table
        op = self.op("patch_batch")
        async with transaction(db, op):
            for item in items:
                key = and_(
                    summary.c.organization_id == item.organization_id,
                    summary.c.device_type_name == item.device_type_name,
                )
                exists = await db.execute(select(summary.c.id).where(key))
                if exists.first() is None:
                    raise NotFoundError(
                        op, f"no device summary for organization {item.organization_id} / '{item.device_type_name}'"
                    )

                builder = SetBuilder().extend(
                    edit_values(item, summary, exclude=("organization_id", "device_type_name"))
                )
                if builder.is_empty:
                    continue
                builder.set(summary.c.updated_by_user_id, updated_by_user_id)
                result = await db.execute(update(summary).where(key).values(**self.touch(builder).values()))
                if result.rowcount == 0:
                    raise NotFoundError(op, f"device summary '{item.device_type_name}' disappeared during update")


device_summary = CRUDDeviceSummary()
