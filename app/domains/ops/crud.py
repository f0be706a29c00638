# app/domains/ops/crud.py

"""
Repositories of the 'ops' domain.

The shutdown repository owns the shutdown / idle discharge consistency
protocol: a shutdown may carry one linked idle discharge whose flow rate
is always re-derived from the reported volume and the shutdown's time
window. Create, edit and delete each run as a single transaction.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, func, insert, or_, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.config import settings
from app.core.crud_base import CRUDBase, execute_read, transaction
from app.core.exceptions import InvalidFlowRateError, NotFoundError
from app.core.query_builder import SetBuilder, WhereBuilder, edit_values
from app.core.scanning import as_utc, nested, strip_prefix
from app.domains.corp.models import Organization
from app.domains.shared.crud import FileLinks, user_fio_columns
from app.domains.shared.schemas import UserShortInfo
from . import models as ops_models
from . import schemas as ops_schemas

logger = logging.getLogger(__name__)


def calculate_flow_rate(start: datetime, end: Optional[datetime], volume_thousand_m3: float) -> float:
    """
    Flow rate in m3/s of `volume_thousand_m3` released between `start` and
    `end`. Raises InvalidFlowRateError when there is no end or the window
    is empty or negative.
    """
    op = "ops.calculate_flow_rate"
    if end is None:
        raise InvalidFlowRateError(op, "end_time is required to calculate the flow rate")
    duration = (as_utc(end) - as_utc(start)).total_seconds()
    if duration <= 0:
        raise InvalidFlowRateError(op, "duration is zero or negative")
    return volume_thousand_m3 * 1000 / duration


def operational_day(day: date, tzinfo=timezone.utc) -> Tuple[datetime, datetime]:
    """[day HH:00, next day HH:00) where HH is the configured day start hour."""
    start = datetime.combine(day, time(hour=settings.SHUTDOWN_DAY_START_HOUR), tzinfo=tzinfo)
    return start, start + timedelta(days=1)


def _organization_name_join(select_from, organization_id_column):
    orgs = Organization.__table__
    return select_from.outerjoin(orgs, orgs.c.id == organization_id_column), orgs.c.name.label("organization_name")


# =============================================================================
# 1. Shutdowns
# =============================================================================
class CRUDShutdown(CRUDBase[ops_models.Shutdown, ops_schemas.ShutdownCreate, ops_schemas.ShutdownUpdate]):
    def __init__(self):
        super().__init__(model=ops_models.Shutdown)
        self.discharges = ops_models.IdleWaterDischarge.__table__
        self.files = FileLinks(ops_models.ShutdownFileLink, "shutdown_id")

    # --- create ---------------------------------------------------------------
    async def create(self, db: AsyncSession, *, obj_in: ops_schemas.ShutdownCreate) -> int:
        """
        Inserts the shutdown and, when a volume is given, its idle discharge.
        The flow rate is computed before anything is written.
        """
        op = self.op("create")
        flow_rate = None
        if obj_in.idle_discharge_volume_thousand_m3 is not None:
            flow_rate = calculate_flow_rate(obj_in.start_time, obj_in.end_time, obj_in.idle_discharge_volume_thousand_m3)

        async with transaction(db, op):
            idle_discharge_id = None
            if flow_rate is not None:
                result = await db.execute(
                    insert(self.discharges).values(
                        organization_id=obj_in.organization_id,
                        start_time=obj_in.start_time,
                        end_time=obj_in.end_time,
                        flow_rate_m3_s=flow_rate,
                        reason=obj_in.reason,
                        created_by=obj_in.created_by_user_id,
                    ).returning(self.discharges.c.id)
                )
                idle_discharge_id = result.scalar_one()

            new_id = await self.insert_row(
                db, self.insert_values(obj_in, idle_discharge_id=idle_discharge_id)
            )
        logger.debug("shutdown %s created (idle discharge %s)", new_id, idle_discharge_id)
        return new_id

    # --- read -----------------------------------------------------------------
    def _select(self):
        shutdowns = self.table
        view = ops_models.idle_discharge_view
        joined, organization_name = _organization_name_join(shutdowns, shutdowns.c.organization_id)
        joined, created_by_columns = user_fio_columns(
            shutdowns.c.created_by_user_id, "created_by", select_from=joined
        )
        joined = joined.outerjoin(view, view.c.id == shutdowns.c.idle_discharge_id)
        return select(
            shutdowns.c.id, shutdowns.c.organization_id, organization_name,
            shutdowns.c.start_time, shutdowns.c.end_time, shutdowns.c.reason,
            shutdowns.c.generation_loss_mwh, shutdowns.c.reported_by_contact_id,
            shutdowns.c.idle_discharge_id,
            (view.c.total_volume_mln_m3 * 1000.0).label("idle_discharge_volume_thousand_m3"),
            shutdowns.c.created_at, shutdowns.c.updated_at,
            *created_by_columns,
        ).select_from(joined)

    async def _scan(self, db: AsyncSession, result) -> List[ops_schemas.ShutdownResponse]:
        items = []
        for row in result.mappings().all():
            values = {key: value for key, value in row.items() if not key.startswith("created_by_")}
            item = ops_schemas.ShutdownResponse(
                **values, created_by=nested(row, "created_by", UserShortInfo)
            )
            item.files = await self.files.load(db, owner_id=item.id)
            items.append(item)
        return items

    async def get_by_id(self, db: AsyncSession, *, id: int) -> ops_schemas.ShutdownResponse:
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        items = await self._scan(db, result)
        if not items:
            raise NotFoundError(self.op("get_by_id"), f"shutdown {id} not found")
        return items[0]

    async def get_for_day(self, db: AsyncSession, *, day: date, tzinfo=timezone.utc) -> List[ops_schemas.ShutdownResponse]:
        """Shutdowns overlapping the operational day, ongoing ones included."""
        start, end = operational_day(day, tzinfo)
        statement = (
            self._select()
            .where(
                or_(self.table.c.end_time > start, self.table.c.end_time.is_(None)),
                self.table.c.start_time < end,
            )
            .order_by(self.table.c.start_time, self.table.c.id)
        )
        result = await execute_read(db, statement, self.op("get_for_day"))
        return await self._scan(db, result)

    # --- edit -----------------------------------------------------------------
    async def update(self, db: AsyncSession, *, id: int, obj_in: ops_schemas.ShutdownUpdate) -> None:
        """
        Applies an edit and keeps the linked idle discharge consistent:

        - volume given, discharge linked: the discharge window and flow rate
          are rewritten in place
        - volume given (> 0), nothing linked: a discharge is created and linked
        - volume omitted, discharge linked: the discharge is deleted and the
          link cleared

        `end_time` and `generation_loss_mwh` are always overwritten.
        """
        op = self.op("update")
        shutdowns = self.table
        async with transaction(db, op):
            result = await db.execute(
                select(
                    shutdowns.c.organization_id, shutdowns.c.idle_discharge_id,
                    shutdowns.c.start_time, shutdowns.c.end_time, shutdowns.c.created_by_user_id,
                )
                .where(shutdowns.c.id == id)
                .with_for_update()
            )
            current = result.mappings().first()
            if current is None:
                raise NotFoundError(op, f"shutdown {id} not found")

            current_link = current["idle_discharge_id"]
            builder = SetBuilder()
            volume = obj_in.idle_discharge_volume_thousand_m3

            if volume is not None:
                start = obj_in.start_time or current["start_time"]
                end = obj_in.end_time if obj_in.end_time is not None else current["end_time"]
                if end is None:
                    raise InvalidFlowRateError(op, "end_time is required to calculate the idle discharge flow rate")
                flow_rate = calculate_flow_rate(start, end, volume)

                if current_link is not None:
                    await db.execute(
                        update(self.discharges)
                        .where(self.discharges.c.id == current_link)
                        .values(start_time=start, end_time=end, flow_rate_m3_s=flow_rate)
                    )
                elif volume > 0:
                    inserted = await db.execute(
                        insert(self.discharges).values(
                            organization_id=current["organization_id"],
                            start_time=start,
                            end_time=end,
                            flow_rate_m3_s=flow_rate,
                            created_by=obj_in.created_by_user_id or current["created_by_user_id"],
                        ).returning(self.discharges.c.id)
                    )
                    builder.set(shutdowns.c.idle_discharge_id, inserted.scalar_one())
            elif current_link is not None:
                await db.execute(delete(self.discharges).where(self.discharges.c.id == current_link))
                builder.set(shutdowns.c.idle_discharge_id, None)

            builder.set_if_present(shutdowns.c.organization_id, obj_in.organization_id)
            builder.set_if_present(shutdowns.c.start_time, obj_in.start_time)
            builder.set(shutdowns.c.end_time, obj_in.end_time)
            builder.set_if_present(shutdowns.c.reason, obj_in.reason)
            builder.set(shutdowns.c.generation_loss_mwh, obj_in.generation_loss_mwh)
            builder.set_if_present(shutdowns.c.reported_by_contact_id, obj_in.reported_by_contact_id)

            affected = await self.update_rows(db, id=id, values=self.touch(builder).values())
            if affected == 0:
                raise NotFoundError(op, f"shutdown {id} not found")
        logger.debug("shutdown %s updated", id)

    # --- delete ---------------------------------------------------------------
    async def delete(self, db: AsyncSession, *, id: int) -> None:
        """Deletes the shutdown together with its linked idle discharge."""
        op = self.op("delete")
        async with transaction(db, op):
            result = await db.execute(select(self.table.c.idle_discharge_id).where(self.table.c.id == id))
            link = result.first()
            if link is None:
                raise NotFoundError(op, f"shutdown {id} not found")
            affected = await self.delete_rows(db, id=id)
            if affected == 0:
                raise NotFoundError(op, f"shutdown {id} not found")
            if link.idle_discharge_id is not None:
                await db.execute(delete(self.discharges).where(self.discharges.c.id == link.idle_discharge_id))
        logger.debug("shutdown %s deleted", id)


shutdown = CRUDShutdown()


# =============================================================================
# 2. Idle water discharges
# =============================================================================
class CRUDIdleDischarge(
    CRUDBase[ops_models.IdleWaterDischarge, ops_schemas.DischargeCreate, ops_schemas.DischargeUpdate]
):
    def __init__(self):
        super().__init__(model=ops_models.IdleWaterDischarge)

    def _select(self, *extra_columns, extra_join=None):
        view = ops_models.idle_discharge_view
        orgs = Organization.__table__
        joined = view.join(orgs, orgs.c.id == view.c.organization_id)
        if extra_join is not None:
            joined = extra_join(joined)
        joined, creator_columns = user_fio_columns(view.c.created_by, "creator", select_from=joined)
        joined, approver_columns = user_fio_columns(view.c.approved_by, "approver", select_from=joined)
        return select(
            view.c.id, view.c.start_time, view.c.end_time, view.c.flow_rate_m3_s, view.c.reason,
            view.c.approved, view.c.approved_at, view.c.is_ongoing, view.c.total_volume_mln_m3,
            orgs.c.id.label("org_id"), orgs.c.name.label("org_name"),
            orgs.c.parent_organization_id.label("org_parent_organization_id"),
            *creator_columns, *approver_columns, *extra_columns,
        ).select_from(joined)

    @staticmethod
    def _scan(row) -> ops_schemas.DischargeResponse:
        return ops_schemas.DischargeResponse(
            id=row["id"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            flow_rate_m3_s=row["flow_rate_m3_s"],
            reason=row["reason"],
            approved=row["approved"],
            approved_at=row["approved_at"],
            is_ongoing=bool(row["is_ongoing"]),
            total_volume_mln_m3=row["total_volume_mln_m3"] or 0.0,
            organization=nested(row, "org", ops_schemas.OrganizationRef),
            created_by=nested(row, "creator", UserShortInfo),
            approved_by=nested(row, "approver", UserShortInfo),
        )

    def _filters(self, filters: Optional[ops_schemas.DischargeFilter]) -> WhereBuilder:
        filters = filters or ops_schemas.DischargeFilter()
        view = ops_models.idle_discharge_view
        return (
            WhereBuilder()
            .eq(view.c.is_ongoing, filters.is_ongoing)
            .ge(view.c.start_time, filters.start_date)
            .lt(view.c.start_time, filters.end_date)
        )

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[ops_schemas.DischargeFilter] = None
    ) -> List[ops_schemas.DischargeResponse]:
        view = ops_models.idle_discharge_view
        statement = self._filters(filters).apply(self._select()).order_by(view.c.start_time, view.c.id)
        result = await execute_read(db, statement, self.op("get_all"))
        return [self._scan(row) for row in result.mappings().all()]

    async def get_current(
        self, db: AsyncSession, *, now: Optional[datetime] = None
    ) -> List[ops_schemas.DischargeResponse]:
        """Discharges running at `now` (started, and not yet ended)."""
        now = now or datetime.now(timezone.utc)
        view = ops_models.idle_discharge_view
        statement = (
            self._select()
            .where(view.c.start_time <= now, or_(view.c.end_time > now, view.c.end_time.is_(None)))
            .order_by(view.c.start_time, view.c.id)
        )
        result = await execute_read(db, statement, self.op("get_current"))
        return [self._scan(row) for row in result.mappings().all()]

    async def get_by_cascades(
        self, db: AsyncSession, *, filters: Optional[ops_schemas.DischargeFilter] = None
    ) -> List[ops_schemas.CascadeDischarges]:
        """
        Discharges grouped by cascade (the plant's parent organization) and
        plant, with volume totals rounded to three decimals.
        """
        view = ops_models.idle_discharge_view
        orgs = Organization.__table__
        cascades = orgs.alias("cascade_org")
        statement = self._select(
            cascades.c.id.label("cascade_id"),
            cascades.c.name.label("cascade_name"),
            extra_join=lambda joined: joined.join(cascades, cascades.c.id == orgs.c.parent_organization_id),
        )
        statement = self._filters(filters).apply(statement).order_by(
            cascades.c.name, orgs.c.name, view.c.start_time, view.c.id
        )
        result = await execute_read(db, statement, self.op("get_by_cascades"))

        grouped: Dict[int, ops_schemas.CascadeDischarges] = {}
        plants: Dict[Tuple[int, int], ops_schemas.HPPDischarges] = {}
        for row in result.mappings().all():
            item = self._scan(row)
            cascade = grouped.get(row["cascade_id"])
            if cascade is None:
                cascade = ops_schemas.CascadeDischarges(id=row["cascade_id"], name=row["cascade_name"])
                grouped[row["cascade_id"]] = cascade
            plant_key = (row["cascade_id"], row["org_id"])
            plant = plants.get(plant_key)
            if plant is None:
                plant = ops_schemas.HPPDischarges(id=row["org_id"], name=row["org_name"])
                plants[plant_key] = plant
                cascade.hpps.append(plant)
            plant.total_volume_mln_m3 += item.total_volume_mln_m3
            cascade.total_volume_mln_m3 += item.total_volume_mln_m3
            item.total_volume_mln_m3 = round(item.total_volume_mln_m3, 3)
            plant.discharges.append(item)

        for cascade in grouped.values():
            cascade.total_volume_mln_m3 = round(cascade.total_volume_mln_m3, 3)
            for plant in cascade.hpps:
                plant.total_volume_mln_m3 = round(plant.total_volume_mln_m3, 3)
        return list(grouped.values())

    async def update(
        self,
        db: AsyncSession,
        *,
        id: int,
        obj_in: ops_schemas.DischargeUpdate,
        approved_by_user_id: Optional[int] = None,
    ) -> None:
        """Present fields only; changing `approved` records who approved it and when."""
        values = SetBuilder().extend(edit_values(obj_in, self.table))
        if obj_in.approved is not None:
            values.set(self.table.c.approved_by, approved_by_user_id)
            values.set_expr(self.table.c.approved_at, func.now())
        await super().update(db, id=id, values=values)


idle_discharge = CRUDIdleDischarge()


# =============================================================================
# 3. Incidents / visits
# =============================================================================
class _DailyEventCRUD(CRUDBase):
    """Events listed per operational day with organization, creator and files."""

    time_column_name: str
    response_schema = None

    def __init__(self, model, link_model, owner_key: str):
        super().__init__(model=model)
        self.files = FileLinks(link_model, owner_key)

    @property
    def time_column(self):
        return self.table.c[self.time_column_name]

    def _select(self):
        joined, organization_name = _organization_name_join(self.table, self.table.c.organization_id)
        joined, created_by_columns = user_fio_columns(
            self.table.c.created_by_user_id, "created_by", select_from=joined
        )
        return select(self.table, organization_name, *created_by_columns).select_from(joined)

    async def _scan(self, db: AsyncSession, result) -> list:
        items = []
        for row in result.mappings().all():
            values = {key: value for key, value in row.items() if not key.startswith("created_by")}
            item = self.response_schema(**values, created_by=nested(row, "created_by", UserShortInfo))
            item.files = await self.files.load(db, owner_id=item.id)
            items.append(item)
        return items

    async def get_by_id(self, db: AsyncSession, *, id: int):
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        items = await self._scan(db, result)
        if not items:
            raise NotFoundError(self.op("get_by_id"), f"{self.name} {id} not found")
        return items[0]

    async def get_for_day(self, db: AsyncSession, *, day: date, tzinfo=timezone.utc) -> list:
        start, end = operational_day(day, tzinfo)
        statement = (
            self._select()
            .where(self.time_column >= start, self.time_column < end)
            .order_by(self.time_column, self.table.c.id)
        )
        result = await execute_read(db, statement, self.op("get_for_day"))
        return await self._scan(db, result)


class CRUDIncident(_DailyEventCRUD):
    time_column_name = "incident_time"
    response_schema = ops_schemas.IncidentResponse

    def __init__(self):
        super().__init__(ops_models.Incident, ops_models.IncidentFileLink, "incident_id")


incident = CRUDIncident()


class CRUDVisit(_DailyEventCRUD):
    time_column_name = "visit_date"
    response_schema = ops_schemas.VisitResponse

    def __init__(self):
        super().__init__(ops_models.Visit, ops_models.VisitFileLink, "visit_id")


visit = CRUDVisit()
