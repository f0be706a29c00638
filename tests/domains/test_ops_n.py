# tests/domains/test_ops_n.py

"""
Tests of the 'ops' domain: flow rate derivation, the shutdown / idle
discharge protocol, discharge listings and daily incident / visit lists.
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from app.core.exceptions import InvalidFlowRateError, NotFoundError
from app.domains.ops import crud as ops_crud
from app.domains.ops import models as ops_models
from app.domains.ops import schemas as ops_schemas

UTC = timezone.utc
START = datetime(2024, 5, 1, 8, 0, tzinfo=UTC)


async def _discharge_count(db) -> int:
    result = await db.execute(select(func.count()).select_from(ops_models.IdleWaterDischarge.__table__))
    return result.scalar_one()


async def _discharge_row(db, discharge_id):
    table = ops_models.IdleWaterDischarge.__table__
    result = await db.execute(select(table).where(table.c.id == discharge_id))
    return result.mappings().one_or_none()


# =============================================================================
# flow rate
# =============================================================================
def test_calculate_flow_rate():
    # 100 thousand m3 over 20 hours
    assert ops_crud.calculate_flow_rate(START, START + timedelta(hours=20), 100) == pytest.approx(1.388889, rel=1e-6)
    # 3.6 thousand m3 over one hour
    assert ops_crud.calculate_flow_rate(START, START + timedelta(hours=1), 3.6) == pytest.approx(1.0)


def test_calculate_flow_rate_rejects_bad_windows():
    with pytest.raises(InvalidFlowRateError):
        ops_crud.calculate_flow_rate(START, None, 10)
    with pytest.raises(InvalidFlowRateError):
        ops_crud.calculate_flow_rate(START, START, 10)
    with pytest.raises(InvalidFlowRateError):
        ops_crud.calculate_flow_rate(START, START - timedelta(minutes=1), 10)


def test_calculate_flow_rate_treats_naive_as_utc():
    naive_end = datetime(2024, 5, 1, 9, 0)
    assert ops_crud.calculate_flow_rate(START, naive_end, 3.6) == pytest.approx(1.0)


def test_operational_day_starts_at_configured_hour():
    start, end = ops_crud.operational_day(date(2024, 5, 1))
    assert start == datetime(2024, 5, 1, 7, 0, tzinfo=UTC)
    assert end == datetime(2024, 5, 2, 7, 0, tzinfo=UTC)


# =============================================================================
# shutdown / idle discharge protocol
# =============================================================================
@pytest.mark.asyncio
async def test_create_shutdown_with_volume_links_discharge(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org,
            start_time=START,
            end_time=START + timedelta(hours=20),
            reason="Turbine inspection",
            generation_loss_mwh=120.5,
            idle_discharge_volume_thousand_m3=100,
            created_by_user_id=operator_user,
        ),
    )

    shutdown = await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)
    assert shutdown.organization_name == "HPP-1"
    assert shutdown.created_by.fio == "Karimov Aziz"
    assert shutdown.idle_discharge_id is not None
    assert shutdown.idle_discharge_volume_thousand_m3 == pytest.approx(100, rel=1e-4)

    discharge = await _discharge_row(db_session, shutdown.idle_discharge_id)
    assert discharge["flow_rate_m3_s"] == pytest.approx(1.388889, rel=1e-6)
    assert discharge["reason"] == "Turbine inspection"
    assert discharge["created_by"] == operator_user


@pytest.mark.asyncio
async def test_create_shutdown_without_volume(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(organization_id=hpp_org, start_time=START, created_by_user_id=operator_user),
    )
    shutdown = await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)
    assert shutdown.idle_discharge_id is None
    assert shutdown.idle_discharge_volume_thousand_m3 is None
    assert await _discharge_count(db_session) == 0


@pytest.mark.asyncio
async def test_create_shutdown_with_volume_but_no_end_writes_nothing(db_session, hpp_org, operator_user):
    with pytest.raises(InvalidFlowRateError):
        await ops_crud.shutdown.create(
            db_session,
            obj_in=ops_schemas.ShutdownCreate(
                organization_id=hpp_org,
                start_time=START,
                idle_discharge_volume_thousand_m3=50,
                created_by_user_id=operator_user,
            ),
        )
    assert await ops_crud.shutdown.get_multi(db_session) == []
    assert await _discharge_count(db_session) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("end_offset", [timedelta(0), timedelta(hours=-1)])
async def test_create_shutdown_with_volume_and_empty_window_writes_nothing(
    db_session, hpp_org, operator_user, end_offset
):
    with pytest.raises(InvalidFlowRateError):
        await ops_crud.shutdown.create(
            db_session,
            obj_in=ops_schemas.ShutdownCreate(
                organization_id=hpp_org,
                start_time=START,
                end_time=START + end_offset,
                idle_discharge_volume_thousand_m3=50,
                created_by_user_id=operator_user,
            ),
        )
    assert await ops_crud.shutdown.get_multi(db_session) == []
    assert await _discharge_count(db_session) == 0


@pytest.mark.asyncio
async def test_edit_rewrites_linked_discharge(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org,
            start_time=START,
            end_time=START + timedelta(hours=20),
            idle_discharge_volume_thousand_m3=100,
            created_by_user_id=operator_user,
        ),
    )
    before = await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)

    await ops_crud.shutdown.update(
        db_session,
        id=shutdown_id,
        obj_in=ops_schemas.ShutdownUpdate(end_time=START + timedelta(hours=1), idle_discharge_volume_thousand_m3=3.6),
    )

    after = await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)
    assert after.idle_discharge_id == before.idle_discharge_id
    discharge = await _discharge_row(db_session, after.idle_discharge_id)
    assert discharge["flow_rate_m3_s"] == pytest.approx(1.0)
    assert after.idle_discharge_volume_thousand_m3 == pytest.approx(3.6, rel=1e-4)
    assert await _discharge_count(db_session) == 1


@pytest.mark.asyncio
async def test_edit_adds_discharge_when_volume_appears(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org, start_time=START, end_time=START + timedelta(hours=2),
            created_by_user_id=operator_user,
        ),
    )
    await ops_crud.shutdown.update(
        db_session,
        id=shutdown_id,
        obj_in=ops_schemas.ShutdownUpdate(end_time=START + timedelta(hours=2), idle_discharge_volume_thousand_m3=7.2),
    )

    shutdown = await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)
    assert shutdown.idle_discharge_id is not None
    discharge = await _discharge_row(db_session, shutdown.idle_discharge_id)
    assert discharge["flow_rate_m3_s"] == pytest.approx(1.0)
    # creator falls back to the shutdown's creator
    assert discharge["created_by"] == operator_user


@pytest.mark.asyncio
async def test_edit_with_zero_volume_and_no_link_creates_nothing(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org, start_time=START, end_time=START + timedelta(hours=2),
            created_by_user_id=operator_user,
        ),
    )
    await ops_crud.shutdown.update(
        db_session,
        id=shutdown_id,
        obj_in=ops_schemas.ShutdownUpdate(end_time=START + timedelta(hours=2), idle_discharge_volume_thousand_m3=0),
    )
    assert (await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)).idle_discharge_id is None
    assert await _discharge_count(db_session) == 0


@pytest.mark.asyncio
async def test_edit_without_volume_removes_discharge(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org,
            start_time=START,
            end_time=START + timedelta(hours=20),
            generation_loss_mwh=80,
            idle_discharge_volume_thousand_m3=100,
            created_by_user_id=operator_user,
        ),
    )
    await ops_crud.shutdown.update(db_session, id=shutdown_id, obj_in=ops_schemas.ShutdownUpdate(reason="Corrected"))

    shutdown = await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)
    assert shutdown.idle_discharge_id is None
    assert shutdown.reason == "Corrected"
    # end_time and generation loss are always overwritten by an edit
    assert shutdown.end_time is None
    assert shutdown.generation_loss_mwh is None
    assert await _discharge_count(db_session) == 0


@pytest.mark.asyncio
async def test_edit_with_volume_on_ongoing_shutdown_fails_atomically(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(organization_id=hpp_org, start_time=START, created_by_user_id=operator_user),
    )
    with pytest.raises(InvalidFlowRateError):
        await ops_crud.shutdown.update(
            db_session,
            id=shutdown_id,
            obj_in=ops_schemas.ShutdownUpdate(reason="Should not stick", idle_discharge_volume_thousand_m3=10),
        )
    shutdown = await ops_crud.shutdown.get_by_id(db_session, id=shutdown_id)
    assert shutdown.reason is None
    assert await _discharge_count(db_session) == 0


@pytest.mark.asyncio
async def test_edit_and_delete_missing_shutdown(db_session, hpp_org, operator_user):
    await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org,
            start_time=START,
            end_time=START + timedelta(hours=1),
            idle_discharge_volume_thousand_m3=3.6,
            created_by_user_id=operator_user,
        ),
    )

    with pytest.raises(NotFoundError):
        await ops_crud.shutdown.update(
            db_session, id=404,
            obj_in=ops_schemas.ShutdownUpdate(end_time=START + timedelta(hours=1), idle_discharge_volume_thousand_m3=7.2),
        )
    with pytest.raises(NotFoundError):
        await ops_crud.shutdown.update(db_session, id=404, obj_in=ops_schemas.ShutdownUpdate(reason="x"))
    with pytest.raises(NotFoundError):
        await ops_crud.shutdown.delete(db_session, id=404)

    assert len(await ops_crud.shutdown.get_multi(db_session)) == 1
    assert await _discharge_count(db_session) == 1


@pytest.mark.asyncio
async def test_delete_shutdown_removes_discharge(db_session, hpp_org, operator_user):
    shutdown_id = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org,
            start_time=START,
            end_time=START + timedelta(hours=1),
            idle_discharge_volume_thousand_m3=3.6,
            created_by_user_id=operator_user,
        ),
    )
    await ops_crud.shutdown.delete(db_session, id=shutdown_id)

    assert await ops_crud.shutdown.get(db_session, shutdown_id) is None
    assert await _discharge_count(db_session) == 0


@pytest.mark.asyncio
async def test_delete_unlinked_shutdown_keeps_other_discharges(db_session, hpp_org, operator_user):
    linked = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org,
            start_time=START,
            end_time=START + timedelta(hours=1),
            idle_discharge_volume_thousand_m3=3.6,
            created_by_user_id=operator_user,
        ),
    )
    unlinked = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org, start_time=START + timedelta(hours=2), created_by_user_id=operator_user,
        ),
    )
    discharge_id = (await ops_crud.shutdown.get_by_id(db_session, id=linked)).idle_discharge_id

    await ops_crud.shutdown.delete(db_session, id=unlinked)

    assert await ops_crud.shutdown.get(db_session, unlinked) is None
    assert (await ops_crud.shutdown.get_by_id(db_session, id=linked)).idle_discharge_id == discharge_id
    assert await _discharge_row(db_session, discharge_id) is not None
    assert await _discharge_count(db_session) == 1


@pytest.mark.asyncio
async def test_shutdowns_for_operational_day(db_session, hpp_org, operator_user, pdf_file):
    day = date(2024, 5, 1)
    inside = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org, start_time=START, end_time=START + timedelta(hours=2),
            created_by_user_id=operator_user,
        ),
    )
    ongoing = await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org, start_time=START - timedelta(days=3), created_by_user_id=operator_user,
        ),
    )
    # ended before 07:00 of the day
    await ops_crud.shutdown.create(
        db_session,
        obj_in=ops_schemas.ShutdownCreate(
            organization_id=hpp_org,
            start_time=datetime(2024, 5, 1, 1, 0, tzinfo=UTC),
            end_time=datetime(2024, 5, 1, 6, 0, tzinfo=UTC),
            created_by_user_id=operator_user,
        ),
    )
    await ops_crud.shutdown.files.link(db_session, owner_id=inside, file_ids=[pdf_file, pdf_file])

    shutdowns = await ops_crud.shutdown.get_for_day(db_session, day=day)
    assert [item.id for item in shutdowns] == [ongoing, inside]
    assert [f.file_name for f in shutdowns[1].files] == ["act.pdf"]


# =============================================================================
# idle discharges
# =============================================================================
@pytest.mark.asyncio
async def test_discharge_listing_and_cascades(db_session, hpp_org, cascade_org, operator_user):
    first = await ops_crud.idle_discharge.create(
        db_session,
        obj_in=ops_schemas.DischargeCreate(
            organization_id=hpp_org, start_time=START, end_time=START + timedelta(hours=1),
            flow_rate_m3_s=100, created_by=operator_user,
        ),
    )
    second = await ops_crud.idle_discharge.create(
        db_session,
        obj_in=ops_schemas.DischargeCreate(
            organization_id=hpp_org, start_time=START + timedelta(hours=2), end_time=START + timedelta(hours=4),
            flow_rate_m3_s=50, created_by=operator_user,
        ),
    )

    discharges = await ops_crud.idle_discharge.get_all(db_session)
    assert [d.id for d in discharges] == [first, second]
    assert discharges[0].total_volume_mln_m3 == pytest.approx(0.36, rel=1e-4)
    assert discharges[0].organization.parent_organization_id == cascade_org
    assert discharges[0].is_ongoing is False
    assert discharges[0].created_by.fio == "Karimov Aziz"
    assert discharges[0].approved_by is None

    cascades = await ops_crud.idle_discharge.get_by_cascades(db_session)
    assert len(cascades) == 1
    assert cascades[0].name == "Lower Cascade"
    assert cascades[0].hpps[0].name == "HPP-1"
    assert len(cascades[0].hpps[0].discharges) == 2
    assert cascades[0].total_volume_mln_m3 == pytest.approx(0.72, abs=1e-3)


@pytest.mark.asyncio
async def test_current_discharges(db_session, hpp_org, operator_user):
    now = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
    running = await ops_crud.idle_discharge.create(
        db_session,
        obj_in=ops_schemas.DischargeCreate(
            organization_id=hpp_org, start_time=START, flow_rate_m3_s=10, created_by=operator_user,
        ),
    )
    await ops_crud.idle_discharge.create(
        db_session,
        obj_in=ops_schemas.DischargeCreate(
            organization_id=hpp_org, start_time=START, end_time=START + timedelta(hours=1),
            flow_rate_m3_s=10, created_by=operator_user,
        ),
    )
    current = await ops_crud.idle_discharge.get_current(db_session, now=now)
    assert [d.id for d in current] == [running]
    assert current[0].is_ongoing is True


@pytest.mark.asyncio
async def test_approve_discharge_records_approver(db_session, hpp_org, operator_user):
    discharge_id = await ops_crud.idle_discharge.create(
        db_session,
        obj_in=ops_schemas.DischargeCreate(
            organization_id=hpp_org, start_time=START, end_time=START + timedelta(hours=1),
            flow_rate_m3_s=10, created_by=operator_user,
        ),
    )
    await ops_crud.idle_discharge.update(
        db_session, id=discharge_id, obj_in=ops_schemas.DischargeUpdate(approved=True),
        approved_by_user_id=operator_user,
    )
    discharge = (await ops_crud.idle_discharge.get_all(db_session))[0]
    assert discharge.approved is True
    assert discharge.approved_by.id == operator_user
    assert discharge.approved_at is not None


# =============================================================================
# incidents / visits
# =============================================================================
@pytest.mark.asyncio
async def test_incidents_and_visits_for_day(db_session, hpp_org, operator_user, pdf_file):
    incident_id = await ops_crud.incident.create(
        db_session,
        obj_in=ops_schemas.IncidentCreate(
            organization_id=hpp_org, incident_time=START, description="Oil leak", created_by_user_id=operator_user,
        ),
    )
    await ops_crud.incident.create(
        db_session,
        obj_in=ops_schemas.IncidentCreate(
            incident_time=START + timedelta(days=1), description="Next day", created_by_user_id=operator_user,
        ),
    )
    await ops_crud.incident.files.link(db_session, owner_id=incident_id, file_ids=[pdf_file])
    visit_id = await ops_crud.visit.create(
        db_session,
        obj_in=ops_schemas.VisitCreate(
            organization_id=hpp_org, visit_date=START + timedelta(hours=3), description="Ministry delegation",
            responsible_name="Chief engineer", created_by_user_id=operator_user,
        ),
    )

    incidents = await ops_crud.incident.get_for_day(db_session, day=date(2024, 5, 1))
    assert [i.id for i in incidents] == [incident_id]
    assert incidents[0].organization_name == "HPP-1"
    assert incidents[0].created_by.fio == "Karimov Aziz"
    assert len(incidents[0].files) == 1

    visits = await ops_crud.visit.get_for_day(db_session, day=date(2024, 5, 1))
    assert [v.id for v in visits] == [visit_id]
    assert visits[0].responsible_name == "Chief engineer"

    with pytest.raises(NotFoundError):
        await ops_crud.visit.get_by_id(db_session, id=404)
