# tests/domains/test_reservoir_n.py

"""
Tests of the 'reservoir' domain: indicator heights, daily data batches
with snow cover, device summary patches.
"""

from datetime import date

import pytest

from app.core.exceptions import ForeignKeyViolationError, NotFoundError
from app.domains.reservoir import crud as reservoir_crud
from app.domains.reservoir import schemas as reservoir_schemas


def test_year_ago():
    assert reservoir_crud.year_ago(date(2024, 5, 1)) == date(2023, 5, 1)
    assert reservoir_crud.year_ago(date(2024, 2, 29)) == date(2023, 2, 28)


@pytest.mark.asyncio
async def test_indicator_height_is_replaced(db_session, hpp_org):
    reservoir_id = await reservoir_crud.reservoir.create(
        db_session, obj_in=reservoir_schemas.ReservoirCreate(name="Charvak", organization_id=hpp_org)
    )

    with pytest.raises(NotFoundError):
        await reservoir_crud.reservoir.get_indicator(db_session, reservoir_id=reservoir_id)

    await reservoir_crud.reservoir.set_indicator(db_session, reservoir_id=reservoir_id, height=880.5)
    await reservoir_crud.reservoir.set_indicator(db_session, reservoir_id=reservoir_id, height=881.25)

    indicator = await reservoir_crud.reservoir.get_indicator(db_session, reservoir_id=reservoir_id)
    assert indicator.height == pytest.approx(881.25)
    assert [r.name for r in await reservoir_crud.reservoir.get_all(db_session)] == ["Charvak"]


@pytest.mark.asyncio
async def test_upsert_batch_with_snow_cover(db_session, hpp_org, cascade_org, operator_user):
    day = date(2024, 2, 29)
    await reservoir_crud.reservoir_data.upsert_batch(
        db_session,
        items=[
            reservoir_schemas.ReservoirDataItem(
                organization_id=hpp_org, date=day, income_m3_s=120.0, release_m3_s=95.0,
                level_m=870.2, modsnow_current=41.0, modsnow_year_ago=55.5,
            ),
            reservoir_schemas.ReservoirDataItem(organization_id=cascade_org, date=day, income_m3_s=300.0),
        ],
        user_id=operator_user,
    )
    # a second batch for the same key replaces the values
    await reservoir_crud.reservoir_data.upsert_batch(
        db_session,
        items=[reservoir_schemas.ReservoirDataItem(organization_id=hpp_org, date=day, income_m3_s=130.0, modsnow_current=43.0)],
    )

    rows = await reservoir_crud.reservoir_data.get_by_date(db_session, day=day)
    assert [row.organization_name for row in rows] == ["HPP-1", "Lower Cascade"]

    hpp = rows[0]
    assert hpp.income_m3_s == pytest.approx(130.0)
    assert hpp.release_m3_s is None
    assert hpp.modsnow_current == pytest.approx(43.0)
    assert hpp.modsnow_year_ago == pytest.approx(55.5)
    assert rows[1].modsnow_current is None

    previous = await reservoir_crud.reservoir_data.get_modsnow(db_session, organization_id=hpp_org, day=date(2023, 2, 28))
    assert previous.cover == pytest.approx(55.5)
    assert await reservoir_crud.reservoir_data.get_by_date(db_session, day=date(2024, 3, 1)) == []


@pytest.mark.asyncio
async def test_upsert_batch_is_atomic(db_session, hpp_org):
    day = date(2024, 4, 10)
    with pytest.raises(ForeignKeyViolationError):
        await reservoir_crud.reservoir_data.upsert_batch(
            db_session,
            items=[
                reservoir_schemas.ReservoirDataItem(organization_id=hpp_org, date=day, income_m3_s=1.0),
                reservoir_schemas.ReservoirDataItem(organization_id=999, date=day, income_m3_s=2.0),
            ],
        )
    assert await reservoir_crud.reservoir_data.get_by_date(db_session, day=day) == []


@pytest.mark.asyncio
async def test_device_summary_patch_batch(db_session, hpp_org, operator_user):
    await reservoir_crud.device_summary.create(
        db_session,
        obj_in=reservoir_schemas.DeviceSummaryCreate(
            organization_id=hpp_org, device_type_name="Piezometer", count_total=10, count_installed=8,
        ),
    )

    await reservoir_crud.device_summary.patch_batch(
        db_session,
        items=[reservoir_schemas.DeviceSummaryPatch(organization_id=hpp_org, device_type_name="Piezometer", count_faulty=2)],
        updated_by_user_id=operator_user,
    )
    summary = (await reservoir_crud.device_summary.get_all(db_session))[0]
    assert summary.organization_name == "HPP-1"
    assert (summary.count_total, summary.count_installed, summary.count_faulty) == (10, 8, 2)
    assert summary.updated_by_user_id == operator_user

    with pytest.raises(NotFoundError):
        await reservoir_crud.device_summary.patch_batch(
            db_session,
            items=[
                reservoir_schemas.DeviceSummaryPatch(organization_id=hpp_org, device_type_name="Piezometer", count_faulty=5),
                reservoir_schemas.DeviceSummaryPatch(organization_id=hpp_org, device_type_name="Inclinometer", count_total=1),
            ],
        )
    summary = (await reservoir_crud.device_summary.get_all(db_session))[0]
    assert summary.count_faulty == 2
