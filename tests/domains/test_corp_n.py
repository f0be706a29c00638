# tests/domains/test_corp_n.py

"""
Tests of the 'corp' domain: organizations with types and parents,
departments, contacts with joined relations, quick-dial list and
receptions.
"""

from datetime import datetime, timezone

import pytest

from app.core.exceptions import DuplicateError, NotFoundError
from app.domains.corp import crud as corp_crud
from app.domains.corp import schemas as corp_schemas

UTC = timezone.utc


@pytest.mark.asyncio
async def test_organization_types_and_parent(db_session, cascade_org):
    cascade_type = await corp_crud.organization_type.create(
        db_session, obj_in=corp_schemas.OrganizationTypeCreate(name="cascade")
    )
    ges_type = await corp_crud.organization_type.create(db_session, obj_in=corp_schemas.OrganizationTypeCreate(name="ges"))
    await corp_crud.organization.update(
        db_session, id=cascade_org, obj_in=corp_schemas.OrganizationUpdate(type_ids=[cascade_type])
    )
    plant = await corp_crud.organization.create(
        db_session,
        obj_in=corp_schemas.OrganizationCreate(
            name="HPP-7", parent_organization_id=cascade_org, type_ids=[ges_type, cascade_type, ges_type]
        ),
    )

    stored = await corp_crud.organization.get_by_id(db_session, id=plant)
    assert stored.parent_organization_name == "Lower Cascade"
    assert stored.types == ["cascade", "ges"]

    cascades = await corp_crud.organization.get_all(db_session, type_name="cascade")
    assert [org.name for org in cascades] == ["HPP-7", "Lower Cascade"]
    children = await corp_crud.organization.get_all(db_session, parent_organization_id=cascade_org)
    assert [org.id for org in children] == [plant]


@pytest.mark.asyncio
async def test_organization_update_replaces_types(db_session, cascade_org):
    ges_type = await corp_crud.organization_type.create(db_session, obj_in=corp_schemas.OrganizationTypeCreate(name="ges"))
    await corp_crud.organization.update(
        db_session, id=cascade_org, obj_in=corp_schemas.OrganizationUpdate(name="Upper Cascade", type_ids=[ges_type])
    )
    await corp_crud.organization.update(db_session, id=cascade_org, obj_in=corp_schemas.OrganizationUpdate(type_ids=[]))

    stored = await corp_crud.organization.get_by_id(db_session, id=cascade_org)
    assert stored.name == "Upper Cascade"
    assert stored.types == []

    with pytest.raises(NotFoundError):
        await corp_crud.organization.update(db_session, id=404, obj_in=corp_schemas.OrganizationUpdate(name="x"))
    with pytest.raises(NotFoundError):
        await corp_crud.organization.get_by_id(db_session, id=404)


@pytest.mark.asyncio
async def test_contact_with_relations(db_session, hpp_org):
    department_id = await corp_crud.department.create(
        db_session, obj_in=corp_schemas.DepartmentCreate(name="Dispatch", organization_id=hpp_org)
    )
    position_id = await corp_crud.position.create(db_session, obj_in=corp_schemas.PositionCreate(name="Dispatcher"))
    contact_id = await corp_crud.contact.create(
        db_session,
        obj_in=corp_schemas.ContactCreate(
            fio="Yusupova Dilnoza", phone="+998 71 000 00 00", organization_id=hpp_org,
            department_id=department_id, position_id=position_id,
        ),
    )
    await corp_crud.contact.create(db_session, obj_in=corp_schemas.ContactCreate(fio="Outside Person"))

    contact = await corp_crud.contact.get_by_id(db_session, id=contact_id)
    assert contact.organization.name == "HPP-1"
    assert contact.department.name == "Dispatch"
    assert contact.position.name == "Dispatcher"

    outsider = (await corp_crud.contact.get_all(db_session, filters=corp_schemas.ContactFilter(fio="outside")))[0]
    assert outsider.organization is None
    assert outsider.department is None

    by_department = await corp_crud.contact.get_all(
        db_session, filters=corp_schemas.ContactFilter(department_id=department_id)
    )
    assert [c.id for c in by_department] == [contact_id]

    department = await corp_crud.department.get_by_id(db_session, id=department_id)
    assert department.organization.id == hpp_org


@pytest.mark.asyncio
async def test_contact_email_is_unique(db_session, operator_contact):
    with pytest.raises(DuplicateError):
        await corp_crud.contact.create(
            db_session, obj_in=corp_schemas.ContactCreate(fio="Someone Else", email="karimov@example.com")
        )


@pytest.mark.asyncio
async def test_fast_calls_ordered_by_position(db_session, operator_contact):
    other = await corp_crud.contact.create(db_session, obj_in=corp_schemas.ContactCreate(fio="Duty Officer"))
    await corp_crud.fast_call.create(db_session, obj_in=corp_schemas.FastCallCreate(contact_id=operator_contact, position=2))
    first = await corp_crud.fast_call.create(db_session, obj_in=corp_schemas.FastCallCreate(contact_id=other, position=1))

    calls = await corp_crud.fast_call.get_all(db_session)
    assert [call.contact.fio for call in calls] == ["Duty Officer", "Karimov Aziz"]
    assert (await corp_crud.fast_call.get_by_id(db_session, id=first)).position == 1


@pytest.mark.asyncio
async def test_receptions_filter_and_count(db_session, operator_user):
    early = await corp_crud.reception.create(
        db_session,
        obj_in=corp_schemas.ReceptionCreate(
            name="Citizens' reception", date=datetime(2024, 5, 2, 10, 0, tzinfo=UTC), visitor="A. Valiev",
            created_by_user_id=operator_user,
        ),
    )
    late = await corp_crud.reception.create(
        db_session,
        obj_in=corp_schemas.ReceptionCreate(
            name="Citizens' reception", date=datetime(2024, 5, 3, 10, 0, tzinfo=UTC), visitor="B. Saidov",
        ),
    )
    await corp_crud.reception.update(
        db_session, id=early, obj_in=corp_schemas.ReceptionUpdate(status="true", informed=True),
    )

    receptions = await corp_crud.reception.get_all(db_session)
    assert [r.id for r in receptions] == [late, early]

    held = await corp_crud.reception.get_all(db_session, filters=corp_schemas.ReceptionFilter(status="true"))
    assert [r.id for r in held] == [early]
    assert held[0].informed is True

    assert await corp_crud.reception.count_by_status(db_session) == {"default": 1, "true": 1}
