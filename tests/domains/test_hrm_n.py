# tests/domains/test_hrm_n.py

"""
Tests of the 'hrm' domain: personnel transfers, the payroll workflow,
timesheet corrections and vacations with their balance bookkeeping.
"""

from datetime import date, datetime, timezone

import pytest
import pytest_asyncio

from app.core.exceptions import (
    BlockedPeriodError,
    InvalidDateRangeError,
    NegativeNetAmountError,
    NotFoundError,
    VacationOverlapError,
)
from app.domains.corp import crud as corp_crud
from app.domains.corp import schemas as corp_schemas
from app.domains.hrm import crud as hrm_crud
from app.domains.hrm import schemas as hrm_schemas

UTC = timezone.utc


# =============================================================================
# fixtures
# =============================================================================
@pytest_asyncio.fixture(scope="function")
async def dispatch_department(db_session, hpp_org) -> int:
    return await corp_crud.department.create(
        db_session, obj_in=corp_schemas.DepartmentCreate(name="Dispatch", organization_id=hpp_org)
    )


@pytest_asyncio.fixture(scope="function")
async def personnel(db_session, operator_contact, dispatch_department) -> int:
    """Personnel record of `operator_contact` in the dispatch department."""
    return await hrm_crud.personnel_record.create(
        db_session,
        obj_in=hrm_schemas.PersonnelRecordCreate(
            employee_id=operator_contact, tab_number="T-0001", hire_date=date(2019, 3, 1),
            department_id=dispatch_department,
        ),
    )


@pytest_asyncio.fixture(scope="function")
async def annual_leave(db_session) -> int:
    return await hrm_crud.vacation_type.create(
        db_session, obj_in=hrm_schemas.VacationTypeCreate(code="annual", name="Annual leave", default_days=24)
    )


@pytest_asyncio.fixture(scope="function")
async def balance_2024(db_session, operator_contact, annual_leave) -> int:
    return await hrm_crud.vacation_balance.create(
        db_session,
        obj_in=hrm_schemas.VacationBalanceCreate(
            employee_id=operator_contact, vacation_type_id=annual_leave, year=2024, entitled_days=24
        ),
    )


# =============================================================================
# personnel
# =============================================================================
@pytest.mark.asyncio
async def test_transfer_moves_the_record(db_session, personnel, dispatch_department, hpp_org):
    repairs = await corp_crud.department.create(
        db_session, obj_in=corp_schemas.DepartmentCreate(name="Repairs", organization_id=hpp_org)
    )
    engineer = await corp_crud.position.create(db_session, obj_in=corp_schemas.PositionCreate(name="Engineer"))

    transfer_id = await hrm_crud.personnel_transfer.create(
        db_session,
        obj_in=hrm_schemas.PersonnelTransferCreate(
            record_id=personnel, to_department_id=repairs, to_position_id=engineer,
            transfer_date=date(2024, 6, 1), order_number="K-15",
        ),
    )

    record = await hrm_crud.personnel_record.get_by_id(db_session, id=personnel)
    assert record.department_name == "Repairs"
    assert record.position_name == "Engineer"
    assert record.employee_fio == "Karimov Aziz"

    transfers = await hrm_crud.personnel_transfer.get_by_record(db_session, record_id=personnel)
    assert [t.id for t in transfers] == [transfer_id]
    assert transfers[0].from_department_id == dispatch_department
    assert transfers[0].from_position_id is None

    with pytest.raises(NotFoundError):
        await hrm_crud.personnel_transfer.create(
            db_session,
            obj_in=hrm_schemas.PersonnelTransferCreate(record_id=404, transfer_date=date(2024, 6, 1)),
        )


# =============================================================================
# salary
# =============================================================================
def test_compute_salary_totals():
    totals = hrm_crud.compute_salary_totals(
        hrm_schemas.SalaryCalculation(
            base_amount=1000, allowances_amount=200, bonuses_amount=100, deductions_amount=50, tax_amount=150
        )
    )
    assert totals.gross_amount == pytest.approx(1300)
    assert totals.net_amount == pytest.approx(1100)

    with pytest.raises(NegativeNetAmountError):
        hrm_crud.compute_salary_totals(hrm_schemas.SalaryCalculation(base_amount=100, tax_amount=150))


@pytest.mark.asyncio
async def test_salary_workflow(db_session, operator_contact, operator_user):
    salary_id = await hrm_crud.salary.create(
        db_session, obj_in=hrm_schemas.SalaryCreate(employee_id=operator_contact, year=2024, month=5)
    )

    with pytest.raises(NotFoundError):
        await hrm_crud.salary.approve(db_session, id=salary_id, approved_by=operator_user)

    with pytest.raises(NegativeNetAmountError):
        await hrm_crud.salary.update_calculation(
            db_session, id=salary_id, calculation=hrm_schemas.SalaryCalculation(base_amount=10, deductions_amount=20)
        )

    totals = await hrm_crud.salary.update_calculation(
        db_session,
        id=salary_id,
        calculation=hrm_schemas.SalaryCalculation(
            base_amount=1000, allowances_amount=200, tax_amount=130, worked_days=21, total_work_days=22
        ),
    )
    assert totals.net_amount == pytest.approx(1070)

    await hrm_crud.salary.approve(db_session, id=salary_id, approved_by=operator_user)
    await hrm_crud.salary.mark_paid(db_session, id=salary_id)

    stored = await hrm_crud.salary.get_or_raise(db_session, salary_id)
    assert stored.status == "paid"
    assert stored.gross_amount == pytest.approx(1200)
    assert stored.worked_days == 21
    assert stored.approved_by == operator_user
    assert stored.calculated_at is not None
    assert stored.paid_at is not None

    # a calculation cannot be changed once approved
    with pytest.raises(NotFoundError):
        await hrm_crud.salary.update_calculation(
            db_session, id=salary_id, calculation=hrm_schemas.SalaryCalculation(base_amount=1)
        )
    with pytest.raises(NotFoundError):
        await hrm_crud.salary.delete(db_session, id=salary_id)

    draft = await hrm_crud.salary.create(
        db_session, obj_in=hrm_schemas.SalaryCreate(employee_id=operator_contact, year=2024, month=6)
    )
    await hrm_crud.salary.delete(db_session, id=draft)
    paid = await hrm_crud.salary.get_all(db_session, filters=hrm_schemas.SalaryFilter(employee_id=operator_contact))
    assert [s.id for s in paid] == [salary_id]


@pytest.mark.asyncio
async def test_bonus_and_deduction_sums(db_session, operator_contact):
    for amount in (100.0, 50.5):
        await hrm_crud.salary_bonus.create(
            db_session,
            obj_in=hrm_schemas.SalaryBonusCreate(
                employee_id=operator_contact, bonus_type="quarterly", amount=amount, year=2024, month=3
            ),
        )
    await hrm_crud.salary_deduction.create(
        db_session,
        obj_in=hrm_schemas.SalaryDeductionCreate(
            employee_id=operator_contact, deduction_type="alimony", amount=20, year=2024, month=3
        ),
    )

    assert await hrm_crud.salary_bonus.sum_for_month(
        db_session, employee_id=operator_contact, year=2024, month=3
    ) == pytest.approx(150.5)
    assert await hrm_crud.salary_bonus.sum_for_month(db_session, employee_id=operator_contact, year=2024, month=4) == 0
    deductions = await hrm_crud.salary_deduction.get_for_month(
        db_session, employee_id=operator_contact, year=2024, month=3
    )
    assert [d.deduction_type for d in deductions] == ["alimony"]


@pytest.mark.asyncio
async def test_active_salary_structure(db_session, operator_contact):
    for start, end, base in ((date(2023, 1, 1), date(2023, 12, 31), 900), (date(2024, 1, 1), None, 1000)):
        await hrm_crud.salary_structure.create(
            db_session,
            obj_in=hrm_schemas.SalaryStructureCreate(
                employee_id=operator_contact, base_salary=base, effective_from=start, effective_to=end
            ),
        )

    assert (await hrm_crud.salary_structure.get_active(
        db_session, employee_id=operator_contact, on_date=date(2023, 6, 1)
    )).base_salary == 900
    assert (await hrm_crud.salary_structure.get_active(
        db_session, employee_id=operator_contact, on_date=date(2024, 6, 1)
    )).base_salary == 1000
    assert await hrm_crud.salary_structure.get_active(
        db_session, employee_id=operator_contact, on_date=date(2022, 6, 1)
    ) is None


# =============================================================================
# timesheet
# =============================================================================
@pytest.mark.asyncio
async def test_timesheet_upsert_keeps_one_entry_per_day(db_session, operator_contact):
    day = date(2024, 5, 2)
    first = await hrm_crud.timesheet_entry.upsert(
        db_session, obj_in=hrm_schemas.TimesheetEntryUpsert(employee_id=operator_contact, date=day, worked_hours=8)
    )
    second = await hrm_crud.timesheet_entry.upsert(
        db_session,
        obj_in=hrm_schemas.TimesheetEntryUpsert(employee_id=operator_contact, date=day, worked_hours=6, is_remote=True),
    )
    assert first == second

    entries = await hrm_crud.timesheet_entry.get_for_employee(
        db_session, employee_id=operator_contact, start_date=date(2024, 5, 1), end_date=date(2024, 5, 31)
    )
    assert len(entries) == 1
    assert entries[0].worked_hours == pytest.approx(6)
    assert entries[0].is_remote is True


@pytest.mark.asyncio
async def test_timesheet_correction_approve_applies_values(db_session, operator_contact, operator_user):
    entry_id = await hrm_crud.timesheet_entry.upsert(
        db_session,
        obj_in=hrm_schemas.TimesheetEntryUpsert(
            employee_id=operator_contact, date=date(2024, 5, 3),
            check_in=datetime(2024, 5, 3, 4, 0, tzinfo=UTC), worked_hours=8,
        ),
    )
    correction_id = await hrm_crud.timesheet_correction.create(
        db_session,
        obj_in=hrm_schemas.TimesheetCorrectionCreate(entry_id=entry_id, requested_day_type="sick", reason="Sick note"),
    )

    pending = await hrm_crud.timesheet_correction.get_all(db_session, employee_id=operator_contact, status="pending")
    assert [c.id for c in pending] == [correction_id]
    assert pending[0].original_day_type == "work"

    await hrm_crud.timesheet_correction.approve(db_session, id=correction_id, approved_by=operator_user)

    entry = await hrm_crud.timesheet_entry.get_or_raise(db_session, entry_id)
    assert entry.day_type == "sick"
    assert entry.check_in is not None

    with pytest.raises(NotFoundError):
        await hrm_crud.timesheet_correction.approve(db_session, id=correction_id, approved_by=operator_user)
    with pytest.raises(NotFoundError):
        await hrm_crud.timesheet_correction.reject(db_session, id=correction_id, approved_by=operator_user)
    with pytest.raises(NotFoundError):
        await hrm_crud.timesheet_correction.create(
            db_session, obj_in=hrm_schemas.TimesheetCorrectionCreate(entry_id=404, reason="x")
        )


@pytest.mark.asyncio
async def test_timesheet_correction_reject_leaves_entry(db_session, operator_contact, operator_user):
    entry_id = await hrm_crud.timesheet_entry.upsert(
        db_session, obj_in=hrm_schemas.TimesheetEntryUpsert(employee_id=operator_contact, date=date(2024, 5, 6))
    )
    correction_id = await hrm_crud.timesheet_correction.create(
        db_session,
        obj_in=hrm_schemas.TimesheetCorrectionCreate(entry_id=entry_id, requested_day_type="remote", reason="x"),
    )
    await hrm_crud.timesheet_correction.reject(
        db_session, id=correction_id, approved_by=operator_user, reason="No grounds"
    )

    rejected = await hrm_crud.timesheet_correction.get_or_raise(db_session, correction_id)
    assert rejected.status == "rejected"
    assert rejected.rejection_reason == "No grounds"
    assert (await hrm_crud.timesheet_entry.get_or_raise(db_session, entry_id)).day_type == "work"


@pytest.mark.asyncio
async def test_holidays_by_year(db_session):
    await hrm_crud.holiday.create(db_session, obj_in=hrm_schemas.HolidayCreate(name="Navruz", date=date(2024, 3, 21)))
    await hrm_crud.holiday.create(db_session, obj_in=hrm_schemas.HolidayCreate(name="New Year", date=date(2024, 1, 1)))
    await hrm_crud.holiday.create(db_session, obj_in=hrm_schemas.HolidayCreate(name="New Year", date=date(2025, 1, 1)))

    holidays = await hrm_crud.holiday.get_by_year(db_session, year=2024)
    assert [h.name for h in holidays] == ["New Year", "Navruz"]


# =============================================================================
# vacation
# =============================================================================
def test_count_business_days():
    # 2024-07-01 is a Monday
    assert hrm_crud.count_business_days(date(2024, 7, 1), date(2024, 7, 7)) == 6
    assert hrm_crud.count_business_days(date(2024, 7, 1), date(2024, 7, 14)) == 12
    assert hrm_crud.count_business_days(date(2024, 7, 7), date(2024, 7, 7)) == 0
    assert hrm_crud.count_business_days(date(2024, 7, 8), date(2024, 7, 1)) == 0


@pytest.mark.asyncio
async def test_vacation_approve_and_cancel_book_the_balance(
    db_session, personnel, operator_contact, operator_user, annual_leave, balance_2024
):
    vacation_id = await hrm_crud.vacation.create(
        db_session,
        obj_in=hrm_schemas.VacationCreate(
            employee_id=operator_contact, vacation_type_id=annual_leave,
            start_date=date(2024, 7, 1), end_date=date(2024, 7, 14),
        ),
        created_by_user_id=operator_user,
    )
    assert (await hrm_crud.vacation.get_or_raise(db_session, vacation_id)).days_count == 12

    # approval needs a submitted request
    with pytest.raises(NotFoundError):
        await hrm_crud.vacation.approve(db_session, id=vacation_id, approved_by=operator_user)

    await hrm_crud.vacation.submit(db_session, id=vacation_id)
    await hrm_crud.vacation.approve(db_session, id=vacation_id, approved_by=operator_user)

    balance = await hrm_crud.vacation_balance.get_for(
        db_session, employee_id=operator_contact, vacation_type_id=annual_leave, year=2024
    )
    assert balance.used_days == pytest.approx(12)

    # approved vacations can no longer be edited or deleted
    with pytest.raises(NotFoundError):
        await hrm_crud.vacation.update(db_session, id=vacation_id, obj_in=hrm_schemas.VacationUpdate(reason="x"))
    with pytest.raises(NotFoundError):
        await hrm_crud.vacation.delete(db_session, id=vacation_id)

    await hrm_crud.vacation.cancel(db_session, id=vacation_id)
    balance = await hrm_crud.vacation_balance.get_for(
        db_session, employee_id=operator_contact, vacation_type_id=annual_leave, year=2024
    )
    assert balance.used_days == pytest.approx(0)
    assert (await hrm_crud.vacation.get_or_raise(db_session, vacation_id)).status == "cancelled"

    with pytest.raises(NotFoundError):
        await hrm_crud.vacation.cancel(db_session, id=vacation_id)


@pytest.mark.asyncio
async def test_vacation_overlap(db_session, operator_contact, annual_leave):
    first = await hrm_crud.vacation.create(
        db_session,
        obj_in=hrm_schemas.VacationCreate(
            employee_id=operator_contact, vacation_type_id=annual_leave,
            start_date=date(2024, 7, 1), end_date=date(2024, 7, 14),
        ),
    )
    overlapping = hrm_schemas.VacationCreate(
        employee_id=operator_contact, vacation_type_id=annual_leave,
        start_date=date(2024, 7, 14), end_date=date(2024, 7, 20),
    )
    with pytest.raises(VacationOverlapError):
        await hrm_crud.vacation.create(db_session, obj_in=overlapping)

    # a cancelled vacation frees its dates
    await hrm_crud.vacation.cancel(db_session, id=first)
    second = await hrm_crud.vacation.create(db_session, obj_in=overlapping)

    # moving a vacation onto its own dates is not an overlap
    await hrm_crud.vacation.update(
        db_session, id=second, obj_in=hrm_schemas.VacationUpdate(end_date=date(2024, 7, 27))
    )
    assert (await hrm_crud.vacation.get_or_raise(db_session, second)).days_count == 12

    listed = await hrm_crud.vacation.get_all(
        db_session, filters=hrm_schemas.VacationFilter(employee_id=operator_contact, status="draft")
    )
    assert [v.id for v in listed] == [second]


@pytest.mark.asyncio
async def test_vacation_date_validation(db_session, personnel, dispatch_department, operator_contact, annual_leave):
    with pytest.raises(InvalidDateRangeError):
        await hrm_crud.blocked_period.create(
            db_session,
            obj_in=hrm_schemas.BlockedPeriodCreate(
                department_id=dispatch_department, start_date=date(2024, 8, 10), end_date=date(2024, 8, 1)
            ),
        )
    await hrm_crud.blocked_period.create(
        db_session,
        obj_in=hrm_schemas.BlockedPeriodCreate(
            department_id=dispatch_department, start_date=date(2024, 8, 1), end_date=date(2024, 8, 10),
            reason="Annual repair campaign",
        ),
    )

    with pytest.raises(InvalidDateRangeError):
        await hrm_crud.vacation.create(
            db_session,
            obj_in=hrm_schemas.VacationCreate(
                employee_id=operator_contact, vacation_type_id=annual_leave,
                start_date=date(2024, 9, 10), end_date=date(2024, 9, 1),
            ),
        )
    with pytest.raises(BlockedPeriodError):
        await hrm_crud.vacation.create(
            db_session,
            obj_in=hrm_schemas.VacationCreate(
                employee_id=operator_contact, vacation_type_id=annual_leave,
                start_date=date(2024, 7, 25), end_date=date(2024, 8, 1),
            ),
        )
    assert await hrm_crud.vacation.get_all(db_session) == []


@pytest.mark.asyncio
async def test_vacation_approve_without_balance_rolls_back(db_session, operator_contact, operator_user, annual_leave):
    vacation_id = await hrm_crud.vacation.create(
        db_session,
        obj_in=hrm_schemas.VacationCreate(
            employee_id=operator_contact, vacation_type_id=annual_leave,
            start_date=date(2025, 1, 6), end_date=date(2025, 1, 10),
        ),
    )
    await hrm_crud.vacation.submit(db_session, id=vacation_id)

    with pytest.raises(NotFoundError):
        await hrm_crud.vacation.approve(db_session, id=vacation_id, approved_by=operator_user)
    assert (await hrm_crud.vacation.get_or_raise(db_session, vacation_id)).status == "pending"

    await hrm_crud.vacation.reject(db_session, id=vacation_id, approved_by=operator_user, reason="No balance")
    assert (await hrm_crud.vacation.get_or_raise(db_session, vacation_id)).status == "rejected"
