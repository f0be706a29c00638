# app/domains/hrm/crud.py

"""
Repositories of the 'hrm' domain.

Workflow documents (salaries, timesheet corrections, vacations) change
status only through `transition`-style updates that carry the allowed
current statuses in the WHERE clause: a row in any other status is left
alone and reported as NotFound.
"""

import logging
import datetime as dt
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.crud_base import CRUDBase, dialect_insert, execute_read, transaction
from app.core.exceptions import (
    BlockedPeriodError,
    InvalidDateRangeError,
    NegativeNetAmountError,
    NotFoundError,
    VacationOverlapError,
)
from app.core.query_builder import SetBuilder, WhereBuilder, edit_values
from app.core.scanning import scan_all
from app.domains.corp.models import Contact, Department, Position
from . import models as hrm_models
from . import schemas as hrm_schemas

logger = logging.getLogger(__name__)


# =============================================================================
# 1. Personnel
# =============================================================================
class CRUDPersonnelRecord(
    CRUDBase[hrm_models.PersonnelRecord, hrm_schemas.PersonnelRecordCreate, hrm_schemas.PersonnelRecordUpdate]
):
    def __init__(self):
        super().__init__(model=hrm_models.PersonnelRecord)

    def _select(self):
        records = self.table
        contacts = Contact.__table__
        departments = Department.__table__
        positions = Position.__table__
        return select(
            records,
            contacts.c.fio.label("employee_fio"),
            departments.c.name.label("department_name"),
            positions.c.name.label("position_name"),
        ).select_from(
            records
            .join(contacts, contacts.c.id == records.c.employee_id)
            .outerjoin(departments, departments.c.id == records.c.department_id)
            .outerjoin(positions, positions.c.id == records.c.position_id)
        )

    async def get_by_id(self, db: AsyncSession, *, id: int) -> hrm_schemas.PersonnelRecordResponse:
        result = await execute_read(db, self._select().where(self.table.c.id == id), self.op("get_by_id"))
        records = scan_all(result, hrm_schemas.PersonnelRecordResponse)
        if not records:
            raise NotFoundError(self.op("get_by_id"), f"personnel record {id} not found")
        return records[0]

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[hrm_schemas.PersonnelRecordFilter] = None
    ) -> List[hrm_schemas.PersonnelRecordResponse]:
        filters = filters or hrm_schemas.PersonnelRecordFilter()
        where = (
            WhereBuilder()
            .eq(self.table.c.department_id, filters.department_id)
            .eq(self.table.c.position_id, filters.position_id)
            .eq(self.table.c.status, filters.status)
        )
        statement = where.apply(self._select()).order_by(Contact.__table__.c.fio, self.table.c.id)
        result = await execute_read(db, statement, self.op("get_all"))
        return scan_all(result, hrm_schemas.PersonnelRecordResponse)

    async def department_of(self, db: AsyncSession, *, employee_id: int) -> Optional[int]:
        statement = select(self.table.c.department_id).where(self.table.c.employee_id == employee_id)
        result = await execute_read(db, statement, self.op("department_of"))
        return result.scalar_one_or_none()


personnel_record = CRUDPersonnelRecord()


class CRUDPersonnelDocument(
    CRUDBase[hrm_models.PersonnelDocument, hrm_schemas.PersonnelDocumentCreate, hrm_schemas.PersonnelDocumentCreate]
):
    def __init__(self):
        super().__init__(model=hrm_models.PersonnelDocument)

    async def get_by_record(self, db: AsyncSession, *, record_id: int) -> List[hrm_models.PersonnelDocument]:
        return await self.get_multi(
            db, record_id=record_id, limit=1000,
            order_by=(self.table.c.uploaded_at.desc(), self.table.c.id.desc()),
        )


personnel_document = CRUDPersonnelDocument()


class CRUDPersonnelTransfer(
    CRUDBase[hrm_models.PersonnelTransfer, hrm_schemas.PersonnelTransferCreate, hrm_schemas.PersonnelTransferCreate]
):
    def __init__(self):
        super().__init__(model=hrm_models.PersonnelTransfer)

    async def create(self, db: AsyncSession, *, obj_in: hrm_schemas.PersonnelTransferCreate) -> int:
        """
        Records the transfer and moves the personnel record to the new
        department/position in the same transaction.
        """
        op = self.op("create")
        records = hrm_models.PersonnelRecord.__table__
        async with transaction(db, op):
            result = await db.execute(
                select(records.c.department_id, records.c.position_id)
                .where(records.c.id == obj_in.record_id)
                .with_for_update()
            )
            current = result.first()
            if current is None:
                raise NotFoundError(op, f"personnel record {obj_in.record_id} not found")

            new_id = await self.insert_row(
                db,
                self.insert_values(
                    obj_in,
                    from_department_id=current.department_id,
                    from_position_id=current.position_id,
                ),
            )
            moved = (
                SetBuilder()
                .set_if_present(records.c.department_id, obj_in.to_department_id)
                .set_if_present(records.c.position_id, obj_in.to_position_id)
            )
            if not moved.is_empty:
                moved.set_expr(records.c.updated_at, func.now())
                await db.execute(update(records).where(records.c.id == obj_in.record_id).values(**moved.values()))
        logger.debug("personnel record %s transferred (transfer %s)", obj_in.record_id, new_id)
        return new_id

    async def get_by_record(self, db: AsyncSession, *, record_id: int) -> List[hrm_models.PersonnelTransfer]:
        return await self.get_multi(
            db, record_id=record_id, limit=1000,
            order_by=(self.table.c.transfer_date.desc(), self.table.c.id.desc()),
        )


personnel_transfer = CRUDPersonnelTransfer()


# =============================================================================
# 2. Salary
# =============================================================================
def compute_salary_totals(calculation: hrm_schemas.SalaryCalculation) -> hrm_schemas.SalaryTotals:
    """
    gross = base + allowances + bonuses
    net   = gross - deductions - tax

    A negative net amount is rejected.
    """
    gross = calculation.base_amount + calculation.allowances_amount + calculation.bonuses_amount
    net = gross - calculation.deductions_amount - calculation.tax_amount
    if net < 0:
        raise NegativeNetAmountError("hrm.compute_salary_totals", f"net amount would be {net:.2f}")
    return hrm_schemas.SalaryTotals(gross_amount=gross, net_amount=net)


class CRUDSalaryStructure(
    CRUDBase[hrm_models.SalaryStructure, hrm_schemas.SalaryStructureCreate, hrm_schemas.SalaryStructureUpdate]
):
    def __init__(self):
        super().__init__(model=hrm_models.SalaryStructure)

    async def get_by_employee(self, db: AsyncSession, *, employee_id: int) -> List[hrm_models.SalaryStructure]:
        return await self.get_multi(
            db, employee_id=employee_id, limit=1000, order_by=self.table.c.effective_from.desc()
        )

    async def get_active(
        self, db: AsyncSession, *, employee_id: int, on_date: dt.date
    ) -> Optional[hrm_models.SalaryStructure]:
        """The structure in force on `on_date` (latest effective_from wins)."""
        structures = self.table
        statement = (
            select(hrm_models.SalaryStructure)
            .where(
                structures.c.employee_id == employee_id,
                structures.c.effective_from <= on_date,
                (structures.c.effective_to.is_(None)) | (structures.c.effective_to >= on_date),
            )
            .order_by(structures.c.effective_from.desc(), structures.c.id.desc())
            .limit(1)
        )
        result = await execute_read(db, statement, self.op("get_active"))
        return result.scalars().first()


salary_structure = CRUDSalaryStructure()


class CRUDSalary(CRUDBase[hrm_models.Salary, hrm_schemas.SalaryCreate, hrm_schemas.SalaryCalculation]):
    """Monthly payroll: draft -> calculated -> approved -> paid."""

    def __init__(self):
        super().__init__(model=hrm_models.Salary)

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[hrm_schemas.SalaryFilter] = None
    ) -> List[hrm_models.Salary]:
        filters = filters or hrm_schemas.SalaryFilter()
        statement = (
            WhereBuilder()
            .eq(self.table.c.employee_id, filters.employee_id)
            .eq(self.table.c.year, filters.year)
            .eq(self.table.c.month, filters.month)
            .eq(self.table.c.status, filters.status)
            .apply(select(hrm_models.Salary))
            .order_by(self.table.c.year.desc(), self.table.c.month.desc(), self.table.c.id)
            .execution_options(populate_existing=True)
        )
        result = await execute_read(db, statement, self.op("get_all"))
        return list(result.scalars().all())

    async def update_calculation(
        self, db: AsyncSession, *, id: int, calculation: hrm_schemas.SalaryCalculation
    ) -> hrm_schemas.SalaryTotals:
        """Stores the calculation inputs and totals; allowed from draft or calculated."""
        totals = compute_salary_totals(calculation)
        values = (
            SetBuilder()
            .extend(edit_values(calculation, self.table))
            .set(self.table.c.gross_amount, totals.gross_amount)
            .set(self.table.c.net_amount, totals.net_amount)
            .set(self.table.c.status, "calculated")
            .set_expr(self.table.c.calculated_at, func.now())
        )
        await self.transition(
            db, id=id, from_statuses=("draft", "calculated"), values=values, action="update_calculation"
        )
        return totals

    async def approve(self, db: AsyncSession, *, id: int, approved_by: int) -> None:
        values = (
            SetBuilder()
            .set(self.table.c.status, "approved")
            .set(self.table.c.approved_by, approved_by)
            .set_expr(self.table.c.approved_at, func.now())
        )
        await self.transition(db, id=id, from_statuses=("calculated",), values=values, action="approve")

    async def mark_paid(self, db: AsyncSession, *, id: int) -> None:
        values = SetBuilder().set(self.table.c.status, "paid").set_expr(self.table.c.paid_at, func.now())
        await self.transition(db, id=id, from_statuses=("approved",), values=values, action="mark_paid")

    async def delete(self, db: AsyncSession, *, id: int) -> None:
        """Only draft salaries can be deleted."""
        await super().delete(db, id=id, where=[self.table.c.status == "draft"])


salary = CRUDSalary()


class _SalaryComponentCRUD(CRUDBase):
    """Bonuses / deductions of an employee for a month."""

    async def get_for_month(self, db: AsyncSession, *, employee_id: int, year: int, month: int) -> list:
        return await self.get_multi(db, employee_id=employee_id, year=year, month=month, limit=1000)

    async def sum_for_month(self, db: AsyncSession, *, employee_id: int, year: int, month: int) -> float:
        statement = select(func.coalesce(func.sum(self.table.c.amount), 0.0)).where(
            self.table.c.employee_id == employee_id,
            self.table.c.year == year,
            self.table.c.month == month,
        )
        result = await execute_read(db, statement, self.op("sum_for_month"))
        return float(result.scalar_one())


class CRUDSalaryBonus(_SalaryComponentCRUD):
    def __init__(self):
        super().__init__(model=hrm_models.SalaryBonus)


salary_bonus = CRUDSalaryBonus()


class CRUDSalaryDeduction(_SalaryComponentCRUD):
    def __init__(self):
        super().__init__(model=hrm_models.SalaryDeduction)


salary_deduction = CRUDSalaryDeduction()


# =============================================================================
# 3. Timesheet
# =============================================================================
class CRUDHoliday(CRUDBase[hrm_models.Holiday, hrm_schemas.HolidayCreate, hrm_schemas.HolidayCreate]):
    def __init__(self):
        super().__init__(model=hrm_models.Holiday)

    async def create(self, db: AsyncSession, *, obj_in: hrm_schemas.HolidayCreate) -> int:
        return await super().create(db, obj_in=obj_in, year=obj_in.date.year)

    async def get_by_year(self, db: AsyncSession, *, year: int) -> List[hrm_models.Holiday]:
        return await self.get_multi(db, year=year, limit=1000, order_by=self.table.c.date)


holiday = CRUDHoliday()


class CRUDTimesheetEntry(
    CRUDBase[hrm_models.TimesheetEntry, hrm_schemas.TimesheetEntryUpsert, hrm_schemas.TimesheetEntryUpdate]
):
    def __init__(self):
        super().__init__(model=hrm_models.TimesheetEntry)

    async def upsert(self, db: AsyncSession, *, obj_in: hrm_schemas.TimesheetEntryUpsert) -> int:
        """Inserts the day or replaces the existing (employee, date) entry; returns its id."""
        entries = self.table
        values = obj_in.model_dump()
        async with transaction(db, self.op("upsert")):
            statement = dialect_insert(db, entries).values(**values)
            replaced = {
                key: getattr(statement.excluded, key)
                for key in values
                if key not in ("employee_id", "date")
            }
            replaced["updated_at"] = func.now()
            statement = statement.on_conflict_do_update(
                index_elements=[entries.c.employee_id, entries.c.date], set_=replaced
            ).returning(entries.c.id)
            result = await db.execute(statement)
            entry_id = result.scalar_one()
        return entry_id

    async def get_for_employee(
        self, db: AsyncSession, *, employee_id: int, start_date: dt.date, end_date: dt.date
    ) -> List[hrm_models.TimesheetEntry]:
        statement = (
            select(hrm_models.TimesheetEntry)
            .where(
                self.table.c.employee_id == employee_id,
                self.table.c.date >= start_date,
                self.table.c.date <= end_date,
            )
            .order_by(self.table.c.date)
            .execution_options(populate_existing=True)
        )
        result = await execute_read(db, statement, self.op("get_for_employee"))
        return list(result.scalars().all())


timesheet_entry = CRUDTimesheetEntry()


class CRUDTimesheetCorrection(
    CRUDBase[hrm_models.TimesheetCorrection, hrm_schemas.TimesheetCorrectionCreate, hrm_schemas.TimesheetCorrectionCreate]
):
    """Correction requests: pending -> approved | rejected."""

    def __init__(self):
        super().__init__(model=hrm_models.TimesheetCorrection)
        self.entries = hrm_models.TimesheetEntry.__table__

    async def create(self, db: AsyncSession, *, obj_in: hrm_schemas.TimesheetCorrectionCreate) -> int:
        """Opens a pending request with a snapshot of the entry's current values."""
        op = self.op("create")
        async with transaction(db, op):
            result = await db.execute(
                select(
                    self.entries.c.employee_id, self.entries.c.check_in,
                    self.entries.c.check_out, self.entries.c.day_type,
                ).where(self.entries.c.id == obj_in.entry_id)
            )
            entry = result.first()
            if entry is None:
                raise NotFoundError(op, f"timesheet entry {obj_in.entry_id} not found")
            new_id = await self.insert_row(
                db,
                self.insert_values(
                    obj_in,
                    employee_id=entry.employee_id,
                    original_check_in=entry.check_in,
                    original_check_out=entry.check_out,
                    original_day_type=entry.day_type,
                ),
            )
        return new_id

    async def get_all(
        self, db: AsyncSession, *, employee_id: Optional[int] = None, status: Optional[str] = None
    ) -> List[hrm_models.TimesheetCorrection]:
        return await self.get_multi(
            db, employee_id=employee_id, status=status, limit=1000,
            order_by=(self.table.c.created_at.desc(), self.table.c.id.desc()),
        )

    async def approve(self, db: AsyncSession, *, id: int, approved_by: int) -> None:
        """Approves a pending request and applies the requested values to the entry."""
        op = self.op("approve")
        corrections = self.table
        async with transaction(db, op):
            affected = await self.update_rows(
                db,
                id=id,
                values={"status": "approved", "approved_by": approved_by, "approved_at": func.now()},
                where=[corrections.c.status == "pending"],
            )
            if affected == 0:
                raise NotFoundError(op, f"pending timesheet correction {id} not found")

            result = await db.execute(
                select(
                    corrections.c.entry_id, corrections.c.requested_check_in,
                    corrections.c.requested_check_out, corrections.c.requested_day_type,
                ).where(corrections.c.id == id)
            )
            correction = result.first()
            changes = (
                SetBuilder()
                .set_if_present(self.entries.c.check_in, correction.requested_check_in)
                .set_if_present(self.entries.c.check_out, correction.requested_check_out)
                .set_if_present(self.entries.c.day_type, correction.requested_day_type)
            )
            if not changes.is_empty:
                changes.set_expr(self.entries.c.updated_at, func.now())
                await db.execute(
                    update(self.entries).where(self.entries.c.id == correction.entry_id).values(**changes.values())
                )
        logger.debug("timesheet correction %s approved", id)

    async def reject(self, db: AsyncSession, *, id: int, approved_by: int, reason: Optional[str] = None) -> None:
        values = (
            SetBuilder()
            .set(self.table.c.status, "rejected")
            .set(self.table.c.approved_by, approved_by)
            .set_expr(self.table.c.approved_at, func.now())
            .set(self.table.c.rejection_reason, reason)
        )
        await self.transition(db, id=id, from_statuses=("pending",), values=values, action="reject")


timesheet_correction = CRUDTimesheetCorrection()


# =============================================================================
# 4. Vacation
# =============================================================================
# Vacation statuses that no longer occupy dates
INACTIVE_VACATION_STATUSES = ("cancelled", "rejected")


def count_business_days(start: dt.date, end: dt.date) -> int:
    """Days in [start, end] excluding Sundays."""
    if end < start:
        return 0
    total = (end - start).days + 1
    return sum(1 for offset in range(total) if (start + dt.timedelta(days=offset)).weekday() != 6)


class CRUDVacationType(CRUDBase[hrm_models.VacationType, hrm_schemas.VacationTypeCreate, hrm_schemas.VacationTypeCreate]):
    def __init__(self):
        super().__init__(model=hrm_models.VacationType)

    async def get_all(self, db: AsyncSession, *, active_only: bool = False) -> List[hrm_models.VacationType]:
        return await self.get_multi(
            db, is_active=True if active_only else None, limit=1000, order_by=self.table.c.name
        )


vacation_type = CRUDVacationType()


class CRUDVacationBalance(
    CRUDBase[hrm_models.VacationBalance, hrm_schemas.VacationBalanceCreate, hrm_schemas.VacationBalanceUpdate]
):
    def __init__(self):
        super().__init__(model=hrm_models.VacationBalance)

    async def get_for(
        self, db: AsyncSession, *, employee_id: int, vacation_type_id: int, year: int
    ) -> Optional[hrm_models.VacationBalance]:
        items = await self.get_multi(
            db, employee_id=employee_id, vacation_type_id=vacation_type_id, year=year, limit=1
        )
        return next(iter(items), None)

    async def shift_used_days(
        self, db: AsyncSession, *, employee_id: int, vacation_type_id: int, year: int, days: float
    ) -> None:
        """used_days += days inside the caller's transaction; NotFound without a balance row."""
        balances = self.table
        result = await db.execute(
            update(balances)
            .where(
                balances.c.employee_id == employee_id,
                balances.c.vacation_type_id == vacation_type_id,
                balances.c.year == year,
            )
            .values(used_days=balances.c.used_days + days, updated_at=func.now())
        )
        if result.rowcount == 0:
            raise NotFoundError(
                self.op("shift_used_days"),
                f"no vacation balance for employee {employee_id}, type {vacation_type_id}, {year}",
            )

    async def add_used_days(
        self, db: AsyncSession, *, employee_id: int, vacation_type_id: int, year: int, days: float
    ) -> None:
        async with transaction(db, self.op("add_used_days")):
            await self.shift_used_days(
                db, employee_id=employee_id, vacation_type_id=vacation_type_id, year=year, days=days
            )


vacation_balance = CRUDVacationBalance()


class CRUDBlockedPeriod(
    CRUDBase[hrm_models.DepartmentBlockedPeriod, hrm_schemas.BlockedPeriodCreate, hrm_schemas.BlockedPeriodCreate]
):
    def __init__(self):
        super().__init__(model=hrm_models.DepartmentBlockedPeriod)

    async def create(self, db: AsyncSession, *, obj_in: hrm_schemas.BlockedPeriodCreate) -> int:
        if obj_in.end_date < obj_in.start_date:
            raise InvalidDateRangeError(self.op("create"), "end_date is before start_date")
        return await super().create(db, obj_in=obj_in)

    async def get_for_department(
        self, db: AsyncSession, *, department_id: int
    ) -> List[hrm_models.DepartmentBlockedPeriod]:
        return await self.get_multi(db, department_id=department_id, limit=1000, order_by=self.table.c.start_date)

    async def overlaps(self, db: AsyncSession, *, department_id: int, start: dt.date, end: dt.date) -> bool:
        """True when [start, end] touches any blocked period of the department."""
        periods = self.table
        statement = select(periods.c.id).where(
            periods.c.department_id == department_id,
            periods.c.start_date <= end,
            periods.c.end_date >= start,
        ).limit(1)
        result = await execute_read(db, statement, self.op("overlaps"))
        return result.first() is not None


blocked_period = CRUDBlockedPeriod()


class CRUDVacation(CRUDBase[hrm_models.Vacation, hrm_schemas.VacationCreate, hrm_schemas.VacationUpdate]):
    """
    Leave requests.

    draft -> pending -> approved | rejected, and draft / pending / approved
    -> cancelled. Approval books the days on the employee's balance for the
    vacation year; cancelling an approved vacation gives them back.
    """
    def __init__(self):
        super().__init__(model=hrm_models.Vacation)

    async def _validate_dates(
        self, db: AsyncSession, op: str, *, employee_id: int, start: dt.date, end: dt.date, exclude_id: Optional[int] = None
    ) -> None:
        if end < start:
            raise InvalidDateRangeError(op, "end_date is before start_date")

        department_id = await personnel_record.department_of(db, employee_id=employee_id)
        if department_id is not None and await blocked_period.overlaps(
            db, department_id=department_id, start=start, end=end
        ):
            raise BlockedPeriodError(op)

        vacations = self.table
        statement = select(vacations.c.id).where(
            vacations.c.employee_id == employee_id,
            vacations.c.status.not_in(INACTIVE_VACATION_STATUSES),
            vacations.c.start_date <= end,
            vacations.c.end_date >= start,
        )
        if exclude_id is not None:
            statement = statement.where(vacations.c.id != exclude_id)
        result = await db.execute(statement.limit(1))
        if result.first() is not None:
            raise VacationOverlapError(op)

    async def _requires_balance(self, db: AsyncSession, vacation_type_id: int) -> bool:
        types = hrm_models.VacationType.__table__
        result = await db.execute(select(types.c.requires_balance).where(types.c.id == vacation_type_id))
        return bool(result.scalar_one_or_none())

    async def create(
        self, db: AsyncSession, *, obj_in: hrm_schemas.VacationCreate, created_by_user_id: Optional[int] = None
    ) -> int:
        """Validates the dates and stores a draft with its business-day count."""
        op = self.op("create")
        async with transaction(db, op):
            await self._validate_dates(
                db, op, employee_id=obj_in.employee_id, start=obj_in.start_date, end=obj_in.end_date
            )
            new_id = await self.insert_row(
                db,
                self.insert_values(
                    obj_in,
                    days_count=count_business_days(obj_in.start_date, obj_in.end_date),
                    created_by_user_id=created_by_user_id,
                ),
            )
        logger.debug("vacation %s created for employee %s", new_id, obj_in.employee_id)
        return new_id

    async def get_all(
        self, db: AsyncSession, *, filters: Optional[hrm_schemas.VacationFilter] = None
    ) -> List[hrm_models.Vacation]:
        filters = filters or hrm_schemas.VacationFilter()
        vacations = self.table
        statement = (
            WhereBuilder()
            .eq(vacations.c.employee_id, filters.employee_id)
            .eq(vacations.c.vacation_type_id, filters.vacation_type_id)
            .eq(vacations.c.status, filters.status)
            .ge(vacations.c.end_date, filters.start_date)
            .le(vacations.c.start_date, filters.end_date)
            .apply(select(hrm_models.Vacation))
            .order_by(vacations.c.start_date.desc(), vacations.c.id.desc())
            .execution_options(populate_existing=True)
        )
        result = await execute_read(db, statement, self.op("get_all"))
        return list(result.scalars().all())

    async def update(self, db: AsyncSession, *, id: int, obj_in: hrm_schemas.VacationUpdate) -> None:
        """Edits a draft or pending vacation; changed dates are re-validated."""
        op = self.op("update")
        vacations = self.table
        editable = ("draft", "pending")
        builder = SetBuilder().extend(edit_values(obj_in, vacations))
        if builder.is_empty:
            return

        async with transaction(db, op):
            result = await db.execute(
                select(vacations.c.employee_id, vacations.c.start_date, vacations.c.end_date)
                .where(vacations.c.id == id, vacations.c.status.in_(editable))
                .with_for_update()
            )
            current = result.first()
            if current is None:
                raise NotFoundError(op, f"vacation {id} not found in status {list(editable)}")

            if obj_in.start_date is not None or obj_in.end_date is not None:
                start = obj_in.start_date or current.start_date
                end = obj_in.end_date or current.end_date
                await self._validate_dates(db, op, employee_id=current.employee_id, start=start, end=end, exclude_id=id)
                builder.set(vacations.c.days_count, count_business_days(start, end))

            affected = await self.update_rows(
                db, id=id, values=self.touch(builder).values(), where=[vacations.c.status.in_(editable)]
            )
            if affected == 0:
                raise NotFoundError(op, f"vacation {id} not found in status {list(editable)}")

    async def submit(self, db: AsyncSession, *, id: int) -> None:
        values = SetBuilder().set(self.table.c.status, "pending")
        await self.transition(db, id=id, from_statuses=("draft",), values=values, action="submit")

    async def approve(self, db: AsyncSession, *, id: int, approved_by: int) -> None:
        """pending -> approved; the days are added to the balance in the same transaction."""
        op = self.op("approve")
        vacations = self.table
        async with transaction(db, op):
            values = (
                SetBuilder()
                .set(vacations.c.status, "approved")
                .set(vacations.c.approved_by, approved_by)
                .set_expr(vacations.c.approved_at, func.now())
            )
            affected = await self.update_rows(
                db, id=id, values=self.touch(values).values(), where=[vacations.c.status == "pending"]
            )
            if affected == 0:
                raise NotFoundError(op, f"pending vacation {id} not found")

            result = await db.execute(
                select(
                    vacations.c.employee_id, vacations.c.vacation_type_id,
                    vacations.c.start_date, vacations.c.days_count,
                ).where(vacations.c.id == id)
            )
            approved = result.first()
            if await self._requires_balance(db, approved.vacation_type_id):
                await vacation_balance.shift_used_days(
                    db,
                    employee_id=approved.employee_id,
                    vacation_type_id=approved.vacation_type_id,
                    year=approved.start_date.year,
                    days=approved.days_count,
                )
        logger.debug("vacation %s approved by %s", id, approved_by)

    async def reject(self, db: AsyncSession, *, id: int, approved_by: int, reason: Optional[str] = None) -> None:
        values = (
            SetBuilder()
            .set(self.table.c.status, "rejected")
            .set(self.table.c.approved_by, approved_by)
            .set_expr(self.table.c.approved_at, func.now())
            .set(self.table.c.rejection_reason, reason)
        )
        await self.transition(db, id=id, from_statuses=("pending",), values=values, action="reject")

    async def cancel(self, db: AsyncSession, *, id: int) -> None:
        """Cancels a draft, pending or approved vacation, returning booked days."""
        op = self.op("cancel")
        vacations = self.table
        cancellable = ("draft", "pending", "approved")
        async with transaction(db, op):
            result = await db.execute(
                select(
                    vacations.c.status, vacations.c.employee_id, vacations.c.vacation_type_id,
                    vacations.c.start_date, vacations.c.days_count,
                )
                .where(vacations.c.id == id, vacations.c.status.in_(cancellable))
                .with_for_update()
            )
            current = result.first()
            if current is None:
                raise NotFoundError(op, f"vacation {id} not found in status {list(cancellable)}")

            affected = await self.update_rows(
                db,
                id=id,
                values=self.touch(SetBuilder().set(vacations.c.status, "cancelled")).values(),
                where=[vacations.c.status == current.status],
            )
            if affected == 0:
                raise NotFoundError(op, f"vacation {id} changed status concurrently")

            if current.status == "approved" and await self._requires_balance(db, current.vacation_type_id):
                await vacation_balance.shift_used_days(
                    db,
                    employee_id=current.employee_id,
                    vacation_type_id=current.vacation_type_id,
                    year=current.start_date.year,
                    days=-current.days_count,
                )
        logger.debug("vacation %s cancelled (was %s)", id, current.status)

    async def delete(self, db: AsyncSession, *, id: int) -> None:
        """Only draft vacations can be deleted."""
        await super().delete(db, id=id, where=[self.table.c.status == "draft"])


vacation = CRUDVacation()
