# app/domains/hrm/models.py

"""
ORM models of the 'hrm' domain (human resources).

An employee is a `contacts` row; every HR table points at it through
`employee_id`. The tables fall into four groups:

- personnel: personnel_records, personnel_documents, personnel_transfers
- salary: salary_structures, salaries, salary_bonuses, salary_deductions
- timesheet: holidays, timesheet_entries, timesheet_corrections
- vacation: vacation_types, vacation_balances, vacations,
  department_blocked_periods

Documents with a workflow (salaries, vacations, timesheet corrections)
keep their state in a `status` text column.
"""

from typing import Optional
import datetime as dt
from datetime import datetime

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. personnel
# =============================================================================
class PersonnelRecord(SQLModel, table=True):
    __tablename__ = "personnel_records"

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE", unique=True)
    tab_number: str = Field(max_length=50, unique=True, description="Personnel number")
    hire_date: dt.date = Field()
    department_id: Optional[int] = Field(default=None, foreign_key="departments.id", ondelete="SET NULL")
    position_id: Optional[int] = Field(default=None, foreign_key="positions.id", ondelete="SET NULL")
    contract_type: str = Field(default="permanent", max_length=50)
    contract_end_date: Optional[dt.date] = Field(default=None)
    status: str = Field(default="active", max_length=20, sa_column_kwargs={"server_default": "active"})
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class PersonnelDocument(SQLModel, table=True):
    __tablename__ = "personnel_documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    record_id: int = Field(foreign_key="personnel_records.id", ondelete="CASCADE")
    document_type: str = Field(max_length=100, description="e.g. 'passport', 'diploma', 'contract'")
    name: str = Field(max_length=255)
    file_id: Optional[int] = Field(default=None, foreign_key="files.id", ondelete="SET NULL")
    valid_until: Optional[dt.date] = Field(default=None)
    uploaded_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class PersonnelTransfer(SQLModel, table=True):
    __tablename__ = "personnel_transfers"

    id: Optional[int] = Field(default=None, primary_key=True)
    record_id: int = Field(foreign_key="personnel_records.id", ondelete="CASCADE")
    from_department_id: Optional[int] = Field(default=None, foreign_key="departments.id", ondelete="SET NULL")
    to_department_id: Optional[int] = Field(default=None, foreign_key="departments.id", ondelete="SET NULL")
    from_position_id: Optional[int] = Field(default=None, foreign_key="positions.id", ondelete="SET NULL")
    to_position_id: Optional[int] = Field(default=None, foreign_key="positions.id", ondelete="SET NULL")
    transfer_date: dt.date = Field()
    order_number: Optional[str] = Field(default=None, max_length=100)
    reason: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


# =============================================================================
# 2. salary
# =============================================================================
class SalaryStructure(SQLModel, table=True):
    __tablename__ = "salary_structures"

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    base_salary: float = Field()
    currency: str = Field(default="UZS", max_length=3)
    pay_frequency: str = Field(default="monthly", max_length=20)
    allowances: float = Field(default=0.0, description="Fixed monthly allowances")
    effective_from: dt.date = Field()
    effective_to: Optional[dt.date] = Field(default=None, description="Open-ended when empty")
    notes: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class Salary(SQLModel, table=True):
    """
    Monthly payroll sheet of one employee.
    draft -> calculated -> approved -> paid
    """
    __tablename__ = "salaries"
    __table_args__ = (UniqueConstraint("employee_id", "year", "month"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    year: int = Field()
    month: int = Field(ge=1, le=12)
    base_amount: float = Field(default=0.0)
    allowances_amount: float = Field(default=0.0)
    bonuses_amount: float = Field(default=0.0)
    deductions_amount: float = Field(default=0.0)
    tax_amount: float = Field(default=0.0)
    gross_amount: float = Field(default=0.0)
    net_amount: float = Field(default=0.0)
    worked_days: Optional[int] = Field(default=None)
    total_work_days: Optional[int] = Field(default=None)
    overtime_hours: Optional[float] = Field(default=None)
    status: str = Field(default="draft", max_length=20, sa_column_kwargs={"server_default": "draft"})
    notes: Optional[str] = Field(default=None)
    calculated_at: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    approved_by: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    approved_at: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    paid_at: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class SalaryBonus(SQLModel, table=True):
    __tablename__ = "salary_bonuses"

    id: Optional[int] = Field(default=None, primary_key=True)
    salary_id: Optional[int] = Field(default=None, foreign_key="salaries.id", ondelete="CASCADE")
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    bonus_type: str = Field(max_length=50)
    amount: float = Field()
    description: Optional[str] = Field(default=None)
    year: int = Field()
    month: int = Field()
    approved_by: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    approved_at: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class SalaryDeduction(SQLModel, table=True):
    __tablename__ = "salary_deductions"

    id: Optional[int] = Field(default=None, primary_key=True)
    salary_id: Optional[int] = Field(default=None, foreign_key="salaries.id", ondelete="CASCADE")
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    deduction_type: str = Field(max_length=50)
    amount: float = Field()
    description: Optional[str] = Field(default=None)
    year: int = Field()
    month: int = Field()
    is_recurring: bool = Field(default=False)
    recurring_until: Optional[dt.date] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


# =============================================================================
# 3. timesheet
# =============================================================================
class Holiday(SQLModel, table=True):
    __tablename__ = "holidays"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    date: dt.date = Field(unique=True)
    year: int = Field(index=True)
    is_working_day: bool = Field(default=False, description="Transferred working day instead of a day off")


class TimesheetEntry(SQLModel, table=True):
    __tablename__ = "timesheet_entries"
    __table_args__ = (UniqueConstraint("employee_id", "date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    date: dt.date = Field()
    check_in: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    check_out: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    break_minutes: int = Field(default=0)
    worked_hours: Optional[float] = Field(default=None)
    overtime_hours: Optional[float] = Field(default=None)
    day_type: str = Field(default="work", max_length=30, description="work, weekend, holiday, sick, vacation, ...")
    is_remote: bool = Field(default=False)
    notes: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class TimesheetCorrection(SQLModel, table=True):
    """
    Request to change a timesheet entry.
    pending -> approved | rejected
    """
    __tablename__ = "timesheet_corrections"

    id: Optional[int] = Field(default=None, primary_key=True)
    entry_id: int = Field(foreign_key="timesheet_entries.id", ondelete="CASCADE")
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    original_check_in: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    original_check_out: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    original_day_type: Optional[str] = Field(default=None, max_length=30)
    requested_check_in: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    requested_check_out: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    requested_day_type: Optional[str] = Field(default=None, max_length=30)
    reason: str = Field()
    status: str = Field(default="pending", max_length=20, sa_column_kwargs={"server_default": "pending"})
    approved_by: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    approved_at: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    rejection_reason: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


# =============================================================================
# 4. vacation
# =============================================================================
class VacationType(SQLModel, table=True):
    __tablename__ = "vacation_types"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(max_length=50, unique=True)
    name: str = Field(max_length=255)
    default_days: int = Field(default=0)
    requires_balance: bool = Field(default=True, description="Days are taken from the yearly balance")
    is_paid: bool = Field(default=True)
    is_active: bool = Field(default=True)


class VacationBalance(SQLModel, table=True):
    __tablename__ = "vacation_balances"
    __table_args__ = (UniqueConstraint("employee_id", "vacation_type_id", "year"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    vacation_type_id: int = Field(foreign_key="vacation_types.id", ondelete="RESTRICT")
    year: int = Field()
    entitled_days: float = Field(default=0.0)
    carried_over_days: float = Field(default=0.0)
    adjustment_days: float = Field(default=0.0)
    used_days: float = Field(default=0.0)
    notes: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class Vacation(SQLModel, table=True):
    """
    Leave request.
    draft -> pending -> approved | rejected; draft/pending/approved -> cancelled
    """
    __tablename__ = "vacations"

    id: Optional[int] = Field(default=None, primary_key=True)
    employee_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE")
    vacation_type_id: int = Field(foreign_key="vacation_types.id", ondelete="RESTRICT")
    start_date: dt.date = Field()
    end_date: dt.date = Field()
    days_count: int = Field()
    reason: Optional[str] = Field(default=None)
    substitute_employee_id: Optional[int] = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    supporting_document_id: Optional[int] = Field(default=None, foreign_key="files.id", ondelete="SET NULL")
    status: str = Field(default="draft", max_length=20, sa_column_kwargs={"server_default": "draft"})
    approved_by: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    approved_at: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    rejection_reason: Optional[str] = Field(default=None)
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class DepartmentBlockedPeriod(SQLModel, table=True):
    """Dates during which a department does not grant vacations."""
    __tablename__ = "department_blocked_periods"

    id: Optional[int] = Field(default=None, primary_key=True)
    department_id: int = Field(foreign_key="departments.id", ondelete="CASCADE")
    start_date: dt.date = Field()
    end_date: dt.date = Field()
    reason: Optional[str] = Field(default=None)
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
