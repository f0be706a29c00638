# app/domains/hrm/schemas.py

"""
Pydantic schemas of the 'hrm' domain (personnel, salary, timesheet,
vacation).
"""

from typing import Optional
import datetime as dt
from datetime import datetime
from pydantic import BaseModel, Field


# =============================================================================
# 1. personnel
# =============================================================================
class PersonnelRecordCreate(BaseModel):
    employee_id: int = Field(..., description="Employee (FK contacts)")
    tab_number: str = Field(..., max_length=50, description="Personnel number")
    hire_date: dt.date = Field(...)
    department_id: Optional[int] = Field(None)
    position_id: Optional[int] = Field(None)
    contract_type: str = Field("permanent", max_length=50)
    contract_end_date: Optional[dt.date] = Field(None)


class PersonnelRecordUpdate(BaseModel):
    tab_number: Optional[str] = Field(None, max_length=50)
    hire_date: Optional[dt.date] = Field(None)
    department_id: Optional[int] = Field(None)
    position_id: Optional[int] = Field(None)
    contract_type: Optional[str] = Field(None, max_length=50)
    contract_end_date: Optional[dt.date] = Field(None)
    status: Optional[str] = Field(None, max_length=20, description="active, on_leave, dismissed")


class PersonnelRecordFilter(BaseModel):
    department_id: Optional[int] = None
    position_id: Optional[int] = None
    status: Optional[str] = None


class PersonnelRecordResponse(BaseModel):
    id: int
    employee_id: int
    employee_fio: Optional[str] = None
    tab_number: str
    hire_date: dt.date
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    position_id: Optional[int] = None
    position_name: Optional[str] = None
    contract_type: str
    contract_end_date: Optional[dt.date] = None
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PersonnelDocumentCreate(BaseModel):
    record_id: int = Field(...)
    document_type: str = Field(..., max_length=100)
    name: str = Field(..., max_length=255)
    file_id: Optional[int] = Field(None)
    valid_until: Optional[dt.date] = Field(None)


class PersonnelDocumentResponse(PersonnelDocumentCreate):
    id: int
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PersonnelTransferCreate(BaseModel):
    """Moves the record to a new department and/or position."""
    record_id: int = Field(...)
    to_department_id: Optional[int] = Field(None)
    to_position_id: Optional[int] = Field(None)
    transfer_date: dt.date = Field(...)
    order_number: Optional[str] = Field(None, max_length=100)
    reason: Optional[str] = Field(None)


class PersonnelTransferResponse(BaseModel):
    id: int
    record_id: int
    from_department_id: Optional[int] = None
    to_department_id: Optional[int] = None
    from_position_id: Optional[int] = None
    to_position_id: Optional[int] = None
    transfer_date: dt.date
    order_number: Optional[str] = None
    reason: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# 2. salary
# =============================================================================
class SalaryStructureCreate(BaseModel):
    employee_id: int = Field(...)
    base_salary: float = Field(..., ge=0)
    currency: str = Field("UZS", max_length=3)
    pay_frequency: str = Field("monthly", max_length=20)
    allowances: float = Field(0.0, ge=0)
    effective_from: dt.date = Field(...)
    effective_to: Optional[dt.date] = Field(None)
    notes: Optional[str] = Field(None)


class SalaryStructureUpdate(BaseModel):
    base_salary: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, max_length=3)
    pay_frequency: Optional[str] = Field(None, max_length=20)
    allowances: Optional[float] = Field(None, ge=0)
    effective_from: Optional[dt.date] = Field(None)
    effective_to: Optional[dt.date] = Field(None)
    notes: Optional[str] = Field(None)


class SalaryCreate(BaseModel):
    employee_id: int = Field(...)
    year: int = Field(..., ge=2000, le=2100)
    month: int = Field(..., ge=1, le=12)
    notes: Optional[str] = Field(None)


class SalaryFilter(BaseModel):
    employee_id: Optional[int] = None
    year: Optional[int] = None
    month: Optional[int] = None
    status: Optional[str] = None


class SalaryCalculation(BaseModel):
    """Inputs of a payroll calculation; totals are derived from them."""
    base_amount: float = Field(..., ge=0)
    allowances_amount: float = Field(0.0, ge=0)
    bonuses_amount: float = Field(0.0, ge=0)
    deductions_amount: float = Field(0.0, ge=0)
    tax_amount: float = Field(0.0, ge=0)
    worked_days: Optional[int] = Field(None, ge=0)
    total_work_days: Optional[int] = Field(None, ge=0)
    overtime_hours: Optional[float] = Field(None, ge=0)


class SalaryTotals(BaseModel):
    gross_amount: float
    net_amount: float


class SalaryBonusCreate(BaseModel):
    employee_id: int = Field(...)
    salary_id: Optional[int] = Field(None)
    bonus_type: str = Field(..., max_length=50)
    amount: float = Field(..., gt=0)
    description: Optional[str] = Field(None)
    year: int = Field(...)
    month: int = Field(..., ge=1, le=12)


class SalaryDeductionCreate(BaseModel):
    employee_id: int = Field(...)
    salary_id: Optional[int] = Field(None)
    deduction_type: str = Field(..., max_length=50)
    amount: float = Field(..., gt=0)
    description: Optional[str] = Field(None)
    year: int = Field(...)
    month: int = Field(..., ge=1, le=12)
    is_recurring: bool = Field(False)
    recurring_until: Optional[dt.date] = Field(None)


# =============================================================================
# 3. timesheet
# =============================================================================
class HolidayCreate(BaseModel):
    name: str = Field(..., max_length=255)
    date: dt.date = Field(...)
    is_working_day: bool = Field(False)


class TimesheetEntryUpsert(BaseModel):
    employee_id: int = Field(...)
    date: dt.date = Field(...)
    check_in: Optional[datetime] = Field(None)
    check_out: Optional[datetime] = Field(None)
    break_minutes: int = Field(0, ge=0)
    worked_hours: Optional[float] = Field(None, ge=0)
    overtime_hours: Optional[float] = Field(None, ge=0)
    day_type: str = Field("work", max_length=30)
    is_remote: bool = Field(False)
    notes: Optional[str] = Field(None)


class TimesheetEntryUpdate(BaseModel):
    check_in: Optional[datetime] = Field(None)
    check_out: Optional[datetime] = Field(None)
    break_minutes: Optional[int] = Field(None, ge=0)
    worked_hours: Optional[float] = Field(None, ge=0)
    overtime_hours: Optional[float] = Field(None, ge=0)
    day_type: Optional[str] = Field(None, max_length=30)
    is_remote: Optional[bool] = Field(None)
    notes: Optional[str] = Field(None)


class TimesheetCorrectionCreate(BaseModel):
    entry_id: int = Field(...)
    requested_check_in: Optional[datetime] = Field(None)
    requested_check_out: Optional[datetime] = Field(None)
    requested_day_type: Optional[str] = Field(None, max_length=30)
    reason: str = Field(...)


# =============================================================================
# 4. vacation
# =============================================================================
class VacationTypeCreate(BaseModel):
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=255)
    default_days: int = Field(0, ge=0)
    requires_balance: bool = Field(True)
    is_paid: bool = Field(True)
    is_active: bool = Field(True)


class VacationBalanceCreate(BaseModel):
    employee_id: int = Field(...)
    vacation_type_id: int = Field(...)
    year: int = Field(...)
    entitled_days: float = Field(0.0, ge=0)
    carried_over_days: float = Field(0.0, ge=0)
    adjustment_days: float = Field(0.0)
    notes: Optional[str] = Field(None)


class VacationBalanceUpdate(BaseModel):
    entitled_days: Optional[float] = Field(None, ge=0)
    carried_over_days: Optional[float] = Field(None, ge=0)
    adjustment_days: Optional[float] = Field(None)
    used_days: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None)


class BlockedPeriodCreate(BaseModel):
    department_id: int = Field(...)
    start_date: dt.date = Field(...)
    end_date: dt.date = Field(...)
    reason: Optional[str] = Field(None)
    created_by_user_id: Optional[int] = Field(None)


class VacationCreate(BaseModel):
    employee_id: int = Field(...)
    vacation_type_id: int = Field(...)
    start_date: dt.date = Field(...)
    end_date: dt.date = Field(...)
    reason: Optional[str] = Field(None)
    substitute_employee_id: Optional[int] = Field(None)
    supporting_document_id: Optional[int] = Field(None)


class VacationUpdate(BaseModel):
    vacation_type_id: Optional[int] = Field(None)
    start_date: Optional[dt.date] = Field(None)
    end_date: Optional[dt.date] = Field(None)
    reason: Optional[str] = Field(None)
    substitute_employee_id: Optional[int] = Field(None)
    supporting_document_id: Optional[int] = Field(None)


class VacationFilter(BaseModel):
    employee_id: Optional[int] = None
    vacation_type_id: Optional[int] = None
    status: Optional[str] = None
    start_date: Optional[dt.date] = Field(None, description="Vacations ending on or after this date")
    end_date: Optional[dt.date] = Field(None, description="Vacations starting on or before this date")
