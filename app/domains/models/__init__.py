# app/domains/models/__init__.py

"""
Imports every domain's SQLModel classes in one place so that
SQLModel.metadata knows about all tables (create_all, Alembic, tests).
"""

# shared (User, FileCategory, File, DocumentStatus)
from app.domains.shared.models import User, FileCategory, File, DocumentStatus

# corp
from app.domains.corp.models import (
    OrganizationType, Organization, OrganizationTypeLink,
    Department, Position, Contact, FastCall, Reception
)

# ops
from app.domains.ops.models import (
    IdleWaterDischarge, Shutdown, ShutdownFileLink,
    Incident, IncidentFileLink, Visit, VisitFileLink
)

# chancellery
from app.domains.chancellery.models import (
    InstructionType, Instruction, InstructionFileLink, InstructionDocumentLink, InstructionStatusHistory,
    ReportType, Report, ReportFileLink, ReportDocumentLink, ReportStatusHistory,
    LegalDocumentType, LegalDocument, LegalDocumentFileLink
)

# invest
from app.domains.invest.models import (
    InvestmentType, InvestmentStatus, Investment, InvestmentFileLink, InvestActiveProject
)

# reservoir
from app.domains.reservoir.models import (
    Reservoir, IndicatorHeight, ReservoirData, Modsnow, ReservoirDeviceSummary
)

# hrm
from app.domains.hrm.models import (
    PersonnelRecord, PersonnelDocument, PersonnelTransfer,
    SalaryStructure, Salary, SalaryBonus, SalaryDeduction,
    Holiday, TimesheetEntry, TimesheetCorrection,
    VacationType, VacationBalance, Vacation, DepartmentBlockedPeriod
)

__all__ = [
    "User", "FileCategory", "File", "DocumentStatus",
    "OrganizationType", "Organization", "OrganizationTypeLink",
    "Department", "Position", "Contact", "FastCall", "Reception",
    "IdleWaterDischarge", "Shutdown", "ShutdownFileLink",
    "Incident", "IncidentFileLink", "Visit", "VisitFileLink",
    "InstructionType", "Instruction", "InstructionFileLink", "InstructionDocumentLink", "InstructionStatusHistory",
    "ReportType", "Report", "ReportFileLink", "ReportDocumentLink", "ReportStatusHistory",
    "LegalDocumentType", "LegalDocument", "LegalDocumentFileLink",
    "InvestmentType", "InvestmentStatus", "Investment", "InvestmentFileLink", "InvestActiveProject",
    "Reservoir", "IndicatorHeight", "ReservoirData", "Modsnow", "ReservoirDeviceSummary",
    "PersonnelRecord", "PersonnelDocument", "PersonnelTransfer",
    "SalaryStructure", "Salary", "SalaryBonus", "SalaryDeduction",
    "Holiday", "TimesheetEntry", "TimesheetCorrection",
    "VacationType", "VacationBalance", "Vacation", "DepartmentBlockedPeriod",
]
