# app/domains/hrm/__init__.py

"""
The 'hrm' domain package.

Human resources: personnel records and transfers, payroll, timesheets
with correction requests and vacations with yearly balances.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: Pydantic request / response models.
- `crud.py`: async repositories over the tables.
"""

__title__ = "Hydro Back-office HR Domain"
__description__ = "Personnel, salary, timesheet and vacation data."
__version__ = "0.1.0"
__all__ = []
