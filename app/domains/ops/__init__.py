# app/domains/ops/__init__.py

"""
The 'ops' domain package.

Operational events of the hydropower stations. A shutdown may carry an
idle water discharge; both rows are written in one transaction.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: Pydantic request / response models.
- `crud.py`: async repositories over the tables.
"""

__title__ = "Hydro Back-office Operations Domain"
__description__ = "Shutdowns, idle discharges, incidents and visits."
__version__ = "0.1.0"
__all__ = []
