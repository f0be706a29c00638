# app/domains/corp/__init__.py

"""
The 'corp' domain package.

The corporate directory: organization hierarchy and types, departments,
positions, contacts, quick-dial entries and reception visits.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: Pydantic request / response models.
- `crud.py`: async repositories over the tables.
"""

__title__ = "Hydro Back-office Corporate Domain"
__description__ = "Organizations, departments, positions, contacts and receptions."
__version__ = "0.1.0"
__all__ = []
