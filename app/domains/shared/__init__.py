# app/domains/shared/__init__.py

"""
The 'shared' domain package.

Data used by every other domain: users, uploaded files and their
categories, the document status dictionary, plus the file-link and
status-history helpers built on top of them.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: Pydantic request / response models.
- `crud.py`: async repositories over the tables.
"""

__title__ = "Hydro Back-office Shared Domain"
__description__ = "Users, file registry and document statuses."
__version__ = "0.1.0"
__all__ = []
