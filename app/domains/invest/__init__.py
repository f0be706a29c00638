# app/domains/invest/__init__.py

"""
The 'invest' domain package.

Investment projects with their type and status dictionaries and
attached files, and the list of active projects by category.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: Pydantic request / response models.
- `crud.py`: async repositories over the tables.
"""

__title__ = "Hydro Back-office Investment Domain"
__description__ = "Investment projects and the active project list."
__version__ = "0.1.0"
__all__ = []
