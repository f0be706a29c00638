# app/domains/reservoir/__init__.py

"""
The 'reservoir' domain package.

Daily reservoir readings with snow cover, level indicators and the
per-organization measuring device summary.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: Pydantic request / response models.
- `crud.py`: async repositories over the tables.
"""

__title__ = "Hydro Back-office Reservoir Domain"
__description__ = "Reservoir daily data, snow cover and device summaries."
__version__ = "0.1.0"
__all__ = []
