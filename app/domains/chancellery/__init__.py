# app/domains/chancellery/__init__.py

"""
The 'chancellery' domain package.

Document workflow: instructions and reports with typed status history,
document-to-document links and attached files, and the legal document
registry.

Submodules:
- `models.py`: SQLModel table definitions.
- `schemas.py`: Pydantic request / response models.
- `crud.py`: async repositories over the tables.
"""

__title__ = "Hydro Back-office Chancellery Domain"
__description__ = "Instructions, reports and legal documents."
__version__ = "0.1.0"
__all__ = []
