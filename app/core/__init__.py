# app/core/__init__.py

"""
Core components shared by every domain.

- `config.py`: settings from environment variables (Pydantic Settings).
- `database.py`: async engine, session factory and schema creation.
- `exceptions.py`: typed repository errors and the database error translator.
- `crud_base.py`: repository base class and transaction helper.
- `query_builder.py`: SET / WHERE builders for dynamic statements.
- `scanning.py`: joined-row to schema mapping.
- `views.py`: read view definitions per dialect.
- `logging.py`: root logger setup.
"""

__title__ = "Hydro Back-office Core"
__description__ = "Core components of the hydropower back-office data layer."
__version__ = "0.1.0"
__all__ = []
