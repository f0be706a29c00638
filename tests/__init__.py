# tests/__init__.py

"""
Test suite of the hydro back-office data-access layer.

- `domains/`: one suite per business domain (`test_<domain>_n.py`).
- `test_core.py`: the shared CRUD, query-building and error helpers.
- `test_main.py`: the application shell.
- `test_pgsql_scripts.py`: the database view definitions.
- `conftest.py`: fixtures (per-test database, session, HTTP client, seed
  rows), shared by every module above.
"""

__title__ = "Hydro Back-office Tests"
__description__ = "Test suite of the hydro back-office data-access layer."
__version__ = "0.1.0"
__all__ = []
