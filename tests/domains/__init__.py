# tests/domains/__init__.py

"""
Per-domain test suites of the hydro back-office data-access layer.

One module per business domain (`test_<domain>_n.py`):
- `shared`: users, files, document statuses
- `corp`: organizations and contacts
- `ops`: shutdowns, idle discharges, incidents, visits
- `chancellery`: instructions, reports, legal documents
- `invest`, `reservoir`, `hrm`

Fixtures come from `tests/conftest.py`.
"""

__title__ = "Hydro Back-office Domain Tests"
__description__ = "Categorized tests for each business domain of the hydro back-office."
__version__ = "0.1.0"
__all__ = []
