# app/__init__.py

"""
Main package of the hydropower back-office data service.

`core` holds settings, the database engine, error translation and the
repository base; `domains` holds one subpackage per business area.
"""

APP_NAME = "Hydro Back-office API"
APP_VERSION = "0.1.0"
API_PREFIX = "/api/v1"

__version__ = APP_VERSION
__title__ = APP_NAME
__description__ = "Data-access layer of the hydropower back-office."
__all__ = []
