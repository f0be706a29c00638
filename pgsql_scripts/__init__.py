# pgsql_scripts/__init__.py

"""
PostgreSQL objects managed through alembic_utils.

Modules:
- `views.py`: read views (PGView).

Every `ReplaceableEntity` defined in a module of this package is collected
into `all_db_objects`, which `migrations/env.py` registers with Alembic
and the tests check.
"""

__title__ = "Alembic Pgsql script"
__description__ = "Database views managed by Alembic."
__version__ = "0.1.0"
__all__ = ["all_db_objects"]

import pkgutil
import importlib
import inspect

from alembic_utils.replaceable_entity import ReplaceableEntity

all_db_objects = []

# Walk every module of the package and pick up the alembic_utils entities
for loader, module_name, is_pkg in pkgutil.iter_modules(__path__):
    module = importlib.import_module(f".{module_name}", __package__)
    for name, obj in inspect.getmembers(module):
        if isinstance(obj, ReplaceableEntity):
            all_db_objects.append(obj)
