# pgsql_scripts/views.py
from alembic_utils.pg_view import PGView

from app.core.views import IDLE_DISCHARGE_VIEW, IDLE_DISCHARGE_VIEW_SELECT

# Idle discharges with derived volume; elapsed time of an open discharge runs until now
idle_water_discharges_with_volume_view = PGView(
    schema="public",
    signature=IDLE_DISCHARGE_VIEW,
    definition=IDLE_DISCHARGE_VIEW_SELECT["postgresql"],
)
