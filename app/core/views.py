# app/core/views.py

"""
Read views that sit on top of the ORM tables.

`create_db_and_tables` creates them after the tables; the PostgreSQL
definitions are also registered with alembic_utils in
`pgsql_scripts/views.py` so migrations can track them.
"""

IDLE_DISCHARGE_VIEW = "v_idle_water_discharges_with_volume"

# Elapsed seconds run until now for a discharge without an end time
IDLE_DISCHARGE_VIEW_SELECT = {
    "postgresql": """
    SELECT
        d.id, d.organization_id, d.start_time, d.end_time, d.flow_rate_m3_s,
        d.reason, d.created_by, d.approved, d.approved_by, d.approved_at, d.created_at,
        (d.end_time IS NULL OR d.end_time > NOW()) AS is_ongoing,
        d.flow_rate_m3_s * GREATEST(
            EXTRACT(EPOCH FROM (COALESCE(d.end_time, NOW()) - d.start_time)), 0
        ) AS total_volume_m3,
        d.flow_rate_m3_s * GREATEST(
            EXTRACT(EPOCH FROM (COALESCE(d.end_time, NOW()) - d.start_time)), 0
        ) / 1000000.0 AS total_volume_mln_m3
    FROM idle_water_discharges d
    """,
    "sqlite": """
    SELECT
        d.id, d.organization_id, d.start_time, d.end_time, d.flow_rate_m3_s,
        d.reason, d.created_by, d.approved, d.approved_by, d.approved_at, d.created_at,
        (d.end_time IS NULL OR d.end_time > CURRENT_TIMESTAMP) AS is_ongoing,
        d.flow_rate_m3_s * MAX(
            (julianday(COALESCE(d.end_time, CURRENT_TIMESTAMP)) - julianday(d.start_time)) * 86400.0, 0
        ) AS total_volume_m3,
        d.flow_rate_m3_s * MAX(
            (julianday(COALESCE(d.end_time, CURRENT_TIMESTAMP)) - julianday(d.start_time)) * 86400.0, 0
        ) / 1000000.0 AS total_volume_mln_m3
    FROM idle_water_discharges d
    """,
}

VIEWS = {
    IDLE_DISCHARGE_VIEW: IDLE_DISCHARGE_VIEW_SELECT,
}


def create_view_statements(dialect_name: str):
    """CREATE VIEW statements for the given dialect, in dependency order."""
    statements = []
    for name, definitions in VIEWS.items():
        if dialect_name not in definitions:
            raise ValueError(f"no definition of view {name} for dialect {dialect_name}")
        if dialect_name == "postgresql":
            statements.append(f"CREATE OR REPLACE VIEW {name} AS {definitions[dialect_name]}")
        else:
            statements.append(f"CREATE VIEW IF NOT EXISTS {name} AS {definitions[dialect_name]}")
    return statements


def drop_view_statements():
    return [f"DROP VIEW IF EXISTS {name}" for name in reversed(list(VIEWS))]
