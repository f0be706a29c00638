# app/domains/ops/models.py

"""
ORM models of the 'ops' domain: operational events.

- shutdowns and the idle water discharges linked to them
- incidents and visits
- per-event file link tables
- the read-only discharge volume view
"""

from typing import Optional
from datetime import datetime

from sqlmodel import Field, SQLModel
from sqlalchemy import Boolean, Column, Float, Integer, MetaData, Table, Text
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP

from app.core.views import IDLE_DISCHARGE_VIEW


# =============================================================================
# 1. idle_water_discharges
# =============================================================================
class IdleWaterDischarge(SQLModel, table=True):
    """
    Water released without generating power. The flow rate is always
    derived from a volume and a duration by the caller, never typed in.
    """
    __tablename__ = "idle_water_discharges"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organizations.id", ondelete="RESTRICT")
    start_time: datetime = Field(sa_type=TIMESTAMP(timezone=True))
    end_time: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True), description="Open-ended when empty")
    flow_rate_m3_s: float = Field(description="Flow rate, m3/s")
    reason: Optional[str] = Field(default=None)
    created_by: int = Field(foreign_key="users.id", ondelete="RESTRICT")
    approved: Optional[bool] = Field(default=None)
    approved_by: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    approved_at: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True))
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


# =============================================================================
# 2. shutdowns
# =============================================================================
class Shutdown(SQLModel, table=True):
    __tablename__ = "shutdowns"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organizations.id", ondelete="RESTRICT")
    start_time: datetime = Field(sa_type=TIMESTAMP(timezone=True))
    end_time: Optional[datetime] = Field(default=None, sa_type=TIMESTAMP(timezone=True), description="Ongoing when empty")
    reason: Optional[str] = Field(default=None)
    generation_loss_mwh: Optional[float] = Field(default=None)
    reported_by_contact_id: Optional[int] = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    idle_discharge_id: Optional[int] = Field(
        default=None, foreign_key="idle_water_discharges.id", ondelete="SET NULL", unique=True,
        description="Linked idle discharge (FK)"
    )
    created_by_user_id: int = Field(foreign_key="users.id", ondelete="RESTRICT")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class ShutdownFileLink(SQLModel, table=True):
    __tablename__ = "shutdown_file_links"

    shutdown_id: int = Field(foreign_key="shutdowns.id", ondelete="CASCADE", primary_key=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", primary_key=True)


# =============================================================================
# 3. incidents
# =============================================================================
class Incident(SQLModel, table=True):
    __tablename__ = "incidents"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: Optional[int] = Field(default=None, foreign_key="organizations.id", ondelete="SET NULL")
    incident_time: datetime = Field(sa_type=TIMESTAMP(timezone=True))
    description: str = Field()
    created_by_user_id: int = Field(foreign_key="users.id", ondelete="RESTRICT")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class IncidentFileLink(SQLModel, table=True):
    __tablename__ = "incident_file_links"

    incident_id: int = Field(foreign_key="incidents.id", ondelete="CASCADE", primary_key=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", primary_key=True)


# =============================================================================
# 4. visits
# =============================================================================
class Visit(SQLModel, table=True):
    __tablename__ = "visits"

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organizations.id", ondelete="RESTRICT")
    visit_date: datetime = Field(sa_type=TIMESTAMP(timezone=True))
    description: str = Field()
    responsible_name: str = Field(max_length=255)
    created_by_user_id: int = Field(foreign_key="users.id", ondelete="RESTRICT")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class VisitFileLink(SQLModel, table=True):
    __tablename__ = "visit_file_links"

    visit_id: int = Field(foreign_key="visits.id", ondelete="CASCADE", primary_key=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", primary_key=True)


# =============================================================================
# 5. v_idle_water_discharges_with_volume (read-only view)
# =============================================================================
# Kept on its own MetaData so create_all never tries to build it as a table
view_metadata = MetaData()

idle_discharge_view = Table(
    IDLE_DISCHARGE_VIEW,
    view_metadata,
    Column("id", Integer, primary_key=True),
    Column("organization_id", Integer),
    Column("start_time", TIMESTAMP(timezone=True)),
    Column("end_time", TIMESTAMP(timezone=True)),
    Column("flow_rate_m3_s", Float),
    Column("reason", Text),
    Column("created_by", Integer),
    Column("approved", Boolean),
    Column("approved_by", Integer),
    Column("approved_at", TIMESTAMP(timezone=True)),
    Column("created_at", TIMESTAMP(timezone=True)),
    Column("is_ongoing", Boolean),
    Column("total_volume_m3", Float),
    Column("total_volume_mln_m3", Float),
)
