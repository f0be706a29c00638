# app/domains/reservoir/models.py

"""
ORM models of the 'reservoir' domain: reservoirs, daily hydrological data,
snow cover (modsnow) and the monitoring-device summary per organization.
"""

from typing import Optional
import datetime as dt
from datetime import datetime

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class Reservoir(SQLModel, table=True):
    __tablename__ = "reservoirs"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
    organization_id: Optional[int] = Field(default=None, foreign_key="organizations.id", ondelete="SET NULL")


class IndicatorHeight(SQLModel, table=True):
    """Reference height of the level indicator of a reservoir."""
    __tablename__ = "indicator_height"

    id: Optional[int] = Field(default=None, primary_key=True)
    reservoir_id: int = Field(foreign_key="reservoirs.id", ondelete="CASCADE", unique=True)
    height: float = Field()
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class ReservoirData(SQLModel, table=True):
    __tablename__ = "reservoir_data"
    __table_args__ = (UniqueConstraint("organization_id", "date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organizations.id", ondelete="CASCADE")
    date: dt.date = Field()
    income_m3_s: Optional[float] = Field(default=None, description="Inflow, m3/s")
    release_m3_s: Optional[float] = Field(default=None, description="Outflow, m3/s")
    level_m: Optional[float] = Field(default=None, description="Water level, m")
    volume_mln_m3: Optional[float] = Field(default=None, description="Stored volume, mln m3")
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    updated_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class Modsnow(SQLModel, table=True):
    """Snow cover of a basin on a date, percent."""
    __tablename__ = "modsnow"
    __table_args__ = (UniqueConstraint("organization_id", "date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organizations.id", ondelete="CASCADE")
    date: dt.date = Field()
    cover: float = Field()


class ReservoirDeviceSummary(SQLModel, table=True):
    __tablename__ = "reservoir_device_summary"
    __table_args__ = (UniqueConstraint("organization_id", "device_type_name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    organization_id: int = Field(foreign_key="organizations.id", ondelete="CASCADE")
    device_type_name: str = Field(max_length=255)
    count_total: int = Field(default=0)
    count_installed: int = Field(default=0)
    count_operational: int = Field(default=0)
    count_faulty: int = Field(default=0)
    count_active: int = Field(default=0)
    count_automation_scope: int = Field(default=0)
    criterion_1: Optional[float] = Field(default=None)
    criterion_2: Optional[float] = Field(default=None)
    updated_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
