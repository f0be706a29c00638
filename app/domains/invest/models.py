# app/domains/invest/models.py

"""
ORM models of the 'invest' domain: the investment register and the list of
active (foreign-partner) projects.
"""

from typing import Optional
from datetime import datetime

from sqlmodel import Field, SQLModel
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


class InvestmentType(SQLModel, table=True):
    __tablename__ = "investment_type"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
    description: Optional[str] = Field(default=None)


class InvestmentStatus(SQLModel, table=True):
    __tablename__ = "investment_status"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
    description: Optional[str] = Field(default=None)
    display_order: int = Field(default=0)


class Investment(SQLModel, table=True):
    __tablename__ = "investments"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=500)
    type_id: Optional[int] = Field(default=None, foreign_key="investment_type.id", ondelete="SET NULL")
    status_id: int = Field(foreign_key="investment_status.id", ondelete="RESTRICT")
    cost: Optional[float] = Field(default=None, description="Cost in million USD")
    comments: Optional[str] = Field(default=None)
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    updated_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class InvestmentFileLink(SQLModel, table=True):
    __tablename__ = "investment_file_links"

    investment_id: int = Field(foreign_key="investments.id", ondelete="CASCADE", primary_key=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", primary_key=True)


class InvestActiveProject(SQLModel, table=True):
    __tablename__ = "invest_active_projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    category: str = Field(max_length=100, description="Grouping, e.g. 'modernization', 'new construction'")
    project_name: str = Field(max_length=500)
    foreign_partner: Optional[str] = Field(default=None, max_length=255)
    implementation_period: Optional[str] = Field(default=None, max_length=100)
    capacity_mw: Optional[float] = Field(default=None)
    production_mln_kwh: Optional[float] = Field(default=None)
    cost_mln_usd: Optional[float] = Field(default=None)
    status_text: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
