# app/domains/corp/models.py

"""
ORM models of the 'corp' domain: the organization tree, its departments
and positions, the contact directory, the fast-call list and receptions.
"""

from typing import Optional
from datetime import datetime, date

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. organization_types / organizations / organization_type_links
# =============================================================================
class OrganizationType(SQLModel, table=True):
    __tablename__ = "organization_types"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True, description="Type name, e.g. 'cascade', 'ges'")
    description: Optional[str] = Field(default=None)


class Organization(SQLModel, table=True):
    __tablename__ = "organizations"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, description="Organization name")
    parent_organization_id: Optional[int] = Field(
        default=None, foreign_key="organizations.id", ondelete="SET NULL", description="Parent organization (FK)"
    )
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class OrganizationTypeLink(SQLModel, table=True):
    __tablename__ = "organization_type_links"

    organization_id: int = Field(foreign_key="organizations.id", ondelete="CASCADE", primary_key=True)
    type_id: int = Field(foreign_key="organization_types.id", ondelete="CASCADE", primary_key=True)


# =============================================================================
# 2. departments / positions
# =============================================================================
class Department(SQLModel, table=True):
    __tablename__ = "departments"
    __table_args__ = (UniqueConstraint("organization_id", "name"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None)
    organization_id: int = Field(foreign_key="organizations.id", ondelete="CASCADE", description="Owning organization (FK)")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class Position(SQLModel, table=True):
    __tablename__ = "positions"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
    description: Optional[str] = Field(default=None)
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


# =============================================================================
# 3. contacts
# =============================================================================
class Contact(SQLModel, table=True):
    """
    A person in the directory. Employees, document executors and the people
    behind user accounts are all contacts.
    """
    __tablename__ = "contacts"

    id: Optional[int] = Field(default=None, primary_key=True)
    fio: str = Field(max_length=255, description="Full name")
    email: Optional[str] = Field(default=None, max_length=255, unique=True)
    phone: Optional[str] = Field(default=None, max_length=50)
    ip_phone: Optional[str] = Field(default=None, max_length=50)
    dob: Optional[date] = Field(default=None, description="Date of birth")
    external_organization_name: Optional[str] = Field(default=None, max_length=255)
    organization_id: Optional[int] = Field(default=None, foreign_key="organizations.id", ondelete="SET NULL")
    department_id: Optional[int] = Field(default=None, foreign_key="departments.id", ondelete="SET NULL")
    position_id: Optional[int] = Field(default=None, foreign_key="positions.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


# =============================================================================
# 4. fast_calls
# =============================================================================
class FastCall(SQLModel, table=True):
    __tablename__ = "fast_calls"

    id: Optional[int] = Field(default=None, primary_key=True)
    contact_id: int = Field(foreign_key="contacts.id", ondelete="CASCADE", unique=True)
    position: int = Field(default=0, description="Sort position in the list")


# =============================================================================
# 5. receptions
# =============================================================================
class Reception(SQLModel, table=True):
    """Scheduled reception of a visitor by management."""
    __tablename__ = "receptions"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    date: datetime = Field(sa_type=TIMESTAMP(timezone=True), description="Scheduled time")
    description: Optional[str] = Field(default=None)
    visitor: str = Field(max_length=255)
    status: str = Field(
        default="default", max_length=20, sa_column_kwargs={"server_default": "default"},
        description="'default' (undecided), 'true' (held) or 'false' (cancelled)"
    )
    status_change_reason: Optional[str] = Field(default=None)
    informed: bool = Field(default=False)
    informed_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    updated_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
