# app/domains/shared/models.py

"""
ORM models used by every domain: users, file metadata and document statuses.

File bytes live in the external object store; `files` only keeps the
object key and descriptive metadata.
"""

from typing import Optional
from datetime import datetime, date

from sqlmodel import Field, SQLModel
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP, BigInteger


# =============================================================================
# 1. users
# =============================================================================
class User(SQLModel, table=True):
    """
    Application account. The person behind it is a `contacts` row, whose
    fio is shown wherever a record says who created or approved it.
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    login: str = Field(max_length=100, unique=True, description="Login name")
    contact_id: Optional[int] = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL", description="Person (FK)")
    is_active: bool = Field(default=True, description="Account enabled")
    created_at: Optional[datetime] = Field(
        default=None,
        sa_type=TIMESTAMP(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
    )


# =============================================================================
# 2. file_categories / files
# =============================================================================
class FileCategory(SQLModel, table=True):
    __tablename__ = "file_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, description="Category key, e.g. 'shutdowns'")
    display_name: str = Field(max_length=255, description="Human readable name")
    description: Optional[str] = Field(default=None)


class File(SQLModel, table=True):
    __tablename__ = "files"

    id: Optional[int] = Field(default=None, primary_key=True)
    file_name: str = Field(max_length=255, description="Original file name")
    object_key: str = Field(max_length=512, unique=True, description="Key in the object store")
    category_id: int = Field(foreign_key="file_categories.id", ondelete="RESTRICT", description="Category (FK)")
    mime_type: str = Field(max_length=255)
    size_bytes: int = Field(sa_type=BigInteger)
    target_date: Optional[date] = Field(default=None, description="Date the document refers to")
    uploaded_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None,
        sa_type=TIMESTAMP(timezone=True),
        sa_column_kwargs={"server_default": func.now()},
    )


# =============================================================================
# 3. document_status
# =============================================================================
class DocumentStatus(SQLModel, table=True):
    """Workflow statuses shared by instructions and reports."""
    __tablename__ = "document_status"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(max_length=50, unique=True)
    name: str = Field(max_length=255)
    sort_order: int = Field(default=0)
