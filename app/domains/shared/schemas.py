# app/domains/shared/schemas.py

"""
Pydantic schemas of the 'shared' domain, plus the small nested shapes
(user short info, file info, status) that other domains embed in their
responses.
"""

from typing import Optional
from datetime import datetime, date
from pydantic import BaseModel, Field


# =============================================================================
# 1. users
# =============================================================================
class UserCreate(BaseModel):
    login: str = Field(..., max_length=100, description="Login name")
    contact_id: Optional[int] = Field(None, description="Person behind the account (FK)")
    is_active: bool = Field(True, description="Account enabled")


class UserShortInfo(BaseModel):
    """Who created / approved / changed something."""
    id: int = Field(..., description="User ID")
    fio: Optional[str] = Field(None, description="Full name of the linked contact")


# =============================================================================
# 2. files
# =============================================================================
class FileCategoryCreate(BaseModel):
    name: str = Field(..., max_length=100)
    display_name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None)


class FileCategoryResponse(FileCategoryCreate):
    id: int

    class Config:
        from_attributes = True


class FileCreate(BaseModel):
    file_name: str = Field(..., max_length=255, description="Original file name")
    object_key: str = Field(..., max_length=512, description="Key in the object store")
    category_id: int = Field(..., description="File category (FK)")
    mime_type: str = Field(..., max_length=255)
    size_bytes: int = Field(..., ge=0)
    target_date: Optional[date] = Field(None, description="Date the document refers to")
    uploaded_by_user_id: Optional[int] = Field(None)


class FileResponse(BaseModel):
    id: int
    file_name: str
    object_key: str
    category_id: int
    mime_type: str
    size_bytes: int
    target_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# 3. document statuses and history
# =============================================================================
class DocumentStatusCreate(BaseModel):
    code: str = Field(..., max_length=50)
    name: str = Field(..., max_length=255)
    sort_order: int = Field(0)


class DocumentStatusResponse(DocumentStatusCreate):
    id: int

    class Config:
        from_attributes = True


class DocumentStatusShort(BaseModel):
    id: int
    code: str
    name: str


class StatusHistoryEntry(BaseModel):
    id: int
    from_status: Optional[DocumentStatusShort] = Field(None, description="Empty for the initial entry")
    to_status: DocumentStatusShort
    changed_by: Optional[UserShortInfo] = None
    changed_at: Optional[datetime] = None
    comment: Optional[str] = None
