# app/domains/corp/schemas.py

"""
Pydantic schemas of the 'corp' domain: request payloads (Create / Update),
list filters and the enriched responses with nested related objects.
"""

from typing import List, Optional
from datetime import datetime, date
from pydantic import BaseModel, Field


# =============================================================================
# 0. Nested short shapes
# =============================================================================
class OrganizationShort(BaseModel):
    id: int
    name: str


class DepartmentShort(BaseModel):
    id: int
    name: str


class PositionShort(BaseModel):
    id: int
    name: str
    description: Optional[str] = None


class ContactShort(BaseModel):
    id: int
    fio: str


# =============================================================================
# 1. organization_types / organizations
# =============================================================================
class OrganizationTypeCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None)


class OrganizationTypeResponse(OrganizationTypeCreate):
    id: int

    class Config:
        from_attributes = True


class OrganizationCreate(BaseModel):
    name: str = Field(..., max_length=255, description="Organization name")
    parent_organization_id: Optional[int] = Field(None, description="Parent organization (FK)")
    type_ids: List[int] = Field(default_factory=list, description="Organization type IDs")


class OrganizationUpdate(BaseModel):
    """
    Partial update. `type_ids`, when given, replaces the whole set of types.
    """
    name: Optional[str] = Field(None, max_length=255)
    parent_organization_id: Optional[int] = Field(None)
    type_ids: Optional[List[int]] = Field(None)


class OrganizationResponse(BaseModel):
    id: int
    name: str
    parent_organization_id: Optional[int] = None
    parent_organization_name: Optional[str] = None
    types: List[str] = Field(default_factory=list, description="Type names, alphabetical")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 2. departments / positions
# =============================================================================
class DepartmentCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None)
    organization_id: int = Field(..., description="Owning organization (FK)")


class DepartmentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None)
    organization_id: Optional[int] = Field(None)


class DepartmentResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    organization: Optional[OrganizationShort] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PositionCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None)


class PositionUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None)


class PositionResponse(PositionCreate):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# 3. contacts
# =============================================================================
class ContactCreate(BaseModel):
    fio: str = Field(..., max_length=255, description="Full name")
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    ip_phone: Optional[str] = Field(None, max_length=50)
    dob: Optional[date] = Field(None, description="Date of birth")
    external_organization_name: Optional[str] = Field(None, max_length=255)
    organization_id: Optional[int] = Field(None)
    department_id: Optional[int] = Field(None)
    position_id: Optional[int] = Field(None)


class ContactUpdate(BaseModel):
    fio: Optional[str] = Field(None, max_length=255)
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    ip_phone: Optional[str] = Field(None, max_length=50)
    dob: Optional[date] = Field(None)
    external_organization_name: Optional[str] = Field(None, max_length=255)
    organization_id: Optional[int] = Field(None)
    department_id: Optional[int] = Field(None)
    position_id: Optional[int] = Field(None)


class ContactFilter(BaseModel):
    organization_id: Optional[int] = None
    department_id: Optional[int] = None
    fio: Optional[str] = Field(None, description="Substring of the name (case-insensitive)")


class ContactResponse(BaseModel):
    id: int
    fio: str
    email: Optional[str] = None
    phone: Optional[str] = None
    ip_phone: Optional[str] = None
    dob: Optional[date] = None
    external_organization_name: Optional[str] = None
    organization: Optional[OrganizationShort] = None
    department: Optional[DepartmentShort] = None
    position: Optional[PositionShort] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# =============================================================================
# 4. fast_calls
# =============================================================================
class FastCallCreate(BaseModel):
    contact_id: int = Field(..., description="Contact (FK)")
    position: int = Field(0, description="Sort position")


class FastCallUpdate(BaseModel):
    contact_id: Optional[int] = Field(None)
    position: Optional[int] = Field(None)


class FastCallResponse(BaseModel):
    id: int
    position: int
    contact: ContactResponse


# =============================================================================
# 5. receptions
# =============================================================================
RECEPTION_STATUSES = ("default", "true", "false")


class ReceptionCreate(BaseModel):
    name: str = Field(..., max_length=255)
    date: datetime = Field(..., description="Scheduled time")
    description: Optional[str] = Field(None)
    visitor: str = Field(..., max_length=255)
    created_by_user_id: Optional[int] = Field(None)


class ReceptionUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    date: Optional[datetime] = Field(None)
    description: Optional[str] = Field(None)
    visitor: Optional[str] = Field(None, max_length=255)
    status: Optional[str] = Field(None, pattern="^(default|true|false)$")
    status_change_reason: Optional[str] = Field(None)
    informed: Optional[bool] = Field(None)
    informed_by_user_id: Optional[int] = Field(None)
    updated_by_user_id: Optional[int] = Field(None)


class ReceptionFilter(BaseModel):
    status: Optional[str] = None
    start_date: Optional[datetime] = Field(None, description="date >= start_date")
    end_date: Optional[datetime] = Field(None, description="date < end_date")


class ReceptionResponse(BaseModel):
    id: int
    name: str
    date: datetime
    description: Optional[str] = None
    visitor: str
    status: str
    status_change_reason: Optional[str] = None
    informed: bool
    informed_by_user_id: Optional[int] = None
    created_by_user_id: Optional[int] = None
    updated_by_user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
