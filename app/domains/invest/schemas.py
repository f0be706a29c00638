# app/domains/invest/schemas.py

"""
Pydantic schemas of the 'invest' domain: investment register and the
list of active projects.
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.domains.shared.schemas import FileResponse, UserShortInfo


# =============================================================================
# 1. dictionaries
# =============================================================================
class InvestmentTypeCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None)


class InvestmentTypeResponse(InvestmentTypeCreate):
    id: int

    class Config:
        from_attributes = True


class InvestmentStatusCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None)
    display_order: int = Field(0)


class InvestmentStatusResponse(InvestmentStatusCreate):
    id: int

    class Config:
        from_attributes = True


class NamedRef(BaseModel):
    id: int
    name: str


# =============================================================================
# 2. investments
# =============================================================================
class InvestmentCreate(BaseModel):
    name: str = Field(..., max_length=500)
    type_id: Optional[int] = Field(None, description="Investment type (FK)")
    status_id: int = Field(..., description="Investment status (FK)")
    cost: Optional[float] = Field(None, ge=0, description="Cost, million USD")
    comments: Optional[str] = Field(None)


class InvestmentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=500)
    type_id: Optional[int] = Field(None)
    status_id: Optional[int] = Field(None)
    cost: Optional[float] = Field(None, ge=0)
    comments: Optional[str] = Field(None)


class InvestmentFilter(BaseModel):
    status_id: Optional[int] = None
    type_id: Optional[int] = None
    min_cost: Optional[float] = None
    max_cost: Optional[float] = None
    name: Optional[str] = Field(None, description="Substring of the name")
    created_by_user_id: Optional[int] = None


class InvestmentResponse(BaseModel):
    id: int
    name: str
    cost: Optional[float] = None
    comments: Optional[str] = None
    type: Optional[NamedRef] = None
    status: Optional[NamedRef] = None
    created_by: Optional[UserShortInfo] = None
    updated_by: Optional[UserShortInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    files: List[FileResponse] = Field(default_factory=list)


# =============================================================================
# 3. invest_active_projects
# =============================================================================
class ActiveProjectCreate(BaseModel):
    category: str = Field(..., max_length=100)
    project_name: str = Field(..., max_length=500)
    foreign_partner: Optional[str] = Field(None, max_length=255)
    implementation_period: Optional[str] = Field(None, max_length=100)
    capacity_mw: Optional[float] = Field(None)
    production_mln_kwh: Optional[float] = Field(None)
    cost_mln_usd: Optional[float] = Field(None)
    status_text: Optional[str] = Field(None)


class ActiveProjectUpdate(BaseModel):
    category: Optional[str] = Field(None, max_length=100)
    project_name: Optional[str] = Field(None, max_length=500)
    foreign_partner: Optional[str] = Field(None, max_length=255)
    implementation_period: Optional[str] = Field(None, max_length=100)
    capacity_mw: Optional[float] = Field(None)
    production_mln_kwh: Optional[float] = Field(None)
    cost_mln_usd: Optional[float] = Field(None)
    status_text: Optional[str] = Field(None)


class ActiveProjectResponse(ActiveProjectCreate):
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
