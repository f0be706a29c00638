# app/domains/ops/schemas.py

"""
Pydantic schemas of the 'ops' domain (shutdowns, idle water discharges,
incidents, visits).

Idle discharge volumes are exchanged in thousand m3; the flow rate stored
on the discharge row is derived from the volume and the time window.
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from app.domains.shared.schemas import FileResponse, UserShortInfo


class OrganizationRef(BaseModel):
    id: int
    name: str
    parent_organization_id: Optional[int] = None


# =============================================================================
# 1. shutdowns
# =============================================================================
class ShutdownCreate(BaseModel):
    organization_id: int = Field(..., description="Organization (FK)")
    start_time: datetime = Field(..., description="Start of the downtime")
    end_time: Optional[datetime] = Field(None, description="End of the downtime, empty while ongoing")
    reason: Optional[str] = Field(None)
    generation_loss_mwh: Optional[float] = Field(None, description="Generation lost, MWh")
    reported_by_contact_id: Optional[int] = Field(None, description="Who reported it (FK contacts)")
    idle_discharge_volume_thousand_m3: Optional[float] = Field(
        None, ge=0, description="Idle discharge volume during the shutdown, thousand m3"
    )
    created_by_user_id: int = Field(..., description="Creator (FK users)")


class ShutdownUpdate(BaseModel):
    """
    Partial edit. `end_time` and `generation_loss_mwh` are always written
    (an absent value clears them); omitting the volume removes the linked
    idle discharge.
    """
    organization_id: Optional[int] = Field(None)
    start_time: Optional[datetime] = Field(None)
    end_time: Optional[datetime] = Field(None)
    reason: Optional[str] = Field(None)
    generation_loss_mwh: Optional[float] = Field(None)
    reported_by_contact_id: Optional[int] = Field(None)
    idle_discharge_volume_thousand_m3: Optional[float] = Field(None, ge=0)
    created_by_user_id: Optional[int] = Field(None, description="Creator of a newly added idle discharge")


class ShutdownResponse(BaseModel):
    id: int
    organization_id: int
    organization_name: Optional[str] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    reason: Optional[str] = None
    generation_loss_mwh: Optional[float] = None
    reported_by_contact_id: Optional[int] = None
    idle_discharge_id: Optional[int] = None
    idle_discharge_volume_thousand_m3: Optional[float] = None
    created_by: Optional[UserShortInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    files: List[FileResponse] = Field(default_factory=list)


# =============================================================================
# 2. idle_water_discharges
# =============================================================================
class DischargeCreate(BaseModel):
    organization_id: int = Field(...)
    start_time: datetime = Field(...)
    end_time: Optional[datetime] = Field(None)
    flow_rate_m3_s: float = Field(..., ge=0, description="Flow rate, m3/s")
    reason: Optional[str] = Field(None)
    created_by: int = Field(..., description="Creator (FK users)")


class DischargeUpdate(BaseModel):
    organization_id: Optional[int] = Field(None)
    start_time: Optional[datetime] = Field(None)
    end_time: Optional[datetime] = Field(None)
    flow_rate_m3_s: Optional[float] = Field(None, ge=0)
    reason: Optional[str] = Field(None)
    approved: Optional[bool] = Field(None, description="Setting it records the approver and time")


class DischargeFilter(BaseModel):
    is_ongoing: Optional[bool] = None
    start_date: Optional[datetime] = Field(None, description="start_time >= start_date")
    end_date: Optional[datetime] = Field(None, description="start_time < end_date")


class DischargeResponse(BaseModel):
    id: int
    organization: Optional[OrganizationRef] = None
    start_time: datetime
    end_time: Optional[datetime] = None
    flow_rate_m3_s: float
    reason: Optional[str] = None
    approved: Optional[bool] = None
    approved_at: Optional[datetime] = None
    is_ongoing: bool
    total_volume_mln_m3: float
    created_by: Optional[UserShortInfo] = None
    approved_by: Optional[UserShortInfo] = None


class HPPDischarges(BaseModel):
    """Discharges of one plant inside a cascade summary."""
    id: int
    name: str
    total_volume_mln_m3: float = 0.0
    discharges: List[DischargeResponse] = Field(default_factory=list)


class CascadeDischarges(BaseModel):
    id: int
    name: str
    total_volume_mln_m3: float = 0.0
    hpps: List[HPPDischarges] = Field(default_factory=list)


# =============================================================================
# 3. incidents
# =============================================================================
class IncidentCreate(BaseModel):
    organization_id: Optional[int] = Field(None, description="Organization (FK), optional")
    incident_time: datetime = Field(...)
    description: str = Field(...)
    created_by_user_id: int = Field(...)


class IncidentUpdate(BaseModel):
    organization_id: Optional[int] = Field(None)
    incident_time: Optional[datetime] = Field(None)
    description: Optional[str] = Field(None)


class IncidentResponse(BaseModel):
    id: int
    organization_id: Optional[int] = None
    organization_name: Optional[str] = None
    incident_time: datetime
    description: str
    created_by: Optional[UserShortInfo] = None
    created_at: Optional[datetime] = None
    files: List[FileResponse] = Field(default_factory=list)


# =============================================================================
# 4. visits
# =============================================================================
class VisitCreate(BaseModel):
    organization_id: int = Field(...)
    visit_date: datetime = Field(...)
    description: str = Field(...)
    responsible_name: str = Field(..., max_length=255)
    created_by_user_id: int = Field(...)


class VisitUpdate(BaseModel):
    organization_id: Optional[int] = Field(None)
    visit_date: Optional[datetime] = Field(None)
    description: Optional[str] = Field(None)
    responsible_name: Optional[str] = Field(None, max_length=255)


class VisitResponse(BaseModel):
    id: int
    organization_id: int
    organization_name: Optional[str] = None
    visit_date: datetime
    description: str
    responsible_name: str
    created_by: Optional[UserShortInfo] = None
    created_at: Optional[datetime] = None
    files: List[FileResponse] = Field(default_factory=list)
