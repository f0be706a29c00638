# app/domains/reservoir/schemas.py

"""
Pydantic schemas of the 'reservoir' domain.
"""

from typing import List, Optional
import datetime as dt
from datetime import datetime
from pydantic import BaseModel, Field


class ReservoirCreate(BaseModel):
    name: str = Field(..., max_length=255)
    organization_id: Optional[int] = Field(None, description="Operating organization (FK)")


class ReservoirResponse(ReservoirCreate):
    id: int

    class Config:
        from_attributes = True


class IndicatorHeightResponse(BaseModel):
    reservoir_id: int
    height: float
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# =============================================================================
# reservoir_data / modsnow
# =============================================================================
class ReservoirDataItem(BaseModel):
    """
    One daily row. Snow cover values, when present, are stored for the
    date itself and for the same date a year earlier.
    """
    organization_id: int = Field(...)
    date: dt.date = Field(...)
    income_m3_s: Optional[float] = Field(None, description="Inflow, m3/s")
    release_m3_s: Optional[float] = Field(None, description="Outflow, m3/s")
    level_m: Optional[float] = Field(None, description="Water level, m")
    volume_mln_m3: Optional[float] = Field(None, description="Stored volume, mln m3")
    modsnow_current: Optional[float] = Field(None, description="Snow cover on the date, percent")
    modsnow_year_ago: Optional[float] = Field(None, description="Snow cover a year earlier, percent")


class ReservoirDataResponse(BaseModel):
    id: int
    organization_id: int
    organization_name: Optional[str] = None
    date: dt.date
    income_m3_s: Optional[float] = None
    release_m3_s: Optional[float] = None
    level_m: Optional[float] = None
    volume_mln_m3: Optional[float] = None
    modsnow_current: Optional[float] = None
    modsnow_year_ago: Optional[float] = None
    updated_at: Optional[datetime] = None


class ModsnowResponse(BaseModel):
    organization_id: int
    date: dt.date
    cover: float

    class Config:
        from_attributes = True


# =============================================================================
# reservoir_device_summary
# =============================================================================
class DeviceSummaryCreate(BaseModel):
    organization_id: int = Field(...)
    device_type_name: str = Field(..., max_length=255)
    count_total: int = Field(0, ge=0)
    count_installed: int = Field(0, ge=0)
    count_operational: int = Field(0, ge=0)
    count_faulty: int = Field(0, ge=0)
    count_active: int = Field(0, ge=0)
    count_automation_scope: int = Field(0, ge=0)
    criterion_1: Optional[float] = Field(None)
    criterion_2: Optional[float] = Field(None)


class DeviceSummaryPatch(BaseModel):
    """Identifies a row by (organization_id, device_type_name); other fields are optional."""
    organization_id: int = Field(...)
    device_type_name: str = Field(..., max_length=255)
    count_total: Optional[int] = Field(None, ge=0)
    count_installed: Optional[int] = Field(None, ge=0)
    count_operational: Optional[int] = Field(None, ge=0)
    count_faulty: Optional[int] = Field(None, ge=0)
    count_active: Optional[int] = Field(None, ge=0)
    count_automation_scope: Optional[int] = Field(None, ge=0)
    criterion_1: Optional[float] = Field(None)
    criterion_2: Optional[float] = Field(None)


class DeviceSummaryResponse(BaseModel):
    id: int
    organization_id: int
    organization_name: Optional[str] = None
    device_type_name: str
    count_total: int
    count_installed: int
    count_operational: int
    count_faulty: int
    count_active: int
    count_automation_scope: int
    criterion_1: Optional[float] = None
    criterion_2: Optional[float] = None
    updated_by_user_id: Optional[int] = None
    updated_at: Optional[datetime] = None


class DeviceSummaryBatch(BaseModel):
    updates: List[DeviceSummaryPatch] = Field(default_factory=list)
