# app/domains/chancellery/schemas.py

"""
Pydantic schemas of the 'chancellery' domain.

Instructions and reports share the same request and response shapes;
legal documents have their own, simpler set.
"""

from typing import List, Optional
from datetime import datetime, date
from pydantic import BaseModel, Field

from app.domains.corp.schemas import ContactShort, OrganizationShort
from app.domains.shared.schemas import DocumentStatusShort, FileResponse, UserShortInfo


class DocumentTypeCreate(BaseModel):
    name: str = Field(..., max_length=255)
    description: Optional[str] = Field(None)


class DocumentTypeResponse(DocumentTypeCreate):
    id: int

    class Config:
        from_attributes = True


class DocumentTypeShort(BaseModel):
    id: int
    name: str


# =============================================================================
# 1. instructions / reports
# =============================================================================
class DocumentCreate(BaseModel):
    name: str = Field(..., max_length=500, description="Title")
    number: Optional[str] = Field(None, max_length=100, description="Registration number")
    document_date: date = Field(..., description="Date of the document")
    description: Optional[str] = Field(None)
    type_id: int = Field(..., description="Document type (FK)")
    responsible_contact_id: Optional[int] = Field(None)
    organization_id: Optional[int] = Field(None)
    executor_contact_id: Optional[int] = Field(None)
    due_date: Optional[date] = Field(None, description="Execution deadline")
    parent_document_id: Optional[int] = Field(None, description="Document this one follows up on")


class DocumentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=500)
    number: Optional[str] = Field(None, max_length=100)
    document_date: Optional[date] = Field(None)
    description: Optional[str] = Field(None)
    type_id: Optional[int] = Field(None)
    responsible_contact_id: Optional[int] = Field(None)
    organization_id: Optional[int] = Field(None)
    executor_contact_id: Optional[int] = Field(None)
    due_date: Optional[date] = Field(None)
    parent_document_id: Optional[int] = Field(None)


class DocumentFilter(BaseModel):
    type_id: Optional[int] = None
    status_id: Optional[int] = None
    status_code: Optional[str] = None
    organization_id: Optional[int] = None
    responsible_contact_id: Optional[int] = None
    executor_contact_id: Optional[int] = None
    start_date: Optional[date] = Field(None, description="document_date >= start_date")
    end_date: Optional[date] = Field(None, description="document_date <= end_date")
    due_date_from: Optional[date] = None
    due_date_to: Optional[date] = None
    name: Optional[str] = Field(None, description="Substring of the title")
    number: Optional[str] = Field(None, description="Substring of the number")


class StatusChange(BaseModel):
    status_code: str = Field(..., description="Target status code")
    expected_status_code: Optional[str] = Field(
        None, description="Only change when the document is currently in this status"
    )
    comment: Optional[str] = Field(None)


class DocumentLinkCreate(BaseModel):
    linked_document_type: str = Field(..., max_length=50)
    linked_document_id: int = Field(...)
    link_description: Optional[str] = Field(None)


class DocumentLinkResponse(BaseModel):
    id: int
    linked_document_type: str
    linked_document_id: int
    link_description: Optional[str] = None
    created_at: Optional[datetime] = None


class DocumentResponse(BaseModel):
    id: int
    name: str
    number: Optional[str] = None
    document_date: date
    description: Optional[str] = None
    due_date: Optional[date] = None
    parent_document_id: Optional[int] = None
    type: Optional[DocumentTypeShort] = None
    status: Optional[DocumentStatusShort] = None
    organization: Optional[OrganizationShort] = None
    responsible: Optional[ContactShort] = None
    executor: Optional[ContactShort] = None
    created_by: Optional[UserShortInfo] = None
    updated_by: Optional[UserShortInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    files: List[FileResponse] = Field(default_factory=list)
    linked_documents: List[DocumentLinkResponse] = Field(default_factory=list)


# =============================================================================
# 2. legal_documents
# =============================================================================
class LegalDocumentCreate(BaseModel):
    name: str = Field(..., max_length=500)
    number: Optional[str] = Field(None, max_length=100)
    document_date: date = Field(...)
    type_id: int = Field(...)


class LegalDocumentUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=500)
    number: Optional[str] = Field(None, max_length=100)
    document_date: Optional[date] = Field(None)
    type_id: Optional[int] = Field(None)


class LegalDocumentFilter(BaseModel):
    type_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    name: Optional[str] = None
    number: Optional[str] = None


class LegalDocumentResponse(BaseModel):
    id: int
    name: str
    number: Optional[str] = None
    document_date: date
    type: Optional[DocumentTypeShort] = None
    created_by: Optional[UserShortInfo] = None
    updated_by: Optional[UserShortInfo] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    files: List[FileResponse] = Field(default_factory=list)
