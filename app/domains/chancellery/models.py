# app/domains/chancellery/models.py

"""
ORM models of the 'chancellery' domain (document management).

Instructions and reports have identical shapes, each with its own type
dictionary, file links, links to other documents and status history.
Legal documents are a simpler register with types and file links.
"""

from typing import Optional
from datetime import datetime, date

from sqlmodel import Field, SQLModel
from sqlalchemy import UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.types import TIMESTAMP


# =============================================================================
# 1. Shared column sets
# =============================================================================
class DocumentTypeColumns(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255, unique=True)
    description: Optional[str] = Field(default=None)


class WorkflowDocumentColumns(SQLModel):
    """Columns common to instructions and reports."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=500)
    number: Optional[str] = Field(default=None, max_length=100)
    document_date: date = Field()
    description: Optional[str] = Field(default=None)
    status_id: int = Field(foreign_key="document_status.id", ondelete="RESTRICT")
    responsible_contact_id: Optional[int] = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    organization_id: Optional[int] = Field(default=None, foreign_key="organizations.id", ondelete="SET NULL")
    executor_contact_id: Optional[int] = Field(default=None, foreign_key="contacts.id", ondelete="SET NULL")
    due_date: Optional[date] = Field(default=None)
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    updated_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class DocumentLinkColumns(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True)
    linked_document_type: str = Field(max_length=50, description="Kind of the linked document, e.g. 'report'")
    linked_document_id: int = Field()
    link_description: Optional[str] = Field(default=None)
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class StatusHistoryColumns(SQLModel):
    id: Optional[int] = Field(default=None, primary_key=True)
    from_status_id: Optional[int] = Field(default=None, foreign_key="document_status.id", ondelete="RESTRICT")
    to_status_id: int = Field(foreign_key="document_status.id", ondelete="RESTRICT")
    changed_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    changed_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    comment: Optional[str] = Field(default=None)


# =============================================================================
# 2. instructions
# =============================================================================
class InstructionType(DocumentTypeColumns, table=True):
    __tablename__ = "instruction_type"


class Instruction(WorkflowDocumentColumns, table=True):
    __tablename__ = "instructions"

    type_id: int = Field(foreign_key="instruction_type.id", ondelete="RESTRICT")
    parent_document_id: Optional[int] = Field(default=None, foreign_key="instructions.id", ondelete="SET NULL")


class InstructionFileLink(SQLModel, table=True):
    __tablename__ = "instruction_file_links"

    document_id: int = Field(foreign_key="instructions.id", ondelete="CASCADE", primary_key=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", primary_key=True)


class InstructionDocumentLink(DocumentLinkColumns, table=True):
    __tablename__ = "instruction_document_links"
    __table_args__ = (UniqueConstraint("document_id", "linked_document_type", "linked_document_id"),)

    document_id: int = Field(foreign_key="instructions.id", ondelete="CASCADE")


class InstructionStatusHistory(StatusHistoryColumns, table=True):
    __tablename__ = "instruction_status_history"

    document_id: int = Field(foreign_key="instructions.id", ondelete="CASCADE")


# =============================================================================
# 3. reports
# =============================================================================
class ReportType(DocumentTypeColumns, table=True):
    __tablename__ = "report_type"


class Report(WorkflowDocumentColumns, table=True):
    __tablename__ = "reports"

    type_id: int = Field(foreign_key="report_type.id", ondelete="RESTRICT")
    parent_document_id: Optional[int] = Field(default=None, foreign_key="reports.id", ondelete="SET NULL")


class ReportFileLink(SQLModel, table=True):
    __tablename__ = "report_file_links"

    document_id: int = Field(foreign_key="reports.id", ondelete="CASCADE", primary_key=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", primary_key=True)


class ReportDocumentLink(DocumentLinkColumns, table=True):
    __tablename__ = "report_document_links"
    __table_args__ = (UniqueConstraint("document_id", "linked_document_type", "linked_document_id"),)

    document_id: int = Field(foreign_key="reports.id", ondelete="CASCADE")


class ReportStatusHistory(StatusHistoryColumns, table=True):
    __tablename__ = "report_status_history"

    document_id: int = Field(foreign_key="reports.id", ondelete="CASCADE")


# =============================================================================
# 4. legal_documents
# =============================================================================
class LegalDocumentType(DocumentTypeColumns, table=True):
    __tablename__ = "legal_document_type"


class LegalDocument(SQLModel, table=True):
    __tablename__ = "legal_documents"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=500)
    number: Optional[str] = Field(default=None, max_length=100)
    document_date: date = Field()
    type_id: int = Field(foreign_key="legal_document_type.id", ondelete="RESTRICT")
    created_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    updated_by_user_id: Optional[int] = Field(default=None, foreign_key="users.id", ondelete="SET NULL")
    created_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_type=TIMESTAMP(timezone=True), sa_column_kwargs={"server_default": func.now()}
    )


class LegalDocumentFileLink(SQLModel, table=True):
    __tablename__ = "legal_document_file_links"

    document_id: int = Field(foreign_key="legal_documents.id", ondelete="CASCADE", primary_key=True)
    file_id: int = Field(foreign_key="files.id", ondelete="CASCADE", primary_key=True)
