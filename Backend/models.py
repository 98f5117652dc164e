from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class DocumentStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Identity(BaseModel):
    """Who is calling. Built by the identity resolver, never persisted."""
    id: str
    role: Role
    email: Optional[str] = None


class User(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role = Role.EMPLOYEE


class Document(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    file_url: str
    parsed_text: Optional[str] = None
    summary: Optional[str] = None
    status: DocumentStatus = DocumentStatus.PENDING
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None


class Assignment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    doc_id: str
    user_id: str
    assigned_at: Optional[datetime] = None
