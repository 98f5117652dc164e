from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from models import DocumentStatus, Role

class UploadOut(BaseModel):
    id: str
    title: str
    file_url: str
    status: DocumentStatus

class DocumentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    file_url: str
    summary: Optional[str] = None
    status: DocumentStatus
    created_at: Optional[datetime] = None

class ApproveIn(BaseModel):
    user_ids: List[str] = Field(default_factory=list, validation_alias="userIds")

class RejectIn(BaseModel):
    reason: str = ""

class OkOut(BaseModel):
    ok: bool = True

class EmployeeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role
