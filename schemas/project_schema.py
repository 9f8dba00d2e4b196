# project_schema.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List, Optional
from datetime import datetime


class ProjectSettings(BaseModel):
    allow_member_task_edit: bool = True
    allow_member_task_create: bool = False
    allow_member_invite: bool = False


class ProjectSettingsUpdate(BaseModel):
    allow_member_task_edit: Optional[bool] = None
    allow_member_task_create: Optional[bool] = None
    allow_member_invite: Optional[bool] = None


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=1000)
    settings: Optional[ProjectSettingsUpdate] = None
    # owner_id is set server-side from the authenticated user


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    settings: Optional[ProjectSettingsUpdate] = None


class ProjectMemberRead(BaseModel):
    id: str
    name: str
    email: str
    role: str
    joined_at: datetime
    is_owner: bool = False


class ProjectRead(BaseModel):
    id: str
    title: str
    description: str = ""
    owner_id: str
    settings: ProjectSettings
    member_ids: List[str] = Field(default=[])
    task_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProjectDetail(ProjectRead):
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    members: List[ProjectMemberRead] = Field(default=[])
