# models/models.py
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field, SQLModel


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are timezone-aware UTC; naive values are read as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ============================================================
# ENUMS
# ============================================================
class UserRole(str, Enum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    DESIGN = "design"
    MARKETING = "marketing"
    GENERAL = "general"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


DEFAULT_PROJECT_SETTINGS: Dict[str, bool] = {
    "allow_member_task_edit": True,
    "allow_member_task_create": False,
    "allow_member_invite": False,
}


# ============================================================
# USER
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True, nullable=False)
    password_hash: str = Field(nullable=False)
    role: str = Field(default=UserRole.GENERAL.value, max_length=50)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================================
# PROJECT + MEMBERSHIP
# ============================================================
class Project(SQLModel, table=True):
    __tablename__ = "projects"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    title: str = Field(max_length=255)
    description: str = Field(default="", max_length=1000)
    owner_id: str = Field(foreign_key="users.id", index=True, nullable=False)
    settings: Dict[str, bool] = Field(
        default_factory=lambda: dict(DEFAULT_PROJECT_SETTINGS),
        sa_column=Column(JSON, nullable=False),
    )
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class ProjectMember(SQLModel, table=True):
    __tablename__ = "project_members"
    __table_args__ = (UniqueConstraint("project_id", "user_id", name="uq_project_member"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    project_id: str = Field(foreign_key="projects.id", index=True, nullable=False)
    user_id: str = Field(foreign_key="users.id", index=True, nullable=False)
    joined_at: datetime = Field(default_factory=utcnow)


# ============================================================
# MILESTONE
# ============================================================
class Milestone(SQLModel, table=True):
    __tablename__ = "milestones"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    project_id: str = Field(foreign_key="projects.id", index=True, nullable=False)
    title: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[datetime] = None
    completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


# ============================================================
# TASK
# ============================================================
class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    project_id: str = Field(foreign_key="projects.id", index=True, nullable=False)
    milestone_id: Optional[str] = Field(default=None, foreign_key="milestones.id")
    title: str = Field(max_length=255)
    description: str = Field(default="", max_length=2000)
    status: str = Field(default=TaskStatus.PENDING.value, max_length=50, index=True)
    priority: str = Field(default=TaskPriority.MEDIUM.value, max_length=50)
    assignee_id: Optional[str] = Field(default=None, foreign_key="users.id", index=True)
    due_date: Optional[datetime] = None
    estimate: Optional[str] = Field(default=None, max_length=100)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    time_spent: int = Field(default=0)
    success_metrics: Optional[Dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    styling: Optional[Dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    rich_content: Optional[Dict] = Field(default=None, sa_column=Column(JSON, nullable=True))
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================================
# INVITATION
# ============================================================
class Invitation(SQLModel, table=True):
    __tablename__ = "invitations"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    project_id: str = Field(foreign_key="projects.id", index=True, nullable=False)
    inviter_id: str = Field(foreign_key="users.id", nullable=False)
    invitee_email: str = Field(max_length=255, index=True, nullable=False)
    status: str = Field(default=InvitationStatus.PENDING.value, max_length=50, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime = Field(nullable=False)
    accepted_at: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return as_utc(now or utcnow()) > as_utc(self.expires_at)

    def is_actionable(self, now: Optional[datetime] = None) -> bool:
        return self.status == InvitationStatus.PENDING.value and not self.is_expired(now)
