# task_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import datetime

from models.models import TaskPriority, TaskStatus, as_utc


# ---------------------------
# Rich content blocks
# ---------------------------
class BlockStyle(BaseModel):
    bold: bool = False
    italic: bool = False
    underline: bool = False
    color: Optional[str] = Field(default=None, max_length=32)
    background_color: Optional[str] = Field(default=None, max_length=32)


class _Block(BaseModel):
    id: str = Field(..., min_length=1, max_length=64)
    content: str = Field(default="", max_length=5000)
    style: Optional[BlockStyle] = None


class TextBlock(_Block):
    type: Literal["text"] = "text"


class HeadingBlock(_Block):
    type: Literal["heading"] = "heading"
    level: int = Field(default=2, ge=1, le=3)


class ListBlock(_Block):
    type: Literal["list"] = "list"
    ordered: bool = False


class ChecklistBlock(_Block):
    type: Literal["checklist"] = "checklist"
    checked: bool = False


class CodeBlock(_Block):
    type: Literal["code"] = "code"
    language: Optional[str] = Field(default=None, max_length=32)


class QuoteBlock(_Block):
    type: Literal["quote"] = "quote"


ContentBlock = Annotated[
    Union[TextBlock, HeadingBlock, ListBlock, ChecklistBlock, CodeBlock, QuoteBlock],
    Field(discriminator="type"),
]


class RichContent(BaseModel):
    blocks: List[ContentBlock] = Field(default=[])


class TaskStyling(BaseModel):
    color: Optional[str] = Field(default=None, max_length=32)
    background_color: Optional[str] = Field(default=None, max_length=32)
    header_style: Literal["default", "bold", "italic", "underline"] = "default"
    text_size: Literal["small", "medium", "large"] = "medium"


class SuccessMetrics(BaseModel):
    quality: int = Field(..., ge=1, le=5)
    satisfaction: int = Field(..., ge=1, le=5)
    on_time: bool
    notes: Optional[str] = Field(default=None, max_length=1000)


# ---------------------------
# Tasks
# ---------------------------
def _unique_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    seen: List[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class TaskCreate(BaseModel):
    project_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_id: Optional[str] = None
    milestone_id: Optional[str] = None
    due_date: Optional[datetime] = None
    estimate: Optional[str] = Field(default=None, max_length=100)
    tags: List[str] = Field(default=[])
    time_spent: int = Field(default=0, ge=0)
    styling: Optional[TaskStyling] = None
    rich_content: Optional[RichContent] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v):
        return _unique_tags(v)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return as_utc(v)


class TaskUpdate(BaseModel):
    """Only the fields present in the request body are applied."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assignee_id: Optional[str] = None
    milestone_id: Optional[str] = None
    due_date: Optional[datetime] = None
    estimate: Optional[str] = Field(default=None, max_length=100)
    tags: Optional[List[str]] = None
    time_spent: Optional[int] = Field(default=None, ge=0)
    success_metrics: Optional[SuccessMetrics] = None
    styling: Optional[TaskStyling] = None
    rich_content: Optional[RichContent] = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v):
        return _unique_tags(v)

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return as_utc(v)


class TaskRead(BaseModel):
    id: str
    project_id: str
    milestone_id: Optional[str] = None
    title: str
    description: str = ""
    status: TaskStatus
    priority: TaskPriority
    assignee_id: Optional[str] = None
    due_date: Optional[datetime] = None
    estimate: Optional[str] = None
    tags: List[str] = Field(default=[])
    time_spent: int = 0
    success_metrics: Optional[SuccessMetrics] = None
    styling: Optional[TaskStyling] = None
    rich_content: Optional[RichContent] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------
# Milestones
# ---------------------------
class MilestoneCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[datetime] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return as_utc(v)


class MilestoneUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[datetime] = None
    completed: Optional[bool] = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v):
        return as_utc(v)


class MilestoneRead(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str] = None
    due_date: Optional[datetime] = None
    completed: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ---------------------------
# Analytics
# ---------------------------
class MemberStats(BaseModel):
    user_id: str
    name: str
    total_tasks: int
    completed_tasks: int
    completion_rate: float
    time_spent: int
    avg_quality: float


class ProjectAnalytics(BaseModel):
    total_tasks: int
    completed: int
    in_progress: int
    pending: int
    overdue: int
    completion_rate: float
    total_time_spent: int
    avg_time_per_task: float
    avg_quality: float
    avg_satisfaction: float
    on_time_rate: float
    priority_stats: Dict[str, int]
    team_stats: List[MemberStats] = Field(default=[])
