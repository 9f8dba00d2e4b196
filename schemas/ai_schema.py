# ai_schema.py
from pydantic import BaseModel, Field
from typing import List, Optional


class BreakdownTask(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)
    estimate: str = Field(default="", max_length=100)
    suggested_role: Optional[str] = Field(default=None, alias="suggestedRole")

    model_config = {"populate_by_name": True}


class BreakdownMilestone(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    tasks: List[BreakdownTask] = Field(default=[])


class TaskBreakdown(BaseModel):
    milestones: List[BreakdownMilestone] = Field(default=[])


class BreakdownRequest(BaseModel):
    goal: str = Field(..., min_length=3, max_length=2000)
    roles: List[str] = Field(default=[])


class ApplyBreakdownRequest(BaseModel):
    # A supplied breakdown is applied as-is; otherwise one is generated from goal
    goal: Optional[str] = Field(default=None, min_length=3, max_length=2000)
    roles: List[str] = Field(default=[])
    breakdown: Optional[TaskBreakdown] = None
