from .ai_schema import ApplyBreakdownRequest, BreakdownMilestone, BreakdownRequest, BreakdownTask, TaskBreakdown
from .invitation_schema import InvitationCreate, InvitationDetail, InvitationRead
from .project_schema import (
    ProjectCreate, ProjectDetail, ProjectMemberRead, ProjectRead,
    ProjectSettings, ProjectSettingsUpdate, ProjectUpdate,
)
from .task_schema import (
    TaskCreate, TaskRead, TaskUpdate,
    RichContent, ContentBlock, TaskStyling, SuccessMetrics,
    MilestoneCreate, MilestoneRead, MilestoneUpdate,
    MemberStats, ProjectAnalytics,
)
from .user_schema import AuthResult, UserCreate, UserLogin, UserRead, UserUpdate

__all__ = [
    # AI
    "ApplyBreakdownRequest", "BreakdownMilestone", "BreakdownRequest", "BreakdownTask", "TaskBreakdown",

    # Invitation
    "InvitationCreate", "InvitationDetail", "InvitationRead",

    # Project
    "ProjectCreate", "ProjectDetail", "ProjectMemberRead", "ProjectRead",
    "ProjectSettings", "ProjectSettingsUpdate", "ProjectUpdate",

    # Task
    "TaskCreate", "TaskRead", "TaskUpdate",
    "RichContent", "ContentBlock", "TaskStyling", "SuccessMetrics",
    "MilestoneCreate", "MilestoneRead", "MilestoneUpdate",
    "MemberStats", "ProjectAnalytics",

    # User
    "AuthResult", "UserCreate", "UserLogin", "UserRead", "UserUpdate",
]
