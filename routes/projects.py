# routes/projects.py
from typing import Optional

from fastapi import APIRouter, Depends, status

from core.database import get_storage
from core.errors import ValidationError
from core.responses import ok
from core.security import get_current_user
from core.storage import Storage
from models.models import User
from schemas.project_schema import ProjectCreate, ProjectUpdate
from schemas.ai_schema import ApplyBreakdownRequest
from schemas.task_schema import MilestoneCreate, MilestoneRead, MilestoneUpdate
from services.ai_service import BreakdownService, get_breakdown_service
from services.invitation_service import InvitationService
from services.project_service import ProjectService
from services.task_service import TaskService

router = APIRouter(tags=["Projects"])


def _settings_dict(settings) -> Optional[dict]:
    return settings.model_dump(exclude_none=True) if settings is not None else None


# ==================================================================
#  ✅ Create / List Projects
# ==================================================================
@router.post("", status_code=status.HTTP_201_CREATED)
def create_project(
    data: ProjectCreate,
    storage: Storage = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    service = ProjectService(storage)
    project = service.create_project(
        current_user,
        title=data.title,
        description=data.description,
        settings=_settings_dict(data.settings),
    )
    return ok(service.to_read(project), "Project created successfully")


@router.get("")
def get_projects(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return ok(ProjectService(storage).list_projects(current_user))


# ==================================================================
#  ✅ Single Project
# ==================================================================
@router.get("/{project_id}")
def get_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return ok(ProjectService(storage).get_project_detail(current_user, project_id))


@router.put("/{project_id}")
def update_project(
    project_id: str,
    data: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    service = ProjectService(storage)
    project = service.update_project(
        current_user,
        project_id,
        title=data.title,
        description=data.description,
        settings=_settings_dict(data.settings),
    )
    return ok(service.to_read(project), "Project updated successfully")


@router.delete("/{project_id}")
def delete_project(
    project_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    ProjectService(storage).delete_project(current_user, project_id)
    return ok(message="Project deleted successfully")


# ==================================================================
#  ✅ Members & Invitations
# ==================================================================
@router.delete("/{project_id}/members/{user_id}")
def remove_member(
    project_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    ProjectService(storage).remove_member(current_user, project_id, user_id)
    return ok(message="Member removed successfully")


@router.get("/{project_id}/invitations")
def list_project_invitations(
    project_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    service = InvitationService(storage)
    invitations = service.list_for_project(current_user, project_id)
    return ok([service.to_read(inv) for inv in invitations])


# ==================================================================
#  ✅ Analytics
# ==================================================================
@router.get("/{project_id}/analytics")
def project_analytics(
    project_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    return ok(TaskService(storage).project_analytics(current_user, project_id))


# ==================================================================
#  ✅ Milestones
# ==================================================================
@router.get("/{project_id}/milestones")
def list_milestones(
    project_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    milestones = TaskService(storage).list_milestones(current_user, project_id)
    return ok([MilestoneRead.model_validate(m) for m in milestones])


@router.post("/{project_id}/milestones", status_code=status.HTTP_201_CREATED)
def create_milestone(
    project_id: str,
    data: MilestoneCreate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    milestone = TaskService(storage).create_milestone(current_user, project_id, data)
    return ok(MilestoneRead.model_validate(milestone), "Milestone created successfully")


@router.put("/{project_id}/milestones/{milestone_id}")
def update_milestone(
    project_id: str,
    milestone_id: str,
    data: MilestoneUpdate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    milestone = TaskService(storage).update_milestone(current_user, project_id, milestone_id, data)
    return ok(MilestoneRead.model_validate(milestone), "Milestone updated successfully")


@router.delete("/{project_id}/milestones/{milestone_id}")
def delete_milestone(
    project_id: str,
    milestone_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    TaskService(storage).delete_milestone(current_user, project_id, milestone_id)
    return ok(message="Milestone deleted successfully")


# ==================================================================
#  ✅ AI breakdown: generate (unless supplied) and apply
# ==================================================================
@router.post("/{project_id}/breakdown", status_code=status.HTTP_201_CREATED)
def apply_breakdown(
    project_id: str,
    data: ApplyBreakdownRequest,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
    ai: BreakdownService = Depends(get_breakdown_service),
):
    tasks = TaskService(storage)
    # Fail on access before spending an AI call
    tasks.visible_project(current_user, project_id)

    breakdown = data.breakdown
    if breakdown is None:
        if not data.goal:
            raise ValidationError("Either 'goal' or 'breakdown' is required")
        breakdown = ai.generate_breakdown(data.goal, data.roles)

    milestones = tasks.apply_breakdown(current_user, project_id, breakdown)
    return ok(
        {"breakdown": breakdown.model_dump(by_alias=True),
         "milestones": [MilestoneRead.model_validate(m) for m in milestones]},
        "Breakdown applied successfully",
    )
