# routes/tasks.py
from fastapi import APIRouter, Depends, status

from core.database import get_storage
from core.responses import ok
from core.security import get_current_user
from core.storage import Storage
from models.models import User
from schemas.task_schema import TaskCreate, TaskRead, TaskUpdate
from services.task_service import TaskService

router = APIRouter(tags=["Tasks"])


# ================================================================
#  ✅ Tasks of a Project (newest first)
# ================================================================
@router.get("/project/{project_id}")
def get_project_tasks(
    project_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    tasks = TaskService(storage).list_tasks(current_user, project_id)
    return ok([TaskRead.model_validate(t) for t in tasks])


# ================================================================
#  ✅ Create Task
# ================================================================
@router.post("", status_code=status.HTTP_201_CREATED)
def create_task(
    payload: TaskCreate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    task = TaskService(storage).create_task(current_user, payload)
    return ok(TaskRead.model_validate(task), "Task created successfully")


# ================================================================
#  ✅ Get / Update / Delete Single Task
# ================================================================
@router.get("/{task_id}")
def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    task = TaskService(storage).get_task(current_user, task_id)
    return ok(TaskRead.model_validate(task))


@router.put("/{task_id}")
def update_task(
    task_id: str,
    payload: TaskUpdate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """Partial update: only fields present in the body are applied."""
    task = TaskService(storage).update_task(current_user, task_id, payload)
    return ok(TaskRead.model_validate(task), "Task updated successfully")


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    TaskService(storage).delete_task(current_user, task_id)
    return ok(message="Task deleted successfully")
