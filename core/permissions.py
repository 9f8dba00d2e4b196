# core/permissions.py
"""
Access-control predicates.

Every function here is pure: it only looks at its arguments. Services build a
:class:`ProjectContext` from storage, ask the relevant predicate, and call
:func:`require` before any write.
"""
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from core.errors import PermissionDenied
from models.models import DEFAULT_PROJECT_SETTINGS, Task, User


@dataclass(frozen=True)
class ProjectContext:
    id: str
    owner_id: str
    member_ids: FrozenSet[str] = frozenset()
    settings: Dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_PROJECT_SETTINGS))

    def setting(self, name: str) -> bool:
        return bool(self.settings.get(name, DEFAULT_PROJECT_SETTINGS[name]))


def is_owner(actor: User, project: ProjectContext) -> bool:
    return actor.id == project.owner_id


def is_member(actor: User, project: ProjectContext) -> bool:
    return actor.id == project.owner_id or actor.id in project.member_ids


def can_view_project(actor: User, project: ProjectContext) -> bool:
    return is_member(actor, project)


def can_create_task(actor: User, project: ProjectContext) -> bool:
    return is_owner(actor, project) or (
        is_member(actor, project) and project.setting("allow_member_task_create")
    )


def can_edit_task(actor: User, project: ProjectContext, task: Task) -> bool:
    return is_owner(actor, project) or (
        task.assignee_id == actor.id and project.setting("allow_member_task_edit")
    )


def can_delete_task(actor: User, project: ProjectContext, task: Optional[Task] = None) -> bool:
    return is_owner(actor, project)


def can_invite(actor: User, project: ProjectContext) -> bool:
    return is_owner(actor, project) or (
        is_member(actor, project) and project.setting("allow_member_invite")
    )


def can_remove_member(actor: User, project: ProjectContext, target_user_id: str) -> bool:
    return is_owner(actor, project) and target_user_id != project.owner_id


def can_manage_project(actor: User, project: ProjectContext) -> bool:
    """Update, delete and other settings changes are owner-only."""
    return is_owner(actor, project)


def require(allowed: bool, action: str, message: Optional[str] = None) -> None:
    if not allowed:
        raise PermissionDenied(action, message)
