# services/base.py
from datetime import datetime
from typing import Set

from core.errors import NotFound
from core.permissions import ProjectContext, can_view_project
from core.storage import Storage
from models.models import DEFAULT_PROJECT_SETTINGS, Project, ProjectMember, User, utcnow


class BaseService:
    """Shared project lookups used by every service."""

    def __init__(self, storage: Storage):
        self.storage = storage

    @staticmethod
    def now() -> datetime:
        return utcnow()

    def member_ids(self, project: Project) -> Set[str]:
        ids = {m.user_id for m in self.storage.query(ProjectMember, project_id=project.id)}
        ids.add(project.owner_id)
        return ids

    def context(self, project: Project) -> ProjectContext:
        return ProjectContext(
            id=project.id,
            owner_id=project.owner_id,
            member_ids=frozenset(self.member_ids(project)),
            settings={**DEFAULT_PROJECT_SETTINGS, **(project.settings or {})},
        )

    def visible_project(self, actor: User, project_id: str) -> tuple[Project, ProjectContext]:
        """
        Load a project the actor may see.
        Missing and invisible projects both raise NotFound.
        """
        project = self.storage.get(Project, project_id)
        if project is None:
            raise NotFound("Project not found")
        ctx = self.context(project)
        if not can_view_project(actor, ctx):
            raise NotFound("Project not found")
        return project, ctx

    def touch(self, project: Project) -> None:
        project.updated_at = self.now()
        self.storage.put(project)
