# services/project_service.py
import logging
from typing import Dict, List, Optional

from core.errors import NotFound
from core.permissions import can_manage_project, can_remove_member, require
from models.models import (
    DEFAULT_PROJECT_SETTINGS, Invitation, Milestone, Project, ProjectMember, Task, User,
)
from schemas.project_schema import ProjectDetail, ProjectMemberRead, ProjectRead
from services.base import BaseService

logger = logging.getLogger(__name__)


def merge_settings(current: Optional[Dict[str, bool]], changes: Optional[Dict[str, Optional[bool]]]) -> Dict[str, bool]:
    merged = {**DEFAULT_PROJECT_SETTINGS, **(current or {})}
    for key, value in (changes or {}).items():
        if key in DEFAULT_PROJECT_SETTINGS and value is not None:
            merged[key] = bool(value)
    return merged


class ProjectService(BaseService):

    # ==================================================================
    #  Create
    # ==================================================================
    def create_project(
        self,
        owner: User,
        title: str,
        description: str = "",
        settings: Optional[Dict[str, Optional[bool]]] = None,
    ) -> Project:
        project = Project(
            title=title,
            description=description or "",
            owner_id=owner.id,
            settings=merge_settings(None, settings),
        )
        with self.storage.transaction():
            self.storage.put(project)
            self.storage.put(ProjectMember(project_id=project.id, user_id=owner.id))
        logger.info("Project %s created by %s", project.id, owner.email)
        return project

    # ==================================================================
    #  Read
    # ==================================================================
    def list_projects(self, actor: User) -> List[ProjectRead]:
        project_ids = {m.project_id for m in self.storage.query(ProjectMember, user_id=actor.id)}
        projects = {p.id: p for p in self.storage.query(Project, owner_id=actor.id)}
        for project_id in project_ids - set(projects):
            project = self.storage.get(Project, project_id)
            if project is not None:
                projects[project.id] = project

        ordered = sorted(projects.values(), key=lambda p: p.updated_at, reverse=True)
        return [self.to_read(p) for p in ordered]

    def get_project(self, actor: User, project_id: str) -> Project:
        project, _ = self.visible_project(actor, project_id)
        return project

    def to_read(self, project: Project) -> ProjectRead:
        return ProjectRead(
            id=project.id,
            title=project.title,
            description=project.description,
            owner_id=project.owner_id,
            settings=merge_settings(project.settings, None),
            member_ids=sorted(self.member_ids(project)),
            task_count=len(self.storage.query(Task, project_id=project.id)),
            created_at=project.created_at,
            updated_at=project.updated_at,
        )

    def get_project_detail(self, actor: User, project_id: str) -> ProjectDetail:
        project = self.get_project(actor, project_id)
        owner = self.storage.get(User, project.owner_id)
        return ProjectDetail(
            **self.to_read(project).model_dump(),
            owner_name=owner.name if owner else None,
            owner_email=owner.email if owner else None,
            members=self.list_members(project),
        )

    def list_members(self, project: Project) -> List[ProjectMemberRead]:
        memberships = {m.user_id: m for m in self.storage.query(ProjectMember, project_id=project.id)}
        members = []
        for user_id in [project.owner_id] + sorted(set(memberships) - {project.owner_id}):
            user = self.storage.get(User, user_id)
            if user is None:
                continue
            membership = memberships.get(user_id)
            members.append(ProjectMemberRead(
                id=user.id,
                name=user.name,
                email=user.email,
                role=user.role,
                joined_at=membership.joined_at if membership else project.created_at,
                is_owner=user.id == project.owner_id,
            ))
        return members

    # ==================================================================
    #  Update / Delete
    # ==================================================================
    def update_project(
        self,
        actor: User,
        project_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        settings: Optional[Dict[str, Optional[bool]]] = None,
    ) -> Project:
        project, ctx = self.visible_project(actor, project_id)
        require(can_manage_project(actor, ctx), "update_project",
                "Only project owner can update project settings")

        if title is not None:
            project.title = title
        if description is not None:
            project.description = description
        if settings is not None:
            project.settings = merge_settings(project.settings, settings)
        self.touch(project)
        return project

    def delete_project(self, actor: User, project_id: str) -> None:
        project, ctx = self.visible_project(actor, project_id)
        require(can_manage_project(actor, ctx), "delete_project",
                "Only project owner can delete project")

        with self.storage.transaction():
            for task in self.storage.query(Task, project_id=project.id):
                self.storage.delete(task)
            for model in (Milestone, Invitation, ProjectMember):
                for row in self.storage.query(model, project_id=project.id):
                    self.storage.delete(row)
            self.storage.delete(project)
        logger.info("Project %s deleted by %s", project.id, actor.email)

    # ==================================================================
    #  Members
    # ==================================================================
    def remove_member(self, actor: User, project_id: str, target_user_id: str) -> None:
        project, ctx = self.visible_project(actor, project_id)
        require(can_remove_member(actor, ctx, target_user_id), "remove_member",
                "Cannot remove the project owner" if target_user_id == project.owner_id
                else "Only project owner can remove members")

        memberships = self.storage.query(ProjectMember, project_id=project.id, user_id=target_user_id)
        if not memberships:
            raise NotFound("Member not found in project")

        with self.storage.transaction():
            for membership in memberships:
                self.storage.delete(membership)
            # Assignees must stay project members
            for task in self.storage.query(Task, project_id=project.id, assignee_id=target_user_id):
                task.assignee_id = None
                task.updated_at = self.now()
                self.storage.put(task)
            self.touch(project)
        logger.info("User %s removed from project %s", target_user_id, project.id)
