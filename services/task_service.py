# services/task_service.py
import logging
from typing import Dict, List, Optional

from core.errors import NotFound, ValidationError
from core.permissions import (
    ProjectContext, can_create_task, can_delete_task, can_edit_task, can_manage_project, require,
)
from models.models import Milestone, Project, Task, TaskPriority, TaskStatus, User, as_utc
from schemas.ai_schema import TaskBreakdown
from schemas.task_schema import (
    MemberStats, MilestoneCreate, MilestoneUpdate, ProjectAnalytics, TaskCreate, TaskUpdate,
)
from services.base import BaseService

logger = logging.getLogger(__name__)

COMPLETED = TaskStatus.COMPLETED.value

# Fields copied verbatim from TaskUpdate onto the task
_PLAIN_FIELDS = ("title", "description", "priority", "due_date", "estimate", "tags", "time_spent")
_JSON_FIELDS = ("styling", "rich_content")


def _value(v):
    return v.value if hasattr(v, "value") else v


def _avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _rate(part: int, total: int) -> float:
    return (part / total) * 100 if total else 0.0


class TaskService(BaseService):

    # ================================================================
    #  Helpers
    # ================================================================
    def _visible_task(self, actor: User, task_id: str) -> tuple[Task, Project, ProjectContext]:
        task = self.storage.get(Task, task_id)
        if task is None:
            raise NotFound("Task not found")
        try:
            project, ctx = self.visible_project(actor, task.project_id)
        except NotFound:
            raise NotFound("Task not found")
        return task, project, ctx

    def _check_assignee(self, ctx: ProjectContext, assignee_id: Optional[str]) -> None:
        if assignee_id is not None and assignee_id not in ctx.member_ids:
            raise ValidationError("Assignee must be a member of the project")

    def _check_milestone(self, project: Project, milestone_id: Optional[str]) -> None:
        if milestone_id is None:
            return
        milestone = self.storage.get(Milestone, milestone_id)
        if milestone is None or milestone.project_id != project.id:
            raise ValidationError("Milestone does not belong to this project")

    # ================================================================
    #  Tasks
    # ================================================================
    def create_task(self, actor: User, data: TaskCreate) -> Task:
        project, ctx = self.visible_project(actor, data.project_id)
        require(can_create_task(actor, ctx), "create_task",
                "You do not have permission to create tasks in this project")
        self._check_assignee(ctx, data.assignee_id)
        self._check_milestone(project, data.milestone_id)

        now = self.now()
        task = Task(
            project_id=project.id,
            milestone_id=data.milestone_id,
            title=data.title,
            description=data.description,
            status=data.status.value,
            priority=data.priority.value,
            assignee_id=data.assignee_id,
            due_date=data.due_date,
            estimate=data.estimate,
            tags=list(data.tags),
            time_spent=data.time_spent,
            styling=data.styling.model_dump() if data.styling else None,
            rich_content=data.rich_content.model_dump() if data.rich_content else None,
            completed_at=now if data.status.value == COMPLETED else None,
            created_at=now,
            updated_at=now,
        )
        self.storage.put(task)
        logger.info("Task %s created in project %s by %s", task.id, project.id, actor.email)
        return task

    def list_tasks(self, actor: User, project_id: str) -> List[Task]:
        project, _ = self.visible_project(actor, project_id)
        tasks = self.storage.query(Task, project_id=project.id)
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    def get_task(self, actor: User, task_id: str) -> Task:
        task, _, _ = self._visible_task(actor, task_id)
        return task

    def update_task(self, actor: User, task_id: str, changes: TaskUpdate) -> Task:
        task, project, ctx = self._visible_task(actor, task_id)
        require(can_edit_task(actor, ctx, task), "edit_task",
                "You do not have permission to edit this task")

        provided = changes.model_fields_set
        if not provided:
            raise ValidationError("No valid fields to update")

        # Validate everything before touching the task
        if "assignee_id" in provided:
            self._check_assignee(ctx, changes.assignee_id)
        if "milestone_id" in provided:
            self._check_milestone(project, changes.milestone_id)
        for field in ("title", "status", "priority", "tags", "time_spent"):
            if field in provided and getattr(changes, field) is None:
                raise ValidationError(f"'{field}' cannot be null")

        previous_status = task.status
        new_status = changes.status.value if "status" in provided else previous_status
        if "success_metrics" in provided and changes.success_metrics is not None and new_status != COMPLETED:
            raise ValidationError("Success metrics can only be recorded on completed tasks")

        for field in _PLAIN_FIELDS:
            if field in provided:
                value = getattr(changes, field)
                setattr(task, field, list(value) if field == "tags" else _value(value))
        for field in ("assignee_id", "milestone_id"):
            if field in provided:
                setattr(task, field, getattr(changes, field))
        for field in _JSON_FIELDS + ("success_metrics",):
            if field in provided:
                value = getattr(changes, field)
                setattr(task, field, value.model_dump() if value is not None else None)

        task.status = new_status
        if new_status == COMPLETED and previous_status != COMPLETED:
            task.completed_at = self.now()
        elif new_status != COMPLETED:
            # completed_at and metrics describe the latest completion only
            task.completed_at = None
            task.success_metrics = None
        task.updated_at = self.now()

        self.storage.put(task)
        return task

    def delete_task(self, actor: User, task_id: str) -> None:
        task, _, ctx = self._visible_task(actor, task_id)
        require(can_delete_task(actor, ctx, task), "delete_task",
                "Only project owner can delete tasks")
        self.storage.delete(task)
        logger.info("Task %s deleted by %s", task.id, actor.email)

    # ================================================================
    #  Milestones
    # ================================================================
    def list_milestones(self, actor: User, project_id: str) -> List[Milestone]:
        project, _ = self.visible_project(actor, project_id)
        milestones = self.storage.query(Milestone, project_id=project.id)
        return sorted(milestones, key=lambda m: m.created_at)

    def _visible_milestone(self, actor: User, project_id: str, milestone_id: str):
        project, ctx = self.visible_project(actor, project_id)
        milestone = self.storage.get(Milestone, milestone_id)
        if milestone is None or milestone.project_id != project.id:
            raise NotFound("Milestone not found")
        return milestone, project, ctx

    def create_milestone(self, actor: User, project_id: str, data: MilestoneCreate) -> Milestone:
        project, ctx = self.visible_project(actor, project_id)
        require(can_create_task(actor, ctx), "create_milestone")
        milestone = Milestone(
            project_id=project.id,
            title=data.title,
            description=data.description,
            due_date=data.due_date,
        )
        self.storage.put(milestone)
        return milestone

    def update_milestone(self, actor: User, project_id: str, milestone_id: str, data: MilestoneUpdate) -> Milestone:
        milestone, _, ctx = self._visible_milestone(actor, project_id, milestone_id)
        require(can_create_task(actor, ctx), "update_milestone")
        for field in data.model_fields_set:
            value = getattr(data, field)
            if field in ("title", "completed") and value is None:
                raise ValidationError(f"'{field}' cannot be null")
        for field in data.model_fields_set:
            setattr(milestone, field, getattr(data, field))
        self.storage.put(milestone)
        return milestone

    def delete_milestone(self, actor: User, project_id: str, milestone_id: str) -> None:
        milestone, _, ctx = self._visible_milestone(actor, project_id, milestone_id)
        require(can_manage_project(actor, ctx), "delete_milestone",
                "Only project owner can delete milestones")
        with self.storage.transaction():
            for task in self.storage.query(Task, milestone_id=milestone.id):
                task.milestone_id = None
                task.updated_at = self.now()
                self.storage.put(task)
            self.storage.delete(milestone)

    # ================================================================
    #  AI breakdown
    # ================================================================
    def apply_breakdown(self, actor: User, project_id: str, breakdown: TaskBreakdown) -> List[Milestone]:
        """Create one milestone per breakdown entry, with its tasks as pending work."""
        project, ctx = self.visible_project(actor, project_id)
        require(can_create_task(actor, ctx), "create_task",
                "You do not have permission to create tasks in this project")

        created = []
        with self.storage.transaction():
            for entry in breakdown.milestones:
                milestone = Milestone(project_id=project.id, title=entry.title, description=entry.description)
                self.storage.put(milestone)
                for item in entry.tasks:
                    tags = [f"role:{item.suggested_role}"] if item.suggested_role else []
                    self.storage.put(Task(
                        project_id=project.id,
                        milestone_id=milestone.id,
                        title=item.title,
                        description=item.description,
                        estimate=item.estimate or None,
                        tags=tags,
                    ))
                created.append(milestone)
            self.touch(project)
        logger.info("Applied breakdown with %d milestones to project %s", len(created), project.id)
        return created

    # ================================================================
    #  Analytics
    # ================================================================
    def project_analytics(self, actor: User, project_id: str) -> ProjectAnalytics:
        project, ctx = self.visible_project(actor, project_id)
        tasks = self.storage.query(Task, project_id=project.id)
        now = self.now()

        completed = [t for t in tasks if t.status == COMPLETED]
        in_progress = [t for t in tasks if t.status == TaskStatus.IN_PROGRESS.value]
        overdue = [t for t in tasks if t.due_date and as_utc(t.due_date) < now and t.status != COMPLETED]
        total_time = sum(t.time_spent or 0 for t in completed)
        metrics = [t.success_metrics for t in completed if t.success_metrics]

        team_stats = []
        for user_id in sorted(ctx.member_ids):
            assigned = [t for t in tasks if t.assignee_id == user_id]
            if not assigned:
                continue
            user = self.storage.get(User, user_id)
            done = [t for t in assigned if t.status == COMPLETED]
            team_stats.append(MemberStats(
                user_id=user_id,
                name=user.name if user else "",
                total_tasks=len(assigned),
                completed_tasks=len(done),
                completion_rate=_rate(len(done), len(assigned)),
                time_spent=sum(t.time_spent or 0 for t in done),
                avg_quality=_avg([t.success_metrics["quality"] for t in done if t.success_metrics]),
            ))

        priority_stats: Dict[str, int] = {p.value: 0 for p in TaskPriority}
        for t in tasks:
            priority_stats[t.priority] = priority_stats.get(t.priority, 0) + 1

        return ProjectAnalytics(
            total_tasks=len(tasks),
            completed=len(completed),
            in_progress=len(in_progress),
            pending=len(tasks) - len(completed) - len(in_progress),
            overdue=len(overdue),
            completion_rate=_rate(len(completed), len(tasks)),
            total_time_spent=total_time,
            avg_time_per_task=total_time / len(completed) if completed else 0.0,
            avg_quality=_avg([m["quality"] for m in metrics]),
            avg_satisfaction=_avg([m["satisfaction"] for m in metrics]),
            on_time_rate=_rate(len([m for m in metrics if m.get("on_time")]), len(metrics)),
            priority_stats=priority_stats,
            team_stats=team_stats,
        )
