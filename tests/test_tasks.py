from datetime import datetime, timedelta, timezone

import pytest

from core.errors import NotFound, PermissionDenied, ValidationError
from models.models import Milestone, Task
from schemas.ai_schema import TaskBreakdown
from schemas.task_schema import MilestoneCreate, MilestoneUpdate, TaskCreate, TaskUpdate

METRICS = {"quality": 4, "satisfaction": 5, "on_time": True}


@pytest.fixture
def assigned_task(tasks, shared_project, owner, member):
    return tasks.create_task(owner, TaskCreate(
        project_id=shared_project.id, title="Build hero section", assignee_id=member.id,
    ))


# ============================================================
# Create
# ============================================================
def test_owner_creates_task_with_defaults(tasks, project, owner):
    task = tasks.create_task(owner, TaskCreate(
        project_id=project.id, title="Draft copy", tags=["copy", " copy ", "web"],
    ))

    assert task.status == "pending"
    assert task.priority == "medium"
    assert task.tags == ["copy", "web"]
    assert task.completed_at is None
    assert task.time_spent == 0


def test_member_creates_only_after_settings_flip(tasks, projects, shared_project, owner, member):
    data = TaskCreate(project_id=shared_project.id, title="Member task")
    with pytest.raises(PermissionDenied):
        tasks.create_task(member, data)

    projects.update_project(owner, shared_project.id, settings={"allow_member_task_create": True})

    assert tasks.create_task(member, data).title == "Member task"


def test_outsider_sees_not_found(tasks, project, outsider):
    with pytest.raises(NotFound):
        tasks.create_task(outsider, TaskCreate(project_id=project.id, title="Nope"))


def test_assignee_must_be_member(tasks, project, owner, outsider):
    with pytest.raises(ValidationError):
        tasks.create_task(owner, TaskCreate(project_id=project.id, title="X", assignee_id=outsider.id))


def test_task_created_completed_gets_completed_at(tasks, project, owner):
    task = tasks.create_task(owner, TaskCreate(project_id=project.id, title="Done", status="completed"))
    assert task.completed_at is not None


# ============================================================
# Read
# ============================================================
def test_get_task_hidden_from_outsider(tasks, assigned_task, member, outsider):
    assert tasks.get_task(member, assigned_task.id).id == assigned_task.id
    with pytest.raises(NotFound):
        tasks.get_task(outsider, assigned_task.id)
    with pytest.raises(NotFound):
        tasks.get_task(member, "missing")


def test_list_tasks_newest_first(tasks, storage, project, owner):
    older = tasks.create_task(owner, TaskCreate(project_id=project.id, title="Older"))
    stored = storage.get(Task, older.id)
    stored.created_at = datetime.now(timezone.utc) - timedelta(days=1)
    storage.put(stored)
    newer = tasks.create_task(owner, TaskCreate(project_id=project.id, title="Newer"))

    assert [t.id for t in tasks.list_tasks(owner, project.id)] == [newer.id, older.id]


# ============================================================
# Update
# ============================================================
def test_assignee_completes_then_edits_keeping_completed_at(tasks, assigned_task, member):
    completed = tasks.update_task(member, assigned_task.id, TaskUpdate(status="completed"))
    completed_at = completed.completed_at
    assert completed_at is not None

    edited = tasks.update_task(member, assigned_task.id, TaskUpdate(description="Polished"))

    assert edited.description == "Polished"
    assert edited.status == "completed"
    assert edited.completed_at == completed_at


def test_reopening_clears_completion_and_recompleting_stamps_again(tasks, assigned_task, owner):
    tasks.update_task(owner, assigned_task.id, TaskUpdate(status="completed", success_metrics=METRICS))
    first_completed_at = tasks.get_task(owner, assigned_task.id).completed_at
    assert first_completed_at is not None

    reopened = tasks.update_task(owner, assigned_task.id, TaskUpdate(status="in-progress"))
    assert reopened.success_metrics is None
    assert reopened.completed_at is None

    again = tasks.update_task(owner, assigned_task.id, TaskUpdate(status="completed"))
    assert again.completed_at is not None
    assert again.completed_at >= first_completed_at
    assert tasks.get_task(owner, assigned_task.id).completed_at == again.completed_at


def test_success_metrics_require_completed(tasks, assigned_task, owner):
    with pytest.raises(ValidationError):
        tasks.update_task(owner, assigned_task.id, TaskUpdate(success_metrics=METRICS))

    done = tasks.update_task(owner, assigned_task.id, TaskUpdate(status="completed", success_metrics=METRICS))
    assert done.success_metrics["quality"] == 4


def test_non_assignee_member_cannot_edit(tasks, make_user, add_member, shared_project, owner, assigned_task):
    other = make_user("Nina")
    add_member(shared_project, owner, other)

    with pytest.raises(PermissionDenied):
        tasks.update_task(other, assigned_task.id, TaskUpdate(title="Hijack"))


def test_assignee_edit_follows_setting(tasks, projects, shared_project, owner, member, assigned_task):
    projects.update_project(owner, shared_project.id, settings={"allow_member_task_edit": False})

    with pytest.raises(PermissionDenied):
        tasks.update_task(member, assigned_task.id, TaskUpdate(title="Renamed"))
    assert tasks.update_task(owner, assigned_task.id, TaskUpdate(title="Renamed")).title == "Renamed"


def test_empty_or_null_update_rejected(tasks, assigned_task, owner):
    with pytest.raises(ValidationError):
        tasks.update_task(owner, assigned_task.id, TaskUpdate())
    with pytest.raises(ValidationError):
        tasks.update_task(owner, assigned_task.id, TaskUpdate(title=None))


def test_failed_update_leaves_task_untouched(tasks, assigned_task, owner, outsider):
    with pytest.raises(ValidationError):
        tasks.update_task(owner, assigned_task.id, TaskUpdate(title="Changed", assignee_id=outsider.id))

    task = tasks.get_task(owner, assigned_task.id)
    assert task.title == "Build hero section"


def test_update_stores_rich_content_and_styling(tasks, assigned_task, owner):
    update = TaskUpdate(
        rich_content={"blocks": [
            {"id": "b1", "type": "heading", "content": "Goals", "level": 1},
            {"id": "b2", "type": "checklist", "content": "Mock-ups", "checked": True},
        ]},
        styling={"header_style": "bold", "text_size": "large"},
    )

    task = tasks.update_task(owner, assigned_task.id, update)

    assert [b["type"] for b in task.rich_content["blocks"]] == ["heading", "checklist"]
    assert task.styling["text_size"] == "large"


def test_unassigning_with_null(tasks, assigned_task, owner):
    task = tasks.update_task(owner, assigned_task.id, TaskUpdate(assignee_id=None))
    assert task.assignee_id is None


# ============================================================
# Delete
# ============================================================
def test_only_owner_deletes(tasks, storage, assigned_task, owner, member):
    with pytest.raises(PermissionDenied):
        tasks.delete_task(member, assigned_task.id)

    tasks.delete_task(owner, assigned_task.id)
    assert storage.get(Task, assigned_task.id) is None


# ============================================================
# Milestones / breakdown / analytics
# ============================================================
def test_milestone_lifecycle(tasks, storage, project, owner):
    milestone = tasks.create_milestone(owner, project.id, MilestoneCreate(title="Beta"))
    task = tasks.create_task(owner, TaskCreate(project_id=project.id, title="QA", milestone_id=milestone.id))

    updated = tasks.update_milestone(owner, project.id, milestone.id, MilestoneUpdate(completed=True))
    assert updated.completed is True

    tasks.delete_milestone(owner, project.id, milestone.id)
    assert storage.get(Milestone, milestone.id) is None
    assert storage.get(Task, task.id).milestone_id is None


def test_milestone_from_another_project_is_rejected(tasks, projects, project, owner):
    other = projects.create_project(owner, "Other")
    milestone = tasks.create_milestone(owner, other.id, MilestoneCreate(title="Elsewhere"))

    with pytest.raises(ValidationError):
        tasks.create_task(owner, TaskCreate(project_id=project.id, title="X", milestone_id=milestone.id))


def test_apply_breakdown_creates_milestones_and_tasks(tasks, project, owner):
    breakdown = TaskBreakdown.model_validate({"milestones": [
        {"title": "Plan", "tasks": [
            {"title": "Scope", "estimate": "1 day", "suggestedRole": "general"},
            {"title": "Wireframes", "estimate": "2 days", "suggestedRole": "design"},
        ]},
        {"title": "Build", "tasks": [{"title": "API", "estimate": "3 days"}]},
    ]})

    milestones = tasks.apply_breakdown(owner, project.id, breakdown)

    assert [m.title for m in milestones] == ["Plan", "Build"]
    created = {t.title: t for t in tasks.list_tasks(owner, project.id)}
    assert set(created) == {"Scope", "Wireframes", "API"}
    assert created["Wireframes"].tags == ["role:design"]
    assert created["Wireframes"].milestone_id == milestones[0].id
    assert created["API"].tags == []
    assert all(t.status == "pending" for t in created.values())


def test_analytics(tasks, shared_project, owner, member, assigned_task):
    tasks.create_task(owner, TaskCreate(
        project_id=shared_project.id, title="Late", priority="high",
        due_date=datetime.now(timezone.utc) - timedelta(days=1),
    ))
    tasks.update_task(member, assigned_task.id, TaskUpdate(
        status="completed", time_spent=90, success_metrics=METRICS,
    ))

    stats = tasks.project_analytics(owner, shared_project.id)

    assert stats.total_tasks == 2
    assert stats.completed == 1
    assert stats.pending == 1
    assert stats.overdue == 1
    assert stats.completion_rate == 50.0
    assert stats.total_time_spent == 90
    assert stats.avg_quality == 4.0
    assert stats.on_time_rate == 100.0
    assert stats.priority_stats["high"] == 1
    assert [(m.user_id, m.completed_tasks) for m in stats.team_stats] == [(member.id, 1)]
