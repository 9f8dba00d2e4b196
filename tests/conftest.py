import os

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["SENDGRID_API_KEY"] = ""
os.environ["OPENAI_API_KEY"] = ""

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from core.database import get_storage  # noqa: E402
from core.security import hash_password  # noqa: E402
from core.storage import MemoryStorage  # noqa: E402
from models.models import User  # noqa: E402
from schemas.user_schema import UserRead  # noqa: E402
from services.ai_service import BreakdownService, get_breakdown_service  # noqa: E402
from services.invitation_service import InvitationService  # noqa: E402
from services.project_service import ProjectService  # noqa: E402
from services.task_service import TaskService  # noqa: E402

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def make_user(storage):
    def _make(name: str, email: str = None, **fields) -> User:
        user = User(
            name=name,
            email=email or f"{name.lower()}@example.com",
            password_hash=PASSWORD_HASH,
            **fields,
        )
        storage.put(user)
        return user
    return _make


@pytest.fixture
def owner(make_user):
    return make_user("Olivia")


@pytest.fixture
def member(make_user):
    return make_user("Max")


@pytest.fixture
def outsider(make_user):
    return make_user("Otto")


@pytest.fixture
def projects(storage):
    return ProjectService(storage)


@pytest.fixture
def tasks(storage):
    return TaskService(storage)


@pytest.fixture
def invitations(storage):
    return InvitationService(storage)


@pytest.fixture
def project(projects, owner):
    return projects.create_project(owner, "Website relaunch", "New marketing site")


@pytest.fixture
def add_member(invitations):
    """Make ``user`` a member of ``project`` the way the app does: invite, then accept."""
    def _add(project, inviter, user):
        invitation = invitations.create(project.id, inviter, user.email)
        return invitations.accept(invitation.id, user)
    return _add


@pytest.fixture
def shared_project(project, owner, member, add_member):
    add_member(project, owner, member)
    return project


# ============================================================
# HTTP
# ============================================================
@pytest.fixture
def client(storage):
    from main import app

    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_breakdown_service] = lambda: BreakdownService(client=None)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(name: str, email: str, password: str = PASSWORD, role: str = "general"):
        response = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password, "role": role},
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        return UserRead(**data["user"]), {"Authorization": f"Bearer {data['access_token']}"}
    return _register
