# scripts/manage.py
"""
Operator commands.

    python scripts/manage.py init-db
    python scripts/manage.py seed
    python scripts/manage.py deactivate someone@example.com
    python scripts/manage.py activate someone@example.com
    python scripts/manage.py purge-invitations
"""
import os
import sys
import argparse
import logging

from dotenv import load_dotenv
from sqlmodel import Session

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables before settings are read
load_dotenv()

from core.database import create_db_and_tables, engine  # noqa: E402
from core.errors import AppError  # noqa: E402
from core.storage import SqlStorage  # noqa: E402
from models.models import Project, User, UserRole  # noqa: E402
from schemas.task_schema import TaskCreate  # noqa: E402
from services.auth_service import AuthService  # noqa: E402
from services.invitation_service import InvitationService  # noqa: E402
from services.project_service import ProjectService  # noqa: E402
from services.task_service import TaskService  # noqa: E402

logger = logging.getLogger("manage")

DEMO_PASSWORD = "password123"


def seed(storage) -> None:
    """Seed a demo owner, a demo member and one shared project."""
    logger.info("🌱 Seeding development data...")
    auth = AuthService(storage)

    def ensure_user(name: str, email: str, role: UserRole) -> User:
        existing = storage.query(User, email=email)
        if existing:
            logger.info("ℹ️ %s already exists", email)
            return existing[0]
        user, _ = auth.register(name, email, DEMO_PASSWORD, role)
        logger.info("✅ Created %s (password: %s)", email, DEMO_PASSWORD)
        return user

    owner = ensure_user("Demo Owner", "owner@demo.com", UserRole.GENERAL)
    member = ensure_user("Demo Member", "member@demo.com", UserRole.FRONTEND)

    if storage.query(Project, owner_id=owner.id, title="Demo Project"):
        logger.info("ℹ️ Demo Project already exists")
        return

    project = ProjectService(storage).create_project(
        owner, "Demo Project", "A sample project to explore Team Planner",
        {"allow_member_task_create": True},
    )
    invitations = InvitationService(storage)
    invitation = invitations.create(project.id, owner, member.email)
    invitations.accept(invitation.id, member)

    tasks = TaskService(storage)
    tasks.create_task(owner, TaskCreate(project_id=project.id, title="Write the project brief"))
    tasks.create_task(owner, TaskCreate(
        project_id=project.id, title="Design the landing page",
        assignee_id=member.id, priority="high", tags=["design"],
    ))
    logger.info("✅ Created Demo Project with 2 tasks")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Team Planner management commands")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db", help="Create all database tables")
    sub.add_parser("seed", help="Create demo users and a demo project")
    for name in ("activate", "deactivate"):
        cmd = sub.add_parser(name, help=f"{name.capitalize()} a user account")
        cmd.add_argument("email")
    sub.add_parser("purge-invitations", help="Delete expired pending invitations")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")

    if args.command == "init-db":
        create_db_and_tables()
        return 0

    create_db_and_tables()
    with Session(engine) as session:
        storage = SqlStorage(session)
        try:
            if args.command == "seed":
                seed(storage)
            elif args.command in ("activate", "deactivate"):
                AuthService(storage).set_active(args.email, args.command == "activate")
            elif args.command == "purge-invitations":
                InvitationService(storage).purge_expired()
        except AppError as e:
            logger.error("❌ %s", e.message)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
