# services/auth_service.py
import logging
from typing import List, Optional

from core.errors import Conflict, NotFound, Unauthenticated, ValidationError
from core.security import create_token_for_user, hash_password, verify_password
from models.models import User, UserRole
from services.base import BaseService

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 10


class AuthService(BaseService):

    # ==========================================================
    # Register / Login
    # ==========================================================
    def register(self, name: str, email: str, password: str, role: str = UserRole.GENERAL.value) -> tuple[User, str]:
        email = email.strip().lower()
        if self.storage.query(User, email=email):
            raise Conflict("User with this email already exists")

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role.value if isinstance(role, UserRole) else role,
        )
        self.storage.put(user)
        logger.info("👤 Registered user %s", email)
        return user, create_token_for_user(user)

    def login(self, email: str, password: str) -> tuple[User, str]:
        users = self.storage.query(User, email=email.strip().lower())
        user = users[0] if users else None
        if user is None or not verify_password(password, user.password_hash):
            raise Unauthenticated("Invalid email or password")
        if not user.is_active:
            raise Unauthenticated("Account is inactive")
        return user, create_token_for_user(user)

    # ==========================================================
    # Profile
    # ==========================================================
    def update_profile(self, actor: User, name: Optional[str] = None, role: Optional[str] = None) -> User:
        if name is not None:
            actor.name = name
        if role is not None:
            actor.role = role.value if isinstance(role, UserRole) else role
        actor.updated_at = self.now()
        self.storage.put(actor)
        return actor

    def set_active(self, email: str, active: bool) -> User:
        """Operator action: deactivated users keep their rows but can no longer authenticate."""
        users = self.storage.query(User, email=email.strip().lower())
        if not users:
            raise NotFound("User not found")
        user = users[0]
        user.is_active = active
        user.updated_at = self.now()
        self.storage.put(user)
        logger.info("User %s %s", user.email, "activated" if active else "deactivated")
        return user

    # ==========================================================
    # Directory
    # ==========================================================
    def list_users(self) -> List[User]:
        return sorted(self.storage.query(User, is_active=True), key=lambda u: u.name.lower())

    def search_users(self, email_fragment: str) -> List[User]:
        fragment = (email_fragment or "").strip().lower()
        if not fragment:
            raise ValidationError("Email parameter required")
        matches = [u for u in self.list_users() if fragment in u.email]
        return matches[:SEARCH_LIMIT]
