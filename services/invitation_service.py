# services/invitation_service.py
"""
Invitation lifecycle.

    (none) --create--> pending --accept--> accepted
                          |
                          +--reject--> rejected

Expiry is never written: a pending invitation whose ``expires_at`` has passed
is simply not actionable any more.
"""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from core.config import settings
from core.errors import AlreadyProcessed, DuplicateInvitation, EmailMismatch, Expired, NotFound
from core.permissions import can_invite, require
from models.models import Invitation, InvitationStatus, Project, ProjectMember, User
from schemas.invitation_schema import InvitationDetail, InvitationRead
from services.base import BaseService

logger = logging.getLogger(__name__)

PENDING = InvitationStatus.PENDING.value


class InvitationService(BaseService):
    def __init__(self, storage, valid_days: Optional[int] = None):
        super().__init__(storage)
        self.valid_days = valid_days if valid_days is not None else settings.INVITATION_VALID_DAYS

    # ==================================================================
    # Create
    # ==================================================================
    def create(self, project_id: str, inviter: User, invitee_email: str) -> Invitation:
        email = invitee_email.strip().lower()
        project, ctx = self.visible_project(inviter, project_id)
        require(can_invite(inviter, ctx), "invite",
                "You do not have permission to invite members")

        members = [self.storage.get(User, user_id) for user_id in ctx.member_ids]
        if any(user is not None and user.email == email for user in members):
            raise DuplicateInvitation("User is already a member of this project")

        now = self.now()
        existing = self.storage.query(
            Invitation, project_id=project.id, invitee_email=email, status=PENDING
        )
        if any(not inv.is_expired(now) for inv in existing):
            raise DuplicateInvitation("Invitation already sent to this email")

        invitation = Invitation(
            project_id=project.id,
            inviter_id=inviter.id,
            invitee_email=email,
            status=PENDING,
            created_at=now,
            expires_at=now + timedelta(days=self.valid_days),
        )
        self.storage.put(invitation)
        logger.info("Invitation %s created for %s on project %s", invitation.id, email, project.id)
        return invitation

    # ==================================================================
    # Lookup
    # ==================================================================
    def _get(self, invitation_id: str) -> Invitation:
        invitation = self.storage.get(Invitation, invitation_id)
        if invitation is None:
            raise NotFound("Invitation not found")
        return invitation

    def _check_actionable(self, invitation: Invitation, now: Optional[datetime] = None) -> None:
        if invitation.is_expired(now):
            raise Expired("Invitation has expired")
        if invitation.status != PENDING:
            raise AlreadyProcessed(f"Invitation has already been {invitation.status}")

    def get_details(self, invitation_id: str, invite_link: Optional[str] = None) -> InvitationDetail:
        """Public view used by the invite link; refuses inert invitations."""
        invitation = self._get(invitation_id)
        self._check_actionable(invitation)
        return self.to_detail(invitation, invite_link)

    def to_read(self, invitation: Invitation, now: Optional[datetime] = None) -> InvitationRead:
        return InvitationRead(
            id=invitation.id,
            project_id=invitation.project_id,
            inviter_id=invitation.inviter_id,
            invitee_email=invitation.invitee_email,
            status=invitation.status,
            created_at=invitation.created_at,
            expires_at=invitation.expires_at,
            accepted_at=invitation.accepted_at,
            is_expired=invitation.is_expired(now),
        )

    def to_detail(self, invitation: Invitation, invite_link: Optional[str] = None) -> InvitationDetail:
        project = self.storage.get(Project, invitation.project_id)
        inviter = self.storage.get(User, invitation.inviter_id)
        return InvitationDetail(
            **self.to_read(invitation).model_dump(),
            project_title=project.title if project else "",
            project_description=project.description if project else "",
            inviter_name=inviter.name if inviter else None,
            inviter_email=inviter.email if inviter else None,
            invite_link=invite_link,
        )

    def list_pending_for_email(self, email: str) -> List[Invitation]:
        now = self.now()
        invitations = self.storage.query(Invitation, invitee_email=email.strip().lower(), status=PENDING)
        active = [inv for inv in invitations if not inv.is_expired(now)]
        return sorted(active, key=lambda inv: inv.created_at, reverse=True)

    def list_for_project(self, actor: User, project_id: str) -> List[Invitation]:
        project, _ = self.visible_project(actor, project_id)
        invitations = self.storage.query(Invitation, project_id=project.id)
        return sorted(invitations, key=lambda inv: inv.created_at, reverse=True)

    # ==================================================================
    # Accept / Reject
    # ==================================================================
    def _validate_response(self, invitation_id: str, actor: User) -> Invitation:
        invitation = self._get(invitation_id)
        self._check_actionable(invitation)
        if actor.email.lower() != invitation.invitee_email.lower():
            raise EmailMismatch()
        return invitation

    def accept(self, invitation_id: str, actor: User) -> Invitation:
        invitation = self._validate_response(invitation_id, actor)
        project = self.storage.get(Project, invitation.project_id)
        if project is None:
            raise NotFound("Invitation not found")

        now = self.now()
        try:
            with self.storage.transaction():
                # Re-read under lock; a concurrent response may have won
                invitation = self.storage.get(Invitation, invitation_id, for_update=True)
                self._check_actionable(invitation, now)
                already_member = actor.id == project.owner_id or bool(
                    self.storage.query(ProjectMember, project_id=project.id, user_id=actor.id)
                )
                if not already_member:
                    self.storage.put(ProjectMember(project_id=project.id, user_id=actor.id, joined_at=now))
                invitation.status = InvitationStatus.ACCEPTED.value
                invitation.accepted_at = now
                self.storage.put(invitation)
                self.touch(project)
        except IntegrityError:
            # uq_project_member: another accept inserted the membership first
            raise AlreadyProcessed("Invitation has already been accepted")

        logger.info("Invitation %s accepted by %s%s", invitation.id, actor.email,
                    " (already a member)" if already_member else "")
        return invitation

    def reject(self, invitation_id: str, actor: User) -> Invitation:
        self._validate_response(invitation_id, actor)
        with self.storage.transaction():
            invitation = self.storage.get(Invitation, invitation_id, for_update=True)
            self._check_actionable(invitation)
            invitation.status = InvitationStatus.REJECTED.value
            self.storage.put(invitation)
        logger.info("Invitation %s rejected by %s", invitation.id, actor.email)
        return invitation

    # ==================================================================
    # Maintenance
    # ==================================================================
    def purge_expired(self, now: Optional[datetime] = None) -> int:
        """Delete inert pending invitations. Not scheduled; run from the CLI."""
        now = now or self.now()
        stale = [inv for inv in self.storage.query(Invitation, status=PENDING) if inv.is_expired(now)]
        with self.storage.transaction():
            for invitation in stale:
                self.storage.delete(invitation)
        logger.info("🧹 Purged %d expired invitations", len(stale))
        return len(stale)
