# routes/invitation.py
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from core.config import settings
from core.database import get_storage
from core.responses import ok
from core.security import get_current_user
from core.storage import Storage
from models.models import Project, User
from schemas.invitation_schema import InvitationCreate
from services.email_service import email_service
from services.invitation_service import InvitationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Invitations"])


# -----------------------
# Helper: build invite link
# -----------------------
def build_invitation_link(invitation_id: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}?invite={invitation_id}"


# ==================================================================
# Create / Send Invitation
# ==================================================================
@router.post("", status_code=status.HTTP_201_CREATED)
def invite(
    data: InvitationCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    """
    Create a pending invitation for a project.
    The email goes out via BackgroundTasks once the invitation is stored.
    """
    service = InvitationService(storage)
    invitation = service.create(data.project_id, current_user, data.email)
    project = storage.get(Project, invitation.project_id)
    link = build_invitation_link(invitation.id)

    background_tasks.add_task(
        email_service.send_invitation_email,
        to_email=invitation.invitee_email,
        invitation_link=link,
        project_title=project.title,
        invited_by=current_user.name,
        expires_at=invitation.expires_at,
    )
    logger.info("📨 Invitation email queued for %s", invitation.invitee_email)

    return ok(service.to_detail(invitation, link), "Invitation sent successfully")


# ==================================================================
# Inbox of the current user
# ==================================================================
@router.get("/received")
def received_invitations(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    service = InvitationService(storage)
    invitations = service.list_pending_for_email(current_user.email)
    return ok([service.to_detail(inv, build_invitation_link(inv.id)) for inv in invitations])


# ==================================================================
# Public details for the invite link (no auth)
# ==================================================================
@router.get("/{invitation_id}")
def invitation_details(invitation_id: str, storage: Storage = Depends(get_storage)):
    detail = InvitationService(storage).get_details(invitation_id, build_invitation_link(invitation_id))
    return ok(detail)


# ==================================================================
# Accept / Reject
# ==================================================================
@router.post("/{invitation_id}/accept")
def accept_invitation(
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    service = InvitationService(storage)
    invitation = service.accept(invitation_id, current_user)
    return ok(service.to_read(invitation), "Invitation accepted successfully")


@router.post("/{invitation_id}/reject")
def reject_invitation(
    invitation_id: str,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    service = InvitationService(storage)
    invitation = service.reject(invitation_id, current_user)
    return ok(service.to_read(invitation), "Invitation rejected")
