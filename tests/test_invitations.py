from datetime import datetime, timedelta, timezone

import pytest

from core.config import settings
from core.errors import (
    AlreadyProcessed, DuplicateInvitation, EmailMismatch, Expired, NotFound, PermissionDenied,
)
from models.models import Invitation, ProjectMember
from services.invitation_service import InvitationService


def _expire(storage, invitation):
    stored = storage.get(Invitation, invitation.id)
    stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    storage.put(stored)
    return stored


def _memberships(storage, project, user):
    return storage.query(ProjectMember, project_id=project.id, user_id=user.id)


# ============================================================
# Create
# ============================================================
def test_create_sets_pending_and_seven_day_expiry(invitations, project, owner):
    invitation = invitations.create(project.id, owner, "  New.Person@Example.com ")

    assert invitation.status == "pending"
    assert invitation.invitee_email == "new.person@example.com"
    assert invitation.inviter_id == owner.id
    assert invitation.expires_at - invitation.created_at == timedelta(days=7)
    assert invitation.accepted_at is None


def test_validity_period_comes_from_settings(storage, project, owner, monkeypatch):
    monkeypatch.setattr(settings, "INVITATION_VALID_DAYS", 3)

    invitation = InvitationService(storage).create(project.id, owner, "friend@example.com")

    assert invitation.expires_at - invitation.created_at == timedelta(days=3)
    assert not invitation.is_expired(invitation.created_at + timedelta(days=2))
    assert invitation.is_expired(invitation.created_at + timedelta(days=3, seconds=1))


def test_second_pending_invitation_is_rejected(invitations, project, owner):
    invitations.create(project.id, owner, "friend@example.com")
    with pytest.raises(DuplicateInvitation):
        invitations.create(project.id, owner, "FRIEND@example.com")


def test_expired_pending_invitation_does_not_block_a_new_one(invitations, storage, project, owner):
    first = invitations.create(project.id, owner, "friend@example.com")
    _expire(storage, first)

    second = invitations.create(project.id, owner, "friend@example.com")
    assert second.id != first.id


def test_inviting_existing_member_is_rejected(invitations, shared_project, owner, member):
    with pytest.raises(DuplicateInvitation):
        invitations.create(shared_project.id, owner, member.email)
    with pytest.raises(DuplicateInvitation):
        invitations.create(shared_project.id, owner, owner.email)


def test_member_needs_invite_setting(invitations, projects, shared_project, owner, member):
    with pytest.raises(PermissionDenied):
        invitations.create(shared_project.id, member, "friend@example.com")

    projects.update_project(owner, shared_project.id, settings={"allow_member_invite": True})
    invitation = invitations.create(shared_project.id, member, "friend@example.com")
    assert invitation.inviter_id == member.id


def test_outsider_cannot_see_project_to_invite(invitations, project, outsider):
    with pytest.raises(NotFound):
        invitations.create(project.id, outsider, "friend@example.com")


# ============================================================
# Accept / Reject
# ============================================================
def test_accept_adds_membership_once(invitations, storage, project, owner, member):
    invitation = invitations.create(project.id, owner, member.email)

    accepted = invitations.accept(invitation.id, member)

    assert accepted.status == "accepted"
    assert accepted.accepted_at is not None
    assert len(_memberships(storage, project, member)) == 1

    with pytest.raises(AlreadyProcessed):
        invitations.accept(invitation.id, member)
    assert len(_memberships(storage, project, member)) == 1
    assert storage.get(Invitation, invitation.id).status == "accepted"


def test_accept_matches_email_case_insensitively(invitations, make_user, project, owner):
    invitee = make_user("Casey", "Casey@Example.com")
    invitation = invitations.create(project.id, owner, "casey@example.com")

    assert invitations.accept(invitation.id, invitee).status == "accepted"


def test_accept_by_wrong_user_is_refused(invitations, storage, project, owner, member, outsider):
    invitation = invitations.create(project.id, owner, member.email)

    with pytest.raises(EmailMismatch):
        invitations.accept(invitation.id, outsider)
    assert storage.get(Invitation, invitation.id).status == "pending"
    assert not _memberships(storage, project, outsider)


def test_expired_invitation_cannot_be_accepted(invitations, storage, project, owner, member):
    invitation = invitations.create(project.id, owner, member.email)
    _expire(storage, invitation)

    with pytest.raises(Expired):
        invitations.accept(invitation.id, member)
    assert storage.get(Invitation, invitation.id).status == "pending"
    assert not _memberships(storage, project, member)


def test_unknown_invitation(invitations, member):
    with pytest.raises(NotFound):
        invitations.accept("missing", member)


def test_rejected_invitation_cannot_be_accepted(invitations, storage, project, owner, member):
    invitation = invitations.create(project.id, owner, member.email)

    assert invitations.reject(invitation.id, member).status == "rejected"
    with pytest.raises(AlreadyProcessed):
        invitations.accept(invitation.id, member)
    assert not _memberships(storage, project, member)


def test_accept_rolls_back_membership_when_status_write_fails(
    invitations, storage, project, owner, member, monkeypatch
):
    invitation = invitations.create(project.id, owner, member.email)
    original_put = storage.put

    def failing_put(entity):
        if isinstance(entity, Invitation):
            raise RuntimeError("disk full")
        return original_put(entity)

    monkeypatch.setattr(storage, "put", failing_put)
    with pytest.raises(RuntimeError):
        invitations.accept(invitation.id, member)
    monkeypatch.undo()

    assert not _memberships(storage, project, member)
    assert storage.get(Invitation, invitation.id).status == "pending"


# ============================================================
# Listing / details / maintenance
# ============================================================
def test_pending_for_email_skips_expired_and_processed(invitations, storage, projects, owner, member):
    first = projects.create_project(owner, "One")
    second = projects.create_project(owner, "Two")
    third = projects.create_project(owner, "Three")

    live = invitations.create(first.id, owner, member.email)
    _expire(storage, invitations.create(second.id, owner, member.email))
    invitations.reject(invitations.create(third.id, owner, member.email).id, member)

    pending = invitations.list_pending_for_email(member.email.upper())
    assert [inv.id for inv in pending] == [live.id]


def test_details_include_project_and_inviter(invitations, project, owner, member):
    invitation = invitations.create(project.id, owner, member.email)

    detail = invitations.get_details(invitation.id, "http://app?invite=" + invitation.id)

    assert detail.project_title == "Website relaunch"
    assert detail.inviter_name == owner.name
    assert detail.inviter_email == owner.email
    assert detail.invite_link.endswith(invitation.id)
    assert detail.is_expired is False


def test_details_refuse_expired_invitation(invitations, storage, project, owner, member):
    invitation = invitations.create(project.id, owner, member.email)
    _expire(storage, invitation)

    with pytest.raises(Expired):
        invitations.get_details(invitation.id)


def test_project_invitations_visible_to_members_only(invitations, shared_project, owner, member, outsider):
    invitations.create(shared_project.id, owner, "friend@example.com")

    assert len(invitations.list_for_project(member, shared_project.id)) == 2
    with pytest.raises(NotFound):
        invitations.list_for_project(outsider, shared_project.id)


def test_purge_removes_only_expired_pending(invitations, storage, project, owner):
    keep = invitations.create(project.id, owner, "keep@example.com")
    stale = _expire(storage, invitations.create(project.id, owner, "stale@example.com"))

    assert invitations.purge_expired() == 1
    assert storage.get(Invitation, stale.id) is None
    assert storage.get(Invitation, keep.id) is not None
