from pydantic import BaseModel, EmailStr, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from models.models import InvitationStatus


# ============================================================
# ✅ Create Invitation (input)
# ============================================================
class InvitationCreate(BaseModel):
    project_id: str
    email: EmailStr
    # inviter_id is set server-side (from current user)
    # status and expiry are generated server-side

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


# ============================================================
# ✅ Read Invitation (output)
# ============================================================
class InvitationRead(BaseModel):
    id: str
    project_id: str
    inviter_id: str
    invitee_email: EmailStr
    status: InvitationStatus
    created_at: datetime
    expires_at: datetime
    accepted_at: Optional[datetime] = None
    is_expired: bool = False

    model_config = ConfigDict(from_attributes=True)


# ============================================================
# ✅ Invitation details (public invite-link page, inbox)
# ============================================================
class InvitationDetail(InvitationRead):
    project_title: str
    project_description: str = ""
    inviter_name: Optional[str] = None
    inviter_email: Optional[str] = None
    invite_link: Optional[str] = None
