# routes/users.py
from fastapi import APIRouter, Depends, Query

from core.database import get_storage
from core.responses import ok
from core.security import get_current_user
from core.storage import Storage
from models.models import User
from schemas.user_schema import UserRead, UserUpdate
from services.auth_service import AuthService

router = APIRouter(tags=["Users"])


# ==================================================================
#  ✅ Directory of active users
# ==================================================================
@router.get("")
def list_users(
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    users = AuthService(storage).list_users()
    return ok([UserRead.model_validate(u) for u in users])


@router.get("/search")
def search_users(
    email: str = Query(default=""),
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    users = AuthService(storage).search_users(email)
    return ok([UserRead.model_validate(u) for u in users])


# ==================================================================
#  ✅ Update own profile
# ==================================================================
@router.put("/me")
def update_me(
    data: UserUpdate,
    current_user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
):
    user = AuthService(storage).update_profile(current_user, name=data.name, role=data.role)
    return ok(UserRead.model_validate(user), "Profile updated successfully")
