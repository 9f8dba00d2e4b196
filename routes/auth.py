from fastapi import APIRouter, Depends, status

from core.database import get_storage
from core.responses import ok
from core.security import get_current_user
from core.storage import Storage
from models.models import User
from schemas.user_schema import AuthResult, UserCreate, UserLogin, UserRead
from services.auth_service import AuthService

router = APIRouter(tags=["Authentication"])


# ==========================================================
# ✅ Register: creates the account and signs it in
# ==========================================================
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(user_data: UserCreate, storage: Storage = Depends(get_storage)):
    user, token = AuthService(storage).register(
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        role=user_data.role,
    )
    result = AuthResult(access_token=token, user=UserRead.model_validate(user))
    return ok(result, "User registered successfully")


# ==========================================================
# ✅ Login
# ==========================================================
@router.post("/login")
def login(credentials: UserLogin, storage: Storage = Depends(get_storage)):
    user, token = AuthService(storage).login(credentials.email, credentials.password)
    result = AuthResult(access_token=token, user=UserRead.model_validate(user))
    return ok(result, "Login successful")


# ==========================================================
# ✅ Current user profile
# ==========================================================
@router.get("/profile")
def get_profile(current_user: User = Depends(get_current_user)):
    return ok(UserRead.model_validate(current_user))
