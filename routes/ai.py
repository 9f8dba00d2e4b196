# routes/ai.py
from fastapi import APIRouter, Depends

from core.responses import ok
from core.security import get_current_user
from models.models import User
from schemas.ai_schema import BreakdownRequest
from services.ai_service import BreakdownService, get_breakdown_service

router = APIRouter(tags=["AI"])


@router.post("/breakdown")
def generate_breakdown(
    data: BreakdownRequest,
    current_user: User = Depends(get_current_user),
    ai: BreakdownService = Depends(get_breakdown_service),
):
    """Suggest milestones and tasks for a goal without storing anything."""
    breakdown = ai.generate_breakdown(data.goal, data.roles)
    return ok(breakdown.model_dump(by_alias=True))
