from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from carecompanion.core.security import get_current_user
from carecompanion.services.therapy_tools import TherapyTool, list_tools

router = APIRouter()


@router.get(
    "/therapy/tools",
    response_model=List[TherapyTool],
    summary="Therapy tool catalog",
    description="Evidence-based interventions for dementia care with step-by-step guidance"
)
async def get_therapy_tools(current_user: Dict[str, Any] = Depends(get_current_user)) -> List[TherapyTool]:
    return list_tools()
