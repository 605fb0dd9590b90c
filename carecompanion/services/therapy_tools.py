"""Static catalog of evidence-based dementia-care interventions."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from carecompanion.schemas.patient import SessionTypeEnum


class TherapyTool(BaseModel):
    id: str
    title: str
    description: str
    session_type: SessionTypeEnum
    steps: List[str]

    model_config = ConfigDict(frozen=True)


THERAPY_TOOLS = (
    TherapyTool(
        id="validation",
        title="Validation Therapy",
        description="Acknowledge and validate the patient's feelings and reality.",
        session_type=SessionTypeEnum.VALIDATION_THERAPY,
        steps=[
            "Listen with empathy and without judgment",
            "Acknowledge the emotion behind the statement",
            "Validate their feelings as real and important",
            "Redirect gently if needed",
        ],
    ),
    TherapyTool(
        id="reminiscence",
        title="Reminiscence Therapy",
        description="Use photos, music, and objects to trigger positive memories.",
        session_type=SessionTypeEnum.REMINISCENCE_THERAPY,
        steps=[
            "Choose a meaningful topic or time period",
            "Use photos, music, or familiar objects",
            "Ask open-ended questions",
            "Listen and engage with their stories",
        ],
    ),
    TherapyTool(
        id="path",
        title="PATH Framework",
        description="Pause, Acknowledge, Talk, Help - for managing distress.",
        session_type=SessionTypeEnum.PATH_FRAMEWORK,
        steps=[
            "PAUSE - Take a breath and stay calm",
            "ACKNOWLEDGE - Validate their feelings",
            "TALK - Use simple, reassuring language",
            "HELP - Offer comfort and distraction",
        ],
    ),
    TherapyTool(
        id="cognitive",
        title="Cognitive Stimulation",
        description="Engage in activities that stimulate thinking and memory.",
        session_type=SessionTypeEnum.COGNITIVE_STIMULATION,
        steps=[
            "Choose appropriate difficulty level",
            "Focus on enjoyment, not correctness",
            "Offer encouragement and support",
            "Keep sessions short and positive",
        ],
    ),
)


def list_tools() -> List[TherapyTool]:
    return list(THERAPY_TOOLS)


def get_tool(tool_id: str) -> Optional[TherapyTool]:
    return next((tool for tool in THERAPY_TOOLS if tool.id == tool_id), None)


__all__ = [
    "TherapyTool",
    "THERAPY_TOOLS",
    "list_tools",
    "get_tool",
]
