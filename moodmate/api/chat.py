from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from moodmate.core.errors import ValidationError
from moodmate.services import APOLOGY_REPLY, TurnOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_FIELDS_ERROR = "Missing message or userId"


class ChatRequest(BaseModel):
    message: Optional[str] = Field(default=None, description="The user's latest message.")
    userId: Optional[str] = Field(default=None, description="Opaque session key supplied by the client.")
    region: Optional[str] = Field(default=None, description="Region used for helpline/resource suggestions.")


class ChatResponse(BaseModel):
    reply: str
    userMood: str
    botMood: str


def get_orchestrator(request: Request) -> TurnOrchestrator:
    return request.app.state.orchestrator


@router.post("/chat", response_model=ChatResponse)
def chat(payload: ChatRequest, orchestrator: TurnOrchestrator = Depends(get_orchestrator)) -> JSONResponse:
    try:
        result = orchestrator.handle_turn(payload.userId, payload.message, payload.region)
    except ValidationError:
        return JSONResponse(status_code=400, content={"error": MISSING_FIELDS_ERROR})
    except Exception:
        logger.exception("Unexpected failure handling chat turn.")
        return JSONResponse(
            status_code=500,
            content={"reply": APOLOGY_REPLY, "userMood": "neutral", "botMood": "neutral"},
        )

    return JSONResponse(status_code=200 if result.ok else 500, content=result.to_payload())


__all__ = ["router", "ChatRequest", "ChatResponse", "get_orchestrator", "MISSING_FIELDS_ERROR"]
