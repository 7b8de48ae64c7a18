# Role: Thin HTTP adapter for the conversation endpoints. Validates request/response shapes and delegates the
# entire turn to FlowController (business logic lives in core, not in the API layer).

from __future__ import annotations

import base64
import binascii
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from spot_assistant.api.deps import get_flow_controller
from spot_assistant.core.flow_controller import FlowController
from spot_assistant.models.intent import Intent, Location
from spot_assistant.models.response import AssistantResponse

router = APIRouter(tags=["chat"])


class ChatRequest(BaseModel):
    message: str
    session_id: Optional[str] = None
    location: Optional[Location] = None
    language: Optional[str] = None


class VoiceChatRequest(BaseModel):
    # Key line: audio travels as base64 so the endpoint stays plain JSON.
    audio_base64: str = Field(..., min_length=1)
    audio_format: str = "wav"
    session_id: Optional[str] = None
    location: Optional[Location] = None
    language: Optional[str] = None


class VoiceChatResponse(AssistantResponse):
    audio_base64: Optional[str] = None
    audio_format: str = "wav"


@router.post("/chat", response_model=AssistantResponse)
def chat(req: ChatRequest, flow: FlowController = Depends(get_flow_controller)) -> AssistantResponse:
    # 1) Forward the message (plus optional session/location/language) to the orchestrator
    # 2) Return the structured response as-is; failures are success=False, not HTTP errors
    return flow.process_text(
        req.message,
        session_id=req.session_id,
        location=req.location,
        language=req.language,
    )


@router.post("/chat/voice", response_model=VoiceChatResponse)
def chat_voice(req: VoiceChatRequest, flow: FlowController = Depends(get_flow_controller)) -> VoiceChatResponse:
    try:
        audio = base64.b64decode(req.audio_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"audio_base64 is not valid base64: {e}") from e

    result = flow.process_voice(
        audio,
        session_id=req.session_id,
        location=req.location,
        language=req.language,
        audio_format=req.audio_format,
    )

    payload = result.model_dump(exclude={"audio"})
    payload["audio_base64"] = base64.b64encode(result.audio).decode("ascii") if result.audio else None
    return VoiceChatResponse.model_validate(payload)


@router.post("/intent", response_model=AssistantResponse)
def process_intent(intent: Intent, flow: FlowController = Depends(get_flow_controller)) -> AssistantResponse:
    # Role: pre-extracted intents skip extraction but run the same validation/query/response pipeline.
    return flow.process_intent(intent)
