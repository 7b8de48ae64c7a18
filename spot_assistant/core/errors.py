"""
Assistant errors, tagged by the stage that raised them.

Every component boundary converts raw failures into one of these before they
travel further. The FlowController is the only place that turns them into a
failed response instead of raising.
"""

from __future__ import annotations

from typing import Optional


class AgentError(Exception):
    """Base error for every assistant stage. Carries a stable code and the originating stage."""

    code = "AGENT_ERROR"
    stage = "agent"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.message = message
        if code is not None:
            self.code = code
        self.cause = cause
        super().__init__(message)

    def __str__(self) -> str:
        return self.message


class ValidationError(AgentError):
    """Malformed or missing required input. Fails fast: never retried."""

    code = "VALIDATION_ERROR"
    stage = "validation"


class TransientServiceError(AgentError):
    """A collaborator (LLM, search, voice) failed or was unreachable. Retried, then routed to fallback."""

    code = "SERVICE_UNAVAILABLE"
    stage = "service"


class ExtractionError(AgentError):
    code = "EXTRACTION_ERROR"
    stage = "extraction"


class QueryError(AgentError):
    code = "QUERY_ERROR"
    stage = "query"


class ResponseError(AgentError):
    code = "RESPONSE_ERROR"
    stage = "response"


class OrchestrationError(AgentError):
    code = "ORCHESTRATION_ERROR"
    stage = "orchestration"


class CatastrophicError(AgentError):
    """Anything unanticipated that reached the orchestrator boundary."""

    code = "CATASTROPHIC_ERROR"
    stage = "orchestration"
