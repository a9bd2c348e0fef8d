"""
API routes for MediLex AI.

Each endpoint maps to one user intent on the session controller and
returns the resulting session snapshot.
"""

from typing import List

from fastapi import APIRouter, Request, Response, Depends

from medilex.config import settings
from medilex.models.schemas import (
    ChatRequest,
    CredentialRequest,
    ErrorResponse,
    HealthResponse,
    HistoryItem,
    LanguageRequest,
    LoadingState,
    SessionState,
    TermRequest,
)
from medilex.api.middleware import limiter
from medilex.services.session import SessionController
from medilex.utils.logger import get_logger

logger = get_logger("routes")

router = APIRouter()


def get_controller(request: Request) -> SessionController:
    """Session controller owned by the application."""
    return request.app.state.controller


def _lookup_response(response: Response, state: SessionState) -> SessionState:
    if state.loading_state == LoadingState.ERROR:
        response.status_code = 502
    return state


# =============================================================================
# Health Check
# =============================================================================

@router.get(
    "/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check endpoint"
)
async def health_check():
    """Check if the service is healthy and running."""
    return HealthResponse(
        status="healthy",
        version=settings.app_version
    )


# =============================================================================
# Session & Credential
# =============================================================================

@router.get(
    "/state",
    response_model=SessionState,
    tags=["Session"],
    summary="Current session snapshot"
)
async def get_state(controller: SessionController = Depends(get_controller)):
    return controller.snapshot()


@router.post(
    "/credential",
    response_model=SessionState,
    tags=["Session"],
    summary="Save the Gemini API key",
    responses={401: {"model": ErrorResponse, "description": "Key rejected"}}
)
async def submit_credential(
    body: CredentialRequest,
    controller: SessionController = Depends(get_controller)
):
    """
    Store the provider API key locally and activate it.
    
    Only the key length is checked here; the provider validates the key
    on the first lookup.
    """
    return controller.submit_credential(body.api_key)


@router.delete(
    "/credential",
    response_model=SessionState,
    tags=["Session"],
    summary="Forget the API key"
)
async def clear_credential(controller: SessionController = Depends(get_controller)):
    """Remove the stored key and reset the session. History is kept."""
    return controller.clear_credential()


@router.put(
    "/language",
    response_model=SessionState,
    tags=["Session"],
    summary="Select the display language"
)
async def set_language(
    body: LanguageRequest,
    controller: SessionController = Depends(get_controller)
):
    return controller.set_language(body.language)


# =============================================================================
# Lookup
# =============================================================================

@router.post(
    "/search",
    response_model=SessionState,
    tags=["Lookup"],
    summary="Look up a medical term",
    responses={
        401: {"model": ErrorResponse, "description": "API key required"},
        502: {"model": SessionState, "description": "Lookup failed"}
    }
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def search(
    request: Request,
    response: Response,
    body: TermRequest,
    controller: SessionController = Depends(get_controller)
):
    """
    Look up a medical term.
    
    Returns the definition, key points, sources and an illustration. If
    the illustration cannot be generated a placeholder image is used.
    A failed lookup returns the session in ERROR state with status 502.
    """
    state = await controller.submit_search(body.term)
    return _lookup_response(response, state)


@router.post(
    "/chat",
    response_model=SessionState,
    tags=["Chat"],
    summary="Ask a follow-up question",
    responses={
        401: {"model": ErrorResponse, "description": "API key required"},
        409: {"model": ErrorResponse, "description": "No term looked up yet"}
    }
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def chat(
    request: Request,
    body: ChatRequest,
    controller: SessionController = Depends(get_controller)
):
    """
    Ask a question about the current term.
    
    Provider failures are answered with an apology message rather than an
    error status.
    """
    return await controller.submit_chat_message(body.message)


# =============================================================================
# History
# =============================================================================

@router.get(
    "/history",
    response_model=List[HistoryItem],
    tags=["History"],
    summary="Recent lookups, newest first"
)
async def list_history(controller: SessionController = Depends(get_controller)):
    return controller.history()


@router.post(
    "/history/select",
    response_model=SessionState,
    tags=["History"],
    summary="Repeat a lookup from history"
)
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
async def select_history_term(
    request: Request,
    response: Response,
    body: TermRequest,
    controller: SessionController = Depends(get_controller)
):
    state = await controller.select_history_term(body.term)
    return _lookup_response(response, state)


@router.delete(
    "/history",
    response_model=SessionState,
    tags=["History"],
    summary="Clear lookup history"
)
async def clear_history(controller: SessionController = Depends(get_controller)):
    logger.info("History clear requested")
    return controller.clear_history()
