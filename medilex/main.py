"""
MediLex AI - FastAPI Application

Looks up medical terms with a generative-AI provider and supports a
follow-up chat about each term.

IMPORTANT: This is an educational tool, not a diagnostic one.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from medilex.config import settings
from medilex.api.routes import router
from medilex.api.middleware import (
    RequestLoggingMiddleware,
    ErrorHandlingMiddleware,
    setup_exception_handlers,
    setup_rate_limiting
)
from medilex.core.kv_store import SQLiteStore
from medilex.services.session import SessionController
from medilex.utils.logger import get_logger, configure_logging

logger = get_logger("main")


def build_controller() -> SessionController:
    """Session controller backed by the configured local store."""
    return SessionController(
        store=SQLiteStore(settings.storage_file),
        bootstrap_key=settings.gemini_api_key
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    
    Handles startup and shutdown events.
    """
    configure_logging(
        log_level=settings.log_level,
        json_format=not settings.debug
    )
    
    if getattr(app.state, "controller", None) is None:
        app.state.controller = build_controller()
    
    logger.info(
        "Starting MediLex AI",
        version=settings.app_version,
        debug=settings.debug,
        has_credential=app.state.controller.has_credential
    )
    
    yield
    
    logger.info("Shutting down MediLex AI")


def create_app(controller: Optional[SessionController] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.
    
    Args:
        controller: Session controller to serve; built from settings at
            startup when omitted
    
    Returns:
        Configured FastAPI instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## MediLex AI - Medical Term Lookup

Enter a medical term to receive a simple explanation, key points,
verifiable sources and an illustration, then ask follow-up questions.

### ⚠️ Important Disclaimer

**This is NOT a diagnostic tool.** Answers are generated by an AI model
for educational purposes and must not replace professional medical advice.
        """,
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc" if settings.debug else None,
    )
    app.state.controller = controller
    
    # Setup middleware (order matters - last added is outermost)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    
    setup_exception_handlers(app)
    setup_rate_limiting(app)
    
    app.include_router(router)
    
    return app


app = create_app()


# Run with: uvicorn medilex.main:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "medilex.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
