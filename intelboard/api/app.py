"""FastAPI application factory for IntelBoard.

Creates and configures the FastAPI app with sessions, CORS, the shared
managers and all route modules registered.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from ..core.db import DatabaseManager
from ..core.flora import LandscapeManager
from ..core.notifications import Notifier
from ..core.requests import RequestManager
from ..core.team import CompanyManager, UserManager
from ..setting import IntelBoardSettings, get_settings
from .core import register_exception_handlers

logger = logging.getLogger(__name__)


def create_app(
    db_manager: DatabaseManager,
    settings: Optional[IntelBoardSettings] = None,
    notifier: Optional[Notifier] = None,
    llm: Optional[Any] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        db_manager: DatabaseManager instance
        settings: Settings to use (defaults to the process-wide settings)
        notifier: Notifier for invitation and approval messages (optional)
        llm: LLM used by the AI routes instead of the configured provider (optional)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()
    notifier = notifier or Notifier()

    app = FastAPI(
        title="IntelBoard API",
        description="Request matching and IT landscape platform",
        version="0.1.0",
    )

    # Session middleware (required for auth sessions)
    app.add_middleware(SessionMiddleware, secret_key=settings.server.session_secret)

    # CORS for the web client
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Store shared dependencies on app state
    app.state.settings = settings
    app.state.db_manager = db_manager
    app.state.notifier = notifier
    app.state.llm = llm
    app.state.user_manager = UserManager(db_manager)
    app.state.company_manager = CompanyManager(
        db_manager, notifier=notifier, default_password=settings.invite_default_password
    )
    app.state.request_manager = RequestManager(db_manager)
    app.state.landscape_manager = LandscapeManager(db_manager)

    # Register routers
    from .routes.auth import router as auth_router
    from .routes.companies import router as companies_router
    from .routes.users import router as users_router
    from .routes.requests import router as requests_router
    from .routes.flora import router as flora_router
    from .routes.ai import router as ai_router

    app.include_router(auth_router, prefix="/api")
    app.include_router(companies_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    app.include_router(requests_router, prefix="/api")
    app.include_router(flora_router, prefix="/api")
    app.include_router(ai_router, prefix="/api")

    @app.get("/api/health")
    async def health_check():
        database = "ok" if db_manager.ping() else "unavailable"
        return {"status": "ok", "service": "intelboard", "database": database}

    logger.info("FastAPI app created with all routes registered")
    return app
