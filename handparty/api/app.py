"""
FastAPI Application - WebSocket server for game clients.

Endpoints:
    WS     /ws                 Game protocol (see api.schemas)
    GET    /api/v1/session     Public snapshot of the shared session
    GET    /health             Health check
    GET    /                   API info

All game traffic goes over the WebSocket. The HTTP endpoints are
read-only and never reveal unsealed submissions.

Run with:
    uvicorn handparty.api.app:create_app --factory
"""

from __future__ import annotations
import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import CoordinatorConfig
from ..errors import ErrorCode
from .projections import project_session
from .schemas import ErrorResponse, HealthResponse, SessionView
from .service import CoordinatorService

logger = logging.getLogger(__name__)

IDLE_AFTER_SECONDS = 60.0


def create_app(
    service: CoordinatorService | None = None,
    config: CoordinatorConfig | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional CoordinatorService (creates one if not provided)
        config: Optional config (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    if service is None:
        config = config or CoordinatorConfig.from_env()
        service = CoordinatorService(config)
    else:
        config = service.config

    app = FastAPI(
        title="HandParty Coordinator",
        description="""
Multiplayer hand-shape party game coordinator.

Clients connect to `/ws` and exchange JSON messages tagged by `type`.
The first player to join is the host and drives the game with
`startGame` and `nextRound`; every player answers each prompt with
`selectHandShape`. A round seals when every connected player has
submitted.
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.service = service

    # =========================================================================
    # WebSocket Endpoint
    # =========================================================================

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        """
        Game protocol socket.

        The connection lives as long as the socket; closing it (or any
        transport failure) removes the player from the session.
        """
        await websocket.accept()
        connection_id = await service.connect(websocket)
        try:
            while True:
                data = await websocket.receive_text()
                await service.handle_raw(connection_id, data)
        except WebSocketDisconnect:
            pass
        except Exception:
            logger.exception("WebSocket %s failed", connection_id)
        finally:
            await service.disconnect(connection_id)

    # =========================================================================
    # Session snapshot
    # =========================================================================

    @app.get(
        "/api/v1/session",
        response_model=SessionView,
        response_model_by_alias=True,
        response_model_exclude_none=True,
        responses={404: {"model": ErrorResponse}},
        tags=["Session"],
        summary="Get the shared session",
    )
    async def get_session():
        """Public snapshot of the shared session, as seen by a spectator."""
        session = service.manager.session
        if session is None:
            return JSONResponse(
                status_code=404,
                content=ErrorResponse(
                    error="No active session",
                    error_code=ErrorCode.UNKNOWN_PLAYER,
                ).model_dump(mode="json"),
            )
        return project_session(session)

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint for load balancers."""
        return HealthResponse(
            status="healthy",
            service="handparty-coordinator",
            version=__version__,
            connections=len(service.registry),
            idle_connections=len(service.registry.idle_connections(IDLE_AFTER_SECONDS)),
            session_active=service.manager.session is not None,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "HandParty Coordinator",
            "version": __version__,
            "docs": "/api/docs",
            "health": "/health",
            "websocket": "/ws",
        }

    return app
