"""
Server component for quadmath.

This module provides a FastAPI server exposing quads, response submission
and the analytics computed from them.
"""

import logging
import threading
from typing import List, Optional

import fastapi
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from quadmath.components.config import Config, ConfigManager
from quadmath.models import MAX_VALUE, MIN_VALUE, Player, QuizInstance, Response
from quadmath.quad import QuadManager
from quadmath.quad.quad import Quad

# Set up logging
logger = logging.getLogger(__name__)


# Define API models
class Answer(BaseModel):
    """A single slider answer."""

    player_id: str
    question_id: str
    value: float = Field(ge=MIN_VALUE, le=MAX_VALUE)


class ResponseRequest(BaseModel):
    """Response submission model."""

    responses: List[Answer]


class Server:
    """
    FastAPI server for quadmath.
    """

    def __init__(self,
                 quad_manager: QuadManager,
                 config: Optional[Config] = None):
        """
        Initialize a server.

        Args:
            quad_manager: Quad manager
            config: Configuration for the server
        """
        self.quad_manager = quad_manager
        self.config = config or ConfigManager.get_config()

        self.app = FastAPI(
            title="Quadmath API",
            description="Analytics and layout for quadrant quizzes",
            version="0.1.0"
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()
        self._setup_validation()
        self._setup_error_handling()

        self._running = False
        self._server_thread = None
        self._uvicorn = None

    def _get_quad_or_404(self, quad_id: str) -> Quad:
        quad = self.quad_manager.get_quad(quad_id)
        if quad is None:
            raise HTTPException(status_code=404, detail="Quad not found")
        return quad

    def _setup_routes(self) -> None:
        """
        Set up API routes.
        """
        @self.app.get("/health")
        async def health_check():
            return {"status": "ok"}

        @self.app.get("/api/v1/quads")
        async def list_quads():
            return self.quad_manager.get_summary()

        @self.app.post("/api/v1/quads")
        async def create_quad(quiz: QuizInstance):
            quad = self.quad_manager.create_quad(quiz)
            return quad.get_summary()

        @self.app.get("/api/v1/quads/{quad_id}")
        async def get_quad(quad_id: str):
            return self._get_quad_or_404(quad_id).get_full_data()

        @self.app.post("/api/v1/quads/{quad_id}/players")
        async def add_player(quad_id: str, player: Player):
            self._get_quad_or_404(quad_id)
            try:
                quad = self.quad_manager.add_player(quad_id, player)
            except ValueError as e:
                raise HTTPException(status_code=409, detail=str(e))
            return quad.get_summary()

        @self.app.post("/api/v1/quads/{quad_id}/responses")
        async def submit_responses(quad_id: str, request: ResponseRequest):
            self._get_quad_or_404(quad_id)
            responses = [
                Response(player_id=a.player_id, question_id=a.question_id, value=a.value)
                for a in request.responses
            ]
            try:
                quad = self.quad_manager.submit_responses(quad_id, responses)
            except ValueError as e:
                raise HTTPException(status_code=422, detail=str(e))
            return quad.get_summary()

        @self.app.get("/api/v1/quads/{quad_id}/superlatives")
        async def get_superlatives(quad_id: str):
            quad = self._get_quad_or_404(quad_id)
            return {
                kind: award.model_dump() if award is not None else None
                for kind, award in quad.superlatives().items()
            }

        @self.app.get("/api/v1/quads/{quad_id}/correlation")
        async def get_correlation(quad_id: str,
                                  exclude: Optional[str] = Query(
                                      None, description="Question pair on display, as q1,q2")):
            quad = self._get_quad_or_404(quad_id)

            exclude_pair = None
            if exclude:
                parts = [p.strip() for p in exclude.split(',') if p.strip()]
                if len(parts) != 2:
                    raise HTTPException(status_code=422,
                                        detail="exclude must name exactly two questions")
                exclude_pair = (parts[0], parts[1])

            finding = quad.find_correlation(exclude_pair)
            if finding is None:
                raise HTTPException(status_code=404, detail="No notable correlation")
            return finding.model_dump()

        @self.app.get("/api/v1/quads/{quad_id}/layout")
        async def get_layout(quad_id: str,
                             x: Optional[str] = None,
                             y: Optional[str] = None):
            quad = self._get_quad_or_404(quad_id)
            plot = quad.layout(x, y)
            if plot is None:
                raise HTTPException(status_code=404, detail="Unknown axis question")
            return plot.to_dict()

    def _setup_validation(self) -> None:
        """
        Set up request validation.
        """
        @self.app.exception_handler(fastapi.exceptions.RequestValidationError)
        async def validation_exception_handler(request, exc):
            return JSONResponse(
                status_code=422,
                content={"detail": str(exc)}
            )

    def _setup_error_handling(self) -> None:
        """
        Set up error handling.
        """
        @self.app.exception_handler(Exception)
        async def generic_exception_handler(request, exc):
            logger.exception("Unhandled exception")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"}
            )

    def start(self) -> None:
        """
        Start the server.
        """
        if self._running:
            return

        # Import uvicorn here to avoid circular imports
        import uvicorn
        self._uvicorn = uvicorn

        port = self.config.get('server.port', 8080)
        host = self.config.get('server.host', '0.0.0.0')
        log_level = self.config.get('logging.level', 'info')
        if log_level == 'warn':
            log_level = 'warning'

        def run_server():
            self._uvicorn.run(
                self.app,
                host=host,
                port=port,
                log_level=log_level
            )

        self._server_thread = threading.Thread(
            target=run_server,
            daemon=True
        )
        self._server_thread.start()

        self._running = True

        logger.info(f"Server started at http://{host}:{port}")

    def stop(self) -> None:
        """
        Stop the server.
        """
        if not self._running:
            return

        # There's no clean way to stop uvicorn, so we'll just set the flag
        self._running = False

        logger.info("Server stopping (full shutdown requires process restart)")


class ServerManager:
    """
    Singleton manager for the server.
    """

    _instance = None
    _lock = threading.RLock()

    @classmethod
    def get_server(cls,
                   quad_manager: QuadManager,
                   config: Optional[Config] = None) -> Server:
        """
        Get the server instance.

        Args:
            quad_manager: Quad manager
            config: Configuration

        Returns:
            Server instance
        """
        with cls._lock:
            if cls._instance is None:
                cls._instance = Server(quad_manager, config)

            return cls._instance

    @classmethod
    def shutdown(cls) -> None:
        """
        Shut down the server.
        """
        with cls._lock:
            if cls._instance is not None:
                cls._instance.stop()
                cls._instance = None
