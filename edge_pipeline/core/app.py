"""
Application factory module.
Creates the FastAPI application and wires the middleware pipeline.
"""
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, settings
from ..observability.logger import StructuredLogger, configure_logger
from ..services.health_service import ShutdownState
from ..middleware.adapter import PolicyAdapterMiddleware
from ..middleware.cors import CORSConfig
from ..middleware.errors import ErrorHandlingMiddleware, ErrorResponder
from ..middleware.logging import RequestLoggerMiddleware
from ..routers import health


def create_app(
    app_settings: Optional[Settings] = None,
    logger: Optional[StructuredLogger] = None
) -> FastAPI:
    """Application factory function"""
    app_settings = app_settings or settings

    # Configure stdlib logging for framework and library loggers
    logging.basicConfig(
        level=getattr(logging, app_settings.resolved_log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    logger = logger or configure_logger(
        production=app_settings.is_production,
        level=app_settings.resolved_log_level
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info(
            {
                "type": "server",
                "port": app_settings.port,
                "env": app_settings.environment,
                "production": app_settings.is_production,
            },
            f"Server is running at http://{app_settings.host}:{app_settings.port}"
        )
        yield
        logger.info({"type": "server"}, "Server closed cleanly.")
        logger.flush()

    # Create FastAPI app
    app = FastAPI(
        title=app_settings.app_name,
        description=app_settings.description,
        version=app_settings.app_version,
        debug=app_settings.debug,
        lifespan=lifespan
    )
    app.state.settings = app_settings
    app.state.logger = logger
    app.state.shutdown = ShutdownState()
    app.state.started_at = time.time()

    # Pipeline, innermost first: CORS policy, error responder, request logger
    cors_config = CORSConfig.from_settings(app_settings)
    app.add_middleware(PolicyAdapterMiddleware, evaluator=cors_config.build_evaluator())

    responder = ErrorResponder(logger=logger, production=app_settings.is_production)
    app.add_middleware(ErrorHandlingMiddleware, responder=responder)
    app.add_exception_handler(StarletteHTTPException, responder.handle_http_exception)
    app.add_exception_handler(RequestValidationError, responder.handle_validation_error)

    app.add_middleware(
        RequestLoggerMiddleware,
        logger=logger,
        header_name=app_settings.request_id_header,
        trust_proxy=app_settings.trust_proxy
    )

    # Include routers
    app.include_router(health.router)

    return app
