# stance_analyzer/app/main.py
"""
FastAPI Main Application
Comment Stance Analyzer
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from stance_analyzer.app.config import get_config, validate_config, setup_logging
from stance_analyzer.app.dependencies import (
    get_classifier_client,
    get_db_manager,
    get_youtube_client,
)
from stance_analyzer.api.routers.analysis_router import router as analysis_router
from stance_analyzer.services.exceptions import ServiceError, error_to_http_status

load_dotenv()

logger = logging.getLogger(__name__)


# ============================================================================
# Application Lifecycle Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Builds process-scoped clients on startup and releases them on shutdown
    """
    # ========== STARTUP ==========
    config = get_config()
    setup_logging(config)
    logger.info("🚀 Starting Comment Stance Analyzer...")

    validation_result = validate_config(config)
    if not validation_result["valid"]:
        logger.error("❌ Configuration validation failed!")
        for error in validation_result["errors"]:
            logger.error(f"  - {error}")
        raise RuntimeError("Invalid configuration")

    for warning in validation_result["warnings"]:
        logger.warning(f"  ⚠️  {warning}")

    db_manager = get_db_manager()
    try:
        await db_manager.create_tables()
    except Exception as e:
        logger.error(f"❌ Database initialization failed: {e}")
        raise

    # Construct the shared clients once, before the first request.
    get_youtube_client()
    get_classifier_client()

    _log_startup_summary(config)

    yield

    # ========== SHUTDOWN ==========
    logger.info("🛑 Shutting down application...")
    await get_youtube_client().close()
    await get_classifier_client().close()
    await db_manager.close()
    logger.info("✅ Application shutdown complete")


def _log_startup_summary(config) -> None:
    """Log the effective configuration (no secrets)"""
    summary = config.get_summary()
    logger.info(
        f"✅ Ready ({config.get('app.env', 'development')}): "
        f"database={summary['database']['url']}, "
        f"classifier={summary['classifier']['model']} "
        f"mode={summary['classifier']['mode']}, "
        f"batch size={summary['scheduler']['batch_size']}, "
        f"API {summary['api']['host']}:{summary['api']['port']}"
    )


# ============================================================================
# FastAPI Application Instance
# ============================================================================


def create_app() -> FastAPI:
    """
    FastAPI application factory
    Creates and configures the FastAPI application
    """
    config = get_config()

    app = FastAPI(
        title="Comment Stance Analyzer",
        description="Classifies YouTube comments as agreeing, disagreeing or neutral toward the video",
        version="0.1.0",
        lifespan=lifespan,
        debug=config.api.debug,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_exception_handlers(app)
    _register_routers(app)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers"""

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        """Translate service errors into JSON error responses"""
        status_code = error_to_http_status(exc)
        if status_code >= 500:
            logger.error(f"❌ {exc.error_code}: {exc.message}")
        else:
            logger.info(f"↩️  {exc.error_code}: {exc.message}")
        return JSONResponse(status_code=status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """Handle request body validation errors"""
        logger.info(f"Validation error: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={
                "error": "Validation Error",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other exceptions"""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to analyze comments"},
        )


def _register_routers(app: FastAPI) -> None:
    """Register API routers"""

    @app.get("/health", tags=["System"])
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "version": "0.1.0"}

    app.include_router(analysis_router)


# ============================================================================
# Application Instance
# ============================================================================

app = create_app()


if __name__ == "__main__":
    import uvicorn

    config = get_config()

    uvicorn.run(
        "stance_analyzer.app.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.debug,
        log_level=config.logging.level.lower(),
    )
