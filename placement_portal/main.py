"""
NSEC Placement Portal - Main Application

FastAPI backend with:
- MongoDB for admin, faculty and student accounts
- Email OTP verification for student self-registration
- JWT authentication
- React Frontend served from /frontend

Run: uvicorn placement_portal.main:app --reload
"""

import logging
import os
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse, JSONResponse

from placement_portal.api.routes import api_router
from placement_portal.core.config import Settings, get_settings
from placement_portal.core.errors import PortalError, ValidationFailed
from placement_portal.db.mongodb import init_mongo_indexes, test_mongo_connection
from placement_portal.schemas.schemas import ErrorResponse
from placement_portal.services.mail_service import Mailer
from placement_portal.services.otp_registry import OTPRegistry

logger = logging.getLogger(__name__)

# Get the project root directory
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
FRONTEND_DIR = os.path.join(PROJECT_ROOT, "frontend", "public")


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as {"success": false, "error": kind, "message": ...}."""

    @app.exception_handler(PortalError)
    async def portal_error_handler(request: Request, exc: PortalError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # Model-level validators have no field location
        fields = [
            name for name in (
                ".".join(str(p) for p in err["loc"] if p != "body") for err in exc.errors()
            ) if name
        ]
        content = ValidationFailed().to_dict()
        content["fields"] = fields
        return JSONResponse(status_code=ValidationFailed.status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "InternalError", "message": "Server error. Please try again."}
        )


def create_app(settings: Settings = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="NSEC Placement Portal",
        description="""
        Placement portal backend for admins, faculty and students.

        ## Features
        - **Registration**: Institute-email OTP verification for students
        - **Authentication**: JWT login for all roles, password reset by email
        - **Admin**: Faculty management and student overview
        """,
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Shared per-process collaborators, injected into handlers via app.state
    app.state.settings = settings
    app.state.otp_registry = OTPRegistry(ttl=timedelta(minutes=settings.otp_expire_minutes))
    app.state.mailer = Mailer(settings)

    # CORS middleware (allow all for development)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(
        api_router,
        prefix="/api",
        responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 422: {"model": ErrorResponse}}
    )

    # Serve static files (for any additional assets)
    if os.path.exists(FRONTEND_DIR):
        app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")

    # Startup event
    @app.on_event("startup")
    async def startup_event():
        """Initialize MongoDB indexes on startup."""
        try:
            init_mongo_indexes()
        except Exception as e:
            logger.warning("MongoDB index initialization failed: %s", e)

    # Serve React frontend for root path
    @app.get("/", tags=["Frontend"])
    async def serve_frontend():
        """Serve the React frontend."""
        index_path = os.path.join(FRONTEND_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"status": "healthy", "app": "NSEC Placement Portal", "message": "Frontend not found. API is running."}

    @app.get("/health", tags=["Health"])
    def health_check():
        """Detailed health check."""
        return {
            "status": "healthy",
            "mongodb": "connected" if test_mongo_connection() else "disconnected",
            "mailer": "configured" if app.state.mailer.is_configured else "not configured"
        }

    return app


configure_logging(get_settings())

app = create_app()
