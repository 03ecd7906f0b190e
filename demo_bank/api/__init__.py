"""
Demo Bank API Application Factory
"""

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging
from .errors import validation_exception_handler
from .users import router as users_router
from .transfers import router as transfers_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)

    app = FastAPI(
        title="Demo Bank API",
        description="Teaching banking API with transfers and favorite recipients",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    app.include_router(users_router, prefix="/users", tags=["Users"])
    app.include_router(transfers_router, prefix="/transfers", tags=["Transfers"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "demo_bank_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Demo Bank API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "users": "/users",
                "transfers": "/transfers",
                "favorites": "/transfers/favorites",
            }
        }

    return app


app = create_app()


def run_server(host: str = None, port: int = None):
    """Run the API with uvicorn"""
    config = get_config()
    uvicorn.run(app, host=host or config.api_host, port=port or config.api_port)
