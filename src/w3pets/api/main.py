"""
FastAPI application entry point for the W3Pets marketplace API.
"""

# Load environment variables FIRST before any other imports
from pathlib import Path
from dotenv import load_dotenv

project_root = Path(__file__).parent.parent.parent.parent  # src/w3pets/api/main.py -> root
env_file = project_root / ".env"
if env_file.exists():
    load_dotenv(env_file)

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from w3pets import __version__
from w3pets.api.routes import auth, users, seller, health
from w3pets.api.middleware.error_handler import RequestLoggingMiddleware, register_error_handlers
from w3pets.auth import get_jwt_manager
from w3pets.monitoring import MetricsMiddleware, setup_sentry, get_metrics
from w3pets.utils.config import get_settings
from w3pets.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging()
    logger.info(f"Starting W3Pets API (environment={settings.environment})...")

    setup_sentry(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        release=f"w3pets-api@{__version__}",
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )

    # Fail at startup rather than on the first login if a secret is missing
    get_jwt_manager()

    get_metrics()
    logger.info("API started successfully")

    yield

    logger.info("Shutting down W3Pets API...")


app = FastAPI(
    title="W3Pets API",
    description="Pet marketplace: accounts, sessions and seller onboarding",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware; credentials are needed for the refresh cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(MetricsMiddleware)

register_error_handlers(app)

# Register routes
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(seller.router, prefix="/api/seller", tags=["Seller"])
app.include_router(health.router, prefix="/api/health", tags=["Health"])

# Uploaded media served by the default local storage backend
app.mount("/media", StaticFiles(directory=settings.upload_dir, check_dir=False), name="media")


@app.get("/metrics", tags=["Monitoring"])
async def metrics():
    """Prometheus metrics endpoint."""
    return PlainTextResponse(
        generate_latest(get_metrics().registry),
        media_type=CONTENT_TYPE_LATEST
    )


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint."""
    return {
        "name": "W3Pets API",
        "version": __version__,
        "status": "operational",
    }


def main():
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "w3pets.api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
    )


if __name__ == "__main__":
    main()
