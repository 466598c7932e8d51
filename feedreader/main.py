import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .auth.tokens import get_token_codec
from .db import init_db
from .errors import register_error_handlers
from .observability.logging import setup_logging, bind_request_id
from .observability.metrics import metrics_endpoint, request_metrics_middleware
from .observability.sentry import init_sentry
from .routers import status
from .routers.auth_v1 import router as auth_v1_router
from .routers.feeds_v1 import router as feeds_v1_router
from .routers.folders_v1 import router as folders_v1_router
from .routers.subscriptions_v1 import router as subscriptions_v1_router


logger = logging.getLogger(__name__)


def _split_env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    # reads JWT_SECRET once at startup; logs if it is missing
    get_token_codec()
    yield


def create_app() -> FastAPI:
    tags_metadata = [
        {"name": "status", "description": "Service and database health"},
        {"name": "auth", "description": "Registration and login"},
        {"name": "feeds", "description": "Feed discovery and content"},
        {"name": "subscriptions", "description": "Per-user feed subscriptions"},
        {"name": "folders", "description": "Subscription folders"},
        {"name": "v1", "description": "Versioned API endpoints"},
    ]
    app = FastAPI(
        title="feedreader API",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    register_error_handlers(app)
    setup_logging()
    init_sentry(app)

    # CORS from environment configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_split_env_list("CORS_ALLOW_ORIGINS", "*"),
        allow_credentials=False,
        allow_methods=_split_env_list("CORS_ALLOW_METHODS", "GET,POST,DELETE,OPTIONS"),
        allow_headers=_split_env_list("CORS_ALLOW_HEADERS", "Content-Type,Authorization"),
    )
    # Metrics middleware
    app.middleware("http")(request_metrics_middleware)

    # Request ID binder
    @app.middleware("http")
    async def add_request_id(request, call_next):
        rid = bind_request_id(request.headers.get("X-Request-Id"))
        response = await call_next(request)
        response.headers["X-Request-Id"] = rid
        return response

    # Routers
    app.include_router(status.router)
    app.include_router(auth_v1_router)
    app.include_router(feeds_v1_router)
    app.include_router(subscriptions_v1_router)
    app.include_router(folders_v1_router)
    # Prometheus metrics
    app.add_api_route("/metrics", metrics_endpoint, include_in_schema=False)

    return app


app = create_app()
