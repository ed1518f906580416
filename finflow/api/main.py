"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.middleware.sessions import SessionMiddleware
from starlette.responses import Response

from finflow.api.errors import register_error_handlers
from finflow.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finflow.api.v1 import auth, dashboard, gst, invoices, kyc, loans, payments
from finflow.infrastructure.database.session import init_db
from finflow.infrastructure.observability.logging import setup_logging
from finflow.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="FinFlow",
        description="Small-business finance API: loans, invoices, UPI payments, GST and KYC",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=settings.session_cookie,
        max_age=settings.session_max_age_seconds,
        same_site="lax",
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/api", tags=["auth"])
    app.include_router(dashboard.router, prefix="/api", tags=["dashboard"])
    app.include_router(loans.router, prefix="/api", tags=["loan-applications"])
    app.include_router(invoices.router, prefix="/api", tags=["invoices"])
    app.include_router(payments.router, prefix="/api", tags=["upi-payments"])
    app.include_router(gst.router, prefix="/api", tags=["gst-filings"])
    app.include_router(kyc.router, prefix="/api", tags=["kyc-documents"])

    return app


app = create_app()
