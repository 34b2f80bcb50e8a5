# hotel_integrations/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hotel_integrations.config import ALLOWED_ORIGINS
from hotel_integrations.errors import IntegrationError
from hotel_integrations.logging_config import setup_logging
from hotel_integrations.middleware import RequestIDMiddleware
from hotel_integrations.notifications.registry import ConnectionRegistry
from hotel_integrations.routes.health import router as health_router
from hotel_integrations.routes.integrations import router as integrations_router
from hotel_integrations.routes.metrics import router as metrics_router
from hotel_integrations.routes.notifications import router as notifications_router
from hotel_integrations.routes.webhook import router as webhook_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Hotel Integrations API",
    description="POS, PMS and guest-management integrations with guest notifications",
    version="1.0.0",
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(integrations_router, tags=["Integrations"])
app.include_router(webhook_router, tags=["Webhooks"])
app.include_router(notifications_router, tags=["Notifications"])


@app.exception_handler(IntegrationError)
async def integration_error_handler(request: Request, exc: IntegrationError) -> JSONResponse:
    """Render integration errors as {"status": "error", "message", "code"}."""
    logger.warning(
        "integration_error",
        path=request.url.path,
        error_code=exc.error_code,
        error=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.on_event("startup")
def startup_event() -> None:
    # One registry per process; guest sockets are never shared across workers
    app.state.connections = ConnectionRegistry()
    logger.info("FastAPI application starting up...")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Close every guest socket before the process exits."""
    await app.state.connections.close()
    logger.info("FastAPI application shut down")
