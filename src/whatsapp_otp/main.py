"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from whatsapp_otp.api.dependencies import connect_channel
from whatsapp_otp.api.router import router as otp_router
from whatsapp_otp.config import settings
from whatsapp_otp.exceptions import DeliveryError, StorageError, ValidationError

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook."""
    logger.info("Starting %s …", settings.app_name)
    if await connect_channel():
        logger.info("WhatsApp channel ready")
    yield
    logger.info("Shutting down %s …", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    description="One-time passcodes delivered over WhatsApp",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(otp_router)


# ── Error mapping ────────────────────────────────────────

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"error": "OTP storage unavailable"})


@app.exception_handler(DeliveryError)
async def delivery_error_handler(request: Request, exc: DeliveryError) -> JSONResponse:
    logger.error("Delivery failure on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=502, content={"error": "Failed to send OTP", "details": str(exc)}
    )


@app.get("/health")
async def health_check():
    """Simple liveness probe."""
    return {"status": "healthy", "app": settings.app_name}
