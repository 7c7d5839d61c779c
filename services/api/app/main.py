"""
Social Graph API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Create tables if not present
  3. Start Kafka producer (social graph events)
  4. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from app.config import settings
from app.database import dispose_db, init_db
from app.telemetry import setup_tracing, instrument_app
from app.clients.kafka_producer import init_kafka, stop_kafka
from app.routers import follows, likes, profiles, reviews, users

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Social Graph API (env=%s)", settings.environment)

    await init_db()
    await init_kafka()

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await stop_kafka()
    await dispose_db()


app = FastAPI(
    title="Social Graph API",
    description=(
        "Follow/like relationships and reviews across accounts and profiles, "
        "with denormalised follower, like and rating counters."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed payloads are client errors: 400 with the validator's messages."""
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, exc.errors())
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(follows.router, prefix="/api", tags=["Follows"])
app.include_router(likes.router, prefix="/api", tags=["Likes"])
app.include_router(reviews.router, prefix="/api", tags=["Reviews"])
app.include_router(users.router, prefix="/api", tags=["Users"])
app.include_router(profiles.router, prefix="/api", tags=["Profiles"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Mounted at /metrics — scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
