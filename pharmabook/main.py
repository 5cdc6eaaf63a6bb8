# pharmabook/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pharmabook.core.config import settings
from pharmabook.core.errors import PharmabookError, RuleOverlap
from pharmabook.db.sql import engine, init_db
from pharmabook.routers import (
    booking,
    health,
    notifications,
    portal_availability,
    portal_bookings,
)

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create missing tables on startup, release the pool on shutdown.
    """
    await init_db()
    logger.info("Pharmabook API started (env=%s)", settings.APP_ENV)
    yield
    await engine.dispose()
    logger.info("Pharmabook API stopped")


app = FastAPI(
    title="Pharmacy Appointment Booking API",
    debug=settings.DEBUG,
    lifespan=lifespan,
)


@app.exception_handler(PharmabookError)
async def pharmabook_error_handler(request: Request, exc: PharmabookError):
    content = {"detail": exc.code}
    if isinstance(exc, RuleOverlap):
        content["conflicts"] = [c.model_dump(mode="json") for c in exc.conflicts]
    if exc.status_code >= 500:
        logger.warning("%s %s -> %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=content)


# Routing
app.include_router(health.router, prefix=settings.API_PREFIX, tags=["health"])
app.include_router(booking.router, prefix=settings.API_PREFIX)
app.include_router(notifications.router, prefix=settings.API_PREFIX)
app.include_router(portal_availability.router, prefix=settings.API_PREFIX)
app.include_router(portal_bookings.router, prefix=settings.API_PREFIX)


@app.get("/")
def root():
    return {"message": "Pharmacy booking API running successfully"}


def run():
    """Console entry point: `pharmabook` (or `python -m pharmabook.main`)."""
    import uvicorn

    uvicorn.run(
        "pharmabook.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )


if __name__ == "__main__":
    run()
