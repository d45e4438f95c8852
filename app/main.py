import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.errors import BookingEngineError
from app.core.logging import configure_logging
from app.api.v1.api import api_router

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

DEV_ORIGINS = ["http://127.0.0.1:5173", "http://localhost:5173", "http://127.0.0.1:3000", "http://localhost:3000"]


def cors_origins(raw: str) -> list[str]:
    """CORS_ORIGINS is comma-separated; empty means the local dev front-ends."""
    origins = [o.strip() for o in (raw or "").split(",") if o.strip()]
    return origins or DEV_ORIGINS


app = FastAPI(title=settings.APP_NAME)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins(settings.CORS_ORIGINS),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router)


@app.exception_handler(BookingEngineError)
async def booking_engine_error(request: Request, exc: BookingEngineError):
    # Routes translate these themselves; this catches any that slip through
    logger.warning("unhandled_engine_error", extra={"path": request.url.path, "code": exc.code})
    return JSONResponse(status_code=exc.http_status, content={"detail": exc.to_detail()})


@app.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}
