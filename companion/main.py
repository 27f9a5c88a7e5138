"""FastAPI application entry point."""

from __future__ import annotations

import sys
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

# Ensure companion/ is on sys.path for absolute imports
_companion_dir = str(Path(__file__).resolve().parent)
if _companion_dir not in sys.path:  # pragma: no cover
    sys.path.insert(0, _companion_dir)

try:
    __version__ = (Path(__file__).resolve().parent.parent / "VERSION").read_text().strip()
except Exception:  # pragma: no cover
    __version__ = "0.0.0-dev"

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from api import api_router
from config import settings
from database import Base, engine, get_db, ping
from logging_config import request_id_var, user_id_var


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure unified logging before anything else
    from logging_config import setup_logging
    setup_logging("Server")

    import logging
    logger = logging.getLogger(__name__)

    import models  # noqa: F401  (register tables on Base.metadata)
    Base.metadata.create_all(bind=engine)

    try:
        from database import SessionLocal
        from services.characters import seed_default_characters
        with SessionLocal() as session:
            seeded = seed_default_characters(session)
            if seeded:
                logger.info("Seeded %d default characters", seeded)
    except Exception:
        logger.exception("Failed to seed default characters on startup")

    if not settings.payments_enabled:
        logger.warning("Razorpay credentials not set; payments are disabled")
    if not settings.ELEVENLABS_API_KEY:
        logger.warning("ELEVENLABS_API_KEY not set; voice replies will fail")

    yield


app = FastAPI(title="Companion Chat API", version=__version__, lifespan=lifespan)


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id_var.set(uuid.uuid4().hex[:8])
    user_id_var.set("")
    return await call_next(request)


# Signed cookie session; must wrap the routes so request.session is available
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SECRET_KEY,
    max_age=settings.SESSION_MAX_AGE_SECONDS,
    same_site="lax",
    https_only=settings.SESSION_COOKIE_SECURE,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.CORS_ALLOW_ALL_ORIGINS else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Auth-Token"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Flatten error details: strings become {"message": ...}, dicts pass through."""
    content = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.get("/health", tags=["health"])
def health(db: Session = Depends(get_db)):
    return {"status": "ok", "database": ping(db), "version": __version__}


# API routes
app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG, log_config=None)
