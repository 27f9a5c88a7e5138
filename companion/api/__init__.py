"""FastAPI router aggregation."""

from fastapi import APIRouter

from api.auth import router as auth_router
from api.characters import router as characters_router
from api.chat import router as chat_router
from api.voice import router as voice_router
from api.ratings import router as ratings_router
from api.payments import router as payments_router
from api.admin import router as admin_router

api_router = APIRouter(prefix="/api")

api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(characters_router, prefix="/characters", tags=["characters"])
api_router.include_router(chat_router, prefix="/chat", tags=["chat"])
api_router.include_router(voice_router, prefix="/voice", tags=["voice"])
api_router.include_router(ratings_router, prefix="/ratings", tags=["ratings"])
api_router.include_router(payments_router, prefix="/payments", tags=["payments"])
api_router.include_router(admin_router, prefix="/admin", tags=["admin"])
