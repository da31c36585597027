from fastapi import APIRouter

from app.api.v1.profiles import router as profiles_router
from app.api.v1.matching import router as matching_router
from app.api.v1.chat import router as chat_router
from app.api.v1.events import router as events_router
from app.api.v1.coach import router as coach_router

api_router = APIRouter()

# Include all route modules
api_router.include_router(profiles_router)
api_router.include_router(matching_router)
api_router.include_router(chat_router)
api_router.include_router(events_router)
api_router.include_router(coach_router)
