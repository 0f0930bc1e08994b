from fastapi import APIRouter

from translation_service.api.routes import auth, translations

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(translations.router)
