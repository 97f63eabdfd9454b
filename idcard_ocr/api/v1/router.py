"""
Главный роутер API v1
Объединяет все handlers
"""
from fastapi import APIRouter

from idcard_ocr.api.v1.handlers import (
    batch_handler,
    chat_handler,
    health_handler,
    idcard_handler,
    models_handler
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(idcard_handler.router)
api_router.include_router(batch_handler.router)
api_router.include_router(chat_handler.router)
api_router.include_router(models_handler.router)
api_router.include_router(health_handler.router)
