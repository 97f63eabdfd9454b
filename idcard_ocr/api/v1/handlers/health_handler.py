"""
Health check handlers
"""
from fastapi import APIRouter

from idcard_ocr.api.dependencies import InvokerDep
from idcard_ocr.models.responses import HealthResponse
from idcard_ocr.config import get_settings

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse, include_in_schema=False)
async def health_check(invoker: InvokerDep) -> HealthResponse:
    """
    Базовый health check
    Проверяет что сервис запущен
    """
    settings = get_settings()

    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        inference_available=invoker.is_available()
    )


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(invoker: InvokerDep) -> HealthResponse:
    """
    Readiness check для Kubernetes
    Сервис готов, если настроен доступ к модели
    """
    settings = get_settings()
    is_ready = invoker.is_available()

    return HealthResponse(
        status="ready" if is_ready else "not_ready",
        version=settings.APP_VERSION,
        inference_available=is_ready
    )
