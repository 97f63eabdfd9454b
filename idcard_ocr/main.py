"""
FastAPI приложение - точка входа сервиса распознавания ID карт
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from idcard_ocr.config import get_settings
from idcard_ocr.core.logging import setup_logging, get_logger
from idcard_ocr.core.metrics import metrics_endpoint
from idcard_ocr.api.dependencies import shutdown_dependencies
from idcard_ocr.api.v1.router import api_router

# Настройка логирования при импорте
settings = get_settings()
setup_logging(log_level=settings.LOG_LEVEL, is_debug=settings.DEBUG)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifecycle events для FastAPI
    Выполняется при старте и остановке приложения
    """
    # Startup
    logger.info(
        "Starting ID Card OCR Service",
        app_name=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG
    )

    yield

    # Shutdown
    logger.info("Shutting down ID Card OCR Service")
    shutdown_dependencies()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="ID card field extraction: detection, field localization and OCR with vision models",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root():
    """Редирект с корня на документацию"""
    return RedirectResponse(url="/docs")


@app.get("/ping", include_in_schema=False)
async def ping():
    """Простой ping endpoint"""
    return {"status": "pong"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus метрики"""
    if not settings.ENABLE_METRICS:
        raise HTTPException(status_code=404, detail="metrics disabled")
    return metrics_endpoint()


if __name__ == "__main__":
    import uvicorn

    logger.info(
        "Starting server",
        host=settings.HOST,
        port=settings.PORT
    )

    uvicorn.run(
        "idcard_ocr.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
