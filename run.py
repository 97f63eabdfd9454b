"""
Скрипт для запуска сервиса распознавания ID карт
"""
import sys
from pathlib import Path

# Добавляем корень проекта в PYTHONPATH
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

if __name__ == "__main__":
    import uvicorn
    from idcard_ocr.config import get_settings
    from idcard_ocr.core.logging import setup_logging

    settings = get_settings()

    setup_logging(log_level=settings.LOG_LEVEL, is_debug=settings.DEBUG)

    print(f"🚀 Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    print(f"📡 Server: http://{settings.HOST}:{settings.PORT}")
    print(f"📚 Docs: http://{settings.HOST}:{settings.PORT}/docs")
    print(f"🔧 Debug mode: {settings.DEBUG}")
    print(f"🎯 Detection threshold: {settings.MIN_DETECTION_CONFIDENCE}%")
    if not settings.OPENROUTER_API_KEY:
        print("⚠️  OPENROUTER_API_KEY is not set, model calls will fail")
    print()

    uvicorn.run(
        "idcard_ocr.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
