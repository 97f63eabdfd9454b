"""
Настройка логирования с использованием structlog
"""
import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator

import structlog

# Библиотеки, которые слишком шумят на уровне DEBUG
_NOISY_LOGGERS = ("urllib3", "PIL", "multipart")


def setup_logging(log_level: str = "INFO", is_debug: bool = False) -> None:
    """
    Настройка структурированного логирования

    Args:
        log_level: Уровень логирования (DEBUG, INFO, WARNING, ERROR)
        is_debug: Режим отладки (читаемый вывод в консоль вместо JSON)
    """
    level = getattr(logging, log_level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if is_debug:
        processors.append(structlog.dev.ConsoleRenderer())
    else:
        processors.extend([
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ])

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Получить логгер для модуля

    Args:
        name: Имя модуля

    Returns:
        Настроенный structlog логгер
    """
    return structlog.get_logger(name)


@contextmanager
def bound_context(**values: Any) -> Iterator[None]:
    """
    Привязать значения ко всем записям лога внутри блока

    Используется, чтобы каждая запись о поле или этапе несла имя
    изображения. Контекст хранится в contextvars, поэтому параллельные
    задачи asyncio не смешивают значения друг друга.
    """
    tokens = structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
