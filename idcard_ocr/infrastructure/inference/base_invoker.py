"""
Абстрактный базовый класс для вызова мультимодальных моделей
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class InvocationResult:
    """Ответ модели"""
    text: str
    model_used: str
    usage: Dict[str, Any] = field(default_factory=dict)


class BaseInferenceInvoker(ABC):
    """
    Единый интерфейс для обращения к удалённым моделям
    Один вызов - одно сообщение пользователя (текст и опциональное
    изображение) и не более одной системной инструкции
    """

    @abstractmethod
    async def invoke(
        self,
        prompt: str,
        image: Optional[bytes],
        model: str,
        system_instruction: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> InvocationResult:
        """
        Вызов модели

        Args:
            prompt: Текст запроса
            image: Закодированное изображение или None
            model: Идентификатор модели
            system_instruction: Системная инструкция
            timeout: Бюджет времени на вызов в секундах

        Returns:
            InvocationResult с текстом ответа

        Raises:
            InvocationError: Ошибка транспорта, таймаут или ошибка провайдера
        """
        pass

    @abstractmethod
    async def list_models(self) -> List[Dict[str, Any]]:
        """
        Список моделей, умеющих работать с изображениями

        Raises:
            InvocationError: Если провайдер недоступен
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """True если вызовы возможны (например, задан API ключ)"""
        pass

    def close(self) -> None:
        """Очистка ресурсов (опционально)"""
        pass
