"""
Клиент OpenRouter API для мультимодальных моделей
"""
import asyncio
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

import requests

from idcard_ocr.infrastructure.inference.base_invoker import (
    BaseInferenceInvoker,
    InvocationResult
)
from idcard_ocr.core.exceptions import InvocationError
from idcard_ocr.core.logging import get_logger
from idcard_ocr.utils.image_utils import to_data_uri

logger = get_logger(__name__)

# Признаки моделей, умеющих работать с изображениями
_VISION_MARKERS = ("vision", "gemini", "claude-3", "gpt-4")


class OpenRouterInvoker(BaseInferenceInvoker):
    """
    Вызов моделей через OpenRouter chat completions

    requests синхронный, поэтому каждый запрос выполняется в пуле потоков.
    Повторных попыток нет, таймаут задаётся на каждый вызов.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://openrouter.ai/api/v1",
        referer: str = "http://localhost:5173",
        app_title: str = "ID Card OCR Service",
        default_timeout: float = 30.0,
        default_model: str = "google/gemini-pro-vision",
        max_workers: int = 8
    ):
        """
        Args:
            api_key: Ключ OpenRouter
            base_url: Базовый URL API
            referer: Значение заголовка HTTP-Referer
            app_title: Значение заголовка X-Title
            default_timeout: Таймаут запроса по умолчанию, секунды
            default_model: Модель, если вызывающий код её не указал
            max_workers: Размер пула потоков для HTTP запросов
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_timeout = default_timeout
        self.default_model = default_model
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": referer,
            "X-Title": app_title,
            "Content-Type": "application/json",
        })
        self.executor = ThreadPoolExecutor(max_workers=max_workers)

        if not api_key:
            logger.warning("OPENROUTER_API_KEY is not set, model calls will fail")

        logger.info(
            "OpenRouter invoker configured",
            base_url=self.base_url,
            default_timeout=default_timeout,
            max_workers=max_workers
        )

    @staticmethod
    def build_messages(
        prompt: str,
        image: Optional[bytes],
        system_instruction: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """
        Собрать сообщения для chat completions

        Текстовый запрос без изображения отправляется строкой,
        с изображением - списком частей text + image_url.
        """
        messages: List[Dict[str, Any]] = []

        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})

        if image is None:
            messages.append({"role": "user", "content": prompt})
            return messages

        content: List[Dict[str, Any]] = []
        if prompt:
            content.append({"type": "text", "text": prompt})
        content.append({
            "type": "image_url",
            "image_url": {"url": to_data_uri(image)}
        })
        messages.append({"role": "user", "content": content})
        return messages

    @staticmethod
    def _error_from_response(response: requests.Response) -> InvocationError:
        """Достать сообщение об ошибке из ответа провайдера"""
        message = response.reason or f"HTTP {response.status_code}"
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                message = error["message"]
            elif body.get("message"):
                message = body["message"]

        return InvocationError(
            f"OpenRouter API Error: {message}",
            details={"status_code": response.status_code}
        )

    def _request(self, method: str, path: str, timeout: float, **kwargs) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=timeout, **kwargs)
        except requests.exceptions.Timeout:
            raise InvocationError(
                f"OpenRouter API request timed out after {timeout}s",
                details={"timeout": timeout}
            )
        except requests.exceptions.RequestException as e:
            raise InvocationError(
                "No response from OpenRouter API. Please check your connection.",
                details={"error": str(e)}
            )

        if not response.ok:
            raise self._error_from_response(response)

        try:
            return response.json()
        except ValueError as e:
            raise InvocationError(
                f"OpenRouter API returned invalid JSON: {str(e)}",
                details={"status_code": response.status_code}
            )

    def _complete(
        self,
        messages: List[Dict[str, Any]],
        model: str,
        timeout: float
    ) -> InvocationResult:
        start_time = time.time()
        data = self._request(
            "POST",
            "/chat/completions",
            timeout,
            json={"model": model, "messages": messages}
        )

        try:
            text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            raise InvocationError(
                "OpenRouter API Error: response has no message content",
                details={"model": model}
            )

        processing_time_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            "Model call completed",
            model=model,
            model_used=data.get("model"),
            processing_time_ms=processing_time_ms
        )

        return InvocationResult(
            text=text or "",
            model_used=data.get("model") or model,
            usage=data.get("usage") or {}
        )

    async def invoke(
        self,
        prompt: str,
        image: Optional[bytes],
        model: str,
        system_instruction: Optional[str] = None,
        timeout: Optional[float] = None
    ) -> InvocationResult:
        messages = self.build_messages(prompt, image, system_instruction)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor,
            self._complete,
            messages,
            model or self.default_model,
            timeout or self.default_timeout
        )

    @staticmethod
    def is_vision_model(model: Dict[str, Any]) -> bool:
        """Проверка, что модель принимает изображения"""
        model_id = model.get("id", "")
        if any(marker in model_id for marker in _VISION_MARKERS):
            return True

        architecture = model.get("architecture") or {}
        modality = architecture.get("modality") or ""
        return "image" in modality

    async def list_models(self) -> List[Dict[str, Any]]:
        loop = asyncio.get_running_loop()
        data = await loop.run_in_executor(
            self.executor,
            lambda: self._request("GET", "/models", self.default_timeout)
        )

        models = [model for model in data.get("data", []) if self.is_vision_model(model)]
        logger.info("Vision models fetched", count=len(models))

        return sorted(
            (
                {
                    "id": model["id"],
                    "name": model.get("name") or model["id"],
                    "description": model.get("description") or "",
                    "pricing": model.get("pricing"),
                }
                for model in models
            ),
            key=lambda model: model["name"].lower()
        )

    def is_available(self) -> bool:
        return bool(self.api_key)

    def close(self) -> None:
        logger.info("Shutting down OpenRouter invoker")
        self.executor.shutdown(wait=True)
        self.session.close()
