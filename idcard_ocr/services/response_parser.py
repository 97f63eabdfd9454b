"""
Разбор ответов модели: поиск JSON объекта в свободном тексте и проверка схемы
"""
import json
import re
from typing import Any, Dict, Iterator, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from idcard_ocr.core.exceptions import MalformedResponseError

ModelT = TypeVar("ModelT", bound=BaseModel)

# Некоторые модели добавляют скрытые рассуждения перед ответом
_THINK_RE = re.compile(r"<think>[\s\S]*?</think>", re.IGNORECASE)


def _balanced_end(text: str, start: int) -> Optional[int]:
    """Индекс закрывающей скобки для '{' в позиции start, None если баланса нет"""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]

        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index

    return None


def _candidates(text: str) -> Iterator[str]:
    """Сбалансированные подстроки {...} в порядке появления"""
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            yield text[start:end + 1]
        start = text.find("{", start + 1)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Найти первый сбалансированный JSON объект в ответе модели

    Текст вокруг объекта (пояснения, markdown ограждения) игнорируется.

    Args:
        text: Ответ модели

    Returns:
        Разобранный словарь

    Raises:
        MalformedResponseError: Если ни одна подстрока {...} не разбирается
    """
    if not text:
        raise MalformedResponseError("AI returned an empty response")

    cleaned = _THINK_RE.sub("", text)
    for candidate in _candidates(cleaned):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value

    raise MalformedResponseError(
        "AI did not return valid JSON",
        details={"response": text[:200]}
    )


def parse_response(text: str, schema: Type[ModelT]) -> ModelT:
    """
    Извлечь JSON из ответа и проверить его pydantic схемой

    Args:
        text: Ответ модели
        schema: Pydantic модель ожидаемого ответа

    Returns:
        Экземпляр schema

    Raises:
        MalformedResponseError: JSON не найден или не проходит схему
    """
    payload = extract_json_object(text)
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise MalformedResponseError(
            f"Invalid {schema.__name__} format: {'; '.join(errors)}",
            details={"errors": errors}
        )
