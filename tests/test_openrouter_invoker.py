import asyncio
import json

import pytest
import requests

from idcard_ocr.core.exceptions import InvocationError
from idcard_ocr.infrastructure.inference.openrouter_invoker import OpenRouterInvoker


def make_response(status_code: int, body, reason: str = "") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response._content = body if isinstance(body, bytes) else json.dumps(body).encode()
    return response


@pytest.fixture
def invoker():
    client = OpenRouterInvoker(api_key="test-key", default_timeout=5.0, max_workers=2)
    yield client
    client.close()


def test_session_headers(invoker):
    headers = invoker.session.headers

    assert headers["Authorization"] == "Bearer test-key"
    assert headers["HTTP-Referer"] == "http://localhost:5173"
    assert headers["X-Title"] == "ID Card OCR Service"


def test_build_messages_with_image(card_png):
    messages = OpenRouterInvoker.build_messages("read this", card_png, "be precise")

    assert messages[0] == {"role": "system", "content": "be precise"}
    user = messages[1]
    assert user["role"] == "user"
    assert user["content"][0] == {"type": "text", "text": "read this"}
    assert user["content"][1]["type"] == "image_url"
    assert user["content"][1]["image_url"]["url"].startswith("data:image/png;base64,")


def test_build_messages_text_only():
    messages = OpenRouterInvoker.build_messages("hello", None)

    assert messages == [{"role": "user", "content": "hello"}]


def test_invoke_posts_chat_completion(invoker, monkeypatch, card_png):
    captured = {}

    def fake_request(method, url, timeout=None, **kwargs):
        captured.update(method=method, url=url, timeout=timeout, payload=kwargs["json"])
        return make_response(200, {
            "model": "google/gemini-flash-1.5",
            "choices": [{"message": {"content": '{"text": "A", "confidence": 99}'}}],
            "usage": {"total_tokens": 120},
        })

    monkeypatch.setattr(invoker.session, "request", fake_request)

    result = asyncio.run(invoker.invoke("prompt", card_png, "google/gemini-flash-1.5", timeout=12))

    assert captured["method"] == "POST"
    assert captured["url"] == "https://openrouter.ai/api/v1/chat/completions"
    assert captured["timeout"] == 12
    assert captured["payload"]["model"] == "google/gemini-flash-1.5"
    assert result.text == '{"text": "A", "confidence": 99}'
    assert result.usage == {"total_tokens": 120}


def test_invoke_uses_default_timeout(invoker, monkeypatch):
    captured = {}

    def fake_request(method, url, timeout=None, **kwargs):
        captured["timeout"] = timeout
        return make_response(200, {"choices": [{"message": {"content": "hi"}}]})

    monkeypatch.setattr(invoker.session, "request", fake_request)

    result = asyncio.run(invoker.invoke("prompt", None, "m"))

    assert captured["timeout"] == 5.0
    assert result.model_used == "m"


def test_provider_error_message(invoker, monkeypatch):
    monkeypatch.setattr(
        invoker.session,
        "request",
        lambda *args, **kwargs: make_response(401, {"error": {"message": "Invalid API key"}}, "Unauthorized"),
    )

    with pytest.raises(InvocationError) as exc_info:
        asyncio.run(invoker.invoke("prompt", None, "m"))

    assert exc_info.value.message == "OpenRouter API Error: Invalid API key"
    assert exc_info.value.details["status_code"] == 401


def test_timeout_error(invoker, monkeypatch):
    def fake_request(*args, **kwargs):
        raise requests.exceptions.ReadTimeout("slow")

    monkeypatch.setattr(invoker.session, "request", fake_request)

    with pytest.raises(InvocationError, match="timed out after 3s"):
        asyncio.run(invoker.invoke("prompt", None, "m", timeout=3))


def test_connection_error(invoker, monkeypatch):
    def fake_request(*args, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(invoker.session, "request", fake_request)

    with pytest.raises(InvocationError, match="No response from OpenRouter API"):
        asyncio.run(invoker.invoke("prompt", None, "m"))


def test_missing_message_content(invoker, monkeypatch):
    monkeypatch.setattr(invoker.session, "request", lambda *args, **kwargs: make_response(200, {"choices": []}))

    with pytest.raises(InvocationError, match="no message content"):
        asyncio.run(invoker.invoke("prompt", None, "m"))


def test_list_models_keeps_vision_models_sorted_by_name(invoker, monkeypatch):
    body = {
        "data": [
            {"id": "google/gemini-flash-1.5", "name": "Gemini Flash", "pricing": {"prompt": "0"}},
            {"id": "meta/llama-3-8b", "name": "Llama 3", "architecture": {"modality": "text->text"}},
            {"id": "acme/seer", "architecture": {"modality": "text+image->text"}},
            {"id": "openai/gpt-4o", "name": "ChatGPT 4o"},
        ]
    }
    monkeypatch.setattr(invoker.session, "request", lambda *args, **kwargs: make_response(200, body))

    models = asyncio.run(invoker.list_models())

    assert [model["id"] for model in models] == ["acme/seer", "openai/gpt-4o", "google/gemini-flash-1.5"]
    assert models[0]["name"] == "acme/seer"
    assert models[2]["pricing"] == {"prompt": "0"}


def test_is_available():
    client = OpenRouterInvoker(api_key="", max_workers=1)
    try:
        assert client.is_available() is False
    finally:
        client.close()
