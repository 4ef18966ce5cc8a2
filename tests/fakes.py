from __future__ import annotations

import json
from collections.abc import Awaitable, Callable
from typing import Any

import anyio
import httpx
import msgspec

from tgloop.client import Bot
from tgloop.types import Update

TOKEN = "123456:test-token_abcdef"


class Hang:
    """Response placeholder that never answers within a test's timeout."""

    def __init__(self, seconds: float = 10.0) -> None:
        self.seconds = seconds


class FakeApi:
    """Bot API double served through `httpx.MockTransport`.

    Queued responses are consumed per method; the last one repeats.
    A queued value is an `httpx.Response`, an exception to raise, a `Hang`,
    a callable taking the params, or a plain `result` to wrap in `ok: true`.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self._queues: dict[str, list[Any]] = {}

    def respond(self, method: str, *items: Any) -> None:
        self._queues.setdefault(method, []).extend(items)

    def fail(self, method: str, description: str, error_code: int = 400) -> None:
        self.respond(
            method,
            httpx.Response(
                error_code,
                json={"ok": False, "error_code": error_code, "description": description},
            ),
        )

    def calls_to(self, method: str) -> list[dict[str, Any]]:
        return [params for name, params in self.calls if name == method]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        method = request.url.path.rsplit("/", 1)[-1]
        params: dict[str, Any] = {}
        if request.headers.get("content-type", "").startswith("application/json"):
            params = json.loads(request.content or b"{}")
        self.calls.append((method, params))

        queue = self._queues.get(method)
        if not queue:
            return httpx.Response(200, json={"ok": True, "result": True})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Hang):
            await anyio.sleep(item.seconds)
            return httpx.Response(200, json={"ok": True, "result": []})
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, httpx.Response):
            return item
        if callable(item):
            item = item(params)
            if isinstance(item, Awaitable):
                item = await item
        return httpx.Response(200, json={"ok": True, "result": item})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    def bot(self) -> Bot:
        return Bot(TOKEN, client=self.client())


def user(user_id: int = 1, username: str | None = "alice") -> dict[str, Any]:
    return {"id": user_id, "is_bot": False, "first_name": "Alice", "username": username}


def chat(chat_id: int = 10, chat_type: str = "private") -> dict[str, Any]:
    return {"id": chat_id, "type": chat_type}


def message(
    message_id: int = 100,
    *,
    chat_id: int = 10,
    chat_type: str = "private",
    **fields: Any,
) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "message_id": message_id,
        "date": 1_700_000_000,
        "chat": chat(chat_id, chat_type),
        "from": user(),
    }
    payload.update(fields)
    return payload


def text_message(text: str, **fields: Any) -> dict[str, Any]:
    if text.startswith("/") and "entities" not in fields:
        command = text.split(maxsplit=1)[0]
        fields["entities"] = [
            {"type": "bot_command", "offset": 0, "length": len(command)}
        ]
    return message(text=text, **fields)


def update(update_id: int = 1, **payload: Any) -> Update:
    return msgspec.convert({"update_id": update_id, **payload}, type=Update)


def text_update(update_id: int, text: str, **fields: Any) -> Update:
    return update(update_id, message=text_message(text, **fields))


def raw_update(update_id: int, **payload: Any) -> dict[str, Any]:
    return {"update_id": update_id, **payload}


Recorder = Callable[..., Awaitable[None]]


def recorder(calls: list[Any], tag: str) -> Recorder:
    async def handler(*args: Any) -> None:
        calls.append((tag, *args))

    return handler
