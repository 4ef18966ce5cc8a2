from __future__ import annotations

from collections.abc import Sequence
from typing import IO, TYPE_CHECKING, Any, TypeVar

import httpx
import msgspec

from .config import token_from_env
from .errors import (
    DownloadNetworkError,
    InvalidStatusCodeError,
    NetworkError,
    NoPathError,
    OutOfServiceError,
    ParseError,
    RequestError,
)
from .logging import get_logger
from .types import (
    BotCommand,
    Chat,
    File,
    Message,
    Update,
    UpdateKind,
    User,
    WebhookInfo,
    convert_update,
)

if TYPE_CHECKING:
    from .event_loop import EventLoop
    from .state import StatefulEventLoop

logger = get_logger(__name__)

T = TypeVar("T")

ChatId = int | str
InputFile = bytes | IO[bytes] | tuple[str, bytes | IO[bytes]]

DEFAULT_BASE_URL = "https://api.telegram.org"


class _Envelope(msgspec.Struct, forbid_unknown_fields=False):
    ok: bool
    result: Any = None
    error_code: int | None = None
    description: str | None = None
    parameters: dict[str, Any] | None = None


_ENVELOPE_DECODER = msgspec.json.Decoder(_Envelope)


def _params(**kwargs: Any) -> dict[str, Any]:
    return {key: value for key, value in kwargs.items() if value is not None}


def _form_value(value: Any) -> str:
    if isinstance(value, str):
        return value
    return msgspec.json.encode(value).decode()


class Bot:
    """Handle to the Bot API shared by the event loop and every context."""

    def __init__(
        self,
        token: str,
        *,
        proxy: str | None = None,
        timeout_s: float = 120,
        client: httpx.AsyncClient | None = None,
        base_url: str = DEFAULT_BASE_URL,
    ) -> None:
        if not token:
            raise ValueError("Bot token is empty")
        self._token = token
        self._base = f"{base_url}/bot{token}"
        self._file_base = f"{base_url}/file/bot{token}"
        self._client = client or httpx.AsyncClient(timeout=timeout_s, proxy=proxy)
        self._owns_client = client is None

    @classmethod
    def from_env(cls, var: str, **kwargs: Any) -> Bot:
        return cls(token_from_env(var), **kwargs)

    @property
    def token(self) -> str:
        return self._token

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> Bot:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def event_loop(self) -> EventLoop:
        from .event_loop import EventLoop

        return EventLoop(self)

    def stateful_event_loop(self, state: T) -> StatefulEventLoop[T]:
        from .state import StatefulEventLoop

        return StatefulEventLoop(self, state)

    async def call(
        self,
        method: str,
        params: dict[str, Any] | None = None,
        *,
        files: dict[str, InputFile] | None = None,
        timeout_s: float | None = None,
    ) -> Any:
        """Issue one Bot API call and return the envelope's `result`.

        `timeout_s` overrides the client's HTTP timeout for this request.
        Raises a `MethodCallError` subclass on any failure; never retries.
        """
        params = params or {}
        logger.debug("bot.request", method=method, params=params)
        url = f"{self._base}/{method}"
        extra: dict[str, Any] = {"timeout": timeout_s} if timeout_s is not None else {}
        try:
            if files:
                resp = await self._client.post(
                    url,
                    data={key: _form_value(value) for key, value in params.items()},
                    files=files,
                    **extra,
                )
            else:
                resp = await self._client.post(
                    url,
                    content=msgspec.json.encode(params),
                    headers={"Content-Type": "application/json"},
                    **extra,
                )
        except httpx.HTTPError as e:
            logger.error(
                "bot.network_error",
                method=method,
                error=str(e),
                error_type=e.__class__.__name__,
            )
            raise NetworkError(method, e) from e

        try:
            envelope = _ENVELOPE_DECODER.decode(resp.content)
        except msgspec.DecodeError as e:
            if resp.status_code >= 500:
                logger.error("bot.out_of_service", method=method, status=resp.status_code)
                raise OutOfServiceError(method, resp.status_code) from None
            logger.error(
                "bot.bad_response",
                method=method,
                status=resp.status_code,
                error=str(e),
                body=resp.text,
            )
            raise ParseError(method, resp.content, e) from e

        if not envelope.ok:
            error = RequestError.from_payload(method, msgspec.to_builtins(envelope))
            logger.error(
                "bot.api_error",
                method=method,
                status=resp.status_code,
                error_code=error.error_code,
                description=error.description,
            )
            raise error

        logger.debug("bot.response", method=method, result=envelope.result)
        return envelope.result

    async def _call_as(
        self,
        type_: type[T],
        method: str,
        params: dict[str, Any] | None = None,
        *,
        files: dict[str, InputFile] | None = None,
        timeout_s: float | None = None,
    ) -> T:
        result = await self.call(method, params, files=files, timeout_s=timeout_s)
        try:
            return msgspec.convert(result, type=type_)
        except msgspec.ValidationError as e:
            raise ParseError(method, msgspec.json.encode(result), e) from e

    async def get_raw_updates(
        self,
        offset: int | None = None,
        limit: int | None = None,
        timeout: int | None = None,
        allowed_updates: Sequence[UpdateKind] | None = None,
        *,
        timeout_s: float | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch updates without validating their payloads."""
        return await self._call_as(
            list[dict[str, Any]],
            "getUpdates",
            _params(
                offset=offset,
                limit=limit,
                timeout=timeout,
                allowed_updates=list(allowed_updates)
                if allowed_updates is not None
                else None,
            ),
            timeout_s=timeout_s,
        )

    async def get_updates(
        self,
        offset: int | None = None,
        limit: int | None = None,
        timeout: int | None = None,
        allowed_updates: Sequence[UpdateKind] | None = None,
        *,
        timeout_s: float | None = None,
    ) -> list[Update]:
        """Fetch updates, skipping any that do not fit the wire model."""
        raw_updates = await self.get_raw_updates(
            offset, limit, timeout, allowed_updates, timeout_s=timeout_s
        )
        updates: list[Update] = []
        for raw in raw_updates:
            try:
                updates.append(convert_update(raw))
            except msgspec.ValidationError as e:
                logger.warning(
                    "bot.bad_update", update_id=raw.get("update_id"), error=str(e)
                )
        return updates

    async def set_webhook(
        self,
        url: str,
        *,
        certificate: InputFile | None = None,
        max_connections: int | None = None,
        allowed_updates: Sequence[UpdateKind] | None = None,
        secret_token: str | None = None,
        drop_pending_updates: bool | None = None,
    ) -> bool:
        params = _params(
            url=url,
            max_connections=max_connections,
            allowed_updates=list(allowed_updates)
            if allowed_updates is not None
            else None,
            secret_token=secret_token,
            drop_pending_updates=drop_pending_updates,
        )
        files = {"certificate": certificate} if certificate is not None else None
        return bool(await self.call("setWebhook", params, files=files))

    async def delete_webhook(self, *, drop_pending_updates: bool | None = None) -> bool:
        return bool(
            await self.call(
                "deleteWebhook", _params(drop_pending_updates=drop_pending_updates)
            )
        )

    async def get_webhook_info(self) -> WebhookInfo:
        return await self._call_as(WebhookInfo, "getWebhookInfo")

    async def get_me(self) -> User:
        return await self._call_as(User, "getMe")

    async def set_my_commands(self, commands: Sequence[BotCommand]) -> bool:
        return bool(await self.call("setMyCommands", {"commands": list(commands)}))

    async def get_my_commands(self) -> list[BotCommand]:
        return await self._call_as(list[BotCommand], "getMyCommands")

    async def send_message(
        self,
        chat_id: ChatId,
        text: str,
        *,
        parse_mode: str | None = None,
        entities: list[Any] | None = None,
        disable_web_page_preview: bool | None = None,
        disable_notification: bool | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any | None = None,
    ) -> Message:
        return await self._call_as(
            Message,
            "sendMessage",
            _params(
                chat_id=chat_id,
                text=text,
                parse_mode=parse_mode,
                entities=entities,
                disable_web_page_preview=disable_web_page_preview,
                disable_notification=disable_notification,
                reply_to_message_id=reply_to_message_id,
                reply_markup=reply_markup,
            ),
        )

    async def forward_message(
        self,
        chat_id: ChatId,
        from_chat_id: ChatId,
        message_id: int,
        *,
        disable_notification: bool | None = None,
    ) -> Message:
        return await self._call_as(
            Message,
            "forwardMessage",
            _params(
                chat_id=chat_id,
                from_chat_id=from_chat_id,
                message_id=message_id,
                disable_notification=disable_notification,
            ),
        )

    async def copy_message(
        self,
        chat_id: ChatId,
        from_chat_id: ChatId,
        message_id: int,
        *,
        caption: str | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any | None = None,
    ) -> int:
        result = await self.call(
            "copyMessage",
            _params(
                chat_id=chat_id,
                from_chat_id=from_chat_id,
                message_id=message_id,
                caption=caption,
                parse_mode=parse_mode,
                reply_to_message_id=reply_to_message_id,
                reply_markup=reply_markup,
            ),
        )
        return result["message_id"] if isinstance(result, dict) else result

    async def edit_message_text(
        self,
        text: str,
        *,
        chat_id: ChatId | None = None,
        message_id: int | None = None,
        inline_message_id: str | None = None,
        parse_mode: str | None = None,
        reply_markup: Any | None = None,
    ) -> Message | bool:
        result = await self.call(
            "editMessageText",
            _params(
                chat_id=chat_id,
                message_id=message_id,
                inline_message_id=inline_message_id,
                text=text,
                parse_mode=parse_mode,
                reply_markup=reply_markup,
            ),
        )
        if isinstance(result, dict):
            return msgspec.convert(result, type=Message)
        return bool(result)

    async def edit_message_caption(
        self,
        caption: str | None,
        *,
        chat_id: ChatId | None = None,
        message_id: int | None = None,
        inline_message_id: str | None = None,
        parse_mode: str | None = None,
        reply_markup: Any | None = None,
    ) -> Message | bool:
        result = await self.call(
            "editMessageCaption",
            _params(
                chat_id=chat_id,
                message_id=message_id,
                inline_message_id=inline_message_id,
                caption=caption,
                parse_mode=parse_mode,
                reply_markup=reply_markup,
            ),
        )
        if isinstance(result, dict):
            return msgspec.convert(result, type=Message)
        return bool(result)

    async def edit_message_reply_markup(
        self,
        *,
        chat_id: ChatId | None = None,
        message_id: int | None = None,
        inline_message_id: str | None = None,
        reply_markup: Any | None = None,
    ) -> Message | bool:
        result = await self.call(
            "editMessageReplyMarkup",
            _params(
                chat_id=chat_id,
                message_id=message_id,
                inline_message_id=inline_message_id,
                reply_markup=reply_markup,
            ),
        )
        if isinstance(result, dict):
            return msgspec.convert(result, type=Message)
        return bool(result)

    async def delete_message(self, chat_id: ChatId, message_id: int) -> bool:
        return bool(
            await self.call(
                "deleteMessage", {"chat_id": chat_id, "message_id": message_id}
            )
        )

    async def pin_chat_message(
        self,
        chat_id: ChatId,
        message_id: int,
        *,
        disable_notification: bool | None = None,
    ) -> bool:
        return bool(
            await self.call(
                "pinChatMessage",
                _params(
                    chat_id=chat_id,
                    message_id=message_id,
                    disable_notification=disable_notification,
                ),
            )
        )

    async def unpin_chat_message(
        self, chat_id: ChatId, message_id: int | None = None
    ) -> bool:
        return bool(
            await self.call(
                "unpinChatMessage", _params(chat_id=chat_id, message_id=message_id)
            )
        )

    async def send_chat_action(self, chat_id: ChatId, action: str) -> bool:
        return bool(
            await self.call("sendChatAction", {"chat_id": chat_id, "action": action})
        )

    async def send_photo(
        self,
        chat_id: ChatId,
        photo: str | InputFile,
        *,
        caption: str | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any | None = None,
    ) -> Message:
        return await self._send_file(
            "sendPhoto",
            "photo",
            photo,
            _params(
                chat_id=chat_id,
                caption=caption,
                parse_mode=parse_mode,
                reply_to_message_id=reply_to_message_id,
                reply_markup=reply_markup,
            ),
        )

    async def send_document(
        self,
        chat_id: ChatId,
        document: str | InputFile,
        *,
        caption: str | None = None,
        parse_mode: str | None = None,
        reply_to_message_id: int | None = None,
        reply_markup: Any | None = None,
    ) -> Message:
        return await self._send_file(
            "sendDocument",
            "document",
            document,
            _params(
                chat_id=chat_id,
                caption=caption,
                parse_mode=parse_mode,
                reply_to_message_id=reply_to_message_id,
                reply_markup=reply_markup,
            ),
        )

    async def _send_file(
        self,
        method: str,
        field: str,
        value: str | InputFile,
        params: dict[str, Any],
    ) -> Message:
        # A string is a file id or URL already known to the Bot API.
        if isinstance(value, str):
            return await self._call_as(Message, method, {**params, field: value})
        return await self._call_as(Message, method, params, files={field: value})

    async def send_dice(
        self,
        chat_id: ChatId,
        *,
        emoji: str | None = None,
        reply_to_message_id: int | None = None,
    ) -> Message:
        return await self._call_as(
            Message,
            "sendDice",
            _params(
                chat_id=chat_id, emoji=emoji, reply_to_message_id=reply_to_message_id
            ),
        )

    async def send_location(
        self,
        chat_id: ChatId,
        latitude: float,
        longitude: float,
        *,
        reply_to_message_id: int | None = None,
    ) -> Message:
        return await self._call_as(
            Message,
            "sendLocation",
            _params(
                chat_id=chat_id,
                latitude=latitude,
                longitude=longitude,
                reply_to_message_id=reply_to_message_id,
            ),
        )

    async def leave_chat(self, chat_id: ChatId) -> bool:
        return bool(await self.call("leaveChat", {"chat_id": chat_id}))

    async def get_chat(self, chat_id: ChatId) -> Chat:
        return await self._call_as(Chat, "getChat", {"chat_id": chat_id})

    async def answer_callback_query(
        self,
        callback_query_id: str,
        *,
        text: str | None = None,
        show_alert: bool | None = None,
        url: str | None = None,
        cache_time: int | None = None,
    ) -> bool:
        return bool(
            await self.call(
                "answerCallbackQuery",
                _params(
                    callback_query_id=callback_query_id,
                    text=text,
                    show_alert=show_alert,
                    url=url,
                    cache_time=cache_time,
                ),
            )
        )

    async def answer_inline_query(
        self,
        inline_query_id: str,
        results: list[Any],
        *,
        cache_time: int | None = None,
        is_personal: bool | None = None,
        next_offset: str | None = None,
    ) -> bool:
        return bool(
            await self.call(
                "answerInlineQuery",
                _params(
                    inline_query_id=inline_query_id,
                    results=results,
                    cache_time=cache_time,
                    is_personal=is_personal,
                    next_offset=next_offset,
                ),
            )
        )

    async def answer_shipping_query(
        self,
        shipping_query_id: str,
        ok: bool,
        *,
        shipping_options: list[Any] | None = None,
        error_message: str | None = None,
    ) -> bool:
        return bool(
            await self.call(
                "answerShippingQuery",
                _params(
                    shipping_query_id=shipping_query_id,
                    ok=ok,
                    shipping_options=shipping_options,
                    error_message=error_message,
                ),
            )
        )

    async def answer_pre_checkout_query(
        self,
        pre_checkout_query_id: str,
        ok: bool,
        *,
        error_message: str | None = None,
    ) -> bool:
        return bool(
            await self.call(
                "answerPreCheckoutQuery",
                _params(
                    pre_checkout_query_id=pre_checkout_query_id,
                    ok=ok,
                    error_message=error_message,
                ),
            )
        )

    async def get_file(self, file_id: str) -> File:
        return await self._call_as(File, "getFile", {"file_id": file_id})

    async def download_file(self, file: File) -> bytes:
        if file.file_path is None:
            raise NoPathError(file.file_id)
        try:
            resp = await self._client.get(f"{self._file_base}/{file.file_path}")
        except httpx.HTTPError as e:
            logger.error(
                "bot.download.network_error",
                file_id=file.file_id,
                error=str(e),
                error_type=e.__class__.__name__,
            )
            raise DownloadNetworkError(e) from e
        if resp.status_code != 200:
            logger.error(
                "bot.download.bad_status",
                file_id=file.file_id,
                status=resp.status_code,
            )
            raise InvalidStatusCodeError(resp.status_code)
        return resp.content
