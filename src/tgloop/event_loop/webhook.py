from __future__ import annotations

import hmac
import socket
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

import anyio
import msgspec
import uvicorn
from anyio.abc import TaskGroup
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from ..errors import (
    BindError,
    MethodCallError,
    ServerError,
    SetCommandsError,
    SetWebhookError,
)
from ..logging import get_logger
from ..types import UpdateKind, convert_update, decode_raw_update

if TYPE_CHECKING:
    from .core import EventLoop

logger = get_logger(__name__)

SECRET_TOKEN_HEADER = "X-Telegram-Bot-Api-Secret-Token"
DEFAULT_REQUEST_TIMEOUT = 60.0


def create_app(
    event_loop: EventLoop,
    task_group: TaskGroup,
    *,
    path: str = "/",
    secret_token: str | None = None,
) -> Starlette:
    """ASGI app that accepts one JSON update per POST to `path`.

    Responds once the update's handlers are launched, not when they finish.
    """
    expected = secret_token.encode() if secret_token is not None else None

    async def receive_update(request: Request) -> Response:
        if expected is not None:
            received = request.headers.get(SECRET_TOKEN_HEADER, "").encode()
            if not hmac.compare_digest(received, expected):
                logger.warning(
                    "webhook.bad_secret",
                    client=request.client.host if request.client else None,
                )
                return Response(status_code=403)
        body = await request.body()
        try:
            raw = decode_raw_update(body)
        except msgspec.DecodeError as e:
            logger.warning("webhook.bad_update", error=str(e), size=len(body))
            return PlainTextResponse("malformed update", status_code=400)
        update_id = raw.get("update_id")
        if not isinstance(update_id, int):
            logger.warning("webhook.bad_update", error="missing update_id")
            return PlainTextResponse("malformed update", status_code=400)
        try:
            update = convert_update(raw)
        except msgspec.ValidationError as e:
            # Schema mismatches are still acknowledged.
            logger.warning("webhook.skipped_update", update_id=update_id, error=str(e))
            return Response(status_code=200)
        await event_loop.handle_update(update, task_group)
        return Response(status_code=200)

    return Starlette(routes=[Route(path, receive_update, methods=["POST"])])


class Webhook:
    """Webhook acquisition loop served by uvicorn."""

    def __init__(
        self,
        event_loop: EventLoop,
        url: str,
        port: int,
        *,
        ip: str = "127.0.0.1",
        path: str = "/",
        certificate: str | Path | None = None,
        max_connections: int | None = None,
        allowed_updates: Sequence[UpdateKind] | None = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        secret_token: str | None = None,
        tls_cert: str | Path | None = None,
        tls_key: str | Path | None = None,
    ) -> None:
        if (tls_cert is None) != (tls_key is None):
            raise ValueError("tls_cert and tls_key must be given together")
        self.event_loop = event_loop
        self.url = url
        self.port = port
        self.ip = ip
        self.path = path
        self.certificate = certificate
        self.max_connections = max_connections
        self.allowed_updates = allowed_updates
        self.request_timeout = request_timeout
        self.secret_token = secret_token
        self.tls_cert = tls_cert
        self.tls_key = tls_key
        self.server: uvicorn.Server | None = None
        self.address: tuple[str, int] | None = None

    async def start(self) -> None:
        """Register the webhook and serve until the server shuts down.

        Raises `SetWebhookError`, `SetCommandsError` or `BindError` when
        startup fails and `ServerError` when the server stops abnormally.
        """
        await self._register()
        sock = self._bind()
        self.address = sock.getsockname()[:2]
        error: ServerError | None = None
        async with anyio.create_task_group() as task_group:
            app = create_app(
                self.event_loop,
                task_group,
                path=self.path,
                secret_token=self.secret_token,
            )
            server = self.server = uvicorn.Server(self._server_config(app))
            logger.info(
                "webhook.started",
                url=self.url,
                ip=self.ip,
                port=self.address[1],
                path=self.path,
                tls=self.tls_cert is not None,
            )
            try:
                await server.serve(sockets=[sock])
            except Exception as e:
                logger.error("webhook.server.failed", error=str(e))
                error = ServerError(e)
            else:
                if not server.started:
                    error = ServerError()
            finally:
                sock.close()
        if error is not None:
            raise error
        logger.info("webhook.stopped")

    def _server_config(self, app: Starlette) -> uvicorn.Config:
        return uvicorn.Config(
            app,
            lifespan="off",
            log_config=None,
            access_log=False,
            ssl_certfile=str(self.tls_cert) if self.tls_cert is not None else None,
            ssl_keyfile=str(self.tls_key) if self.tls_key is not None else None,
        )

    async def _register(self) -> None:
        bot = self.event_loop.bot
        certificate = (
            (Path(self.certificate).name, Path(self.certificate).read_bytes())
            if self.certificate is not None
            else None
        )
        try:
            with anyio.fail_after(self.request_timeout):
                await bot.set_webhook(
                    self.url,
                    certificate=certificate,
                    max_connections=self.max_connections,
                    allowed_updates=self.allowed_updates,
                    secret_token=self.secret_token,
                )
        except TimeoutError:
            logger.error("webhook.set.timeout", timeout=self.request_timeout)
            raise SetWebhookError(timed_out=True) from None
        except MethodCallError as e:
            logger.error("webhook.set.failed", error=str(e))
            raise SetWebhookError(cause=e) from e

        try:
            with anyio.fail_after(self.request_timeout):
                await self.event_loop.set_commands_descriptions()
        except TimeoutError:
            logger.error("webhook.set_commands.timeout", timeout=self.request_timeout)
            raise SetCommandsError(timed_out=True) from None
        except MethodCallError as e:
            logger.error("webhook.set_commands.failed", error=str(e))
            raise SetCommandsError(cause=e) from e

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self.ip else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.ip, self.port))
        except OSError as e:
            sock.close()
            logger.error("webhook.bind.failed", ip=self.ip, port=self.port, error=str(e))
            raise BindError(self.ip, self.port, e) from e
        return sock
