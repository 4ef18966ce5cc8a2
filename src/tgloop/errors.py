from __future__ import annotations

from typing import Any

__all__ = [
    "BindError",
    "DownloadError",
    "DownloadNetworkError",
    "EventLoopError",
    "InvalidStatusCodeError",
    "MethodCallError",
    "NetworkError",
    "NoPathError",
    "OutOfServiceError",
    "ParseError",
    "PollingError",
    "PollingSetupError",
    "RequestError",
    "ServerError",
    "SetCommandsError",
    "SetWebhookError",
    "WebhookError",
]


class MethodCallError(Exception):
    """A call to the Bot API failed."""

    def __init__(self, method: str, message: str) -> None:
        super().__init__(message)
        self.method = method


class NetworkError(MethodCallError):
    def __init__(self, method: str, error: Exception) -> None:
        super().__init__(method, f"{method}: network error: {error}")
        self.error = error


class OutOfServiceError(MethodCallError):
    def __init__(self, method: str, status_code: int) -> None:
        super().__init__(
            method, f"{method}: Bot API is out of service (HTTP {status_code})"
        )
        self.status_code = status_code


class ParseError(MethodCallError):
    def __init__(self, method: str, body: bytes, error: Exception) -> None:
        super().__init__(method, f"{method}: failed to parse response: {error}")
        self.body = body
        self.error = error


class RequestError(MethodCallError):
    """The Bot API answered with `ok: false`."""

    def __init__(
        self,
        method: str,
        *,
        error_code: int,
        description: str,
        migrate_to_chat_id: int | None = None,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(method, f"{method}: [{error_code}] {description}")
        self.error_code = error_code
        self.description = description
        self.migrate_to_chat_id = migrate_to_chat_id
        self.retry_after = retry_after

    @classmethod
    def from_payload(cls, method: str, payload: dict[str, Any]) -> RequestError:
        params = payload.get("parameters")
        if not isinstance(params, dict):
            params = {}
        error_code = payload.get("error_code")
        description = payload.get("description")
        return cls(
            method,
            error_code=error_code if isinstance(error_code, int) else 0,
            description=description if isinstance(description, str) else "",
            migrate_to_chat_id=params.get("migrate_to_chat_id"),
            retry_after=params.get("retry_after"),
        )

    def is_not_modified(self) -> bool:
        return "is not modified" in self.description


class DownloadError(Exception):
    """A file could not be downloaded."""


class NoPathError(DownloadError):
    def __init__(self, file_id: str | None = None) -> None:
        super().__init__(
            "A file could not be downloaded because of a missing `file_path`."
        )
        self.file_id = file_id


class DownloadNetworkError(DownloadError):
    def __init__(self, error: Exception) -> None:
        super().__init__(
            f"A file could not be downloaded because of a network error: {error}"
        )
        self.error = error


class InvalidStatusCodeError(DownloadError):
    def __init__(self, status_code: int) -> None:
        super().__init__(
            "A file could not be downloaded because the server responded "
            f"with {status_code} instead of 200 OK."
        )
        self.status_code = status_code


class EventLoopError(Exception):
    """A fatal failure that stops an event loop or aborts its startup."""

    def __init__(
        self, message: str, *, cause: MethodCallError | None, timed_out: bool
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.timed_out = timed_out


class PollingSetupError(EventLoopError):
    """Deleting a stale webhook before polling failed or timed out."""

    def __init__(
        self, *, cause: MethodCallError | None = None, timed_out: bool = False
    ) -> None:
        detail = "timed out" if timed_out else f"failed: {cause}"
        super().__init__(
            f"Polling could not start because `deleteWebhook` {detail}",
            cause=cause,
            timed_out=timed_out,
        )


class PollingError(EventLoopError):
    """A `getUpdates` cycle failed; the polling loop stops."""

    def __init__(
        self, *, cause: MethodCallError | None = None, timed_out: bool = False
    ) -> None:
        detail = "timed out" if timed_out else f"failed: {cause}"
        super().__init__(
            f"The polling loop stopped because `getUpdates` {detail}",
            cause=cause,
            timed_out=timed_out,
        )


class WebhookError(Exception):
    """The webhook event loop failed."""


class SetWebhookError(WebhookError, EventLoopError):
    def __init__(
        self, *, cause: MethodCallError | None = None, timed_out: bool = False
    ) -> None:
        detail = "timed out" if timed_out else f"failed: {cause}"
        EventLoopError.__init__(
            self,
            f"The webhook event loop failed because `setWebhook` {detail}",
            cause=cause,
            timed_out=timed_out,
        )


class SetCommandsError(EventLoopError):
    """Pushing command descriptions at startup failed or timed out."""

    def __init__(
        self, *, cause: MethodCallError | None = None, timed_out: bool = False
    ) -> None:
        detail = "timed out" if timed_out else f"failed: {cause}"
        super().__init__(
            f"The event loop failed because `setMyCommands` {detail}",
            cause=cause,
            timed_out=timed_out,
        )


class BindError(WebhookError):
    def __init__(self, host: str, port: int, error: OSError) -> None:
        super().__init__(
            f"The webhook event loop failed to bind to {host}:{port}: {error}"
        )
        self.error = error


class ServerError(WebhookError):
    def __init__(self, error: BaseException | None = None) -> None:
        detail = f": {error}" if error is not None else ""
        super().__init__(f"The webhook server stopped with an error{detail}")
        self.error = error
