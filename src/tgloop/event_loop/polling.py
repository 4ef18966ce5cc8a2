from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, NoReturn

import anyio
import msgspec
from anyio.abc import TaskGroup

from ..errors import (
    MethodCallError,
    PollingError,
    PollingSetupError,
    SetCommandsError,
)
from ..logging import get_logger
from ..types import UpdateKind, convert_update

if TYPE_CHECKING:
    from .core import EventLoop

logger = get_logger(__name__)

DEFAULT_SETUP_TIMEOUT = 60.0
# Slack on top of the long-poll timeout before a fetch counts as hung.
REQUEST_TIMEOUT_MARGIN = 5.0


class Polling:
    """Long-polling acquisition loop.

    Fetches updates with `getUpdates` and feeds each batch, in order, to the
    event loop. Any fetch failure stops the loop; nothing is retried.
    """

    def __init__(
        self,
        event_loop: EventLoop,
        *,
        limit: int | None = None,
        timeout: int | None = None,
        allowed_updates: Sequence[UpdateKind] | None = None,
        request_timeout: float | None = None,
        last_n_updates: int | None = None,
        setup_timeout: float = DEFAULT_SETUP_TIMEOUT,
    ) -> None:
        if last_n_updates is not None and last_n_updates <= 0:
            raise ValueError("last_n_updates must be positive")
        self.event_loop = event_loop
        self.limit = limit
        self.timeout = timeout
        self.allowed_updates = allowed_updates
        self.request_timeout = (
            request_timeout
            if request_timeout is not None
            else (timeout or 0) + REQUEST_TIMEOUT_MARGIN
        )
        self.last_n_updates = last_n_updates
        self.setup_timeout = setup_timeout
        self._last_id: int | None = None

    @property
    def offset(self) -> int | None:
        """Offset for the next `getUpdates` call."""
        if self._last_id is not None:
            return self._last_id + 1
        if self.last_n_updates is not None:
            return -self.last_n_updates
        return None

    async def start(self) -> NoReturn:
        """Run until a fetch fails, then raise `PollingError`.

        Handlers launched before the failure are awaited before the error is
        raised, so a handler that never returns also holds the error back.
        Raises `PollingSetupError` or `SetCommandsError` if startup fails.
        """
        await self._setup()
        logger.info(
            "polling.started",
            limit=self.limit,
            timeout=self.timeout,
            allowed_updates=self.allowed_updates,
        )
        async with anyio.create_task_group() as task_group:
            while True:
                try:
                    updates = await self._fetch()
                except PollingError as e:
                    error = e
                    break
                await self._dispatch(updates, task_group)
        # Handlers launched before the failure have finished by now.
        raise error

    async def _setup(self) -> None:
        bot = self.event_loop.bot
        try:
            with anyio.fail_after(self.setup_timeout):
                await bot.delete_webhook()
        except TimeoutError:
            logger.error("polling.setup.timeout", timeout=self.setup_timeout)
            raise PollingSetupError(timed_out=True) from None
        except MethodCallError as e:
            logger.error("polling.setup.failed", error=str(e))
            raise PollingSetupError(cause=e) from e

        try:
            with anyio.fail_after(self.setup_timeout):
                await self.event_loop.set_commands_descriptions()
        except TimeoutError:
            logger.error("polling.set_commands.timeout", timeout=self.setup_timeout)
            raise SetCommandsError(timed_out=True) from None
        except MethodCallError as e:
            logger.error("polling.set_commands.failed", error=str(e))
            raise SetCommandsError(cause=e) from e

    async def _fetch(self) -> list[dict[str, Any]]:
        offset = self.offset
        try:
            with anyio.fail_after(self.request_timeout):
                return await self.event_loop.bot.get_raw_updates(
                    offset=offset,
                    limit=self.limit,
                    timeout=self.timeout,
                    allowed_updates=self.allowed_updates,
                    timeout_s=self.request_timeout + REQUEST_TIMEOUT_MARGIN,
                )
        except TimeoutError:
            logger.error(
                "polling.fetch.timeout", offset=offset, timeout=self.request_timeout
            )
            raise PollingError(timed_out=True) from None
        except MethodCallError as e:
            logger.error("polling.fetch.failed", offset=offset, error=str(e))
            raise PollingError(cause=e) from e

    async def _dispatch(
        self, raw_updates: list[dict[str, Any]], task_group: TaskGroup
    ) -> None:
        if not raw_updates:
            return
        logger.debug("polling.updates", count=len(raw_updates), offset=self.offset)
        for raw in raw_updates:
            update_id = raw.get("update_id")
            if not isinstance(update_id, int):
                logger.warning("polling.bad_update", error="missing update_id")
                continue
            # Updates that fail validation are still acknowledged.
            if self._last_id is None or update_id > self._last_id:
                self._last_id = update_id
            try:
                update = convert_update(raw)
            except msgspec.ValidationError as e:
                logger.warning("polling.bad_update", update_id=update_id, error=str(e))
                continue
            await self.event_loop.handle_update(update, task_group)
