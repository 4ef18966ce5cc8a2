from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TypeVar

import anyio
import typer
from rich import box
from rich.console import Console
from rich.table import Table

from . import __version__
from .client import Bot
from .config import ConfigError, Settings, load_settings, proxy_url
from .contexts import CommandContext, TextContext
from .errors import EventLoopError, MethodCallError, WebhookError
from .logging import get_logger, setup_logging

logger = get_logger(__name__)

T = TypeVar("T")

_CONFIG_OPTION = typer.Option(
    None,
    "--config",
    "-c",
    help="Path to tgloop.toml (defaults to ./.tgloop/tgloop.toml, then ~/.tgloop/).",
)


def _fail(message: str, code: int = 1) -> typer.Exit:
    typer.echo(f"error: {message}", err=True)
    return typer.Exit(code=code)


def _load(config: Path | None) -> Settings:
    try:
        settings, _ = load_settings(config)
    except ConfigError as e:
        raise _fail(str(e)) from e
    return settings


def _bot(settings: Settings) -> Bot:
    assert settings.bot_token is not None
    try:
        proxy = proxy_url(settings.proxy)
    except ConfigError as e:
        raise _fail(str(e)) from e
    return Bot(settings.bot_token, proxy=proxy)


def _run_with_bot(settings: Settings, fn: Callable[[Bot], Awaitable[T]]) -> T:
    async def run() -> T:
        async with _bot(settings) as bot:
            return await fn(bot)

    try:
        return anyio.run(run)
    except MethodCallError as e:
        raise _fail(str(e)) from e


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def app_main(
    debug: bool = typer.Option(False, "--debug", help="Log debug output."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    setup_logging(debug=debug)


def me(config: Path | None = _CONFIG_OPTION) -> None:
    """Show the bot's identity."""
    settings = _load(config)
    user = _run_with_bot(settings, lambda bot: bot.get_me())
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_row("id", str(user.id))
    table.add_row("username", f"@{user.username}" if user.username else "-")
    table.add_row("name", " ".join(p for p in (user.first_name, user.last_name) if p))
    Console().print(table)


def webhook_info(config: Path | None = _CONFIG_OPTION) -> None:
    """Show the webhook currently registered for the bot."""
    settings = _load(config)
    info = _run_with_bot(settings, lambda bot: bot.get_webhook_info())
    table = Table(box=box.SIMPLE, show_header=False)
    table.add_row("url", info.url or "(none, polling)")
    table.add_row("pending updates", str(info.pending_update_count))
    table.add_row("custom certificate", "yes" if info.has_custom_certificate else "no")
    if info.max_connections is not None:
        table.add_row("max connections", str(info.max_connections))
    if info.allowed_updates:
        table.add_row("allowed updates", ", ".join(info.allowed_updates))
    if info.last_error_message:
        table.add_row("last error", info.last_error_message)
    Console().print(table)


def delete_webhook(
    config: Path | None = _CONFIG_OPTION,
    drop_pending: bool = typer.Option(
        False, "--drop-pending", help="Also drop updates waiting for delivery."
    ),
) -> None:
    """Remove the webhook so the bot can poll."""
    settings = _load(config)
    _run_with_bot(
        settings,
        lambda bot: bot.delete_webhook(drop_pending_updates=drop_pending or None),
    )
    typer.echo("webhook deleted")


async def _echo(bot: Bot, settings: Settings, use_webhook: bool) -> None:
    event_loop = bot.event_loop()

    @event_loop.start_with_description("Say hello")
    async def start(context: CommandContext[TextContext]) -> None:
        await context.send_message_in_reply("Send me any text and I'll echo it.")

    @event_loop.text
    async def echo(context: TextContext) -> None:
        await context.send_message_in_reply(context.text)

    if use_webhook:
        webhook = settings.webhook
        assert webhook is not None
        await event_loop.webhook(
            webhook.url,
            webhook.port,
            ip=webhook.ip,
            path=webhook.path,
            certificate=webhook.certificate,
            max_connections=webhook.max_connections,
            allowed_updates=webhook.allowed_updates,
            request_timeout=webhook.request_timeout,
            secret_token=webhook.secret_token,
            tls_cert=webhook.tls_cert,
            tls_key=webhook.tls_key,
        ).start()
        return
    polling = settings.polling
    await event_loop.polling(
        limit=polling.limit,
        timeout=polling.timeout,
        allowed_updates=polling.allowed_updates,
        request_timeout=polling.request_timeout,
        last_n_updates=polling.last_n_updates,
    ).start()


def echo(
    config: Path | None = _CONFIG_OPTION,
    webhook: bool = typer.Option(
        False, "--webhook", help="Serve the [webhook] config instead of polling."
    ),
) -> None:
    """Run an echo bot until it fails or is interrupted."""
    settings = _load(config)
    if webhook and settings.webhook is None:
        raise _fail("--webhook needs a [webhook] section in the config")
    try:
        _run_with_bot(settings, lambda bot: _echo(bot, settings, webhook))
    except (EventLoopError, WebhookError) as e:
        logger.error("echo.stopped", error=str(e))
        raise _fail(str(e)) from e
    except KeyboardInterrupt:
        logger.info("shutdown.interrupted")
        raise typer.Exit(code=130) from None


def create_app() -> typer.Typer:
    app = typer.Typer(
        add_completion=False,
        no_args_is_help=True,
        help="Inspect a Telegram bot and run an example event loop.",
    )
    app.callback()(app_main)
    app.command(name="me")(me)
    app.command(name="webhook-info")(webhook_info)
    app.command(name="delete-webhook")(delete_webhook)
    app.command(name="echo")(echo)
    return app


def main() -> None:
    app = create_app()
    app()


if __name__ == "__main__":
    main()
