from __future__ import annotations

import os
import tomllib
from pathlib import Path
from urllib.parse import quote

import msgspec

from .types import UpdateKind

# Environment variable names for secrets
ENV_BOT_TOKEN = "TGLOOP_BOT_TOKEN"

LOCAL_CONFIG_NAME = Path(".tgloop") / "tgloop.toml"
HOME_CONFIG_PATH = Path.home() / ".tgloop" / "tgloop.toml"


class ConfigError(RuntimeError):
    pass


class ProxySettings(msgspec.Struct, forbid_unknown_fields=True):
    url: str
    username: str | None = None
    password: str | None = None


class PollingSettings(msgspec.Struct, forbid_unknown_fields=True):
    limit: int | None = None
    timeout: int | None = None
    allowed_updates: list[UpdateKind] | None = None
    request_timeout: float | None = None
    last_n_updates: int | None = None


class WebhookSettings(msgspec.Struct, forbid_unknown_fields=True):
    url: str
    port: int
    ip: str = "127.0.0.1"
    path: str = "/"
    certificate: str | None = None
    max_connections: int | None = None
    allowed_updates: list[UpdateKind] | None = None
    request_timeout: float = 60.0
    secret_token: str | None = None
    tls_cert: str | None = None
    tls_key: str | None = None


class Settings(msgspec.Struct, forbid_unknown_fields=True):
    bot_token: str | None = None
    proxy: ProxySettings | None = None
    polling: PollingSettings = msgspec.field(default_factory=PollingSettings)
    webhook: WebhookSettings | None = None


def _config_candidates() -> list[Path]:
    candidates = [Path.cwd() / LOCAL_CONFIG_NAME, HOME_CONFIG_PATH]
    if candidates[0] == candidates[1]:
        return [candidates[0]]
    return candidates


def _read_config(cfg_path: Path) -> dict:
    try:
        raw = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    except OSError as e:
        raise ConfigError(f"Failed to read config file {cfg_path}: {e}") from e
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {cfg_path}: {e}") from None


def load_config(path: str | Path | None = None) -> tuple[dict, Path]:
    if path:
        cfg_path = Path(path).expanduser()
        return _read_config(cfg_path), cfg_path

    for candidate in _config_candidates():
        if candidate.is_file():
            return _read_config(candidate), candidate

    raise ConfigError("Missing tgloop config.")


def token_from_env(var: str) -> str:
    value = os.environ.get(var)
    if value is None or not value.strip():
        raise ConfigError(f"Environment variable {var} is not set or empty.")
    return value.strip()


def get_bot_token(config: dict, config_path: Path) -> str:
    """Get bot token from environment variable or config file.

    Environment variable TGLOOP_BOT_TOKEN takes precedence over config file.
    """
    env_token = os.environ.get(ENV_BOT_TOKEN)
    if env_token and env_token.strip():
        return env_token.strip()

    try:
        token = config["bot_token"]
    except KeyError:
        raise ConfigError(
            f"Missing bot token. Set {ENV_BOT_TOKEN} environment variable "
            f"or add `bot_token` to {config_path}."
        ) from None

    if not isinstance(token, str) or not token.strip():
        raise ConfigError(
            f"Invalid `bot_token` in {config_path}; expected a non-empty string."
        )
    return token.strip()


def load_settings(path: str | Path | None = None) -> tuple[Settings, Path]:
    config, cfg_path = load_config(path)
    try:
        settings = msgspec.convert(config, type=Settings)
    except msgspec.ValidationError as e:
        raise ConfigError(f"Invalid config in {cfg_path}: {e}") from None
    token = get_bot_token(config, cfg_path)
    return msgspec.structs.replace(settings, bot_token=token), cfg_path


def proxy_url(proxy: ProxySettings | None) -> str | None:
    """Build an httpx proxy URL, embedding credentials when configured."""
    if proxy is None:
        return None
    if proxy.username is None:
        return proxy.url
    scheme, sep, rest = proxy.url.partition("://")
    if not sep:
        raise ConfigError(f"Invalid proxy url {proxy.url!r}; expected scheme://host.")
    username = quote(proxy.username, safe="")
    password = (
        f":{quote(proxy.password, safe='')}" if proxy.password is not None else ""
    )
    return f"{scheme}://{username}{password}@{rest}"
