"""Runtime configuration gathered from an env file, the environment and overrides."""

from __future__ import annotations

import logging
import os
import re
import socket
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping

from dotenv import dotenv_values

log = logging.getLogger("filestreambot.config")

DEFAULT_ENV_FILE = "fsb.env"
DEFAULT_HASH_LENGTH = 6
MIN_HASH_LENGTH = 5
MAX_HASH_LENGTH = 32
PUBLIC_IP_SERVICE = "https://api.ipify.org?format=text"

_PROBE_ADDRESS = ("8.8.8.8", 80)
_NETWORK_TIMEOUT = 10.0
_MULTI_TOKEN_RE = re.compile(r"MULTI_TOKEN\d+=(.*)")
_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")
_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}
_REQUIRED = object()


class ConfigError(ValueError):
    """Raised when the configuration is missing or malformed."""


@dataclass
class Config:
    """Settings of the bot and its HTTP server."""

    api_id: int
    api_hash: str
    bot_token: str
    log_channel_id: int
    dev: bool = False
    port: int = 8080
    host: str = ""
    hash_length: int = DEFAULT_HASH_LENGTH
    use_session_file: bool = True
    user_session: str = ""
    use_public_ip: bool = False
    allowed_users: list[int] = field(default_factory=list)
    multi_tokens: list[str] = field(default_factory=list)


def _int_parser(bits: int) -> Callable[[str], int]:
    low, high = -(2 ** (bits - 1)), 2 ** (bits - 1) - 1

    def parse(value: str) -> int:
        number = int(value, 0)
        if not low <= number <= high:
            raise ValueError(f"value out of range for a {bits}-bit integer")
        return number

    return parse


def _parse_bool(value: str) -> bool:
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError("invalid boolean syntax")


def parse_allowed_users(value: str) -> list[int]:
    """Parse a comma separated list of user IDs; an empty string gives none."""
    if value == "":
        return []
    users = []
    for part in value.split(","):
        if not _DECIMAL_RE.fullmatch(part):
            raise ConfigError(f"invalid user ID {part!r}")
        user_id = int(part)
        if not -(2**63) <= user_id < 2**63:
            raise ConfigError(f"user ID {part!r} out of range")
        users.append(user_id)
    return users


# (field name, environment key, parser, default as text or _REQUIRED or None)
_FIELDS: tuple[tuple[str, str, Callable[[str], Any], Any], ...] = (
    ("api_id", "API_ID", _int_parser(32), _REQUIRED),
    ("api_hash", "API_HASH", str, _REQUIRED),
    ("bot_token", "BOT_TOKEN", str, _REQUIRED),
    ("log_channel_id", "LOG_CHANNEL", _int_parser(64), _REQUIRED),
    ("dev", "DEV", _parse_bool, "false"),
    ("port", "PORT", _int_parser(64), "8080"),
    ("host", "HOST", str, ""),
    ("hash_length", "HASH_LENGTH", _int_parser(64), "6"),
    ("use_session_file", "USE_SESSION_FILE", _parse_bool, "true"),
    ("user_session", "USER_SESSION", str, None),
    ("use_public_ip", "USE_PUBLIC_IP", _parse_bool, "false"),
    ("allowed_users", "ALLOWED_USERS", parse_allowed_users, None),
)
_ENV_KEYS = {name: key for name, key, _, _ in _FIELDS if name != "allowed_users"}


def strip_int(value: int) -> int:
    """Drop the sign and the first ``100`` from a channel ID."""
    digits = str(abs(value)).replace("100", "", 1)
    if not digits:
        raise ConfigError(f"cannot strip channel ID {value}")
    return int(digits)


def normalize_hash_length(length: int) -> int:
    """Bring a link hash length into the allowed range."""
    if length == 0:
        log.info("HASH_LENGTH can't be 0, defaulting to %d", DEFAULT_HASH_LENGTH)
        return DEFAULT_HASH_LENGTH
    if length > MAX_HASH_LENGTH:
        log.info("HASH_LENGTH can't be more than %d, changing to %d", MAX_HASH_LENGTH, MAX_HASH_LENGTH)
        return MAX_HASH_LENGTH
    if length < MIN_HASH_LENGTH:
        log.info("HASH_LENGTH can't be less than %d, defaulting to %d", MIN_HASH_LENGTH, DEFAULT_HASH_LENGTH)
        return DEFAULT_HASH_LENGTH
    return length


def collect_multi_tokens(environ: Mapping[str, str]) -> list[str]:
    """Return the values of ``MULTI_TOKEN<n>`` variables in mapping order."""
    tokens = []
    for key, value in environ.items():
        entry = f"{key}={value}"
        if not entry.startswith("MULTI_TOKEN"):
            continue
        match = _MULTI_TOKEN_RE.search(entry)
        if match:
            tokens.append(match.group(1))
    return tokens


def _get_internal_ip() -> str:
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(_PROBE_ADDRESS)
            return sock.getsockname()[0]
    except OSError as exc:
        raise ConnectionError("no internet connection") from exc


def _is_reachable(ip: str) -> bool:
    try:
        with socket.create_connection((ip, 80), timeout=_NETWORK_TIMEOUT):
            return True
    except OSError:
        return False


def get_public_ip() -> str:
    """Look up the public IP and check that port 80 on it can be reached."""
    with urllib.request.urlopen(PUBLIC_IP_SERVICE, timeout=_NETWORK_TIMEOUT) as response:
        ip = response.read().decode("utf-8").strip()
    if not _is_reachable(ip):
        raise ConnectionError("PORT is blocked by firewall")
    return ip


def get_ip(public: bool) -> str:
    """Return the public or local IP; raises ``OSError`` when it cannot be found."""
    ip = get_public_ip() if public else _get_internal_ip()
    return ip or "localhost"


def _read_env_file(env_file: str | os.PathLike[str]) -> dict[str, str]:
    path = Path(env_file)
    log.info("Trying to load ENV vars from %s", path)
    if not path.is_file():
        log.error("ENV file not found: %s", path)
        log.info("Please create %s file", path.name)
        log.info("Please ignore this message if you are hosting it in a service that sets the environment.")
        return {}
    try:
        values = dotenv_values(path)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Unknown error while parsing env file: {exc}") from exc
    return {key: value for key, value in values.items() if value is not None}


def _overrides_to_env(overrides: Mapping[str, Any]) -> dict[str, str]:
    env = {}
    for name, value in overrides.items():
        try:
            key = _ENV_KEYS[name]
        except KeyError:
            raise ConfigError(f"unknown option {name!r}") from None
        if not value:
            continue
        env[key] = "true" if value is True else str(value)
    return env


def _parse_fields(env: Mapping[str, str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for name, key, parse, default in _FIELDS:
        raw = env.get(key)
        if raw is None:
            if default is _REQUIRED:
                raise ConfigError(f"required key {key} missing value")
            if default is None:
                continue
            raw = default
        try:
            values[name] = parse(raw)
        except ValueError as exc:
            raise ConfigError(f"cannot parse {key}={raw!r}: {exc}") from exc
    return values


def _resolve_host(config: Config) -> str:
    ip_blocked = False
    try:
        ip = get_ip(config.use_public_ip)
    except OSError as exc:
        log.error("Error while getting IP: %s", exc)
        ip = "localhost"
        ip_blocked = True
    host = f"http://{ip}:{config.port}"
    if config.use_public_ip:
        if ip_blocked:
            log.warning("Can't get public IP, using local IP")
        else:
            log.warning(
                "You are using a public IP, please be aware of the security risks "
                "while exposing your IP to the internet."
            )
            log.warning("Use 'HOST' variable to set a domain name")
    log.info("HOST not set, automatically set to %s", host)
    return host


def load_config(
    overrides: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
    env_file: str | os.PathLike[str] | None = DEFAULT_ENV_FILE,
) -> Config:
    """Build the configuration.

    Values in ``env_file`` are used unless ``environ`` (the process environment
    by default) sets them; truthy ``overrides``, keyed by field name, win over both.
    """
    env: dict[str, str] = _read_env_file(env_file) if env_file is not None else {}
    env.update(os.environ if environ is None else environ)
    env.update(_overrides_to_env(overrides or {}))

    config = Config(**_parse_fields(env))
    if not config.host:
        config.host = _resolve_host(config)
    config.multi_tokens = collect_multi_tokens(env)
    config.log_channel_id = strip_int(config.log_channel_id)
    config.hash_length = normalize_hash_length(config.hash_length)
    log.info("Loaded config")
    return config


def _iter_field_keys() -> Iterable[str]:
    return (key for _, key, _, _ in _FIELDS)