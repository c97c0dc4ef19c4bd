"""
config.py
- Defines configuration values derived from environment variables.
- Settings are bound once at startup and passed explicitly into the cleanup engine.
- CLI flags (cli/entrypoint.py) override environment values.
"""

import os
import sys
from dataclasses import dataclass, fields, replace
from typing import Optional

from loguru import logger

from docker_cleanup.core.constants import DEFAULT_DISK_SPACE_IMAGE
from docker_cleanup.core.errors import ConfigError
from docker_cleanup.lib.units import parse_bytes, parse_duration

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}

# --- Runtime Behavior Flags ---
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = "DEBUG" if DEBUG else os.getenv("LOG_LEVEL", "INFO").upper()
SENTRY_DSN = os.getenv("SENTRY_DSN")

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def parse_bool(value):
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in TRUE_VALUES:
        return True
    if text in FALSE_VALUES:
        return False
    raise ConfigError(f"invalid boolean: {value!r}")


def parse_count(value):
    try:
        count = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"invalid count: {value!r}") from None
    if count < 0:
        raise ConfigError(f"count must not be negative: {value!r}")
    return count


@dataclass(frozen=True)
class Settings:
    check_path: str = "/"
    low_free_space: int = parse_bytes("1GB")
    expected_free_space: int = parse_bytes("2GB")
    low_free_files_count: int = 128 * 1024
    expected_free_files_count: int = 256 * 1024
    use_df: bool = False
    check_interval: float = 10.0
    retry_interval: float = 30.0
    default_ttl: float = 60.0
    protected_images_file: Optional[str] = None
    disk_space_image: str = DEFAULT_DISK_SPACE_IMAGE
    docker_api_version: str = "auto"
    docker_timeout: int = 60
    api_enabled: bool = True
    api_port: int = 6060


# env var -> (field, parser)
ENV_OPTIONS = {
    "CHECK_PATH": ("check_path", str),
    "LOW_FREE_SPACE": ("low_free_space", parse_bytes),
    "EXPECTED_FREE_SPACE": ("expected_free_space", parse_bytes),
    "LOW_FREE_FILES_COUNT": ("low_free_files_count", parse_count),
    "EXPECTED_FREE_FILES_COUNT": ("expected_free_files_count", parse_count),
    "USE_DF": ("use_df", parse_bool),
    "CHECK_INTERVAL": ("check_interval", parse_duration),
    "RETRY_INTERVAL": ("retry_interval", parse_duration),
    "DEFAULT_TTL": ("default_ttl", parse_duration),
    "PROTECTED_IMAGES_FILE": ("protected_images_file", str),
    "DISK_SPACE_IMAGE": ("disk_space_image", str),
    "DOCKER_API_VERSION": ("docker_api_version", str),
    "DOCKER_TIMEOUT": ("docker_timeout", parse_count),
    "API_ENABLED": ("api_enabled", parse_bool),
    "API_PORT": ("api_port", parse_count),
}


def load_settings(environ=None, overrides=None):
    """
    Build Settings from environment variables, then apply explicit overrides.

    Args:
        environ (Mapping[str, str] | None): Environment to read, defaults to os.environ.
        overrides (dict | None): Field values (already parsed or raw strings) taking precedence.

    Returns:
        Settings: The bound configuration.

    Raises:
        ConfigError: if any value fails to parse.
    """
    environ = os.environ if environ is None else environ
    parsers = {name: parser for name, parser in ENV_OPTIONS.values()}
    values = {}

    for env_name, (field_name, parser) in ENV_OPTIONS.items():
        raw = environ.get(env_name)
        if raw is None or raw == "":
            continue
        try:
            values[field_name] = parser(raw)
        except ConfigError as e:
            raise ConfigError(f"{env_name}: {e}") from None

    for field_name, raw in (overrides or {}).items():
        if raw is None:
            continue
        if isinstance(raw, str):
            try:
                raw = parsers[field_name](raw)
            except ConfigError as e:
                raise ConfigError(f"--{field_name.replace('_', '-')}: {e}") from None
        values[field_name] = raw

    settings = replace(Settings(), **values)
    validate(settings)
    return settings


def validate(settings):
    if settings.expected_free_space < settings.low_free_space:
        logger.warning(
            "[config] EXPECTED_FREE_SPACE is below LOW_FREE_SPACE; cleanup will stop as soon as the trigger clears."
        )
    if settings.expected_free_files_count < settings.low_free_files_count:
        logger.warning(
            "[config] EXPECTED_FREE_FILES_COUNT is below LOW_FREE_FILES_COUNT; cleanup will stop as soon as the trigger clears."
        )
    for name in ("check_interval", "retry_interval", "default_ttl"):
        if getattr(settings, name) < 0:
            raise ConfigError(f"{name} must not be negative")


def describe(settings):
    """Return a printable list of 'name = value' lines for startup logging."""
    return [f"{f.name} = {getattr(settings, f.name)!r}" for f in fields(settings)]


def setup_logging(level=None):
    logger.remove()
    logger.add(
        sink=sys.stderr,
        level=level or LOG_LEVEL,
        format=LOG_FORMAT,
        colorize=True,
    )
