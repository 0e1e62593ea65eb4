from __future__ import annotations

import os
import sys
import tomllib
from pathlib import Path
from typing import Any

import tomli_w
from pydantic import BaseModel, Field, ValidationError

from r2pilot.core.errors.exceptions import (
    ConfigError,
    ConfigNotFoundError,
    InvalidConfigError,
    InvalidInputError,
)

CONFIG_DIR_NAME = "r2pilot"
CONFIG_FILE_NAME = "config.toml"

ACCOUNT_ID_LENGTH = 32
MAX_EXPIRATION_SECONDS = 604800  # 7 days


class CloudflareConfig(BaseModel):
    account_id: str
    endpoint: str

    # API token (preferred) or an access key pair, never both.
    api_token: str | None = None
    access_key_id: str | None = None
    secret_access_key: str | None = None

    @property
    def has_api_token(self) -> bool:
        return bool(self.api_token)

    @property
    def has_access_keys(self) -> bool:
        return bool(self.access_key_id) and bool(self.secret_access_key)


class R2Config(BaseModel):
    default_bucket: str
    region: str = "auto"
    default_expiration: int = Field(7200, ge=0)


class AdvancedConfig(BaseModel):
    timeout: int = Field(30, ge=1)
    max_retries: int = Field(3, ge=0)
    retry_delay: int = Field(1000, ge=0)
    max_concurrent_uploads: int = Field(5, ge=1)
    # Multipart chunk size in MB.
    multipart_chunk_size_mb: int = Field(100, ge=1)


class LoggingConfig(BaseModel):
    level: str = "info"
    format: str = "pretty"
    file: str | None = None


class OutputConfig(BaseModel):
    default_format: str = "table"
    color: str = "auto"


class ConfigFile(BaseModel):
    cloudflare: CloudflareConfig
    r2: R2Config
    advanced: AdvancedConfig | None = None
    logging: LoggingConfig | None = None
    output: OutputConfig | None = None

    @property
    def auth_method(self) -> str:
        return "api_token" if self.cloudflare.has_api_token else "access_keys"

    def advanced_or_default(self) -> AdvancedConfig:
        return self.advanced or AdvancedConfig()

    def logging_or_default(self) -> LoggingConfig:
        return self.logging or LoggingConfig()

    def output_or_default(self) -> OutputConfig:
        return self.output or OutputConfig()


def endpoint_for_account(account_id: str) -> str:
    return f"https://{account_id.strip()}.r2.cloudflarestorage.com"


def get_config_dir() -> Path:
    override = (os.getenv("R2PILOT_CONFIG_DIR") or "").strip()
    if override:
        config_dir = Path(override).expanduser()
    else:
        config_dir = Path.home() / ".config" / CONFIG_DIR_NAME

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigError(f"Failed to create config directory: {exc}") from exc
    return config_dir


def get_config_path() -> Path:
    return get_config_dir() / CONFIG_FILE_NAME


def config_exists() -> bool:
    try:
        return get_config_path().exists()
    except ConfigError:
        return False


def load_config(path: Path | None = None) -> ConfigFile:
    config_path = path or get_config_path()
    if not config_path.exists():
        raise ConfigNotFoundError(config_path)

    try:
        with config_path.open("rb") as fp:
            payload = tomllib.load(fp)
    except OSError as exc:
        raise InvalidConfigError(f"Failed to read config file: {exc}", cause=exc) from exc
    except tomllib.TOMLDecodeError as exc:
        raise InvalidConfigError(f"Failed to parse config file: {exc}", cause=exc) from exc

    try:
        return ConfigFile.model_validate(payload)
    except ValidationError as exc:
        raise InvalidConfigError(f"Failed to parse config file: {exc}", cause=exc) from exc


def dump_config(config: ConfigFile) -> str:
    return tomli_w.dumps(config.model_dump(exclude_none=True))


def save_config(config: ConfigFile, path: Path | None = None) -> Path:
    config_path = path or get_config_path()
    content = dump_config(config)

    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        config_path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write config file: {exc}") from exc

    # Credentials live in this file: owner read/write only.
    if sys.platform != "win32":
        os.chmod(config_path, 0o600)

    return config_path


def validate_config(config: ConfigFile) -> None:
    account_id = config.cloudflare.account_id
    if len(account_id) != ACCOUNT_ID_LENGTH:
        raise InvalidInputError(
            f"Invalid Account ID format (expected {ACCOUNT_ID_LENGTH} characters, got {len(account_id)})"
        )

    has_api_token = config.cloudflare.has_api_token
    has_access_keys = config.cloudflare.has_access_keys

    if not has_api_token and not has_access_keys:
        raise ConfigError(
            "No authentication method configured. "
            "Either api_token or access_key_id + secret_access_key must be set"
        )
    if has_api_token and has_access_keys:
        raise ConfigError(
            "Both api_token and access keys are configured. Keep exactly one authentication method"
        )

    if not config.r2.default_bucket:
        raise InvalidInputError("Bucket name cannot be empty")

    if config.r2.default_expiration > MAX_EXPIRATION_SECONDS:
        raise InvalidInputError(
            f"Default expiration cannot exceed 7 days ({MAX_EXPIRATION_SECONDS} seconds)"
        )


_SECTION_MODELS: dict[str, type[BaseModel]] = {
    "cloudflare": CloudflareConfig,
    "r2": R2Config,
    "advanced": AdvancedConfig,
    "logging": LoggingConfig,
    "output": OutputConfig,
}


def settable_keys() -> list[str]:
    keys: list[str] = []
    for section, model in _SECTION_MODELS.items():
        keys.extend(f"{section}.{name}" for name in model.model_fields)
    return keys


def set_config_value(config: ConfigFile, dotted_key: str, raw_value: str) -> ConfigFile:
    """Return a copy of ``config`` with one ``section.field`` value replaced.

    An empty value clears an optional field. The result is validated by
    pydantic (types, ranges) and by :func:`validate_config`.
    """
    section, _, name = (dotted_key or "").strip().partition(".")
    model = _SECTION_MODELS.get(section)
    if model is None or name not in model.model_fields:
        raise InvalidInputError(
            f"Unknown configuration key: {dotted_key}",
            detail={"valid_keys": settable_keys()},
        )

    payload: dict[str, Any] = config.model_dump()
    section_payload = payload.get(section) or {}

    value: Any = raw_value
    if raw_value == "" and not model.model_fields[name].is_required():
        value = None

    section_payload[name] = value
    payload[section] = section_payload

    try:
        updated = ConfigFile.model_validate(payload)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid value for {dotted_key}: {raw_value!r}", detail=str(exc)) from exc

    if section == "cloudflare" and name == "account_id":
        updated.cloudflare.endpoint = endpoint_for_account(updated.cloudflare.account_id)

    validate_config(updated)
    return updated
