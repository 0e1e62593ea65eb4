from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from loguru import logger
from rich.console import Console

from r2pilot.core.cloudflare.client import CloudflareClient
from r2pilot.core.config import ConfigFile, load_config, validate_config
from r2pilot.core.errors.exceptions import ConfigError
from r2pilot.core.storage.r2 import R2Settings, R2Storage

OUTPUT_FORMATS = ("table", "json")

CloudflareFactory = Callable[[ConfigFile], CloudflareClient]
StorageFactory = Callable[[R2Settings], R2Storage]


def _default_cloudflare(config: ConfigFile) -> CloudflareClient:
    return CloudflareClient(
        api_token=config.cloudflare.api_token or "",
        account_id=config.cloudflare.account_id,
        timeout_seconds=config.advanced_or_default().timeout,
    )


def _default_storage(settings: R2Settings) -> R2Storage:
    return R2Storage(settings=settings)


@dataclass
class CommandContext:
    """What every command handler receives: consoles, output format and client factories."""

    console: Console
    err_console: Console
    output: str = "table"
    verbose: bool = False
    config_path: Path | None = None
    cloudflare_factory: CloudflareFactory = _default_cloudflare
    storage_factory: StorageFactory = _default_storage
    _config: ConfigFile | None = field(default=None, init=False, repr=False)

    @property
    def json_output(self) -> bool:
        return self.output == "json"

    def load_config(self, *, validate: bool = True) -> ConfigFile:
        if self._config is None:
            config = load_config(self.config_path)
            if validate:
                validate_config(config)
            self._config = config
        return self._config

    def cloudflare(self, *, purpose: str = "this command") -> CloudflareClient:
        config = self.load_config()
        if not config.cloudflare.has_api_token:
            raise ConfigError(
                f"API Token required for {purpose}",
                hint=(
                    "Add 'api_token' to your configuration. "
                    "Get an API Token from: https://dash.cloudflare.com/profile/api-tokens"
                ),
            )
        return self.cloudflare_factory(config)

    def storage(self, *, bucket: str | None = None) -> R2Storage:
        config = self.load_config()

        def verify_token() -> str:
            client = self.cloudflare_factory(config)
            try:
                return client.verify_token().id
            finally:
                client.close()

        settings = R2Settings.from_config(config, bucket=bucket, verify_token=verify_token)
        logger.debug("Using bucket {} at {}", settings.bucket_name, settings.endpoint_url)
        return self.storage_factory(settings)

    def bucket_name(self, bucket: str | None = None) -> str:
        return bucket or self.load_config().r2.default_bucket
