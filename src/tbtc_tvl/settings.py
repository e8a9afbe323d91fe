"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import DEFAULT_REPORT_VERSION, DEFAULT_RPC_URLS
from .domain import Chain
from .retry import PermanentError, RetryPolicy

load_dotenv()

SECRET_FIELDS = frozenset({"thegraph_api_key"})


class ExtractorConfigError(PermanentError):
    """A required setting for an extractor is missing."""


class TvlSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with TBTC_TVL_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- paths / report ---
    worklist_path: Path = Path("data/use-tbtc-protocols.json")
    output_dir: Path = Path("data/output")
    report_version: str = DEFAULT_REPORT_VERSION

    # --- requests and retries ---
    request_timeout: float = Field(default=10.0, gt=0)
    retries: int = Field(default=3, ge=1)
    retry_initial_delay: float = Field(default=1.0, gt=0)
    retry_max_delay: float = Field(default=10.0, gt=0)
    retry_multiplier: float = Field(default=2.0, ge=1)
    extraction_attempt_timeout: float | None = Field(default=None, gt=0)
    max_concurrency: int = Field(default=4, ge=1)
    global_timeout_seconds: float | None = None

    # --- data sources ---
    thegraph_api_key: SecretStr | None = None
    ethereum_rpc: str = DEFAULT_RPC_URLS[Chain.ETHEREUM]
    arbitrum_rpc: str = DEFAULT_RPC_URLS[Chain.ARBITRUM]
    base_rpc: str = DEFAULT_RPC_URLS[Chain.BASE]
    optimism_rpc: str = DEFAULT_RPC_URLS[Chain.OPTIMISM]
    starknet_rpc: str = DEFAULT_RPC_URLS[Chain.STARKNET]
    sui_rpc: str = DEFAULT_RPC_URLS[Chain.SUI]

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="TBTC_TVL_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("thegraph_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr; treat empty strings as unset."""
        if v is None or isinstance(v, SecretStr):
            return v
        if isinstance(v, str) and not v.strip():
            return None
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def validate_retry_delays(self) -> "TvlSettings":
        """Validate that the initial retry delay does not exceed the cap."""
        if self.retry_initial_delay > self.retry_max_delay:
            raise ValueError(
                f"retry_initial_delay ({self.retry_initial_delay}) "
                f"must not exceed retry_max_delay ({self.retry_max_delay})"
            )
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("TBTC_TVL_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("tbtc-tvl.toml")
                    user_config = Path.home() / ".config" / "tbtc-tvl" / "config.toml"
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [tbtc_tvl]
                body = data.get("tbtc_tvl", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a JSON-friendly dict with secrets redacted."""
        data = self.model_dump(mode="json")
        for key in SECRET_FIELDS:
            if getattr(self, key):
                data[key] = "***redacted***"
        return data

    @property
    def retry_policy(self) -> RetryPolicy:
        """Retry policy applied to every extraction attempt."""
        return RetryPolicy(
            max_attempts=self.retries,
            initial_delay=self.retry_initial_delay,
            max_delay=self.retry_max_delay,
            multiplier=self.retry_multiplier,
            attempt_timeout=self.extraction_attempt_timeout,
        )

    def rpc_url(self, chain: Chain) -> str:
        """RPC endpoint configured for ``chain``."""
        return getattr(self, f"{chain.value}_rpc")

    @property
    def thegraph_api_key_required(self) -> str:
        """Get the The Graph gateway key, raising ExtractorConfigError if not set."""
        if self.thegraph_api_key is None:
            raise ExtractorConfigError(
                "thegraph_api_key must be configured (TBTC_TVL_THEGRAPH_API_KEY)"
            )
        return self.thegraph_api_key.get_secret_value()
