"""Server configuration — upstream API, credentials, inference and transport settings.

Configuration is read once at startup and passed explicitly to the dispatcher
and tool handlers. Environment variables supply the base values; an optional
YAML file overrides them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from earnings_mcp.errors import ConfigError

DEFAULT_API_URL = "https://earnings.bforecast.workers.dev"
DEFAULT_REMOTE_URL = "https://earnings-mcp-server.brilliantforecast.workers.dev/mcp"
DEFAULT_AI_MODEL = "cloudflare/@cf/meta/llama-3.1-8b-instruct"
DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful financial analyst assistant. Provide concise, data-driven "
    "insights based on the provided portfolio and stock data."
)

_CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4/accounts/{account_id}/ai/run/"


class InferenceConfig(BaseModel):
    """Text-completion provider settings.

    The ``model`` field uses LiteLLM's naming convention:
    ``provider/model_name`` (e.g. ``cloudflare/@cf/meta/llama-3.1-8b-instruct``).
    """

    model: str = DEFAULT_AI_MODEL
    api_key: str | None = None
    account_id: str | None = None
    api_base: str | None = None
    timeout: float = Field(default=120.0, gt=0)
    max_context_chars: int = Field(default=4000, ge=200)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT

    @property
    def provider(self) -> str:
        """Extract the provider prefix from the model string."""
        if "/" in self.model:
            return self.model.split("/", 1)[0]
        return "openai"

    @property
    def resolved_api_base(self) -> str | None:
        """Explicit ``api_base``, or the account-scoped Cloudflare endpoint."""
        if self.api_base:
            return self.api_base
        if self.provider == "cloudflare" and self.account_id:
            return _CLOUDFLARE_API_BASE.format(account_id=self.account_id)
        return None

    @property
    def is_configured(self) -> bool:
        if not self.api_key:
            return False
        if self.provider == "cloudflare":
            return self.resolved_api_base is not None
        return True


class TelemetryConfig(BaseModel):
    """Optional tracing configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class ServerConfig(BaseModel):
    """Top-level configuration shared by every transport."""

    api_url: str = DEFAULT_API_URL
    shared_secret: str | None = None
    auth_cookie: str | None = None
    request_timeout: float = Field(default=30.0, gt=0)
    remote_url: str = DEFAULT_REMOTE_URL
    host: str = "127.0.0.1"
    port: int = Field(default=8787, ge=1, le=65535)
    log_level: str = "INFO"
    ai: InferenceConfig = Field(default_factory=InferenceConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    def auth_headers(self) -> dict[str, str]:
        """Headers authenticating against the data provider.

        The shared secret wins over the cookie when both are set.
        """
        if self.shared_secret:
            return {"X-Auth-Token": self.shared_secret}
        if self.auth_cookie:
            return {"Cookie": self.auth_cookie}
        return {}


# Environment variable -> dotted config path. The first variable found wins
# for paths listed more than once.
_ENV_MAP: list[tuple[str, str]] = [
    ("EARNINGS_API_URL", "api_url"),
    ("MCP_SHARED_SECRET", "shared_secret"),
    ("AUTH_COOKIE", "auth_cookie"),
    ("EARNINGS_REQUEST_TIMEOUT", "request_timeout"),
    ("EARNINGS_MCP_URL", "remote_url"),
    ("EARNINGS_MCP_HOST", "host"),
    ("EARNINGS_MCP_PORT", "port"),
    ("EARNINGS_LOG_LEVEL", "log_level"),
    ("EARNINGS_AI_MODEL", "ai.model"),
    ("EARNINGS_AI_API_KEY", "ai.api_key"),
    ("CLOUDFLARE_API_TOKEN", "ai.api_key"),
    ("CLOUDFLARE_ACCOUNT_ID", "ai.account_id"),
    ("EARNINGS_AI_API_BASE", "ai.api_base"),
    ("EARNINGS_AI_TIMEOUT", "ai.timeout"),
    ("EARNINGS_TELEMETRY", "telemetry.enabled"),
    ("OTEL_EXPORTER_OTLP_ENDPOINT", "telemetry.otlp_endpoint"),
]


def _env_values(environ: Mapping[str, str]) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for var, path in _ENV_MAP:
        value = environ.get(var)
        if not value:
            continue
        section, _, key = path.rpartition(".")
        target = data.setdefault(section, {}) if section else data
        target.setdefault(key, value)
    return data


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _read_yaml(path: Path) -> dict[str, Any]:
    """Read a YAML config file, expanding ``${VAR}`` references first."""
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    expanded = os.path.expandvars(raw)

    try:
        data: Any = yaml.safe_load(expanded)
    except yaml.YAMLError as exc:
        raise ConfigError(f"YAML parse error: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError("Config YAML must be a mapping")
    return data


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServerConfig:
    """Build the :class:`ServerConfig` for this process.

    Raises:
        ConfigError: On unreadable files, YAML errors or validation failures.
    """
    env = os.environ if environ is None else environ
    data = _env_values(env)
    if path is not None:
        data = _merge(data, _read_yaml(Path(path)))

    try:
        return ServerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
