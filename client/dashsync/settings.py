"""Settings for the dashsync realtime client with observability configuration."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_field(default, *env_names: str):
	if env_names:
		alias = AliasChoices(*env_names) if len(env_names) > 1 else env_names[0]
		return Field(default=default, validation_alias=alias)
	return Field(default=default)


class Settings(BaseSettings):
	api_base_url: str = _env_field("http://localhost:5000/api", "API_BASE_URL")
	socket_url: Optional[str] = _env_field(None, "SOCKET_URL", "REACT_APP_SOCKET_URL")
	socket_transports: Any = _env_field(("websocket",), "SOCKET_TRANSPORTS")
	# Fixed backoff: delay_max is pinned to the delay and jitter is disabled.
	socket_reconnection_attempts: int = _env_field(5, "SOCKET_RECONNECTION_ATTEMPTS")
	socket_reconnection_delay: float = _env_field(1.0, "SOCKET_RECONNECTION_DELAY")
	socket_wait_timeout: float = _env_field(5.0, "SOCKET_WAIT_TIMEOUT")
	http_timeout_seconds: float = _env_field(10.0, "HTTP_TIMEOUT_SECONDS")
	auth_token: Optional[str] = _env_field(None, "AUTH_TOKEN")

	environment: str = _env_field("production", "ENV", "APP_ENV", "ENVIRONMENT")
	obs_enabled: bool = _env_field(True, "OBS_ENABLED")
	obs_log_level: str = _env_field("INFO", "LOG_LEVEL")
	obs_log_sampling_rate_info: float = _env_field(1.0, "LOG_SAMPLING_RATE_INFO")
	service_name: str = _env_field("dashsync", "SERVICE_NAME")

	# Per event type override of the reconciler policy: {"job_saved": "patch"}
	event_policies: Any = _env_field({}, "EVENT_POLICIES")

	model_config = SettingsConfigDict(
		env_prefix="",
		env_file=".env",
		case_sensitive=False,
		env_nested_delimiter="__",
	)

	def is_prod(self) -> bool:
		return self.environment.lower() in ("prod", "production", "live")

	def is_dev(self) -> bool:
		return self.environment.lower() in ("dev", "development")

	def resolved_socket_url(self) -> str:
		"""Socket endpoint; falls back to the API origin without the ``/api`` suffix."""
		if self.socket_url:
			return self.socket_url
		base = self.api_base_url.rstrip("/")
		if base.endswith("/api"):
			base = base[: -len("/api")]
		return base

	@field_validator("socket_transports", mode="before")
	def _split_transports(cls, value: Any):  # type: ignore[override]
		if value in (None, ""):
			return ("websocket",)
		if isinstance(value, str):
			text = value.strip()
			if text.startswith("["):
				try:
					value = json.loads(text)
				except json.JSONDecodeError:
					value = text.strip("[]")
			if isinstance(value, str):
				return tuple(part.strip() for part in value.split(",") if part.strip())
		if isinstance(value, (list, tuple, set)):
			return tuple(str(item).strip() for item in value if str(item).strip())
		return ("websocket",)

	@field_validator("event_policies", mode="before")
	def _parse_policies(cls, value: Any):  # type: ignore[override]
		"""Accept a JSON object or ``type=policy`` pairs separated by commas."""
		if value in (None, ""):
			return {}
		if isinstance(value, dict):
			return {str(k): str(v).lower() for k, v in value.items()}
		if isinstance(value, str):
			text = value.strip()
			if text.startswith("{"):
				try:
					data = json.loads(text)
				except json.JSONDecodeError:
					return {}
				if isinstance(data, dict):
					return {str(k): str(v).lower() for k, v in data.items()}
				return {}
			pairs: Dict[str, str] = {}
			for part in text.split(","):
				key, sep, policy = part.partition("=")
				if sep and key.strip() and policy.strip():
					pairs[key.strip()] = policy.strip().lower()
			return pairs
		return {}


def _normalise_level(level: str) -> str:
	return level.upper()


settings = Settings()
settings.obs_log_level = _normalise_level(settings.obs_log_level)
