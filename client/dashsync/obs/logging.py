"""Structured JSON logging with per-session context for dashsync."""

from __future__ import annotations

import json
import logging
import random
from contextvars import ContextVar, Token
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from dashsync.settings import settings

_LOGGER_NAME = "dashsync"

# Fields bound by the reconciler and the connection manager; emitted when set.
_CONTEXT: Dict[str, ContextVar[Optional[str]]] = {
	"subject_id": ContextVar("dashsync_subject_id", default=None),
	"subject_type": ContextVar("dashsync_subject_type", default=None),
	"sid": ContextVar("dashsync_sid", default=None),
}

_SENSITIVE_KEYWORDS = (
	"token",
	"secret",
	"authorization",
	"password",
	"credential",
	"email",
	"phone",
)

_MAX_STRING_LENGTH = 256
_MAX_COLLECTION_ITEMS = 10
_ELLIPSIS = "…"

_RECORD_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


def bind_context(
	*,
	subject_id: Optional[str] = None,
	subject_type: Optional[str] = None,
	sid: Optional[str] = None,
) -> Dict[str, Token]:
	"""Bind the given fields for the current task; pass the result to ``reset_context``."""
	values = {"subject_id": subject_id, "subject_type": subject_type, "sid": sid}
	return {name: _CONTEXT[name].set(value) for name, value in values.items() if value is not None}


def reset_context(tokens: Dict[str, Token]) -> None:
	for name, token in tokens.items():
		_CONTEXT[name].reset(token)


def clear_context() -> None:
	for var in _CONTEXT.values():
		var.set(None)


def current_context() -> Dict[str, str]:
	return {name: value for name, var in _CONTEXT.items() if (value := var.get())}


def _redact(key: str, value: Any) -> Any:
	if any(keyword in key.lower() for keyword in _SENSITIVE_KEYWORDS):
		return "[redacted]"
	return _jsonable(value)


def _jsonable(value: Any) -> Any:
	if value is None or isinstance(value, (bool, int, float)):
		return value
	if isinstance(value, Enum):
		return _jsonable(value.value)
	if isinstance(value, str):
		if len(value) > _MAX_STRING_LENGTH:
			return value[:_MAX_STRING_LENGTH] + _ELLIPSIS
		return value
	if is_dataclass(value) and not isinstance(value, type):
		return _jsonable(asdict(value))
	if isinstance(value, dict):
		items = list(value.items())
		result = {str(key): _redact(str(key), nested) for key, nested in items[:_MAX_COLLECTION_ITEMS]}
		if len(items) > _MAX_COLLECTION_ITEMS:
			result[_ELLIPSIS] = f"+{len(items) - _MAX_COLLECTION_ITEMS} keys"
		return result
	if isinstance(value, (list, tuple, set, frozenset)):
		items = [_jsonable(item) for item in list(value)[:_MAX_COLLECTION_ITEMS]]
		if len(value) > _MAX_COLLECTION_ITEMS:
			items.append(_ELLIPSIS)
		return items
	return str(value)


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record: base fields, bound context, then sanitized extras."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, Any] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
		}
		payload.update(current_context())
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key in _RECORD_ATTRS or key in payload:
				continue
			payload[key] = _redact(key, value)
		return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


class InfoSamplingFilter(logging.Filter):
	"""Randomly sample info-level logs, keep everything else."""

	def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
		if record.levelno != logging.INFO:
			return True
		rate = max(0.0, min(1.0, settings.obs_log_sampling_rate_info))
		return rate >= 1.0 or random.random() < rate


def configure_logging() -> logging.Logger:
	"""Install the JSON handler on the root logger."""
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	handler.addFilter(InfoSamplingFilter())
	root = logging.getLogger()
	root.handlers.clear()
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
	return logging.getLogger(_LOGGER_NAME)


def get_logger(name: Optional[str] = None) -> logging.Logger:
	return logging.getLogger(name or _LOGGER_NAME)
