"""Minimal in-process event bus used to notify UI consumers."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from dashsync.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Any]


class Dispatcher:
	"""Register, unregister and emit callbacks by string key.

	Duplicate registrations are kept and each one fires; callers own their
	``off`` discipline. ``emit`` is synchronous and isolates failures per
	callback so one broken subscriber never starves the others.
	"""

	def __init__(self) -> None:
		self._listeners: Dict[str, List[Callback]] = {}

	def on(self, event: str, callback: Callback) -> None:
		self._listeners.setdefault(event, []).append(callback)

	def off(self, event: str, callback: Optional[Callback] = None) -> None:
		callbacks = self._listeners.get(event)
		if callbacks is None:
			return
		if callback is None:
			del self._listeners[event]
			return
		try:
			callbacks.remove(callback)
		except ValueError:
			return
		if not callbacks:
			del self._listeners[event]

	def emit(self, event: str, payload: Any = None) -> None:
		# Iterate over a copy so callbacks may unsubscribe themselves.
		for callback in list(self._listeners.get(event, ())):
			try:
				callback(payload)
			except Exception:
				obs_metrics.dispatch_failure(event)
				logger.exception("dispatcher callback failed", extra={"event": event})

	def listener_count(self, event: str) -> int:
		return len(self._listeners.get(event, ()))

	def clear(self) -> None:
		self._listeners.clear()
