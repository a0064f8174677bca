"""In-flight flags that stop re-entrant async operations."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Hashable, Iterator, Set

from dashsync.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class InFlightGuard:
	"""One boolean flag per logical operation key.

	``try_enter`` returns False when the operation is already running; the
	caller must then skip it. Whoever entered must call ``leave`` from a
	``finally`` block so a failure never blocks later attempts.
	"""

	def __init__(self, name: str) -> None:
		self.name = name
		self._active: Set[Hashable] = set()

	def try_enter(self, key: Hashable = None) -> bool:
		if key in self._active:
			obs_metrics.guard_skip(self.name)
			logger.debug("operation already in flight", extra={"operation": self.name, "key": str(key)})
			return False
		self._active.add(key)
		return True

	def leave(self, key: Hashable = None) -> None:
		self._active.discard(key)

	def is_active(self, key: Hashable = None) -> bool:
		return key in self._active

	@contextmanager
	def entered(self, key: Hashable = None) -> Iterator[bool]:
		"""Yield whether the guard was acquired; release on exit if it was."""
		acquired = self.try_enter(key)
		try:
			yield acquired
		finally:
			if acquired:
				self.leave(key)
