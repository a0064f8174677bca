"""Exception types raised inside dashsync.

Recoverable conditions are absorbed by the reconciler and expressed as
state (empty snapshot, offline flag). Only programmer errors escape.
"""

from __future__ import annotations

from typing import Optional


class DashsyncError(Exception):
	"""Base class for dashsync errors."""


class SnapshotFetchError(DashsyncError):
	"""The REST snapshot endpoint failed or reported ``success: false``."""

	def __init__(self, reason: str, *, status_code: Optional[int] = None) -> None:
		super().__init__(reason)
		self.reason = reason
		self.status_code = status_code


class NotConfiguredError(DashsyncError):
	"""A component was used before the container wired it."""
