"""Shared primitives used by the dashboard services."""

from dashsync.domain.common.dispatcher import Dispatcher
from dashsync.domain.common.guard import InFlightGuard

__all__ = ["Dispatcher", "InFlightGuard"]
