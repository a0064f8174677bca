"""Bindings from Socket.IO wire events onto a dashboard reconciler."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Dict, Optional

from .activity import parse_time
from .models import EventType, NormalizedEvent
from .normalizer import normalize
from .service import DashboardReconciler, NOTIFICATION

logger = logging.getLogger(__name__)

WIRE_EVENTS = {
	"job-viewed": EventType.JOB_VIEWED,
	"job-saved": EventType.JOB_SAVED,
	"job-unsaved": EventType.JOB_UNSAVED,
	"application-created": EventType.APPLICATION_CREATED,
	"application-updated": EventType.APPLICATION_UPDATED,
	"profile-updated": EventType.PROFILE_UPDATED,
	"interview-scheduled": EventType.INTERVIEW_SCHEDULED,
}
ENVELOPE_EVENT = "student-dashboard-update"
NOTIFICATION_EVENT = "notification"

# Handlers registered per reconciler, kept until its unbind.
_bound: Dict[DashboardReconciler, Dict[str, Callable[..., None]]] = {}


def event_timestamp(data: Any) -> datetime:
	"""Upstream ``timestamp`` when it parses, otherwise receipt time."""
	raw = data.get("timestamp") if isinstance(data, dict) else None
	return parse_time(raw) or datetime.now(timezone.utc)


def push_event(reconciler: DashboardReconciler, event_type: EventType, data: Any = None) -> None:
	event = NormalizedEvent.create(event_type, data, timestamp=event_timestamp(data))
	reconciler.apply_event(event)


def handle_envelope(reconciler: DashboardReconciler, envelope: Any = None) -> None:
	"""Unpack ``{type, data}`` messages sent on the dashboard update channel."""
	if not isinstance(envelope, dict):
		logger.warning("ignoring malformed dashboard envelope")
		return
	kind = envelope.get("type")
	data = envelope.get("data")
	if kind == "data_loaded":
		reconciler.accept_pushed_snapshot(data)
		return
	event_type = EventType.parse(kind)
	if event_type is not None:
		push_event(reconciler, event_type, data)
		return
	if reconciler.subject_id is None:
		return
	if kind:
		reconciler.emit_local(str(kind), data)
	reconciler.emit_local(NOTIFICATION, normalize(kind, data, timestamp=event_timestamp(data)))


def handle_notification(reconciler: DashboardReconciler, data: Any = None) -> None:
	if reconciler.subject_id is None:
		return
	raw_type: Optional[str] = data.get("type") if isinstance(data, dict) else None
	reconciler.emit_local(NOTIFICATION, normalize(raw_type, data, timestamp=event_timestamp(data)))


def bind(reconciler: DashboardReconciler) -> None:
	handlers: Dict[str, Callable[..., None]] = {
		wire_name: partial(push_event, reconciler, event_type) for wire_name, event_type in WIRE_EVENTS.items()
	}
	handlers[ENVELOPE_EVENT] = partial(handle_envelope, reconciler)
	handlers[NOTIFICATION_EVENT] = partial(handle_notification, reconciler)
	_bound[reconciler] = handlers
	for wire_name, handler in handlers.items():
		reconciler.connection.on(wire_name, handler)


def unbind(reconciler: DashboardReconciler) -> None:
	# Only handlers this reconciler registered; another owner may hold the name now.
	for wire_name, handler in _bound.pop(reconciler, {}).items():
		reconciler.connection.off(wire_name, handler)


def install(reconciler: DashboardReconciler) -> DashboardReconciler:
	reconciler.add_transport_binding(bind, unbind)
	return reconciler
