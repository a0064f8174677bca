"""Central registry for Prometheus metrics used by the realtime client."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

TRANSPORT_CONNECTS = Counter(
	"dashsync_transport_connects_total",
	"Transport connect attempts by outcome",
	["outcome"],
)

TRANSPORT_DISCONNECTS = Counter(
	"dashsync_transport_disconnects_total",
	"Transport disconnects observed",
)

TRANSPORT_ERRORS = Counter(
	"dashsync_transport_errors_total",
	"Transport connection errors",
)

TRANSPORT_EMITS = Counter(
	"dashsync_transport_emits_total",
	"Outbound transport emits by event and result",
	["event", "result"],
)

ROOM_JOINS = Counter(
	"dashsync_room_joins_total",
	"Room join requests by room kind and mode",
	["kind", "mode"],
)

SNAPSHOT_FETCHES = Counter(
	"dashsync_snapshot_fetch_total",
	"Dashboard snapshot fetches by outcome",
	["subject_type", "outcome"],
)

SNAPSHOT_FETCH_LATENCY = Histogram(
	"dashsync_snapshot_fetch_duration_seconds",
	"Dashboard snapshot fetch latency in seconds",
	["subject_type"],
	buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

EVENTS_APPLIED = Counter(
	"dashsync_events_applied_total",
	"Push events processed by type and policy",
	["type", "policy"],
)

EVENTS_DROPPED = Counter(
	"dashsync_events_dropped_total",
	"Push events ignored by the reconciler",
	["type", "reason"],
)

DISPATCH_FAILURES = Counter(
	"dashsync_dispatch_callback_failures_total",
	"Local subscriber callbacks that raised",
	["event"],
)

GUARD_SKIPS = Counter(
	"dashsync_guard_skips_total",
	"Re-entrant operations skipped by the in-flight guard",
	["operation"],
)


def transport_connect(outcome: str) -> None:
	TRANSPORT_CONNECTS.labels(outcome=outcome).inc()


def transport_disconnected() -> None:
	TRANSPORT_DISCONNECTS.inc()


def transport_error() -> None:
	TRANSPORT_ERRORS.inc()


def transport_emit(event: str, result: str) -> None:
	TRANSPORT_EMITS.labels(event=event, result=result).inc()


def room_join(kind: str, mode: str) -> None:
	ROOM_JOINS.labels(kind=kind, mode=mode).inc()


def snapshot_fetch(subject_type: str, outcome: str, elapsed_seconds: float) -> None:
	SNAPSHOT_FETCHES.labels(subject_type=subject_type, outcome=outcome).inc()
	SNAPSHOT_FETCH_LATENCY.labels(subject_type=subject_type).observe(elapsed_seconds)


def event_applied(event_type: str, policy: str) -> None:
	EVENTS_APPLIED.labels(type=event_type, policy=policy).inc()


def event_dropped(event_type: str, reason: str) -> None:
	EVENTS_DROPPED.labels(type=event_type, reason=reason).inc()


def dispatch_failure(event: str) -> None:
	DISPATCH_FAILURES.labels(event=event).inc()


def guard_skip(operation: str) -> None:
	GUARD_SKIPS.labels(operation=operation).inc()
