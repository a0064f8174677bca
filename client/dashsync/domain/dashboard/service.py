"""Snapshot plus delta reconciliation for a subject's live dashboard."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import fields
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from pydantic import ValidationError

from dashsync.domain.common.dispatcher import Callback, Dispatcher
from dashsync.domain.common.guard import InFlightGuard
from dashsync.errors import SnapshotFetchError
from dashsync.infra.http import DashboardAPI
from dashsync.infra.rooms import Room, RoomTracker
from dashsync.infra.socketio import ConnectionManager
from dashsync.obs import logging as obs_logging
from dashsync.obs import metrics as obs_metrics

from .models import (
	DashboardSnapshot,
	EventPolicy,
	EventType,
	NormalizedEvent,
	SubjectType,
	resolve_policies,
)
from .normalizer import normalize_event
from .schemas import SnapshotPayload, StatsEventPayload
from .stats import derive_stats

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]

DATA_UPDATED = "data-updated"
STATS_UPDATED = "stats_updated"
NOTIFICATION = "notification"
DATA_LOADED = "data_loaded"

_SUBJECT_KEYS = {
	SubjectType.STUDENT: ("studentId", "userId"),
	SubjectType.COMPANY: ("companyId",),
}


class ReconcilerState(str, Enum):
	UNINITIALIZED = "uninitialized"
	INITIALIZING = "initializing"
	READY = "ready"


def _record_key(record: Mapping[str, Any]) -> Optional[str]:
	value = record.get("id")
	if value is None:
		value = record.get("jobId")
	return None if value is None else str(value)


def _upsert(records: List[Dict[str, Any]], data: Mapping[str, Any]) -> None:
	key = _record_key(data)
	if key is not None:
		for index, existing in enumerate(records):
			if _record_key(existing) == key:
				records[index] = {**existing, **data}
				return
	records.insert(0, dict(data))


def _remove(records: List[Dict[str, Any]], data: Mapping[str, Any]) -> bool:
	keys = {str(data[name]) for name in ("id", "jobId") if data.get(name) is not None}
	if not keys:
		return False
	kept = [record for record in records if not ({str(record.get("id")), str(record.get("jobId"))} & keys)]
	removed = len(kept) != len(records)
	records[:] = kept
	return removed


def _log_refresh_failure(task: asyncio.Task) -> None:
	if task.cancelled():
		return
	exc = task.exception()
	if exc is not None:
		logger.error("scheduled refresh failed", exc_info=exc)


class DashboardReconciler:
	"""Hold one subject's dashboard snapshot and keep it current.

	``initialize`` fetches the REST snapshot and publishes it; push events
	are then applied through ``apply_event`` according to the per-type
	policy table. Subscribers receive copies through the dispatcher:
	``data-updated`` carries the full snapshot, ``stats_updated`` the stats,
	``notification`` a normalized toast record, and every event is also
	re-emitted under its own type name.
	"""

	def __init__(
		self,
		connection: ConnectionManager,
		rooms: RoomTracker,
		api: DashboardAPI,
		*,
		subject_type: SubjectType = SubjectType.STUDENT,
		token_provider: Optional[TokenProvider] = None,
		dispatcher: Optional[Dispatcher] = None,
		policies: Optional[Mapping[str, str]] = None,
	) -> None:
		self.connection = connection
		self.rooms = rooms
		self.api = api
		self.subject_type = subject_type
		self.dispatcher = dispatcher or Dispatcher()
		self.policies = resolve_policies(policies)
		self._token_provider = token_provider
		self._guard = InFlightGuard("snapshot_fetch")
		self._state = ReconcilerState.UNINITIALIZED
		self._subject_id: Optional[str] = None
		self._snapshot: Optional[DashboardSnapshot] = None
		self._loaded = False
		self._session = 0
		self._refresh_task: Optional[asyncio.Task] = None
		self._on_bind: List[Callable[["DashboardReconciler"], None]] = []
		self._on_unbind: List[Callable[["DashboardReconciler"], None]] = []
		self._transport_bound = False

	@property
	def state(self) -> ReconcilerState:
		return self._state

	@property
	def subject_id(self) -> Optional[str]:
		return self._subject_id

	def add_transport_binding(
		self,
		bind: Callable[["DashboardReconciler"], None],
		unbind: Callable[["DashboardReconciler"], None],
	) -> None:
		"""Register hooks that attach/detach transport handlers per session."""
		self._on_bind.append(bind)
		self._on_unbind.append(unbind)

	# Subscriptions

	def on(self, event: str, callback: Callback) -> None:
		self.dispatcher.on(event, callback)

	def off(self, event: str, callback: Optional[Callback] = None) -> None:
		self.dispatcher.off(event, callback)

	# Lifecycle

	async def initialize(self, subject_id: str) -> None:
		subject_id = str(subject_id)
		if subject_id != self._subject_id or self._state is ReconcilerState.UNINITIALIZED:
			self._begin_session(subject_id)
		session = self._session
		key = (subject_id, session)
		if not self._guard.try_enter(key):
			logger.debug("initialize skipped; fetch already in flight", extra={"subject": subject_id})
			return
		tokens = obs_logging.bind_context(subject_id=subject_id, subject_type=self.subject_type.value)
		try:
			self._state = ReconcilerState.INITIALIZING
			self._bind_transport()
			await self._ensure_transport(subject_id)
			snapshot = await self._fetch(subject_id)
			if not self._is_current(session, subject_id):
				logger.info("discarding snapshot for stale session", extra={"subject": subject_id})
				return
			self._snapshot = snapshot
			self._loaded = True
			self._state = ReconcilerState.READY
			self._publish()
		finally:
			self._guard.leave(key)
			obs_logging.reset_context(tokens)

	async def refresh(self) -> None:
		"""Full resynchronisation; accumulated deltas are replaced by the fetch."""
		if self._subject_id is None:
			return
		await self.initialize(self._subject_id)

	def destroy(self) -> None:
		self._session += 1
		if self._refresh_task is not None and not self._refresh_task.done():
			self._refresh_task.cancel()
		self._refresh_task = None
		self._unbind_transport()
		if self._subject_id is not None:
			self.rooms.forget(self._room_for(self._subject_id))
		self.dispatcher.clear()
		self._snapshot = None
		self._subject_id = None
		self._loaded = False
		self._state = ReconcilerState.UNINITIALIZED
		logger.info("dashboard session destroyed")

	def get_current_snapshot(self) -> Optional[DashboardSnapshot]:
		return self._snapshot.copy() if self._snapshot is not None else None

	def is_realtime_connected(self) -> bool:
		return self._subject_id is not None and self.connection.is_connected()

	# Events

	def apply_event(self, event: NormalizedEvent) -> None:
		if self._subject_id is None:
			obs_metrics.event_dropped(event.type.value, "no_subject")
			return
		policy = self.policies.get(event.type, EventPolicy.NOTIFY)
		obs_metrics.event_applied(event.type.value, policy.value)
		if policy is EventPolicy.PATCH:
			if not self._loaded or self._snapshot is None:
				obs_metrics.event_dropped(event.type.value, "not_ready")
				logger.debug("patch skipped before snapshot load", extra={"type": event.type.value})
			elif self._patch(self._snapshot, event):
				self._publish()
		logger.info("event applied", extra={"type": event.type.value, "policy": policy.value})
		# A patched stats_updated is published as DashboardStats above.
		if event.type is not EventType.STATS_UPDATED or policy is not EventPolicy.PATCH:
			self.dispatcher.emit(event.type.value, dict(event.data))
		self.dispatcher.emit(NOTIFICATION, normalize_event(event))
		if policy is EventPolicy.REFRESH:
			self._schedule_refresh()

	def accept_pushed_snapshot(self, data: Any) -> None:
		"""Replace the snapshot with one pushed by the server (``data_loaded``)."""
		if self._subject_id is None:
			obs_metrics.event_dropped(DATA_LOADED, "no_subject")
			return
		try:
			snapshot = SnapshotPayload.model_validate(data if isinstance(data, dict) else {}).to_model()
		except ValidationError:
			logger.warning("ignoring malformed pushed snapshot")
			return
		self._snapshot = snapshot
		self._loaded = True
		self._state = ReconcilerState.READY
		self._publish()
		self.dispatcher.emit(DATA_LOADED, snapshot.copy())

	def emit_local(self, event: str, payload: Any) -> None:
		self.dispatcher.emit(event, payload)

	# Internals

	def _begin_session(self, subject_id: str) -> None:
		self._session += 1
		self._subject_id = subject_id
		self._snapshot = DashboardSnapshot.empty()
		self._loaded = False

	def _is_current(self, session: int, subject_id: str) -> bool:
		return session == self._session and subject_id == self._subject_id

	def _room_for(self, subject_id: str) -> Room:
		if self.subject_type is SubjectType.COMPANY:
			return Room.company(subject_id)
		return Room.user(subject_id)

	async def _ensure_transport(self, subject_id: str) -> None:
		token = self._token_provider() if self._token_provider else None
		if token:
			await self.connection.connect(token)
		else:
			logger.warning("no auth token; realtime updates unavailable")
		await self.rooms.join_room(self._room_for(subject_id))

	async def _fetch(self, subject_id: str) -> DashboardSnapshot:
		started = time.perf_counter()
		outcome = "ok"
		try:
			data = await self.api.fetch_snapshot(self.subject_type.value, subject_id)
			return SnapshotPayload.model_validate(data).to_model()
		except SnapshotFetchError as exc:
			outcome = "error"
			logger.warning(
				"snapshot fetch failed; using empty snapshot",
				extra={"reason": exc.reason, "status_code": exc.status_code},
			)
		except ValidationError:
			outcome = "invalid"
			logger.warning("snapshot payload invalid; using empty snapshot")
		except Exception:
			outcome = "error"
			logger.exception("snapshot fetch raised; using empty snapshot")
		finally:
			obs_metrics.snapshot_fetch(self.subject_type.value, outcome, time.perf_counter() - started)
		return DashboardSnapshot.empty()

	def _matches_subject(self, data: Mapping[str, Any]) -> bool:
		for key in _SUBJECT_KEYS[self.subject_type]:
			value = data.get(key)
			if value is not None:
				return str(value) == self._subject_id
		return False

	def _patch(self, snapshot: DashboardSnapshot, event: NormalizedEvent) -> bool:
		"""Mutate ``snapshot`` for ``event``; return whether anything changed."""
		data = event.data
		match event.type:
			case EventType.INTERVIEW_SCHEDULED:
				if not self._matches_subject(data):
					obs_metrics.event_dropped(event.type.value, "other_subject")
					return False
				_upsert(snapshot.interviews, data)
			case EventType.STATS_UPDATED:
				update = StatsEventPayload.model_validate(data)
				for name in (item.name for item in fields(snapshot.stats)):
					value = getattr(update, name)
					if value is not None:
						setattr(snapshot.stats, name, min(100, value) if name == "profile_completion" else value)
			case EventType.JOB_VIEWED:
				_upsert(snapshot.viewed_jobs, data)
			case EventType.JOB_SAVED:
				_upsert(snapshot.saved_jobs, data)
			case EventType.JOB_UNSAVED:
				if not _remove(snapshot.saved_jobs, data):
					return False
			case EventType.APPLICATION_CREATED | EventType.APPLICATION_UPDATED:
				_upsert(snapshot.applications, data)
			case EventType.PROFILE_UPDATED:
				snapshot.profile.update(data)
				# Only profile fields feed the derived stats.
				snapshot.stats = derive_stats(snapshot.profile, snapshot.stats)
		return True

	def _publish(self) -> None:
		if self._snapshot is None:
			return
		published = self._snapshot.copy()
		self.dispatcher.emit(DATA_UPDATED, published)
		self.dispatcher.emit(STATS_UPDATED, published.stats)

	def _schedule_refresh(self) -> None:
		if self._refresh_task is not None and not self._refresh_task.done():
			return
		try:
			loop = asyncio.get_running_loop()
		except RuntimeError:
			logger.warning("refresh requested outside an event loop; skipped")
			return
		self._refresh_task = loop.create_task(self.refresh())
		self._refresh_task.add_done_callback(_log_refresh_failure)

	def _bind_transport(self) -> None:
		if self._transport_bound:
			return
		for bind in self._on_bind:
			bind(self)
		self._transport_bound = True

	def _unbind_transport(self) -> None:
		if not self._transport_bound:
			return
		for unbind in self._on_unbind:
			unbind(self)
		self._transport_bound = False
