"""Incremental company dashboard counters driven by push events."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional

from dashsync.domain.common.dispatcher import Callback, Dispatcher
from dashsync.domain.common.guard import InFlightGuard
from dashsync.domain.dashboard.normalizer import normalize
from dashsync.infra.rooms import Room, RoomTracker
from dashsync.infra.socketio import ConnectionManager
from dashsync.obs import metrics as obs_metrics

from .models import CompanyStats, JobCounters

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]
RecentApplicationsLoader = Callable[[str], Awaitable[List[Dict[str, Any]]]]

STATS_UPDATED = "stats_updated"
JOBS_UPDATED = "jobs_updated"
NEW_APPLICATION = "new_application"
APPLICATION_STATUS = "application_status_update"
RECENT_APPLICATIONS = "recent_applications"
NOTIFICATION = "notification"


class CompanyDashboardService:
	"""Keep a company's application and view counters current without refetching."""

	def __init__(
		self,
		connection: ConnectionManager,
		rooms: RoomTracker,
		*,
		token_provider: Optional[TokenProvider] = None,
		dispatcher: Optional[Dispatcher] = None,
	) -> None:
		self.connection = connection
		self.rooms = rooms
		self.dispatcher = dispatcher or Dispatcher()
		self._token_provider = token_provider
		self._guard = InFlightGuard(RECENT_APPLICATIONS)
		self._company_id: Optional[str] = None
		self._stats = CompanyStats()
		self._jobs: Dict[str, JobCounters] = {}
		self.recent_applications_revision = 0
		self._on_bind: List[Callable[["CompanyDashboardService"], None]] = []
		self._on_unbind: List[Callable[["CompanyDashboardService"], None]] = []

	@property
	def company_id(self) -> Optional[str]:
		return self._company_id

	def add_transport_binding(
		self,
		bind: Callable[["CompanyDashboardService"], None],
		unbind: Callable[["CompanyDashboardService"], None],
	) -> None:
		self._on_bind.append(bind)
		self._on_unbind.append(unbind)

	def on(self, event: str, callback: Callback) -> None:
		self.dispatcher.on(event, callback)

	def off(self, event: str, callback: Optional[Callback] = None) -> None:
		self.dispatcher.off(event, callback)

	async def start(
		self,
		company_id: str,
		*,
		stats: Optional[Mapping[str, Any]] = None,
		jobs: Optional[Iterable[Mapping[str, Any]]] = None,
	) -> None:
		company_id = str(company_id)
		if company_id == self._company_id:
			return
		if self._company_id is not None:
			self.stop()
		self._company_id = company_id
		self.seed(stats, jobs)
		for bind in self._on_bind:
			bind(self)
		token = self._token_provider() if self._token_provider else None
		if token:
			await self.connection.connect(token)
		await self.rooms.join_room(Room.company(company_id))

	def stop(self) -> None:
		if self._company_id is None:
			return
		for unbind in self._on_unbind:
			unbind(self)
		self.rooms.forget(Room.company(self._company_id))
		self.dispatcher.clear()
		self._company_id = None
		self._stats = CompanyStats()
		self._jobs = {}

	def seed(
		self,
		stats: Optional[Mapping[str, Any]] = None,
		jobs: Optional[Iterable[Mapping[str, Any]]] = None,
	) -> None:
		self._stats = CompanyStats.from_mapping(stats)
		self._jobs = {}
		for job in jobs or ():
			if job.get("id") is not None:
				counters = JobCounters.from_mapping(job)
				self._jobs[counters.job_id] = counters
		self._publish()

	def get_stats(self) -> CompanyStats:
		return replace(self._stats)

	def get_jobs(self) -> List[Dict[str, Any]]:
		return [job.to_dict() for job in self._jobs.values()]

	def record_application(self, data: Any = None) -> None:
		if self._company_id is None:
			obs_metrics.event_dropped(NEW_APPLICATION, "no_subject")
			return
		payload = data if isinstance(data, dict) else {}
		self._stats.total_applications += 1
		self._stats.new_applications += 1
		job = self._jobs.get(str(payload.get("jobId")))
		if job is not None:
			job.applications_count += 1
		self.recent_applications_revision += 1
		obs_metrics.event_applied(NEW_APPLICATION, "patch")
		self._publish()
		self.dispatcher.emit(NEW_APPLICATION, dict(payload))
		nested = payload.get("job")
		title = nested.get("title") if isinstance(nested, dict) else None
		self.dispatcher.emit(
			NOTIFICATION,
			normalize(
				"new_application",
				{"title": "Ứng viên mới", "message": f"Có ứng viên mới ứng tuyển vào vị trí {title or 'Công việc'}"},
			),
		)

	def record_view(self, data: Any = None) -> None:
		if self._company_id is None:
			obs_metrics.event_dropped("job_viewed", "no_subject")
			return
		payload = data if isinstance(data, dict) else {}
		self._stats.total_views += 1
		self._stats.new_views += 1
		job = self._jobs.get(str(payload.get("jobId")))
		if job is not None:
			job.views_count += 1
		obs_metrics.event_applied("job_viewed", "patch")
		self._publish()

	def record_status_update(self, data: Any = None) -> None:
		if self._company_id is None:
			return
		obs_metrics.event_applied(APPLICATION_STATUS, "notify")
		self.dispatcher.emit(APPLICATION_STATUS, dict(data) if isinstance(data, dict) else {})

	async def load_recent_applications(self, loader: RecentApplicationsLoader) -> Optional[List[Dict[str, Any]]]:
		"""Run ``loader`` unless a load is already running; None when skipped."""
		company_id = self._company_id
		if company_id is None or not self._guard.try_enter(company_id):
			return None
		try:
			applications = await loader(company_id)
		except Exception:
			logger.exception("recent applications load failed", extra={"company": company_id})
			return None
		finally:
			self._guard.leave(company_id)
		if company_id != self._company_id:
			return None
		self.dispatcher.emit(RECENT_APPLICATIONS, list(applications))
		return applications

	def _publish(self) -> None:
		self.dispatcher.emit(STATS_UPDATED, self.get_stats())
		self.dispatcher.emit(JOBS_UPDATED, self.get_jobs())
