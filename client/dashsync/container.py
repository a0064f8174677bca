"""Composition root wiring the transport, REST client and dashboard services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping, Optional

import httpx

from dashsync import obs
from dashsync.domain.company import sockets as company_sockets
from dashsync.domain.company.service import CompanyDashboardService
from dashsync.domain.dashboard import sockets as dashboard_sockets
from dashsync.domain.dashboard.models import SubjectType
from dashsync.domain.dashboard.service import DashboardReconciler
from dashsync.errors import NotConfiguredError
from dashsync.infra.http import DashboardAPI
from dashsync.infra.rooms import RoomTracker
from dashsync.infra.socketio import ClientFactory, ConnectionManager
from dashsync.settings import settings

TokenProvider = Callable[[], Optional[str]]

_container: Optional["DashsyncContainer"] = None


@dataclass(slots=True)
class DashsyncContainer:
	connection: ConnectionManager
	rooms: RoomTracker
	api: DashboardAPI
	role: SubjectType
	student: Optional[DashboardReconciler] = None
	company: Optional[CompanyDashboardService] = None

	async def aclose(self) -> None:
		if self.student is not None:
			self.student.destroy()
		if self.company is not None:
			self.company.stop()
		await self.connection.disconnect()
		await self.api.aclose()


def _settings_token() -> Optional[str]:
	return settings.auth_token


def build_container(
	role: SubjectType | str = SubjectType.STUDENT,
	*,
	token_provider: Optional[TokenProvider] = None,
	client_factory: Optional[ClientFactory] = None,
	http: Optional[httpx.AsyncClient] = None,
	policies: Optional[Mapping[str, str]] = None,
	socket_url: Optional[str] = None,
	api_base_url: Optional[str] = None,
) -> DashsyncContainer:
	"""Wire the transport and the dashboard service for one signed-in role.

	Only the service for ``role`` is built: wire event names such as
	``job-viewed`` carry one handler per connection, so a student and a
	company dashboard never share a transport.
	"""
	role = SubjectType(role)
	obs.init()
	tokens = token_provider or _settings_token
	connection = ConnectionManager(socket_url, client_factory=client_factory)
	rooms = RoomTracker(connection)
	api = DashboardAPI(api_base_url, http=http, token_provider=tokens)
	container = DashsyncContainer(connection=connection, rooms=rooms, api=api, role=role)
	if role is SubjectType.COMPANY:
		container.company = company_sockets.install(
			CompanyDashboardService(connection, rooms, token_provider=tokens)
		)
	else:
		container.student = dashboard_sockets.install(
			DashboardReconciler(
				connection,
				rooms,
				api,
				subject_type=SubjectType.STUDENT,
				token_provider=tokens,
				policies=policies if policies is not None else settings.event_policies,
			)
		)
	return container


def set_container(container: Optional[DashsyncContainer]) -> None:
	global _container
	_container = container


def get_container() -> DashsyncContainer:
	if _container is None:
		raise NotConfiguredError("dashsync container has not been built")
	return _container
