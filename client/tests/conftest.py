import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from socketio import exceptions as sio_exceptions

# Ensure the client package is importable when tests run from the repo root
CLIENT_ROOT = Path(__file__).resolve().parents[1]
if str(CLIENT_ROOT) not in sys.path:
	sys.path.insert(0, str(CLIENT_ROOT))

from dashsync.domain.dashboard import sockets as dashboard_sockets
from dashsync.domain.dashboard.service import DashboardReconciler
from dashsync.infra.rooms import RoomTracker
from dashsync.infra.socketio import ConnectionManager
from dashsync.obs import logging as obs_logging


class FakeSocketClient:
	"""Stand-in for socketio.AsyncClient with the surface ConnectionManager uses."""

	def __init__(self, *, fail_connect: bool = False, auto_connect_event: bool = True) -> None:
		self.connected = False
		self.sid: Optional[str] = None
		self.handlers: Dict[str, Callable[..., Any]] = {}
		self.emitted: List[tuple] = []
		self.connect_calls: List[dict] = []
		self.disconnect_calls = 0
		self.fail_connect = fail_connect
		self.auto_connect_event = auto_connect_event

	def on(self, event: str, handler: Callable[..., Any]) -> None:
		self.handlers[event] = handler

	async def connect(self, url: str, **kwargs: Any) -> None:
		self.connect_calls.append({"url": url, **kwargs})
		if self.fail_connect:
			raise sio_exceptions.ConnectionError("refused")
		self.connected = True
		self.sid = f"sid-{len(self.connect_calls)}"
		if self.auto_connect_event:
			await self.fire("connect")

	async def disconnect(self) -> None:
		self.disconnect_calls += 1
		was_connected = self.connected
		self.connected = False
		if was_connected:
			await self.fire("disconnect", "io client disconnect")

	async def emit(self, event: str, data: Any = None) -> None:
		self.emitted.append((event, data))

	async def fire(self, event: str, *args: Any) -> None:
		handler = self.handlers.get(event)
		if handler is not None:
			await handler(*args)

	async def drop(self) -> None:
		"""Simulate a server-side disconnect."""
		self.connected = False
		await self.fire("disconnect", "transport close")

	async def reconnect(self) -> None:
		"""Simulate the automatic reconnection completing."""
		self.connected = True
		await self.fire("connect")


class ClientFactory:
	def __init__(self, **client_kwargs: Any) -> None:
		self.client_kwargs = client_kwargs
		self.clients: List[FakeSocketClient] = []

	def __call__(self) -> FakeSocketClient:
		client = FakeSocketClient(**self.client_kwargs)
		self.clients.append(client)
		return client

	@property
	def last(self) -> FakeSocketClient:
		return self.clients[-1]


@pytest.fixture(autouse=True)
def clear_log_context():
	obs_logging.clear_context()
	yield
	obs_logging.clear_context()


@pytest.fixture
def client_factory() -> ClientFactory:
	return ClientFactory()


@pytest.fixture
def connection(client_factory) -> ConnectionManager:
	return ConnectionManager("http://testserver", client_factory=client_factory, transports=["websocket"], wait_timeout=0.1)


@pytest.fixture
def rooms(connection) -> RoomTracker:
	return RoomTracker(connection)


@pytest.fixture
def api() -> AsyncMock:
	mock = AsyncMock()
	mock.fetch_snapshot.return_value = {
		"profile": {},
		"savedJobs": [],
		"applications": [],
		"interviews": [],
		"viewedJobs": [],
		"stats": {"profileCompletion": 40, "totalSkills": 3, "totalProjects": 1, "totalCertifications": 0},
	}
	return mock


@pytest.fixture
def reconciler(connection, rooms, api) -> DashboardReconciler:
	instance = DashboardReconciler(connection, rooms, api, token_provider=lambda: "token-1")
	return dashboard_sockets.install(instance)


class Recorder:
	"""Collects dispatcher payloads per event name."""

	def __init__(self) -> None:
		self.events: Dict[str, List[Any]] = {}

	def listen(self, target: Any, *names: str) -> "Recorder":
		for name in names:
			target.on(name, self._collect(name))
		return self

	def _collect(self, name: str) -> Callable[[Any], None]:
		def _callback(payload: Any) -> None:
			self.events.setdefault(name, []).append(payload)

		return _callback

	def __getitem__(self, name: str) -> List[Any]:
		return self.events.get(name, [])


@pytest.fixture
def recorder() -> Recorder:
	return Recorder()
