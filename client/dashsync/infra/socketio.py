"""Owner of the single Socket.IO connection shared by dashboard services."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

import socketio
from socketio import exceptions as sio_exceptions

from dashsync.obs import logging as obs_logging
from dashsync.obs import metrics as obs_metrics
from dashsync.settings import settings

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]
ConnectListener = Callable[[], Awaitable[None]]
ClientFactory = Callable[[], socketio.AsyncClient]

_LIFECYCLE_EVENTS = frozenset({"connect", "disconnect", "connect_error"})


def default_client_factory() -> socketio.AsyncClient:
	delay = settings.socket_reconnection_delay
	return socketio.AsyncClient(
		reconnection=True,
		reconnection_attempts=settings.socket_reconnection_attempts,
		reconnection_delay=delay,
		reconnection_delay_max=delay,
		randomization_factor=0,
		logger=False,
	)


class ConnectionManager:
	"""Connect/disconnect, emit and a one-handler-per-event subscription surface.

	The transport is keyed by the bearer credential: reconnecting with the
	credential that is already live is a no-op. Handlers are stored here and
	re-bound to every new client, so re-registering an event name replaces
	the previous handler instead of stacking deliveries.
	"""

	def __init__(
		self,
		url: Optional[str] = None,
		*,
		client_factory: Optional[ClientFactory] = None,
		transports: Optional[Sequence[str]] = None,
		wait_timeout: Optional[float] = None,
	) -> None:
		self.url = url or settings.resolved_socket_url()
		self._client_factory = client_factory or default_client_factory
		self._transports = list(transports or settings.socket_transports)
		self._wait_timeout = wait_timeout if wait_timeout is not None else settings.socket_wait_timeout
		self._client: Optional[socketio.AsyncClient] = None
		self._credential: Optional[str] = None
		self._handlers: Dict[str, Handler] = {}
		self._bound: Set[str] = set()
		self._connect_listeners: List[ConnectListener] = []
		self._lock = asyncio.Lock()

	@property
	def credential(self) -> Optional[str]:
		return self._credential

	@property
	def sid(self) -> Optional[str]:
		if self._client is None:
			return None
		return getattr(self._client, "sid", None)

	def is_connected(self) -> bool:
		return bool(self._client is not None and getattr(self._client, "connected", False))

	async def connect(self, credential: str) -> None:
		async with self._lock:
			if self._client is not None and credential == self._credential and self.is_connected():
				obs_metrics.transport_connect("noop")
				return
			await self._teardown()
			client = self._client_factory()
			self._client = client
			self._credential = credential
			self._bound = set()
			self._bind_lifecycle(client)
			for event in list(self._handlers):
				self._bind(client, event)
			await self._open(client, credential)

	async def ensure_connected(self) -> bool:
		"""Re-open the transport with the stored credential when it is down."""
		if self.is_connected():
			return True
		if not self._credential:
			logger.debug("no credential to reconnect with")
			return False
		await self.connect(self._credential)
		return self.is_connected()

	async def disconnect(self) -> None:
		async with self._lock:
			await self._teardown()
			self._credential = None

	async def emit(self, event: str, payload: Any = None) -> bool:
		if not self.is_connected():
			obs_metrics.transport_emit(event, "dropped")
			logger.debug("emit dropped while offline", extra={"event": event})
			return False
		assert self._client is not None
		await self._client.emit(event, payload)
		obs_metrics.transport_emit(event, "sent")
		return True

	def on(self, event: str, handler: Handler) -> None:
		self._handlers[event] = handler
		if self._client is not None:
			self._bind(self._client, event)

	def off(self, event: str, handler: Optional[Handler] = None) -> None:
		"""Remove the handler for ``event``; with ``handler``, only while it is still the registered one."""
		# The bound trampoline stays on the client and becomes a no-op.
		if handler is not None and self._handlers.get(event) != handler:
			return
		self._handlers.pop(event, None)

	def add_connect_listener(self, listener: ConnectListener) -> None:
		if listener not in self._connect_listeners:
			self._connect_listeners.append(listener)

	def remove_connect_listener(self, listener: ConnectListener) -> None:
		if listener in self._connect_listeners:
			self._connect_listeners.remove(listener)

	async def _open(self, client: socketio.AsyncClient, credential: str) -> None:
		try:
			await client.connect(
				self.url,
				auth={"token": credential},
				transports=self._transports,
				wait_timeout=self._wait_timeout,
			)
		except (sio_exceptions.ConnectionError, OSError, asyncio.TimeoutError) as exc:
			obs_metrics.transport_connect("error")
			logger.warning("socket connection failed", extra={"url": self.url, "error": str(exc)})
			return
		obs_metrics.transport_connect("ok")
		logger.info("socket connect requested", extra={"url": self.url})

	async def _teardown(self) -> None:
		client = self._client
		self._client = None
		self._bound = set()
		if client is None:
			return
		try:
			await client.disconnect()
		except (sio_exceptions.SocketIOError, OSError) as exc:
			logger.warning("socket teardown failed", extra={"error": str(exc)})

	def _bind_lifecycle(self, client: socketio.AsyncClient) -> None:
		client.on("connect", self._on_connect)
		client.on("disconnect", self._on_disconnect)
		client.on("connect_error", self._on_connect_error)
		self._bound.update(_LIFECYCLE_EVENTS)

	def _bind(self, client: socketio.AsyncClient, event: str) -> None:
		if event in self._bound:
			return

		async def _trampoline(*args: Any) -> None:
			await self._deliver(event, *args)

		client.on(event, _trampoline)
		self._bound.add(event)

	async def _deliver(self, event: str, *args: Any) -> None:
		handler = self._handlers.get(event)
		if handler is None:
			return
		tokens = obs_logging.bind_context(sid=self.sid)
		try:
			result = handler(*args)
			if inspect.isawaitable(result):
				await result
		except Exception:
			logger.exception("socket handler failed", extra={"event": event})
		finally:
			obs_logging.reset_context(tokens)

	async def _on_connect(self) -> None:
		obs_metrics.transport_connect("established")
		logger.info("socket connected", extra={"sid": self.sid})
		for listener in list(self._connect_listeners):
			try:
				await listener()
			except Exception:
				logger.exception("connect listener failed")
		await self._deliver("connect")

	async def _on_disconnect(self, *args: Any) -> None:
		obs_metrics.transport_disconnected()
		reason = args[0] if args else None
		logger.info("socket disconnected", extra={"reason": str(reason) if reason is not None else None})
		await self._deliver("disconnect", *args)

	async def _on_connect_error(self, *args: Any) -> None:
		obs_metrics.transport_error()
		detail = args[0] if args else None
		logger.warning("socket connection error", extra={"detail": str(detail) if detail is not None else None})
		await self._deliver("connect_error", *args)
