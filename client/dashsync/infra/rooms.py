"""Room membership tracking with a single deferred join slot."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dashsync.infra.socketio import ConnectionManager
from dashsync.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class RoomKind(str, Enum):
	USER = "user"
	COMPANY = "company"
	JOB = "job"


@dataclass(frozen=True, slots=True)
class Room:
	kind: RoomKind
	room_id: str

	@property
	def join_event(self) -> str:
		return f"join-{self.kind.value}-room"

	@classmethod
	def user(cls, user_id: str) -> "Room":
		return cls(RoomKind.USER, str(user_id))

	@classmethod
	def company(cls, company_id: str) -> "Room":
		return cls(RoomKind.COMPANY, str(company_id))

	@classmethod
	def job(cls, job_id: str) -> "Room":
		return cls(RoomKind.JOB, str(job_id))


class RoomTracker:
	"""Join rooms now when the transport is up, otherwise hold one pending join.

	A second join before the transport connects replaces the pending one.
	On connect the pending room is emitted once and cleared; on later
	reconnects the current room is re-requested because the server keys
	membership by socket session.
	"""

	def __init__(self, connection: ConnectionManager) -> None:
		self._connection = connection
		self._pending: Optional[Room] = None
		self._current: Optional[Room] = None
		connection.add_connect_listener(self._on_connect)

	@property
	def pending(self) -> Optional[Room]:
		return self._pending

	@property
	def current(self) -> Optional[Room]:
		return self._current

	async def join_room(self, room: Room) -> None:
		if self._connection.is_connected():
			await self._emit_join(room, mode="immediate")
			return
		if self._pending is not None and self._pending != room:
			logger.info(
				"replacing pending room join",
				extra={"dropped_room": self._pending.room_id, "room": room.room_id, "kind": room.kind.value},
			)
		self._pending = room
		obs_metrics.room_join(room.kind.value, "deferred")
		await self._connection.ensure_connected()

	async def join_user_room(self, user_id: str) -> None:
		await self.join_room(Room.user(user_id))

	async def join_company_room(self, company_id: str) -> None:
		await self.join_room(Room.company(company_id))

	async def join_job_room(self, job_id: str) -> None:
		await self.join_room(Room.job(job_id))

	def forget(self, room: Optional[Room] = None) -> None:
		"""Drop ``room`` from the pending and current slots, or both slots when None."""
		if room is None or self._pending == room:
			self._pending = None
		if room is None or self._current == room:
			self._current = None

	async def _on_connect(self) -> None:
		pending = self._pending
		if pending is not None:
			self._pending = None
			await self._emit_join(pending, mode="flushed")
			return
		if self._current is not None:
			await self._emit_join(self._current, mode="rejoin")

	async def _emit_join(self, room: Room, *, mode: str) -> None:
		sent = await self._connection.emit(room.join_event, room.room_id)
		if not sent:
			# Lost the transport between the check and the emit; keep it for the next connect.
			self._pending = room
			obs_metrics.room_join(room.kind.value, "deferred")
			return
		self._current = room
		obs_metrics.room_join(room.kind.value, mode)
		logger.info("room join requested", extra={"room": room.room_id, "kind": room.kind.value, "mode": mode})
