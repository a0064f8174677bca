"""REST collaborator that serves dashboard snapshots."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

import httpx

from dashsync.errors import SnapshotFetchError
from dashsync.settings import settings

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class DashboardAPI:
	"""Thin async client for ``GET /dashboard/{subject_type}/{subject_id}``."""

	def __init__(
		self,
		base_url: Optional[str] = None,
		*,
		http: Optional[httpx.AsyncClient] = None,
		token_provider: Optional[TokenProvider] = None,
		timeout: Optional[float] = None,
	) -> None:
		self.base_url = (base_url or settings.api_base_url).rstrip("/")
		self._owns_http = http is None
		self.http = http or httpx.AsyncClient(
			base_url=self.base_url,
			timeout=timeout if timeout is not None else settings.http_timeout_seconds,
		)
		self._token_provider = token_provider

	def _headers(self) -> Dict[str, str]:
		headers = {"Accept": "application/json"}
		token = self._token_provider() if self._token_provider else None
		if token:
			headers["Authorization"] = f"Bearer {token}"
		return headers

	async def fetch_snapshot(self, subject_type: str, subject_id: str) -> Dict[str, Any]:
		"""Return the ``data`` object of a successful response.

		Raises :class:`SnapshotFetchError` on transport failure, a non-2xx
		status, an unparseable body or ``success: false``.
		"""
		path = f"{self.base_url}/dashboard/{subject_type}/{subject_id}"
		try:
			response = await self.http.get(path, headers=self._headers())
		except httpx.HTTPError as exc:
			raise SnapshotFetchError(f"transport: {exc.__class__.__name__}") from exc
		if response.status_code >= 400:
			raise SnapshotFetchError("http_status", status_code=response.status_code)
		try:
			body = response.json()
		except ValueError as exc:
			raise SnapshotFetchError("invalid_json", status_code=response.status_code) from exc
		if not isinstance(body, dict) or not body.get("success"):
			raise SnapshotFetchError("unsuccessful", status_code=response.status_code)
		data = body.get("data")
		if not isinstance(data, dict):
			raise SnapshotFetchError("missing_data", status_code=response.status_code)
		return data

	async def aclose(self) -> None:
		if self._owns_http:
			await self.http.aclose()
