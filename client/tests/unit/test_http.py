import httpx
import pytest

from dashsync.errors import SnapshotFetchError
from dashsync.infra.http import DashboardAPI


def _api(handler, token="token-1"):
	client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
	return DashboardAPI("http://api.test/api/", http=client, token_provider=lambda: token)


@pytest.mark.asyncio
async def test_fetch_snapshot_returns_data():
	seen = {}

	def handler(request: httpx.Request) -> httpx.Response:
		seen["url"] = str(request.url)
		seen["auth"] = request.headers.get("Authorization")
		return httpx.Response(200, json={"success": True, "data": {"stats": {"profileCompletion": 30}}})

	api = _api(handler)
	data = await api.fetch_snapshot("student", "student-1")

	assert data == {"stats": {"profileCompletion": 30}}
	assert seen["url"] == "http://api.test/api/dashboard/student/student-1"
	assert seen["auth"] == "Bearer token-1"


@pytest.mark.asyncio
async def test_missing_token_sends_no_authorization():
	seen = {}

	def handler(request: httpx.Request) -> httpx.Response:
		seen["auth"] = request.headers.get("Authorization")
		return httpx.Response(200, json={"success": True, "data": {}})

	await _api(handler, token=None).fetch_snapshot("student", "student-1")

	assert seen["auth"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize(
	"response, reason",
	[
		(httpx.Response(500, json={"success": False}), "http_status"),
		(httpx.Response(200, json={"success": False, "message": "nope"}), "unsuccessful"),
		(httpx.Response(200, content=b"<html>"), "invalid_json"),
		(httpx.Response(200, json={"success": True, "data": []}), "missing_data"),
	],
)
async def test_failures_raise_snapshot_fetch_error(response, reason):
	api = _api(lambda request: response)

	with pytest.raises(SnapshotFetchError) as excinfo:
		await api.fetch_snapshot("student", "student-1")

	assert excinfo.value.reason == reason


@pytest.mark.asyncio
async def test_transport_error_is_wrapped():
	def handler(request: httpx.Request) -> httpx.Response:
		raise httpx.ConnectError("refused", request=request)

	with pytest.raises(SnapshotFetchError) as excinfo:
		await _api(handler).fetch_snapshot("student", "student-1")

	assert excinfo.value.reason == "transport: ConnectError"
	assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_injected_client_is_not_closed():
	client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(204)))
	api = DashboardAPI("http://api.test", http=client)

	await api.aclose()

	assert client.is_closed is False
	await client.aclose()
