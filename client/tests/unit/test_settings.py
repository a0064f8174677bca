from dashsync.settings import Settings


def _settings(monkeypatch, **env):
	for key, value in env.items():
		monkeypatch.setenv(key, value)
	return Settings(_env_file=None)


def test_defaults(monkeypatch):
	for key in ("SOCKET_URL", "REACT_APP_SOCKET_URL", "API_BASE_URL", "SOCKET_TRANSPORTS", "EVENT_POLICIES"):
		monkeypatch.delenv(key, raising=False)
	current = Settings(_env_file=None)

	assert current.socket_transports == ("websocket",)
	assert current.socket_reconnection_attempts == 5
	assert current.socket_reconnection_delay == 1.0
	assert current.event_policies == {}
	assert current.resolved_socket_url() == "http://localhost:5000"


def test_transports_accept_csv_and_json(monkeypatch):
	assert _settings(monkeypatch, SOCKET_TRANSPORTS="polling, websocket").socket_transports == ("polling", "websocket")
	assert _settings(monkeypatch, SOCKET_TRANSPORTS='["websocket"]').socket_transports == ("websocket",)


def test_event_policies_from_pairs_and_json(monkeypatch):
	pairs = _settings(monkeypatch, EVENT_POLICIES="job_saved=PATCH, profile_updated=refresh")
	assert pairs.event_policies == {"job_saved": "patch", "profile_updated": "refresh"}

	parsed = _settings(monkeypatch, EVENT_POLICIES='{"job_unsaved": "patch"}')
	assert parsed.event_policies == {"job_unsaved": "patch"}

	broken = _settings(monkeypatch, EVENT_POLICIES="{not json")
	assert broken.event_policies == {}


def test_socket_url_aliases(monkeypatch):
	monkeypatch.delenv("SOCKET_URL", raising=False)
	current = _settings(monkeypatch, REACT_APP_SOCKET_URL="http://rt.test:5000")

	assert current.resolved_socket_url() == "http://rt.test:5000"


def test_environment_helpers(monkeypatch):
	monkeypatch.delenv("APP_ENV", raising=False)
	monkeypatch.delenv("ENVIRONMENT", raising=False)
	current = _settings(monkeypatch, ENV="development")

	assert current.is_dev() is True
	assert current.is_prod() is False
