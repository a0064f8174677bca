import json
import logging

from dashsync.obs import logging as obs_logging


def _record(**extra):
	record = logging.LogRecord("dashsync.test", logging.INFO, __file__, 1, "snapshot loaded", None, None)
	for key, value in extra.items():
		setattr(record, key, value)
	return record


def test_formatter_emits_json_with_context():
	tokens = obs_logging.bind_context(subject_id="student-1", subject_type="student")
	try:
		payload = json.loads(obs_logging.JSONLogFormatter().format(_record(room="student-1")))
	finally:
		obs_logging.reset_context(tokens)

	assert payload["msg"] == "snapshot loaded"
	assert payload["level"] == "info"
	assert payload["subject_id"] == "student-1"
	assert payload["subject_type"] == "student"
	assert payload["room"] == "student-1"


def test_formatter_redacts_sensitive_fields():
	record = _record(auth_token="abc", payload={"email": "a@b.c", "jobTitle": "Dev"})

	payload = json.loads(obs_logging.JSONLogFormatter().format(record))

	assert payload["auth_token"] == "[redacted]"
	assert payload["payload"] == {"email": "[redacted]", "jobTitle": "Dev"}


def test_long_values_are_truncated():
	record = _record(detail="x" * 400, items=list(range(20)))

	payload = json.loads(obs_logging.JSONLogFormatter().format(record))

	assert len(payload["detail"]) == 257
	assert len(payload["items"]) == 11


def test_context_reset_restores_previous_values():
	outer = obs_logging.bind_context(subject_id="outer")
	inner = obs_logging.bind_context(subject_id="inner")
	obs_logging.reset_context(inner)

	payload = json.loads(obs_logging.JSONLogFormatter().format(_record()))
	obs_logging.reset_context(outer)

	assert payload["subject_id"] == "outer"


def test_sampling_filter_keeps_warnings(monkeypatch):
	monkeypatch.setattr(obs_logging.settings, "obs_log_sampling_rate_info", 0.0)
	sampler = obs_logging.InfoSamplingFilter()

	warning = _record()
	warning.levelno = logging.WARNING

	assert sampler.filter(_record()) is False
	assert sampler.filter(warning) is True
