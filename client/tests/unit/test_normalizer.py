from datetime import datetime, timezone

import pytest

from dashsync.domain.dashboard.models import EventType, NormalizedEvent
from dashsync.domain.dashboard.normalizer import (
	GENERIC_MESSAGE,
	GENERIC_TITLE,
	JOB_PLACEHOLDER,
	normalize,
	normalize_event,
)


def test_job_viewed_uses_job_title():
	note = normalize(EventType.JOB_VIEWED, {"jobTitle": "Backend Dev"})

	assert note.type == "job_viewed"
	assert note.message == "Đã xem: Backend Dev"
	assert note.color == "info"


def test_missing_job_title_falls_back_to_placeholder():
	note = normalize("job_saved", {"jobId": "j-1"})

	assert note.message == f"Đã lưu: {JOB_PLACEHOLDER}"
	assert "None" not in note.message


def test_title_used_when_job_title_absent():
	note = normalize("job_unsaved", {"title": "QA Engineer"})

	assert note.message == "Đã bỏ lưu: QA Engineer"
	assert note.color == "warning"


@pytest.mark.parametrize(
	"status,message,color",
	[
		("ACCEPTED", "Chúc mừng! Bạn đã được chấp nhận", "success"),
		("interviewed", "Đã phỏng vấn", "success"),
		("REJECTED", "Đơn ứng tuyển bị từ chối", "info"),
		(None, "Cập nhật trạng thái ứng tuyển", "info"),
	],
)
def test_application_updated_status_messages(status, message, color):
	note = normalize("application_updated", {"status": status, "jobTitle": "Dev"})

	assert note.message == message
	assert note.color == color


def test_interview_scheduled_includes_company_and_time():
	note = normalize(
		"interview_scheduled",
		{"jobTitle": "Backend Dev", "companyName": "Acme", "interviewAt": "2026-10-20T09:00:00Z"},
	)

	assert note.message == "Lịch phỏng vấn mới: Backend Dev - Acme (2026-10-20T09:00:00Z)"
	assert note.color == "success"


def test_unknown_type_becomes_generic_notification():
	note = normalize("company_verified", {})

	assert note.type == "company_verified"
	assert note.title == GENERIC_TITLE
	assert note.message == GENERIC_MESSAGE


def test_unknown_type_keeps_server_title_and_message():
	note = normalize(None, {"title": "Tin nhắn mới", "message": "Bạn có tin nhắn mới", "type": "MESSAGE_RECEIVED"})

	assert note.type == "MESSAGE_RECEIVED"
	assert note.title == "Tin nhắn mới"
	assert note.message == "Bạn có tin nhắn mới"


def test_malformed_payload_never_raises():
	note = normalize("application_created", ["not", "a", "dict"])
	assert note.message == f"Ứng tuyển thành công: {JOB_PLACEHOLDER}"

	nested = normalize("job_viewed", {"jobTitle": {"nested": True}})
	assert nested.message == f"Đã xem: {JOB_PLACEHOLDER}"


def test_numeric_fields_are_stringified():
	note = normalize("job_viewed", {"jobTitle": 404})

	assert note.message == "Đã xem: 404"


def test_ids_are_unique_and_time_ordered():
	ids = [normalize("job_viewed", {}).id for _ in range(50)]

	assert len(set(ids)) == 50
	assert all(len(value) == 26 for value in ids)


def test_normalize_event_keeps_event_timestamp():
	moment = datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)
	event = NormalizedEvent.create(EventType.PROFILE_UPDATED, {"phone": "1"}, timestamp=moment)

	note = normalize_event(event)

	assert note.timestamp == moment
	assert note.title == "Hồ sơ"
	assert note.to_dict()["timestamp"] == moment.isoformat()


def test_stats_payload_with_infinite_numbers_still_normalizes():
	notification = normalize("stats_updated", {"totalSkills": 1e400, "profileCompletion": "Infinity"})

	assert notification.title == "Tiến độ hồ sơ"
	assert notification.color == "primary"
