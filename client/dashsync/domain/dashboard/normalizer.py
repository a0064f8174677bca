"""Turn heterogeneous push payloads into one notification shape."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import ulid

from .models import EventType, NormalizedEvent, Notification
from .schemas import (
	ApplicationEventPayload,
	GenericEventPayload,
	InterviewEventPayload,
	JobEventPayload,
	ProfileEventPayload,
	StatsEventPayload,
	parse_payload,
)

JOB_PLACEHOLDER = "Công việc"
GENERIC_TITLE = "Thông báo mới"
GENERIC_MESSAGE = "Bạn có thông báo mới"
GENERIC_TYPE = "notification"

_STATUS_MESSAGES = {
	"PENDING": "Đơn ứng tuyển đang chờ xử lý",
	"REVIEWING": "Đơn ứng tuyển đang được xem xét",
	"INTERVIEWED": "Đã phỏng vấn",
	"ACCEPTED": "Chúc mừng! Bạn đã được chấp nhận",
	"REJECTED": "Đơn ứng tuyển bị từ chối",
}
_POSITIVE_STATUSES = frozenset({"ACCEPTED", "INTERVIEWED"})


def new_notification_id() -> str:
	"""Time-ordered id with a random suffix; unique enough for one session."""
	return ulid.new().str


def job_title(payload: Any) -> str:
	title = getattr(payload, "job_title", None) or getattr(payload, "title", None)
	return title or JOB_PLACEHOLDER


def _with_company(text: str, company: Optional[str]) -> str:
	return f"{text} - {company}" if company else text


def _shape(event_type: Optional[EventType], payload: Any) -> tuple[str, str, str]:
	"""Return ``(title, message, color)`` for a parsed payload."""
	match event_type, payload:
		case EventType.JOB_VIEWED, JobEventPayload():
			return "Đã xem công việc", f"Đã xem: {job_title(payload)}", "info"
		case EventType.JOB_SAVED, JobEventPayload():
			return "Đã lưu công việc", f"Đã lưu: {job_title(payload)}", "success"
		case EventType.JOB_UNSAVED, JobEventPayload():
			return "Đã bỏ lưu công việc", f"Đã bỏ lưu: {job_title(payload)}", "warning"
		case EventType.APPLICATION_CREATED, ApplicationEventPayload():
			return (
				"Ứng tuyển thành công",
				_with_company(f"Ứng tuyển thành công: {job_title(payload)}", payload.company_name),
				"success",
			)
		case EventType.APPLICATION_UPDATED, ApplicationEventPayload():
			status = (payload.status or "").upper()
			message = _STATUS_MESSAGES.get(status, "Cập nhật trạng thái ứng tuyển")
			color = "success" if status in _POSITIVE_STATUSES else "info"
			return f"Cập nhật ứng tuyển {job_title(payload)}", message, color
		case EventType.PROFILE_UPDATED, ProfileEventPayload():
			return "Hồ sơ", "Hồ sơ đã được cập nhật!", "success"
		case EventType.INTERVIEW_SCHEDULED, InterviewEventPayload():
			message = _with_company(f"Lịch phỏng vấn mới: {job_title(payload)}", payload.company_name)
			if payload.interview_at:
				message = f"{message} ({payload.interview_at})"
			return "Lịch phỏng vấn", message, "success"
		case EventType.STATS_UPDATED, StatsEventPayload():
			return "Tiến độ hồ sơ", "Tiến độ hồ sơ đã được cập nhật", "primary"
		case _, GenericEventPayload():
			return payload.title or GENERIC_TITLE, payload.message or GENERIC_MESSAGE, "primary"
		case _:
			return GENERIC_TITLE, GENERIC_MESSAGE, "primary"


def normalize(
	raw_type: EventType | str | None,
	data: Any = None,
	*,
	timestamp: Optional[datetime] = None,
) -> Notification:
	"""Build a :class:`Notification` for any event, known or not.

	Missing fields render as placeholder text; nothing here raises on a
	malformed payload.
	"""
	event_type = raw_type if isinstance(raw_type, EventType) else EventType.parse(raw_type)
	payload = parse_payload(event_type, data)
	title, message, color = _shape(event_type, payload)
	if event_type is not None:
		kind = event_type.value
	else:
		kind = getattr(payload, "type", None) or (str(raw_type) if raw_type else GENERIC_TYPE)
	return Notification(
		id=new_notification_id(),
		title=title,
		message=message,
		type=kind,
		color=color,
		timestamp=timestamp or datetime.now(timezone.utc),
		data=dict(data) if isinstance(data, dict) else {},
	)


def normalize_event(event: NormalizedEvent) -> Notification:
	return normalize(event.type, event.data, timestamp=event.timestamp)
