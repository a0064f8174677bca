"""Merged recent-activity feed built from a dashboard snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

from .models import DashboardSnapshot
from .normalizer import JOB_PLACEHOLDER

_EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass(frozen=True, slots=True)
class ActivityItem:
	kind: str
	title: str
	company: str
	time: str
	color: str
	timestamp: datetime


def parse_time(value: Any) -> Optional[datetime]:
	if isinstance(value, datetime):
		return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
	if isinstance(value, (int, float)) and not isinstance(value, bool):
		try:
			return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
		except (OverflowError, OSError, ValueError):
			return None
	if isinstance(value, str) and value:
		try:
			parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
		except ValueError:
			return None
		return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
	return None


def time_ago(moment: datetime, now: Optional[datetime] = None) -> str:
	current = now or datetime.now(timezone.utc)
	hours = int((current - moment).total_seconds() // 3600)
	days = hours // 24
	if days > 0:
		return f"{days} ngày trước"
	if hours > 0:
		return f"{hours} giờ trước"
	return "Vừa xong"


def _title(record: Mapping[str, Any]) -> str:
	return record.get("jobTitle") or record.get("title") or JOB_PLACEHOLDER


def _company(record: Mapping[str, Any]) -> str:
	company = record.get("company")
	nested = company.get("companyName") if isinstance(company, dict) else None
	return record.get("companyName") or nested or ""


def _items(
	records: Iterable[Mapping[str, Any]],
	*,
	kind: str,
	verb: str,
	time_field: str,
	color: str,
	now: datetime,
) -> List[ActivityItem]:
	items = []
	for record in records:
		moment = parse_time(record.get(time_field))
		items.append(
			ActivityItem(
				kind=kind,
				title=f"{verb} {_title(record)}",
				company=_company(record),
				time=time_ago(moment, now) if moment else "",
				color=color,
				timestamp=moment or _EPOCH,
			)
		)
	return items


def build_activity_feed(
	snapshot: DashboardSnapshot,
	now: Optional[datetime] = None,
	limit: Optional[int] = None,
) -> List[ActivityItem]:
	"""All four collections as one list, newest first."""
	current = now or datetime.now(timezone.utc)
	feed = [
		*_items(snapshot.applications, kind="application", verb="Ứng tuyển", time_field="appliedAt", color="info", now=current),
		*_items(snapshot.saved_jobs, kind="saved", verb="Đã lưu", time_field="savedAt", color="warning", now=current),
		*_items(snapshot.viewed_jobs, kind="viewed", verb="Xem chi tiết", time_field="viewedAt", color="success", now=current),
		*_items(snapshot.interviews, kind="interview", verb="Lịch phỏng vấn", time_field="interviewAt", color="error", now=current),
	]
	feed.sort(key=lambda item: item.timestamp, reverse=True)
	return feed[:limit] if limit is not None else feed
