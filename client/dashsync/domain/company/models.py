"""Live counters shown on a company dashboard."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


def _count(value: Any) -> int:
	try:
		return max(0, int(value))
	except (TypeError, ValueError, OverflowError):
		return 0


@dataclass(slots=True)
class CompanyStats:
	total_applications: int = 0
	total_views: int = 0
	new_applications: int = 0
	new_views: int = 0

	@classmethod
	def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "CompanyStats":
		data = data or {}
		trends = data.get("weeklyTrends") if isinstance(data.get("weeklyTrends"), dict) else {}
		return cls(
			total_applications=_count(data.get("totalApplications")),
			total_views=_count(data.get("totalViews")),
			new_applications=_count(trends.get("newApplications")),
			new_views=_count(trends.get("newViews")),
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"totalApplications": self.total_applications,
			"totalViews": self.total_views,
			"weeklyTrends": {
				"newApplications": self.new_applications,
				"newViews": self.new_views,
			},
		}


@dataclass(slots=True)
class JobCounters:
	job_id: str
	title: str = ""
	applications_count: int = 0
	views_count: int = 0
	extra: Dict[str, Any] = field(default_factory=dict)

	@classmethod
	def from_mapping(cls, data: Mapping[str, Any]) -> "JobCounters":
		known = {"id", "title", "applicationsCount", "viewsCount"}
		return cls(
			job_id=str(data.get("id")),
			title=str(data.get("title") or ""),
			applications_count=_count(data.get("applicationsCount")),
			views_count=_count(data.get("viewsCount")),
			extra={key: value for key, value in data.items() if key not in known},
		)

	def to_dict(self) -> Dict[str, Any]:
		return {
			**self.extra,
			"id": self.job_id,
			"title": self.title,
			"applicationsCount": self.applications_count,
			"viewsCount": self.views_count,
		}
