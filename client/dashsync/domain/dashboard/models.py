"""Domain models for the reconciled dashboard state and push events."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class SubjectType(str, Enum):
	STUDENT = "student"
	COMPANY = "company"


class EventType(str, Enum):
	JOB_VIEWED = "job_viewed"
	JOB_SAVED = "job_saved"
	JOB_UNSAVED = "job_unsaved"
	APPLICATION_CREATED = "application_created"
	APPLICATION_UPDATED = "application_updated"
	PROFILE_UPDATED = "profile_updated"
	INTERVIEW_SCHEDULED = "interview_scheduled"
	STATS_UPDATED = "stats_updated"

	@classmethod
	def parse(cls, value: object) -> Optional["EventType"]:
		try:
			return cls(str(value))
		except ValueError:
			return None


class EventPolicy(str, Enum):
	"""What the reconciler does with an event of a given type."""

	PATCH = "patch"
	NOTIFY = "notify"
	REFRESH = "refresh"


DEFAULT_EVENT_POLICIES: Dict[EventType, EventPolicy] = {
	EventType.JOB_VIEWED: EventPolicy.NOTIFY,
	EventType.JOB_SAVED: EventPolicy.NOTIFY,
	EventType.JOB_UNSAVED: EventPolicy.NOTIFY,
	EventType.APPLICATION_CREATED: EventPolicy.NOTIFY,
	EventType.APPLICATION_UPDATED: EventPolicy.NOTIFY,
	EventType.PROFILE_UPDATED: EventPolicy.NOTIFY,
	EventType.INTERVIEW_SCHEDULED: EventPolicy.PATCH,
	EventType.STATS_UPDATED: EventPolicy.PATCH,
}


def resolve_policies(overrides: Optional[Mapping[str, str]] = None) -> Dict[EventType, EventPolicy]:
	"""Merge ``{"job_saved": "patch"}`` style overrides onto the defaults.

	Unknown event types or policy names are ignored.
	"""
	policies = dict(DEFAULT_EVENT_POLICIES)
	for raw_type, raw_policy in (overrides or {}).items():
		event_type = EventType.parse(raw_type)
		if event_type is None:
			continue
		try:
			policies[event_type] = EventPolicy(str(raw_policy).lower())
		except ValueError:
			continue
	return policies


@dataclass(slots=True)
class DashboardStats:
	profile_completion: int = 0
	total_skills: int = 0
	total_projects: int = 0
	total_certifications: int = 0

	def to_dict(self) -> Dict[str, int]:
		return {
			"profileCompletion": self.profile_completion,
			"totalSkills": self.total_skills,
			"totalProjects": self.total_projects,
			"totalCertifications": self.total_certifications,
		}


@dataclass(slots=True)
class DashboardSnapshot:
	"""Reconciled view state for one subject.

	Collections hold opaque entity records (dicts with at least ``id``);
	``stats`` is derived from ``profile`` and refreshed after every patch.
	"""

	profile: Dict[str, Any] = field(default_factory=dict)
	saved_jobs: List[Dict[str, Any]] = field(default_factory=list)
	applications: List[Dict[str, Any]] = field(default_factory=list)
	interviews: List[Dict[str, Any]] = field(default_factory=list)
	viewed_jobs: List[Dict[str, Any]] = field(default_factory=list)
	stats: DashboardStats = field(default_factory=DashboardStats)

	@classmethod
	def empty(cls) -> "DashboardSnapshot":
		return cls()

	def copy(self) -> "DashboardSnapshot":
		return copy.deepcopy(self)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"profile": copy.deepcopy(self.profile),
			"savedJobs": copy.deepcopy(self.saved_jobs),
			"applications": copy.deepcopy(self.applications),
			"interviews": copy.deepcopy(self.interviews),
			"viewedJobs": copy.deepcopy(self.viewed_jobs),
			"stats": self.stats.to_dict(),
		}


@dataclass(frozen=True, slots=True)
class NormalizedEvent:
	type: EventType
	data: Dict[str, Any]
	timestamp: datetime

	@classmethod
	def create(
		cls,
		event_type: EventType | str,
		data: Any = None,
		timestamp: Optional[datetime] = None,
	) -> "NormalizedEvent":
		kind = event_type if isinstance(event_type, EventType) else EventType(event_type)
		payload = dict(data) if isinstance(data, Mapping) else {}
		return cls(type=kind, data=payload, timestamp=timestamp or datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class Notification:
	"""Toast-ready record handed to UI consumers."""

	id: str
	title: str
	message: str
	type: str
	color: str
	timestamp: datetime
	data: Dict[str, Any] = field(default_factory=dict)

	def to_dict(self) -> Dict[str, Any]:
		return {
			"id": self.id,
			"title": self.title,
			"message": self.message,
			"type": self.type,
			"color": self.color,
			"timestamp": self.timestamp.isoformat(),
			"data": dict(self.data),
		}
