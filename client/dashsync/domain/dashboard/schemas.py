"""Pydantic schemas for the snapshot endpoint and push-event payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .models import DashboardSnapshot, DashboardStats, EventType


def _non_negative_int(value: Any) -> int:
	if isinstance(value, bool):
		return int(value)
	try:
		number = int(float(value))
	except (TypeError, ValueError, OverflowError):
		return 0
	return max(0, number)


def _records(value: Any) -> List[Dict[str, Any]]:
	if not isinstance(value, (list, tuple)):
		return []
	return [dict(item) for item in value if isinstance(item, dict)]


class _Wire(BaseModel):
	model_config = ConfigDict(populate_by_name=True, extra="ignore")


class StatsPayload(_Wire):
	profile_completion: int = Field(default=0, alias="profileCompletion")
	total_skills: int = Field(default=0, alias="totalSkills")
	total_projects: int = Field(default=0, alias="totalProjects")
	total_certifications: int = Field(default=0, alias="totalCertifications")

	@field_validator("*", mode="before")
	@classmethod
	def _coerce(cls, value: Any) -> int:
		return _non_negative_int(value)

	def to_model(self) -> DashboardStats:
		return DashboardStats(
			profile_completion=min(100, self.profile_completion),
			total_skills=self.total_skills,
			total_projects=self.total_projects,
			total_certifications=self.total_certifications,
		)


class SnapshotPayload(_Wire):
	"""``data`` object of ``GET /dashboard/{subject_type}/{subject_id}``."""

	profile: Dict[str, Any] = Field(default_factory=dict)
	saved_jobs: List[Dict[str, Any]] = Field(default_factory=list, alias="savedJobs")
	applications: List[Dict[str, Any]] = Field(default_factory=list)
	interviews: List[Dict[str, Any]] = Field(default_factory=list)
	viewed_jobs: List[Dict[str, Any]] = Field(default_factory=list, alias="viewedJobs")
	stats: StatsPayload = Field(default_factory=StatsPayload)

	@field_validator("profile", mode="before")
	@classmethod
	def _profile(cls, value: Any) -> Dict[str, Any]:
		return dict(value) if isinstance(value, dict) else {}

	@field_validator("saved_jobs", "applications", "interviews", "viewed_jobs", mode="before")
	@classmethod
	def _collections(cls, value: Any) -> List[Dict[str, Any]]:
		return _records(value)

	@field_validator("stats", mode="before")
	@classmethod
	def _stats(cls, value: Any) -> Any:
		return value if isinstance(value, dict) else {}

	def to_model(self) -> DashboardSnapshot:
		return DashboardSnapshot(
			profile=self.profile,
			saved_jobs=self.saved_jobs,
			applications=self.applications,
			interviews=self.interviews,
			viewed_jobs=self.viewed_jobs,
			stats=self.stats.to_model(),
		)


class _EventWire(_Wire):
	id: Optional[str] = None
	job_title: Optional[str] = Field(default=None, alias="jobTitle")
	title: Optional[str] = None
	company_name: Optional[str] = Field(default=None, alias="companyName")

	@field_validator("id", "job_title", "title", "company_name", mode="before")
	@classmethod
	def _stringify(cls, value: Any) -> Optional[str]:
		if value is None or isinstance(value, (dict, list)):
			return None
		text = str(value).strip()
		return text or None


class JobEventPayload(_EventWire):
	job_id: Optional[str] = Field(default=None, alias="jobId")

	@field_validator("job_id", mode="before")
	@classmethod
	def _job_id(cls, value: Any) -> Optional[str]:
		return None if value is None else str(value)


class ApplicationEventPayload(JobEventPayload):
	status: Optional[str] = None
	student_name: Optional[str] = Field(default=None, alias="studentName")


class InterviewEventPayload(_EventWire):
	student_id: Optional[str] = Field(default=None, alias="studentId")
	interview_at: Optional[str] = Field(default=None, alias="interviewAt")
	location: Optional[str] = None

	@field_validator("student_id", "interview_at", "location", mode="before")
	@classmethod
	def _text(cls, value: Any) -> Optional[str]:
		return None if value is None else str(value)


class ProfileEventPayload(_Wire):
	model_config = ConfigDict(populate_by_name=True, extra="allow")


class StatsEventPayload(_Wire):
	profile_completion: Optional[int] = Field(default=None, alias="profileCompletion")
	total_skills: Optional[int] = Field(default=None, alias="totalSkills")
	total_projects: Optional[int] = Field(default=None, alias="totalProjects")
	total_certifications: Optional[int] = Field(default=None, alias="totalCertifications")

	@field_validator("*", mode="before")
	@classmethod
	def _coerce(cls, value: Any) -> Optional[int]:
		return None if value is None else _non_negative_int(value)


class GenericEventPayload(_Wire):
	title: Optional[str] = None
	message: Optional[str] = None
	type: Optional[str] = None

	@field_validator("title", "message", "type", mode="before")
	@classmethod
	def _text(cls, value: Any) -> Optional[str]:
		if value is None or isinstance(value, (dict, list)):
			return None
		text = str(value).strip()
		return text or None


EventPayload = Union[
	JobEventPayload,
	ApplicationEventPayload,
	InterviewEventPayload,
	ProfileEventPayload,
	StatsEventPayload,
	GenericEventPayload,
]

_PAYLOAD_MODELS = {
	EventType.JOB_VIEWED: JobEventPayload,
	EventType.JOB_SAVED: JobEventPayload,
	EventType.JOB_UNSAVED: JobEventPayload,
	EventType.APPLICATION_CREATED: ApplicationEventPayload,
	EventType.APPLICATION_UPDATED: ApplicationEventPayload,
	EventType.PROFILE_UPDATED: ProfileEventPayload,
	EventType.INTERVIEW_SCHEDULED: InterviewEventPayload,
	EventType.STATS_UPDATED: StatsEventPayload,
}


def parse_payload(event_type: Optional[EventType], data: Any) -> EventPayload:
	"""Parse ``data`` into the variant for ``event_type``.

	Unknown types and payloads that fail validation fall back to
	:class:`GenericEventPayload` so an event is never lost.
	"""
	raw = data if isinstance(data, dict) else {}
	model = _PAYLOAD_MODELS.get(event_type) if event_type is not None else None
	if model is not None:
		try:
			return model.model_validate(raw)
		except ValidationError:
			pass
	try:
		return GenericEventPayload.model_validate(raw)
	except ValidationError:
		return GenericEventPayload()
