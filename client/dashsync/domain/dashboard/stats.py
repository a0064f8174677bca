"""Recompute rule for the derived dashboard stats."""

from __future__ import annotations

from typing import Any, Mapping

from .models import DashboardStats

COMPLETION_FIELDS = ("firstName", "lastName", "phone", "dateOfBirth", "experience", "skills")


def _filled(profile: Mapping[str, Any], key: str) -> bool:
	value = profile.get(key)
	if key == "skills":
		return isinstance(value, list) and len(value) > 0
	return bool(value)


def _count(profile: Mapping[str, Any], key: str, fallback: int) -> int:
	value = profile.get(key)
	return len(value) if isinstance(value, list) else fallback


def profile_completion(profile: Mapping[str, Any], fallback: int = 0) -> int:
	"""Percentage of completion fields filled, or ``fallback`` when none are present."""
	if not any(key in profile for key in COMPLETION_FIELDS):
		return max(0, min(100, fallback))
	filled = sum(1 for key in COMPLETION_FIELDS if _filled(profile, key))
	return max(0, min(100, round(filled / len(COMPLETION_FIELDS) * 100)))


def derive_stats(profile: Mapping[str, Any], current: DashboardStats) -> DashboardStats:
	"""Stats re-derived from ``profile``.

	Values the profile does not carry keep the server-provided figure from
	``current``; the entity collections never contribute.
	"""
	return DashboardStats(
		profile_completion=profile_completion(profile, current.profile_completion),
		total_skills=_count(profile, "skills", current.total_skills),
		total_projects=_count(profile, "projects", current.total_projects),
		total_certifications=_count(profile, "certifications", current.total_certifications),
	)
