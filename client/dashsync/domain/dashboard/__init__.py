"""Student dashboard reconciliation."""

from dashsync.domain.dashboard.models import (
	DashboardSnapshot,
	DashboardStats,
	EventPolicy,
	EventType,
	NormalizedEvent,
	Notification,
	SubjectType,
)
from dashsync.domain.dashboard.service import DashboardReconciler, ReconcilerState

__all__ = [
	"DashboardReconciler",
	"DashboardSnapshot",
	"DashboardStats",
	"EventPolicy",
	"EventType",
	"NormalizedEvent",
	"Notification",
	"ReconcilerState",
	"SubjectType",
]
