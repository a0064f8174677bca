"""Bindings from Socket.IO wire events onto the company dashboard service."""

from __future__ import annotations

from .service import CompanyDashboardService

WIRE_HANDLERS = {
	"new-application": "record_application",
	"job-viewed": "record_view",
	"applicationStatusUpdate": "record_status_update",
}


def bind(service: CompanyDashboardService) -> None:
	for wire_name, method in WIRE_HANDLERS.items():
		service.connection.on(wire_name, getattr(service, method))


def unbind(service: CompanyDashboardService) -> None:
	for wire_name, method in WIRE_HANDLERS.items():
		service.connection.off(wire_name, getattr(service, method))


def install(service: CompanyDashboardService) -> CompanyDashboardService:
	service.add_transport_binding(bind, unbind)
	return service
