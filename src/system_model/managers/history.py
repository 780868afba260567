"""Application history logs: one record per service instance lifetime."""

from __future__ import annotations

from system_model.core.errors import NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import LogResponse, ServiceInstanceLog
from system_model.managers.base import Manager
from system_model.providers.base import SERVICE_INSTANCE_LOGS
from system_model.requests import AddLogRequest, SearchLogsRequest, UpdateLogRequest
from system_model.validation import require_ids, validate_add_log, validate_search_logs, validate_update_log

logger = get_logger(__name__)


class HistoryLogManager(Manager):
    def add_log(self, request: AddLogRequest) -> ServiceInstanceLog:
        validate_add_log(request)
        self._require_organization(request.organization_id)
        entry = ServiceInstanceLog(
            organization_id=request.organization_id,
            app_descriptor_id=request.app_descriptor_id,
            app_instance_id=request.app_instance_id,
            service_group_id=request.service_group_id,
            service_group_instance_id=request.service_group_instance_id,
            service_id=request.service_id,
            service_instance_id=request.service_instance_id,
            created=request.created or self._now(),
        )
        self.providers.service_instance_logs.add(entry)
        logger.debug(
            "service_instance_log_added",
            organization_id=entry.organization_id,
            app_instance_id=entry.app_instance_id,
            service_instance_id=entry.service_instance_id,
        )
        return entry

    def update_log(self, request: UpdateLogRequest) -> list[ServiceInstanceLog]:
        """Mark a service instance as terminated."""
        validate_update_log(request)
        self._require_organization(request.organization_id)
        store = self.providers.service_instance_logs
        matching = [
            entry
            for entry in store.list_by_owner(request.organization_id)
            if entry.app_instance_id == request.app_instance_id
            and entry.service_instance_id == request.service_instance_id
        ]
        if not matching:
            raise NotFoundError("service instance log not found").with_context(
                organization_id=request.organization_id,
                entity_kind="service_instance_log",
                entity_id=request.service_instance_id,
                app_instance_id=request.app_instance_id,
            )
        for entry in matching:
            entry.terminated = request.terminated or self._now()
            store.update(entry)
        return matching

    def search_logs(self, request: SearchLogsRequest) -> LogResponse:
        validate_search_logs(request)
        self._require_organization(request.organization_id)
        events = [
            entry
            for entry in self.providers.service_instance_logs.list_by_owner(request.organization_id)
            if entry.overlaps(request.available_from, request.available_to)
        ]
        return LogResponse(
            organization_id=request.organization_id,
            available_from=request.available_from,
            available_to=request.available_to,
            events=events,
        )

    def remove_logs(self, organization_id: str, app_instance_id: str) -> None:
        """Forget the history of one application instance."""
        require_ids(organization_id=organization_id, app_instance_id=app_instance_id)
        self._require_organization(organization_id)
        store = self.providers.service_instance_logs
        removed = 0
        for entry in store.list_by_owner(organization_id):
            if entry.app_instance_id == app_instance_id:
                store.remove(SERVICE_INSTANCE_LOGS.key(entry))
                removed += 1
        logger.info(
            "service_instance_logs_removed",
            organization_id=organization_id,
            app_instance_id=app_instance_id,
            count=removed,
        )
