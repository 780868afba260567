"""Edge controller manager.

Edge controllers are organization children: they are registered in the
Organization Index with the two-write protocol and read through it. Assets
reference their controller by id, so a controller with assets can't be
removed.
"""

from __future__ import annotations

from system_model.core.errors import FailedPreconditionError
from system_model.core.logging import get_logger
from system_model.entities import ChildKind, EdgeController
from system_model.managers.base import OrganizationChildManager
from system_model.requests import AddEdgeControllerRequest, UpdateEdgeControllerRequest
from system_model.validation import require_ids, validate_add_edge_controller, validate_update_edge_controller

logger = get_logger(__name__)


class EdgeControllerManager(OrganizationChildManager):
    child_kind = ChildKind.EDGE_CONTROLLER
    store_name = "edge_controllers"

    def add_edge_controller(self, request: AddEdgeControllerRequest) -> EdgeController:
        validate_add_edge_controller(request)
        self._require_organization(request.organization_id)
        controller = EdgeController(
            organization_id=request.organization_id,
            edge_controller_id=self._new_id(),
            name=request.name,
            show=True,
            created=self._now(),
            labels=dict(request.labels),
        )
        self._register(
            "add_edge_controller", controller.organization_id, controller.edge_controller_id, controller
        )
        logger.info(
            "edge_controller_added",
            organization_id=controller.organization_id,
            edge_controller_id=controller.edge_controller_id,
        )
        return controller

    def get_edge_controller(self, organization_id: str, edge_controller_id: str) -> EdgeController:
        require_ids(organization_id=organization_id, edge_controller_id=edge_controller_id)
        return self._lookup(organization_id, edge_controller_id)

    def list_edge_controllers(self, organization_id: str) -> list[EdgeController]:
        require_ids(organization_id=organization_id)
        return self._list(organization_id)

    def update_edge_controller(self, request: UpdateEdgeControllerRequest) -> EdgeController:
        validate_update_edge_controller(request)
        controller: EdgeController = self._lookup(request.organization_id, request.edge_controller_id)
        controller.labels.update(request.add_labels)
        for key in request.remove_labels:
            controller.labels.pop(key, None)
        if request.show is not None:
            controller.show = request.show
        if request.last_alive_timestamp is not None:
            controller.last_alive_timestamp = request.last_alive_timestamp
        self.store.update(controller)
        return controller

    def remove_edge_controller(self, organization_id: str, edge_controller_id: str) -> None:
        require_ids(organization_id=organization_id, edge_controller_id=edge_controller_id)
        self._require_child(organization_id, edge_controller_id)
        if any(
            asset.edge_controller_id == edge_controller_id
            for asset in self.providers.assets.list_by_owner(organization_id)
        ):
            raise FailedPreconditionError("edge controller still has assets").with_context(
                organization_id=organization_id,
                entity_kind="edge_controller",
                entity_id=edge_controller_id,
                operation="remove_edge_controller",
            )
        self._unregister_store_first("remove_edge_controller", organization_id, edge_controller_id)
        logger.info(
            "edge_controller_removed", organization_id=organization_id, edge_controller_id=edge_controller_id
        )
