"""Asset manager.

Every asset reports through an edge controller of its own organization;
the controller must be registered before its assets.
"""

from __future__ import annotations

from system_model.core.errors import NotFoundError
from system_model.core.logging import get_logger
from system_model.entities import Asset, ChildKind
from system_model.managers.base import Manager
from system_model.requests import AddAssetRequest, UpdateAssetRequest
from system_model.validation import require, require_ids, validate_add_asset, validate_update_asset

logger = get_logger(__name__)


class AssetManager(Manager):
    def add_asset(self, request: AddAssetRequest) -> Asset:
        validate_add_asset(request)
        self._require_organization(request.organization_id)
        if not self.providers.organizations.child_exists(
            ChildKind.EDGE_CONTROLLER, request.organization_id, request.edge_controller_id
        ):
            raise NotFoundError("edge controller not found").with_context(
                organization_id=request.organization_id,
                entity_kind="edge_controller",
                entity_id=request.edge_controller_id,
            )
        asset = Asset(
            organization_id=request.organization_id,
            edge_controller_id=request.edge_controller_id,
            asset_id=self._new_id(),
            agent_id=request.agent_id,
            created=self._now(),
            labels=dict(request.labels),
            os=request.os,
        )
        self.providers.assets.add(asset)
        logger.info("asset_added", organization_id=asset.organization_id, asset_id=asset.asset_id)
        return asset

    def get_asset(self, organization_id: str, asset_id: str) -> Asset:
        require_ids(organization_id=organization_id, asset_id=asset_id)
        self._require_organization(organization_id)
        asset = self.providers.assets.get(asset_id)
        if asset.organization_id != organization_id:
            raise NotFoundError("asset not found").with_context(
                organization_id=organization_id, entity_kind="asset", entity_id=asset_id
            )
        return asset

    def list_assets(self, organization_id: str) -> list[Asset]:
        require(organization_id, "organization_id")
        self._require_organization(organization_id)
        return self.providers.assets.list_by_owner(organization_id)

    def list_controller_assets(self, organization_id: str, edge_controller_id: str) -> list[Asset]:
        require_ids(organization_id=organization_id, edge_controller_id=edge_controller_id)
        return [
            asset for asset in self.list_assets(organization_id) if asset.edge_controller_id == edge_controller_id
        ]

    def update_asset(self, request: UpdateAssetRequest) -> Asset:
        validate_update_asset(request)
        asset = self.get_asset(request.organization_id, request.asset_id)
        asset.labels.update(request.add_labels)
        for key in request.remove_labels:
            asset.labels.pop(key, None)
        if request.last_alive_timestamp is not None:
            asset.last_alive_timestamp = request.last_alive_timestamp
        self.providers.assets.update(asset)
        return asset

    def remove_asset(self, organization_id: str, asset_id: str) -> None:
        self.get_asset(organization_id, asset_id)
        self.providers.assets.remove(asset_id)
        logger.info("asset_removed", organization_id=organization_id, asset_id=asset_id)
