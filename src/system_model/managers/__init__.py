"""Managers: validation, preconditions and write ordering per entity kind."""

from system_model.managers.account import AccountManager
from system_model.managers.application import ApplicationManager
from system_model.managers.asset import AssetManager
from system_model.managers.base import Manager, OrganizationChildManager
from system_model.managers.cluster import ClusterManager
from system_model.managers.device import DeviceManager
from system_model.managers.edge_controller import EdgeControllerManager
from system_model.managers.history import HistoryLogManager
from system_model.managers.network import NetworkManager
from system_model.managers.node import NodeManager
from system_model.managers.organization import OrganizationManager
from system_model.managers.user import RoleManager, UserManager

__all__ = [
    "AccountManager",
    "ApplicationManager",
    "AssetManager",
    "ClusterManager",
    "DeviceManager",
    "EdgeControllerManager",
    "HistoryLogManager",
    "Manager",
    "NetworkManager",
    "NodeManager",
    "OrganizationChildManager",
    "OrganizationManager",
    "RoleManager",
    "UserManager",
]
