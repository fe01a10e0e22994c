"""RouterOS User-Manager client with idempotent plan provisioning."""

from usermanager.api import UserManagerApi
from usermanager.attributes import UserAttributes, decode_attributes, encode_attributes
from usermanager.config import ClientSettings, get_settings
from usermanager.gateway import (
    PlanCancelledError,
    RemoteError,
    ResourceGateway,
    ResourceKind,
    RouterOSRestGateway,
    UserManagerError,
    create_gateway,
)
from usermanager.naming import dash_case
from usermanager.provisioning.names import PlanNames, StartPolicy, derive_plan_names
from usermanager.provisioning.reconcile import PlanReconciler

__all__ = [
    "ClientSettings",
    "PlanCancelledError",
    "PlanNames",
    "PlanReconciler",
    "RemoteError",
    "ResourceGateway",
    "ResourceKind",
    "RouterOSRestGateway",
    "StartPolicy",
    "UserAttributes",
    "UserManagerApi",
    "UserManagerError",
    "create_gateway",
    "dash_case",
    "decode_attributes",
    "derive_plan_names",
    "encode_attributes",
    "get_settings",
]
