"""Resource gateways."""

from usermanager.gateway.base import (
    PlanCancelledError,
    RemoteError,
    ResourceGateway,
    ResourceKind,
    UserManagerError,
)
from usermanager.gateway.factory import create_gateway
from usermanager.gateway.rest import RouterOSRestGateway

__all__ = [
    "PlanCancelledError",
    "RemoteError",
    "ResourceGateway",
    "ResourceKind",
    "RouterOSRestGateway",
    "UserManagerError",
    "create_gateway",
]
