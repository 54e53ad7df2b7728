"""Persistence gateways to the external farm-record store.

Implements the gateway adapter pattern:
- BoundaryGateway: Abstract base class defining the read/replace contract
- InMemoryBoundaryGateway: dictionary-backed store (dev, demos, tests)
- SupabaseBoundaryGateway: PostgREST over httpx (production)

The active gateway is selected via ``BoundaryConfig.gateway``.
"""

from farm_boundaries.gateways.base import (
    BoundaryGateway,
    GatewayConflictError,
    GatewayError,
    GatewayPayloadError,
    GatewayReadError,
    GatewayWriteError,
)
from farm_boundaries.gateways.factory import get_gateway, list_gateways, register_gateway
from farm_boundaries.gateways.memory import InMemoryBoundaryGateway

__all__ = [
    "BoundaryGateway",
    "GatewayConflictError",
    "GatewayError",
    "GatewayPayloadError",
    "GatewayReadError",
    "GatewayWriteError",
    "InMemoryBoundaryGateway",
    "get_gateway",
    "list_gateways",
    "register_gateway",
]
