"""Gateway factory: selects the persistence gateway by configured name.

The factory maintains a registry of known gateways.  Each entry is a
lazy loader so that the HTTP stack is only imported when the Supabase
gateway is actually selected.

Usage::

    from farm_boundaries.gateways.factory import get_gateway

    gateway = get_gateway(BoundaryConfig.from_env())
    records = gateway.list_boundaries()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from farm_boundaries.core.constants import MEMORY_GATEWAY, SUPABASE_GATEWAY
from farm_boundaries.gateways.base import BoundaryGateway, GatewayError

if TYPE_CHECKING:
    from collections.abc import Callable

    from farm_boundaries.core.config import BoundaryConfig

logger = logging.getLogger(__name__)

_GATEWAY_REGISTRY: dict[str, Callable[[BoundaryConfig], BoundaryGateway]] = {}


def _register_builtin_gateways() -> None:
    """Register the built-in gateways as lazy-import builders."""

    def _memory(config: BoundaryConfig) -> BoundaryGateway:  # noqa: ARG001
        from farm_boundaries.gateways.memory import InMemoryBoundaryGateway

        return InMemoryBoundaryGateway()

    def _supabase(config: BoundaryConfig) -> BoundaryGateway:
        from farm_boundaries.gateways.supabase import SupabaseBoundaryGateway

        return SupabaseBoundaryGateway(
            config.supabase_url,
            config.supabase_api_key,
            table=config.table,
            timeout_s=config.request_timeout_s,
        )

    _GATEWAY_REGISTRY[MEMORY_GATEWAY] = _memory
    _GATEWAY_REGISTRY[SUPABASE_GATEWAY] = _supabase


def _ensure_registry() -> None:
    """Initialise the gateway registry once (idempotent)."""
    if not _GATEWAY_REGISTRY:
        _register_builtin_gateways()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def register_gateway(
    name: str,
    builder: Callable[[BoundaryConfig], BoundaryGateway],
) -> None:
    """Register a custom gateway builder.

    Raises:
        ValueError: If the name is empty.
    """
    if not name:
        msg = "Gateway name must be non-empty"
        raise ValueError(msg)
    _ensure_registry()
    _GATEWAY_REGISTRY[name] = builder
    logger.debug("Registered boundary gateway: %s", name)


def get_gateway(config: BoundaryConfig) -> BoundaryGateway:
    """Create the gateway named by ``config.gateway``.

    Raises:
        GatewayError: If no gateway is registered under that name.
    """
    _ensure_registry()

    builder = _GATEWAY_REGISTRY.get(config.gateway)
    if builder is None:
        available = ", ".join(sorted(_GATEWAY_REGISTRY))
        msg = f"Unknown boundary gateway: {config.gateway!r}. Available: {available}"
        raise GatewayError(config.gateway, msg)

    logger.info("Creating boundary gateway: %s", config.gateway)
    return builder(config)


def list_gateways() -> list[str]:
    """Return the names of all registered gateways."""
    _ensure_registry()
    return sorted(_GATEWAY_REGISTRY)
