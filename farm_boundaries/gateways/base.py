"""BoundaryGateway abstract base class.

Defines the narrow contract between this subsystem and the external
farm-record store.  The catalog and editor interact exclusively with
this interface and never know which store is behind it.

Operations:
    1. ``list_boundaries()``           : every farm row, with or without a boundary.
    2. ``replace_boundary(farm_id, ring)`` : full overwrite of one farm's ring.

Writes are last-write-wins.  A gateway that can detect concurrent edits
reports ``supports_versioning = True`` and honours ``expected_version``;
callers that never pass a version get plain overwrite semantics.
"""

from __future__ import annotations

import abc
from typing import TYPE_CHECKING

from farm_boundaries.core.exceptions import BoundaryError, ContractError

if TYPE_CHECKING:
    from farm_boundaries.models.boundary import FarmRecord
    from farm_boundaries.models.ring import BoundaryRing


class BoundaryGateway(abc.ABC):
    """Abstract base class for farm-record store adapters.

    Example usage::

        gateway = get_gateway(BoundaryConfig.from_env())
        records = gateway.list_boundaries()
        gateway.replace_boundary(records[0].id, ring)
    """

    #: Short backend name used in logs and errors.
    name: str = ""

    #: Whether ``replace_boundary`` honours ``expected_version``.
    supports_versioning: bool = False

    @abc.abstractmethod
    def list_boundaries(self) -> list[FarmRecord]:
        """Return every farm row known to the store.

        Rows may carry no boundary (``boundary_coordinates is None``).

        Raises:
            GatewayReadError: If the store cannot be read.
        """

    @abc.abstractmethod
    def replace_boundary(
        self,
        farm_id: str,
        ring: BoundaryRing,
        *,
        expected_version: str | None = None,
    ) -> None:
        """Overwrite the boundary of ``farm_id`` with ``ring``.

        Only the coordinate field is written; no merge, no other fields.

        Args:
            farm_id: Farm whose boundary is replaced.
            ring: Full replacement ring.
            expected_version: Version token read with the record.  Only
                valid when ``supports_versioning`` is true.

        Raises:
            GatewayWriteError: If the write fails or matches no farm.
            GatewayConflictError: If ``expected_version`` is stale.
        """


# ---------------------------------------------------------------------------
# Gateway exceptions
# ---------------------------------------------------------------------------


class GatewayError(BoundaryError):
    """Base exception for persistence gateway errors.

    Attributes:
        gateway: Name of the gateway that raised the error.
    """

    default_stage = "gateway"
    default_code = "GATEWAY_ERROR"

    def __init__(
        self,
        gateway: str,
        message: str,
        *,
        retryable: bool = False,
        farm_id: str = "",
    ) -> None:
        self.gateway = gateway
        super().__init__(message, retryable=retryable, farm_id=farm_id)

    def __str__(self) -> str:
        return f"[{self.gateway}] {self.message}"


class GatewayReadError(GatewayError):
    """Listing farm rows failed."""

    default_code = "GATEWAY_READ_FAILED"


class GatewayPayloadError(GatewayReadError, ContractError):
    """The store answered with rows that do not match the farm-record contract."""

    default_code = "GATEWAY_PAYLOAD_INVALID"


class GatewayWriteError(GatewayError):
    """Writing a boundary failed."""

    default_code = "GATEWAY_WRITE_FAILED"


class GatewayConflictError(GatewayWriteError):
    """The stored record changed since the caller's version was read."""

    default_code = "GATEWAY_VERSION_CONFLICT"

    def __init__(self, gateway: str, message: str, *, farm_id: str = "") -> None:
        super().__init__(gateway, message, retryable=False, farm_id=farm_id)
