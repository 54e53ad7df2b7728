"""Supabase (PostgREST) farm-record gateway.

Reads farm rows with their boundary column and linked farmer name, and
writes replacement boundaries back, over the PostgREST API exposed by a
Supabase project.

Requests:
    ``GET   /rest/v1/<table>?select=...&order=farm_name.asc``
    ``PATCH /rest/v1/<table>?id=eq.<farm_id>`` with body
    ``{"polygon_coordinates": [[lat, lon], ...]}`` and nothing else.

Transport failures, ``429`` and ``5xx`` responses are surfaced as
retryable gateway errors; other ``4xx`` responses are not retryable.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from farm_boundaries.core.constants import (
    COL_APPROVED,
    COL_COORDINATES,
    COL_CROP_TYPE,
    COL_DISTRICT,
    COL_FARM_NAME,
    COL_ID,
    COL_REGION,
    COL_UPDATED_AT,
    DEFAULT_FARMS_TABLE,
    FARMER_EMBED,
    SUPABASE_GATEWAY,
)
from farm_boundaries.gateways.base import (
    BoundaryGateway,
    GatewayPayloadError,
    GatewayReadError,
    GatewayWriteError,
)
from farm_boundaries.models.boundary import FarmRecord
from farm_boundaries.models.ring import serialize_ring

if TYPE_CHECKING:
    from farm_boundaries.models.ring import BoundaryRing

logger = logging.getLogger(__name__)

_REST_PREFIX = "/rest/v1"

_SELECT_COLUMNS = ",".join(
    (
        COL_ID,
        COL_COORDINATES,
        COL_APPROVED,
        COL_FARM_NAME,
        COL_REGION,
        COL_DISTRICT,
        COL_CROP_TYPE,
        COL_UPDATED_AT,
        FARMER_EMBED,
    )
)


class SupabaseBoundaryGateway(BoundaryGateway):
    """PostgREST adapter built on ``httpx``.

    The gateway owns its ``httpx.Client``; pass ``transport`` to route
    requests through a custom transport (proxies, mocking).
    """

    name = SUPABASE_GATEWAY

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        table: str = DEFAULT_FARMS_TABLE,
        timeout_s: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._table_path = f"{_REST_PREFIX}/{table}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=_auth_headers(api_key),
            timeout=timeout_s,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> SupabaseBoundaryGateway:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # list_boundaries
    # ------------------------------------------------------------------

    def list_boundaries(self) -> list[FarmRecord]:
        params = {"select": _SELECT_COLUMNS, "order": f"{COL_FARM_NAME}.asc"}
        try:
            response = self._client.get(self._table_path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            msg = f"Listing farms failed with HTTP {status}"
            raise GatewayReadError(self.name, msg, retryable=_is_retryable(status)) from exc
        except httpx.HTTPError as exc:
            msg = f"Listing farms failed: {exc}"
            raise GatewayReadError(self.name, msg, retryable=True) from exc

        rows = _json_list(response, self.name)
        records = [_row_to_record(row, self.name) for row in rows]
        logger.info("Farms listed | gateway=%s | rows=%d", self.name, len(records))
        return records

    # ------------------------------------------------------------------
    # replace_boundary
    # ------------------------------------------------------------------

    def replace_boundary(
        self,
        farm_id: str,
        ring: BoundaryRing,
        *,
        expected_version: str | None = None,
    ) -> None:
        if expected_version is not None:
            msg = "Versioned boundary writes are not supported by this gateway"
            raise GatewayWriteError(self.name, msg, farm_id=farm_id)

        body = {COL_COORDINATES: serialize_ring(ring)}
        try:
            response = self._client.patch(
                self._table_path,
                params={COL_ID: f"eq.{farm_id}"},
                json=body,
                headers={"Prefer": "return=representation"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            msg = f"Boundary write failed with HTTP {status}"
            raise GatewayWriteError(
                self.name, msg, retryable=_is_retryable(status), farm_id=farm_id
            ) from exc
        except httpx.HTTPError as exc:
            msg = f"Boundary write failed: {exc}"
            raise GatewayWriteError(self.name, msg, retryable=True, farm_id=farm_id) from exc

        updated = _json_list(response, self.name)
        if not updated:
            msg = f"No farm with id {farm_id!r}; nothing was written"
            raise GatewayWriteError(self.name, msg, farm_id=farm_id)

        logger.info(
            "Boundary replaced | gateway=%s | farm=%s | points=%d",
            self.name,
            farm_id,
            len(ring),
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _auth_headers(api_key: str) -> dict[str, str]:
    return {
        "apikey": api_key,
        "Authorization": f"Bearer {api_key}",
        "Accept": "application/json",
    }


def _is_retryable(status: int) -> bool:
    return status == 429 or status >= 500


def _json_list(response: httpx.Response, gateway: str) -> list[Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        msg = f"Response is not JSON: {exc}"
        raise GatewayPayloadError(gateway, msg) from exc
    if not isinstance(payload, list):
        msg = f"Expected a JSON array, got {type(payload).__name__}"
        raise GatewayPayloadError(gateway, msg)
    return payload


def _row_to_record(row: object, gateway: str) -> FarmRecord:
    """Map a PostgREST row onto the farm-record contract."""
    if not isinstance(row, dict):
        msg = f"Expected a JSON object per farm, got {type(row).__name__}"
        raise GatewayPayloadError(gateway, msg)

    farmer = row.get("farmer")
    # A to-one embed is an object; some PostgREST setups return a one-element array.
    if isinstance(farmer, list):
        farmer = farmer[0] if farmer else None
    farmer_name = farmer.get("name") if isinstance(farmer, dict) else None

    try:
        return FarmRecord(
            id=row.get(COL_ID),
            boundary_coordinates=row.get(COL_COORDINATES),
            approved=row.get(COL_APPROVED),
            farm_name=row.get(COL_FARM_NAME),
            region=row.get(COL_REGION),
            district=row.get(COL_DISTRICT),
            crop_type=row.get(COL_CROP_TYPE),
            farmer_name=farmer_name,
            version=row.get(COL_UPDATED_AT),
        )
    except PydanticValidationError as exc:
        msg = f"Farm row does not match the farm-record contract: {exc}"
        raise GatewayPayloadError(gateway, msg) from exc
