"""Subsystem configuration loaded from environment variables.

All values have sensible defaults so the subsystem runs against the
in-memory gateway with no environment at all.

Fail-fast validation:
    ``from_env()`` raises ``ConfigValidationError`` if any value is out of
    its valid range, so a bad deployment is caught at startup instead of
    on the first commit.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from farm_boundaries.core.constants import (
    DEFAULT_FARMS_TABLE,
    MEMORY_GATEWAY,
    SERVICE_AREA_PRESETS,
    SUPABASE_GATEWAY,
)
from farm_boundaries.core.exceptions import ValidationError
from farm_boundaries.models.ring import GeoBounds

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


class ConfigValidationError(ValidationError):
    """Raised when configuration values are out of valid range.

    Attributes:
        key: The configuration key that failed validation.
        value: The invalid value.
    """

    default_stage = "config"
    default_code = "CONFIG_VALIDATION_FAILED"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


@dataclass(frozen=True, slots=True)
class BoundaryConfig:
    """Immutable subsystem configuration.

    Attributes:
        gateway: Persistence gateway backend (``memory`` or ``supabase``).
        supabase_url: Base URL of the Supabase project (no trailing path).
        supabase_api_key: API key sent as ``apikey`` and bearer token.
        table: Farm-record table holding the boundary column.
        request_timeout_s: HTTP timeout applied by the gateway, in seconds.
        service_area: Raw service-area setting: empty (disabled), a preset
            name such as ``ghana``, or ``min_lat,min_lon,max_lat,max_lon``.
        check_self_intersection: Log a warning for self-intersecting rings
            when the catalog loads.
    """

    gateway: str = MEMORY_GATEWAY
    supabase_url: str = ""
    supabase_api_key: str = ""
    table: str = DEFAULT_FARMS_TABLE
    request_timeout_s: float = 30.0
    service_area: str = ""
    check_self_intersection: bool = True

    @property
    def service_area_bounds(self) -> GeoBounds | None:
        """Resolve ``service_area`` to bounds, or ``None`` when disabled."""
        return _resolve_service_area(self.service_area)

    @classmethod
    def from_env(cls) -> BoundaryConfig:
        """Load and validate configuration from environment variables.

        Raises:
            ConfigValidationError: If a value is out of range, a required
                value is missing, or a flag is not a recognised boolean.
            ValueError: If ``BOUNDARY_REQUEST_TIMEOUT_S`` is not a number.
        """
        config = cls(
            gateway=os.getenv("BOUNDARY_GATEWAY", MEMORY_GATEWAY).strip().lower(),
            supabase_url=os.getenv("SUPABASE_URL", "").rstrip("/"),
            supabase_api_key=os.getenv("SUPABASE_API_KEY", ""),
            table=os.getenv("BOUNDARY_TABLE", DEFAULT_FARMS_TABLE),
            request_timeout_s=float(os.getenv("BOUNDARY_REQUEST_TIMEOUT_S", "30")),
            service_area=os.getenv("BOUNDARY_SERVICE_AREA", "").strip(),
            check_self_intersection=_parse_flag(
                "BOUNDARY_CHECK_SELF_INTERSECTION",
                os.getenv("BOUNDARY_CHECK_SELF_INTERSECTION", "true"),
            ),
        )
        _validate(config)
        return config


def _parse_flag(key: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigValidationError(key, raw, "must be a boolean (true/false)")


def _resolve_service_area(raw: str) -> GeoBounds | None:
    if not raw:
        return None
    preset = SERVICE_AREA_PRESETS.get(raw.lower())
    if preset is not None:
        return GeoBounds(*preset)
    try:
        return GeoBounds.parse(raw)
    except ValueError as exc:
        raise ConfigValidationError("BOUNDARY_SERVICE_AREA", raw, str(exc)) from exc


def _validate(config: BoundaryConfig) -> None:
    """Validate configuration ranges.  Raises ``ConfigValidationError``."""
    if config.gateway not in (MEMORY_GATEWAY, SUPABASE_GATEWAY):
        raise ConfigValidationError(
            "BOUNDARY_GATEWAY",
            config.gateway,
            f"must be one of {MEMORY_GATEWAY!r}, {SUPABASE_GATEWAY!r}",
        )

    if config.request_timeout_s <= 0:
        raise ConfigValidationError(
            "BOUNDARY_REQUEST_TIMEOUT_S",
            config.request_timeout_s,
            "must be > 0 (seconds)",
        )

    if not config.table:
        raise ConfigValidationError("BOUNDARY_TABLE", config.table, "must not be empty")

    if config.gateway == SUPABASE_GATEWAY:
        if not config.supabase_url:
            raise ConfigValidationError(
                "SUPABASE_URL",
                config.supabase_url,
                "must be set when BOUNDARY_GATEWAY=supabase",
            )
        if not config.supabase_api_key:
            raise ConfigValidationError(
                "SUPABASE_API_KEY",
                "",
                "must be set when BOUNDARY_GATEWAY=supabase",
            )

    _resolve_service_area(config.service_area)
