"""Unified boundary-subsystem exception taxonomy.

Every domain exception inherits from ``BoundaryError`` and carries
structured context fields so the presentation layer can decide whether
to offer a retry, keep a session open, or simply show a message.

Taxonomy categories
-------------------
- ``ValidationError``   : bad input (coordinates, point counts, config), never retryable.
- ``StateError``        : operation not allowed in the current state machine state.
- ``TransientError``    : temporary failures (network, throttle), retryable.
- ``PermanentError``    : unrecoverable store failures, not retryable.
- ``ContractError``     : payload/schema drift from the external store, never retryable.

None of these is fatal to the host application: every failure is local
and recoverable by a user retry or a session reset.

Every exception exposes ``to_error_dict()`` for a stable structured
error payload suitable for logging and user-facing notifications.
"""

from __future__ import annotations


class BoundaryError(Exception):
    """Base exception for all boundary-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Component where the error occurred
            (e.g. ``"editor"``, ``"catalog"``, ``"gateway"``).
        code: Machine-readable error code (e.g. ``"INSUFFICIENT_POINTS"``).
        retryable: Whether the user may simply retry the operation.
        farm_id: Identifier of the farm involved, if any.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        farm_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.farm_id = farm_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, StateError):
            return "state"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "farm_id": self.farm_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(BoundaryError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class StateError(BoundaryError):
    """Operation invalid in the current state. Never retryable as-is."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(BoundaryError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(BoundaryError):
    """Unrecoverable store failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(BoundaryError):
    """Payload or schema drift from the external store. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
