"""
Typed failures raised by the vault analytics core.

``ParseError`` is the only recoverable kind: the parser catches it per record
and turns it into a ``SkippedRecord``.  Everything else propagates to the
caller with enough context (vault id, field) to render a user-facing message.
"""

from __future__ import annotations

from typing import Any, Optional


class ParseError(ValueError):
    """Raised when one raw vault record cannot be turned into a snapshot.

    Attributes:
        vault_id: Identifier of the offending record, or ``None`` if absent.
        kind:     Short error category (e.g. ``"malformed_amount"``).
        field:    Raw field that failed, when known.
    """

    def __init__(
        self,
        kind: str,
        message: str,
        vault_id: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        self.kind = kind
        self.vault_id = vault_id
        self.field = field
        super().__init__(message)


class ComputationError(RuntimeError):
    """Raised when a derived feature escapes its valid range.

    This always indicates an upstream defect; values are never clamped.

    Attributes:
        vault_id: Vault whose feature is out of range.
        field:    Feature name.
        value:    The offending value.
    """

    def __init__(self, vault_id: str, field: str, value: Any) -> None:
        self.vault_id = vault_id
        self.field = field
        self.value = value
        super().__init__(
            f"Feature '{field}' for vault '{vault_id}' is out of range: {value!r}."
        )


class ValidationError(ValueError):
    """Raised for malformed caller input (profile or projection arguments).

    Attributes:
        field: Name of the offending input field.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"Invalid '{field}': {message}")


class NoCandidatesError(LookupError):
    """Raised when no vault survives filtering, even after tier fallback.

    Attributes:
        requested_tier: The tier the investor asked for.
        universe_size:  Number of feature vectors that were considered.
    """

    def __init__(self, requested_tier: str, universe_size: int) -> None:
        self.requested_tier = requested_tier
        self.universe_size = universe_size
        super().__init__(
            f"No recommendable vaults for '{requested_tier}' "
            f"(considered {universe_size} vault(s), all tiers tried)."
        )
