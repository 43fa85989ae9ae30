"""Port for principal (author) validation."""

from __future__ import annotations

from typing import Protocol


class PrincipalValidatorPort(Protocol):
    """Confirms a principal exists and, optionally, holds a role.

    Implementations raise PrincipalValidationError on failure.
    """

    async def validate(self, principal_id: str, required_role: str | None = None) -> None: ...
