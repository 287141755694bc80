"""
Vault Exceptions — Failures raised by the consumer-secrets vault.

Every failure carries the operation name and, where known, the secret and
organization ids so the routing layer can log and map it to a response
without this package depending on HTTP concepts.

Security Note:
    Messages never include plaintext, ciphertext or key material.
"""
from typing import Any, Optional


class VaultError(Exception):
    """Base exception for the vault."""

    client_error: bool = False

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        secret_id: Optional[str] = None,
        org_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.secret_id = secret_id
        self.org_id = org_id

    def context(self) -> dict[str, Any]:
        """Diagnostic context, safe to log."""
        ctx = {"error": type(self).__name__, "message": self.message}
        if self.operation:
            ctx["operation"] = self.operation
        if self.secret_id:
            ctx["secret_id"] = self.secret_id
        if self.org_id:
            ctx["org_id"] = self.org_id
        return ctx


class OrganizationKeyNotFound(VaultError):
    """The organization has no provisioned key record."""

    client_error = True


class AuthenticationFailure(VaultError):
    """Ciphertext, nonce or tag failed verification.

    Data-integrity fault: either corruption or tampering. Never retried.
    """

    def __init__(self, message: str, *, field: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.field = field

    def context(self) -> dict[str, Any]:
        ctx = super().context()
        if self.field:
            ctx["field"] = self.field
        return ctx


class SecretNotFound(VaultError):
    """Target secret does not exist (or belongs to another organization)."""

    client_error = True


class NoFieldsProvided(VaultError):
    """Update called with nothing to change."""

    client_error = True


class VersionConflict(VaultError):
    """Stored version differs from the caller's expected version."""

    client_error = True


class UnsupportedAlgorithm(VaultError):
    """Record was produced by an algorithm this vault cannot decrypt."""


class PersistenceFailure(VaultError):
    """Wraps any fault raised by the storage collaborator."""
