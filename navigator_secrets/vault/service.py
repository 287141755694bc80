"""
SecretService — Encrypted consumer secrets owned by an organization member.

Provides the API the routing layer calls with already-authenticated ids:
- ``create(secret, org_id, user_id)`` — encrypt all four fields and persist
- ``get(secret_id, org_id)`` — fetch and decrypt one secret
- ``list_secrets(org_id, user_id)`` — fetch and decrypt the caller's non-empty secrets
- ``update(secret_id, changes, org_id)`` — re-encrypt only supplied fields
- ``delete(secret_id)`` — hard delete

The organization key is resolved once per operation and dropped when it
returns. No lock is held across awaits: concurrent updates of one secret
are last-write-wins unless the caller passes ``expected_version``.

Security Note:
    Never log plaintext or ciphertext values. Only log ids and field names.
"""
import logging
from typing import Optional

from .codec import (
    decrypt_record,
    encrypt_changes,
    encrypt_secret,
    fields_to_columns,
    record_from_row,
)
from .exceptions import NoFieldsProvided, SecretNotFound, VersionConflict
from .keys import OrgKeyResolver
from .models import (
    ConsumerSecret,
    ConsumerSecretCreate,
    ConsumerSecretRecord,
    ConsumerSecretUpdate,
    SecretEncryptionAlgo,
    SecretKeyEncoding,
)
from .storage import ConsumerSecretStore

logger = logging.getLogger("navigator.secrets")


class SecretService:
    """Create, read, update and delete consumer secrets."""

    def __init__(self, store: ConsumerSecretStore, resolver: OrgKeyResolver):
        self._store = store
        self._resolver = resolver

    async def _fetch_owned(
        self, secret_id: str, org_id: str, operation: str,
    ) -> ConsumerSecretRecord:
        row = await self._store.fetch_by_id(secret_id)
        if row is None or str(row["orgId"]) != str(org_id):
            raise SecretNotFound(
                "Secret not found",
                operation=operation,
                secret_id=secret_id,
                org_id=org_id,
            )
        return record_from_row(row)

    @staticmethod
    def _conflict(secret_id: str, org_id: str, expected_version: int) -> VersionConflict:
        return VersionConflict(
            f"Secret is no longer at version {expected_version}",
            operation="UpdateConsumerSecret",
            secret_id=secret_id,
            org_id=org_id,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def create(
        self, secret: ConsumerSecretCreate, org_id: str, user_id: str,
    ) -> str:
        """Encrypt and persist a new secret.

        Returns:
            Identifier of the new secret.

        Raises:
            OrganizationKeyNotFound: The organization is not provisioned.
            PersistenceFailure: The insert failed.
        """
        key = await self._resolver.resolve(org_id)
        fields = encrypt_secret(secret, key)
        row = {
            "userId": user_id,
            "orgId": org_id,
            **fields_to_columns(fields),
            "algorithm": SecretEncryptionAlgo.AES_256_GCM.value,
            "keyEncoding": SecretKeyEncoding.UTF8.value,
        }
        created = await self._store.insert(row)
        secret_id = str(created["id"])
        logger.info(
            "Consumer secret created: id=%s org=%s user=%s",
            secret_id, org_id, user_id,
        )
        return secret_id

    async def get(self, secret_id: str, org_id: str) -> ConsumerSecret:
        """Decrypt a single secret.

        Raises:
            SecretNotFound: No such secret in this organization.
            AuthenticationFailure: Any field failed verification.
        """
        record = await self._fetch_owned(secret_id, org_id, "FindConsumerSecretById")
        key = await self._resolver.resolve(org_id)
        return decrypt_record(record, key)

    async def list_secrets(self, org_id: str, user_id: str) -> list[ConsumerSecret]:
        """Decrypt every non-empty secret of a member, in store order.

        The organization key is resolved once for the whole batch, even
        when the member has no secrets. One undecryptable record fails the
        call.

        Raises:
            OrganizationKeyNotFound: The organization is not provisioned.
            AuthenticationFailure: Any record failed verification.
        """
        key = await self._resolver.resolve(org_id)
        rows = await self._store.fetch_filtered(org_id, user_id, require_data=True)
        secrets = [decrypt_record(record_from_row(row), key) for row in rows]
        logger.debug(
            "Listed %d consumer secret(s): org=%s user=%s",
            len(secrets), org_id, user_id,
        )
        return secrets

    async def update(
        self,
        secret_id: str,
        changes: ConsumerSecretUpdate,
        org_id: str,
        expected_version: Optional[int] = None,
    ) -> str:
        """Re-encrypt and overwrite the supplied fields only.

        Args:
            secret_id: Secret to update.
            changes: Fields to replace; ``None`` leaves a field untouched.
            org_id: Caller's organization.
            expected_version: If given, only apply when the stored version
                still matches.

        Raises:
            NoFieldsProvided: Every field of ``changes`` is ``None``.
            SecretNotFound: No such secret in this organization.
            VersionConflict: Stored version differs from ``expected_version``.
        """
        if not changes.provided_fields():
            raise NoFieldsProvided(
                "At least one field must be provided",
                operation="UpdateConsumerSecret",
                secret_id=secret_id,
                org_id=org_id,
            )
        record = await self._fetch_owned(secret_id, org_id, "UpdateConsumerSecret")
        if expected_version is not None and record.version != expected_version:
            raise self._conflict(secret_id, org_id, expected_version)
        key = await self._resolver.resolve(org_id)
        fields = encrypt_changes(changes, key)
        updated = await self._store.update_partial(
            secret_id, fields_to_columns(fields), expected_version=expected_version,
        )
        if updated is None:
            # gone since the read, or a concurrent writer bumped the version
            still_there = await self._store.fetch_by_id(secret_id)
            if expected_version is not None and still_there is not None:
                raise self._conflict(secret_id, org_id, expected_version)
            raise SecretNotFound(
                "Secret not found",
                operation="UpdateConsumerSecret",
                secret_id=secret_id,
                org_id=org_id,
            )
        logger.debug(
            "Consumer secret updated: id=%s fields=%s",
            secret_id, sorted(fields),
        )
        return str(updated["id"])

    async def delete(self, secret_id: str) -> str:
        """Permanently delete a secret.

        Raises:
            SecretNotFound: No such secret.
        """
        deleted = await self._store.delete_by_id(secret_id)
        if deleted is None:
            raise SecretNotFound(
                "Secret not found",
                operation="DeleteConsumerSecret",
                secret_id=secret_id,
            )
        logger.info("Consumer secret deleted: id=%s", secret_id)
        return str(deleted["id"])
