"""
Organization Keys — Envelope unwrapping of per-organization keys.

    root key ──AES-GCM──▶ organization key ──AES-GCM──▶ secret fields

Each organization's key is stored only in wrapped form. Keys are resolved
per operation and never cached, so decrypted key material lives no longer
than one resolve-and-use cycle.

Security Note:
    Never log key material. Only log organization ids.
"""
import logging

from .crypto import KEY_LENGTH, decrypt_field, decode_key, encode_key, encrypt_field
from .exceptions import (
    AuthenticationFailure,
    OrganizationKeyNotFound,
    UnsupportedAlgorithm,
)
from .models import OrgKeyRecord, SecretEncryptionAlgo, SecretKeyEncoding
from .storage import OrgKeyStore

logger = logging.getLogger("navigator.secrets")


def wrap_org_key(
    org_id: str,
    key: bytes,
    root_key: bytes,
    encoding: SecretKeyEncoding = SecretKeyEncoding.BASE64,
) -> OrgKeyRecord:
    """Wrap an existing organization key under the root key.

    Inverse of ``OrgKeyResolver.resolve``; used by provisioning code that
    persists the organization's key record. It does not generate keys.
    """
    wrapped = encrypt_field(encode_key(key, encoding), root_key)
    return OrgKeyRecord(org_id=org_id, wrapped_key=wrapped, key_encoding=encoding)


class OrgKeyResolver:
    """Resolve an organization's raw symmetric key."""

    def __init__(self, org_key_store: OrgKeyStore, root_key: bytes):
        if len(root_key) != KEY_LENGTH:
            raise ValueError(f"root_key must be exactly {KEY_LENGTH} bytes")
        self._store = org_key_store
        self._root_key = root_key

    async def resolve(self, org_id: str) -> bytes:
        """Fetch and unwrap the organization key.

        Raises:
            OrganizationKeyNotFound: The organization was never provisioned.
            AuthenticationFailure: The wrapped key failed verification or
                does not decode to a valid key.
        """
        record = await self._store.find_org_key_record(org_id)
        if record is None:
            raise OrganizationKeyNotFound(
                "Organization key not found",
                operation="ResolveOrgKey",
                org_id=org_id,
            )
        if record.algorithm != SecretEncryptionAlgo.AES_256_GCM:
            raise UnsupportedAlgorithm(
                f"Unsupported key wrapping algorithm {record.algorithm}",
                operation="ResolveOrgKey",
                org_id=org_id,
            )
        try:
            key_text = decrypt_field(record.wrapped_key, self._root_key)
            key = decode_key(key_text, record.key_encoding)
        except AuthenticationFailure as err:
            logger.error(
                "Organization key failed verification: org=%s", org_id,
            )
            err.operation = "ResolveOrgKey"
            err.org_id = org_id
            raise
        if len(key) != KEY_LENGTH:
            logger.error("Malformed organization key: org=%s", org_id)
            raise AuthenticationFailure(
                "Malformed organization key",
                operation="ResolveOrgKey",
                org_id=org_id,
            )
        return key
