"""Secrets Vault — Field-level envelope encryption for consumer secrets.

Security Note (Threat Model):
    The root key wraps one key per organization; each organization key
    encrypts every attribute of its members' secrets independently.
    Decrypted organization keys and plaintext exist in process memory only
    for the duration of a single operation. A memory dump taken during an
    operation could expose them; this is an accepted limitation.
"""

from .codec import decrypt_record, encrypt_changes, encrypt_secret
from .config import VaultConfig, load_root_key
from .crypto import decrypt_field, encrypt_field
from .exceptions import (
    AuthenticationFailure,
    NoFieldsProvided,
    OrganizationKeyNotFound,
    PersistenceFailure,
    SecretNotFound,
    UnsupportedAlgorithm,
    VaultError,
    VersionConflict,
)
from .keys import OrgKeyResolver, wrap_org_key
from .models import (
    ConsumerSecret,
    ConsumerSecretCreate,
    ConsumerSecretRecord,
    ConsumerSecretType,
    ConsumerSecretUpdate,
    EncryptedField,
    OrgKeyRecord,
    SecretEncryptionAlgo,
    SecretKeyEncoding,
)
from .service import SecretService
from .storage import (
    ConsumerSecretStore,
    OrgKeyStore,
    PgConsumerSecretStore,
    PgOrgKeyStore,
    create_tables,
)

__all__ = [
    "SecretService",
    "OrgKeyResolver",
    "wrap_org_key",
    "encrypt_field",
    "decrypt_field",
    "encrypt_secret",
    "encrypt_changes",
    "decrypt_record",
    "VaultConfig",
    "load_root_key",
    "ConsumerSecretStore",
    "OrgKeyStore",
    "PgConsumerSecretStore",
    "PgOrgKeyStore",
    "create_tables",
    "ConsumerSecret",
    "ConsumerSecretCreate",
    "ConsumerSecretRecord",
    "ConsumerSecretType",
    "ConsumerSecretUpdate",
    "EncryptedField",
    "OrgKeyRecord",
    "SecretEncryptionAlgo",
    "SecretKeyEncoding",
    "VaultError",
    "AuthenticationFailure",
    "NoFieldsProvided",
    "OrganizationKeyNotFound",
    "PersistenceFailure",
    "SecretNotFound",
    "UnsupportedAlgorithm",
    "VersionConflict",
]
