"""
Vault Configuration — Root key loading and validated settings.

Reads the platform root key from the environment:
    VAULT_ROOT_KEY = <base64-encoded 32-byte key>
    VAULT_ORG_KEY_ENCODING = base64 | utf8   (optional, default base64)

Security Note:
    Never log key material. Only log key lengths and encodings.
"""
import os
import base64
import binascii
import logging

from pydantic import BaseModel, Field, field_validator

from .crypto import KEY_LENGTH
from .models import SecretEncryptionAlgo, SecretKeyEncoding

logger = logging.getLogger("navigator.secrets")

ROOT_KEY_ENV = "VAULT_ROOT_KEY"


def load_root_key() -> bytes:
    """Load the platform root key from VAULT_ROOT_KEY.

    Returns:
        Raw 32-byte root key.

    Raises:
        RuntimeError: If VAULT_ROOT_KEY is not set.
        ValueError: If the value is not base64 or does not decode to 32 bytes.
    """
    value = os.environ.get(ROOT_KEY_ENV)
    if not value:
        raise RuntimeError(
            "No vault root key found in environment. "
            f"Set {ROOT_KEY_ENV}=<base64-encoded-32-byte-key>"
        )
    try:
        key_bytes = base64.b64decode(value, validate=True)
    except binascii.Error as err:
        raise ValueError(f"{ROOT_KEY_ENV} is not valid base64") from err
    if len(key_bytes) != KEY_LENGTH:
        raise ValueError(
            f"{ROOT_KEY_ENV} must decode to exactly {KEY_LENGTH} bytes, "
            f"got {len(key_bytes)}"
        )
    logger.debug("Loaded vault root key from %s", ROOT_KEY_ENV)
    return key_bytes


class VaultConfig(BaseModel):
    """Validated vault configuration."""

    root_key: bytes
    algorithm: SecretEncryptionAlgo = Field(
        default=SecretEncryptionAlgo.AES_256_GCM
    )
    key_encoding: SecretKeyEncoding = Field(default=SecretKeyEncoding.BASE64)

    @field_validator("root_key")
    @classmethod
    def validate_root_key(cls, v: bytes) -> bytes:
        """Ensure the root key fits AES-256."""
        if len(v) != KEY_LENGTH:
            raise ValueError(
                f"root_key must be exactly {KEY_LENGTH} bytes, got {len(v)}"
            )
        return v

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        root_key = load_root_key()
        key_encoding = os.environ.get(
            "VAULT_ORG_KEY_ENCODING", SecretKeyEncoding.BASE64.value
        )
        return cls(root_key=root_key, key_encoding=key_encoding)
