"""
Vault Models — Encrypted and logical representations of consumer secrets.
"""
from enum import Enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SecretEncryptionAlgo(str, Enum):
    AES_256_GCM = "aes-256-gcm"


class SecretKeyEncoding(str, Enum):
    UTF8 = "utf8"
    BASE64 = "base64"


class ConsumerSecretType(str, Enum):
    WEB_LOGIN = "weblogin"
    CREDIT_CARD = "creditcard"
    SECURE_NOTE = "securenote"


class EncryptedField(BaseModel):
    """One AEAD output: base64 ciphertext, nonce and tag.

    The three parts only ever exist together.
    """

    ciphertext: str
    iv: str
    tag: str

    model_config = {"frozen": True}


class OrgKeyRecord(BaseModel):
    """An organization's symmetric key, wrapped by the platform root key."""

    org_id: str
    wrapped_key: EncryptedField
    key_encoding: SecretKeyEncoding = SecretKeyEncoding.BASE64
    algorithm: str = SecretEncryptionAlgo.AES_256_GCM.value


class ConsumerSecretRecord(BaseModel):
    """A persisted consumer secret, every attribute encrypted on its own.

    ``data`` may only be ``None`` for legacy rows, which listings skip.
    """

    id: str
    user_id: str
    org_id: str
    title: Optional[EncryptedField] = None
    type: Optional[EncryptedField] = None
    data: Optional[EncryptedField] = None
    comment: Optional[EncryptedField] = None
    algorithm: str = SecretEncryptionAlgo.AES_256_GCM.value
    key_encoding: str = SecretKeyEncoding.UTF8.value
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ConsumerSecret(BaseModel):
    """Decrypted view of a consumer secret."""

    id: str
    user_id: str
    org_id: str
    title: str
    type: str
    data: str
    comment: str = ""


class ConsumerSecretCreate(BaseModel):
    title: str
    type: str
    data: str = Field(description="Opaque serialized payload")
    comment: Optional[str] = None


class ConsumerSecretUpdate(BaseModel):
    """Partial update; ``None`` means "leave unchanged"."""

    title: Optional[str] = None
    type: Optional[str] = None
    data: Optional[str] = None
    comment: Optional[str] = None

    def provided_fields(self) -> dict[str, str]:
        """Return only the attributes the caller supplied."""
        return self.model_dump(exclude_none=True)
