"""
Secret Codec — Maps consumer secrets to four independent encrypted fields.

Each attribute gets its own nonce and tag, so a partial update re-encrypts
only what changed. Persisted layout per attribute::

    <field>Ciphertext | <field>IV | <field>Tag

plus one shared ``algorithm`` / ``keyEncoding`` pair per row.
"""
import logging
from collections.abc import Mapping
from typing import Any, Optional

from .crypto import decrypt_field, encrypt_field
from .exceptions import AuthenticationFailure, UnsupportedAlgorithm
from .models import (
    ConsumerSecret,
    ConsumerSecretCreate,
    ConsumerSecretRecord,
    ConsumerSecretUpdate,
    EncryptedField,
    SecretEncryptionAlgo,
)

logger = logging.getLogger("navigator.secrets")

SECRET_FIELDS = ("title", "type", "data", "comment")

_SUFFIXES = {"ciphertext": "Ciphertext", "iv": "IV", "tag": "Tag"}

ENCRYPTED_COLUMNS = frozenset(
    f"{name}{suffix}" for name in SECRET_FIELDS for suffix in _SUFFIXES.values()
)


# ---------------------------------------------------------------------------
# Row layout
# ---------------------------------------------------------------------------

def field_columns(name: str, field: EncryptedField) -> dict[str, str]:
    """Flatten one encrypted field into its three columns."""
    return {
        f"{name}{suffix}": getattr(field, part)
        for part, suffix in _SUFFIXES.items()
    }


def fields_to_columns(fields: Mapping[str, EncryptedField]) -> dict[str, str]:
    columns: dict[str, str] = {}
    for name, field in fields.items():
        columns.update(field_columns(name, field))
    return columns


def _field_from_row(row: Mapping[str, Any], name: str, secret_id: str) -> Optional[EncryptedField]:
    parts = {part: row[f"{name}{suffix}"] for part, suffix in _SUFFIXES.items()}
    present = [value is not None for value in parts.values()]
    if not any(present):
        return None
    if not all(present):
        raise AuthenticationFailure(
            "Incomplete encrypted field",
            field=name,
            secret_id=secret_id,
        )
    return EncryptedField(**parts)


def record_from_row(row: Mapping[str, Any]) -> ConsumerSecretRecord:
    """Build a record from a ``consumer_secrets`` row."""
    secret_id = str(row["id"])
    return ConsumerSecretRecord(
        id=secret_id,
        user_id=str(row["userId"]),
        org_id=str(row["orgId"]),
        algorithm=row["algorithm"],
        key_encoding=row["keyEncoding"],
        version=row["version"],
        created_at=row["createdAt"],
        updated_at=row["updatedAt"],
        **{name: _field_from_row(row, name, secret_id) for name in SECRET_FIELDS},
    )


# ---------------------------------------------------------------------------
# Encryption
# ---------------------------------------------------------------------------

def encrypt_secret(secret: ConsumerSecretCreate, key: bytes) -> dict[str, EncryptedField]:
    """Encrypt all four attributes; a missing comment becomes ``""``."""
    values = {
        "title": secret.title,
        "type": secret.type,
        "data": secret.data,
        "comment": secret.comment or "",
    }
    return {name: encrypt_field(values[name], key) for name in SECRET_FIELDS}


def encrypt_changes(changes: ConsumerSecretUpdate, key: bytes) -> dict[str, EncryptedField]:
    """Encrypt only the attributes present in ``changes``."""
    return {
        name: encrypt_field(value, key)
        for name, value in changes.provided_fields().items()
    }


# ---------------------------------------------------------------------------
# Decryption
# ---------------------------------------------------------------------------

def decrypt_record(record: ConsumerSecretRecord, key: bytes) -> ConsumerSecret:
    """Decrypt every attribute of a record.

    Any single failure fails the whole record; a half-trusted secret is
    never returned.

    Raises:
        AuthenticationFailure: A field is missing or failed verification.
        UnsupportedAlgorithm: The record was not written with AES-256-GCM.
    """
    if record.algorithm != SecretEncryptionAlgo.AES_256_GCM:
        raise UnsupportedAlgorithm(
            f"Unsupported algorithm {record.algorithm}",
            secret_id=record.id,
            org_id=record.org_id,
        )
    values: dict[str, str] = {}
    for name in SECRET_FIELDS:
        field = getattr(record, name)
        try:
            if field is None:
                raise AuthenticationFailure("Missing encrypted field")
            values[name] = decrypt_field(field, key)
        except AuthenticationFailure as err:
            logger.error(
                "Data integrity failure: secret=%s org=%s field=%s",
                record.id, record.org_id, name,
            )
            err.field = name
            err.secret_id = record.id
            err.org_id = record.org_id
            raise
    return ConsumerSecret(
        id=record.id,
        user_id=record.user_id,
        org_id=record.org_id,
        **values,
    )
