"""
Vault Crypto Core — Field encryption/decryption and key text encoding.

Every logical attribute of a consumer secret is encrypted on its own:
    AES-256-GCM(key, nonce=random 96-bit) → base64(ciphertext), base64(iv), base64(tag)

The same primitive wraps organization keys under the platform root key.

Security Note:
    Never log plaintext, ciphertext or key values.
    Nonces are random 96-bit; collision probability negligible under normal usage.
"""
import os
import base64
import binascii
import logging

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .exceptions import AuthenticationFailure
from .models import EncryptedField, SecretKeyEncoding

logger = logging.getLogger("navigator.secrets")

NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16  # 128-bit GCM tag
KEY_LENGTH = 32  # AES-256


def _check_key(key: bytes) -> None:
    if not isinstance(key, (bytes, bytearray)) or len(key) != KEY_LENGTH:
        raise ValueError(
            f"Field encryption key must be exactly {KEY_LENGTH} bytes"
        )


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(text: str, part: str) -> bytes:
    try:
        raw = base64.b64decode(text.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError, AttributeError) as err:
        raise AuthenticationFailure(
            f"Malformed {part} encoding"
        ) from err
    # the padding bits of the last character are ignored by the decoder
    if _b64encode(raw) != text:
        raise AuthenticationFailure(f"Malformed {part} encoding")
    return raw


# ---------------------------------------------------------------------------
# Field encryption
# ---------------------------------------------------------------------------

def encrypt_field(plaintext: str, key: bytes) -> EncryptedField:
    """Encrypt a single string value.

    A fresh nonce is drawn for every call, so equal plaintexts under the
    same key never produce equal outputs.

    Args:
        plaintext: Value to encrypt (the empty string is valid).
        key: Raw 32-byte key.

    Returns:
        EncryptedField with base64 ciphertext, iv and tag.
    """
    _check_key(key)
    nonce = os.urandom(NONCE_SIZE)
    sealed = AESGCM(bytes(key)).encrypt(nonce, plaintext.encode("utf-8"), None)
    return EncryptedField(
        ciphertext=_b64encode(sealed[:-TAG_SIZE]),
        iv=_b64encode(nonce),
        tag=_b64encode(sealed[-TAG_SIZE:]),
    )


def decrypt_field(field: EncryptedField, key: bytes) -> str:
    """Verify and decrypt a single value.

    Args:
        field: Output of ``encrypt_field``.
        key: Raw 32-byte key.

    Returns:
        Decrypted plaintext.

    Raises:
        AuthenticationFailure: If the tag does not verify, or any part is
            malformed. No plaintext is returned in that case.
    """
    _check_key(key)
    ciphertext = _b64decode(field.ciphertext, "ciphertext")
    nonce = _b64decode(field.iv, "iv")
    tag = _b64decode(field.tag, "tag")
    if len(nonce) != NONCE_SIZE:
        raise AuthenticationFailure(
            f"iv must be {NONCE_SIZE} bytes, got {len(nonce)}"
        )
    if len(tag) != TAG_SIZE:
        raise AuthenticationFailure(
            f"tag must be {TAG_SIZE} bytes, got {len(tag)}"
        )
    try:
        plaintext = AESGCM(bytes(key)).decrypt(nonce, ciphertext + tag, None)
    except InvalidTag as err:
        raise AuthenticationFailure("Authentication tag mismatch") from err
    try:
        return plaintext.decode("utf-8")
    except UnicodeDecodeError as err:
        raise AuthenticationFailure("Decrypted value is not UTF-8") from err


# ---------------------------------------------------------------------------
# Key text encoding
# ---------------------------------------------------------------------------

def encode_key(key: bytes, encoding: SecretKeyEncoding) -> str:
    """Render raw key bytes as text for wrapping."""
    if encoding == SecretKeyEncoding.BASE64:
        return _b64encode(key)
    return key.decode("utf-8")


def decode_key(text: str, encoding: SecretKeyEncoding) -> bytes:
    """Turn an unwrapped key string back into raw bytes.

    Raises:
        AuthenticationFailure: If the text does not match its declared encoding.
    """
    if encoding == SecretKeyEncoding.BASE64:
        return _b64decode(text, "key")
    return text.encode("utf-8")
