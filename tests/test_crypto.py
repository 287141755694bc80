"""
Tests for field encryption.

Tests cover:
- Round-trip of ordinary, empty and non-ASCII values
- Fresh nonce per call
- Tamper detection on ciphertext, iv and tag
- Key text encodings
"""
import base64
import os

import pytest

from navigator_secrets.vault.crypto import (
    NONCE_SIZE,
    TAG_SIZE,
    decode_key,
    decrypt_field,
    encode_key,
    encrypt_field,
)
from navigator_secrets.vault.exceptions import AuthenticationFailure
from navigator_secrets.vault.models import EncryptedField, SecretKeyEncoding


@pytest.fixture
def key() -> bytes:
    return os.urandom(32)


def _flip_bit(text: str, byte_index: int = 0) -> str:
    raw = bytearray(base64.b64decode(text))
    raw[byte_index] ^= 0x01
    return base64.b64encode(bytes(raw)).decode("ascii")


def _flip_padding_bit(text: str) -> str:
    """Flip the lowest bit of the last base64 character before the padding."""
    alphabet = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
    pos = len(text.rstrip("=")) - 1
    flipped = alphabet[alphabet.index(text[pos]) ^ 0x01]
    return text[:pos] + flipped + text[pos + 1:]


class TestRoundTrip:
    """decrypt(encrypt(s, k), k) == s."""

    @pytest.mark.parametrize("plaintext", [
        "secret1",
        "",
        "ñandú 秘密 🔐",
        '{"username": "john", "password": "hunter2"}',
        "x" * 10000,
    ])
    def test_round_trip(self, key, plaintext):
        field = encrypt_field(plaintext, key)
        assert decrypt_field(field, key) == plaintext

    def test_output_is_base64(self, key):
        field = encrypt_field("data1", key)
        assert len(base64.b64decode(field.iv, validate=True)) == NONCE_SIZE
        assert len(base64.b64decode(field.tag, validate=True)) == TAG_SIZE
        assert base64.b64decode(field.ciphertext, validate=True)

    def test_empty_plaintext_has_empty_ciphertext(self, key):
        field = encrypt_field("", key)
        assert field.ciphertext == ""
        assert decrypt_field(field, key) == ""


class TestNonceUniqueness:
    """Every call draws a fresh nonce."""

    def test_same_plaintext_never_repeats_iv(self, key):
        fields = [encrypt_field("same", key) for _ in range(200)]
        assert len({f.iv for f in fields}) == len(fields)

    def test_same_plaintext_differs_in_ciphertext(self, key):
        first = encrypt_field("same", key)
        second = encrypt_field("same", key)
        assert first.ciphertext != second.ciphertext


class TestTamperDetection:
    """Any modification fails with AuthenticationFailure."""

    def test_flipped_ciphertext_bit(self, key):
        field = encrypt_field("card 4111", key)
        tampered = field.model_copy(update={"ciphertext": _flip_bit(field.ciphertext)})
        with pytest.raises(AuthenticationFailure):
            decrypt_field(tampered, key)

    def test_flipped_iv_bit(self, key):
        field = encrypt_field("card 4111", key)
        tampered = field.model_copy(update={"iv": _flip_bit(field.iv, 5)})
        with pytest.raises(AuthenticationFailure):
            decrypt_field(tampered, key)

    def test_flipped_tag_bit(self, key):
        field = encrypt_field("card 4111", key)
        tampered = field.model_copy(update={"tag": _flip_bit(field.tag, 15)})
        with pytest.raises(AuthenticationFailure):
            decrypt_field(tampered, key)

    def test_flipped_tag_on_empty_plaintext(self, key):
        field = encrypt_field("", key)
        tampered = field.model_copy(update={"tag": _flip_bit(field.tag)})
        with pytest.raises(AuthenticationFailure):
            decrypt_field(tampered, key)

    @pytest.mark.parametrize("plaintext, part", [
        ("card 4111", "tag"),
        ("card 41111", "ciphertext"),
    ])
    def test_flipped_padding_bit_in_text(self, key, plaintext, part):
        field = encrypt_field(plaintext, key)
        text = getattr(field, part)
        assert text.endswith("=")
        tampered = field.model_copy(update={part: _flip_padding_bit(text)})
        assert getattr(tampered, part) != text
        with pytest.raises(AuthenticationFailure):
            decrypt_field(tampered, key)

    def test_wrong_key(self, key):
        field = encrypt_field("secret", key)
        with pytest.raises(AuthenticationFailure):
            decrypt_field(field, os.urandom(32))

    def test_swapped_fields_do_not_verify(self, key):
        first = encrypt_field("title", key)
        second = encrypt_field("other", key)
        mixed = EncryptedField(ciphertext=first.ciphertext, iv=second.iv, tag=first.tag)
        with pytest.raises(AuthenticationFailure):
            decrypt_field(mixed, key)

    def test_hex_encoded_parts_rejected(self, key):
        field = encrypt_field("secret", key)
        hexed = EncryptedField(
            ciphertext=base64.b64decode(field.ciphertext).hex(),
            iv=base64.b64decode(field.iv).hex(),
            tag=base64.b64decode(field.tag).hex(),
        )
        with pytest.raises(AuthenticationFailure):
            decrypt_field(hexed, key)

    def test_truncated_tag(self, key):
        field = encrypt_field("secret", key)
        short = base64.b64encode(base64.b64decode(field.tag)[:8]).decode("ascii")
        with pytest.raises(AuthenticationFailure):
            decrypt_field(field.model_copy(update={"tag": short}), key)


class TestKeyValidation:

    @pytest.mark.parametrize("size", [0, 16, 24, 31, 33])
    def test_encrypt_rejects_wrong_key_length(self, size):
        with pytest.raises(ValueError):
            encrypt_field("x", os.urandom(size))

    def test_decrypt_rejects_wrong_key_length(self, key):
        field = encrypt_field("x", key)
        with pytest.raises(ValueError):
            decrypt_field(field, key[:16])


class TestKeyEncoding:

    def test_base64_round_trip(self, key):
        text = encode_key(key, SecretKeyEncoding.BASE64)
        assert decode_key(text, SecretKeyEncoding.BASE64) == key

    def test_utf8_round_trip(self):
        key = os.urandom(16).hex().encode("utf-8")
        text = encode_key(key, SecretKeyEncoding.UTF8)
        assert text == key.decode("utf-8")
        assert decode_key(text, SecretKeyEncoding.UTF8) == key

    def test_bad_base64_key_text(self):
        with pytest.raises(AuthenticationFailure):
            decode_key("not base64!!", SecretKeyEncoding.BASE64)
