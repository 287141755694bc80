"""
Secret Payloads — Typed helpers for the opaque ``data`` attribute.

The vault encrypts ``data`` as an uninterpreted string. Callers that store
known credential kinds can pack and unpack them here; the payload is
orjson-encoded with the original camelCase keys.
"""
from typing import Union

import orjson
from pydantic import BaseModel, Field

from .models import ConsumerSecretType


class WebLoginPayload(BaseModel):
    username: str = Field(max_length=255)
    password: str = Field(max_length=255)


class CreditCardPayload(BaseModel):
    card_number: str = Field(alias="cardNumber", max_length=16)
    expiry_date: str = Field(alias="expiryDate")
    cvv: str = Field(max_length=4)

    model_config = {"populate_by_name": True}


class SecureNotePayload(BaseModel):
    note: str = Field(max_length=10000)


Payload = Union[WebLoginPayload, CreditCardPayload, SecureNotePayload]

PAYLOAD_MODELS: dict[ConsumerSecretType, type[BaseModel]] = {
    ConsumerSecretType.WEB_LOGIN: WebLoginPayload,
    ConsumerSecretType.CREDIT_CARD: CreditCardPayload,
    ConsumerSecretType.SECURE_NOTE: SecureNotePayload,
}


def pack_payload(payload: Payload) -> str:
    """Serialize a payload into the string stored as ``data``."""
    return orjson.dumps(payload.model_dump(by_alias=True)).decode("utf-8")


def unpack_payload(secret_type: Union[ConsumerSecretType, str], data: str) -> Payload:
    """Parse a decrypted ``data`` string for a known secret type.

    Raises:
        ValueError: Unknown secret type, or ``data`` is not valid JSON.
        pydantic.ValidationError: ``data`` does not match the type's fields.
    """
    try:
        model = PAYLOAD_MODELS[ConsumerSecretType(secret_type)]
    except ValueError as err:
        raise ValueError(f"Unknown consumer secret type: {secret_type}") from err
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as err:
        raise ValueError("Secret data is not a valid payload") from err
    return model.model_validate(parsed)
