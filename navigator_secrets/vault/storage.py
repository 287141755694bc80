"""
Vault Storage — Persistence collaborators for consumer secrets and org keys.

The protocols define what the vault needs from storage; the ``Pg*`` classes
implement them over an asyncpg-compatible pool. Every write is a single
atomic statement, so a secret is either fully persisted or not at all.

Security Note:
    Rows only ever hold ciphertext. Never log column values.
"""
import logging
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Protocol, runtime_checkable

from pydantic import ValidationError

from .codec import ENCRYPTED_COLUMNS
from .exceptions import PersistenceFailure, UnsupportedAlgorithm
from .models import EncryptedField, OrgKeyRecord

logger = logging.getLogger("navigator.secrets")


@runtime_checkable
class ConsumerSecretStore(Protocol):
    """Row-level access to the ``consumer_secrets`` table."""

    async def fetch_by_id(self, secret_id: str) -> Optional[Mapping[str, Any]]:
        ...

    async def fetch_filtered(
        self, org_id: str, user_id: str, require_data: bool = True,
    ) -> Sequence[Mapping[str, Any]]:
        ...

    async def insert(self, row: Mapping[str, Any]) -> Mapping[str, Any]:
        ...

    async def update_partial(
        self,
        secret_id: str,
        columns: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Mapping[str, Any]]:
        ...

    async def delete_by_id(self, secret_id: str) -> Optional[Mapping[str, Any]]:
        ...


@runtime_checkable
class OrgKeyStore(Protocol):
    """Read access to organization key records."""

    async def find_org_key_record(self, org_id: str) -> Optional[OrgKeyRecord]:
        ...


# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

CONSUMER_SECRETS_DDL = """
CREATE TABLE IF NOT EXISTS consumer_secrets (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    "userId" UUID NOT NULL,
    "orgId" UUID NOT NULL,
    "titleCiphertext" TEXT NOT NULL,
    "titleIV" TEXT NOT NULL,
    "titleTag" TEXT NOT NULL,
    "typeCiphertext" TEXT NOT NULL,
    "typeIV" TEXT NOT NULL,
    "typeTag" TEXT NOT NULL,
    "dataCiphertext" TEXT NOT NULL,
    "dataIV" TEXT NOT NULL,
    "dataTag" TEXT NOT NULL,
    "commentCiphertext" TEXT NOT NULL,
    "commentIV" TEXT NOT NULL,
    "commentTag" TEXT NOT NULL,
    algorithm VARCHAR(255) NOT NULL DEFAULT 'aes-256-gcm',
    "keyEncoding" VARCHAR(255) NOT NULL DEFAULT 'utf8',
    version INTEGER NOT NULL DEFAULT 1,
    "createdAt" TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    "updatedAt" TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
CREATE INDEX IF NOT EXISTS consumer_secrets_org_user_idx
    ON consumer_secrets ("orgId", "userId");
"""

_SELECT_BY_ID = """
SELECT * FROM consumer_secrets WHERE id = $1
"""

_SELECT_FILTERED = """
SELECT * FROM consumer_secrets
WHERE "orgId" = $1 AND "userId" = $2{predicate}
ORDER BY "createdAt", id
"""

_DATA_NOT_NULL = ' AND "dataCiphertext" IS NOT NULL'

_INSERT_SECRET = """
INSERT INTO consumer_secrets ({columns})
VALUES ({placeholders})
RETURNING *
"""

_UPDATE_SECRET = """
UPDATE consumer_secrets
SET {assignments}, version = version + 1, "updatedAt" = NOW()
WHERE id = $1{version_check}
RETURNING *
"""

_DELETE_SECRET = """
DELETE FROM consumer_secrets WHERE id = $1 RETURNING *
"""

_SELECT_ORG_KEY = """
SELECT "orgId", "encryptedSymmetricKey", "symmetricKeyIV", "symmetricKeyTag",
       "symmetricKeyAlgorithm", "symmetricKeyKeyEncoding"
FROM org_bots
WHERE "orgId" = $1
"""

_INSERT_COLUMNS = (
    "userId", "orgId",
    "titleCiphertext", "titleIV", "titleTag",
    "typeCiphertext", "typeIV", "typeTag",
    "dataCiphertext", "dataIV", "dataTag",
    "commentCiphertext", "commentIV", "commentTag",
    "algorithm", "keyEncoding",
)


def _quote(column: str) -> str:
    return f'"{column}"'


async def create_tables(db_pool: Any) -> None:
    """Create the ``consumer_secrets`` table if missing."""
    async with db_pool.acquire() as conn:
        await conn.execute(CONSUMER_SECRETS_DDL)
    logger.debug("Ensured consumer_secrets table")


class PgConsumerSecretStore:
    """``ConsumerSecretStore`` backed by an asyncpg-compatible pool."""

    def __init__(self, db_pool: Any):
        self._db = db_pool

    async def fetch_by_id(self, secret_id: str) -> Optional[Mapping[str, Any]]:
        try:
            async with self._db.acquire() as conn:
                return await conn.fetchrow(_SELECT_BY_ID, secret_id)
        except Exception as err:
            raise PersistenceFailure(
                str(err), operation="FindConsumerSecretById", secret_id=secret_id,
            ) from err

    async def fetch_filtered(
        self, org_id: str, user_id: str, require_data: bool = True,
    ) -> Sequence[Mapping[str, Any]]:
        sql = _SELECT_FILTERED.format(
            predicate=_DATA_NOT_NULL if require_data else ""
        )
        try:
            async with self._db.acquire() as conn:
                return await conn.fetch(sql, org_id, user_id)
        except Exception as err:
            raise PersistenceFailure(
                str(err),
                operation="FindAllOrganizationConsumerSecrets",
                org_id=org_id,
            ) from err

    async def insert(self, row: Mapping[str, Any]) -> Mapping[str, Any]:
        columns = [c for c in _INSERT_COLUMNS if c in row]
        sql = _INSERT_SECRET.format(
            columns=", ".join(_quote(c) for c in columns),
            placeholders=", ".join(f"${i}" for i in range(1, len(columns) + 1)),
        )
        try:
            async with self._db.acquire() as conn:
                return await conn.fetchrow(sql, *(row[c] for c in columns))
        except Exception as err:
            raise PersistenceFailure(
                str(err), operation="CreateConsumerSecret", org_id=row.get("orgId"),
            ) from err

    async def update_partial(
        self,
        secret_id: str,
        columns: Mapping[str, Any],
        expected_version: Optional[int] = None,
    ) -> Optional[Mapping[str, Any]]:
        unknown = set(columns) - ENCRYPTED_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {sorted(unknown)}")
        if not columns:
            raise ValueError("update_partial requires at least one column")
        names = list(columns)
        assignments = ", ".join(
            f"{_quote(name)} = ${i}" for i, name in enumerate(names, start=2)
        )
        args = [secret_id, *(columns[name] for name in names)]
        version_check = ""
        if expected_version is not None:
            args.append(expected_version)
            version_check = f" AND version = ${len(args)}"
        sql = _UPDATE_SECRET.format(
            assignments=assignments, version_check=version_check,
        )
        try:
            async with self._db.acquire() as conn:
                return await conn.fetchrow(sql, *args)
        except Exception as err:
            raise PersistenceFailure(
                str(err), operation="UpdateConsumerSecret", secret_id=secret_id,
            ) from err

    async def delete_by_id(self, secret_id: str) -> Optional[Mapping[str, Any]]:
        try:
            async with self._db.acquire() as conn:
                return await conn.fetchrow(_DELETE_SECRET, secret_id)
        except Exception as err:
            raise PersistenceFailure(
                str(err), operation="DeleteConsumerSecret", secret_id=secret_id,
            ) from err


class PgOrgKeyStore:
    """``OrgKeyStore`` reading the organization bot's wrapped key."""

    def __init__(self, db_pool: Any):
        self._db = db_pool

    async def find_org_key_record(self, org_id: str) -> Optional[OrgKeyRecord]:
        try:
            async with self._db.acquire() as conn:
                row = await conn.fetchrow(_SELECT_ORG_KEY, org_id)
        except Exception as err:
            raise PersistenceFailure(
                str(err), operation="FindOrgKeyRecord", org_id=org_id,
            ) from err
        if row is None:
            return None
        try:
            return OrgKeyRecord(
                org_id=str(row["orgId"]),
                wrapped_key=EncryptedField(
                    ciphertext=row["encryptedSymmetricKey"],
                    iv=row["symmetricKeyIV"],
                    tag=row["symmetricKeyTag"],
                ),
                key_encoding=row["symmetricKeyKeyEncoding"],
                algorithm=row["symmetricKeyAlgorithm"],
            )
        except ValidationError as err:
            raise UnsupportedAlgorithm(
                "Unsupported organization key record",
                operation="FindOrgKeyRecord",
                org_id=org_id,
            ) from err
