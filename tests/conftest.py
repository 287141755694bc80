"""Shared fixtures: in-memory stores and a fake asyncpg pool."""
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

import pytest

from navigator_secrets.vault.keys import OrgKeyResolver, wrap_org_key
from navigator_secrets.vault.service import SecretService

ORG_ID = "8b0f5c1e-6c55-4d36-9a43-1f0d7e0f3c11"
OTHER_ORG_ID = "2d7b7a40-1a3e-4a44-8d8e-52a1d6a4bf27"
USER_ID = "c3a9e0a2-3f1b-4e7f-9d8b-0a4f7c2e6b95"


class InMemoryOrgKeyStore:
    """OrgKeyStore keeping wrapped key records in a dict."""

    def __init__(self):
        self.records = {}
        self.lookups = 0

    def add(self, record) -> None:
        self.records[record.org_id] = record

    async def find_org_key_record(self, org_id: str):
        self.lookups += 1
        return self.records.get(org_id)


class InMemorySecretStore:
    """ConsumerSecretStore keeping rows in insertion order."""

    def __init__(self):
        self.rows: dict[str, dict[str, Any]] = {}
        self.writes = 0

    def put_row(self, **columns) -> dict[str, Any]:
        """Insert a raw row, bypassing the vault."""
        now = datetime.now(timezone.utc)
        row = {
            "id": str(uuid.uuid4()),
            "algorithm": "aes-256-gcm",
            "keyEncoding": "utf8",
            "version": 1,
            "createdAt": now,
            "updatedAt": now,
        }
        for name in ("title", "type", "data", "comment"):
            for suffix in ("Ciphertext", "IV", "Tag"):
                row[f"{name}{suffix}"] = None
        row.update(columns)
        self.rows[row["id"]] = row
        return dict(row)

    async def fetch_by_id(self, secret_id: str) -> Optional[dict[str, Any]]:
        row = self.rows.get(secret_id)
        return dict(row) if row is not None else None

    async def fetch_filtered(self, org_id, user_id, require_data=True):
        return [
            dict(row) for row in self.rows.values()
            if row["orgId"] == org_id
            and row["userId"] == user_id
            and (not require_data or row["dataCiphertext"] is not None)
        ]

    async def insert(self, row):
        self.writes += 1
        return self.put_row(**row)

    async def update_partial(self, secret_id, columns, expected_version=None):
        self.writes += 1
        row = self.rows.get(secret_id)
        if row is None:
            return None
        if expected_version is not None and row["version"] != expected_version:
            return None
        row.update(columns)
        row["version"] += 1
        row["updatedAt"] = datetime.now(timezone.utc)
        return dict(row)

    async def delete_by_id(self, secret_id):
        self.writes += 1
        row = self.rows.pop(secret_id, None)
        return dict(row) if row is not None else None


class FakeConnection:
    """Records statements; answers with canned results."""

    def __init__(self, pool: "FakePool"):
        self._pool = pool

    async def _run(self, kind: str, sql: str, args: tuple):
        self._pool.calls.append((kind, sql, args))
        if self._pool.error is not None:
            raise self._pool.error
        return self._pool.result

    async def fetchrow(self, sql, *args):
        return await self._run("fetchrow", sql, args)

    async def fetch(self, sql, *args):
        return await self._run("fetch", sql, args)

    async def execute(self, sql, *args):
        return await self._run("execute", sql, args)


class _Acquire:
    def __init__(self, pool: "FakePool"):
        self._pool = pool

    async def __aenter__(self):
        return FakeConnection(self._pool)

    async def __aexit__(self, *exc):
        return False


class FakePool:
    """Minimal asyncpg-compatible pool."""

    def __init__(self, result: Any = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str, tuple]] = []

    def acquire(self):
        return _Acquire(self)


@pytest.fixture
def root_key() -> bytes:
    return os.urandom(32)


@pytest.fixture
def org_key() -> bytes:
    return os.urandom(32)


@pytest.fixture
def org_key_store(root_key, org_key):
    store = InMemoryOrgKeyStore()
    store.add(wrap_org_key(ORG_ID, org_key, root_key))
    return store


@pytest.fixture
def resolver(org_key_store, root_key):
    return OrgKeyResolver(org_key_store, root_key)


@pytest.fixture
def secret_store():
    return InMemorySecretStore()


@pytest.fixture
def service(secret_store, resolver):
    return SecretService(secret_store, resolver)
