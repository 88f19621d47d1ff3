"""Pytest配置文件 - 提供统一的测试依赖和内存存储层"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple
from uuid import UUID

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from keymanager.config.settings import Settings
from keymanager.core.keys.audit import AuditEmitter, AuditEvent, AuditSink
from keymanager.core.keys.codec import KeyCodec
from keymanager.core.keys.exceptions import RecordNotFound, StoreError, UniquenessViolation
from keymanager.core.keys.generator import KeyGenerator
from keymanager.core.keys.hashing import KeyHasher
from keymanager.core.keys.models import Credential
from keymanager.core.keys.status import StatusResolver
from keymanager.core.keys.store import CredentialStore, KeyListFilter, KeySort, SortOrder
from keymanager.core.keys.validator import KeyValidator
from keymanager.services.api_key_service import ApiKeyService


class FrozenClock:
    """可控时钟"""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class InMemoryCredentialStore(CredentialStore):
    """简易内存凭证存储，支持注入冲突、故障与延迟"""

    def __init__(self, clock: Optional[FrozenClock] = None):
        self.records: Dict[UUID, Credential] = {}
        self.clock = clock
        self.insert_calls = 0
        self.find_calls = 0
        self.inserted_hashes: List[str] = []
        self.collide_first = 0
        self.fail_with: Optional[Exception] = None
        self.delay: float = 0.0

    async def _before_call(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with

    def _now(self) -> datetime:
        return self.clock() if self.clock else datetime.now(timezone.utc)

    async def insert_unique(self, record: Credential, *, correlation_id: Optional[str] = None) -> UUID:
        self.insert_calls += 1
        await self._before_call()
        self.inserted_hashes.append(record.key_hash)
        if self.insert_calls <= self.collide_first:
            raise UniquenessViolation("duplicate key_hash")
        if any(r.key_hash == record.key_hash for r in self.records.values()):
            raise UniquenessViolation("duplicate key_hash")
        self.records[record.id] = record.copy()
        return record.id

    async def find_by_comparable_value(
        self, value: str, *, correlation_id: Optional[str] = None
    ) -> Optional[Credential]:
        self.find_calls += 1
        await self._before_call()
        for record in self.records.values():
            if record.key_hash == value:
                return record.copy()
        return None

    async def get(
        self, key_id: UUID, *, include_deleted: bool = False, correlation_id: Optional[str] = None
    ) -> Optional[Credential]:
        await self._before_call()
        record = self.records.get(key_id)
        if record is None or (record.is_deleted and not include_deleted):
            return None
        return record.copy()

    async def _mutate(self, key_id: UUID, **changes) -> Credential:
        await self._before_call()
        record = self.records.get(key_id)
        if record is None or record.is_deleted:
            raise RecordNotFound(f"API key {key_id} not found")
        updated = record.copy(updated_at=self._now(), **changes)
        self.records[key_id] = updated
        return updated.copy()

    async def update_active_flag(
        self,
        key_id: UUID,
        is_active: bool,
        *,
        actor: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Credential:
        return await self._mutate(key_id, is_active=is_active, updated_by=actor)

    async def soft_delete(
        self, key_id: UUID, *, actor: Optional[str] = None, correlation_id: Optional[str] = None
    ) -> Credential:
        return await self._mutate(key_id, deleted_at=self._now(), deleted_by=actor, updated_by=actor)

    async def list(
        self,
        key_filter: KeyListFilter,
        page: int,
        limit: int,
        sort: KeySort,
        *,
        now: Optional[datetime] = None,
        correlation_id: Optional[str] = None,
    ) -> Tuple[List[Credential], int]:
        await self._before_call()
        now = now or self._now()
        items = list(self.records.values())
        if key_filter.owner_id:
            items = [r for r in items if r.owner_id == key_filter.owner_id]
        if not key_filter.effective_include_deleted:
            items = [r for r in items if not r.is_deleted]
        if key_filter.status is not None:
            items = [r for r in items if StatusResolver.resolve(r, now) is key_filter.status]
        if key_filter.search:
            needle = key_filter.search.lower()
            items = [
                r for r in items
                if needle in r.name.lower() or needle in (r.description or "").lower()
            ]

        field = sort.field.value if hasattr(sort.field, "value") else sort.field
        items.sort(
            key=lambda r: (getattr(r, field) is None, getattr(r, field) or 0, str(r.id)),
            reverse=sort.order is SortOrder.DESC,
        )
        start = (page - 1) * limit
        return [r.copy() for r in items[start : start + limit]], len(items)


class RecordingAuditSink(AuditSink):
    """记录所有审计事件"""

    def __init__(self):
        self.events: List[AuditEvent] = []
        self.fail_with: Optional[Exception] = None
        self.delay: float = 0.0

    async def record(self, event: AuditEvent) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.events.append(event)

    def by_action(self, action: str) -> List[AuditEvent]:
        return [e for e in self.events if e.action == action]


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        KEY_HASH_SECRET="test-secret",
        STORE_TIMEOUT_SECONDS=0.2,
        AUDIT_TIMEOUT_SECONDS=0.2,
        DEFAULT_PAGE_SIZE=10,
        MAX_PAGE_SIZE=20,
    )


@pytest.fixture
def store(clock) -> InMemoryCredentialStore:
    return InMemoryCredentialStore(clock)


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def codec() -> KeyCodec:
    return KeyCodec("ak_", 32)


@pytest.fixture
def hasher() -> KeyHasher:
    return KeyHasher("test-secret")


@pytest.fixture
def emitter(audit_sink) -> AuditEmitter:
    return AuditEmitter(audit_sink, timeout=0.2)


@pytest.fixture
def generator(store, codec, hasher, emitter, clock) -> KeyGenerator:
    return KeyGenerator(
        store,
        codec,
        hasher,
        emitter,
        max_retries=5,
        default_expiry=timedelta(days=365),
        store_timeout=0.2,
        clock=clock,
    )


@pytest.fixture
def validator(store, codec, hasher, emitter, clock) -> KeyValidator:
    return KeyValidator(store, codec, hasher, emitter, store_timeout=0.2, clock=clock)


@pytest.fixture
def service(store, audit_sink, settings, clock) -> ApiKeyService:
    return ApiKeyService(store, audit_sink, settings, clock=clock)


@pytest.fixture
def make_record(hasher, clock):
    """构造指定状态的记录快照"""

    def _make(raw_key: str = "ak_" + "A" * 43, **overrides) -> Credential:
        values = dict(
            owner_id="acct-1",
            key_hash=hasher.comparable(raw_key),
            key_hint=raw_key[:8] + "***",
            name="test key",
            created_at=clock() - timedelta(days=1),
            updated_at=clock() - timedelta(days=1),
            expiry_at=clock() + timedelta(days=30),
        )
        values.update(overrides)
        return Credential(**values)

    return _make


@pytest_asyncio.fixture(scope="function")
async def async_client(service):
    """基于内存存储的测试客户端"""
    from keymanager.main import app
    from keymanager.services.api_key_service import get_api_key_service

    app.dependency_overrides[get_api_key_service] = lambda: service

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True,
    ) as client:
        yield client

    app.dependency_overrides.pop(get_api_key_service, None)
