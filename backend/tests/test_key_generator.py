"""
KeyGenerator 单元测试
"""
from datetime import timedelta

import pytest

from keymanager.core.keys.audit import ACTION_GENERATE, OUTCOME_FAILURE, OUTCOME_SUCCESS
from keymanager.core.keys.exceptions import (
    InvalidKeyRequest,
    KeyCollisionExhausted,
    StoreError,
    StoreTimeoutError,
)
from keymanager.core.keys.generator import KeyGenerator
from keymanager.core.keys.status import KeyStatus


class TestKeyGeneration:
    """测试密钥签发"""

    @pytest.mark.asyncio
    async def test_generate_uses_default_expiry(self, generator, store, clock, codec, hasher):
        result = await generator.generate("acct-1", "primary")

        assert result.owner_id == "acct-1"
        assert result.name == "primary"
        assert result.created_at == clock()
        assert result.expires_at == clock() + timedelta(days=365)
        assert result.status is KeyStatus.ACTIVE
        assert codec.looks_well_formed(result.raw_key)

        stored = store.records[result.key_id]
        assert stored.key_hash == hasher.comparable(result.raw_key)
        assert stored.key_hash != result.raw_key
        assert stored.key_hint == codec.mask(result.raw_key)

    @pytest.mark.asyncio
    async def test_explicit_none_never_expires(self, generator, store):
        result = await generator.generate("acct-1", "forever", expires_at=None)

        assert result.expires_at is None
        assert store.records[result.key_id].expiry_at is None

    @pytest.mark.asyncio
    async def test_explicit_future_expiry(self, generator, clock):
        expiry = clock() + timedelta(days=7)
        result = await generator.generate("acct-1", "weekly", expires_at=expiry)
        assert result.expires_at == expiry

    @pytest.mark.asyncio
    @pytest.mark.parametrize("offset", [timedelta(0), timedelta(seconds=-1), timedelta(days=-30)])
    async def test_expiry_not_after_creation_rejected(self, generator, store, clock, offset):
        with pytest.raises(InvalidKeyRequest):
            await generator.generate("acct-1", "bad", expires_at=clock() + offset)
        assert store.insert_calls == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("owner,name", [("", "n"), ("   ", "n"), ("acct-1", ""), ("acct-1", "  ")])
    async def test_missing_required_fields_rejected(self, generator, store, owner, name):
        with pytest.raises(InvalidKeyRequest):
            await generator.generate(owner, name)
        assert store.insert_calls == 0

    @pytest.mark.asyncio
    async def test_inactive_key_generated_as_revoked(self, generator):
        result = await generator.generate("acct-1", "disabled", is_active=False)
        assert result.status is KeyStatus.REVOKED

    @pytest.mark.asyncio
    async def test_many_generations_are_unique(self, generator):
        keys = set()
        for i in range(200):
            keys.add((await generator.generate("acct-1", f"k{i}")).raw_key)
        assert len(keys) == 200

    def test_max_retries_must_be_positive(self, store, codec, hasher, emitter):
        with pytest.raises(ValueError):
            KeyGenerator(store, codec, hasher, emitter, max_retries=0)


class TestCollisionRetry:
    """测试唯一性冲突重试"""

    @pytest.mark.asyncio
    async def test_succeeds_on_last_attempt(self, generator, store, audit_sink):
        store.collide_first = 4

        result = await generator.generate("acct-1", "retry")

        assert store.insert_calls == 5
        assert result.key_id in store.records
        event = audit_sink.by_action(ACTION_GENERATE)[-1]
        assert event.outcome == OUTCOME_SUCCESS
        assert event.metadata["attempts"] == 5

    @pytest.mark.asyncio
    async def test_each_attempt_uses_fresh_entropy(self, generator, store):
        store.collide_first = 3

        await generator.generate("acct-1", "retry")

        assert len(store.inserted_hashes) == 4
        assert len(set(store.inserted_hashes)) == 4

    @pytest.mark.asyncio
    async def test_exhaustion_is_hard_ceiling(self, generator, store, audit_sink):
        store.collide_first = 100

        with pytest.raises(KeyCollisionExhausted) as exc_info:
            await generator.generate("acct-1", "never")

        assert exc_info.value.attempts == 5
        assert store.insert_calls == 5
        assert store.records == {}
        event = audit_sink.by_action(ACTION_GENERATE)[-1]
        assert event.outcome == OUTCOME_FAILURE
        assert event.reason_code == "KEY_COLLISION_EXHAUSTED"


class TestStoreFailures:
    """测试存储故障传播"""

    @pytest.mark.asyncio
    async def test_store_error_is_not_retried(self, generator, store, audit_sink):
        store.fail_with = StoreError("connection refused")

        with pytest.raises(StoreError):
            await generator.generate("acct-1", "broken")

        assert store.insert_calls == 1
        event = audit_sink.by_action(ACTION_GENERATE)[-1]
        assert event.outcome == OUTCOME_FAILURE
        assert event.reason_code == "STORE_ERROR"

    @pytest.mark.asyncio
    async def test_store_timeout(self, generator, store):
        store.delay = 0.5

        with pytest.raises(StoreTimeoutError):
            await generator.generate("acct-1", "slow")

    @pytest.mark.asyncio
    async def test_unwrapped_store_exception_becomes_store_error(self, generator, store, audit_sink):
        error = ConnectionRefusedError(111, "Connect call failed")
        store.fail_with = error

        with pytest.raises(StoreError) as exc_info:
            await generator.generate("acct-1", "unreachable")

        assert exc_info.value.__cause__ is error
        assert store.insert_calls == 1
        event = audit_sink.by_action(ACTION_GENERATE)[-1]
        assert event.outcome == OUTCOME_FAILURE
        assert event.reason_code == "STORE_ERROR"


class TestGenerationAudit:
    """测试签发审计"""

    @pytest.mark.asyncio
    async def test_audit_never_contains_raw_key(self, generator, audit_sink):
        result = await generator.generate("acct-1", "audited")

        events = audit_sink.by_action(ACTION_GENERATE)
        assert len(events) == 1
        assert events[0].subject_id == str(result.key_id)
        assert result.raw_key not in repr(events[0].to_dict())
        assert result.raw_key not in repr(result)

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_break_generation(self, generator, audit_sink, store):
        audit_sink.fail_with = RuntimeError("audit down")

        result = await generator.generate("acct-1", "quiet")

        assert result.key_id in store.records
