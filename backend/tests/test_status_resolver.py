"""
StatusResolver 单元测试
"""
from datetime import timedelta
from itertools import product

import pytest

from keymanager.core.keys.status import KeyStatus, StatusResolver


def _expected(deleted: bool, active: bool, expired: bool) -> KeyStatus:
    if deleted:
        return KeyStatus.DELETED
    if not active:
        return KeyStatus.REVOKED
    if expired:
        return KeyStatus.EXPIRED
    return KeyStatus.ACTIVE


@pytest.mark.parametrize("deleted,active,expired", list(product([True, False], repeat=3)))
def test_precedence_matrix(make_record, clock, deleted, active, expired):
    """deleted > revoked > expired > active"""
    now = clock()
    record = make_record(
        is_active=active,
        deleted_at=now - timedelta(hours=1) if deleted else None,
        expiry_at=now - timedelta(seconds=1) if expired else now + timedelta(days=1),
    )

    status = StatusResolver.resolve(record, now)

    assert status is _expected(deleted, active, expired)
    assert StatusResolver.may_authenticate(record, now) is (status is KeyStatus.ACTIVE)


def test_deleted_revoked_and_expired_resolves_deleted(make_record, clock):
    now = clock()
    record = make_record(is_active=False, deleted_at=now, expiry_at=now - timedelta(days=5))
    assert StatusResolver.resolve(record, now) is KeyStatus.DELETED


def test_expiry_boundary_is_expired(make_record, clock):
    now = clock()
    record = make_record(expiry_at=now)
    assert StatusResolver.resolve(record, now) is KeyStatus.EXPIRED
    assert StatusResolver.resolve(record, now - timedelta(microseconds=1)) is KeyStatus.ACTIVE


@pytest.mark.parametrize("offset_days", [-36500, 0, 1, 36500])
def test_no_expiry_never_expires(make_record, clock, offset_days):
    record = make_record(expiry_at=None)
    assert StatusResolver.resolve(record, clock() + timedelta(days=offset_days)) is KeyStatus.ACTIVE


def test_naive_timestamps_are_treated_as_utc(make_record, clock):
    now = clock()
    record = make_record(expiry_at=(now - timedelta(minutes=1)).replace(tzinfo=None))
    assert StatusResolver.resolve(record, now) is KeyStatus.EXPIRED
