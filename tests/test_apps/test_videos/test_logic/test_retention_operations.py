"""Tests for the retention sweep."""

from datetime import UTC, datetime, timedelta

import pytest

from server.apps.videos.logic.retention_operations import (
    find_expired,
    purge_expired,
    retention_cutoff,
)

_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def aged_record(json_store, blob_storage, make_record):
    """Factory storing a record of a given age with its blob.

    Returns:
        Callable taking an age and returning the persisted Record.
    """
    def factory(age):
        record = make_record(uploaded_at=_NOW - age)
        blob_path = blob_storage.blob_path(record.stored_name)
        blob_path.parent.mkdir(parents=True, exist_ok=True)
        blob_path.write_bytes(b'blob')
        json_store.append(record)
        return record

    return factory


def test_retention_cutoff():
    """Test cutoff is the retention age before now."""
    assert retention_cutoff(7, _NOW) == _NOW - timedelta(days=7)


def test_find_expired_is_strict(json_store, aged_record):
    """Test records exactly at the cutoff are kept."""
    expired = aged_record(timedelta(days=8))
    aged_record(timedelta(days=7))
    aged_record(timedelta(days=1))

    assert find_expired(json_store, 7, _NOW) == [expired]


def test_purge_expired(json_store, blob_storage, aged_record):
    """Test expired blobs and records are deleted, recent ones kept."""
    old = aged_record(timedelta(days=8))
    recent = aged_record(timedelta(days=1))

    removed = purge_expired(json_store, blob_storage, 7, now=_NOW)

    assert removed == [old]
    assert json_store.all() == [recent]
    assert not blob_storage.exists(old.stored_name)
    assert blob_storage.exists(recent.stored_name)


def test_purge_expired_is_idempotent(json_store, blob_storage, aged_record):
    """Test second run finds nothing left to remove."""
    aged_record(timedelta(days=8))

    assert len(purge_expired(json_store, blob_storage, 7, now=_NOW)) == 1
    assert purge_expired(json_store, blob_storage, 7, now=_NOW) == []


def test_purge_expired_missing_blob(json_store, blob_storage, aged_record):
    """Test record whose blob is already gone is still removed."""
    record = aged_record(timedelta(days=30))
    blob_storage.delete(record.stored_name)

    assert purge_expired(json_store, blob_storage, 7, now=_NOW) == [record]
    assert json_store.all() == []


def test_purge_expired_keeps_record_of_undeletable_blob(
    json_store,
    blob_storage,
    aged_record,
    monkeypatch,
):
    """Test blob deletion failure keeps the record for the next run."""
    record = aged_record(timedelta(days=30))

    def broken_discard(name):
        raise PermissionError(name)

    monkeypatch.setattr(blob_storage, 'discard', broken_discard)

    assert purge_expired(json_store, blob_storage, 7, now=_NOW) == []
    assert json_store.all() == [record]


@pytest.mark.parametrize('retention_days', [0, -1])
def test_retention_disabled(json_store, blob_storage, aged_record, retention_days):
    """Test non-positive retention deletes nothing."""
    record = aged_record(timedelta(days=3650))

    assert find_expired(json_store, retention_days, _NOW) == []
    assert purge_expired(json_store, blob_storage, retention_days, now=_NOW) == []
    assert json_store.all() == [record]
