"""Tests for the relational metadata store."""

from datetime import timedelta

import pytest
from django.db import DatabaseError

from server.apps.videos.exceptions import MetadataStoreError, RecordNotFoundError
from server.apps.videos.infrastructure.stores import DatabaseStore
from server.apps.videos.models import VideoRecord

pytestmark = pytest.mark.django_db


@pytest.fixture
def database_store():
    """Relational store on the test database.

    Returns:
        DatabaseStore instance.
    """
    return DatabaseStore()


def test_append_and_get(database_store, make_record):
    """Test inserted record reads back unchanged."""
    record = make_record(title='Trip', password='pw')

    database_store.append(record)

    assert database_store.get(record.id) == record
    assert VideoRecord.objects.get(pk=record.id).password == 'pw'


def test_absent_optionals_are_none(database_store, make_record):
    """Test empty columns come back as None."""
    record = make_record()
    database_store.append(record)

    stored = database_store.get(record.id)

    assert stored.title is None
    assert stored.password is None


def test_get_not_found(database_store):
    """Test lookup of unknown id."""
    with pytest.raises(RecordNotFoundError):
        database_store.get('f' * 20)


def test_all_ordered_by_upload_time(database_store, make_record):
    """Test scan returns records oldest first."""
    newer = make_record()
    older = make_record(uploaded_at=newer.uploaded_at - timedelta(hours=1))
    database_store.append(newer)
    database_store.append(older)

    assert [record.id for record in database_store.all()] == [older.id, newer.id]


def test_duplicate_id_raises_store_error(database_store, make_record):
    """Test primary key violation surfaces as store error."""
    database_store.append(make_record(id='e' * 20))

    with pytest.raises(MetadataStoreError):
        database_store.append(make_record(id='e' * 20))


def test_increment_downloads(database_store, make_record):
    """Test counter is updated in place and returned."""
    record = make_record()
    database_store.append(record)

    assert database_store.increment_downloads(record.id) == 1
    assert database_store.increment_downloads(record.id) == 2
    assert VideoRecord.objects.get(pk=record.id).downloads == 2


def test_increment_downloads_not_found(database_store):
    """Test counter update of unknown id."""
    with pytest.raises(RecordNotFoundError):
        database_store.increment_downloads('f' * 20)


def test_remove_where(database_store, make_record):
    """Test predicate removal deletes only matching rows."""
    old = make_record()
    new = make_record(uploaded_at=old.uploaded_at + timedelta(days=10))
    database_store.append(old)
    database_store.append(new)

    removed = database_store.remove_where(lambda record: record.id == old.id)

    assert removed == [old]
    assert list(VideoRecord.objects.values_list('id', flat=True)) == [new.id]


def test_database_error_is_wrapped(database_store, monkeypatch):
    """Test driver errors surface as store errors."""
    def broken(*args, **kwargs):
        raise DatabaseError('connection lost')

    monkeypatch.setattr(VideoRecord.objects, 'get', broken)

    with pytest.raises(MetadataStoreError):
        database_store.get('a' * 20)
