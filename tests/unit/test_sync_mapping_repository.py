from unittest.mock import patch

from calsync.models.sync_mapping import EventSyncMapping
from calsync.repositories.sync_mapping_repository import SyncMappingRepository


class TestSyncMappingRepository:
    def test_create_then_find(self, db, user):
        repo = SyncMappingRepository(db)

        mapping = repo.create(7, "evt-1", "cal-1", user.id)

        found = repo.find(7)
        assert found.id == mapping.id
        assert (found.external_event_id, found.external_calendar_id) == ("evt-1", "cal-1")
        assert found.last_synced_at is not None

    def test_find_scoped_to_owner(self, db, user, other_user):
        repo = SyncMappingRepository(db)
        repo.create(7, "evt-1", "cal-1", user.id)

        assert repo.find(7, user.id).external_event_id == "evt-1"
        assert repo.find(7, other_user.id) is None

    def test_create_is_an_upsert(self, db, user):
        repo = SyncMappingRepository(db)
        first = repo.create(7, "evt-1", "cal-1", user.id)

        second = repo.create(7, "evt-2", "cal-2", user.id)

        assert second.id == first.id
        assert db.query(EventSyncMapping).count() == 1
        assert repo.find(7).external_event_id == "evt-2"

    def test_concurrent_insert_is_overwritten(self, db, user):
        repo = SyncMappingRepository(db)
        existing = repo.create(7, "evt-winner", "cal-1", user.id)

        # The lookup misses (as it would for a racing writer), so the insert
        # hits the unique constraint and the row is overwritten instead.
        with patch.object(repo, "find", side_effect=[None, existing]):
            mapping = repo.create(7, "evt-loser", "cal-1", user.id)

        assert mapping.id == existing.id
        assert db.query(EventSyncMapping).count() == 1
        assert repo.find(7).external_event_id == "evt-loser"

    def test_touch_updates_timestamp(self, db, user):
        repo = SyncMappingRepository(db)
        mapping = repo.create(7, "evt-1", "cal-1", user.id)
        before = mapping.last_synced_at

        touched = repo.touch(mapping.id)

        assert touched.last_synced_at >= before
        assert repo.touch(9999) is None

    def test_delete(self, db, user):
        repo = SyncMappingRepository(db)
        mapping = repo.create(7, "evt-1", "cal-1", user.id)

        assert repo.delete(mapping.id) is True
        assert repo.find(7) is None
        assert repo.delete(mapping.id) is False

    def test_delete_for_user_only_touches_that_user(self, db, user, other_user):
        repo = SyncMappingRepository(db)
        repo.create(1, "evt-1", "cal-1", user.id)
        repo.create(2, "evt-2", "cal-1", user.id)
        repo.create(3, "evt-3", "cal-9", other_user.id)

        assert repo.delete_for_user(user.id) == 2
        db.commit()

        assert repo.count_for_user(user.id) == 0
        assert repo.count_for_user(other_user.id) == 1
