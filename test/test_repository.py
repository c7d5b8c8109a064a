# Unit tests for the syllabus repository
import json
import unittest
from datetime import datetime, timedelta, timezone

from backend.errors import InvalidRequest, StorageQuotaExceeded, SyllabusNotFound
from backend.models import ChatTurn
from backend.repository import SyllabusRepository, newest, parse_timestamp
from backend.storage import MappingStore

T0 = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

BIO_MAP = {"topics": [{"topic": "Cells", "weightage": 8, "subtopics": ["Mitosis"]}]}
CHEM_MAP = {"topics": [{"topic": "Bonds", "weightage": 6, "subtopics": []}]}


def make_clock(start=T0, step=timedelta(minutes=1)):
    """Each call returns a later time"""
    state = {"now": start - step}

    def clock():
        state["now"] += step
        return state["now"]
    return clock


class FailingStore(MappingStore):
    """Rejects writes to one key as if storage were full"""

    def __init__(self, fail_on_suffix):
        super().__init__()
        self.fail_on_suffix = fail_on_suffix

    def set_item(self, key, value):
        if key.endswith(self.fail_on_suffix):
            raise StorageQuotaExceeded("full")
        super().set_item(key, value)


class TestSyllabusRepository(unittest.TestCase):
    def setUp(self):
        self.store = MappingStore()
        self.repo = SyllabusRepository(self.store, "alex", clock=make_clock())

    def test_create_makes_new_record_active(self):
        bio = self.repo.create(BIO_MAP, "Cells are the unit of life.", "Bio")
        self.assertEqual(self.repo.get_active().id, bio.id)
        chem = self.repo.create(CHEM_MAP, "Atoms bond.", "Chem")
        self.assertEqual(self.repo.get_active().id, chem.id)
        self.assertEqual(self.store.get_item("alex_activeSyllabusId"), chem.id)
        self.assertEqual([s.name for s in self.repo.list()], ["Bio", "Chem"])
        self.assertEqual([s.name for s in self.repo.list_newest_first()], ["Chem", "Bio"])

    def test_source_text_stored_under_its_own_key(self):
        bio = self.repo.create(BIO_MAP, "Cells are the unit of life.", "Bio")
        self.assertEqual(self.store.get_item(f"alex_syllabus_text_{bio.id}"), "Cells are the unit of life.")
        self.assertNotIn("unit of life", self.store.get_item("alex_syllabuses"))
        record = json.loads(self.store.get_item("alex_syllabuses"))[0]
        self.assertEqual(set(record), {"id", "name", "mindMap", "createdAt"})
        self.assertEqual(self.repo.get_active().source_text, "Cells are the unit of life.")

    def test_blank_name_falls_back(self):
        syllabus = self.repo.create(BIO_MAP, "text", "   ")
        self.assertEqual(syllabus.name, "Untitled syllabus")

    def test_ids_are_unique(self):
        ids = {self.repo.create(BIO_MAP, "t", f"S{i}").id for i in range(5)}
        self.assertEqual(len(ids), 5)

    def test_delete_active_bio_makes_chem_active(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        chem = self.repo.create(CHEM_MAP, "chem text", "Chem")
        self.repo.set_active(bio.id)
        self.repo.delete(bio.id)
        self.assertEqual(self.repo.get_active().id, chem.id)
        self.assertEqual(self.repo.get_active().name, "Chem")

    def test_delete_active_promotes_most_recent(self):
        first = self.repo.create(BIO_MAP, "a", "First")
        self.repo.create(BIO_MAP, "b", "Second")
        third = self.repo.create(BIO_MAP, "c", "Third")
        self.repo.set_active(first.id)
        self.repo.delete(first.id)
        self.assertEqual(self.repo.active_id, third.id)

    def test_delete_last_clears_active(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        self.repo.delete(bio.id)
        self.assertIsNone(self.repo.get_active())
        self.assertIsNone(self.store.get_item("alex_activeSyllabusId"))
        self.assertEqual(self.repo.list(), [])

    def test_delete_non_active_keeps_active(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        chem = self.repo.create(CHEM_MAP, "chem text", "Chem")
        self.repo.delete(bio.id)
        self.assertEqual(self.repo.active_id, chem.id)

    def test_delete_removes_text_and_chat(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        self.repo.chat_history.append(bio.id, ChatTurn(role="user", content="What is a cell?"))
        self.repo.delete(bio.id)
        self.assertIsNone(self.store.get_item(f"alex_syllabus_text_{bio.id}"))
        self.assertIsNone(self.store.get_item(f"alex_chat_history_{bio.id}"))

    def test_delete_unknown_raises(self):
        with self.assertRaises(SyllabusNotFound):
            self.repo.delete("nope")

    def test_rename(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        self.repo.rename(bio.id, "  Biology 101 ")
        self.assertEqual(self.repo.get(bio.id).name, "Biology 101")
        self.assertEqual(SyllabusRepository(self.store, "alex").get(bio.id).name, "Biology 101")

    def test_rename_to_same_name_leaves_collection_unchanged(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        before = self.store.get_item("alex_syllabuses")
        self.repo.rename(bio.id, "Bio")
        self.assertEqual(self.store.get_item("alex_syllabuses"), before)

    def test_rename_errors(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        with self.assertRaises(SyllabusNotFound):
            self.repo.rename("nope", "X")
        with self.assertRaises(InvalidRequest):
            self.repo.rename(bio.id, "  ")

    def test_set_active_unknown_is_ignored(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        self.repo.set_active("nope")
        self.assertEqual(self.repo.active_id, bio.id)

    def test_collection_round_trips_through_storage(self):
        self.repo.create(BIO_MAP, "bio text", "Bio")
        self.repo.create(CHEM_MAP, "chem text", "Chem")
        reloaded = SyllabusRepository(self.store, "alex")
        self.assertEqual(reloaded.list(), self.repo.list())
        self.assertEqual(reloaded.active_id, self.repo.active_id)
        for syllabus in reloaded.list():
            self.assertEqual(reloaded.get(syllabus.id).source_text, self.repo.get(syllabus.id).source_text)

    def test_missing_text_reads_as_none(self):
        bio = self.repo.create(BIO_MAP, "bio text", "Bio")
        self.store.remove_item(f"alex_syllabus_text_{bio.id}")
        self.assertIsNone(self.repo.get_active().source_text)

    def test_identities_are_isolated(self):
        self.repo.create(BIO_MAP, "bio text", "Bio")
        other = SyllabusRepository(self.store, "sam")
        self.assertEqual(other.list(), [])
        self.assertIsNone(other.get_active())


class TestRepositoryStorageFailures(unittest.TestCase):
    def test_quota_on_text_write_leaves_nothing_behind(self):
        store = MappingStore(quota_bytes=50)
        repo = SyllabusRepository(store, "alex", clock=make_clock())
        with self.assertRaises(StorageQuotaExceeded):
            repo.create(BIO_MAP, "x" * 200, "Big")
        self.assertEqual(store.keys(), [])
        self.assertEqual(repo.list(), [])
        self.assertIsNone(repo.get_active())

    def test_quota_on_collection_write_rolls_back_text(self):
        store = FailingStore("_syllabuses")
        repo = SyllabusRepository(store, "alex", clock=make_clock())
        with self.assertRaises(StorageQuotaExceeded):
            repo.create(BIO_MAP, "bio text", "Bio")
        self.assertEqual([k for k in store.keys() if "_syllabus_text_" in k], [])
        self.assertEqual(repo.list(), [])

    def test_quota_on_active_write_restores_collection(self):
        store = MappingStore()
        repo = SyllabusRepository(store, "alex", clock=make_clock())
        bio = repo.create(BIO_MAP, "bio text", "Bio")
        before = store.get_item("alex_syllabuses")

        failing = FailingStore("_activeSyllabusId")
        for key in store.keys():
            failing._data[key] = store.get_item(key)
        repo = SyllabusRepository(failing, "alex", clock=make_clock(T0 + timedelta(hours=1)))
        with self.assertRaises(StorageQuotaExceeded):
            repo.create(CHEM_MAP, "chem text", "Chem")

        self.assertEqual(failing.get_item("alex_syllabuses"), before)
        self.assertEqual([k for k in failing.keys() if "_syllabus_text_" in k], [f"alex_syllabus_text_{bio.id}"])
        self.assertEqual(repo.active_id, bio.id)
        self.assertEqual(len(repo.list()), 1)


class TestRepositoryLoading(unittest.TestCase):
    def test_corrupt_collection_is_treated_as_empty(self):
        store = MappingStore({"alex_syllabuses": "{not json", "alex_activeSyllabusId": "x"})
        with self.assertLogs("backend.repository", level="ERROR"):
            repo = SyllabusRepository(store, "alex")
        self.assertEqual(repo.list(), [])
        self.assertIsNone(repo.get_active())

    def test_bad_records_are_skipped(self):
        records = [
            {"id": "good", "name": "Good", "mindMap": BIO_MAP, "createdAt": "2024-05-01T09:00:00Z"},
            {"name": "No id", "mindMap": BIO_MAP, "createdAt": "2024-05-01T09:00:00Z"},
            "not a record",
        ]
        store = MappingStore({"alex_syllabuses": json.dumps(records)})
        with self.assertLogs("backend.repository", level="WARNING"):
            repo = SyllabusRepository(store, "alex")
        self.assertEqual([s.id for s in repo.list()], ["good"])

    def test_stale_active_pointer_falls_back_to_newest(self):
        records = [
            {"id": "old", "name": "Old", "mindMap": BIO_MAP, "createdAt": "2024-05-01T09:00:00Z"},
            {"id": "new", "name": "New", "mindMap": CHEM_MAP, "createdAt": "2024-06-01T09:00:00Z"},
        ]
        store = MappingStore({"alex_syllabuses": json.dumps(records), "alex_activeSyllabusId": "gone"})
        repo = SyllabusRepository(store, "alex")
        self.assertEqual(repo.active_id, "new")
        # load() only reads
        self.assertEqual(store.get_item("alex_activeSyllabusId"), "gone")

    def test_newest_tie_prefers_later_entry(self):
        store = MappingStore()
        repo = SyllabusRepository(store, "alex", clock=lambda: T0)
        first = repo.create(BIO_MAP, "a", "First")
        second = repo.create(BIO_MAP, "b", "Second")
        self.assertEqual(newest([first, second]).id, second.id)

    def test_parse_timestamp(self):
        self.assertEqual(parse_timestamp("2024-05-01T09:00:00Z"), T0)
        self.assertEqual(parse_timestamp("2024-05-01T09:00:00"), T0)
        self.assertEqual(parse_timestamp("2024-05-01T11:00:00+02:00"), T0)


if __name__ == "__main__":
    unittest.main()
