"""
Syllabus repository for StudyMap
Owns one user's syllabus collection, the active-syllabus pointer and the
separately stored source texts, all kept in a KeyValueStore.

Storage layout for user <user>:
    <user>_syllabuses            JSON list of {id, name, mindMap, createdAt}
    <user>_syllabus_text_<id>    raw source text of one syllabus
    <user>_activeSyllabusId      id of the active syllabus (absent if none)
"""

import json
import uuid
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from backend.chat_history import ChatHistory
from backend.errors import InvalidRequest, MalformedResponse, StorageQuotaExceeded, SyllabusNotFound
from backend.mindmap import normalize_mind_map, serialize_mind_map
from backend.models import MindMap, Syllabus
from backend.storage import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_SYLLABUS_NAME = "Untitled syllabus"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing Z; naive values are taken as UTC"""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def syllabus_to_record(syllabus: Syllabus) -> Dict[str, Any]:
    """Collection entry for a syllabus; the source text is stored elsewhere"""
    return {
        "id": syllabus.id,
        "name": syllabus.name,
        "mindMap": serialize_mind_map(syllabus.mind_map),
        "createdAt": syllabus.created_at.isoformat(),
    }


def syllabus_from_record(record: Dict[str, Any]) -> Syllabus:
    """Inverse of syllabus_to_record. Raises ValueError on a bad record."""
    if not isinstance(record, dict):
        raise ValueError("record is not an object")
    syllabus_id = record.get("id")
    name = record.get("name")
    created_at = record.get("createdAt")
    if not isinstance(syllabus_id, str) or not syllabus_id:
        raise ValueError("record has no id")
    if not isinstance(created_at, str):
        raise ValueError(f"record {syllabus_id} has no createdAt")
    try:
        mind_map = normalize_mind_map(record.get("mindMap") or {"topics": []})
    except MalformedResponse as e:
        raise ValueError(f"record {syllabus_id} has an unreadable mind map: {e}")
    return Syllabus(
        id=syllabus_id,
        name=name if isinstance(name, str) and name else DEFAULT_SYLLABUS_NAME,
        mind_map=mind_map,
        created_at=parse_timestamp(created_at),
    )


def newest(syllabuses: List[Syllabus]) -> Optional[Syllabus]:
    """Most recently created syllabus; on equal timestamps the later entry wins"""
    best = None
    for syllabus in syllabuses:
        if best is None or syllabus.created_at >= best.created_at:
            best = syllabus
    return best


class SyllabusRepository:
    """
    A user's syllabi. At most one is active at a time: creating a syllabus
    activates it, deleting the active one promotes the newest remaining one.
    """

    def __init__(
        self,
        store: KeyValueStore,
        identity: str,
        clock: Optional[Callable[[], datetime]] = None,
        chat_history: Optional[ChatHistory] = None,
    ):
        self.store = store
        self.identity = identity
        self.clock = clock or _utcnow
        self.chat_history = chat_history or ChatHistory(store, identity)
        self._syllabuses: List[Syllabus] = []
        self._active_id: Optional[str] = None
        self.load()

    # Keys

    @property
    def collection_key(self) -> str:
        return f"{self.identity}_syllabuses"

    @property
    def active_key(self) -> str:
        return f"{self.identity}_activeSyllabusId"

    def text_key(self, syllabus_id: str) -> str:
        return f"{self.identity}_syllabus_text_{syllabus_id}"

    # Loading and persistence

    def load(self):
        """Re-read the collection and active pointer from the store"""
        syllabuses: List[Syllabus] = []
        raw = self.store.get_item(self.collection_key)
        if raw:
            try:
                records = json.loads(raw)
            except json.JSONDecodeError as e:
                logger.error(f"Failed to parse syllabus collection for '{self.identity}': {e}")
                records = []
            if not isinstance(records, list):
                logger.error(f"Syllabus collection for '{self.identity}' is not a list, ignoring it")
                records = []
            for record in records:
                try:
                    syllabuses.append(syllabus_from_record(record))
                except ValueError as e:
                    logger.warning(f"Skipping stored syllabus for '{self.identity}': {e}")

        self._syllabuses = syllabuses

        stored_active = self.store.get_item(self.active_key)
        if stored_active and any(s.id == stored_active for s in syllabuses):
            self._active_id = stored_active
        else:
            fallback = newest(syllabuses)
            self._active_id = fallback.id if fallback else None

        logger.info(f"Loaded {len(syllabuses)} syllabi for '{self.identity}', active={self._active_id}")

    def _dump_collection(self, syllabuses: List[Syllabus]) -> str:
        return json.dumps([syllabus_to_record(s) for s in syllabuses])

    def _write_collection(self, syllabuses: List[Syllabus]):
        self.store.set_item(self.collection_key, self._dump_collection(syllabuses))

    def _write_active(self, syllabus_id: Optional[str]):
        if syllabus_id:
            self.store.set_item(self.active_key, syllabus_id)
        else:
            self.store.remove_item(self.active_key)
        self._active_id = syllabus_id

    def _find(self, syllabus_id: str) -> Syllabus:
        for syllabus in self._syllabuses:
            if syllabus.id == syllabus_id:
                return syllabus
        raise SyllabusNotFound(syllabus_id)

    def _new_id(self) -> str:
        existing = {s.id for s in self._syllabuses}
        while True:
            candidate = str(uuid.uuid4())
            if candidate not in existing:
                return candidate

    # Operations

    def create(self, mind_map: Any, source_text: Optional[str], display_name: str) -> Syllabus:
        """
        Save a new syllabus and make it active.

        The source text is written before the collection references it. If the
        store is full, everything written so far is removed again and
        StorageQuotaExceeded is re-raised.
        """
        mind_map = normalize_mind_map(mind_map) if not isinstance(mind_map, MindMap) else mind_map
        name = (display_name or "").strip() or DEFAULT_SYLLABUS_NAME
        created_at = self.clock()
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)

        syllabus = Syllabus(
            id=self._new_id(),
            name=name,
            mind_map=mind_map,
            created_at=created_at,
            source_text=source_text,
        )
        text_key = self.text_key(syllabus.id)
        updated = self._syllabuses + [replace(syllabus, source_text=None)]
        collection_written = False

        try:
            if source_text is not None:
                self.store.set_item(text_key, source_text)
            self._write_collection(updated)
            collection_written = True
            self.store.set_item(self.active_key, syllabus.id)
        except StorageQuotaExceeded:
            logger.error(f"Failed to save syllabus '{name}' for '{self.identity}', storage is full; rolling back")
            self.store.remove_item(text_key)
            if collection_written:
                self._write_collection(self._syllabuses)
            raise

        self._syllabuses = updated
        self._active_id = syllabus.id
        logger.info(f"Created syllabus {syllabus.id} ('{name}') for '{self.identity}'")
        return syllabus

    def rename(self, syllabus_id: str, new_name: str):
        """Change a syllabus' display name. Renaming to the current name writes nothing."""
        syllabus = self._find(syllabus_id)
        name = (new_name or "").strip()
        if not name:
            raise InvalidRequest("Syllabus name cannot be empty.")
        if name == syllabus.name:
            return

        updated = [replace(s, name=name) if s.id == syllabus_id else s for s in self._syllabuses]
        self._write_collection(updated)
        self._syllabuses = updated
        logger.info(f"Renamed syllabus {syllabus_id} to '{name}'")

    def delete(self, syllabus_id: str):
        """
        Remove a syllabus with its source text and tutor transcript.
        If it was active, the newest remaining syllabus becomes active.
        """
        self._find(syllabus_id)
        remaining = [s for s in self._syllabuses if s.id != syllabus_id]

        # Drop the reference before the text so no record points at a missing entry
        self._write_collection(remaining)
        self._syllabuses = remaining
        self.store.remove_item(self.text_key(syllabus_id))
        self.chat_history.clear(syllabus_id)

        if self._active_id == syllabus_id:
            promoted = newest(remaining)
            self._write_active(promoted.id if promoted else None)
            logger.info(f"Deleted active syllabus {syllabus_id}; active is now {self._active_id}")
        else:
            logger.info(f"Deleted syllabus {syllabus_id}")

    def set_active(self, syllabus_id: str):
        """Activate a syllabus; unknown ids are ignored"""
        if not any(s.id == syllabus_id for s in self._syllabuses):
            logger.debug(f"Ignoring set_active for unknown syllabus {syllabus_id}")
            return
        if syllabus_id != self._active_id:
            self._write_active(syllabus_id)

    def list(self) -> List[Syllabus]:
        return list(self._syllabuses)

    def list_newest_first(self) -> List[Syllabus]:
        return sorted(self._syllabuses, key=lambda s: s.created_at, reverse=True)

    def get_source_text(self, syllabus_id: str) -> Optional[str]:
        return self.store.get_item(self.text_key(syllabus_id))

    def get(self, syllabus_id: str) -> Syllabus:
        syllabus = self._find(syllabus_id)
        return replace(syllabus, source_text=self.get_source_text(syllabus_id))

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    def get_active(self) -> Optional[Syllabus]:
        if self._active_id is None:
            return None
        return self.get(self._active_id)
