"""
Tutor transcripts, one per syllabus
Switching the active syllabus switches the visible conversation.
"""

import json
import logging
from typing import List, Sequence

from backend.models import ChatTurn
from backend.storage import KeyValueStore

logger = logging.getLogger(__name__)

ROLES = ("user", "assistant")


def turn_to_dict(turn: ChatTurn) -> dict:
    data = {"role": turn.role, "content": turn.content}
    if turn.from_syllabus is not None:
        data["fromSyllabus"] = turn.from_syllabus
    return data


def turn_from_dict(data) -> ChatTurn:
    if not isinstance(data, dict):
        raise ValueError("turn is not an object")
    role = data.get("role")
    content = data.get("content")
    if role not in ROLES or not isinstance(content, str):
        raise ValueError(f"bad turn: role={role!r}")
    from_syllabus = data.get("fromSyllabus")
    return ChatTurn(role=role, content=content, from_syllabus=from_syllabus if isinstance(from_syllabus, bool) else None)


class ChatHistory:
    """Stores transcripts under <user>_chat_history_<syllabus id>"""

    def __init__(self, store: KeyValueStore, identity: str):
        self.store = store
        self.identity = identity

    def key(self, syllabus_id: str) -> str:
        return f"{self.identity}_chat_history_{syllabus_id}"

    def get(self, syllabus_id: str) -> List[ChatTurn]:
        raw = self.store.get_item(self.key(syllabus_id))
        if raw is None:
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError:
            logger.error(f"Unreadable chat history for syllabus {syllabus_id}, starting fresh")
            return []
        if not isinstance(entries, list):
            return []

        turns = []
        for entry in entries:
            try:
                turns.append(turn_from_dict(entry))
            except ValueError as e:
                logger.warning(f"Skipping chat turn for syllabus {syllabus_id}: {e}")
        return turns

    def save(self, syllabus_id: str, turns: Sequence[ChatTurn]):
        payload = json.dumps([turn_to_dict(turn) for turn in turns])
        self.store.set_item(self.key(syllabus_id), payload)

    def append(self, syllabus_id: str, turn: ChatTurn) -> List[ChatTurn]:
        if turn.role not in ROLES:
            raise ValueError(f"Unknown chat role: {turn.role}")
        turns = self.get(syllabus_id) + [turn]
        self.save(syllabus_id, turns)
        return turns

    def clear(self, syllabus_id: str):
        self.store.remove_item(self.key(syllabus_id))
