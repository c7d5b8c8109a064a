"""
Data models for StudyMap
Contains dataclasses and type definitions
"""

from dataclasses import dataclass, field
from typing import Tuple, Optional, Union
from datetime import datetime


@dataclass(frozen=True)
class Leaf:
    """A topic with no metadata, stored as a bare string"""
    name: str


@dataclass(frozen=True)
class Node:
    """A topic with optional definition, importance and child topics"""
    name: str
    definition: Optional[str] = None
    importance: Optional[int] = None
    children: Tuple['Topic', ...] = ()


Topic = Union[Leaf, Node]


@dataclass(frozen=True)
class MindMap:
    """Ordered top-level topics of a syllabus"""
    topics: Tuple[Topic, ...] = ()

    def __len__(self) -> int:
        return len(self.topics)

    def __iter__(self):
        return iter(self.topics)


@dataclass
class Syllabus:
    """A saved syllabus. source_text is None when its text entry is missing."""
    id: str
    name: str
    mind_map: MindMap
    created_at: datetime
    source_text: Optional[str] = field(default=None, compare=False)


@dataclass(frozen=True)
class ChatTurn:
    """A single tutor conversation turn"""
    role: str
    content: str
    from_syllabus: Optional[bool] = None
