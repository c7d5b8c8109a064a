"""
Mind map normalisation and derived values

Everything the generator returns passes through normalize_mind_map once;
the rest of the code only ever sees Leaf/Node trees.
"""

import json
import logging
import math
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from backend.errors import MalformedResponse
from backend.models import Leaf, Node, MindMap, Topic
from utils.config import get_importance_range

logger = logging.getLogger(__name__)

PATH_SEPARATOR = " > "

_JSON_TAG = "```json"  # guard against code-block wrapping

_NAME_KEYS = ("topic", "name")
_CHILDREN_KEYS = ("subtopics", "children")
_IMPORTANCE_KEYS = ("weightage", "importance")


def _first_present(data: Dict, keys: Sequence[str]) -> Any:
    """First non-null value among alternative keys"""
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def strip_json_fences(text: str) -> str:
    text = text.strip()
    if text.startswith(_JSON_TAG):
        text = text.removeprefix(_JSON_TAG).rstrip("`").strip()
    elif text.startswith("```"):
        text = text.strip("`").strip()
    return text


def _coerce_importance(value: Any, name: str, bounds: Tuple[int, int]) -> Optional[int]:
    """Turn a generator-supplied weightage into an int inside bounds, or None"""
    if value is None:
        return None
    if isinstance(value, bool):
        logger.warning(f"Ignoring boolean importance for topic '{name}'")
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            logger.warning(f"Ignoring non-numeric importance {value!r} for topic '{name}'")
            return None
    if not isinstance(value, (int, float)) or (isinstance(value, float) and not math.isfinite(value)):
        logger.warning(f"Ignoring invalid importance {value!r} for topic '{name}'")
        return None

    importance = int(round(value))
    low, high = bounds
    if importance < low or importance > high:
        clamped = max(low, min(high, importance))
        logger.warning(f"Importance {value} for topic '{name}' outside [{low}, {high}], clamped to {clamped}")
        return clamped
    return importance


def _normalize_topic(item: Any, bounds: Tuple[int, int], top_level: bool) -> Optional[Topic]:
    if item is None:
        logger.warning("Skipping empty topic entry")
        return None

    if isinstance(item, str):
        name = item.strip()
        if not name:
            logger.warning("Skipping blank topic string")
            return None
        return Leaf(name)

    if not isinstance(item, dict):
        logger.warning(f"Skipping topic of unsupported type {type(item).__name__}")
        return None

    name = _first_present(item, _NAME_KEYS)
    if not isinstance(name, str) or not name.strip():
        logger.warning(f"Skipping topic without a name: {str(item)[:80]}")
        return None
    name = name.strip()

    raw_children = _first_present(item, _CHILDREN_KEYS)
    if raw_children is None:
        raw_children = []
    if not isinstance(raw_children, list):
        logger.warning(f"Skipping topic '{name}': subtopics is {type(raw_children).__name__}, not a list")
        return None

    children = []
    for child in raw_children:
        normalized = _normalize_topic(child, bounds, top_level=False)
        if normalized is not None:
            children.append(normalized)

    definition = item.get("definition")
    if isinstance(definition, str) and definition.strip():
        definition = definition.strip()
    else:
        definition = None

    importance = _coerce_importance(_first_present(item, _IMPORTANCE_KEYS), name, bounds)
    if top_level and importance is None:
        logger.warning(f"Top-level topic '{name}' has no importance")

    return Node(name=name, definition=definition, importance=importance, children=tuple(children))


def normalize_mind_map(raw: Any, importance_range: Optional[Tuple[int, int]] = None) -> MindMap:
    """
    Convert untrusted generator output into a MindMap.

    Accepts {"topics": [...]}, a bare list of topics, a wrapper holding
    either under "mindMap"/"mindMapData", or a JSON string of any of these.
    Malformed nodes are dropped (and logged) rather than failing the whole map.

    Raises:
        MalformedResponse: if the payload is not JSON or has no topic list at all
    """
    if isinstance(raw, MindMap):
        return raw

    bounds = importance_range or get_importance_range()

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(strip_json_fences(raw))
        except json.JSONDecodeError as e:
            raise MalformedResponse(f"Mind map is not valid JSON: {e}")

    if isinstance(raw, dict):
        if "topics" not in raw:
            for wrapper in ("mindMap", "mindMapData", "mind_map"):
                if wrapper in raw:
                    return normalize_mind_map(raw[wrapper], bounds)
        topics = raw.get("topics")
    else:
        topics = raw

    if not isinstance(topics, list):
        raise MalformedResponse("Mind map has no list of topics")

    normalized = []
    for item in topics:
        topic = _normalize_topic(item, bounds, top_level=True)
        if topic is not None:
            normalized.append(topic)

    dropped = len(topics) - len(normalized)
    if dropped:
        logger.warning(f"Dropped {dropped} malformed top-level topic(s) out of {len(topics)}")

    return MindMap(topics=tuple(normalized))


def _serialize_topic(topic: Topic) -> Union[str, Dict[str, Any]]:
    if isinstance(topic, Leaf):
        return topic.name
    data: Dict[str, Any] = {"topic": topic.name}
    if topic.definition is not None:
        data["definition"] = topic.definition
    if topic.importance is not None:
        data["weightage"] = topic.importance
    data["subtopics"] = [_serialize_topic(child) for child in topic.children]
    return data


def serialize_mind_map(mind_map: MindMap) -> Dict[str, Any]:
    """Wire/storage form of a mind map: {"topics": [...]}"""
    return {"topics": [_serialize_topic(topic) for topic in mind_map.topics]}


def _as_mind_map(mind_map: Any) -> MindMap:
    if mind_map is None:
        return MindMap()
    try:
        return normalize_mind_map(mind_map)
    except MalformedResponse as e:
        logger.warning(f"Treating unusable mind map as empty: {str(e)}")
        return MindMap()


def _count(topics: Sequence[Topic]) -> int:
    total = 0
    for topic in topics:
        total += 1
        if isinstance(topic, Node):
            total += _count(topic.children)
    return total


def count_nodes(mind_map: Any) -> int:
    """Count every topic and subtopic, string leaves included"""
    return _count(_as_mind_map(mind_map).topics)


def average_top_level_importance(mind_map: Any) -> float:
    """Mean importance of the top-level topics that have one; 0.0 if none do"""
    values = [
        topic.importance for topic in _as_mind_map(mind_map).topics
        if isinstance(topic, Node) and topic.importance is not None
    ]
    if not values:
        return 0.0
    return sum(values) / len(values)


def format_importance(value: float) -> str:
    """One decimal for display: 5.333 -> '5.3', 5.0 -> '5'"""
    return f"{round(value, 1):g}"


class TopicPaths:
    """
    Breadcrumbs for every topic, e.g. "Genetics > DNA Replication".

    Pre-order: a parent comes before its children, children keep their
    original order. Each iteration walks the tree afresh.
    """

    def __init__(self, mind_map: MindMap, separator: str = PATH_SEPARATOR):
        self._topics = mind_map.topics
        self.separator = separator

    def __iter__(self) -> Iterator[str]:
        return self._walk(self._topics, ())

    def _walk(self, topics: Sequence[Topic], ancestors: Tuple[str, ...]) -> Iterator[str]:
        for topic in topics:
            trail = ancestors + (topic.name,)
            yield self.separator.join(trail)
            if isinstance(topic, Node):
                yield from self._walk(topic.children, trail)


def flatten_topic_paths(mind_map: Any, separator: str = PATH_SEPARATOR) -> TopicPaths:
    return TopicPaths(_as_mind_map(mind_map), separator)


def top_level_importances(mind_map: Any) -> List[Dict[str, Any]]:
    """Chart rows for top-level topics with an importance, most important first"""
    rows = []
    for topic in _as_mind_map(mind_map).topics:
        if not isinstance(topic, Node) or topic.importance is None:
            continue
        short = topic.name if len(topic.name) <= 15 else f"{topic.name[:12]}..."
        rows.append({"name": short, "full_name": topic.name, "importance": topic.importance})
    rows.sort(key=lambda row: row["importance"], reverse=True)
    return rows


def mind_map_outline(mind_map: Any) -> str:
    """Indented markdown outline of the whole tree"""
    lines: List[str] = []

    def walk(topics: Sequence[Topic], depth: int):
        indent = "  " * depth
        for topic in topics:
            if isinstance(topic, Leaf):
                lines.append(f"{indent}- {topic.name}")
                continue
            line = f"{indent}- **{topic.name}**"
            if topic.importance is not None:
                line += f" (importance {topic.importance})"
            if topic.definition:
                line += f": {topic.definition}"
            lines.append(line)
            walk(topic.children, depth + 1)

    walk(_as_mind_map(mind_map).topics, 0)
    return "\n".join(lines)
