"""
Mind map visualization component for StudyMap
Creates Graphviz diagrams for a syllabus mind map
"""

import graphviz
from typing import Optional, Sequence, Tuple

from backend.models import Leaf, MindMap, Node, Topic
from utils.config import get_importance_range


def calculate_color_gradient(importance: Optional[int], bounds: Tuple[int, int]) -> str:
    """
    Linear interpolation from white to green based on importance
    White: #ffffff (255, 255, 255)
    Green: #26c176 (38, 193, 118)
    Topics without an importance are drawn light grey.
    """
    if importance is None:
        return '#f0f0f0'

    low, high = bounds
    share = (importance - low) / (high - low) if high > low else 1.0
    share = max(0.0, min(1.0, share))

    r = int(255 - (255 - 38) * share)
    g = int(255 - (255 - 193) * share)
    b = int(255 - (255 - 118) * share)

    return f'#{r:02x}{g:02x}{b:02x}'


def _wrap(text: str, width: int = 28) -> str:
    """Break long labels onto several lines"""
    words = text.split()
    lines, line = [], ""
    for word in words:
        if line and len(line) + len(word) + 1 > width:
            lines.append(line)
            line = word
        else:
            line = f"{line} {word}" if line else word
    if line:
        lines.append(line)
    return "\\n".join(lines)


def create_mind_map_graph(mind_map: MindMap, title: str = "Syllabus") -> graphviz.Digraph:
    """
    Create a Graphviz diagram for a mind map

    Args:
        mind_map: Normalised mind map
        title: Label of the root node (usually the syllabus name)

    Returns:
        Graphviz Digraph object
    """
    bounds = get_importance_range()

    dot = graphviz.Digraph(comment='Mind Map', engine='dot')

    # Left to Right layout
    dot.attr(rankdir='LR')

    dot.attr('graph',
             ranksep='1.0',
             nodesep='0.3',
             fontname='Arial',
             fontsize='12',
             bgcolor='transparent'
    )

    dot.attr('node',
             shape='box',
             style='rounded,filled',
             fontname='Arial',
             fontsize='10',
             margin='0.2',
             penwidth='1.5'
    )

    dot.attr('edge', arrowsize='0.6', color='#666666')

    dot.node('root', _wrap(title), shape='ellipse', fillcolor='#26c176', fontcolor='white', fontsize='12')

    counter = [0]

    def add(topics: Sequence[Topic], parent_id: str, depth: int):
        for topic in topics:
            counter[0] += 1
            node_id = f"n{counter[0]}"
            label = _wrap(topic.name)

            if isinstance(topic, Leaf):
                dot.node(node_id, label, fillcolor='#ffffff', penwidth='1.0')
            else:
                if depth == 0 and topic.importance is not None:
                    label += f"\\n(importance {topic.importance})"
                importance = topic.importance if depth == 0 else None
                dot.node(
                    node_id,
                    label,
                    fillcolor=calculate_color_gradient(importance, bounds) if depth == 0 else '#ffffff',
                    tooltip=topic.definition or ''
                )
            dot.edge(parent_id, node_id)

            if isinstance(topic, Node):
                add(topic.children, node_id, depth + 1)

    add(mind_map.topics, 'root', 0)
    return dot
