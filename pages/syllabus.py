"""
Mind Map page
Graph and outline views of the active syllabus
"""

import streamlit as st

from backend.mindmap import mind_map_outline
from backend.models import Node
from components.app_state import require_active_syllabus
from components.mindmap_viz import create_mind_map_graph

st.markdown("# 🧠 Mind Map")

syllabus = require_active_syllabus()
if syllabus is None:
    st.stop()

st.markdown(f"### {syllabus.name}")

graph_tab, outline_tab, topics_tab = st.tabs(["Graph", "Outline", "Topics"])

with graph_tab:
    st.graphviz_chart(create_mind_map_graph(syllabus.mind_map, syllabus.name), use_container_width=True)

with outline_tab:
    st.markdown(mind_map_outline(syllabus.mind_map))

with topics_tab:
    for topic in syllabus.mind_map:
        if not isinstance(topic, Node):
            st.markdown(f"- {topic.name}")
            continue
        heading = topic.name if topic.importance is None else f"{topic.name} (importance {topic.importance})"
        with st.expander(heading):
            if topic.definition:
                st.markdown(f"_{topic.definition}_")
            for child in topic.children:
                st.markdown(f"- {child.name}")
