"""
Dashboard page
Headline numbers and topic importance for the active syllabus
"""

import streamlit as st

from backend.controllers import dashboard_summary
from components.app_state import require_active_syllabus

st.markdown("# 📊 Dashboard")

syllabus = require_active_syllabus()
if syllabus is None:
    st.stop()

st.markdown(f"### {syllabus.name}")
st.caption(f"Uploaded {syllabus.created_at.strftime('%d %b %Y, %H:%M')}")

summary = dashboard_summary(syllabus.mind_map)

col1, col2, col3 = st.columns(3)
with col1:
    st.metric("Total topics", summary["total_topics"])
with col2:
    st.metric("Main topics", summary["top_level_topics"])
with col3:
    st.metric("Average importance", summary["average_importance_display"])

st.markdown("---")
st.markdown("### Topic importance")

if summary["chart_rows"]:
    st.bar_chart(summary["chart_rows"], x="name", y="importance", horizontal=True)
    with st.expander("View all topics"):
        for row in summary["chart_rows"]:
            st.markdown(f"- **{row['full_name']}**: {row['importance']}")
else:
    st.info("No importance scores were found for this syllabus.")

if syllabus.source_text is None:
    st.warning("The source text for this syllabus is missing, so quizzes, flashcards and plans are unavailable. "
               "The tutor will answer from the mind map instead.")

st.markdown("---")
col1, col2, col3, col4 = st.columns(4)
with col1:
    st.page_link("pages/quiz.py", label="Take a quiz", icon="📝")
with col2:
    st.page_link("pages/flashcards.py", label="Review flashcards", icon="🗂️")
with col3:
    st.page_link("pages/study_plan.py", label="Plan your study", icon="📅")
with col4:
    st.page_link("pages/tutor.py", label="Ask the tutor", icon="💬")
