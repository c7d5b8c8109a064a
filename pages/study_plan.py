"""
Study Plan page
Builds a day-by-day schedule up to the exam date
"""

from datetime import date, timedelta

import streamlit as st

from backend.controllers import StudyPlanController
from components.app_state import get_controller, require_active_syllabus
from utils.config import STUDY_HOURS_RANGE

st.markdown("# 📅 Study Plan")

syllabus = require_active_syllabus()
if syllabus is None:
    st.stop()

planner = get_controller("study_plan", StudyPlanController)

with st.form("study_plan_form"):
    col1, col2 = st.columns(2)
    with col1:
        exam_date = st.date_input("Exam date", value=date.today() + timedelta(days=30), min_value=date.today())
        daily_hours = st.slider(
            "Study hours per day",
            min_value=STUDY_HOURS_RANGE[0],
            max_value=STUDY_HOURS_RANGE[1],
            value=3,
        )
    with col2:
        style = st.selectbox("Study style", ["Balanced", "Visual", "Practice-heavy", "Reading and notes"])
        intensity = st.selectbox("Intensity", ["Relaxed", "Moderate", "Intensive"], index=1)
    st.form_submit_button("Generate Plan", type="primary", disabled=planner.pending, on_click=planner.request)

if planner.pending:
    with st.spinner("Planning your study schedule..."):
        result = planner.generate(exam_date, daily_hours, style, intensity, syllabus.source_text)
    if not result.success:
        if result.error_type == "overloaded":
            st.warning(result.error)
        else:
            st.error(result.error)

if planner.plan:
    st.markdown("---")
    st.markdown(planner.plan)
    st.download_button(
        "⬇️ Download plan",
        data=planner.plan,
        file_name=f"{syllabus.name} study plan.md",
        mime="text/markdown",
    )
