"""
History page
Every saved syllabus, newest first
"""

import streamlit as st

from backend.mindmap import count_nodes
from components.app_state import get_session
from components.dialogs import delete_syllabus_dialog, rename_syllabus_dialog

st.markdown("# 🕘 History")

repository = get_session().repository
syllabuses = repository.list_newest_first()

if not syllabuses:
    st.info("You haven't uploaded any syllabi yet.")
    if st.button("Upload a syllabus", type="primary"):
        st.switch_page("pages/upload.py")
    st.stop()

for syllabus in syllabuses:
    is_active = syllabus.id == repository.active_id
    with st.container(border=True):
        col1, col2, col3, col4 = st.columns([4, 1, 1, 1])
        with col1:
            st.markdown(f"**{syllabus.name}**" + ("  🟢 active" if is_active else ""))
            st.caption(
                f"{syllabus.created_at.strftime('%d %b %Y, %H:%M')} · "
                f"{count_nodes(syllabus.mind_map)} topics"
            )
        with col2:
            if st.button("Open", key=f"open_{syllabus.id}", use_container_width=True, disabled=is_active):
                repository.set_active(syllabus.id)
                st.switch_page("pages/dashboard.py")
        with col3:
            if st.button("Rename", key=f"rename_{syllabus.id}", use_container_width=True):
                rename_syllabus_dialog(repository, syllabus)
        with col4:
            if st.button("Delete", key=f"delete_{syllabus.id}", use_container_width=True):
                delete_syllabus_dialog(repository, syllabus)
