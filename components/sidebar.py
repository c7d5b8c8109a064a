"""
Sidebar: navigation, syllabus switcher and account controls
"""

import streamlit as st

from components.app_state import get_session
from components.dialogs import delete_syllabus_dialog, rename_syllabus_dialog
from utils.config import APP_TITLE

PAGE_LINKS = [
    ("pages/dashboard.py", "Dashboard", "📊"),
    ("pages/syllabus.py", "Mind Map", "🧠"),
    ("pages/quiz.py", "Quiz", "📝"),
    ("pages/flashcards.py", "Flashcards", "🗂️"),
    ("pages/study_plan.py", "Study Plan", "📅"),
    ("pages/tutor.py", "AI Tutor", "💬"),
    ("pages/history.py", "History", "🕘"),
    ("pages/upload.py", "Upload Syllabus", "📤"),
]


def show_sidebar():
    session = get_session()

    with st.sidebar:
        st.markdown(f"## 📚 {APP_TITLE}")

        if not session.is_signed_in:
            st.caption("Sign in to see your syllabi.")
            return

        repository = session.repository
        syllabuses = repository.list_newest_first()

        st.caption(f"Signed in as **{session.user}**")

        if syllabuses:
            ids = [s.id for s in syllabuses]
            names = {s.id: s.name for s in syllabuses}
            active_id = repository.active_id
            selected = st.selectbox(
                "Active syllabus",
                options=ids,
                index=ids.index(active_id) if active_id in ids else 0,
                format_func=lambda syllabus_id: names[syllabus_id],
                key=f"syllabus_switcher_{active_id}",
            )
            if selected != active_id:
                repository.set_active(selected)
                st.rerun()

            active = repository.get_active()
            col1, col2 = st.columns(2)
            with col1:
                if st.button("✏️ Rename", use_container_width=True, key="sidebar_rename"):
                    rename_syllabus_dialog(repository, active)
            with col2:
                if st.button("🗑️ Delete", use_container_width=True, key="sidebar_delete"):
                    delete_syllabus_dialog(repository, active)
        else:
            st.info("No syllabi yet")

        st.markdown("---")
        for path, label, icon in PAGE_LINKS:
            st.page_link(path, label=label, icon=icon)

        st.markdown("---")
        st.page_link("pages/settings.py", label="Settings", icon="⚙️")
        if st.button("Sign out", use_container_width=True, key="sidebar_logout"):
            session.logout()
            st.rerun()
