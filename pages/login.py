"""
Sign-in page
The username only separates one person's syllabi from another's on this machine.
"""

import streamlit as st

from backend.errors import InvalidRequest
from components.app_state import get_session
from utils.config import APP_TITLE

col1, col2, col3 = st.columns([1, 2, 1])

with col2:
    st.markdown(f"# 📚 Welcome to {APP_TITLE}")
    st.markdown("Upload a syllabus and get a mind map, quizzes, flashcards, a study plan and an AI tutor.")

    with st.form("login_form"):
        username = st.text_input("Username", placeholder="e.g., alex", max_chars=64)
        submitted = st.form_submit_button("Continue", type="primary", use_container_width=True)

    if submitted:
        try:
            get_session().login(username)
        except InvalidRequest as e:
            st.error(str(e))
        else:
            st.rerun()

    st.caption("No password needed. Your data stays on this computer.")
