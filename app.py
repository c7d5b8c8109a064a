"""
StudyMap - AI-Powered Syllabus Study Assistant
Main entry point with Streamlit navigation
"""

import logging

import streamlit as st
from components.sidebar import show_sidebar
from components.api_key_overlay import check_and_show_api_overlay
from components.app_state import get_session, track_page
from utils.config import APP_TITLE, LOG_LEVEL, get_current_provider, load_api_key

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Page configuration
st.set_page_config(
    page_title=f"{APP_TITLE} - AI Study Assistant",
    page_icon="📚",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Initialize session state
if "api_key" not in st.session_state:
    st.session_state.api_key = load_api_key(get_current_provider())

session = get_session()

# Define pages
login = st.Page("pages/login.py", title="Sign in", url_path="login")
upload = st.Page("pages/upload.py", title="Upload Syllabus", url_path="upload")
dashboard = st.Page("pages/dashboard.py", title="Dashboard", url_path="", default=True)
syllabus = st.Page("pages/syllabus.py", title="Mind Map", url_path="syllabus")
quiz = st.Page("pages/quiz.py", title="Quiz", url_path="quiz")
flashcards = st.Page("pages/flashcards.py", title="Flashcards", url_path="flashcards")
study_plan = st.Page("pages/study_plan.py", title="Study Plan", url_path="study-plan")
tutor = st.Page("pages/tutor.py", title="AI Tutor", url_path="tutor")
history = st.Page("pages/history.py", title="History", url_path="history")
settings = st.Page("pages/settings.py", title="Settings", url_path="settings")

# Signed-out visitors only ever see the sign-in page
if session.is_signed_in:
    pg = st.navigation([dashboard, upload, syllabus, quiz, flashcards, study_plan, tutor, history, settings])
else:
    pg = st.navigation([login])

# Hide the auto generated nav, the sidebar component draws its own
st.markdown("""
<style>
[data-testid="stSidebarHeader"] {
    display: none !important;
}
[data-testid="stSidebarNav"] {
    display: none !important;
}
</style>
""", unsafe_allow_html=True)

track_page(pg.url_path)
show_sidebar()

# Check API key for pages that call the AI
if session.is_signed_in and pg.url_path not in ["", "settings", "history"] and not st.session_state.api_key:
    if not check_and_show_api_overlay():
        st.stop()

# Run selected page
pg.run()
