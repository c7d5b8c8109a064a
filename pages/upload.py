"""
Upload Syllabus page
Validates a PDF or text syllabus and turns it into a mind map
"""

import streamlit as st

from backend.controllers import UploadController
from components.app_state import get_controller, get_session
from utils.config import MAX_UPLOAD_BYTES

st.markdown("# 📤 Upload Syllabus")
st.markdown("Upload your exam syllabus and we'll break it down into topics, subtopics and their importance.")

controller = get_controller("upload", UploadController)

col1, col2, col3 = st.columns([1, 3, 1])

with col2:
    uploaded = st.file_uploader(
        "Syllabus file",
        type=["pdf", "txt"],
        help=f"PDF or plain text, up to {MAX_UPLOAD_BYTES // (1024 * 1024)} MB",
    )

    st.button("🧠 Generate Mind Map", type="primary", use_container_width=True,
              disabled=uploaded is None or controller.pending, on_click=controller.request)

    if controller.pending and uploaded is None:
        controller.cancel()
    elif controller.pending:
        with st.spinner("Analysing your syllabus... this can take a minute"):
            result = controller.submit(
                get_session().repository,
                uploaded.name,
                uploaded.type or "",
                uploaded.getvalue(),
            )
        if result.success:
            st.success(f"✅ '{result.data.name}' is ready")
            st.switch_page("pages/syllabus.py")
        elif result.error_type == "overloaded":
            st.warning(result.error)
        else:
            st.error(result.error)

    with st.expander("ℹ️ What happens next?", expanded=False):
        st.markdown("""
        1. **Mind Map** - Your syllabus is split into main topics and subtopics
        2. **Importance** - Each main topic gets an importance score for the exam
        3. **Study Tools** - Quizzes, flashcards, a study plan and the tutor all use this syllabus
        """)
