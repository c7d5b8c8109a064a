"""
AI Tutor page
Chat about the active syllabus; each syllabus keeps its own conversation
"""

import streamlit as st

from backend.controllers import NOT_FROM_SYLLABUS_DISCLAIMER, TutorController
from components.app_state import get_tutor_controller, require_active_syllabus

st.markdown("# 💬 AI Tutor")

syllabus = require_active_syllabus()
if syllabus is None:
    st.stop()

tutor = get_tutor_controller()

st.caption(f"Ask Marika anything about **{syllabus.name}**.")
if syllabus.source_text is None:
    st.info("The source text is missing for this syllabus, so answers are based on the mind map only.")


def render_turn(turn):
    with st.chat_message(turn.role, avatar="🎓" if turn.role == "assistant" else None):
        st.markdown(turn.content)
        if TutorController.needs_disclaimer(turn):
            st.caption(f"⚠️ {NOT_FROM_SYLLABUS_DISCLAIMER}")


for turn in tutor.transcript():
    render_turn(turn)

question = st.chat_input("Ask a question about your syllabus", disabled=tutor.pending, on_submit=tutor.request)
if tutor.pending and not question:
    tutor.cancel()
elif tutor.pending:
    with st.chat_message("user"):
        st.markdown(question)
    with st.spinner("Marika is thinking..."):
        result = tutor.ask(question)
    if result.success:
        render_turn(result.data)
    elif result.error_type == "overloaded":
        st.warning(result.error)
    else:
        st.error(result.error)

if tutor.transcript():
    if st.button("🧹 Clear conversation"):
        tutor.clear()
        st.rerun()
