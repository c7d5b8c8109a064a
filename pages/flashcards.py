"""
Flashcards page
"""

import html

import streamlit as st

from backend.controllers import FlashcardController
from components.app_state import get_controller, require_active_syllabus
from utils.config import ENTIRE_SYLLABUS

st.markdown("# 🗂️ Flashcards")

syllabus = require_active_syllabus()
if syllabus is None:
    st.stop()

deck = get_controller("flashcards", FlashcardController)

with st.form("flashcard_config"):
    topic = st.text_input("Topic", value=ENTIRE_SYLLABUS, help="Any topic from your syllabus")
    st.form_submit_button("Create Flashcards", type="primary", disabled=deck.pending, on_click=deck.request)

if deck.pending:
    with st.spinner("Creating flashcards..."):
        result = deck.generate(topic, syllabus.source_text)
    if not result.success:
        if result.error_type == "overloaded":
            st.warning(result.error)
        else:
            st.error(result.error)

card = deck.current_card
if card is not None:
    st.markdown("---")
    st.caption(f"Card {deck.index + 1} of {len(deck.cards)}")

    side = "Answer" if deck.flipped else "Question"
    text = html.escape(card.answer if deck.flipped else card.question)
    background = "#eefaf3" if deck.flipped else "#ffffff"
    st.markdown(
        f"""
        <div style='border: 1px solid #ddd; border-radius: 12px; padding: 2.5rem; text-align: center;
                    min-height: 180px; background: {background};'>
            <div style='color: #888; font-size: 0.8rem;'>{side}</div>
            <div style='font-size: 1.3rem; margin-top: 1rem;'>{text}</div>
        </div>
        """,
        unsafe_allow_html=True,
    )

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("← Previous", use_container_width=True, disabled=deck.index == 0):
            deck.previous_card()
            st.rerun()
    with col2:
        if st.button("🔄 Flip", type="primary", use_container_width=True):
            deck.flip()
            st.rerun()
    with col3:
        if st.button("Next →", use_container_width=True, disabled=deck.index + 1 >= len(deck.cards)):
            deck.next_card()
            st.rerun()
