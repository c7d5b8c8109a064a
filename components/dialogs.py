"""
Confirmation and edit dialogs for syllabi
"""

import logging

import streamlit as st

from backend.controllers import describe_error
from backend.errors import InvalidRequest, StorageQuotaExceeded, SyllabusNotFound
from backend.repository import SyllabusRepository
from backend.models import Syllabus

logger = logging.getLogger(__name__)


@st.dialog("✏️ Rename syllabus")
def rename_syllabus_dialog(repository: SyllabusRepository, syllabus: Syllabus):
    new_name = st.text_input("New name", value=syllabus.name, max_chars=120)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Save", type="primary", use_container_width=True):
            try:
                repository.rename(syllabus.id, new_name)
            except (InvalidRequest, SyllabusNotFound, StorageQuotaExceeded) as e:
                st.error(describe_error(e)[0])
            else:
                st.rerun()
    with col2:
        if st.button("Cancel", use_container_width=True):
            st.rerun()


@st.dialog("🗑️ Delete syllabus")
def delete_syllabus_dialog(repository: SyllabusRepository, syllabus: Syllabus):
    st.markdown(f"Delete **{syllabus.name}**? Its mind map, source text and tutor chat will be removed.")
    st.warning("This cannot be undone.")

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Delete", type="primary", use_container_width=True):
            try:
                repository.delete(syllabus.id)
            except (SyllabusNotFound, StorageQuotaExceeded) as e:
                st.error(describe_error(e)[0])
            else:
                st.rerun()
    with col2:
        if st.button("Cancel", use_container_width=True):
            st.rerun()
