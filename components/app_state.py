"""
Per-browser-session wiring for the Streamlit pages
One SQLite store for the process; a Session, generator and page
controllers per browser session, kept in st.session_state.
"""

import logging
from typing import Callable, Optional, TypeVar

import streamlit as st

from backend.controllers import TutorController
from backend.generation import ContentGenerator
from backend.models import Syllabus
from backend.session import Session
from backend.storage import MappingStore, SqliteStore
from utils.config import DB_PATH, STORAGE_QUOTA_BYTES, get_current_provider

logger = logging.getLogger(__name__)

ControllerT = TypeVar("ControllerT")


@st.cache_resource
def get_store() -> SqliteStore:
    """Persistent store shared by every browser session"""
    logger.info(f"Opening syllabus store at {DB_PATH}")
    return SqliteStore(DB_PATH, quota_bytes=STORAGE_QUOTA_BYTES)


def get_session() -> Session:
    if "studymap_session" not in st.session_state:
        st.session_state.studymap_session = Session(MappingStore(st.session_state), get_store())
    session = st.session_state.studymap_session
    session.restore()
    return session


def get_generator() -> ContentGenerator:
    """Rebuilt whenever the provider or API key changes"""
    fingerprint = (get_current_provider(), st.session_state.get("api_key"))
    if st.session_state.get("generator_fingerprint") != fingerprint:
        st.session_state.generator = ContentGenerator(provider=fingerprint[0])
        st.session_state.generator_fingerprint = fingerprint
    return st.session_state.generator


def get_controller(name: str, factory: Callable[[ContentGenerator], ControllerT]) -> ControllerT:
    """
    Page controller scoped to the signed-in user and active syllabus.
    Switching syllabus (or user) starts the page afresh.
    """
    session = get_session()
    scope = (session.user, session.repository.active_id if session.is_signed_in else None)
    key = f"controller_{name}"
    stored = st.session_state.get(key)
    if stored is None or stored[0] != scope:
        stored = (scope, factory(get_generator()))
        st.session_state[key] = stored
    controller = stored[1]
    controller.generator = get_generator()
    return controller


def track_page(page: str):
    """Drop page controllers when the user navigates to another page"""
    state = st.session_state
    if state.get("current_page") == page:
        return
    stale = [key for key in list(state.keys()) if str(key).startswith("controller_")]
    for key in stale:
        del state[key]
    if stale:
        logger.info(f"Navigated to '{page}', discarded {len(stale)} page controller(s)")
    state["current_page"] = page


def get_tutor_controller() -> TutorController:
    session = get_session()
    controller = get_controller("tutor", lambda generator: TutorController(generator, session.repository))
    controller.repository = session.repository
    return controller


def require_active_syllabus() -> Optional[Syllabus]:
    """Active syllabus, or a prompt to upload one and None"""
    syllabus = get_session().repository.get_active()
    if syllabus is None:
        st.info("📄 No syllabus yet. Upload one to get started.")
        if st.button("Upload a syllabus", type="primary"):
            st.switch_page("pages/upload.py")
    return syllabus
