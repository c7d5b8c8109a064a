"""
Session / identity holder
The username is only a namespace for stored data, never a credential.
"""

import logging
from typing import Callable, Optional

from backend.errors import InvalidRequest, NotSignedIn
from backend.repository import SyllabusRepository
from backend.storage import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user"


class Session:
    """
    Tracks who is signed in and hands out their SyllabusRepository.

    session_store holds the current identity for this browser session;
    store holds everybody's syllabus data.
    """

    def __init__(
        self,
        session_store: KeyValueStore,
        store: KeyValueStore,
        repository_factory: Optional[Callable[[KeyValueStore, str], SyllabusRepository]] = None,
    ):
        self.session_store = session_store
        self.store = store
        self.repository_factory = repository_factory or SyllabusRepository
        self._repository: Optional[SyllabusRepository] = None

    @property
    def user(self) -> Optional[str]:
        return self.session_store.get_item(SESSION_USER_KEY)

    @property
    def is_signed_in(self) -> bool:
        return self.user is not None

    def login(self, name: str):
        """Sign in as name and load that user's syllabi"""
        username = (name or "").strip()
        if not username:
            raise InvalidRequest("Please enter a username.")
        self.session_store.set_item(SESSION_USER_KEY, username)
        self._repository = self.repository_factory(self.store, username)
        logger.info(f"User '{username}' signed in")

    def logout(self):
        """Forget the current user; their stored syllabi are left untouched"""
        user = self.user
        self.session_store.remove_item(SESSION_USER_KEY)
        self._repository = None
        if user:
            logger.info(f"User '{user}' signed out")

    def restore(self) -> bool:
        """Re-attach the repository for a user already recorded in the session store"""
        user = self.user
        if user is None:
            self._repository = None
            return False
        if self._repository is None or self._repository.identity != user:
            self._repository = self.repository_factory(self.store, user)
        return True

    @property
    def repository(self) -> SyllabusRepository:
        if not self.restore():
            raise NotSignedIn("Please sign in first.")
        return self._repository
