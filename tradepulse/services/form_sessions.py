"""Registry of live per-user form instances."""

from __future__ import annotations

import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Mapping
from threading import Lock
from typing import Any
from uuid import UUID

from tradepulse.forms.controller import FormController
from tradepulse.schemas.form import FormSnapshot

logger = logging.getLogger(__name__)


class FormSession:
    """One user's instance of a form: a controller plus whatever the form
    needs around it (upload slots, collaborators)."""

    form_name: str = "form"

    def __init__(self, user_id: UUID, controller: FormController) -> None:
        self.user_id = user_id
        self.controller = controller

    @property
    def is_submitting(self) -> bool:
        return self.controller.is_submitting

    def update_fields(self, values: Mapping[str, Any]) -> FormSnapshot:
        """Apply field edits in order, validating each edited field."""
        for name, value in values.items():
            self.controller.set_field(name, value)
        return self.snapshot()

    def snapshot(self) -> FormSnapshot:
        return self.controller.snapshot()

    def dispose(self) -> None:
        self.controller.dispose()


SessionKey = tuple[str, UUID]
SessionFactory = Callable[[], Awaitable[FormSession]]


class FormSessionRegistry:
    """Holds at most one instance per (form name, user id).

    The least recently used instances are evicted beyond ``max_size``;
    an instance with a submission in flight is never evicted.
    """

    def __init__(self, max_size: int = 1000) -> None:
        self.max_size = max_size
        self._sessions: OrderedDict[SessionKey, FormSession] = OrderedDict()
        self._lock = Lock()

    def get(self, form_name: str, user_id: UUID) -> FormSession | None:
        with self._lock:
            session = self._sessions.get((form_name, user_id))
            if session is not None:
                self._sessions.move_to_end((form_name, user_id))
            return session

    async def get_or_create(
        self,
        form_name: str,
        user_id: UUID,
        factory: SessionFactory,
    ) -> FormSession:
        """Return the live instance, building one with ``factory`` if needed."""
        session = self.get(form_name, user_id)
        if session is not None:
            return session

        created = await factory()
        key = (form_name, user_id)
        with self._lock:
            # another request may have built one while the factory ran
            existing = self._sessions.get(key)
            if existing is not None:
                self._sessions.move_to_end(key)
                return existing
            self._sessions[key] = created
            self._evict(keep=key)
        logger.debug("Created %s form for user %s", form_name, user_id)
        return created

    def _evict(self, keep: SessionKey) -> None:
        """Must be called with lock held."""
        overflow = len(self._sessions) - self.max_size
        if overflow <= 0:
            return
        candidates = [k for k, s in self._sessions.items() if k != keep and not s.is_submitting]
        for key in candidates[:overflow]:
            self._sessions.pop(key).dispose()
        logger.debug("Evicted form sessions; %d live", len(self._sessions))

    def discard(self, form_name: str, user_id: UUID) -> bool:
        """Dispose and forget one instance."""
        with self._lock:
            session = self._sessions.pop((form_name, user_id), None)
        if session is None:
            return False
        session.dispose()
        return True

    def discard_user(self, user_id: UUID) -> int:
        """Dispose every instance of a user (sign-out)."""
        with self._lock:
            keys = [key for key in self._sessions if key[1] == user_id]
            sessions = [self._sessions.pop(key) for key in keys]
        for session in sessions:
            session.dispose()
        if sessions:
            logger.info("Disposed %d form sessions for user %s", len(sessions), user_id)
        return len(sessions)

    def clear(self) -> int:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.dispose()
        return len(sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
