"""Sync controller: moves the configuration model between the session and the backend."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from devedit.core.document import save_payload
from devedit.core.errors import BackendError, DeveditError
from devedit.core.model import StatusMode
from devedit.core.session import EditorSession
from devedit.transports.base import Backend

LOGGER = logging.getLogger(__name__)


class SyncState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SAVING = "saving"


class SyncController:
    """Runs load, save and profile lifecycle calls for one editing session.

    At most one load or save is in flight; a request made while one is
    outstanding is dropped, not queued. Every load/save is numbered and a
    response is only applied if no newer request was issued meanwhile.
    Backend and document failures end up as status text on the session,
    never as exceptions for the caller.
    """

    def __init__(self, session: EditorSession, backend: Backend) -> None:
        self.session = session
        self.backend = backend
        self.state = SyncState.IDLE
        self._issued = 0

    @property
    def busy(self) -> bool:
        return self.state is not SyncState.IDLE

    def _begin(self, state: SyncState) -> int:
        self.state = state
        self._issued += 1
        return self._issued

    def _is_stale(self, request_id: int) -> bool:
        if request_id == self._issued:
            return False
        LOGGER.warning(
            "Discarding response to request %d; request %d was issued since",
            request_id,
            self._issued,
        )
        return True

    async def load(self) -> bool:
        if self.busy:
            LOGGER.warning("Dropped load request while %s", self.state.value)
            return False
        request_id = self._begin(SyncState.LOADING)
        self.session.report("Loading...")
        try:
            document = await self.backend.fetch_config()
            if self._is_stale(request_id):
                return False
            self.session.replace(document)
        except DeveditError as exc:
            LOGGER.warning("Load failed: %s", exc)
            self.session.report(f"Load failed: {exc}", StatusMode.ERROR)
            return False
        finally:
            self.state = SyncState.IDLE
        self.session.report("Profile loaded", StatusMode.SUCCESS)
        return True

    async def save(self) -> bool:
        if not self.session.dirty:
            return False
        if self.busy:
            LOGGER.warning("Dropped save request while %s", self.state.value)
            return False
        request_id = self._begin(SyncState.SAVING)
        revision = self.session.revision
        profile_id = self.session.active_profile_id
        payload = save_payload(self.session.model)
        self.session.report("Saving...")
        try:
            await self.backend.apply_config(profile_id, payload)
        except BackendError as exc:
            LOGGER.warning("Save of profile '%s' failed: %s", profile_id, exc)
            self.session.report(f"Save failed: {exc}", StatusMode.ERROR)
            return False
        finally:
            self.state = SyncState.IDLE
        if self._is_stale(request_id):
            return False
        # Edits made while the request was in flight are still unsaved.
        if self.session.revision == revision:
            self.session.dirty = False
        self.session.report("Saved", StatusMode.SUCCESS)
        return True

    async def _profile_call(self, action: str, call: Callable[[], Awaitable[Any]]) -> bool:
        failure: str | None = None
        try:
            await call()
        except BackendError as exc:
            LOGGER.warning("%s failed: %s", action, exc)
            failure = f"{action} failed: {exc}"
        reloaded = await self.load()
        if failure is not None:
            self.session.report(failure, StatusMode.ERROR)
            return False
        return reloaded

    async def create_profile(self, profile_id: str, name: str = "", clone_from: str | None = None) -> bool:
        if not profile_id:
            return False
        return await self._profile_call(
            "Create profile",
            lambda: self.backend.create_profile(profile_id, name or profile_id, clone_from),
        )

    async def clone_profile(self, profile_id: str, name: str = "") -> bool:
        """Create ``profile_id`` as a copy of the active profile."""
        source = self.session.active_profile_id
        if not source:
            return False
        return await self.create_profile(profile_id, name, clone_from=source)

    async def rename_profile(self, profile_id: str, new_name: str) -> bool:
        if not profile_id:
            return False
        return await self._profile_call(
            "Rename profile",
            lambda: self.backend.rename_profile(profile_id, new_name),
        )

    async def delete_profile(self, profile_id: str) -> bool:
        if not profile_id:
            return False
        return await self._profile_call(
            "Delete profile",
            lambda: self.backend.delete_profile(profile_id),
        )

    async def activate_profile(self, profile_id: str) -> bool:
        if not profile_id or profile_id == self.session.active_profile_id:
            return False
        self.session.active_profile_id = profile_id
        return await self._profile_call(
            "Activate profile",
            lambda: self.backend.activate_profile(profile_id),
        )
