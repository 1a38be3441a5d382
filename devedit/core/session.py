"""Editing session: the single owner of the in-memory configuration model."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from devedit.core.document import decode_document
from devedit.core.model import (
    NO_SELECTION,
    READY,
    ConfigModel,
    Device,
    Profile,
    Status,
    StatusMode,
)

LOGGER = logging.getLogger(__name__)

StatusListener = Callable[[Status], None]


class EditorSession:
    """Holds the loaded model, the device selection, the dirty flag and the last status.

    Callers hold a handle to one session and pass it to the mutation engine
    and the sync controller; nothing about the session is global.
    """

    def __init__(self, *, on_status: StatusListener | None = None) -> None:
        self.model = ConfigModel()
        self.selected = NO_SELECTION
        self.dirty = False
        # Incremented by every edit.
        self.revision = 0
        self.status = READY
        self._on_status = on_status

    @property
    def profiles(self) -> list[Profile]:
        return self.model.profiles

    @property
    def active_profile_id(self) -> str:
        return self.model.active_profile_id

    @active_profile_id.setter
    def active_profile_id(self, profile_id: str) -> None:
        self.model.active_profile_id = profile_id

    @property
    def devices(self) -> list[Device]:
        return self.model.devices

    def device_at(self, index: int) -> Device | None:
        if index < 0 or index >= len(self.model.devices):
            return None
        return self.model.devices[index]

    def selected_device(self) -> Device | None:
        return self.device_at(self.selected)

    def select_device(self, index: int) -> bool:
        if self.device_at(index) is None:
            return False
        self.selected = index
        return True

    def active_profile(self) -> Profile | None:
        for profile in self.model.profiles:
            if profile.id == self.model.active_profile_id:
                return profile
        return None

    def replace(self, raw_document: Any) -> None:
        """Replace the whole model with a freshly decoded backend document.

        Raises ``DocumentError`` and leaves the current model untouched when the
        document is not a well-formed object.
        """
        model = decode_document(raw_document)
        self.model = model
        self.dirty = False
        self.selected = 0 if model.devices else NO_SELECTION
        LOGGER.debug(
            "Loaded %d profile(s), %d device(s), active profile '%s'",
            len(model.profiles),
            len(model.devices),
            model.active_profile_id,
        )

    def mark_dirty(self) -> None:
        self.dirty = True
        self.revision += 1

    def report(self, text: str, mode: StatusMode = StatusMode.INFO) -> Status:
        self.status = Status(text=text, mode=mode)
        if self._on_status is not None:
            self._on_status(self.status)
        return self.status
