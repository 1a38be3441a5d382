"""Stable public API for building tooling on top of devedit.

This module is the supported integration surface for third-party callers
(GUI/TUI front ends, scripts). Avoid importing from internal modules unless
intentionally depending on non-stable internals.
"""

from __future__ import annotations

from devedit.core.errors import (
    BackendError,
    BackendHTTPError,
    BackendResponseError,
    BackendTransportError,
    DeveditError,
    DocumentError,
    SettingsError,
    UnknownTemplateError,
)
from devedit.core.model import (
    LIMITS,
    NO_SELECTION,
    ConfigModel,
    Device,
    DeviceField,
    OpaqueTemplate,
    Profile,
    SignalField,
    SignalHoldTemplate,
    Slot,
    SlotField,
    Status,
    StatusMode,
    UidAction,
    UidValidatorTemplate,
)
from devedit.core.document import prepare_for_save, save_payload
from devedit.core.mutations import DeviceEditor, format_slot_values
from devedit.core.session import EditorSession, StatusListener
from devedit.core.settings import Settings, load_settings
from devedit.core.sync import SyncController, SyncState
from devedit.core.templates import TemplateInfo, defaults_for, list_templates
from devedit.transports.base import Backend
from devedit.transports.http_api import HTTPBackend

__all__ = [
    "DeveditError",
    "DocumentError",
    "UnknownTemplateError",
    "SettingsError",
    "BackendError",
    "BackendHTTPError",
    "BackendTransportError",
    "BackendResponseError",
    "LIMITS",
    "NO_SELECTION",
    "ConfigModel",
    "Device",
    "DeviceField",
    "OpaqueTemplate",
    "Profile",
    "SignalField",
    "SignalHoldTemplate",
    "Slot",
    "SlotField",
    "Status",
    "StatusMode",
    "UidAction",
    "UidValidatorTemplate",
    "TemplateInfo",
    "list_templates",
    "defaults_for",
    "prepare_for_save",
    "save_payload",
    "format_slot_values",
    "Backend",
    "HTTPBackend",
    "Settings",
    "SyncState",
    "Client",
]


class Client:
    """Public client wiring one editing session to a backend.

    A `Client` owns an `EditorSession`, the `DeviceEditor` that mutates it and
    the `SyncController` that loads and saves it. When no backend is given an
    `HTTPBackend` is built from `settings` (or from the settings file and
    environment when those are omitted too).
    """

    def __init__(
        self,
        *,
        backend: Backend | None = None,
        settings: Settings | None = None,
        on_status: StatusListener | None = None,
    ) -> None:
        if backend is None:
            settings = settings or load_settings()
            backend = HTTPBackend(settings.base_url, timeout_s=settings.timeout_s)
        self.session = EditorSession(on_status=on_status)
        self.editor = DeviceEditor(self.session)
        self.sync = SyncController(self.session, backend)

    @property
    def status(self) -> Status:
        return self.session.status

    @property
    def dirty(self) -> bool:
        return self.session.dirty

    def list_templates(self) -> list[TemplateInfo]:
        return list_templates()

    async def load(self) -> bool:
        return await self.sync.load()

    async def save(self) -> bool:
        return await self.sync.save()
