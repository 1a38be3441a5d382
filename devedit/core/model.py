"""Core data models used across the session, mutation engine, and sync controller."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

NO_SELECTION = -1


@dataclass(frozen=True)
class Limits:
    devices: int = 12
    uid_slots: int = 8


LIMITS = Limits()


@dataclass(frozen=True)
class Profile:
    id: str
    name: str
    extras: dict[str, Any] = field(default_factory=dict, repr=False, hash=False)


@dataclass
class Slot:
    source_id: str = ""
    label: str = ""
    values: list[str] = field(default_factory=list)
    # Populated by the device runtime; read-only for the editor and never saved.
    last_value: str | None = None
    extras: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class UidValidatorTemplate:
    type: ClassVar[str] = "uid_validator"

    slots: list[Slot] = field(default_factory=list)
    success_topic: str = ""
    success_payload: str = ""
    success_audio_track: str = ""
    fail_topic: str = ""
    fail_payload: str = ""
    fail_audio_track: str = ""
    extras: dict[str, Any] = field(default_factory=dict, repr=False)
    # Keys beside "type" and "uid" in the template object.
    envelope: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class SignalHoldTemplate:
    type: ClassVar[str] = "signal_hold"

    signal_topic: str = ""
    signal_payload_on: str = ""
    signal_payload_off: str = ""
    heartbeat_topic: str = ""
    required_hold_ms: int | str = 0
    heartbeat_timeout_ms: int | str = 0
    extras: dict[str, Any] = field(default_factory=dict, repr=False)
    envelope: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class OpaqueTemplate:
    """Template of a kind this editor does not know; kept verbatim for round trips."""

    type: str
    body: dict[str, Any] = field(default_factory=dict)


Template = Union[UidValidatorTemplate, SignalHoldTemplate, OpaqueTemplate]


@dataclass
class Device:
    id: str
    display_name: str = "Device"
    template: Template | None = None
    tabs: list[Any] = field(default_factory=list)
    topics: list[Any] = field(default_factory=list)
    scenarios: list[Any] = field(default_factory=list)
    extras: dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass
class ConfigModel:
    profiles: list[Profile] = field(default_factory=list)
    active_profile_id: str = ""
    devices: list[Device] = field(default_factory=list)
    # Top-level document keys the editor does not interpret (schema, tab_limit, ...).
    extras: dict[str, Any] = field(default_factory=dict)


class StatusMode(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARN = "warn"
    ERROR = "error"


@dataclass(frozen=True)
class Status:
    text: str
    mode: StatusMode = StatusMode.INFO


READY = Status(text="Ready")


class DeviceField(str, Enum):
    DISPLAY_NAME = "display_name"
    ID = "id"


class SlotField(str, Enum):
    SOURCE_ID = "source_id"
    LABEL = "label"


class UidAction(str, Enum):
    SUCCESS_TOPIC = "success_topic"
    SUCCESS_PAYLOAD = "success_payload"
    SUCCESS_AUDIO_TRACK = "success_audio_track"
    FAIL_TOPIC = "fail_topic"
    FAIL_PAYLOAD = "fail_payload"
    FAIL_AUDIO_TRACK = "fail_audio_track"


class SignalField(str, Enum):
    SIGNAL_TOPIC = "signal_topic"
    SIGNAL_PAYLOAD_ON = "signal_payload_on"
    SIGNAL_PAYLOAD_OFF = "signal_payload_off"
    HEARTBEAT_TOPIC = "heartbeat_topic"
    REQUIRED_HOLD_MS = "required_hold_ms"
    HEARTBEAT_TIMEOUT_MS = "heartbeat_timeout_ms"
