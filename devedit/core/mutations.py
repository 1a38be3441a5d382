"""Mutation engine: every edit the operator can make to the loaded model."""

from __future__ import annotations

import logging
import time

from devedit.core.errors import UnknownTemplateError
from devedit.core.model import (
    LIMITS,
    NO_SELECTION,
    Device,
    DeviceField,
    SignalField,
    SignalHoldTemplate,
    Slot,
    SlotField,
    StatusMode,
    UidAction,
    UidValidatorTemplate,
)
from devedit.core.session import EditorSession
from devedit.core.templates import defaults_for

LOGGER = logging.getLogger(__name__)


def parse_slot_values(raw_text: str) -> list[str]:
    return [part.strip() for part in raw_text.split(",") if part.strip()]


def format_slot_values(values: list[str]) -> str:
    return ", ".join(values)


class DeviceEditor:
    """Applies edits to a session's model and raises its dirty flag.

    Edits addressed at a device or slot that does not exist, or at a template
    kind the device does not have, are ignored: the view may lag behind the
    model and such edits carry no meaning.
    """

    def __init__(self, session: EditorSession) -> None:
        self.session = session

    def _uid_template(self, device_index: int) -> UidValidatorTemplate | None:
        device = self.session.device_at(device_index)
        if device is None or not isinstance(device.template, UidValidatorTemplate):
            return None
        return device.template

    def _slot(self, device_index: int, slot_index: int) -> Slot | None:
        template = self._uid_template(device_index)
        if template is None or slot_index < 0 or slot_index >= len(template.slots):
            return None
        return template.slots[slot_index]

    def _new_device_id(self) -> str:
        taken = {device.id for device in self.session.devices}
        stamp = int(time.time() * 1000)
        while f"device_{stamp:x}" in taken:
            stamp += 1
        return f"device_{stamp:x}"

    def add_device(self) -> bool:
        if len(self.session.devices) >= LIMITS.devices:
            LOGGER.warning("Rejected new device: limit of %d reached", LIMITS.devices)
            self.session.report("Device limit reached", StatusMode.WARN)
            return False
        self.session.devices.append(Device(id=self._new_device_id()))
        self.session.selected = len(self.session.devices) - 1
        self.session.mark_dirty()
        return True

    def remove_device(self, selected_index: int) -> bool:
        if self.session.device_at(selected_index) is None:
            return False
        del self.session.devices[selected_index]
        remaining = len(self.session.devices)
        self.session.selected = min(selected_index, remaining - 1) if remaining else NO_SELECTION
        self.session.mark_dirty()
        return True

    def set_device_field(self, index: int, field: DeviceField, value: str) -> bool:
        device = self.session.device_at(index)
        if device is None:
            return False
        setattr(device, DeviceField(field).value, value)
        self.session.mark_dirty()
        return True

    def assign_template(self, index: int, template_id: str | None) -> bool:
        device = self.session.device_at(index)
        if device is None:
            return False
        if not template_id:
            device.template = None
        else:
            try:
                device.template = defaults_for(template_id)
            except UnknownTemplateError:
                LOGGER.warning("Unknown template '%s' assigned to device '%s'", template_id, device.id)
                device.template = None
        self.session.mark_dirty()
        return True

    def add_slot(self, device_index: int) -> bool:
        template = self._uid_template(device_index)
        if template is None:
            return False
        if len(template.slots) >= LIMITS.uid_slots:
            LOGGER.warning("Rejected new slot: limit of %d reached", LIMITS.uid_slots)
            self.session.report("Slot limit reached", StatusMode.WARN)
            return False
        template.slots.append(Slot())
        self.session.mark_dirty()
        return True

    def remove_slot(self, device_index: int, slot_index: int) -> bool:
        template = self._uid_template(device_index)
        if template is None or slot_index < 0 or slot_index >= len(template.slots):
            return False
        del template.slots[slot_index]
        self.session.mark_dirty()
        return True

    def set_slot_field(self, device_index: int, slot_index: int, subfield: SlotField, value: str) -> bool:
        slot = self._slot(device_index, slot_index)
        if slot is None:
            return False
        setattr(slot, SlotField(subfield).value, value)
        self.session.mark_dirty()
        return True

    def set_slot_values(self, device_index: int, slot_index: int, raw_text: str) -> bool:
        slot = self._slot(device_index, slot_index)
        if slot is None:
            return False
        slot.values = parse_slot_values(raw_text)
        self.session.mark_dirty()
        return True

    def set_uid_action(self, device_index: int, subfield: UidAction, value: str) -> bool:
        template = self._uid_template(device_index)
        if template is None:
            return False
        setattr(template, UidAction(subfield).value, value)
        self.session.mark_dirty()
        return True

    def set_signal_field(self, device_index: int, subfield: SignalField, value: str | int) -> bool:
        device = self.session.device_at(device_index)
        if device is None or not isinstance(device.template, SignalHoldTemplate):
            return False
        setattr(device.template, SignalField(subfield).value, value)
        self.session.mark_dirty()
        return True
