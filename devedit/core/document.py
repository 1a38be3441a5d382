"""Validation, decoding and encoding of backend configuration documents.

The backend speaks plain JSON objects (see ``schemas/document.schema.json``).
``decode_document`` is the single place raw backend input becomes model
objects; it tolerates missing or null optional fields but rejects documents
that are not objects or break the schema. ``encode_document`` is the inverse
and ``prepare_for_save`` is the save-transform applied before every apply
request.
"""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from functools import lru_cache
from importlib import resources
from typing import Any

from jsonschema import ValidationError, validators

from devedit.core.errors import DocumentError
from devedit.core.model import (
    ConfigModel,
    Device,
    OpaqueTemplate,
    Profile,
    SignalHoldTemplate,
    Slot,
    Template,
    UidValidatorTemplate,
)

SCHEMA_VERSION = 1

_DOCUMENT_KEYS = ("active_profile", "profiles", "devices")
_DEVICE_KEYS = ("id", "display_name", "template", "tabs", "topics", "scenarios")
_SLOT_KEYS = ("source_id", "label", "values", "last_value")
_UID_ACTION_KEYS = (
    "success_topic",
    "success_payload",
    "success_audio_track",
    "fail_topic",
    "fail_payload",
    "fail_audio_track",
)
_SIGNAL_TEXT_KEYS = ("signal_topic", "signal_payload_on", "signal_payload_off", "heartbeat_topic")
_SIGNAL_TIMING_KEYS = ("required_hold_ms", "heartbeat_timeout_ms")


@lru_cache(maxsize=1)
def _load_schema_validator() -> Any:
    schema_text = resources.files("devedit.schemas").joinpath("document.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def validate_document(raw: Any) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise DocumentError(
            f"Configuration document must be a JSON object, got {type(raw).__name__}"
        )
    try:
        _load_schema_validator().validate(raw)
    except ValidationError as exc:
        path = ".".join(str(p) for p in exc.path)
        where = f" ({path})" if path else ""
        raise DocumentError(f"Schema validation failed{where}: {exc.message}") from exc
    return raw


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, list) else []


def _extras(raw: Mapping[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    return {key: copy.deepcopy(value) for key, value in raw.items() if key not in known}


def _decode_slot(raw: Mapping[str, Any]) -> Slot:
    last_value = raw.get("last_value")
    return Slot(
        source_id=_text(raw.get("source_id")),
        label=_text(raw.get("label")),
        values=[_text(v) for v in _list(raw.get("values"))],
        last_value=None if last_value is None else _text(last_value),
        extras=_extras(raw, _SLOT_KEYS),
    )


def _decode_template(raw: Any) -> Template | None:
    if not isinstance(raw, Mapping):
        return None
    kind = raw.get("type")
    if kind == UidValidatorTemplate.type:
        body = raw.get("uid") or {}
        return UidValidatorTemplate(
            slots=[_decode_slot(s) for s in _list(body.get("slots")) if isinstance(s, Mapping)],
            **{key: _text(body.get(key)) for key in _UID_ACTION_KEYS},
            extras=_extras(body, ("slots",) + _UID_ACTION_KEYS),
            envelope=_extras(raw, ("type", "uid")),
        )
    if kind == SignalHoldTemplate.type:
        body = raw.get("signal") or {}
        timings = {
            key: 0 if body.get(key) in (None, "") else body[key]
            for key in _SIGNAL_TIMING_KEYS
        }
        return SignalHoldTemplate(
            **{key: _text(body.get(key)) for key in _SIGNAL_TEXT_KEYS},
            **timings,
            extras=_extras(body, _SIGNAL_TEXT_KEYS + _SIGNAL_TIMING_KEYS),
            envelope=_extras(raw, ("type", "signal")),
        )
    return OpaqueTemplate(type=_text(kind), body=_extras(raw, ("type",)))


def _decode_device(raw: Mapping[str, Any]) -> Device:
    return Device(
        id=_text(raw.get("id")),
        display_name=_text(raw.get("display_name")),
        template=_decode_template(raw.get("template")),
        tabs=copy.deepcopy(_list(raw.get("tabs"))),
        topics=copy.deepcopy(_list(raw.get("topics"))),
        scenarios=copy.deepcopy(_list(raw.get("scenarios"))),
        extras=_extras(raw, _DEVICE_KEYS),
    )


def decode_document(raw: Any) -> ConfigModel:
    """Validate ``raw`` and build a fresh model from it."""
    doc = validate_document(raw)
    profiles = [
        Profile(id=p["id"], name=_text(p.get("name")), extras=_extras(p, ("id", "name")))
        for p in _list(doc.get("profiles"))
    ]
    active = _text(doc.get("active_profile")) or (profiles[0].id if profiles else "")
    return ConfigModel(
        profiles=profiles,
        active_profile_id=active,
        devices=[_decode_device(d) for d in _list(doc.get("devices"))],
        extras=_extras(doc, _DOCUMENT_KEYS),
    )


def _encode_slot(slot: Slot) -> dict[str, Any]:
    encoded: dict[str, Any] = {
        "source_id": slot.source_id,
        "label": slot.label,
        "values": list(slot.values),
    }
    if slot.last_value is not None:
        encoded["last_value"] = slot.last_value
    encoded.update(copy.deepcopy(slot.extras))
    return encoded


def encode_template(template: Template | None) -> dict[str, Any] | None:
    if template is None:
        return None
    if isinstance(template, UidValidatorTemplate):
        uid: dict[str, Any] = {"slots": [_encode_slot(s) for s in template.slots]}
        uid.update({key: getattr(template, key) for key in _UID_ACTION_KEYS})
        uid.update(copy.deepcopy(template.extras))
        return {"type": template.type, "uid": uid, **copy.deepcopy(template.envelope)}
    if isinstance(template, SignalHoldTemplate):
        signal = {key: getattr(template, key) for key in _SIGNAL_TEXT_KEYS + _SIGNAL_TIMING_KEYS}
        signal.update(copy.deepcopy(template.extras))
        return {"type": template.type, "signal": signal, **copy.deepcopy(template.envelope)}
    return {"type": template.type, **copy.deepcopy(template.body)}


def _encode_device(device: Device) -> dict[str, Any]:
    encoded: dict[str, Any] = {
        "id": device.id,
        "display_name": device.display_name,
        "template": encode_template(device.template),
        "tabs": copy.deepcopy(device.tabs),
        "topics": copy.deepcopy(device.topics),
        "scenarios": copy.deepcopy(device.scenarios),
    }
    encoded.update(copy.deepcopy(device.extras))
    return encoded


def encode_document(model: ConfigModel) -> dict[str, Any]:
    doc: dict[str, Any] = {"schema": SCHEMA_VERSION}
    doc.update(copy.deepcopy(model.extras))
    if doc["schema"] is None:
        doc["schema"] = SCHEMA_VERSION
    doc["active_profile"] = model.active_profile_id
    doc["profiles"] = [{"id": p.id, "name": p.name, **copy.deepcopy(p.extras)} for p in model.profiles]
    doc["devices"] = [_encode_device(d) for d in model.devices]
    return doc


def _strip_opaque_runtime_fields(body: dict[str, Any]) -> None:
    uid = body.get("uid")
    if isinstance(uid, dict) and isinstance(uid.get("slots"), list):
        for slot in uid["slots"]:
            if isinstance(slot, dict):
                slot.pop("last_value", None)


def prepare_for_save(model: ConfigModel) -> ConfigModel:
    """Return a copy of ``model`` with runtime-only slot fields removed.

    The live model is never touched, so the editor keeps displaying the last
    values read from the device runtime after a save.
    """
    clone = copy.deepcopy(model)
    for device in clone.devices:
        template = device.template
        if isinstance(template, UidValidatorTemplate):
            for slot in template.slots:
                slot.last_value = None
                slot.extras.pop("last_value", None)
        elif isinstance(template, OpaqueTemplate):
            _strip_opaque_runtime_fields(template.body)
    return clone


def save_payload(model: ConfigModel) -> dict[str, Any]:
    """Encode the save-transformed model as the apply request body."""
    return encode_document(prepare_for_save(model))
