"""Static catalog of template kinds and their default field sets."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from devedit.core.errors import UnknownTemplateError
from devedit.core.model import SignalHoldTemplate, Template, UidValidatorTemplate


@dataclass(frozen=True)
class TemplateInfo:
    id: str
    label: str


_CATALOG: tuple[tuple[TemplateInfo, Callable[[], Template]], ...] = (
    (TemplateInfo(id=UidValidatorTemplate.type, label="UID validator"), UidValidatorTemplate),
    (TemplateInfo(id=SignalHoldTemplate.type, label="Signal hold"), SignalHoldTemplate),
)


def list_templates() -> list[TemplateInfo]:
    return [info for info, _ in _CATALOG]


def is_known_template(template_id: str) -> bool:
    return any(info.id == template_id for info, _ in _CATALOG)


def check_template(template_id: str) -> None:
    """Raise ``UnknownTemplateError`` unless ``template_id`` is in the catalog."""
    if not is_known_template(template_id):
        known = ", ".join(info.id for info, _ in _CATALOG)
        raise UnknownTemplateError(f"Unknown template '{template_id}'. Available: {known}")


def defaults_for(template_id: str) -> Template:
    """Return a fresh, structurally complete template of the given kind."""
    check_template(template_id)
    return next(factory for info, factory in _CATALOG if info.id == template_id)()
