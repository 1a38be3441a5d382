"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any, NoReturn

import typer
import yaml

from devedit.api import Client
from devedit.core.document import save_payload
from devedit.core.errors import DeveditError
from devedit.core.model import (
    DeviceField,
    OpaqueTemplate,
    SignalHoldTemplate,
    StatusMode,
    UidValidatorTemplate,
)
from devedit.core.mutations import format_slot_values
from devedit.core.settings import load_settings, normalize_base_url
from devedit.core.templates import check_template, list_templates
from devedit.transports.http_api import HTTPBackend

app = typer.Typer(help="Edit device-automation profiles on a device controller")
profile_app = typer.Typer(help="Create, clone, rename, delete and activate profiles")
app.add_typer(profile_app, name="profile")


@app.callback()
def main(
    ctx: typer.Context,
    url: str | None = typer.Option(None, "--url", help="Backend base URL (overrides settings)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and state changes"),
) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = url


def _build_client(url: str | None) -> Client:
    settings = load_settings()
    base_url = normalize_base_url(url, context="--url") if url is not None else settings.base_url
    backend = HTTPBackend(base_url, timeout_s=settings.timeout_s)
    return Client(backend=backend)


def _report(client: Client) -> None:
    status = client.status
    if status.mode is StatusMode.ERROR:
        typer.echo(f"Error: {status.text}", err=True)
        raise typer.Exit(code=1)
    if status.mode is StatusMode.WARN:
        typer.echo(f"Warning: {status.text}", err=True)
        raise typer.Exit(code=1)
    typer.echo(status.text)


def _loaded_client(ctx: typer.Context) -> Client:
    try:
        client = _build_client(ctx.obj)
    except DeveditError as exc:
        _fail(exc)
    if not asyncio.run(client.load()):
        _report(client)
    return client


def _fail(exc: DeveditError) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1) from None


def _require_template(template_id: str | None) -> None:
    if not template_id:
        return
    try:
        check_template(template_id)
    except DeveditError as exc:
        _fail(exc)


def _edit(ctx: typer.Context, mutate: Callable[[Client], bool]) -> None:
    client = _loaded_client(ctx)
    if mutate(client):
        asyncio.run(client.save())
    _report(client)


def _require_device(client: Client, index: int) -> bool:
    if client.session.device_at(index) is None:
        client.session.report(f"No device at index {index}", StatusMode.WARN)
        return False
    return True


def _require_active_profile(client: Client) -> str:
    profile_id = client.session.active_profile_id
    if not profile_id:
        client.session.report("No active profile", StatusMode.WARN)
    return profile_id


@app.command("templates")
def templates() -> None:
    """List the template kinds a device can be bound to."""
    for info in list_templates():
        typer.echo(f"{info.id}: {info.label}")


@app.command("show")
def show(ctx: typer.Context) -> None:
    """Print profiles and the devices of the active profile."""
    client = _loaded_client(ctx)
    session = client.session

    if session.profiles:
        for profile in session.profiles:
            marker = "*" if profile.id == session.active_profile_id else " "
            typer.echo(f"{marker} {profile.id}: {profile.name or profile.id}")
    else:
        typer.echo("No profiles")

    if not session.devices:
        typer.echo("No devices configured")
        return

    for index, device in enumerate(session.devices):
        template = device.template.type if device.template else "none"
        title = device.display_name or device.id or f"Device {index + 1}"
        typer.echo(f"[{index}] {device.id} '{title}' -> {template}")
        if isinstance(device.template, UidValidatorTemplate):
            for slot_no, slot in enumerate(device.template.slots, start=1):
                last = slot.last_value or "-"
                typer.echo(
                    f"    slot {slot_no}: source={slot.source_id} label={slot.label} "
                    f"values={format_slot_values(slot.values)} last={last}"
                )
            typer.echo(f"    success: topic={device.template.success_topic} payload={device.template.success_payload}")
            typer.echo(f"    fail: topic={device.template.fail_topic} payload={device.template.fail_payload}")
        elif isinstance(device.template, SignalHoldTemplate):
            tpl = device.template
            typer.echo(f"    signal: topic={tpl.signal_topic} on={tpl.signal_payload_on} off={tpl.signal_payload_off}")
            typer.echo(
                f"    heartbeat: topic={tpl.heartbeat_topic} hold_ms={tpl.required_hold_ms} "
                f"timeout_ms={tpl.heartbeat_timeout_ms}"
            )
        elif isinstance(device.template, OpaqueTemplate):
            typer.echo("    (template not editable with this client)")


@app.command("export")
def export(
    ctx: typer.Context,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write YAML to this file"),
) -> None:
    """Dump the configuration as it would be saved, in YAML."""
    client = _loaded_client(ctx)
    text = yaml.safe_dump(save_payload(client.session.model), sort_keys=False, allow_unicode=True)
    if output is None:
        typer.echo(text, nl=False)
        return
    output.write_text(text, encoding="utf-8")
    typer.echo(f"Wrote {output}")


@app.command("add-device")
def add_device(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name", help="Display name"),
    template: str | None = typer.Option(None, "--template", help="Template id"),
) -> None:
    """Append a device to the active profile and save."""
    _require_template(template)

    def _mutate(client: Client) -> bool:
        if not client.editor.add_device():
            return False
        index = client.session.selected
        if name:
            client.editor.set_device_field(index, DeviceField.DISPLAY_NAME, name)
        if template:
            client.editor.assign_template(index, template)
        return True

    _edit(ctx, _mutate)


@app.command("remove-device")
def remove_device(ctx: typer.Context, index: int) -> None:
    """Delete the device at INDEX and save."""
    _edit(ctx, lambda client: _require_device(client, index) and client.editor.remove_device(index))


@app.command("rename-device")
def rename_device(ctx: typer.Context, index: int, name: str) -> None:
    """Set the display name of the device at INDEX and save."""
    _edit(
        ctx,
        lambda client: _require_device(client, index)
        and client.editor.set_device_field(index, DeviceField.DISPLAY_NAME, name),
    )


@app.command("assign-template")
def assign_template(
    ctx: typer.Context,
    index: int,
    template: str | None = typer.Argument(None, help="Template id; omit to clear"),
) -> None:
    """Bind the device at INDEX to a fresh TEMPLATE (or clear it) and save."""
    _require_template(template)
    _edit(
        ctx,
        lambda client: _require_device(client, index) and client.editor.assign_template(index, template),
    )


def _profile_call(ctx: typer.Context, call: Callable[[Client], Coroutine[Any, Any, bool]]) -> None:
    client = _loaded_client(ctx)
    asyncio.run(call(client))
    _report(client)


@profile_app.command("create")
def profile_create(
    ctx: typer.Context,
    profile_id: str,
    name: str = typer.Option("", "--name", help="Display name (defaults to the id)"),
) -> None:
    """Create an empty profile."""
    _profile_call(ctx, lambda client: client.sync.create_profile(profile_id, name))


@profile_app.command("clone")
def profile_clone(
    ctx: typer.Context,
    profile_id: str,
    name: str = typer.Option("", "--name", help="Display name (defaults to the id)"),
) -> None:
    """Create a profile as a copy of the active one."""

    def _call(client: Client) -> Coroutine[Any, Any, bool]:
        _require_active_profile(client)
        return client.sync.clone_profile(profile_id, name)

    _profile_call(ctx, _call)


@profile_app.command("rename")
def profile_rename(
    ctx: typer.Context,
    name: str,
    profile_id: str | None = typer.Option(None, "--id", help="Profile id (defaults to the active one)"),
) -> None:
    """Rename a profile."""
    _profile_call(
        ctx,
        lambda client: client.sync.rename_profile(profile_id or _require_active_profile(client), name),
    )


@profile_app.command("delete")
def profile_delete(ctx: typer.Context, profile_id: str) -> None:
    """Delete a profile."""
    _profile_call(ctx, lambda client: client.sync.delete_profile(profile_id))


@profile_app.command("activate")
def profile_activate(ctx: typer.Context, profile_id: str) -> None:
    """Make a profile the active one."""
    _profile_call(ctx, lambda client: client.sync.activate_profile(profile_id))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
