from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest
import yaml
from typer.testing import CliRunner

from devedit import cli
from devedit.core.errors import BackendHTTPError


class FakeBackend:
    def __init__(self) -> None:
        self.base_url = ""
        self.document: dict[str, Any] = {
            "schema": 1,
            "active_profile": "p1",
            "profiles": [{"id": "p1", "name": "One"}, {"id": "p2", "name": "Two"}],
            "devices": [
                {
                    "id": "door",
                    "display_name": "Front door",
                    "template": {
                        "type": "uid_validator",
                        "uid": {
                            "slots": [{"source_id": "r/1", "label": "Left", "values": ["A1", "B2"], "last_value": "A1"}],
                            "success_topic": "door/open",
                        },
                    },
                    "tabs": [],
                    "topics": [],
                    "scenarios": [],
                },
                {
                    "id": "lever",
                    "display_name": "Lever",
                    "template": {"type": "signal_hold", "signal": {"signal_topic": "lever/cmd", "required_hold_ms": 3000}},
                },
            ],
        }
        self.applied: list[tuple[str, dict[str, Any]]] = []
        self.profile_calls: list[tuple[Any, ...]] = []
        self.fail: dict[str, Exception] = {}

    async def fetch_config(self) -> Any:
        if "fetch_config" in self.fail:
            raise self.fail["fetch_config"]
        return self.document

    async def apply_config(self, profile_id: str, document: dict[str, Any]) -> Any:
        if "apply_config" in self.fail:
            raise self.fail["apply_config"]
        self.applied.append((profile_id, document))
        return {}

    async def create_profile(self, profile_id: str, name: str, clone_from: str | None = None) -> Any:
        self.profile_calls.append(("create", profile_id, name, clone_from))
        return {}

    async def rename_profile(self, profile_id: str, name: str) -> Any:
        self.profile_calls.append(("rename", profile_id, name))
        return {}

    async def delete_profile(self, profile_id: str) -> Any:
        self.profile_calls.append(("delete", profile_id))
        return {}

    async def activate_profile(self, profile_id: str) -> Any:
        if "activate_profile" in self.fail:
            raise self.fail["activate_profile"]
        self.profile_calls.append(("activate", profile_id))
        return {}


runner = CliRunner()


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeBackend:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.delenv("DEVEDIT_URL", raising=False)
    monkeypatch.delenv("DEVEDIT_TIMEOUT_S", raising=False)
    fake = FakeBackend()

    def _factory(base_url: str, *, timeout_s: float = 5.0) -> FakeBackend:
        fake.base_url = base_url
        return fake

    monkeypatch.setattr(cli, "HTTPBackend", _factory)
    return fake


def test_templates_command() -> None:
    result = runner.invoke(cli.app, ["templates"])
    assert result.exit_code == 0
    assert "uid_validator: UID validator" in result.stdout
    assert "signal_hold: Signal hold" in result.stdout


def test_show_command(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["show"])
    assert result.exit_code == 0
    assert "* p1: One" in result.stdout
    assert "[0] door 'Front door' -> uid_validator" in result.stdout
    assert "values=A1, B2 last=A1" in result.stdout
    assert "hold_ms=3000" in result.stdout


def test_url_option_overrides_settings(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["--url", "http://10.1.1.1", "show"])
    assert result.exit_code == 0
    assert backend.base_url == "http://10.1.1.1"


def test_show_load_failure_is_clean(backend: FakeBackend) -> None:
    backend.fail["fetch_config"] = BackendHTTPError(502)
    result = runner.invoke(cli.app, ["show"])
    assert result.exit_code == 1
    assert "Error: Load failed: HTTP 502" in result.stderr
    assert "Traceback" not in result.stdout


def test_invalid_settings_file_is_clean(backend: FakeBackend, tmp_path: Path) -> None:
    path = tmp_path / "cfg" / "devedit" / "config.yaml"
    path.parent.mkdir(parents=True)
    path.write_text("timeout_s: never\n", encoding="utf-8")
    result = runner.invoke(cli.app, ["show"])
    assert result.exit_code == 1
    assert "Error:" in result.stderr


def test_export_strips_last_value(backend: FakeBackend, tmp_path: Path) -> None:
    target = tmp_path / "out.yaml"
    result = runner.invoke(cli.app, ["export", "--output", str(target)])
    assert result.exit_code == 0
    exported = yaml.safe_load(target.read_text(encoding="utf-8"))
    slot = exported["devices"][0]["template"]["uid"]["slots"][0]
    assert slot == {"source_id": "r/1", "label": "Left", "values": ["A1", "B2"]}


def test_add_device_saves_with_template(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["add-device", "--name", "Vault", "--template", "signal_hold"])
    assert result.exit_code == 0
    assert "Saved" in result.stdout
    profile_id, document = backend.applied[0]
    assert profile_id == "p1"
    added = document["devices"][-1]
    assert added["display_name"] == "Vault"
    assert added["template"]["type"] == "signal_hold"
    assert added["template"]["signal"]["required_hold_ms"] == 0


def test_add_device_at_limit_warns(backend: FakeBackend) -> None:
    backend.document["devices"] = [{"id": f"d{i}"} for i in range(12)]
    result = runner.invoke(cli.app, ["add-device"])
    assert result.exit_code == 1
    assert "Warning: Device limit reached" in result.stderr
    assert backend.applied == []


def test_remove_device(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["remove-device", "0"])
    assert result.exit_code == 0
    assert [d["id"] for d in backend.applied[0][1]["devices"]] == ["lever"]


def test_remove_missing_device_warns(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["remove-device", "7"])
    assert result.exit_code == 1
    assert "No device at index 7" in result.stderr
    assert backend.applied == []


def test_rename_device(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["rename-device", "1", "Big lever"])
    assert result.exit_code == 0
    assert backend.applied[0][1]["devices"][1]["display_name"] == "Big lever"


def test_assign_template_without_id_clears(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["assign-template", "0"])
    assert result.exit_code == 0
    assert backend.applied[0][1]["devices"][0]["template"] is None


def test_save_failure_exits_nonzero(backend: FakeBackend) -> None:
    backend.fail["apply_config"] = BackendHTTPError(500)
    result = runner.invoke(cli.app, ["rename-device", "0", "Back door"])
    assert result.exit_code == 1
    assert "Error: Save failed: HTTP 500" in result.stderr


def test_profile_commands(backend: FakeBackend) -> None:
    assert runner.invoke(cli.app, ["profile", "create", "night", "--name", "Night"]).exit_code == 0
    assert runner.invoke(cli.app, ["profile", "clone", "p3"]).exit_code == 0
    assert runner.invoke(cli.app, ["profile", "rename", "Uno"]).exit_code == 0
    assert runner.invoke(cli.app, ["profile", "delete", "p2"]).exit_code == 0
    assert runner.invoke(cli.app, ["profile", "activate", "p2"]).exit_code == 0
    assert backend.profile_calls == [
        ("create", "night", "Night", None),
        ("create", "p3", "p3", "p1"),
        ("rename", "p1", "Uno"),
        ("delete", "p2"),
        ("activate", "p2"),
    ]


def test_profile_activate_failure(backend: FakeBackend) -> None:
    backend.fail["activate_profile"] = BackendHTTPError(404)
    result = runner.invoke(cli.app, ["profile", "activate", "p2"])
    assert result.exit_code == 1
    assert "Error: Activate profile failed: HTTP 404" in result.stderr


def test_malformed_url_option_is_clean(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["--url", "http://device:abc", "show"])
    assert result.exit_code == 1
    assert "Error: --url is not a valid URL" in result.stderr
    assert backend.base_url == ""


def test_url_option_is_normalized(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["--url", " http://10.1.1.1/ ", "show"])
    assert result.exit_code == 0
    assert backend.base_url == "http://10.1.1.1"


def test_add_device_unknown_template_fails(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["add-device", "--template", "bogus"])
    assert result.exit_code == 1
    assert "Error: Unknown template 'bogus'. Available: uid_validator, signal_hold" in result.stderr
    assert backend.applied == []


def test_assign_unknown_template_fails(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["assign-template", "0", "flag_trigger"])
    assert result.exit_code == 1
    assert "Unknown template 'flag_trigger'" in result.stderr
    assert backend.applied == []


def test_assign_template(backend: FakeBackend) -> None:
    result = runner.invoke(cli.app, ["assign-template", "1", "uid_validator"])
    assert result.exit_code == 0
    assert backend.applied[0][1]["devices"][1]["template"]["type"] == "uid_validator"


@pytest.mark.parametrize("args", [["profile", "rename", "Uno"], ["profile", "clone", "p3"]])
def test_profile_commands_without_active_profile_warn(backend: FakeBackend, args: list[str]) -> None:
    backend.document = {"devices": []}
    result = runner.invoke(cli.app, args)
    assert result.exit_code == 1
    assert "Warning: No active profile" in result.stderr
    assert backend.profile_calls == []
