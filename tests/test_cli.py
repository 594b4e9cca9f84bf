"""Tests for the ``voiceprompt`` command-line entry point."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from tests.helpers import FakeReplySource, function_call, reply
from voiceprompt import app
from voiceprompt.ai.routing.errors import RoutingError
from voiceprompt.services.codex_auth import CodexAuth
from voiceprompt.services.settings import Settings


class _ScriptedClient(FakeReplySource):
    """Replaces :class:`ResponsesClient`; records the settings it was built with."""

    instances: list["_ScriptedClient"] = []
    script: list[Any] = []

    def __init__(self, settings: Any) -> None:
        super().__init__(type(self).script)
        self.settings = settings
        self.closed = False
        type(self).instances.append(self)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def scripted(monkeypatch: pytest.MonkeyPatch):
    _ScriptedClient.instances = []

    def install(*replies: Any) -> type[_ScriptedClient]:
        _ScriptedClient.script = list(replies)
        monkeypatch.setattr(app, "ResponsesClient", _ScriptedClient)
        return _ScriptedClient

    monkeypatch.setenv("VOICEPROMPT_API_KEY", "sk-test")
    return install


def _base_args(tmp_path: Path) -> list[str]:
    return ["--settings-path", str(tmp_path / "settings.json")]


class TestRouteCommand:
    def test_handled_terminal_request(self, tmp_path: Path, scripted, capsys: pytest.CaptureFixture[str]) -> None:
        client_cls = scripted(reply(function_call("insert_terminal_command", {"command": "git status"})))

        code = app.main([*_base_args(tmp_path), "route", "--workspace", str(tmp_path), "terminal", "git", "status"])

        out = capsys.readouterr().out
        assert code == 0
        assert "[voiceprompt 1] $ git status  # not executed" in out
        assert "handled by insert_terminal_command after 1 turn(s)" in out
        client = client_cls.instances[0]
        assert client.closed
        assert client.settings.api_key == "sk-test"
        assert "terminal git status" in client.requests[0][0][1]["content"][0]["text"]

    def test_edit_applies_to_opened_file(self, tmp_path: Path, scripted) -> None:
        target = tmp_path / "main.py"
        target.write_text("x = 1\n", encoding="utf-8")
        scripted(
            reply(
                function_call(
                    "apply_editor_edit",
                    {"startLine": 0, "startCol": 4, "endLine": 0, "endCol": 5, "newText": "2"},
                )
            )
        )

        code = app.main([*_base_args(tmp_path), "route", "--file", str(target), "--line", "0", "set", "x", "to", "2"])

        assert code == 0
        assert target.read_text(encoding="utf-8") == "x = 2\n"

    def test_ambient_context_includes_cursor(self, tmp_path: Path, scripted) -> None:
        target = tmp_path / "a.py"
        target.write_text("one\ntwo\nthree\n", encoding="utf-8")
        client_cls = scripted(reply())

        app.main([*_base_args(tmp_path), "route", "--file", str(target), "--line", "1", "--column", "2", "hello"])

        user_text = client_cls.instances[0].requests[0][0][1]["content"][0]["text"]
        context = json.loads(user_text.split("Ambient context:\n", 1)[1])
        assert context["editor"]["cursorLine"] == 1
        assert context["editor"]["cursorCol"] == 2
        assert context["terminal"]["available"] is False

    def test_unhandled_exit_code(self, tmp_path: Path, scripted, capsys: pytest.CaptureFixture[str]) -> None:
        scripted(reply())

        code = app.main([*_base_args(tmp_path), "route", "what", "time", "is", "it"])

        assert code == 1
        assert "unhandled (no_tool_call)" in capsys.readouterr().out

    def test_routing_error_exit_code(self, tmp_path: Path, scripted, capsys: pytest.CaptureFixture[str]) -> None:
        client_cls = scripted(RoutingError("Cloud command routing failed (401): unauthorized", 401))

        code = app.main([*_base_args(tmp_path), "route", "anything"])

        assert code == 2
        assert "Cloud command routing failed (401)" in capsys.readouterr().err
        assert client_cls.instances[0].closed

    def test_missing_file_exit_code(self, tmp_path: Path, scripted, capsys: pytest.CaptureFixture[str]) -> None:
        client_cls = scripted(reply())
        missing = tmp_path / "nope.py"

        assert app.main([*_base_args(tmp_path), "route", "--file", str(missing), "hi"]) == 2
        assert f"Unable to open {missing}" in capsys.readouterr().err
        assert client_cls.instances == []

    def test_other_os_errors_are_not_reported_as_file_errors(self, tmp_path: Path, scripted) -> None:
        scripted(OSError("disk unavailable"))

        with pytest.raises(OSError, match="disk unavailable"):
            app.main([*_base_args(tmp_path), "route", "hi"])

    def test_debug_logs_to_configured_dir_and_keeps_stdout_for_verdict(
        self, tmp_path: Path, scripted, capsys: pytest.CaptureFixture[str]
    ) -> None:
        scripted(reply())
        log_dir = tmp_path / "run-logs"

        code = app.main([*_base_args(tmp_path), "--debug", "--set", f"log_dir={log_dir}", "route", "hi"])

        captured = capsys.readouterr()
        assert code == 1
        assert captured.out == "unhandled (no_tool_call) after 1 turn(s)\n"
        assert "voiceprompt: DEBUG" in captured.err
        assert (log_dir / "voiceprompt.log").exists()

    def test_no_stream_flag(self, tmp_path: Path, scripted) -> None:
        client_cls = scripted(reply())

        app.main([*_base_args(tmp_path), "route", "--no-stream", "hi"])

        assert client_cls.instances[0].settings.stream is False

    def test_missing_credentials(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.setattr(app, "load_codex_auth", lambda path=None: None)

        code = app.main([*_base_args(tmp_path), "route", "hello"])

        assert code == 2
        assert "No API key configured" in capsys.readouterr().err

    def test_codex_login_is_used(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, scripted) -> None:
        client_cls = scripted(reply())
        monkeypatch.delenv("VOICEPROMPT_API_KEY")
        monkeypatch.setattr(app, "load_codex_auth", lambda path=None: CodexAuth("codex-token", "acct-9"))

        app.main([*_base_args(tmp_path), "route", "hello"])

        settings = client_cls.instances[0].settings
        assert settings.api_key == "codex-token"
        assert settings.account_id == "acct-9"


class TestCliOptions:
    def test_dump_settings_redacts_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setenv("VOICEPROMPT_API_KEY", "sk-abcdefgh")

        code = app.main([*_base_args(tmp_path), "--set", "model=gpt-x", "--set", "stream=false", "--dump-settings"])

        payload = json.loads(capsys.readouterr().out)
        assert code == 0
        assert payload["settings"]["model"] == "gpt-x"
        assert payload["settings"]["stream"] is False
        assert payload["settings"]["api_key"] == "sk*******gh"
        assert payload["meta"]["cli_overrides"] == ["model", "stream"]
        assert "VOICEPROMPT_API_KEY" in payload["meta"]["environment_variables"]

    @pytest.mark.parametrize("override", ["model", "unknown=1", "max_tool_turns=many", "stream=maybe"])
    def test_bad_override(self, tmp_path: Path, override: str, capsys) -> None:
        assert app.main([*_base_args(tmp_path), "--set", override, "--dump-settings"]) == 2
        assert "Invalid --set override" in capsys.readouterr().err

    def test_no_command_prints_help(self, tmp_path: Path) -> None:
        assert app.main(_base_args(tmp_path)) == 2

    def test_coerce_overrides(self) -> None:
        overrides = app._coerce_cli_overrides(
            ["max_tool_turns=4", "tool_timeout=2.5", "account_id=acct", "default_headers={\"x\": \"y\"}"]
        )

        assert overrides == {
            "max_tool_turns": 4,
            "tool_timeout": 2.5,
            "account_id": "acct",
            "default_headers": {"x": "y"},
        }

    @pytest.mark.parametrize(("value", "expected"), [(0, 1), (6, 6), (99, 20)])
    def test_max_tool_turns_is_clamped(self, value: int, expected: int) -> None:
        assert app._resolve_max_tool_turns(Settings(max_tool_turns=value)) == expected
