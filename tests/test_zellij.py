from __future__ import annotations

import subprocess
from datetime import timedelta

from zoxide_sessions import zellij
from zoxide_sessions.errors import ErrorType
from zoxide_sessions.items import RecoverableSession, Session
from zoxide_sessions.zellij import (
    BUILTIN_LAYOUTS,
    LaunchRequest,
    ZellijHost,
    discover_layouts,
    parse_elapsed,
    parse_session_list,
    run_launch_request,
)

LIST_OUTPUT = """\
work [Created 2h 3m 10s ago] (current)
notes [Created 1day 4h ago] (EXITED - attach to resurrect)
scratch [Created 5s ago]
"""


def _fake_run(monkeypatch, returncode=0, stdout="", stderr=""):
    calls = []

    def fake_run(args, **kwargs):
        calls.append(args)
        return subprocess.CompletedProcess(args, returncode, stdout=stdout, stderr=stderr)

    monkeypatch.setattr(zellij.subprocess, "run", fake_run)
    return calls


def test_parse_elapsed():
    assert parse_elapsed("2h 3m 10s") == timedelta(hours=2, minutes=3, seconds=10)
    assert parse_elapsed("1day 4h") == timedelta(days=1, hours=4)
    assert parse_elapsed("3weeks") == timedelta(weeks=3)
    assert parse_elapsed("") == timedelta()


def test_parse_session_list():
    sessions, recoverable = parse_session_list(LIST_OUTPUT)
    assert sessions == [Session("work", is_current=True), Session("scratch")]
    assert recoverable == [RecoverableSession("notes", timedelta(days=1, hours=4))]


def test_parse_session_list_strips_colors():
    sessions, _ = parse_session_list("\x1b[32;1mwork\x1b[m [Created \x1b[35;1m5s\x1b[m ago]\n")
    assert sessions == [Session("work")]


def test_parse_session_list_bare_names():
    sessions, _ = parse_session_list("alpha\nbeta (current)\n")
    assert sessions == [Session("alpha"), Session("beta", is_current=True)]


def test_current_session_from_environment_name():
    sessions, _ = parse_session_list("scratch [Created 5s ago]\n", current_name="scratch")
    assert sessions[0].is_current


def test_list_sessions(monkeypatch):
    monkeypatch.delenv("ZELLIJ_SESSION_NAME", raising=False)
    calls = _fake_run(monkeypatch, stdout=LIST_OUTPUT)
    result = ZellijHost().list_sessions()
    assert result.is_ok()
    sessions, recoverable = result.value
    assert [s.name for s in sessions] == ["work", "scratch"]
    assert [s.name for s in recoverable] == ["notes"]
    assert calls == [["zellij", "list-sessions", "--no-formatting"]]


def test_list_sessions_when_none_exist(monkeypatch):
    _fake_run(monkeypatch, returncode=1, stderr="No active zellij sessions found.\n")
    result = ZellijHost().list_sessions()
    assert result.is_ok()
    assert result.value == ([], [])


def test_list_sessions_failure(monkeypatch):
    _fake_run(monkeypatch, returncode=2, stderr="boom\n")
    result = ZellijHost().list_sessions()
    assert result.error.error_type == ErrorType.COMMAND_FAILED
    assert result.error.message == "boom"


def test_missing_zellij(monkeypatch):
    def fake_run(args, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", "zellij")

    monkeypatch.setattr(zellij.subprocess, "run", fake_run)
    result = ZellijHost().kill_session("work")
    assert result.error.error_type == ErrorType.COMMAND_NOT_FOUND


def test_kill_and_delete_run_immediately(monkeypatch):
    calls = _fake_run(monkeypatch)
    host = ZellijHost()
    assert host.kill_session("work").is_ok()
    assert host.delete_session("notes").is_ok()
    assert calls == [["zellij", "kill-session", "work"], ["zellij", "delete-session", "notes"]]
    assert host.launch_request is None


def test_kill_failure_reports_stderr(monkeypatch):
    _fake_run(monkeypatch, returncode=1, stderr="Session not found\n")
    result = ZellijHost().kill_session("gone")
    assert result.error.message == "Session not found"


def test_switch_is_deferred(monkeypatch):
    calls = _fake_run(monkeypatch)
    host = ZellijHost()
    assert host.switch_session("work").is_ok()
    assert calls == []
    assert host.launch_request.argv == ["zellij", "attach", "work"]


def test_create_requests():
    host = ZellijHost()

    host.create_session("api", "/srv/api", None)
    assert host.launch_request.argv == ["zellij", "attach", "--create", "api"]
    assert host.launch_request.cwd == "/srv/api"

    host.create_session("api", "/srv/api", "compact")
    assert host.launch_request.argv == ["zellij", "--layout", "compact", "--session", "api"]

    host.create_session(None, None, None)
    assert host.launch_request.argv == ["zellij"]
    assert host.launch_request.cwd is None


def test_discover_layouts(tmp_path):
    (tmp_path / "dev.kdl").write_text("layout {}")
    (tmp_path / "dev.swap.kdl").write_text("swap_tiled_layout {}")
    (tmp_path / "notes.txt").write_text("")
    layouts = discover_layouts(tmp_path)
    assert layouts == sorted(BUILTIN_LAYOUTS + ["dev"])


def test_layout_dir_from_environment(tmp_path, monkeypatch):
    layouts = tmp_path / "layouts"
    layouts.mkdir()
    (layouts / "custom.kdl").write_text("layout {}")
    monkeypatch.setenv("ZELLIJ_CONFIG_DIR", str(tmp_path))
    assert "custom" in ZellijHost().available_layouts()


def test_missing_layout_dir(tmp_path):
    assert discover_layouts(tmp_path / "nope") == sorted(BUILTIN_LAYOUTS)


def test_run_launch_request(monkeypatch, tmp_path):
    calls = []

    def fake_run(args, **kwargs):
        calls.append((args, kwargs.get("cwd")))
        return subprocess.CompletedProcess(args, 3)

    monkeypatch.setattr(zellij.subprocess, "run", fake_run)
    request = LaunchRequest(argv=["zellij", "attach", "work"], cwd=str(tmp_path))
    assert run_launch_request(request) == 3
    assert calls == [(["zellij", "attach", "work"], str(tmp_path))]

    request = LaunchRequest(argv=["zellij"], cwd=str(tmp_path / "missing"))
    run_launch_request(request)
    assert calls[-1] == (["zellij"], None)
