"""
Zellij session host.

Sessions and layouts are read through the `zellij` CLI. Kill and delete run
immediately. Attaching needs the terminal the picker is drawing on, so
switch/create only record a LaunchRequest that the CLI runs once the picker
has exited.
"""

from __future__ import annotations

import os
import re
import subprocess
import time
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from loguru import logger

from .errors import Error, ErrorType, Result
from .items import RecoverableSession, Session

ZELLIJ_BINARY = "zellij"
COMMAND_TIMEOUT = 5

BUILTIN_LAYOUTS = ["classic", "compact", "default", "strider", "welcome"]

NO_SESSIONS_MARKER = "No active zellij sessions found"
EXITED_MARKER = "EXITED"
CURRENT_MARKER = "(current)"

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_SESSION_LINE = re.compile(r"^(?P<name>.+?) \[Created (?P<elapsed>[^\]]*?) ago\](?P<rest>.*)$")
_DURATION_PART = re.compile(r"(\d+)\s*([A-Za-z]+)")

# humantime unit spellings -> seconds
_DURATION_UNITS = {
    "years": 31_557_600, "year": 31_557_600, "y": 31_557_600,
    "months": 2_630_016, "month": 2_630_016, "M": 2_630_016,
    "weeks": 604_800, "week": 604_800, "w": 604_800,
    "days": 86_400, "day": 86_400, "d": 86_400,
    "hours": 3_600, "hour": 3_600, "hr": 3_600, "h": 3_600,
    "minutes": 60, "minute": 60, "min": 60, "m": 60,
    "seconds": 1, "second": 1, "sec": 1, "s": 1,
    "msec": 0.001, "ms": 0.001,
    "usec": 0.000_001, "us": 0.000_001,
    "nsec": 0.000_000_001, "ns": 0.000_000_001,
}


def parse_elapsed(text: str) -> timedelta:
    """
    Parse a humantime duration as printed by Zellij.

    Example: "1day 2h 3m 4s" -> timedelta(days=1, seconds=7384)
    Unknown units are ignored.
    """
    seconds = 0.0
    for count, unit in _DURATION_PART.findall(text):
        multiplier = _DURATION_UNITS.get(unit)
        if multiplier is None:
            multiplier = _DURATION_UNITS.get(unit.lower())
        if multiplier is not None:
            seconds += int(count) * multiplier
    return timedelta(seconds=seconds)


def parse_session_list(
    output: str,
    current_name: str | None = None,
) -> tuple[list[Session], list[RecoverableSession]]:
    """
    Parse `zellij list-sessions --no-formatting` output.

    Example input:
        work [Created 2h 3m ago] (current)
        notes [Created 1day 4h ago] (EXITED - attach to resurrect)

    Args:
        output: Command stdout
        current_name: Name of the session we run in, if known from the
            environment (used when no line carries the current marker)

    Returns:
        (live sessions, resurrectable sessions)
    """
    sessions = []
    recoverable = []

    for line in output.splitlines():
        line = _ANSI_ESCAPE.sub("", line).strip()
        if not line or line.startswith(NO_SESSIONS_MARKER):
            continue

        match = _SESSION_LINE.match(line)
        if match:
            name = match.group("name")
            elapsed = parse_elapsed(match.group("elapsed"))
            rest = match.group("rest")
        else:
            # Versions without creation times print the bare name
            name, _, rest = line.partition(" ")
            elapsed = timedelta()

        if EXITED_MARKER in rest:
            recoverable.append(RecoverableSession(name=name, elapsed=elapsed))
        else:
            is_current = CURRENT_MARKER in rest or name == current_name
            sessions.append(Session(name=name, is_current=is_current))

    return sessions, recoverable


def layout_dir() -> Path:
    config_dir = os.environ.get("ZELLIJ_CONFIG_DIR")
    if config_dir:
        return Path(config_dir).expanduser() / "layouts"
    return Path("~/.config/zellij/layouts").expanduser()


def discover_layouts(directory: Path | None = None) -> list[str]:
    """
    Built-in layouts plus the *.kdl files in the Zellij layout directory.

    Swap layout files (*.swap.kdl) are not standalone layouts and are skipped.
    """
    directory = directory or layout_dir()
    layouts = set(BUILTIN_LAYOUTS)

    if directory.is_dir():
        for path in directory.glob("*.kdl"):
            if path.name.endswith(".swap.kdl"):
                continue
            layouts.add(path.stem)

    logger.debug(
        "Layout discovery complete",
        operation="discover_layouts",
        status="success",
        layout_dir=str(directory),
        metrics={"layouts_found": len(layouts)}
    )
    return sorted(layouts)


@dataclass
class LaunchRequest:
    """A zellij invocation to run after the picker releases the terminal."""

    argv: list[str]
    cwd: str | None = None
    description: str = ""


@dataclass
class ZellijHost:
    """SessionHost backed by the zellij command-line interface."""

    binary: str = ZELLIJ_BINARY
    timeout: float = COMMAND_TIMEOUT
    launch_request: LaunchRequest | None = None
    _layouts: list[str] | None = field(default=None, repr=False)

    def _run(self, args: list[str], operation: str) -> Result[subprocess.CompletedProcess]:
        argv = [self.binary, *args]
        start_time = time.perf_counter()

        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False  # Callers inspect returncode
            )
        except FileNotFoundError as e:
            logger.error(
                "zellij command not found",
                operation=operation,
                status="not_found",
                binary=self.binary
            )
            return Result.err(Error(
                error_type=ErrorType.COMMAND_NOT_FOUND,
                message=f"{self.binary} not found (is Zellij installed?)",
                context={"argv": argv},
                original_exception=e
            ))
        except subprocess.TimeoutExpired as e:
            logger.error(
                "zellij command timed out",
                operation=operation,
                status="timeout",
                argv=argv,
                timeout_seconds=self.timeout
            )
            return Result.err(Error(
                error_type=ErrorType.TIMEOUT_ERROR,
                message=f"{' '.join(argv)} timed out after {self.timeout}s",
                context={"argv": argv},
                original_exception=e
            ))
        except OSError as e:
            logger.error(
                "zellij command could not be started",
                operation=operation,
                status="exec_error",
                argv=argv,
                error=str(e)
            )
            return Result.err(Error(
                error_type=ErrorType.COMMAND_FAILED,
                message=str(e),
                context={"argv": argv},
                original_exception=e
            ))

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.debug(
            "zellij command finished",
            operation=operation,
            status="success" if result.returncode == 0 else "failed",
            argv=argv,
            returncode=result.returncode,
            metrics={"duration_ms": duration_ms}
        )
        return Result.ok(result)

    def list_sessions(self) -> Result[tuple[list[Session], list[RecoverableSession]]]:
        run = self._run(["list-sessions", "--no-formatting"], "list_sessions")
        if run.is_err():
            return Result.err(run.error)

        completed = run.value
        output = completed.stdout or ""
        if completed.returncode != 0:
            combined = output + (completed.stderr or "")
            if NO_SESSIONS_MARKER in combined:
                return Result.ok(([], []))
            return Result.err(Error(
                error_type=ErrorType.COMMAND_FAILED,
                message=(completed.stderr or "").strip() or f"exit code {completed.returncode}",
                context={"returncode": completed.returncode}
            ))

        sessions, recoverable = parse_session_list(
            output, os.environ.get("ZELLIJ_SESSION_NAME")
        )
        logger.debug(
            "Sessions listed",
            operation="list_sessions",
            status="success",
            metrics={"live": len(sessions), "resurrectable": len(recoverable)}
        )
        return Result.ok((sessions, recoverable))

    def available_layouts(self) -> list[str]:
        if self._layouts is None:
            self._layouts = discover_layouts()
        return self._layouts

    def switch_session(self, name: str) -> Result[None]:
        self.launch_request = LaunchRequest(
            argv=[self.binary, "attach", name],
            description=f"attach to {name}"
        )
        return Result.ok(None)

    def create_session(
        self, name: str | None, folder: str | None, layout: str | None
    ) -> Result[None]:
        if layout is not None:
            argv = [self.binary, "--layout", layout]
            if name:
                argv += ["--session", name]
        elif name:
            argv = [self.binary, "attach", "--create", name]
        else:
            argv = [self.binary]

        self.launch_request = LaunchRequest(
            argv=argv,
            cwd=folder,
            description=f"create {name or 'new session'}"
        )
        return Result.ok(None)

    def _session_command(self, command: str, name: str) -> Result[None]:
        run = self._run([command, name], command.replace("-", "_"))
        if run.is_err():
            return Result.err(run.error)
        completed = run.value
        if completed.returncode != 0:
            stderr = (completed.stderr or "").strip()
            return Result.err(Error(
                error_type=ErrorType.COMMAND_FAILED,
                message=stderr or f"zellij {command} {name} failed",
                context={"session_name": name, "returncode": completed.returncode}
            ))
        logger.info(
            "Session command succeeded",
            operation=command.replace("-", "_"),
            status="success",
            session_name=name
        )
        return Result.ok(None)

    def kill_session(self, name: str) -> Result[None]:
        return self._session_command("kill-session", name)

    def delete_session(self, name: str) -> Result[None]:
        return self._session_command("delete-session", name)


def run_launch_request(request: LaunchRequest) -> int:
    """
    Run a deferred zellij invocation in the foreground.

    Returns:
        The command's exit code (127 when it cannot be started)
    """
    logger.info(
        "Launching zellij",
        operation="run_launch_request",
        status="started",
        argv=request.argv,
        cwd=request.cwd,
        description=request.description
    )

    cwd = request.cwd
    if cwd is not None and not os.path.isdir(cwd):
        logger.warning(
            "Session folder does not exist - launching in current directory",
            operation="run_launch_request",
            status="fallback",
            cwd=cwd
        )
        cwd = None

    try:
        result = subprocess.run(request.argv, cwd=cwd, check=False)
    except OSError as e:
        logger.error(
            "zellij could not be launched",
            operation="run_launch_request",
            status="exec_error",
            argv=request.argv,
            error=str(e)
        )
        return 127

    logger.info(
        "zellij exited",
        operation="run_launch_request",
        status="complete",
        returncode=result.returncode
    )
    return result.returncode
