"""Ranked directories from zoxide."""

from __future__ import annotations

import math
import subprocess
import time

from loguru import logger

from .config_loader import Config
from .errors import Error, ErrorType, Result
from .items import CandidateDirectory, sort_candidates
from .naming import resolve_session_names

ZOXIDE_COMMAND = ["zoxide", "query", "--list", "--score"]
ZOXIDE_TIMEOUT = 5


def parse_zoxide_output(output: str) -> list[CandidateDirectory]:
    """
    Parse `zoxide query --list --score` output.

    Example input:
          12.0 /home/alice/code/project
           4.5 /home/alice/My Documents

    Lines without a finite decimal score, one space and a path are skipped.
    Non-finite scores ("inf", "nan") and digit groups ("1_0") count as malformed.
    """
    directories = []
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        parts = line.split(" ", 1)
        if len(parts) != 2 or "_" in parts[0]:
            continue
        try:
            score = float(parts[0])
        except ValueError:
            continue
        if not math.isfinite(score):
            continue
        directories.append(CandidateDirectory(ranking=score, directory=parts[1]))
    return directories


def build_candidates(
    output: str,
    config: Config,
    home: str | None = None,
) -> list[CandidateDirectory]:
    """Parse ranking output, name every directory, then sort by ranking."""
    directories = parse_zoxide_output(output)
    resolve_session_names(directories, config, home)
    return sort_candidates(directories)


def query_zoxide(timeout: float = ZOXIDE_TIMEOUT) -> Result[str]:
    """
    Run zoxide and return its raw stdout.

    Returns:
        Result[str]: Ok with stdout, or Err when zoxide is missing, times out
        or exits non-zero
    """
    start_time = time.perf_counter()

    logger.debug(
        "Querying zoxide",
        operation="query_zoxide",
        status="started",
        command=" ".join(ZOXIDE_COMMAND)
    )

    try:
        result = subprocess.run(
            ZOXIDE_COMMAND,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False  # Non-zero exit is reported as Result.err below
        )
    except FileNotFoundError as e:
        logger.error(
            "zoxide command not found",
            operation="query_zoxide",
            status="not_found",
        )
        return Result.err(Error(
            error_type=ErrorType.COMMAND_NOT_FOUND,
            message=str(e),
            context={"command": ZOXIDE_COMMAND[0]},
            original_exception=e
        ))
    except subprocess.TimeoutExpired as e:
        logger.error(
            "zoxide query timed out",
            operation="query_zoxide",
            status="timeout",
            timeout_seconds=timeout
        )
        return Result.err(Error(
            error_type=ErrorType.TIMEOUT_ERROR,
            message=f"timed out after {timeout}s",
            context={"command": ZOXIDE_COMMAND[0]},
            original_exception=e
        ))
    except OSError as e:
        logger.error(
            "zoxide could not be started",
            operation="query_zoxide",
            status="exec_error",
            error=str(e)
        )
        return Result.err(Error(
            error_type=ErrorType.COMMAND_FAILED,
            message=str(e),
            context={"command": ZOXIDE_COMMAND[0]},
            original_exception=e
        ))

    duration_ms = int((time.perf_counter() - start_time) * 1000)

    if result.returncode != 0:
        stderr = result.stderr.strip() if result.stderr else ""
        logger.warning(
            "zoxide query failed",
            operation="query_zoxide",
            status="failed",
            returncode=result.returncode,
            stderr=stderr
        )
        return Result.err(Error(
            error_type=ErrorType.COMMAND_FAILED,
            message=stderr or f"exit code {result.returncode}",
            context={"command": ZOXIDE_COMMAND[0], "returncode": result.returncode}
        ))

    logger.debug(
        "zoxide query complete",
        operation="query_zoxide",
        status="success",
        metrics={"lines": len(result.stdout.splitlines()), "duration_ms": duration_ms}
    )
    return Result.ok(result.stdout)


def zoxide_error_message(error: Error) -> str:
    """User-facing text for a failed ranking-source query."""
    return f"Failed to run zoxide (is it installed?): {error.message}"
