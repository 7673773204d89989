"""Structured logging setup (JSONL format)."""

from __future__ import annotations

import json
import sys
import traceback
from pathlib import Path
from uuid import uuid4

import platformdirs
from loguru import logger

APP_NAME = "zoxide-sessions"

# Log file inside platformdirs.user_log_dir
LOG_FILE_NAME = "picker.jsonl"


def json_sink(message) -> None:
    """JSONL sink - writes one machine-readable record per line to stderr."""
    record = message.record
    log_entry = {
        "timestamp": record["time"].strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
        "level": record["level"].name.lower(),
        "component": record["function"],
        "operation": record["extra"].get("operation", "unknown"),
        "operation_status": record["extra"].get("status", None),
        "trace_id": record["extra"].get("trace_id"),
        "message": record["message"],
        "context": {k: v for k, v in record["extra"].items()
                    if k not in ("operation", "status", "trace_id", "metrics")},
        "metrics": record["extra"].get("metrics", {}),
        "error": None
    }

    if record["exception"]:
        exc_type, exc_value, exc_tb = record["exception"]
        tb_lines = []
        if exc_tb:
            tb_lines = traceback.format_tb(exc_tb)

        log_entry["error"] = {
            "type": exc_type.__name__ if exc_type else "Unknown",
            "message": str(exc_value) if exc_value else "Unknown error",
            "traceback_lines": tb_lines
        }

    try:
        sys.stderr.write(json.dumps(log_entry, default=str) + "\n")
    except (OSError, TypeError, ValueError) as e:
        try:
            sys.stderr.write(f"[LOG_ERROR] Failed to write log: {e}\n")
        except OSError:
            pass


def setup_logger(console: bool = False, console_level: str = "INFO"):
    """
    Configure Loguru for machine-readable JSONL output.

    The TUI owns the terminal while it runs, so the stderr sink is only
    installed when ``console`` is requested (non-interactive subcommands with
    --verbose). The rotating file sink is always installed.

    Args:
        console: Also write JSONL records to stderr
        console_level: Minimum level for the stderr sink

    Returns:
        The configured loguru logger
    """
    logger.remove()

    if console:
        logger.add(
            json_sink,
            level=console_level
        )

    # macOS: ~/Library/Logs/zoxide-sessions/
    # Linux: ~/.local/state/zoxide-sessions/log/
    log_dir = Path(platformdirs.user_log_dir(
        appname=APP_NAME,
        ensure_exists=True
    ))

    logger.add(
        str(log_dir / LOG_FILE_NAME),
        format="{message}",
        serialize=True,
        rotation="10 MB",
        retention="7 days",
        compression="gz",
        level="DEBUG"
    )

    logger.debug(
        "Logger initialized",
        operation="setup_logger",
        status="success",
        log_dir=str(log_dir),
        console=console
    )

    return logger


def trace_context():
    """
    Correlate every record logged inside the block with one fresh trace_id.

    The ID is bound into the record's extra dict, so both the JSONL stderr
    sink and the serialized file sink carry it.

    Example:
        with trace_context():
            state.handle_key("enter")
    """
    return logger.contextualize(trace_id=str(uuid4()))
