"""Configuration loading (TOML file + string-valued plugin surface)."""

from __future__ import annotations

import re
import time
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from .errors import Error, ErrorType, Result

# =============================================================================
# Picker Configuration
# =============================================================================

CONFIG_DIR = Path("~/.config/zoxide-sessions").expanduser()
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_SEPARATOR = "."

# Default configuration - safe values that work without a user config file
DEFAULT_CONFIG = {
    "session_separator": DEFAULT_SEPARATOR,
    "base_paths": [],
    "show_resurrectable_sessions": False,
    "default_layout": None,
}


@dataclass(frozen=True)
class Config:
    """Picker configuration, immutable for the lifetime of one run."""

    separator: str = DEFAULT_SEPARATOR
    base_paths: frozenset[str] = field(default_factory=frozenset)
    default_layout: str | None = None
    show_recoverable: bool = False


def parse_base_paths(value) -> frozenset[str]:
    """
    Parse the base_paths setting.

    Accepts the pipe-delimited string form ("~/src|/work") or a TOML array.
    Entries are trimmed, empties discarded and ~ expanded.
    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        parts = value.split("|")
    else:
        parts = [str(p) for p in value]

    paths = set()
    for part in parts:
        part = part.strip()
        if not part:
            continue
        expanded = str(Path(part).expanduser())
        # Keep "/" as-is, otherwise compare prefixes without a trailing slash
        paths.add(expanded.rstrip("/") or "/")
    return frozenset(paths)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return value == "true"


def config_from_mapping(values: dict) -> Config:
    """
    Build a Config from the key/value configuration surface.

    Keys: session_separator, base_paths, show_resurrectable_sessions,
    default_layout. Unknown keys are ignored.
    """
    separator = values.get("session_separator")
    if separator is None:
        separator = DEFAULT_SEPARATOR
    elif "/" in str(separator):
        # Session names may never contain "/"
        logger.warning(
            "Invalid session separator - using default",
            operation="config_from_mapping",
            status="fallback",
            separator=separator,
            fallback=DEFAULT_SEPARATOR
        )
        separator = DEFAULT_SEPARATOR

    default_layout = values.get("default_layout")

    return Config(
        separator=str(separator),
        base_paths=parse_base_paths(values.get("base_paths")),
        default_layout=str(default_layout) if default_layout else None,
        show_recoverable=_parse_bool(values.get("show_resurrectable_sessions", False)),
    )


def extract_toml_error_context(error: tomllib.TOMLDecodeError, file_path: Path) -> dict:
    """
    Extract line context from TOML parse error.

    Args:
        error: The TOMLDecodeError exception
        file_path: Path to the TOML file

    Returns:
        Dict with line_number, line_content, and formatted_message
    """
    error_str = str(error)
    line_number = None
    line_content = None

    # Common formats: "line 15", "at line 15", "(line 15)"
    line_match = re.search(r"line\s+(\d+)", error_str, re.IGNORECASE)
    if line_match:
        line_number = int(line_match.group(1))

    if line_number and file_path.exists():
        try:
            with open(file_path, "r") as f:
                lines = f.readlines()
                if 0 < line_number <= len(lines):
                    line_content = lines[line_number - 1].rstrip()
        except OSError:
            pass

    if line_number:
        formatted = f"Error on line {line_number}"
        if line_content:
            display_line = line_content[:50] + "..." if len(line_content) > 50 else line_content
            formatted += f": {display_line}"
        formatted += f"\n\nDetails: {error_str}"
    else:
        formatted = f"TOML parse error: {error_str}"

    return {
        "line_number": line_number,
        "line_content": line_content,
        "formatted_message": formatted,
        "raw_error": error_str
    }


def load_config(config_path: Path | None = None) -> Result[Config]:
    """
    Load configuration from a TOML file with defaults fallback.

    A missing file is not an error: the defaults are returned.

    Args:
        config_path: Path to the TOML file (defaults to CONFIG_PATH)

    Returns:
        Result[Config]: Ok with merged config, or Err with parse details
    """
    config_path = config_path or CONFIG_PATH
    start_time = time.perf_counter()

    if not config_path.exists():
        logger.debug(
            "Config file does not exist, using defaults",
            operation="load_config",
            status="default",
            config_path=str(config_path)
        )
        return Result.ok(config_from_mapping(DEFAULT_CONFIG))

    try:
        with open(config_path, "rb") as f:
            user_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        error_context = extract_toml_error_context(e, config_path)
        logger.error(
            "Invalid TOML syntax in configuration file",
            operation="load_config",
            status="failed",
            file=str(config_path),
            line_number=error_context["line_number"],
            line_content=error_context["line_content"],
            error=error_context["formatted_message"]
        )
        return Result.err(Error(
            error_type=ErrorType.PARSE_ERROR,
            message=error_context["formatted_message"],
            context={"config_path": str(config_path), "line_number": error_context["line_number"]},
            original_exception=e
        ))
    except OSError as e:
        logger.error(
            "Config file could not be read",
            operation="load_config",
            status="failed",
            file=str(config_path),
            error=str(e)
        )
        return Result.err(Error(
            error_type=ErrorType.FILE_NOT_FOUND,
            message=f"Cannot read config file {config_path}: {e}",
            context={"config_path": str(config_path)},
            original_exception=e
        ))

    # Flat table: user keys replace defaults one for one
    merged = {**DEFAULT_CONFIG, **user_config}
    config = config_from_mapping(merged)
    duration_ms = int((time.perf_counter() - start_time) * 1000)

    logger.debug(
        "Config loaded successfully",
        operation="load_config",
        status="success",
        config_path=str(config_path),
        separator=config.separator,
        default_layout=config.default_layout,
        show_recoverable=config.show_recoverable,
        metrics={"base_paths": len(config.base_paths), "duration_ms": duration_ms}
    )

    return Result.ok(config)
