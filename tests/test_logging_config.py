from __future__ import annotations

import json

from loguru import logger

from zoxide_sessions import logging_config
from zoxide_sessions.logging_config import LOG_FILE_NAME, json_sink, setup_logger, trace_context


def _records(err: str) -> list[dict]:
    return [json.loads(line) for line in err.splitlines() if line.startswith("{")]


def test_json_sink_writes_structured_record(capsys):
    handler = logger.add(json_sink, level="DEBUG")
    try:
        logger.info(
            "Sessions listed",
            operation="list_sessions",
            status="success",
            session_name="work",
            metrics={"live": 2}
        )
    finally:
        logger.remove(handler)

    record = next(r for r in _records(capsys.readouterr().err) if r["message"] == "Sessions listed")
    assert record["level"] == "info"
    assert record["operation"] == "list_sessions"
    assert record["operation_status"] == "success"
    assert record["context"] == {"session_name": "work"}
    assert record["metrics"] == {"live": 2}
    assert record["error"] is None


def test_trace_context_binds_one_id_per_block(capsys):
    handler = logger.add(json_sink, level="DEBUG")
    try:
        with trace_context():
            logger.info("Key handled", operation="handle_key")
            logger.info("Session switched", operation="switch_session")
        with trace_context():
            logger.info("Next key", operation="handle_key")
        logger.info("Outside", operation="handle_key")
    finally:
        logger.remove(handler)

    records = {r["message"]: r for r in _records(capsys.readouterr().err)}
    first = records["Key handled"]["trace_id"]
    assert first
    assert records["Session switched"]["trace_id"] == first
    assert records["Next key"]["trace_id"] not in (None, first)
    assert records["Outside"]["trace_id"] is None
    assert records["Outside"]["operation_status"] is None


def test_file_sink_records_carry_trace_id(tmp_path, monkeypatch):
    monkeypatch.setattr(
        logging_config.platformdirs, "user_log_dir", lambda **kwargs: str(tmp_path)
    )
    setup_logger()
    try:
        with trace_context():
            logger.info("Key handled", operation="handle_key")
    finally:
        logger.remove()

    lines = (tmp_path / LOG_FILE_NAME).read_text().splitlines()
    records = [json.loads(line)["record"] for line in lines]
    record = next(r for r in records if r["message"] == "Key handled")
    assert record["extra"]["operation"] == "handle_key"
    assert len(record["extra"]["trace_id"]) == 36


def test_json_sink_records_exceptions(capsys):
    handler = logger.add(json_sink, level="DEBUG")
    try:
        try:
            raise ValueError("bad score")
        except ValueError:
            logger.exception("Parse failed", operation="parse")
    finally:
        logger.remove(handler)

    record = next(r for r in _records(capsys.readouterr().err) if r["message"] == "Parse failed")
    assert record["error"]["type"] == "ValueError"
    assert record["error"]["message"] == "bad score"
