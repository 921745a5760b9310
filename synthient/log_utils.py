"""Timestamped log lines for verbose and debug output."""

from __future__ import annotations

import sys
from datetime import datetime, timezone
from typing import Any


def log(verbose: bool, message: str, **fields: Any) -> None:
    if not verbose:
        return
    _write_line(f"[{_ts()} UTC] {_format(message, fields)}\n")


def log_debug(debug: bool, message: str, **fields: Any) -> None:
    if not debug:
        return
    _write_line(f"[{_ts()} UTC][DEBUG] {_format(message, fields)}\n")


def set_log_file(path: str | None) -> None:
    global _LOG_FILE
    _LOG_FILE = path


def redact(token: str) -> str:
    """Shorten a secret to something safe to print."""
    token = token.strip()
    if len(token) <= 8:
        return "*" * len(token)
    return f"{token[:4]}...{token[-2:]}"


def _format(message: str, fields: dict[str, Any]) -> str:
    if not fields:
        return message
    pairs = " ".join(f"{key}={value}" for key, value in fields.items())
    return f"{message} {pairs}"


def _ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _write_line(line: str) -> None:
    if _LOG_FILE:
        with open(_LOG_FILE, "a", encoding="utf-8") as handle:
            handle.write(line)
    else:
        sys.stderr.write(line)


_LOG_FILE: str | None = None
