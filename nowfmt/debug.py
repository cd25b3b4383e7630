# nowfmt/debug.py
import os
import sys
import time
from pathlib import Path


_DEBUG = os.getenv("NOWFMT_DEBUG") == "1"


def enable_debug() -> None:
    global _DEBUG
    _DEBUG = True


def debug_enabled() -> bool:
    return _DEBUG


def debug_log(message: str) -> None:
    if not _DEBUG:
        return

    try:
        ts = time.strftime("%Y-%m-%d %H:%M:%S")
    except Exception:
        ts = "unknown-time"

    log_file = os.getenv("NOWFMT_DEBUG_LOG", "").strip()
    if log_file:
        line = f"[{ts}] {message}\n"
        try:
            log_path = Path(log_file).expanduser()
            with log_path.open("a", encoding="utf-8") as f:
                f.write(line)
        except OSError:
            pass

    # stdout carries rendered templates, so debug output goes to stderr
    try:
        print(f"[DEBUG] {message}", file=sys.stderr)
    except Exception:
        pass
