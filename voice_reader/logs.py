import os
import traceback
from typing import Any, Optional

DEBUG = os.environ.get("VOICE_READER_DEBUG", "0").strip() == "1"

_ui_logger: Optional[Any] = None


def set_ui_logger(ui: Optional[Any]) -> None:
    global _ui_logger
    _ui_logger = ui


def log_line(message: str) -> None:
    print(message)
    if _ui_logger is not None:
        _ui_logger.add_log(message)


def log_debug(exc: BaseException) -> None:
    if not DEBUG:
        return
    log_line(f"DEBUG: exception type={exc.__class__.__name__}")
    trace = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)).strip()
    for line in trace.splitlines():
        log_line(f"DEBUG: {line}")


def describe_error(exc: BaseException) -> str:
    details = str(exc).strip()
    if details:
        return details
    return exc.__class__.__name__
