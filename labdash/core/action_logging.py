"""Event log for the agent: one line per event in ``<LOG_DIR>/labdash.log``.

Line format::

    Jan 02 03:04:05 <source> [labdash/<action>] <details> warning: <message>

``source`` is the remote address for events raised while handling a request
and ``labdash`` for the background sampling loops.
"""

from datetime import datetime
import os
import traceback

from flask import has_request_context, request

LOG_ROTATE_MAX_BYTES = 5 * 1024 * 1024
LOG_ROTATE_BACKUP_COUNT = 5
BACKGROUND_SOURCE = "labdash"
TRACEBACK_MAX_CHARS = 700


def one_line(text):
    """Collapse all whitespace, newlines included, into single spaces."""
    return " ".join(str(text or "").split())


def event_source():
    if has_request_context() and request.remote_addr:
        return request.remote_addr
    return BACKGROUND_SOURCE


def format_event(action, command=None, rejection_message=None, now=None, source=None):
    """Render one log line without the trailing newline."""
    stamp = (now or datetime.now()).strftime("%b %d %H:%M:%S")
    origin = one_line(source or event_source()) or BACKGROUND_SOURCE
    line = f"{stamp} <{origin}> [labdash/{one_line(action) or 'unknown'}]"
    details = one_line(command)
    if details:
        line += f" {details}"
    warning = one_line(rejection_message)
    if warning:
        line += f" warning: {warning}"
    return line


def rotate_if_needed(path, max_bytes=LOG_ROTATE_MAX_BYTES, backup_count=LOG_ROTATE_BACKUP_COUNT):
    """Shift ``path`` to ``path.1`` (and older files up by one) once it reaches ``max_bytes``.

    Returns True when a rotation happened. The oldest backup beyond
    ``backup_count`` is overwritten.
    """
    try:
        if path.stat().st_size < max_bytes:
            return False
    except FileNotFoundError:
        return False
    for idx in range(backup_count - 1, 0, -1):
        older = path.with_name(f"{path.name}.{idx}")
        if older.exists():
            os.replace(older, path.with_name(f"{path.name}.{idx + 1}"))
    os.replace(path, path.with_name(f"{path.name}.1"))
    return True


def make_log_action(
    log_dir,
    log_file,
    display_tz=None,
    max_bytes=LOG_ROTATE_MAX_BYTES,
    backup_count=LOG_ROTATE_BACKUP_COUNT,
):
    """Return ``log_action(action, command=None, rejection_message=None)``."""

    def log_action(action, command=None, rejection_message=None):
        line = format_event(action, command, rejection_message, now=datetime.now(tz=display_tz))
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            rotate_if_needed(log_file, max_bytes, backup_count)
            with log_file.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            # Unwritable log dir: the event is dropped, callers carry on.
            pass

    return log_action


def make_log_exception(log_action):
    """Return ``log_exception(context, exc)`` emitting an ``error`` event."""

    def log_exception(context, exc):
        summary = f"{context}: {type(exc).__name__}"
        text = one_line(exc)
        if text:
            summary += f": {text}"
        frames = one_line(" | ".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
        if frames:
            summary += f" | traceback: {frames[:TRACEBACK_MAX_CHARS]}"
        log_action("error", rejection_message=summary)

    return log_exception
