"""Logging setup helpers."""

from labdash.core.action_logging import make_log_action, make_log_exception

LOG_FILE_NAME = "labdash.log"


def build_loggers(log_dir, display_tz=None):
    """Create the labdash event writer and its exception logger."""
    log_labdash_action = make_log_action(log_dir, log_dir / LOG_FILE_NAME, display_tz)
    log_labdash_exception = make_log_exception(log_labdash_action)
    return log_labdash_action, log_labdash_exception
