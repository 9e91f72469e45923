"""Flask lifecycle hook and startup runner composition helpers."""
from flask import has_request_context, request
from werkzeug.exceptions import HTTPException

from labdash.core.response_helpers import apply_cors_headers, internal_error_response


def install_flask_hooks(app, *, ensure_monitors_started, log_labdash_exception):
        # Install request/error hooks using explicit runtime callbacks.

    @app.before_request
    def _ensure_monitors_before_request():
        # Background loops must also run when served by an external WSGI server.
        ensure_monitors_started()

    @app.after_request
    def _allow_any_origin_for_api(response):
        if request.path.startswith("/api/"):
            apply_cors_headers(response)
        return response

    @app.errorhandler(Exception)
    def _unhandled_exception_handler(exc):
        if isinstance(exc, HTTPException):
            return exc
        path = request.path if has_request_context() else "unknown-path"
        log_labdash_exception(f"unhandled_exception path={path}", exc)
        return internal_error_response()


def build_run_server(
    *,
    bootstrap_service,
    app,
    host,
    port,
    log_labdash_action,
    log_labdash_exception,
    check_frontend_dist,
    log_boot_diagnostics,
    collect_initial_stats,
    ensure_monitors_started,
    shutdown_gpu_collector,
):
        # Return the app startup runner from explicit boot-step dependencies.

    def run_server():
        boot_steps = [
            ("check_frontend_dist", check_frontend_dist),
            ("log_boot_diagnostics", log_boot_diagnostics),
            ("collect_initial_stats", collect_initial_stats),
            ("ensure_monitors_started", ensure_monitors_started),
        ]
        try:
            bootstrap_service.run_server(
                app,
                host,
                port,
                log_labdash_action,
                log_labdash_exception,
                boot_steps,
            )
        finally:
            shutdown_gpu_collector()

    return run_server
