"""LabDash host telemetry agent.

This app provides:
- Background CPU/RAM/GPU sampling that slows down while no dashboard polls
- Periodic partition and per-user disk scans
- ``/api/stats`` with the latest snapshot and short load history
- The built dashboard and its markdown docs
"""

from pathlib import Path
import threading

from flask import Flask

from labdash.core.config import VERSION, apply_default_flask_config, load_config, resolve_config_path
from labdash.core.logging_setup import build_loggers
from labdash.routes.dashboard_routes import register_routes
from labdash.services import app_lifecycle as app_lifecycle_service
from labdash.services import bootstrap as bootstrap_service
from labdash.services import scheduler as scheduler_service
from labdash.services import system_metrics
from labdash.services.activity import ActivityTracker
from labdash.services.gpu_metrics import GPUCollector
from labdash.services.snapshot_store import SnapshotStore
from labdash.state import AppState

APP_DIR = Path(__file__).resolve().parent.parent


def build_runtime(config_path=None, skip_frontend=False):
    """Load config, create shared state and register routes.

    Returns ``(app, run_server)``; nothing is sampled until the first request
    or until ``run_server`` executes its boot steps.
    """
    config_file = resolve_config_path(config_path, APP_DIR)
    pending_warnings = []
    config = load_config(
        config_file,
        APP_DIR,
        log_action=lambda action, command=None, rejection_message=None: pending_warnings.append(
            (action, command, rejection_message)
        ),
    )
    log_labdash_action, log_labdash_exception = build_loggers(config.log_dir)
    for action, command, rejection_message in pending_warnings:
        log_labdash_action(action, command=command, rejection_message=rejection_message)

    app = Flask(__name__, static_folder=None)
    apply_default_flask_config(app)

    # Shared runtime members; the two locks that matter live inside
    # snapshot_store and activity_tracker.
    namespace = {
        "APP_DIR": APP_DIR,
        "DIST_PATH": config.dist_path,
        "DOCS_PATH": config.docs_path,
        "VERSION": VERSION,
        "config": config,
        "skip_frontend": skip_frontend,
        "activity_tracker": ActivityTracker(config.monitor.idle_timeout_seconds),
        "crg_schedule": None,
        "cpu_identity": None,
        "gpu_collector": GPUCollector(log_action=log_labdash_action),
        "log_labdash_action": log_labdash_action,
        "log_labdash_exception": log_labdash_exception,
        "monitors_start_lock": threading.Lock(),
        "monitors_started": False,
        "ram_type": None,
        "snapshot_store": SnapshotStore.create(config.monitor, system_metrics.read_system_identity()),
        "static_info_lock": threading.Lock(),
    }
    state = AppState.from_namespace(namespace)

    def ensure_monitors_started():
        return scheduler_service.ensure_monitors_started(state)

    def collect_initial_stats():
        return scheduler_service.update_realtime_stats(state)

    def check_frontend_dist():
        # Missing dashboard assets are fatal unless the frontend runs elsewhere.
        if skip_frontend:
            log_labdash_action("boot", command="Skipping frontend directory check")
            return
        if not config.dist_path.is_dir():
            raise FileNotFoundError(f"Frontend directory not found: {config.dist_path}")
        log_labdash_action("boot", command=f"Frontend loaded: {config.dist_path}")

    def log_boot_diagnostics():
        monitor = config.monitor
        details = (
            f"{config.project_name} {VERSION}; "
            f"config={config.config_path} exists={config.config_path.is_file()}; "
            f"dist={config.dist_path}; docs={config.docs_path} exists={config.docs_path.is_dir()}; "
            f"CRG={monitor.interval_crg_seconds}s/{monitor.idle_interval_crg_seconds}s; "
            f"disk={monitor.interval_disk_hours:.1f}h; idle={monitor.idle_timeout_seconds}s"
        )
        log_labdash_action("boot", command=details)

    app_lifecycle_service.install_flask_hooks(
        app,
        ensure_monitors_started=ensure_monitors_started,
        log_labdash_exception=log_labdash_exception,
    )
    register_routes(app, state)

    run_server = app_lifecycle_service.build_run_server(
        bootstrap_service=bootstrap_service,
        app=app,
        host=config.web_host,
        port=config.web_port,
        log_labdash_action=log_labdash_action,
        log_labdash_exception=log_labdash_exception,
        check_frontend_dist=check_frontend_dist,
        log_boot_diagnostics=log_boot_diagnostics,
        collect_initial_stats=collect_initial_stats,
        ensure_monitors_started=ensure_monitors_started,
        shutdown_gpu_collector=state.gpu_collector.shutdown,
    )
    app.extensions["labdash_state"] = state
    return app, run_server
