"""Runtime configuration helpers for labdash."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from labdash.core.web_config import WebConfig

VERSION = "1.4.0"
CONFIG_ENV_VAR = "LABDASH_CONFIG"
DEFAULT_CONFIG_PATH = Path("/etc/labdash/labdash.env")
DEFAULT_DIST_PATH = Path("/usr/share/labdash/dist")
DEFAULT_INCLUDED_PARTITIONS = {"/": "System Root", "/home": "User Home"}
DEFAULT_IGNORED_USERS = ("lost+found",)

# Idle timeouts below this value switch idle mode off entirely.
MIN_IDLE_TIMEOUT_SECONDS = 10


@dataclass
class MonitorSettings:
    """Sampling cadence and history sizes consumed by the scheduler."""
    interval_crg_seconds: int = 2
    interval_disk_hours: float = 4.0
    idle_timeout_seconds: int = 60
    idle_interval_crg_seconds: int = 300
    history_cpu: int = 20
    history_gpu: int = 20
    history_ram: int = 20


@dataclass
class DiskSettings:
    """Partition allow/ignore lists and per-user scan limits."""
    included_partitions: dict = field(default_factory=lambda: dict(DEFAULT_INCLUDED_PARTITIONS))
    ignored_partitions: list = field(default_factory=list)
    ignored_users: list = field(default_factory=lambda: list(DEFAULT_IGNORED_USERS))
    max_users_to_list: int = 12
    users_root: str = "/home"


@dataclass
class LabDashConfig:
    """Complete agent configuration resolved from the env file."""
    project_name: str = "LabDash"
    lab_name: str = "Lab Dashboard"
    web_host: str = "0.0.0.0"
    web_port: int = 8088
    dist_path: Path = DEFAULT_DIST_PATH
    docs_path: Path = Path("/home/labdash/docs")
    docs_depth: int = 4
    default_doc: str = "index.md"
    admin_name: str = ""
    admin_email: str = ""
    log_dir: Path = Path("logs")
    ram_type: str = ""
    config_path: Path = DEFAULT_CONFIG_PATH
    monitor: MonitorSettings = field(default_factory=MonitorSettings)
    disk: DiskSettings = field(default_factory=DiskSettings)


def resolve_config_path(explicit_path, app_dir):
    """Pick the config file: explicit path, env override, system path, then app dir."""
    if explicit_path:
        return Path(explicit_path)
    from_env = (os.environ.get(CONFIG_ENV_VAR) or "").strip()
    if from_env:
        return Path(from_env)
    if DEFAULT_CONFIG_PATH.is_file():
        return DEFAULT_CONFIG_PATH
    return Path(app_dir) / "labdash.env"


def _bounded_int(web_cfg, name, default, minimum, maximum, warn):
    value = web_cfg.get_int(name, default)
    if value < minimum:
        warn(f"{name} ({value}) too small, using minimum {minimum}")
        return minimum
    if value > maximum:
        warn(f"{name} ({value}) too large, using maximum {maximum}")
        return maximum
    return value


def _bounded_float(web_cfg, name, default, minimum, maximum, warn):
    value = web_cfg.get_float(name, default)
    if value < minimum:
        warn(f"{name} ({value:.2f}) too small, using minimum {minimum:.2f}")
        return minimum
    if value > maximum:
        warn(f"{name} ({value:.2f}) too large, using maximum {maximum:.2f}")
        return maximum
    return value


def load_config(config_path, base_dir, log_action=None):
    """Load, validate and clamp the agent configuration.

    Missing or unreadable files fall back to defaults. Out-of-range values are
    clamped and reported through ``log_action`` as ``config-warn`` events.
    """

    def warn(message):
        if log_action is not None:
            log_action("config-warn", rejection_message=message)

    web_cfg = WebConfig(config_path, base_dir)
    if not web_cfg.exists:
        warn(f"Config file not found at {config_path}, using defaults")

    idle_timeout = web_cfg.get_int("IDLE_TIMEOUT_SECONDS", 60)
    if idle_timeout < MIN_IDLE_TIMEOUT_SECONDS:
        if idle_timeout != 0:
            warn(f"IDLE_TIMEOUT_SECONDS ({idle_timeout}) cannot be < {MIN_IDLE_TIMEOUT_SECONDS}, using 0 (never idle)")
        idle_timeout = 0
    elif idle_timeout > 3600:
        warn(f"IDLE_TIMEOUT_SECONDS ({idle_timeout}) too large, using maximum 3600")
        idle_timeout = 3600

    monitor = MonitorSettings(
        interval_crg_seconds=_bounded_int(web_cfg, "INTERVAL_CRG_SECONDS", 2, 1, 60, warn),
        interval_disk_hours=_bounded_float(web_cfg, "INTERVAL_DISK_HOURS", 4.0, 0.1, 24.0, warn),
        idle_timeout_seconds=idle_timeout,
        idle_interval_crg_seconds=_bounded_int(web_cfg, "IDLE_INTERVAL_CRG_SECONDS", 300, 10, 600, warn),
        history_cpu=_bounded_int(web_cfg, "HISTORY_CPU", 20, 5, 100, warn),
        history_gpu=_bounded_int(web_cfg, "HISTORY_GPU", 20, 5, 100, warn),
        history_ram=_bounded_int(web_cfg, "HISTORY_RAM", 20, 5, 100, warn),
    )
    disk = DiskSettings(
        included_partitions=web_cfg.get_mapping("DISK_INCLUDED_PARTITIONS", DEFAULT_INCLUDED_PARTITIONS),
        ignored_partitions=web_cfg.get_list("DISK_IGNORED_PARTITIONS", []),
        ignored_users=web_cfg.get_list("DISK_IGNORED_USERS", DEFAULT_IGNORED_USERS),
        max_users_to_list=_bounded_int(web_cfg, "DISK_MAX_USERS", 12, 1, 50, warn),
        users_root=web_cfg.get_str("DISK_USERS_ROOT", "/home").rstrip("/") or "/",
    )
    return LabDashConfig(
        project_name=web_cfg.get_str("PROJECT_NAME", "LabDash"),
        lab_name=web_cfg.get_str("LAB_NAME", "Lab Dashboard"),
        web_host=web_cfg.get_str("WEB_HOST", "0.0.0.0"),
        web_port=web_cfg.get_int("WEB_PORT", 8088, minimum=1, maximum=65535),
        dist_path=web_cfg.get_path("DIST_PATH", DEFAULT_DIST_PATH),
        docs_path=web_cfg.get_path("DOCS_PATH", Path("/home/labdash/docs")),
        docs_depth=web_cfg.get_int("DOCS_DEPTH", 4, minimum=1, maximum=10),
        default_doc=web_cfg.get_str("DEFAULT_DOC", "index.md"),
        admin_name=web_cfg.get_str("ADMIN_NAME", ""),
        admin_email=web_cfg.get_str("ADMIN_EMAIL", ""),
        log_dir=web_cfg.get_path("LOG_DIR", Path(base_dir) / "logs"),
        ram_type=web_cfg.get_str("RAM_TYPE", ""),
        config_path=Path(config_path),
        monitor=monitor,
        disk=disk,
    )


def config_payload(cfg):
    """Return the configuration in the nested JSON shape the dashboard reads."""
    return {
        "projectName": cfg.project_name,
        "labName": cfg.lab_name,
        "port": cfg.web_port,
        "docsPath": str(cfg.docs_path),
        "docsDepth": cfg.docs_depth,
        "defaultDoc": cfg.default_doc,
        "version": VERSION,
        "admin": {"name": cfg.admin_name, "email": cfg.admin_email},
        "monitor": {
            "intervalCRGSec": cfg.monitor.interval_crg_seconds,
            "intervalDiskHours": cfg.monitor.interval_disk_hours,
            "idleTimeoutSec": cfg.monitor.idle_timeout_seconds,
            "idleIntervalCRGSec": cfg.monitor.idle_interval_crg_seconds,
            "historyCPU": cfg.monitor.history_cpu,
            "historyGPU": cfg.monitor.history_gpu,
            "historyRAM": cfg.monitor.history_ram,
        },
        "disk": {
            "includedPartitions": dict(cfg.disk.included_partitions),
            "ignoredPartitions": list(cfg.disk.ignored_partitions),
            "ignoredUsers": list(cfg.disk.ignored_users),
            "maxUsersToList": cfg.disk.max_users_to_list,
        },
    }


def apply_default_flask_config(app):
    """Apply baseline Flask runtime config values."""
    app.json.sort_keys = False
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 86400
