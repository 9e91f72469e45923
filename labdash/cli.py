"""Command line entry point: ``labdash server|info|version``."""

import argparse
import sys

from labdash.core.config import VERSION, load_config, resolve_config_path
from labdash.services import disk_metrics, system_metrics
from labdash.services.gpu_metrics import GPUCollector


def build_parser():
    parser = argparse.ArgumentParser(prog="labdash", description="LabDash - Lab Monitoring & Documentation")
    sub = parser.add_subparsers(dest="command")

    server = sub.add_parser("server", help="Start the LabDash server")
    server.add_argument("--config", help="Path to the labdash.env config file")
    server.add_argument(
        "--skip-frontend",
        action="store_true",
        help="Skip frontend directory check (for local frontend development)",
    )

    info = sub.add_parser("info", help="Display configuration and system information")
    info.add_argument("--config", help="Path to the labdash.env config file")

    sub.add_parser("version", help="Show version information")
    return parser


def format_info(cfg, system, cpu, ram, gpu, disk):
    """Render the ``info`` command report."""
    monitor = cfg.monitor
    lines = [
        "=== LabDash Configuration ===",
        f"Version:        {VERSION}",
        f"Project Name:   {cfg.project_name}",
        f"Lab Name:       {cfg.lab_name}",
        "=== Paths ===",
        f"Config:         {cfg.config_path}",
        f"Frontend Dist:  {cfg.dist_path}",
        f"Documentation:  {cfg.docs_path}",
        "=== Monitor Settings ===",
        f"CRG Interval:   {monitor.interval_crg_seconds}s (Active) / {monitor.idle_interval_crg_seconds}s (Idle)",
        f"Disk Interval:  {monitor.interval_disk_hours:.1f}h",
        f"Idle Timeout:   {monitor.idle_timeout_seconds}s",
        f"History Size:   CPU={monitor.history_cpu}, GPU={monitor.history_gpu}, RAM={monitor.history_ram}",
        "=== System Overview ===",
        f"Hostname:     {system.hostname}",
        f"OS:           {system.os}",
        f"Kernel:       {system.kernel}",
    ]
    if cpu.model:
        lines.append(f"CPU:          {cpu.model}")
        lines.append(f"CPU Cores:    {cpu.cores} cores / {cpu.threads} threads")
    lines.append(f"RAM:          {ram.total:.1f}GB")
    if gpu.name:
        lines.append(f"GPU:          {gpu.name}")
        lines.append(f"GPU Memory:   {gpu.mem_total}MB")
        lines.append(f"CUDA:         {gpu.cuda}")
    if disk.total > 0:
        lines.append(
            f"Disk:         {disk.used / 1000:.2f}TB / {disk.total / 1000:.2f}TB "
            f"({disk.used / disk.total * 100:.1f}%)"
        )
    return "\n".join(lines)


def show_info(config_path=None):
    from labdash.main import APP_DIR

    cfg = load_config(resolve_config_path(config_path, APP_DIR), APP_DIR)
    collector = GPUCollector()
    try:
        gpu, _ = collector.collect()
    finally:
        collector.shutdown()
    print(format_info(
        cfg,
        system_metrics.read_system_identity(),
        system_metrics.read_cpu_identity(),
        system_metrics.read_ram_usage(),
        gpu,
        disk_metrics.get_disk_usage(cfg.disk, skip_users=True),
    ))


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "server":
        from labdash.main import build_runtime

        _, run_server = build_runtime(config_path=args.config, skip_frontend=args.skip_frontend)
        run_server()
        return 0
    if args.command == "info":
        show_info(args.config)
        return 0
    if args.command == "version":
        print(VERSION)
        return 0
    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
