"""Partition and per-user disk usage scans via ``df`` and ``du``."""

import subprocess

from labdash.core.models import DiskStats, Partition, UserUsage
from labdash.services.system_metrics import floor_one_decimal

BYTES_PER_GB = 1024 * 1024 * 1024


def bytes_to_gb(num_bytes):
    """Bytes to GB, truncated to one decimal."""
    return floor_one_decimal(max(0.0, num_bytes) / BYTES_PER_GB)


def _to_float(text):
    try:
        return float(text)
    except (TypeError, ValueError):
        return 0.0


def _run_tool(command):
    """Return tool stdout, or ``""`` when the tool is missing or printed nothing."""
    try:
        result = subprocess.run(command, capture_output=True, text=True)
    except OSError:
        return ""
    return result.stdout or ""


def parse_df_output(output, included_partitions, ignored_partitions):
    """Filter ``df -B1 -P`` lines to the allow-listed mounts.

    Returns ``(partitions, total_gb, used_gb)`` where the totals sum the kept
    partitions.
    """
    ignored = set(ignored_partitions or ())
    partitions = []
    total_gb = 0.0
    used_gb = 0.0
    for line in (output or "").splitlines():
        # The mount point is the last column and may contain spaces.
        fields = line.split(None, 5)
        if len(fields) < 6:
            continue
        mount = fields[5].rstrip()
        if mount in ignored or mount not in included_partitions:
            continue
        part_total = bytes_to_gb(_to_float(fields[1]))
        part_used = bytes_to_gb(_to_float(fields[2]))
        partitions.append(Partition(path=mount, label=included_partitions[mount], used=part_used, total=part_total))
        total_gb += part_total
        used_gb += part_used
    return partitions, round(total_gb, 1), round(used_gb, 1)


def parse_du_output(output, base_path, ignored_users, max_users):
    """Turn ``du -d 1 -B1 <base>`` lines into per-user usage, largest first."""
    ignored = set(ignored_users or ())
    base = base_path.rstrip("/") or "/"
    users = []
    for line in (output or "").splitlines():
        fields = line.split(None, 1)
        if len(fields) < 2:
            continue
        path = fields[1].strip()
        if (path.rstrip("/") or "/") == base:
            continue
        name = path.rstrip("/").rsplit("/", 1)[-1]
        if not name or name in ignored:
            continue
        users.append(UserUsage(name=name, used=bytes_to_gb(_to_float(fields[0]))))
    users.sort(key=lambda user: user.used, reverse=True)
    if max_users and max_users > 0:
        users = users[:max_users]
    return users


def scan_partitions(disk_settings):
    output = _run_tool(["df", "-B1", "-P"])
    return parse_df_output(output, disk_settings.included_partitions, disk_settings.ignored_partitions)


def scan_user_usage(disk_settings):
    output = _run_tool(["du", "-d", "1", "-B1", disk_settings.users_root])
    return parse_du_output(
        output,
        disk_settings.users_root,
        disk_settings.ignored_users,
        disk_settings.max_users_to_list,
    )


def get_disk_usage(disk_settings, skip_users=False):
    """Run one full disk scan; tool failures yield empty sections."""
    partitions, total, used = scan_partitions(disk_settings)
    users = [] if skip_users else scan_user_usage(disk_settings)
    return DiskStats(total=total, used=used, partitions=partitions, users=users)
