"""System metric probes backed by Linux procfs."""

import re
import socket
import subprocess
import time

from labdash.core.models import CPUStats, RAMStats, SystemInfo

CPUINFO_PATH = "/proc/cpuinfo"
PROC_STAT_PATH = "/proc/stat"
MEMINFO_PATH = "/proc/meminfo"
UPTIME_PATH = "/proc/uptime"
LOADAVG_PATH = "/proc/loadavg"
OS_RELEASE_PATH = "/etc/os-release"
KERNEL_RELEASE_PATH = "/proc/sys/kernel/osrelease"

CPU_SAMPLE_INTERVAL_SECONDS = 0.2
KB_PER_GB = 1024 * 1024


def _read_text(path):
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as f:
            return f.read()
    except OSError:
        return None


def _safe_int(text):
    try:
        return int(str(text).strip())
    except (TypeError, ValueError):
        return 0


def _safe_float(text):
    try:
        return float(str(text).strip())
    except (TypeError, ValueError):
        return 0.0


def floor_one_decimal(value):
    """Truncate a non-negative value to one decimal place."""
    return int(value * 10) / 10.0


def read_cpu_identity(path=CPUINFO_PATH):
    """Read model name, physical cores and thread count from ``/proc/cpuinfo``."""
    stats = CPUStats(model="Unknown CPU")
    text = _read_text(path)
    if text is None:
        return stats

    sockets = set()
    model_name = ""
    cores_per_socket = 0
    thread_count = 0
    for raw in text.splitlines():
        line = raw.strip()
        key, _, value = line.partition(":")
        key = key.strip()
        value = value.strip()
        if key == "processor":
            thread_count += 1
        elif key == "model name" and value:
            model_name = value
        elif key == "physical id":
            sockets.add(value)
        elif key == "cpu cores":
            cores_per_socket = max(cores_per_socket, _safe_int(value))

    socket_count = len(sockets) or 1
    if cores_per_socket > 0:
        stats.cores = socket_count * cores_per_socket
    else:
        stats.cores = thread_count // 2
    stats.threads = thread_count
    if not model_name:
        model_name = "Unknown CPU"
    stats.model = f"{socket_count}x {model_name}" if socket_count > 1 else model_name
    return stats


def read_cpu_times(path=PROC_STAT_PATH):
    """Return ``(idle, total)`` jiffies from the aggregate ``cpu`` line."""
    text = _read_text(path)
    if not text:
        return 0, 0
    parts = text.splitlines()[0].split()
    if len(parts) < 5 or parts[0] != "cpu":
        return 0, 0
    values = [_safe_int(v) for v in parts[1:]]
    return values[3], sum(values)


def compute_cpu_load(first, second):
    """Load percent between two ``(idle, total)`` samples, clamped to 0..100."""
    idle_delta = second[0] - first[0]
    total_delta = second[1] - first[1]
    if total_delta <= 0:
        return 0
    load = int(100.0 * (1.0 - idle_delta / total_delta))
    return max(0, min(100, load))


def calculate_cpu_load(path=PROC_STAT_PATH, sample_interval=CPU_SAMPLE_INTERVAL_SECONDS):
    """Sample ``/proc/stat`` twice and return the load in between."""
    first = read_cpu_times(path)
    time.sleep(sample_interval)
    second = read_cpu_times(path)
    return compute_cpu_load(first, second)


def read_ram_usage(path=MEMINFO_PATH, ram_type=""):
    """Return used/total memory in GB from ``/proc/meminfo``."""
    ram = RAMStats(type=ram_type)
    text = _read_text(path)
    if text is None:
        return ram

    total_kb = 0
    available_kb = 0
    for line in text.splitlines():
        fields = line.split()
        if len(fields) < 2:
            continue
        if fields[0] == "MemTotal:":
            total_kb = _safe_int(fields[1])
        elif fields[0] == "MemAvailable:":
            available_kb = _safe_int(fields[1])

    used_kb = max(0, total_kb - available_kb)
    ram.total = floor_one_decimal(total_kb / KB_PER_GB)
    ram.used = floor_one_decimal(used_kb / KB_PER_GB)
    return ram


_DMI_TYPE_RE = re.compile(r"^\s*Type:\s*(DDR\w*|LPDDR\w*|SDRAM|\w*RAM)\s*$", re.MULTILINE)
_DMI_SPEED_RE = re.compile(r"^\s*(?:Configured Memory )?Speed:\s*(\d+)\s*(MT/s|MHz)\s*$", re.MULTILINE)


def parse_dmidecode_memory(text):
    """Build a ``"DDR4 2933 MT/s"`` style label from ``dmidecode -t memory``."""
    type_match = _DMI_TYPE_RE.search(text or "")
    if not type_match:
        return ""
    label = type_match.group(1)
    speed_match = _DMI_SPEED_RE.search(text or "")
    if speed_match:
        label += f" {speed_match.group(1)} {speed_match.group(2)}"
    return label


def detect_ram_type():
    """Best-effort memory type label; dmidecode usually needs root."""
    try:
        result = subprocess.run(["dmidecode", "-t", "memory"], capture_output=True, text=True)
    except OSError:
        return "--"
    if result.returncode != 0:
        return "--"
    return parse_dmidecode_memory(result.stdout) or "--"


def read_os_name(path=OS_RELEASE_PATH):
    text = _read_text(path)
    if not text:
        return "Linux"
    for line in text.splitlines():
        key, _, value = line.partition("=")
        if key.strip() == "PRETTY_NAME":
            return value.strip().strip('"').strip("'") or "Linux"
    return "Linux"


def read_system_identity():
    """Static host identity captured once at startup."""
    kernel = (_read_text(KERNEL_RELEASE_PATH) or "").strip()
    return SystemInfo(
        hostname=socket.gethostname(),
        os=read_os_name(),
        kernel=kernel or "--",
        uptime=read_uptime_text(),
        load_avg=read_load_avg(),
    )


def format_uptime(seconds):
    """Format seconds as ``"3d 4h 12m"``, omitting leading zero units."""
    seconds = max(0, int(seconds))
    days, rem = divmod(seconds, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days:
        return f"{days}d {hours}h {minutes}m"
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def read_uptime_text(path=UPTIME_PATH):
    text = _read_text(path)
    if not text:
        return "--"
    return format_uptime(_safe_float(text.split()[0]))


def read_load_avg(path=LOADAVG_PATH):
    """1-minute load average, 0.0 when unavailable."""
    text = _read_text(path)
    if not text:
        return 0.0
    return round(_safe_float(text.split()[0]), 2)
