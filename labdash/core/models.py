"""Telemetry records served by ``/api/stats``."""

from dataclasses import dataclass, field


@dataclass
class SystemInfo:
    """Host identity plus uptime/load refreshed each sampling cycle."""
    hostname: str = ""
    os: str = ""
    kernel: str = ""
    uptime: str = ""
    load_avg: float = 0.0

    def to_dict(self):
        return {
            "hostname": self.hostname,
            "os": self.os,
            "kernel": self.kernel,
            "uptime": self.uptime,
            "loadAvg": self.load_avg,
        }


@dataclass
class CPUStats:
    load: int = 0
    model: str = ""
    cores: int = 0
    threads: int = 0

    def to_dict(self):
        return {"load": self.load, "model": self.model, "cores": self.cores, "threads": self.threads}


@dataclass
class RAMStats:
    used: float = 0.0  # GB
    total: float = 0.0  # GB
    type: str = ""

    def to_dict(self):
        return {"used": self.used, "total": self.total, "type": self.type}

    @property
    def used_percent(self):
        """Used share of total memory as a whole percent, 0 when unknown."""
        if self.total <= 0:
            return 0
        return int(self.used / self.total * 100)


@dataclass
class GPUDeviceStats:
    """One GPU as reported by either backend."""
    id: int = 0
    util: int = 0
    mem_util: int = 0
    mem_used: int = 0  # MB
    mem_total: int = 0  # MB
    temp: int = 0
    power: int = 0  # W
    fan: int = 0
    name: str = ""

    def to_dict(self):
        return {
            "id": self.id,
            "util": self.util,
            "memUtil": self.mem_util,
            "memUsed": self.mem_used,
            "memTotal": self.mem_total,
            "temp": self.temp,
            "power": self.power,
            "fan": self.fan,
            "name": self.name,
        }


@dataclass
class GPUStats:
    """Aggregate across all GPUs."""
    name: str = ""
    cuda: str = ""
    mem_total: int = 0
    mem_used: int = 0
    avg_util: int = 0
    avg_mem_util: int = 0
    power_total: int = 0
    avg_temp: int = 0
    max_temp: int = 0

    def to_dict(self):
        return {
            "name": self.name,
            "cuda": self.cuda,
            "memTotal": self.mem_total,
            "memUsed": self.mem_used,
            "avgUtil": self.avg_util,
            "avgMemUtil": self.avg_mem_util,
            "powerTotal": self.power_total,
            "avgTemp": self.avg_temp,
            "maxTemp": self.max_temp,
        }


@dataclass
class Partition:
    path: str
    label: str
    used: float
    total: float

    def to_dict(self):
        return {"path": self.path, "label": self.label, "used": self.used, "total": self.total}


@dataclass
class UserUsage:
    name: str
    used: float

    def to_dict(self):
        return {"name": self.name, "used": self.used}


@dataclass
class DiskStats:
    total: float = 0.0
    used: float = 0.0
    partitions: list = field(default_factory=list)
    users: list = field(default_factory=list)

    def to_dict(self):
        return {
            "total": self.total,
            "used": self.used,
            "partitions": [part.to_dict() for part in self.partitions],
            "users": [user.to_dict() for user in self.users],
        }
