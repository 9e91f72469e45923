"""Shared stats snapshot guarded by a reader/writer lock."""

from contextlib import contextmanager
import json
import threading
import time

from labdash.core.models import CPUStats, DiskStats, GPUStats, RAMStats, SystemInfo
from labdash.services.history import HistoryStats


class ReadWriteLock:
    """Many concurrent readers or one writer; waiting writers block new readers."""

    def __init__(self):
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self):
        with self._cond:
            self._cond.wait_for(lambda: not self._writer and self._writers_waiting == 0)
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class SnapshotStore:
    """Single live stats aggregate written by the sampling loops.

    Sampling happens outside the lock; ``store_realtime`` and ``store_disk``
    only assign the already computed sub-records, so readers never see a half
    written cycle and slow external tools never block ``/api/stats``.
    """

    def __init__(self, system_info, history):
        self._lock = ReadWriteLock()
        self.system = system_info
        self.cpu = CPUStats()
        self.ram = RAMStats()
        self.gpu = GPUStats()
        self.gpus = []
        self.disk = DiskStats()
        self.history = history
        self.updated = ""

    @classmethod
    def create(cls, monitor_settings, system_info=None):
        """Build an empty store sized from the monitor settings."""
        history = HistoryStats(
            monitor_settings.history_cpu,
            monitor_settings.history_gpu,
            monitor_settings.history_ram,
        )
        return cls(system_info or SystemInfo(), history)

    def store_realtime(self, cpu, ram, gpu, gpus, uptime, load_avg, now=None):
        """Publish one CRG cycle and advance the history buffers."""
        updated = time.strftime("%H:%M:%S", time.localtime(now))
        with self._lock.write_locked():
            self.cpu = cpu
            self.ram = ram
            self.gpu = gpu
            self.gpus = list(gpus)
            self.system.uptime = uptime
            self.system.load_avg = load_avg
            self.updated = updated
            self.history.record(cpu.load, gpu.avg_util, ram.used_percent)

    def store_disk(self, disk):
        """Publish one disk scan."""
        with self._lock.write_locked():
            self.disk = disk

    def _payload(self):
        return {
            "system": self.system.to_dict(),
            "cpu": self.cpu.to_dict(),
            "ram": self.ram.to_dict(),
            "gpu": self.gpu.to_dict(),
            "gpus": [device.to_dict() for device in self.gpus],
            "disk": self.disk.to_dict(),
            "history": self.history.to_dict(),
            "updated": self.updated,
        }

    def to_dict(self):
        """Return a consistent copy of the whole aggregate."""
        with self._lock.read_locked():
            return self._payload()

    def render_json(self):
        """Serialise the aggregate while holding the read lock."""
        with self._lock.read_locked():
            return json.dumps(self._payload())

    def get_updated(self):
        with self._lock.read_locked():
            return self.updated
