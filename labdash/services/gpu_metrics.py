"""GPU backend selection and per-cycle aggregation."""

from collections import Counter
import threading

from labdash.core.models import GPUStats
from labdash.services.gpu_backends import GPUBackendError, NvmlGPUProvider, SmiGPUProvider


def build_display_name(devices):
    """Summarise device models, e.g. ``"2x RTX 4090"`` or ``"A100 ..."``."""
    if not devices:
        return "No GPU"
    counts = Counter(device.name for device in devices)
    if len(counts) == 1:
        name = devices[0].name
        return f"{len(devices)}x {name}" if len(devices) > 1 else name
    largest = max(devices, key=lambda device: device.mem_total)
    return f"{largest.name} ..."


def aggregate_devices(devices, static_fields):
    """Combine per-device readings with the cached name/cuda/memTotal fields."""
    if not devices:
        return GPUStats()
    count = len(devices)
    return GPUStats(
        name=static_fields.name,
        cuda=static_fields.cuda,
        mem_total=static_fields.mem_total,
        mem_used=sum(device.mem_used for device in devices),
        avg_util=sum(device.util for device in devices) // count,
        avg_mem_util=sum(device.mem_util for device in devices) // count,
        power_total=sum(device.power for device in devices),
        avg_temp=sum(device.temp for device in devices) // count,
        max_temp=max(device.temp for device in devices),
    )


class GPUCollector:
    """Pick a GPU provider once per process and aggregate its readings.

    NVML is probed on first use. Any probe failure selects nvidia-smi for the
    rest of the process lifetime; the native backend is never retried.
    """

    def __init__(self, nvml_provider=None, smi_provider=None, log_action=None):
        self._nvml_provider = nvml_provider if nvml_provider is not None else NvmlGPUProvider()
        self._smi_provider = smi_provider if smi_provider is not None else SmiGPUProvider()
        self._log_action = log_action
        self._select_lock = threading.Lock()
        self._provider = None
        self._static_lock = threading.Lock()
        self._static = None

    def _log(self, action, command=None, rejection_message=None):
        if self._log_action is not None:
            self._log_action(action, command=command, rejection_message=rejection_message)

    @property
    def provider(self):
        """Return the active provider, probing NVML on first access."""
        if self._provider is not None:
            return self._provider
        with self._select_lock:
            if self._provider is not None:
                return self._provider
            try:
                count = self._nvml_provider.probe()
            except GPUBackendError as exc:
                self._log("gpu-backend", command="using nvidia-smi fallback", rejection_message=str(exc))
                self._provider = self._smi_provider
            else:
                self._log("gpu-backend", command=f"NVML initialized: {count} GPU(s) detected")
                self._provider = self._nvml_provider
        return self._provider

    def _static_fields(self, devices):
        with self._static_lock:
            if self._static is None:
                self._static = GPUStats(
                    name=build_display_name(devices),
                    cuda=self.provider.cuda_version(),
                    mem_total=sum(device.mem_total for device in devices),
                )
            return self._static

    def collect(self):
        """Return ``(aggregate, devices)`` for the current cycle."""
        devices = self.provider.list_devices()
        if not devices:
            return GPUStats(), []
        return aggregate_devices(devices, self._static_fields(devices)), devices

    def shutdown(self):
        if self._provider is not None:
            self._provider.shutdown()
