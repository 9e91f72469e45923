"""GPU telemetry providers: NVML bindings and the nvidia-smi command line."""

import re
import subprocess
from typing import Protocol, runtime_checkable

try:
    import pynvml
except ImportError:  # NVML bindings are optional; nvidia-smi covers the gap
    pynvml = None

from labdash.core.models import GPUDeviceStats

BYTES_PER_MB = 1024 * 1024
NO_VERSION = "--"

SMI_QUERY_FIELDS = (
    "index",
    "name",
    "memory.total",
    "temperature.gpu",
    "utilization.gpu",
    "utilization.memory",
    "memory.used",
    "power.draw",
    "fan.speed",
)
SMI_QUERY_COMMAND = [
    "nvidia-smi",
    "--query-gpu=" + ",".join(SMI_QUERY_FIELDS),
    "--format=csv,noheader,nounits",
]
_CUDA_VERSION_RE = re.compile(r"CUDA Version:\s*([0-9.]+)")


class GPUBackendError(RuntimeError):
    """Raised when a backend cannot be initialised."""


@runtime_checkable
class GPUProvider(Protocol):
    """Source of per-device GPU readings."""

    name: str

    def list_devices(self) -> list[GPUDeviceStats]: ...

    def cuda_version(self) -> str: ...

    def shutdown(self) -> None: ...


def _to_int(text):
    try:
        return int(float(str(text).strip()))
    except (TypeError, ValueError):
        return 0


def format_cuda_version(encoded):
    """Render NVML's ``major * 1000 + minor * 10`` encoding as ``CUDA x.y``."""
    major = encoded // 1000
    minor = (encoded % 1000) // 10
    return f"CUDA {major}.{minor}"


class NvmlGPUProvider:
    """Reads devices through ``pynvml``; ``probe`` must succeed before use."""

    name = "nvml"

    def __init__(self, nvml=None):
        self._nvml = nvml if nvml is not None else pynvml
        self.device_count = 0
        self._initialized = False

    def probe(self):
        """Initialise NVML and count devices, raising GPUBackendError on failure."""
        nvml = self._nvml
        if nvml is None:
            raise GPUBackendError("pynvml is not installed")
        # Any failure here, not only NVMLError (e.g. a broken libnvidia-ml
        # load raising OSError), must surface as GPUBackendError.
        try:
            nvml.nvmlInit()
        except Exception as exc:
            raise GPUBackendError(f"NVML init failed: {exc}") from exc
        try:
            self.device_count = nvml.nvmlDeviceGetCount()
        except Exception as exc:
            self._safe_shutdown()
            raise GPUBackendError(f"NVML device count failed: {exc}") from exc
        self._initialized = True
        return self.device_count

    def _query(self, func, *args, default=0):
        try:
            return func(*args)
        except self._nvml.NVMLError:
            return default

    def list_devices(self):
        nvml = self._nvml
        devices = []
        for index in range(self.device_count):
            handle = self._query(nvml.nvmlDeviceGetHandleByIndex, index, default=None)
            if handle is None:
                continue
            name = self._query(nvml.nvmlDeviceGetName, handle, default="")
            if isinstance(name, bytes):
                name = name.decode("utf-8", errors="replace")
            util = self._query(nvml.nvmlDeviceGetUtilizationRates, handle, default=None)
            mem = self._query(nvml.nvmlDeviceGetMemoryInfo, handle, default=None)
            temp = self._query(nvml.nvmlDeviceGetTemperature, handle, nvml.NVML_TEMPERATURE_GPU)
            power_mw = self._query(nvml.nvmlDeviceGetPowerUsage, handle)
            fan = self._query(nvml.nvmlDeviceGetFanSpeed, handle)
            devices.append(GPUDeviceStats(
                id=index,
                util=int(util.gpu) if util is not None else 0,
                mem_util=int(util.memory) if util is not None else 0,
                mem_used=int(mem.used // BYTES_PER_MB) if mem is not None else 0,
                mem_total=int(mem.total // BYTES_PER_MB) if mem is not None else 0,
                temp=int(temp),
                power=int(power_mw // 1000),
                fan=int(fan),
                name=name,
            ))
        return devices

    def cuda_version(self):
        encoded = self._query(self._nvml.nvmlSystemGetCudaDriverVersion, default=None)
        if not encoded:
            return NO_VERSION
        return format_cuda_version(int(encoded))

    def _safe_shutdown(self):
        try:
            self._nvml.nvmlShutdown()
        except self._nvml.NVMLError:
            pass

    def shutdown(self):
        if self._initialized:
            self._safe_shutdown()
            self._initialized = False


def parse_smi_devices(output):
    """Parse ``nvidia-smi --format=csv,noheader,nounits`` query output."""
    devices = []
    for raw in (output or "").splitlines():
        line = raw.strip()
        if not line:
            continue
        parts = [part.strip() for part in line.split(",")]
        if len(parts) < len(SMI_QUERY_FIELDS):
            continue
        # Model names may contain commas; numeric columns are anchored at the end.
        tail = len(parts) - (len(SMI_QUERY_FIELDS) - 2)
        name = ", ".join(parts[1:tail])
        mem_total, temp, util, mem_util, mem_used, power, fan = parts[tail:]
        devices.append(GPUDeviceStats(
            id=_to_int(parts[0]),
            util=_to_int(util),
            mem_util=_to_int(mem_util),
            mem_used=_to_int(mem_used),
            mem_total=_to_int(mem_total),
            temp=_to_int(temp),
            power=_to_int(power),
            fan=_to_int(fan),
            name=name,
        ))
    return devices


def parse_smi_cuda_version(output):
    match = _CUDA_VERSION_RE.search(output or "")
    if not match:
        return NO_VERSION
    return f"CUDA {match.group(1)}"


class SmiGPUProvider:
    """Fallback backend that shells out to ``nvidia-smi`` every cycle."""

    name = "nvidia-smi"

    def _run(self, command):
        try:
            result = subprocess.run(command, capture_output=True, text=True)
        except OSError:
            return None
        if result.returncode != 0:
            return None
        return result.stdout

    def list_devices(self):
        output = self._run(SMI_QUERY_COMMAND)
        if output is None:
            return []
        return parse_smi_devices(output)

    def cuda_version(self):
        output = self._run(["nvidia-smi"])
        if output is None:
            return NO_VERSION
        return parse_smi_cuda_version(output)

    def shutdown(self):
        return None
