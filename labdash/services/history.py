"""Fixed-capacity load history kept alongside the live snapshot."""

from collections import deque


class HistoryBuffer:
    """FIFO of integer samples that is always exactly ``capacity`` long.

    The buffer starts full of zeros; every push evicts the oldest value so the
    sequence stays ordered oldest-first.
    """

    def __init__(self, capacity):
        if capacity <= 0:
            raise ValueError(f"history capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._values = deque([0] * capacity, maxlen=capacity)

    def push(self, value):
        self._values.append(int(value))

    def to_list(self):
        return list(self._values)

    def __len__(self):
        return len(self._values)


class HistoryStats:
    """CPU, GPU and RAM load buffers, each with its own capacity."""

    def __init__(self, cpu_capacity, gpu_capacity, ram_capacity):
        self.cpu_load = HistoryBuffer(cpu_capacity)
        self.gpu_load = HistoryBuffer(gpu_capacity)
        self.ram_load = HistoryBuffer(ram_capacity)

    def record(self, cpu_load, gpu_load, ram_load):
        """Append one sample per metric."""
        self.cpu_load.push(cpu_load)
        self.gpu_load.push(gpu_load)
        self.ram_load.push(ram_load)

    def to_dict(self):
        return {
            "cpuLoad": self.cpu_load.to_list(),
            "gpuLoad": self.gpu_load.to_list(),
            "ramLoad": self.ram_load.to_list(),
        }
