import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from labdash.services import system_metrics

TWO_SOCKET_CPUINFO = """processor\t: 0
model name\t: Intel(R) Xeon(R) Gold 6226R
physical id\t: 0
cpu cores\t: 2

processor\t: 1
model name\t: Intel(R) Xeon(R) Gold 6226R
physical id\t: 0
cpu cores\t: 2

processor\t: 2
model name\t: Intel(R) Xeon(R) Gold 6226R
physical id\t: 1
cpu cores\t: 2

processor\t: 3
model name\t: Intel(R) Xeon(R) Gold 6226R
physical id\t: 1
cpu cores\t: 2
"""

DMIDECODE_MEMORY = """Handle 0x0040, DMI type 17, 92 bytes
Memory Device
\tSize: 32 GB
\tType: DDR4
\tSpeed: 2933 MT/s
\tConfigured Memory Speed: 2933 MT/s
"""


def _write(tmp, name, text):
    path = Path(tmp) / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class CpuIdentityTests(unittest.TestCase):
    def test_multi_socket_model_and_core_count(self):
        with tempfile.TemporaryDirectory() as tmp:
            cpu = system_metrics.read_cpu_identity(_write(tmp, "cpuinfo", TWO_SOCKET_CPUINFO))
        self.assertEqual(cpu.model, "2x Intel(R) Xeon(R) Gold 6226R")
        self.assertEqual(cpu.cores, 4)
        self.assertEqual(cpu.threads, 4)

    def test_missing_core_count_falls_back_to_half_threads(self):
        text = "".join(f"processor\t: {i}\nmodel name\t: ARMv8\n\n" for i in range(8))
        with tempfile.TemporaryDirectory() as tmp:
            cpu = system_metrics.read_cpu_identity(_write(tmp, "cpuinfo", text))
        self.assertEqual(cpu.model, "ARMv8")
        self.assertEqual(cpu.cores, 4)
        self.assertEqual(cpu.threads, 8)

    def test_unreadable_file_reports_unknown(self):
        cpu = system_metrics.read_cpu_identity("/nonexistent/cpuinfo")
        self.assertEqual(cpu.model, "Unknown CPU")


class CpuLoadTests(unittest.TestCase):
    def test_identical_samples_report_zero(self):
        self.assertEqual(system_metrics.compute_cpu_load((100, 1000), (100, 1000)), 0)

    def test_load_from_idle_delta(self):
        self.assertEqual(system_metrics.compute_cpu_load((100, 1000), (150, 1100)), 50)

    def test_load_is_clamped(self):
        self.assertEqual(system_metrics.compute_cpu_load((100, 1000), (300, 1100)), 0)
        self.assertEqual(system_metrics.compute_cpu_load((100, 1000), (50, 1100)), 100)

    def test_read_cpu_times_uses_idle_column_only(self):
        stat = "cpu  10 20 30 40 50 60 70 0 0 0\ncpu0 1 2 3 4 5 6 7 0 0 0\n"
        with tempfile.TemporaryDirectory() as tmp:
            idle, total = system_metrics.read_cpu_times(_write(tmp, "stat", stat))
        self.assertEqual(idle, 40)
        self.assertEqual(total, 280)

    def test_calculate_cpu_load_samples_twice(self):
        with patch.object(system_metrics, "read_cpu_times", side_effect=[(100, 1000), (120, 1100)]), \
                patch.object(system_metrics.time, "sleep") as sleep:
            self.assertEqual(system_metrics.calculate_cpu_load(), 80)
        sleep.assert_called_once_with(system_metrics.CPU_SAMPLE_INTERVAL_SECONDS)


class MemoryTests(unittest.TestCase):
    def test_meminfo_is_truncated_to_one_decimal(self):
        text = "MemTotal:       32768000 kB\nMemFree:  1000 kB\nMemAvailable:   16384000 kB\n"
        with tempfile.TemporaryDirectory() as tmp:
            ram = system_metrics.read_ram_usage(_write(tmp, "meminfo", text), ram_type="DDR5")
        self.assertEqual(ram.total, 31.2)
        self.assertEqual(ram.used, 15.6)
        self.assertEqual(ram.type, "DDR5")
        self.assertEqual(ram.used_percent, 50)

    def test_dmidecode_label(self):
        self.assertEqual(system_metrics.parse_dmidecode_memory(DMIDECODE_MEMORY), "DDR4 2933 MT/s")
        self.assertEqual(system_metrics.parse_dmidecode_memory("no memory here"), "")

    def test_detect_ram_type_without_dmidecode(self):
        with patch.object(system_metrics.subprocess, "run", side_effect=FileNotFoundError("dmidecode")):
            self.assertEqual(system_metrics.detect_ram_type(), "--")


class UptimeTests(unittest.TestCase):
    def test_format_uptime(self):
        self.assertEqual(system_metrics.format_uptime(3 * 86400 + 4 * 3600 + 12 * 60 + 5), "3d 4h 12m")
        self.assertEqual(system_metrics.format_uptime(4 * 3600 + 60), "4h 1m")
        self.assertEqual(system_metrics.format_uptime(59), "0m")

    def test_os_name_from_pretty_name(self):
        text = 'NAME="Ubuntu"\nPRETTY_NAME="Ubuntu 22.04.4 LTS"\n'
        with tempfile.TemporaryDirectory() as tmp:
            self.assertEqual(system_metrics.read_os_name(_write(tmp, "os-release", text)), "Ubuntu 22.04.4 LTS")
        self.assertEqual(system_metrics.read_os_name("/nonexistent/os-release"), "Linux")


if __name__ == "__main__":
    unittest.main()
