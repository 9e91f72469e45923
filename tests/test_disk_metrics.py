import unittest
from types import SimpleNamespace
from unittest.mock import patch

from labdash.core.config import DiskSettings
from labdash.services import disk_metrics

GIB = 1024 * 1024 * 1024

DF_OUTPUT = """Filesystem        1-blocks         Used    Available Capacity Mounted on
/dev/nvme0n1p2 1000000000000 400000000000 550000000000      43% /
/dev/sda1      4000000000000 1000000000000 3000000000000    25% /home
tmpfs             16000000000            0  16000000000       0% /dev/shm
/dev/sdb1      2000000000000 100000000000 1900000000000      5% /data
/dev/sdc1      2000000000000 100000000000 1900000000000      5% /scratch
"""


class DfParsingTests(unittest.TestCase):
    def test_only_included_and_not_ignored_mounts_are_kept(self):
        included = {"/": "System Root", "/home": "User Home", "/scratch": "Scratch"}
        partitions, total, used = disk_metrics.parse_df_output(DF_OUTPUT, included, ["/scratch"])
        self.assertEqual([part.path for part in partitions], ["/", "/home"])
        self.assertEqual(partitions[0].label, "System Root")
        self.assertEqual(partitions[0].total, 931.3)
        self.assertEqual(partitions[0].used, 372.5)
        self.assertEqual(partitions[1].total, 3725.2)
        self.assertAlmostEqual(total, 4656.5)
        self.assertAlmostEqual(used, 1303.8)

    def test_mount_points_with_spaces(self):
        output = DF_OUTPUT + "/dev/sde1      2147483648000 1073741824000 1073741824000    50% /mnt/lab data\n"
        included = {"/": "System Root", "/mnt/lab data": "Shared Data"}
        partitions, _, _ = disk_metrics.parse_df_output(output, included, [])
        self.assertEqual([part.path for part in partitions], ["/", "/mnt/lab data"])
        self.assertEqual(partitions[1].label, "Shared Data")
        self.assertEqual(partitions[1].total, 2000.0)
        self.assertEqual(partitions[1].used, 1000.0)

    def test_empty_output(self):
        self.assertEqual(disk_metrics.parse_df_output("", {"/": "Root"}, []), ([], 0.0, 0.0))


class DuParsingTests(unittest.TestCase):
    def _du_output(self, count):
        lines = [f"{i * GIB}\t/home/user{i}" for i in range(1, count + 1)]
        lines.append(f"{GIB}\t/home/lost+found")
        lines.append(f"{999 * GIB}\t/home")
        return "\n".join(lines)

    def test_top_users_sorted_and_truncated(self):
        users = disk_metrics.parse_du_output(self._du_output(15), "/home", ["lost+found"], 12)
        self.assertEqual(len(users), 12)
        self.assertEqual(users[0].name, "user15")
        self.assertEqual(users[0].used, 15.0)
        self.assertEqual(users[-1].name, "user4")
        used = [user.used for user in users]
        self.assertEqual(used, sorted(used, reverse=True))

    def test_root_and_ignored_entries_are_excluded(self):
        users = disk_metrics.parse_du_output(self._du_output(2), "/home/", ["lost+found"], 12)
        self.assertEqual({user.name for user in users}, {"user1", "user2"})

    def test_paths_with_spaces_keep_their_name(self):
        users = disk_metrics.parse_du_output(f"{2 * GIB}\t/home/shared data", "/home", [], 5)
        self.assertEqual(users[0].name, "shared data")


class DiskScanTests(unittest.TestCase):
    def test_missing_tools_yield_empty_sections(self):
        settings = DiskSettings()
        with patch.object(disk_metrics.subprocess, "run", side_effect=FileNotFoundError("df")):
            disk = disk_metrics.get_disk_usage(settings)
        self.assertEqual(disk.partitions, [])
        self.assertEqual(disk.users, [])
        self.assertEqual(disk.total, 0.0)

    def test_partial_du_output_is_used(self):
        settings = DiskSettings()
        results = [
            SimpleNamespace(returncode=0, stdout=DF_OUTPUT),
            SimpleNamespace(returncode=1, stdout=f"{3 * GIB}\t/home/alice\n{6 * GIB}\t/home\n"),
        ]
        with patch.object(disk_metrics.subprocess, "run", side_effect=results) as run:
            disk = disk_metrics.get_disk_usage(settings)
        self.assertEqual([user.name for user in disk.users], ["alice"])
        self.assertEqual(run.call_args_list[1].args[0], ["du", "-d", "1", "-B1", "/home"])

    def test_skip_users_runs_df_only(self):
        with patch.object(disk_metrics.subprocess, "run", return_value=SimpleNamespace(returncode=0, stdout=DF_OUTPUT)) as run:
            disk = disk_metrics.get_disk_usage(DiskSettings(), skip_users=True)
        run.assert_called_once()
        self.assertEqual(len(disk.partitions), 2)


if __name__ == "__main__":
    unittest.main()
