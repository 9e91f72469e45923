import unittest

from labdash.state import STATE_KEYS, AppState


def _namespace(**overrides):
    namespace = {key: None for key in STATE_KEYS}
    namespace["monitors_started"] = False
    namespace["unrelated_helper"] = object()
    namespace.update(overrides)
    return namespace


class AppStateTests(unittest.TestCase):
    def test_from_namespace_keeps_state_members_only(self):
        state = AppState.from_namespace(_namespace(VERSION="1.4.0"))
        self.assertEqual(state["VERSION"], "1.4.0")
        self.assertEqual(state.VERSION, "1.4.0")
        with self.assertRaises(AttributeError):
            state.unrelated_helper

    def test_missing_members_are_reported(self):
        namespace = _namespace()
        del namespace["snapshot_store"]
        with self.assertRaises(KeyError):
            AppState.from_namespace(namespace)

    def test_item_and_attribute_writes_share_storage(self):
        state = AppState.from_namespace(_namespace())
        state.monitors_started = True
        self.assertTrue(state["monitors_started"])
        state["ram_type"] = "DDR5"
        self.assertEqual(state.ram_type, "DDR5")

    def test_unknown_names_are_rejected(self):
        state = AppState.from_namespace(_namespace())
        with self.assertRaises(AttributeError):
            state.monitor_started = True
        with self.assertRaises(KeyError):
            state["monitor_started"] = True
        with self.assertRaises(KeyError):
            state["monitor_started"]


if __name__ == "__main__":
    unittest.main()
