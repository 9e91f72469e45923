"""Runtime state shared by routes, hooks and the sampling loops."""
from typing import Any


_STATE_CORE_KEYS = (
    "APP_DIR",
    "DIST_PATH",
    "DOCS_PATH",
    "VERSION",
    "config",
    "skip_frontend",
)

_STATE_RUNTIME_KEYS = (
    "activity_tracker",
    "crg_schedule",
    "cpu_identity",
    "gpu_collector",
    "log_labdash_action",
    "log_labdash_exception",
    "monitors_start_lock",
    "monitors_started",
    "ram_type",
    "snapshot_store",
    "static_info_lock",
)

STATE_KEYS = frozenset(_STATE_CORE_KEYS + _STATE_RUNTIME_KEYS)


class AppState:
    """Fixed set of members readable as ``state.x`` or ``state["x"]``.

    Unknown names are rejected on both read and write so a typo in a route or
    loop fails loudly instead of creating a stray attribute.
    """

    __slots__ = ("_data",)

    def __init__(self, data: dict[str, Any]):
        missing = sorted(STATE_KEYS - set(data))
        if missing:
            raise KeyError(f"Missing state members: {', '.join(missing)}")
        object.__setattr__(self, "_data", {key: data[key] for key in STATE_KEYS})

    @classmethod
    def from_namespace(cls, namespace: dict[str, Any]) -> "AppState":
        """Pick the state members out of a wider runtime namespace."""
        return cls({key: value for key, value in namespace.items() if key in STATE_KEYS})

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key not in STATE_KEYS:
            raise KeyError(key)
        self._data[key] = value

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(name) from None

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in STATE_KEYS:
            raise AttributeError(name)
        self._data[name] = value
