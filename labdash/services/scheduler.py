"""Adaptive CRG sampling loop and fixed-interval disk scan loop."""

import queue
import threading
import time
from dataclasses import replace

from labdash.services import disk_metrics, system_metrics
from labdash.services.activity import STATE_ACTIVE, STATE_IDLE

# (previous state, new state) -> MonitorSettings attribute holding the new interval.
INTERVAL_TRANSITIONS = {
    (STATE_ACTIVE, STATE_IDLE): "idle_interval_crg_seconds",
    (STATE_IDLE, STATE_ACTIVE): "interval_crg_seconds",
}


class CrgSchedule:
    """Current sampling state and interval of the CRG loop."""

    def __init__(self, monitor_settings):
        self.monitor = monitor_settings
        self.state = STATE_ACTIVE
        self.interval = monitor_settings.interval_crg_seconds

    def apply(self, previous, current):
        """Apply a state observation; return the new interval or ``None``."""
        self.state = current
        attr = INTERVAL_TRANSITIONS.get((previous, current))
        if attr is None:
            return None
        new_interval = getattr(self.monitor, attr)
        if new_interval == self.interval:
            return None
        self.interval = new_interval
        return new_interval


def get_cpu_realtime(ctx):
    """Cached CPU identity plus a fresh load sample."""
    with ctx.static_info_lock:
        if ctx.cpu_identity is None:
            ctx.cpu_identity = system_metrics.read_cpu_identity()
        identity = ctx.cpu_identity
    return replace(identity, load=system_metrics.calculate_cpu_load())


def get_ram_realtime(ctx):
    """Memory usage with the memory type label resolved once."""
    with ctx.static_info_lock:
        if ctx.ram_type is None:
            ctx.ram_type = ctx.config.ram_type or system_metrics.detect_ram_type()
        ram_type = ctx.ram_type
    return system_metrics.read_ram_usage(ram_type=ram_type)


def update_realtime_stats(ctx):
    """Sample CPU/RAM/GPU outside any lock, then publish the results."""
    cpu = get_cpu_realtime(ctx)
    ram = get_ram_realtime(ctx)
    gpu, gpus = ctx.gpu_collector.collect()
    uptime = system_metrics.read_uptime_text()
    load_avg = system_metrics.read_load_avg()
    ctx.snapshot_store.store_realtime(cpu, ram, gpu, gpus, uptime, load_avg)


def update_disk_stats(ctx):
    ctx.snapshot_store.store_disk(disk_metrics.get_disk_usage(ctx.config.disk))


def run_crg_cycle(ctx, schedule):
    """Re-evaluate idle state, retune the interval, then sample once.

    Returns True when the interval changed and the tick deadline must reset.
    """
    previous, current = ctx.activity_tracker.refresh_state()
    new_interval = None
    if previous != current:
        if current == STATE_IDLE:
            ctx.log_labdash_action(
                "monitor-state",
                command=f"Active -> Idle (no activity for {ctx.config.monitor.idle_timeout_seconds}s)",
            )
        else:
            ctx.log_labdash_action("monitor-state", command="Idle -> Active (new connection detected)")
        old_interval = schedule.interval
        new_interval = schedule.apply(previous, current)
        if new_interval is not None:
            ctx.log_labdash_action("monitor-interval", command=f"CRG interval {old_interval}s -> {new_interval}s")
    try:
        update_realtime_stats(ctx)
    except Exception as exc:
        ctx.log_labdash_exception("crg_cycle", exc)
    return new_interval is not None


def crg_monitor_loop(ctx, stop_event=None, clock=time.monotonic):
    """High-frequency loop: tick every interval or wake on a queued token."""
    schedule = CrgSchedule(ctx.config.monitor)
    ctx.crg_schedule = schedule
    wake_queue = ctx.activity_tracker.wake_queue
    next_tick = clock() + schedule.interval
    while stop_event is None or not stop_event.is_set():
        timeout = max(0.0, next_tick - clock())
        try:
            wake_queue.get(timeout=timeout)
        except queue.Empty:
            # Ticker semantics: missed ticks are dropped, not replayed.
            next_tick = max(next_tick + schedule.interval, clock())
        if stop_event is not None and stop_event.is_set():
            break
        if run_crg_cycle(ctx, schedule):
            next_tick = clock() + schedule.interval


def run_disk_cycle(ctx):
    try:
        update_disk_stats(ctx)
    except Exception as exc:
        ctx.log_labdash_exception("disk_cycle", exc)


def disk_monitor_loop(ctx, stop_event=None):
    """Low-frequency disk loop; idle mode never changes its interval."""
    interval_seconds = ctx.config.monitor.interval_disk_hours * 3600
    ctx.log_labdash_action(
        "monitor-interval",
        command=f"disk scan interval {ctx.config.monitor.interval_disk_hours:.1f}h (fixed)",
    )
    waiter = stop_event if stop_event is not None else threading.Event()
    run_disk_cycle(ctx)
    while not waiter.wait(interval_seconds):
        run_disk_cycle(ctx)


def ensure_monitors_started(ctx):
    """Start the CRG and disk daemon threads once."""
    if ctx.monitors_started:
        return
    with ctx.monitors_start_lock:
        if ctx.monitors_started:
            return
        crg = threading.Thread(target=crg_monitor_loop, args=(ctx,), daemon=True, name="labdash-crg")
        disk = threading.Thread(target=disk_monitor_loop, args=(ctx,), daemon=True, name="labdash-disk")
        crg.start()
        disk.start()
        ctx.monitors_started = True
