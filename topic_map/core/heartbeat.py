"""
Heartbeat: periodic driver for maintenance tasks such as the parking sweep.
"""

import threading
import time
from typing import Callable, Dict, List, Optional

from util.logging import logger
from .config import get_sweep_interval

SWEEP_TASK_NAME = "staging.sweep_expired"


class Heartbeat:
    """
    Cooperative scheduler for named periodic tasks.

    run_pending() executes every task that is due, which is all start()
    does in a loop on a background thread. The monotonic clock is
    injectable so tests can advance time without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, tick_sec: float = 0.1):
        self.tasks: Dict[str, Dict] = {}  # task_name -> {func, interval, last_run}
        self.tick_sec = tick_sec
        self._clock = clock
        self._lock = threading.RLock()
        self._shutdown_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def register_task(self, name: str, interval_sec: int, func: Callable):
        """
        Register a task to be executed periodically.

        Args:
            name: Unique task identifier; an existing task with this name is replaced
            interval_sec: How often to run this task in seconds
            func: Function to call (should be fast and not block)
        """
        if not callable(func):
            raise ValueError(f"Task function must be callable: {func}")

        if interval_sec < 1:
            raise ValueError(f"Interval must be >= 1 second: {interval_sec}")

        with self._lock:
            self.tasks[name] = {
                "func": func,
                "interval": interval_sec,
                "last_run": None
            }

        logger.info(f"Registered heartbeat task '{name}' (every {interval_sec}s)")

    def unregister_task(self, name: str):
        """Remove a task from the registry."""
        with self._lock:
            if self.tasks.pop(name, None) is not None:
                logger.info(f"Unregistered heartbeat task '{name}'")

    def list_tasks(self) -> List[str]:
        """Return list of registered task names."""
        with self._lock:
            return list(self.tasks.keys())

    def reset_task(self, name: str):
        """Reset a task's last_run time to force immediate execution."""
        with self._lock:
            if name in self.tasks:
                self.tasks[name]["last_run"] = None

    def should_run_task(self, task_info: Dict) -> bool:
        """Check if a task should run this cycle."""
        if task_info["last_run"] is None:
            return True  # Run immediately if never run

        elapsed = self._clock() - task_info["last_run"]
        return elapsed >= task_info["interval"]

    def run_task(self, name: str, task_info: Dict):
        """Execute a task and record timing. Failures are logged, not raised."""
        start_time = self._clock()
        try:
            result = task_info["func"]()
        except Exception as e:
            end_time = self._clock()
            task_info["last_run"] = end_time
            logger.log_heartbeat_task(name, start_time, end_time, status="failed", details={"error": str(e)})
            return False

        end_time = self._clock()
        task_info["last_run"] = end_time
        details = {"result": result} if result is not None else None
        logger.log_heartbeat_task(name, start_time, end_time, details=details)
        return True

    def run_pending(self) -> List[str]:
        """Run every due task once and return the names that ran."""
        with self._lock:
            due = [(name, info) for name, info in self.tasks.items() if self.should_run_task(info)]

        ran = []
        for name, info in due:
            self.run_task(name, info)
            ran.append(name)
        return ran

    def _loop(self):
        while not self._shutdown_event.is_set():
            self.run_pending()
            self._shutdown_event.wait(self.tick_sec)

    def start(self):
        """Start the heartbeat loop on a daemon thread."""
        if self.running:
            raise RuntimeError("Heartbeat already running")

        self._shutdown_event.clear()
        self._thread = threading.Thread(target=self._loop, name="heartbeat", daemon=True)
        self._thread.start()
        logger.info(f"Heartbeat started with tasks: {self.list_tasks()}")

    def stop(self, timeout: float = 2.0):
        """Stop the heartbeat loop and wait for the thread to finish."""
        if not self.running:
            return

        self._shutdown_event.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("Heartbeat stopped")

    def get_status(self) -> Dict:
        """Return current heartbeat status for monitoring."""
        with self._lock:
            return {
                "status": "running" if self.running else "stopped",
                "tasks": {
                    name: {
                        "interval_sec": info["interval"],
                        "last_run": info["last_run"],
                        "next_run": info["last_run"] + info["interval"] if info["last_run"] is not None else None
                    }
                    for name, info in self.tasks.items()
                },
            }


def schedule_sweep(heartbeat: Heartbeat, store, interval_sec: Optional[int] = None):
    """Register the parking store's expiry sweep on a heartbeat (SWEEP_INTERVAL_SEC by default)."""
    if interval_sec is None:
        interval_sec = get_sweep_interval()
    heartbeat.register_task(SWEEP_TASK_NAME, interval_sec, store.sweep_expired)
