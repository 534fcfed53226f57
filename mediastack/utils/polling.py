"""
Interval pollers.

A Poller runs one callable on a background thread every N seconds until it is
stopped. Stopping sets an Event so a sleeping poller wakes immediately.
"""

import logging
import threading
import traceback
from typing import Callable, Optional


class Poller:
    """Calls func every interval seconds on a daemon thread."""

    def __init__(self, name: str, func: Callable[[], None], interval: float,
                 initial_delay: float = 0.0, logger: Optional[logging.Logger] = None,
                 run_immediately: bool = True):
        self.name = name
        self.func = func
        self.interval = interval
        self.initial_delay = initial_delay
        self.run_immediately = run_immediately
        self.logger = logger or logging.getLogger("mediastack")
        self.stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _tick(self):
        try:
            self.func()
        except Exception as e:
            self.logger.error(f"Error in {self.name} poller: {e}")
            self.logger.debug(traceback.format_exc())

    def _loop(self):
        self.logger.debug(f"{self.name} poller started (every {self.interval}s)")
        if self.initial_delay and self.stop_event.wait(self.initial_delay):
            return
        if self.run_immediately:
            self._tick()
        while not self.stop_event.wait(self.interval):
            self._tick()
        self.logger.debug(f"{self.name} poller stopped")

    def start(self) -> bool:
        if self.running:
            self.logger.debug(f"{self.name} poller already running")
            return False
        self.stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name=f"Poller-{self.name}", daemon=True)
        self._thread.start()
        return True

    def stop(self, timeout: float = 5.0):
        if not self.running:
            return
        self.stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                self.logger.warning(f"{self.name} poller did not terminate gracefully")
        self._thread = None
