import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class AutoSync:
    """
    Calls ``callback`` every ``interval`` seconds on a daemon thread while
    ``should_run()`` holds. Ticks are not coordinated with manual syncs.
    """

    def __init__(self, callback: Callable[[], object], interval: float,
                 should_run: Callable[[], bool] = lambda: True):
        self.callback = callback
        self.interval = interval
        self.should_run = should_run
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running():
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name="classbook-auto-sync", daemon=True)
        self._thread.start()
        logger.info(f"Auto-sync started (every {self.interval:g}s)")

    def stop(self, timeout: Optional[float] = None) -> None:
        thread = self._thread
        if thread is None:
            return
        self._stop.set()
        if thread is not threading.current_thread():
            thread.join(timeout)
        self._thread = None
        logger.info("Auto-sync stopped")

    def _run(self) -> None:
        stop = self._stop
        while not stop.wait(self.interval):
            if not self.should_run():
                continue
            try:
                self.callback()
            except Exception:
                logger.error("Auto-sync tick failed", exc_info=True)
