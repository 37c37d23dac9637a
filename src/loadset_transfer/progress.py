"""Forward-only progress reporting for long-running transfers."""

import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class ProgressReporter:
    """Forward percentages (0-100) to a callback, never going backwards.

    A failing callback is logged and otherwise ignored so it cannot stop
    the work it reports on.
    """

    def __init__(self, callback: ProgressCallback | None = None):
        self.callback = callback
        self.percent = -1

    def report(self, percent: int) -> None:
        percent = max(0, min(100, int(percent)))
        if percent <= self.percent:
            return
        self.percent = percent
        if self.callback is None:
            return
        try:
            self.callback(percent)
        except Exception:
            logger.warning("Progress callback failed at %d%%", percent, exc_info=True)
