"""
Progress callbacks for the multi-point driver.

``int_sys_eqns`` calls ``progress(done, total)`` after every completed
segment.  ``PercentProgress`` turns those calls into log lines at every
10% boundary.
"""

from .logger import get_logger

log = get_logger(__name__)


class PercentProgress:
    """
    Log integration progress from 0% to 100% in fixed increments.

    Parameters
    ----------
    increment : int
        Percentage between two reports (default 10).
    label : str
        Prefix for every log line.
    logger : logging.Logger, optional
        Destination logger.  Defaults to this module's logger.

    A call whose ``done`` does not exceed the previous one starts a new run,
    so one instance can be handed to several ``int_sys_eqns`` calls.
    """

    def __init__(self, increment=10, label="int_sys_eqns", logger=None):
        if not 0 < increment <= 100:
            raise ValueError(f"increment must be in (0, 100], got {increment}")
        self.increment = increment
        self.label = label
        self.log = logger or log
        self.reported = []
        self._next = 0
        self._done = None

    def __call__(self, done, total):
        if self._done is not None and done <= self._done:
            self.reset()
        self._done = done
        pct = 100 if total <= 0 else (100 * done) // total
        while self._next <= pct:
            self.log.info("%s: %3d%%", self.label, self._next)
            self.reported.append(self._next)
            self._next += self.increment

    def reset(self):
        """Forget what was reported so the callback can be reused."""
        self.reported = []
        self._next = 0
        self._done = None
