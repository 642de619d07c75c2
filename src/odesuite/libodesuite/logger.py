"""
Logging for the odesuite integrators.

Two levels sit below ``DEBUG`` so the inner stepping loops can be traced
without drowning segment-level messages:

- ``STEP``  (9): one line per accepted ``odeint`` step
- ``TRIAL`` (8): one line per rejected ``rkqs`` trial step

Usage
-----
>>> from odesuite.libodesuite import logger
>>> logger.setup("STEP")                 # show accepted steps on stderr
>>> log = logger.get_logger(__name__)
>>> log.step("x=%g h=%g", 0.5, 1e-3)
"""

import logging
import sys

STEP = 9
TRIAL = 8

logging.addLevelName(STEP, "STEP")
logging.addLevelName(TRIAL, "TRIAL")

ROOT = "odesuite"

# Names accepted by set_level() in addition to plain ints.
LEVELS = {
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "STEP": STEP,
    "TRIAL": TRIAL,
}


class _IntegratorLogger(logging.Logger):
    """Logger with ``step`` and ``trial`` methods for the stepping loops."""

    def step(self, msg, *args, **kwargs):
        if self.isEnabledFor(STEP):
            self._log(STEP, msg, args, **kwargs)

    def trial(self, msg, *args, **kwargs):
        if self.isEnabledFor(TRIAL):
            self._log(TRIAL, msg, args, **kwargs)


logging.setLoggerClass(_IntegratorLogger)


def get_logger(name: str | None = None) -> _IntegratorLogger:
    """Return ``name``'s logger, or the ``odesuite`` root when omitted."""
    return logging.getLogger(name or ROOT)


def resolve_level(level: int | str) -> int:
    """Turn a level int or case-insensitive name into a level number."""
    if isinstance(level, str):
        try:
            return LEVELS[level.upper()]
        except KeyError:
            raise ValueError(
                f"unknown log level {level!r}; expected one of {sorted(LEVELS)}"
            ) from None
    if isinstance(level, bool) or not isinstance(level, int) or level < 0:
        raise ValueError(f"log level must be a non-negative int, got {level!r}")
    return level


def set_level(level: int | str = logging.INFO) -> None:
    """Set the threshold of every odesuite logger at once."""
    get_logger().setLevel(resolve_level(level))


def setup(level: int | str = logging.INFO, stream=None) -> None:
    """Attach one stream handler (stderr by default) to the odesuite root.

    Later calls only adjust the level.
    """
    root = get_logger()
    if not root.handlers:
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(
            logging.Formatter("%(levelname)-7s %(name)s: %(message)s")
        )
        root.addHandler(handler)
    set_level(level)
